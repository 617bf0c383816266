# constants.py
"""
Engine-level constants.

These values are static and do not change between generation runs.
They are fundamental to the distribution engine, such as the orbital
constant, the default tunables of each distributor, or the default
attribute shaping, and are not part of the per-galaxy configuration.
"""
import math

# Gravitational constant in arbitrary internal units (not SI).
G = 6.67384

TWO_PI = 2.0 * math.pi

# --- DeterministicRandom ---
# Fixed xorshift-128 state words used alongside the seed.
XORSHIFT_Y = 842502087
XORSHIFT_Z = 3579807591
XORSHIFT_W = 273326509
UINT32_MASK = 0xFFFFFFFF
INT31_MASK = 0x7FFFFFFF
# 1 / (int.MaxValue + 1) and 1 / (uint.MaxValue + 1)
REAL_UNIT_INT = 1.0 / (2147483647 + 1.0)
REAL_UNIT_UINT = 1.0 / (4294967295 + 1.0)
# Outputs thrown away after filling a derived stream's state words.
DERIVED_STREAM_WARMUP = 8
# Mixed into attribute seeds so an attribute stream never replays the
# distributor stream of an equal seed.
ATTRIBUTE_STREAM_SALT = 0xA77B5EED

# --- Galaxy defaults ---
DEFAULT_GALAXY_SIZE = 100.0
DEFAULT_HEIGHT_OFFSET = 10.0
DEFAULT_ANIMATION_SPEED = 1.0

# --- Particles defaults ---
DEFAULT_PARTICLE_COUNT = 100000
DEFAULT_PARTICLE_SIZE = 0.1
DEFAULT_MAX_SCREEN_SIZE = 0.1

# Default colour gradient: warm core through pale yellow to a blue-white rim.
DEFAULT_COLOR_GRADIENT = [
    (0.0, (1.0, 0.8, 0.6)),
    (0.5, (1.0, 1.0, 0.8)),
    (1.0, (0.8, 0.8, 1.0)),
]

# --- Density wave defaults ---
DEFAULT_PERIAPSIS_DISTANCE = 0.08
DEFAULT_APSIS_DISTANCE = 0.01
DEFAULT_CENTER_MASS = 830000.0
DEFAULT_STAR_MASS = 80.0
DEFAULT_ANGLE_OFFSET = 8.0
DEFAULT_HEIGHT_VARIANCE = 1.0
# Disk thickness envelope over normalised radius: ramps in over the first
# 20%, flat to 80%, ramps out over the last 20%.
DEFAULT_HEIGHT_CURVE = [(0.0, 0.0), (0.2, 1.0), (0.8, 1.0), (1.0, 0.0)]

# --- Gaussian defaults ---
DEFAULT_GAUSSIAN_VARIANCE = 1.0

# --- Image defaults ---
DEFAULT_MAX_HEIGHT = 10.0
DEFAULT_COLOR_CONTRIBUTION = 1.0
DEFAULT_DOWNSAMPLE = 1
# ITU-R BT.601 luma weights
GRAYSCALE_WEIGHTS = (0.299, 0.587, 0.114)

# --- Noise ---
NOISE_TABLE_SIZE = 256

# --- Run control / output ---
DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = 'logs/galaxy.log'
DEFAULT_OUTPUT_FILE = 'output/particles.npz'
