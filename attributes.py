# attributes.py
"""
Per-particle attribute evaluation.

This module defines the AttributeEvaluator, which turns a particle's spatial
facts (position, radial distance, spiral angle, index) into its size,
rotation and pre-multiplied colour according to a ParticlesConfig. Each
evaluator owns the random stream for its configuration, separate from any
distributor's stream, so attribute randomness is reproducible on its own.
"""
import math
from typing import Sequence, Tuple

import numpy as np

from constants import TWO_PI, ATTRIBUTE_STREAM_SALT
from galaxy_config import AttributeDistribution, DistributionType, ParticlesConfig
from noise import simplex3
from rng import DeterministicRandom, derived_stream

# --- Data Contracts ---
#
# class AttributeEvaluator:
#   - __init__(self, config: ParticlesConfig, random: DeterministicRandom = None):
#     - Inputs:
#       - config: the particle configuration whose distributions are applied.
#       - random: stream to draw from; defaults to the set-wide stream of
#         config.seed salted with ATTRIBUTE_STREAM_SALT, so it never replays
#         a distributor stream seeded with the same value.
#
#   - evaluation_position(distribution, pos, distance, galaxy_size, angle, index) -> float
#     - Outputs: roughly [0, 1] depending on distribution.kind.
#   - size(...) -> float, rotation(...) -> float, color(...) -> (r, g, b)
#     - Side Effects: each consumes draws from self.random, in a fixed order.
#   - apply(particle, pos, angle, galaxy_size) -> None
#     - Side Effects: writes color, size and rotation into the particle.


def lerp(value: float, random_draw: float, variation: float) -> float:
    """Blends a shaped value toward a random draw; variation 0 is fully deterministic."""
    return value * (1.0 - variation) + random_draw * variation


class AttributeEvaluator:
    """
    Evaluates size, rotation and colour for the particles of one configuration.
    """
    def __init__(self, config: ParticlesConfig, random: DeterministicRandom = None):
        self.config = config
        self.random = random if random is not None else derived_stream(config.seed, salt=ATTRIBUTE_STREAM_SALT)

    def for_index(self, index: int) -> "AttributeEvaluator":
        """An evaluator with the independent stream derived for `index`."""
        return AttributeEvaluator(self.config, derived_stream(self.config.seed, index, salt=ATTRIBUTE_STREAM_SALT))

    def evaluation_position(
        self,
        distribution: AttributeDistribution,
        pos: Sequence[float],
        distance: float,
        galaxy_size: float,
        angle: float,
        index: int,
    ) -> float:
        kind = distribution.kind
        if kind is DistributionType.ANGLE:
            return (math.cos(angle) + 1.0) / 2.0
        if kind is DistributionType.DISTANCE:
            return distance / galaxy_size if galaxy_size else 0.0
        if kind is DistributionType.LINEAR:
            return index / self.config.count
        if kind is DistributionType.NOISE:
            freq = distribution.frequency
            value = simplex3(pos[0] * freq, pos[1] * freq, pos[2] * freq)
            if value < 0.0 and not float(distribution.amplitude).is_integer():
                # A negative base has no real fractional power.
                return 0.0
            return value ** distribution.amplitude
        return self.random.next_double()

    def size(self, pos, distance: float, galaxy_size: float, angle: float, index: int) -> float:
        dist = self.config.size_distribution
        size_pos = self.evaluation_position(dist, pos, distance, galaxy_size, angle, index)
        value = lerp(dist.curve(size_pos), self.random.next_double(), dist.variation)
        return value * self.config.size * dist.multiplier

    def rotation(self, pos, distance: float, galaxy_size: float, angle: float, index: int) -> float:
        dist = self.config.rotation_distribution
        rotation_pos = self.evaluation_position(dist, pos, distance, galaxy_size, angle, index)
        value = lerp(dist.curve(rotation_pos), self.random.next_double(), dist.variation)
        return value * TWO_PI * dist.multiplier

    def color(self, pos, distance: float, galaxy_size: float, angle: float, index: int) -> Tuple[float, float, float]:
        """
        Gradient colour with alpha baked into RGB (pre-multiplied).
        """
        color_dist = self.config.color_distribution
        alpha_dist = self.config.alpha_distribution
        color_pos = self.evaluation_position(color_dist, pos, distance, galaxy_size, angle, index)
        alpha_pos = self.evaluation_position(alpha_dist, pos, distance, galaxy_size, angle, index)

        base = self.config.color_gradient.evaluate(
            lerp(color_pos, self.random.next_double(), color_dist.variation)
        )
        alpha = lerp(
            alpha_dist.curve(alpha_pos), self.random.next_double(), alpha_dist.variation
        ) * alpha_dist.multiplier * color_dist.curve(color_pos)

        scale = color_dist.multiplier * alpha
        return (base[0] * scale, base[1] * scale, base[2] * scale)

    def apply(self, particle, pos: Sequence[float], angle: float, galaxy_size: float) -> None:
        """Writes colour, size and rotation for a particle placed at `pos`."""
        distance = float(np.linalg.norm(pos))
        index = particle.index
        particle.color = self.color(pos, distance, galaxy_size, angle, index)
        particle.size = self.size(pos, distance, galaxy_size, angle, index)
        particle.rotation = self.rotation(pos, distance, galaxy_size, angle, index)
