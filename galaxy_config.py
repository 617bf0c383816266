# galaxy_config.py
"""
Configuration model for galaxies and their particle sets.

This module defines the plain-data side of the engine: how each particle
attribute is distributed (AttributeDistribution), the colour gradient, the
per-set ParticlesConfig and the GalaxyConfig that groups them under one
distributor. Configs carry no back-references; the orchestrator owns them.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from constants import (
    DEFAULT_GALAXY_SIZE, DEFAULT_HEIGHT_OFFSET, DEFAULT_PARTICLE_COUNT,
    DEFAULT_PARTICLE_SIZE, DEFAULT_MAX_SCREEN_SIZE, DEFAULT_COLOR_GRADIENT
)
from curves import Curve, make_curve, one, inverse_square
from errors import InvalidArgument

if TYPE_CHECKING:
    from distributor import ParticleDistributor

Color = Tuple[float, float, float]

# --- Data Contracts ---
#
# class AttributeDistribution (frozen):
#   - kind: DistributionType, curve: f(t) -> float, variation in [0, 1],
#     multiplier: float, frequency/amplitude (noise kind only).
#
# class ColorGradient:
#   - __init__(self, stops: Sequence[Tuple[float, Color]]):
#     - Invariants: at least one stop; offsets strictly increasing.
#   - evaluate(t: float) -> Color. Clamps outside [first, last] offset.
#
# class ParticlesConfig:
#   - One config produces exactly `count` particles.
#   - Raises InvalidArgument if count < 0.
#
# class GalaxyConfig:
#   - size, height_offset, distributor (0 or 1), particle_configs (ordered).


class DistributionType(enum.Enum):
    LINEAR = 'linear'
    DISTANCE = 'distance'
    ANGLE = 'angle'
    RANDOM = 'random'
    NOISE = 'noise'

    @classmethod
    def parse(cls, value: Any) -> "DistributionType":
        if isinstance(value, cls):
            return value
        name = str(value).lower()
        if name == 'perlin':
            return cls.NOISE
        try:
            return cls(name)
        except ValueError:
            raise InvalidArgument(
                f"Unknown distribution type '{value}'. "
                f"Known: {[t.value for t in cls]}"
            ) from None


@dataclass(frozen=True)
class AttributeDistribution:
    kind: DistributionType = DistributionType.LINEAR
    curve: Curve = one
    variation: float = 0.0
    multiplier: float = 1.0
    frequency: float = 1.0
    amplitude: float = 1.0

    @classmethod
    def from_dict(cls, params: Dict[str, Any], default: "AttributeDistribution") -> "AttributeDistribution":
        """Builds a distribution from a config dict, falling back to `default` per key."""
        return cls(
            kind=DistributionType.parse(params.get('type', default.kind)),
            curve=make_curve(params['curve']) if 'curve' in params else default.curve,
            variation=float(params.get('variation', default.variation)),
            multiplier=float(params.get('multiplier', default.multiplier)),
            frequency=float(params.get('frequency', default.frequency)),
            amplitude=float(params.get('amplitude', default.amplitude)),
        )


class ColorGradient:
    """Ordered (offset, colour) stops, linearly interpolated."""

    def __init__(self, stops: Sequence[Tuple[float, Color]]):
        if len(stops) == 0:
            raise InvalidArgument("A colour gradient needs at least one stop.")
        self.stops: List[Tuple[float, Color]] = [
            (float(offset), tuple(float(c) for c in color)) for offset, color in stops
        ]
        offsets = [offset for offset, _ in self.stops]
        if any(b <= a for a, b in zip(offsets, offsets[1:])):
            raise InvalidArgument(f"Gradient offsets must be strictly increasing: {offsets}")

    def evaluate(self, t: float) -> Color:
        t = max(0.0, min(1.0, t))
        stops = self.stops
        if t <= stops[0][0]:
            return stops[0][1]
        for i in range(1, len(stops)):
            offset, color = stops[i]
            if t <= offset:
                prev_offset, prev_color = stops[i - 1]
                factor = (t - prev_offset) / (offset - prev_offset)
                return tuple(a * (1.0 - factor) + b * factor for a, b in zip(prev_color, color))
        return stops[-1][1]

    @classmethod
    def from_list(cls, stops: Sequence[Sequence[Any]]) -> "ColorGradient":
        """Builds a gradient from [[offset, [r, g, b]], ...]."""
        return cls([(offset, tuple(color)) for offset, color in stops])

    def __len__(self):
        return len(self.stops)


def _default_size_distribution() -> AttributeDistribution:
    return AttributeDistribution(DistributionType.LINEAR, one)


def _default_rotation_distribution() -> AttributeDistribution:
    return AttributeDistribution(DistributionType.RANDOM, one)


def _default_alpha_distribution() -> AttributeDistribution:
    return AttributeDistribution(DistributionType.LINEAR, inverse_square)


def _default_color_distribution() -> AttributeDistribution:
    return AttributeDistribution(DistributionType.LINEAR, one)


@dataclass(eq=False)
class ParticlesConfig:
    """
    Settings for one set of particles generated by the galaxy's distributor.
    """
    count: int = DEFAULT_PARTICLE_COUNT
    seed: int = 0
    size: float = DEFAULT_PARTICLE_SIZE
    # Passed through to the renderer untouched.
    max_screen_size: float = DEFAULT_MAX_SCREEN_SIZE
    active: bool = True
    name: str = 'particles'
    size_distribution: AttributeDistribution = field(default_factory=_default_size_distribution)
    rotation_distribution: AttributeDistribution = field(default_factory=_default_rotation_distribution)
    alpha_distribution: AttributeDistribution = field(default_factory=_default_alpha_distribution)
    color_distribution: AttributeDistribution = field(default_factory=_default_color_distribution)
    color_gradient: ColorGradient = field(default_factory=lambda: ColorGradient(DEFAULT_COLOR_GRADIENT))

    def __post_init__(self):
        if self.count < 0:
            raise InvalidArgument(f"Particle count must be >= 0, got {self.count}")

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "ParticlesConfig":
        """Builds a ParticlesConfig from the `particles` entries of config.json."""
        kwargs: Dict[str, Any] = {}
        for key, cast in (('count', int), ('seed', int), ('size', float),
                          ('max_screen_size', float), ('active', bool), ('name', str)):
            if key in params:
                kwargs[key] = cast(params[key])
        defaults = {
            'size_distribution': _default_size_distribution(),
            'rotation_distribution': _default_rotation_distribution(),
            'alpha_distribution': _default_alpha_distribution(),
            'color_distribution': _default_color_distribution(),
        }
        for key, default in defaults.items():
            if key in params:
                kwargs[key] = AttributeDistribution.from_dict(params[key], default)
        if 'color_gradient' in params:
            kwargs['color_gradient'] = ColorGradient.from_list(params['color_gradient'])
        config = cls(**kwargs)
        logging.debug(f"ParticlesConfig '{config.name}' parsed: count={config.count}, seed={config.seed}.")
        return config


@dataclass(eq=False)
class GalaxyConfig:
    """A galaxy: its world scale, one distributor and an ordered list of particle sets."""
    size: float = DEFAULT_GALAXY_SIZE
    height_offset: float = DEFAULT_HEIGHT_OFFSET
    distributor: Optional["ParticleDistributor"] = None
    particle_configs: List[ParticlesConfig] = field(default_factory=list)

    def add(self, particles_config: ParticlesConfig) -> None:
        self.particle_configs.append(particles_config)

    def remove(self, particles_config: ParticlesConfig) -> bool:
        for i, existing in enumerate(self.particle_configs):
            if existing is particles_config:
                del self.particle_configs[i]
                return True
        return False

    def get(self, index: int) -> Optional[ParticlesConfig]:
        if 0 <= index < len(self.particle_configs):
            return self.particle_configs[index]
        return None

    def __len__(self):
        return len(self.particle_configs)
