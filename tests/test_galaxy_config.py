"""Tests for the configuration model."""

import pytest

from curves import inverse_square, one
from errors import InvalidArgument
from galaxy_config import (
    AttributeDistribution, ColorGradient, DistributionType, GalaxyConfig, ParticlesConfig
)


class TestColorGradient:
    @pytest.fixture
    def gradient(self):
        return ColorGradient([
            (0.0, (1.0, 0.0, 0.0)),
            (0.5, (0.0, 1.0, 0.0)),
            (1.0, (0.0, 0.0, 1.0)),
        ])

    def test_exact_stops(self, gradient):
        assert gradient.evaluate(0.0) == (1.0, 0.0, 0.0)
        assert gradient.evaluate(0.5) == (0.0, 1.0, 0.0)
        assert gradient.evaluate(1.0) == (0.0, 0.0, 1.0)

    def test_interpolates_between_stops(self, gradient):
        assert gradient.evaluate(0.25) == pytest.approx((0.5, 0.5, 0.0))

    def test_clamps_outside_unit_range(self, gradient):
        assert gradient.evaluate(-0.5) == (1.0, 0.0, 0.0)
        assert gradient.evaluate(1.5) == (0.0, 0.0, 1.0)

    def test_clamps_below_first_offset(self):
        gradient = ColorGradient([(0.3, (0.2, 0.2, 0.2)), (0.7, (0.8, 0.8, 0.8))])
        assert gradient.evaluate(0.1) == (0.2, 0.2, 0.2)
        assert gradient.evaluate(0.9) == (0.8, 0.8, 0.8)

    def test_single_stop(self):
        gradient = ColorGradient([(0.5, (0.1, 0.2, 0.3))])
        assert gradient.evaluate(0.0) == (0.1, 0.2, 0.3)
        assert gradient.evaluate(1.0) == (0.1, 0.2, 0.3)

    def test_empty_raises(self):
        with pytest.raises(InvalidArgument):
            ColorGradient([])

    def test_unsorted_raises(self):
        with pytest.raises(InvalidArgument):
            ColorGradient([(0.5, (1, 1, 1)), (0.2, (0, 0, 0))])

    def test_from_list(self):
        gradient = ColorGradient.from_list([[0.0, [1, 1, 1]], [1.0, [0, 0, 0]]])
        assert len(gradient) == 2


class TestDistributionType:
    def test_parse(self):
        assert DistributionType.parse('distance') is DistributionType.DISTANCE
        assert DistributionType.parse('Angle') is DistributionType.ANGLE
        assert DistributionType.parse(DistributionType.RANDOM) is DistributionType.RANDOM

    def test_perlin_alias(self):
        assert DistributionType.parse('perlin') is DistributionType.NOISE

    def test_unknown_raises(self):
        with pytest.raises(InvalidArgument):
            DistributionType.parse('spiral')


class TestParticlesConfig:
    def test_defaults(self):
        config = ParticlesConfig(count=10)
        assert config.active
        assert config.size_distribution.kind is DistributionType.LINEAR
        assert config.rotation_distribution.kind is DistributionType.RANDOM
        assert config.alpha_distribution.curve is inverse_square
        assert config.color_distribution.curve is one
        assert len(config.color_gradient) == 3

    def test_negative_count_raises(self):
        with pytest.raises(InvalidArgument):
            ParticlesConfig(count=-1)

    def test_zero_count_allowed(self):
        assert ParticlesConfig(count=0).count == 0

    def test_from_dict(self):
        config = ParticlesConfig.from_dict({
            'name': 'dust',
            'count': 25,
            'seed': 9,
            'active': False,
            'size_distribution': {'type': 'noise', 'frequency': 0.1, 'amplitude': 2, 'variation': 0.3},
            'alpha_distribution': {'curve': 0.5},
            'color_gradient': [[0.0, [1, 0, 0]], [1.0, [0, 0, 1]]],
        })
        assert config.name == 'dust'
        assert config.count == 25
        assert config.seed == 9
        assert not config.active
        assert config.size_distribution.kind is DistributionType.NOISE
        assert config.size_distribution.frequency == 0.1
        assert config.size_distribution.variation == 0.3
        # Unspecified keys fall back to the attribute's default.
        assert config.alpha_distribution.kind is DistributionType.LINEAR
        assert config.alpha_distribution.curve(0.9) == 0.5
        assert config.rotation_distribution.kind is DistributionType.RANDOM
        assert config.color_gradient.evaluate(1.0) == (0.0, 0.0, 1.0)

    def test_distribution_is_immutable(self):
        dist = AttributeDistribution()
        with pytest.raises(AttributeError):
            dist.variation = 0.5

    def test_configs_hash_by_identity(self):
        a = ParticlesConfig(count=1)
        b = ParticlesConfig(count=1)
        assert len({a: 1, b: 2}) == 2


class TestGalaxyConfig:
    def test_add_get_remove(self):
        galaxy = GalaxyConfig()
        first = ParticlesConfig(count=1)
        second = ParticlesConfig(count=2)
        galaxy.add(first)
        galaxy.add(second)
        assert len(galaxy) == 2
        assert galaxy.get(1) is second
        assert galaxy.get(5) is None
        assert galaxy.remove(first)
        assert not galaxy.remove(first)
        assert galaxy.get(0) is second

    def test_defaults(self):
        galaxy = GalaxyConfig()
        assert galaxy.size == 100.0
        assert galaxy.height_offset == 10.0
        assert galaxy.distributor is None
