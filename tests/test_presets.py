"""Tests for galaxy presets and config-dict builders."""

import numpy as np
import pytest

from density_wave import DensityWaveDistributor
from errors import InvalidArgument
from gaussian import GaussianDistributor
from image_distributor import ImageDistributor, PixelBuffer
from presets import GALAXY_PRESETS, build_distributor, build_galaxy, get_preset, resolve_galaxy_params
from simulation import GalaxySimulation


class TestPresets:
    @pytest.mark.parametrize("preset_id", sorted(GALAXY_PRESETS))
    def test_every_preset_builds(self, preset_id):
        galaxy = build_galaxy({'preset': preset_id})
        assert galaxy.distributor is not None
        assert len(galaxy) == 1
        assert galaxy.particle_configs[0].count > 0

    def test_unknown_preset_raises(self):
        with pytest.raises(InvalidArgument):
            get_preset('quasar')

    def test_get_preset_returns_copy(self):
        get_preset('spiral-galaxy')['size'] = 1.0
        assert GALAXY_PRESETS['spiral-galaxy']['size'] == 100.0

    def test_overrides_replace_preset_keys(self):
        params = resolve_galaxy_params({'preset': 'star-cluster', 'size': 5.0, 'particles': [{'count': 10}]})
        assert params['size'] == 5.0
        assert params['distributor']['type'] == 'gaussian'
        assert params['particles'] == [{'count': 10}]

    def test_without_preset_passes_through(self):
        assert resolve_galaxy_params({'size': 3.0}) == {'size': 3.0}

    def test_small_preset_generates(self):
        galaxy = build_galaxy({'preset': 'spiral-galaxy', 'particles': [{'count': 50, 'seed': 1}]})
        sim = GalaxySimulation(galaxy)
        assert sim.total_particle_count() == 50


class TestBuildDistributor:
    def test_density_wave(self):
        distributor = build_distributor({
            'type': 'density-wave', 'seed': 4, 'angle_offset': 3.0,
            'focal_point': 1, 'height_curve': 'linear',
        })
        assert isinstance(distributor, DensityWaveDistributor)
        assert distributor.seed == 4
        assert distributor.angle_offset == 3.0
        assert distributor.focal_point == 1.0
        assert distributor.height_curve(0.5) == 0.5

    def test_gaussian(self):
        distributor = build_distributor({'type': 'gaussian', 'variance': 0.5})
        assert isinstance(distributor, GaussianDistributor)
        assert distributor.variance == 0.5

    def test_image_with_loader(self):
        requested = []

        def loader(path):
            requested.append(path)
            return PixelBuffer.from_grayscale(np.ones((4, 4)))

        distributor = build_distributor(
            {'type': 'image', 'distribution_map': 'map.png', 'color_map': 'color.png'},
            image_loader=loader,
        )
        assert isinstance(distributor, ImageDistributor)
        assert requested == ['map.png', 'color.png']
        assert distributor.is_analyzed
        assert distributor.color_map is not None

    def test_image_without_loader_ignores_maps(self, caplog):
        distributor = build_distributor({'type': 'image', 'distribution_map': 'map.png'})
        assert distributor.distribution_map is None
        assert "No image loader" in caplog.text

    def test_unknown_type_raises(self):
        with pytest.raises(InvalidArgument):
            build_distributor({'type': 'ring'})


class TestBuildGalaxy:
    def test_full_dict(self):
        galaxy = build_galaxy({
            'size': 20.0,
            'height_offset': 2.0,
            'distributor': {'type': 'gaussian', 'seed': 3},
            'particles': [
                {'name': 'a', 'count': 5},
                {'name': 'b', 'count': 7, 'active': False},
            ],
        })
        assert galaxy.size == 20.0
        assert galaxy.height_offset == 2.0
        assert [p.name for p in galaxy.particle_configs] == ['a', 'b']
        assert GalaxySimulation(galaxy).total_particle_count() == 5

    def test_without_distributor(self):
        galaxy = build_galaxy({'particles': [{'count': 5}]})
        assert galaxy.distributor is None
