"""Tests for the image-driven distributor and its pixel buffer."""

import logging

import numpy as np
import pytest

from attributes import AttributeEvaluator
from distributor import ProcessContext
from errors import InvalidArgument, MissingResource
from galaxy_config import GalaxyConfig, ParticlesConfig
from image_distributor import ImageDistributor, PixelBuffer
from particle import ParticleSet
from simulation import GalaxySimulation


def image_galaxy(distributor, count=1000, size=1.0):
    return GalaxyConfig(
        size=size,
        height_offset=1.0,
        distributor=distributor,
        particle_configs=[ParticlesConfig(count=count, seed=3, name='stars')],
    )


def positions_of(sim):
    return next(iter(sim.particle_sets.values())).positions


class TestPixelBuffer:
    def test_from_bytes(self):
        data = bytes([255, 0, 0, 255, 0, 0, 255, 255])
        pixels = PixelBuffer(2, 1, data)
        assert pixels.data.shape == (1, 2, 4)
        assert np.allclose(pixels.sample(0.0, 0.0), [1.0, 0.0, 0.0])
        assert np.allclose(pixels.sample(1.0, 0.0), [0.0, 0.0, 1.0])

    def test_bilinear_midpoint(self):
        data = bytes([0, 0, 0, 255, 255, 255, 255, 255])
        pixels = PixelBuffer(2, 1, data)
        assert np.allclose(pixels.sample(0.5, 0.0), [0.5, 0.5, 0.5], atol=1e-3)

    def test_sample_clamps(self):
        pixels = PixelBuffer.from_grayscale(np.array([[0.0, 1.0]]))
        assert np.allclose(pixels.sample(-1.0, 5.0), [0.0, 0.0, 0.0])

    def test_rgb_array_gets_opaque_alpha(self):
        pixels = PixelBuffer(1, 1, np.zeros((1, 1, 3), dtype=np.uint8))
        assert pixels.data[0, 0, 3] == 255

    def test_wrong_size_raises(self):
        with pytest.raises(InvalidArgument):
            PixelBuffer(2, 2, bytes(8))

    def test_empty_raises(self):
        with pytest.raises(InvalidArgument):
            PixelBuffer(0, 4, bytes(0))


class TestWithoutMap:
    def test_cannot_process(self):
        assert not ImageDistributor(seed=1).can_process(ParticlesConfig(count=1))

    def test_require_map_raises(self):
        with pytest.raises(MissingResource):
            ImageDistributor(seed=1).require_map()

    def test_process_leaves_particle_unplaced(self, caplog):
        caplog.set_level(logging.DEBUG)
        distributor = ImageDistributor(seed=1)
        galaxy = image_galaxy(distributor, count=3)
        particles = galaxy.particle_configs[0]
        particle_set = ParticleSet(3)
        distributor.process(ProcessContext(
            particle=particle_set[0], galaxy=galaxy, particles=particles,
            evaluator=AttributeEvaluator(particles), time=0.0, index=0,
        ))
        assert np.all(particle_set.positions == 0.0)
        assert "left unplaced" in caplog.text

    def test_simulation_skips_config(self, caplog):
        sim = GalaxySimulation(image_galaxy(ImageDistributor(seed=1)))
        assert sim.total_particle_count() == 0
        assert "Skipping" in caplog.text


class TestSampling:
    def test_is_static(self):
        assert not ImageDistributor(seed=1).is_time_varying

    def test_positions_within_galaxy_extent(self, uniform_pixels):
        distributor = ImageDistributor(seed=5)
        distributor.set_distribution_map(uniform_pixels)
        positions = positions_of(GalaxySimulation(image_galaxy(distributor, size=2.0)))
        assert np.all(positions[:, 0] >= -2.0) and np.all(positions[:, 0] < 2.0)
        assert np.all(positions[:, 2] >= -2.0) and np.all(positions[:, 2] < 2.0)

    @pytest.mark.slow
    def test_uniform_image_gives_uniform_density(self, uniform_pixels):
        distributor = ImageDistributor(seed=5)
        distributor.set_distribution_map(uniform_pixels)
        positions = positions_of(GalaxySimulation(image_galaxy(distributor, count=20000)))
        for axis in (0, 2):
            counts, _ = np.histogram(positions[:, axis], bins=8, range=(-1.0, 1.0))
            expected = 20000 / 8
            assert np.all(np.abs(counts - expected) < 0.1 * expected)

    def test_dark_half_receives_nothing(self, half_dark_pixels):
        distributor = ImageDistributor(seed=5)
        distributor.set_distribution_map(half_dark_pixels)
        positions = positions_of(GalaxySimulation(image_galaxy(distributor, count=2000)))
        assert np.all(positions[:, 0] >= 0.0)

    def test_black_map_cannot_process(self):
        distributor = ImageDistributor(seed=5)
        distributor.set_distribution_map(PixelBuffer.from_grayscale(np.zeros((4, 4))))
        assert distributor.is_analyzed
        assert not distributor.can_process(ParticlesConfig(count=1))

    def test_height_map_flattens(self, uniform_pixels):
        distributor = ImageDistributor(seed=5, max_height=10.0)
        distributor.set_distribution_map(uniform_pixels)
        distributor.set_height_map(PixelBuffer.from_grayscale(np.zeros((8, 8))))
        positions = positions_of(GalaxySimulation(image_galaxy(distributor)))
        assert np.all(positions[:, 1] == 0.0)

    def test_without_height_map_uses_max_height(self, uniform_pixels):
        distributor = ImageDistributor(seed=5, max_height=10.0)
        distributor.set_distribution_map(uniform_pixels)
        positions = positions_of(GalaxySimulation(image_galaxy(distributor)))
        assert positions[:, 1].std() > 5.0

    def test_color_map_replaces_color(self, uniform_pixels):
        red = np.zeros((8, 8, 3), dtype=np.uint8)
        red[:, :, 0] = 255
        distributor = ImageDistributor(seed=5, color_contribution=1.0)
        distributor.set_distribution_map(uniform_pixels)
        distributor.set_color_map(PixelBuffer(8, 8, red))
        sim = GalaxySimulation(image_galaxy(distributor))
        colors = next(iter(sim.particle_sets.values())).colors
        assert np.allclose(colors, [1.0, 0.0, 0.0])

    def test_downsample(self, uniform_pixels):
        distributor = ImageDistributor(seed=5, downsample=4)
        distributor.set_distribution_map(uniform_pixels)
        assert distributor.sample_cell(0.99, 0.99) == (1, 1)

    def test_sample_cell_follows_brightness(self, half_dark_pixels):
        distributor = ImageDistributor(seed=5)
        distributor.set_distribution_map(half_dark_pixels)
        for u in np.linspace(0.01, 0.99, 50):
            x, y = distributor.sample_cell(u, 0.5)
            assert x >= 4
            assert 0 <= y < 8

    def test_reproducible(self, uniform_pixels):
        def run():
            distributor = ImageDistributor(seed=9)
            distributor.set_distribution_map(uniform_pixels)
            return positions_of(GalaxySimulation(image_galaxy(distributor, count=300)))
        assert np.array_equal(run(), run())


class TestBackgroundAnalysis:
    def test_future_completes(self, uniform_pixels):
        distributor = ImageDistributor(seed=5)
        future = distributor.set_distribution_map(uniform_pixels, background=True)
        try:
            future.result(timeout=30)
            assert distributor.is_analyzed
            assert distributor.can_process(ParticlesConfig(count=1))
        finally:
            distributor.close()

    def test_generation_waits_for_analysis(self, uniform_pixels):
        distributor = ImageDistributor(seed=5)
        distributor.set_distribution_map(uniform_pixels, background=True)
        sim = GalaxySimulation(image_galaxy(distributor, count=500))
        try:
            assert sim.total_particle_count() == 500
            assert np.any(positions_of(sim) != 0.0)
        finally:
            sim.dispose()

    def test_black_map_in_background_places_nothing(self):
        distributor = ImageDistributor(seed=5)
        distributor.set_distribution_map(PixelBuffer.from_grayscale(np.zeros((4, 4))), background=True)
        sim = GalaxySimulation(image_galaxy(distributor, count=50))
        try:
            assert distributor.is_analyzed
            assert sim.total_particle_count() == 0
        finally:
            sim.dispose()

    def test_can_process_waits_for_black_map_analysis(self):
        distributor = ImageDistributor(seed=5)
        distributor.set_distribution_map(PixelBuffer.from_grayscale(np.zeros((64, 64))), background=True)
        try:
            assert not distributor.can_process(ParticlesConfig(count=1))
            assert distributor.is_analyzed
        finally:
            distributor.close()
