"""Tests for the Gaussian cluster distributor."""

import numpy as np
import pytest

from attributes import AttributeEvaluator
from galaxy_config import GalaxyConfig, ParticlesConfig
from gaussian import GaussianDistributor
from simulation import GalaxySimulation


class TestGaussian:
    def test_is_static(self):
        assert not GaussianDistributor(seed=1).is_time_varying

    def test_generates_count_particles(self, cluster_galaxy):
        sim = GalaxySimulation(cluster_galaxy)
        assert sim.total_particle_count() == 250
        for particle_set in sim.particle_sets.values():
            assert np.all(np.isfinite(particle_set.positions))

    def test_update_leaves_static_positions(self, cluster_galaxy):
        sim = GalaxySimulation(cluster_galaxy)
        before = {k: v.positions.copy() for k, v in sim.particle_sets.items()}
        sim.update(5.0)
        for config, particle_set in sim.particle_sets.items():
            assert np.array_equal(before[config], particle_set.positions)

    def test_scaled_by_galaxy_size(self):
        def spread(size):
            galaxy = GalaxyConfig(
                size=size,
                distributor=GaussianDistributor(seed=3),
                particle_configs=[ParticlesConfig(count=100, seed=1)],
            )
            sim = GalaxySimulation(galaxy)
            return next(iter(sim.particle_sets.values())).positions
        assert np.allclose(spread(10.0), spread(1.0) * 10.0)

    @pytest.mark.slow
    def test_moments_match_variance(self):
        galaxy = GalaxyConfig(
            size=1.0,
            distributor=GaussianDistributor(seed=11, variance=1.0),
            particle_configs=[ParticlesConfig(count=100000, seed=1)],
        )
        sim = GalaxySimulation(galaxy)
        positions = next(iter(sim.particle_sets.values())).positions
        assert np.all(np.abs(positions.mean(axis=0)) < 0.02)
        assert np.all(np.abs(positions.std(axis=0) - 1.0) < 0.02)


class TestRefresh:
    """update_set() called directly on an already generated static set."""

    def make_set(self):
        config = ParticlesConfig(count=20, seed=2, size=0.3)
        galaxy = GalaxyConfig(size=10.0, distributor=GaussianDistributor(seed=4), particle_configs=[config])
        sim = GalaxySimulation(galaxy)
        return galaxy, config, sim.get_particles(config)

    def test_refresh_without_attributes_changes_nothing(self):
        galaxy, config, particle_set = self.make_set()
        positions = particle_set.positions.copy()
        sizes = particle_set.sizes.copy()
        galaxy.distributor.update_set(particle_set, galaxy, config, AttributeEvaluator(config), 3.0)
        assert np.array_equal(positions, particle_set.positions)
        assert np.array_equal(sizes, particle_set.sizes)

    def test_refresh_recomputes_attributes_in_place(self):
        galaxy, config, particle_set = self.make_set()
        positions = particle_set.positions.copy()
        particle_set.sizes[:] = 0.0
        galaxy.distributor.update_set(
            particle_set, galaxy, config, AttributeEvaluator(config), 3.0, recompute_attributes=True
        )
        assert np.array_equal(positions, particle_set.positions)
        assert np.allclose(particle_set.sizes, 0.3)
