"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

import numpy as np

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from density_wave import DensityWaveDistributor  # noqa: E402
from galaxy_config import GalaxyConfig, ParticlesConfig  # noqa: E402
from gaussian import GaussianDistributor  # noqa: E402
from image_distributor import PixelBuffer  # noqa: E402


@pytest.fixture
def spiral_galaxy():
    """The reference spiral: 1000 particles on a density-wave distributor."""
    distributor = DensityWaveDistributor(
        seed=42,
        periapsis_distance=0.08,
        apsis_distance=0.01,
        angle_offset=8.0,
    )
    return GalaxyConfig(
        size=100.0,
        height_offset=10.0,
        distributor=distributor,
        particle_configs=[ParticlesConfig(count=1000, seed=42, name='stars')],
    )


@pytest.fixture
def cluster_galaxy():
    """A static Gaussian cluster with two particle sets."""
    return GalaxyConfig(
        size=10.0,
        height_offset=5.0,
        distributor=GaussianDistributor(seed=7, variance=1.0),
        particle_configs=[
            ParticlesConfig(count=200, seed=1, name='stars'),
            ParticlesConfig(count=50, seed=2, name='dust'),
        ],
    )


@pytest.fixture
def uniform_pixels():
    """An 8x8 all-white distribution map."""
    return PixelBuffer.from_grayscale(np.ones((8, 8)))


@pytest.fixture
def half_dark_pixels():
    """An 8x8 map whose left half is black and right half white."""
    values = np.zeros((8, 8))
    values[:, 4:] = 1.0
    return PixelBuffer.from_grayscale(values)
