# presets.py
"""
Named galaxy presets and the builders that turn config dicts into objects.

A galaxy dict (from config.json or a preset) has the shape:

    {
        "size": 100, "height_offset": 10, "animation_speed": 0.5,
        "distributor": {"type": "density-wave", "seed": 42, ...tunables},
        "particles": [{"count": 1000, "seed": 42, ...}, ...]
    }

or {"preset": "<id>", ...overrides}.
"""
import copy
import logging
from typing import Any, Callable, Dict, Optional

from constants import (
    DEFAULT_GALAXY_SIZE, DEFAULT_HEIGHT_OFFSET, DEFAULT_PERIAPSIS_DISTANCE,
    DEFAULT_APSIS_DISTANCE, DEFAULT_CENTER_MASS, DEFAULT_STAR_MASS, DEFAULT_ANGLE_OFFSET,
    DEFAULT_HEIGHT_VARIANCE, DEFAULT_GAUSSIAN_VARIANCE, DEFAULT_MAX_HEIGHT,
    DEFAULT_COLOR_CONTRIBUTION, DEFAULT_DOWNSAMPLE
)
from curves import make_curve
from density_wave import DensityWaveDistributor
from distributor import ParticleDistributor
from errors import InvalidArgument
from galaxy_config import GalaxyConfig, ParticlesConfig
from gaussian import GaussianDistributor
from image_distributor import ImageDistributor, PixelBuffer

ImageLoader = Callable[[str], PixelBuffer]

GALAXY_PRESETS: Dict[str, Dict[str, Any]] = {
    'spiral-galaxy': {
        'description': 'A classic spiral galaxy with density wave structure',
        'size': 100.0,
        'height_offset': 10.0,
        'animation_speed': 0.5,
        'distributor': {
            'type': 'density-wave', 'seed': 42,
            'periapsis_distance': 0.08, 'apsis_distance': 0.01,
            'angle_offset': 8.0, 'height_variance': 1.0,
        },
        'particles': [{
            'name': 'stars', 'count': 100000, 'seed': 42, 'size': 0.1, 'max_screen_size': 0.05,
            'color_gradient': [
                [0.0, [1.0, 0.6, 0.3]], [0.3, [1.0, 0.9, 0.7]],
                [0.6, [0.9, 0.9, 1.0]], [1.0, [0.6, 0.7, 1.0]],
            ],
        }],
    },
    'star-cluster': {
        'description': 'A dense globular cluster using Gaussian distribution',
        'size': 50.0,
        'height_offset': 50.0,
        'animation_speed': 0.0,
        'distributor': {'type': 'gaussian', 'seed': 123, 'variance': 0.8},
        'particles': [{
            'name': 'stars', 'count': 50000, 'seed': 123, 'size': 0.08, 'max_screen_size': 0.03,
            'color_gradient': [
                [0.0, [1.0, 0.9, 0.8]], [0.5, [1.0, 1.0, 0.9]], [1.0, [0.9, 0.95, 1.0]],
            ],
        }],
    },
    'barred-spiral': {
        'description': 'A spiral galaxy with a central bar structure',
        'size': 120.0,
        'height_offset': 8.0,
        'animation_speed': 0.3,
        'distributor': {
            'type': 'density-wave', 'seed': 789,
            'periapsis_distance': 0.15, 'apsis_distance': 0.02,
            'angle_offset': 5.0, 'height_variance': 0.8,
        },
        'particles': [{
            'name': 'stars', 'count': 150000, 'seed': 789, 'size': 0.12, 'max_screen_size': 0.06,
            'color_gradient': [
                [0.0, [1.0, 0.4, 0.1]], [0.4, [1.0, 0.8, 0.5]],
                [0.7, [1.0, 1.0, 0.8]], [1.0, [0.7, 0.8, 1.0]],
            ],
        }],
    },
    'elliptical-galaxy': {
        'description': 'A smooth elliptical galaxy with no spiral structure',
        'size': 80.0,
        'height_offset': 40.0,
        'animation_speed': 0.1,
        'distributor': {'type': 'gaussian', 'seed': 456, 'variance': 1.2},
        'particles': [{
            'name': 'stars', 'count': 80000, 'seed': 456, 'size': 0.1, 'max_screen_size': 0.04,
            'color_gradient': [
                [0.0, [1.0, 0.7, 0.5]], [0.5, [1.0, 0.9, 0.7]], [1.0, [0.9, 0.9, 0.95]],
            ],
        }],
    },
    'dwarf-galaxy': {
        'description': 'A small irregular dwarf galaxy',
        'size': 40.0,
        'height_offset': 20.0,
        'animation_speed': 0.2,
        'distributor': {'type': 'gaussian', 'seed': 999, 'variance': 1.5},
        'particles': [{
            'name': 'stars', 'count': 30000, 'seed': 999, 'size': 0.08, 'max_screen_size': 0.03,
            'color_gradient': [
                [0.0, [0.7, 0.8, 1.0]], [0.5, [0.9, 0.9, 1.0]], [1.0, [1.0, 1.0, 1.0]],
            ],
        }],
    },
}


def get_preset(preset_id: str) -> Dict[str, Any]:
    if preset_id not in GALAXY_PRESETS:
        raise InvalidArgument(f"Unknown galaxy preset '{preset_id}'. Known: {sorted(GALAXY_PRESETS)}")
    return copy.deepcopy(GALAXY_PRESETS[preset_id])


def resolve_galaxy_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Expands {"preset": id, ...overrides} into a full galaxy dict."""
    params = copy.deepcopy(params)
    preset_id = params.pop('preset', None)
    if preset_id is None:
        return params
    resolved = get_preset(preset_id)
    resolved.update(params)
    logging.info(f"Using galaxy preset '{preset_id}'.")
    return resolved


def build_distributor(params: Dict[str, Any], image_loader: Optional[ImageLoader] = None) -> ParticleDistributor:
    kind = params.get('type', 'density-wave')
    seed = params.get('seed')

    if kind == 'density-wave':
        focal_point = params.get('focal_point')
        return DensityWaveDistributor(
            seed=seed,
            periapsis_distance=float(params.get('periapsis_distance', DEFAULT_PERIAPSIS_DISTANCE)),
            apsis_distance=float(params.get('apsis_distance', DEFAULT_APSIS_DISTANCE)),
            center_mass=float(params.get('center_mass', DEFAULT_CENTER_MASS)),
            star_mass=float(params.get('star_mass', DEFAULT_STAR_MASS)),
            focal_point=float(focal_point) if focal_point is not None else None,
            angle_offset=float(params.get('angle_offset', DEFAULT_ANGLE_OFFSET)),
            height_variance=float(params.get('height_variance', DEFAULT_HEIGHT_VARIANCE)),
            height_curve=make_curve(params['height_curve']) if 'height_curve' in params else None,
        )

    if kind == 'gaussian':
        return GaussianDistributor(seed=seed, variance=float(params.get('variance', DEFAULT_GAUSSIAN_VARIANCE)))

    if kind == 'image':
        distributor = ImageDistributor(
            seed=seed,
            max_height=float(params.get('max_height', DEFAULT_MAX_HEIGHT)),
            color_contribution=float(params.get('color_contribution', DEFAULT_COLOR_CONTRIBUTION)),
            downsample=int(params.get('downsample', DEFAULT_DOWNSAMPLE)),
        )
        maps = {key: params[key] for key in ('distribution_map', 'color_map', 'height_map') if key in params}
        if maps and image_loader is None:
            logging.warning(f"No image loader available; ignoring image maps {sorted(maps)}.")
            return distributor
        if 'distribution_map' in maps:
            distributor.set_distribution_map(image_loader(maps['distribution_map']))
        if 'color_map' in maps:
            distributor.set_color_map(image_loader(maps['color_map']))
        if 'height_map' in maps:
            distributor.set_height_map(image_loader(maps['height_map']))
        return distributor

    msg = f"Configuration error: unknown distributor type '{kind}'."
    logging.critical(msg)
    raise InvalidArgument(msg)


def build_galaxy(params: Dict[str, Any], image_loader: Optional[ImageLoader] = None) -> GalaxyConfig:
    """Builds a GalaxyConfig (with its distributor) from a galaxy dict or preset reference."""
    params = resolve_galaxy_params(params)
    galaxy = GalaxyConfig(
        size=float(params.get('size', DEFAULT_GALAXY_SIZE)),
        height_offset=float(params.get('height_offset', DEFAULT_HEIGHT_OFFSET)),
    )
    if 'distributor' in params:
        galaxy.distributor = build_distributor(params['distributor'], image_loader)
    for particles_params in params.get('particles', []):
        galaxy.add(ParticlesConfig.from_dict(particles_params))
    logging.info(
        f"Galaxy built: size={galaxy.size}, height_offset={galaxy.height_offset}, "
        f"{len(galaxy)} particle configuration(s)."
    )
    return galaxy
