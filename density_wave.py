# density_wave.py
"""
Density-wave (spiral) distributor.

Every particle follows its own Keplerian ellipse around the galactic centre.
The ellipses grow with the particle's index and their major axes are swept
through `angle_offset` radians across the set, so the crowding of orbits
reads as rotating spiral arms. Positions depend on time, so the distributor
is time-varying and is re-run on every animation tick.
"""
import logging
import math
from typing import Optional

import numpy as np
from numba import jit

from constants import (
    G, TWO_PI, DEFAULT_PERIAPSIS_DISTANCE, DEFAULT_APSIS_DISTANCE,
    DEFAULT_CENTER_MASS, DEFAULT_STAR_MASS, DEFAULT_ANGLE_OFFSET,
    DEFAULT_HEIGHT_VARIANCE, DEFAULT_HEIGHT_CURVE
)
from curves import Curve, KeyframeCurve
from distributor import ParticleDistributor, ProcessContext

# --- Data Contracts ---
#
# class DensityWaveDistributor(ParticleDistributor):
#   - __init__(self, seed: Optional[int] = None, **tunables)
#     - Invariants: is_time_varying is True.
#   - process(context) -> None:
#     - On first evaluation draws, in order: focal sign (unless fixed),
#       starting time in [0, 2*pi), Gaussian elevation.
#     - On refresh reuses those draws, so the particle stays on its orbit.
#   - orbital_period(index, count, galaxy_size) -> float
#     - Invariants: advancing time by this value returns the particle to the
#       same position.


@jit(nopython=True)
def _orbit_point_numba(index, count, size, periapsis, apsis, angle_offset, gp, focal, starting_time, time):
    """Returns (x, z, distance, angle) of one particle on its spiral-rotated ellipse."""
    star_index = (index / count) * size
    a = periapsis + star_index
    b = apsis + star_index

    min_axis = min(a, b)
    max_axis = max(a, b)
    e = 0.0
    if max_axis > 0.0:
        e = math.sqrt(1.0 - (min_axis * min_axis) / (max_axis * max_axis))

    # Kepler's third law
    period = 2.0 * math.pi * math.sqrt((a * a * a) / gp)

    center_x = (a * e) * focal
    angle = (angle_offset / count) * index

    theta = 0.0
    if period > 0.0:
        theta = ((time + starting_time) / period) * 2.0 * math.pi
    x = a * math.cos(theta) + center_x
    z = b * math.sin(theta)

    cos_b = math.cos(angle)
    sin_b = math.sin(angle)
    pos_x = ((x * cos_b) + (z * sin_b)) * size
    pos_z = ((x * sin_b) - (z * cos_b)) * size
    distance = math.sqrt(pos_x * pos_x + pos_z * pos_z)
    return pos_x, pos_z, distance, angle


@jit(nopython=True)
def _orbit_positions_numba(
    positions, indices, count, size, height_offset, periapsis, apsis, angle_offset, gp,
    focal_points, starting_times, elevations, curve_times, curve_values, time
):
    """
    Numba-jitted per-frame update: moves every particle along its orbit.
    """
    for n in range(indices.shape[0]):
        pos_x, pos_z, distance, _ = _orbit_point_numba(
            indices[n], count, size, periapsis, apsis, angle_offset, gp,
            focal_points[n], starting_times[n], time
        )
        radial = distance / size if size > 0.0 else 0.0
        envelope = np.interp(radial, curve_times, curve_values)
        positions[n, 0] = pos_x
        positions[n, 1] = elevations[n] * height_offset * envelope
        positions[n, 2] = pos_z


class DensityWaveDistributor(ParticleDistributor):
    """
    Spiral galaxy structure from density-wave theory and Kepler's laws.
    """
    def __init__(
        self,
        seed: Optional[int] = None,
        periapsis_distance: float = DEFAULT_PERIAPSIS_DISTANCE,
        apsis_distance: float = DEFAULT_APSIS_DISTANCE,
        center_mass: float = DEFAULT_CENTER_MASS,
        star_mass: float = DEFAULT_STAR_MASS,
        focal_point: Optional[float] = None,
        angle_offset: float = DEFAULT_ANGLE_OFFSET,
        height_variance: float = DEFAULT_HEIGHT_VARIANCE,
        height_curve: Curve = None,
    ):
        super().__init__(seed, is_time_varying=True)
        self.periapsis_distance = periapsis_distance
        self.apsis_distance = apsis_distance
        self.center_mass = center_mass
        self.star_mass = star_mass
        # None picks +1 or -1 at random per particle.
        self.focal_point = focal_point
        self.angle_offset = angle_offset
        self.height_variance = height_variance
        self.height_curve = height_curve if height_curve is not None else KeyframeCurve(DEFAULT_HEIGHT_CURVE)

    @property
    def gravitational_parameter(self) -> float:
        return G * (self.center_mass + self.star_mass)

    def orbital_period(self, index: int, count: int, galaxy_size: float) -> float:
        a = self.periapsis_distance + (index / count) * galaxy_size
        return TWO_PI * math.sqrt((a ** 3) / self.gravitational_parameter)

    def process(self, context: ProcessContext) -> None:
        particle = context.particle
        galaxy = context.galaxy
        count = context.particles.count

        if not context.refresh:
            random = self.random_for(context)
            if self.focal_point is None:
                particle.focal_point = -1.0 if random.next_double() > 0.5 else 1.0
            else:
                particle.focal_point = self.focal_point
            particle.starting_time = random.next_double() * TWO_PI
            particle.elevation = random.next_gaussian(self.height_variance)

        pos_x, pos_z, distance, angle = _orbit_point_numba(
            context.index, count, galaxy.size, self.periapsis_distance, self.apsis_distance,
            self.angle_offset, self.gravitational_parameter,
            particle.focal_point, particle.starting_time, context.time
        )
        radial = distance / galaxy.size if galaxy.size else 0.0
        pos_y = particle.elevation * galaxy.height_offset * self.height_curve(radial)

        pos = (pos_x, pos_y, pos_z)
        particle.position = pos
        self.process_properties(context, pos, angle)

    def update_set(self, particle_set, galaxy, particles, evaluator, time,
                   recompute_attributes=False, derived_streams=False):
        if recompute_attributes or not isinstance(self.height_curve, KeyframeCurve):
            super().update_set(particle_set, galaxy, particles, evaluator, time,
                               recompute_attributes, derived_streams)
            return
        if len(particle_set) == 0:
            return
        _orbit_positions_numba(
            particle_set.positions, particle_set.indices, particles.count,
            float(galaxy.size), float(galaxy.height_offset),
            float(self.periapsis_distance), float(self.apsis_distance), float(self.angle_offset),
            float(self.gravitational_parameter),
            particle_set.focal_points, particle_set.starting_times, particle_set.elevations,
            self.height_curve.times, self.height_curve.values, float(time)
        )
        logging.debug(f"Density wave kernel moved {len(particle_set)} particles to t={time:.3f}.")
