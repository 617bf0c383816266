# particle.py
"""
Manages the state of all particles generated for one particle configuration.

This module defines the ParticleSet class, which stores particle data
(position, colour, size, rotation and orbital bookkeeping) in parallel NumPy
arrays, and the Particle record, a lightweight view of one index in a set.
Distributors write through Particle views, so the arrays a renderer reads
are always the live state; nothing needs to be copied after an update.
"""
import logging
from typing import Callable, Dict, Iterator, List, Sequence

import numpy as np

# --- Data Contracts ---
#
# class ParticleSet:
#   - __init__(self, count: int):
#     - Inputs:
#       - count: number of particles, >= 0.
#     - Side Effects: Allocates the parallel arrays below.
#     - Invariants:
#       - self.positions is a NumPy array of shape (N, 3) of dtype float64.
#       - self.colors is a NumPy array of shape (N, 3) of dtype float64
#         (pre-multiplied by alpha).
#       - self.sizes, self.rotations, self.focal_points, self.starting_times,
#         self.sheet_positions, self.elevations are shape (N,) float64.
#       - self.indices is arange(N) (int64) and never changes.
#
#   - clear(self) -> None:
#     - Side Effects: Runs every release hook once, then drops all arrays
#       (the set becomes empty).
#
# class Particle:
#   - A view of index `index` of a ParticleSet. Reading returns copies,
#     assigning writes into the set's arrays.


class ParticleSet:
    """
    A container for one configuration's particles, stored as NumPy arrays.
    """
    def __init__(self, count: int):
        self._allocate(count)
        self._release_hooks: List[Callable[[], None]] = []
        logging.debug(
            f"ParticleSet allocated for {count} particles. "
            f"Positions shape: {self.positions.shape}, "
            f"Colors shape: {self.colors.shape}"
        )

    def _allocate(self, count: int) -> None:
        self.positions = np.zeros((count, 3), dtype=np.float64)
        self.colors = np.ones((count, 3), dtype=np.float64)
        self.sizes = np.ones(count, dtype=np.float64)
        self.rotations = np.zeros(count, dtype=np.float64)
        self.focal_points = np.zeros(count, dtype=np.float64)
        self.starting_times = np.zeros(count, dtype=np.float64)
        self.sheet_positions = np.zeros(count, dtype=np.float64)
        # Raw Gaussian height draw, before the galaxy height envelope is applied.
        self.elevations = np.zeros(count, dtype=np.float64)
        self.indices = np.arange(count, dtype=np.int64)

    def __len__(self) -> int:
        return self.indices.shape[0]

    def __getitem__(self, index: int) -> "Particle":
        if not 0 <= index < len(self):
            raise IndexError(f"Particle index {index} out of range for set of {len(self)}.")
        return Particle(self, index)

    def __iter__(self) -> Iterator["Particle"]:
        for i in range(len(self)):
            yield Particle(self, i)

    def add_release_hook(self, hook: Callable[[], None]) -> None:
        """Registers a callback (e.g. freeing a GPU buffer) to run on clear()."""
        self._release_hooks.append(hook)

    def arrays(self) -> Dict[str, np.ndarray]:
        """The live attribute arrays, keyed by name, in index order."""
        return {
            'position': self.positions,
            'color': self.colors,
            'size': self.sizes,
            'rotation': self.rotations,
            'sheet_position': self.sheet_positions,
            'focal_point': self.focal_points,
            'starting_time': self.starting_times,
            'index': self.indices,
        }

    def clear(self) -> None:
        hooks, self._release_hooks = self._release_hooks, []
        for hook in hooks:
            hook()
        self._allocate(0)


class Particle:
    """
    One particle of a ParticleSet.
    """
    __slots__ = ('_set', 'index')

    def __init__(self, particle_set: ParticleSet, index: int):
        self._set = particle_set
        self.index = index

    @property
    def position(self) -> np.ndarray:
        return self._set.positions[self.index].copy()

    @position.setter
    def position(self, value: Sequence[float]) -> None:
        self._set.positions[self.index] = value

    @property
    def color(self) -> np.ndarray:
        return self._set.colors[self.index].copy()

    @color.setter
    def color(self, value: Sequence[float]) -> None:
        self._set.colors[self.index] = value

    @property
    def size(self) -> float:
        return float(self._set.sizes[self.index])

    @size.setter
    def size(self, value: float) -> None:
        self._set.sizes[self.index] = value

    @property
    def rotation(self) -> float:
        return float(self._set.rotations[self.index])

    @rotation.setter
    def rotation(self, value: float) -> None:
        self._set.rotations[self.index] = value

    @property
    def focal_point(self) -> float:
        return float(self._set.focal_points[self.index])

    @focal_point.setter
    def focal_point(self, value: float) -> None:
        self._set.focal_points[self.index] = value

    @property
    def starting_time(self) -> float:
        return float(self._set.starting_times[self.index])

    @starting_time.setter
    def starting_time(self, value: float) -> None:
        self._set.starting_times[self.index] = value

    @property
    def sheet_position(self) -> float:
        return float(self._set.sheet_positions[self.index])

    @sheet_position.setter
    def sheet_position(self, value: float) -> None:
        self._set.sheet_positions[self.index] = value

    @property
    def elevation(self) -> float:
        return float(self._set.elevations[self.index])

    @elevation.setter
    def elevation(self, value: float) -> None:
        self._set.elevations[self.index] = value

    def __repr__(self):
        return (
            f"Particle(index={self.index}, position={self.position.tolist()}, "
            f"size={self.size:.4f}, rotation={self.rotation:.4f})"
        )
