# simulation.py
"""
Drives particle generation and per-frame re-evaluation for a galaxy.

This module defines the GalaxySimulation class, which owns the galaxy
configuration and one ParticleSet per particle configuration. It performs
the initial generation pass through the galaxy's distributor and, on every
update tick, advances the animation clock and re-runs time-varying
distributors over the already allocated particles, in place.
"""
import enum
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

import numpy as np

from attributes import AttributeEvaluator
from constants import DEFAULT_ANIMATION_SPEED
from distributor import ProcessContext
from errors import IncompatibleConfiguration
from galaxy_config import GalaxyConfig, ParticlesConfig
from particle import ParticleSet

# --- Data Contracts ---
#
# class GalaxySimulation:
#   - __init__(self, config: GalaxyConfig, animation_speed: float = 1.0,
#              auto_generate: bool = True, recompute_attributes: bool = False,
#              derived_streams: bool = False):
#     - Inputs:
#       - config: the galaxy to generate. Owned by the simulation from now on.
#       - recompute_attributes: also refresh colour/size/rotation on update.
#       - derived_streams: one random stream per particle index, which makes
#         generation order-independent and allows generate(workers > 1).
#
#   - generate(self, workers: int = 1) -> None:
#     - Side Effects: clears, then fills one ParticleSet of exactly `count`
#       particles per active, compatible ParticlesConfig. Incompatible
#       configs are logged and skipped; they never abort the run.
#
#   - update(self, delta_time: float) -> None:
#     - Side Effects: time += delta_time * animation_speed. Time-varying
#       distributors re-evaluate every particle in place; static ones are
#       left untouched.
#     - Invariants: particle counts and indices never change.
#
#   - clear(self) -> None / set_config(self, config, regenerate=True) -> None


class SimulationState(enum.Enum):
    EMPTY = 'empty'
    GENERATED = 'generated'
    UPDATED = 'updated'
    CLEARED = 'cleared'


class GalaxySimulation:
    """
    Orchestrates generation and animation of all particle sets of a galaxy.
    """
    def __init__(
        self,
        config: GalaxyConfig,
        animation_speed: float = DEFAULT_ANIMATION_SPEED,
        auto_generate: bool = True,
        recompute_attributes: bool = False,
        derived_streams: bool = False,
    ):
        self._config = config
        self.animation_speed = animation_speed
        self.recompute_attributes = recompute_attributes
        self.derived_streams = derived_streams
        self.time = 0.0
        self.state = SimulationState.EMPTY

        self._sets: Dict[ParticlesConfig, ParticleSet] = {}
        self._evaluators: Dict[ParticlesConfig, AttributeEvaluator] = {}
        # Held across clear() + generate() so no caller sees a half-torn-down set.
        self._lock = threading.RLock()

        logging.info(
            f"GalaxySimulation initialized: size={config.size}, "
            f"{len(config)} particle configuration(s), "
            f"distributor={type(config.distributor).__name__ if config.distributor else None}."
        )
        if auto_generate:
            self.generate()

    @property
    def config(self) -> GalaxyConfig:
        return self._config

    @property
    def particle_sets(self) -> Dict[ParticlesConfig, ParticleSet]:
        return dict(self._sets)

    def get_particles(self, particles_config: ParticlesConfig) -> Optional[ParticleSet]:
        return self._sets.get(particles_config)

    def generate(self, workers: int = 1) -> None:
        """
        Regenerates every active particle configuration from scratch.
        """
        with self._lock:
            self.clear()
            distributor = self._config.distributor
            if distributor is None:
                logging.warning("No distributor set for galaxy; nothing generated.")
                return

            start = time.perf_counter()
            distributor.reset()
            for particles_config in self._config.particle_configs:
                if not particles_config.active:
                    logging.debug(f"Skipping inactive particle configuration '{particles_config.name}'.")
                    continue
                try:
                    distributor.require(particles_config)
                except IncompatibleConfiguration as e:
                    logging.warning(f"{e} Skipping it.")
                    continue
                self._generate_for(particles_config, workers)

            self.state = SimulationState.GENERATED
            logging.info(
                f"Generated {self.total_particle_count()} particles in "
                f"{len(self._sets)} set(s) ({time.perf_counter() - start:.3f}s)."
            )

    def _generate_for(self, particles_config: ParticlesConfig, workers: int) -> None:
        particle_set = ParticleSet(particles_config.count)
        evaluator = AttributeEvaluator(particles_config)
        count = particles_config.count

        if workers > 1 and not self.derived_streams:
            logging.warning(
                "Parallel generation needs derived per-index streams; "
                "generating sequentially instead."
            )
            workers = 1

        if workers > 1 and count > 0:
            bounds = np.linspace(0, count, workers + 1).astype(int)
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = [
                    pool.submit(self._process_range, particle_set, particles_config, evaluator, lo, hi)
                    for lo, hi in zip(bounds[:-1], bounds[1:])
                ]
                for future in futures:
                    future.result()
        else:
            self._process_range(particle_set, particles_config, evaluator, 0, count)

        self._sets[particles_config] = particle_set
        self._evaluators[particles_config] = evaluator
        logging.debug(f"Particle set '{particles_config.name}' generated with {count} particles.")

    def _process_range(self, particle_set: ParticleSet, particles_config: ParticlesConfig,
                       evaluator: AttributeEvaluator, lo: int, hi: int) -> None:
        distributor = self._config.distributor
        for i in range(lo, hi):
            context = ProcessContext(
                particle=particle_set[i],
                galaxy=self._config,
                particles=particles_config,
                evaluator=evaluator.for_index(i) if self.derived_streams else evaluator,
                time=self.time,
                index=i,
                recompute_attributes=self.recompute_attributes,
                derived_streams=self.derived_streams,
            )
            distributor.process(context)

    def update(self, delta_time: float) -> None:
        """
        Advances the animation clock and refreshes time-varying particle sets.
        """
        with self._lock:
            self.time += delta_time * self.animation_speed
            distributor = self._config.distributor
            if distributor is None or not distributor.is_time_varying:
                return
            for particles_config, particle_set in self._sets.items():
                distributor.update_set(
                    particle_set,
                    self._config,
                    particles_config,
                    self._evaluators[particles_config],
                    self.time,
                    recompute_attributes=self.recompute_attributes,
                    derived_streams=self.derived_streams,
                )
            if self._sets:
                self.state = SimulationState.UPDATED

    def clear(self) -> None:
        """Drops all particle sets, releasing anything attached to them."""
        with self._lock:
            if not self._sets:
                return
            for particle_set in self._sets.values():
                particle_set.clear()
            self._sets.clear()
            self._evaluators.clear()
            self.state = SimulationState.CLEARED
            logging.info("All particle sets cleared.")

    def set_config(self, config: GalaxyConfig, regenerate: bool = True) -> None:
        with self._lock:
            self._config = config
            logging.info("Galaxy configuration replaced.")
            if regenerate:
                self.generate()

    def total_particle_count(self) -> int:
        return sum(len(s) for s in self._sets.values())

    def arrays(self) -> Dict[str, Dict[str, np.ndarray]]:
        """Live output arrays of every set, keyed by particle configuration name."""
        result = {}
        for config, particle_set in self._sets.items():
            key = config.name
            if key in result:
                key = f"{key}_{len(result)}"
            result[key] = particle_set.arrays()
        return result

    def dispose(self) -> None:
        self.clear()
        close = getattr(self._config.distributor, 'close', None)
        if close is not None:
            close()
