# distributor.py
"""
Base class and context for particle distributors.

A distributor is the pluggable strategy that places each particle in space.
The orchestrator builds one ProcessContext per particle and hands it to
ParticleDistributor.process(); the distributor writes the position and
then delegates colour, size and rotation to the context's evaluator.
"""
import abc
from dataclasses import dataclass

from attributes import AttributeEvaluator
from constants import G
from errors import IncompatibleConfiguration
from galaxy_config import GalaxyConfig, ParticlesConfig
from particle import Particle, ParticleSet
from rng import DeterministicRandom, derived_stream

# --- Data Contracts ---
#
# class ProcessContext:
#   - Ephemeral, one per particle per evaluation call. Never stored.
#   - refresh: True when re-evaluating an already generated particle
#     (keeps its orbital phase and other per-particle draws).
#   - recompute_attributes: re-run colour/size/rotation on refresh.
#   - derived_streams: draw from per-index streams instead of the shared one.
#
# class ParticleDistributor:
#   - is_time_varying: bool, fixed at construction. Time-varying distributors
#     are re-run on every update tick.
#   - process(context) -> None: fills context.particle.
#   - can_process(config) -> bool: structural compatibility.
#   - update_set(...) -> None: re-evaluates a whole generated set in place.


@dataclass
class ProcessContext:
    particle: Particle
    galaxy: GalaxyConfig
    particles: ParticlesConfig
    evaluator: AttributeEvaluator
    time: float
    index: int
    refresh: bool = False
    recompute_attributes: bool = False
    derived_streams: bool = False

    @property
    def attributes_due(self) -> bool:
        return not self.refresh or self.recompute_attributes


class ParticleDistributor(abc.ABC):
    """
    The base class for all particle distributors.
    """
    G = G

    def __init__(self, seed: int = None, is_time_varying: bool = False):
        self.random = DeterministicRandom(seed)
        self.seed = self.random.seed
        self.is_time_varying = is_time_varying

    def reset(self) -> None:
        """Rewinds the shared stream so a regeneration repeats the same sequence."""
        self.random.reinitialise(self.seed)

    def random_for(self, context: ProcessContext) -> DeterministicRandom:
        if context.derived_streams:
            return derived_stream(self.seed, context.index)
        return self.random

    @abc.abstractmethod
    def process(self, context: ProcessContext) -> None:
        """Places one particle. Called once per particle, in ascending index order."""

    def can_process(self, particles: ParticlesConfig) -> bool:
        return True

    def require(self, particles: ParticlesConfig) -> None:
        if not self.can_process(particles):
            raise IncompatibleConfiguration(
                f"{type(self).__name__} cannot process particle configuration '{particles.name}'."
            )

    def process_properties(self, context: ProcessContext, pos, angle: float) -> None:
        """Evaluates colour, size and rotation for a particle placed at `pos`."""
        if context.attributes_due:
            context.evaluator.apply(context.particle, pos, angle, context.galaxy.size)

    def update_set(
        self,
        particle_set: ParticleSet,
        galaxy: GalaxyConfig,
        particles: ParticlesConfig,
        evaluator: AttributeEvaluator,
        time: float,
        recompute_attributes: bool = False,
        derived_streams: bool = False,
    ) -> None:
        """Re-runs process() for every particle of an already generated set."""
        for particle in particle_set:
            context = ProcessContext(
                particle=particle,
                galaxy=galaxy,
                particles=particles,
                evaluator=evaluator.for_index(particle.index) if derived_streams else evaluator,
                time=time,
                index=particle.index,
                refresh=True,
                recompute_attributes=recompute_attributes,
                derived_streams=derived_streams,
            )
            self.process(context)
