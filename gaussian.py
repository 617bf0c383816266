# gaussian.py
"""
Gaussian cluster distributor.

Places each particle at three independent normally distributed offsets from
the origin, scaled by the galaxy size, producing a globular star cluster or
an elliptical galaxy. Positions do not depend on time.
"""
from typing import Optional

from constants import DEFAULT_GAUSSIAN_VARIANCE
from distributor import ParticleDistributor, ProcessContext

# --- Data Contracts ---
#
# class GaussianDistributor(ParticleDistributor):
#   - is_time_varying is False.
#   - process(context) -> None:
#     - Draws three Gaussians (x, y, z order), each times galaxy.size.
#     - refresh=True keeps the position; with recompute_attributes it only
#       re-evaluates colour, size and rotation. The orchestrator never
#       refreshes a static distributor, so this path serves direct
#       update_set() callers.


class GaussianDistributor(ParticleDistributor):
    """
    Star cluster from a 3D Gaussian distribution.
    """
    def __init__(self, seed: Optional[int] = None, variance: float = DEFAULT_GAUSSIAN_VARIANCE):
        super().__init__(seed, is_time_varying=False)
        self.variance = variance

    def process(self, context: ProcessContext) -> None:
        if context.refresh and not context.recompute_attributes:
            return
        size = context.galaxy.size
        if context.refresh:
            pos = tuple(context.particle.position)
        else:
            random = self.random_for(context)
            pos = (
                random.next_gaussian(self.variance) * size,
                random.next_gaussian(self.variance) * size,
                random.next_gaussian(self.variance) * size,
            )
        self.process_properties(context, pos, 0.0)
        context.particle.position = pos
