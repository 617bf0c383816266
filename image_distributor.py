# image_distributor.py
"""
Image-driven distributor.

Uses a grayscale "distribution map" as a 2D probability density: brighter
pixels receive more particles. When the map is set, it is analysed once
into a marginal cumulative curve over columns and one conditional
cumulative curve per column; sampling a particle then takes two uniform
draws and inverts those curves. Optional colour and height maps are read
with bilinear filtering at the sampled location. The distributor is static:
positions do not depend on time.
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional, Tuple, Union

import numpy as np

from constants import (
    DEFAULT_MAX_HEIGHT, DEFAULT_COLOR_CONTRIBUTION, DEFAULT_DOWNSAMPLE, GRAYSCALE_WEIGHTS
)
from curves import InverseCurve
from distributor import ParticleDistributor, ProcessContext
from errors import InvalidArgument, MissingResource
from galaxy_config import ParticlesConfig

# --- Data Contracts ---
#
# class PixelBuffer:
#   - __init__(self, width: int, height: int, data):
#     - Inputs:
#       - data: row-major RGBA bytes (len == width * height * 4) or an array
#         of shape (height, width, 4) / (height, width, 3), values 0-255.
#     - Invariants: self.data is uint8 of shape (height, width, 4).
#     - Raises InvalidArgument on a size mismatch or an empty image.
#   - sample(u, v) -> np.ndarray (..., 3): bilinear RGB in [0, 1]; u, v are
#     clamped to [0, 1] and may be scalars or arrays.
#
# class ImageDistributor(ParticleDistributor):
#   - set_distribution_map(pixels, background=False) -> Optional[Future]
#     - Side Effects: stores the map and analyses it (now, or on a worker
#       thread when background=True; the returned Future completes when the
#       analysis is done).
#   - process(context) -> None:
#     - No map: safe no-op. Analysis still running: waits for it.
#     - refresh=True only does work with recompute_attributes; the
#       orchestrator never refreshes a static distributor, so this path
#       serves direct update_set() callers.
#   - can_process(config) -> bool: False until a map with non-zero mass is set.
#     Waits for a pending background analysis before answering.


class PixelBuffer:
    """
    An RGBA image held in memory, as delivered by an external image loader.
    """
    def __init__(self, width: int, height: int, data: Union[bytes, bytearray, np.ndarray]):
        if width <= 0 or height <= 0:
            raise InvalidArgument(f"Image dimensions must be positive, got {width}x{height}.")
        if isinstance(data, (bytes, bytearray)):
            array = np.frombuffer(bytes(data), dtype=np.uint8)
        else:
            array = np.asarray(data)
        if array.ndim == 1:
            if array.size != width * height * 4:
                raise InvalidArgument(
                    f"Expected {width * height * 4} RGBA bytes for {width}x{height}, got {array.size}."
                )
            array = array.reshape(height, width, 4)
        elif array.shape[:2] != (height, width) or array.shape[2] not in (3, 4):
            raise InvalidArgument(f"Pixel array shape {array.shape} does not match {width}x{height}.")
        if array.shape[2] == 3:
            alpha = np.full((height, width, 1), 255, dtype=np.uint8)
            array = np.concatenate([array.astype(np.uint8), alpha], axis=2)
        self.width = width
        self.height = height
        self.data = array.astype(np.uint8)
        self._rgb = self.data[:, :, :3].astype(np.float64) / 255.0

    @classmethod
    def from_grayscale(cls, values: np.ndarray) -> "PixelBuffer":
        """Builds an opaque gray image from a (height, width) array of values in [0, 1]."""
        values = np.asarray(values, dtype=np.float64)
        gray = np.clip(np.round(values * 255.0), 0, 255).astype(np.uint8)
        height, width = gray.shape
        rgba = np.stack([gray, gray, gray, np.full_like(gray, 255)], axis=2)
        return cls(width, height, rgba)

    def sample(self, u, v) -> np.ndarray:
        """Bilinear RGB lookup at normalised coordinates."""
        u = np.clip(np.asarray(u, dtype=np.float64), 0.0, 1.0)
        v = np.clip(np.asarray(v, dtype=np.float64), 0.0, 1.0)
        x = u * (self.width - 1)
        y = v * (self.height - 1)
        x0 = np.floor(x).astype(np.int64)
        y0 = np.floor(y).astype(np.int64)
        x1 = np.minimum(x0 + 1, self.width - 1)
        y1 = np.minimum(y0 + 1, self.height - 1)
        fx = (x - x0)[..., np.newaxis]
        fy = (y - y0)[..., np.newaxis]

        rgb = self._rgb
        top = rgb[y0, x0] * (1.0 - fx) + rgb[y0, x1] * fx
        bottom = rgb[y1, x0] * (1.0 - fx) + rgb[y1, x1] * fx
        return top * (1.0 - fy) + bottom * fy

    def sample_grayscale(self, u, v):
        return grayscale(self.sample(u, v))


def grayscale(rgb: np.ndarray):
    return rgb @ np.asarray(GRAYSCALE_WEIGHTS)


class ImageDistributor(ParticleDistributor):
    """
    Distributes particles according to the brightness of an image.
    """
    def __init__(
        self,
        seed: Optional[int] = None,
        max_height: float = DEFAULT_MAX_HEIGHT,
        color_contribution: float = DEFAULT_COLOR_CONTRIBUTION,
        downsample: int = DEFAULT_DOWNSAMPLE,
    ):
        super().__init__(seed, is_time_varying=False)
        self.max_height = max_height
        self.color_contribution = color_contribution
        self.downsample = downsample

        self.distribution_map: Optional[PixelBuffer] = None
        self.color_map: Optional[PixelBuffer] = None
        self.height_map: Optional[PixelBuffer] = None

        self._cx: Optional[InverseCurve] = None
        self._cy: List[InverseCurve] = []
        self._grid: Tuple[int, int] = (0, 0)
        self._has_mass = False
        self._ready = threading.Event()
        self._analysis_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    def set_distribution_map(self, pixels: PixelBuffer, background: bool = False) -> Optional[Future]:
        self._ready.clear()
        self.distribution_map = pixels
        if background:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='image-analysis')
            logging.info("Distribution map analysis scheduled in the background.")
            return self._executor.submit(self.analyze_image)
        self.analyze_image()
        return None

    def set_color_map(self, pixels: Optional[PixelBuffer]) -> None:
        self.color_map = pixels

    def set_height_map(self, pixels: Optional[PixelBuffer]) -> None:
        self.height_map = pixels

    @property
    def is_analyzed(self) -> bool:
        return self._ready.is_set()

    def analyze_image(self) -> None:
        """
        Builds the cumulative curves used to sample the distribution map.
        """
        with self._analysis_lock:
            start = time.perf_counter()
            pixels = self.distribution_map
            if pixels is None:
                self._cx = None
                self._cy = []
                self._grid = (0, 0)
                self._has_mass = False
                self._ready.set()
                return

            step = max(int(self.downsample), 1)
            width = max(pixels.width // step, 1)
            height = max(pixels.height // step, 1)

            # samples[x, y]: grayscale density on the (possibly downsampled) grid
            u, v = np.meshgrid(np.arange(width) / width, np.arange(height) / height, indexing='ij')
            samples = pixels.sample_grayscale(u, v)

            column_cdf = np.cumsum(samples, axis=1)
            column_mass = column_cdf[:, -1]
            marginal_cdf = np.cumsum(column_mass)
            total = marginal_cdf[-1]

            self._grid = (width, height)
            self._has_mass = bool(total > 0.0)
            if not self._has_mass:
                logging.warning("Distribution map has no brightness; nothing can be sampled from it.")
                self._cx = None
                self._cy = []
                self._ready.set()
                return

            outputs_x = np.arange(width + 1, dtype=np.float64)
            outputs_y = np.arange(height + 1, dtype=np.float64)
            self._cx = InverseCurve(np.concatenate([[0.0], marginal_cdf / total]), outputs_x)
            curves = []
            for x in range(width):
                mass = column_mass[x]
                if mass > 0.0:
                    values = np.concatenate([[0.0], column_cdf[x] / mass])
                else:
                    # Never selected by the marginal curve; uniform keeps it well defined.
                    values = np.linspace(0.0, 1.0, height + 1)
                curves.append(InverseCurve(values, outputs_y))
            self._cy = curves
            self._ready.set()

            logging.info(
                f"Distribution map analysed: {pixels.width}x{pixels.height} image, "
                f"{width}x{height} sampling grid."
            )
            logging.debug(f"Image analysis took {time.perf_counter() - start:.4f}s.")

    def can_process(self, particles: ParticlesConfig) -> bool:
        if self.distribution_map is None:
            return False
        # A pending background analysis decides whether the map has any mass.
        self._ready.wait()
        return self._has_mass

    def require_map(self) -> PixelBuffer:
        if self.distribution_map is None:
            raise MissingResource("No distribution map set on ImageDistributor.")
        return self.distribution_map

    def sample_cell(self, u1: float, u2: float) -> Tuple[int, int]:
        """Maps two uniform draws to a (column, row) cell of the sampling grid."""
        width, height = self._grid
        x = min(int(self._cx(u1)), width - 1)
        y = min(int(self._cy[x](u2)), height - 1)
        return x, y

    def process(self, context: ProcessContext) -> None:
        try:
            self.require_map()
        except MissingResource as e:
            logging.debug(f"{e} Particle {context.index} left unplaced.")
            return
        # Queue behind a background analysis rather than racing it.
        self._ready.wait()
        if not self._has_mass:
            return
        if context.refresh:
            if context.recompute_attributes:
                self._reprocess_properties(context)
            return

        random = self.random_for(context)
        size = context.galaxy.size
        width, height = self._grid

        x, y = self.sample_cell(random.next_double(), random.next_double())
        x_pos = x / width
        y_pos = y / height

        # Jitter within the cell, then scale [-0.5, 0.5) to the galaxy extent.
        pos_x = (-0.5 + x_pos + random.next_double() / width) * size * 2.0
        pos_z = (-0.5 + y_pos + random.next_double() / height) * size * 2.0
        pos_y = random.next_gaussian(1.0) * self.max_height
        if self.height_map is not None:
            pos_y *= float(self.height_map.sample_grayscale(x_pos, y_pos))

        pos = (pos_x, pos_y, pos_z)
        self.process_properties(context, pos, 0.0)
        self._blend_color_map(context, x_pos, y_pos)
        context.particle.position = pos

    def _reprocess_properties(self, context: ProcessContext) -> None:
        pos = tuple(context.particle.position)
        self.process_properties(context, pos, 0.0)
        size = context.galaxy.size
        if size:
            self._blend_color_map(context, pos[0] / (2.0 * size) + 0.5, pos[2] / (2.0 * size) + 0.5)

    def _blend_color_map(self, context: ProcessContext, u: float, v: float) -> None:
        if self.color_map is None:
            return
        map_color = self.color_map.sample(u, v)
        t = self.color_contribution
        context.particle.color = context.particle.color * (1.0 - t) + map_color * t

    def close(self) -> None:
        """Stops the background analysis worker, if one was started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
