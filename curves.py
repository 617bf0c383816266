# curves.py
"""
Shaping curves used by the attribute model and the distributors.

A "curve" anywhere in the engine is any callable f(t) -> float. This module
provides the piecewise-linear keyframe curve used for envelopes, the
monotone inverse curve used for cumulative-distribution inversion, helpers
to build integral and inverse curves from arbitrary callables, and
make_curve(), which turns a JSON config value into a callable.
"""
from typing import Any, Callable, Sequence, Tuple

import numpy as np

from constants import DEFAULT_HEIGHT_CURVE
from errors import InvalidArgument

Curve = Callable[[float], float]

# --- Data Contracts ---
#
# class KeyframeCurve:
#   - __init__(self, keyframes: Sequence[Tuple[float, float]]):
#     - Inputs: (time, value) pairs, times strictly increasing.
#     - Invariants: evaluation clamps to the first/last value outside the
#       keyframe range. self.times / self.values are float64 arrays.
#
# class InverseCurve:
#   - __init__(self, values: np.ndarray, outputs: np.ndarray):
#     - Inputs: values non-decreasing, one output per value.
#     - Outputs (__call__): piecewise-linear output for a value, located by
#       binary search. Clamps outside [values[0], values[-1]].
#
# integral_curve(curve, steps) / inverse_curve(curve, samples):
#   - Derived shaping curves. Reached from config through make_curve({"integral": ...})
#     and make_curve({"inverse": ...}); the image distributor builds its
#     InverseCurves directly from the analysed prefix sums.

def one(t: float) -> float:
    return 1.0


def linear(t: float) -> float:
    return t


def inverse_square(t: float) -> float:
    return (1.0 - t) ** 2


class KeyframeCurve:
    """Piecewise-linear curve through sorted keyframes."""

    def __init__(self, keyframes: Sequence[Tuple[float, float]]):
        if len(keyframes) == 0:
            raise InvalidArgument("A keyframe curve needs at least one keyframe.")
        self.times = np.array([k[0] for k in keyframes], dtype=np.float64)
        self.values = np.array([k[1] for k in keyframes], dtype=np.float64)
        if np.any(np.diff(self.times) <= 0):
            raise InvalidArgument(f"Keyframe times must be strictly increasing: {self.times.tolist()}")

    def __call__(self, t: float) -> float:
        return float(np.interp(t, self.times, self.values))

    def __repr__(self):
        return f"KeyframeCurve({list(zip(self.times.tolist(), self.values.tolist()))})"


class InverseCurve:
    """
    Inverts a monotone (non-decreasing) sampled function.

    Given `values[i] = F(outputs[i])`, calling the curve with `u` returns the
    output at which F reaches `u`, interpolating linearly between the two
    keyframes that bracket it.
    """

    def __init__(self, values: np.ndarray, outputs: np.ndarray):
        self.values = np.asarray(values, dtype=np.float64)
        self.outputs = np.asarray(outputs, dtype=np.float64)
        if self.values.shape != self.outputs.shape or self.values.size == 0:
            raise InvalidArgument("InverseCurve needs matching, non-empty value/output arrays.")

    def __call__(self, u: float) -> float:
        values = self.values
        if u <= values[0]:
            return float(self.outputs[0])
        if u >= values[-1]:
            return float(self.outputs[-1])
        # First keyframe strictly above u; its predecessor is <= u, so the
        # bracket never has zero width.
        right = int(np.searchsorted(values, u, side='right'))
        left = right - 1
        factor = (u - values[left]) / (values[right] - values[left])
        return float(self.outputs[left] + (self.outputs[right] - self.outputs[left]) * factor)


def integral_curve(curve: Curve, steps: int) -> KeyframeCurve:
    """
    Running integral of `curve` over [0, 1], normalised so its maximum is 1.
    """
    if steps <= 0:
        raise InvalidArgument(f"steps must be positive, got {steps}")
    step_size = 1.0 / steps
    area = 0.0
    max_area = 0.0
    keyframes = [(0.0, 0.0)]
    for i in range(steps):
        area += curve(step_size * i) * step_size
        max_area = max(max_area, area)
        keyframes.append((step_size * (i + 1), area))
    normalizer = 1.0 / max_area if max_area > 0 else 1.0
    return KeyframeCurve([(t, v * normalizer) for t, v in keyframes])


def inverse_curve(curve: Curve, samples: int = 100) -> InverseCurve:
    """Samples `curve` on [0, 1] and returns its inverse."""
    if samples <= 0:
        raise InvalidArgument(f"samples must be positive, got {samples}")
    ts = np.linspace(0.0, 1.0, samples + 1)
    xs = np.array([curve(t) for t in ts], dtype=np.float64)
    order = np.argsort(xs, kind='stable')
    return InverseCurve(xs[order], ts[order])


NAMED_CURVES = {
    'one': one,
    'linear': linear,
    'inverse_square': inverse_square,
}


def make_curve(value: Any) -> Curve:
    """
    Builds a curve from a configuration value.

    Accepts a callable (returned as is), a number (constant curve), a curve
    name ('one', 'linear', 'inverse_square', 'trapezoid'), a list of
    [time, value] keyframes, or {"integral": <curve>, "steps": n} /
    {"inverse": <curve>, "samples": n} wrapping any of those.
    """
    if callable(value):
        return value
    if isinstance(value, bool):
        raise InvalidArgument(f"Cannot build a curve from boolean {value!r}")
    if isinstance(value, (int, float)):
        return KeyframeCurve([(0.0, float(value))])
    if isinstance(value, str):
        if value == 'trapezoid':
            return KeyframeCurve(DEFAULT_HEIGHT_CURVE)
        if value not in NAMED_CURVES:
            raise InvalidArgument(f"Unknown curve name '{value}'. Known: {sorted(NAMED_CURVES) + ['trapezoid']}")
        return NAMED_CURVES[value]
    if isinstance(value, (list, tuple)):
        return KeyframeCurve([(float(t), float(v)) for t, v in value])
    if isinstance(value, dict):
        if 'integral' in value:
            return integral_curve(make_curve(value['integral']), int(value.get('steps', 100)))
        if 'inverse' in value:
            return inverse_curve(make_curve(value['inverse']), int(value.get('samples', 100)))
    raise InvalidArgument(f"Cannot build a curve from {value!r}")
