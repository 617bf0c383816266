# noise.py
"""
Simplex noise field (1D, 2D and 3D).

Implements Stefan Gustavson's SimplexNoise1234 over a 512-entry permutation
table. The table is a shuffle of 0..255 drawn from an unseeded NumPy
generator, duplicated so that lookups never need to wrap. It is built once,
on first use, and is read-only afterwards; it is NOT reproducible across
runs. The evaluation kernels themselves are Numba-jitted and hold no state,
so they are safe to call from many threads at once.
"""
import logging
import math
import threading
from typing import Optional

import numpy as np
from numba import jit

from constants import NOISE_TABLE_SIZE

# --- Data Contracts ---
#
# permutation_table() -> np.ndarray:
#   - Outputs: uint8 array of shape (512,). perm[i] == perm[i + 256].
#   - Side Effects: builds the table on the first call (thread-safe).
#
# simplex1(x) / simplex2(x, y) / simplex3(x, y, z) -> float:
#   - Outputs: smooth noise value, approximately in [-1, 1].
#   - Invariants: pure function of its arguments for the lifetime of the
#     process.

_PERM: Optional[np.ndarray] = None
_PERM_LOCK = threading.Lock()

F2 = 0.5 * (math.sqrt(3.0) - 1.0)
G2 = (3.0 - math.sqrt(3.0)) / 6.0
F3 = 1.0 / 3.0
G3 = 1.0 / 6.0


def permutation_table() -> np.ndarray:
    """Returns the shared permutation table, building it on first use."""
    global _PERM
    if _PERM is None:
        with _PERM_LOCK:
            if _PERM is None:
                p = np.random.default_rng().permutation(NOISE_TABLE_SIZE).astype(np.uint8)
                _PERM = np.concatenate([p, p])
                logging.debug("Simplex noise permutation table initialized.")
    return _PERM


@jit(nopython=True)
def _grad1(hash_value, x):
    h = hash_value & 15
    grad = 1.0 + (h & 7)
    if h & 8:
        return -grad * x
    return grad * x


@jit(nopython=True)
def _grad2(hash_value, x, y):
    h = hash_value & 7
    u = x if h < 4 else y
    v = y if h < 4 else x
    a = -u if h & 1 else u
    b = -2.0 * v if h & 2 else 2.0 * v
    return a + b


@jit(nopython=True)
def _grad3(hash_value, x, y, z):
    h = hash_value & 15
    u = x if h < 8 else y
    if h < 4:
        v = y
    elif h == 12 or h == 14:
        v = x
    else:
        v = z
    a = -u if h & 1 else u
    b = -v if h & 2 else v
    return a + b


@jit(nopython=True)
def _simplex1_numba(perm, x):
    i0 = int(math.floor(x))
    i1 = i0 + 1
    x0 = x - i0
    x1 = x0 - 1.0

    t0 = 1.0 - x0 * x0
    t0 *= t0
    n0 = t0 * t0 * _grad1(perm[i0 & 0xff], x0)

    t1 = 1.0 - x1 * x1
    t1 *= t1
    n1 = t1 * t1 * _grad1(perm[i1 & 0xff], x1)

    # Scaled to fit roughly within [-1, 1]
    return 0.395 * (n0 + n1)


@jit(nopython=True)
def _simplex2_numba(perm, x, y):
    s = (x + y) * F2
    i = int(math.floor(x + s))
    j = int(math.floor(y + s))

    t = (i + j) * G2
    x0 = x - (i - t)
    y0 = y - (j - t)

    # Which triangle of the skewed cell are we in?
    if x0 > y0:
        i1, j1 = 1, 0
    else:
        i1, j1 = 0, 1

    x1 = x0 - i1 + G2
    y1 = y0 - j1 + G2
    x2 = x0 - 1.0 + 2.0 * G2
    y2 = y0 - 1.0 + 2.0 * G2

    ii = i & 0xff
    jj = j & 0xff

    n0 = 0.0
    t0 = 0.5 - x0 * x0 - y0 * y0
    if t0 >= 0.0:
        t0 *= t0
        n0 = t0 * t0 * _grad2(perm[ii + perm[jj]], x0, y0)

    n1 = 0.0
    t1 = 0.5 - x1 * x1 - y1 * y1
    if t1 >= 0.0:
        t1 *= t1
        n1 = t1 * t1 * _grad2(perm[ii + i1 + perm[jj + j1]], x1, y1)

    n2 = 0.0
    t2 = 0.5 - x2 * x2 - y2 * y2
    if t2 >= 0.0:
        t2 *= t2
        n2 = t2 * t2 * _grad2(perm[ii + 1 + perm[jj + 1]], x2, y2)

    return 40.0 * (n0 + n1 + n2)


@jit(nopython=True)
def _simplex3_numba(perm, x, y, z):
    s = (x + y + z) * F3
    i = int(math.floor(x + s))
    j = int(math.floor(y + s))
    k = int(math.floor(z + s))

    t = (i + j + k) * G3
    x0 = x - (i - t)
    y0 = y - (j - t)
    z0 = z - (k - t)

    # Offsets of the second and third corners of the simplex
    if x0 >= y0:
        if y0 >= z0:
            i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 1, 0
        elif x0 >= z0:
            i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 0, 1
        else:
            i1, j1, k1, i2, j2, k2 = 0, 0, 1, 1, 0, 1
    else:
        if y0 < z0:
            i1, j1, k1, i2, j2, k2 = 0, 0, 1, 0, 1, 1
        elif x0 < z0:
            i1, j1, k1, i2, j2, k2 = 0, 1, 0, 0, 1, 1
        else:
            i1, j1, k1, i2, j2, k2 = 0, 1, 0, 1, 1, 0

    x1 = x0 - i1 + G3
    y1 = y0 - j1 + G3
    z1 = z0 - k1 + G3
    x2 = x0 - i2 + 2.0 * G3
    y2 = y0 - j2 + 2.0 * G3
    z2 = z0 - k2 + 2.0 * G3
    x3 = x0 - 1.0 + 3.0 * G3
    y3 = y0 - 1.0 + 3.0 * G3
    z3 = z0 - 1.0 + 3.0 * G3

    ii = i & 0xff
    jj = j & 0xff
    kk = k & 0xff

    n0 = 0.0
    t0 = 0.6 - x0 * x0 - y0 * y0 - z0 * z0
    if t0 >= 0.0:
        t0 *= t0
        n0 = t0 * t0 * _grad3(perm[ii + perm[jj + perm[kk]]], x0, y0, z0)

    n1 = 0.0
    t1 = 0.6 - x1 * x1 - y1 * y1 - z1 * z1
    if t1 >= 0.0:
        t1 *= t1
        n1 = t1 * t1 * _grad3(perm[ii + i1 + perm[jj + j1 + perm[kk + k1]]], x1, y1, z1)

    n2 = 0.0
    t2 = 0.6 - x2 * x2 - y2 * y2 - z2 * z2
    if t2 >= 0.0:
        t2 *= t2
        n2 = t2 * t2 * _grad3(perm[ii + i2 + perm[jj + j2 + perm[kk + k2]]], x2, y2, z2)

    n3 = 0.0
    t3 = 0.6 - x3 * x3 - y3 * y3 - z3 * z3
    if t3 >= 0.0:
        t3 *= t3
        n3 = t3 * t3 * _grad3(perm[ii + 1 + perm[jj + 1 + perm[kk + 1]]], x3, y3, z3)

    return 32.0 * (n0 + n1 + n2 + n3)


def simplex1(x: float) -> float:
    return _simplex1_numba(permutation_table(), float(x))


def simplex2(x: float, y: float) -> float:
    return _simplex2_numba(permutation_table(), float(x), float(y))


def simplex3(x: float, y: float, z: float) -> float:
    return _simplex3_numba(permutation_table(), float(x), float(y), float(z))
