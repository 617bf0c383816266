# rng.py
"""
Seeded pseudo-random source for the distribution engine.

This module defines DeterministicRandom, an xorshift-128 generator whose
output sequence is fully determined by a 32-bit seed. Every component that
needs randomness (each distributor, each particle configuration) owns its
own instance so that position randomness and attribute randomness can be
reproduced independently of one another.
"""
import logging
import math
import time
from typing import Optional

from constants import (
    XORSHIFT_Y, XORSHIFT_Z, XORSHIFT_W, UINT32_MASK, INT31_MASK,
    REAL_UNIT_INT, REAL_UNIT_UINT, DERIVED_STREAM_WARMUP
)
from errors import InvalidArgument

# --- Data Contracts ---
#
# class DeterministicRandom:
#   - __init__(self, seed: Optional[int] = None):
#     - Inputs:
#       - seed: 32-bit seed. Larger values are masked to 32 bits. When None,
#         a time-based seed is used (non-deterministic fallback).
#     - Invariants:
#       - self.x, self.y, self.z, self.w are always in [0, 2**32).
#       - Identical seed and identical call order yield identical output.
#
#   - next_uint32() -> int in [0, 2**32)
#   - next_double() -> float in [0, 1)
#   - next_int(bound: Optional[int] = None) -> int in [0, bound)
#     (or [0, 2**31) without a bound). Raises InvalidArgument if bound < 0.
#   - next_int_range(lo: int, hi: int) -> int in [lo, hi).
#     Raises InvalidArgument if hi < lo.
#   - next_bool() -> bool. Consumes one state advance per 32 calls.
#
# derive_seed(seed: int, index: int) -> int:
#   - Outputs: a 32-bit hash of (seed, index).
#   - Invariants: pure function of (seed, index).
#
# derived_stream(seed: int, index: Optional[int] = None, salt: int = 0) -> DeterministicRandom:
#   - Outputs: a generator whose four state words are all hashed from
#     (seed ^ salt, index), warmed up by DERIVED_STREAM_WARMUP outputs.
#     index=None gives the set-wide stream of that salted seed.
#   - Invariants: streams for different indices or salts are uncorrelated
#     from their first draw; reinitialise() keeps the reference sequence.


class DeterministicRandom:
    """
    Fast xorshift RNG (Marsaglia), period 2**128 - 1.
    """
    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = int(time.time() * 1000) & UINT32_MASK
            logging.debug(f"DeterministicRandom seeded from clock: {seed}")
        self.reinitialise(seed)

    def reinitialise(self, seed: int) -> None:
        """Resets the generator to the start of the sequence for `seed`."""
        self.seed = seed & UINT32_MASK
        self.x = self.seed
        self.y = XORSHIFT_Y
        self.z = XORSHIFT_Z
        self.w = XORSHIFT_W
        self._bit_buffer = 0
        self._bit_mask = 1

    def set_state(self, x: int, y: int, z: int, w: int) -> None:
        """Loads all four state words directly. An all-zero state is never used."""
        self.x = x & UINT32_MASK
        self.y = y & UINT32_MASK
        self.z = z & UINT32_MASK
        self.w = w & UINT32_MASK
        if not (self.x | self.y | self.z | self.w):
            self.w = XORSHIFT_W
        self._bit_buffer = 0
        self._bit_mask = 1

    def _advance(self) -> int:
        t = (self.x ^ (self.x << 11)) & UINT32_MASK
        self.x = self.y
        self.y = self.z
        self.z = self.w
        self.w = (self.w ^ (self.w >> 19)) ^ (t ^ (t >> 8))
        return self.w

    def next_uint32(self) -> int:
        return self._advance()

    def next_double(self) -> float:
        """Random double in [0.0, 1.0)."""
        return REAL_UNIT_INT * (self._advance() & INT31_MASK)

    def next_int(self, bound: Optional[int] = None) -> int:
        """
        Random int in [0, bound). Without a bound, any non-negative 31-bit int.
        """
        if bound is None:
            return self._advance() & INT31_MASK
        if bound < 0:
            raise InvalidArgument(f"bound must be >= 0, got {bound}")
        return int(REAL_UNIT_INT * (self._advance() & INT31_MASK) * bound)

    def next_int_range(self, lo: int, hi: int) -> int:
        """Random int in [lo, hi)."""
        if hi < lo:
            raise InvalidArgument(f"hi must be >= lo, got lo={lo}, hi={hi}")
        w = self._advance()
        span = hi - lo
        if span > INT31_MASK:
            # Range does not fit in 31 bits; use all 32 bits of the state word.
            return lo + int(REAL_UNIT_UINT * w * span)
        return lo + int(REAL_UNIT_INT * (w & INT31_MASK) * span)

    def next_bool(self) -> bool:
        if self._bit_mask == 1:
            self._bit_buffer = self._advance()
            self._bit_mask = 0x80000000
        else:
            self._bit_mask >>= 1
        return (self._bit_buffer & self._bit_mask) == 0

    def next_gaussian(self, variance: float = 1.0) -> float:
        """
        Normally distributed value (Box-Muller), scaled by `variance`.

        Both uniforms are redrawn until non-zero so log() is always defined.
        """
        u1 = 0.0
        u2 = 0.0
        while u1 == 0.0:
            u1 = self.next_double()
        while u2 == 0.0:
            u2 = self.next_double()
        z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return z0 * variance


def derive_seed(seed: int, index: int) -> int:
    """Hashes (seed, index) into the seed of an independent per-index stream."""
    z = (seed * 0x9E3779B9 + (index + 1) * 0x85EBCA6B) & UINT32_MASK
    # murmur3 finaliser
    z ^= z >> 16
    z = (z * 0x85EBCA6B) & UINT32_MASK
    z ^= z >> 13
    z = (z * 0xC2B2AE35) & UINT32_MASK
    z ^= z >> 16
    return z


def derived_stream(seed: int, index: Optional[int] = None, salt: int = 0) -> DeterministicRandom:
    """
    An independent generator for one particle index (or for a whole set).

    All four state words come from derive_seed; only reinitialise() uses the
    fixed y/z/w words of the reference sequence.
    """
    base = (seed ^ salt) & UINT32_MASK
    lane = 0 if index is None else 4 * (index + 1)
    words = [derive_seed(base, lane + k) for k in range(4)]
    stream = DeterministicRandom(words[0])
    stream.set_state(*words)
    for _ in range(DERIVED_STREAM_WARMUP):
        stream._advance()
    return stream
