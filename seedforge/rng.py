"""
Deterministic random source.

Each draw takes an RngState and hands back (value, state). Callers keep
feeding the returned state; nothing here touches global numpy state, so the
same seed and the same sequence of calls always reproduce the same values.
Not meant for anything security related.
"""

import hashlib

import numpy as np


# numpy's bounded integer sampler works on int64, wider spans go through bytes
_NUMPY_MAX_SPAN = (1 << 63) - 1
_SEED_MODULUS = 1 << 64


class RngState:
    """A PCG64 stream owned by exactly one generator."""

    __slots__ = ("generator",)

    def __init__(self, generator: np.random.Generator):
        self.generator = generator


def seeded(seed: int) -> RngState:
    return RngState(np.random.Generator(np.random.PCG64(int(seed) % _SEED_MODULUS)))


def uniform_int(low: int, high: int, state: RngState):
    """Uniform integer in [low, high], both ends inclusive, any int size."""
    low, high = int(low), int(high)
    if low > high:
        raise ValueError(f"empty range [{low}, {high}]")
    span = high - low
    if span <= _NUMPY_MAX_SPAN:
        offset = int(state.generator.integers(0, span, endpoint=True))
    else:
        offset = _wide_offset(span, state.generator)
    return low + offset, state


def _wide_offset(span: int, generator: np.random.Generator) -> int:
    # rejection sampling over the smallest power of two covering the span
    bits = span.bit_length()
    mask = (1 << bits) - 1
    width = (bits + 7) // 8
    while True:
        candidate = int.from_bytes(generator.bytes(width), "little") & mask
        if candidate <= span:
            return candidate


def uniform_float(state: RngState):
    """Uniform float in [0, 1)."""
    return float(state.generator.random()), state


def hash_from_string(text: str) -> int:
    """Stable across processes and platforms, unlike hash()."""
    return int(hashlib.sha256(text.encode("utf-8")).hexdigest(), 16) % (2**32)


def derive_seed(base_seed: int, *parts) -> int:
    h = hashlib.sha256()
    h.update(str(base_seed).encode())
    for part in parts:
        h.update(b":")
        h.update(str(part).encode())
    return int(h.hexdigest(), 16) % (2**32)
