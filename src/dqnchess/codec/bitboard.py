"""
Bitboard splitting for float vector storage.

A 64-bit mask is stored as two 32-bit halves. Halves are held in float64,
which represents every 32-bit integer exactly. float32 is only exact up to
2**24; requesting it for a larger half raises PrecisionError instead of
rounding silently.
"""

from __future__ import annotations

from typing import Final

import numpy as np

from dqnchess.errors import PrecisionError

U32_MASK: Final[int] = 0xFFFF_FFFF
U64_MAX: Final[int] = 0xFFFF_FFFF_FFFF_FFFF
# Largest integer range float32 stores without rounding.
FLOAT32_EXACT_LIMIT: Final[int] = 2**24
FLOAT64_EXACT_LIMIT: Final[int] = 2**53


def split(mask: int) -> tuple[int, int]:
    """Split a 64-bit mask into (low, high) 32-bit halves.

    Inverse of [join].

    Raises:
        ValueError: If mask is not in the unsigned 64-bit range.
    """
    if not 0 <= mask <= U64_MAX:
        raise ValueError(f"mask out of u64 range: {mask}")
    return mask & U32_MASK, mask >> 32


def join(low: int, high: int) -> int:
    """Join two 32-bit halves into a 64-bit mask.

    Inverse of [split].

    Raises:
        ValueError: If either half is not in the unsigned 32-bit range.
    """
    if not 0 <= low <= U32_MASK or not 0 <= high <= U32_MASK:
        raise ValueError(f"halves out of u32 range: ({low}, {high})")
    return low | (high << 32)


def exact_limit(dtype: np.dtype) -> int:
    """Return the exclusive bound below which dtype stores integers exactly."""
    # Mantissa bits plus the implicit leading bit.
    return 2 ** (np.finfo(dtype).nmant + 1)


def to_float(value: int, dtype: np.dtype = np.dtype(np.float64)) -> float:
    """Cast a non-negative integer slot to dtype, failing if it would round.

    Args:
        value: Integer to store.
        dtype: Target floating dtype.

    Returns:
        The value as a Python float of the given precision.

    Raises:
        PrecisionError: If dtype cannot hold value exactly.
    """
    if value > exact_limit(dtype):
        raise PrecisionError(
            f"{value} is not exactly representable as {np.dtype(dtype).name}"
        )
    return float(np.asarray(value, dtype=dtype))


def split_to_floats(
    mask: int, dtype: np.dtype = np.dtype(np.float64)
) -> tuple[float, float]:
    """Split a mask and cast both halves to dtype.

    Raises:
        PrecisionError: If a half cannot be stored exactly.
    """
    low, high = split(mask)
    return to_float(low, dtype), to_float(high, dtype)
