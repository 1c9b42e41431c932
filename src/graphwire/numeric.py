"""Numeric kinds shared by the untyped model, additional data and writers.

Python has a single unbounded ``int`` and a single 64-bit ``float``.  Wire
formats produced from schema-typed code distinguish 32- from 64-bit
integers and single- from double-precision floats, so the explicit
wrappers below let callers pin a value to a kind without changing it.
"""
from __future__ import annotations

import math
import struct

INT32_RANGE = range(-(2**31), 2**31)
INT64_RANGE = range(-(2**63), 2**63)


class Int64(int):
    """An integer that serializes as a 64-bit value."""

    def __repr__(self) -> str:
        return f"Int64({int(self)})"


class Float32(float):
    """A float that serializes with single precision."""

    def __repr__(self) -> str:
        return f"Float32({float(self)!r})"


def to_float32(value: float) -> float:
    """Round ``value`` to the nearest IEEE-754 single and widen it back.

    Raises
    ------
    OverflowError
        If ``value`` is finite but outside the single-precision range.
    """
    if not math.isfinite(value):
        return float(value)
    return struct.unpack("<f", struct.pack("<f", value))[0]


def in_range(value: int, allowed: range) -> bool:
    """Return whether ``value`` lies in ``allowed``.

    ``range.__contains__`` only does arithmetic for exact ``int``; an
    ``int`` subclass such as ``Int64`` would be compared element by element.
    """
    return allowed.start <= int(value) < allowed.stop
