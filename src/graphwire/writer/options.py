"""Writer configuration."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class DuplicateKeyPolicy(Enum):
    """What a writer does when a property name repeats inside one object.

    RAISE
        Fail with ``UnsupportedValueError``.
    KEEP_FIRST
        Keep the value written first and skip the repeat.  Declared
        properties are written before additional data, so they win.
    """

    RAISE = auto()
    KEEP_FIRST = auto()


@dataclass(frozen=True, slots=True)
class WriterOptions:
    """Options shared by all serialization writers.

    Parameters
    ----------
    duplicate_keys:
        Policy applied when a property name is written twice in the same
        object scope.
    ensure_ascii:
        Escape non-ASCII characters in JSON strings.  Off by default: text
        passes through as UTF-8.
    """

    duplicate_keys: DuplicateKeyPolicy = DuplicateKeyPolicy.RAISE
    ensure_ascii: bool = False
