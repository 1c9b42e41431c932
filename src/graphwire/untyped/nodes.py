"""Untyped value model.

An untyped node is a schema-free, JSON-like value: the shape of a subtree
that is only known at runtime, such as free-form metadata attached to an
otherwise typed resource.  Every node is a frozen dataclass, so a tree is
immutable once built.  Composite nodes copy their children into tuples at
construction and therefore own them exclusively.

``UntypedObject`` keeps its keys in insertion order and writers encode them
in that order.  Equality of objects ignores that order: two objects holding
the same key/value pairs compare equal.  Arrays compare element by element.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Union

from graphwire.numeric import INT32_RANGE, INT64_RANGE, in_range

# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UntypedNull:
    """The JSON ``null`` value."""

    @property
    def value(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class UntypedBoolean:
    """A boolean value."""

    value: bool

    def __post_init__(self) -> None:
        if not isinstance(self.value, bool):
            raise TypeError(f"UntypedBoolean requires a bool, got {type(self.value).__name__}")


@dataclass(frozen=True, slots=True)
class UntypedInteger:
    """A 32-bit signed integer."""

    value: int

    def __post_init__(self) -> None:
        _check_int(self.value, INT32_RANGE, "UntypedInteger")


@dataclass(frozen=True, slots=True)
class UntypedLong:
    """A 64-bit signed integer."""

    value: int

    def __post_init__(self) -> None:
        _check_int(self.value, INT64_RANGE, "UntypedLong")


@dataclass(frozen=True, slots=True)
class UntypedFloat:
    """A single-precision floating point number."""

    value: float


@dataclass(frozen=True, slots=True)
class UntypedDouble:
    """A double-precision floating point number."""

    value: float


@dataclass(frozen=True, slots=True)
class UntypedString:
    """A text value."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError(f"UntypedString requires a str, got {type(self.value).__name__}")


def _check_int(value: object, allowed: range, kind: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{kind} requires an int, got {type(value).__name__}")
    if not in_range(value, allowed):
        raise ValueError(f"{kind} value {value} is outside {allowed}")


# ---------------------------------------------------------------------------
# Composites
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UntypedArray:
    """An ordered sequence of untyped nodes."""

    values: tuple["UntypedNode", ...] = ()

    def __post_init__(self) -> None:
        values = tuple(self.values)
        for item in values:
            _check_node(item)
        object.__setattr__(self, "values", values)

    @property
    def value(self) -> tuple["UntypedNode", ...]:
        return self.values

    def __iter__(self) -> Iterator["UntypedNode"]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> "UntypedNode":
        return self.values[index]


@dataclass(frozen=True, slots=True, eq=False)
class UntypedObject:
    """A string-keyed collection of untyped nodes.

    Parameters
    ----------
    properties:
        A mapping or an iterable of ``(key, node)`` pairs.  Order is kept.
        Keys must be non-empty strings and must not repeat.
    """

    properties: tuple[tuple[str, "UntypedNode"], ...] = ()

    def __post_init__(self) -> None:
        source = self.properties
        pairs = tuple(source.items() if isinstance(source, Mapping) else source)
        seen: set[str] = set()
        for key, node in pairs:
            if not isinstance(key, str) or not key:
                raise ValueError(f"UntypedObject keys must be non-empty strings, got {key!r}")
            if key in seen:
                raise ValueError(f"Duplicate UntypedObject key {key!r}")
            seen.add(key)
            _check_node(node)
        object.__setattr__(self, "properties", pairs)

    @property
    def value(self) -> dict[str, "UntypedNode"]:
        """Return a new dict of the properties in stored order."""
        return dict(self.properties)

    def keys(self) -> list[str]:
        return [key for key, _ in self.properties]

    def items(self) -> Iterable[tuple[str, "UntypedNode"]]:
        return iter(self.properties)

    def get(self, key: str, default: "UntypedNode | None" = None) -> "UntypedNode | None":
        for name, node in self.properties:
            if name == key:
                return node
        return default

    def __getitem__(self, key: str) -> "UntypedNode":
        node = self.get(key)
        if node is None:
            raise KeyError(key)
        return node

    def __contains__(self, key: object) -> bool:
        return any(name == key for name, _ in self.properties)

    def __len__(self) -> int:
        return len(self.properties)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UntypedObject):
            return NotImplemented
        return dict(self.properties) == dict(other.properties)

    def __hash__(self) -> int:
        return hash(frozenset(self.properties))


UntypedNode = Union[
    UntypedNull,
    UntypedBoolean,
    UntypedInteger,
    UntypedLong,
    UntypedFloat,
    UntypedDouble,
    UntypedString,
    UntypedArray,
    UntypedObject,
]

UNTYPED_NODE_TYPES: tuple[type, ...] = (
    UntypedNull,
    UntypedBoolean,
    UntypedInteger,
    UntypedLong,
    UntypedFloat,
    UntypedDouble,
    UntypedString,
    UntypedArray,
    UntypedObject,
)


def _check_node(node: object) -> None:
    if not isinstance(node, UNTYPED_NODE_TYPES):
        raise TypeError(f"Expected an untyped node, got {type(node).__name__}")
