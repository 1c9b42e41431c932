"""Additional data: properties an object carries outside its static schema.

Values in the bag are dynamically typed.  Each value is checked when it is
stored and classified into an ``AdditionalValue`` tagged with a
``ValueKind`` when the bag is flushed.  The payload is kept exactly as
given; classification never converts it.  Writers dispatch on the kind, so
every kind has exactly one encoding path.

Usage
-----
::

    from graphwire.abstractions import AdditionalData, Int64

    bag = AdditionalData()
    bag.put("nickName", "Peter Pan")
    bag.put("wssId", Int64(345345345))
    bag["aliases"] = ["alias1", "alias2"]
"""
from __future__ import annotations

import uuid
from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum, auto

from graphwire.abstractions.parsable import Parsable
from graphwire.errors import CyclicGraphError, UnsupportedValueError
from graphwire.numeric import INT32_RANGE, Float32, Int64, in_range
from graphwire.untyped.nodes import UNTYPED_NODE_TYPES


class ValueKind(Enum):
    """Runtime kind of an additional-data value."""

    NULL = auto()
    BOOLEAN = auto()
    INT32 = auto()
    INT64 = auto()
    FLOAT32 = auto()
    FLOAT64 = auto()
    DECIMAL = auto()
    STRING = auto()
    UUID = auto()
    BYTES = auto()
    DATETIME = auto()
    DATE = auto()
    TIME = auto()
    DURATION = auto()
    ENUM = auto()
    OBJECT = auto()
    UNTYPED = auto()
    COLLECTION = auto()


@dataclass(frozen=True, slots=True)
class AdditionalValue:
    """A classified additional-data value.

    Parameters
    ----------
    kind:
        The runtime kind the value was classified as.
    value:
        The value exactly as it was stored.
    items:
        For ``ValueKind.COLLECTION`` only: the classified elements, in order.
    """

    kind: ValueKind
    value: object
    items: tuple["AdditionalValue", ...] = ()


def classify(value: object) -> AdditionalValue:
    """Tag ``value`` with its ``ValueKind``.

    Enum members are checked first so that ``IntEnum`` and ``StrEnum``
    members keep their enum kind; ``bool`` is checked before ``int`` and
    ``datetime`` before ``date`` for the same reason.

    Raises
    ------
    UnsupportedValueError
        If no kind matches the value's type.
    CyclicGraphError
        If a list or tuple contains itself.
    """
    return _classify(value, set(), [])


def _classify(value: object, active: set[int], path: list[str]) -> AdditionalValue:
    if value is None:
        return AdditionalValue(ValueKind.NULL, None)
    if isinstance(value, Enum):
        return AdditionalValue(ValueKind.ENUM, value)
    if isinstance(value, bool):
        return AdditionalValue(ValueKind.BOOLEAN, value)
    if isinstance(value, Int64):
        return AdditionalValue(ValueKind.INT64, value)
    if isinstance(value, int):
        kind = ValueKind.INT32 if in_range(value, INT32_RANGE) else ValueKind.INT64
        return AdditionalValue(kind, value)
    if isinstance(value, Float32):
        return AdditionalValue(ValueKind.FLOAT32, value)
    if isinstance(value, float):
        return AdditionalValue(ValueKind.FLOAT64, value)
    if isinstance(value, Decimal):
        return AdditionalValue(ValueKind.DECIMAL, value)
    if isinstance(value, str):
        return AdditionalValue(ValueKind.STRING, value)
    if isinstance(value, uuid.UUID):
        return AdditionalValue(ValueKind.UUID, value)
    if isinstance(value, (bytes, bytearray)):
        return AdditionalValue(ValueKind.BYTES, value)
    if isinstance(value, datetime):
        return AdditionalValue(ValueKind.DATETIME, value)
    if isinstance(value, date):
        return AdditionalValue(ValueKind.DATE, value)
    if isinstance(value, time):
        return AdditionalValue(ValueKind.TIME, value)
    if isinstance(value, timedelta):
        return AdditionalValue(ValueKind.DURATION, value)
    if isinstance(value, Parsable):
        return AdditionalValue(ValueKind.OBJECT, value)
    if isinstance(value, UNTYPED_NODE_TYPES):
        return AdditionalValue(ValueKind.UNTYPED, value)
    if isinstance(value, (list, tuple)):
        identity = id(value)
        if identity in active:
            raise CyclicGraphError(tuple(path))
        active.add(identity)
        items = []
        try:
            for index, item in enumerate(value):
                path.append(f"[{index}]")
                try:
                    items.append(_classify(item, active, path))
                finally:
                    path.pop()
        finally:
            active.discard(identity)
        return AdditionalValue(ValueKind.COLLECTION, value, tuple(items))
    raise UnsupportedValueError(
        f"Cannot store {type(value).__name__} as additional data; "
        "wrap free-form structures with graphwire.untyped.from_python",
        value=value,
    )


class AdditionalData(MutableMapping[str, object]):
    """Mapping of property name to dynamically typed value.

    Behaves like a ``dict``: ``put``/``[]=`` insert or overwrite,
    ``get``/``[]`` return the stored value, iteration follows insertion
    order.  ``entries`` yields the classified values the writers consume.

    Values are checked when stored and classified again by ``entries``, so
    a list that grows after ``put`` is written with its current items.
    """

    def __init__(self, values: dict[str, object] | None = None) -> None:
        self._values: dict[str, object] = {}
        if values:
            for key, value in values.items():
                self.put(key, value)

    def put(self, key: str, value: object) -> None:
        """Insert or overwrite ``key``.

        Raises
        ------
        ValueError
            If ``key`` is not a non-empty string.
        UnsupportedValueError
            If ``value`` has no ``ValueKind``.
        CyclicGraphError
            If ``value`` is a list or tuple that contains itself.
        """
        if not isinstance(key, str) or not key:
            raise ValueError(f"Additional data keys must be non-empty strings, got {key!r}")
        classify(value)
        self._values[key] = value

    def entries(self) -> Iterator[tuple[str, AdditionalValue]]:
        """Yield ``(key, AdditionalValue)`` pairs in insertion order.

        Each value is classified as it is now, not as it was when stored.
        """
        for key, value in list(self._values.items()):
            yield key, classify(value)

    def kind_of(self, key: str) -> ValueKind:
        """Return the kind of ``key``'s current value."""
        return classify(self._values[key]).kind

    def __setitem__(self, key: str, value: object) -> None:
        self.put(key, value)

    def __getitem__(self, key: str) -> object:
        return self._values[key]

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"AdditionalData({self._values!r})"
