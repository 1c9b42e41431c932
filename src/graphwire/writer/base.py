"""Serialization writer base class and the recursive driver.

``SerializationWriter`` owns everything that does not depend on the wire
format:

- the stack of open object/array scopes and the rule that every scope is
  closed before its parent continues
- placement rules for values (named inside objects, unnamed inside arrays
  and at the root, one root value per writer)
- encoding each value kind into a token (number text, ISO-8601 dates,
  base64 bytes, enum wire values)
- recursion into nested ``Parsable`` objects, collections, untyped trees
  and additional data
- cycle detection and the single-use resource lifecycle

Format subclasses implement the few hooks that emit text: how a token is
placed under a key, how scopes open and close, and how strings look.

Usage
-----
::

    from graphwire.writer import JsonSerializationWriter

    with JsonSerializationWriter() as writer:
        writer.write_object_value(None, entity)
        content = writer.get_serialized_content()
"""
from __future__ import annotations

import base64
import logging
import math
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum, Flag, auto
from types import TracebackType
from typing import Any, TypeVar

from graphwire.abstractions.additional_data import (
    AdditionalData,
    AdditionalValue,
    ValueKind,
    classify,
)
from graphwire.abstractions.parsable import Parsable
from graphwire.errors import (
    CyclicGraphError,
    IncompleteDocumentError,
    SerializationError,
    UnsupportedValueError,
)
from graphwire.numeric import INT32_RANGE, INT64_RANGE, in_range, to_float32
from graphwire.untyped.nodes import (
    UntypedArray,
    UntypedBoolean,
    UntypedDouble,
    UntypedFloat,
    UntypedInteger,
    UntypedLong,
    UntypedNode,
    UntypedNull,
    UntypedObject,
    UntypedString,
)
from graphwire.writer.options import DuplicateKeyPolicy, WriterOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

ElementWriter = Callable[["SerializationWriter", T], None]


class ScopeKind(Enum):
    """Kind of a bracketed region in the output."""

    OBJECT = auto()
    ARRAY = auto()


@dataclass(slots=True)
class Scope:
    """An open object or array.

    Parameters
    ----------
    kind:
        Whether this scope is an object or an array.
    key:
        The property name the scope was opened under, if any.
    count:
        Number of members placed in the scope so far.
    keys:
        Property names already written (objects only).
    """

    kind: ScopeKind
    key: str | None = None
    count: int = 0
    keys: set[str] = field(default_factory=set)


class SerializationWriter(ABC):
    """Single-use writer that turns one object graph into bytes.

    A writer serializes exactly one root value, created with
    ``write_object_value(None, obj)`` or ``write_untyped_value(None, node)``
    (or a scalar, for formats that allow one).  Retrieve the result once
    with ``get_serialized_content``.  Use the writer as a context manager,
    or call ``close``, to release its buffers whether or not content was
    retrieved.

    Scalar writes whose value is ``None`` write nothing.  Object and untyped
    writes of ``None`` write an explicit null.

    Parameters
    ----------
    options:
        Writer configuration; defaults to ``WriterOptions()``.
    """

    content_type: str = ""

    def __init__(self, options: WriterOptions | None = None) -> None:
        self.options = options or WriterOptions()
        self.on_before_object_serialization: Callable[[Parsable], None] | None = None
        self.on_start_object_serialization: (
            Callable[[Parsable, SerializationWriter], None] | None
        ) = None
        self.on_after_object_serialization: Callable[[Parsable], None] | None = None
        self._parts: list[str] = []
        self._stack: list[Scope] = []
        self._active: set[int] = set()
        self._path: list[str] = []
        self._root_written = False
        self._failed = False
        self._retrieved = False
        self._closed = False

    # ------------------------------------------------------------------
    # Format hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _format_string(self, value: str) -> str:
        """Return the encoded form of a text value."""

    def _format_literal(self, text: str) -> str:
        """Return the encoded form of a number, boolean or null token."""
        return text

    @abstractmethod
    def _emit_value(self, key: str | None, position: int, token: str) -> None:
        """Place an encoded token in the output."""

    @abstractmethod
    def _open_scope(self, kind: ScopeKind, key: str | None, position: int) -> None:
        """Emit the start of an object or array."""

    @abstractmethod
    def _close_scope(self, scope: Scope) -> None:
        """Emit the end of an object or array."""

    def _render(self) -> str:
        return "".join(self._parts)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> "SerializationWriter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release internal buffers.  The writer cannot be used afterwards."""
        if self._closed:
            return
        if not self._retrieved and self._parts:
            logger.debug(
                "%s closed without retrieving content; discarding %d fragment(s)",
                type(self).__name__,
                len(self._parts),
            )
        self._release()
        self._closed = True

    def _release(self) -> None:
        self._parts.clear()
        self._stack.clear()
        self._active.clear()
        self._path.clear()

    @property
    def depth(self) -> int:
        """Return the number of currently open scopes."""
        return len(self._stack)

    def get_serialized_content(self) -> bytes:
        """Return the encoded document as UTF-8 bytes.

        Content can be retrieved once; the buffer is released afterwards.

        Raises
        ------
        IncompleteDocumentError
            If scopes are still open, nothing was written, or an earlier
            write failed.
        SerializationError
            If the writer is closed or content was already retrieved.
        """
        self._check_open()
        if self._retrieved:
            raise SerializationError("Serialized content has already been retrieved")
        if self._failed:
            raise IncompleteDocumentError(
                "An earlier write failed; the document is incomplete",
                open_scopes=len(self._stack),
            )
        if self._stack:
            raise IncompleteDocumentError(
                f"{len(self._stack)} scope(s) are still open", open_scopes=len(self._stack)
            )
        if not self._root_written:
            raise IncompleteDocumentError("No value has been written")
        content = self._render().encode("utf-8")
        self._retrieved = True
        self._release()
        return content

    def _check_open(self) -> None:
        if self._closed:
            raise SerializationError(f"{type(self).__name__} is closed")

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """Mark the writer failed if anything inside raises."""
        self._check_open()
        try:
            yield
        except Exception:
            self._failed = True
            raise

    # ------------------------------------------------------------------
    # Placement and scopes
    # ------------------------------------------------------------------

    def _enter_member(self, key: str | None) -> int | None:
        """Validate where a value goes and return its position in the scope.

        Returns ``None`` when the duplicate-key policy skips the value.
        """
        if not self._stack:
            if key is not None:
                raise UnsupportedValueError(
                    "Named property written outside of an object", key=key
                )
            if self._root_written:
                raise SerializationError("A writer serializes exactly one root value")
            self._root_written = True
            return 0
        scope = self._stack[-1]
        if scope.kind is ScopeKind.ARRAY:
            if key is not None:
                raise UnsupportedValueError("Array elements cannot be named", key=key)
        else:
            if key is None:
                raise UnsupportedValueError("Values inside an object need a property name")
            if key in scope.keys:
                if self.options.duplicate_keys is DuplicateKeyPolicy.RAISE:
                    raise UnsupportedValueError("Property is written twice", key=key)
                logger.debug("Skipping repeated property %r", key)
                return None
            scope.keys.add(key)
        position = scope.count
        scope.count += 1
        return position

    def _write_token(self, key: str | None, token: str) -> None:
        position = self._enter_member(key)
        if position is not None:
            self._emit_value(key, position, token)

    def _start_scope(self, kind: ScopeKind, key: str | None) -> bool:
        position = self._enter_member(key)
        if position is None:
            return False
        self._open_scope(kind, key, position)
        self._stack.append(Scope(kind=kind, key=key))
        return True

    def _end_scope(self, kind: ScopeKind) -> None:
        scope = self._stack.pop()
        if scope.kind is not kind:
            raise SerializationError(f"Expected to close {kind.name}, found {scope.kind.name}")
        self._close_scope(scope)

    @contextmanager
    def _visiting(self, value: Parsable, label: str | None) -> Iterator[None]:
        """Record ``value`` as being serialized; fail if it already is."""
        identity = id(value)
        if label:
            self._path.append(label)
        try:
            if identity in self._active:
                raise CyclicGraphError(tuple(self._path))
            self._active.add(identity)
            try:
                yield
            finally:
                self._active.discard(identity)
        finally:
            if label:
                self._path.pop()

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def write_str_value(self, key: str | None, value: str | None) -> None:
        """Write a text value."""
        with self._guard():
            if value is None:
                return
            if not isinstance(value, str):
                raise UnsupportedValueError(
                    f"Expected str, got {type(value).__name__}", value=value, key=key
                )
            self._write_token(key or None, self._format_string(value))

    def write_bool_value(self, key: str | None, value: bool | None) -> None:
        """Write a boolean value."""
        with self._guard():
            if value is None:
                return
            if not isinstance(value, bool):
                raise UnsupportedValueError(
                    f"Expected bool, got {type(value).__name__}", value=value, key=key
                )
            self._write_token(key or None, self._format_literal("true" if value else "false"))

    def write_int_value(self, key: str | None, value: int | None) -> None:
        """Write a 32-bit integer."""
        with self._guard():
            if value is None:
                return
            self._write_token(key or None, self._format_literal(_int_text(value, INT32_RANGE, key)))

    def write_int64_value(self, key: str | None, value: int | None) -> None:
        """Write a 64-bit integer."""
        with self._guard():
            if value is None:
                return
            self._write_token(key or None, self._format_literal(_int_text(value, INT64_RANGE, key)))

    def write_float_value(self, key: str | None, value: float | None) -> None:
        """Write a single-precision float.

        The value is rounded to single precision, then written as the double
        that rounding produced.
        """
        with self._guard():
            if value is None:
                return
            _check_finite(value, key)
            try:
                single = to_float32(float(value))
            except OverflowError:
                raise UnsupportedValueError(
                    "Value is outside the single-precision range", value=value, key=key
                ) from None
            self._write_token(key or None, self._format_literal(repr(single)))

    def write_double_value(self, key: str | None, value: float | None) -> None:
        """Write a double-precision float in its shortest round-trip form."""
        with self._guard():
            if value is None:
                return
            _check_finite(value, key)
            self._write_token(key or None, self._format_literal(repr(float(value))))

    def write_decimal_value(self, key: str | None, value: Decimal | None) -> None:
        """Write an arbitrary-precision decimal as an exact number."""
        with self._guard():
            if value is None:
                return
            if not value.is_finite():
                raise UnsupportedValueError(
                    "Non-finite decimals cannot be serialized", value=value, key=key
                )
            self._write_token(key or None, self._format_literal(str(value)))

    def write_uuid_value(self, key: str | None, value: uuid.UUID | None) -> None:
        """Write a UUID in its canonical hyphenated form."""
        with self._guard():
            if value is None:
                return
            self._write_token(key or None, self._format_string(str(value)))

    def write_bytes_value(self, key: str | None, value: bytes | None) -> None:
        """Write binary content as base64 text."""
        with self._guard():
            if value is None:
                return
            encoded = base64.b64encode(bytes(value)).decode("ascii")
            self._write_token(key or None, self._format_string(encoded))

    def write_datetime_value(self, key: str | None, value: datetime | None) -> None:
        """Write a timestamp as ISO-8601 text."""
        with self._guard():
            if value is None:
                return
            self._write_token(key or None, self._format_string(value.isoformat()))

    def write_date_value(self, key: str | None, value: date | None) -> None:
        """Write a calendar date as ISO-8601 text."""
        with self._guard():
            if value is None:
                return
            self._write_token(key or None, self._format_string(value.isoformat()))

    def write_time_value(self, key: str | None, value: time | None) -> None:
        """Write a time of day as ISO-8601 text."""
        with self._guard():
            if value is None:
                return
            self._write_token(key or None, self._format_string(value.isoformat()))

    def write_timedelta_value(self, key: str | None, value: timedelta | None) -> None:
        """Write a duration as ISO-8601 duration text, e.g. ``P1DT2H``."""
        with self._guard():
            if value is None:
                return
            self._write_token(key or None, self._format_string(iso_duration(value)))

    def write_enum_value(self, key: str | None, value: Enum | Iterable[Enum] | None) -> None:
        """Write an enum member, a flag combination or a set of members.

        Several members are written as their wire values joined by commas.
        """
        with self._guard():
            if value is None:
                return
            if isinstance(value, Flag):
                members = [m for m in type(value) if m.value and m in value]
            elif isinstance(value, Enum):
                members = [value]
            else:
                members = list(value)
                for member in members:
                    if not isinstance(member, Enum):
                        raise UnsupportedValueError(
                            f"Expected enum members, got {type(member).__name__}",
                            value=value,
                            key=key,
                        )
            if not members:
                return
            text = ",".join(enum_wire_value(m) for m in members)
            self._write_token(key or None, self._format_string(text))

    def write_null_value(self, key: str | None) -> None:
        """Write an explicit null."""
        with self._guard():
            self._write_token(key or None, self._format_literal("null"))

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def write_collection_value(
        self,
        key: str | None,
        values: Iterable[T] | None,
        element_writer: ElementWriter[T],
    ) -> None:
        """Write ``values`` as an array, one ``element_writer`` call per item.

        Items are written in iteration order.
        """
        with self._guard():
            if values is None:
                return
            key = key or None
            if not self._start_scope(ScopeKind.ARRAY, key):
                return
            for index, item in enumerate(values):
                self._path.append(f"{key or ''}[{index}]")
                try:
                    element_writer(self, item)
                finally:
                    self._path.pop()
            self._end_scope(ScopeKind.ARRAY)

    def write_collection_of_primitive_values(
        self, key: str | None, values: Iterable[Any] | None
    ) -> None:
        """Write an array of scalars, each encoded by its runtime kind."""
        self.write_collection_value(
            key, values, lambda writer, item: writer._write_additional_value(None, classify(item))
        )

    def write_collection_of_object_values(
        self, key: str | None, values: Iterable[Parsable | None] | None
    ) -> None:
        """Write an array of objects."""
        self.write_collection_value(
            key, values, lambda writer, item: writer.write_object_value(None, item)
        )

    def write_collection_of_enum_values(
        self, key: str | None, values: Iterable[Enum] | None
    ) -> None:
        """Write an array of enum members."""
        self.write_collection_value(
            key, values, lambda writer, item: writer.write_enum_value(None, item)
        )

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def write_object_value(
        self,
        key: str | None,
        value: Parsable | None,
        *additional_values_to_merge: Parsable | None,
    ) -> None:
        """Write a nested object.

        ``value.serialize`` runs inside a new object scope.  Any
        ``additional_values_to_merge`` serialize into the same scope after it.
        ``None`` with nothing to merge writes an explicit null.

        Raises
        ------
        CyclicGraphError
            If ``value`` is already being serialized higher up the graph.
        """
        with self._guard():
            targets = [v for v in (value, *additional_values_to_merge) if v is not None]
            if not targets:
                self.write_null_value(key)
                return
            key = key or None
            for target in targets:
                if not isinstance(target, Parsable):
                    raise UnsupportedValueError(
                        f"Expected a Parsable, got {type(target).__name__}", value=target, key=key
                    )
            if self.on_before_object_serialization is not None:
                self.on_before_object_serialization(targets[0])
            if not self._start_scope(ScopeKind.OBJECT, key):
                return
            if self.on_start_object_serialization is not None:
                self.on_start_object_serialization(targets[0], self)
            for index, target in enumerate(targets):
                with self._visiting(target, key if index == 0 else None):
                    target.serialize(self)
            self._end_scope(ScopeKind.OBJECT)
            if self.on_after_object_serialization is not None:
                self.on_after_object_serialization(targets[0])

    # ------------------------------------------------------------------
    # Untyped trees
    # ------------------------------------------------------------------

    def write_untyped_value(self, key: str | None, value: UntypedNode | None) -> None:
        """Write a schema-free tree, keeping each object's stored key order."""
        with self._guard():
            key = key or None
            if value is None or isinstance(value, UntypedNull):
                self.write_null_value(key)
            elif isinstance(value, UntypedBoolean):
                self.write_bool_value(key, value.value)
            elif isinstance(value, UntypedInteger):
                self.write_int_value(key, value.value)
            elif isinstance(value, UntypedLong):
                self.write_int64_value(key, value.value)
            elif isinstance(value, UntypedFloat):
                self.write_float_value(key, value.value)
            elif isinstance(value, UntypedDouble):
                self.write_double_value(key, value.value)
            elif isinstance(value, UntypedString):
                self.write_str_value(key, value.value)
            elif isinstance(value, UntypedArray):
                self.write_collection_value(
                    key, value.values, lambda writer, item: writer.write_untyped_value(None, item)
                )
            elif isinstance(value, UntypedObject):
                if self._start_scope(ScopeKind.OBJECT, key):
                    for name, child in value.items():
                        self.write_untyped_value(name, child)
                    self._end_scope(ScopeKind.OBJECT)
            else:
                raise UnsupportedValueError(
                    f"Expected an untyped node, got {type(value).__name__}", value=value, key=key
                )

    # ------------------------------------------------------------------
    # Additional data
    # ------------------------------------------------------------------

    def write_additional_data_value(
        self, value: AdditionalData | Mapping[str, object] | None
    ) -> None:
        """Write every entry of an additional-data bag into the current object.

        Entries are written in the bag's insertion order.  A plain mapping
        is classified into an ``AdditionalData`` first.
        """
        with self._guard():
            if value is None:
                return
            bag = value if isinstance(value, AdditionalData) else AdditionalData(dict(value))
            for key, item in bag.entries():
                self._write_additional_value(key, item)

    def _write_additional_value(self, key: str | None, item: AdditionalValue) -> None:
        if item.kind is ValueKind.COLLECTION:
            self.write_collection_value(
                key, item.items, lambda writer, element: writer._write_additional_value(None, element)
            )
            return
        method = _KIND_WRITERS[item.kind]
        if item.kind is ValueKind.NULL:
            method(self, key)
        else:
            method(self, key, item.value)


_KIND_WRITERS: dict[ValueKind, Callable[..., None]] = {
    ValueKind.NULL: SerializationWriter.write_null_value,
    ValueKind.BOOLEAN: SerializationWriter.write_bool_value,
    ValueKind.INT32: SerializationWriter.write_int_value,
    ValueKind.INT64: SerializationWriter.write_int64_value,
    ValueKind.FLOAT32: SerializationWriter.write_float_value,
    ValueKind.FLOAT64: SerializationWriter.write_double_value,
    ValueKind.DECIMAL: SerializationWriter.write_decimal_value,
    ValueKind.STRING: SerializationWriter.write_str_value,
    ValueKind.UUID: SerializationWriter.write_uuid_value,
    ValueKind.BYTES: SerializationWriter.write_bytes_value,
    ValueKind.DATETIME: SerializationWriter.write_datetime_value,
    ValueKind.DATE: SerializationWriter.write_date_value,
    ValueKind.TIME: SerializationWriter.write_time_value,
    ValueKind.DURATION: SerializationWriter.write_timedelta_value,
    ValueKind.ENUM: SerializationWriter.write_enum_value,
    ValueKind.OBJECT: SerializationWriter.write_object_value,
    ValueKind.UNTYPED: SerializationWriter.write_untyped_value,
}


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------


def _int_text(value: int, allowed: range, key: str | None) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise UnsupportedValueError(
            f"Expected int, got {type(value).__name__}", value=value, key=key
        )
    if not in_range(value, allowed):
        bits = 32 if allowed is INT32_RANGE else 64
        raise UnsupportedValueError(f"Integer does not fit in {bits} bits", value=value, key=key)
    return str(int(value))


def _check_finite(value: float, key: str | None) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UnsupportedValueError(
            f"Expected float, got {type(value).__name__}", value=value, key=key
        )
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        raise UnsupportedValueError(f"{value!r} cannot be serialized", value=value, key=key)


def enum_wire_value(member: Enum) -> str:
    """Return the text an enum member is serialized as.

    String-valued members use their value; others use their name.
    """
    if isinstance(member.value, str):
        return member.value
    return member.name


def iso_duration(value: timedelta) -> str:
    """Format ``value`` as an ISO-8601 duration such as ``P1DT2H3M4.5S``."""
    sign = "-" if value < timedelta(0) else ""
    value = abs(value)
    hours, remainder = divmod(value.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{sign}P"
    if value.days:
        text += f"{value.days}D"
    clock = ""
    if hours:
        clock += f"{hours}H"
    if minutes:
        clock += f"{minutes}M"
    if seconds or value.microseconds:
        if value.microseconds:
            clock += f"{seconds}.{value.microseconds:06d}".rstrip("0") + "S"
        else:
            clock += f"{seconds}S"
    if clock:
        text += f"T{clock}"
    elif not value.days:
        text += "T0S"
    return text
