"""Plain-text serialization writer.

``text/plain`` bodies carry exactly one scalar: a string, number, boolean,
date or enum value written as raw text.  Objects, collections and untyped
composites have no plain-text form and are rejected.
"""
from __future__ import annotations

from graphwire.errors import UnsupportedValueError
from graphwire.writer.base import Scope, ScopeKind, SerializationWriter


class TextSerializationWriter(SerializationWriter):
    """Writes a single scalar value as ``text/plain``."""

    content_type = "text/plain"

    def _format_string(self, value: str) -> str:
        return value

    def _emit_value(self, key: str | None, position: int, token: str) -> None:
        self._parts.append(token)

    def _open_scope(self, kind: ScopeKind, key: str | None, position: int) -> None:
        raise UnsupportedValueError(
            f"text/plain content cannot contain {kind.name.lower()} values", key=key
        )

    def _close_scope(self, scope: Scope) -> None:
        raise UnsupportedValueError("text/plain content cannot contain scopes")
