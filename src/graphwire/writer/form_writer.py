"""URL-encoded form serialization writer.

``application/x-www-form-urlencoded`` bodies are a flat list of
``name=value`` pairs, so only a single root object can be written.  Its
scalar properties become pairs; a collection of scalars becomes one pair
per element under the collection's name.  Nested objects and nested
collections cannot be flattened and are rejected.
"""
from __future__ import annotations

from urllib.parse import quote_plus

from graphwire.errors import UnsupportedValueError
from graphwire.writer.base import Scope, ScopeKind, SerializationWriter


class FormSerializationWriter(SerializationWriter):
    """Writes one flat object as ``application/x-www-form-urlencoded``."""

    content_type = "application/x-www-form-urlencoded"

    def _format_string(self, value: str) -> str:
        return quote_plus(value)

    def _format_literal(self, text: str) -> str:
        return quote_plus(text)

    def _render(self) -> str:
        return "&".join(self._parts)

    def _emit_value(self, key: str | None, position: int, token: str) -> None:
        if not self._stack:
            raise UnsupportedValueError("Form content must be an object")
        scope = self._stack[-1]
        name = scope.key if scope.kind is ScopeKind.ARRAY else key
        self._parts.append(f"{quote_plus(name or '')}={token}")

    def _open_scope(self, kind: ScopeKind, key: str | None, position: int) -> None:
        depth = len(self._stack)
        if kind is ScopeKind.OBJECT and depth == 0:
            return
        if kind is ScopeKind.ARRAY and depth == 1 and self._stack[-1].kind is ScopeKind.OBJECT:
            return
        raise UnsupportedValueError(
            f"Form content cannot contain nested {kind.name.lower()} values", key=key
        )

    def _close_scope(self, scope: Scope) -> None:
        pass
