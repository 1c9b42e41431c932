"""Compact JSON serialization writer.

Objects encode as ``{...}``, arrays as ``[...]``, no whitespace between
tokens.  Strings are escaped with the standard library ``json`` module;
non-ASCII text passes through unescaped unless
``WriterOptions.ensure_ascii`` is set.
"""
from __future__ import annotations

import json

from graphwire.writer.base import Scope, ScopeKind, SerializationWriter

_BRACKETS = {
    ScopeKind.OBJECT: ("{", "}"),
    ScopeKind.ARRAY: ("[", "]"),
}


class JsonSerializationWriter(SerializationWriter):
    """Writes an object graph as compact ``application/json``."""

    content_type = "application/json"

    def _format_string(self, value: str) -> str:
        return json.dumps(value, ensure_ascii=self.options.ensure_ascii)

    def _prefix(self, key: str | None, position: int) -> str:
        prefix = "," if position else ""
        if key is not None:
            prefix += self._format_string(key) + ":"
        return prefix

    def _emit_value(self, key: str | None, position: int, token: str) -> None:
        self._parts.append(self._prefix(key, position) + token)

    def _open_scope(self, kind: ScopeKind, key: str | None, position: int) -> None:
        self._parts.append(self._prefix(key, position) + _BRACKETS[kind][0])

    def _close_scope(self, scope: Scope) -> None:
        self._parts.append(_BRACKETS[scope.kind][1])
