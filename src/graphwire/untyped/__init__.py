"""Untyped value model.

Exports the node types for schema-free subtrees and the helpers that
convert them to and from plain Python data and JSON text.
"""
from __future__ import annotations

from graphwire.untyped.convert import from_python, parse_untyped, to_python
from graphwire.untyped.nodes import (
    UNTYPED_NODE_TYPES,
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

__all__ = [
    # Node types
    "UntypedNode",
    "UNTYPED_NODE_TYPES",
    "UntypedNull",
    "UntypedBoolean",
    "UntypedInteger",
    "UntypedLong",
    "UntypedFloat",
    "UntypedDouble",
    "UntypedString",
    "UntypedArray",
    "UntypedObject",
    # Conversion
    "from_python",
    "to_python",
    "parse_untyped",
]
