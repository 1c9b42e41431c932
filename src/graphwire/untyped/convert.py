"""Conversion between untyped nodes and plain Python data.

``from_python`` builds a node tree from the structures ``json.loads`` and
``yaml.safe_load`` return; ``to_python`` goes the other way.
``parse_untyped`` is the reader paired with the JSON writer: it decodes a
JSON document into a node tree, keeping object key order.

Numeric kinds on the way in follow these rules:

- ``bool`` becomes ``UntypedBoolean`` (checked before ``int``)
- ``Int64`` and ints outside the 32-bit range become ``UntypedLong``
- other ints become ``UntypedInteger``
- ``Float32`` becomes ``UntypedFloat``, other floats ``UntypedDouble``

JSON numbers written with a fraction or exponent decode as doubles.  The
JSON writer always gives integral doubles a fraction (``47.0``), so a
double survives a write/read cycle with its kind intact.
"""
from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

from graphwire.errors import UnsupportedValueError
from graphwire.numeric import INT32_RANGE, INT64_RANGE, Float32, Int64, in_range
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


def from_python(value: Any) -> UntypedNode:
    """Build an untyped node tree from plain Python data.

    Raises
    ------
    UnsupportedValueError
        If ``value`` (or anything nested in it) has no untyped counterpart,
        an int does not fit in 64 bits, a float is not finite or an object
        key is empty.
    """
    if isinstance(value, UNTYPED_NODE_TYPES):
        return value
    if value is None:
        return UntypedNull()
    if isinstance(value, bool):
        return UntypedBoolean(value)
    if isinstance(value, int):
        if not in_range(value, INT64_RANGE):
            raise UnsupportedValueError(f"Integer {value} does not fit in 64 bits", value=value)
        if isinstance(value, Int64) or not in_range(value, INT32_RANGE):
            return UntypedLong(int(value))
        return UntypedInteger(int(value))
    if isinstance(value, float) and not math.isfinite(value):
        raise UnsupportedValueError(f"{value!r} has no JSON representation", value=value)
    if isinstance(value, Float32):
        return UntypedFloat(float(value))
    if isinstance(value, float):
        return UntypedDouble(value)
    if isinstance(value, str):
        return UntypedString(value)
    if isinstance(value, Mapping):
        pairs = []
        for key, item in value.items():
            if not isinstance(key, str) or not key:
                raise UnsupportedValueError(
                    f"Object keys must be non-empty strings, got {key!r}", value=key
                )
            pairs.append((key, from_python(item)))
        return UntypedObject(tuple(pairs))
    if isinstance(value, (list, tuple)):
        return UntypedArray(tuple(from_python(item) for item in value))
    raise UnsupportedValueError(
        f"Cannot represent {type(value).__name__} as an untyped value", value=value
    )


def to_python(node: UntypedNode) -> Any:
    """Convert an untyped node tree into plain Python data."""
    if isinstance(node, UntypedObject):
        return {key: to_python(child) for key, child in node.items()}
    if isinstance(node, UntypedArray):
        return [to_python(child) for child in node]
    if isinstance(node, UntypedNull):
        return None
    return node.value


def _reject_constant(name: str) -> float:
    raise UnsupportedValueError(f"JSON documents cannot contain {name}", value=name)


def parse_untyped(content: str | bytes) -> UntypedNode:
    """Decode a JSON document into an untyped node tree.

    Parameters
    ----------
    content:
        JSON text, or UTF-8 encoded bytes.

    Raises
    ------
    json.JSONDecodeError
        If ``content`` is not valid JSON.
    UnsupportedValueError
        If the document holds ``NaN``/``Infinity``, a number too large for
        its kind or an empty object key.
    """
    if isinstance(content, (bytes, bytearray)):
        content = content.decode("utf-8")
    data = json.loads(content, object_pairs_hook=dict, parse_constant=_reject_constant)
    return from_python(data)
