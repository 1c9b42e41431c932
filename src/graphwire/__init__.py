"""graphwire: object-graph serialization for generated API clients.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import graphwire

    # Serialize a Parsable to compact JSON
    body = graphwire.serialize(user)

    # Serialize a free-form tree
    tree = graphwire.parse_untyped(b'{"tags": ["a", "b"], "score": 4.5}')
    body = graphwire.serialize_untyped(tree)

    graphwire.__version__
    '0.1.0'
"""
from __future__ import annotations

from typing import TYPE_CHECKING

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from graphwire.abstractions.parsable import Parsable
    from graphwire.untyped.nodes import UntypedNode


def serialize(value: "Parsable | None", content_type: str = "application/json") -> bytes:
    """Serialize a ``Parsable`` with the writer registered for ``content_type``.

    Parameters
    ----------
    value:
        The root object.  ``None`` serializes as null.
    content_type:
        Media type of the output; defaults to compact JSON.

    Returns
    -------
    bytes
        The encoded document.

    Raises
    ------
    graphwire.errors.SerializationError
        If the graph cannot be encoded (unsupported value, cycle).
    graphwire.writer.ContentTypeNotRegisteredError
        If no writer handles ``content_type``.
    """
    from graphwire.writer.registry import default_registry

    with default_registry.get_serialization_writer(content_type) as writer:
        writer.write_object_value(None, value)
        return writer.get_serialized_content()


def serialize_untyped(
    value: "UntypedNode | None", content_type: str = "application/json"
) -> bytes:
    """Serialize an untyped node tree.

    Parameters
    ----------
    value:
        The root node.
    content_type:
        Media type of the output; defaults to compact JSON.

    Returns
    -------
    bytes
        The encoded document, with object keys in their stored order.
    """
    from graphwire.writer.registry import default_registry

    with default_registry.get_serialization_writer(content_type) as writer:
        writer.write_untyped_value(None, value)
        return writer.get_serialized_content()


def parse_untyped(content: str | bytes) -> "UntypedNode":
    """Decode a JSON document into an untyped node tree.

    Parameters
    ----------
    content:
        JSON text or UTF-8 bytes.

    Returns
    -------
    UntypedNode
        The decoded tree, keeping object key order.
    """
    from graphwire.untyped.convert import parse_untyped as _parse_untyped

    return _parse_untyped(content)


__all__ = [
    "__version__",
    "serialize",
    "serialize_untyped",
    "parse_untyped",
]
