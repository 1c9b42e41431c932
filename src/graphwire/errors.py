"""Error types raised while serializing an object graph.

Every error a writer raises derives from ``SerializationError`` so callers
can catch the whole family with a single ``except`` clause.  Errors carry
the offending value or location as attributes so that tooling can display
precise, actionable messages.
"""
from __future__ import annotations


class SerializationError(Exception):
    """Base class for all writer failures."""


class UnsupportedValueError(SerializationError):
    """A value cannot be represented in the writer's target format.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    value:
        The value that was rejected.
    key:
        The property name the value was written under, if any.
    """

    def __init__(self, message: str, value: object = None, key: str | None = None) -> None:
        self.value = value
        self.key = key
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.key:
            return f"{message} (property {self.key!r})"
        return message


class IncompleteDocumentError(SerializationError):
    """Content was requested while the document was not finished.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    open_scopes:
        Number of object/array scopes still open when content was requested.
    """

    def __init__(self, message: str, open_scopes: int = 0) -> None:
        self.open_scopes = open_scopes
        super().__init__(message)


class CyclicGraphError(SerializationError):
    """An object was reached again while it was still being serialized.

    Parameters
    ----------
    path:
        Property names from the root object down to the repeated reference.
    """

    def __init__(self, path: tuple[str, ...]) -> None:
        self.path = path
        where = ".".join(path) if path else "<root>"
        super().__init__(f"Object graph contains a cycle at {where}")
