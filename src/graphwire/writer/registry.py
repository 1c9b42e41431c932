"""Content-type registry for serialization writers.

Maps a content type such as ``application/json`` to the writer class that
produces it.  Writers register either with the ``@register`` decorator at
import time, or through package entry-points declared in the
"graphwire.writers" group.

Content types are normalized before lookup: parameters are dropped,
letters are lower-cased and vendor types collapse onto their structured
suffix, so ``application/vnd.github+json; charset=utf-8`` resolves to the
``application/json`` writer.

Example
-------
Register a writer with the decorator::

    from graphwire.writer.registry import default_registry

    @default_registry.register("application/xml")
    class XmlSerializationWriter(SerializationWriter):
        ...

Load all installed writers via entry-points::

    default_registry.load_entrypoints("graphwire.writers")

Create a writer for a response body::

    writer = default_registry.get_serialization_writer("application/json")
"""
from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable

from graphwire.writer.base import SerializationWriter
from graphwire.writer.form_writer import FormSerializationWriter
from graphwire.writer.json_writer import JsonSerializationWriter
from graphwire.writer.options import WriterOptions
from graphwire.writer.text_writer import TextSerializationWriter

logger = logging.getLogger(__name__)

WriterClass = type[SerializationWriter]


def normalize_content_type(content_type: str) -> str:
    """Return the registry key for ``content_type``.

    >>> normalize_content_type("Application/VND.acme.v2+JSON; charset=utf-8")
    'application/json'
    """
    if not content_type or not content_type.strip():
        raise ValueError("Content type must be a non-empty string")
    media_type = content_type.split(";", 1)[0].strip().lower()
    main, _, sub = media_type.partition("/")
    if sub.startswith("vnd.") and "+" in sub:
        sub = sub.rsplit("+", 1)[1]
    return f"{main}/{sub}" if sub else main


class ContentTypeNotRegisteredError(KeyError):
    """Raised when no writer is registered for a content type."""

    def __init__(self, content_type: str, registry_name: str) -> None:
        self.content_type = content_type
        self.registry_name = registry_name
        super().__init__(
            f"No serialization writer is registered for {content_type!r} "
            f"in the {registry_name!r} registry. "
            "Check that the package providing it is installed and its entry-points are declared."
        )


class ContentTypeAlreadyRegisteredError(ValueError):
    """Raised when registering a content type that already has a writer."""

    def __init__(self, content_type: str, registry_name: str) -> None:
        self.content_type = content_type
        self.registry_name = registry_name
        super().__init__(
            f"Content type {content_type!r} is already registered in the {registry_name!r} "
            "registry. Deregister the existing writer first."
        )


class SerializationWriterFactoryRegistry:
    """Registry of writer classes keyed by normalized content type.

    Parameters
    ----------
    name:
        A human-readable name for this registry (used in error messages).
    options:
        Options handed to every writer the registry creates.
    """

    def __init__(self, name: str = "default", options: WriterOptions | None = None) -> None:
        self._name = name
        self.options = options or WriterOptions()
        self._writers: dict[str, WriterClass] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, content_type: str) -> Callable[[WriterClass], WriterClass]:
        """Return a class decorator that registers the decorated writer.

        Raises
        ------
        ContentTypeAlreadyRegisteredError
            If ``content_type`` already has a writer.
        TypeError
            If the decorated class does not subclass ``SerializationWriter``.
        """

        def decorator(cls: WriterClass) -> WriterClass:
            self.register_class(content_type, cls)
            return cls

        return decorator

    def register_class(self, content_type: str, cls: WriterClass) -> None:
        """Register ``cls`` for ``content_type`` without decorator syntax."""
        key = normalize_content_type(content_type)
        if key in self._writers:
            raise ContentTypeAlreadyRegisteredError(key, self._name)
        if not (isinstance(cls, type) and issubclass(cls, SerializationWriter)):
            raise TypeError(
                f"Cannot register {cls!r} for {key!r}: "
                "it must be a subclass of SerializationWriter."
            )
        self._writers[key] = cls
        logger.debug("Registered writer %r -> %s in registry %r", key, cls.__qualname__, self._name)

    def deregister(self, content_type: str) -> None:
        """Remove the writer registered for ``content_type``."""
        key = normalize_content_type(content_type)
        if key not in self._writers:
            raise ContentTypeNotRegisteredError(key, self._name)
        del self._writers[key]
        logger.debug("Deregistered writer %r from registry %r", key, self._name)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, content_type: str) -> WriterClass:
        """Return the writer class registered for ``content_type``."""
        key = normalize_content_type(content_type)
        try:
            return self._writers[key]
        except KeyError:
            raise ContentTypeNotRegisteredError(key, self._name) from None

    def get_serialization_writer(self, content_type: str) -> SerializationWriter:
        """Return a new writer for ``content_type``, configured with ``options``."""
        return self.get(content_type)(self.options)

    def list_content_types(self) -> list[str]:
        """Return registered content types in alphabetical order."""
        return sorted(self._writers)

    def __contains__(self, content_type: object) -> bool:
        if not isinstance(content_type, str):
            return False
        try:
            return normalize_content_type(content_type) in self._writers
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._writers)

    def __repr__(self) -> str:
        return (
            f"SerializationWriterFactoryRegistry(name={self._name!r}, "
            f"content_types={self.list_content_types()})"
        )

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str = "graphwire.writers") -> None:
        """Register writers declared as package entry-points.

        The entry-point name is the content type.  Content types that are
        already registered are skipped, so repeated calls are idempotent.
        Entry-points that fail to import or do not name a writer class are
        logged and skipped.

        Example
        -------
        In a downstream package's ``pyproject.toml``::

            [project.entry-points."graphwire.writers"]
            "application/xml" = "my_package.xml:XmlSerializationWriter"
        """
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self:
                logger.debug(
                    "Entry-point %r already registered in %r; skipping.", ep.name, self._name
                )
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception(
                    "Failed to load entry-point %r from group %r; skipping.", ep.name, group
                )
                continue
            try:
                self.register_class(ep.name, cls)
            except (ContentTypeAlreadyRegisteredError, TypeError, ValueError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered in registry %r; skipping.",
                    ep.name,
                    self._name,
                )


def _build_default_registry() -> SerializationWriterFactoryRegistry:
    registry = SerializationWriterFactoryRegistry("default")
    for cls in (JsonSerializationWriter, TextSerializationWriter, FormSerializationWriter):
        registry.register_class(cls.content_type, cls)
    return registry


default_registry = _build_default_registry()
