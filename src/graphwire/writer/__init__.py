"""Serialization writers.

Exports the writer base class, the built-in JSON, plain-text and form
writers, writer options, the error types and the content-type registry.
"""
from __future__ import annotations

from graphwire.errors import (
    CyclicGraphError,
    IncompleteDocumentError,
    SerializationError,
    UnsupportedValueError,
)
from graphwire.writer.base import Scope, ScopeKind, SerializationWriter, iso_duration
from graphwire.writer.form_writer import FormSerializationWriter
from graphwire.writer.json_writer import JsonSerializationWriter
from graphwire.writer.options import DuplicateKeyPolicy, WriterOptions
from graphwire.writer.registry import (
    ContentTypeAlreadyRegisteredError,
    ContentTypeNotRegisteredError,
    SerializationWriterFactoryRegistry,
    default_registry,
    normalize_content_type,
)
from graphwire.writer.text_writer import TextSerializationWriter

__all__ = [
    # Writers
    "SerializationWriter",
    "JsonSerializationWriter",
    "TextSerializationWriter",
    "FormSerializationWriter",
    "Scope",
    "ScopeKind",
    "iso_duration",
    # Configuration
    "WriterOptions",
    "DuplicateKeyPolicy",
    # Errors
    "SerializationError",
    "UnsupportedValueError",
    "IncompleteDocumentError",
    "CyclicGraphError",
    # Registry
    "SerializationWriterFactoryRegistry",
    "ContentTypeNotRegisteredError",
    "ContentTypeAlreadyRegisteredError",
    "default_registry",
    "normalize_content_type",
]
