"""Unit tests for graphwire.writer.registry: content-type normalization,
registration, lookup, error types and entry-point loading.
"""
from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

from graphwire.writer import (
    FormSerializationWriter,
    JsonSerializationWriter,
    TextSerializationWriter,
    WriterOptions,
)
from graphwire.writer.registry import (
    ContentTypeAlreadyRegisteredError,
    ContentTypeNotRegisteredError,
    SerializationWriterFactoryRegistry,
    default_registry,
    normalize_content_type,
)

_ENTRY_POINTS = "graphwire.writer.registry.importlib.metadata.entry_points"


class NotAWriter:
    """Does NOT subclass SerializationWriter."""


def _fresh_registry(name: str = "test") -> SerializationWriterFactoryRegistry:
    return SerializationWriterFactoryRegistry(name)


# ===========================================================================
# normalize_content_type
# ===========================================================================


class TestNormalizeContentType:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("application/json", "application/json"),
            ("Application/JSON", "application/json"),
            ("application/json; charset=utf-8", "application/json"),
            ("application/vnd.github+json", "application/json"),
            ("application/vnd.acme.v2+JSON; q=0.9", "application/json"),
            ("text/plain", "text/plain"),
            ("  text/plain  ", "text/plain"),
        ],
    )
    def test_normalization(self, raw: str, expected: str) -> None:
        assert normalize_content_type(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   "])
    def test_empty_is_rejected(self, raw: str) -> None:
        with pytest.raises(ValueError):
            normalize_content_type(raw)


# ===========================================================================
# Error types
# ===========================================================================


class TestErrors:
    def test_not_registered_is_key_error(self) -> None:
        error = ContentTypeNotRegisteredError("application/xml", "default")
        assert isinstance(error, KeyError)
        assert error.content_type == "application/xml"
        assert error.registry_name == "default"
        assert "application/xml" in str(error)

    def test_already_registered_is_value_error(self) -> None:
        error = ContentTypeAlreadyRegisteredError("application/json", "default")
        assert isinstance(error, ValueError)
        assert error.content_type == "application/json"
        assert "application/json" in str(error)


# ===========================================================================
# Registration
# ===========================================================================


class TestRegistration:
    def test_empty_registry(self) -> None:
        registry = _fresh_registry()
        assert len(registry) == 0
        assert registry.list_content_types() == []
        assert "test" in repr(registry)

    def test_decorator_registers_class_and_returns_it(self) -> None:
        registry = _fresh_registry()

        @registry.register("application/json")
        class CustomJson(JsonSerializationWriter):
            pass

        assert registry.get("application/json") is CustomJson
        assert CustomJson.__name__ == "CustomJson"

    def test_registration_key_is_normalized(self) -> None:
        registry = _fresh_registry()
        registry.register_class("Text/Plain; charset=utf-8", TextSerializationWriter)
        assert registry.list_content_types() == ["text/plain"]
        assert "text/plain" in registry

    def test_duplicate_raises_already_registered(self) -> None:
        registry = _fresh_registry()
        registry.register_class("application/json", JsonSerializationWriter)
        with pytest.raises(ContentTypeAlreadyRegisteredError):
            registry.register_class("application/vnd.other+json", JsonSerializationWriter)

    @pytest.mark.parametrize("candidate", [NotAWriter, "not-a-class"])
    def test_wrong_type_raises_type_error(self, candidate: object) -> None:
        registry = _fresh_registry()
        with pytest.raises(TypeError):
            registry.register_class("application/json", candidate)  # type: ignore[arg-type]

    def test_register_logs_debug_message(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        with caplog.at_level(logging.DEBUG, logger="graphwire.writer.registry"):
            registry.register_class("text/plain", TextSerializationWriter)
        assert "text/plain" in caplog.text

    def test_deregister(self) -> None:
        registry = _fresh_registry()
        registry.register_class("text/plain", TextSerializationWriter)
        registry.deregister("TEXT/PLAIN")
        assert "text/plain" not in registry
        assert len(registry) == 0

    def test_deregister_missing_raises_not_registered(self) -> None:
        with pytest.raises(ContentTypeNotRegisteredError):
            _fresh_registry().deregister("text/plain")

    def test_contains_ignores_non_strings_and_blanks(self) -> None:
        registry = _fresh_registry()
        assert 42 not in registry
        assert "" not in registry


# ===========================================================================
# Lookup
# ===========================================================================


class TestLookup:
    def test_get_missing_raises_not_registered(self) -> None:
        with pytest.raises(ContentTypeNotRegisteredError) as info:
            _fresh_registry().get("application/xml")
        assert info.value.content_type == "application/xml"

    def test_get_serialization_writer_returns_fresh_instances(self) -> None:
        registry = _fresh_registry()
        registry.register_class("application/json", JsonSerializationWriter)
        first = registry.get_serialization_writer("application/json")
        second = registry.get_serialization_writer("application/json")
        assert isinstance(first, JsonSerializationWriter)
        assert first is not second
        first.close()
        second.close()

    def test_writers_receive_registry_options(self) -> None:
        options = WriterOptions(ensure_ascii=True)
        registry = SerializationWriterFactoryRegistry("ascii", options=options)
        registry.register_class("application/json", JsonSerializationWriter)
        with registry.get_serialization_writer("application/json") as writer:
            assert writer.options is options
            writer.write_str_value(None, "é")
            assert writer.get_serialized_content() == b'"\\u00e9"'

    def test_vendor_type_resolves_to_suffix_writer(self) -> None:
        with default_registry.get_serialization_writer(
            "application/vnd.github+json; charset=utf-8"
        ) as writer:
            assert isinstance(writer, JsonSerializationWriter)

    def test_default_registry_contents(self) -> None:
        assert default_registry.list_content_types() == [
            "application/json",
            "application/x-www-form-urlencoded",
            "text/plain",
        ]
        assert default_registry.get("application/x-www-form-urlencoded") is (
            FormSerializationWriter
        )


# ===========================================================================
# load_entrypoints
# ===========================================================================


class TestLoadEntrypoints:
    def test_empty_group_does_nothing(self) -> None:
        registry = _fresh_registry()
        with patch(_ENTRY_POINTS, return_value=[]):
            registry.load_entrypoints("graphwire.writers.empty")
        assert len(registry) == 0

    def test_registers_valid_writer(self) -> None:
        registry = _fresh_registry()
        mock_ep = MagicMock()
        mock_ep.name = "text/csv"
        mock_ep.load.return_value = TextSerializationWriter

        with patch(_ENTRY_POINTS, return_value=[mock_ep]) as entry_points:
            registry.load_entrypoints()

        entry_points.assert_called_once_with(group="graphwire.writers")
        assert registry.get("text/csv") is TextSerializationWriter

    def test_skips_already_registered(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        registry.register_class("application/json", JsonSerializationWriter)
        mock_ep = MagicMock()
        mock_ep.name = "application/json"

        with patch(_ENTRY_POINTS, return_value=[mock_ep]):
            with caplog.at_level(logging.DEBUG, logger="graphwire.writer.registry"):
                registry.load_entrypoints()

        mock_ep.load.assert_not_called()
        assert "already registered" in caplog.text
        assert len(registry) == 1

    def test_load_failure_is_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        mock_ep = MagicMock()
        mock_ep.name = "application/xml"
        mock_ep.load.side_effect = ImportError("no module named xml_writer")

        with patch(_ENTRY_POINTS, return_value=[mock_ep]):
            with caplog.at_level(logging.ERROR, logger="graphwire.writer.registry"):
                registry.load_entrypoints()

        assert len(registry) == 0
        assert "application/xml" in caplog.text

    def test_wrong_class_is_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        mock_ep = MagicMock()
        mock_ep.name = "application/xml"
        mock_ep.load.return_value = NotAWriter

        with patch(_ENTRY_POINTS, return_value=[mock_ep]):
            with caplog.at_level(logging.WARNING, logger="graphwire.writer.registry"):
                registry.load_entrypoints()

        assert len(registry) == 0
        assert "could not be registered" in caplog.text

    def test_is_idempotent(self) -> None:
        registry = _fresh_registry()
        mock_ep = MagicMock()
        mock_ep.name = "text/csv"
        mock_ep.load.return_value = TextSerializationWriter

        with patch(_ENTRY_POINTS, return_value=[mock_ep]):
            registry.load_entrypoints()
            registry.load_entrypoints()

        assert len(registry) == 1
