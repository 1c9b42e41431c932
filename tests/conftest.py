"""Shared test fixtures for graphwire.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

import json
from collections.abc import Callable, Iterator

import pytest

from graphwire.abstractions import Parsable
from graphwire.writer import JsonSerializationWriter, SerializationWriter
from tests.entities import MyEnum, SampleEntity


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "graphwire"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def json_writer() -> Iterator[JsonSerializationWriter]:
    """Yield a fresh JSON writer and close it after the test."""
    with JsonSerializationWriter() as writer:
        yield writer


@pytest.fixture()
def to_json() -> Callable[[Parsable], str]:
    """Return a helper that serializes a Parsable to a JSON string."""

    def _to_json(value: Parsable, writer: SerializationWriter | None = None) -> str:
        with writer or JsonSerializationWriter() as active:
            active.write_object_value(None, value)
            return active.get_serialized_content().decode("utf-8")

    return _to_json


@pytest.fixture()
def to_data(to_json: Callable[[Parsable], str]) -> Callable[[Parsable], object]:
    """Return a helper that serializes a Parsable and decodes the JSON."""
    return lambda value: json.loads(to_json(value))


@pytest.fixture()
def manager() -> SampleEntity:
    """Return the manager entity placed in additional data by scenarios."""
    return SampleEntity(id="manager_id", my_enum=MyEnum.MY_VALUE1)
