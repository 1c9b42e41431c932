"""Contracts between domain objects and serialization writers.

Exports the ``Parsable`` and ``AdditionalDataHolder`` base classes, the
additional-data bag with its tagged values, and the numeric width wrappers.
"""
from __future__ import annotations

from graphwire.abstractions.additional_data import (
    AdditionalData,
    AdditionalValue,
    ValueKind,
    classify,
)
from graphwire.abstractions.parsable import AdditionalDataHolder, Parsable
from graphwire.numeric import Float32, Int64

__all__ = [
    "Parsable",
    "AdditionalDataHolder",
    "AdditionalData",
    "AdditionalValue",
    "ValueKind",
    "classify",
    "Int64",
    "Float32",
]
