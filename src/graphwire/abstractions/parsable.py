"""The contract domain objects implement to take part in serialization."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from graphwire.abstractions.additional_data import AdditionalData
    from graphwire.writer.base import SerializationWriter


class Parsable(ABC):
    """A domain object that can write its own properties to a writer.

    ``serialize`` must write the declared properties in declaration order
    and then hand the object's additional data to
    ``writer.write_additional_data_value``.  It must not modify the object:
    the same instance may be serialized any number of times.
    """

    @abstractmethod
    def serialize(self, writer: "SerializationWriter") -> None:
        """Write this object's properties to ``writer``."""


class AdditionalDataHolder(ABC):
    """An object carrying properties outside its static schema."""

    @property
    @abstractmethod
    def additional_data(self) -> "AdditionalData":
        """Return the bag of properties not declared by the schema."""
