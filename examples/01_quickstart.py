#!/usr/bin/env python3
"""Example: quickstart for graphwire

Minimal working example: define a model with declared properties and an
additional-data bag, serialize it to JSON and to a form body, then round
trip a free-form tree.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install graphwire
"""
from __future__ import annotations

from datetime import date

import graphwire
from graphwire.abstractions import AdditionalData, AdditionalDataHolder, Float32, Parsable
from graphwire.writer import SerializationWriter


class User(Parsable, AdditionalDataHolder):
    def __init__(self, id: str, display_name: str, birthday: date | None = None) -> None:
        self.id = id
        self.display_name = display_name
        self.birthday = birthday
        self._additional_data = AdditionalData()

    @property
    def additional_data(self) -> AdditionalData:
        return self._additional_data

    def serialize(self, writer: SerializationWriter) -> None:
        writer.write_str_value("id", self.id)
        writer.write_str_value("displayName", self.display_name)
        writer.write_date_value("birthday", self.birthday)
        writer.write_additional_data_value(self.additional_data)


def main() -> None:
    print(f"graphwire version: {graphwire.__version__}")

    # Step 1: Declared properties plus dynamically added ones
    user = User("48d31887", "Peter Pan", date(2017, 9, 4))
    user.additional_data["averageScore"] = Float32(78.142)
    user.additional_data["aliases"] = ["alias1", "alias2"]
    print(graphwire.serialize(user).decode("utf-8"))

    # Step 2: The same object as a form body (no nested objects allowed)
    form_user = User("1", "Wendy Darling")
    print(graphwire.serialize(form_user, "application/x-www-form-urlencoded").decode("utf-8"))

    # Step 3: Free-form trees keep their key order
    tree = graphwire.parse_untyped('{"z": 1, "a": [true, null, 4.5]}')
    print(graphwire.serialize_untyped(tree).decode("utf-8"))


if __name__ == "__main__":
    main()
