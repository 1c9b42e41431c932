"""Unit tests for graphwire.abstractions.additional_data: classification and
the mapping behavior of the bag.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum, IntEnum

import pytest

from graphwire.abstractions import (
    AdditionalData,
    Float32,
    Int64,
    ValueKind,
    classify,
)
from graphwire.errors import CyclicGraphError, UnsupportedValueError
from graphwire.untyped import UntypedObject
from tests.entities import Counter, SampleEntity


class Level(IntEnum):
    LOW = 1


class Mode(str, Enum):
    FAST = "fast"


class TestClassify:
    @pytest.mark.parametrize(
        ("value", "kind"),
        [
            (None, ValueKind.NULL),
            (True, ValueKind.BOOLEAN),
            (4, ValueKind.INT32),
            (2**31, ValueKind.INT64),
            (Int64(4), ValueKind.INT64),
            (Float32(78.142), ValueKind.FLOAT32),
            (330.7, ValueKind.FLOAT64),
            (Decimal("1.10"), ValueKind.DECIMAL),
            ("text", ValueKind.STRING),
            (uuid.UUID(int=0), ValueKind.UUID),
            (b"raw", ValueKind.BYTES),
            (datetime(2024, 1, 1), ValueKind.DATETIME),
            (date(2024, 1, 1), ValueKind.DATE),
            (time(12, 0), ValueKind.TIME),
            (timedelta(seconds=1), ValueKind.DURATION),
            (Level.LOW, ValueKind.ENUM),
            (Mode.FAST, ValueKind.ENUM),
            (UntypedObject(()), ValueKind.UNTYPED),
            (("a", 1), ValueKind.COLLECTION),
        ],
    )
    def test_kinds(self, value: object, kind: ValueKind) -> None:
        assert classify(value).kind is kind

    def test_parsable(self) -> None:
        assert classify(Counter(1, 1.0)).kind is ValueKind.OBJECT

    def test_payload_is_not_converted(self) -> None:
        value = Float32(78.142)
        assert classify(value).value is value

    def test_collection_items_are_classified(self) -> None:
        classified = classify(["a", 1, [None]])
        assert [item.kind for item in classified.items] == [
            ValueKind.STRING,
            ValueKind.INT32,
            ValueKind.COLLECTION,
        ]
        assert classified.items[2].items[0].kind is ValueKind.NULL

    @pytest.mark.parametrize("value", [{"a": 1}, {1, 2}, object()])
    def test_unsupported_types(self, value: object) -> None:
        with pytest.raises(UnsupportedValueError):
            classify(value)


class TestAdditionalData:
    def test_put_and_get(self) -> None:
        bag = AdditionalData()
        bag.put("nickName", "Peter Pan")
        assert bag["nickName"] == "Peter Pan"
        assert bag.get("missing") is None
        assert bag.kind_of("nickName") is ValueKind.STRING

    def test_put_overwrites(self) -> None:
        bag = AdditionalData({"count": 1})
        bag["count"] = 2.5
        assert bag["count"] == 2.5
        assert bag.kind_of("count") is ValueKind.FLOAT64
        assert len(bag) == 1

    def test_iteration_follows_insertion_order(self) -> None:
        bag = AdditionalData()
        for key in ("c", "a", "b"):
            bag[key] = key
        assert list(bag) == ["c", "a", "b"]
        assert [key for key, _ in bag.entries()] == ["c", "a", "b"]

    def test_delete(self) -> None:
        bag = AdditionalData({"a": 1})
        del bag["a"]
        assert "a" not in bag

    @pytest.mark.parametrize("key", ["", 3, None])
    def test_keys_must_be_non_empty_strings(self, key: object) -> None:
        with pytest.raises(ValueError):
            AdditionalData().put(key, 1)  # type: ignore[arg-type]

    def test_unsupported_value_is_rejected_at_insertion(self) -> None:
        bag = AdditionalData()
        with pytest.raises(UnsupportedValueError):
            bag["meta"] = {"free": "form"}
        assert "meta" not in bag

    def test_repr(self) -> None:
        assert "AdditionalData" in repr(AdditionalData({"a": 1}))

    def test_entries_reflect_mutation_after_put(self) -> None:
        aliases = ["alias1"]
        bag = AdditionalData({"aliases": aliases})
        aliases.append("alias2")
        (key, classified), = list(bag.entries())
        assert key == "aliases"
        assert [item.value for item in classified.items] == ["alias1", "alias2"]
        assert bag["aliases"] is aliases

    @pytest.mark.timeout(5)
    def test_int_subclasses_are_classified_by_width(self) -> None:
        class Count(int):
            pass

        bag = AdditionalData({"wssId": Int64(2**62), "small": Count(5), "big": Count(2**40)})
        assert bag.kind_of("wssId") is ValueKind.INT64
        assert bag.kind_of("small") is ValueKind.INT32
        assert bag.kind_of("big") is ValueKind.INT64


class TestSelfContainingCollections:
    def test_self_containing_list_is_rejected_at_put(self) -> None:
        loop: list[object] = ["a"]
        loop.append(loop)
        with pytest.raises(CyclicGraphError) as info:
            AdditionalData().put("loop", loop)
        assert info.value.path == ("[1]",)

    def test_nested_cycle_reports_path(self) -> None:
        outer: list[object] = []
        inner: list[object] = [outer]
        outer.append(inner)
        with pytest.raises(CyclicGraphError) as info:
            classify(outer)
        assert info.value.path == ("[0]", "[0]")

    def test_shared_list_in_sibling_positions_is_not_a_cycle(self) -> None:
        shared = [1, 2]
        classified = classify([shared, shared])
        assert [item.kind for item in classified.items] == [
            ValueKind.COLLECTION,
            ValueKind.COLLECTION,
        ]

    def test_cycle_created_after_put_fails_at_flush(self, json_writer) -> None:
        values: list[object] = []
        entity = SampleEntity(id="x")
        entity.additional_data["values"] = values
        values.append(values)
        with pytest.raises(CyclicGraphError):
            json_writer.write_object_value(None, entity)
