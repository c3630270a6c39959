"""Tests for typed attribute values and change records."""

import pytest
from pydantic import ValidationError

from replicator.schemas.records import ChangeRecord, EventKind, TypedValue


class TestTypedValue:
    def test_scalar_kinds(self):
        assert TypedValue(S="Alice").kind == "S"
        assert TypedValue(N="42").kind == "N"
        assert TypedValue(BOOL=False).kind == "BOOL"
        assert TypedValue(NULL=True).kind == "NULL"

    def test_value_returns_populated_tag(self):
        assert TypedValue(S="Alice").value == "Alice"
        assert TypedValue(BOOL=False).value is False

    def test_nested_values(self):
        value = TypedValue.model_validate({"M": {"tags": {"L": [{"S": "a"}, {"N": "1"}]}}})
        assert value.kind == "M"
        assert value.M["tags"].kind == "L"
        assert value.M["tags"].L[1].N == "1"

    def test_binary_is_base64_decoded(self):
        assert TypedValue.model_validate({"B": "AAE="}).B == b"\x00\x01"

    def test_binary_set_is_base64_decoded(self):
        assert TypedValue.model_validate({"BS": ["AA==", "AQ=="]}).BS == [b"\x00", b"\x01"]

    def test_invalid_base64_rejected(self):
        with pytest.raises(ValidationError, match="base64"):
            TypedValue.model_validate({"B": "not base64!"})

    def test_no_tag_rejected(self):
        with pytest.raises(ValidationError, match="exactly one type tag"):
            TypedValue()

    def test_two_tags_rejected(self):
        with pytest.raises(ValidationError, match="exactly one type tag"):
            TypedValue(S="a", N="1")

    def test_unknown_tag_rejected(self):
        with pytest.raises(ValidationError):
            TypedValue.model_validate({"X": "a"})

    @pytest.mark.parametrize("text", ["abc", "NaN", "Infinity"])
    def test_number_must_be_finite_decimal(self, text):
        with pytest.raises(ValidationError):
            TypedValue(N=text)

    def test_number_set_validated(self):
        with pytest.raises(ValidationError):
            TypedValue(NS=["1", "x"])

    def test_is_frozen(self):
        value = TypedValue(S="a")
        with pytest.raises(ValidationError):
            value.S = "b"


class TestChangeRecord:
    def test_from_stream_record(self, make_stream_record):
        raw = make_stream_record(
            keys={"pk": {"S": "A"}, "sk": {"N": "1"}},
            new_image={"pk": {"S": "A"}, "sk": {"N": "1"}, "name": {"S": "Alice"}},
        )
        record = ChangeRecord.from_stream_record(raw)

        assert record.event_kind is EventKind.INSERT
        assert list(record.key_attributes) == ["pk", "sk"]
        assert record.new_image["name"].S == "Alice"
        assert record.sequence_number == "111"
        assert record.event_id == "evt-1"

    def test_remove_without_image(self, make_stream_record):
        record = ChangeRecord.from_stream_record(make_stream_record(event_name="REMOVE"))
        assert record.event_kind is EventKind.REMOVE
        assert record.new_image is None

    def test_unknown_event_name(self, make_stream_record):
        with pytest.raises(ValidationError):
            ChangeRecord.from_stream_record(make_stream_record(event_name="UPSERT"))

    def test_missing_body_gives_empty_keys(self):
        record = ChangeRecord.from_stream_record({"eventName": "REMOVE"})
        assert record.key_attributes == {}
        assert record.sequence_number is None


class TestRemoveRecordImage:
    def test_remove_with_malformed_image_still_parses(self, make_stream_record):
        raw = make_stream_record(
            event_name="REMOVE",
            new_image={"pk": {"S": "A", "N": "1"}},
        )
        record = ChangeRecord.from_stream_record(raw)

        assert record.event_kind is EventKind.REMOVE
        assert record.new_image is None

    def test_insert_with_malformed_image_is_rejected(self, make_stream_record):
        raw = make_stream_record(new_image={"pk": {"S": "A", "N": "1"}})
        with pytest.raises(ValidationError):
            ChangeRecord.from_stream_record(raw)
