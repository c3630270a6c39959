"""Tests for change record → write operation translation."""

import pytest

from core.errors.exceptions import TranslationError
from replicator.schemas.operations import Delete, OpKind, Upsert
from replicator.schemas.records import ChangeRecord, TypedValue
from replicator.translation.translator import derive_document_id, translate


def keys(**values):
    return {name: TypedValue.model_validate(raw) for name, raw in values.items()}


class TestDeriveDocumentId:
    def test_single_string_key(self):
        assert derive_document_id(keys(pk={"S": "A"})) == "A"

    def test_composite_key_joined_in_order(self):
        assert derive_document_id(keys(pk={"S": "A"}, sk={"N": "7"})) == "A:7"
        assert derive_document_id(keys(sk={"N": "7"}, pk={"S": "A"})) == "7:A"

    def test_number_keeps_text(self):
        assert derive_document_id(keys(pk={"N": "1.50"})) == "1.50"

    def test_binary_key_is_base64(self):
        assert derive_document_id(keys(pk={"B": "AAE="})) == "AAE="

    def test_deterministic(self):
        attrs = keys(pk={"S": "A"}, sk={"S": "B"})
        assert derive_document_id(attrs) == derive_document_id(dict(attrs))

    def test_empty_keys(self):
        with pytest.raises(TranslationError) as exc_info:
            derive_document_id({}, "111")

        assert exc_info.value.reason == "Keys cannot be empty"
        assert exc_info.value.sequence_number == "111"

    def test_unsupported_key_type(self):
        with pytest.raises(TranslationError, match="unsupported type BOOL"):
            derive_document_id(keys(pk={"BOOL": True}))


class TestTranslate:
    def test_insert_becomes_upsert(self):
        record = ChangeRecord(
            event_kind="INSERT",
            key_attributes=keys(pk={"S": "A"}),
            new_image=keys(pk={"S": "A"}, name={"S": "Alice"}, age={"N": "30"}),
            sequence_number="111",
        )
        operation = translate(record)

        assert operation == Upsert(id="A", document={"pk": "A", "name": "Alice", "age": 30})
        assert operation.op_kind is OpKind.INDEX

    def test_modify_becomes_upsert(self):
        record = ChangeRecord(
            event_kind="MODIFY",
            key_attributes=keys(pk={"S": "A"}),
            new_image=keys(pk={"S": "A"}, name={"S": "Bob"}),
        )
        assert translate(record) == Upsert(id="A", document={"pk": "A", "name": "Bob"})

    def test_remove_becomes_delete(self):
        record = ChangeRecord(event_kind="REMOVE", key_attributes=keys(pk={"S": "A"}, sk={"N": "2"}))
        assert translate(record) == Delete(id="A:2")

    def test_remove_ignores_image(self):
        record = ChangeRecord(
            event_kind="REMOVE",
            key_attributes=keys(pk={"S": "A"}),
            new_image=keys(pk={"S": "A"}),
        )
        assert translate(record) == Delete(id="A")

    @pytest.mark.parametrize("image", [None, {}])
    def test_upsert_without_image(self, image):
        record = ChangeRecord(
            event_kind="INSERT",
            key_attributes=keys(pk={"S": "A"}),
            new_image=image,
            sequence_number="222",
        )
        with pytest.raises(TranslationError) as exc_info:
            translate(record)

        assert str(exc_info.value) == "NewImage cannot be null, sequenceNumber:222"


class TestSequenceNumberPropagation:
    def test_upsert_carries_sequence_number(self):
        record = ChangeRecord(
            event_kind="INSERT",
            key_attributes=keys(pk={"S": "A"}),
            new_image=keys(pk={"S": "A"}),
            sequence_number="111",
        )
        assert translate(record).sequence_number == "111"

    def test_delete_carries_sequence_number(self):
        record = ChangeRecord(event_kind="REMOVE", key_attributes=keys(pk={"S": "A"}), sequence_number="222")
        assert translate(record).sequence_number == "222"
