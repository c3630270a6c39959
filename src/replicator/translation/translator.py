"""Change record → write operation translation."""

from collections.abc import Mapping

from core.errors.exceptions import TranslationError
from replicator.schemas.operations import Delete, Upsert, WriteOperation
from replicator.schemas.records import ChangeRecord, EventKind, TypedValue
from replicator.translation.converter import convert_binary, convert_map

KEY_SEPARATOR = ":"


def _key_part(name: str, value: TypedValue, sequence_number: str | None) -> str:
    kind = value.kind
    if kind == "S":
        return value.S
    if kind == "N":
        return value.N
    if kind == "B":
        return convert_binary(value.B)
    raise TranslationError(
        f"Key attribute '{name}' has unsupported type {kind}", sequence_number
    )


def derive_document_id(
    key_attributes: Mapping[str, TypedValue],
    sequence_number: str | None = None,
) -> str:
    """
    Join the string form of every key value with ``:`` in delivery order.

    Identical key attributes (in the same order) always give the same id,
    which is what makes redelivery of a batch idempotent.

    Raises:
        TranslationError: no key attributes, or a key value that is not S/N/B
    """
    if not key_attributes:
        raise TranslationError("Keys cannot be empty", sequence_number)
    return KEY_SEPARATOR.join(
        _key_part(name, value, sequence_number) for name, value in key_attributes.items()
    )


def translate(record: ChangeRecord) -> WriteOperation:
    """
    Translate one change record into an upsert or a delete.

    REMOVE never looks at ``new_image``.

    Raises:
        TranslationError: the record cannot produce an operation
    """
    document_id = derive_document_id(record.key_attributes, record.sequence_number)

    if record.event_kind is EventKind.REMOVE:
        return Delete(id=document_id, sequence_number=record.sequence_number)

    if not record.new_image:
        raise TranslationError("NewImage cannot be null", record.sequence_number)

    return Upsert(
        id=document_id,
        document=convert_map(record.new_image),
        sequence_number=record.sequence_number,
    )
