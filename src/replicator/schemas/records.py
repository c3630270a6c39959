"""
Change-record schemas for the replicator.

Contains Pydantic models for the type-tagged attribute values and the
change records delivered by the change log. The wire shape follows the
DynamoDB stream format::

    {
        "eventID": "...",
        "eventName": "INSERT",
        "dynamodb": {
            "Keys": {"pk": {"S": "A"}},
            "NewImage": {"pk": {"S": "A"}, "name": {"S": "Alice"}},
            "SequenceNumber": "111"
        }
    }
"""

import base64
import binascii
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Tag names in the order they are checked; exactly one is populated per value
VALUE_TAGS = ("S", "N", "B", "BOOL", "NULL", "L", "M", "SS", "NS", "BS")


def _decode_binary(value: Any) -> Any:
    """Binary values arrive base64-encoded on the wire."""
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"binary value is not valid base64: {e}") from e
    return value


def _check_decimal(text: str) -> str:
    try:
        number = Decimal(text)
    except (InvalidOperation, TypeError):
        raise ValueError(f"number value is not decimal text: {text!r}") from None
    if not number.is_finite():
        raise ValueError(f"number value must be finite: {text!r}")
    return text


class TypedValue(BaseModel):
    """A type-tagged attribute value.

    Exactly one tag is populated; this is checked when the value is built,
    so downstream code can rely on ``kind`` without re-validating.

    Example:
        >>> TypedValue(S="Alice").kind
        'S'
        >>> TypedValue.model_validate({"L": [{"N": "1"}, {"BOOL": True}]}).kind
        'L'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    S: Optional[str] = None
    N: Optional[str] = Field(default=None, description="Decimal text, kept as text to avoid precision loss")
    B: Optional[bytes] = None
    BOOL: Optional[bool] = None
    NULL: Optional[bool] = None
    L: Optional[list["TypedValue"]] = None
    M: Optional[dict[str, "TypedValue"]] = None
    SS: Optional[list[str]] = None
    NS: Optional[list[str]] = None
    BS: Optional[list[bytes]] = None

    @field_validator("B", mode="before")
    @classmethod
    def decode_binary(cls, v: Any) -> Any:
        return _decode_binary(v)

    @field_validator("BS", mode="before")
    @classmethod
    def decode_binary_set(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple, set, frozenset)):
            return [_decode_binary(item) for item in v]
        return v

    @field_validator("N")
    @classmethod
    def validate_number(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_decimal(v)

    @field_validator("NS")
    @classmethod
    def validate_number_set(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return v
        return [_check_decimal(item) for item in v]

    @model_validator(mode="after")
    def exactly_one_tag(self) -> "TypedValue":
        populated = [tag for tag in VALUE_TAGS if getattr(self, tag) is not None]
        if len(populated) != 1:
            raise ValueError(
                f"exactly one type tag must be populated, got {populated or 'none'}"
            )
        return self

    @property
    def kind(self) -> str:
        for tag in VALUE_TAGS:
            if getattr(self, tag) is not None:
                return tag
        # Unreachable: exactly_one_tag runs on every construction path
        raise AssertionError("TypedValue has no populated tag")

    @property
    def value(self) -> Any:
        return getattr(self, self.kind)


TypedValue.model_rebuild()

AttributeMap = dict[str, TypedValue]


class EventKind(str, Enum):
    INSERT = "INSERT"
    MODIFY = "MODIFY"
    REMOVE = "REMOVE"


class ChangeRecord(BaseModel):
    """One entry of a delivered batch.

    Attributes:
        event_kind: INSERT, MODIFY or REMOVE
        key_attributes: Key attributes in delivery order; drives the document id
        new_image: Full state after the change (INSERT/MODIFY only)
        sequence_number: Opaque log position, used for diagnostics only
        event_id: Producer-assigned event identifier, diagnostics only
    """

    model_config = ConfigDict(frozen=True)

    event_kind: EventKind
    key_attributes: AttributeMap = Field(default_factory=dict)
    new_image: Optional[AttributeMap] = None
    sequence_number: Optional[str] = None
    event_id: Optional[str] = None

    @classmethod
    def from_stream_record(cls, record: dict[str, Any]) -> "ChangeRecord":
        """
        Create from a raw stream record dict.

        Raises:
            pydantic.ValidationError: record does not match the stream schema
        """
        stream = record.get("dynamodb")
        if not isinstance(stream, dict):
            stream = {}
        event_name = record.get("eventName")
        # A delete only needs the keys; its image is never read
        new_image = None if event_name == EventKind.REMOVE.value else stream.get("NewImage")
        return cls.model_validate(
            {
                "event_kind": event_name,
                "key_attributes": stream.get("Keys") or {},
                "new_image": new_image,
                "sequence_number": stream.get("SequenceNumber"),
                "event_id": record.get("eventID"),
            }
        )
