"""Shared builders for change-log records and bulk responses."""

import pytest


def stream_record(
    event_name="INSERT",
    keys=None,
    new_image=None,
    sequence_number="111",
    event_id="evt-1",
):
    """Build one raw change-log record in the stream wire format."""
    body = {
        "Keys": keys if keys is not None else {"pk": {"S": "A"}},
        "SequenceNumber": sequence_number,
    }
    if new_image is not None:
        body["NewImage"] = new_image
    return {"eventID": event_id, "eventName": event_name, "dynamodb": body}


def bulk_item(op_kind="index", doc_id="A", status=201, index="products", error=None):
    body = {"_index": index, "_id": doc_id, "status": status}
    if error is not None:
        body["error"] = error
    return {op_kind: body}


@pytest.fixture
def make_stream_record():
    return stream_record


@pytest.fixture
def make_bulk_item():
    return bulk_item
