"""
Unit tests for the bulk index client.

Covers NDJSON body rendering, bulk response parsing and the mapping of
transport failures to TransportError. aiohttp is mocked at the session.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from config.config import SearchConfig
from core.errors.exceptions import TransportError
from replicator.indexing.client import (
    BulkIndexClient,
    BulkItemResult,
    build_bulk_body,
    encode_basic_credentials,
    format_item_error,
    parse_bulk_items,
)
from replicator.schemas.operations import Delete, Upsert


@pytest.fixture
def search_config():
    return SearchConfig(
        host="search.local",
        port=9200,
        scheme="https",
        index="products",
        username="elastic",
        password="changeme",
    )


@pytest.fixture
def client(search_config):
    return BulkIndexClient(search_config)


def make_response(status=200, payload=None, text="", json_error=None):
    response = AsyncMock()
    response.status = status
    if json_error is not None:
        response.json = AsyncMock(side_effect=json_error)
    else:
        response.json = AsyncMock(return_value=payload)
    response.text = AsyncMock(return_value=text)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


# ============================================================================
# Body rendering
# ============================================================================


class TestBuildBulkBody:
    def test_upsert_and_delete_lines(self):
        body = build_bulk_body(
            "products",
            [Upsert(id="A", document={"name": "Alice", "age": 30}), Delete(id="B")],
        )
        lines = body.split("\n")

        assert json.loads(lines[0]) == {"index": {"_index": "products", "_id": "A"}}
        assert json.loads(lines[1]) == {"name": "Alice", "age": 30}
        assert json.loads(lines[2]) == {"delete": {"_index": "products", "_id": "B"}}
        assert lines[3] == ""
        assert len(lines) == 4

    def test_trailing_newline(self):
        assert build_bulk_body("products", [Delete(id="A")]).endswith("}\n")

    def test_unicode_kept(self):
        assert "Zoë" in build_bulk_body("products", [Upsert(id="A", document={"name": "Zoë"})])


# ============================================================================
# Response parsing
# ============================================================================


class TestFormatItemError:
    def test_none(self):
        assert format_item_error(None) is None

    def test_type_and_reason(self):
        error = {"type": "mapper_parsing_exception", "reason": "failed to parse field [price]"}
        assert format_item_error(error) == "mapper_parsing_exception: failed to parse field [price]"

    def test_caused_by(self):
        error = {
            "type": "mapper_parsing_exception",
            "reason": "failed to parse",
            "caused_by": {"type": "number_format_exception", "reason": "For input string: \"abc\""},
        }
        assert format_item_error(error).endswith('(caused by number_format_exception: For input string: "abc")')

    def test_non_dict(self):
        assert format_item_error("boom") == "boom"


class TestParseBulkItems:
    def test_parses_items_in_order(self, make_bulk_item):
        payload = {
            "took": 3,
            "errors": True,
            "items": [
                make_bulk_item("index", "A", 201),
                make_bulk_item("delete", "B", 404),
                make_bulk_item("index", "C", 400, error={"type": "x", "reason": "y"}),
            ],
        }
        results = parse_bulk_items(payload, 3)

        assert results == [
            BulkItemResult(op_kind="index", index="products", id="A", status=201),
            BulkItemResult(op_kind="delete", index="products", id="B", status=404),
            BulkItemResult(op_kind="index", index="products", id="C", status=400, error="x: y"),
        ]

    def test_missing_status(self):
        results = parse_bulk_items({"items": [{"index": {"_id": "A"}}]}, 1)
        assert results[0].status is None

    @pytest.mark.parametrize("payload", [None, [], {"took": 1}, {"items": "nope"}])
    def test_no_items_array(self, payload):
        with pytest.raises(TransportError, match="no 'items' array"):
            parse_bulk_items(payload, 1)

    def test_count_mismatch(self, make_bulk_item):
        with pytest.raises(TransportError, match="1 items for 2 operations"):
            parse_bulk_items({"items": [make_bulk_item()]}, 2)

    def test_bad_item_shape(self):
        with pytest.raises(TransportError, match="Unexpected bulk item shape"):
            parse_bulk_items({"items": [{"index": {}, "delete": {}}]}, 1)


# ============================================================================
# Client
# ============================================================================


class TestBulkIndexClientInit:
    def test_basic_auth_header(self, client):
        assert client.base_url == "https://search.local:9200"
        assert client._headers["Authorization"] == "Basic ZWxhc3RpYzpjaGFuZ2VtZQ=="

    def test_encode_basic_credentials(self):
        assert encode_basic_credentials("elastic", "changeme") == "ZWxhc3RpYzpjaGFuZ2VtZQ=="

    async def test_session_carries_authorization_header(self, client):
        async with client:
            assert client._session.headers["Authorization"] == "Basic ZWxhc3RpYzpjaGFuZ2VtZQ=="

    def test_bearer_token_preferred(self, search_config):
        search_config.token = "secret"
        client = BulkIndexClient(search_config)

        assert client._headers["Authorization"] == "Bearer secret"

    def test_ndjson_content_type(self, client):
        assert client._headers["Content-Type"] == "application/x-ndjson"


class TestBulkIndexClientSession:
    async def test_context_manager_creates_and_closes_session(self, client):
        async with client:
            assert client._session is not None
            assert not client._session.closed
        assert client._session is None

    async def test_closed_client_refuses_new_session(self, client):
        await client.close()
        with pytest.raises(RuntimeError, match="closed"):
            await client._ensure_session()

    async def test_close_without_session(self, client):
        await client.close()
        assert client._session is None


class TestBulkIndexClientBulk:
    async def test_posts_ndjson_and_parses_items(self, client, make_bulk_item):
        response = make_response(200, {"took": 2, "items": [make_bulk_item("index", "A", 201)]})

        with patch("aiohttp.ClientSession.post", return_value=response) as mock_post:
            results = await client.bulk("products", [Upsert(id="A", document={"v": 1})])
        await client.close()

        assert results == [BulkItemResult(op_kind="index", index="products", id="A", status=201)]
        args, kwargs = mock_post.call_args
        assert args[0] == "https://search.local:9200/_bulk"
        assert kwargs["data"].decode("utf-8").startswith('{"index":{"_index":"products","_id":"A"}}\n')
        assert kwargs["params"] is None

    async def test_refresh_param(self, search_config, make_bulk_item):
        search_config.refresh = "wait_for"
        client = BulkIndexClient(search_config)
        response = make_response(200, {"items": [make_bulk_item("delete", "A", 200)]})

        with patch("aiohttp.ClientSession.post", return_value=response) as mock_post:
            await client.bulk("products", [Delete(id="A")])
        await client.close()

        assert mock_post.call_args.kwargs["params"] == {"refresh": "wait_for"}

    @pytest.mark.parametrize("status", [400, 401, 413, 503])
    async def test_non_2xx_is_transport_error(self, client, status):
        response = make_response(status, text="rejected")

        with patch("aiohttp.ClientSession.post", return_value=response):
            with pytest.raises(TransportError) as exc_info:
                await client.bulk("products", [Delete(id="A")])
        await client.close()

        assert exc_info.value.http_status == status
        assert "rejected" in str(exc_info.value)

    async def test_invalid_json(self, client):
        response = make_response(200, json_error=json.JSONDecodeError("bad", "x", 0))

        with patch("aiohttp.ClientSession.post", return_value=response):
            with pytest.raises(TransportError, match="not valid JSON"):
                await client.bulk("products", [Delete(id="A")])
        await client.close()

    async def test_undecodable_body(self, client):
        error = UnicodeDecodeError("utf-8", b'{"items": ["\xff\xfe"]}', 11, 12, "invalid start byte")
        response = make_response(200, json_error=error)

        with patch("aiohttp.ClientSession.post", return_value=response):
            with pytest.raises(TransportError, match="not valid JSON") as exc_info:
                await client.bulk("products", [Delete(id="A")])
        await client.close()

        assert isinstance(exc_info.value.cause, UnicodeDecodeError)

    async def test_non_2xx_body_is_decoded_leniently(self, client):
        response = make_response(502, text="bad gateway �")

        with patch("aiohttp.ClientSession.post", return_value=response):
            with pytest.raises(TransportError, match="bad gateway"):
                await client.bulk("products", [Delete(id="A")])
        await client.close()

        response.text.assert_awaited_once_with(errors="replace")

    async def test_timeout(self, client):
        response = make_response()
        response.__aenter__ = AsyncMock(side_effect=asyncio.TimeoutError())

        with patch("aiohttp.ClientSession.post", return_value=response):
            with pytest.raises(TransportError, match="timed out") as exc_info:
                await client.bulk("products", [Delete(id="A")])
        await client.close()

        assert isinstance(exc_info.value.cause, asyncio.TimeoutError)

    async def test_connection_error(self, client):
        with patch(
            "aiohttp.ClientSession.post",
            MagicMock(side_effect=aiohttp.ClientConnectionError("refused")),
        ):
            with pytest.raises(TransportError, match="Connection error"):
                await client.bulk("products", [Delete(id="A")])
        await client.close()

    async def test_misaligned_response(self, client, make_bulk_item):
        response = make_response(200, {"items": [make_bulk_item()]})

        with patch("aiohttp.ClientSession.post", return_value=response):
            with pytest.raises(TransportError, match="1 items for 2 operations"):
                await client.bulk("products", [Delete(id="A"), Delete(id="B")])
        await client.close()
