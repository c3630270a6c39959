"""Search engine bulk API client."""

import asyncio
import base64
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import aiohttp

from config.config import SearchConfig
from core.errors.exceptions import TransportError
from core.logging.utilities import truncate_message
from replicator.schemas.operations import Upsert, WriteOperation

logger = logging.getLogger(__name__)

NDJSON_CONTENT_TYPE = "application/x-ndjson"


def encode_basic_credentials(username: str, password: str) -> str:
    """base64 ``username:password`` for a ``Basic`` Authorization header."""
    return base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")


@dataclass(frozen=True)
class BulkItemResult:
    """One entry of the bulk response ``items`` array."""

    op_kind: str
    index: str
    id: str
    status: int | None
    error: str | None = None


def build_bulk_body(index: str, operations: Sequence[WriteOperation]) -> str:
    """Render operations as the newline-delimited bulk request body."""
    lines = []
    for operation in operations:
        action = {operation.op_kind.value: {"_index": index, "_id": operation.id}}
        lines.append(json.dumps(action, separators=(",", ":")))
        if isinstance(operation, Upsert):
            lines.append(json.dumps(operation.document, separators=(",", ":"), ensure_ascii=False))
    # The bulk API requires a trailing newline
    return "\n".join(lines) + "\n"


def format_item_error(error: Any) -> str | None:
    """Flatten the ``error`` object of a bulk item into one line."""
    if error is None:
        return None
    if not isinstance(error, dict):
        return str(error)

    message = f"{error.get('type', 'error')}: {error.get('reason', '')}".rstrip(": ")
    caused_by = error.get("caused_by")
    if isinstance(caused_by, dict):
        message += f" (caused by {caused_by.get('type', 'error')}: {caused_by.get('reason', '')})"
    return message


def parse_bulk_items(payload: Any, expected: int) -> list[BulkItemResult]:
    """
    Parse the bulk response into results aligned with the request.

    Raises:
        TransportError: the response is not a bulk response for this request
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        raise TransportError("Bulk response has no 'items' array")

    items = payload["items"]
    if len(items) != expected:
        raise TransportError(
            f"Bulk response has {len(items)} items for {expected} operations",
            context={"batch_size": expected},
        )

    results = []
    for item in items:
        if not isinstance(item, dict) or len(item) != 1:
            raise TransportError(f"Unexpected bulk item shape: {item!r}")
        op_kind, body = next(iter(item.items()))
        body = body if isinstance(body, dict) else {}
        status = body.get("status")
        results.append(
            BulkItemResult(
                op_kind=op_kind,
                index=str(body.get("_index", "")),
                id=str(body.get("_id", "")),
                status=int(status) if isinstance(status, int) else None,
                error=format_item_error(body.get("error")),
            )
        )
    return results


class BulkIndexClient:
    """Async client for the search engine ``_bulk`` endpoint."""

    def __init__(self, config: SearchConfig, log: logging.Logger | None = None):
        self._config = config
        self._log = log or logger
        self.base_url = config.base_url.rstrip("/")
        self.timeout_seconds = config.timeout_seconds

        self._headers = {"Content-Type": NDJSON_CONTENT_TYPE, "Accept": "application/json"}
        if config.uses_bearer_token:
            self._headers["Authorization"] = f"Bearer {config.token}"
        elif config.uses_basic_auth:
            credentials = encode_basic_credentials(config.username, config.password)
            self._headers["Authorization"] = f"Basic {credentials}"

        self._session: aiohttp.ClientSession | None = None
        self._closed = False

        self._log.info(
            "BulkIndexClient initialized",
            extra={
                "search_url": self.base_url,
                "index_name": config.index,
            },
        )

    async def __aenter__(self) -> "BulkIndexClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> None:
        if self._closed:
            raise RuntimeError("BulkIndexClient is closed, cannot create new session")
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self._headers)

    async def close(self) -> None:
        self._closed = True
        if self._session and not self._session.closed:
            await self._session.close()
            await asyncio.sleep(0)
        self._session = None

    async def bulk(self, index: str, operations: Sequence[WriteOperation]) -> list[BulkItemResult]:
        """
        Submit all operations in one bulk call.

        Returns:
            One result per operation, in request order

        Raises:
            TransportError: the call could not be completed (connection,
                timeout, non-2xx response, undecodable or misaligned body)
        """
        await self._ensure_session()

        url = f"{self.base_url}/_bulk"
        params = {"refresh": self._config.refresh} if self._config.refresh else None
        body = build_bulk_body(index, operations)

        try:
            async with self._session.post(
                url,
                data=body.encode("utf-8"),
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                if response.status >= 300:
                    text = await response.text(errors="replace")
                    raise TransportError(
                        f"Bulk request rejected ({response.status}): {truncate_message(text)}",
                        http_status=response.status,
                    )
                try:
                    payload = await response.json(content_type=None)
                except (ValueError, aiohttp.ContentTypeError) as e:
                    raise TransportError(
                        "Bulk response is not valid JSON", http_status=response.status, cause=e
                    ) from e

        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Bulk request timed out after {self.timeout_seconds}s: {url}", cause=e
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Connection error: {e}", cause=e) from e

        self._log.debug(
            "Bulk request completed",
            extra={
                "search_url": url,
                "batch_size": len(operations),
                "took_ms": payload.get("took") if isinstance(payload, dict) else None,
            },
        )
        return parse_bulk_items(payload, len(operations))
