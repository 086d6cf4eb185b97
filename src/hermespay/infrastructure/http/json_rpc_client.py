"""JSON-RPC 2.0 over HTTP, as spoken by Ethereum nodes."""

from __future__ import annotations

import itertools
from typing import Any, List, Optional, Type
from types import TracebackType

import httpx


class JsonRpcError(Exception):
    """The node answered, but not with a usable ``result``."""


class AsyncJsonRpcClient:
    """Posts one JSON-RPC request per call to a single node URL.

    Transport failures surface as ``httpx.RequestError`` and non-2xx
    responses as ``httpx.HTTPStatusError``, so callers can decide which of
    them to retry.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    async def request(self, method: str, params: List[Any]) -> Any:
        """Call ``method`` and return its ``result`` member.

        Raises:
            JsonRpcError: If the body is not JSON or carries an ``error`` member.
        """
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        resp = await self._client.post(self.url, json=body)
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError as e:
            raise JsonRpcError(f"{method} returned invalid JSON") from e
        if data.get("error"):
            raise JsonRpcError(f"{method} failed: {data['error']}")
        return data.get("result")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncJsonRpcClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
