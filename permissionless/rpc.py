from __future__ import annotations

import itertools
import logging
from typing import Any, Sequence

import httpx

from .errors import RpcDecodeError, RpcError, RpcTimeoutError, TransportError
from .types import JsonValue, RpcRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000


def _response_id(response: dict[str, Any]) -> int:
    response_id = response.get("id")
    if isinstance(response_id, bool) or not isinstance(response_id, int):
        raise RpcDecodeError("JSON-RPC response has no integer id", response)
    return response_id


def _unwrap(response: Any) -> JsonValue:
    if not isinstance(response, dict):
        raise RpcDecodeError("JSON-RPC response is not an object", response)
    if "error" in response:
        raise RpcError.from_payload(response["error"])
    if "result" not in response:
        raise RpcDecodeError("JSON-RPC response has neither result nor error", response)
    return response["result"]


class JsonRpcClient:
    """
    JSON-RPC 2.0 client over HTTP for Ethereum nodes and ERC-4337 bundlers.

    Request ids come from a per-client counter. They increase strictly, are
    never reused (not even for calls that failed or timed out) and are
    allocated without suspending, so concurrent calls never share one.
    """

    def __init__(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.url = str(url)
        self.headers = dict(headers or {})
        self.timeout_ms = timeout_ms
        self._http = http_client or httpx.AsyncClient(timeout=self.timeout_ms / 1000)
        self._ids = itertools.count(1)
        self._last_id = 0
        self._closed = False

    @property
    def last_request_id(self) -> int:
        return self._last_id

    def _next_id(self) -> int:
        self._last_id = next(self._ids)
        return self._last_id

    async def _post(self, payload: Any) -> Any:
        try:
            resp = await self._http.post(
                self.url,
                headers={"Content-Type": "application/json", **self.headers},
                json=payload,
                timeout=self.timeout_ms / 1000,
            )
        except httpx.TimeoutException as err:
            logger.debug("rpc request to %s timed out after %sms", self.url, self.timeout_ms)
            raise RpcTimeoutError(f"Request timed out after {self.timeout_ms}ms") from err
        except httpx.HTTPError as err:
            logger.debug("rpc request to %s failed: %s", self.url, err)
            raise TransportError(str(err) or type(err).__name__) from err

        if resp.status_code != 200:
            logger.debug("rpc request to %s returned HTTP %s", self.url, resp.status_code)
            raise TransportError(
                f"HTTP error: {resp.status_code} {resp.reason_phrase}".rstrip(),
                resp.status_code,
                resp.text,
            )

        try:
            return resp.json()
        except ValueError as err:
            raise RpcDecodeError("Response body is not valid JSON", resp.text) from err

    async def call(self, method: str, params: Sequence[JsonValue] | None = None) -> JsonValue:
        """Send one request and return its result (which may be None)."""
        request_id = self._next_id()
        envelope = RpcRequest(method, params or ()).to_envelope(request_id)
        logger.debug("rpc call %s id=%d", method, request_id)

        data = await self._post(envelope)
        result = _unwrap(data)
        _response_id(data)
        return result

    async def batch(self, requests: Sequence[RpcRequest]) -> list[JsonValue]:
        """
        Send several requests in one POST and return their results in request order.

        The server may answer in any order; results are matched back by id.
        Any error element fails the whole batch.
        """
        if not requests:
            return []

        ids = [self._next_id() for _ in requests]
        payload = [request.to_envelope(request_id) for request, request_id in zip(requests, ids)]
        logger.debug("rpc batch of %d, ids %d..%d", len(ids), ids[0], ids[-1])

        data = await self._post(payload)
        if not isinstance(data, list):
            raise RpcDecodeError("JSON-RPC batch response is not an array", data)

        results: dict[int, JsonValue] = {}
        for item in data:
            if not isinstance(item, dict):
                raise RpcDecodeError("JSON-RPC batch element is not an object", item)
            if "error" in item:
                raise RpcError.from_payload(item["error"])
            results[_response_id(item)] = _unwrap(item)

        if len(data) != len(ids):
            raise RpcDecodeError(
                f"JSON-RPC batch returned {len(data)} responses for {len(ids)} requests", data
            )
        missing = [request_id for request_id in ids if request_id not in results]
        if missing:
            raise RpcDecodeError(f"JSON-RPC batch response is missing ids {missing}", data)

        return [results[request_id] for request_id in ids]

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._http.aclose()

    async def __aenter__(self) -> "JsonRpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


def create_rpc_client(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout_ms: int | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> JsonRpcClient:
    return JsonRpcClient(
        url,
        headers=headers,
        timeout_ms=timeout_ms if timeout_ms is not None else DEFAULT_TIMEOUT_MS,
        http_client=http_client,
    )
