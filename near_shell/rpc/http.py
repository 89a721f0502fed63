from __future__ import annotations

"""
HTTP JSON-RPC provider (sync) for NEAR-style nodes.

- Uses httpx; friendly to unit tests via respx.
- Retries transient transport failures and 429/502/503/504 responses with
  jittered exponential backoff. JSON-RPC error objects are never retried.

Example:
    from near_shell.rpc.http import JsonRpcProvider
    rpc = JsonRpcProvider("https://rpc.testnet.near.org")
    state = rpc.query({"request_type": "view_account", "finality": "final", "account_id": "alice.testnet"})
    print(state["amount"])
"""

import base64
import json
import logging
import random
import time
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

import httpx

from ..errors import JsonRpcCode, RpcError, from_jsonrpc_error
from ..version import version_info

log = logging.getLogger("near_shell.rpc")

JSON = Union[dict, list, str, int, float, bool, None]
Params = Union[Sequence[Any], Mapping[str, Any], None]


def _is_retriable_http(status: int) -> bool:
    # Typical transient HTTP statuses: 429/502/503/504
    return status in (429, 502, 503, 504)


def _jitter_backoff(base: float, factor: float, attempt: int, jitter: float) -> float:
    # Exponential backoff with jitter in [0, jitter]
    return base * (factor ** max(attempt - 1, 0)) + random.random() * jitter


class _TransientError(Exception):
    """Transport-level failure that is safe to retry."""


@dataclass
class JsonRpcProvider:
    """Synchronous JSON-RPC 2.0 client over HTTP."""

    url: str
    timeout: float = 30.0
    max_retries: int = 3
    backoff_base: float = 0.15
    backoff_factor: float = 1.8
    backoff_jitter: float = 0.2
    headers: Optional[Mapping[str, str]] = None
    _id_counter: Iterable[int] = field(default_factory=lambda: count(start=1))
    _client: Any = field(init=False, default=None)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": version_info().user_agent,
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        self._client = httpx.Client(timeout=self.timeout, headers=merged_headers)

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "JsonRpcProvider":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    # --- public API ------------------------------------------------------

    def request(self, method: str, params: Params = None) -> JSON:
        """Perform a single JSON-RPC request and return `result` or raise RpcError."""
        payload = self._make_payload(method, params)
        log.debug("rpc %s -> %s", method, self.url)
        return self._send_with_retries(payload)

    def query(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Run a `query` request (view_account, view_access_key_list, call_function, ...).

        Older nodes report query failures inside the result as `{"error": "..."}`;
        those are raised as RpcError as well.
        """
        result = self.request("query", dict(params))
        if isinstance(result, dict) and result.get("error"):
            raise RpcError(
                code=JsonRpcCode.SERVER_ERROR,
                message=str(result["error"]),
                method="query",
            )
        if not isinstance(result, dict):
            raise RpcError(code=JsonRpcCode.INTERNAL_ERROR, message="Malformed query result", data=result)
        return result

    def status(self) -> Dict[str, Any]:
        return self.request("status", [])  # type: ignore[return-value]

    def block(self, block_id: Optional[Union[int, str]] = None, finality: str = "final") -> Dict[str, Any]:
        params: Dict[str, Any] = {"block_id": block_id} if block_id is not None else {"finality": finality}
        return self.request("block", params)  # type: ignore[return-value]

    def send_transaction(self, signed_tx: bytes) -> Dict[str, Any]:
        """Broadcast a borsh-encoded signed transaction and wait for its final outcome."""
        encoded = base64.b64encode(signed_tx).decode("ascii")
        return self.request("broadcast_tx_commit", [encoded])  # type: ignore[return-value]

    def tx_status(self, tx_hash: str, account_id: str) -> Dict[str, Any]:
        return self.request("tx", [tx_hash, account_id])  # type: ignore[return-value]

    # --- internals -------------------------------------------------------

    def _make_payload(self, method: str, params: Params) -> Dict[str, Any]:
        if params is None:
            params = []
        elif isinstance(params, Mapping):
            params = dict(params)
        elif isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray)):
            params = list(params)
        else:
            # Coerce single param into positional list
            params = [params]  # type: ignore[list-item]
        return {"jsonrpc": "2.0", "id": next(self._id_counter), "method": method, "params": params}

    def _send_with_retries(self, payload: Dict[str, Any]) -> JSON:
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 2):  # N retries -> N+1 attempts
            try:
                return self._send_once(payload)
            except _TransientError as e:
                last_exc = e
                if attempt > self.max_retries:
                    break
                delay = _jitter_backoff(self.backoff_base, self.backoff_factor, attempt, self.backoff_jitter)
                log.debug("rpc %s attempt %d failed (%s); retrying in %.2fs", payload["method"], attempt, e, delay)
                time.sleep(delay)
        raise RpcError(
            code=JsonRpcCode.TRANSPORT_ERROR,
            message="RPC transport failed",
            data=str(last_exc),
            method=payload["method"],
        )

    def _send_once(self, payload: Dict[str, Any]) -> JSON:
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        method = payload["method"]
        try:
            r = self._client.post(self.url, content=body)
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise _TransientError(str(e) or type(e).__name__) from e
        if _is_retriable_http(r.status_code):
            raise _TransientError(f"HTTP {r.status_code}")
        # Avoid raise_for_status() to keep the error body visible below
        try:
            resp = r.json()
        except ValueError as e:
            raise RpcError(
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Non-JSON response from RPC",
                data=f"HTTP {r.status_code}: {r.text[:256]}",
                method=method,
            ) from e

        if not isinstance(resp, dict):
            raise RpcError(code=JsonRpcCode.INTERNAL_ERROR, message="Invalid JSON-RPC response type", data=type(resp).__name__, method=method)
        if resp.get("error") is not None:
            raise from_jsonrpc_error(resp["error"], method=method)
        if "result" not in resp:
            raise RpcError(code=JsonRpcCode.INTERNAL_ERROR, message="Malformed JSON-RPC response", data=resp, method=method)
        return resp["result"]


def get_transaction_last_result(outcome: Mapping[str, Any]) -> Any:
    """
    Decode the `SuccessValue` of a final execution outcome.

    Returns the parsed JSON value, the raw text when it is not JSON, or None
    when the call returned nothing.
    """
    status = outcome.get("status")
    if not isinstance(status, dict) or "SuccessValue" not in status:
        return None
    raw = base64.b64decode(status["SuccessValue"] or "")
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


__all__ = ["JsonRpcProvider", "get_transaction_last_result"]
