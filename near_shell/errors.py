"""
Typed error classes for near-shell.

These are raised by rpc/http, account and keystore helpers so callers can
catch specific failure modes while still being able to catch the base
`NearShellError`. Account lookups translate node errors into the structured
kinds `InvalidAccountId` and `AccountDoesNotExist`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional

__all__ = [
    "NearShellError",
    "RpcError",
    "TxError",
    "KeyStoreError",
    "InvalidAccountId",
    "AccountDoesNotExist",
    "JsonRpcCode",
    "from_jsonrpc_error",
    "classify_account_error",
]


class NearShellError(Exception):
    """Base class for all near-shell errors."""


class JsonRpcCode(IntEnum):
    # JSON-RPC 2.0 spec
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (implementation-defined range: -32099 to -32000)
    SERVER_ERROR = -32000

    # Client-side transport failure
    TRANSPORT_ERROR = -32098


@dataclass(slots=True)
class RpcError(NearShellError):
    """Raised when a JSON-RPC call returns an error object."""

    code: int
    message: str
    data: Optional[Any] = None
    cause: Optional[str] = None
    method: Optional[str] = None

    def __str__(self) -> str:
        if isinstance(self.data, str) and self.data:
            return f"{self.message}: {self.data}"
        if self.data is None:
            return self.message
        return f"{self.message} (code={self.code}, data={self.data!r})"

    @property
    def text(self) -> str:
        """Message and data joined, for substring checks on legacy node errors."""
        bits = [self.message]
        if self.data is not None:
            bits.append(self.data if isinstance(self.data, str) else repr(self.data))
        return " ".join(bits)

    @property
    def code_enum(self) -> Optional[JsonRpcCode]:
        try:
            return JsonRpcCode(self.code)
        except ValueError:
            return None


@dataclass(slots=True)
class TxError(NearShellError):
    """
    Raised when a transaction outcome reports `Failure`.

    Fields:
      - message: human-readable description
      - tx_hash: base58 hash if known
      - failure: raw failure object from the outcome
    """

    message: str
    tx_hash: Optional[str] = None
    failure: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        suffix = f" tx={self.tx_hash}" if self.tx_hash else ""
        return f"Transaction failed{suffix}: {self.message}"


class KeyStoreError(NearShellError):
    """Filesystem, format or lookup failure in a key store."""


@dataclass(slots=True)
class InvalidAccountId(NearShellError):
    """The account id is malformed or missing."""

    account_id: str

    def __str__(self) -> str:
        return f"Account ID {self.account_id!r} is invalid"


@dataclass(slots=True)
class AccountDoesNotExist(NearShellError):
    """The account id is well formed but unknown to the network."""

    account_id: str

    def __str__(self) -> str:
        return f"Account {self.account_id!r} does not exist"


def from_jsonrpc_error(err_obj: Dict[str, Any], *, method: Optional[str] = None) -> RpcError:
    """
    Convert a JSON-RPC error object into RpcError.

    Nodes answer with `{"code", "message", "data"}` and, on newer versions, a
    structured `{"name", "cause": {"name", "info"}}` pair.
    """
    code = int(err_obj.get("code", JsonRpcCode.SERVER_ERROR))
    message = str(err_obj.get("message", "Unknown JSON-RPC error"))
    cause = err_obj.get("cause")
    cause_name = cause.get("name") if isinstance(cause, dict) else None
    return RpcError(
        code=code,
        message=message,
        data=err_obj.get("data"),
        cause=cause_name,
        method=method,
    )


def classify_account_error(err: RpcError, account_id: str) -> NearShellError:
    """
    Map a node error about `account_id` onto a structured error kind.

    Returns the original error when it is neither an invalid id nor an
    unknown account.
    """
    if err.cause == "INVALID_ACCOUNT" or "Account ID" in err.text:
        return InvalidAccountId(account_id)
    if err.cause == "UNKNOWN_ACCOUNT" or "does not exist" in err.text:
        return AccountDoesNotExist(account_id)
    return err
