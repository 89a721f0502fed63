"""
Shared fixtures for near-shell tests.

`node` mounts a small in-memory JSON-RPC node on NODE_URL through respx, so
the real JsonRpcProvider / Account / connect() code runs end to end without
network access.
"""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import base58
import httpx
import pytest
import respx

from near_shell.config import CI_ENV_VARS, ShellConfig
from near_shell.key_pair import KeyPair

NODE_URL = "http://127.0.0.1:3030/rpc"
WALLET_URL = "https://wallet.example.test"
HELPER_URL = "https://helper.example.test"
BLOCK_HASH = base58.b58encode(b"\x07" * 32).decode("ascii")
ACCESS_KEY_NONCE = 7

# Environment that changes CLI/login behaviour; cleared for every test along
# with the CI markers
_SHELL_ENV = (
    "NEAR_ENV",
    "NEAR_NETWORK_ID",
    "NEAR_NODE_URL",
    "NEAR_HELPER_URL",
    "NEAR_WALLET_URL",
    "NEAR_KEY_PATH",
    "NEAR_KEY_STORE_DIR",
    "NEAR_TIMEOUT",
    "NEAR_DEBUG",
    "NEAR_LOG_LEVEL",
    "NEAR_MASTER_ACCOUNT",
    "NEAR_ACCOUNT_ID",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _SHELL_ENV + CI_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class FakeNode:
    """
    Answers the handful of JSON-RPC methods the shell uses.

    accounts : account_id -> {"amount": str, "keys": [public_key, ...]}
    errors   : account_id -> JSON-RPC error object returned for any query on it
    views    : (contract_id, method) -> JSON value returned by call_function
    """

    def __init__(self) -> None:
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.errors: Dict[str, Dict[str, Any]] = {}
        self.views: Dict[tuple, Any] = {}
        self.calls: List[Dict[str, Any]] = []
        self.sent: List[bytes] = []
        self.return_value: bytes = b""
        self.tx_status: Optional[Dict[str, Any]] = None

    def add_account(self, account_id: str, amount: str = "1000500000000000000000000000", keys=()) -> None:
        self.accounts[account_id] = {"amount": amount, "keys": list(keys)}

    # --- respx side effect ---------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        method, params = body["method"], body["params"]
        try:
            if method == "query":
                result = self._query(params)
            elif method == "broadcast_tx_commit":
                result = self._broadcast(params[0])
            else:
                raise _NodeError({"code": -32601, "message": "Method not found"})
        except _NodeError as e:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": e.obj})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def _query(self, params: Dict[str, Any]) -> Dict[str, Any]:
        account_id = params["account_id"]
        if account_id in self.errors:
            raise _NodeError(self.errors[account_id])
        if account_id not in self.accounts:
            raise _NodeError(
                {
                    "code": -32000,
                    "message": "Server error",
                    "data": f"account {account_id} does not exist while viewing",
                    "cause": {"name": "UNKNOWN_ACCOUNT", "info": {}},
                }
            )
        account = self.accounts[account_id]
        kind = params["request_type"]
        if kind == "view_account":
            return {
                "amount": account["amount"],
                "locked": "0",
                "code_hash": "11111111111111111111111111111111",
                "storage_usage": 182,
                "block_height": 1,
                "block_hash": BLOCK_HASH,
            }
        if kind == "view_access_key_list":
            return {
                "keys": [
                    {"public_key": pk, "access_key": {"nonce": 0, "permission": "FullAccess"}}
                    for pk in account["keys"]
                ],
                "block_height": 1,
                "block_hash": BLOCK_HASH,
            }
        if kind == "view_access_key":
            return {
                "nonce": ACCESS_KEY_NONCE,
                "permission": "FullAccess",
                "block_height": 1,
                "block_hash": BLOCK_HASH,
            }
        if kind == "call_function":
            value = self.views[(account_id, params["method_name"])]
            return {
                "result": list(json.dumps(value).encode("utf-8")),
                "logs": ["view called"],
                "block_height": 1,
                "block_hash": BLOCK_HASH,
            }
        raise _NodeError({"code": -32602, "message": f"unsupported request_type {kind}"})

    def _broadcast(self, encoded: str) -> Dict[str, Any]:
        self.sent.append(base64.b64decode(encoded))
        status = self.tx_status or {"SuccessValue": base64.b64encode(self.return_value).decode("ascii")}
        return {
            "status": status,
            "transaction": {"hash": "tx-hash"},
            "transaction_outcome": {},
            "receipts_outcome": [],
        }


class _NodeError(Exception):
    def __init__(self, obj: Dict[str, Any]) -> None:
        super().__init__(obj.get("message"))
        self.obj = obj


class FakePrompt:
    """Prompt that answers once and counts how often it was released."""

    def __init__(self, answer: str = "") -> None:
        self.answer = answer
        self.asked: List[str] = []
        self.closes = 0

    def __enter__(self) -> "FakePrompt":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.closes += 1

    def ask(self, text: str) -> str:
        self.asked.append(text)
        return self.answer


@pytest.fixture
def node():
    fake = FakeNode()
    with respx.mock(assert_all_called=False) as mock:
        mock.post(NODE_URL).mock(side_effect=fake)
        fake.router = mock
        yield fake


@pytest.fixture
def key_store_dir(tmp_path: Path) -> Path:
    return tmp_path / "neardev"


@pytest.fixture
def config(key_store_dir: Path) -> ShellConfig:
    return ShellConfig(
        network_id="testnet",
        node_url=NODE_URL,
        wallet_url=WALLET_URL,
        helper_url=HELPER_URL,
        key_store_dir=str(key_store_dir),
        timeout=5.0,
        max_retries=0,
    )


@pytest.fixture
def key_pair() -> KeyPair:
    return KeyPair(bytes(range(32)))


def decode_signer_and_nonce(signed_tx: bytes) -> tuple[str, int]:
    """Read signer_id and nonce from the front of a borsh-encoded transaction."""
    n = int.from_bytes(signed_tx[:4], "little")
    signer = signed_tx[4 : 4 + n].decode("utf-8")
    offset = 4 + n + 1 + 32
    nonce = int.from_bytes(signed_tx[offset : offset + 8], "little")
    return signer, nonce
