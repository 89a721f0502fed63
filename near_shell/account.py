"""
Account — state queries and signed actions for one account id.

View methods (`state`, `get_access_keys`, `view_function`) are plain RPC
queries. Change methods build a transaction with the account's key from the
connection's key store, sign it and broadcast it with `broadcast_tx_commit`.

Node errors about the account itself are raised as `InvalidAccountId` or
`AccountDoesNotExist`; everything else surfaces as `RpcError` / `TxError`.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, NoReturn, Optional, Sequence, Union

from .errors import InvalidAccountId, KeyStoreError, RpcError, TxError, classify_account_error
from .key_pair import KeyPair, PublicKey
from .keystore import KeyStore
from .rpc.http import JsonRpcProvider
from .transaction import (
    Action,
    AddKey,
    CreateAccount,
    DeleteAccount,
    DeployContract,
    FunctionCall,
    Stake,
    Transfer,
    create_transaction,
    full_access_key,
    sign_transaction,
)

log = logging.getLogger("near_shell.account")

DEFAULT_FUNCTION_CALL_GAS = 30_000_000_000_000  # 30 Tgas

_ACCOUNT_ID_RE = re.compile(r"^(([a-z\d]+[\-_])*[a-z\d]+\.)*([a-z\d]+[\-_])*[a-z\d]+$")
_ACCOUNT_ID_MIN_LEN = 2
_ACCOUNT_ID_MAX_LEN = 64


def is_valid_account_id(account_id: Optional[str]) -> bool:
    return (
        isinstance(account_id, str)
        and _ACCOUNT_ID_MIN_LEN <= len(account_id) <= _ACCOUNT_ID_MAX_LEN
        and _ACCOUNT_ID_RE.match(account_id) is not None
    )


def validate_account_id(account_id: Optional[str]) -> str:
    if not is_valid_account_id(account_id):
        raise InvalidAccountId(account_id or "")
    return account_id  # type: ignore[return-value]


def _raise_classified(err: RpcError, account_id: str) -> NoReturn:
    classified = classify_account_error(err, account_id)
    if classified is err:
        raise err
    raise classified from err


@dataclass
class Connection:
    """Everything an Account needs to talk to one network."""

    network_id: str
    provider: JsonRpcProvider
    key_store: KeyStore


class Account:
    def __init__(self, connection: Connection, account_id: str) -> None:
        self.connection = connection
        self.account_id = validate_account_id(account_id)

    @property
    def provider(self) -> JsonRpcProvider:
        return self.connection.provider

    def __repr__(self) -> str:
        return f"Account({self.account_id!r}, network={self.connection.network_id!r})"

    # --- views -----------------------------------------------------------

    def _view(self, request_type: str, **extra: Any) -> Dict[str, Any]:
        params = {"request_type": request_type, "finality": "final", "account_id": self.account_id}
        params.update(extra)
        try:
            return self.provider.query(params)
        except RpcError as e:
            _raise_classified(e, self.account_id)

    def state(self) -> Dict[str, Any]:
        """Balance, storage usage and code hash (view_account)."""
        return self._view("view_account")

    def get_access_keys(self) -> List[Dict[str, Any]]:
        """Access keys currently authorized for this account: [{public_key, access_key}]."""
        result = self._view("view_access_key_list")
        return list(result.get("keys") or [])

    def view_function(self, contract_id: str, method_name: str, args: Optional[Mapping[str, Any]] = None) -> Any:
        """Call a read-only contract method and decode its JSON result."""
        return view_function(self.provider, contract_id, method_name, args)

    # --- changes ---------------------------------------------------------

    def _key_pair(self) -> KeyPair:
        kp = self.connection.key_store.get_key(self.connection.network_id, self.account_id)
        if kp is None:
            raise KeyStoreError(
                f"Can not sign transactions for account {self.account_id} on network "
                f"{self.connection.network_id}, no matching key pair found"
            )
        return kp

    def sign_and_send_transaction(self, receiver_id: str, actions: Sequence[Action]) -> Dict[str, Any]:
        key_pair = self._key_pair()
        public_key = key_pair.public_key
        try:
            access_key = self.provider.query(
                {
                    "request_type": "view_access_key",
                    "finality": "final",
                    "account_id": self.account_id,
                    "public_key": public_key.to_string(),
                }
            )
        except RpcError as e:
            _raise_classified(e, self.account_id)

        tx = create_transaction(
            self.account_id,
            public_key,
            receiver_id,
            int(access_key["nonce"]) + 1,
            actions,
            access_key["block_hash"],
        )
        signed = sign_transaction(tx, key_pair)
        log.info("sending tx %s from %s to %s (%d actions)", signed.hash, self.account_id, receiver_id, len(actions))
        outcome = self.provider.send_transaction(signed.encode())

        status = outcome.get("status") or {}
        if isinstance(status, dict) and "Failure" in status:
            failure = status["Failure"]
            raise TxError(message=json.dumps(failure), tx_hash=signed.hash, failure=failure)
        return outcome

    def function_call(
        self,
        contract_id: str,
        method_name: str,
        args: Optional[Mapping[str, Any]] = None,
        gas: int = DEFAULT_FUNCTION_CALL_GAS,
        amount: Union[int, str, None] = None,
    ) -> Dict[str, Any]:
        payload = json.dumps(args or {}, separators=(",", ":")).encode("utf-8")
        action = FunctionCall(method_name=method_name, args=payload, gas=int(gas), deposit=int(amount or 0))
        return self.sign_and_send_transaction(contract_id, [action])

    def deploy_contract(self, code: bytes) -> Dict[str, Any]:
        return self.sign_and_send_transaction(self.account_id, [DeployContract(code=bytes(code))])

    def send_money(self, receiver_id: str, amount: Union[int, str]) -> Dict[str, Any]:
        return self.sign_and_send_transaction(receiver_id, [Transfer(deposit=int(amount))])

    def stake(self, public_key: Union[PublicKey, str], amount: Union[int, str]) -> Dict[str, Any]:
        if isinstance(public_key, str):
            public_key = PublicKey.from_string(public_key)
        return self.sign_and_send_transaction(self.account_id, [Stake(stake=int(amount), public_key=public_key)])

    def create_account(
        self, new_account_id: str, public_key: Union[PublicKey, str], amount: Union[int, str, None] = None
    ) -> Dict[str, Any]:
        """Create `new_account_id` funded from this account with a full-access `public_key`."""
        validate_account_id(new_account_id)
        if isinstance(public_key, str):
            public_key = PublicKey.from_string(public_key)
        actions: List[Action] = [
            CreateAccount(),
            Transfer(deposit=int(amount or 0)),
            AddKey(public_key=public_key, access_key=full_access_key()),
        ]
        return self.sign_and_send_transaction(new_account_id, actions)

    def delete_account(self, beneficiary_id: str) -> Dict[str, Any]:
        validate_account_id(beneficiary_id)
        return self.sign_and_send_transaction(self.account_id, [DeleteAccount(beneficiary_id=beneficiary_id)])


def view_function(
    provider: JsonRpcProvider, contract_id: str, method_name: str, args: Optional[Mapping[str, Any]] = None
) -> Any:
    """Run `call_function` against `contract_id`; no account or key is needed."""
    args_b64 = base64.b64encode(json.dumps(args or {}, separators=(",", ":")).encode("utf-8")).decode("ascii")
    try:
        result = provider.query(
            {
                "request_type": "call_function",
                "finality": "final",
                "account_id": contract_id,
                "method_name": method_name,
                "args_base64": args_b64,
            }
        )
    except RpcError as e:
        _raise_classified(e, contract_id)
    for line in result.get("logs") or []:
        log.info("%s: %s", contract_id, line)
    raw = bytes(result.get("result") or [])
    if not raw:
        return None
    return json.loads(raw.decode("utf-8"))


__all__ = [
    "Account",
    "Connection",
    "DEFAULT_FUNCTION_CALL_GAS",
    "is_valid_account_id",
    "validate_account_id",
    "view_function",
]
