"""
Connection bootstrap: `connect(config)` returns a `Near` object wired with a
JSON-RPC provider, a key store and an account creator.

Key store
---------
    MergeKeyStore([UnencryptedFileSystemKeyStore(key_store_dir), <key_path key>])

Writes go to the file store; a master/validator key loaded from `key_path`
is only read.

Account creation
----------------
- `master_account` set  → the master account sends CreateAccount + Transfer +
  AddKey, funded with `initial_balance` (yoctoNEAR).
- otherwise `helper_url` → POST {helper_url}/account {newAccountId, newAccountPublicKey}.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx

from .account import Account, Connection, validate_account_id
from .config import ShellConfig
from .errors import NearShellError
from .key_pair import PublicKey
from .keystore import InMemoryKeyStore, KeyStore, MergeKeyStore, UnencryptedFileSystemKeyStore, read_key_file
from .rpc.http import JsonRpcProvider

log = logging.getLogger("near_shell.connection")


class AccountCreator:
    def create_account(self, new_account_id: str, public_key: PublicKey) -> Any:
        raise NotImplementedError


class LocalAccountCreator(AccountCreator):
    """Creates accounts by spending from a master account."""

    def __init__(self, master_account: Account, initial_balance: Union[int, str, None]) -> None:
        self.master_account = master_account
        self.initial_balance = int(initial_balance or 0)

    def create_account(self, new_account_id: str, public_key: PublicKey) -> Dict[str, Any]:
        return self.master_account.create_account(new_account_id, public_key, self.initial_balance)


class UrlAccountCreator(AccountCreator):
    """Asks the contract helper service to create the account."""

    def __init__(self, helper_url: str, timeout: float = 30.0) -> None:
        self.helper_url = helper_url.rstrip("/")
        self.timeout = timeout

    def create_account(self, new_account_id: str, public_key: PublicKey) -> Any:
        url = f"{self.helper_url}/account"
        body = {"newAccountId": new_account_id, "newAccountPublicKey": public_key.to_string()}
        try:
            r = httpx.post(url, json=body, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise NearShellError(f"Account helper unreachable at {url}: {e}") from e
        if r.status_code >= 400:
            raise NearShellError(f"Account helper returned HTTP {r.status_code}: {r.text[:256]}")
        try:
            return r.json()
        except ValueError:
            return r.text


class Near:
    def __init__(self, config: ShellConfig, connection: Connection) -> None:
        self.config = config
        self.connection = connection
        self.account_creator: Optional[AccountCreator] = None
        if config.master_account:
            master = Account(connection, config.master_account)
            self.account_creator = LocalAccountCreator(master, config.initial_balance)
        elif config.helper_url:
            self.account_creator = UrlAccountCreator(config.helper_url, timeout=config.timeout)

    @property
    def provider(self) -> JsonRpcProvider:
        return self.connection.provider

    @property
    def key_store(self) -> KeyStore:
        return self.connection.key_store

    def account(self, account_id: str) -> Account:
        """Return the account after confirming it exists on the network."""
        account = Account(self.connection, account_id)
        account.state()
        return account

    def create_account(self, new_account_id: str, public_key: Union[PublicKey, str]) -> Any:
        validate_account_id(new_account_id)
        if isinstance(public_key, str):
            public_key = PublicKey.from_string(public_key)
        if self.account_creator is None:
            raise NearShellError(
                "Must specify account creator: either a master account or a helper URL"
            )
        log.info("creating account %s with key %s", new_account_id, public_key)
        return self.account_creator.create_account(new_account_id, public_key)

    def close(self) -> None:
        self.connection.provider.close()

    def __enter__(self) -> "Near":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()


def build_key_store(config: ShellConfig) -> KeyStore:
    stores: list[KeyStore] = [UnencryptedFileSystemKeyStore(config.key_store_dir)]
    if config.key_path and Path(config.key_path).expanduser().exists():
        account_id, key_pair = read_key_file(Path(config.key_path).expanduser())
        if account_id:
            memory = InMemoryKeyStore()
            memory.set_key(config.network_id, account_id, key_pair)
            stores.append(memory)
            log.debug("loaded key for %s from %s", account_id, config.key_path)
    return MergeKeyStore(stores)


def connect(config: ShellConfig, key_store: Optional[KeyStore] = None) -> Near:
    provider = JsonRpcProvider(config.node_url, timeout=config.timeout, max_retries=config.max_retries)
    connection = Connection(
        network_id=config.network_id,
        provider=provider,
        key_store=key_store if key_store is not None else build_key_store(config),
    )
    return Near(config, connection)


__all__ = [
    "AccountCreator",
    "LocalAccountCreator",
    "UrlAccountCreator",
    "Near",
    "build_key_store",
    "connect",
]
