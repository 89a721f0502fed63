"""
Key stores — map (network id, account id) to a signing key pair.

Layout of the unencrypted file store
------------------------------------
    <key_store_dir>/<network_id>/<account_id>.json

    {
      "account_id": "alice.testnet",
      "public_key": "ed25519:<base58>",
      "private_key": "ed25519:<base58>"
    }

- Files are written atomically (tmp file + replace) with mode 0600.
- Nothing is encrypted; the directory is meant for developer machines.
- `MergeKeyStore` reads from the first store that knows a key and writes to
  the first store, so a validator key file can sit in front of ./neardev.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import KeyStoreError
from .key_pair import KeyPair

log = logging.getLogger("near_shell.keystore")


class KeyStore:
    """Interface shared by all key stores."""

    def set_key(self, network_id: str, account_id: str, key_pair: KeyPair) -> None:
        raise NotImplementedError

    def get_key(self, network_id: str, account_id: str) -> Optional[KeyPair]:
        raise NotImplementedError

    def remove_key(self, network_id: str, account_id: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def get_networks(self) -> List[str]:
        raise NotImplementedError

    def get_accounts(self, network_id: str) -> List[str]:
        raise NotImplementedError


class InMemoryKeyStore(KeyStore):
    def __init__(self) -> None:
        self._keys: Dict[Tuple[str, str], KeyPair] = {}

    def set_key(self, network_id: str, account_id: str, key_pair: KeyPair) -> None:
        self._keys[(network_id, account_id)] = key_pair

    def get_key(self, network_id: str, account_id: str) -> Optional[KeyPair]:
        return self._keys.get((network_id, account_id))

    def remove_key(self, network_id: str, account_id: str) -> None:
        self._keys.pop((network_id, account_id), None)

    def clear(self) -> None:
        self._keys.clear()

    def get_networks(self) -> List[str]:
        return sorted({net for net, _ in self._keys})

    def get_accounts(self, network_id: str) -> List[str]:
        return sorted(acc for net, acc in self._keys if net == network_id)

    def __len__(self) -> int:
        return len(self._keys)


class UnencryptedFileSystemKeyStore(KeyStore):
    def __init__(self, key_dir: os.PathLike[str] | str) -> None:
        self.key_dir = Path(key_dir)

    def _path(self, network_id: str, account_id: str) -> Path:
        return self.key_dir / network_id / f"{account_id}.json"

    def set_key(self, network_id: str, account_id: str, key_pair: KeyPair) -> None:
        path = self._path(network_id, account_id)
        _atomic_write_json(
            path,
            {
                "account_id": account_id,
                "public_key": key_pair.public_key.to_string(),
                "private_key": key_pair.secret_key,
            },
        )
        _chmod_private(path)
        log.debug("stored key for %s on %s at %s", account_id, network_id, path)

    def get_key(self, network_id: str, account_id: str) -> Optional[KeyPair]:
        path = self._path(network_id, account_id)
        if not path.exists():
            return None
        return read_key_file(path)[1]

    def remove_key(self, network_id: str, account_id: str) -> None:
        path = self._path(network_id, account_id)
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    def clear(self) -> None:
        for network_id in self.get_networks():
            for account_id in self.get_accounts(network_id):
                self.remove_key(network_id, account_id)

    def get_networks(self) -> List[str]:
        if not self.key_dir.is_dir():
            return []
        return sorted(p.name for p in self.key_dir.iterdir() if p.is_dir())

    def get_accounts(self, network_id: str) -> List[str]:
        net_dir = self.key_dir / network_id
        if not net_dir.is_dir():
            return []
        return sorted(p.stem for p in net_dir.glob("*.json"))


class MergeKeyStore(KeyStore):
    def __init__(self, stores: Sequence[KeyStore]) -> None:
        if not stores:
            raise ValueError("MergeKeyStore needs at least one store")
        self.stores = list(stores)

    def set_key(self, network_id: str, account_id: str, key_pair: KeyPair) -> None:
        self.stores[0].set_key(network_id, account_id, key_pair)

    def get_key(self, network_id: str, account_id: str) -> Optional[KeyPair]:
        for store in self.stores:
            kp = store.get_key(network_id, account_id)
            if kp is not None:
                return kp
        return None

    def remove_key(self, network_id: str, account_id: str) -> None:
        for store in self.stores:
            store.remove_key(network_id, account_id)

    def clear(self) -> None:
        for store in self.stores:
            store.clear()

    def get_networks(self) -> List[str]:
        return sorted({n for store in self.stores for n in store.get_networks()})

    def get_accounts(self, network_id: str) -> List[str]:
        return sorted({a for store in self.stores for a in store.get_accounts(network_id)})


def read_key_file(path: os.PathLike[str] | str) -> Tuple[Optional[str], KeyPair]:
    """
    Load a key JSON file and return (account_id, key pair).

    Accepts `private_key` (key store files) or `secret_key` (validator keys).
    """
    data = _read_json(path)
    secret = data.get("private_key") or data.get("secret_key")
    if not secret:
        raise KeyStoreError(f"Key file has no private_key/secret_key: {path}")
    try:
        kp = KeyPair.from_string(str(secret))
    except ValueError as e:
        raise KeyStoreError(f"Malformed key in {path}: {e}") from e
    return data.get("account_id"), kp


# ----- Internals ---------------------------------------------------------------


def _atomic_write_json(path: Path, obj: Dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = json.dumps(obj, separators=(",", ":")).encode("utf-8")
        with tempfile.NamedTemporaryFile("wb", delete=False, dir=str(path.parent)) as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_name = tmp.name
        os.replace(tmp_name, path)  # atomic on POSIX
    except OSError as e:
        raise KeyStoreError(f"Failed to write key file: {e}") from e


def _read_json(path: os.PathLike[str] | str) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            obj = json.loads(f.read().decode("utf-8"))
    except FileNotFoundError as e:
        raise KeyStoreError(f"Key file not found: {path}") from e
    except (OSError, ValueError) as e:
        raise KeyStoreError(f"Failed to read key file {path}: {e}") from e
    if not isinstance(obj, dict):
        raise KeyStoreError(f"Key file is not a JSON object: {path}")
    return obj


def _chmod_private(path: Path) -> None:
    if os.name != "posix":
        # On Windows we skip explicit ACLs; users should rely on profile isolation.
        return
    try:
        os.chmod(path, 0o600)
    except OSError as e:
        log.warning("could not restrict permissions on %s: %s", path, e)


__all__ = [
    "KeyStore",
    "InMemoryKeyStore",
    "UnencryptedFileSystemKeyStore",
    "MergeKeyStore",
    "read_key_file",
]
