"""
near-shell — command-line toolkit for NEAR-style networks.

Library entry points:

    from near_shell import load_config, connect, login

    config = load_config("testnet")
    near = connect(config)
    print(near.account("alice.testnet").state())

The `near` console script lives in :mod:`near_shell.cli` and is loaded lazily.
"""

from __future__ import annotations

from .config import ShellConfig, is_ci, is_debug, load_config
from .connection import Near, connect
from .errors import (
    AccountDoesNotExist,
    InvalidAccountId,
    KeyStoreError,
    NearShellError,
    RpcError,
    TxError,
)
from .key_pair import KeyPair, PublicKey
from .keystore import InMemoryKeyStore, MergeKeyStore, UnencryptedFileSystemKeyStore
from .login import LoginHandshake, LoginResult, LoginStatus, login
from .version import __version__

__all__ = [
    "__version__",
    "ShellConfig",
    "load_config",
    "is_ci",
    "is_debug",
    "Near",
    "connect",
    "KeyPair",
    "PublicKey",
    "InMemoryKeyStore",
    "MergeKeyStore",
    "UnencryptedFileSystemKeyStore",
    "LoginHandshake",
    "LoginResult",
    "LoginStatus",
    "login",
    "NearShellError",
    "RpcError",
    "TxError",
    "KeyStoreError",
    "InvalidAccountId",
    "AccountDoesNotExist",
]
