"""
Ed25519 key pairs in the chain's text encoding.

Text forms
----------
- public key : ``ed25519:<base58(32-byte public key)>``
- secret key : ``ed25519:<base58(32-byte seed || 32-byte public key)>``

Borsh form of a public key is ``u8 key_type`` followed by the raw 32 bytes;
see :mod:`near_shell.transaction`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)


class KeyType(IntEnum):
    ED25519 = 0


_KEY_TYPE_NAMES = {"ed25519": KeyType.ED25519}


def _split_key(text: str) -> tuple[KeyType, bytes]:
    if ":" in text:
        curve, encoded = text.split(":", 1)
    else:
        curve, encoded = "ed25519", text
    key_type = _KEY_TYPE_NAMES.get(curve.lower())
    if key_type is None:
        raise ValueError(f"Unknown key type {curve!r}")
    try:
        return key_type, base58.b58decode(encoded)
    except ValueError as e:
        raise ValueError(f"Key is not valid base58: {e}") from e


@dataclass(frozen=True)
class PublicKey:
    data: bytes
    key_type: KeyType = KeyType.ED25519

    @classmethod
    def from_string(cls, text: str) -> "PublicKey":
        key_type, raw = _split_key(text)
        if len(raw) != 32:
            raise ValueError(f"ed25519 public key must be 32 bytes, got {len(raw)}")
        return cls(data=raw, key_type=key_type)

    def to_string(self) -> str:
        return f"{self.key_type.name.lower()}:{base58.b58encode(self.data).decode('ascii')}"

    def verify(self, message: bytes, signature: bytes) -> bool:
        try:
            Ed25519PublicKey.from_public_bytes(self.data).verify(signature, message)
            return True
        except InvalidSignature:
            return False

    def __str__(self) -> str:
        return self.to_string()


class KeyPair:
    """An ed25519 signing key with its public half."""

    def __init__(self, seed: bytes) -> None:
        if len(seed) != 32:
            raise ValueError("ed25519 seed must be 32 bytes")
        self._sk = Ed25519PrivateKey.from_private_bytes(seed)
        self._seed = bytes(seed)
        self.public_key = PublicKey(self._sk.public_key().public_bytes_raw())

    @classmethod
    def from_random(cls) -> "KeyPair":
        return cls(Ed25519PrivateKey.generate().private_bytes_raw())

    @classmethod
    def from_string(cls, text: str) -> "KeyPair":
        """Parse ``ed25519:<base58>`` holding either a 64-byte secret or a 32-byte seed."""
        _, raw = _split_key(text)
        if len(raw) not in (32, 64):
            raise ValueError(f"ed25519 secret key must be 32 or 64 bytes, got {len(raw)}")
        kp = cls(raw[:32])
        if len(raw) == 64 and raw[32:] != kp.public_key.data:
            raise ValueError("secret key does not match its embedded public key")
        return kp

    @property
    def secret_key(self) -> str:
        raw = self._seed + self.public_key.data
        return f"ed25519:{base58.b58encode(raw).decode('ascii')}"

    def sign(self, message: bytes) -> bytes:
        return self._sk.sign(message)

    def verify(self, message: bytes, signature: bytes) -> bool:
        return self.public_key.verify(message, signature)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, KeyPair) and other._seed == self._seed

    def __hash__(self) -> int:
        return hash(self._seed)

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key.to_string()!r})"


__all__ = ["KeyType", "PublicKey", "KeyPair"]
