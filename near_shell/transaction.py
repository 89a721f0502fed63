"""
Transactions, actions and signing.

Wire layout (borsh)
-------------------
    Transaction {
        signer_id:   String
        public_key:  PublicKey { key_type: u8, data: [u8; 32] }
        nonce:       u64
        receiver_id: String
        block_hash:  [u8; 32]
        actions:     Vec<Action>
    }
    SignedTransaction { transaction, signature: Signature { key_type: u8, data: [u8; 64] } }

`Action` is a u8-tagged enum; the tag order below is fixed by the protocol.
The signature covers sha256(borsh(transaction)).
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Sequence, Tuple

import base58

from .key_pair import KeyPair, PublicKey
from .utils.borsh import BorshWriter


def _write_public_key(w: BorshWriter, pk: PublicKey) -> None:
    w.u8(int(pk.key_type)).fixed(pk.data, 32)


# ----- Access keys -------------------------------------------------------------


@dataclass(frozen=True)
class FunctionCallPermission:
    receiver_id: str
    method_names: Sequence[str] = ()
    allowance: Optional[int] = None

    def serialize(self, w: BorshWriter) -> None:
        w.u8(0)
        w.option(self.allowance, lambda w_, v: w_.u128(v))
        w.string(self.receiver_id)
        w.vec(self.method_names, lambda w_, m: w_.string(m))


@dataclass(frozen=True)
class FullAccessPermission:
    def serialize(self, w: BorshWriter) -> None:
        w.u8(1)


@dataclass(frozen=True)
class AccessKey:
    nonce: int = 0
    permission: FunctionCallPermission | FullAccessPermission = field(default_factory=FullAccessPermission)

    def serialize(self, w: BorshWriter) -> None:
        w.u64(self.nonce)
        self.permission.serialize(w)


# ----- Actions -----------------------------------------------------------------


class Action:
    tag: ClassVar[int]

    def serialize(self, w: BorshWriter) -> None:
        w.u8(self.tag)
        self._serialize_body(w)

    def _serialize_body(self, w: BorshWriter) -> None:
        pass


@dataclass(frozen=True)
class CreateAccount(Action):
    tag: ClassVar[int] = 0


@dataclass(frozen=True)
class DeployContract(Action):
    tag: ClassVar[int] = 1
    code: bytes = b""

    def _serialize_body(self, w: BorshWriter) -> None:
        w.blob(self.code)


@dataclass(frozen=True)
class FunctionCall(Action):
    tag: ClassVar[int] = 2
    method_name: str = ""
    args: bytes = b""
    gas: int = 0
    deposit: int = 0

    def _serialize_body(self, w: BorshWriter) -> None:
        w.string(self.method_name).blob(self.args).u64(self.gas).u128(self.deposit)


@dataclass(frozen=True)
class Transfer(Action):
    tag: ClassVar[int] = 3
    deposit: int = 0

    def _serialize_body(self, w: BorshWriter) -> None:
        w.u128(self.deposit)


@dataclass(frozen=True)
class Stake(Action):
    tag: ClassVar[int] = 4
    stake: int = 0
    public_key: Optional[PublicKey] = None

    def _serialize_body(self, w: BorshWriter) -> None:
        if self.public_key is None:
            raise ValueError("Stake requires a public key")
        w.u128(self.stake)
        _write_public_key(w, self.public_key)


@dataclass(frozen=True)
class AddKey(Action):
    tag: ClassVar[int] = 5
    public_key: Optional[PublicKey] = None
    access_key: AccessKey = field(default_factory=AccessKey)

    def _serialize_body(self, w: BorshWriter) -> None:
        if self.public_key is None:
            raise ValueError("AddKey requires a public key")
        _write_public_key(w, self.public_key)
        self.access_key.serialize(w)


@dataclass(frozen=True)
class DeleteKey(Action):
    tag: ClassVar[int] = 6
    public_key: Optional[PublicKey] = None

    def _serialize_body(self, w: BorshWriter) -> None:
        if self.public_key is None:
            raise ValueError("DeleteKey requires a public key")
        _write_public_key(w, self.public_key)


@dataclass(frozen=True)
class DeleteAccount(Action):
    tag: ClassVar[int] = 7
    beneficiary_id: str = ""

    def _serialize_body(self, w: BorshWriter) -> None:
        w.string(self.beneficiary_id)


# ----- Transactions ------------------------------------------------------------


@dataclass(frozen=True)
class Transaction:
    signer_id: str
    public_key: PublicKey
    nonce: int
    receiver_id: str
    block_hash: bytes
    actions: Tuple[Action, ...]

    def serialize(self, w: Optional[BorshWriter] = None) -> bytes:
        w = w or BorshWriter()
        w.string(self.signer_id)
        _write_public_key(w, self.public_key)
        w.u64(self.nonce)
        w.string(self.receiver_id)
        w.fixed(self.block_hash, 32)
        w.vec(self.actions, lambda w_, a: a.serialize(w_))
        return w.getvalue()

    def hash(self) -> bytes:
        return hashlib.sha256(self.serialize()).digest()


@dataclass(frozen=True)
class SignedTransaction:
    transaction: Transaction
    signature: bytes

    def encode(self) -> bytes:
        w = BorshWriter()
        self.transaction.serialize(w)
        w.u8(int(self.transaction.public_key.key_type)).fixed(self.signature, 64)
        return w.getvalue()

    @property
    def hash(self) -> str:
        """Base58 transaction hash, as reported by the node."""
        return base58.b58encode(self.transaction.hash()).decode("ascii")


def create_transaction(
    signer_id: str,
    public_key: PublicKey,
    receiver_id: str,
    nonce: int,
    actions: Sequence[Action],
    block_hash: bytes | str,
) -> Transaction:
    """Build a Transaction; `block_hash` may be raw bytes or the node's base58 text."""
    if isinstance(block_hash, str):
        block_hash = base58.b58decode(block_hash)
    return Transaction(
        signer_id=signer_id,
        public_key=public_key,
        nonce=nonce,
        receiver_id=receiver_id,
        block_hash=bytes(block_hash),
        actions=tuple(actions),
    )


def sign_transaction(tx: Transaction, key_pair: KeyPair) -> SignedTransaction:
    if key_pair.public_key != tx.public_key:
        raise ValueError("key pair does not match the transaction public key")
    return SignedTransaction(transaction=tx, signature=key_pair.sign(tx.hash()))


def full_access_key() -> AccessKey:
    return AccessKey(nonce=0, permission=FullAccessPermission())


def function_call_access_key(
    receiver_id: str, method_names: Sequence[str] = (), allowance: Optional[int] = None
) -> AccessKey:
    return AccessKey(
        nonce=0,
        permission=FunctionCallPermission(receiver_id, tuple(method_names), allowance),
    )


__all__: List[str] = [
    "Action",
    "CreateAccount",
    "DeployContract",
    "FunctionCall",
    "Transfer",
    "Stake",
    "AddKey",
    "DeleteKey",
    "DeleteAccount",
    "AccessKey",
    "FullAccessPermission",
    "FunctionCallPermission",
    "Transaction",
    "SignedTransaction",
    "create_transaction",
    "sign_transaction",
    "full_access_key",
    "function_call_access_key",
]
