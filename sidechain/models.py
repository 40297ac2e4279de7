"""
Ledger entity model: outpoints, outputs, main-chain claims, transactions,
block bodies and headers.

Every entity has a canonical byte encoding. Transactions and headers are
identified by sha256d of that encoding; those identities are what output
outpoints are derived from.
"""

import struct
from enum import Enum
from dataclasses import dataclass
from typing import Tuple

from config.config import MAX_AMOUNT, DIGEST_SIZE, BLOCK_VERSION, NULL_HASH
from errors.exceptions import ValidationError
from sidechain.digest import sha256d, write_varint, write_bytes, write_list, calculate_merkle_root
from wallet.wallet import Unlockable


def _check_digest(value: bytes, name: str):
    if not isinstance(value, bytes) or len(value) != DIGEST_SIZE:
        raise ValidationError(f"{name} must be {DIGEST_SIZE} bytes")

def _check_amount(amount: int):
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"amount must be an integer, got {type(amount).__name__}")
    if not 0 <= amount <= MAX_AMOUNT:
        raise ValidationError(f"amount {amount} outside unsigned 64-bit range")

def _check_index(index: int):
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise ValidationError(f"index must be a non-negative integer, got {index!r}")


class OutpointKind(Enum):
    COINBASE = 0
    REGULAR = 1


@dataclass(frozen=True)
class Outpoint:
    """Reference to the n-th coinbase output of a block or n-th output of a transaction"""
    kind: OutpointKind
    source: bytes   # block hash for COINBASE, txid for REGULAR
    index: int

    def __post_init__(self):
        if not isinstance(self.kind, OutpointKind):
            raise ValidationError(f"unknown outpoint kind {self.kind!r}")
        _check_digest(self.source, "outpoint source")
        _check_index(self.index)

    @classmethod
    def coinbase(cls, block_hash: bytes, index: int) -> "Outpoint":
        return cls(OutpointKind.COINBASE, block_hash, index)

    @classmethod
    def regular(cls, txid: bytes, index: int) -> "Outpoint":
        return cls(OutpointKind.REGULAR, txid, index)

    def serialize(self) -> bytes:
        return struct.pack("<B", self.kind.value) + self.source + write_varint(self.index)

    def key(self) -> str:
        return f"{self.kind.name.lower()}:{self.source.hex()}:{self.index}"

    @classmethod
    def from_key(cls, key: str) -> "Outpoint":
        kind, source, index = key.split(":")
        return cls(OutpointKind[kind.upper()], bytes.fromhex(source), int(index))

    def __str__(self) -> str:
        return self.key()


@dataclass(frozen=True)
class MainOutpoint:
    """Main-chain reference key for a deposit or a refundable withdrawal"""
    txid: bytes
    vout: int

    def __post_init__(self):
        _check_digest(self.txid, "main outpoint txid")
        _check_index(self.vout)

    def serialize(self) -> bytes:
        return self.txid + write_varint(self.vout)

    def key(self) -> str:
        return f"{self.txid.hex()}:{self.vout}"

    @classmethod
    def from_key(cls, key: str) -> "MainOutpoint":
        txid, vout = key.split(":")
        return cls(bytes.fromhex(txid), int(vout))

    def __str__(self) -> str:
        return self.key()


@dataclass(frozen=True)
class Output:
    amount: int
    address: Unlockable

    def __post_init__(self):
        _check_amount(self.amount)

    def serialize(self) -> bytes:
        return struct.pack("<Q", self.amount) + write_bytes(self.address.serialize())


@dataclass(frozen=True)
class Deposit:
    """Value locked on the main chain for this ledger; owned by the oracle"""
    amount: int
    address: Unlockable

    def __post_init__(self):
        _check_amount(self.amount)


@dataclass(frozen=True)
class Withdrawal:
    """Exit request moving value back to the main chain"""
    amount: int
    address: Unlockable

    def __post_init__(self):
        _check_amount(self.amount)

    def serialize(self) -> bytes:
        return struct.pack("<Q", self.amount) + write_bytes(self.address.serialize())


@dataclass(frozen=True)
class Input:
    outpoint: Outpoint
    signature: bytes

    def serialize(self) -> bytes:
        return self.outpoint.serialize() + write_bytes(self.signature)


@dataclass(frozen=True)
class DepositInput:
    outpoint: MainOutpoint
    signature: bytes

    def serialize(self) -> bytes:
        return self.outpoint.serialize() + write_bytes(self.signature)


@dataclass(frozen=True)
class RefundInput:
    outpoint: MainOutpoint
    signature: bytes

    def serialize(self) -> bytes:
        return self.outpoint.serialize() + write_bytes(self.signature)


def _freeze(obj, *names):
    for name in names:
        object.__setattr__(obj, name, tuple(getattr(obj, name)))


@dataclass(frozen=True)
class Transaction:
    deposit_inputs: Tuple[DepositInput, ...] = ()
    refund_inputs: Tuple[RefundInput, ...] = ()
    inputs: Tuple[Input, ...] = ()
    withdrawals: Tuple[Withdrawal, ...] = ()
    outputs: Tuple[Output, ...] = ()

    def __post_init__(self):
        _freeze(self, "deposit_inputs", "refund_inputs", "inputs", "withdrawals", "outputs")

    def serialize(self) -> bytes:
        return (
            write_list(self.deposit_inputs) +
            write_list(self.refund_inputs) +
            write_list(self.inputs) +
            write_list(self.withdrawals) +
            write_list(self.outputs)
        )

    def hash(self) -> bytes:
        return sha256d(self.serialize())


@dataclass(frozen=True)
class Body:
    coinbase: Tuple[Output, ...] = ()
    transactions: Tuple[Transaction, ...] = ()

    def __post_init__(self):
        _freeze(self, "coinbase", "transactions")

    def digest(self) -> bytes:
        """Merkle root over the coinbase commitment followed by every txid"""
        leaves = [sha256d(write_list(self.coinbase))]
        leaves.extend(tx.hash() for tx in self.transactions)
        return calculate_merkle_root(leaves)


@dataclass(frozen=True)
class Header:
    prev_side_block_hash: bytes
    prev_main_block_hash: bytes
    body_digest: bytes
    version: int = BLOCK_VERSION

    def __post_init__(self):
        _check_digest(self.prev_side_block_hash, "prev_side_block_hash")
        _check_digest(self.prev_main_block_hash, "prev_main_block_hash")
        _check_digest(self.body_digest, "body_digest")

    @classmethod
    def for_body(cls, body: Body, prev_side_block_hash: bytes = NULL_HASH,
                 prev_main_block_hash: bytes = NULL_HASH, version: int = BLOCK_VERSION) -> "Header":
        return cls(prev_side_block_hash, prev_main_block_hash, body.digest(), version)

    def serialize(self) -> bytes:
        return (
            struct.pack("<L", self.version) +
            self.prev_side_block_hash +
            self.prev_main_block_hash +
            self.body_digest
        )

    def hash(self) -> bytes:
        return sha256d(self.serialize())
