"""
Authorization capability for side-ledger outputs.

An address is anything that can decide whether a supplied signature unlocks
it. The concrete scheme shipped here is a hash lock: the address commits to
SHA-256 of a secret and the signature is the secret itself.
"""

import os
import hmac
import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
import base58

from config.config import ADDRESS_PREFIX, DIGEST_SIZE
from errors.exceptions import InvalidAddressError, ValidationError

_ADDRESS_VERSION = 0x3f
_CHECKSUM_LEN = 4
_SECRET_LEN = 32


class Unlockable(ABC):
    """Opaque authorization target"""

    @abstractmethod
    def check_signature(self, signature: bytes) -> bool:
        ...

    @abstractmethod
    def serialize(self) -> bytes:
        """Canonical bytes committed to by transaction digests"""


@dataclass(frozen=True)
class HashLockAddress(Unlockable):
    digest: bytes

    def __post_init__(self):
        if not isinstance(self.digest, bytes) or len(self.digest) != DIGEST_SIZE:
            raise ValidationError(f"address digest must be {DIGEST_SIZE} bytes")

    def check_signature(self, signature: bytes) -> bool:
        if not isinstance(signature, (bytes, bytearray)):
            return False
        return hmac.compare_digest(hashlib.sha256(signature).digest(), self.digest)

    def serialize(self) -> bytes:
        return self.digest

    def encode(self) -> str:
        versioned = bytes([_ADDRESS_VERSION]) + self.digest
        checksum = hashlib.sha256(hashlib.sha256(versioned).digest()).digest()[:_CHECKSUM_LEN]
        return ADDRESS_PREFIX + base58.b58encode(versioned + checksum).decode()

    @classmethod
    def decode(cls, text: str) -> "HashLockAddress":
        if not isinstance(text, str) or not text.startswith(ADDRESS_PREFIX):
            raise InvalidAddressError(f"Address must start with {ADDRESS_PREFIX!r}")
        try:
            raw = base58.b58decode(text[len(ADDRESS_PREFIX):])
        except ValueError as e:
            raise InvalidAddressError(f"Address is not valid base58: {e}") from e

        if len(raw) != 1 + DIGEST_SIZE + _CHECKSUM_LEN:
            raise InvalidAddressError(f"Address has wrong length {len(raw)}")
        versioned, checksum = raw[:-_CHECKSUM_LEN], raw[-_CHECKSUM_LEN:]
        expected = hashlib.sha256(hashlib.sha256(versioned).digest()).digest()[:_CHECKSUM_LEN]
        if not hmac.compare_digest(checksum, expected):
            raise InvalidAddressError("Address checksum mismatch")
        if versioned[0] != _ADDRESS_VERSION:
            raise InvalidAddressError(f"Unknown address version {versioned[0]}")
        return cls(versioned[1:])

    def __str__(self) -> str:
        return self.encode()


def generate_secret() -> bytes:
    return os.urandom(_SECRET_LEN)

def derive_address(secret: bytes) -> HashLockAddress:
    return HashLockAddress(hashlib.sha256(secret).digest())

def sign(secret: bytes) -> bytes:
    """Produce the unlocking signature for the address derived from secret."""
    return bytes(secret)

def encode_address(address: Unlockable) -> str:
    if not isinstance(address, HashLockAddress):
        raise InvalidAddressError(f"No text encoding for {type(address).__name__}")
    return address.encode()

def decode_address(text: str) -> HashLockAddress:
    return HashLockAddress.decode(text)
