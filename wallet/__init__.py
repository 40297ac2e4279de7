from .wallet import (
    Unlockable,
    HashLockAddress,
    generate_secret,
    derive_address,
    sign,
    encode_address,
    decode_address,
)

__all__ = [
    "Unlockable",
    "HashLockAddress",
    "generate_secret",
    "derive_address",
    "sign",
    "encode_address",
    "decode_address",
]
