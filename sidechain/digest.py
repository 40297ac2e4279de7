import struct
import hashlib
from typing import List


def sha256d(b: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(b).digest()).digest()

def write_varint(n: int) -> bytes:
    """Bitcoin compact-size encoding of a non-negative integer"""
    if n < 0:
        raise ValueError("varint must be non-negative")
    if n < 0xfd:
        return struct.pack("<B", n)
    elif n <= 0xffff:
        return b"\xfd" + struct.pack("<H", n)
    elif n <= 0xffffffff:
        return b"\xfe" + struct.pack("<I", n)
    else:
        return b"\xff" + struct.pack("<Q", n)

def write_bytes(b: bytes) -> bytes:
    return write_varint(len(b)) + b

def write_list(items) -> bytes:
    """Count-prefixed concatenation of serialize() outputs"""
    return write_varint(len(items)) + b"".join(item.serialize() for item in items)

def calculate_merkle_root(leaves: List[bytes]) -> bytes:
    """32-byte leaves ➜ 32-byte Merkle root"""
    if not leaves:
        return sha256d(b"")

    hashes = list(leaves)
    while len(hashes) > 1:
        if len(hashes) & 1:
            hashes.append(hashes[-1])
        hashes = [
            sha256d(hashes[i] + hashes[i + 1])
            for i in range(0, len(hashes), 2)
        ]

    return hashes[0]
