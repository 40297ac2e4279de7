from .exceptions import (
    SidechainError,
    ValidationError,
    InvalidAddressError,
    DatabaseError,
    ReorganizationError,
)

__all__ = [
    "SidechainError",
    "ValidationError",
    "InvalidAddressError",
    "DatabaseError",
    "ReorganizationError",
]
