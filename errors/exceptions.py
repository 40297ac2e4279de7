"""
Custom exception classes for sidepeg-core

Block rejection is a normal outcome and is reported as a return value, never
raised. These exceptions cover malformed data and storage faults.
"""

class SidechainError(Exception):
    """Base exception for side-ledger operations"""
    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        self.code = code or "SIDECHAIN_ERROR"

class ValidationError(SidechainError):
    """Malformed ledger data"""
    def __init__(self, message: str):
        super().__init__(message, "VALIDATION_ERROR")

class InvalidAddressError(ValidationError):
    """Address text could not be decoded"""
    def __init__(self, message: str = "Invalid address"):
        super().__init__(message)

class DatabaseError(SidechainError):
    """Ledger storage operation failed"""
    def __init__(self, message: str):
        super().__init__(message, "DATABASE_ERROR")

class ReorganizationError(SidechainError):
    """Requested connect/disconnect sequence cannot be applied"""
    def __init__(self, message: str):
        super().__init__(message, "REORG_ERROR")
