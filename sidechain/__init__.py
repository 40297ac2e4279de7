"""
Side-ledger core: entity model, body projection, validation and transitions.
"""

from .models import (
    OutpointKind,
    Outpoint,
    MainOutpoint,
    Output,
    Deposit,
    Withdrawal,
    Input,
    DepositInput,
    RefundInput,
    Transaction,
    Body,
    Header,
)
from .validator import BlockValidator, validate_block
from .state import LedgerState, MemoryLedgerState
from .chain_manager import ChainManager

__all__ = [
    "OutpointKind",
    "Outpoint",
    "MainOutpoint",
    "Output",
    "Deposit",
    "Withdrawal",
    "Input",
    "DepositInput",
    "RefundInput",
    "Transaction",
    "Body",
    "Header",
    "BlockValidator",
    "validate_block",
    "LedgerState",
    "MemoryLedgerState",
    "ChainManager",
]
