"""
Main-chain view consumed by the side ledger.

The side ledger only ever reads from the oracle. MainState is the in-memory
implementation used when embedding the core and in tests; a node following a
real main chain supplies its own MainChainOracle.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sidechain.models import MainOutpoint, Deposit, Withdrawal

logger = logging.getLogger(__name__)


class MainChainOracle(ABC):

    @abstractmethod
    def get_deposit(self, reference: MainOutpoint) -> Optional[Deposit]:
        """Deposit locked for the side ledger under reference, or None."""

    @abstractmethod
    def get_withdrawal(self, reference: MainOutpoint) -> Optional[Withdrawal]:
        """Failed withdrawal that may be refunded under reference, or None."""


class MainState(MainChainOracle):

    def __init__(self):
        self.deposits: Dict[MainOutpoint, Deposit] = {}
        self.refunds: Dict[MainOutpoint, Withdrawal] = {}

    def get_deposit(self, reference: MainOutpoint) -> Optional[Deposit]:
        return self.deposits.get(reference)

    def get_withdrawal(self, reference: MainOutpoint) -> Optional[Withdrawal]:
        return self.refunds.get(reference)

    def add_deposit(self, reference: MainOutpoint, deposit: Deposit):
        logger.debug(f"Deposit {reference} of {deposit.amount} recognised")
        self.deposits[reference] = deposit

    def remove_deposit(self, reference: MainOutpoint) -> Optional[Deposit]:
        return self.deposits.pop(reference, None)

    def add_refund(self, reference: MainOutpoint, withdrawal: Withdrawal):
        """Mark a withdrawal as failed on the main chain and therefore refundable."""
        logger.debug(f"Withdrawal {reference} of {withdrawal.amount} refundable")
        self.refunds[reference] = withdrawal

    def remove_refund(self, reference: MainOutpoint) -> Optional[Withdrawal]:
        return self.refunds.pop(reference, None)

    def __repr__(self) -> str:
        return f"MainState(deposits={len(self.deposits)}, refunds={len(self.refunds)})"
