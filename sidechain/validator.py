"""
Block validation for the side ledger.

A block is accepted only if every reference it makes resolves, every claim is
authorized by the claimed value's address, and value is conserved across
spends, deposit claims, refund claims, new outputs and withdrawals.
Validation never mutates the ledger.
"""

import logging
from typing import Optional, Tuple

from config.config import MAX_AMOUNT
from sidechain import projection
from sidechain.models import Body, Header

logger = logging.getLogger(__name__)


def _first_duplicate(items) -> Optional[object]:
    seen = set()
    for item in items:
        if item in seen:
            return item
        seen.add(item)
    return None


class BlockValidator:
    """Validates blocks against a ledger state and the main-chain oracle"""

    def __init__(self, main_state):
        self.main_state = main_state

    def validate_block(self, ledger, header: Header, body: Body) -> bool:
        is_valid, _ = self.check_block(ledger, header, body)
        return is_valid

    def check_block(self, ledger, header: Header, body: Body) -> Tuple[bool, Optional[str]]:
        """
        Validate a block without applying it.
        Returns (is_valid, error_message)
        """
        inputs = projection.inputs(body)
        deposit_inputs = projection.deposit_inputs(body)
        refund_inputs = projection.refund_inputs(body)

        # Each claim may appear once per block
        duplicate = _first_duplicate(inp.outpoint for inp in inputs)
        if duplicate is not None:
            return self._reject(f"Double spend detected: output {duplicate} spent twice in block")
        duplicate = _first_duplicate(inp.outpoint for inp in deposit_inputs)
        if duplicate is not None:
            return self._reject(f"Deposit {duplicate} claimed twice in block")
        duplicate = _first_duplicate(inp.outpoint for inp in refund_inputs)
        if duplicate is not None:
            return self._reject(f"Refund {duplicate} claimed twice in block")

        # Resolve every reference; one miss rejects the whole block
        spent_outputs = []
        for inp in inputs:
            output = ledger.get_utxo(inp.outpoint)
            if output is None:
                return self._reject(f"Input references unknown or spent output {inp.outpoint}")
            spent_outputs.append(output)

        claimed_deposits = []
        for inp in deposit_inputs:
            if ledger.is_deposit_claimed(inp.outpoint):
                return self._reject(f"Deposit {inp.outpoint} already claimed")
            deposit = self.main_state.get_deposit(inp.outpoint)
            if deposit is None:
                return self._reject(f"Deposit {inp.outpoint} not found on main chain")
            claimed_deposits.append(deposit)

        refunded_withdrawals = []
        for inp in refund_inputs:
            if ledger.is_refund_claimed(inp.outpoint):
                return self._reject(f"Refund {inp.outpoint} already claimed")
            withdrawal = self.main_state.get_withdrawal(inp.outpoint)
            if withdrawal is None:
                return self._reject(f"Refundable withdrawal {inp.outpoint} not found on main chain")
            refunded_withdrawals.append(withdrawal)

        # Authorization
        for category, claims, resolved in (
            ("input", inputs, spent_outputs),
            ("deposit input", deposit_inputs, claimed_deposits),
            ("refund input", refund_inputs, refunded_withdrawals),
        ):
            for inp, target in zip(claims, resolved):
                if not target.address.check_signature(inp.signature):
                    return self._reject(f"Signature verification failed for {category} {inp.outpoint}")

        created = projection.created_outputs(header, body)
        duplicate = _first_duplicate(outpoint for outpoint, _ in created)
        if duplicate is not None:
            return self._reject(f"Block creates output {duplicate} more than once")
        # Spent records count too; disconnect removes whatever this block created
        for outpoint, _ in created:
            if ledger.get_output(outpoint) is not None:
                return self._reject(f"Block creates output {outpoint} that already exists")

        # Conservation
        total_input_amount = (
            self._sum(spent_outputs) +
            self._sum(claimed_deposits) +
            self._sum(refunded_withdrawals)
        )
        total_output_amount = (
            self._sum(output for _, output in created) +
            self._sum(projection.withdrawals(body))
        )
        total_coinbase_amount = projection.coinbase_amount(body)

        logger.debug(
            f"Block {header.hash().hex()}: inputs={total_input_amount}, "
            f"outputs={total_output_amount}, coinbase={total_coinbase_amount}"
        )

        if total_input_amount > MAX_AMOUNT or total_output_amount > MAX_AMOUNT:
            return self._reject("Block value totals overflow 64-bit amount range")
        if total_output_amount < total_input_amount:
            return self._reject(
                f"Block consumes {total_input_amount} but only creates {total_output_amount}"
            )
        if total_coinbase_amount != total_output_amount - total_input_amount:
            return self._reject(
                f"Coinbase {total_coinbase_amount} does not match net value "
                f"{total_output_amount - total_input_amount}"
            )

        return True, None

    @staticmethod
    def _sum(records) -> int:
        return sum(record.amount for record in records)

    @staticmethod
    def _reject(message: str) -> Tuple[bool, str]:
        logger.debug(f"Block rejected: {message}")
        return False, message


def validate_block(ledger, main_state, header: Header, body: Body) -> bool:
    return BlockValidator(main_state).validate_block(ledger, header, body)
