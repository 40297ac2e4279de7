"""
Flat views over a block body.

Everything here is pure: references are not resolved and nothing is
rejected. Malformed references are caught by the validator.
"""

from typing import Dict, List, Tuple

from sidechain.models import (
    Body, Header, Outpoint, Output, Input, DepositInput, RefundInput, Withdrawal,
)


def created_outputs(header: Header, body: Body) -> List[Tuple[Outpoint, Output]]:
    """
    Every output a block creates, keyed by its freshly minted outpoint.

    Coinbase outputs come first, keyed by the header hash, followed by each
    transaction's outputs keyed by its txid. The list keeps duplicates so a
    caller can tell a collision apart from a merge.
    """
    block_hash = header.hash()
    created = [
        (Outpoint.coinbase(block_hash, n), output)
        for n, output in enumerate(body.coinbase)
    ]
    for tx in body.transactions:
        txid = tx.hash()
        created.extend(
            (Outpoint.regular(txid, n), output)
            for n, output in enumerate(tx.outputs)
        )
    return created

def outputs(header: Header, body: Body) -> Dict[Outpoint, Output]:
    return dict(created_outputs(header, body))

def inputs(body: Body) -> List[Input]:
    return [inp for tx in body.transactions for inp in tx.inputs]

def deposit_inputs(body: Body) -> List[DepositInput]:
    return [inp for tx in body.transactions for inp in tx.deposit_inputs]

def refund_inputs(body: Body) -> List[RefundInput]:
    return [inp for tx in body.transactions for inp in tx.refund_inputs]

def withdrawals(body: Body) -> List[Withdrawal]:
    return [w for tx in body.transactions for w in tx.withdrawals]

def coinbase_amount(body: Body) -> int:
    return sum(output.amount for output in body.coinbase)
