"""
Ledger state and block transitions.

LedgerState holds the unspent outpoint set, the index of every output created
by a connected block (spent or not), and the main-chain claims made by
connected blocks.
connect applies a validated block; disconnect undoes the most recently
connected one. Neither re-validates and neither is idempotent, so callers
must disconnect in exact reverse order of connection.

Validation only reads a ledger state; one writer at a time may connect or
disconnect against a given instance. snapshot() gives an independent copy
that can be validated against in parallel.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple

from sidechain import projection
from sidechain.models import Body, Header, MainOutpoint, Outpoint, Output


@dataclass
class BlockChanges:
    """Everything a block touches in the ledger"""
    spent: List[Outpoint]
    created: List[Tuple[Outpoint, Output]]
    deposits: List[MainOutpoint]
    refunds: List[MainOutpoint]

    @classmethod
    def from_block(cls, header: Header, body: Body) -> "BlockChanges":
        return cls(
            spent=[inp.outpoint for inp in projection.inputs(body)],
            created=projection.created_outputs(header, body),
            deposits=[inp.outpoint for inp in projection.deposit_inputs(body)],
            refunds=[inp.outpoint for inp in projection.refund_inputs(body)],
        )


class LedgerState(ABC):

    @abstractmethod
    def get_output(self, outpoint: Outpoint) -> Optional[Output]:
        """Output record for outpoint whether spent or not."""

    @abstractmethod
    def is_unspent(self, outpoint: Outpoint) -> bool:
        ...

    @abstractmethod
    def is_deposit_claimed(self, reference: MainOutpoint) -> bool:
        ...

    @abstractmethod
    def is_refund_claimed(self, reference: MainOutpoint) -> bool:
        ...

    @abstractmethod
    def unspent_outpoints(self) -> Iterator[Outpoint]:
        ...

    @abstractmethod
    def output_index(self) -> Iterator[Tuple[Outpoint, Output]]:
        ...

    @abstractmethod
    def claimed_deposits(self) -> Iterator[MainOutpoint]:
        ...

    @abstractmethod
    def claimed_refunds(self) -> Iterator[MainOutpoint]:
        ...

    @abstractmethod
    def _apply(self, changes: BlockChanges):
        ...

    @abstractmethod
    def _revert(self, changes: BlockChanges):
        ...

    def get_utxo(self, outpoint: Outpoint) -> Optional[Output]:
        """Output record for outpoint only while it is unspent."""
        if not self.is_unspent(outpoint):
            return None
        return self.get_output(outpoint)

    def balance(self, address) -> int:
        total = 0
        for outpoint in self.unspent_outpoints():
            output = self.get_output(outpoint)
            if output is not None and output.address == address:
                total += output.amount
        return total

    def connect(self, header: Header, body: Body):
        self._apply(BlockChanges.from_block(header, body))

    def disconnect(self, header: Header, body: Body):
        self._revert(BlockChanges.from_block(header, body))

    def snapshot(self) -> "MemoryLedgerState":
        return MemoryLedgerState(
            utxos=set(self.unspent_outpoints()),
            outputs=dict(self.output_index()),
            deposits=set(self.claimed_deposits()),
            refunds=set(self.claimed_refunds()),
        )


class MemoryLedgerState(LedgerState):

    def __init__(self, utxos: Set[Outpoint] = None, outputs: Dict[Outpoint, Output] = None,
                 deposits: Set[MainOutpoint] = None, refunds: Set[MainOutpoint] = None):
        self.utxos: Set[Outpoint] = set(utxos or ())
        self.outputs: Dict[Outpoint, Output] = dict(outputs or {})
        self.deposits: Set[MainOutpoint] = set(deposits or ())
        self.refunds: Set[MainOutpoint] = set(refunds or ())

    def get_output(self, outpoint: Outpoint) -> Optional[Output]:
        return self.outputs.get(outpoint)

    def is_unspent(self, outpoint: Outpoint) -> bool:
        return outpoint in self.utxos

    def is_deposit_claimed(self, reference: MainOutpoint) -> bool:
        return reference in self.deposits

    def is_refund_claimed(self, reference: MainOutpoint) -> bool:
        return reference in self.refunds

    def unspent_outpoints(self) -> Iterator[Outpoint]:
        return iter(self.utxos)

    def output_index(self) -> Iterator[Tuple[Outpoint, Output]]:
        return iter(self.outputs.items())

    def claimed_deposits(self) -> Iterator[MainOutpoint]:
        return iter(self.deposits)

    def claimed_refunds(self) -> Iterator[MainOutpoint]:
        return iter(self.refunds)

    def _apply(self, changes: BlockChanges):
        self.utxos.difference_update(changes.spent)
        for outpoint, output in changes.created:
            self.utxos.add(outpoint)
            self.outputs[outpoint] = output
        self.deposits.update(changes.deposits)
        self.refunds.update(changes.refunds)

    def _revert(self, changes: BlockChanges):
        self.utxos.update(changes.spent)
        for outpoint, _ in changes.created:
            self.utxos.discard(outpoint)
            self.outputs.pop(outpoint, None)
        self.deposits.difference_update(changes.deposits)
        self.refunds.difference_update(changes.refunds)

    def copy(self) -> "MemoryLedgerState":
        return self.snapshot()

    def __eq__(self, other) -> bool:
        if not isinstance(other, MemoryLedgerState):
            return NotImplemented
        return (
            self.utxos == other.utxos and
            self.outputs == other.outputs and
            self.deposits == other.deposits and
            self.refunds == other.refunds
        )

    def __repr__(self) -> str:
        return (
            f"MemoryLedgerState(utxos={len(self.utxos)}, outputs={len(self.outputs)}, "
            f"deposits={len(self.deposits)}, refunds={len(self.refunds)})"
        )
