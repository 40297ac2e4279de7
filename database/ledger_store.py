"""
RocksDB-backed ledger state.

Key layout:
    output:<outpoint key>   JSON {"amount", "address"} for every created output
    utxo:<outpoint key>     present while the output is unspent
    deposit:<reference>     deposit claimed by a connected block
    refund:<reference>      refund claimed by a connected block

Every connect/disconnect is written as a single WriteBatch, so a storage
fault leaves the ledger exactly as it was before the call.
"""

import json
from typing import Iterator, Optional, Tuple
from rocksdict import WriteBatch

from errors.exceptions import DatabaseError, InvalidAddressError, ValidationError
from log_utils import get_logger
from sidechain.models import MainOutpoint, Outpoint, Output
from sidechain.state import BlockChanges, LedgerState
from wallet.wallet import decode_address, encode_address

logger = get_logger(__name__)

_OUTPUT = "output:"
_UTXO = "utxo:"
_DEPOSIT = "deposit:"
_REFUND = "refund:"
_MARK = b"1"


def _key(prefix: str, item) -> bytes:
    return f"{prefix}{item.key()}".encode()


class RocksLedgerState(LedgerState):

    def __init__(self, db):
        self.db = db

    def get_output(self, outpoint: Outpoint) -> Optional[Output]:
        data = self.db.get(_key(_OUTPUT, outpoint))
        if data is None:
            return None
        return self._decode_output(data)

    def is_unspent(self, outpoint: Outpoint) -> bool:
        return self.db.get(_key(_UTXO, outpoint)) is not None

    def is_deposit_claimed(self, reference: MainOutpoint) -> bool:
        return self.db.get(_key(_DEPOSIT, reference)) is not None

    def is_refund_claimed(self, reference: MainOutpoint) -> bool:
        return self.db.get(_key(_REFUND, reference)) is not None

    def unspent_outpoints(self) -> Iterator[Outpoint]:
        for key in self._keys(_UTXO):
            yield Outpoint.from_key(key)

    def output_index(self) -> Iterator[Tuple[Outpoint, Output]]:
        prefix = _OUTPUT.encode()
        for key, value in self.db.items():
            if key.startswith(prefix):
                yield Outpoint.from_key(key[len(prefix):].decode()), self._decode_output(value)

    def claimed_deposits(self) -> Iterator[MainOutpoint]:
        for key in self._keys(_DEPOSIT):
            yield MainOutpoint.from_key(key)

    def claimed_refunds(self) -> Iterator[MainOutpoint]:
        for key in self._keys(_REFUND):
            yield MainOutpoint.from_key(key)

    def _keys(self, prefix: str) -> Iterator[str]:
        raw_prefix = prefix.encode()
        for key in self.db.keys():
            if key.startswith(raw_prefix):
                yield key[len(raw_prefix):].decode()

    def _apply(self, changes: BlockChanges):
        batch = WriteBatch()
        for outpoint in changes.spent:
            batch.delete(_key(_UTXO, outpoint))
        for outpoint, output in changes.created:
            batch.put(_key(_OUTPUT, outpoint), self._encode_output(output))
            batch.put(_key(_UTXO, outpoint), _MARK)
        for reference in changes.deposits:
            batch.put(_key(_DEPOSIT, reference), _MARK)
        for reference in changes.refunds:
            batch.put(_key(_REFUND, reference), _MARK)
        self._write(batch, "connect", len(changes.spent), len(changes.created))

    def _revert(self, changes: BlockChanges):
        batch = WriteBatch()
        for outpoint in changes.spent:
            batch.put(_key(_UTXO, outpoint), _MARK)
        for outpoint, _ in changes.created:
            batch.delete(_key(_UTXO, outpoint))
            batch.delete(_key(_OUTPUT, outpoint))
        for reference in changes.deposits:
            batch.delete(_key(_DEPOSIT, reference))
        for reference in changes.refunds:
            batch.delete(_key(_REFUND, reference))
        self._write(batch, "disconnect", len(changes.spent), len(changes.created))

    def _write(self, batch: WriteBatch, operation: str, spent: int, created: int):
        try:
            self.db.write(batch)
        except Exception as e:
            logger.error(f"Ledger {operation} failed: {e}", extra={"operation": operation})
            raise DatabaseError(f"Ledger {operation} failed: {e}") from e
        logger.debug(
            f"Ledger {operation} committed: {spent} spent, {created} created",
            extra={"operation": operation},
        )

    @staticmethod
    def _encode_output(output: Output) -> bytes:
        try:
            address = encode_address(output.address)
        except InvalidAddressError as e:
            raise DatabaseError(f"Output address can not be stored: {e}") from e
        return json.dumps({"amount": output.amount, "address": address}).encode()

    @staticmethod
    def _decode_output(data: bytes) -> Output:
        try:
            record = json.loads(data.decode())
            return Output(record["amount"], decode_address(record["address"]))
        except (ValueError, KeyError, ValidationError) as e:
            raise DatabaseError(f"Corrupt output record: {e}") from e
