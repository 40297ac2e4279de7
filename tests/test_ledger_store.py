"""
RocksDB ledger store, exercised against a real database in a temp dir.
"""
import json
import pytest

from database.database import open_db, close_db
from database.ledger_store import RocksLedgerState
from errors.exceptions import DatabaseError
from sidechain.models import (
    Deposit, DepositInput, Input, Outpoint, Output, Transaction,
)
from sidechain.state import MemoryLedgerState
from wallet.wallet import sign


@pytest.fixture
def store(db):
    return RocksLedgerState(db)


@pytest.fixture
def blocks(main_state, alice, bob, deposit_ref, make_block):
    main_state.add_deposit(deposit_ref, Deposit(30, alice.address))
    genesis = make_block(coinbase=[Output(100, alice.address)])
    coin = Outpoint.coinbase(genesis[0].hash(), 0)
    spend = make_block(
        Transaction(
            inputs=[Input(coin, sign(alice.secret))],
            deposit_inputs=[DepositInput(deposit_ref, sign(alice.secret))],
            outputs=[Output(90, bob.address), Output(40, alice.address)],
        ),
        prev=genesis[0].hash(),
    )
    return [genesis, spend]


def test_matches_memory_state(store, blocks, deposit_ref, alice, bob):
    memory = MemoryLedgerState()
    for header, body in blocks:
        store.connect(header, body)
        memory.connect(header, body)

    assert store.snapshot() == memory
    assert store.is_deposit_claimed(deposit_ref)
    assert store.balance(bob.address) == 90
    assert store.balance(alice.address) == 40


def test_spent_output_record_retained(store, blocks):
    for block in blocks:
        store.connect(*block)
    coin = Outpoint.coinbase(blocks[0][0].hash(), 0)

    assert store.get_utxo(coin) is None
    assert store.get_output(coin).amount == 100


def test_round_trip(store, blocks):
    empty = store.snapshot()
    for block in blocks:
        store.connect(*block)
    for block in reversed(blocks):
        store.disconnect(*block)

    assert store.snapshot() == empty == MemoryLedgerState()


def test_state_survives_reopen(tmp_path, blocks, bob):
    path = str(tmp_path / "reopen.rocksdb")
    db = open_db(path)
    for block in blocks:
        RocksLedgerState(db).connect(*block)
    close_db(db)

    db = open_db(path)
    try:
        assert RocksLedgerState(db).balance(bob.address) == 90
    finally:
        close_db(db)


def test_write_fault_leaves_ledger_unchanged(flaky_db, blocks):
    store = RocksLedgerState(flaky_db)
    store.connect(*blocks[0])
    before = store.snapshot()

    flaky_db.fail_writes(1)
    with pytest.raises(DatabaseError) as exc_info:
        store.connect(*blocks[1])

    assert exc_info.value.code == "DATABASE_ERROR"
    assert store.snapshot() == before


def test_corrupt_record_raises_database_error(db, store):
    outpoint = Outpoint.regular(b"\x09" * 32, 0)
    db[f"output:{outpoint.key()}".encode()] = b"not json"

    with pytest.raises(DatabaseError):
        store.get_output(outpoint)


def test_open_db_failure_raises_database_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")

    with pytest.raises(DatabaseError):
        open_db(str(blocker / "ledger.rocksdb"))


def test_out_of_range_record_raises_database_error(db, store, alice):
    outpoint = Outpoint.regular(b"\x0a" * 32, 0)
    db[f"output:{outpoint.key()}".encode()] = json.dumps(
        {"amount": -1, "address": alice.address.encode()}
    ).encode()

    with pytest.raises(DatabaseError):
        store.get_output(outpoint)
