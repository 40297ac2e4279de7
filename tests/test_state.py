import pytest

from sidechain.models import (
    Deposit, DepositInput, Input, Outpoint, Output, RefundInput, Transaction, Withdrawal,
)
from sidechain.state import BlockChanges, MemoryLedgerState
from wallet.wallet import sign


@pytest.fixture
def spend_block(funded, alice, bob, make_block):
    tx = Transaction(
        inputs=[Input(funded, sign(alice.secret))],
        outputs=[Output(60, bob.address), Output(40, alice.address)],
    )
    return make_block(tx)


def test_connect_moves_value(ledger, funded, alice, bob, spend_block):
    header, body = spend_block
    ledger.connect(header, body)

    txid = body.transactions[0].hash()
    assert not ledger.is_unspent(funded)
    assert ledger.is_unspent(Outpoint.regular(txid, 0))
    assert ledger.is_unspent(Outpoint.regular(txid, 1))
    assert ledger.balance(bob.address) == 60
    assert ledger.balance(alice.address) == 40


def test_spent_output_stays_in_index(ledger, funded, spend_block):
    header, body = spend_block
    ledger.connect(header, body)

    assert ledger.get_utxo(funded) is None
    assert ledger.get_output(funded).amount == 100


def test_disconnect_restores_prior_state(ledger, funded, spend_block):
    before = ledger.snapshot()
    header, body = spend_block

    ledger.connect(header, body)
    assert ledger.snapshot() != before

    ledger.disconnect(header, body)
    assert ledger.snapshot() == before
    assert ledger.is_unspent(funded)


def test_round_trip_releases_claims(ledger, main_state, alice, deposit_ref, refund_ref, make_block):
    main_state.add_deposit(deposit_ref, Deposit(30, alice.address))
    main_state.add_refund(refund_ref, Withdrawal(5, alice.address))
    tx = Transaction(
        deposit_inputs=[DepositInput(deposit_ref, sign(alice.secret))],
        refund_inputs=[RefundInput(refund_ref, sign(alice.secret))],
        outputs=[Output(35, alice.address)],
    )
    header, body = make_block(tx)

    ledger.connect(header, body)
    assert ledger.is_deposit_claimed(deposit_ref)
    assert ledger.is_refund_claimed(refund_ref)

    ledger.disconnect(header, body)
    assert not ledger.is_deposit_claimed(deposit_ref)
    assert not ledger.is_refund_claimed(refund_ref)
    assert ledger == MemoryLedgerState()


def test_nested_round_trip(ledger, funded, alice, bob, make_block):
    states = [ledger.snapshot()]
    blocks = []
    outpoint, owner = funded, alice
    for recipient in [bob, alice, bob]:
        tx = Transaction(
            inputs=[Input(outpoint, sign(owner.secret))],
            outputs=[Output(100, recipient.address)],
        )
        block = make_block(tx)
        ledger.connect(*block)
        blocks.append(block)
        states.append(ledger.snapshot())
        outpoint, owner = Outpoint.regular(tx.hash(), 0), recipient

    for header, body in reversed(blocks):
        states.pop()
        ledger.disconnect(header, body)
        assert ledger.snapshot() == states[-1]


def test_snapshot_is_independent(ledger, funded, spend_block):
    snapshot = ledger.snapshot()
    ledger.connect(*spend_block)

    assert snapshot.is_unspent(funded)
    assert not ledger.is_unspent(funded)


def test_block_changes_from_block(funded, spend_block):
    header, body = spend_block
    changes = BlockChanges.from_block(header, body)

    assert changes.spent == [funded]
    assert [output.amount for _, output in changes.created] == [60, 40]
    assert changes.deposits == []
    assert changes.refunds == []


def test_memory_state_repr(ledger, funded):
    assert repr(ledger) == "MemoryLedgerState(utxos=1, outputs=1, deposits=0, refunds=0)"
