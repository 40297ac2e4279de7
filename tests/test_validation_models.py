import pytest
from pydantic import ValidationError

from config.config import MAX_AMOUNT, NULL_HASH
from models.validation import BlockModel, MainStateModel, OutpointModel, ReplayDocument, ValueModel
from sidechain.models import Deposit, MainOutpoint, Outpoint, Output, Withdrawal


TXID = "ab" * 32


def test_outpoint_model_to_domain():
    coinbase = OutpointModel(kind="coinbase", hash=TXID, index=1).to_domain()
    regular = OutpointModel(kind="regular", hash=TXID.upper(), index=0).to_domain()

    assert coinbase == Outpoint.coinbase(bytes.fromhex(TXID), 1)
    assert regular == Outpoint.regular(bytes.fromhex(TXID), 0)


@pytest.mark.parametrize("data", [
    {"kind": "coinbase", "hash": "zz" * 32, "index": 0},
    {"kind": "coinbase", "hash": "ab" * 31, "index": 0},
    {"kind": "regular", "hash": TXID, "index": -1},
    {"kind": "deposit", "hash": TXID, "index": 0},
])
def test_outpoint_model_rejects_bad_fields(data):
    with pytest.raises(ValidationError):
        OutpointModel(**data)


def test_value_model_bounds(alice):
    address = alice.address.encode()
    assert ValueModel(amount=MAX_AMOUNT, address=address).amount == MAX_AMOUNT
    with pytest.raises(ValidationError):
        ValueModel(amount=MAX_AMOUNT + 1, address=address)
    with pytest.raises(ValidationError):
        ValueModel(amount=-1, address=address)


def test_value_model_rejects_bad_address():
    with pytest.raises(ValidationError):
        ValueModel(amount=1, address="sdcnotanaddress")


def test_block_model_computes_body_digest(alice, make_block):
    block = BlockModel.model_validate({
        "body": {"coinbase": [{"amount": 50, "address": alice.address.encode()}]},
    })
    header, body = block.to_domain()

    expected_header, expected_body = make_block(coinbase=[Output(50, alice.address)])
    assert body == expected_body
    assert header == expected_header
    assert header.prev_side_block_hash == NULL_HASH


def test_block_model_keeps_explicit_body_digest():
    block = BlockModel.model_validate({"header": {"body_digest": TXID}})
    header, _ = block.to_domain()
    assert header.body_digest == bytes.fromhex(TXID)


def test_block_model_transaction(alice, bob):
    block = BlockModel.model_validate({
        "body": {"transactions": [{
            "inputs": [{
                "outpoint": {"kind": "regular", "hash": TXID, "index": 2},
                "signature": alice.secret.hex(),
            }],
            "deposit_inputs": [{"outpoint": {"txid": TXID, "vout": 0}, "signature": ""}],
            "withdrawals": [{"amount": 3, "address": bob.address.encode()}],
            "outputs": [{"amount": 4, "address": alice.address.encode()}],
        }]},
    })
    _, body = block.to_domain()
    (tx,) = body.transactions

    assert tx.inputs[0].outpoint == Outpoint.regular(bytes.fromhex(TXID), 2)
    assert tx.inputs[0].signature == alice.secret
    assert tx.deposit_inputs[0].signature == b""
    assert tx.withdrawals == (Withdrawal(3, bob.address),)
    assert tx.outputs == (Output(4, alice.address),)


def test_signature_must_be_hex(alice):
    with pytest.raises(ValidationError):
        BlockModel.model_validate({
            "body": {"transactions": [{
                "inputs": [{
                    "outpoint": {"kind": "regular", "hash": TXID, "index": 0},
                    "signature": "not hex",
                }],
            }]},
        })


def test_main_state_model(alice, bob):
    main_state = MainStateModel.model_validate({
        "deposits": [{"outpoint": {"txid": TXID, "vout": 0}, "amount": 30, "address": alice.address.encode()}],
        "refunds": [{"outpoint": {"txid": TXID, "vout": 1}, "amount": 5, "address": bob.address.encode()}],
    }).to_domain()

    assert main_state.get_deposit(MainOutpoint(bytes.fromhex(TXID), 0)) == Deposit(30, alice.address)
    assert main_state.get_withdrawal(MainOutpoint(bytes.fromhex(TXID), 1)) == Withdrawal(5, bob.address)
    assert main_state.get_deposit(MainOutpoint(bytes.fromhex(TXID), 1)) is None


def test_empty_replay_document():
    document = ReplayDocument.model_validate({})
    assert document.blocks == []
    assert document.main_state.to_domain().deposits == {}
