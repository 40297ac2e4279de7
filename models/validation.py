"""
Pydantic models for JSON replay documents
"""

from pydantic import AfterValidator, BaseModel, Field, field_validator
from typing import Annotated, List, Literal, Optional, Tuple

from config.config import MAX_AMOUNT, DIGEST_SIZE, BLOCK_VERSION
from errors.exceptions import InvalidAddressError
from mainchain.state import MainState
from sidechain.models import (
    Body, Deposit, DepositInput, Header, Input, MainOutpoint, Outpoint, Output,
    RefundInput, Transaction, Withdrawal,
)
from wallet.wallet import decode_address

_NULL_HEX = "00" * DIGEST_SIZE


def _validate_digest_hex(v: str) -> str:
    try:
        raw = bytes.fromhex(v)
    except ValueError as e:
        raise ValueError('Must be valid hexadecimal') from e
    if len(raw) != DIGEST_SIZE:
        raise ValueError(f'Must encode exactly {DIGEST_SIZE} bytes')
    return v.lower()

def _validate_address(v: str) -> str:
    try:
        decode_address(v)
    except InvalidAddressError as e:
        raise ValueError(e.message) from e
    return v

DigestHex = Annotated[str, AfterValidator(_validate_digest_hex)]
AddressText = Annotated[str, AfterValidator(_validate_address)]


class OutpointModel(BaseModel):
    kind: Literal['coinbase', 'regular']
    hash: DigestHex = Field(..., description="Block hash (coinbase) or txid (regular), hex")
    index: int = Field(..., ge=0)

    def to_domain(self) -> Outpoint:
        source = bytes.fromhex(self.hash)
        if self.kind == 'coinbase':
            return Outpoint.coinbase(source, self.index)
        return Outpoint.regular(source, self.index)


class MainOutpointModel(BaseModel):
    txid: DigestHex
    vout: int = Field(..., ge=0)

    def to_domain(self) -> MainOutpoint:
        return MainOutpoint(bytes.fromhex(self.txid), self.vout)


class ValueModel(BaseModel):
    amount: int = Field(..., ge=0, le=MAX_AMOUNT)
    address: AddressText


class SignedModel(BaseModel):
    signature: str = Field(..., description="Hex encoded signature")

    @field_validator('signature')
    @classmethod
    def validate_hex(cls, v):
        try:
            bytes.fromhex(v)
        except ValueError as e:
            raise ValueError('Signature must be valid hexadecimal') from e
        return v


class InputModel(SignedModel):
    outpoint: OutpointModel

    def to_domain(self) -> Input:
        return Input(self.outpoint.to_domain(), bytes.fromhex(self.signature))


class DepositInputModel(SignedModel):
    outpoint: MainOutpointModel

    def to_domain(self) -> DepositInput:
        return DepositInput(self.outpoint.to_domain(), bytes.fromhex(self.signature))


class RefundInputModel(SignedModel):
    outpoint: MainOutpointModel

    def to_domain(self) -> RefundInput:
        return RefundInput(self.outpoint.to_domain(), bytes.fromhex(self.signature))


class TransactionModel(BaseModel):
    deposit_inputs: List[DepositInputModel] = Field(default_factory=list)
    refund_inputs: List[RefundInputModel] = Field(default_factory=list)
    inputs: List[InputModel] = Field(default_factory=list)
    withdrawals: List[ValueModel] = Field(default_factory=list)
    outputs: List[ValueModel] = Field(default_factory=list)

    def to_domain(self) -> Transaction:
        return Transaction(
            deposit_inputs=[i.to_domain() for i in self.deposit_inputs],
            refund_inputs=[i.to_domain() for i in self.refund_inputs],
            inputs=[i.to_domain() for i in self.inputs],
            withdrawals=[Withdrawal(w.amount, decode_address(w.address)) for w in self.withdrawals],
            outputs=[Output(o.amount, decode_address(o.address)) for o in self.outputs],
        )


class BodyModel(BaseModel):
    coinbase: List[ValueModel] = Field(default_factory=list)
    transactions: List[TransactionModel] = Field(default_factory=list)

    def to_domain(self) -> Body:
        return Body(
            coinbase=[Output(o.amount, decode_address(o.address)) for o in self.coinbase],
            transactions=[tx.to_domain() for tx in self.transactions],
        )


class HeaderModel(BaseModel):
    version: int = Field(BLOCK_VERSION, ge=0, le=0xffffffff)
    prev_side_block_hash: DigestHex = Field(_NULL_HEX)
    prev_main_block_hash: DigestHex = Field(_NULL_HEX)
    body_digest: Optional[DigestHex] = Field(None, description="Computed from the body when omitted")


class BlockModel(BaseModel):
    header: HeaderModel = Field(default_factory=HeaderModel)
    body: BodyModel = Field(default_factory=BodyModel)

    def to_domain(self) -> Tuple[Header, Body]:
        body = self.body.to_domain()
        body_digest = bytes.fromhex(self.header.body_digest) if self.header.body_digest else body.digest()
        header = Header(
            bytes.fromhex(self.header.prev_side_block_hash),
            bytes.fromhex(self.header.prev_main_block_hash),
            body_digest,
            self.header.version,
        )
        return header, body


class ClaimModel(ValueModel):
    outpoint: MainOutpointModel


class MainStateModel(BaseModel):
    deposits: List[ClaimModel] = Field(default_factory=list)
    refunds: List[ClaimModel] = Field(default_factory=list)

    def to_domain(self) -> MainState:
        main_state = MainState()
        for claim in self.deposits:
            main_state.add_deposit(
                claim.outpoint.to_domain(),
                Deposit(claim.amount, decode_address(claim.address)),
            )
        for claim in self.refunds:
            main_state.add_refund(
                claim.outpoint.to_domain(),
                Withdrawal(claim.amount, decode_address(claim.address)),
            )
        return main_state


class ReplayDocument(BaseModel):
    main_state: MainStateModel = Field(default_factory=MainStateModel)
    blocks: List[BlockModel] = Field(default_factory=list)
