# tests/conftest.py
"""
Shared fixtures for the test suite.

Key design points
─────────────────
1.  Make project-root importable so `from sidechain.models import …` works no
    matter where pytest is launched.
2.  Deterministic keys: secrets are derived from a seed string so failures
    reproduce byte for byte.
3.  Blocks are built through `make_block`, which always produces a header
    that commits to its body.
"""

from __future__ import annotations
import hashlib
import pathlib
import sys
from collections import namedtuple
import pytest

# ─────────────────────────────────────────────────────────────────────────────
#  Ensure the repo root is on sys.path
# ─────────────────────────────────────────────────────────────────────────────
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Only now import modules that live in the repo
from config.config import NULL_HASH
from database.database import open_db, close_db
from mainchain.state import MainState
from sidechain.models import Body, Header, MainOutpoint, Outpoint, Output
from sidechain.state import MemoryLedgerState
from wallet.wallet import derive_address

Key = namedtuple("Key", "secret address")


def _key(seed: str) -> Key:
    secret = hashlib.sha256(seed.encode()).digest()
    return Key(secret, derive_address(secret))


# ──────────────────────────────── keys ──────────────────────────────────────
@pytest.fixture
def alice() -> Key:
    return _key("alice")


@pytest.fixture
def bob() -> Key:
    return _key("bob")


@pytest.fixture
def miner() -> Key:
    return _key("miner")


# ─────────────────────────── ledger and oracle ──────────────────────────────
@pytest.fixture
def main_state():
    return MainState()


@pytest.fixture
def ledger():
    return MemoryLedgerState()


@pytest.fixture
def make_block():
    """Build (header, body) with the header committing to the body."""
    def _make(*transactions, coinbase=(), prev=NULL_HASH):
        body = Body(coinbase=list(coinbase), transactions=list(transactions))
        return Header.for_body(body, prev_side_block_hash=prev), body
    return _make


@pytest.fixture
def funded(ledger, alice, make_block):
    """Connect a block paying 100 to alice; returns the spendable outpoint."""
    header, body = make_block(coinbase=[Output(100, alice.address)])
    ledger.connect(header, body)
    return Outpoint.coinbase(header.hash(), 0)


@pytest.fixture
def deposit_ref():
    return MainOutpoint(hashlib.sha256(b"main-deposit").digest(), 0)


@pytest.fixture
def refund_ref():
    return MainOutpoint(hashlib.sha256(b"main-withdrawal").digest(), 1)


# ───────────────────────────── RocksDB store ────────────────────────────────
class FlakyDb:
    """Passes everything through to a real database until fail_writes() is armed"""

    def __init__(self, db):
        self.db = db
        self.writes = 0
        self.failing = set()

    def __getattr__(self, name):
        return getattr(self.db, name)

    def fail_writes(self, *numbers):
        """Fail the given writes, counted from 1 after this call."""
        self.writes = 0
        self.failing = set(numbers)

    def write(self, batch):
        self.writes += 1
        if self.writes in self.failing:
            raise OSError("disk full")
        self.db.write(batch)


@pytest.fixture
def db(tmp_path):
    handle = open_db(str(tmp_path / "ledger.rocksdb"))
    yield handle
    close_db(handle)


@pytest.fixture
def flaky_db(db):
    return FlakyDb(db)
