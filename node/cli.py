"""
sidepeg command line

    sidepeg address
    sidepeg replay blocks.json [--db PATH] [--rewind N]
"""

import argparse
import json
import sys

from pydantic import ValidationError as DocumentError

from config.config import LOG_LEVEL, LOG_FILE, STRUCTURED_LOGS, ROCKSDB_PATH
from database.database import open_db, close_db
from database.ledger_store import RocksLedgerState
from errors.exceptions import SidechainError
from log_utils import setup_logging
from models.validation import ReplayDocument
from sidechain.chain_manager import ChainManager
from sidechain.state import MemoryLedgerState
from wallet.wallet import derive_address, generate_secret


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sidepeg", description="Side-ledger block replay tool")
    parser.add_argument("--log-level", type=str, default=LOG_LEVEL,
                        help=f"Logging level (default: {LOG_LEVEL})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("address", help="Generate a secret and its hash-lock address")

    replay = subparsers.add_parser("replay", help="Validate and connect the blocks of a replay document")
    replay.add_argument("document", type=str, help="Path to a JSON replay document")
    replay.add_argument("--db", type=str, nargs="?", const=ROCKSDB_PATH, default=None,
                        help=f"RocksDB path for the ledger (in-memory when omitted, {ROCKSDB_PATH} when given bare)")
    replay.add_argument("--rewind", type=int, default=0,
                        help="Disconnect this many blocks after replaying")
    return parser

def cmd_address(args) -> int:
    secret = generate_secret()
    print(f"secret:  {secret.hex()}")
    print(f"address: {derive_address(secret).encode()}")
    return 0

def cmd_replay(args, logger) -> int:
    try:
        with open(args.document, "r", encoding="utf-8") as fh:
            document = ReplayDocument.model_validate(json.load(fh))
    except (OSError, json.JSONDecodeError, DocumentError) as e:
        logger.error(f"Failed to load replay document {args.document}: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 2

    db = None
    try:
        if args.db:
            db = open_db(args.db)
        ledger = RocksLedgerState(db) if db is not None else MemoryLedgerState()
        chain = ChainManager(ledger, document.main_state.to_domain())

        accepted = rejected = 0
        for n, block in enumerate(document.blocks):
            header, body = block.to_domain()
            success, error_msg = chain.add_block(header, body)
            if success:
                accepted += 1
                print(f"block {n}: accepted {header.hash().hex()}")
            else:
                rejected += 1
                print(f"block {n}: rejected ({error_msg})")

        for _ in range(min(args.rewind, chain.height)):
            header, _ = chain.disconnect_tip()
            print(f"disconnected {header.hash().hex()}")

        unspent = sum(1 for _ in ledger.unspent_outpoints())
        print(f"accepted={accepted} rejected={rejected} height={chain.height} unspent={unspent}")
        return 0 if rejected == 0 else 1
    except SidechainError as e:
        logger.error(f"Replay failed: {e.message}")
        print(f"error: {e.message}", file=sys.stderr)
        return 2
    finally:
        close_db(db)

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(
        level=args.log_level,
        log_file=LOG_FILE,
        enable_console=True,
        enable_structured=STRUCTURED_LOGS
    )

    if args.command == "address":
        return cmd_address(args)
    return cmd_replay(args, logger)


if __name__ == "__main__":
    sys.exit(main())
