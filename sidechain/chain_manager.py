"""
Chain Manager - keeps the stack of connected side blocks and drives
connect/disconnect against a ledger state.

Which chain is canonical is decided by the caller; reorganize() only applies
a requested switch and restores the original chain if any block of the new
branch is rejected or fails to apply.
"""
from typing import List, Optional, Tuple

from config.config import NULL_HASH
from errors.exceptions import DatabaseError, ReorganizationError
from log_utils import get_logger, log_performance
from sidechain.models import Body, Header
from sidechain.validator import BlockValidator

logger = get_logger(__name__)

Block = Tuple[Header, Body]


class ChainManager:

    def __init__(self, ledger, main_state):
        self.ledger = ledger
        self.validator = BlockValidator(main_state)
        self.blocks: List[Block] = []   # connected blocks, tip last

    @property
    def height(self) -> int:
        return len(self.blocks)

    def get_best_chain_tip(self) -> bytes:
        if not self.blocks:
            return NULL_HASH
        header, _ = self.blocks[-1]
        return header.hash()

    @log_performance(logger, "add_block")
    def add_block(self, header: Header, body: Body) -> Tuple[bool, Optional[str]]:
        """
        Validate and connect a block on top of the current tip.
        Returns (success, error_message)
        """
        block_hash = header.hash().hex()
        block_logger = logger.with_context(block_hash=block_hash, height=self.height + 1)

        if header.body_digest != body.digest():
            block_logger.warning("Block rejected: header does not commit to body")
            return False, "Header body digest does not match body"

        is_valid, error_msg = self.validator.check_block(self.ledger, header, body)
        if not is_valid:
            block_logger.warning(f"Block rejected: {error_msg}")
            return False, error_msg

        try:
            self.ledger.connect(header, body)
        except DatabaseError as e:
            block_logger.error(f"Failed to connect block: {e.message}")
            return False, e.message

        self.blocks.append((header, body))
        block_logger.info(
            f"Connected block with {len(body.transactions)} transactions"
        )
        return True, None

    def disconnect_tip(self) -> Block:
        """Undo the most recently connected block and return it."""
        if not self.blocks:
            raise ReorganizationError("No connected block to disconnect")

        header, body = self.blocks[-1]
        self.ledger.disconnect(header, body)
        self.blocks.pop()
        logger.info(
            "Disconnected block",
            extra={"block_hash": header.hash().hex(), "height": self.height + 1},
        )
        return header, body

    @log_performance(logger, "reorganize")
    def reorganize(self, depth: int, new_blocks: List[Block]) -> bool:
        """
        Replace the top `depth` connected blocks with new_blocks.
        Returns True on success; on failure the original chain is restored.
        Raises ReorganizationError if the restore itself can not be written.
        """
        if depth < 0 or depth > self.height:
            raise ReorganizationError(
                f"Cannot disconnect {depth} blocks from a chain of height {self.height}"
            )

        logger.warning(
            f"Starting chain reorganization: disconnecting {depth} blocks, "
            f"connecting {len(new_blocks)} blocks"
        )

        # A storage fault while disconnecting propagates as DatabaseError
        disconnected: List[Block] = []
        for _ in range(depth):
            disconnected.append(self.disconnect_tip())

        connected = 0
        for header, body in new_blocks:
            success, error_msg = self.add_block(header, body)
            if not success:
                logger.error(f"Reorganization failed at block {header.hash().hex()}: {error_msg}")
                self._rollback(connected, disconnected)
                return False
            connected += 1

        logger.info(f"Chain reorganization complete. New tip: {self.get_best_chain_tip().hex()}")
        return True

    def _rollback(self, connected: int, disconnected: List[Block]):
        try:
            for _ in range(connected):
                self.disconnect_tip()
            for header, body in reversed(disconnected):
                self.ledger.connect(header, body)
                self.blocks.append((header, body))
        except DatabaseError as e:
            logger.critical(f"Reorganization rollback failed at height {self.height}: {e.message}")
            raise ReorganizationError(
                f"Rollback failed at height {self.height}, original chain only partially restored: {e.message}"
            ) from e
        logger.info("Reorganization rolled back due to error")
