import logging
import rocksdict

from errors.exceptions import DatabaseError

logger = logging.getLogger(__name__)


def open_db(db_path: str) -> rocksdict.Rdict:
    """
    Open (or create) the RocksDB ledger store at db_path.

    Each caller owns the handle it opens; an Rdict can not be opened by
    two processes at the same time.
    """
    try:
        db = rocksdict.Rdict(db_path)
    except Exception as e:
        logger.error(f"Failed to initialize RocksDB at {db_path}: {e}")
        raise DatabaseError(f"Failed to open ledger store at {db_path}: {e}") from e
    logger.info(f"Database initialized at {db_path}")
    return db

def close_db(db: rocksdict.Rdict):
    if db is not None:
        db.close()
        logger.info("Database closed")
