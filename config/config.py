import os

ROCKSDB_PATH = os.environ.get("ROCKSDB_PATH", "sidechain.rocksdb")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("LOG_FILE") or None
STRUCTURED_LOGS = os.environ.get("STRUCTURED_LOGS", "1") == "1"
ADDRESS_PREFIX = os.environ.get("ADDRESS_PREFIX", "sdc")

# Protocol constants
MAX_AMOUNT = 2**64 - 1
DIGEST_SIZE = 32
BLOCK_VERSION = 1
NULL_HASH = bytes(DIGEST_SIZE)
