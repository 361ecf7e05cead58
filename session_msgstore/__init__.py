"""
Session Message Store

Durable state for long-lived sequenced messaging sessions: the session
creation time, the next sender/target sequence numbers and the raw
history of messages keyed by sequence number.

Usage:

    >>> from session_msgstore import FileStoreFactory
    >>> store = FileStoreFactory().create(
    ...     "FIX.4.4-SENDER-TARGET", {"storage_directory": "/var/lib/msgstore"}
    ... )
    >>> store.save_message(store.next_sender_seq_num(), b"8=FIX.4.4|...")
    >>> store.incr_next_sender_seq_num()
    >>> store.get_messages(1, 10)  # replay for a resend request

Backend Selection:

    # Append-only files, one set per session
    from session_msgstore.local import FileStore, FileStoreFactory

    # DuckDB tables shared by many sessions
    from session_msgstore.backends import DuckDBStore, DuckDBStoreFactory

    # Memory only, for tests and throwaway sessions
    from session_msgstore.memory import MemoryStore, MemoryStoreFactory
"""

from .config import (
    DUCKDB_PATH,
    STORAGE_DIRECTORY,
    TABLE_NAME_PREFIX,
    DuckDBStoreConfig,
    FileStoreConfig,
    load_settings,
)
from .exceptions import (
    MessageStoreError,
    SequenceNumberError,
    StorageConnectionError,
    StorageIOError,
    StoreClosedError,
    StoreConfigurationError,
    ValidationError,
)
from .local import FileStore, FileStoreFactory
from .memory import MemoryStore, MemoryStoreFactory
from .protocol import MessageStore, MessageStoreFactory
from .sequence_cache import SequenceCache

# Conditional import for the optional DuckDB backend
try:
    from .backends.duckdb import DuckDBStore, DuckDBStoreFactory  # noqa: F401

    _has_duckdb = True
except ImportError:
    _has_duckdb = False


__all__ = [
    # Contract
    "MessageStore",
    "MessageStoreFactory",
    "SequenceCache",
    # Stores
    "FileStore",
    "FileStoreFactory",
    "MemoryStore",
    "MemoryStoreFactory",
    # Configuration
    "FileStoreConfig",
    "DuckDBStoreConfig",
    "load_settings",
    "STORAGE_DIRECTORY",
    "DUCKDB_PATH",
    "TABLE_NAME_PREFIX",
    # Exceptions
    "MessageStoreError",
    "StoreConfigurationError",
    "StorageIOError",
    "StoreClosedError",
    "StorageConnectionError",
    "ValidationError",
    "SequenceNumberError",
]

if _has_duckdb:
    __all__.extend(["DuckDBStore", "DuckDBStoreFactory"])

__version__ = "0.1.0"
