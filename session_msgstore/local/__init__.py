"""
File-backed message store.

Key classes:
- FileStore: Orchestrates the per-session files and the in-memory cache
- FileLog: Append-only body/header pair with a positional index
- SeqCounterFile: Fixed-width, in-place rewritable counter
- SessionMetaFile: Session creation time
"""

from .counter_file import SeqCounterFile
from .file_store import FileStore, FileStoreFactory
from .message_log import FileLog, IndexEntry, iter_header_entries
from .session_file import SessionMetaFile

__all__ = [
    "FileStore",
    "FileStoreFactory",
    "FileLog",
    "IndexEntry",
    "iter_header_entries",
    "SeqCounterFile",
    "SessionMetaFile",
]
