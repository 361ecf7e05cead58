"""
File-backed message store.

Each session owns five files in the storage directory:

    <session_id>.body           raw message bytes, append-only
    <session_id>.header         "seq_num,offset,size" lines, append-only
    <session_id>.session        creation time, rewritten in place
    <session_id>.senderseqnums  19-digit next sender seq num, rewritten in place
    <session_id>.targetseqnums  19-digit next target seq num, rewritten in place

Every mutation is synced to stable storage before the call returns.
The store assumes it is the only reader/writer of these files and does
no locking of its own.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import ExitStack
from datetime import datetime
from pathlib import Path
from typing import Any

from ..config import FileStoreConfig
from ..exceptions import StoreClosedError, StorageIOError
from ..logging_utils import get_store_logger
from ..sequence_cache import SequenceCache
from .counter_file import SeqCounterFile
from .file_ops import ensure_directory
from .message_log import FileLog
from .session_file import SessionMetaFile


class FileStore:
    """
    Message store persisted to plain files.

    Usage:
        with FileStore.open("FIX.4.4-SENDER-TARGET", "/var/lib/msgstore") as store:
            store.save_message(store.next_sender_seq_num(), raw)
            store.incr_next_sender_seq_num()

    Use open() (or FileStoreFactory) to get a ready store; the constructor
    only lays out file names.
    """

    def __init__(self, session_id: str, storage_directory: str | Path):
        """
        Initialize file store paths.

        Args:
            session_id: Session this store is bound to for its lifetime
            storage_directory: Directory holding the session's files
        """
        self.session_id = session_id
        self.storage_directory = Path(storage_directory)
        self.cache = SequenceCache()

        self.message_log = FileLog(self._path("body"), self._path("header"))
        self.session_file = SessionMetaFile(self._path("session"))
        self.sender_seq_nums_file = SeqCounterFile(self._path("senderseqnums"))
        self.target_seq_nums_file = SeqCounterFile(self._path("targetseqnums"))
        self._components = (
            self.message_log,
            self.session_file,
            self.sender_seq_nums_file,
            self.target_seq_nums_file,
        )

        self._open = False
        self._log = get_store_logger(__name__, session_id)

    @classmethod
    def open(cls, session_id: str, storage_directory: str | Path) -> FileStore:
        """Create the directory if needed and load (or initialize) the session."""
        store = cls(session_id, storage_directory)
        ensure_directory(store.storage_directory)
        store.refresh()
        return store

    def _path(self, suffix: str) -> Path:
        return self.storage_directory / f"{self.session_id}.{suffix}"

    @property
    def paths(self) -> list[Path]:
        """All five on-disk artifacts."""
        return [
            self.message_log.body_path,
            self.message_log.header_path,
            self.session_file.path,
            self.sender_seq_nums_file.path,
            self.target_seq_nums_file.path,
        ]

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> FileStore:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def refresh(self) -> None:
        """Close the files and reload cache and index from them.

        Missing or unparseable persisted values fall back to cache defaults,
        which then become the persisted truth.
        """
        self.cache.reset()
        self.close()

        creation_time_found = self._populate_cache()

        with ExitStack() as stack:
            for component in self._components:
                component.open()
                stack.callback(component.close)

            if not creation_time_found:
                self.session_file.write(self.cache.creation_time)
            self.sender_seq_nums_file.write(self.cache.next_sender_seq_num)
            self.target_seq_nums_file.write(self.cache.next_target_seq_num)

            # Everything opened and written: keep the handles
            stack.pop_all()

        self._open = True
        self._log.debug(
            "Store refreshed",
            extra={
                "messages": len(self.message_log),
                "next_sender_seq_num": self.cache.next_sender_seq_num,
                "next_target_seq_num": self.cache.next_target_seq_num,
            },
        )

    def _populate_cache(self) -> bool:
        """Rebuild the index and adopt persisted values into the cache.

        Returns:
            True if the creation time was found on disk
        """
        self.message_log.rebuild_index()

        creation_time = self.session_file.read()
        if creation_time is not None:
            self.cache.creation_time = creation_time

        sender = self.sender_seq_nums_file.read()
        if sender is not None and sender >= 1:
            self.cache.set_next_sender_seq_num(sender)

        target = self.target_seq_nums_file.read()
        if target is not None and target >= 1:
            self.cache.set_next_target_seq_num(target)

        return creation_time is not None

    def reset(self) -> None:
        """Delete all session files and start over from defaults."""
        self.cache.reset()
        self.close()
        self.message_log.remove()
        self.session_file.remove()
        self.sender_seq_nums_file.remove()
        self.target_seq_nums_file.remove()
        self._log.debug("Store files removed")
        self.refresh()

    def close(self) -> None:
        """Release all file handles. Cache and index are left as they are."""
        errors: list[StorageIOError] = []
        for component in self._components:
            try:
                component.close()
            except StorageIOError as e:
                errors.append(e)
        if self._open:
            self._log.debug("Store closed")
        self._open = False
        if errors:
            raise errors[0]

    # =========================================================================
    # Sequence numbers
    # =========================================================================

    def next_sender_seq_num(self) -> int:
        return self.cache.next_sender_seq_num

    def next_target_seq_num(self) -> int:
        return self.cache.next_target_seq_num

    def set_next_sender_seq_num(self, next_seq_num: int) -> None:
        """Set the next outgoing sequence number.

        The cache is updated before the write, so on StorageIOError it
        holds the requested value while durability is uncertain.
        """
        self._require_open("set_next_sender_seq_num")
        self.cache.set_next_sender_seq_num(next_seq_num)
        self.sender_seq_nums_file.write(next_seq_num)

    def set_next_target_seq_num(self, next_seq_num: int) -> None:
        """Set the next expected incoming sequence number."""
        self._require_open("set_next_target_seq_num")
        self.cache.set_next_target_seq_num(next_seq_num)
        self.target_seq_nums_file.write(next_seq_num)

    def incr_next_sender_seq_num(self) -> None:
        self._require_open("incr_next_sender_seq_num")
        self.cache.incr_next_sender_seq_num()
        self.sender_seq_nums_file.write(self.cache.next_sender_seq_num)

    def incr_next_target_seq_num(self) -> None:
        self._require_open("incr_next_target_seq_num")
        self.cache.incr_next_target_seq_num()
        self.target_seq_nums_file.write(self.cache.next_target_seq_num)

    def creation_time(self) -> datetime:
        return self.cache.creation_time

    # =========================================================================
    # Messages
    # =========================================================================

    def save_message(self, seq_num: int, message: bytes) -> None:
        self._require_open("save_message")
        self.message_log.save(seq_num, bytes(message))

    def get_message(self, seq_num: int) -> bytes | None:
        """Read a single message; None if it was never saved."""
        self._require_open("get_message")
        return self.message_log.get(seq_num)

    def get_messages(self, begin_seq_num: int, end_seq_num: int) -> list[bytes]:
        self._require_open("get_messages")
        return self.message_log.get_range(begin_seq_num, end_seq_num)

    def iter_messages(self, begin_seq_num: int, end_seq_num: int) -> Iterator[tuple[int, bytes]]:
        """Like get_messages, but yields (seq_num, message) pairs lazily."""
        self._require_open("iter_messages")
        return self.message_log.iter_range(begin_seq_num, end_seq_num)

    def _require_open(self, operation: str) -> None:
        if not self._open:
            raise StoreClosedError(self.session_id, operation)


class FileStoreFactory:
    """Creates FileStore instances from a settings map."""

    def create(self, session_id: str, settings: Mapping[str, str]) -> FileStore:
        """
        Create and open a file store.

        Args:
            session_id: Session identifier
            settings: Must contain ``storage_directory``

        Raises:
            StoreConfigurationError: If storage_directory is missing
            StorageIOError: If the directory or files cannot be created
        """
        config = FileStoreConfig.from_settings(session_id, settings)
        return FileStore.open(session_id, config.storage_directory)
