"""
Store contract shared by all message store backends.

A store is bound to one session id for its lifetime and persists the
session creation time, the next sender/target sequence numbers and the
raw messages keyed by sequence number. Implementations conform
structurally; there is no shared base class.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class MessageStore(Protocol):
    """Durable session state for a sequenced messaging session."""

    def next_sender_seq_num(self) -> int:
        """Next sequence number to assign to an outgoing message."""
        ...

    def next_target_seq_num(self) -> int:
        """Next sequence number expected from the remote side."""
        ...

    def set_next_sender_seq_num(self, next_seq_num: int) -> None: ...

    def set_next_target_seq_num(self, next_seq_num: int) -> None: ...

    def incr_next_sender_seq_num(self) -> None: ...

    def incr_next_target_seq_num(self) -> None: ...

    def creation_time(self) -> datetime:
        """When the session was first seen (or last reset)."""
        ...

    def save_message(self, seq_num: int, message: bytes) -> None:
        """Persist the raw bytes of a message under its sequence number."""
        ...

    def get_messages(self, begin_seq_num: int, end_seq_num: int) -> list[bytes]:
        """Return stored messages in [begin, end], ascending; gaps are omitted."""
        ...

    def reset(self) -> None:
        """Wipe history and return both counters to 1."""
        ...

    def refresh(self) -> None:
        """Reload in-memory state from the backing storage."""
        ...

    def close(self) -> None:
        """Release held resources. Safe to call more than once."""
        ...


@runtime_checkable
class MessageStoreFactory(Protocol):
    """Creates stores from a map of named string settings."""

    def create(self, session_id: str, settings: Mapping[str, str]) -> MessageStore: ...
