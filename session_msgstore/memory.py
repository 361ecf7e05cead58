"""In-memory message store. Nothing survives the process."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from .sequence_cache import SequenceCache


class MemoryStore:
    """Message store held entirely in memory.

    refresh() and close() keep all state; only reset() clears it.
    """

    def __init__(self, session_id: str = ""):
        self.session_id = session_id
        self.cache = SequenceCache()
        self._messages: dict[int, bytes] = {}

    def __enter__(self) -> MemoryStore:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def next_sender_seq_num(self) -> int:
        return self.cache.next_sender_seq_num

    def next_target_seq_num(self) -> int:
        return self.cache.next_target_seq_num

    def set_next_sender_seq_num(self, next_seq_num: int) -> None:
        self.cache.set_next_sender_seq_num(next_seq_num)

    def set_next_target_seq_num(self, next_seq_num: int) -> None:
        self.cache.set_next_target_seq_num(next_seq_num)

    def incr_next_sender_seq_num(self) -> None:
        self.cache.incr_next_sender_seq_num()

    def incr_next_target_seq_num(self) -> None:
        self.cache.incr_next_target_seq_num()

    def creation_time(self) -> datetime:
        return self.cache.creation_time

    def save_message(self, seq_num: int, message: bytes) -> None:
        self._messages[seq_num] = bytes(message)

    def get_messages(self, begin_seq_num: int, end_seq_num: int) -> list[bytes]:
        return [
            self._messages[seq_num]
            for seq_num in sorted(self._messages)
            if begin_seq_num <= seq_num <= end_seq_num
        ]

    def reset(self) -> None:
        self.cache.reset()
        self._messages.clear()

    def refresh(self) -> None:
        pass

    def close(self) -> None:
        pass


class MemoryStoreFactory:
    """Creates MemoryStore instances; settings are ignored."""

    def create(self, session_id: str, settings: Mapping[str, str]) -> MemoryStore:
        return MemoryStore(session_id)
