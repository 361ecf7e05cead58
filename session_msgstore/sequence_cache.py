"""
In-memory session state shared by every store backend.

Holds the creation time and the two "next" sequence numbers. Performs
no I/O; backends decide when and how the values are persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .exceptions import SequenceNumberError

# Largest value a 19-digit counter can hold
MAX_SEQ_NUM = 10**19 - 1


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


@dataclass
class SequenceCache:
    """Creation time plus next sender/target sequence numbers.

    Both counters start at 1. Setters accept any value in [1, MAX_SEQ_NUM],
    so callers may move a counter backwards (e.g. on a protocol-level
    sequence reset); monotonicity policy belongs to the caller.
    """

    creation_time: datetime = field(default_factory=utc_now)
    next_sender_seq_num: int = 1
    next_target_seq_num: int = 1

    def set_next_sender_seq_num(self, next_seq_num: int) -> None:
        self.next_sender_seq_num = check_seq_num("next_sender_seq_num", next_seq_num)

    def set_next_target_seq_num(self, next_seq_num: int) -> None:
        self.next_target_seq_num = check_seq_num("next_target_seq_num", next_seq_num)

    def incr_next_sender_seq_num(self) -> None:
        self.next_sender_seq_num = check_seq_num(
            "next_sender_seq_num", self.next_sender_seq_num + 1
        )

    def incr_next_target_seq_num(self) -> None:
        self.next_target_seq_num = check_seq_num(
            "next_target_seq_num", self.next_target_seq_num + 1
        )

    def reset(self) -> None:
        """Regenerate the creation time and return both counters to 1."""
        self.creation_time = utc_now()
        self.next_sender_seq_num = 1
        self.next_target_seq_num = 1


def check_seq_num(field_name: str, value: int) -> int:
    """Return value unchanged, or raise SequenceNumberError if it is out of range."""
    if value < 1:
        raise SequenceNumberError(field_name, value)
    if value > MAX_SEQ_NUM:
        raise SequenceNumberError(field_name, value, f"sequence numbers must be <= {MAX_SEQ_NUM}")
    return value
