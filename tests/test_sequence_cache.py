"""Tests for SequenceCache."""

import time

import pytest

from session_msgstore import SequenceCache, SequenceNumberError
from session_msgstore.sequence_cache import MAX_SEQ_NUM


class TestSequenceCache:
    """Tests for the in-memory counters."""

    def test_defaults(self):
        """Counters start at 1 with an aware creation time."""
        cache = SequenceCache()
        assert cache.next_sender_seq_num == 1
        assert cache.next_target_seq_num == 1
        assert cache.creation_time.tzinfo is not None

    def test_incr(self):
        """Increment adds one."""
        cache = SequenceCache()
        cache.incr_next_sender_seq_num()
        cache.incr_next_target_seq_num()
        cache.incr_next_target_seq_num()
        assert cache.next_sender_seq_num == 2
        assert cache.next_target_seq_num == 3

    def test_set_any_positive(self):
        """Setters overwrite unconditionally, including downward."""
        cache = SequenceCache(next_sender_seq_num=100)
        cache.set_next_sender_seq_num(2)
        assert cache.next_sender_seq_num == 2

    def test_set_zero_rejected(self):
        """Zero is not a sequence number."""
        cache = SequenceCache()
        with pytest.raises(SequenceNumberError) as exc_info:
            cache.set_next_target_seq_num(0)
        assert exc_info.value.field == "next_target_seq_num"
        assert cache.next_target_seq_num == 1

    def test_set_above_max_rejected(self):
        """Values wider than 19 digits are rejected and leave the counter alone."""
        cache = SequenceCache()
        cache.set_next_sender_seq_num(MAX_SEQ_NUM)
        with pytest.raises(SequenceNumberError) as exc_info:
            cache.set_next_sender_seq_num(MAX_SEQ_NUM + 1)
        assert exc_info.value.reason == f"sequence numbers must be <= {MAX_SEQ_NUM}"
        assert cache.next_sender_seq_num == MAX_SEQ_NUM

    def test_incr_past_max_rejected(self):
        """Increment stops at the widest representable value."""
        cache = SequenceCache(next_target_seq_num=MAX_SEQ_NUM)
        with pytest.raises(SequenceNumberError):
            cache.incr_next_target_seq_num()
        assert cache.next_target_seq_num == MAX_SEQ_NUM

    def test_reset(self):
        """Reset restores counters and moves creation time forward."""
        cache = SequenceCache(next_sender_seq_num=9, next_target_seq_num=9)
        before = cache.creation_time
        time.sleep(0.01)
        cache.reset()
        assert cache.next_sender_seq_num == 1
        assert cache.next_target_seq_num == 1
        assert cache.creation_time > before
