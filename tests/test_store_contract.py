"""
Contract tests run against every store backend.

Each test receives the parametrized ``store`` fixture, so a failure
names the backend in its test id.
"""

import time

import pytest

from session_msgstore import MessageStore, SequenceNumberError

SESSION_ID = "FIX.4.4-SENDER-TARGET"


class TestFreshStore:
    """A newly created session."""

    def test_conforms_to_protocol(self, store):
        """Every backend satisfies the MessageStore protocol."""
        assert isinstance(store, MessageStore)

    def test_seq_nums_start_at_one(self, store):
        """Both counters are 1 before any write."""
        assert store.next_sender_seq_num() == 1
        assert store.next_target_seq_num() == 1

    def test_no_messages(self, store):
        """A fresh session has no history."""
        assert store.get_messages(1, 100) == []

    def test_creation_time_is_aware(self, store):
        """Creation time carries a timezone."""
        assert store.creation_time().tzinfo is not None


class TestSequenceNumbers:
    """Setting and incrementing counters."""

    def test_incr_sender(self, store):
        """n increments from 1 yield 1 + n."""
        for _ in range(5):
            store.incr_next_sender_seq_num()
        assert store.next_sender_seq_num() == 6
        assert store.next_target_seq_num() == 1

    def test_incr_target(self, store):
        """Target counter increments independently."""
        store.incr_next_target_seq_num()
        store.incr_next_target_seq_num()
        assert store.next_target_seq_num() == 3
        assert store.next_sender_seq_num() == 1

    def test_set_sender(self, store):
        """Setting the sender counter is read back."""
        store.set_next_sender_seq_num(50)
        assert store.next_sender_seq_num() == 50

    def test_set_target_backwards(self, store):
        """Counters may be set below their current value."""
        store.set_next_target_seq_num(100)
        store.set_next_target_seq_num(7)
        assert store.next_target_seq_num() == 7

    def test_incr_after_set(self, store):
        """Increment continues from a set value."""
        store.set_next_sender_seq_num(41)
        store.incr_next_sender_seq_num()
        assert store.next_sender_seq_num() == 42

    @pytest.mark.parametrize("bad", [0, -1])
    def test_set_rejects_non_positive(self, store, bad):
        """Sequence numbers below 1 are rejected and leave the counter alone."""
        with pytest.raises(SequenceNumberError):
            store.set_next_sender_seq_num(bad)
        assert store.next_sender_seq_num() == 1

    def test_set_rejects_too_wide(self, store):
        """Values that do not fit in 19 digits are rejected before anything changes."""
        with pytest.raises(SequenceNumberError):
            store.set_next_target_seq_num(10**19)
        assert store.next_target_seq_num() == 1


class TestMessages:
    """Saving and replaying messages."""

    def test_save_and_get(self, store):
        """Saved messages come back by sequence number."""
        store.save_message(1, b"hello")
        store.save_message(2, b"world")
        assert store.get_messages(1, 2) == [b"hello", b"world"]

    def test_gaps_are_skipped(self, store):
        """Missing sequence numbers are omitted, order is ascending."""
        store.save_message(1, b"A")
        store.save_message(3, b"C")
        assert store.get_messages(1, 3) == [b"A", b"C"]

    def test_out_of_order_saves_replay_in_order(self, store):
        """Replay order follows sequence numbers, not save order."""
        store.save_message(5, b"five")
        store.save_message(2, b"two")
        store.save_message(9, b"nine")
        assert store.get_messages(1, 10) == [b"two", b"five", b"nine"]

    def test_sub_range(self, store):
        """Only the requested inclusive range is returned."""
        for seq_num in range(1, 11):
            store.save_message(seq_num, f"msg{seq_num}".encode())
        assert store.get_messages(4, 6) == [b"msg4", b"msg5", b"msg6"]

    def test_begin_after_end_is_empty(self, store):
        """An inverted range returns nothing."""
        store.save_message(1, b"A")
        store.save_message(2, b"B")
        assert store.get_messages(2, 1) == []

    def test_binary_payload(self, store):
        """Arbitrary bytes, including SOH and newlines, survive."""
        payload = b"8=FIX.4.4\x019=5\x0135=0\x01\n10=000\x01\xff\x00"
        store.save_message(1, payload)
        assert store.get_messages(1, 1) == [payload]

    def test_empty_message(self, store):
        """Empty payloads are stored, not treated as missing."""
        store.save_message(1, b"")
        assert store.get_messages(1, 1) == [b""]

    def test_resave_returns_latest(self, store):
        """Saving a sequence number twice replays the latest bytes."""
        store.save_message(1, b"first")
        store.save_message(1, b"second")
        assert store.get_messages(1, 1) == [b"second"]


class TestReset:
    """Wiping a session."""

    def test_reset_clears_everything(self, store):
        """Counters return to 1 and history is gone."""
        store.save_message(1, b"A")
        store.set_next_sender_seq_num(10)
        store.set_next_target_seq_num(20)
        store.reset()
        assert store.next_sender_seq_num() == 1
        assert store.next_target_seq_num() == 1
        assert store.get_messages(1, 100) == []

    def test_reset_regenerates_creation_time(self, store):
        """Creation time after reset is strictly later."""
        before = store.creation_time()
        time.sleep(0.01)
        store.reset()
        assert store.creation_time() > before

    def test_usable_after_reset(self, store):
        """The store accepts writes after a reset."""
        store.reset()
        store.save_message(1, b"again")
        store.incr_next_sender_seq_num()
        assert store.get_messages(1, 1) == [b"again"]
        assert store.next_sender_seq_num() == 2


class TestRefresh:
    """Reloading state from storage."""

    def test_refresh_keeps_state(self, store):
        """Refresh does not lose persisted state."""
        store.save_message(1, b"A")
        store.set_next_sender_seq_num(5)
        created = store.creation_time()
        store.refresh()
        assert store.next_sender_seq_num() == 5
        assert store.creation_time() == created
        assert store.get_messages(1, 1) == [b"A"]

    def test_close_is_idempotent(self, store):
        """Closing twice is harmless."""
        store.close()
        store.close()

    def test_refresh_after_close(self, store):
        """A closed store is usable again after refresh."""
        store.save_message(1, b"A")
        store.close()
        store.refresh()
        store.save_message(2, b"B")
        assert store.get_messages(1, 2) == [b"A", b"B"]


class TestDurability:
    """State survives closing and reopening the store."""

    def test_round_trip(self, durable_backend):
        """A reopened store sees identical counters, creation time and messages."""
        factory, settings = durable_backend

        first = factory.create(SESSION_ID, settings)
        first.save_message(1, b"A")
        first.save_message(3, b"C")
        first.set_next_sender_seq_num(4)
        first.incr_next_target_seq_num()
        created = first.creation_time()
        first.close()

        second = factory.create(SESSION_ID, settings)
        try:
            assert second.next_sender_seq_num() == 4
            assert second.next_target_seq_num() == 2
            assert second.creation_time() == created
            assert second.get_messages(1, 3) == [b"A", b"C"]
        finally:
            second.close()

    def test_sessions_are_isolated(self, durable_backend):
        """Two sessions sharing a location do not see each other's state."""
        factory, settings = durable_backend

        with factory.create("SESSION-A", settings) as a:
            a.save_message(1, b"from-a")
            a.set_next_sender_seq_num(9)

        with factory.create("SESSION-B", settings) as b:
            assert b.get_messages(1, 10) == []
            assert b.next_sender_seq_num() == 1
