# tests/unit/nonce/test_nonce_bitmap.py
# Target: sessionguard/core/nonce_bitmap.py
# Includes threaded races on a single nonce and on a single word; otherwise
# deterministic.

from __future__ import annotations

import threading

import pytest

from sessionguard.core.event_log import (
    NONCE_CONSUMED,
    UNORDERED_NONCE_INVALIDATION,
    EventFilter,
    EventLogger,
)
from sessionguard.core.exceptions import (
    InvalidNonceError,
    NonceRangeError,
    UnauthorizedError,
)
from sessionguard.core.nonce_bitmap import NonceBitmap, split_nonce

ACCOUNT = 170141183460469231731687303715884105727
OTHER_ACCOUNT = 1


# =============================================================================
# split_nonce
# =============================================================================

class TestSplitNonce:
    @pytest.mark.parametrize(
        "nonce, expected",
        [
            (0, (0, 0)),
            (5, (0, 5)),
            (255, (0, 255)),
            (256, (1, 0)),
            (257, (1, 1)),
            (2 ** 256 - 1, (2 ** 248 - 1, 255)),
        ],
    )
    def test_word_and_bit(self, nonce, expected):
        assert split_nonce(nonce) == expected

    @pytest.mark.parametrize("nonce", [-1, 2 ** 256, "5", True])
    def test_out_of_range(self, nonce):
        with pytest.raises(NonceRangeError):
            split_nonce(nonce)


# =============================================================================
# invalidate
# =============================================================================

class TestInvalidate:
    def test_fresh_word_is_zero(self):
        assert NonceBitmap().bitmap(ACCOUNT, 0) == 0

    def test_returns_new_word(self):
        assert NonceBitmap().invalidate(ACCOUNT, 0, 0b1010) == 0b1010

    def test_or_semantics(self):
        bitmap = NonceBitmap()
        bitmap.invalidate(ACCOUNT, 0, 0b0011)
        assert bitmap.invalidate(ACCOUNT, 0, 0b0110) == 0b0111

    def test_idempotent(self):
        bitmap = NonceBitmap()
        first = bitmap.invalidate(ACCOUNT, 3, 0xFF00)
        second = bitmap.invalidate(ACCOUNT, 3, 0xFF00)
        assert first == second == bitmap.bitmap(ACCOUNT, 3)

    def test_bits_never_cleared(self):
        bitmap = NonceBitmap()
        bitmap.invalidate(ACCOUNT, 0, 0b1)
        bitmap.invalidate(ACCOUNT, 0, 0)
        assert bitmap.bitmap(ACCOUNT, 0) == 0b1

    def test_round_trip_is_used(self):
        bitmap = NonceBitmap()
        bitmap.invalidate(ACCOUNT, 2, 1 << 7)
        assert bitmap.is_used(ACCOUNT, 2 * 256 + 7) is True
        assert bitmap.is_used(ACCOUNT, 2 * 256 + 6) is False

    def test_accounts_are_isolated(self):
        bitmap = NonceBitmap()
        bitmap.invalidate(ACCOUNT, 0, 1)
        assert bitmap.bitmap(OTHER_ACCOUNT, 0) == 0

    def test_max_word_position(self):
        bitmap = NonceBitmap()
        bitmap.invalidate(ACCOUNT, 2 ** 248 - 1, 1 << 255)
        assert bitmap.is_used(ACCOUNT, 2 ** 256 - 1) is True

    @pytest.mark.parametrize("word_position", [-1, 2 ** 248])
    def test_word_position_out_of_range(self, word_position):
        with pytest.raises(NonceRangeError):
            NonceBitmap().invalidate(ACCOUNT, word_position, 1)

    @pytest.mark.parametrize("mask", [-1, 2 ** 256])
    def test_mask_out_of_range(self, mask):
        with pytest.raises(NonceRangeError):
            NonceBitmap().invalidate(ACCOUNT, 0, mask)

    def test_event_records_supplied_mask(self):
        log = EventLogger()
        bitmap = NonceBitmap(event_logger=log)
        bitmap.invalidate(ACCOUNT, 0, 0b11)
        bitmap.invalidate(ACCOUNT, 0, 0b110)
        events = log.query_events(EventFilter(event_type=UNORDERED_NONCE_INVALIDATION))
        assert [e.data["mask"] for e in events] == [0b11, 0b110]
        assert all(e.data["account"] == ACCOUNT for e in events)
        assert bitmap.events is log


class TestActorCheck:
    def test_permitted_caller(self):
        bitmap = NonceBitmap(actor_check=lambda account, caller: caller == "owner")
        assert bitmap.invalidate(ACCOUNT, 0, 1, caller="owner") == 1

    def test_rejected_caller_leaves_state(self):
        bitmap = NonceBitmap(actor_check=lambda account, caller: caller == "owner")
        with pytest.raises(UnauthorizedError):
            bitmap.invalidate(ACCOUNT, 0, 1, caller="intruder")
        assert bitmap.bitmap(ACCOUNT, 0) == 0
        assert bitmap.events.event_count() == 0


# =============================================================================
# consume
# =============================================================================

class TestConsume:
    def test_consume_marks_used(self):
        bitmap = NonceBitmap()
        bitmap.consume(ACCOUNT, 5)
        assert bitmap.is_used(ACCOUNT, 5) is True

    def test_reuse_raises(self):
        bitmap = NonceBitmap()
        bitmap.consume(ACCOUNT, 5)
        with pytest.raises(InvalidNonceError) as info:
            bitmap.consume(ACCOUNT, 5)
        assert info.value.value == 5

    def test_failed_consume_leaves_state(self):
        bitmap = NonceBitmap()
        bitmap.consume(ACCOUNT, 5)
        before = bitmap.bitmap(ACCOUNT, 0)
        with pytest.raises(InvalidNonceError):
            bitmap.consume(ACCOUNT, 5)
        assert bitmap.bitmap(ACCOUNT, 0) == before
        assert bitmap.events.event_count() == 1

    def test_invalidated_nonce_cannot_be_consumed(self):
        bitmap = NonceBitmap()
        bitmap.invalidate(ACCOUNT, 1, 1 << 4)
        with pytest.raises(InvalidNonceError):
            bitmap.consume(ACCOUNT, 256 + 4)

    def test_unordered(self):
        bitmap = NonceBitmap()
        for nonce in (900, 3, 2 ** 200, 4):
            bitmap.consume(ACCOUNT, nonce)
        assert all(bitmap.is_used(ACCOUNT, n) for n in (900, 3, 2 ** 200, 4))
        assert bitmap.is_used(ACCOUNT, 5) is False

    def test_consume_event(self):
        bitmap = NonceBitmap()
        bitmap.consume(ACCOUNT, 257)
        event = bitmap.events.query_events(EventFilter(event_type=NONCE_CONSUMED))[0]
        assert event.data == {"account": ACCOUNT, "nonce": 257, "word_position": 1, "bit_index": 1}

    def test_concurrent_consume_single_winner(self):
        bitmap = NonceBitmap()
        barrier = threading.Barrier(8)
        outcomes = []
        outcomes_lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            try:
                bitmap.consume(ACCOUNT, 42)
                result = "ok"
            except InvalidNonceError:
                result = "replay"
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert outcomes.count("ok") == 1
        assert outcomes.count("replay") == 7

    @pytest.mark.parametrize("round_", range(5))
    def test_concurrent_invalidate_and_consume_same_word(self, round_):
        # 32 threads OR disjoint nibbles into bits 0-127 while 32 threads
        # consume the four nonces each of bits 128-255, all on word 0.
        bitmap = NonceBitmap()
        barrier = threading.Barrier(64)
        errors = []
        errors_lock = threading.Lock()

        def invalidator(i: int) -> None:
            barrier.wait()
            bitmap.invalidate(ACCOUNT, 0, 0xF << (4 * i))

        def consumer(i: int) -> None:
            barrier.wait()
            for nonce in range(128 + 4 * i, 132 + 4 * i):
                try:
                    bitmap.consume(ACCOUNT, nonce)
                except InvalidNonceError as exc:
                    with errors_lock:
                        errors.append(exc)

        threads = [threading.Thread(target=invalidator, args=(i,)) for i in range(32)]
        threads += [threading.Thread(target=consumer, args=(i,)) for i in range(32)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert bitmap.bitmap(ACCOUNT, 0) == (1 << 256) - 1
        assert len(bitmap.events.query_events(EventFilter(event_type=UNORDERED_NONCE_INVALIDATION))) == 32
        assert len(bitmap.events.query_events(EventFilter(event_type=NONCE_CONSUMED))) == 128
        assert bitmap.events.verify_chain() is True
