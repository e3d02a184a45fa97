# =============================================================================
# SESSIONGUARD v1.0.0 -- NONCE BITMAP
# File:   sessionguard/core/nonce_bitmap.py
# =============================================================================
#
# PURPOSE
# -------
# Unordered anti-replay tokens. Every account owns a sparse map
#
#     word_position -> 256-bit word
#
# and a nonce n lives at bit (n & 0xFF) of word (n >> 8). A set bit means the
# nonce is spent. Bits are never cleared.
#
# OPERATIONS
# ----------
#   invalidate(account, word_position, mask)  OR mask into one word; emits
#                                             UNORDERED_NONCE_INVALIDATION
#                                             with the exact mask applied.
#   is_used(account, nonce)                   pure read.
#   consume(account, nonce)                   atomic check-then-set; raises
#                                             InvalidNonceError on reuse and
#                                             leaves the bitmap untouched.
#
# CONCURRENCY
# -----------
# Every mutation of an account's words happens under that account's lock.
# Locks are created lazily under a registry lock, so two threads asking for
# the same account always receive the same Lock object. Two concurrent
# consume() calls for one nonce therefore serialize: exactly one succeeds.
#
# BOUNDS
# ------
#   0 <= nonce         <= 2**256 - 1
#   0 <= word_position <= 2**248 - 1
#   0 <= mask          <= 2**256 - 1
# Violations raise NonceRangeError before any lock is taken.
# =============================================================================

from __future__ import annotations

import threading
from typing import Callable, Dict, Hashable, Optional, Tuple

from sessionguard.core.event_log import (
    NONCE_CONSUMED,
    UNORDERED_NONCE_INVALIDATION,
    EventLogger,
)
from sessionguard.core.exceptions import (
    InvalidNonceError,
    NonceRangeError,
    UnauthorizedError,
)
from sessionguard.utils.constants import (
    BIT_INDEX_MASK,
    MAX_WORD_POSITION,
    UINT256_MAX,
)

ActorCheck = Callable[[Hashable, Hashable], bool]


# =============================================================================
# SECTION 1 -- NONCE ARITHMETIC
# =============================================================================

def _check_int_range(field_name: str, value: object, upper: int, constraint: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise NonceRangeError(field_name=field_name, value=value, constraint="must be an integer")
    if not (0 <= value <= upper):
        raise NonceRangeError(field_name=field_name, value=value, constraint=constraint)


def split_nonce(nonce: int) -> Tuple[int, int]:
    """Return (word_position, bit_index) for a uint256 nonce."""
    _check_int_range("nonce", nonce, UINT256_MAX, "must be in [0, 2**256 - 1]")
    return nonce >> 8, nonce & BIT_INDEX_MASK


# =============================================================================
# SECTION 2 -- NONCE BITMAP
# =============================================================================

class NonceBitmap:
    """
    Keyed store account -> word_position -> 256-bit int with atomic
    read-modify-write per account.

    Args:
        event_logger: Receives one event per mutation. A private logger is
                      created when omitted.
        actor_check:  Optional callable (account, caller) -> bool gating
                      invalidate(). When configured, a caller for which it
                      returns False gets UnauthorizedError.
    """

    def __init__(
        self,
        event_logger: Optional[EventLogger] = None,
        actor_check: Optional[ActorCheck] = None,
    ) -> None:
        self._words: Dict[Hashable, Dict[int, int]] = {}
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._events: EventLogger = event_logger if event_logger is not None else EventLogger()
        self._actor_check: Optional[ActorCheck] = actor_check

    @property
    def events(self) -> EventLogger:
        return self._events

    def _lock_for(self, account: Hashable) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(account)
            if lock is None:
                lock = threading.Lock()
                self._locks[account] = lock
            return lock

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def bitmap(self, account: Hashable, word_position: int) -> int:
        """Return the current 256-bit word. Unwritten words are 0."""
        _check_int_range(
            "word_position", word_position, MAX_WORD_POSITION, "must be in [0, 2**248 - 1]"
        )
        with self._lock_for(account):
            return self._words.get(account, {}).get(word_position, 0)

    def is_used(self, account: Hashable, nonce: int) -> bool:
        word_position, bit_index = split_nonce(nonce)
        return (self.bitmap(account, word_position) >> bit_index) & 1 == 1

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def invalidate(
        self,
        account: Hashable,
        word_position: int,
        mask: int,
        caller: Optional[Hashable] = None,
    ) -> int:
        """
        OR mask into bitmap[account][word_position]. Return the new word.

        Idempotent: applying the same mask twice leaves the same word.
        The emitted event records the mask exactly as supplied.
        """
        _check_int_range(
            "word_position", word_position, MAX_WORD_POSITION, "must be in [0, 2**248 - 1]"
        )
        _check_int_range("mask", mask, UINT256_MAX, "must be in [0, 2**256 - 1]")
        if self._actor_check is not None and not self._actor_check(account, caller):
            raise UnauthorizedError(account=account, caller=caller)

        with self._lock_for(account):
            words = self._words.setdefault(account, {})
            updated = words.get(word_position, 0) | mask
            words[word_position] = updated
            self._events.log_event(
                UNORDERED_NONCE_INVALIDATION,
                {"account": account, "word_position": word_position, "mask": mask},
            )
        return updated

    def consume(self, account: Hashable, nonce: int) -> None:
        """
        Mark nonce as used. Check and set happen under one lock acquisition.

        Raises:
            InvalidNonceError  nonce already used; the bitmap is not modified.
        """
        word_position, bit_index = split_nonce(nonce)
        bit = 1 << bit_index
        with self._lock_for(account):
            words = self._words.setdefault(account, {})
            current = words.get(word_position, 0)
            if current & bit:
                raise InvalidNonceError(account=account, nonce=nonce)
            words[word_position] = current | bit
            self._events.log_event(
                NONCE_CONSUMED,
                {"account": account, "nonce": nonce, "word_position": word_position, "bit_index": bit_index},
            )


__all__ = [
    "NonceBitmap",
    "split_nonce",
]
