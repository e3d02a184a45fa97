# sessionguard/core/event_log.py
# Event Log -- externally observable record of nonce state changes.
# SESSIONGUARD v1.0.0
#
# Scope: Event-sourced log with a SHA-256 hash chain. Off-chain observers
# rebuild nonce bitmap state by replaying UNORDERED_NONCE_INVALIDATION and
# NONCE_CONSUMED events in sequence order.
# Zero tolerance for lost events. No file IO. No global mutable state.
#
# Canonical import:
#   from sessionguard.core.event_log import EventLogger, Event, EventFilter
#
# Prohibited: datetime.now(), uuid, random, file IO, global mutable state

# ===========================================================================
# SECTION 1 -- STDLIB IMPORTS
# ===========================================================================

import hashlib
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterator, List, Optional

# ===========================================================================
# SECTION 2 -- CONSTANTS
# ===========================================================================

UNORDERED_NONCE_INVALIDATION: str = "UNORDERED_NONCE_INVALIDATION"
NONCE_CONSUMED: str = "NONCE_CONSUMED"
ORDER_EXECUTED: str = "ORDER_EXECUTED"

# Hash of the (virtual) event preceding the first one in every log.
GENESIS_HASH: str = "0" * 64

# Field separator used inside the hash preimage.
_HASH_SEP: str = "|"

# ===========================================================================
# SECTION 3 -- DATACLASSES: Event, EventFilter
# ===========================================================================

@dataclass(frozen=True)
class Event:
    """
    Immutable record of a single observable event.

    Fields
    ------
    id        : Deterministic identifier derived from the sequence number.
    type      : Category string (e.g. UNORDERED_NONCE_INVALIDATION).
    sequence  : 1-based position in the log. Defines replay order.
    data      : Key-value payload. Bytes values are stored as 0x-hex strings.
    prev_hash : Hash of the preceding event, GENESIS_HASH for the first.
    hash      : SHA-256 hex digest over (prev_hash, id, type, data).
    """
    id: str
    type: str
    sequence: int
    data: Dict[str, Any] = field(hash=False)
    prev_hash: str
    hash: str


@dataclass
class EventFilter:
    """
    Filter specification for EventLogger.query_events().

    All fields are optional. Omitted fields apply no constraint.

    Fields
    ------
    event_type : If set, only events whose .type equals this value.
    account    : If set, only events whose data["account"] equals this value.
    limit      : If set, at most this many events (oldest first).
    """
    event_type: Optional[str] = None
    account: Optional[Hashable] = None
    limit: Optional[int] = None


# ===========================================================================
# SECTION 4 -- INTERNAL HELPERS
# ===========================================================================

def _normalize_value(value: Any) -> Any:
    """Bytes become 0x-hex strings; everything else is returned unchanged."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


def _normalize_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a new dict with normalized values. The input is not mutated."""
    return {k: _normalize_value(v) for k, v in data.items()}


def _compute_hash(
    prev_hash: str,
    event_id: str,
    event_type: str,
    data: Dict[str, Any],
) -> str:
    """
    Compute the chained SHA-256 hex digest for an event.

    Preimage: prev_hash | event_id | event_type | repr(sorted(data.items()))
    sorted() makes the digest independent of dict insertion order.
    """
    preimage: str = (
        prev_hash
        + _HASH_SEP
        + event_id
        + _HASH_SEP
        + event_type
        + _HASH_SEP
        + repr(sorted(data.items()))
    )
    return hashlib.sha256(preimage.encode("ascii", errors="replace")).hexdigest()


def _make_event_id(sequence: int) -> str:
    """Format: "EVT-{sequence:016d}". Zero-padded for lexicographic order."""
    return "EVT-{:016d}".format(sequence)


# ===========================================================================
# SECTION 5 -- EventLogger
# ===========================================================================

class EventLogger:
    """
    Append-only, hash-chained event log.

    Storage
    -------
    Events are held in an instance-level list. No file IO. No global state.
    Each EventLogger instance is fully independent.

    Concurrency
    -----------
    log_event() appends under an instance lock so that sequence numbers and
    the hash chain stay consistent when several accounts are mutated from
    different threads.

    Zero lost events
    ----------------
    log_event() raises LoggingError on any invalid input instead of
    silently discarding the event.
    """

    def __init__(self) -> None:
        self._store: List[Event] = []
        self._lock = threading.Lock()

    # -----------------------------------------------------------------------
    # SECTION 5.1 -- log_event
    # -----------------------------------------------------------------------

    def log_event(self, event_type: str, data: Dict[str, Any]) -> str:
        """
        Record one event atomically. Return the assigned event ID.

        Raises
        ------
        LoggingError : If event_type is empty or data is not a dict.
        """
        if not event_type or not isinstance(event_type, str):
            raise LoggingError("event_type must be a non-empty string")
        if not isinstance(data, dict):
            raise LoggingError(
                "data must be a dict; got: {}".format(type(data))
            )

        normalized = _normalize_data(data)
        with self._lock:
            sequence = len(self._store) + 1
            prev_hash = self._store[-1].hash if self._store else GENESIS_HASH
            event_id = _make_event_id(sequence)
            event = Event(
                id=event_id,
                type=event_type,
                sequence=sequence,
                data=normalized,
                prev_hash=prev_hash,
                hash=_compute_hash(prev_hash, event_id, event_type, normalized),
            )
            self._store.append(event)
        return event_id

    # -----------------------------------------------------------------------
    # SECTION 5.2 -- query_events
    # -----------------------------------------------------------------------

    def query_events(self, filter: EventFilter) -> List[Event]:
        """
        Return events matching the filter, oldest first.

        Raises
        ------
        LoggingError : If filter is None.
        """
        if filter is None:
            raise LoggingError("filter must not be None")

        results: List[Event] = []
        for event in self.snapshot():
            if filter.event_type is not None and event.type != filter.event_type:
                continue
            if filter.account is not None and event.data.get("account") != filter.account:
                continue
            results.append(event)

        if filter.limit is not None:
            results = results[: filter.limit]
        return results

    # -----------------------------------------------------------------------
    # SECTION 5.3 -- stream / snapshot
    # -----------------------------------------------------------------------

    def snapshot(self) -> List[Event]:
        """Return a copy of the stored events in sequence order."""
        with self._lock:
            return list(self._store)

    def get_event_stream(self, start_sequence: int = 1) -> Iterator[Event]:
        """Yield events with sequence >= start_sequence, in order."""
        for event in self.snapshot():
            if event.sequence >= start_sequence:
                yield event

    def event_count(self) -> int:
        with self._lock:
            return len(self._store)

    # -----------------------------------------------------------------------
    # SECTION 5.4 -- verify_chain
    # -----------------------------------------------------------------------

    def verify_chain(self) -> bool:
        """
        Recompute every hash and link. Return False on the first mismatch.

        Pure read. Does not mutate the store.
        """
        prev_hash = GENESIS_HASH
        for expected_sequence, event in enumerate(self.snapshot(), start=1):
            if event.sequence != expected_sequence or event.prev_hash != prev_hash:
                return False
            if event.hash != _compute_hash(prev_hash, event.id, event.type, event.data):
                return False
            prev_hash = event.hash
        return True


# ===========================================================================
# SECTION 6 -- EXCEPTIONS
# ===========================================================================

class LoggingError(Exception):
    """
    Raised by EventLogger when an invariant is violated.

    Never silently swallowed. Callers must handle it or let it propagate.
    """
