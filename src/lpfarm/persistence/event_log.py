"""Append-only event log — the audit record of every farm state change.

Each successful mutating call on the farm produces one or more event
records, mirroring the events the on-chain farm emits:

- FARM_INITIALIZED   (start block, weekly incentive)
- TOKEN_ADDED        (pool shares staked)
- TOKEN_REMOVED      (pool shares unstaked)
- INCENTIVE_CLAIMED  (reward paid to a participant)

Events are immutable once written and carry a SHA-256 hash of their
canonical JSON form. A failed call appends nothing.
"""

from __future__ import annotations

import enum
import hashlib
import json
from dataclasses import dataclass
from typing import Any, Optional


class EventKind(str, enum.Enum):
    """Classification of farm events."""
    FARM_INITIALIZED = "farm_initialized"
    TOKEN_ADDED = "token_added"
    TOKEN_REMOVED = "token_removed"
    INCENTIVE_CLAIMED = "incentive_claimed"


def _canonical_hash(
    event_id: str,
    event_kind: EventKind,
    block: int,
    actor_id: str,
    payload: dict[str, Any],
) -> str:
    canonical = json.dumps(
        {
            "event_id": event_id,
            "event_kind": event_kind.value,
            "block": block,
            "actor_id": actor_id,
            "payload": payload,
        },
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"


@dataclass(frozen=True)
class EventRecord:
    """A single immutable farm event.

    ``block`` is the block height at which the event was produced;
    ``event_hash`` is computed at creation time.
    """
    event_id: str
    event_kind: EventKind
    block: int
    actor_id: str
    payload: dict[str, Any]
    event_hash: str

    @staticmethod
    def create(
        event_id: str,
        event_kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
        block: int,
    ) -> EventRecord:
        """Create a new event record with computed hash."""
        return EventRecord(
            event_id=event_id,
            event_kind=event_kind,
            block=block,
            actor_id=actor_id,
            payload=payload,
            event_hash=_canonical_hash(event_id, event_kind, block, actor_id, payload),
        )

    def verify(self) -> bool:
        """Recompute the hash and compare it to the stored one."""
        expected = _canonical_hash(
            self.event_id, self.event_kind, self.block, self.actor_id, self.payload,
        )
        return expected == self.event_hash


class EventLog:
    """In-memory append-only event log.

    Events can only be appended, never modified or deleted.
    """

    def __init__(self) -> None:
        self._events: list[EventRecord] = []
        self._event_ids: set[str] = set()

    def append(self, event: EventRecord) -> None:
        """Append an event to the log.

        Raises ValueError if event_id is a duplicate (replay protection).
        """
        if event.event_id in self._event_ids:
            raise ValueError(f"Duplicate event ID: {event.event_id}")
        self._events.append(event)
        self._event_ids.add(event.event_id)

    def extend(self, events: list[EventRecord]) -> None:
        """Append a batch of events, all or nothing."""
        ids = [e.event_id for e in events]
        duplicates = sorted(
            {i for i in ids if i in self._event_ids or ids.count(i) > 1}
        )
        if duplicates:
            raise ValueError(f"Duplicate event IDs: {', '.join(duplicates)}")
        for event in events:
            self.append(event)

    def events(self, kind: Optional[EventKind] = None) -> list[EventRecord]:
        """Return events, optionally filtered by kind."""
        if kind is None:
            return list(self._events)
        return [e for e in self._events if e.event_kind == kind]

    def events_for(
        self,
        actor_id: str,
        kind: Optional[EventKind] = None,
    ) -> list[EventRecord]:
        """Return the events of one actor, optionally filtered by kind."""
        return [e for e in self.events(kind) if e.actor_id == actor_id]

    def event_hashes(self, kind: Optional[EventKind] = None) -> list[str]:
        return [e.event_hash for e in self.events(kind)]

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None
