"""Tests for the append-only farm event log."""

import pytest

from lpfarm.persistence.event_log import EventKind, EventLog, EventRecord


def _event(event_id: str = "e1", kind: EventKind = EventKind.TOKEN_ADDED, actor: str = "alice") -> EventRecord:
    return EventRecord.create(event_id, kind, actor, {"amount": 100}, block=42)


class TestEventRecord:
    def test_hash_is_deterministic(self) -> None:
        assert _event().event_hash == _event().event_hash
        assert _event().event_hash.startswith("sha256:")

    def test_hash_covers_block(self) -> None:
        a = EventRecord.create("e1", EventKind.TOKEN_ADDED, "alice", {}, block=1)
        b = EventRecord.create("e1", EventKind.TOKEN_ADDED, "alice", {}, block=2)
        assert a.event_hash != b.event_hash

    def test_verify(self) -> None:
        record = _event()
        assert record.verify()
        tampered = EventRecord(
            event_id=record.event_id,
            event_kind=record.event_kind,
            block=record.block,
            actor_id=record.actor_id,
            payload={"amount": 1_000_000},
            event_hash=record.event_hash,
        )
        assert not tampered.verify()


class TestEventLog:
    def test_append_and_query(self) -> None:
        log = EventLog()
        log.append(_event("e1", EventKind.TOKEN_ADDED, "alice"))
        log.append(_event("e2", EventKind.INCENTIVE_CLAIMED, "alice"))
        log.append(_event("e3", EventKind.TOKEN_ADDED, "bob"))
        assert log.count == 3
        assert [e.event_id for e in log.events(EventKind.TOKEN_ADDED)] == ["e1", "e3"]
        assert [e.event_id for e in log.events_for("alice")] == ["e1", "e2"]
        assert log.last_event.event_id == "e3"
        assert len(log.event_hashes()) == 3

    def test_duplicate_rejected(self) -> None:
        log = EventLog()
        log.append(_event("e1"))
        with pytest.raises(ValueError, match="Duplicate"):
            log.append(_event("e1"))

    def test_extend_is_all_or_nothing(self) -> None:
        log = EventLog()
        log.append(_event("e1"))
        with pytest.raises(ValueError, match="Duplicate"):
            log.extend([_event("e2"), _event("e1")])
        assert log.count == 1

    def test_empty_log(self) -> None:
        log = EventLog()
        assert log.count == 0
        assert log.last_event is None
        assert log.events() == []
