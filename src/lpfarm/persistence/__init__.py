"""Farm audit trail."""

from lpfarm.persistence.event_log import EventKind, EventLog, EventRecord

__all__ = ["EventKind", "EventLog", "EventRecord"]
