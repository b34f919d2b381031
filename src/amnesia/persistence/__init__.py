"""Persistence — audit event log and local record store."""

from amnesia.persistence.event_log import EventKind, EventLog, EventRecord
from amnesia.persistence.record_store import RecordStore

__all__ = ["EventKind", "EventLog", "EventRecord", "RecordStore"]
