"""Append-only audit log of commission activity.

Each service change (month created or removed, sales/VAT or overtime
edited, records saved, loaded or failed to save) becomes one EventRecord.
A record is hashed over its own JSON row, so the row written to disk is
exactly what gets verified when the log is read back.
"""

from __future__ import annotations

import enum
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


class EventKind(str, enum.Enum):
    """Classification of audit events."""
    MONTH_CREATED = "month_created"
    MONTH_REMOVED = "month_removed"
    FIGURES_UPDATED = "figures_updated"
    OVERTIME_UPDATED = "overtime_updated"
    RECORDS_SAVED = "records_saved"
    RECORDS_SAVE_FAILED = "records_save_failed"
    RECORDS_LOADED = "records_loaded"


def _digest(row: dict[str, Any]) -> str:
    """sha256 over the canonical JSON of a row, event_hash excluded."""
    body = {k: v for k, v in row.items() if k != "event_hash"}
    canonical = json.dumps(body, sort_keys=True, ensure_ascii=False)
    return "sha256:" + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class EventRecord:
    event_id: str
    event_kind: EventKind
    timestamp_utc: str
    actor_id: str
    payload: dict[str, Any]
    event_hash: str

    @staticmethod
    def create(
        event_id: str,
        event_kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        stamp = (timestamp_utc or datetime.now(timezone.utc)).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )
        row = {
            "event_id": event_id,
            "event_kind": event_kind.value,
            "timestamp_utc": stamp,
            "actor_id": actor_id,
            "payload": payload,
        }
        return EventRecord.from_row({**row, "event_hash": _digest(row)})

    @staticmethod
    def from_row(row: dict[str, Any]) -> EventRecord:
        return EventRecord(
            event_id=row["event_id"],
            event_kind=EventKind(row["event_kind"]),
            timestamp_utc=row["timestamp_utc"],
            actor_id=row["actor_id"],
            payload=row["payload"],
            event_hash=row["event_hash"],
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_kind": self.event_kind.value,
            "timestamp_utc": self.timestamp_utc,
            "actor_id": self.actor_id,
            "payload": self.payload,
            "event_hash": self.event_hash,
        }


class EventLog:
    """In-memory event list, mirrored to a JSONL file when a path is given.

    Usage:
        log = EventLog(storage_path=Path("data/events.jsonl"))
        log.append(EventRecord.create("EVT-00000001", EventKind.MONTH_CREATED,
                                      "system", {"figures_id": fid}))
        history = log.events(figures_id=fid)

    Reloading a file verifies every row's hash and rejects repeated ids.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._storage_path = storage_path
        self._events: list[EventRecord] = []
        self._ids: set[str] = set()
        if storage_path is not None and storage_path.exists():
            self._read(storage_path)

    def append(self, event: EventRecord) -> None:
        """Add an event. Raises ValueError on a repeated event_id.

        The file is written first; an OSError leaves the log unchanged.
        """
        if event.event_id in self._ids:
            raise ValueError(f"Duplicate event ID: {event.event_id}")
        if self._storage_path is not None:
            with self._storage_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(event.to_row(), sort_keys=True, ensure_ascii=False))
                f.write("\n")
        self._remember(event)

    def events(
        self,
        kind: Optional[EventKind] = None,
        figures_id: Optional[str] = None,
    ) -> list[EventRecord]:
        """Events in append order, optionally narrowed by kind and month id."""
        return [
            e for e in self._events
            if (kind is None or e.event_kind == kind)
            and (figures_id is None or e.payload.get("figures_id") == figures_id)
        ]

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None

    def _remember(self, event: EventRecord) -> None:
        self._events.append(event)
        self._ids.add(event.event_id)

    def _read(self, path: Path) -> None:
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                if not line.strip():
                    continue
                row = json.loads(line)
                if row["event_id"] in self._ids:
                    raise ValueError(
                        f"Duplicate event ID on recovery (line {line_num}): "
                        f"{row['event_id']}"
                    )
                expected = _digest(row)
                if row["event_hash"] != expected:
                    raise ValueError(
                        f"Integrity check failed (line {line_num}): event "
                        f"{row['event_id']} stored {row['event_hash']} != {expected}"
                    )
                self._remember(EventRecord.from_row(row))
