"""Record store — local implementation of the commission sheet contract.

The shared commission sheet accepts:
    save(records)  → appends one row per valid record
    load(month)    → rows for that month (case-insensitive match)
    load()         → distinct month labels, first-seen order

This store keeps the same semantics in a JSONL file (one row per line)
or in memory. Rows are appended, never rewritten. Each save call is a
batch: every row carries the same saved_utc timestamp and batch_id, so
the latest save for a month can be told apart from earlier ones.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence
from uuid import uuid4

from amnesia.commission.records import RecordLike, record_from_dict
from amnesia.models.commission import FlatRecord


class RecordStore:
    """Append-only store of flat commission records.

    Usage:
        store = RecordStore(policy.roster, storage_path=data_dir / "records.jsonl")
        store.save(to_flat_records(figures, policy))
        store.months()           # ["March", ...]
        store.load_latest("march")
    """

    def __init__(
        self,
        roster: Sequence[str],
        storage_path: Optional[Path] = None,
    ) -> None:
        self._roster = frozenset(roster)
        self._storage_path = storage_path
        self._rows: List[dict[str, Any]] = []

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    def save(
        self,
        records: Iterable[RecordLike],
        now: Optional[datetime] = None,
    ) -> int:
        """Append every valid record as one batch.

        Valid means a non-blank month and a rostered employee name;
        other records are skipped. Returns the number of rows written.

        Raises ValueError if no record is valid.
        """
        valid = [
            r for r in (self._as_record(item) for item in records)
            if r.month.strip() and r.employee_name in self._roster
        ]
        if not valid:
            raise ValueError("No valid entries found")

        ts = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
        batch_id = f"batch_{uuid4().hex[:12]}"
        rows = [
            {"saved_utc": ts, "batch_id": batch_id, **r.to_dict()}
            for r in valid
        ]
        if self._storage_path:
            self._append_to_file(rows)
        self._rows.extend(rows)
        return len(rows)

    def load(self, month: str) -> List[FlatRecord]:
        """Return every stored row for a month, oldest first."""
        return [record_from_dict(row) for row in self._rows_for(month)]

    def load_latest(self, month: str) -> List[FlatRecord]:
        """Return the rows of the most recent save batch for a month."""
        rows = self._rows_for(month)
        if not rows:
            return []
        latest = rows[-1]["batch_id"]
        return [record_from_dict(row) for row in rows if row["batch_id"] == latest]

    def months(self) -> List[str]:
        """Distinct non-blank month labels in first-seen order."""
        seen: List[str] = []
        for row in self._rows:
            label = str(row.get("month") or "")
            if label.strip() and label not in seen:
                seen.append(label)
        return seen

    @property
    def count(self) -> int:
        return len(self._rows)

    def _rows_for(self, month: str) -> List[dict[str, Any]]:
        wanted = month.strip().lower()
        return [
            row for row in self._rows
            if str(row.get("month") or "").strip().lower() == wanted
        ]

    @staticmethod
    def _as_record(item: RecordLike) -> FlatRecord:
        return item if isinstance(item, FlatRecord) else record_from_dict(item)

    def _append_to_file(self, rows: List[dict[str, Any]]) -> None:
        with self._storage_path.open("a", encoding="utf-8") as f:
            for row in rows:
                f.write(json.dumps(row, sort_keys=True, ensure_ascii=False) + "\n")

    def _load_from_file(self, path: Path) -> None:
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                row = json.loads(line)
                if "batch_id" not in row:
                    raise ValueError(
                        f"Record without batch_id (line {line_num}) in {path}"
                    )
                self._rows.append(row)
