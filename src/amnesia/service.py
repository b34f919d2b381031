"""Commission service — unified facade for the commission engine.

This is the primary interface for programmatic access. It orchestrates:
- Month lifecycle (add, update figures and overtime, remove)
- Persistence (save to and load from the record store)
- Reporting (available months, overall summary)
- Audit (event log)

All operations produce typed results. Reducers run first and the ledger
is only updated once the audit event has been written; if the event log
rejects the append, the operation fails and the ledger is unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Union

from amnesia.commission.engine import CommissionEngine
from amnesia.commission.ledger import MonthlyLedger
from amnesia.commission.records import from_flat_records, to_flat_records
from amnesia.commission.summary import summarize
from amnesia.models.commission import (
    CommissionError,
    CommissionSummary,
    EmployeeEntry,
    FigureField,
    FlatRecord,
    MonthlyFigures,
)
from amnesia.persistence.event_log import EventKind, EventLog, EventRecord
from amnesia.persistence.record_store import RecordStore
from amnesia.policy.resolver import PolicyResolver


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


def entry_to_dict(entry: EmployeeEntry) -> dict[str, Any]:
    return {
        "entry_id": entry.entry_id,
        "employee_name": entry.employee_name,
        "month": entry.month,
        "overtime": str(entry.overtime),
        "net_overtime": str(entry.net_overtime),
        "final_amount": str(entry.final_amount),
    }


def figures_to_dict(figures: MonthlyFigures) -> dict[str, Any]:
    """Render a month for display; amounts as exact decimal strings."""
    return {
        "figures_id": figures.figures_id,
        "month": figures.month,
        "total_sales": str(figures.total_sales),
        "vat_percent": str(figures.vat_percent),
        "sales_ex_vat": str(figures.sales_ex_vat),
        "total_commission": str(figures.total_commission),
        "shared_commission_per_person": str(figures.shared_commission_per_person),
        "net_shared_commission_per_person": str(figures.net_shared_commission_per_person),
        "entries": [entry_to_dict(e) for e in figures.entries],
    }


class CommissionService:
    """Facade over engine, ledger, record store and event log.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = CommissionService(resolver, store=store)
        result = service.add_month("March")
        fid = result.data["figures_id"]
        service.update_field(fid, "total_sales", "100000")
        service.save_all()
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        event_log: Optional[EventLog] = None,
        store: Optional[RecordStore] = None,
        operator_id: str = "system",
    ) -> None:
        self._policy = resolver.commission_policy()
        self._engine = CommissionEngine(self._policy)
        self._ledger = MonthlyLedger()
        self._event_log = event_log
        self._store = store
        self._operator_id = operator_id
        self._event_counter = event_log.count if event_log else 0

    @property
    def engine(self) -> CommissionEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Month lifecycle
    # ------------------------------------------------------------------

    def add_month(self, month: str = "") -> ServiceResult:
        """Add a zeroed month with one entry per roster member."""
        try:
            figures = self._engine.new_month(month)
        except CommissionError as e:
            return ServiceResult(success=False, errors=[str(e)])

        err = self._record_event(EventKind.MONTH_CREATED, {
            "figures_id": figures.figures_id,
            "month": figures.month,
        })
        if err:
            return ServiceResult(success=False, errors=[err])
        self._ledger.add(figures)
        return ServiceResult(success=True, data=figures_to_dict(figures))

    def remove_month(self, figures_id: str) -> ServiceResult:
        figures = self._ledger.get(figures_id)
        if figures is None:
            return ServiceResult(success=False, errors=[f"Month not found: {figures_id}"])
        err = self._record_event(EventKind.MONTH_REMOVED, {
            "figures_id": figures_id,
            "month": figures.month,
        })
        if err:
            return ServiceResult(success=False, errors=[err])
        self._ledger.remove(figures_id)
        return ServiceResult(success=True, data={"figures_id": figures_id})

    def get_month(self, figures_id: str) -> Optional[MonthlyFigures]:
        return self._ledger.get(figures_id)

    def months(self) -> List[MonthlyFigures]:
        return self._ledger.all()

    def update_field(
        self,
        figures_id: str,
        field_name: Union[FigureField, str],
        value: Any,
    ) -> ServiceResult:
        """Set a month field; derived amounts follow."""
        return self._apply(
            figures_id,
            lambda f: self._engine.apply_field_update(f, field_name, value),
            EventKind.FIGURES_UPDATED,
            {"field": getattr(field_name, "value", field_name), "value": str(value)},
        )

    def update_overtime(
        self,
        figures_id: str,
        entry_id: str,
        overtime: Any,
    ) -> ServiceResult:
        """Set one employee's overtime; only that entry is recomputed."""
        return self._apply(
            figures_id,
            lambda f: self._engine.apply_overtime_update(f, entry_id, overtime),
            EventKind.OVERTIME_UPDATED,
            {"entry_id": entry_id, "overtime": str(overtime)},
        )

    def update_overtime_for(
        self,
        figures_id: str,
        employee_name: str,
        overtime: Any,
    ) -> ServiceResult:
        """Same as update_overtime, addressing the entry by employee name."""
        figures = self._ledger.get(figures_id)
        if figures is None:
            return ServiceResult(success=False, errors=[f"Month not found: {figures_id}"])
        try:
            entry = figures.entry_for(employee_name)
        except CommissionError as e:
            return ServiceResult(success=False, errors=[str(e)])
        return self.update_overtime(figures_id, entry.entry_id, overtime)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def flat_records(self) -> List[FlatRecord]:
        """Valid flat records of every held month, in ledger order."""
        records: List[FlatRecord] = []
        for figures in self._ledger.all():
            records.extend(to_flat_records(figures, self._policy))
        return records

    def save_all(self) -> ServiceResult:
        """Save the valid entries of every month to the record store.

        The records_saved event is written before the store is touched.
        If the store then fails, a records_save_failed event follows it.
        """
        if self._store is None:
            return ServiceResult(success=False, errors=["No record store configured"])

        records = self.flat_records()
        if not records:
            return ServiceResult(
                success=False,
                errors=["Please add at least one month with data."],
            )

        err = self._record_event(EventKind.RECORDS_SAVED, {
            "months": sorted({r.month for r in records}),
            "records": len(records),
        })
        if err:
            return ServiceResult(success=False, errors=[err])
        try:
            saved = self._store.save(records)
        except (ValueError, OSError) as e:
            errors = [f"Save failed: {e}"]
            err = self._record_event(EventKind.RECORDS_SAVE_FAILED, {"reason": str(e)})
            if err:
                errors.append(err)
            return ServiceResult(success=False, errors=errors)
        return ServiceResult(success=True, data={"saved": saved})

    def load_month(self, month: str) -> ServiceResult:
        """Load the latest saved version of a month into the ledger.

        A month already held under the same label (ignoring case) is
        replaced by the loaded one.
        """
        if self._store is None:
            return ServiceResult(success=False, errors=["No record store configured"])
        if not month or not month.strip():
            return ServiceResult(success=False, errors=["Please select a month to load."])

        rows = self._store.load_latest(month)
        if not rows:
            return ServiceResult(success=False, errors=[f"No entries found for {month}."])
        try:
            figures = from_flat_records(rows)
        except CommissionError as e:
            return ServiceResult(success=False, errors=[str(e)])

        err = self._record_event(EventKind.RECORDS_LOADED, {
            "figures_id": figures.figures_id,
            "month": figures.month,
            "records": len(rows),
        })
        if err:
            return ServiceResult(success=False, errors=[err])

        existing = self._ledger.find_by_label(month)
        if existing is not None:
            self._ledger.remove(existing.figures_id)
        self._ledger.add(figures)
        return ServiceResult(success=True, data=figures_to_dict(figures))

    def available_months(self) -> ServiceResult:
        if self._store is None:
            return ServiceResult(success=False, errors=["No record store configured"])
        return ServiceResult(success=True, data={"months": self._store.months()})

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def summary(self) -> CommissionSummary:
        return summarize(self._ledger.all(), self._policy.rounding)

    def status(self) -> dict[str, Any]:
        """Return a status summary of the service."""
        summary = self.summary()
        return {
            "roster": list(self._policy.roster),
            "months_held": self._ledger.count,
            "total_sales": str(summary.total_sales),
            "total_commission": str(summary.total_commission),
            "average_net_shared_per_person": str(summary.average_net_shared_per_person),
            "events": self._event_log.count if self._event_log else 0,
            "stored_records": self._store.count if self._store else 0,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply(
        self,
        figures_id: str,
        reducer: Callable[[MonthlyFigures], MonthlyFigures],
        kind: EventKind,
        payload: dict[str, Any],
    ) -> ServiceResult:
        figures = self._ledger.get(figures_id)
        if figures is None:
            return ServiceResult(success=False, errors=[f"Month not found: {figures_id}"])
        try:
            updated = reducer(figures)
        except CommissionError as e:
            return ServiceResult(success=False, errors=[str(e)])

        err = self._record_event(kind, {"figures_id": figures_id, **payload})
        if err:
            return ServiceResult(success=False, errors=[err])
        self._ledger.replace(updated)
        return ServiceResult(success=True, data=figures_to_dict(updated))

    def _next_event_id(self) -> str:
        """Generate a monotonically increasing unique event ID."""
        self._event_counter += 1
        return f"EVT-{self._event_counter:08d}"

    def _record_event(self, kind: EventKind, payload: dict[str, Any]) -> Optional[str]:
        """Append an audit event. Returns error string or None."""
        if self._event_log is None:
            return None
        try:
            event = EventRecord.create(
                event_id=self._next_event_id(),
                event_kind=kind,
                actor_id=self._operator_id,
                payload=payload,
            )
            self._event_log.append(event)
        except (ValueError, OSError) as e:
            return f"Event log failure: {e}"
        return None
