"""Flat record mapping — MonthlyFigures to and from the storage shape.

The external store keeps one row per employee per month with the month's
shared figures repeated on every row. to_flat_records produces those
rows; from_flat_records rebuilds a MonthlyFigures from them.

Leniency is deliberate and one-sided: individual numeric cells that do
not parse become 0 (rows from a spreadsheet may be blank), but
structural problems (no rows, rows from different months) are errors.
"""

from __future__ import annotations

import decimal
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Union
from uuid import uuid4

from amnesia.models.commission import (
    ZERO,
    EmployeeEntry,
    FlatRecord,
    InvalidRecordsError,
    MonthlyFigures,
)
from amnesia.policy.resolver import CommissionPolicy


RecordLike = Union[FlatRecord, Mapping[str, Any]]


def parse_money_or_zero(raw: Any) -> Decimal:
    """Parse a stored cell as a Decimal, defaulting to 0.

    Accepts Decimals, ints, floats and numeric strings (whitespace and
    "," thousands separators tolerated). None, blanks, booleans, text,
    NaN and infinities all give Decimal("0"). Never raises.
    """
    if raw is None or isinstance(raw, bool):
        return ZERO
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        text = raw.strip().replace(",", "")
        if not text:
            return ZERO
        try:
            value = Decimal(text)
        except decimal.InvalidOperation:
            return ZERO
    else:
        return ZERO
    return value if value.is_finite() else ZERO


def _text(raw: Any) -> str:
    return "" if raw is None else str(raw).strip()


def record_from_dict(data: Mapping[str, Any]) -> FlatRecord:
    """Build a FlatRecord from the store's wire dict (camelCase keys)."""
    return FlatRecord(
        month=_text(data.get("month")),
        total_sales=parse_money_or_zero(data.get("totalSales")),
        vat_percent=parse_money_or_zero(data.get("vatPercent")),
        sales_ex_vat=parse_money_or_zero(data.get("salesExVAT")),
        total_commission=parse_money_or_zero(data.get("totalCommission")),
        employee_name=_text(data.get("employeeName")),
        shared_commission=parse_money_or_zero(data.get("sharedCommission")),
        net_shared_commission=parse_money_or_zero(data.get("netSharedCommission")),
        overtime=parse_money_or_zero(data.get("overtime")),
        net_overtime=parse_money_or_zero(data.get("netOT")),
        final_amount=parse_money_or_zero(data.get("finalAmount")),
    )


def _as_record(item: RecordLike) -> FlatRecord:
    if isinstance(item, FlatRecord):
        return item
    if isinstance(item, Mapping):
        return record_from_dict(item)
    raise InvalidRecordsError(f"Not a flat record: {item!r}")


def to_flat_records(
    figures: MonthlyFigures,
    policy: CommissionPolicy,
) -> List[FlatRecord]:
    """Flatten a month into one FlatRecord per valid entry.

    Valid means the month label is non-blank and the employee is on the
    roster. Invalid entries are dropped silently; entry order is kept.
    """
    if not figures.month.strip():
        return []
    return [
        FlatRecord(
            month=figures.month,
            total_sales=figures.total_sales,
            vat_percent=figures.vat_percent,
            sales_ex_vat=figures.sales_ex_vat,
            total_commission=figures.total_commission,
            employee_name=entry.employee_name,
            shared_commission=figures.shared_commission_per_person,
            net_shared_commission=figures.net_shared_commission_per_person,
            overtime=entry.overtime,
            net_overtime=entry.net_overtime,
            final_amount=entry.final_amount,
        )
        for entry in figures.entries
        if policy.is_rostered(entry.employee_name)
    ]


def from_flat_records(records: Iterable[RecordLike]) -> MonthlyFigures:
    """Rebuild a MonthlyFigures from one month's flat records.

    Shared fields come from the first record; each record becomes one
    entry. Stored derived amounts are taken as-is, not recomputed.

    Raises:
        InvalidRecordsError: no records, an item that is not a record,
            or records from more than one month (case-insensitive).
    """
    rows = [_as_record(item) for item in records]
    if not rows:
        raise InvalidRecordsError("Cannot rebuild a month from zero records")

    months = sorted({r.month.lower() for r in rows})
    if len(months) > 1:
        raise InvalidRecordsError(
            f"Records span more than one month: {', '.join(months)}"
        )

    first = rows[0]
    entries = tuple(
        EmployeeEntry(
            entry_id=f"entry_{uuid4().hex[:12]}",
            employee_name=r.employee_name,
            month=first.month,
            overtime=r.overtime,
            net_overtime=r.net_overtime,
            final_amount=r.final_amount,
        )
        for r in rows
    )
    return MonthlyFigures(
        figures_id=f"month_{uuid4().hex[:12]}",
        month=first.month,
        total_sales=first.total_sales,
        vat_percent=first.vat_percent,
        sales_ex_vat=first.sales_ex_vat,
        total_commission=first.total_commission,
        shared_commission_per_person=first.shared_commission,
        net_shared_commission_per_person=first.net_shared_commission,
        entries=entries,
    )
