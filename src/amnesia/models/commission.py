"""Commission models — monthly figures, employee entries, flat records.

All monetary values use Decimal for exact arithmetic. No floats in payouts.

Invariants enforced by these models and the engine that builds them:
- Derived amounts are never set independently of their inputs
- Every derived amount is quantized to 0.01
- Entries mirror the month label of the MonthlyFigures that owns them
- The flat record is the only shape that crosses the storage boundary
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Tuple


ZERO = Decimal("0")


class CommissionError(Exception):
    """Base class for commission engine errors."""


class InvalidInputError(CommissionError, ValueError):
    """Raised when a numeric input is negative, non-finite or not a number."""


class InvalidFieldError(CommissionError, ValueError):
    """Raised when a field update names an unknown field."""


class EntryNotFoundError(CommissionError, KeyError):
    """Raised when an employee entry or month is not present."""

    def __str__(self) -> str:
        # KeyError repr-quotes its message; keep it readable.
        return str(self.args[0]) if self.args else ""


class InvalidRecordsError(CommissionError, ValueError):
    """Raised when a batch of flat records is structurally unusable."""


class FigureField(str, enum.Enum):
    """Fields of MonthlyFigures a caller may update directly.

    Derived amounts are absent on purpose: they only change through
    recomputation.
    """
    MONTH = "month"
    TOTAL_SALES = "total_sales"
    VAT_PERCENT = "vat_percent"


# Wire-format aliases accepted by apply_field_update
FIELD_ALIASES: Dict[str, FigureField] = {
    "totalSales": FigureField.TOTAL_SALES,
    "totalSalesInclVat": FigureField.TOTAL_SALES,
    "vatPercent": FigureField.VAT_PERCENT,
}


@dataclass(frozen=True)
class MonthlyBreakdown:
    """Result of computing the shared commission for one month."""
    sales_ex_vat: Decimal
    total_commission: Decimal
    shared_commission_per_person: Decimal
    net_shared_commission_per_person: Decimal


@dataclass(frozen=True)
class EmployeeBreakdown:
    """Result of computing one employee's payout."""
    net_overtime: Decimal
    final_amount: Decimal


@dataclass(frozen=True)
class EmployeeEntry:
    """One roster member's overtime and payout within a month."""
    entry_id: str
    employee_name: str
    month: str = ""
    overtime: Decimal = ZERO
    net_overtime: Decimal = ZERO
    final_amount: Decimal = ZERO


@dataclass(frozen=True)
class MonthlyFigures:
    """The aggregate sales and commission record for one period.

    Immutable. Updates go through CommissionEngine.apply_field_update and
    CommissionEngine.apply_overtime_update, which return a new instance.
    """
    figures_id: str
    month: str
    total_sales: Decimal
    vat_percent: Decimal
    sales_ex_vat: Decimal = ZERO
    total_commission: Decimal = ZERO
    shared_commission_per_person: Decimal = ZERO
    net_shared_commission_per_person: Decimal = ZERO
    entries: Tuple[EmployeeEntry, ...] = field(default_factory=tuple)

    def entry(self, entry_id: str) -> EmployeeEntry:
        """Return the entry with the given id.

        Raises EntryNotFoundError if the id is not owned by this month.
        """
        for entry in self.entries:
            if entry.entry_id == entry_id:
                return entry
        raise EntryNotFoundError(
            f"Employee entry not found: {entry_id} (month {self.month!r})"
        )

    def entry_for(self, employee_name: str) -> EmployeeEntry:
        """Return the first entry for an employee name."""
        for entry in self.entries:
            if entry.employee_name == employee_name:
                return entry
        raise EntryNotFoundError(
            f"No entry for employee: {employee_name} (month {self.month!r})"
        )


@dataclass(frozen=True)
class FlatRecord:
    """Denormalized snapshot of one entry plus its month's shared fields.

    This is the storage contract. Field names on the wire use the
    external store's camelCase keys (see to_dict / WIRE_KEYS).
    """
    month: str
    total_sales: Decimal
    vat_percent: Decimal
    sales_ex_vat: Decimal
    total_commission: Decimal
    employee_name: str
    shared_commission: Decimal
    net_shared_commission: Decimal
    overtime: Decimal
    net_overtime: Decimal
    final_amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the external store's wire shape (JSON numbers)."""
        out: Dict[str, Any] = {}
        for attr, key in WIRE_KEYS:
            value = getattr(self, attr)
            out[key] = float(value) if isinstance(value, Decimal) else value
        return out


# (attribute, wire key) in the store's column order
WIRE_KEYS: Tuple[Tuple[str, str], ...] = (
    ("month", "month"),
    ("total_sales", "totalSales"),
    ("vat_percent", "vatPercent"),
    ("sales_ex_vat", "salesExVAT"),
    ("total_commission", "totalCommission"),
    ("employee_name", "employeeName"),
    ("shared_commission", "sharedCommission"),
    ("net_shared_commission", "netSharedCommission"),
    ("overtime", "overtime"),
    ("net_overtime", "netOT"),
    ("final_amount", "finalAmount"),
)


@dataclass(frozen=True)
class CommissionSummary:
    """Totals across every month currently held."""
    total_months: int
    total_sales: Decimal
    total_commission: Decimal
    average_net_shared_per_person: Decimal
