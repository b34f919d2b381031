"""Commission engine — computes the monthly shared commission and payouts.

The formula is fully deterministic and staged; every stage is quantized
to 0.01 before it feeds the next one:

    sales_ex_vat     = total_sales / (1 + vat_percent / 100)
    total_commission = sales_ex_vat × COMMISSION_RATE × EMPLOYEE_SHARE
    shared           = total_commission / HEADCOUNT
    net_shared       = shared × (1 - TAX_RATE)

Per employee:
    net_overtime = overtime × (1 - TAX_RATE)
    final_amount = net_shared + net_overtime

HEADCOUNT is policy, not len(entries). A month holding one or two
entries still splits the pool three ways.

Updates are reducers: apply_field_update and apply_overtime_update take
a MonthlyFigures and return a new one. Validation runs before anything
is built, so a rejected update leaves the caller's state as it was.
"""

from __future__ import annotations

import dataclasses
import decimal
from decimal import Decimal
from typing import Any, Union
from uuid import uuid4

from amnesia.models.commission import (
    FIELD_ALIASES,
    ZERO,
    EmployeeBreakdown,
    EmployeeEntry,
    FigureField,
    InvalidFieldError,
    InvalidInputError,
    MonthlyBreakdown,
    MonthlyFigures,
)
from amnesia.policy.resolver import CommissionPolicy


CENT = Decimal("0.01")

# Largest accepted input. Keeps every derived amount within 15 significant
# digits, so cents survive the JSON-number wire shape.
MAX_AMOUNT = Decimal("999999999999.99")


def to_amount(value: Any, name: str) -> Decimal:
    """Convert a caller-supplied number to a non-negative finite Decimal.

    Floats go through str() so 0.1 means Decimal("0.1").
    Raises InvalidInputError for anything else.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except decimal.InvalidOperation as e:
            raise InvalidInputError(f"{name} must be a number, got {value!r}") from e
    else:
        raise InvalidInputError(f"{name} must be a number, got {value!r}")

    if not amount.is_finite():
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    if amount < ZERO:
        raise InvalidInputError(f"{name} must be >= 0, got {value!r}")
    if amount > MAX_AMOUNT:
        raise InvalidInputError(f"{name} must be <= {MAX_AMOUNT}, got {value!r}")
    return amount


class CommissionEngine:
    """Computes commission breakdowns under an injected policy.

    Usage:
        engine = CommissionEngine(policy)
        figures = engine.new_month("March")
        figures = engine.apply_field_update(figures, "total_sales", "100000")
        figures = engine.apply_overtime_update(
            figures, figures.entries[0].entry_id, Decimal("2000"),
        )
    """

    def __init__(self, policy: CommissionPolicy) -> None:
        self._policy = policy

    @property
    def policy(self) -> CommissionPolicy:
        return self._policy

    def quantize(self, amount: Decimal) -> Decimal:
        """Round to cents with the policy's rounding mode."""
        try:
            return amount.quantize(CENT, rounding=self._policy.rounding)
        except decimal.InvalidOperation as e:
            raise InvalidInputError(f"Amount out of range: {amount}") from e

    # ------------------------------------------------------------------
    # Pure computation
    # ------------------------------------------------------------------

    def compute_monthly_figures(
        self,
        total_sales: Any,
        vat_percent: Any,
    ) -> MonthlyBreakdown:
        """Compute the month's shared commission breakdown.

        Args:
            total_sales: Sales including VAT (>= 0).
            vat_percent: VAT in percentage points, 7 means 7% (>= 0).

        Returns:
            A frozen MonthlyBreakdown, every amount quantized to 0.01.
        """
        sales = to_amount(total_sales, "total_sales")
        vat = to_amount(vat_percent, "vat_percent")
        p = self._policy

        sales_ex_vat = self.quantize(sales / (Decimal("1") + vat / Decimal("100")))
        total_commission = self.quantize(
            sales_ex_vat * p.commission_rate * p.employee_share
        )
        shared = self.quantize(total_commission / Decimal(p.headcount))
        net_shared = self.quantize(shared * p.withholding_factor)

        return MonthlyBreakdown(
            sales_ex_vat=sales_ex_vat,
            total_commission=total_commission,
            shared_commission_per_person=shared,
            net_shared_commission_per_person=net_shared,
        )

    def compute_employee_figures(
        self,
        net_shared_commission_per_person: Any,
        overtime: Any,
    ) -> EmployeeBreakdown:
        """Compute one employee's net overtime and final payout.

        Withholding on overtime is applied on its own, never compounded
        with the withholding already taken from the shared commission.
        """
        net_shared = to_amount(
            net_shared_commission_per_person, "net_shared_commission_per_person",
        )
        ot = to_amount(overtime, "overtime")

        net_overtime = self.quantize(ot * self._policy.withholding_factor)
        final_amount = self.quantize(net_shared + net_overtime)
        return EmployeeBreakdown(net_overtime=net_overtime, final_amount=final_amount)

    # ------------------------------------------------------------------
    # State construction and reducers
    # ------------------------------------------------------------------

    def new_month(self, month: str = "") -> MonthlyFigures:
        """Create a zeroed month with one entry per roster member."""
        if not isinstance(month, str):
            raise InvalidInputError(f"month must be a string, got {month!r}")
        entries = tuple(
            EmployeeEntry(
                entry_id=f"entry_{uuid4().hex[:12]}",
                employee_name=name,
                month=month,
            )
            for name in self._policy.roster
        )
        return MonthlyFigures(
            figures_id=f"month_{uuid4().hex[:12]}",
            month=month,
            total_sales=ZERO,
            vat_percent=self._policy.default_vat_percent,
            entries=entries,
        )

    def apply_field_update(
        self,
        figures: MonthlyFigures,
        field: Union[FigureField, str],
        value: Any,
    ) -> MonthlyFigures:
        """Set one field and return the fully recomputed month.

        total_sales / vat_percent: recompute the month, then every entry
        from its existing overtime. month: propagate the label onto every
        entry; nothing is recomputed.

        Raises:
            InvalidFieldError: field is not a FigureField (or alias).
            InvalidInputError: value is not acceptable for the field.
        """
        target = _resolve_field(field)

        if target == FigureField.MONTH:
            if not isinstance(value, str):
                raise InvalidInputError(f"month must be a string, got {value!r}")
            return dataclasses.replace(
                figures,
                month=value,
                entries=tuple(
                    dataclasses.replace(e, month=value) for e in figures.entries
                ),
            )

        if target == FigureField.TOTAL_SALES:
            total_sales = to_amount(value, "total_sales")
            vat_percent = figures.vat_percent
        else:
            total_sales = figures.total_sales
            vat_percent = to_amount(value, "vat_percent")

        breakdown = self.compute_monthly_figures(total_sales, vat_percent)
        entries = tuple(
            self._recompute_entry(e, breakdown.net_shared_commission_per_person, figures.month)
            for e in figures.entries
        )
        return dataclasses.replace(
            figures,
            total_sales=total_sales,
            vat_percent=vat_percent,
            sales_ex_vat=breakdown.sales_ex_vat,
            total_commission=breakdown.total_commission,
            shared_commission_per_person=breakdown.shared_commission_per_person,
            net_shared_commission_per_person=breakdown.net_shared_commission_per_person,
            entries=entries,
        )

    def apply_overtime_update(
        self,
        figures: MonthlyFigures,
        entry_id: str,
        overtime: Any,
    ) -> MonthlyFigures:
        """Set one entry's overtime and recompute that entry only.

        Raises:
            EntryNotFoundError: entry_id is not owned by this month.
            InvalidInputError: overtime is negative or not a number.
        """
        figures.entry(entry_id)
        ot = to_amount(overtime, "overtime")
        net_shared = figures.net_shared_commission_per_person

        entries = tuple(
            self._recompute_entry(
                dataclasses.replace(e, overtime=ot), net_shared, e.month,
            ) if e.entry_id == entry_id else e
            for e in figures.entries
        )
        return dataclasses.replace(figures, entries=entries)

    def _recompute_entry(
        self,
        entry: EmployeeEntry,
        net_shared: Decimal,
        month: str,
    ) -> EmployeeEntry:
        result = self.compute_employee_figures(net_shared, entry.overtime)
        return dataclasses.replace(
            entry,
            month=month,
            net_overtime=result.net_overtime,
            final_amount=result.final_amount,
        )


def _resolve_field(field: Union[FigureField, str]) -> FigureField:
    if isinstance(field, FigureField):
        return field
    if isinstance(field, str):
        if field in FIELD_ALIASES:
            return FIELD_ALIASES[field]
        try:
            return FigureField(field)
        except ValueError:
            pass
    raise InvalidFieldError(
        f"Unknown field: {field!r}. "
        f"Allowed: {', '.join(f.value for f in FigureField)}"
    )
