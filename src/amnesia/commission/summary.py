"""Overall summary across months."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from amnesia.models.commission import ZERO, CommissionSummary, MonthlyFigures


def summarize(
    months: Iterable[MonthlyFigures],
    rounding: str,
) -> CommissionSummary:
    """Total sales and commission, plus the mean net share per person.

    The mean is taken over months (not employees) and quantized to 0.01.
    An empty input gives an all-zero summary.
    """
    items = list(months)
    total_sales = sum((m.total_sales for m in items), ZERO)
    total_commission = sum((m.total_commission for m in items), ZERO)
    if items:
        net_total = sum((m.net_shared_commission_per_person for m in items), ZERO)
        average = (net_total / Decimal(len(items))).quantize(
            Decimal("0.01"), rounding=rounding,
        )
    else:
        average = Decimal("0.00")
    return CommissionSummary(
        total_months=len(items),
        total_sales=total_sales,
        total_commission=total_commission,
        average_net_shared_per_person=average,
    )
