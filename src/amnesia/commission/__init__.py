"""Commission subsystem — engine, flat record mapping, ledger, summary."""

from amnesia.commission.engine import CommissionEngine
from amnesia.commission.ledger import MonthlyLedger
from amnesia.commission.records import (
    from_flat_records,
    parse_money_or_zero,
    record_from_dict,
    to_flat_records,
)
from amnesia.commission.summary import summarize

__all__ = [
    "CommissionEngine",
    "MonthlyLedger",
    "from_flat_records",
    "parse_money_or_zero",
    "record_from_dict",
    "summarize",
    "to_flat_records",
]
