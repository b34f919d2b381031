"""Monthly ledger — the in-memory collection of months being worked on.

MonthlyFigures are immutable, so the ledger holds the current version of
each month keyed by figures_id and swaps in the new version after every
reducer call. Insertion order is preserved. Removing a month discards it
with all of its entries; nothing is deleted from the record store.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from amnesia.models.commission import EntryNotFoundError, MonthlyFigures


class MonthlyLedger:
    """Ordered, in-memory set of MonthlyFigures.

    Usage:
        ledger = MonthlyLedger()
        ledger.add(engine.new_month("March"))
        ledger.replace(engine.apply_field_update(figures, "total_sales", 1000))
        ledger.remove(figures.figures_id)
    """

    def __init__(self) -> None:
        self._months: Dict[str, MonthlyFigures] = {}

    def add(self, figures: MonthlyFigures) -> None:
        """Add a new month. Raises ValueError on a duplicate id."""
        if figures.figures_id in self._months:
            raise ValueError(f"Duplicate month id: {figures.figures_id}")
        self._months[figures.figures_id] = figures

    def replace(self, figures: MonthlyFigures) -> None:
        """Swap in a new version of a month that is already held."""
        if figures.figures_id not in self._months:
            raise EntryNotFoundError(f"Month not found: {figures.figures_id}")
        self._months[figures.figures_id] = figures

    def remove(self, figures_id: str) -> MonthlyFigures:
        """Remove a month and return its last version."""
        if figures_id not in self._months:
            raise EntryNotFoundError(f"Month not found: {figures_id}")
        return self._months.pop(figures_id)

    def get(self, figures_id: str) -> Optional[MonthlyFigures]:
        return self._months.get(figures_id)

    def find_by_label(self, month: str) -> Optional[MonthlyFigures]:
        """Return the first month whose label matches, ignoring case."""
        wanted = month.strip().lower()
        for figures in self._months.values():
            if figures.month.strip().lower() == wanted:
                return figures
        return None

    def all(self) -> List[MonthlyFigures]:
        return list(self._months.values())

    @property
    def count(self) -> int:
        return len(self._months)
