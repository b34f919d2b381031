"""Tests for month updates — proves the recomputation cascade is explicit and total."""

import pytest
from decimal import Decimal
from pathlib import Path

from amnesia.commission.engine import CommissionEngine
from amnesia.commission.records import from_flat_records
from amnesia.models.commission import (
    EntryNotFoundError,
    FigureField,
    InvalidFieldError,
    InvalidInputError,
    MonthlyFigures,
)
from amnesia.policy.resolver import PolicyResolver


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def engine() -> CommissionEngine:
    return CommissionEngine(PolicyResolver.from_config_dir(CONFIG_DIR).commission_policy())


@pytest.fixture
def march(engine: CommissionEngine) -> MonthlyFigures:
    return engine.new_month("March")


def _record(name: str, month: str = "March") -> dict:
    return {"month": month, "employeeName": name, "vatPercent": 7}


class TestNewMonth:
    def test_one_entry_per_roster_member(self, march: MonthlyFigures) -> None:
        assert [e.employee_name for e in march.entries] == ["Ting", "Bank", "Tann"]

    def test_defaults(self, march: MonthlyFigures) -> None:
        assert march.total_sales == Decimal("0")
        assert march.vat_percent == Decimal("7")
        assert march.net_shared_commission_per_person == Decimal("0")
        for entry in march.entries:
            assert entry.month == "March"
            assert entry.overtime == Decimal("0")
            assert entry.final_amount == Decimal("0")

    def test_ids_are_unique(self, engine: CommissionEngine) -> None:
        a, b = engine.new_month(), engine.new_month()
        assert a.figures_id != b.figures_id
        ids = [e.entry_id for e in a.entries] + [e.entry_id for e in b.entries]
        assert len(set(ids)) == 6

    def test_non_string_month_rejected(self, engine: CommissionEngine) -> None:
        with pytest.raises(InvalidInputError):
            engine.new_month(3)


class TestFieldUpdate:
    def test_total_sales_recomputes_month(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        updated = engine.apply_field_update(march, FigureField.TOTAL_SALES, "100000")
        assert updated.total_sales == Decimal("100000")
        assert updated.sales_ex_vat == Decimal("93457.94")
        assert updated.total_commission == Decimal("6542.06")
        assert updated.shared_commission_per_person == Decimal("2180.69")
        assert updated.net_shared_commission_per_person == Decimal("2115.27")
        for entry in updated.entries:
            assert entry.final_amount == Decimal("2115.27")

    def test_total_sales_keeps_overtime_and_updates_final(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        ting = march.entry_for("Ting")
        figures = engine.apply_overtime_update(march, ting.entry_id, "2000")
        updated = engine.apply_field_update(figures, "total_sales", "100000")

        assert [e.overtime for e in updated.entries] == [
            Decimal("2000"), Decimal("0"), Decimal("0"),
        ]
        assert updated.entry_for("Ting").net_overtime == Decimal("1940.00")
        assert updated.entry_for("Ting").final_amount == Decimal("4055.27")
        assert updated.entry_for("Bank").final_amount == Decimal("2115.27")
        assert updated.entry_for("Tann").final_amount == Decimal("2115.27")

    def test_vat_update_uses_existing_sales(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        figures = engine.apply_field_update(march, "total_sales", "100000")
        updated = engine.apply_field_update(figures, "vat_percent", "0")
        assert updated.total_sales == Decimal("100000")
        assert updated.sales_ex_vat == Decimal("100000.00")
        assert updated.total_commission == Decimal("7000.00")
        assert updated.shared_commission_per_person == Decimal("2333.33")
        assert updated.net_shared_commission_per_person == Decimal("2263.33")
        assert updated.entries[0].final_amount == Decimal("2263.33")

    def test_wire_aliases_accepted(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        by_alias = engine.apply_field_update(march, "totalSales", "1000")
        by_name = engine.apply_field_update(march, "total_sales", "1000")
        assert by_alias.total_commission == by_name.total_commission
        assert engine.apply_field_update(march, "vatPercent", "10").vat_percent == Decimal("10")

    def test_month_propagates_to_entries(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        figures = engine.apply_field_update(march, "total_sales", "100000")
        updated = engine.apply_field_update(figures, FigureField.MONTH, "April")
        assert updated.month == "April"
        assert all(e.month == "April" for e in updated.entries)
        assert updated.net_shared_commission_per_person == Decimal("2115.27")
        assert [e.final_amount for e in updated.entries] == [
            e.final_amount for e in figures.entries
        ]

    def test_input_state_untouched(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        engine.apply_field_update(march, "total_sales", "100000")
        assert march.total_sales == Decimal("0")
        assert march.net_shared_commission_per_person == Decimal("0")

    @pytest.mark.parametrize("bad_field", ["sales_ex_vat", "bogus", "", 42, None])
    def test_unknown_field_rejected(
        self, engine: CommissionEngine, march: MonthlyFigures, bad_field: object,
    ) -> None:
        with pytest.raises(InvalidFieldError, match="Unknown field"):
            engine.apply_field_update(march, bad_field, "1")

    def test_negative_value_rejected(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        with pytest.raises(InvalidInputError):
            engine.apply_field_update(march, "total_sales", "-100")
        assert march.total_sales == Decimal("0")

    def test_non_string_month_rejected(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        with pytest.raises(InvalidInputError):
            engine.apply_field_update(march, "month", 4)


class TestOvertimeUpdate:
    def test_only_target_entry_changes(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        figures = engine.apply_field_update(march, "total_sales", "100000")
        bank = figures.entry_for("Bank")
        updated = engine.apply_overtime_update(figures, bank.entry_id, Decimal("500"))

        assert updated.entry_for("Bank").overtime == Decimal("500")
        assert updated.entry_for("Bank").net_overtime == Decimal("485.00")
        assert updated.entry_for("Bank").final_amount == Decimal("2600.27")
        assert updated.entry_for("Ting") == figures.entry_for("Ting")
        assert updated.entry_for("Tann") == figures.entry_for("Tann")
        assert updated.total_commission == figures.total_commission
        assert updated.net_shared_commission_per_person == figures.net_shared_commission_per_person

    def test_unknown_entry_rejected(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        with pytest.raises(EntryNotFoundError, match="entry_missing"):
            engine.apply_overtime_update(march, "entry_missing", "10")

    def test_not_found_is_key_error(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        with pytest.raises(KeyError):
            engine.apply_overtime_update(march, "entry_missing", "10")

    def test_negative_overtime_rejected(
        self, engine: CommissionEngine, march: MonthlyFigures,
    ) -> None:
        entry_id = march.entries[0].entry_id
        with pytest.raises(InvalidInputError):
            engine.apply_overtime_update(march, entry_id, "-10")
        assert march.entries[0].overtime == Decimal("0")


class TestHeadcountDivisor:
    """The pool is always split three ways, whatever the entry count."""

    @pytest.mark.parametrize("names", [
        ["Ting"],
        ["Ting", "Bank"],
        ["Ting", "Bank", "Tann"],
    ])
    def test_divisor_independent_of_entries(
        self, engine: CommissionEngine, names: list,
    ) -> None:
        figures = from_flat_records([_record(n) for n in names])
        assert len(figures.entries) == len(names)
        updated = engine.apply_field_update(figures, "total_sales", "100000")
        assert updated.shared_commission_per_person == Decimal("2180.69")
        assert updated.net_shared_commission_per_person == Decimal("2115.27")
