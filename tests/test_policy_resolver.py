"""Tests for the policy resolver — proves it loads and validates commission policy."""

import dataclasses
import json
import pytest
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path

from amnesia.policy.resolver import CommissionPolicy, PolicyResolver


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


class TestShippedPolicy:
    def test_rates_are_exact_decimals(self, resolver: PolicyResolver) -> None:
        policy = resolver.commission_policy()
        assert policy.commission_rate == Decimal("0.10")
        assert policy.employee_share == Decimal("0.70")
        assert policy.tax_rate == Decimal("0.03")
        assert policy.withholding_factor == Decimal("0.97")

    def test_headcount_and_vat(self, resolver: PolicyResolver) -> None:
        policy = resolver.commission_policy()
        assert policy.headcount == 3
        assert policy.default_vat_percent == Decimal("7")

    def test_roster_order(self, resolver: PolicyResolver) -> None:
        assert resolver.commission_policy().roster == ("Ting", "Bank", "Tann")

    def test_rounding_half_up(self, resolver: PolicyResolver) -> None:
        assert resolver.commission_policy().rounding == ROUND_HALF_UP

    def test_policy_cached(self, resolver: PolicyResolver) -> None:
        assert resolver.commission_policy() is resolver.commission_policy()

    def test_matches_dataclass_defaults(self, resolver: PolicyResolver) -> None:
        assert resolver.commission_policy() == CommissionPolicy()

    def test_is_rostered(self, resolver: PolicyResolver) -> None:
        policy = resolver.commission_policy()
        assert policy.is_rostered("Bank")
        assert not policy.is_rostered("bank")


class TestLoading:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            PolicyResolver.from_config_dir(tmp_path)

    def test_partial_config_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "commission_policy.json").write_text(
            json.dumps({"commission": {"tax_rate": "0.05"}}), encoding="utf-8",
        )
        policy = PolicyResolver.from_config_dir(tmp_path).commission_policy()
        assert policy.tax_rate == Decimal("0.05")
        assert policy.commission_rate == Decimal("0.10")
        assert policy.roster == ("Ting", "Bank", "Tann")

    def test_numeric_json_values_accepted(self) -> None:
        resolver = PolicyResolver({"commission": {"commission_rate": 0.1, "headcount": 4}})
        policy = resolver.commission_policy()
        assert policy.commission_rate == Decimal("0.1")
        assert policy.headcount == 4

    def test_non_numeric_rate_rejected(self) -> None:
        with pytest.raises(ValueError, match="commission_rate"):
            PolicyResolver({"commission": {"commission_rate": "ten"}}).commission_params()


class TestValidation:
    @pytest.mark.parametrize("changes", [
        {"commission_rate": Decimal("1.5")},
        {"employee_share": Decimal("-0.1")},
        {"tax_rate": Decimal("NaN")},
        {"headcount": 0},
        {"headcount": True},
        {"default_vat_percent": Decimal("-7")},
        {"roster": ()},
        {"roster": ("Ting", "Ting")},
        {"roster": ("Ting", " ")},
        {"rounding": "ROUND_SIDEWAYS"},
    ])
    def test_invalid_policy_rejected(self, changes: dict) -> None:
        with pytest.raises(ValueError):
            dataclasses.replace(CommissionPolicy(), **changes)

    def test_invalid_config_rejected(self) -> None:
        resolver = PolicyResolver({"commission": {"headcount": -1}})
        with pytest.raises(ValueError, match="headcount"):
            resolver.commission_policy()
