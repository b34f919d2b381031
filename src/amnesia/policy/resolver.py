"""Policy resolver — loads commission policy from the config directory.

Business rules (rates, withholding, headcount divisor, default VAT,
roster) live in config/commission_policy.json, never in code. The
resolver reads that file once and hands out a validated, immutable
CommissionPolicy that is injected into the engine and the service.

Decimal parameters are stored as JSON strings so "0.10" stays exact.
"""

from __future__ import annotations

import decimal
import json
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Tuple


POLICY_FILENAME = "commission_policy.json"

_ROUNDING_MODES = frozenset({
    decimal.ROUND_HALF_UP,
    decimal.ROUND_HALF_EVEN,
    decimal.ROUND_HALF_DOWN,
    decimal.ROUND_UP,
    decimal.ROUND_DOWN,
    decimal.ROUND_CEILING,
    decimal.ROUND_FLOOR,
    decimal.ROUND_05UP,
})


@dataclass(frozen=True)
class CommissionPolicy:
    """Business policy for commission computation.

    commission_rate × employee_share is the pool paid to staff; the pool
    is split by headcount (a fixed divisor, independent of how many
    entries a month holds) and tax_rate is withheld from both the shared
    commission and overtime.
    """
    commission_rate: Decimal = Decimal("0.10")
    employee_share: Decimal = Decimal("0.70")
    tax_rate: Decimal = Decimal("0.03")
    headcount: int = 3
    default_vat_percent: Decimal = Decimal("7")
    roster: Tuple[str, ...] = ("Ting", "Bank", "Tann")
    rounding: str = decimal.ROUND_HALF_UP

    def __post_init__(self) -> None:
        for name in ("commission_rate", "employee_share", "tax_rate"):
            value = getattr(self, name)
            if not isinstance(value, Decimal) or not value.is_finite():
                raise ValueError(f"{name} must be a finite Decimal, got {value!r}")
            if not (Decimal("0") <= value <= Decimal("1")):
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if isinstance(self.headcount, bool) or not isinstance(self.headcount, int):
            raise ValueError(f"headcount must be an int, got {self.headcount!r}")
        if self.headcount < 1:
            raise ValueError(f"headcount must be >= 1, got {self.headcount}")
        if (
            not isinstance(self.default_vat_percent, Decimal)
            or not self.default_vat_percent.is_finite()
            or self.default_vat_percent < 0
        ):
            raise ValueError(
                f"default_vat_percent must be a non-negative Decimal, "
                f"got {self.default_vat_percent!r}"
            )
        if not self.roster:
            raise ValueError("roster must name at least one employee")
        if any(not isinstance(n, str) or not n.strip() for n in self.roster):
            raise ValueError("roster names must be non-blank strings")
        if len(set(self.roster)) != len(self.roster):
            raise ValueError(f"roster names must be unique: {list(self.roster)}")
        if self.rounding not in _ROUNDING_MODES:
            raise ValueError(f"Unknown rounding mode: {self.rounding}")

    @property
    def withholding_factor(self) -> Decimal:
        """Share of a gross amount paid out after withholding."""
        return Decimal("1") - self.tax_rate

    def is_rostered(self, employee_name: str) -> bool:
        return employee_name in self.roster


class PolicyResolver:
    """Resolves commission policy from loaded config parameters.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        policy = resolver.commission_policy()
    """

    def __init__(self, params: dict[str, Any]) -> None:
        self._params = params
        self._policy: Optional[CommissionPolicy] = None

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        """Load policy parameters from a config directory."""
        path = Path(config_dir) / POLICY_FILENAME
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            params = json.load(handle)
        return cls(params)

    def commission_params(self) -> dict[str, Any]:
        """Return the raw commission parameters, Decimal-converted."""
        raw = self._params.get("commission", {})
        params: dict[str, Any] = {}
        for key in ("commission_rate", "employee_share", "tax_rate", "default_vat_percent"):
            if key in raw:
                params[key] = _to_decimal(raw[key], key)
        if "headcount" in raw:
            params["headcount"] = raw["headcount"]
        if "rounding" in raw:
            params["rounding"] = raw["rounding"]
        return params

    def roster(self) -> Tuple[str, ...]:
        return tuple(self._params.get("roster", CommissionPolicy.roster))

    def commission_policy(self) -> CommissionPolicy:
        """Build (once) the validated CommissionPolicy.

        Raises ValueError if the configured policy violates its bounds.
        """
        if self._policy is None:
            self._policy = CommissionPolicy(
                roster=self.roster(),
                **self.commission_params(),
            )
        return self._policy


def _to_decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be numeric, got {value!r}")
    try:
        return Decimal(str(value))
    except decimal.InvalidOperation as e:
        raise ValueError(f"{name} must be numeric, got {value!r}") from e
