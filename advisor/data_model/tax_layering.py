from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..exceptions import InvalidInputError
from ..formatting import parse_number
from .base import (
    CalculatorSchema,
    FieldDefinition,
    payload_float,
    payload_ids,
    payload_int,
    payload_optional_float,
    payload_value,
)

FIXED_FIELDS = ("cpp", "oas", "bridge", "pension", "other_income")
WITHDRAWAL_FIELDS = ("registered_withdrawal", "nonregistered_withdrawal", "tfsa_withdrawal")
OVERRIDE_FIELDS = FIXED_FIELDS + WITHDRAWAL_FIELDS
ACCOUNT_TYPES = ("registered", "nonregistered", "tfsa")

DEFAULT_CAPITAL_GAINS_INCLUSION_RATE = 0.5


def _year_keyed(raw: Any) -> Dict[int, Any]:
    if not isinstance(raw, dict):
        return {}
    out: Dict[int, Any] = {}
    for key, value in raw.items():
        try:
            out[int(key)] = value
        except (TypeError, ValueError):
            continue
    return out


def parse_overrides(raw: Any) -> Dict[int, Dict[str, float]]:
    """Year -> {field: amount}. Blank cells are dropped, negatives rejected."""
    overrides: Dict[int, Dict[str, float]] = {}
    for year, fields in _year_keyed(raw).items():
        if not isinstance(fields, dict):
            continue
        clean: Dict[str, float] = {}
        for name, value in fields.items():
            if name not in OVERRIDE_FIELDS or value is None or value == "":
                continue
            amount = parse_number(value, float("nan"))
            if amount != amount:
                continue
            if amount < 0:
                raise InvalidInputError(f"overrides.{year}.{name}", "must not be negative")
            clean[name] = amount
        if clean:
            overrides[year] = clean
    return overrides


def parse_target_incomes(raw: Any) -> Dict[int, float]:
    targets: Dict[int, float] = {}
    for year, value in _year_keyed(raw).items():
        amount = parse_number(value, float("nan"))
        if amount == amount and amount >= 0 and value not in (None, ""):
            targets[year] = amount
    return targets


@dataclass
class TaxLayeringInputs:
    projection_years: int = 40
    start_year: int = field(default_factory=lambda: dt.date.today().year)
    base_age: float = 40
    birth_date: str | None = None
    associated_age: float | None = None
    associated_birth_date: str | None = None
    province: str = "ON"
    base_target_income: float = 100000.0
    target_income_inflation_rate: float = 2.0
    target_incomes: Dict[int, float] = field(default_factory=dict)
    overrides: Dict[int, Dict[str, float]] = field(default_factory=dict)
    capital_gains_inclusion_rate: float = DEFAULT_CAPITAL_GAINS_INCLUSION_RATE
    linked_fixed_income_calc_ids: List[str] = field(default_factory=list)
    linked_capital_assets_calc_ids: List[str] = field(default_factory=list)
    calculator_name: str = "Tax Layering Analysis"
    client_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], default_province: str = "ON") -> "TaxLayeringInputs":
        inclusion = payload_float(payload, "capital_gains_inclusion_rate", default=DEFAULT_CAPITAL_GAINS_INCLUSION_RATE)
        if inclusion > 1:
            inclusion /= 100.0
        return cls(
            projection_years=payload_int(payload, "projection_years", "time_horizon", default=40),
            start_year=payload_int(payload, "start_year", default=dt.date.today().year),
            base_age=payload_float(payload, "base_age", default=40),
            birth_date=payload_value(payload, "date_of_birth", "birth_date"),
            associated_age=payload_optional_float(payload, "associated_age"),
            associated_birth_date=payload_value(payload, "associated_date_of_birth", "associated_birth_date"),
            province=str(payload_value(payload, "province", default=default_province)).upper(),
            base_target_income=payload_float(payload, "base_target_income", default=100000.0),
            target_income_inflation_rate=payload_float(payload, "target_income_inflation_rate", default=2.0),
            target_incomes=parse_target_incomes(payload_value(payload, "target_incomes", "targetIncomes", default={})),
            overrides=parse_overrides(payload_value(payload, "manual_overrides", "overrides", "manualOverrides", default={})),
            capital_gains_inclusion_rate=inclusion,
            linked_fixed_income_calc_ids=payload_ids(payload, "linked_fixed_income_calc_ids", "linked_fixed_income_calc_id"),
            linked_capital_assets_calc_ids=payload_ids(
                payload, "linked_capital_assets_calc_ids", "linked_capital_assets_calc_id"
            ),
            calculator_name=str(payload_value(payload, "calculator_name", default="Tax Layering Analysis")),
            client_ids=payload_ids(payload, "client_ids", "client_id"),
        )


@dataclass
class LinkedIncome:
    """Per-year amounts pulled in from linked fixed income and capital asset calculators."""

    fixed_income: Dict[int, Dict[str, float]] = field(default_factory=dict)
    balances: Dict[int, Dict[str, float]] = field(default_factory=dict)
    redemptions: Dict[int, Dict[str, float]] = field(default_factory=dict)

    def fixed(self, year: int, name: str) -> float:
        return self.fixed_income.get(year, {}).get(name, 0.0)

    def balance(self, year: int, account: str) -> float:
        return self.balances.get(year, {}).get(account, 0.0)

    def redemption(self, year: int, account: str) -> float:
        return self.redemptions.get(year, {}).get(account, 0.0)


class TaxLayeringSchema(CalculatorSchema):
    def __init__(self, default_province: str = "ON") -> None:
        fields = [
            FieldDefinition("calculator_name", "Calculator Name", kind="text", default="Tax Layering Analysis"),
            FieldDefinition("province", "Province", kind="select", default=default_province, options=["ON"]),
            FieldDefinition("projection_years", "Projection Years", default=40, min_value=1, step=1),
            FieldDefinition("base_age", "Age (if no date of birth)", default=40, min_value=0, step=1),
            FieldDefinition("base_target_income", "Target Income (today)", kind="currency", default=100000.0),
            FieldDefinition("target_income_inflation_rate", "Target Income Inflation", kind="percentage", default=2.0),
            FieldDefinition(
                "capital_gains_inclusion_rate",
                "Capital Gains Inclusion",
                kind="percentage",
                default=50.0,
                help="Share of non-registered withdrawals that is taxable",
            ),
        ]
        super().__init__("tax_layering", "Tax Layering Calculator", fields)
