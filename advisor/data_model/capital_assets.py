from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..exceptions import InvalidInputError
from ..formatting import parse_number
from .base import (
    CalculatorSchema,
    FieldDefinition,
    payload_bool,
    payload_float,
    payload_ids,
    payload_int,
    payload_value,
)

ACCOUNT_TYPES = ["registered", "non_registered", "tfsa"]
REDEMPTION_TYPES = ["fixed_amount", "percentage_of_initial", "percentage_of_current"]
TIMING_OPTIONS = ["beginning", "end"]
DEFAULT_RETURN_RATE = 5.0


@dataclass
class Period:
    """Year-offset window; ``end_year`` of 0 leaves it open-ended."""

    start_year: int = 0
    end_year: int = 0

    def covers(self, offset: int) -> bool:
        return offset >= self.start_year and (self.end_year == 0 or offset <= self.end_year)


@dataclass
class ContributionPeriod(Period):
    annual_contribution: float = 0.0
    indexed: bool = False
    index_rate: float | None = None  # percent; None follows the account's inflation rate
    timing: str = "end"


@dataclass
class RedemptionPeriod(Period):
    redemption_type: str = "fixed_amount"
    annual_redemption: float = 0.0
    percentage: float = 0.0
    indexed: bool = False
    index_rate: float | None = None
    timing: str = "end"


@dataclass
class ReturnPeriod(Period):
    return_rate: float = DEFAULT_RETURN_RATE


def _bounds(row: dict) -> dict:
    return {
        "start_year": int(parse_number(row.get("start_year"), 0)),
        "end_year": int(parse_number(row.get("end_year"), 0)),
    }


def _indexed(row: dict) -> bool:
    if "indexed" in row:
        return bool(row.get("indexed"))
    return str(row.get("indexing_rate_type") or "none").lower() != "none"


def _index_rate(row: dict, custom_key: str) -> float | None:
    """Custom indexing carries its own rate; anything else follows inflation."""
    if "index_rate" in row and row.get("index_rate") not in (None, ""):
        return parse_number(row.get("index_rate"), 0.0)
    if str(row.get("indexing_rate_type") or "").lower() == "custom":
        return parse_number(row.get(custom_key), 0.0)
    return None


def _period_rows(payload: dict, *keys: str) -> List[dict]:
    rows = payload_value(payload, *keys, default=[])
    if not isinstance(rows, (list, tuple)):
        raise InvalidInputError(keys[0], "must be a list of periods")
    for row in rows:
        if not isinstance(row, dict):
            raise InvalidInputError(keys[0], "each period must be an object")
    return list(rows)


def _lump_sums(raw: Any) -> Dict[int, Dict[str, float]]:
    if not isinstance(raw, dict):
        raise InvalidInputError("lump_sums", "must map year offsets to amounts")
    lump_sums: Dict[int, Dict[str, float]] = {}
    for key, row in raw.items():
        try:
            offset = int(key)
        except (TypeError, ValueError):
            raise InvalidInputError("lump_sums", f"year offset {key!r} is not a whole number")
        if not isinstance(row, dict):
            raise InvalidInputError(f"lump_sums.{key}", "must be an object")
        lump_sums[offset] = {
            "contribution": parse_number(row.get("contribution"), 0.0),
            "redemption": parse_number(row.get("redemption"), 0.0),
        }
    return lump_sums


def _timing(row: dict, key: str) -> str:
    timing = str(row.get(key) or row.get("timing") or "end").lower()
    return timing if timing in TIMING_OPTIONS else "end"


@dataclass
class CapitalAssetsInputs:
    initial_investment: float = 0.0
    projection_years: int = 30
    start_year: int = field(default_factory=lambda: dt.date.today().year)
    current_age: int = 0
    account_type: str = "non_registered"
    marginal_tax_rate: float = 0.0
    capital_gains_tax_rate: float = 0.0
    defer_tax_on_growth: bool = False
    apply_mer: bool = False
    mer: float = 0.0
    inflation_rate: float = 2.5
    contribution_periods: List[ContributionPeriod] = field(default_factory=list)
    redemption_periods: List[RedemptionPeriod] = field(default_factory=list)
    return_periods: List[ReturnPeriod] = field(default_factory=list)
    lump_sums: Dict[int, Dict[str, float]] = field(default_factory=dict)
    calculator_name: str = "Capital Assets"
    client_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CapitalAssetsInputs":
        account_type = str(payload_value(payload, "account_type", default="non_registered")).lower()
        if account_type not in ACCOUNT_TYPES:
            raise InvalidInputError("account_type", f"must be one of {', '.join(ACCOUNT_TYPES)}")

        contributions = [
            ContributionPeriod(
                **_bounds(row),
                annual_contribution=parse_number(row.get("annual_contribution"), 0.0),
                indexed=_indexed(row),
                index_rate=_index_rate(row, "annual_index_rate"),
                timing=_timing(row, "contribution_timing"),
            )
            for row in _period_rows(payload, "periods", "contribution_periods")
        ]
        redemptions = []
        for row in _period_rows(payload, "redemption_periods"):
            redemption_type = str(row.get("redemption_type") or "fixed_amount")
            if redemption_type not in REDEMPTION_TYPES:
                raise InvalidInputError("redemption_type", f"unknown redemption type {redemption_type!r}")
            redemptions.append(
                RedemptionPeriod(
                    **_bounds(row),
                    redemption_type=redemption_type,
                    annual_redemption=parse_number(row.get("annual_redemption"), 0.0),
                    percentage=parse_number(row.get("percentage_of_initial_rate", row.get("percentage")), 0.0),
                    indexed=_indexed(row),
                    index_rate=_index_rate(row, "custom_indexing_rate"),
                    timing=_timing(row, "redemption_timing"),
                )
            )
        returns = [
            ReturnPeriod(**_bounds(row), return_rate=parse_number(row.get("return_rate"), 0.0))
            for row in _period_rows(payload, "return_periods")
        ]
        lump_sums = _lump_sums(payload_value(payload, "lump_sums", "lumpSums", default={}))

        return cls(
            initial_investment=payload_float(payload, "initial_investment"),
            projection_years=payload_int(payload, "projection_years", default=30),
            start_year=payload_int(payload, "start_calendar_year", "start_year", default=dt.date.today().year),
            current_age=payload_int(payload, "current_age"),
            account_type=account_type,
            marginal_tax_rate=payload_float(payload, "marginal_tax_rate"),
            capital_gains_tax_rate=payload_float(payload, "capital_gains_tax_rate"),
            defer_tax_on_growth=payload_bool(payload, "defer_tax_on_growth"),
            apply_mer=payload_bool(payload, "apply_mer"),
            mer=payload_float(payload, "mer_manual", "mer"),
            inflation_rate=payload_float(payload, "inflation_rate", default=2.5),
            contribution_periods=contributions,
            redemption_periods=redemptions,
            return_periods=returns,
            lump_sums=lump_sums,
            calculator_name=str(payload_value(payload, "calculator_name", default="Capital Assets")),
            client_ids=payload_ids(payload, "client_ids", "client_id"),
        )


class CapitalAssetsSchema(CalculatorSchema):
    def __init__(self) -> None:
        fields = [
            FieldDefinition("calculator_name", "Calculator Name", kind="text", default="Capital Assets"),
            FieldDefinition("account_type", "Account Type", kind="select", default="non_registered",
                            options=ACCOUNT_TYPES),
            FieldDefinition("initial_investment", "Initial Investment", kind="currency", default=0.0, min_value=0),
            FieldDefinition("projection_years", "Projection Years", default=30, min_value=1, step=1),
            FieldDefinition("current_age", "Current Age", default=0, step=1),
            FieldDefinition("marginal_tax_rate", "Marginal Tax Rate", kind="percentage", default=0.0),
            FieldDefinition("capital_gains_tax_rate", "Capital Gains Tax Rate", kind="percentage", default=0.0),
            FieldDefinition("defer_tax_on_growth", "Defer Tax on Growth", kind="checkbox", default=False),
            FieldDefinition("apply_mer", "Apply MER", kind="checkbox", default=False),
            FieldDefinition("mer", "MER", kind="percentage", default=0.0, step=0.01),
            FieldDefinition("inflation_rate", "Indexing Rate", kind="percentage", default=2.5),
        ]
        super().__init__("capital_assets", "Capital Assets Calculator", fields)
