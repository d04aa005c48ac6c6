"""Year-by-year fixed income projection: CPP, OAS, bridge, pension and other streams."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List

from ..data_model.fixed_income import FixedIncomeInputs, IncomeSource
from ..data_model.rates import BenefitRates
from ..exceptions import InvalidInputError
from ..formatting import round_half_up
from .benefits import (
    age_from_birth_date,
    cpp_adjustment_factor,
    indexation_factor,
    oas_adjustment_factor,
    oas_base_for_age,
)

logger = logging.getLogger(__name__)

DEFAULT_STARTING_AGE = 50


@dataclass
class FixedIncomeRow:
    year: int
    age: int
    cpp: int
    oas: int
    bridge: int
    pension: int
    other1: int
    other2: int
    total_income: int
    tax_estimate: int
    after_tax_income: int
    inflation_adjusted_income: int
    cumulative_income: int = 0


@dataclass
class FixedIncomeSummary:
    total_years: int
    total_lifetime_income: int
    average_annual_income: int
    peak_annual_income: int
    total_taxes_paid: int
    total_after_tax_income: int
    cpp_lifetime_total: int
    oas_lifetime_total: int


@dataclass
class FixedIncomeProjection:
    rows: List[FixedIncomeRow] = field(default_factory=list)
    summary: FixedIncomeSummary | None = None

    def to_payload(self) -> dict:
        return {
            "projection": [asdict(row) for row in self.rows],
            "summary": asdict(self.summary) if self.summary else None,
        }


def resolve_starting_age(inputs: FixedIncomeInputs) -> int:
    if inputs.current_age is not None and inputs.current_age > 0:
        return int(inputs.current_age)
    derived = age_from_birth_date(inputs.birth_date)
    if derived:
        logger.debug("Derived starting age %s from date of birth", derived)
        return derived
    return DEFAULT_STARTING_AGE


def _stream_amount(source: IncomeSource, age: int, offset: int) -> float:
    if not source.is_active(age):
        return 0.0
    return source.amount * indexation_factor(source.index_rate, offset)


def _money(value: float) -> int:
    return max(0, round_half_up(value))


def project_fixed_income(inputs: FixedIncomeInputs, rates: BenefitRates) -> FixedIncomeProjection:
    if inputs.life_expectancy <= 0:
        raise InvalidInputError("life_expectancy", "must be greater than zero")
    start_age = resolve_starting_age(inputs)
    life_expectancy = int(inputs.life_expectancy)
    if start_age >= life_expectancy:
        raise InvalidInputError("current_age", "must be less than life expectancy")

    logger.debug("Projecting fixed income from age %s to %s", start_age, life_expectancy)

    cpp_factor = cpp_adjustment_factor(inputs.cpp_start_age)
    oas_factor = oas_adjustment_factor(inputs.oas_start_age)
    tax_rate = inputs.marginal_tax_rate / 100.0

    rows: List[FixedIncomeRow] = []
    cumulative = 0
    for age in range(start_age, life_expectancy + 1):
        offset = age - start_age
        inflation = indexation_factor(inputs.inflation_rate, offset)

        cpp = 0.0
        if age >= inputs.cpp_start_age:
            cpp = rates.max_cpp_annual * cpp_factor * (inputs.cpp_factor / 100.0) * inflation
        oas = 0.0
        if age >= inputs.oas_start_age:
            oas = oas_base_for_age(age, rates) * oas_factor * (inputs.oas_factor / 100.0) * inflation

        bridge = _stream_amount(inputs.bridge, age, offset)
        pension = _stream_amount(inputs.pension, age, offset)
        other1 = _stream_amount(inputs.other1, age, offset)
        other2 = _stream_amount(inputs.other2, age, offset)

        total = cpp + oas + bridge + pension + other1 + other2
        tax = total * tax_rate
        after_tax = total - tax
        total_rounded = _money(total)
        cumulative += total_rounded

        rows.append(
            FixedIncomeRow(
                year=inputs.start_year + offset,
                age=age,
                cpp=_money(cpp),
                oas=_money(oas),
                bridge=_money(bridge),
                pension=_money(pension),
                other1=_money(other1),
                other2=_money(other2),
                total_income=total_rounded,
                tax_estimate=_money(tax),
                after_tax_income=_money(after_tax),
                inflation_adjusted_income=_money(after_tax / inflation),
                cumulative_income=cumulative,
            )
        )

    return FixedIncomeProjection(rows=rows, summary=summarize(rows, tax_rate))


def summarize(rows: List[FixedIncomeRow], tax_rate: float) -> FixedIncomeSummary:
    total_years = len(rows)
    lifetime = sum(row.total_income for row in rows)
    taxes = sum(row.total_income * tax_rate for row in rows)
    return FixedIncomeSummary(
        total_years=total_years,
        total_lifetime_income=lifetime,
        average_annual_income=round_half_up(lifetime / total_years) if total_years else 0,
        peak_annual_income=max((row.total_income for row in rows), default=0),
        total_taxes_paid=round_half_up(taxes),
        total_after_tax_income=round_half_up(lifetime - taxes),
        cpp_lifetime_total=sum(row.cpp for row in rows),
        oas_lifetime_total=sum(row.oas for row in rows),
    )


def income_stream(projection: FixedIncomeProjection) -> Dict[int, int]:
    """Total income keyed by calendar year, for the combined income view."""
    return {row.year: row.total_income for row in projection.rows}
