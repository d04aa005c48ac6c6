"""Tax layering: stack fixed income and account withdrawals against the bracket table.

Each year resolves its income sources (manual overrides win over linked
calculators), computes progressive tax plus OAS clawback, and reports where
taxable income sits relative to the neighbouring brackets.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Sequence

from ..data_model.rates import BenefitRates, TaxBracket
from ..data_model.tax_layering import LinkedIncome, TaxLayeringInputs
from ..exceptions import InvalidInputError, RateTableNotFoundError
from ..formatting import round_cents, round_half_up
from .benefits import age_from_birth_date, indexation_factor
from .tax import average_tax_rate, bracket_position, calculate_total_tax, oas_clawback

logger = logging.getLogger(__name__)


@dataclass
class TaxLayeringRow:
    year: int
    age: float
    associated_age: float | None
    cpp: float
    oas: float
    bridge: float
    pension: float
    other_income: float
    total_fixed_income: float
    mtr_fixed: float
    next_mtr_threshold: float
    marginal_income_required: float
    next_mtr: float
    previous_mtr_threshold: float
    marginal_deduction_required: float
    previous_mtr: float
    registered_withdrawal: float
    nonregistered_withdrawal: float
    tfsa_withdrawal: float
    total_variable_income: float
    total_income: float
    taxable_income: float
    regular_tax: float
    oas_clawback_tax: float
    total_tax: float
    after_tax_income: float
    average_tax_rate: float
    cumulative_income: float
    cumulative_tax: float
    allowable_income_before_clawback: float
    available_registered: float
    available_nonregistered: float
    available_tfsa: float
    target_income: int
    percentage_of_target: float
    shortfall_surplus: float

    def to_payload(self) -> dict:
        return asdict(self)


def populate_target_incomes(base_income: float, inflation_rate: float, years: int, start_year: int) -> Dict[int, int]:
    if base_income <= 0 or years <= 0:
        raise InvalidInputError("base_target_income", "enter a valid base target income and projection years")
    return {
        start_year + i: round_half_up(base_income * indexation_factor(inflation_rate, i))
        for i in range(years)
    }


def _ages(inputs: TaxLayeringInputs) -> tuple[float, float | None]:
    base_age = age_from_birth_date(inputs.birth_date)
    if base_age is None:
        base_age = inputs.base_age or 40
    associated = age_from_birth_date(inputs.associated_birth_date)
    if associated is None:
        associated = inputs.associated_age
    return base_age, associated


def project_tax_layering(
    inputs: TaxLayeringInputs,
    brackets: Sequence[TaxBracket],
    rates: BenefitRates,
    linked: LinkedIncome | None = None,
) -> List[TaxLayeringRow]:
    if not brackets:
        raise RateTableNotFoundError(f"No tax brackets available for {inputs.province}.")
    if inputs.projection_years <= 0:
        return []

    linked = linked or LinkedIncome()
    base_age, associated_base = _ages(inputs)
    threshold = rates.oas_clawback_threshold
    logger.debug(
        "Projecting tax layering for %s years from %s (age %s)",
        inputs.projection_years,
        inputs.start_year,
        base_age,
    )

    rows: List[TaxLayeringRow] = []
    cumulative_income = 0.0
    cumulative_tax = 0.0
    for i in range(inputs.projection_years):
        year = inputs.start_year + i
        manual = inputs.overrides.get(year, {})

        def resolve(name: str, linked_value: float) -> float:
            value = manual.get(name)
            return linked_value if value is None else value

        cpp = resolve("cpp", linked.fixed(year, "cpp"))
        oas = resolve("oas", linked.fixed(year, "oas"))
        bridge = resolve("bridge", linked.fixed(year, "bridge"))
        pension = resolve("pension", linked.fixed(year, "pension"))
        other_income = resolve("other_income", linked.fixed(year, "other_income"))
        total_fixed = cpp + oas + bridge + pension + other_income

        registered = resolve("registered_withdrawal", linked.redemption(year, "registered"))
        nonregistered = resolve("nonregistered_withdrawal", linked.redemption(year, "nonregistered"))
        tfsa = resolve("tfsa_withdrawal", linked.redemption(year, "tfsa"))
        total_variable = registered + nonregistered + tfsa

        total_income = total_fixed + total_variable
        taxable_income = total_fixed + registered + nonregistered * inputs.capital_gains_inclusion_rate

        regular_tax = calculate_total_tax(taxable_income, brackets)
        clawback = oas_clawback(taxable_income, oas, threshold, rates.oas_clawback_rate)
        total_tax = regular_tax + clawback
        cumulative_income += total_income
        cumulative_tax += total_tax

        position = bracket_position(taxable_income, brackets)

        target = inputs.target_incomes.get(year)
        if target is None:
            target = inputs.base_target_income * indexation_factor(inputs.target_income_inflation_rate, i)
        target = round_half_up(target)

        rows.append(
            TaxLayeringRow(
                year=year,
                age=base_age + i,
                associated_age=associated_base + i if associated_base is not None else None,
                cpp=round_cents(cpp),
                oas=round_cents(oas),
                bridge=round_cents(bridge),
                pension=round_cents(pension),
                other_income=round_cents(other_income),
                total_fixed_income=round_cents(total_fixed),
                mtr_fixed=position.current_rate,
                next_mtr_threshold=round_cents(position.next_threshold),
                marginal_income_required=round_cents(position.income_to_next),
                next_mtr=position.next_rate,
                previous_mtr_threshold=round_cents(position.previous_threshold),
                marginal_deduction_required=round_cents(position.deduction_to_previous),
                previous_mtr=position.previous_rate,
                registered_withdrawal=round_cents(registered),
                nonregistered_withdrawal=round_cents(nonregistered),
                tfsa_withdrawal=round_cents(tfsa),
                total_variable_income=round_cents(total_variable),
                total_income=round_cents(total_income),
                taxable_income=round_cents(taxable_income),
                regular_tax=round_cents(regular_tax),
                oas_clawback_tax=round_cents(clawback),
                total_tax=round_cents(total_tax),
                after_tax_income=round_cents(total_income - total_tax),
                average_tax_rate=round(average_tax_rate(total_tax, total_income), 4),
                cumulative_income=round_cents(cumulative_income),
                cumulative_tax=round_cents(cumulative_tax),
                allowable_income_before_clawback=round_cents(taxable_income - threshold),
                available_registered=round_cents(linked.balance(year, "registered")),
                available_nonregistered=round_cents(linked.balance(year, "nonregistered")),
                available_tfsa=round_cents(linked.balance(year, "tfsa")),
                target_income=target,
                percentage_of_target=round(total_income / target * 100.0, 4) if target > 0 else 0.0,
                shortfall_surplus=round_cents(total_income - target),
            )
        )
    return rows


@dataclass
class TaxLayeringSummary:
    total_lifetime_gross_income: float = 0.0
    total_lifetime_tax_paid: float = 0.0
    overall_effective_tax_rate: float = 0.0
    total_lifetime_oas_clawback: float = 0.0

    def to_payload(self) -> dict:
        return asdict(self)


def summarize_tax_layering(rows: Sequence[TaxLayeringRow]) -> TaxLayeringSummary:
    gross = sum(row.total_income for row in rows)
    tax = sum(row.total_tax for row in rows)
    return TaxLayeringSummary(
        total_lifetime_gross_income=round_cents(gross),
        total_lifetime_tax_paid=round_cents(tax),
        overall_effective_tax_rate=round(average_tax_rate(tax, gross), 4),
        total_lifetime_oas_clawback=round_cents(sum(row.oas_clawback_tax for row in rows)),
    )
