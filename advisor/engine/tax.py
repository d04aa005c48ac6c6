"""Progressive tax helpers over a combined federal + provincial bracket table.

Bracket rates are percentages (20.05 means 20.05%). Tables may arrive in any
order; every lookup works on a copy sorted by ``min_income``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from ..data_model.rates import TaxBracket


@dataclass(frozen=True)
class BracketPosition:
    current_rate: float
    next_threshold: float
    next_rate: float
    income_to_next: float
    previous_threshold: float
    previous_rate: float
    deduction_to_previous: float


def sort_brackets(brackets: Iterable[TaxBracket]) -> List[TaxBracket]:
    return sorted(brackets, key=lambda b: b.min_income or 0.0)


def calculate_total_tax(income: float, brackets: Iterable[TaxBracket]) -> float:
    tax = 0.0
    for bracket in sort_brackets(brackets):
        lower = bracket.min_income or 0.0
        if income <= lower:
            continue
        taxable_in_band = min(income, bracket.upper) - lower
        if taxable_in_band > 0:
            tax += taxable_in_band * bracket.rate / 100.0
    return tax


def _band_index(income: float, ordered: List[TaxBracket]) -> int | None:
    for index, bracket in enumerate(ordered):
        if (bracket.min_income or 0.0) <= income < bracket.upper:
            return index
    if ordered and income >= (ordered[-1].min_income or 0.0):
        return len(ordered) - 1
    return None


def marginal_tax_rate(income: float, brackets: Iterable[TaxBracket]) -> float:
    ordered = sort_brackets(brackets)
    index = _band_index(income, ordered)
    return ordered[index].rate if index is not None else 0.0


def average_tax_rate(total_tax: float, income: float) -> float:
    if income <= 0:
        return 0.0
    return total_tax / income * 100.0


def oas_clawback(net_income: float, oas_amount: float, threshold: float, rate: float) -> float:
    """OAS recovery tax: ``rate`` percent of income above ``threshold``, capped at the OAS received."""
    if net_income <= threshold or oas_amount <= 0:
        return 0.0
    return min((net_income - threshold) * rate / 100.0, oas_amount)


def bracket_position(income: float, brackets: Iterable[TaxBracket]) -> BracketPosition:
    ordered = sort_brackets(brackets)
    current_rate = marginal_tax_rate(income, ordered)

    next_threshold = income
    next_rate = current_rate
    income_to_next = 0.0
    for bracket in ordered:
        if bracket.min_income > income:
            next_threshold = bracket.min_income
            next_rate = bracket.rate
            income_to_next = bracket.min_income - income
            break

    previous_threshold = 0.0
    previous_rate = 0.0
    deduction_to_previous = 0.0
    index = _band_index(income, ordered)
    if index is not None:
        if index > 0:
            prior = ordered[index - 1]
            previous_threshold = prior.max_income or 0.0
            previous_rate = prior.rate
        else:
            previous_rate = ordered[0].rate
        deduction_to_previous = max(0.0, income - previous_threshold)

    return BracketPosition(
        current_rate=current_rate,
        next_threshold=next_threshold,
        next_rate=next_rate,
        income_to_next=income_to_next,
        previous_threshold=previous_threshold,
        previous_rate=previous_rate,
        deduction_to_previous=deduction_to_previous,
    )
