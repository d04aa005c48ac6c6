"""Deterministic projection of a single investment account.

Year 0 holds the initial investment plus any lump sums; periodic
contributions and redemptions start from year 1 and follow the first period
covering each year offset.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Sequence, TypeVar

from ..data_model.capital_assets import (
    DEFAULT_RETURN_RATE,
    CapitalAssetsInputs,
    ContributionPeriod,
    Period,
    RedemptionPeriod,
)
from .benefits import indexation_factor

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Period)


@dataclass
class CapitalAssetsRow:
    year: int
    age: int
    beginning_balance: float
    periodic_contribution: float
    lump_sum_contribution: float
    tax_savings: float
    periodic_redemption: float
    lump_sum_redemption: float
    rate_of_return: float
    growth: float
    tax_on_growth: float
    projected_balance: float
    average_balance: float
    mer: float
    estimated_fees: float
    ending_balance: float


@dataclass
class CapitalAssetsSummary:
    final_balance: float = 0.0
    total_contributions: float = 0.0
    total_redemptions: float = 0.0
    total_growth: float = 0.0
    total_fees: float = 0.0
    total_tax_savings: float = 0.0
    total_tax_on_growth: float = 0.0


@dataclass
class CapitalAssetsProjection:
    account_type: str
    rows: List[CapitalAssetsRow] = field(default_factory=list)
    summary: CapitalAssetsSummary = field(default_factory=CapitalAssetsSummary)

    def redemptions_by_year(self) -> Dict[int, float]:
        return {row.year: row.periodic_redemption for row in self.rows}

    def to_payload(self) -> dict:
        return {
            "account_type": self.account_type,
            "projection": [asdict(row) for row in self.rows],
            "summary": asdict(self.summary),
        }


def _first_covering(periods: Sequence[P], offset: int) -> P | None:
    for period in periods:
        if period.covers(offset):
            return period
    return None


def _indexed_amount(amount: float, period: ContributionPeriod | RedemptionPeriod, offset: int, rate: float) -> float:
    if period.indexed and offset > period.start_year:
        if period.index_rate is not None:
            rate = period.index_rate
        return amount * indexation_factor(rate, offset - period.start_year)
    return amount


def rate_of_return(inputs: CapitalAssetsInputs, offset: int) -> float:
    period = _first_covering(inputs.return_periods, offset)
    rate = period.return_rate if period is not None else DEFAULT_RETURN_RATE
    return rate / 100.0


def _requested_redemption(period: RedemptionPeriod, inputs: CapitalAssetsInputs, offset: int, beginning: float) -> float:
    if period.redemption_type == "percentage_of_initial":
        return inputs.initial_investment * period.percentage / 100.0
    if period.redemption_type == "percentage_of_current":
        return beginning * period.percentage / 100.0
    return _indexed_amount(period.annual_redemption, period, offset, inputs.inflation_rate)


def project_capital_assets(inputs: CapitalAssetsInputs) -> CapitalAssetsProjection:
    logger.debug(
        "Projecting %s account over %s years from %s",
        inputs.account_type,
        inputs.projection_years,
        inputs.start_year,
    )
    marginal = inputs.marginal_tax_rate / 100.0
    capital_gains = inputs.capital_gains_tax_rate / 100.0
    mer = inputs.mer if inputs.apply_mer else 0.0

    projection = CapitalAssetsProjection(account_type=inputs.account_type)
    summary = projection.summary
    ending = inputs.initial_investment
    for offset in range(max(inputs.projection_years, 0) + 1):
        beginning = inputs.initial_investment if offset == 0 else ending
        lump = inputs.lump_sums.get(offset, {})
        lump_in = lump.get("contribution", 0.0)
        lump_out = lump.get("redemption", 0.0)

        contribution_period = _first_covering(inputs.contribution_periods, offset) if offset > 0 else None
        redemption_period = _first_covering(inputs.redemption_periods, offset) if offset > 0 else None

        contribution = 0.0
        if contribution_period is not None:
            contribution = _indexed_amount(
                contribution_period.annual_contribution, contribution_period, offset, inputs.inflation_rate
            )
        requested = 0.0
        if redemption_period is not None:
            requested = _requested_redemption(redemption_period, inputs, offset, beginning)

        lump_out = min(lump_out, max(beginning + lump_in, 0.0))
        balance = beginning + lump_in - lump_out
        redeemed = 0.0
        if contribution_period is not None and contribution_period.timing == "beginning":
            balance += contribution
        if redemption_period is not None and redemption_period.timing == "beginning":
            redeemed = min(max(balance, 0.0), requested)
            balance -= redeemed

        ror = rate_of_return(inputs, offset)
        growth = balance * ror
        balance += growth

        if contribution_period is not None and contribution_period.timing == "end":
            balance += contribution
        if redemption_period is not None and redemption_period.timing == "end":
            redeemed = min(max(balance, 0.0), requested)
            balance -= redeemed

        tax_savings = 0.0
        tax_on_growth = 0.0
        if inputs.account_type == "registered":
            tax_savings = (contribution + lump_in) * marginal
            tax_on_growth = (redeemed + lump_out) * marginal
        elif inputs.account_type == "non_registered" and growth > 0:
            if not inputs.defer_tax_on_growth:
                tax_on_growth = growth * capital_gains
                balance -= tax_on_growth

        average = (beginning + balance) / 2.0
        fees = average * mer / 100.0
        ending = max(0.0, balance - fees)

        projection.rows.append(
            CapitalAssetsRow(
                year=inputs.start_year + offset,
                age=inputs.current_age + offset,
                beginning_balance=beginning,
                periodic_contribution=contribution,
                lump_sum_contribution=lump_in,
                tax_savings=tax_savings,
                periodic_redemption=redeemed,
                lump_sum_redemption=lump_out,
                rate_of_return=ror,
                growth=growth,
                tax_on_growth=tax_on_growth,
                projected_balance=balance,
                average_balance=average,
                mer=mer,
                estimated_fees=fees,
                ending_balance=ending,
            )
        )
        summary.total_contributions += contribution + lump_in
        summary.total_redemptions += redeemed + lump_out
        summary.total_growth += growth
        summary.total_fees += fees
        summary.total_tax_savings += tax_savings
        summary.total_tax_on_growth += tax_on_growth

    summary.final_balance = ending
    return projection
