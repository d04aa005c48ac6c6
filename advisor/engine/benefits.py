"""CPP/OAS start-age adjustments and indexing formulas."""
from __future__ import annotations

import datetime as dt

from ..data_model.rates import BenefitRates

STANDARD_START_AGE = 65
CPP_EARLIEST_AGE = 60
CPP_LATEST_AGE = 70
CPP_EARLY_REDUCTION_PER_MONTH = 0.006
CPP_DEFERRAL_INCREASE_PER_MONTH = 0.007
OAS_DEFERRAL_INCREASE_PER_MONTH = 0.006
OAS_MAX_DEFERRAL_INCREASE = 0.36
OAS_HIGHER_MAXIMUM_AGE = 75


def cpp_adjustment_factor(start_age: float) -> float:
    """0.6%/month reduction before 65, 0.7%/month increase after.

    The start age is clamped to 60-70, so the factor holds at 0.64 below 60
    and 1.42 above 70.
    """
    start = min(max(start_age, CPP_EARLIEST_AGE), CPP_LATEST_AGE)
    months = (start - STANDARD_START_AGE) * 12
    if months < 0:
        return 1.0 + months * CPP_EARLY_REDUCTION_PER_MONTH
    return 1.0 + months * CPP_DEFERRAL_INCREASE_PER_MONTH


def oas_adjustment_factor(start_age: float) -> float:
    # OAS can only be deferred, never taken early.
    months = max(0.0, (start_age - STANDARD_START_AGE) * 12)
    return 1.0 + min(months * OAS_DEFERRAL_INCREASE_PER_MONTH, OAS_MAX_DEFERRAL_INCREASE)


def indexation_factor(rate_pct: float, years: float) -> float:
    return (1.0 + rate_pct / 100.0) ** years


def cpp_annual_amount(max_cpp: float, start_age: float, percent_of_max: float) -> float:
    return max_cpp * (percent_of_max / 100.0) * cpp_adjustment_factor(start_age)


def oas_annual_amount(max_oas: float, start_age: float, percent_of_max: float) -> float:
    return max_oas * (percent_of_max / 100.0) * oas_adjustment_factor(start_age)


def oas_base_for_age(age: float, rates: BenefitRates) -> float:
    if age >= OAS_HIGHER_MAXIMUM_AGE:
        return rates.max_oas_annual_75_plus
    return rates.max_oas_annual


def age_from_birth_date(birth_date: dt.date | str | None, as_of: dt.date | None = None) -> int | None:
    if birth_date is None or birth_date == "":
        return None
    if isinstance(birth_date, str):
        try:
            birth_date = dt.date.fromisoformat(birth_date[:10])
        except ValueError:
            return None
    as_of = as_of or dt.date.today()
    years = as_of.year - birth_date.year
    if (as_of.month, as_of.day) < (birth_date.month, birth_date.day):
        years -= 1
    if years < 0 or years > 120:
        return None
    return years
