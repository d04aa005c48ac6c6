import datetime as dt

import pytest

from advisor.data_model.rates import BenefitRates
from advisor.engine.benefits import (
    age_from_birth_date,
    cpp_adjustment_factor,
    indexation_factor,
    oas_adjustment_factor,
    oas_base_for_age,
)


@pytest.mark.parametrize(
    "start_age, expected",
    [(60, 0.64), (64, 0.928), (65, 1.0), (66, 1.084), (70, 1.42), (75, 1.42), (55, 0.64)],
)
def test_cpp_adjustment_factor(start_age, expected):
    assert cpp_adjustment_factor(start_age) == pytest.approx(expected)


@pytest.mark.parametrize("start_age, expected", [(60, 1.0), (65, 1.0), (67, 1.144), (70, 1.36), (72, 1.36)])
def test_oas_adjustment_factor(start_age, expected):
    assert oas_adjustment_factor(start_age) == pytest.approx(expected)


def test_indexation_factor_compounds():
    assert indexation_factor(2.0, 0) == 1.0
    assert indexation_factor(2.0, 2) == pytest.approx(1.0404)


def test_oas_base_switches_at_75():
    rates = BenefitRates(year=2025)

    assert oas_base_for_age(74, rates) == rates.max_oas_annual
    assert oas_base_for_age(75, rates) == rates.max_oas_annual_75_plus


def test_age_from_birth_date_counts_birthdays():
    assert age_from_birth_date("1960-06-15", as_of=dt.date(2025, 6, 14)) == 64
    assert age_from_birth_date("1960-06-15", as_of=dt.date(2025, 6, 15)) == 65
    assert age_from_birth_date(dt.date(1960, 6, 15), as_of=dt.date(2025, 12, 31)) == 65


def test_age_from_birth_date_rejects_bad_values():
    assert age_from_birth_date(None) is None
    assert age_from_birth_date("not a date") is None
    assert age_from_birth_date("2030-01-01", as_of=dt.date(2025, 1, 1)) is None


def test_benefit_rates_fall_back_to_defaults():
    rates = BenefitRates.from_record({"max_cpp_annual": 0, "max_oas_annual": "8000"}, 2026)

    assert rates.year == 2026
    assert rates.max_cpp_annual == 17478.36
    assert rates.max_oas_annual == 8000
    assert rates.max_oas_annual_75_plus == 8800
    assert rates.oas_clawback_rate == 15.0
