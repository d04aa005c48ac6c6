import pytest

from advisor.data_model import BreakevenInputs, ClaimingScenario
from advisor.data_model.rates import BenefitRates
from advisor.engine.breakeven import compute_breakeven
from advisor.exceptions import InvalidInputError


def _inputs(**overrides) -> BreakevenInputs:
    values = dict(
        current_age=60,
        life_expectancy=85,
        cpp_maximum_annual=10000,
        oas_maximum_annual=8000,
        annual_discount_rate=0,
        include_inflation=False,
    )
    values.update(overrides)
    return BreakevenInputs(**values)


def test_annual_amounts_per_scenario():
    result = compute_breakeven(_inputs())

    assert result.scenario1.annual_cpp == pytest.approx(6400)
    assert result.scenario1.annual_oas == pytest.approx(8000)
    assert result.scenario2.annual_cpp == pytest.approx(14200)
    assert result.scenario2.annual_oas == pytest.approx(10880)


def test_break_even_ages_without_discounting():
    result = compute_breakeven(_inputs())

    assert result.break_even["cpp"] == 78
    assert result.break_even["oas"] == 83
    assert result.break_even["total"] is not None


def test_matching_inflation_and_discount_cancel_out():
    result = compute_breakeven(_inputs(annual_discount_rate=3.0, include_inflation=True, inflation_rate=3.0))

    assert result.break_even["cpp"] == 78


def test_rows_run_to_ten_years_past_life_expectancy():
    result = compute_breakeven(_inputs())

    assert result.rows[0].age == 60
    assert result.rows[-1].age == 95
    assert result.rows[0].scenario1_cpp == pytest.approx(6400)
    assert result.rows[9].annual_cpp2 == 0.0
    assert result.rows[10].annual_cpp2 == pytest.approx(14200)


def test_no_break_even_when_second_scenario_never_catches_up():
    inputs = _inputs(scenario2=ClaimingScenario("Same", 60, 65))
    result = compute_breakeven(inputs)

    # Identical strategies tie from the first payment.
    assert result.break_even["cpp"] == 60

    late = compute_breakeven(_inputs(life_expectancy=60))
    assert late.break_even["cpp"] is None


def test_zero_maximums_use_benefit_rates():
    rates = BenefitRates(year=2025, max_cpp_annual=12000, max_oas_annual=7000)

    result = compute_breakeven(
        _inputs(cpp_maximum_annual=0, oas_maximum_annual=0, scenario1=ClaimingScenario("Standard", 65, 65)),
        rates,
    )

    assert result.scenario1.annual_cpp == pytest.approx(12000)
    assert result.scenario1.annual_oas == pytest.approx(7000)


@pytest.mark.parametrize("age", [None, 0])
def test_missing_current_age_raises(age):
    with pytest.raises(InvalidInputError):
        compute_breakeven(_inputs(current_age=age))


def test_payload_shape():
    payload = compute_breakeven(_inputs()).to_payload()

    assert set(payload) == {"scenario1", "scenario2", "break_even", "rows"}
    assert payload["scenario1"]["name"] == "Early Claiming"
