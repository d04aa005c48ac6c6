import pytest

from advisor.data_model import CapitalAssetsInputs, ReturnPeriod
from advisor.engine.aggregate import (
    combine_capital_assets,
    combine_fixed_income,
    combine_income_streams,
    compare_fixed_income,
    linked_totals,
    rows_to_frame,
)
from advisor.engine.capital_assets import project_capital_assets
from advisor.engine.fixed_income import FixedIncomeProjection, FixedIncomeRow, summarize


def _row(year, age, **amounts) -> FixedIncomeRow:
    values = dict(cpp=0, oas=0, bridge=0, pension=0, other1=0, other2=0)
    values.update(amounts)
    total = sum(values.values())
    return FixedIncomeRow(
        year=year,
        age=age,
        total_income=total,
        tax_estimate=0,
        after_tax_income=total,
        inflation_adjusted_income=total,
        **values,
    )


def _projection(rows) -> FixedIncomeProjection:
    return FixedIncomeProjection(rows=rows, summary=summarize(rows, 0.0))


def test_rows_to_frame_sorts_by_age():
    df = rows_to_frame([_row(2026, 66, cpp=2), _row(2025, 65, cpp=1)])

    assert list(df["age"]) == [65, 66]
    assert list(df["cpp"]) == [1, 2]


def test_rows_to_frame_empty():
    assert rows_to_frame([]).empty


def test_combine_fixed_income_sums_by_year():
    first = _projection([_row(2025, 65, cpp=100, other1=5), _row(2026, 66, cpp=100)])
    second = _projection([_row(2026, 62, oas=50, other2=7)])

    df = combine_fixed_income([first, second])

    assert list(df["year"]) == [2025, 2026]
    assert list(df["cpp"]) == [100, 100]
    assert list(df["oas"]) == [0, 50]
    assert list(df["other"]) == [5, 7]


def test_linked_totals_from_year_column():
    df = combine_fixed_income([_projection([_row(2025, 65, pension=300)])])

    totals = linked_totals(df)

    assert totals[2025]["pension"] == 300.0
    assert totals[2025]["cpp"] == 0.0


def test_combine_capital_assets_pivots_by_account_type():
    registered = project_capital_assets(
        CapitalAssetsInputs(
            initial_investment=1000,
            projection_years=1,
            start_year=2025,
            account_type="registered",
            return_periods=[ReturnPeriod(return_rate=0.0)],
        )
    )
    tfsa = project_capital_assets(
        CapitalAssetsInputs(
            initial_investment=500,
            projection_years=1,
            start_year=2025,
            account_type="tfsa",
            return_periods=[ReturnPeriod(return_rate=0.0)],
        )
    )

    combined = combine_capital_assets([registered, tfsa])

    balances = linked_totals(combined["balances"])
    assert balances[2026] == pytest.approx({"registered": 1000.0, "tfsa": 500.0})
    assert linked_totals(combined["redemptions"])[2025] == pytest.approx({"registered": 0.0, "tfsa": 0.0})


def test_combine_capital_assets_without_projections():
    combined = combine_capital_assets([])

    assert combined["balances"].empty
    assert combined["redemptions"].empty


def test_compare_fixed_income_keeps_input_order():
    df = compare_fixed_income(
        {
            "Retire at 60": _projection([_row(2025, 60, pension=1000)]),
            "Retire at 65": _projection([_row(2025, 65, pension=800), _row(2026, 66, pension=800)]),
        }
    )

    assert list(df["scenario"]) == ["Retire at 60", "Retire at 65"]
    assert list(df["total_lifetime_income"]) == [1000, 1600]


def test_combine_income_streams_totals_by_year():
    df = combine_income_streams([{2025: 100, 2026: 50}, {2026: 25, 2027: 10}])

    assert list(df["year"]) == [2025, 2026, 2027]
    assert list(df["total_income"]) == [100, 75, 10]


def test_combine_income_streams_empty():
    assert combine_income_streams([]).empty
