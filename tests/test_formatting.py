import pytest

from advisor.data_model import BreakevenSchema, FixedIncomeSchema
from advisor.data_model.base import payload_bool, payload_ids, payload_value
from advisor.data_model.rates import brackets_from_records
from advisor.formatting import format_currency, format_percentage, parse_number, round_cents, round_half_up


@pytest.mark.parametrize(
    "value, expected",
    [(1234.56, "$1,235"), (0, "$0"), (-5, "-$5"), ("abc", "$0"), (None, ""), ("", "")],
)
def test_format_currency(value, expected):
    assert format_currency(value) == expected


def test_format_percentage():
    assert format_percentage(2.5) == "2.50%"
    assert format_percentage("oops") == "0.00%"


@pytest.mark.parametrize(
    "value, expected",
    [("$1,200", 1200.0), ("2.5%", 2.5), (" -3 ", -3.0), (42, 42.0), ("", 7.0), (None, 7.0), ("n/a", 7.0)],
)
def test_parse_number(value, expected):
    assert parse_number(value, 7.0) == expected


def test_rounding_helpers():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_cents(1.005) in (1.0, 1.01)
    assert round_cents(8621.499) == 8621.5


def test_payload_helpers_skip_blanks_and_accept_aliases():
    payload = {"projection_years": "", "time_horizon": 30, "flag": "yes", "client_id": "c1"}

    assert payload_value(payload, "projection_years", "time_horizon") == 30
    assert payload_bool(payload, "flag") is True
    assert payload_bool(payload, "missing", default=True) is True
    assert payload_ids(payload, "client_ids", "client_id") == ["c1"]


def test_brackets_from_records_handles_open_top_band():
    brackets = brackets_from_records(
        [
            {"min_income": "", "max_income": "50,000", "rate": "20%"},
            {"min_income": 50000, "max_income": None, "rate": 30},
            {"min_income": 100000, "rate": "n/a"},
        ]
    )

    assert len(brackets) == 2
    assert brackets[0].min_income == 0.0
    assert brackets[0].max_income == 50000
    assert brackets[1].max_income is None
    assert brackets[1].upper == float("inf")


def test_schemas_expose_defaults():
    fixed = FixedIncomeSchema(default_inflation_rate=3.0).to_payload()
    breakeven = BreakevenSchema().to_payload()

    assert fixed["name"] == "fixed_income"
    assert fixed["defaults"]["inflation_rate"] == 3.0
    assert breakeven["defaults"]["cpp_start_age_2"] == 70
    assert all({"field", "label", "kind"} <= set(f) for f in breakeven["fields"])
