import pytest

from advisor.data_model.rates import BenefitRates, TaxBracket, TaxBracketTable
from advisor.engine.rate_book import RateBook
from advisor.engine.state import RateState
from advisor.exceptions import InvalidInputError, RateTableNotFoundError


@pytest.fixture
def rate_state(tmp_path):
    return RateState(str(tmp_path / "rates.json"))


def test_exact_year_has_no_warning():
    lookup = RateBook().tax_brackets(2025, "ON")

    assert lookup.year == 2025
    assert lookup.warnings == []
    assert len(lookup.value.brackets) == 11


def test_falls_back_to_prior_year_with_warning():
    lookup = RateBook().tax_brackets(2026, "on")

    assert lookup.year == 2025
    assert lookup.warnings == ["Could not find 2026 ON tax rates. (Using 2025 data)"]


def test_falls_back_to_latest_table():
    lookup = RateBook().tax_brackets(2031, "ON")

    assert lookup.year == 2025
    assert "Using 2025 data" in lookup.warnings[0]


def test_unknown_province_raises():
    with pytest.raises(RateTableNotFoundError):
        RateBook().tax_brackets(2025, "BC")


def test_stored_table_overrides_default(rate_state):
    rate_state.save_tax_brackets(
        TaxBracketTable(year=2025, province="ON", brackets=[TaxBracket(0, None, 25.0)])
    )

    lookup = RateBook(rate_state).tax_brackets(2025, "ON")

    assert lookup.value.brackets == [TaxBracket(0, None, 25.0)]
    assert lookup.value.updated_date


def test_stored_tables_extend_other_provinces(rate_state):
    rate_state.save_tax_brackets(TaxBracketTable(year=2024, province="BC", brackets=[TaxBracket(0, None, 20.0)]))

    lookup = RateBook(rate_state).tax_brackets(2027, "BC")

    assert lookup.year == 2024
    assert lookup.warnings


def test_empty_table_cannot_be_saved(rate_state):
    with pytest.raises(InvalidInputError):
        rate_state.save_tax_brackets(TaxBracketTable(year=2025, province="ON"))


def test_benefit_rates_default_with_warning():
    lookup = RateBook().benefit_rates(2025)

    assert lookup.value.max_cpp_annual == 17478.36
    assert lookup.warnings == ["Could not find 2025 benefit rates. (Using default values)"]


def test_benefit_rates_prior_year(rate_state):
    rate_state.save_benefit_rates(BenefitRates(year=2025, max_cpp_annual=18000))

    book = RateBook(rate_state)

    assert book.benefit_rates(2025).warnings == []
    fallback = book.benefit_rates(2026)
    assert fallback.year == 2025
    assert fallback.value.max_cpp_annual == 18000
    assert fallback.warnings == ["Could not find 2026 benefit rates. (Using 2025 data)"]


def test_latest_benefit_rates_uses_highest_year(rate_state):
    rate_state.save_benefit_rates(BenefitRates(year=2024, max_cpp_annual=16000))
    rate_state.save_benefit_rates(BenefitRates(year=2025, max_cpp_annual=18000))

    assert RateBook(rate_state).latest_benefit_rates().year == 2025
    assert RateBook().latest_benefit_rates().max_cpp_annual == 17478.36


def test_rate_state_persists(tmp_path):
    path = str(tmp_path / "nested" / "rates.json")
    RateState(path).save_benefit_rates(BenefitRates(year=2025, oas_clawback_threshold=93454))

    reloaded = RateState(path)

    assert reloaded.get_benefit_rates(2025).oas_clawback_threshold == 93454
