"""Tax bracket and benefit rate lookup with prior-year fallback.

Stored tables take precedence over the built-in defaults. A request for a
year with no table falls back one year, then to the latest built-in table,
and every fallback is reported back as a warning.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Generic, List, TypeVar

from ..data_model.rates import (
    ONTARIO_BRACKETS_2024,
    ONTARIO_BRACKETS_2025,
    BenefitRates,
    TaxBracketTable,
    brackets_from_tuples,
)
from ..exceptions import RateTableNotFoundError
from .state import RateState

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TAX_TABLES: Dict[tuple[int, str], list] = {
    (2024, "ON"): ONTARIO_BRACKETS_2024,
    (2025, "ON"): ONTARIO_BRACKETS_2025,
}


@dataclass
class RateLookup(Generic[T]):
    value: T
    year: int
    warnings: List[str] = field(default_factory=list)


class RateBook:
    def __init__(self, state: RateState | None = None):
        self.state = state

    def _table(self, year: int, province: str) -> TaxBracketTable | None:
        if self.state is not None:
            stored = self.state.get_tax_brackets(year, province)
            if stored is not None and stored.brackets:
                return stored
        rows = DEFAULT_TAX_TABLES.get((year, province))
        if rows is None:
            return None
        return TaxBracketTable(year=year, province=province, brackets=brackets_from_tuples(rows))

    def _latest_table(self, province: str) -> TaxBracketTable | None:
        years = {y for (y, p) in DEFAULT_TAX_TABLES if p == province}
        if self.state is not None:
            for key in self.state.tax_brackets:
                year, _, prov = key.partition(":")
                if prov == province:
                    years.add(int(year))
        for year in sorted(years, reverse=True):
            table = self._table(year, province)
            if table is not None:
                return table
        return None

    def tax_brackets(self, year: int, province: str = "ON") -> RateLookup[TaxBracketTable]:
        province = province.upper()
        table = self._table(year, province)
        if table is not None:
            return RateLookup(table, year)

        prior = self._table(year - 1, province)
        if prior is not None:
            warning = f"Could not find {year} {province} tax rates. (Using {year - 1} data)"
            logger.warning(warning)
            return RateLookup(prior, year - 1, [warning])

        latest = self._latest_table(province)
        if latest is None:
            raise RateTableNotFoundError(f"No tax brackets available for {province}.")
        warning = f"Could not find {year} {province} tax rates. (Using {latest.year} data)"
        logger.warning(warning)
        return RateLookup(latest, latest.year, [warning])

    def benefit_rates(self, year: int) -> RateLookup[BenefitRates]:
        stored = self.state.get_benefit_rates(year) if self.state is not None else None
        if stored is not None:
            return RateLookup(stored, year)

        prior = self.state.get_benefit_rates(year - 1) if self.state is not None else None
        if prior is not None:
            warning = f"Could not find {year} benefit rates. (Using {year - 1} data)"
            logger.warning(warning)
            return RateLookup(prior, year - 1, [warning])

        warning = f"Could not find {year} benefit rates. (Using default values)"
        logger.warning(warning)
        return RateLookup(BenefitRates(year=year), year, [warning])

    def latest_benefit_rates(self) -> BenefitRates:
        years = self.state.benefit_years() if self.state is not None else []
        if years:
            latest = self.state.get_benefit_rates(years[-1])
            if latest is not None:
                return latest
        return BenefitRates(year=max(y for (y, _) in DEFAULT_TAX_TABLES))
