from .breakeven import BreakevenResult, compute_breakeven
from .capital_assets import CapitalAssetsProjection, project_capital_assets
from .fixed_income import FixedIncomeProjection, income_stream, project_fixed_income
from .rate_book import RateBook, RateLookup
from .state import CalculatorState, RateState
from .tax_layering import (
    TaxLayeringRow,
    TaxLayeringSummary,
    populate_target_incomes,
    project_tax_layering,
    summarize_tax_layering,
)

__all__ = [
    "BreakevenResult",
    "CalculatorState",
    "CapitalAssetsProjection",
    "FixedIncomeProjection",
    "RateBook",
    "RateLookup",
    "RateState",
    "TaxLayeringRow",
    "TaxLayeringSummary",
    "compute_breakeven",
    "income_stream",
    "populate_target_incomes",
    "project_capital_assets",
    "project_fixed_income",
    "project_tax_layering",
    "summarize_tax_layering",
]
