from .base import CalculatorSchema, FieldDefinition
from .breakeven import BreakevenInputs, BreakevenSchema, ClaimingScenario
from .capital_assets import (
    CapitalAssetsInputs,
    CapitalAssetsSchema,
    ContributionPeriod,
    RedemptionPeriod,
    ReturnPeriod,
)
from .fixed_income import FixedIncomeInputs, FixedIncomeSchema, IncomeSource
from .rates import BenefitRates, TaxBracket, TaxBracketTable, brackets_from_records
from .tax_layering import LinkedIncome, TaxLayeringInputs, TaxLayeringSchema

__all__ = [
    "BenefitRates",
    "BreakevenInputs",
    "BreakevenSchema",
    "CalculatorSchema",
    "CapitalAssetsInputs",
    "CapitalAssetsSchema",
    "ClaimingScenario",
    "ContributionPeriod",
    "FieldDefinition",
    "FixedIncomeInputs",
    "FixedIncomeSchema",
    "IncomeSource",
    "LinkedIncome",
    "RedemptionPeriod",
    "ReturnPeriod",
    "TaxBracket",
    "TaxBracketTable",
    "TaxLayeringInputs",
    "TaxLayeringSchema",
    "brackets_from_records",
]
