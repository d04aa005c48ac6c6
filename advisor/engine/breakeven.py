"""Compare two CPP/OAS claiming strategies by cumulative present value."""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List

from ..data_model.breakeven import BreakevenInputs, ClaimingScenario
from ..data_model.rates import BenefitRates
from ..exceptions import InvalidInputError
from .benefits import CPP_EARLIEST_AGE, cpp_annual_amount, oas_annual_amount

logger = logging.getLogger(__name__)


@dataclass
class ScenarioSummary:
    name: str
    cpp_start_age: float
    oas_start_age: float
    annual_cpp: float
    annual_oas: float
    annual_total: float


@dataclass
class BreakevenRow:
    age: float
    scenario1_cpp: float
    scenario1_oas: float
    scenario1_total: float
    scenario2_cpp: float
    scenario2_oas: float
    scenario2_total: float
    annual_cpp1: float
    annual_oas1: float
    annual_cpp2: float
    annual_oas2: float


@dataclass
class BreakevenResult:
    scenario1: ScenarioSummary
    scenario2: ScenarioSummary
    break_even: Dict[str, float | None] = field(default_factory=dict)
    rows: List[BreakevenRow] = field(default_factory=list)

    def to_payload(self) -> dict:
        return {
            "scenario1": asdict(self.scenario1),
            "scenario2": asdict(self.scenario2),
            "break_even": dict(self.break_even),
            "rows": [asdict(row) for row in self.rows],
        }


def _summary(scenario: ClaimingScenario, cpp: float, oas: float) -> ScenarioSummary:
    return ScenarioSummary(
        name=scenario.name,
        cpp_start_age=scenario.cpp_start_age,
        oas_start_age=scenario.oas_start_age,
        annual_cpp=cpp,
        annual_oas=oas,
        annual_total=cpp + oas,
    )


def _grown(amount: float, growth: float, age: float, start_age: float) -> float:
    if age < start_age:
        return 0.0
    return amount * growth ** (age - start_age)


def compute_breakeven(inputs: BreakevenInputs, rates: BenefitRates | None = None) -> BreakevenResult:
    current_age = inputs.current_age
    if current_age is None or current_age <= 0:
        raise InvalidInputError("current_age", "enter a current age to compare claiming strategies")

    rates = rates or BenefitRates(year=dt.date.today().year)
    cpp_max = inputs.cpp_maximum_annual or rates.max_cpp_annual
    oas_max = inputs.oas_maximum_annual or rates.max_oas_annual
    discount = 1.0 + inputs.annual_discount_rate / 100.0
    growth = 1.0 + (inputs.inflation_rate / 100.0 if inputs.include_inflation else 0.0)

    s1, s2 = inputs.scenario1, inputs.scenario2
    cpp1 = cpp_annual_amount(cpp_max, s1.cpp_start_age, inputs.estimated_cpp_percentage)
    oas1 = oas_annual_amount(oas_max, s1.oas_start_age, inputs.estimated_oas_percentage)
    cpp2 = cpp_annual_amount(cpp_max, s2.cpp_start_age, inputs.estimated_cpp_percentage)
    oas2 = oas_annual_amount(oas_max, s2.oas_start_age, inputs.estimated_oas_percentage)
    logger.debug(
        "Break-even %r vs %r from age %s (cpp max %s, oas max %s)",
        s1.name,
        s2.name,
        current_age,
        cpp_max,
        oas_max,
    )

    break_even: Dict[str, float | None] = {"cpp": None, "oas": None, "total": None}
    rows: List[BreakevenRow] = []
    cpp_total1 = oas_total1 = cpp_total2 = oas_total2 = 0.0

    age = max(current_age, CPP_EARLIEST_AGE)
    while age <= inputs.life_expectancy + 10:
        years = age - current_age
        # Present value of this year's payment, indexed then discounted back to today.
        factor = growth ** years * discount ** -years
        if age >= s1.cpp_start_age:
            cpp_total1 += cpp1 * factor
        if age >= s1.oas_start_age:
            oas_total1 += oas1 * factor
        if age >= s2.cpp_start_age:
            cpp_total2 += cpp2 * factor
        if age >= s2.oas_start_age:
            oas_total2 += oas2 * factor

        total1 = cpp_total1 + oas_total1
        total2 = cpp_total2 + oas_total2
        for key, first, second in (
            ("cpp", cpp_total1, cpp_total2),
            ("oas", oas_total1, oas_total2),
            ("total", total1, total2),
        ):
            if break_even[key] is None and first > 0 and second >= first:
                break_even[key] = age

        rows.append(
            BreakevenRow(
                age=age,
                scenario1_cpp=cpp_total1,
                scenario1_oas=oas_total1,
                scenario1_total=total1,
                scenario2_cpp=cpp_total2,
                scenario2_oas=oas_total2,
                scenario2_total=total2,
                annual_cpp1=_grown(cpp1, growth, age, s1.cpp_start_age),
                annual_oas1=_grown(oas1, growth, age, s1.oas_start_age),
                annual_cpp2=_grown(cpp2, growth, age, s2.cpp_start_age),
                annual_oas2=_grown(oas2, growth, age, s2.oas_start_age),
            )
        )
        age += 1

    return BreakevenResult(
        scenario1=_summary(s1, cpp1, oas1),
        scenario2=_summary(s2, cpp2, oas2),
        break_even=break_even,
        rows=rows,
    )
