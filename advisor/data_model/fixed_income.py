from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, List

from .base import (
    CalculatorSchema,
    FieldDefinition,
    payload_float,
    payload_ids,
    payload_int,
    payload_optional_float,
    payload_value,
)


@dataclass
class IncomeSource:
    """A fixed income stream paid between two ages, indexed yearly."""

    name: str
    start_age: float | None
    end_age: float | None
    amount: float = 0.0
    index_rate: float = 0.0  # percent

    def is_active(self, age: float) -> bool:
        if self.amount <= 0 or self.start_age is None or self.end_age is None:
            return False
        return self.start_age <= age <= self.end_age


@dataclass
class FixedIncomeInputs:
    current_age: float | None = None
    life_expectancy: float = 90
    cpp_start_age: float = 65
    cpp_factor: float = 80.0  # percent of maximum
    oas_start_age: float = 65
    oas_factor: float = 100.0
    bridge: IncomeSource = field(default_factory=lambda: IncomeSource("Bridge Benefit", 50, 64))
    pension: IncomeSource = field(default_factory=lambda: IncomeSource("Employer Pension", 58, 100))
    other1: IncomeSource = field(default_factory=lambda: IncomeSource("Other Income 1", None, None))
    other2: IncomeSource = field(default_factory=lambda: IncomeSource("Other Income 2", None, None))
    marginal_tax_rate: float = 29.65
    inflation_rate: float = 2.5
    start_year: int = field(default_factory=lambda: dt.date.today().year)
    birth_date: str | None = None
    calculator_name: str = ""
    client_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], default_inflation_rate: float = 2.5) -> "FixedIncomeInputs":
        def source(prefix: str, name: str, start: float | None, end: float | None) -> IncomeSource:
            start_age = payload_optional_float(payload, f"{prefix}_start_age")
            end_age = payload_optional_float(payload, f"{prefix}_end_age")
            return IncomeSource(
                name=str(payload_value(payload, f"{prefix}_name", default=name)),
                start_age=start if start_age is None else start_age,
                end_age=end if end_age is None else end_age,
                amount=payload_float(payload, f"{prefix}_amount"),
                index_rate=payload_float(payload, f"{prefix}_index_rate"),
            )

        current_age = payload_optional_float(payload, "current_age")
        return cls(
            current_age=current_age,
            life_expectancy=payload_float(payload, "life_expectancy", default=90),
            cpp_start_age=payload_float(payload, "cpp_start_age", default=65),
            cpp_factor=payload_float(payload, "cpp_factor", default=80),
            oas_start_age=payload_float(payload, "oas_start_age", default=65),
            oas_factor=payload_float(payload, "oas_factor", default=100),
            bridge=source("bridge", "Bridge Benefit", 50, 64),
            pension=source("private", "Employer Pension", 58, 100),
            other1=source("other1", "Other Income 1", None, None),
            other2=source("other2", "Other Income 2", None, None),
            marginal_tax_rate=payload_float(payload, "marginal_tax_rate", default=29.65),
            inflation_rate=payload_float(payload, "inflation_rate", default=default_inflation_rate),
            start_year=payload_int(payload, "start_year", default=dt.date.today().year),
            birth_date=payload_value(payload, "date_of_birth", "birth_date"),
            calculator_name=str(payload_value(payload, "calculator_name", default="")),
            client_ids=payload_ids(payload, "client_ids", "client_id"),
        )


class FixedIncomeSchema(CalculatorSchema):
    def __init__(self, default_inflation_rate: float = 2.5) -> None:
        fields = [
            FieldDefinition("calculator_name", "Calculator Name", kind="text", default=""),
            FieldDefinition("current_age", "Current Age", default="", min_value=0, step=1),
            FieldDefinition("life_expectancy", "Life Expectancy", default=90, min_value=1, step=1),
            FieldDefinition("cpp_start_age", "CPP Start Age", default=65, min_value=60, step=1, help="60 to 70"),
            FieldDefinition("cpp_factor", "CPP (% of maximum)", kind="percentage", default=80.0, step=1),
            FieldDefinition("oas_start_age", "OAS Start Age", default=65, min_value=65, step=1, help="65 to 70"),
            FieldDefinition("oas_factor", "OAS (% of maximum)", kind="percentage", default=100.0, step=1),
            FieldDefinition("bridge_start_age", "Bridge Start Age", default=50, step=1),
            FieldDefinition("bridge_end_age", "Bridge End Age", default=64, step=1),
            FieldDefinition("bridge_amount", "Bridge Benefit (annual)", kind="currency", default="", min_value=0),
            FieldDefinition("bridge_index_rate", "Bridge Indexing", kind="percentage", default=0.0, step=0.25),
            FieldDefinition("private_start_age", "Pension Start Age", default=58, step=1),
            FieldDefinition("private_end_age", "Pension End Age", default=100, step=1),
            FieldDefinition("private_amount", "Employer Pension (annual)", kind="currency", default="", min_value=0),
            FieldDefinition("private_index_rate", "Pension Indexing", kind="percentage", default=0.0, step=0.25),
            FieldDefinition("other1_name", "Other Income 1 Name", kind="text", default="Other Income 1"),
            FieldDefinition("other1_start_age", "Other Income 1 Start Age", default="", step=1),
            FieldDefinition("other1_end_age", "Other Income 1 End Age", default="", step=1),
            FieldDefinition("other1_amount", "Other Income 1 (annual)", kind="currency", default="", min_value=0),
            FieldDefinition("other1_index_rate", "Other Income 1 Indexing", kind="percentage", default=0.0, step=0.25),
            FieldDefinition("other2_name", "Other Income 2 Name", kind="text", default="Other Income 2"),
            FieldDefinition("other2_start_age", "Other Income 2 Start Age", default="", step=1),
            FieldDefinition("other2_end_age", "Other Income 2 End Age", default="", step=1),
            FieldDefinition("other2_amount", "Other Income 2 (annual)", kind="currency", default="", min_value=0),
            FieldDefinition("other2_index_rate", "Other Income 2 Indexing", kind="percentage", default=0.0, step=0.25),
            FieldDefinition("marginal_tax_rate", "Marginal Tax Rate", kind="percentage", default=29.65, step=0.01),
            FieldDefinition(
                "inflation_rate",
                "Inflation Rate",
                kind="percentage",
                default=default_inflation_rate,
                step=0.1,
                help="Indexes CPP/OAS and deflates after-tax income",
            ),
        ]
        super().__init__("fixed_income", "Fixed Income Calculator", fields)
