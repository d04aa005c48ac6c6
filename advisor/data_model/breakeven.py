from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from .base import (
    CalculatorSchema,
    FieldDefinition,
    payload_bool,
    payload_float,
    payload_ids,
    payload_optional_float,
    payload_value,
)


@dataclass
class ClaimingScenario:
    name: str
    cpp_start_age: float
    oas_start_age: float


@dataclass
class BreakevenInputs:
    current_age: float | None = None
    life_expectancy: float = 85
    cpp_maximum_annual: float = 0.0
    oas_maximum_annual: float = 0.0
    estimated_cpp_percentage: float = 100.0
    estimated_oas_percentage: float = 100.0
    scenario1: ClaimingScenario = field(default_factory=lambda: ClaimingScenario("Early Claiming", 60, 65))
    scenario2: ClaimingScenario = field(default_factory=lambda: ClaimingScenario("Delayed Claiming", 70, 70))
    annual_discount_rate: float = 3.0
    include_inflation: bool = True
    inflation_rate: float = 2.0
    calculator_name: str = ""
    client_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "BreakevenInputs":
        return cls(
            current_age=payload_optional_float(payload, "current_age"),
            life_expectancy=payload_float(payload, "life_expectancy", default=85),
            cpp_maximum_annual=payload_float(payload, "cpp_maximum_annual"),
            oas_maximum_annual=payload_float(payload, "oas_maximum_annual"),
            estimated_cpp_percentage=payload_float(payload, "estimated_cpp_percentage", default=100),
            estimated_oas_percentage=payload_float(payload, "estimated_oas_percentage", default=100),
            scenario1=ClaimingScenario(
                name=str(payload_value(payload, "scenario1_name", default="Early Claiming")),
                cpp_start_age=payload_float(payload, "cpp_start_age_1", default=60),
                oas_start_age=payload_float(payload, "oas_start_age_1", default=65),
            ),
            scenario2=ClaimingScenario(
                name=str(payload_value(payload, "scenario2_name", default="Delayed Claiming")),
                cpp_start_age=payload_float(payload, "cpp_start_age_2", default=70),
                oas_start_age=payload_float(payload, "oas_start_age_2", default=70),
            ),
            annual_discount_rate=payload_float(payload, "annual_discount_rate", default=3.0),
            include_inflation=payload_bool(payload, "include_inflation", default=True),
            inflation_rate=payload_float(payload, "inflation_rate", default=2.0),
            calculator_name=str(payload_value(payload, "calculator_name", default="")),
            client_ids=payload_ids(payload, "client_ids", "client_id"),
        )


class BreakevenSchema(CalculatorSchema):
    def __init__(self) -> None:
        fields = [
            FieldDefinition("current_age", "Current Age", default="", min_value=0, step=1),
            FieldDefinition("life_expectancy", "Life Expectancy", default=85, step=1),
            FieldDefinition("cpp_maximum_annual", "CPP Maximum (annual)", kind="currency", default=0.0,
                            help="0 uses the latest benefit rates"),
            FieldDefinition("oas_maximum_annual", "OAS Maximum (annual)", kind="currency", default=0.0,
                            help="0 uses the latest benefit rates"),
            FieldDefinition("estimated_cpp_percentage", "Estimated CPP (% of max)", kind="percentage", default=100.0),
            FieldDefinition("estimated_oas_percentage", "Estimated OAS (% of max)", kind="percentage", default=100.0),
            FieldDefinition("scenario1_name", "Scenario 1", kind="text", default="Early Claiming"),
            FieldDefinition("cpp_start_age_1", "Scenario 1 CPP Start", default=60, step=1),
            FieldDefinition("oas_start_age_1", "Scenario 1 OAS Start", default=65, step=1),
            FieldDefinition("scenario2_name", "Scenario 2", kind="text", default="Delayed Claiming"),
            FieldDefinition("cpp_start_age_2", "Scenario 2 CPP Start", default=70, step=1),
            FieldDefinition("oas_start_age_2", "Scenario 2 OAS Start", default=70, step=1),
            FieldDefinition("annual_discount_rate", "Discount Rate", kind="percentage", default=3.0),
            FieldDefinition("include_inflation", "Include Inflation", kind="checkbox", default=True),
            FieldDefinition("inflation_rate", "Inflation Rate", kind="percentage", default=2.0),
        ]
        super().__init__("cpp_oas_breakeven", "CPP/OAS Break-Even Calculator", fields)
