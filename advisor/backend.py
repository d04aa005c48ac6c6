"""REST backend for the advisor retirement income calculators."""

from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Any, Dict, List

import pandas as pd
from flask import Flask, jsonify, request

from advisor.config import Settings, configure_logging
from advisor.data_model import (
    BreakevenInputs,
    BreakevenSchema,
    CapitalAssetsInputs,
    CapitalAssetsSchema,
    FixedIncomeInputs,
    FixedIncomeSchema,
    LinkedIncome,
    TaxBracketTable,
    TaxLayeringInputs,
    TaxLayeringSchema,
)
from advisor.data_model.rates import BenefitRates
from advisor.engine.aggregate import (
    combine_capital_assets,
    combine_fixed_income,
    combine_income_streams,
    compare_fixed_income,
    linked_totals,
)
from advisor.engine.breakeven import compute_breakeven
from advisor.engine.capital_assets import CapitalAssetsProjection, project_capital_assets
from advisor.engine.fixed_income import FixedIncomeProjection, income_stream, project_fixed_income
from advisor.engine.rate_book import RateBook
from advisor.engine.state import CalculatorState, RateState
from advisor.engine.tax_layering import populate_target_incomes, project_tax_layering, summarize_tax_layering
from advisor.exceptions import (
    AdvisorError,
    CalculatorNotFoundError,
    InvalidInputError,
    RateTableNotFoundError,
    StorageError,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)

settings = Settings.from_env()
calculator_state = CalculatorState(settings.calculators_path)
rate_book = RateBook(RateState(settings.rates_path))

ERROR_STATUS = {
    InvalidInputError: 400,
    CalculatorNotFoundError: 404,
    RateTableNotFoundError: 404,
    StorageError: 500,
}

# Capital asset account types as named by the tax layering withdrawal columns.
LAYERING_ACCOUNT = {"registered": "registered", "non_registered": "nonregistered", "tfsa": "tfsa"}


def _is_nan(value: Any) -> bool:
    try:
        return not math.isfinite(value)
    except (TypeError, ValueError):
        return False


def _json_value(value: Any) -> Any:
    if hasattr(value, "item"):
        value = value.item()
    return None if _is_nan(value) else value


def _sanitize_records(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    clean_rows: List[Dict[str, Any]] = []
    for row in records:
        clean_rows.append({str(key): _json_value(value) for key, value in row.items()})
    return clean_rows


def _frame_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    return _sanitize_records(df.to_dict(orient="records"))


def _schemas() -> Dict[str, Any]:
    schemas = [
        FixedIncomeSchema(settings.preferred_inflation_rate),
        TaxLayeringSchema(settings.default_province),
        BreakevenSchema(),
        CapitalAssetsSchema(),
    ]
    return {schema.name: schema.to_payload() for schema in schemas}


def _saved_inputs(calc_id: str, calculator_type: str) -> dict:
    entry = calculator_state.get(calc_id)
    if entry.get("type") != calculator_type:
        raise InvalidInputError("calculator_id", f"{calc_id} is not a {calculator_type} calculator")
    return entry.get("inputs") or {}


def _fixed_income(payload: dict) -> tuple[FixedIncomeProjection, List[str]]:
    inputs = FixedIncomeInputs.from_payload(payload, settings.preferred_inflation_rate)
    lookup = rate_book.benefit_rates(inputs.start_year)
    return project_fixed_income(inputs, lookup.value), lookup.warnings


def _capital_assets(payload: dict) -> CapitalAssetsProjection:
    return project_capital_assets(CapitalAssetsInputs.from_payload(payload))


def _linked_income(inputs: TaxLayeringInputs) -> tuple[LinkedIncome, List[str]]:
    warnings: List[str] = []
    fixed_projections = []
    for calc_id in inputs.linked_fixed_income_calc_ids:
        projection, lookup_warnings = _fixed_income(_saved_inputs(calc_id, "fixed_income"))
        fixed_projections.append(projection)
        warnings.extend(lookup_warnings)
    fixed = linked_totals(combine_fixed_income(fixed_projections))
    for amounts in fixed.values():
        amounts["other_income"] = amounts.pop("other", 0.0)

    asset_projections = [
        _capital_assets(_saved_inputs(calc_id, "capital_assets"))
        for calc_id in inputs.linked_capital_assets_calc_ids
    ]
    combined = combine_capital_assets(asset_projections)

    def by_layering_account(frame: pd.DataFrame) -> Dict[int, Dict[str, float]]:
        return {
            year: {LAYERING_ACCOUNT.get(account, account): amount for account, amount in amounts.items()}
            for year, amounts in linked_totals(frame).items()
        }

    linked = LinkedIncome(
        fixed_income=fixed,
        balances=by_layering_account(combined["balances"]),
        redemptions=by_layering_account(combined["redemptions"]),
    )
    return linked, warnings


def _tax_layering(payload: dict) -> Dict[str, Any]:
    inputs = TaxLayeringInputs.from_payload(payload, settings.default_province)
    brackets = rate_book.tax_brackets(inputs.start_year, inputs.province)
    benefits = rate_book.benefit_rates(inputs.start_year)
    linked, warnings = _linked_income(inputs)
    rows = project_tax_layering(inputs, brackets.value.brackets, benefits.value, linked)
    return {
        "projection": [row.to_payload() for row in rows],
        "summary": summarize_tax_layering(rows).to_payload(),
        "tax_year": brackets.year,
        "warnings": brackets.warnings + benefits.warnings + warnings,
    }


def _projection_payload(calculator_type: str, payload: dict) -> Dict[str, Any]:
    if calculator_type == "fixed_income":
        projection, warnings = _fixed_income(payload)
        return {**projection.to_payload(), "warnings": warnings}
    if calculator_type == "tax_layering":
        return _tax_layering(payload)
    if calculator_type == "cpp_oas_breakeven":
        inputs = BreakevenInputs.from_payload(payload)
        return compute_breakeven(inputs, rate_book.latest_benefit_rates()).to_payload()
    if calculator_type == "capital_assets":
        return _capital_assets(payload).to_payload()
    raise InvalidInputError("type", f"unknown calculator type {calculator_type!r}")


def _add_unique(projections: dict, name: str, suffix: str, projection: FixedIncomeProjection) -> None:
    if name in projections:
        name = f"{name} ({suffix})"
    projections[name] = projection


def _named_fixed_income(payload: dict) -> Dict[str, FixedIncomeProjection]:
    projections: Dict[str, FixedIncomeProjection] = {}
    for calc_id in payload.get("calculator_ids") or []:
        entry = calculator_state.get(str(calc_id))
        projection, _ = _fixed_income(_saved_inputs(str(calc_id), "fixed_income"))
        _add_unique(projections, entry.get("name") or str(calc_id), str(calc_id), projection)
    for index, scenario in enumerate(payload.get("scenarios") or [], start=1):
        if not isinstance(scenario, dict):
            continue
        name = str(scenario.get("name") or f"Scenario {index}")
        projection, _ = _fixed_income(scenario.get("inputs") or {})
        _add_unique(projections, name, str(index), projection)
    return projections


@app.errorhandler(AdvisorError)
def handle_advisor_error(exc: AdvisorError):
    status = ERROR_STATUS.get(type(exc), 400)
    logger.warning("%s %s failed: %s", request.method, request.path, exc)
    return jsonify({"error": str(exc)}), status


@app.after_request
def apply_cors_headers(response):
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


@app.get("/api/health")
def healthcheck():
    return jsonify({"status": "ok"})


@app.get("/api/schema")
def get_schema():
    return jsonify(
        {
            "calculators": _schemas(),
            "defaultProvince": settings.default_province,
            "preferredInflationRate": settings.preferred_inflation_rate,
        }
    )


@app.get("/api/rates/tax-brackets")
def get_tax_brackets():
    try:
        year = int(request.args.get("year", dt.date.today().year))
    except ValueError:
        raise InvalidInputError("year", "must be a whole number")
    province = request.args.get("province", settings.default_province)
    lookup = rate_book.tax_brackets(year, province)
    return jsonify({"table": lookup.value.to_record(), "year": lookup.year, "warnings": lookup.warnings})


@app.post("/api/rates/tax-brackets")
def save_tax_brackets():
    payload = request.get_json(silent=True) or {}
    if not payload.get("year"):
        raise InvalidInputError("year", "is required")
    table = TaxBracketTable.from_record({"province": settings.default_province, **payload})
    rate_book.state.save_tax_brackets(table)
    logger.info("Saved %s %s tax brackets (%s bands)", table.year, table.province, len(table.brackets))
    return jsonify({"message": "Tax brackets saved.", "table": table.to_record()})


@app.get("/api/rates/benefits")
def get_benefit_rates():
    raw_year = request.args.get("year")
    if raw_year is None:
        return jsonify({"rates": rate_book.latest_benefit_rates().to_record(), "warnings": []})
    try:
        year = int(raw_year)
    except ValueError:
        raise InvalidInputError("year", "must be a whole number")
    lookup = rate_book.benefit_rates(year)
    return jsonify({"rates": lookup.value.to_record(), "year": lookup.year, "warnings": lookup.warnings})


@app.post("/api/rates/benefits")
def save_benefit_rates():
    payload = request.get_json(silent=True) or {}
    if not payload.get("year"):
        raise InvalidInputError("year", "is required")
    rates = BenefitRates.from_record(payload)
    rate_book.state.save_benefit_rates(rates)
    logger.info("Saved %s benefit rates", rates.year)
    return jsonify({"message": "Benefit rates saved.", "rates": rates.to_record()})


@app.post("/api/calculators/fixed-income/project")
def fixed_income_projection():
    payload = request.get_json(silent=True) or {}
    return jsonify(_projection_payload("fixed_income", payload))


@app.post("/api/calculators/tax-layering/project")
def tax_layering_projection():
    payload = request.get_json(silent=True) or {}
    return jsonify(_projection_payload("tax_layering", payload))


@app.post("/api/calculators/tax-layering/targets")
def tax_layering_targets():
    payload = request.get_json(silent=True) or {}
    inputs = TaxLayeringInputs.from_payload(payload, settings.default_province)
    targets = populate_target_incomes(
        inputs.base_target_income,
        inputs.target_income_inflation_rate,
        inputs.projection_years,
        inputs.start_year,
    )
    return jsonify({"target_incomes": {str(year): amount for year, amount in targets.items()}})


@app.post("/api/calculators/breakeven")
def breakeven():
    payload = request.get_json(silent=True) or {}
    return jsonify(_projection_payload("cpp_oas_breakeven", payload))


@app.post("/api/calculators/capital-assets/project")
def capital_assets_projection():
    payload = request.get_json(silent=True) or {}
    return jsonify(_projection_payload("capital_assets", payload))


@app.get("/api/calculators")
def list_calculators():
    calculators = calculator_state.list(
        calculator_type=request.args.get("type"),
        client_id=request.args.get("client_id"),
    )
    return jsonify({"calculators": calculators})


@app.post("/api/calculators")
def save_calculator():
    payload = request.get_json(silent=True) or {}
    calculator_type = str(payload.get("type", "")).strip()
    inputs = payload.get("inputs")
    if not isinstance(inputs, dict):
        raise InvalidInputError("inputs", "must be an object")
    # Parse once so bad inputs are rejected before they are stored.
    _projection_payload(calculator_type, inputs)
    name = str(payload.get("name") or inputs.get("calculator_name") or "").strip()
    client_ids = payload.get("client_ids") or inputs.get("client_ids") or []
    calc_id = calculator_state.save(
        calculator_type,
        inputs,
        name=name,
        client_ids=[str(c) for c in client_ids],
        calc_id=payload.get("id"),
    )
    logger.info("Saved %s calculator %s", calculator_type, calc_id)
    return jsonify({"message": "Calculator saved.", "calculator": calculator_state.get(calc_id)})


@app.get("/api/calculators/<calc_id>")
def get_calculator(calc_id: str):
    return jsonify(calculator_state.get(calc_id))


@app.delete("/api/calculators/<calc_id>")
def delete_calculator(calc_id: str):
    calculator_state.delete(calc_id)
    return jsonify({"message": "Calculator deleted.", "calculators": calculator_state.list()})


@app.get("/api/calculators/<calc_id>/projection")
def saved_projection(calc_id: str):
    entry = calculator_state.get(calc_id)
    result = _projection_payload(entry["type"], entry.get("inputs") or {})
    return jsonify({"calculator": entry, **result})


@app.post("/api/calculators/compare")
def compare_calculators():
    payload = request.get_json(silent=True) or {}
    projections = _named_fixed_income(payload)
    if not projections:
        raise InvalidInputError("calculator_ids", "select at least one fixed income calculator")
    return jsonify({"comparison": _frame_records(compare_fixed_income(projections))})


@app.post("/api/calculators/main-view")
def main_view():
    payload = request.get_json(silent=True) or {}
    streams = []
    for calc_id in payload.get("calculator_ids") or []:
        entry = calculator_state.get(str(calc_id))
        inputs = entry.get("inputs") or {}
        if entry["type"] == "fixed_income":
            projection, _ = _fixed_income(inputs)
            streams.append(income_stream(projection))
        elif entry["type"] == "capital_assets":
            streams.append(_capital_assets(inputs).redemptions_by_year())
        else:
            raise InvalidInputError("calculator_ids", f"{calc_id} does not produce an income stream")
    return jsonify({"income": _frame_records(combine_income_streams(streams))})


if __name__ == "__main__":
    configure_logging(settings)
    app.run(debug=False, port=settings.port)
