# components/forms.py
from __future__ import annotations

from typing import Any, Iterable, List

import dash_bootstrap_components as dbc
from dash import dash_table, dcc, html

from advisor.data_model import CalculatorSchema, FieldDefinition
from advisor.formatting import format_currency, format_percentage

INPUT_TYPES = {"number": "number", "currency": "number", "percentage": "number", "text": "text"}
CURRENCY_COLUMNS = {
    "cpp",
    "oas",
    "bridge",
    "pension",
    "other1",
    "other2",
    "total_income",
    "tax_estimate",
    "after_tax_income",
    "inflation_adjusted_income",
    "cumulative_income",
}


def field_id(schema: CalculatorSchema, field: FieldDefinition) -> str:
    return f"{schema.name}-{field.field}"


def _control(schema: CalculatorSchema, field: FieldDefinition):
    control_id = field_id(schema, field)
    if field.kind == "select":
        return dcc.Dropdown(
            id=control_id,
            options=[{"label": opt, "value": opt} for opt in field.options or []],
            value=field.default,
            clearable=False,
        )
    if field.kind == "checkbox":
        return dbc.Checkbox(id=control_id, value=bool(field.default), label=field.label)
    return dbc.Input(
        id=control_id,
        type=INPUT_TYPES.get(field.kind, "text"),
        value=field.default,
        min=field.min_value,
        step=field.step if field.step is not None else "any",
        debounce=True,
    )


def build_form(schema: CalculatorSchema, submit_label: str = "Calculate"):
    rows = []
    for field in schema.fields:
        label = [] if field.kind == "checkbox" else [dbc.Label(field.label, html_for=field_id(schema, field))]
        hint = [dbc.FormText(field.help)] if field.help else []
        rows.append(html.Div(label + [_control(schema, field)] + hint, className="mb-2"))
    return dbc.Card(
        [
            html.H4(schema.title, className="card-title"),
            *rows,
            html.Hr(),
            dbc.Button(submit_label, id=f"{schema.name}-submit", color="primary", className="w-100"),
        ],
        body=True,
    )


def form_values(schema: CalculatorSchema, values: Iterable[Any]) -> dict[str, Any]:
    """Zip callback State values back into a payload keyed by field name."""
    return {field.field: value for field, value in zip(schema.fields, values)}


def display_records(records: List[dict]) -> List[dict]:
    formatted = []
    for row in records:
        formatted.append(
            {key: format_currency(value) if key in CURRENCY_COLUMNS else value for key, value in row.items()}
        )
    return formatted


def projection_table(id_value: str, columns: List[str]):
    table = dash_table.DataTable(
        id=id_value,
        data=[],
        columns=[{"name": col.replace("_", " ").title(), "id": col} for col in columns],
        style_table={"height": "auto", "overflowX": "auto"},
        style_header={"backgroundColor": "#222", "color": "#eee", "fontWeight": "bold"},
        style_data={"backgroundColor": "#111", "color": "#eee"},
        page_size=25,
        fill_width=True,
    )
    return html.Div(table, style={"maxHeight": "640px", "overflowY": "auto"})


def summary_badges(summary: dict | None, tax_rate: float | None = None):
    if not summary:
        return []
    items = [
        ("Lifetime Income", format_currency(summary.get("total_lifetime_income"))),
        ("Average / Year", format_currency(summary.get("average_annual_income"))),
        ("Peak Year", format_currency(summary.get("peak_annual_income"))),
        ("Taxes", format_currency(summary.get("total_taxes_paid"))),
    ]
    if tax_rate is not None:
        items.append(("Tax Rate", format_percentage(tax_rate)))
    return [
        html.Span(f"{label}: {value}", className="badge bg-info text-dark me-2")
        for label, value in items
    ]
