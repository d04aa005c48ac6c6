import logging

import dash
import dash_bootstrap_components as dbc
from dash import Input, Output, State, html

from advisor.config import Settings, configure_logging
from advisor.data_model import FixedIncomeInputs, FixedIncomeSchema
from advisor.engine.fixed_income import FixedIncomeRow, project_fixed_income
from advisor.engine.rate_book import RateBook
from advisor.engine.state import RateState
from advisor.exceptions import AdvisorError
from components.forms import (
    build_form,
    display_records,
    field_id,
    form_values,
    projection_table,
    summary_badges,
)

logger = logging.getLogger(__name__)

settings = Settings.from_env()
SCHEMA = FixedIncomeSchema(settings.preferred_inflation_rate)
RATE_BOOK = RateBook(RateState(settings.rates_path))
COLUMNS = list(FixedIncomeRow.__dataclass_fields__)

app = dash.Dash(__name__, external_stylesheets=[dbc.themes.DARKLY])

app.layout = dbc.Container(
    dbc.Row(
        [
            dbc.Col(build_form(SCHEMA, submit_label="Project Income"), md=3),
            dbc.Col(
                [
                    html.H3("Fixed Income Projection"),
                    dbc.Alert(id="fixed-income-message", is_open=False, color="warning"),
                    html.Div(id="fixed-income-summary", className="mb-3"),
                    projection_table("fixed-income-table", COLUMNS),
                ],
                md=9,
            ),
        ],
        className="mt-3",
    ),
    fluid=True,
)


@app.callback(
    Output("fixed-income-table", "data"),
    Output("fixed-income-summary", "children"),
    Output("fixed-income-message", "children"),
    Output("fixed-income-message", "is_open"),
    Input(f"{SCHEMA.name}-submit", "n_clicks"),
    [State(field_id(SCHEMA, field), "value") for field in SCHEMA.fields],
    prevent_initial_call=True,
)
def run_projection(_n_clicks, *values):
    payload = form_values(SCHEMA, values)
    try:
        inputs = FixedIncomeInputs.from_payload(payload, settings.preferred_inflation_rate)
        lookup = RATE_BOOK.benefit_rates(inputs.start_year)
        projection = project_fixed_income(inputs, lookup.value)
    except AdvisorError as exc:
        logger.warning("Fixed income projection failed: %s", exc)
        return [], [], str(exc), True
    result = projection.to_payload()
    message = " ".join(lookup.warnings)
    return (
        display_records(result["projection"]),
        summary_badges(result["summary"], inputs.marginal_tax_rate),
        message,
        bool(message),
    )


if __name__ == "__main__":
    configure_logging(settings)
    app.run(debug=False)
