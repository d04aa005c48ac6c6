from advisor.data_model import CapitalAssetsSchema, FixedIncomeSchema
from components.forms import build_form, display_records, field_id, form_values

SCHEMA = FixedIncomeSchema()


def _ids(component):
    found = []
    if getattr(component, "id", None):
        found.append(component.id)
    children = getattr(component, "children", None)
    if isinstance(children, (list, tuple)):
        for child in children:
            found.extend(_ids(child))
    elif children is not None and hasattr(children, "to_plotly_json"):
        found.extend(_ids(children))
    return found


def test_form_has_one_control_per_field():
    ids = _ids(build_form(SCHEMA))

    for field in SCHEMA.fields:
        assert field_id(SCHEMA, field) in ids
    assert "fixed_income-submit" in ids


def test_select_and_checkbox_fields_render():
    schema = CapitalAssetsSchema()

    ids = _ids(build_form(schema))

    assert "capital_assets-account_type" in ids
    assert "capital_assets-apply_mer" in ids


def test_form_values_zip_back_to_payload():
    values = [field.default for field in SCHEMA.fields]

    payload = form_values(SCHEMA, values)

    assert payload["life_expectancy"] == 90
    assert payload == SCHEMA.default_inputs()


def test_display_records_formats_money_columns():
    rows = display_records([{"year": 2025, "age": 65, "cpp": 17478, "total_income": 26293}])

    assert rows == [{"year": 2025, "age": 65, "cpp": "$17,478", "total_income": "$26,293"}]
