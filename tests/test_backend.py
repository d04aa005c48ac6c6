import datetime as dt

import pytest

from advisor import backend
from advisor.engine.rate_book import RateBook
from advisor.engine.state import CalculatorState, RateState

FIXED_INCOME = {
    "current_age": 65,
    "life_expectancy": 67,
    "cpp_factor": 100,
    "inflation_rate": 0,
    "marginal_tax_rate": 0,
    "start_year": 2025,
}


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(backend, "calculator_state", CalculatorState(str(tmp_path / "calculators.json")))
    monkeypatch.setattr(backend, "rate_book", RateBook(RateState(str(tmp_path / "rates.json"))))
    backend.app.config["TESTING"] = True
    with backend.app.test_client() as test_client:
        yield test_client


def _save(client, calculator_type, inputs, name=""):
    response = client.post("/api/calculators", json={"type": calculator_type, "inputs": inputs, "name": name})
    assert response.status_code == 200
    return response.get_json()["calculator"]["id"]


def test_health_and_cors(client):
    response = client.get("/api/health")

    assert response.get_json() == {"status": "ok"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_schema_lists_calculators(client):
    calculators = client.get("/api/schema").get_json()["calculators"]

    assert set(calculators) == {"fixed_income", "tax_layering", "cpp_oas_breakeven", "capital_assets"}
    assert calculators["fixed_income"]["defaults"]["life_expectancy"] == 90


def test_fixed_income_projection(client):
    response = client.post("/api/calculators/fixed-income/project", json=FIXED_INCOME)

    body = response.get_json()
    assert response.status_code == 200
    assert [row["age"] for row in body["projection"]] == [65, 66, 67]
    assert body["projection"][0]["cpp"] == 17478
    assert body["summary"]["total_years"] == 3
    assert body["warnings"]


def test_invalid_input_returns_400(client):
    response = client.post("/api/calculators/fixed-income/project", json={"current_age": 95, "life_expectancy": 90})

    assert response.status_code == 400
    assert "current_age" in response.get_json()["error"]


def test_breakeven_requires_current_age(client):
    response = client.post("/api/calculators/breakeven", json={})

    assert response.status_code == 400


def test_breakeven_uses_latest_rates(client):
    response = client.post("/api/calculators/breakeven", json={"current_age": 60})

    body = response.get_json()
    assert response.status_code == 200
    assert body["break_even"]["cpp"] is not None
    assert body["rows"][0]["age"] == 60


def test_saved_calculator_lifecycle(client):
    calc_id = _save(client, "fixed_income", FIXED_INCOME, name="Base")

    listed = client.get("/api/calculators?type=fixed_income").get_json()["calculators"]
    assert [entry["id"] for entry in listed] == [calc_id]

    loaded = client.get(f"/api/calculators/{calc_id}").get_json()
    assert loaded["name"] == "Base"

    projection = client.get(f"/api/calculators/{calc_id}/projection").get_json()
    assert len(projection["projection"]) == 3

    assert client.delete(f"/api/calculators/{calc_id}").status_code == 200
    assert client.get(f"/api/calculators/{calc_id}").status_code == 404


def test_saving_bad_inputs_is_rejected(client):
    response = client.post(
        "/api/calculators",
        json={"type": "capital_assets", "inputs": {"account_type": "crypto"}},
    )

    assert response.status_code == 400
    assert client.get("/api/calculators").get_json()["calculators"] == []


def test_tax_layering_pulls_linked_calculators(client):
    fixed_id = _save(client, "fixed_income", FIXED_INCOME)
    assets_id = _save(
        client,
        "capital_assets",
        {
            "account_type": "registered",
            "initial_investment": 100000,
            "projection_years": 2,
            "start_calendar_year": 2025,
            "return_periods": [{"start_year": 0, "end_year": 0, "return_rate": 0}],
            "redemption_periods": [{"start_year": 1, "annual_redemption": 10000}],
        },
    )

    response = client.post(
        "/api/calculators/tax-layering/project",
        json={
            "start_year": 2025,
            "projection_years": 2,
            "linked_fixed_income_calc_ids": [fixed_id],
            "linked_capital_assets_calc_id": assets_id,
        },
    )

    body = response.get_json()
    assert response.status_code == 200
    first, second = body["projection"]
    assert first["cpp"] == 17478
    assert first["oas"] == 8814
    assert first["available_registered"] == 100000
    assert first["registered_withdrawal"] == 0
    assert second["registered_withdrawal"] == 10000
    assert body["tax_year"] == 2025


def test_tax_layering_unknown_link_is_404(client):
    response = client.post(
        "/api/calculators/tax-layering/project",
        json={"start_year": 2025, "linked_fixed_income_calc_ids": ["missing"]},
    )

    assert response.status_code == 404


def test_tax_layering_targets(client):
    response = client.post(
        "/api/calculators/tax-layering/targets",
        json={"base_target_income": 100000, "target_income_inflation_rate": 2, "projection_years": 2, "start_year": 2025},
    )

    assert response.get_json()["target_incomes"] == {"2025": 100000, "2026": 102000}


def test_rate_endpoints(client):
    missing = client.get("/api/rates/tax-brackets?year=2026&province=ON").get_json()
    assert missing["year"] == 2025
    assert missing["warnings"]

    saved = client.post(
        "/api/rates/tax-brackets",
        json={"year": 2026, "province": "ON", "brackets": [{"min_income": 0, "max_income": None, "rate": 30}]},
    )
    assert saved.status_code == 200

    found = client.get("/api/rates/tax-brackets?year=2026&province=ON").get_json()
    assert found["warnings"] == []
    assert found["table"]["brackets"] == [{"min_income": 0.0, "max_income": None, "rate": 30.0}]

    client.post("/api/rates/benefits", json={"year": 2026, "max_cpp_annual": 18000})
    rates = client.get("/api/rates/benefits?year=2026").get_json()
    assert rates["rates"]["max_cpp_annual"] == 18000
    assert rates["warnings"] == []


def test_rate_lookup_for_unknown_province_is_404(client):
    response = client.get("/api/rates/tax-brackets?year=2025&province=QC")

    assert response.status_code == 404


def test_compare_and_main_view(client):
    base_id = _save(client, "fixed_income", FIXED_INCOME, name="Base")

    comparison = client.post(
        "/api/calculators/compare",
        json={"calculator_ids": [base_id], "scenarios": [{"name": "Later", "inputs": {**FIXED_INCOME, "cpp_start_age": 67}}]},
    ).get_json()["comparison"]
    assert [row["scenario"] for row in comparison] == ["Base", "Later"]

    income = client.post("/api/calculators/main-view", json={"calculator_ids": [base_id]}).get_json()["income"]
    assert [row["year"] for row in income] == [2025, 2026, 2027]
    assert income[0]["total_income"] == 26293


def test_compare_requires_calculators(client):
    assert client.post("/api/calculators/compare", json={}).status_code == 400


@pytest.mark.parametrize(
    "inputs",
    [
        {"lump_sums": {"year1": {"redemption": 100}}},
        {"redemption_periods": [["not", "a", "period"]]},
    ],
)
def test_malformed_capital_assets_rows_return_json_400(client, inputs):
    response = client.post("/api/calculators/capital-assets/project", json=inputs)

    assert response.status_code == 400
    assert "error" in response.get_json()


def test_tax_layering_returns_lifetime_summary(client):
    response = client.post(
        "/api/calculators/tax-layering/project",
        json={
            "start_year": 2025,
            "projection_years": 2,
            "overrides": {"2025": {"registered_withdrawal": 40000}, "2026": {"registered_withdrawal": 40000}},
        },
    )

    body = response.get_json()
    summary = body["summary"]
    assert summary["total_lifetime_gross_income"] == 80000
    assert summary["total_lifetime_tax_paid"] == pytest.approx(sum(row["total_tax"] for row in body["projection"]))
    assert summary["overall_effective_tax_rate"] == pytest.approx(summary["total_lifetime_tax_paid"] / 800, abs=1e-4)
    assert summary["total_lifetime_oas_clawback"] == 0


def test_tax_brackets_default_to_current_year(client):
    response = client.get("/api/rates/tax-brackets?province=ON")

    body = response.get_json()
    assert response.status_code == 200
    assert body["table"]["brackets"]
    if body["year"] != dt.date.today().year:
        assert body["warnings"]


def test_compare_keeps_calculators_with_the_same_name(client):
    first = _save(client, "fixed_income", FIXED_INCOME, name="Plan")
    second = _save(client, "fixed_income", {**FIXED_INCOME, "cpp_start_age": 70}, name="Plan")

    comparison = client.post("/api/calculators/compare", json={"calculator_ids": [first, second]}).get_json()["comparison"]

    assert sorted({row["scenario"] for row in comparison}) == ["Plan", f"Plan ({second})"]
