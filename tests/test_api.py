from datetime import datetime

import pytest

from api.app import create_app

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture
def client(tmp_path):
    app = create_app(tmp_path / "data", clock=lambda: FIXED_NOW)
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def _add(client, **overrides):
    payload = {"amount": 42.5, "date": "2024-03-15", "category": "Food", "note": "Lunch "}
    payload.update(overrides)
    return client.post("/expenses", json=payload)


def test_options(client):
    body = client.get("/options").get_json()
    assert body["categories"][0] == "Food"
    assert {"symbol": "£", "code": "GBP"} in body["currencies"]
    assert body["themes"] == ["light", "dark", "system"]


def test_create_and_list_expenses(client):
    response = _add(client)
    assert response.status_code == 201
    created = response.get_json()
    assert created["note"] == "Lunch"

    _add(client, amount=5, date="2024-03-20", note="")
    _add(client, amount=9, date="2024-02-01")

    items = client.get("/expenses").get_json()["items"]
    assert [item["date"] for item in items] == ["2024-03-20", "2024-03-15"]

    february = client.get("/expenses?month=2024-02").get_json()["items"]
    assert len(february) == 1


def test_create_rejects_invalid_payload(client):
    response = _add(client, amount=0)
    assert response.status_code == 400
    assert response.get_json()["error"] == "Validation error"

    response = client.post("/expenses", data="amount=3", content_type="text/plain")
    assert response.status_code == 400


def test_delete_expense(client):
    expense_id = _add(client).get_json()["id"]
    assert client.delete(f"/expenses/{expense_id}").status_code == 204
    assert client.get("/expenses").get_json()["items"] == []
    assert client.delete(f"/expenses/{expense_id}").status_code == 204


def test_preferences(client):
    assert client.get("/preferences").get_json() == {
        "currency": "£",
        "monthly_budget": "",
        "theme": "system",
    }
    response = client.put("/preferences", json={"currency": "$", "monthly_budget": "100"})
    assert response.get_json()["currency"] == "$"

    assert client.put("/preferences", json={"theme": "neon"}).status_code == 400


def test_summary_with_budget(client):
    client.put("/preferences", json={"monthly_budget": "100"})
    _add(client, amount=150.25)

    summary = client.get("/summary").get_json()
    assert summary["month"] == "2024-03"
    assert summary["total_today"] == 150.25
    assert summary["budget_exceeded"] is True
    assert summary["formatted"]["total_month"] == "£ 150.25"
    assert summary["by_category"]["Rent"] == 0.0

    assert client.get("/summary?month=2024-13").status_code == 400


def test_series_and_chart(client):
    _add(client, amount=10, date="2024-03-01")
    _add(client, amount=5, date="2024-03-02")

    series = client.get("/series/daily").get_json()
    assert series["labels"] == ["2024-03-01", "2024-03-02"]
    assert series["values"] == [10.0, 5.0]

    response = client.get("/charts/category.png")
    assert response.status_code == 200
    assert response.mimetype == "image/png"

    assert client.get("/series/radar").status_code == 400


def test_exports(client):
    assert client.get("/export/csv").status_code == 204

    _add(client)
    response = client.get("/export/csv")
    assert response.status_code == 200
    assert "expenses.csv" in response.headers["Content-Disposition"]
    assert response.data.decode("utf-8").startswith("Date,Category,Note,Amount")

    assert client.get("/export/xlsx").status_code == 200
    pdf = client.get("/export/pdf")
    assert pdf.data.startswith(b"%PDF")

    assert client.get("/export/docx").status_code == 400


def test_state_survives_restart(tmp_path):
    first = create_app(tmp_path / "data", clock=lambda: FIXED_NOW).test_client()
    first.post("/expenses", json={"amount": 3, "date": "2024-03-01", "category": "Bills"})
    first.put("/preferences", json={"theme": "dark"})

    second = create_app(tmp_path / "data", clock=lambda: FIXED_NOW).test_client()
    assert len(second.get("/expenses").get_json()["items"]) == 1
    assert second.get("/preferences").get_json()["theme"] == "dark"
