from app.services.validation import ValidationService

from conftest import OTHER, OWNER

EXPORT = {
    "budgets": [
        {
            "id": "old-budget",
            "name": "January",
            "dateCreated": "2025-01-03T10:00:00.000Z",
            "startingAmount": 2500,
            "lineItems": [
                {"id": "i1", "status": "complete", "name": "Rent", "amount": -1200, "isRecurring": True},
                {"id": "i2", "status": "incomplete", "name": "Dinner", "amount": -80, "isMarked": True},
            ],
        }
    ],
    "recurringExpenses": [
        {"id": "rec-1", "name": "Rent", "amount": -1200},
        {"id": "rec-2", "name": "Streaming", "amount": -15, "isAutomatic": True, "order": 0},
    ],
}


def test_validation_reports_every_error():
    ok, errors = ValidationService().validate(
        {"budgets": [{"name": "", "startingAmount": "lots", "lineItems": []}]}
    )
    assert ok is False
    paths = [error["path"] for error in errors]
    assert "/budgets/0" in paths
    assert "/budgets/0/name" in paths
    assert "/budgets/0/startingAmount" in paths


def test_unparseable_date_is_reported():
    payload = {"budgets": [{**EXPORT["budgets"][0], "dateCreated": "sometime in 2025"}]}
    ok, errors = ValidationService().validate(payload)
    assert ok is False
    assert errors[0]["path"] == "/budgets/0/dateCreated"


def test_import_creates_budgets_and_templates(client):
    response = client.post("/v1/import/legacy", json=EXPORT, headers=OWNER)
    assert response.status_code == 200
    assert response.json() == {"budgets": 1, "recurring_expenses": 2}

    budgets = client.get("/v1/budgets", headers=OWNER).json()
    assert len(budgets) == 1
    assert budgets[0]["id"] != "old-budget"
    assert budgets[0]["date_created"].startswith("2025-01-03T10:00:00")
    assert budgets[0]["totals"] == {"unmarked_total": 1300.0, "final_total": 1220.0}

    templates = client.get("/v1/recurring-expenses", headers=OWNER).json()
    assert [(item["id"], item["order"]) for item in templates] == [("rec-1", 0), ("rec-2", 0)]


def test_reimport_updates_templates_in_place(client):
    client.post("/v1/import/legacy", json={"recurringExpenses": EXPORT["recurringExpenses"]}, headers=OWNER)
    changed = {"recurringExpenses": [{"id": "rec-1", "name": "Rent", "amount": -1300}]}
    client.post("/v1/import/legacy", json=changed, headers=OWNER)

    templates = client.get("/v1/recurring-expenses", headers=OWNER).json()
    assert len(templates) == 2
    assert next(item for item in templates if item["id"] == "rec-1")["amount"] == -1300.0


def test_import_is_not_capped_by_plan_limits(client):
    expenses = [{"id": f"rec-{n}", "name": f"Bill {n}", "amount": -n} for n in range(8)]
    response = client.post("/v1/import/legacy", json={"recurringExpenses": expenses}, headers=OWNER)
    assert response.status_code == 200
    assert len(client.get("/v1/recurring-expenses", headers=OWNER).json()) == 8


def test_invalid_export_writes_nothing(client):
    response = client.post("/v1/import/legacy", json={"budgets": [{"name": "x"}]}, headers=OWNER)
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "INVALID_IMPORT"
    assert error["details"]["errors"]
    assert client.get("/v1/budgets", headers=OWNER).json() == []


def test_foreign_template_id_is_refused(client):
    client.post("/v1/import/legacy", json={"recurringExpenses": [{"id": "rec-1", "name": "Rent", "amount": -1}]}, headers=OWNER)

    response = client.post("/v1/import/legacy", json=EXPORT, headers=OTHER)
    assert response.status_code == 422
    assert client.get("/v1/budgets", headers=OTHER).json() == []
