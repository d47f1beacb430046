from datetime import datetime, timezone

from conftest import ADMIN, OTHER, OWNER


def test_non_admins_are_forbidden(client):
    response = client.get("/v1/admin/access", headers=OWNER)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"

    no_email = client.get("/v1/admin/stats", headers={"X-User-Id": "admin-1"})
    assert no_email.status_code == 403


def test_admin_allow_list_is_case_insensitive(client):
    response = client.get("/v1/admin/access", headers={"X-User-Id": "admin-1", "X-User-Email": "ADMIN@example.com"})
    assert response.status_code == 200
    assert response.json() == {"ok": True, "uid": "admin-1"}


def test_client_list_includes_limits_and_usage(client):
    client.post("/v1/clients", json={"name": "Acme", "email": "ap@acme.test"}, headers=OWNER)
    client.get("/v1/budgets", headers=OTHER)

    response = client.get("/v1/admin/clients", headers=ADMIN)
    assert response.status_code == 200
    users = {item["uid"]: item for item in response.json()["clients"]}
    assert set(users) == {"user-1", "user-2", "admin-1"}
    assert users["user-1"]["email"] == "owner@example.com"
    assert users["user-1"]["limits"]["plan"] == "Free"
    assert users["user-1"]["usage"]["clients"] == 1


def test_admin_can_change_a_users_limits(client):
    client.get("/v1/clients", headers=OWNER)

    response = client.put("/v1/admin/clients/user-1/limits", json={"plan": "Basic", "clients": 3}, headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["clients"] == 3
    assert response.json()["invoices_per_month"] == 10

    for name in ("A", "B", "C"):
        created = client.post("/v1/clients", json={"name": name, "email": f"{name.lower()}@x.test"}, headers=OWNER)
        assert created.status_code == 201
    refused = client.post("/v1/clients", json={"name": "D", "email": "d@x.test"}, headers=OWNER)
    assert refused.status_code == 403


def test_limits_for_unknown_user(client):
    response = client.put("/v1/admin/clients/ghost/limits", json={"plan": "Pro"}, headers=ADMIN)
    assert response.status_code == 404


def test_dashboard_stats_windows(client, clock):
    clock.now = datetime(2026, 2, 20, 12, 0, tzinfo=timezone.utc)
    client.get("/v1/budgets", headers={"X-User-Id": "month-user"})
    clock.now = datetime(2026, 3, 12, 12, 0, tzinfo=timezone.utc)
    client.get("/v1/budgets", headers={"X-User-Id": "week-user"})
    clock.now = datetime(2026, 3, 15, 8, 0, tzinfo=timezone.utc)
    client.get("/v1/budgets", headers=OWNER)

    clock.now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
    response = client.get("/v1/admin/stats", headers=ADMIN)
    assert response.status_code == 200
    assert response.json() == {
        "total_users": 4,
        "logged_in_today": 2,
        "logged_in_this_week": 3,
        "logged_in_this_month": 4,
    }
