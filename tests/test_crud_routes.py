"""
Tests for profile, preferences, budget trips, expenses and the travel wallet
"""
import pytest


@pytest.fixture
def trip(client, auth_headers):
    resp = client.post("/api/budget", json={
        "destination": "Lisbon", "startDate": "2026-06-01", "endDate": "2026-06-08",
        "budget": 2000, "currency": "EUR",
    }, headers=auth_headers)
    assert resp.status_code == 200
    return resp.json()["data"]


def _expense(trip_id, amount, category, date="2026-06-02"):
    return {"tripId": trip_id, "amount": amount, "category": category,
            "description": f"{category} spend", "date": date}


class TestHealth:
    def test_health_reports_providers(self, client):
        data = client.get("/health").json()["data"]
        assert data["status"] == "ok"
        assert data["providers"]["ai"] is False
        assert data["providers"]["amadeus"] is False
        assert data["providers"]["stripe"] is False


class TestProfile:
    def test_get_and_update(self, client, auth_headers):
        profile = client.get("/api/profile", headers=auth_headers).json()["data"]
        assert profile["id"] == "user-1"
        assert profile["plan"] == "free"

        resp = client.put("/api/profile", json={"fullName": "Ana Traveler"}, headers=auth_headers)
        assert resp.json()["data"]["fullName"] == "Ana Traveler"
        assert resp.json()["data"]["email"] == "traveler@example.com"

    def test_preferences_default_then_upsert(self, client, auth_headers):
        prefs = client.get("/api/preferences", headers=auth_headers).json()["data"]
        assert prefs["budgetRange"] == "medium"
        assert prefs["userId"] == "user-1"

        client.put("/api/preferences", json={"travelStyle": ["foodie"]}, headers=auth_headers)
        resp = client.put("/api/preferences", json={"budgetRange": "luxury"}, headers=auth_headers)
        data = resp.json()["data"]
        assert data["travelStyle"] == ["foodie"]
        assert data["budgetRange"] == "luxury"


class TestBudget:
    def test_create_and_list(self, client, auth_headers, trip):
        assert trip["destination"] == "Lisbon"
        assert trip["budget"] == 2000
        listed = client.get("/api/budget", headers=auth_headers).json()["data"]
        assert [t["id"] for t in listed] == [trip["id"]]

    def test_non_positive_budget_400(self, client, auth_headers):
        resp = client.post("/api/budget", json={
            "destination": "Lisbon", "startDate": "2026-06-01", "endDate": "2026-06-08", "budget": 0,
        }, headers=auth_headers)
        assert resp.status_code == 400

    def test_update(self, client, auth_headers, trip):
        resp = client.put("/api/budget", json={"id": trip["id"], "budget": 2500}, headers=auth_headers)
        assert resp.json()["data"]["budget"] == 2500
        assert resp.json()["data"]["destination"] == "Lisbon"

    def test_update_other_users_trip_404(self, client, make_headers, trip):
        resp = client.put("/api/budget", json={"id": trip["id"], "budget": 1},
                          headers=make_headers("intruder"))
        assert resp.status_code == 404


class TestTripSummary:
    def test_summary_totals_by_category(self, client, auth_headers, trip):
        client.post("/api/expenses", json=_expense(trip["id"], 120.5, "food"), headers=auth_headers)
        client.post("/api/expenses", json=_expense(trip["id"], 79.5, "food", "2026-06-03"),
                    headers=auth_headers)
        client.post("/api/expenses", json=_expense(trip["id"], 300, "lodging"), headers=auth_headers)

        data = client.get(f"/api/trips/{trip['id']}", headers=auth_headers).json()["data"]
        assert len(data["expenses"]) == 3
        assert data["expenses"][0]["date"] == "2026-06-03"
        assert data["summary"] == {
            "budget": 2000, "spent": 500.0, "remaining": 1500.0, "percentUsed": 25.0,
            "byCategory": {"food": 200.0, "lodging": 300.0},
        }

    def test_delete_trip_removes_expenses(self, client, auth_headers, trip):
        client.post("/api/expenses", json=_expense(trip["id"], 10, "food"), headers=auth_headers)
        assert client.delete(f"/api/trips/{trip['id']}", headers=auth_headers).status_code == 200
        assert client.get(f"/api/trips/{trip['id']}", headers=auth_headers).status_code == 404
        assert client.get("/api/expenses", headers=auth_headers).json()["data"] == []

    def test_other_user_cannot_read_trip(self, client, make_headers, trip):
        assert client.get(f"/api/trips/{trip['id']}", headers=make_headers("intruder")).status_code == 404


class TestExpenses:
    def test_expense_on_unknown_trip_404(self, client, auth_headers):
        resp = client.post("/api/expenses", json=_expense("nope", 10, "food"), headers=auth_headers)
        assert resp.status_code == 404

    def test_filter_by_trip(self, client, auth_headers, trip):
        other = client.post("/api/budget", json={
            "destination": "Porto", "startDate": "2026-07-01", "endDate": "2026-07-03", "budget": 500,
        }, headers=auth_headers).json()["data"]
        client.post("/api/expenses", json=_expense(trip["id"], 10, "food"), headers=auth_headers)
        client.post("/api/expenses", json=_expense(other["id"], 20, "food"), headers=auth_headers)
        listed = client.get("/api/expenses", params={"tripId": other["id"]}, headers=auth_headers).json()["data"]
        assert [e["amount"] for e in listed] == [20]

    def test_update_and_delete(self, client, auth_headers, trip):
        expense = client.post("/api/expenses", json=_expense(trip["id"], 10, "food"),
                              headers=auth_headers).json()["data"]
        resp = client.put("/api/expenses", json={"id": expense["id"], "amount": 15}, headers=auth_headers)
        assert resp.json()["data"]["amount"] == 15

        resp = client.delete("/api/expenses", params={"id": expense["id"]}, headers=auth_headers)
        assert resp.status_code == 200
        assert client.get("/api/expenses", headers=auth_headers).json()["data"] == []

    def test_delete_without_id_400(self, client, auth_headers):
        resp = client.delete("/api/expenses", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Expense ID required"

    def test_other_user_cannot_touch_expense(self, client, auth_headers, make_headers, trip):
        expense = client.post("/api/expenses", json=_expense(trip["id"], 10, "food"),
                              headers=auth_headers).json()["data"]
        intruder = make_headers("intruder")
        assert client.put("/api/expenses", json={"id": expense["id"], "amount": 1},
                          headers=intruder).status_code == 404
        assert client.delete("/api/expenses", params={"id": expense["id"]},
                             headers=intruder).status_code == 404
        assert client.get("/api/expenses", headers=auth_headers).json()["data"][0]["amount"] == 10


class TestTravelWallet:
    def test_add_and_list(self, client, auth_headers, trip):
        resp = client.post("/api/travel-wallet", json={
            "tripId": trip["id"], "title": "TP 254 boarding pass", "category": "boarding_pass",
            "startTs": "2026-06-01T10:00:00", "qrText": "M1TRAVELER/ANA",
        }, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["isSensitive"] is False

        listed = client.get("/api/travel-wallet", params={"tripId": trip["id"]},
                            headers=auth_headers).json()["data"]
        assert [i["title"] for i in listed] == ["TP 254 boarding pass"]

    def test_unknown_category_400(self, client, auth_headers, trip):
        resp = client.post("/api/travel-wallet", json={
            "tripId": trip["id"], "title": "Coupon", "category": "coupon",
        }, headers=auth_headers)
        assert resp.status_code == 400

    def test_list_requires_trip_id(self, client, auth_headers):
        resp = client.get("/api/travel-wallet", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Trip ID is required"
