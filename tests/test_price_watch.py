"""
Tests for price watches: pricing, alerts, the watch routes and the cron trigger
"""
import pytest
from unittest.mock import MagicMock, patch

from database import PriceWatch
from schemas import PriceWatchCreate
from services import price_watch
from services.amadeus_client import AmadeusClient, AmadeusError


WATCH = {"origin": "YVR", "destination": "LIS", "departureDate": "2026-06-01",
         "targetPrice": 500, "email": "traveler@example.com"}


def _amadeus(flights=None, error=None):
    client = MagicMock()
    client.is_configured.return_value = True
    if error:
        client.search_flights.side_effect = error
    else:
        client.search_flights.return_value = flights or []
    return client


class TestGetCurrentPrice:
    def test_unconfigured_uses_mock_price(self):
        with patch.object(price_watch, "generate_mock_price", return_value=777) as mock_price:
            assert price_watch.get_current_price("YVR", "LIS", "2026-06-01") == 777
        mock_price.assert_called_once_with("YVR", "LIS")

    def test_cheapest_outbound_fare(self):
        client = _amadeus([
            {"flight_type": "outbound", "price": 420.0},
            {"flight_type": "outbound", "price": 380.5},
            {"flight_type": "return", "price": 10.0},
        ])
        assert price_watch.get_current_price("YVR", "LIS", "2026-06-01", client=client) == 380.5

    def test_round_trip_counts_both_legs(self):
        client = _amadeus([{"flight_type": "outbound", "price": 300.0}])
        price = price_watch.get_current_price("YVR", "LIS", "2026-06-01", "2026-06-10", client=client)
        assert price == 600.0

    def test_amadeus_error_falls_back(self):
        client = _amadeus(error=AmadeusError("boom", 500))
        with patch.object(price_watch, "generate_mock_price", return_value=650):
            assert price_watch.get_current_price("YVR", "LIS", "2026-06-01", client=client) == 650

    def test_no_offers_falls_back(self):
        with patch.object(price_watch, "generate_mock_price", return_value=640):
            assert price_watch.get_current_price("YVR", "LIS", "2026-06-01", client=_amadeus([])) == 640

    def test_unreadable_fare_falls_back(self):
        session = MagicMock()
        session.post.return_value = MagicMock(ok=True, status_code=200, **{
            "json.return_value": {"access_token": "tok", "expires_in": 1799}})
        session.get.return_value = MagicMock(ok=True, status_code=200, **{
            "json.return_value": {"data": [{"price": {"grandTotal": None}, "itineraries": []}]}})
        client = AmadeusClient("id", "secret", session=session)
        with patch.object(price_watch, "generate_mock_price", return_value=610):
            assert price_watch.get_current_price("YVR", "LIS", "2026-06-01", client=client) == 610


class TestSendPriceAlert:
    def _watch(self):
        return PriceWatch(email="traveler@example.com", origin="YVR", destination="LIS",
                          departure_date="2026-06-01", target_price=500, current_price=450)

    def test_without_key_is_logged_only(self):
        with patch.object(price_watch.resend.Emails, "send") as send:
            assert price_watch.send_price_alert(self._watch()) is False
        send.assert_not_called()

    def test_sends_email(self, monkeypatch):
        monkeypatch.setattr(price_watch, "RESEND_API_KEY", "re_test")
        with patch.object(price_watch.resend.Emails, "send") as send:
            assert price_watch.send_price_alert(self._watch(), "immediate") is True
        params = send.call_args.args[0]
        assert params["to"] == "traveler@example.com"
        assert "YVR" in params["subject"] and "LIS" in params["subject"]
        assert "saving $50" in params["html"]

    def test_send_failure_returns_false(self, monkeypatch):
        monkeypatch.setattr(price_watch, "RESEND_API_KEY", "re_test")
        with patch.object(price_watch.resend.Emails, "send", side_effect=RuntimeError("smtp down")):
            assert price_watch.send_price_alert(self._watch()) is False


class TestWatchLifecycle:
    def test_create_below_target_alerts_immediately(self, db_session):
        with patch.object(price_watch, "get_current_price", return_value=450), \
                patch.object(price_watch, "send_price_alert") as alert:
            watch = price_watch.create_watch(db_session, PriceWatchCreate.model_validate(WATCH))
        assert watch.alert_triggered is True
        alert.assert_called_once_with(watch, "immediate")

    def test_create_above_target_waits(self, db_session):
        with patch.object(price_watch, "get_current_price", return_value=650), \
                patch.object(price_watch, "send_price_alert") as alert:
            watch = price_watch.create_watch(db_session, PriceWatchCreate.model_validate(WATCH))
        assert watch.alert_triggered is False
        alert.assert_not_called()

    def test_check_updates_only_pending_watches(self, db_session):
        db_session.add_all([
            PriceWatch(id="w1", email="a@example.com", origin="YVR", destination="LIS",
                       departure_date="2026-06-01", target_price=500, current_price=650),
            PriceWatch(id="w2", email="b@example.com", origin="YVR", destination="MAD",
                       departure_date="2026-06-01", target_price=300, current_price=650),
            PriceWatch(id="w3", email="c@example.com", origin="YVR", destination="FCO",
                       departure_date="2026-06-01", target_price=900, current_price=700,
                       alert_triggered=True),
        ])
        db_session.commit()
        with patch.object(price_watch, "get_current_price", return_value=480) as pricer, \
                patch.object(price_watch, "send_price_alert") as alert:
            result = price_watch.check_price_updates(db_session)
        assert result == {"checked": 2, "alerts": 1}
        assert pricer.call_count == 2
        assert alert.call_count == 1
        assert db_session.get(PriceWatch, "w1").alert_triggered is True
        assert db_session.get(PriceWatch, "w2").alert_triggered is False
        assert db_session.get(PriceWatch, "w2").current_price == 480


class TestPriceWatchRoutes:
    def test_create_list_delete(self, client):
        with patch.object(price_watch, "get_current_price", return_value=650):
            resp = client.post("/api/price-watch", json=WATCH)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert "notify you" in data["message"]
        watch_id = data["watch"]["id"]
        assert data["watch"]["route"]["destination"] == "LIS"

        listed = client.get("/api/price-watch", params={"email": WATCH["email"]}).json()["data"]
        assert listed["count"] == 1

        other = client.get("/api/price-watch", params={"email": "other@example.com"}).json()["data"]
        assert other["count"] == 0

        resp = client.request("DELETE", "/api/price-watch",
                              json={"watchId": watch_id, "email": WATCH["email"]})
        assert resp.status_code == 200
        assert client.get("/api/price-watch", params={"email": WATCH["email"]}).json()["data"]["count"] == 0

    def test_create_already_at_target(self, client):
        with patch.object(price_watch, "get_current_price", return_value=450):
            data = client.post("/api/price-watch", json=WATCH).json()["data"]
        assert data["watch"]["alertTriggered"] is True
        assert data["message"].startswith("Great news!")

    def test_invalid_email_400(self, client):
        assert client.post("/api/price-watch", json={**WATCH, "email": "nope"}).status_code == 400
        assert client.get("/api/price-watch", params={"email": "nope"}).status_code == 400

    def test_list_requires_email(self, client):
        assert client.get("/api/price-watch").status_code == 400

    def test_delete_with_wrong_email_404(self, client):
        with patch.object(price_watch, "get_current_price", return_value=650):
            watch_id = client.post("/api/price-watch", json=WATCH).json()["data"]["watch"]["id"]
        resp = client.request("DELETE", "/api/price-watch",
                              json={"watchId": watch_id, "email": "other@example.com"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Price watch not found"


class TestCronPriceCheck:
    def test_secret_not_configured_503(self, client):
        assert client.get("/api/cron/price-check").status_code == 503

    def test_wrong_secret_401(self, client, monkeypatch):
        import main
        monkeypatch.setattr(main, "CRON_SECRET", "s3cret")
        resp = client.get("/api/cron/price-check", headers={"Authorization": "Bearer wrong"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Unauthorized"

    @pytest.mark.parametrize("method", ["GET", "POST"])
    def test_runs_check(self, client, monkeypatch, method):
        import main
        monkeypatch.setattr(main, "CRON_SECRET", "s3cret")
        with patch.object(price_watch, "check_price_updates",
                          return_value={"checked": 4, "alerts": 1}) as check:
            resp = client.request(method, "/api/cron/price-check",
                                  headers={"Authorization": "Bearer s3cret"})
        assert resp.status_code == 200
        assert resp.json()["data"]["checked"] == 4
        assert resp.json()["data"]["timestamp"]
        check.assert_called_once()
