"""
Tests for travel hacks, affiliate links and TripPreferences
"""
import pytest

from schemas import SuggestionRequest
from services import affiliate
from services.travel_hacks import MAX_HACKS, best_booking_time, generate_travel_hacks
from TripPreferences import TripPreferences


class TestTravelHacks:
    def test_long_haul_budget_route(self):
        hacks = generate_travel_hacks("Vancouver", "Madrid, Spain", budget=2500)
        types = [h.type for h in hacks]
        assert types[0] == "low_cost_carrier"
        assert "split_ticket" in types
        assert "error_fare" in types
        assert "hidden_1" not in [h.id for h in hacks]
        assert hacks[-1].id == "spain_1"
        assert len(hacks) <= MAX_HACKS

    def test_short_route_without_budget(self):
        hacks = generate_travel_hacks("Toronto", "Lisbon")
        assert [h.id for h in hacks] == ["lcc_1", "hidden_1", "timing_1"]

    def test_month_adds_timing_tip(self):
        timing = generate_travel_hacks("Toronto", "Lisbon", month="May")[-1]
        assert timing.instructions[-1] == "Travelling in May: compare fares a week either side"

    def test_booking_window(self):
        assert best_booking_time("Tokyo, Japan").startswith("12-16 weeks")
        assert best_booking_time("Reykjavik") == "8-10 weeks before departure"

    def test_serializes_for_the_api(self):
        hack = generate_travel_hacks("Toronto", "Lisbon")[0].to_dict()
        assert hack["savings"] == {"amount": 200, "percentage": 35}

    def test_route(self, client):
        resp = client.post("/api/hacks", json={"origin": "Vancouver", "destination": "Madrid",
                                               "budget": 2000})
        data = resp.json()["data"]
        assert data["total"] == len(data["hacks"])
        assert data["potentialSavings"] == sum(h["savings"]["amount"] for h in data["hacks"])

    def test_route_echoes_request_context(self, client):
        data = client.post("/api/hacks", json={"origin": "Toronto", "destination": "Lisbon",
                                               "month": "May"}).json()["data"]
        assert data["origin"] == "Toronto"
        assert data["destination"] == "Lisbon"
        assert data["month"] == "May"
        assert data["generatedAt"]

    def test_route_requires_origin(self, client):
        assert client.post("/api/hacks", json={"destination": "Madrid"}).status_code == 400


class TestAffiliateLinks:
    def test_unknown_provider(self):
        assert affiliate.build_affiliate_link("nobody", "flight") == "https://www.google.com/travel"

    def test_disabled_returns_homepage(self, monkeypatch):
        monkeypatch.setattr(affiliate, "AFFILIATES_ENABLED", False)
        assert affiliate.build_affiliate_link("kayak", "flight", "YVR", "LIS", "2026-06-01") \
            == "https://www.kayak.com"

    def test_kayak_path(self, monkeypatch):
        monkeypatch.setattr(affiliate, "AFFILIATES_ENABLED", True)
        url = affiliate.build_affiliate_link("kayak", "flight", "YVR", "LIS", "2026-06-01", "2026-06-10")
        assert url.startswith("https://www.kayak.com/flights/YVR-LIS/20260601/20260610?")
        assert "utm_source=where-next-ai" in url
        assert "utm_campaign=flight_search" in url

    def test_skyscanner_short_dates(self, monkeypatch):
        monkeypatch.setattr(affiliate, "AFFILIATES_ENABLED", True)
        url = affiliate.build_affiliate_link("skyscanner", "flight", "YVR", "LIS", "2026-06-01")
        assert "/transport/flights/YVR/LIS/260601?" in url

    def test_booking_hotel_params(self, monkeypatch):
        monkeypatch.setattr(affiliate, "AFFILIATES_ENABLED", True)
        monkeypatch.setenv("BOOKING_AFFILIATE_ID", "aff_42")
        url = affiliate.build_affiliate_link("booking", "hotel", destination="Lisbon",
                                             departure="2026-06-01", return_date="2026-06-04",
                                             adults=2, custom_params={"utm_source": "newsletter"})
        assert "ss=Lisbon" in url
        assert "group_adults=2" in url
        assert "aid=aff_42" in url
        assert "utm_source=newsletter" in url

    @pytest.mark.parametrize("provider, value, expected", [
        ("expedia", 1000, 40.0),
        ("skyscanner", 200, 3.0),
        ("booking", 1000, 25.0),
        ("nobody", 1000, 0.0),
    ])
    def test_commission(self, provider, value, expected):
        assert affiliate.estimate_commission(provider, value) == expected

    def test_partner_deep_links(self):
        url = affiliate.build_flight_url("TP", "TP254", "YVR", "LIS", 612)
        assert "/flight?" in url
        assert "carrier=TP" in url
        assert "/activity?" in affiliate.build_activity_url("a1", "Lisbon", 30)

    def test_route(self, client):
        resp = client.get("/api/affiliate/link", params={
            "provider": "expedia", "productType": "hotel", "destination": "Lisbon",
            "bookingValue": 500,
        })
        data = resp.json()["data"]
        assert data["provider"] == "expedia"
        assert data["alternatives"] == ["booking", "agoda"]
        assert data["estimatedCommission"] == 20.0


class TestTripPreferences:
    def _req(self, **extra):
        return SuggestionRequest.model_validate({"from": "Vancouver", "budgetAmount": 3000,
                                                 "adults": 2, "kids": 1, **extra})

    def test_defaults(self):
        prefs = TripPreferences.from_request(self._req())
        assert prefs.travelers() == 3
        assert prefs.budget_per_person() == 1000.0
        assert prefs.dates_text() == "flexible"
        assert prefs.vibes_text() == "Not specified"
        assert prefs.trip_days() == 7

    def test_dates_override_duration(self):
        prefs = TripPreferences.from_request(self._req(startDate="2026-06-01", endDate="2026-06-11"))
        assert prefs.trip_days() == 10
        assert prefs.budget_per_day() == 300.0
        assert prefs.dates_text() == "2026-06-01 to 2026-06-11"

    def test_bad_dates_are_flexible(self):
        prefs = TripPreferences.from_request(self._req(startDate="soon", endDate="later"))
        assert prefs.dates is None

    def test_reversed_dates_use_duration(self):
        prefs = TripPreferences.from_request(self._req(tripDuration=4, startDate="2026-06-10",
                                                       endDate="2026-06-01"))
        assert prefs.trip_days() == 4

    def test_vibes_text_skips_blanks(self):
        prefs = TripPreferences.from_request(self._req(vibes=["food", " ", "beach "]))
        assert prefs.vibes_text() == "food, beach"
