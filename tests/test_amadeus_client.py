"""
Unit tests for services/amadeus_client.py

The HTTP session and the clock are injected, so the token cache is exercised
without network access or sleeping.
"""
import pytest
from unittest.mock import MagicMock

import requests

from services.amadeus_client import (
    AmadeusClient, AmadeusError, TOKEN_REFRESH_MARGIN,
    normalize_flight_offers, normalize_hotel_offers, parse_iso_duration,
)


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.json.return_value = payload if payload is not None else {}
    return resp


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    s = MagicMock()
    s.post.return_value = _response(payload={"access_token": "tok-1", "expires_in": 1799})
    s.get.return_value = _response(payload={"data": []})
    return s


@pytest.fixture
def client(session, clock):
    return AmadeusClient("id", "secret", base_url="https://amadeus.test", session=session, clock=clock)


class TestTokenCache:
    def test_first_call_fetches_token(self, client, session):
        assert client.get_token() == "tok-1"
        session.post.assert_called_once()
        _, kwargs = session.post.call_args
        assert kwargs["data"]["grant_type"] == "client_credentials"
        assert kwargs["data"]["client_id"] == "id"

    def test_cache_hit_within_validity_window(self, client, session, clock):
        client.get_token()
        clock.now += 1799 - TOKEN_REFRESH_MARGIN - 1
        client.get_token()
        client.get_token()
        assert session.post.call_count == 1

    def test_exactly_one_refetch_after_expiry(self, client, session, clock):
        client.get_token()
        session.post.return_value = _response(payload={"access_token": "tok-2", "expires_in": 1799})
        clock.now += 1799
        assert client.get_token() == "tok-2"
        assert client.get_token() == "tok-2"
        assert session.post.call_count == 2

    def test_refreshes_inside_safety_margin(self, client, session, clock):
        client.get_token()
        clock.now += 1799 - TOKEN_REFRESH_MARGIN
        client.get_token()
        assert session.post.call_count == 2

    def test_invalidate_forces_refetch(self, client, session):
        client.get_token()
        client.invalidate()
        client.get_token()
        assert session.post.call_count == 2

    def test_unconfigured_raises_without_request(self, session, clock):
        client = AmadeusClient("", "", session=session, clock=clock)
        assert client.is_configured() is False
        with pytest.raises(AmadeusError):
            client.get_token()
        session.post.assert_not_called()

    def test_auth_failure_raises_with_status(self, client, session):
        session.post.return_value = _response(status=401)
        with pytest.raises(AmadeusError) as exc:
            client.get_token()
        assert exc.value.status_code == 401

    def test_network_error_wrapped(self, client, session):
        session.post.side_effect = requests.ConnectionError("down")
        with pytest.raises(AmadeusError):
            client.get_token()


class TestGet:
    def test_sends_bearer_and_drops_empty_params(self, client, session):
        client.get("/v1/things", {"a": "x", "b": None, "c": ""})
        args, kwargs = session.get.call_args
        assert args[0] == "https://amadeus.test/v1/things"
        assert kwargs["params"] == {"a": "x"}
        assert kwargs["headers"]["Authorization"] == "Bearer tok-1"

    def test_unauthorized_invalidates_token(self, client, session):
        session.get.return_value = _response(status=401)
        with pytest.raises(AmadeusError):
            client.get("/v1/things")
        client.get_token()
        assert session.post.call_count == 2

    def test_server_error_raises(self, client, session):
        session.get.return_value = _response(status=500)
        with pytest.raises(AmadeusError) as exc:
            client.get("/v1/things")
        assert exc.value.status_code == 500

    def test_search_hotels_skips_offers_when_city_has_no_hotels(self, client, session):
        session.get.return_value = _response(payload={"data": []})
        assert client.search_hotels("LIS", "2026-06-01", "2026-06-04") == []
        assert session.get.call_count == 1


def _not_json():
    resp = _response()
    resp.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
    return resp


class TestUnusableResponses:
    def test_token_body_not_json(self, client, session):
        session.post.return_value = _not_json()
        with pytest.raises(AmadeusError):
            client.get_token()

    def test_token_body_without_access_token(self, client, session):
        session.post.return_value = _response(payload={"error": "invalid_client"})
        with pytest.raises(AmadeusError, match="unusable token body"):
            client.get_token()

    def test_search_body_not_json(self, client, session):
        session.get.return_value = _not_json()
        with pytest.raises(AmadeusError, match="invalid JSON"):
            client.search_flights("YVR", "LIS", "2026-06-01")

    def test_search_body_not_an_object(self, client, session):
        session.get.return_value = _response(payload=["unexpected"])
        with pytest.raises(AmadeusError):
            client.search_locations("lis")

    def test_null_grand_total(self, client, session):
        session.get.return_value = _response(payload={"data": [
            {"id": "1", "price": {"grandTotal": None}, "itineraries": []},
        ]})
        with pytest.raises(AmadeusError) as exc:
            client.search_flights("YVR", "LIS", "2026-06-01")
        assert isinstance(exc.value.__cause__, TypeError)

    def test_hotel_listing_entries_not_objects(self, client, session):
        session.get.return_value = _response(payload={"data": ["H1", "H2"]})
        with pytest.raises(AmadeusError):
            client.search_hotels("LIS", "2026-06-01", "2026-06-04")


class TestPriceFlightOffer:
    def test_posts_offer_for_pricing(self, client, session):
        priced = {"id": "1", "price": {"total": "512.40", "grandTotal": "512.40"}}
        session.post.side_effect = [
            _response(payload={"access_token": "tok-1", "expires_in": 1799}),
            _response(payload={"data": {"type": "flight-offers-pricing", "flightOffers": [priced]}}),
        ]
        assert client.price_flight_offer({"id": "1"}) == {"flightOffers": [priced]}
        args, kwargs = session.post.call_args
        assert args[0] == "https://amadeus.test/v1/shopping/flight-offers/pricing"
        assert kwargs["json"]["data"]["flightOffers"] == [{"id": "1"}]
        assert kwargs["headers"]["Authorization"] == "Bearer tok-1"

    def test_pricing_without_offers_raises(self, client, session):
        session.post.side_effect = [
            _response(payload={"access_token": "tok-1", "expires_in": 1799}),
            _response(payload={"data": {}}),
        ]
        with pytest.raises(AmadeusError):
            client.price_flight_offer({"id": "1"})

    def test_pricing_without_data_raises(self, client, session):
        session.post.side_effect = [
            _response(payload={"access_token": "tok-1", "expires_in": 1799}),
            _response(payload={"warnings": []}),
        ]
        with pytest.raises(AmadeusError):
            client.price_flight_offer({"id": "1"})


class TestParseIsoDuration:
    @pytest.mark.parametrize("iso, minutes", [
        ("PT14H15M", 855),
        ("PT45M", 45),
        ("PT2H", 120),
        ("P1DT2H", 1560),
        ("", 0),
        ("garbage", 0),
    ])
    def test_parse(self, iso, minutes):
        assert parse_iso_duration(iso) == minutes


class TestNormalizeFlightOffers:
    def _offer(self):
        return {
            "id": "7",
            "price": {"grandTotal": "900.00", "currency": "EUR"},
            "itineraries": [
                {"duration": "PT10H30M", "segments": [
                    {"carrierCode": "IB", "number": "6800",
                     "departure": {"iataCode": "YVR", "at": "2026-06-01T10:00:00"},
                     "arrival": {"iataCode": "MAD", "at": "2026-06-02T05:00:00"}},
                ]},
                {"duration": "PT12H", "segments": [
                    {"carrierCode": "IB", "number": "6801",
                     "departure": {"iataCode": "MAD", "at": "2026-06-10T12:00:00"},
                     "arrival": {"iataCode": "LHR", "at": "2026-06-10T14:00:00"}},
                    {"carrierCode": "BA", "number": "85",
                     "departure": {"iataCode": "LHR", "at": "2026-06-10T16:00:00"},
                     "arrival": {"iataCode": "YVR", "at": "2026-06-10T18:00:00"}},
                ]},
            ],
        }

    def test_one_entry_per_leg_with_split_price(self):
        legs = normalize_flight_offers([self._offer()], {"IB": "IBERIA"})
        assert [l["flight_type"] for l in legs] == ["outbound", "return"]
        assert all(l["price"] == 450.0 for l in legs)
        assert legs[0]["airline_name"] == "IBERIA"
        assert legs[0]["flight_number"] == "IB6800"
        assert legs[0]["duration_minutes"] == 630
        assert legs[0]["stops"] == 0
        assert legs[1]["stops"] == 1
        assert legs[1]["to_airport"] == "YVR"
        assert legs[0]["currency"] == "EUR"
        assert legs[0]["booking_url"]

    def test_unknown_carrier_falls_back_to_code(self):
        offer = self._offer()
        offer["itineraries"] = offer["itineraries"][:1]
        offer["itineraries"][0]["segments"][0]["carrierCode"] = "ZZ"
        legs = normalize_flight_offers([offer])
        assert legs[0]["airline_name"] == "ZZ"
        assert legs[0]["price"] == 900.0


class TestNormalizeHotelOffers:
    def test_price_per_night_and_amenities(self):
        raw = [
            {"hotel": {"hotelId": "H1", "name": "Casa", "cityCode": "LIS", "rating": "4"},
             "offers": [{"id": "O1", "price": {"total": "300.00", "currency": "EUR"},
                         "boardType": "BREAKFAST",
                         "room": {"description": {"text": "Double room, free WiFi"}}}]},
            {"hotel": {"hotelId": "H2"}, "offers": []},
        ]
        hotels = normalize_hotel_offers(raw, "LIS", "2026-06-01", "2026-06-04")
        assert len(hotels) == 1
        assert hotels[0]["price_per_night"] == 100.0
        assert hotels[0]["total_price"] == 300.0
        assert hotels[0]["amenities"] == ["wifi", "breakfast"]
        assert hotels[0]["currency"] == "EUR"

    def test_bad_dates_count_as_one_night(self):
        raw = [{"hotel": {"hotelId": "H1"}, "offers": [{"price": {"total": "80"}}]}]
        hotels = normalize_hotel_offers(raw, "LIS", "soon", "later")
        assert hotels[0]["price_per_night"] == 80.0
