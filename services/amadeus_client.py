"""
Amadeus Self-Service client.

OAuth2 client-credentials token held in memory and reused until 30 seconds
before it expires, then a plain authenticated GET per search. Results are
normalized into the flight/hotel dicts the API returns to the frontend.
"""
import functools
import logging
import os
import re
import threading
import time
from datetime import datetime
from typing import Callable, Optional

import requests

from services.affiliate import build_flight_url, build_hotel_url

logger = logging.getLogger(__name__)

AMADEUS_BASE_URL = os.getenv("AMADEUS_BASE_URL", "https://test.api.amadeus.com")
TOKEN_PATH = "/v1/security/oauth2/token"
TOKEN_REFRESH_MARGIN = 30  # seconds
REQUEST_TIMEOUT = 15

# What a well-formed but unexpectedly shaped body raises while being read
_UNUSABLE_BODY = (AttributeError, IndexError, KeyError, TypeError, ValueError)

_CARRIER_NAMES = {
    "AA": "American Airlines", "DL": "Delta Air Lines", "UA": "United Airlines",
    "BA": "British Airways", "LH": "Lufthansa", "AF": "Air France",
    "KL": "KLM", "IB": "Iberia", "TP": "TAP Air Portugal", "VY": "Vueling",
    "UX": "Air Europa", "AC": "Air Canada", "WS": "WestJet", "EK": "Emirates",
    "QR": "Qatar Airways", "TK": "Turkish Airlines", "LX": "Swiss",
    "FR": "Ryanair", "U2": "easyJet", "W6": "Wizz Air",
}


class AmadeusError(Exception):
    """Raised when Amadeus authentication or a search request fails."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def _normalized(func):
    """Report a malformed Amadeus payload as AmadeusError instead of a crash."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except _UNUSABLE_BODY as exc:
            raise AmadeusError(f"Unusable Amadeus response in {func.__name__}: {exc!r}") from exc
    return wrapper


class AmadeusClient:
    def __init__(self, client_id: Optional[str] = None, client_secret: Optional[str] = None,
                 base_url: str = AMADEUS_BASE_URL, session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.time):
        self.client_id = client_id if client_id is not None else os.getenv("AMADEUS_CLIENT_ID", "")
        self.client_secret = (client_secret if client_secret is not None
                              else os.getenv("AMADEUS_CLIENT_SECRET", ""))
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._lock = threading.Lock()

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    # ── Token cache ────────────────────────────────────────────────────────

    def _token_valid(self, now: float) -> bool:
        return self._token is not None and self._expires_at - TOKEN_REFRESH_MARGIN > now

    def get_token(self) -> str:
        """Return the cached access token, fetching a new one when it is about to expire."""
        with self._lock:
            now = self.clock()
            if self._token_valid(now):
                return self._token
            if not self.is_configured():
                raise AmadeusError("Amadeus credentials not configured")
            try:
                resp = self.session.post(
                    f"{self.base_url}{TOKEN_PATH}",
                    data={
                        "grant_type": "client_credentials",
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                    },
                    timeout=REQUEST_TIMEOUT,
                )
            except requests.RequestException as exc:
                raise AmadeusError(f"Amadeus auth request failed: {exc}") from exc
            if not resp.ok:
                raise AmadeusError(f"Amadeus auth failed: {resp.status_code}", resp.status_code)
            try:
                payload = resp.json()
                token = payload["access_token"]
                expires_in = int(payload.get("expires_in", 0))
            except _UNUSABLE_BODY as exc:
                raise AmadeusError(f"Amadeus auth returned an unusable token body: {exc!r}") from exc
            self._token = token
            self._expires_at = now + expires_in
            return self._token

    def invalidate(self):
        with self._lock:
            self._token = None
            self._expires_at = 0.0

    # ── Requests ───────────────────────────────────────────────────────────

    def _request(self, method: str, path: str, **kwargs) -> dict:
        token = self.get_token()
        send = self.session.post if method == "POST" else self.session.get
        try:
            resp = send(
                f"{self.base_url}{path}",
                headers={"Authorization": f"Bearer {token}"},
                timeout=REQUEST_TIMEOUT,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise AmadeusError(f"Amadeus {method} {path} failed: {exc}") from exc
        if resp.status_code == 401:
            # Token revoked upstream; the next call fetches a fresh one.
            self.invalidate()
        if not resp.ok:
            raise AmadeusError(f"Amadeus {method} {path} failed: {resp.status_code}", resp.status_code)
        try:
            data = resp.json()
        except ValueError as exc:
            raise AmadeusError(f"Amadeus {method} {path} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise AmadeusError(f"Amadeus {method} {path} returned {type(data).__name__}, not an object")
        return data

    def get(self, path: str, params: Optional[dict] = None) -> dict:
        query = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        return self._request("GET", path, params=query)

    def post(self, path: str, payload: dict) -> dict:
        return self._request("POST", path, json=payload)

    @_normalized
    def search_flights(self, origin, destination, departure_date, return_date=None, adults=1,
                       travel_class=None, non_stop=False, currency="USD", max_results=10):
        data = self.get("/v2/shopping/flight-offers", {
            "originLocationCode": origin,
            "destinationLocationCode": destination,
            "departureDate": departure_date,
            "returnDate": return_date,
            "adults": adults,
            "travelClass": travel_class,
            "nonStop": "true" if non_stop else None,
            "currencyCode": currency,
            "max": max_results,
        })
        carriers = data.get("dictionaries", {}).get("carriers", {})
        return normalize_flight_offers(data.get("data", []), carriers)

    @_normalized
    def search_hotels(self, city_code, check_in, check_out, adults=1, max_hotels=10):
        listing = self.get("/v1/reference-data/locations/hotels/by-city", {"cityCode": city_code})
        hotel_ids = [h["hotelId"] for h in listing.get("data", [])[:max_hotels] if h.get("hotelId")]
        if not hotel_ids:
            return []
        offers = self.get("/v3/shopping/hotel-offers", {
            "hotelIds": ",".join(hotel_ids),
            "checkInDate": check_in,
            "checkOutDate": check_out,
            "adults": adults,
        })
        return normalize_hotel_offers(offers.get("data", []), city_code, check_in, check_out)

    @_normalized
    def hotel_autocomplete(self, keyword, subtype="HOTEL_LEISURE", max_results=10):
        data = self.get("/v1/reference-data/locations/hotel", {
            "keyword": keyword, "subType": subtype, "max": max_results,
        })
        return [
            {
                "hotelId": (h.get("hotelIds") or [None])[0],
                "name": h.get("name", ""),
                "iataCode": h.get("iataCode", ""),
                "countryCode": h.get("address", {}).get("countryCode", ""),
                "cityName": h.get("address", {}).get("cityName", ""),
            }
            for h in data.get("data", [])
        ]

    @_normalized
    def search_locations(self, keyword, sub_type="AIRPORT,CITY", limit=10):
        data = self.get("/v1/reference-data/locations", {
            "keyword": keyword, "subType": sub_type, "page[limit]": limit,
        })
        return [
            {
                "iataCode": loc.get("iataCode", ""),
                "name": loc.get("name", ""),
                "cityName": loc.get("address", {}).get("cityName", ""),
                "countryCode": loc.get("address", {}).get("countryCode", ""),
                "subType": loc.get("subType", ""),
            }
            for loc in data.get("data", [])
        ]

    @_normalized
    def flight_inspiration(self, origin, max_price=None):
        data = self.get("/v1/shopping/flight-destinations", {"origin": origin, "maxPrice": max_price})
        return [
            {
                "destination": d.get("destination", ""),
                "departureDate": d.get("departureDate", ""),
                "returnDate": d.get("returnDate", ""),
                "price": float(d.get("price", {}).get("total", 0)),
            }
            for d in data.get("data", [])
        ]

    @_normalized
    def price_flight_offer(self, offer: dict) -> dict:
        """Confirm the live price of a flight offer returned by search."""
        data = self.post("/v1/shopping/flight-offers/pricing", {
            "data": {"type": "flight-offers-pricing", "flightOffers": [offer]},
        })
        pricing = data["data"]
        if not pricing.get("flightOffers"):
            raise AmadeusError("Amadeus pricing returned no flight offers")
        return {"flightOffers": pricing["flightOffers"]}


# ── Normalizers ────────────────────────────────────────────────────────────

def parse_iso_duration(iso: str) -> int:
    """Convert an ISO-8601 duration (e.g. 'PT14H15M') to total minutes."""
    m = re.match(r"P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?", iso or "")
    if not m or not any(m.groups()):
        return 0
    days, hours, minutes = (int(g or 0) for g in m.groups())
    return days * 24 * 60 + hours * 60 + minutes


def normalize_flight_offers(raw_offers: list, carriers: Optional[dict] = None) -> list:
    """Flatten Amadeus flight offers into one dict per itinerary leg."""
    carriers = carriers or {}
    normalized = []
    for idx, offer in enumerate(raw_offers):
        price = offer.get("price", {})
        total = float(price.get("grandTotal", price.get("total", 0)))
        currency = price.get("currency", "USD")
        itineraries = offer.get("itineraries", [])
        for leg_idx, itin in enumerate(itineraries):
            segments = itin.get("segments", [])
            if not segments:
                continue
            first, last = segments[0], segments[-1]
            code = first.get("carrierCode", "")
            flight_number = f"{code}{first.get('number', '')}"
            origin = first.get("departure", {}).get("iataCode", "")
            destination = last.get("arrival", {}).get("iataCode", "")
            leg_price = round(total / max(len(itineraries), 1), 2)
            normalized.append({
                "id": f"{offer.get('id', idx)}_{leg_idx}",
                "flight_type": "outbound" if leg_idx == 0 else "return",
                "airline": code,
                "airline_name": carriers.get(code) or _CARRIER_NAMES.get(code) or code,
                "flight_number": flight_number,
                "from_airport": origin,
                "to_airport": destination,
                "departure_datetime": first.get("departure", {}).get("at", ""),
                "arrival_datetime": last.get("arrival", {}).get("at", ""),
                "duration_minutes": parse_iso_duration(itin.get("duration", "")),
                "stops": len(segments) - 1,
                "price": leg_price,
                "currency": currency,
                "booking_url": build_flight_url(code, flight_number, origin, destination, leg_price),
            })
    return normalized


def normalize_hotel_offers(raw_hotels: list, city_code: str, check_in: str, check_out: str) -> list:
    try:
        nights = (datetime.strptime(check_out, "%Y-%m-%d")
                  - datetime.strptime(check_in, "%Y-%m-%d")).days
    except ValueError:
        nights = 1
    nights = max(nights, 1)

    normalized = []
    for idx, item in enumerate(raw_hotels):
        hotel = item.get("hotel", {})
        offers = item.get("offers", [])
        if not offers:
            continue
        best = offers[0]
        total = float(best.get("price", {}).get("total", 0))
        room_text = best.get("room", {}).get("description", {}).get("text", "").lower()
        amenities = []
        if "wifi" in room_text or "internet" in room_text:
            amenities.append("wifi")
        if best.get("boardType"):
            amenities.append(best["boardType"].lower())
        hotel_id = hotel.get("hotelId", f"hotel_{idx}")
        normalized.append({
            "id": best.get("id", f"offer_{idx}"),
            "hotel_id": hotel_id,
            "name": hotel.get("name", f"Hotel in {city_code}"),
            "city_code": hotel.get("cityCode", city_code),
            "check_in_date": best.get("checkInDate", check_in),
            "check_out_date": best.get("checkOutDate", check_out),
            "price_per_night": round(total / nights, 2),
            "total_price": round(total, 2),
            "currency": best.get("price", {}).get("currency", "USD"),
            "rating": hotel.get("rating"),
            "amenities": amenities,
            "booking_url": build_hotel_url(hotel_id, city_code, total),
        })
    return normalized


amadeus = AmadeusClient()
