"""Partner deep links and UTM-tagged affiliate links."""
import logging
import os
from typing import Dict, List, Optional
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

PARTNER_BASE_URL = os.getenv("PARTNER_BASE_URL", "https://partner.example.com")
FLIGHT_PARTNER_ID = os.getenv("FLIGHT_PARTNER_ID", "YOUR_FLIGHT_PARTNER_ID")
HOTEL_PARTNER_ID = os.getenv("HOTEL_PARTNER_ID", "YOUR_HOTEL_PARTNER_ID")
ACTIVITY_PARTNER_ID = os.getenv("ACTIVITY_PARTNER_ID", "YOUR_ACTIVITY_PARTNER_ID")

AFFILIATES_ENABLED = os.getenv("AFFILIATES_ENABLED", "").lower() == "true"

UTM_SOURCE = "where-next-ai"


def build_flight_url(carrier_code, flight_number, origin, destination, price):
    query = urlencode({
        "carrier": carrier_code, "flight": flight_number, "from": origin,
        "to": destination, "price": price, "affid": FLIGHT_PARTNER_ID,
    })
    return f"{PARTNER_BASE_URL}/flight?{query}"


def build_hotel_url(hotel_id, city_code, price):
    query = urlencode({
        "hotelId": hotel_id, "city": city_code, "price": price, "affid": HOTEL_PARTNER_ID,
    })
    return f"{PARTNER_BASE_URL}/hotel?{query}"


def build_activity_url(activity_id, city, price):
    query = urlencode({
        "id": activity_id, "city": city, "price": price, "affid": ACTIVITY_PARTNER_ID,
    })
    return f"{PARTNER_BASE_URL}/activity?{query}"


# ── UTM-tagged affiliate programmes ────────────────────────────────────────

def _affiliate_id(env_name):
    return os.getenv(env_name, "demo_affiliate")


AFFILIATE_CONFIGS = {
    "expedia": {
        "provider": "Expedia",
        "base_url": "https://www.expedia.com",
        "tracking": lambda: {"affiliate": _affiliate_id("EXPEDIA_AFFILIATE_ID"),
                             "utm_campaign": "flight_booking"},
        "commission": (4, "percentage"),
    },
    "booking": {
        "provider": "Booking.com",
        "base_url": "https://www.booking.com",
        "tracking": lambda: {"aid": _affiliate_id("BOOKING_AFFILIATE_ID"),
                             "utm_campaign": "hotel_booking"},
        "commission": (25, "fixed"),
    },
    "kayak": {
        "provider": "Kayak",
        "base_url": "https://www.kayak.com",
        "tracking": lambda: {"utm_campaign": "flight_search"},
        "commission": (2, "percentage"),
    },
    "skyscanner": {
        "provider": "Skyscanner",
        "base_url": "https://www.skyscanner.com",
        "tracking": lambda: {"utm_campaign": "flight_comparison"},
        "commission": (1.5, "percentage"),
    },
    "agoda": {
        "provider": "Agoda",
        "base_url": "https://www.agoda.com",
        "tracking": lambda: {"cid": _affiliate_id("AGODA_AFFILIATE_ID")},
        "commission": (20, "fixed"),
    },
    "rentalcars": {
        "provider": "RentalCars.com",
        "base_url": "https://www.rentalcars.com",
        "tracking": lambda: {"affiliateCode": _affiliate_id("RENTALCARS_AFFILIATE_ID")},
        "commission": (15, "fixed"),
    },
}

PROVIDERS_BY_PRODUCT = {
    "flight": ["expedia", "kayak", "skyscanner"],
    "hotel": ["booking", "expedia", "agoda"],
    "car": ["rentalcars", "expedia"],
    "activity": ["expedia"],
    "insurance": [],
}


def _compact(date: Optional[str], short: bool = False) -> str:
    if not date:
        return ""
    digits = date.replace("-", "")
    return digits[2:] if short else digits


def _provider_path(provider, product_type, origin, destination, departure, return_date,
                   adults) -> tuple:
    """Return (path, query params) for a provider/product combination."""
    params: Dict[str, str] = {}
    path = ""
    if provider == "expedia":
        if product_type == "flight":
            path = "/Flights"
            if origin:
                params.update({"flight-type": "on", "startsearch": "true"})
            if origin and destination:
                params["trip"] = "roundtrip" if return_date else "oneway"
        elif product_type == "hotel":
            path = "/Hotels"
            if destination:
                params["destination"] = destination
    elif provider == "booking":
        if product_type == "hotel":
            path = "/searchresults.html"
            if destination:
                params["ss"] = destination
            if departure:
                params["checkin"] = departure
            if return_date:
                params["checkout"] = return_date
            if adults:
                params["group_adults"] = str(adults)
    elif provider == "kayak":
        if product_type == "flight":
            path = "/flights"
            if origin and destination and departure:
                path += f"/{origin}-{destination}/{_compact(departure)}"
                if return_date:
                    path += f"/{_compact(return_date)}"
    elif provider == "skyscanner":
        if product_type == "flight":
            path = "/transport/flights"
            if origin and destination and departure:
                path += f"/{origin}/{destination}/{_compact(departure, short=True)}"
                if return_date:
                    path += f"/{_compact(return_date, short=True)}"
    elif provider == "agoda":
        if product_type == "hotel":
            path = "/search"
            if destination:
                params["city"] = destination
            if departure:
                params["checkIn"] = departure
            if return_date:
                params["checkOut"] = return_date
    elif provider == "rentalcars":
        if product_type == "car":
            path = "/SearchResults"
            if destination:
                params["dropLocation"] = destination
            if departure:
                params["pickUpDate"] = departure
            if return_date:
                params["dropOffDate"] = return_date
    return path, params


def build_affiliate_link(provider: str, product_type: str, origin: Optional[str] = None,
                         destination: Optional[str] = None, departure: Optional[str] = None,
                         return_date: Optional[str] = None, adults: Optional[int] = None,
                         custom_params: Optional[Dict[str, str]] = None) -> str:
    """Build a provider search link carrying affiliate and UTM parameters.

    When affiliates are disabled, or the provider is unknown, the provider's
    plain homepage is returned instead.
    """
    config = AFFILIATE_CONFIGS.get(provider)
    if config is None:
        logger.warning("No affiliate config for provider: %s", provider)
        return "https://www.google.com/travel"
    if not AFFILIATES_ENABLED:
        return config["base_url"]

    path, params = _provider_path(provider, product_type, origin, destination,
                                  departure, return_date, adults)
    params.update(config["tracking"]())
    params.setdefault("utm_source", UTM_SOURCE)
    params.setdefault("utm_medium", "affiliate")
    if custom_params:
        params.update(custom_params)
    return f"{config['base_url']}{path}?{urlencode(params)}"


def providers_for(product_type: str) -> List[str]:
    return PROVIDERS_BY_PRODUCT.get(product_type, [])


def estimate_commission(provider: str, booking_value: float) -> float:
    config = AFFILIATE_CONFIGS.get(provider)
    if not config:
        return 0.0
    rate, kind = config["commission"]
    if kind == "percentage":
        return round(booking_value * rate / 100, 2)
    return float(rate)
