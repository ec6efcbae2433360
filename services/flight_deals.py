"""Cheapest round-trip fares from one origin to a fixed list of popular destinations."""
import logging
from datetime import date, timedelta

from mock_data import POPULAR_DESTINATIONS, estimated_deal
from services.amadeus_client import AmadeusError

logger = logging.getLogger(__name__)

DESTINATIONS_CHECKED = 6
MAX_DEALS = 8
DAYS_AHEAD = 30
TRIP_NIGHTS = 7


def travel_window(today=None):
    """(departure, return) as ISO dates: a month out, back a week later."""
    departure = (today or date.today()) + timedelta(days=DAYS_AHEAD)
    return departure.isoformat(), (departure + timedelta(days=TRIP_NIGHTS)).isoformat()


def deal_type(price):
    if price < 500:
        return "Hot Deal"
    if price < 800:
        return "Good Deal"
    return "Regular"


def savings_percent(price, max_price):
    return round((max_price - price) / max_price * 100)


def find_flight_deals(client, origin, currency="USD", max_price=1000, today=None):
    """Best live fare per destination at or under max_price, cheapest first.

    A destination whose lookup fails gets an estimated entry instead of
    dropping out of the list.
    """
    departure, return_date = travel_window(today)
    deals = []
    for place in POPULAR_DESTINATIONS[:DESTINATIONS_CHECKED]:
        code = place["destination"]
        try:
            legs = client.search_flights(origin, code, departure, return_date=return_date,
                                         adults=1, travel_class="ECONOMY", currency=currency,
                                         max_results=1)
        except AmadeusError as exc:
            logger.warning("Deal lookup %s-%s failed, estimating: %s", origin, code, exc)
            deals.append(estimated_deal(origin, code, departure, return_date, currency))
            continue
        if not legs:
            continue
        # max_results=1: every leg belongs to the same offer
        price = round(sum(leg["price"] for leg in legs))
        if price > max_price:
            continue
        outbound = legs[0]
        deals.append({
            **place,
            "price": price,
            "currency": currency,
            "departureDate": departure,
            "returnDate": return_date,
            "airline": outbound["airline"],
            "durationMinutes": outbound["duration_minutes"],
            "stops": outbound["stops"],
            "dealType": deal_type(price),
            "savings": savings_percent(price, max_price),
        })
    deals.sort(key=lambda d: d["price"])
    return deals[:MAX_DEALS]
