"""Flight price watches: store a target fare, re-price on a schedule, email on a drop."""
import logging
import os
from datetime import datetime

import resend

from database import PriceWatch
from mock_data import generate_mock_price
from services.amadeus_client import AmadeusError, amadeus

logger = logging.getLogger(__name__)

RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
ALERT_FROM_EMAIL = os.getenv("ALERT_FROM_EMAIL", "Where Next <alerts@resend.dev>")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")


def get_current_price(origin, destination, departure_date, return_date=None, client=None):
    """Cheapest Amadeus fare for the route, or a mock price when Amadeus is unavailable."""
    client = client or amadeus
    if client.is_configured():
        try:
            flights = client.search_flights(origin, destination, departure_date,
                                            return_date=return_date, adults=1, max_results=5)
            legs = 2 if return_date else 1
            fares = [f["price"] * legs for f in flights if f["flight_type"] == "outbound"]
            if fares:
                return round(min(fares), 2)
        except AmadeusError as exc:
            logger.warning("Price lookup failed for %s-%s: %s", origin, destination, exc)
    return generate_mock_price(origin, destination)


def _alert_html(watch):
    savings = round(watch.target_price - watch.current_price, 2)
    book_url = (f"{FRONTEND_URL}/booking/flights?origin={watch.origin}"
                f"&destination={watch.destination}&departureDate={watch.departure_date}")
    return_line = f"<p><strong>Return:</strong> {watch.return_date}</p>" if watch.return_date else ""
    return (
        "<h2>Great news! Your flight price has dropped!</h2>"
        f"<p><strong>Route:</strong> {watch.origin} → {watch.destination}</p>"
        f"<p><strong>Departure:</strong> {watch.departure_date}</p>{return_line}"
        f"<p><strong>Current Price:</strong> ${watch.current_price:.0f}</p>"
        f"<p><strong>Your Target:</strong> ${watch.target_price:.0f}</p>"
        f"<p><strong>You're saving ${savings:.0f}!</strong></p>"
        f'<p><a href="{book_url}">Book Now</a></p>'
    )


def send_price_alert(watch, kind="scheduled") -> bool:
    """Email the watcher. Returns False when email is not configured or sending failed."""
    logger.info("Price alert (%s) for %s: %s-%s at %s (target %s)", kind, watch.email,
                watch.origin, watch.destination, watch.current_price, watch.target_price)
    if not RESEND_API_KEY:
        return False
    resend.api_key = RESEND_API_KEY
    try:
        resend.Emails.send({
            "from": ALERT_FROM_EMAIL,
            "to": watch.email,
            "subject": f"Price Drop Alert: {watch.origin} → {watch.destination}",
            "html": _alert_html(watch),
        })
    except Exception as exc:
        logger.warning("Failed to send price alert to %s: %s", watch.email, exc)
        return False
    return True


def create_watch(db, data):
    """Store a watch for a PriceWatchCreate, alerting straight away if already at target."""
    current = get_current_price(data.origin, data.destination, data.departure_date,
                                data.return_date)
    watch = PriceWatch(
        email=data.email,
        origin=data.origin,
        destination=data.destination,
        departure_date=data.departure_date,
        return_date=data.return_date,
        target_price=data.target_price,
        current_price=current,
    )
    if current <= data.target_price:
        send_price_alert(watch, "immediate")
        watch.alert_triggered = True
    db.add(watch)
    db.commit()
    db.refresh(watch)
    return watch


def check_price_updates(db) -> dict:
    """Re-price every watch still waiting for its target and alert on drops."""
    watches = db.query(PriceWatch).filter(PriceWatch.alert_triggered.is_(False)).all()
    alerts = 0
    for watch in watches:
        watch.current_price = get_current_price(watch.origin, watch.destination,
                                                watch.departure_date, watch.return_date)
        watch.last_checked = datetime.utcnow()
        if watch.current_price <= watch.target_price:
            send_price_alert(watch, "scheduled")
            watch.alert_triggered = True
            alerts += 1
    db.commit()
    logger.info("Price check complete: %d watches, %d alerts", len(watches), alerts)
    return {"checked": len(watches), "alerts": alerts}


def watch_to_dict(watch):
    return {
        "id": watch.id,
        "route": {
            "origin": watch.origin,
            "destination": watch.destination,
            "departureDate": watch.departure_date,
            "returnDate": watch.return_date,
        },
        "targetPrice": watch.target_price,
        "currentPrice": watch.current_price,
        "email": watch.email,
        "alertTriggered": watch.alert_triggered,
        "createdAt": watch.created_at.isoformat() if watch.created_at else None,
        "lastChecked": watch.last_checked.isoformat() if watch.last_checked else None,
    }
