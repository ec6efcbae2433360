"""Stripe Checkout, PaymentIntents and webhook-driven booking status."""
import json
import logging
import os
from datetime import datetime

import stripe

from database import Booking, PaymentTransaction

logger = logging.getLogger(__name__)

stripe.api_key = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
STRIPE_PRICE_ID = os.getenv("STRIPE_PRICE_ID", "")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

MIN_AMOUNT_CENTS = 50
# Stripe rejects metadata values longer than this
METADATA_VALUE_LIMIT = 500

# Stripe event type -> (booking status, transaction status)
EVENT_STATUS = {
    "checkout.session.completed": ("confirmed", None),
    "checkout.session.expired": ("payment_failed", None),
    "payment_intent.succeeded": ("confirmed", "succeeded"),
    "payment_intent.payment_failed": ("payment_failed", "failed"),
    "charge.refunded": ("refunded", "refunded"),
}


def is_configured() -> bool:
    return bool(stripe.api_key)


def webhook_configured() -> bool:
    return bool(stripe.api_key and STRIPE_WEBHOOK_SECRET)


def stripe_metadata(values: dict) -> dict:
    return {key: str(value)[:METADATA_VALUE_LIMIT] for key, value in values.items()}


def create_checkout_session(db, req, user_id=None) -> dict:
    """Create a pending Booking and a Checkout session that refers back to it.

    Uses inline price_data when amount_cents is given, otherwise a Stripe
    price id from the request or STRIPE_PRICE_ID.
    """
    price_id = req.price_id or STRIPE_PRICE_ID
    if not req.amount_cents and not price_id:
        raise ValueError("Price ID is required. Set STRIPE_PRICE_ID or pass priceId/amountCents.")

    booking = Booking(
        user_id=user_id,
        type=req.type,
        title=req.title,
        description=req.description,
        amount_cents=(req.amount_cents or 0) * req.quantity,
        currency=req.currency,
        status="pending",
        booking_metadata=dict(req.metadata),
    )
    db.add(booking)
    db.flush()

    if req.amount_cents:
        line_item = {
            "price_data": {
                "currency": req.currency,
                "unit_amount": req.amount_cents,
                "product_data": {"name": req.title},
            },
            "quantity": req.quantity,
        }
    else:
        line_item = {"price": price_id, "quantity": req.quantity}

    session = stripe.checkout.Session.create(
        payment_method_types=["card"],
        line_items=[line_item],
        mode="payment",
        success_url=req.success_url or f"{FRONTEND_URL}/booking/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=req.cancel_url or f"{FRONTEND_URL}/booking/cancel",
        metadata=stripe_metadata({
            **req.metadata,
            "bookingId": booking.id,
            "userId": user_id or "",
            "type": req.type,
            "title": req.title,
            "description": req.description,
            "created_at": datetime.utcnow().isoformat(),
        }),
    )
    booking.checkout_session_id = session.id
    db.commit()
    return {"sessionId": session.id, "url": session.url, "bookingId": booking.id}


def create_payment_intent(db, req, user_id=None) -> dict:
    if req.amount < MIN_AMOUNT_CENTS:
        raise ValueError("Invalid amount. Minimum amount is $0.50")
    metadata = dict(req.metadata)
    if req.booking_id:
        metadata["bookingId"] = req.booking_id
    metadata = stripe_metadata(metadata)
    intent = stripe.PaymentIntent.create(
        amount=req.amount,
        currency=req.currency,
        metadata=metadata,
        automatic_payment_methods={"enabled": True},
    )
    db.add(PaymentTransaction(
        user_id=user_id,
        booking_id=req.booking_id,
        payment_intent_id=intent.id,
        amount_cents=req.amount,
        currency=req.currency,
    ))
    db.commit()
    return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}


def construct_event(payload: bytes, signature: str) -> dict:
    """Verify the Stripe-Signature header and return the event as a plain dict.

    Raises SignatureVerificationError for a bad signature and ValueError for a
    payload that is not JSON.
    """
    body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    stripe.WebhookSignature.verify_header(body, signature, STRIPE_WEBHOOK_SECRET,
                                          tolerance=stripe.Webhook.DEFAULT_TOLERANCE)
    return json.loads(body)


def _find_booking(db, booking_id, payment_intent_id):
    if booking_id:
        booking = db.get(Booking, booking_id)
        if booking:
            return booking
    if payment_intent_id:
        return db.query(Booking).filter(Booking.payment_intent_id == payment_intent_id).first()
    return None


def apply_webhook_event(db, event):
    """Update bookings and transactions for a verified event.

    Returns the booking status applied, or None for event types we ignore.
    """
    event_type = event["type"]
    if event_type not in EVENT_STATUS:
        logger.info("Unhandled Stripe event type: %s", event_type)
        return None

    booking_status, txn_status = EVENT_STATUS[event_type]
    obj = event["data"]["object"]
    metadata = dict(obj.get("metadata") or {})
    booking_id = metadata.get("bookingId")
    if event_type.startswith("payment_intent."):
        payment_intent_id = obj.get("id")
    else:
        payment_intent_id = obj.get("payment_intent")

    if event_type == "checkout.session.completed":
        if booking_id:
            booking = db.get(Booking, booking_id) or Booking(id=booking_id)
            booking.user_id = metadata.get("userId") or booking.user_id
            booking.type = metadata.get("type") or booking.type or "flight"
            booking.title = metadata.get("title") or booking.title or "Booking"
            booking.description = metadata.get("description") or booking.description or ""
            booking.amount_cents = obj.get("amount_total") or booking.amount_cents or 0
            booking.currency = obj.get("currency") or booking.currency or "usd"
            booking.status = booking_status
            booking.payment_intent_id = payment_intent_id
            booking.checkout_session_id = obj.get("id")
            booking.booking_metadata = metadata
            db.add(booking)
    else:
        booking = _find_booking(db, booking_id, payment_intent_id)
        if booking:
            booking.status = booking_status
            if payment_intent_id:
                booking.payment_intent_id = payment_intent_id
        else:
            logger.warning("No booking for %s (bookingId=%s, payment_intent=%s)",
                           event_type, booking_id, payment_intent_id)

    if txn_status and payment_intent_id:
        txn = db.query(PaymentTransaction).filter(
            PaymentTransaction.payment_intent_id == payment_intent_id
        ).first()
        if txn:
            txn.status = txn_status

    db.commit()
    logger.info("Stripe %s -> booking %s", event_type, booking_status)
    return booking_status


def booking_to_dict(booking):
    return {
        "id": booking.id,
        "type": booking.type,
        "title": booking.title,
        "description": booking.description,
        "amountCents": booking.amount_cents,
        "currency": booking.currency,
        "status": booking.status,
        "paymentIntentId": booking.payment_intent_id,
        "metadata": booking.booking_metadata or {},
        "createdAt": booking.created_at.isoformat() if booking.created_at else None,
        "updatedAt": booking.updated_at.isoformat() if booking.updated_at else None,
    }
