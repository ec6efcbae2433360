"""FastAPI backend for Where Next - AI trip planning, travel search and bookings."""
import hmac
import logging
import math
import os
from datetime import datetime, timedelta
from typing import Optional

# Load .env before anything else
from dotenv import load_dotenv
load_dotenv()

import stripe

from fastapi import FastAPI, HTTPException, Depends, Query, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import func

from icalendar import Calendar, Event as ICalEvent

from auth import optional_user, require_user
from database import (
    init_db, get_db, row_to_dict, AIConversation, Booking, Expense, Itinerary,
    PriceWatch, SavedTrip, Trip, UserPreferences, WalletItem,
)
from mock_data import (
    MOCK_AIRPORTS, MOCK_DEAL_RECOMMENDATIONS, MOCK_INSPIRATION, MOCK_SUGGESTIONS,
    MOCK_TRIP_RECOMMENDATIONS, QUICK_ANSWERS, QUICK_QUESTIONS,
    generate_mock_flights, generate_mock_hotels, mock_assistant_reply, mock_flight_deals,
    mock_itinerary, mock_offer_pricing, mock_personalized_recommendations,
    mock_travel_agent_reply, mock_trip_detail, mock_trip_plan, mock_useful_phrases,
    mock_walking_tour, mock_weather,
)
from schemas import (
    AssistantReply, AssistantRequest, BudgetCreate, BudgetUpdate, CheckoutSessionRequest,
    CurrencyConversionRequest, ExpenseCreate, ExpenseUpdate, FlightPriceRequest,
    FlightSearchRequest, HacksRequest, HotelSearchRequest, ItineraryRequest, ItineraryResult,
    PaymentIntentRequest, PersonalizedDealsRequest, PersonalizedDealsResult,
    PersonalizedRecommendationsRequest, PersonalizedRecommendationsResult,
    PhraseCategoryName, PhrasesRequest, PhrasesResult, PreferencesUpdate, PriceWatchCreate,
    PriceWatchDelete, ProfileUpdate, QuickQuestionRequest, SavedTripCreate, SuggestionRequest,
    SuggestionsResult, TravelAgentRequest, TripDetailResult, TripDetailsRequest, TripPlan,
    TripPlanRequest, UsefulPhrasesRequest, WalkingTour, WalkingTourRequest, WalletItemCreate,
    WeatherRequest,
    EMAIL_PATTERN,
)
from services import ai_planner, flight_deals, payments, price_watch, travel_utils
from services.affiliate import build_affiliate_link, estimate_commission, providers_for
from services.ai_planner import AIServiceError
from services.amadeus_client import AmadeusError, amadeus
from services.travel_hacks import generate_travel_hacks
from TripPreferences import TripPreferences

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

# Initialize database
init_db()

# FastAPI app
app = FastAPI(
    title="Where Next API",
    description="AI trip suggestions, itineraries, flight/hotel search and bookings",
    version=APP_VERSION,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

CRON_SECRET = os.getenv("CRON_SECRET", "")
FREE_PLAN_SAVED_TRIPS_LIMIT = int(os.getenv("FREE_PLAN_SAVED_TRIPS_LIMIT", "3"))

AI_FALLBACK_WARNING = "AI service unavailable, showing sample results"
AMADEUS_FALLBACK_WARNING = "Live travel data unavailable, showing sample results"
UTILS_FALLBACK_WARNING = "Live data unavailable, showing sample results"


# ── Envelope & error handlers ──────────────────────────────────────────────

def ok(data=None, **extra) -> dict:
    return {"ok": True, "data": data, **extra}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": "Invalid input data", "details": jsonable_encoder(exc.errors())},
    )


def _ai_or_fallback(label, generate, fallback, model, extra=None):
    """Run an AI generator; on AIServiceError serve the mock payload validated by the same model.

    extra is merged into the data on both paths.
    """
    extra = extra or {}
    try:
        result = generate()
    except AIServiceError as exc:
        logger.warning("%s: falling back to sample data: %s", label, exc)
        return ok({**model.model_validate(fallback()).to_json(), **extra},
                  source="fallback", warning=AI_FALLBACK_WARNING)
    return ok({**result.to_json(), **extra}, source="ai")


def _amadeus_or_fallback(label, call, fallback):
    """Returns (data, source, warning)."""
    if amadeus.is_configured():
        try:
            return call(), "amadeus", None
        except AmadeusError as exc:
            logger.warning("Amadeus %s failed, serving fallback: %s", label, exc)
    return fallback(), "fallback", AMADEUS_FALLBACK_WARNING


def _envelope(data, source, warning):
    extra = {"source": source}
    if warning:
        extra["warning"] = warning
    return ok(data, **extra)


def _owned_trip(db, trip_id, user):
    trip = db.query(Trip).filter(Trip.id == trip_id, Trip.user_id == user.id).first()
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


# ── Health ─────────────────────────────────────────────────────────────────

@app.get("/health")
def health_check():
    return ok({
        "status": "ok",
        "version": APP_VERSION,
        "llm": ai_planner.llm_name(),
        "llm_provider": ai_planner.llm_provider(),
        "providers": {
            "ai": ai_planner.is_configured(),
            "amadeus": amadeus.is_configured(),
            "stripe": payments.is_configured(),
            "weather": bool(travel_utils.OPENWEATHER_API_KEY),
            "currency": bool(travel_utils.CURRENCY_API_KEY),
            "email": bool(price_watch.RESEND_API_KEY),
        },
    })


# ── Profile & preferences ──────────────────────────────────────────────────

DEFAULT_PREFERENCES = {
    "travelStyle": [],
    "preferredAirlines": [],
    "preferredHotels": [],
    "budgetRange": "medium",
    "notificationPreferences": {"priceAlerts": True, "tripReminders": True},
    "privacySettings": {},
}


@app.get("/api/profile")
def get_profile(user=Depends(require_user)):
    return ok(row_to_dict(user))


@app.put("/api/profile")
def update_profile(body: ProfileUpdate, user=Depends(require_user), db=Depends(get_db)):
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return ok(row_to_dict(user))


@app.get("/api/preferences")
def get_preferences(user=Depends(require_user), db=Depends(get_db)):
    prefs = db.query(UserPreferences).filter(UserPreferences.user_id == user.id).first()
    if not prefs:
        return ok({"userId": user.id, **DEFAULT_PREFERENCES})
    return ok(row_to_dict(prefs))


@app.put("/api/preferences")
def update_preferences(body: PreferencesUpdate, user=Depends(require_user), db=Depends(get_db)):
    prefs = db.query(UserPreferences).filter(UserPreferences.user_id == user.id).first()
    if not prefs:
        prefs = UserPreferences(user_id=user.id)
        db.add(prefs)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(prefs, key, value)
    db.commit()
    db.refresh(prefs)
    return ok(row_to_dict(prefs))


# ── Budget trips ───────────────────────────────────────────────────────────

@app.post("/api/budget")
def create_budget(body: BudgetCreate, user=Depends(require_user), db=Depends(get_db)):
    trip = Trip(user_id=user.id, **body.model_dump())
    db.add(trip)
    db.commit()
    db.refresh(trip)
    return ok(row_to_dict(trip))


@app.get("/api/budget")
def list_budgets(user=Depends(require_user), db=Depends(get_db)):
    trips = db.query(Trip).filter(Trip.user_id == user.id).order_by(Trip.created_at.desc()).all()
    return ok([row_to_dict(t) for t in trips])


@app.put("/api/budget")
def update_budget(body: BudgetUpdate, user=Depends(require_user), db=Depends(get_db)):
    trip = _owned_trip(db, body.id, user)
    for key, value in body.model_dump(exclude_unset=True, exclude={"id"}).items():
        setattr(trip, key, value)
    db.commit()
    db.refresh(trip)
    return ok(row_to_dict(trip))


# ── Saved trips ────────────────────────────────────────────────────────────
# Declared before /api/trips/{trip_id} so "saved" and "plan" are not taken as ids.

@app.get("/api/trips/saved")
def list_saved_trips(user=Depends(require_user), db=Depends(get_db)):
    saved = (db.query(SavedTrip).filter(SavedTrip.user_id == user.id)
             .order_by(SavedTrip.saved_at.desc()).all())
    return ok([row_to_dict(s) for s in saved])


@app.post("/api/trips/saved")
def save_trip(body: SavedTripCreate, user=Depends(require_user), db=Depends(get_db)):
    if user.plan != "pro":
        count = db.query(func.count(SavedTrip.id)).filter(SavedTrip.user_id == user.id).scalar()
        if count >= FREE_PLAN_SAVED_TRIPS_LIMIT:
            raise HTTPException(status_code=429,
                                detail="Free plan limit reached. Upgrade to Pro to save unlimited trips.")

    duplicate = db.query(SavedTrip).filter(
        SavedTrip.user_id == user.id,
        func.lower(SavedTrip.destination) == body.destination.lower(),
    ).first()
    if duplicate:
        raise HTTPException(status_code=409, detail="This destination is already in your saved trips")

    saved = SavedTrip(user_id=user.id, **body.model_dump())
    db.add(saved)
    db.commit()
    db.refresh(saved)
    return ok({"trip": row_to_dict(saved), "message": "Trip saved successfully!"})


@app.delete("/api/trips/saved/{saved_id}")
def delete_saved_trip(saved_id: str, user=Depends(require_user), db=Depends(get_db)):
    saved = db.query(SavedTrip).filter(SavedTrip.id == saved_id, SavedTrip.user_id == user.id).first()
    if not saved:
        raise HTTPException(status_code=404, detail="Saved trip not found")
    db.delete(saved)
    db.commit()
    return ok({"id": saved_id, "message": "Trip removed from saved trips"})


# ── Trip planning ──────────────────────────────────────────────────────────

DEFAULT_PLAN_DAYS = 7


def _plan_days(req) -> int:
    if req.whenever or not (req.start_date and req.end_date):
        return DEFAULT_PLAN_DAYS
    try:
        start = datetime.fromisoformat(req.start_date)
        end = datetime.fromisoformat(req.end_date)
    except ValueError:
        raise HTTPException(status_code=400, detail="Dates must be in YYYY-MM-DD format")
    return max(math.ceil((end - start).total_seconds() / 86400), 1)


@app.post("/api/trips/plan")
def plan_trip(body: TripPlanRequest, user=Depends(optional_user), db=Depends(get_db)):
    days = _plan_days(body)
    try:
        plan = ai_planner.generate_trip_plan(body, days)
        source, warning = "ai", None
    except AIServiceError as exc:
        logger.warning("Trip plan: falling back to sample data: %s", exc)
        plan = TripPlan.model_validate(mock_trip_plan(
            body.departure_city, days=days, travelers=body.travelers,
            planning_mode=body.planning_mode,
            destination=None if body.go_anywhere else body.destination,
        ))
        source, warning = "fallback", AI_FALLBACK_WARNING

    data = plan.to_json()
    data["planningContext"] = {
        "departureCity": body.departure_city,
        "destination": "Anywhere (surprise me!)" if body.go_anywhere else body.destination,
        "dates": ("Flexible" if body.whenever
                  else f"{body.start_date or 'Not specified'} to {body.end_date or 'Not specified'}"),
        "budget": body.budget,
        "travelers": body.travelers,
        "interests": body.interests,
        "whenever": body.whenever,
        "goAnywhere": body.go_anywhere,
        "duration": days,
        "planningMode": body.planning_mode,
    }
    data["generatedAt"] = datetime.utcnow().isoformat()

    if user:
        itinerary = Itinerary(
            user_id=user.id,
            departure_city=body.departure_city,
            destination=plan.destinations[0].city,
            start_date=None if body.whenever else body.start_date,
            end_date=None if body.whenever else body.end_date,
            travelers=body.travelers,
            planning_mode=body.planning_mode,
            plan=plan.to_json(),
        )
        db.add(itinerary)
        db.commit()
        data["itineraryId"] = itinerary.id

    return _envelope(data, source, warning)


@app.get("/api/trips/plan")
def list_trip_plans(user=Depends(require_user), db=Depends(get_db)):
    itineraries = (db.query(Itinerary).filter(Itinerary.user_id == user.id)
                   .order_by(Itinerary.created_at.desc()).all())
    return ok([row_to_dict(i) for i in itineraries])


PLAN_SLOTS = (("morning", 9), ("afternoon", 13), ("evening", 19))


@app.get("/api/trips/plan/{itinerary_id}/ical")
def get_trip_plan_ical(itinerary_id: str, user=Depends(require_user), db=Depends(get_db)):
    """Download an iCal (.ics) file for a saved trip plan."""
    itinerary = db.query(Itinerary).filter(
        Itinerary.id == itinerary_id, Itinerary.user_id == user.id
    ).first()
    if not itinerary:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    if not itinerary.start_date:
        raise HTTPException(status_code=400, detail="Itinerary has no start date")
    try:
        trip_start = datetime.strptime(itinerary.start_date, "%Y-%m-%d")
    except ValueError:
        raise HTTPException(status_code=400, detail="Itinerary start date must be YYYY-MM-DD")

    title = f"{itinerary.departure_city} to {itinerary.destination or 'Anywhere'}"
    cal = Calendar()
    cal.add("prodid", "-//Where Next//Trip Planner//EN")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", title)

    for day in (itinerary.plan or {}).get("days", []):
        day_date = trip_start + timedelta(days=day.get("day", 1) - 1)
        for slot, hour in PLAN_SLOTS:
            activities = day.get(slot) or []
            if not activities:
                continue
            ev = ICalEvent()
            ev.add("summary", f"Day {day.get('day')}: {day.get('theme', '')} ({slot})")
            ev.add("description", "\n".join(activities))
            ev_start = day_date.replace(hour=hour, minute=0)
            ev.add("dtstart", ev_start)
            ev.add("dtend", ev_start + timedelta(hours=3))
            ev.add("uid", f"{itinerary.id}-{day.get('day')}-{slot}@where-next")
            cal.add_component(ev)

    safe_title = title.replace(" ", "_")
    return Response(
        content=cal.to_ical(),
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{safe_title}.ics"'},
    )


# ── Trips & expenses ───────────────────────────────────────────────────────

def _spend_summary(trip, expenses):
    spent = round(sum(e.amount or 0 for e in expenses), 2)
    by_category = {}
    for e in expenses:
        by_category[e.category] = round(by_category.get(e.category, 0) + (e.amount or 0), 2)
    budget = trip.budget or 0
    return {
        "budget": budget,
        "spent": spent,
        "remaining": round(budget - spent, 2),
        "percentUsed": round(spent / budget * 100, 1) if budget else 0,
        "byCategory": by_category,
    }


@app.get("/api/trips/{trip_id}")
def get_trip(trip_id: str, user=Depends(require_user), db=Depends(get_db)):
    trip = _owned_trip(db, trip_id, user)
    expenses = sorted(trip.expenses, key=lambda e: e.date or "", reverse=True)
    return ok({
        **row_to_dict(trip),
        "expenses": [row_to_dict(e) for e in expenses],
        "summary": _spend_summary(trip, expenses),
    })


@app.delete("/api/trips/{trip_id}")
def delete_trip(trip_id: str, user=Depends(require_user), db=Depends(get_db)):
    trip = _owned_trip(db, trip_id, user)
    db.delete(trip)
    db.commit()
    return ok({"id": trip_id, "message": "Trip deleted"})


def _owned_expense(db, expense_id, user):
    expense = (db.query(Expense).join(Trip, Expense.trip_id == Trip.id)
               .filter(Expense.id == expense_id, Trip.user_id == user.id).first())
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@app.post("/api/expenses")
def create_expense(body: ExpenseCreate, user=Depends(require_user), db=Depends(get_db)):
    _owned_trip(db, body.trip_id, user)
    expense = Expense(user_id=user.id, **body.model_dump())
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return ok(row_to_dict(expense))


@app.get("/api/expenses")
def list_expenses(trip_id: Optional[str] = Query(None, alias="tripId"),
                  user=Depends(require_user), db=Depends(get_db)):
    query = db.query(Expense).join(Trip, Expense.trip_id == Trip.id).filter(Trip.user_id == user.id)
    if trip_id:
        query = query.filter(Expense.trip_id == trip_id)
    return ok([row_to_dict(e) for e in query.order_by(Expense.date.desc()).all()])


@app.put("/api/expenses")
def update_expense(body: ExpenseUpdate, user=Depends(require_user), db=Depends(get_db)):
    expense = _owned_expense(db, body.id, user)
    for key, value in body.model_dump(exclude_unset=True, exclude={"id"}).items():
        setattr(expense, key, value)
    db.commit()
    db.refresh(expense)
    return ok(row_to_dict(expense))


@app.delete("/api/expenses")
def delete_expense(expense_id: Optional[str] = Query(None, alias="id"),
                   user=Depends(require_user), db=Depends(get_db)):
    if not expense_id:
        raise HTTPException(status_code=400, detail="Expense ID required")
    expense = _owned_expense(db, expense_id, user)
    db.delete(expense)
    db.commit()
    return ok({"id": expense_id, "message": "Expense deleted"})


# ── Travel wallet ──────────────────────────────────────────────────────────

@app.post("/api/travel-wallet")
def create_wallet_item(body: WalletItemCreate, user=Depends(require_user), db=Depends(get_db)):
    _owned_trip(db, body.trip_id, user)
    item = WalletItem(user_id=user.id, **body.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return ok(row_to_dict(item))


@app.get("/api/travel-wallet")
def list_wallet_items(trip_id: Optional[str] = Query(None, alias="tripId"),
                      user=Depends(require_user), db=Depends(get_db)):
    if not trip_id:
        raise HTTPException(status_code=400, detail="Trip ID is required")
    _owned_trip(db, trip_id, user)
    items = (db.query(WalletItem).filter(WalletItem.trip_id == trip_id)
             .order_by(WalletItem.start_ts.asc()).all())
    return ok([row_to_dict(i) for i in items])


# ── AI planner ─────────────────────────────────────────────────────────────

@app.post("/api/ai/suggestions")
def ai_suggestions(body: SuggestionRequest):
    prefs = TripPreferences.from_request(body)
    return _ai_or_fallback(
        "Suggestions",
        lambda: ai_planner.generate_suggestions(prefs),
        lambda: {"suggestions": MOCK_SUGGESTIONS},
        SuggestionsResult,
    )


@app.post("/api/ai/itinerary-builder")
def ai_itinerary_builder(body: ItineraryRequest):
    return _ai_or_fallback(
        "Itinerary builder",
        lambda: ai_planner.generate_itinerary(body),
        lambda: mock_itinerary(body.destination, body.trip_duration, body.budget_style),
        ItineraryResult,
    )


@app.post("/api/ai/trip-details")
def ai_trip_details(body: TripDetailsRequest):
    return _ai_or_fallback(
        "Trip details",
        lambda: ai_planner.generate_trip_detail(body),
        lambda: mock_trip_detail(body.destination, body.trip_duration, body.budget_amount,
                                 body.trip_id),
        TripDetailResult,
    )


@app.post("/api/ai/useful-phrases")
def ai_useful_phrases(body: UsefulPhrasesRequest):
    return _ai_or_fallback(
        "Useful phrases",
        lambda: ai_planner.generate_useful_phrases(body),
        lambda: mock_useful_phrases(body.destination, body.language,
                                    travel_utils.phrase_table(body.language)),
        PhrasesResult,
    )


@app.post("/api/ai/walking-tour")
def ai_walking_tour(body: WalkingTourRequest):
    return _ai_or_fallback(
        "Walking tour",
        lambda: ai_planner.generate_walking_tour(body),
        lambda: mock_walking_tour(body.destination, body.duration, body.start_location),
        WalkingTour,
    )


@app.post("/api/ai/assistant")
def ai_assistant(body: AssistantRequest, user=Depends(optional_user), db=Depends(get_db)):
    context = body.context
    destination = (context.current_trip.destination
                   if context and context.current_trip else None)
    try:
        reply = ai_planner.chat_reply(body.message, context)
    except AIServiceError as exc:
        logger.warning("Assistant: falling back to canned reply: %s", exc)
        reply = AssistantReply.model_validate(mock_assistant_reply(destination))
        return ok({**reply.to_json(), "timestamp": datetime.utcnow().isoformat()},
                  source="fallback", warning=AI_FALLBACK_WARNING)

    if user:
        db.add(AIConversation(
            user_id=user.id,
            message=body.message,
            response=reply.response,
            context=context.to_json() if context else {},
        ))
        db.commit()
    return ok({**reply.to_json(), "timestamp": datetime.utcnow().isoformat()}, source="ai")


@app.put("/api/ai/assistant")
def ai_quick_question(body: QuickQuestionRequest):
    if body.question_type == "custom" and body.custom_question:
        question = body.custom_question
    else:
        question = QUICK_QUESTIONS[body.question_type].format(destination=body.destination)
    data = {"question": question, "questionType": body.question_type,
            "destination": body.destination}
    try:
        answer = ai_planner.quick_answer(question)
    except AIServiceError as exc:
        logger.warning("Quick question: falling back to canned answer: %s", exc)
        data["answer"] = QUICK_ANSWERS[body.question_type].format(destination=body.destination)
        return ok(data, source="fallback", warning=AI_FALLBACK_WARNING)
    data["answer"] = answer
    return ok(data, source="ai")


@app.post("/api/ai/travel-agent")
def ai_travel_agent(body: TravelAgentRequest):
    try:
        reply = ai_planner.travel_agent_reply(body.message, body.trip_data)
    except AIServiceError as exc:
        logger.warning("Travel agent: falling back to canned reply: %s", exc)
        destination = (body.trip_data or {}).get("destination")
        return ok({"response": mock_travel_agent_reply(destination)},
                  source="fallback", warning=AI_FALLBACK_WARNING)
    return ok({"response": reply}, source="ai")


@app.get("/api/ai/trip-recommendations")
def ai_trip_recommendations():
    return ok({"recommendations": MOCK_TRIP_RECOMMENDATIONS})


@app.post("/api/ai/personalized-deals")
def ai_personalized_deals(body: PersonalizedDealsRequest):
    profile = {
        "location": body.current_location,
        "budget": body.budget,
        "duration": body.duration,
        "interests": body.interests,
        "travelStyle": body.travel_style,
        "searchHistory": body.search_history,
    }
    return _ai_or_fallback(
        "Personalized deals",
        lambda: ai_planner.generate_personalized_deals(body),
        lambda: {"recommendations": MOCK_DEAL_RECOMMENDATIONS},
        PersonalizedDealsResult,
        extra={"userProfile": profile, "generatedAt": datetime.utcnow().isoformat()},
    )


@app.post("/api/ai/personalized-recommendations")
def ai_personalized_recommendations(body: PersonalizedRecommendationsRequest):
    options = body.flight_hotel_data
    return _ai_or_fallback(
        "Personalized recommendations",
        lambda: ai_planner.generate_personalized_recommendations(body),
        lambda: {"recommendations": mock_personalized_recommendations(
            body.destination, body.budget_amount, body.budget_style, body.vibes, body.kids,
            options.flights if options else [], options.hotels if options else [],
        )},
        PersonalizedRecommendationsResult,
    )


# ── Flights, hotels & airports ─────────────────────────────────────────────

@app.post("/api/flights/search")
def search_flights(body: FlightSearchRequest):
    origin, destination = body.origin.upper(), body.destination.upper()
    flights, source, warning = _amadeus_or_fallback(
        "flight search",
        lambda: amadeus.search_flights(
            origin, destination, body.departure_date, return_date=body.return_date,
            adults=body.adults, travel_class=body.travel_class, non_stop=body.non_stop,
            currency=body.currency, max_results=body.max_results,
        ),
        lambda: generate_mock_flights(origin, destination, body.departure_date,
                                      return_date=body.return_date, adults=body.adults,
                                      currency=body.currency),
    )
    return _envelope({"flights": flights, "total": len(flights)}, source, warning)


@app.get("/api/flights/inspiration")
def flight_inspiration(origin: str = Query("YVR", min_length=3, max_length=3),
                       max_price: Optional[float] = Query(None, alias="maxPrice", gt=0)):
    def fallback():
        return [d for d in MOCK_INSPIRATION if max_price is None or d["price"] <= max_price]

    flights, source, warning = _amadeus_or_fallback(
        "flight inspiration",
        lambda: amadeus.flight_inspiration(origin.upper(), max_price=max_price),
        fallback,
    )
    return _envelope({"origin": origin.upper(), "flights": flights}, source, warning)


@app.get("/api/flights/deals")
def get_flight_deals(origin: str = Query("YVR", min_length=3, max_length=3),
                     currency: str = Query("USD", min_length=3, max_length=3),
                     max_price: float = Query(1000, alias="maxPrice", gt=0)):
    origin, currency = origin.upper(), currency.upper()
    departure, return_date = flight_deals.travel_window()
    deals, source, warning = _amadeus_or_fallback(
        "flight deals",
        lambda: flight_deals.find_flight_deals(amadeus, origin, currency, max_price),
        lambda: mock_flight_deals(departure, return_date, currency, max_price),
    )
    return _envelope({"deals": deals, "origin": origin, "currency": currency,
                      "lastUpdated": datetime.utcnow().isoformat()}, source, warning)


@app.post("/api/flights/price")
def price_flight_offer(body: FlightPriceRequest):
    pricing, source, warning = _amadeus_or_fallback(
        "flight pricing",
        lambda: amadeus.price_flight_offer(body.offer),
        lambda: mock_offer_pricing(body.offer),
    )
    return _envelope(pricing, source, warning)


@app.post("/api/hotels/search")
def search_hotels(body: HotelSearchRequest):
    city_code = body.city_code.upper()
    hotels, source, warning = _amadeus_or_fallback(
        "hotel search",
        lambda: amadeus.search_hotels(city_code, body.check_in, body.check_out,
                                      adults=body.adults, max_hotels=body.max_hotels),
        lambda: generate_mock_hotels(city_code, body.check_in, body.check_out, adults=body.adults),
    )
    return _envelope({"hotels": hotels, "total": len(hotels)}, source, warning)


@app.get("/api/hotels/autocomplete")
def hotel_autocomplete(keyword: str = Query(..., min_length=2)):
    hotels, source, warning = _amadeus_or_fallback(
        "hotel autocomplete",
        lambda: amadeus.hotel_autocomplete(keyword),
        list,
    )
    return _envelope({"hotels": hotels}, source, warning)


@app.get("/api/airports/search")
def search_airports(keyword: str = Query(..., min_length=2)):
    needle = keyword.lower()

    def fallback():
        return [a for a in MOCK_AIRPORTS
                if needle in a["iataCode"].lower() or needle in a["name"].lower()
                or needle in a["cityName"].lower()]

    airports, source, warning = _amadeus_or_fallback(
        "airport search",
        lambda: amadeus.search_locations(keyword),
        fallback,
    )
    return _envelope({"airports": airports}, source, warning)


# ── Travel hacks & affiliate links ─────────────────────────────────────────

@app.post("/api/hacks")
def travel_hacks(body: HacksRequest):
    hacks = generate_travel_hacks(body.origin, body.destination, body.month, body.budget)
    return ok({
        "hacks": [h.to_dict() for h in hacks],
        "total": len(hacks),
        "potentialSavings": sum(h.savings.amount for h in hacks),
        "origin": body.origin,
        "destination": body.destination,
        "month": body.month,
        "generatedAt": datetime.utcnow().isoformat(),
    })


@app.get("/api/affiliate/link")
def affiliate_link(provider: str = Query(..., min_length=1),
                   product_type: str = Query("flight", alias="productType"),
                   origin: Optional[str] = None,
                   destination: Optional[str] = None,
                   departure: Optional[str] = None,
                   return_date: Optional[str] = Query(None, alias="returnDate"),
                   adults: Optional[int] = Query(None, ge=1),
                   booking_value: float = Query(0, alias="bookingValue", ge=0)):
    url = build_affiliate_link(provider, product_type, origin, destination, departure,
                               return_date, adults)
    return ok({
        "url": url,
        "provider": provider,
        "productType": product_type,
        "alternatives": [p for p in providers_for(product_type) if p != provider],
        "estimatedCommission": estimate_commission(provider, booking_value),
    })


# ── Price watch ────────────────────────────────────────────────────────────

@app.post("/api/price-watch")
def create_price_watch(body: PriceWatchCreate, db=Depends(get_db)):
    watch = price_watch.create_watch(db, body)
    if watch.alert_triggered:
        message = (f"Great news! Current price ${watch.current_price:.0f} is already at your "
                   f"target of ${watch.target_price:.0f}!")
    else:
        message = (f"Price watch created! We'll notify you when the price drops to "
                   f"${watch.target_price:.0f} or below.")
    return ok({"watch": price_watch.watch_to_dict(watch), "message": message})


@app.get("/api/price-watch")
def list_price_watches(email: str = Query(..., pattern=EMAIL_PATTERN), db=Depends(get_db)):
    watches = (db.query(PriceWatch).filter(PriceWatch.email == email)
               .order_by(PriceWatch.created_at.desc()).all())
    return ok({"watches": [price_watch.watch_to_dict(w) for w in watches], "count": len(watches)})


@app.delete("/api/price-watch")
def delete_price_watch(body: PriceWatchDelete, db=Depends(get_db)):
    watch = db.query(PriceWatch).filter(
        PriceWatch.id == body.watch_id, PriceWatch.email == body.email
    ).first()
    if not watch:
        raise HTTPException(status_code=404, detail="Price watch not found")
    db.delete(watch)
    db.commit()
    return ok({"message": "Price watch deleted successfully"})


def _check_cron_auth(authorization: Optional[str]):
    if not CRON_SECRET:
        raise HTTPException(status_code=503, detail="Cron secret not configured")
    if not hmac.compare_digest(authorization or "", f"Bearer {CRON_SECRET}"):
        raise HTTPException(status_code=401, detail="Unauthorized")


@app.get("/api/cron/price-check")
@app.post("/api/cron/price-check")
def cron_price_check(authorization: Optional[str] = Header(None), db=Depends(get_db)):
    _check_cron_auth(authorization)
    result = price_watch.check_price_updates(db)
    return ok({**result, "timestamp": datetime.utcnow().isoformat()})


# ── Payments & bookings ────────────────────────────────────────────────────

@app.post("/api/payments/create-checkout-session")
def create_checkout_session(body: CheckoutSessionRequest, user=Depends(optional_user),
                            db=Depends(get_db)):
    if not payments.is_configured():
        raise HTTPException(status_code=503, detail="Payment service not configured")
    try:
        session = payments.create_checkout_session(db, body, user.id if user else None)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except stripe.StripeError as e:
        logger.warning("Checkout session creation failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Stripe error: {str(e)}")
    return ok(session)


@app.post("/api/payments/create-payment-intent")
def create_payment_intent(body: PaymentIntentRequest, user=Depends(optional_user),
                          db=Depends(get_db)):
    if not payments.is_configured():
        raise HTTPException(status_code=503, detail="Payment service not configured")
    try:
        intent = payments.create_payment_intent(db, body, user.id if user else None)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except stripe.StripeError as e:
        logger.warning("Payment intent creation failed: %s", e)
        raise HTTPException(status_code=500, detail=f"Stripe error: {str(e)}")
    return ok(intent)


@app.post("/api/payments/webhook")
@app.post("/api/stripe/webhook")
async def stripe_webhook(request: Request, db=Depends(get_db)):
    """Verify a Stripe event and move the matching booking to its new status."""
    if not payments.webhook_configured():
        raise HTTPException(status_code=503, detail="Webhook not configured")
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        raise HTTPException(status_code=400, detail="Missing stripe-signature header")

    payload = await request.body()
    try:
        event = payments.construct_event(payload, sig_header)
    except (ValueError, stripe.SignatureVerificationError):
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    status = payments.apply_webhook_event(db, event)
    return ok({"received": True, "type": event["type"], "status": status})


@app.get("/api/bookings")
def list_bookings(user=Depends(require_user), db=Depends(get_db)):
    bookings = (db.query(Booking).filter(Booking.user_id == user.id)
                .order_by(Booking.created_at.desc()).all())
    return ok([payments.booking_to_dict(b) for b in bookings])


# ── Utilities: currency, weather, phrases, cities ──────────────────────────

@app.get("/api/utils/currency")
def exchange_rates(base: str = Query("USD", min_length=3, max_length=3),
                   symbols: Optional[str] = None):
    wanted = [s.strip().upper() for s in symbols.split(",")] if symbols else None
    try:
        try:
            return ok(travel_utils.get_rates(base, wanted), source="live")
        except travel_utils.UtilityServiceError as exc:
            logger.warning("Exchange rates: falling back to mock rates: %s", exc)
        rates = travel_utils.mock_rates(base, wanted)
    except travel_utils.UnsupportedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ok(rates, source="fallback", warning=UTILS_FALLBACK_WARNING)


@app.post("/api/utils/currency")
def convert_currency(body: CurrencyConversionRequest):
    try:
        try:
            return ok(travel_utils.convert(body.from_currency, body.to, body.amount), source="live")
        except travel_utils.UtilityServiceError as exc:
            logger.warning("Currency conversion: falling back to mock rates: %s", exc)
        result = travel_utils.mock_convert(body.from_currency, body.to, body.amount)
    except travel_utils.UnsupportedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ok(result, source="fallback", warning=UTILS_FALLBACK_WARNING)


@app.put("/api/utils/currency")
def convert_currency_mock(body: CurrencyConversionRequest):
    try:
        result = travel_utils.mock_convert(body.from_currency, body.to, body.amount)
    except travel_utils.UnsupportedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ok(result, source="fallback")


@app.get("/api/utils/weather")
def weather_forecast(city: str = Query(..., min_length=1), country: Optional[str] = None,
                     units: str = Query("metric", pattern="^(metric|imperial)$")):
    try:
        return ok(travel_utils.get_weather(city, country, units), source="live")
    except travel_utils.CityNotFound:
        raise HTTPException(status_code=404, detail="City not found")
    except travel_utils.UtilityServiceError as exc:
        logger.warning("Weather: falling back to mock forecast: %s", exc)
    return ok(mock_weather(city, country, units), source="fallback", warning=UTILS_FALLBACK_WARNING)


@app.post("/api/utils/weather")
def weather_mock(body: WeatherRequest):
    return ok(mock_weather(body.city, body.country, body.units), source="fallback")


def _phrases(language, category):
    try:
        return ok(travel_utils.lookup_phrases(language, category))
    except travel_utils.UnsupportedError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/utils/phrases")
def get_phrases(language: str = Query(..., min_length=1),
                category: Optional[PhraseCategoryName] = None):
    return _phrases(language, category)


@app.post("/api/utils/phrases")
def post_phrases(body: PhrasesRequest):
    return _phrases(body.language, body.category)


@app.put("/api/utils/phrases")
def phrase_languages():
    return ok(travel_utils.available_languages())


@app.get("/api/utils/city-search")
def city_search(q: str = ""):
    try:
        cities = travel_utils.search_cities(q)
    except travel_utils.UtilityServiceError as exc:
        logger.warning("City search: falling back to static list: %s", exc)
        return ok({"cities": travel_utils.fallback_cities(q)}, source="fallback",
                  warning=UTILS_FALLBACK_WARNING)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ok({"cities": cities}, source="live")


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
