"""
LLM-backed trip planning (litellm).

Each generator is one completion call: build the prompt, parse the JSON the
model returns, validate it against the response schema. Any failure along the
way surfaces as AIServiceError so the route can serve its static fallback with
the identical shape.
"""
import json
import logging
import os
from typing import Any, List, Optional, Type

import litellm
from pydantic import BaseModel, ValidationError

from schemas import (
    AssistantReply, ChatTurn, ItineraryResult, PersonalizedDealsResult,
    PersonalizedRecommendationsResult, PhrasesResult, SuggestionsResult, TripDetailResult,
    TripPlan, WalkingTour,
)
from TripPreferences import TripPreferences

logger = logging.getLogger(__name__)

# Silence litellm's own verbose logging
litellm.suppress_debug_info = True
# Drop params unsupported by the active model
litellm.drop_params = True

MAX_HISTORY = 10
AGENT_REPLY_LIMIT = 500

_LLM_DEFAULTS = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-2.0-flash",
    "anthropic": "claude-sonnet-4-20250514",
}


class AIServiceError(Exception):
    """The model call failed or returned something we could not use."""


def llm_provider() -> str:
    provider = os.getenv("LLM_PROVIDER", "openai").lower().strip()
    return provider if provider in _LLM_DEFAULTS else "openai"


def llm_name() -> str:
    """Return the litellm model string (provider/model format)."""
    provider = llm_provider()
    model = os.getenv("LLM_MODEL", _LLM_DEFAULTS[provider])
    if provider == "openai":
        return model
    return f"{provider}/{model}"


def is_configured() -> bool:
    key_env = {"openai": "OPENAI_API_KEY", "gemini": "GEMINI_API_KEY",
               "anthropic": "ANTHROPIC_API_KEY"}[llm_provider()]
    return bool(os.getenv(key_env))


def llm_complete(messages: List[dict], temperature: float = 0.7,
                 max_tokens: Optional[int] = None) -> str:
    if not is_configured():
        raise AIServiceError("AI service not configured")
    try:
        response = litellm.completion(
            model=llm_name(),
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except Exception as exc:
        raise AIServiceError(f"LLM call failed: {exc}") from exc
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError) as exc:
        raise AIServiceError(f"Malformed LLM response: {exc!r}") from exc
    if not content:
        raise AIServiceError("Empty response from LLM")
    return content


def llm_call(system_prompt: str, user_prompt: str, temperature: float = 0.7,
             max_tokens: Optional[int] = None) -> str:
    """Single system+user completion, returning the text content."""
    return llm_complete(
        [{"role": "system", "content": system_prompt},
         {"role": "user", "content": user_prompt}],
        temperature=temperature,
        max_tokens=max_tokens,
    )


def safe_json_parse(text: str) -> Any:
    """Extract and parse JSON from an LLM response that may include markdown fences."""
    cleaned = text.strip()
    if "```json" in cleaned:
        cleaned = cleaned.split("```json", 1)[1].split("```", 1)[0]
    elif "```" in cleaned:
        cleaned = cleaned.split("```", 1)[1].split("```", 1)[0]
    return json.loads(cleaned.strip())


def _structured(system_prompt: str, user_prompt: str, model: Type[BaseModel],
                wrap_key: Optional[str] = None, max_tokens: int = 2000) -> BaseModel:
    text = llm_call(system_prompt, user_prompt, max_tokens=max_tokens)
    try:
        data = safe_json_parse(text)
        if wrap_key and isinstance(data, list):
            data = {wrap_key: data}
        return model.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise AIServiceError(f"Unusable {model.__name__} from LLM: {exc}") from exc


# ── Prompts ────────────────────────────────────────────────────────────────

_JSON_ONLY = "Always respond with valid JSON only. Never include explanations outside the JSON."

_SUGGESTIONS_SYSTEM = f"You are an expert travel AI assistant. {_JSON_ONLY}"

_SUGGESTION_SHAPE = """\
[{"id": "1", "destination": "City, Country", "country": "Country", "city": "City",
  "fitScore": 90, "description": "Brief description",
  "weather": {"temp": 24, "condition": "Sunny", "icon": "☀️"},
  "crowdLevel": "Low/Medium/High", "seasonality": "Description of season",
  "estimatedTotal": 1500, "flightBand": {"min": 400, "max": 700},
  "hotelBand": {"min": 80, "max": 150, "style": "Boutique", "area": "Neighbourhood"},
  "highlights": ["...", "...", "...", "..."],
  "whyItFits": "Why this destination matches their preferences"}]"""


def generate_suggestions(prefs: TripPreferences) -> SuggestionsResult:
    """Four destination suggestions for the traveler's preferences."""
    prompt = (
        "Generate 4 diverse, personalized trip suggestions.\n\n"
        f"- Departing from: {prefs.from_city}\n"
        f"- Trip duration: {prefs.trip_days()} days\n"
        f"- Budget: ${prefs.budget_amount:.0f} ({prefs.budget_style} style), "
        f"about ${prefs.budget_per_person():.0f} per person\n"
        f"- Travelers: {prefs.adults} adults, {prefs.kids} kids\n"
        f"- Interests/Vibes: {prefs.vibes_text()}\n"
        f"- Dates: {prefs.dates_text()}\n"
        f"- Additional details: {prefs.additional_details or 'None provided'}\n\n"
        f"Return a JSON array shaped exactly like:\n{_SUGGESTION_SHAPE}"
    )
    return _structured(_SUGGESTIONS_SYSTEM, prompt, SuggestionsResult, wrap_key="suggestions")


_ITINERARY_SYSTEM = f"You are a travel expert who builds realistic day-by-day plans. {_JSON_ONLY}"


def generate_itinerary(req) -> ItineraryResult:
    prompt = (
        f"Create a detailed {req.trip_duration}-day itinerary for {req.destination} "
        f"for {req.travelers} travelers.\n"
        f"- Budget: {'$%.0f' % req.budget if req.budget else 'Not specified'} ({req.budget_style})\n"
        f"- Preferences: {', '.join(req.preferences) or 'Not specified'}\n\n"
        "Return a JSON array, one object per day:\n"
        '[{"day": 1, "title": "...", "theme": "...", "estimatedCost": 80,\n'
        '  "activities": [{"name": "...", "type": "attraction|restaurant|transport|shopping|experience",\n'
        '    "duration": 120, "cost": 25, "location": "Place, address", "description": "...",\n'
        '    "timeSlot": {"start": "09:00", "end": "11:00"}, "tips": ["..."]}],\n'
        '  "tips": ["..."], "weather": {"temp": 22, "condition": "Sunny", "icon": "☀️"}}]\n\n'
        "Use 4-6 activities per day between 08:00 and 20:00, real place names, "
        "and an order that flows by location."
    )
    return _structured(_ITINERARY_SYSTEM, prompt, ItineraryResult, wrap_key="itinerary",
                       max_tokens=3000)


def generate_trip_detail(req) -> TripDetailResult:
    prompt = (
        f"Describe a {req.trip_duration}-day trip to {req.destination} with a "
        f"${req.budget_amount:.0f} budget for someone into {', '.join(req.vibes) or 'anything'}.\n"
        "Return one JSON object with every field of this suggestion shape:\n"
        f"{_SUGGESTION_SHAPE}\n"
        "plus: \"dailyItinerary\": [{\"day\": 1, \"title\": \"...\", \"activities\": [\"...\"], "
        "\"estimatedCost\": 120, \"tips\": [\"...\"]}], \"bestTimeToVisit\": \"...\", "
        "\"localCurrency\": \"EUR\", \"language\": \"...\", \"timezone\": \"Europe/...\"\n"
        f"Use id \"{req.trip_id or '1'}\"."
    )
    text = llm_call(_ITINERARY_SYSTEM, prompt, max_tokens=3000)
    try:
        data = safe_json_parse(text)
        if isinstance(data, list) and data:
            data = data[0]
        return TripDetailResult.model_validate({"tripDetail": data})
    except (json.JSONDecodeError, ValidationError) as exc:
        raise AIServiceError(f"Unusable trip detail from LLM: {exc}") from exc


def generate_useful_phrases(req) -> PhrasesResult:
    prompt = (
        f"List useful {req.language} phrases for a traveler visiting {req.destination}"
        f"{' on a ' + req.trip_type + ' trip' if req.trip_type else ''}"
        f"{' interested in ' + ', '.join(req.vibes) if req.vibes else ''}.\n"
        "Group them into categories (Greetings & Basic, Restaurants & Food, Transportation, "
        "Emergency & Help, Shopping & Money). Return JSON:\n"
        f'{{"destination": "{req.destination}", "language": "{req.language}", "categories": '
        '[{"category": "...", "phrases": [{"english": "...", "local": "...", '
        '"pronunciation": "...", "usage": "..."}]}]}'
    )
    return _structured(f"You are a friendly language coach for travelers. {_JSON_ONLY}",
                       prompt, PhrasesResult)


def generate_walking_tour(req) -> WalkingTour:
    prompt = (
        f"Design a {req.duration:g}-hour self-guided walking tour of {req.destination} "
        f"for a group of {req.group_size} with {req.fitness_level} fitness.\n"
        f"- Interests: {', '.join(req.interests) or 'general sightseeing'}\n"
        f"- Start: {req.start_location or 'a central landmark'}\n"
        "Return JSON:\n"
        '{"title": "...", "description": "...", "totalDuration": 3, "totalDistance": 4.5,\n'
        ' "difficulty": "Easy/Moderate/Challenging",\n'
        ' "stops": [{"stopNumber": 1, "name": "...", "description": "...", "estimatedTime": 30,\n'
        '   "tips": ["..."], "photoOpportunities": ["..."], "nearbyAttractions": ["..."]}],\n'
        ' "route": {"startPoint": "...", "endPoint": "...", "waypoints": ["..."]},\n'
        ' "tips": ["..."], "bestTime": "Morning", "weatherConsiderations": "..."}'
    )
    return _structured(f"You are a local walking-tour guide. {_JSON_ONLY}", prompt, WalkingTour)


_MODE_INSTRUCTIONS = {
    "cheapest": "Prioritize budget-friendly options: deals, budget airlines, affordable "
                "stays and cost-effective activities.",
    "fastest": "Prioritize speed: direct flights, minimal layovers and convenient transport.",
    "easiest": "Prioritize convenience: simple itineraries, direct routes and "
               "tourist-friendly destinations.",
}


def generate_trip_plan(req, days: int) -> TripPlan:
    destination = ("Anywhere (suggest the best options for my interests and budget)"
                   if req.go_anywhere else req.destination or "Not specified")
    dates = ("Flexible (find best deals)" if req.whenever
             else f"{req.start_date or 'Not specified'} to {req.end_date or 'Not specified'}")
    prompt = (
        f"Plan a {days}-day trip.\n\n"
        f"Departure: {req.departure_city}\n"
        f"Destination: {destination}\n"
        f"Dates: {dates}\n"
        f"Budget: {'$%.0f' % req.budget if req.budget else 'Not specified'} "
        f"(total for {req.travelers} travelers)\n"
        f"Interests: {', '.join(req.interests) or 'Not specified'}\n"
        f"Planning Mode: {req.planning_mode.upper()}\n\n"
        f"{_MODE_INSTRUCTIONS[req.planning_mode]}\n\n"
        "Return JSON:\n"
        '{"destinations": [{"city": "...", "country": "...", "fitScore": 85, "estFlight": 450,\n'
        '   "estStay": 120, "estDaily": 80, "rationale": "..."}],\n'
        ' "days": [{"day": 1, "theme": "...", "morning": ["..."], "afternoon": ["..."],\n'
        '   "evening": ["..."], "estCost": 150}],\n'
        ' "totals": {"estTotal": 2500, "estFlights": 450, "estAccommodation": 840,\n'
        '   "estActivities": 560, "estFood": 420, "estTransport": 230},\n'
        ' "recommendations": {"bestTimeToBook": "...", "moneySavingTips": ["..."],\n'
        '   "packingSuggestions": ["..."], "localInsights": ["..."]}}'
    )
    plan = _structured(f"You are an expert travel planner. {_JSON_ONLY}", prompt, TripPlan,
                       max_tokens=3000)
    plan.planning_mode = req.planning_mode
    return plan


# ── Conversational ─────────────────────────────────────────────────────────

ASSISTANT_SYSTEM = """\
You are "Where Next", an AI travel assistant that helps travelers plan and enjoy their trips.
Offer practical advice (transport, accommodation, safety), local recommendations,
budget-friendly options, cultural insights, and timely information such as weather
and currency. Be accurate and considerate of the traveler's needs."""


def _assistant_system_prompt(context) -> str:
    prompt = ASSISTANT_SYSTEM
    if context and context.current_trip:
        trip = context.current_trip
        dates = f"{trip.start_date} to {trip.end_date}" if trip.start_date else "Not specified"
        prompt += (
            "\n\nCurrent Trip Context:\n"
            f"- Destination: {trip.destination or 'Not specified'}\n"
            f"- Dates: {dates}\n"
            f"- Budget: {'$%.0f' % trip.budget if trip.budget else 'Not specified'}\n"
            f"- Interests: {', '.join(trip.interests) or 'Not specified'}"
        )
    if context and context.current_location:
        prompt += f"\n- Current Location: {context.current_location}"
    return prompt


def assistant_messages(message: str, context=None) -> List[dict]:
    """System prompt, the last MAX_HISTORY turns, then the new message."""
    history: List[ChatTurn] = context.previous_messages if context else []
    messages = [{"role": "system", "content": _assistant_system_prompt(context)}]
    messages += [{"role": t.role, "content": t.content} for t in history[-MAX_HISTORY:]]
    messages.append({"role": "user", "content": message})
    return messages


def chat_reply(message: str, context=None) -> AssistantReply:
    text = llm_complete(assistant_messages(message, context), max_tokens=1000)
    return AssistantReply(response=text.strip())


def quick_answer(question: str) -> str:
    return llm_call(
        'You are "Where Next", an AI travel assistant. Provide concise, practical and '
        "accurate information about travel destinations.",
        question,
        max_tokens=800,
    ).strip()


def travel_agent_reply(message: str, trip_data: Optional[dict] = None) -> str:
    trip = trip_data or {}
    destination = ("Anywhere (surprise me!)" if trip.get("goAnywhere")
                   else trip.get("destination") or "Not specified")
    dates = ("Flexible" if trip.get("whenever")
             else f"{trip.get('startDate') or 'Not specified'} to {trip.get('endDate') or 'Not specified'}")
    system = (
        f"You are a helpful AI travel agent. Keep replies short and friendly "
        f"(max {AGENT_REPLY_LIMIT} characters).\n\n"
        "Current trip context:\n"
        f"- Departure: {trip.get('departureCity') or 'Not specified'}\n"
        f"- Destination: {destination}\n"
        f"- Budget: {'$' + str(trip['budget']) if trip.get('budget') else 'Not specified'}\n"
        f"- Travelers: {trip.get('travelers') or 'Not specified'}\n"
        f"- Dates: {dates}\n"
        f"- Interests: {', '.join(trip.get('interests') or []) or 'Not specified'}\n\n"
        "Focus on flights, travel tips, budget advice, best times to visit, attractions "
        "and hotels. Be concise and enthusiastic."
    )
    return llm_call(system, message, max_tokens=200).strip()[:AGENT_REPLY_LIMIT]


# ── Recommendations ────────────────────────────────────────────────────────

_ADVISOR_SYSTEM = ("You are a travel expert who gives personalized, practical destination "
                   f"and booking advice. {_JSON_ONLY}")

MAX_OPTIONS_IN_PROMPT = 10


def generate_personalized_deals(req) -> PersonalizedDealsResult:
    """Six destinations that fit the traveler's budget, interests and search history."""
    prompt = (
        "Suggest 6 personalized travel deals.\n\n"
        f"- Current location: {req.current_location}\n"
        f"- Budget: ${req.budget:.0f}\n"
        f"- Trip duration: {req.duration} days\n"
        f"- Interests: {', '.join(req.interests) or 'Not specified'}\n"
        f"- Travel style: {req.travel_style}\n"
        f"- Search history: {', '.join(req.search_history) or 'No previous searches'}\n\n"
        "Favour good value for the budget, seasonality and current travel trends. Return JSON:\n"
        '{"recommendations": [{"destination": "City, Country", "matchPercentage": 95,\n'
        '  "reasoning": "...", "estimatedCost": 1850,\n'
        '  "costBreakdown": {"flights": 650, "accommodation": 700, "activities": 300,\n'
        '    "food": 150, "transport": 50},\n'
        '  "bestTimeToVisit": "March-May", "keyAttractions": ["..."], "travelTips": ["..."],\n'
        '  "dealType": "Hot Deal|Good Deal|Regular", "savings": 20}]}'
    )
    return _structured(_ADVISOR_SYSTEM, prompt, PersonalizedDealsResult,
                       wrap_key="recommendations")


def generate_personalized_recommendations(req) -> PersonalizedRecommendationsResult:
    """Rank the flight and hotel options the traveler is looking at, with a budget split."""
    options = req.flight_hotel_data
    flights = options.flights[:MAX_OPTIONS_IN_PROMPT] if options else []
    hotels = options.hotels[:MAX_OPTIONS_IN_PROMPT] if options else []
    prompt = (
        "Review these travel options for the traveler below.\n\n"
        f"- Destination: {req.destination} ({req.city or '?'}, {req.country or '?'})\n"
        f"- From: {req.from_city or 'Not specified'}\n"
        f"- Dates: {req.start_date or 'Not specified'} to {req.end_date or 'Not specified'} "
        f"({req.trip_duration} days)\n"
        f"- Budget: ${req.budget_amount:.0f} ({req.budget_style} style)\n"
        f"- Vibes: {', '.join(req.vibes) or 'Not specified'}\n"
        f"- Group: {req.adults} adults, {req.kids} kids\n"
        f"- Additional details: {req.additional_details or 'None'}\n\n"
        f"Flight options:\n{json.dumps(flights, indent=2)}\n\n"
        f"Hotel options:\n{json.dumps(hotels, indent=2)}\n\n"
        "Return one JSON object:\n"
        '{"analysis": {"budgetBreakdown": {"totalBudget": 2000, "recommendedFlightBudget": 800,\n'
        '    "recommendedHotelBudget": 800, "recommendedActivityBudget": 300, "remainingBuffer": 100},\n'
        '  "travelStyleAnalysis": "...", "familyConsiderations": "..."},\n'
        ' "flightRecommendations": [{"flightId": "...", "recommendationScore": 9.5,\n'
        '   "whyRecommended": "...", "pros": ["..."], "cons": ["..."], "bestFor": "...",\n'
        '   "valueScore": 8.5, "convenienceScore": 9.0, "familyFriendlyScore": 8.0}],\n'
        ' "hotelRecommendations": [{"hotelId": "...", "recommendationScore": 9.2,\n'
        '   "whyRecommended": "...", "pros": ["..."], "cons": ["..."], "bestFor": "...",\n'
        '   "valueScore": 8.8, "locationScore": 9.5, "familyFriendlyScore": 9.0, "amenitiesScore": 8.5}],\n'
        ' "alternativeOptions": {\n'
        '   "budgetFriendly": {"description": "...", "flightSuggestion": "...", "hotelSuggestion": "...", "savings": 200},\n'
        '   "luxuryUpgrade": {"description": "...", "flightSuggestion": "...", "hotelSuggestion": "...", "additionalCost": 300}},\n'
        ' "insiderTips": ["..."],\n'
        ' "bookingStrategy": {"whenToBook": "...", "priceTrends": "...", "negotiationTips": "...",\n'
        '   "cancellationPolicy": "..."}}\n'
        "Only use flightId and hotelId values from the options above."
    )
    text = llm_call(_ADVISOR_SYSTEM, prompt, max_tokens=2500)
    try:
        data = safe_json_parse(text)
        if isinstance(data, dict) and "recommendations" in data:
            data = data["recommendations"]
        return PersonalizedRecommendationsResult.model_validate({"recommendations": data})
    except (json.JSONDecodeError, ValidationError) as exc:
        raise AIServiceError(f"Unusable personalized recommendations from LLM: {exc}") from exc
