"""Request and response schemas shared by the API routes and the AI planner.

Field names are snake_case in Python and camelCase on the wire; requests are
accepted in either form.
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PlanningMode = Literal["cheapest", "fastest", "easiest"]
WalletCategory = Literal[
    "boarding_pass", "train_ticket", "hotel_qr", "attraction", "insurance", "other",
]
PhraseCategoryName = Literal[
    "basic", "food", "transportation", "emergency", "shopping", "directions",
]
QuickQuestionType = Literal[
    "weather", "currency", "transportation", "safety", "food", "attractions", "custom",
]


# ── Profile / preferences ──────────────────────────────────────────────────

class ProfileUpdate(CamelModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class PreferencesUpdate(CamelModel):
    travel_style: Optional[List[str]] = None
    preferred_airlines: Optional[List[str]] = None
    preferred_hotels: Optional[List[str]] = None
    budget_range: Optional[str] = None
    notification_preferences: Optional[Dict[str, bool]] = None
    privacy_settings: Optional[dict] = None


# ── Budgets, expenses, wallet ──────────────────────────────────────────────

class BudgetCreate(CamelModel):
    destination: str = Field(min_length=1)
    start_date: str = Field(min_length=1)
    end_date: str = Field(min_length=1)
    budget: float = Field(gt=0)
    currency: str = "USD"
    notes: Optional[str] = None


class BudgetUpdate(CamelModel):
    id: str
    destination: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: Optional[float] = Field(default=None, gt=0)
    currency: Optional[str] = None
    notes: Optional[str] = None


class ExpenseCreate(CamelModel):
    trip_id: str
    amount: float = Field(gt=0)
    category: str = Field(min_length=1)
    description: str = Field(min_length=1)
    currency: str = "USD"
    date: str = Field(min_length=1)
    notes: Optional[str] = None


class ExpenseUpdate(CamelModel):
    id: str
    amount: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = None
    description: Optional[str] = None
    currency: Optional[str] = None
    date: Optional[str] = None
    notes: Optional[str] = None


class WalletItemCreate(CamelModel):
    trip_id: str
    title: str = Field(min_length=1)
    category: WalletCategory
    start_ts: Optional[str] = None
    end_ts: Optional[str] = None
    file_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    qr_text: Optional[str] = None
    barcode_text: Optional[str] = None
    notes: Optional[str] = None
    is_sensitive: bool = False


class SavedTripCreate(CamelModel):
    destination: str = Field(min_length=1)
    estimated_cost: float = Field(gt=0)
    source: str = Field(min_length=1)
    reason: Optional[str] = None
    fit_score: Optional[float] = None
    best_time: Optional[str] = None
    trip_duration: Optional[int] = None
    travelers: Optional[int] = None


# ── AI requests ────────────────────────────────────────────────────────────

class SuggestionRequest(CamelModel):
    from_city: str = Field(alias="from", min_length=1)
    trip_duration: int = Field(default=7, ge=1, le=60)
    budget_amount: float = Field(default=2000, ge=0)
    budget_style: str = "comfortable"
    vibes: List[str] = []
    additional_details: str = ""
    adults: int = Field(default=2, ge=1)
    kids: int = Field(default=0, ge=0)
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ItineraryRequest(CamelModel):
    trip_id: Optional[str] = None
    destination: str = Field(min_length=1)
    trip_duration: int = Field(default=3, ge=1, le=30)
    travelers: int = Field(default=2, ge=1)
    budget: Optional[float] = None
    budget_style: str = "comfortable"
    preferences: List[str] = []

    @field_validator("preferences", mode="before")
    @classmethod
    def _wrap_single_preference(cls, v):
        if isinstance(v, str):
            return [v] if v else []
        return v


class TripDetailsRequest(CamelModel):
    trip_id: Optional[str] = None
    destination: str = Field(min_length=1)
    trip_duration: int = Field(default=5, ge=1, le=30)
    budget_amount: float = Field(default=2000, ge=0)
    vibes: List[str] = []


class UsefulPhrasesRequest(CamelModel):
    destination: str = Field(min_length=1)
    language: str = Field(min_length=1)
    trip_type: Optional[str] = None
    vibes: List[str] = []


class WalkingTourRequest(CamelModel):
    destination: str = Field(min_length=1)
    duration: float = Field(default=3, gt=0, le=8)  # hours
    interests: List[str] = []
    fitness_level: str = "moderate"
    group_size: int = Field(default=1, ge=1)
    start_location: Optional[str] = None


class ChatTurn(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class CurrentTrip(CamelModel):
    destination: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: Optional[float] = None
    interests: List[str] = []


class AssistantContext(CamelModel):
    current_location: Optional[str] = None
    current_trip: Optional[CurrentTrip] = None
    previous_messages: List[ChatTurn] = []


class AssistantRequest(CamelModel):
    message: str = Field(min_length=1, max_length=4000)
    context: Optional[AssistantContext] = None


class QuickQuestionRequest(CamelModel):
    question_type: QuickQuestionType
    destination: str = Field(min_length=1)
    custom_question: Optional[str] = None


class TravelAgentRequest(CamelModel):
    message: str = Field(min_length=1)
    trip_data: Optional[dict] = None


class PersonalizedDealsRequest(CamelModel):
    current_location: str = "Vancouver"
    budget: float = Field(default=2000, gt=0)
    duration: int = Field(default=7, ge=1, le=60)
    interests: List[str] = ["culture", "food"]
    travel_style: str = "comfortable"
    search_history: List[str] = []
    user_preferences: Optional[dict] = None


class FlightHotelOptions(CamelModel):
    flights: List[dict] = []
    hotels: List[dict] = []


class PersonalizedRecommendationsRequest(CamelModel):
    destination: str = Field(min_length=1)
    city: str = ""
    country: str = ""
    from_city: str = Field(default="", alias="from")
    trip_duration: int = Field(default=7, ge=1, le=60)
    budget_style: str = "comfortable"
    budget_amount: float = Field(default=2000, ge=0)
    vibes: List[str] = []
    adults: int = Field(default=2, ge=1)
    kids: int = Field(default=0, ge=0)
    additional_details: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    flight_hotel_data: Optional[FlightHotelOptions] = None


class TripPlanRequest(CamelModel):
    departure_city: str = Field(min_length=1)
    destination: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: Optional[float] = None
    travelers: int = Field(ge=1, le=10)
    interests: List[str] = []
    whenever: bool = False
    go_anywhere: bool = False
    planning_mode: PlanningMode = "cheapest"


# ── Travel search ──────────────────────────────────────────────────────────

class FlightSearchRequest(CamelModel):
    origin: str = Field(min_length=3, max_length=3)
    destination: str = Field(min_length=3, max_length=3)
    departure_date: str = Field(min_length=1)
    return_date: Optional[str] = None
    adults: int = Field(default=1, ge=1, le=9)
    travel_class: Optional[Literal["ECONOMY", "PREMIUM_ECONOMY", "BUSINESS", "FIRST"]] = None
    non_stop: bool = False
    currency: str = "USD"
    max_results: int = Field(default=10, ge=1, le=50)


class FlightPriceRequest(CamelModel):
    offer: dict


class HotelSearchRequest(CamelModel):
    city_code: str = Field(min_length=3, max_length=3)
    check_in: str = Field(min_length=1)
    check_out: str = Field(min_length=1)
    adults: int = Field(default=1, ge=1, le=9)
    max_hotels: int = Field(default=10, ge=1, le=50)


class HacksRequest(CamelModel):
    origin: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    month: Optional[str] = None
    budget: Optional[float] = None


class PriceWatchCreate(CamelModel):
    origin: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    departure_date: str = Field(min_length=1)
    return_date: Optional[str] = None
    target_price: float = Field(gt=0)
    email: str = Field(pattern=EMAIL_PATTERN)


class PriceWatchDelete(CamelModel):
    watch_id: str
    email: str


# ── Payments ───────────────────────────────────────────────────────────────

class CheckoutSessionRequest(CamelModel):
    price_id: Optional[str] = None
    amount_cents: Optional[int] = Field(default=None, ge=50)
    title: str = "Booking"
    description: str = ""
    type: Literal["flight", "hotel"] = "flight"
    quantity: int = Field(default=1, ge=1)
    currency: str = "usd"
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    metadata: Dict[str, str] = {}


class PaymentIntentRequest(CamelModel):
    amount: int
    currency: str = "usd"
    booking_id: Optional[str] = None
    metadata: Dict[str, str] = {}


# ── Utilities ──────────────────────────────────────────────────────────────

class CurrencyConversionRequest(CamelModel):
    from_currency: str = Field(alias="from", min_length=3, max_length=3)
    to: str = Field(min_length=3, max_length=3)
    amount: float = Field(gt=0)


class WeatherRequest(CamelModel):
    city: str = Field(min_length=1)
    country: Optional[str] = None
    units: Literal["metric", "imperial"] = "metric"


class PhrasesRequest(CamelModel):
    language: str = Field(min_length=1)
    category: Optional[PhraseCategoryName] = None


# ── AI results (shared by the model path and the fallback path) ───────────

class WeatherSnapshot(CamelModel):
    temp: float
    condition: str
    icon: str = ""


class PriceBand(CamelModel):
    min: float
    max: float


class HotelBand(PriceBand):
    style: str
    area: str


class TripSuggestion(CamelModel):
    id: str
    destination: str
    country: str
    city: str
    fit_score: int = Field(ge=0, le=100)
    description: str
    weather: WeatherSnapshot
    crowd_level: str
    seasonality: str
    estimated_total: float
    flight_band: PriceBand
    hotel_band: HotelBand
    highlights: List[str]
    why_it_fits: str


class SuggestionsResult(CamelModel):
    suggestions: List[TripSuggestion] = Field(min_length=1)


class TimeSlot(CamelModel):
    start: str
    end: str


class ItineraryActivity(CamelModel):
    name: str
    type: str = "attraction"
    duration: int  # minutes
    cost: float
    location: str
    description: str
    time_slot: TimeSlot
    tips: List[str] = []


class ItineraryDay(CamelModel):
    day: int
    title: str
    theme: str = ""
    estimated_cost: float
    activities: List[ItineraryActivity]
    tips: List[str] = []
    weather: WeatherSnapshot


class ItineraryResult(CamelModel):
    itinerary: List[ItineraryDay] = Field(min_length=1)


class DetailDay(CamelModel):
    day: int
    title: str
    activities: List[str]
    estimated_cost: float
    tips: List[str] = []


class TripDetail(TripSuggestion):
    daily_itinerary: List[DetailDay]
    best_time_to_visit: str
    local_currency: str
    language: str
    timezone: str


class TripDetailResult(CamelModel):
    trip_detail: TripDetail


class Phrase(CamelModel):
    english: str
    local: str
    pronunciation: str = ""
    usage: str = ""


class PhraseGroup(CamelModel):
    category: str
    phrases: List[Phrase] = Field(min_length=1)


class PhrasesResult(CamelModel):
    destination: str
    language: str
    categories: List[PhraseGroup] = Field(min_length=1)


class TourStop(CamelModel):
    stop_number: int
    name: str
    description: str
    estimated_time: int  # minutes
    tips: List[str] = []
    photo_opportunities: List[str] = []
    nearby_attractions: List[str] = []


class TourRoute(CamelModel):
    start_point: str
    end_point: str
    waypoints: List[str] = []


class WalkingTour(CamelModel):
    title: str
    description: str
    total_duration: float  # hours
    total_distance: float  # km
    difficulty: str
    stops: List[TourStop] = Field(min_length=1)
    route: TourRoute
    tips: List[str] = []
    best_time: str
    weather_considerations: str


class PlanDestination(CamelModel):
    city: str
    country: str
    fit_score: int = Field(ge=0, le=100)
    est_flight: float
    est_stay: float
    est_daily: float
    rationale: str


class PlanDay(CamelModel):
    day: int
    theme: str
    morning: List[str]
    afternoon: List[str]
    evening: List[str]
    est_cost: float


class PlanTotals(CamelModel):
    est_total: float
    est_flights: float
    est_accommodation: float
    est_activities: float
    est_food: float
    est_transport: float


class PlanRecommendations(CamelModel):
    best_time_to_book: str
    money_saving_tips: List[str] = []
    packing_suggestions: List[str] = []
    local_insights: List[str] = []


class TripPlan(CamelModel):
    destinations: List[PlanDestination] = Field(min_length=1)
    days: List[PlanDay] = Field(min_length=1)
    totals: PlanTotals
    recommendations: PlanRecommendations
    planning_mode: PlanningMode = "cheapest"


class AssistantReply(CamelModel):
    response: str
    suggestions: List[str] = []


class CostBreakdown(CamelModel):
    flights: float
    accommodation: float
    activities: float
    food: float
    transport: float


class DealRecommendation(CamelModel):
    destination: str
    match_percentage: int = Field(ge=0, le=100)
    reasoning: str
    estimated_cost: float
    cost_breakdown: CostBreakdown
    best_time_to_visit: str
    key_attractions: List[str] = []
    travel_tips: List[str] = []
    deal_type: str = "Regular"
    savings: float = 0


class PersonalizedDealsResult(CamelModel):
    recommendations: List[DealRecommendation] = Field(min_length=1)


class BudgetBreakdown(CamelModel):
    total_budget: float
    recommended_flight_budget: float
    recommended_hotel_budget: float
    recommended_activity_budget: float
    remaining_buffer: float


class TravelAnalysis(CamelModel):
    budget_breakdown: BudgetBreakdown
    travel_style_analysis: str
    family_considerations: str


class OptionReview(CamelModel):
    recommendation_score: float
    why_recommended: str
    pros: List[str] = []
    cons: List[str] = []
    best_for: str
    value_score: float
    family_friendly_score: float


class FlightRecommendation(OptionReview):
    flight_id: str
    convenience_score: float


class HotelRecommendation(OptionReview):
    hotel_id: str
    location_score: float
    amenities_score: float


class AlternativeOption(CamelModel):
    description: str
    flight_suggestion: str
    hotel_suggestion: str
    savings: Optional[float] = None
    additional_cost: Optional[float] = None


class AlternativeOptions(CamelModel):
    budget_friendly: AlternativeOption
    luxury_upgrade: AlternativeOption


class BookingStrategy(CamelModel):
    when_to_book: str
    price_trends: str
    negotiation_tips: str
    cancellation_policy: str


class PersonalizedRecommendations(CamelModel):
    analysis: TravelAnalysis
    flight_recommendations: List[FlightRecommendation] = []
    hotel_recommendations: List[HotelRecommendation] = []
    alternative_options: AlternativeOptions
    insider_tips: List[str] = []
    booking_strategy: BookingStrategy


class PersonalizedRecommendationsResult(CamelModel):
    recommendations: PersonalizedRecommendations
