"""Rule-based travel hacks for a route. Pure lookups, no external calls."""
from dataclasses import dataclass, field
from typing import List, Optional

from dataclasses_json import dataclass_json

MAX_HACKS = 6

LOW_COST_CARRIERS = [
    "ryanair.com", "easyjet.com", "spirit.com", "frontier.com",
    "jetblue.com", "southwest.com", "allegiant.com",
]

BOOKING_WINDOWS = {
    "madrid": "10-12 weeks before for Europe trips",
    "paris": "8-10 weeks before, avoid summer booking rush",
    "london": "6-8 weeks before, Tuesday departures cheapest",
    "tokyo": "12-16 weeks before, book well in advance",
}
DEFAULT_BOOKING_WINDOW = "8-10 weeks before departure"


@dataclass_json
@dataclass
class Savings:
    amount: int
    percentage: int


@dataclass_json
@dataclass
class TravelHack:
    id: str
    type: str  # low_cost_carrier, split_ticket, error_fare, hidden_route, timing_hack
    title: str
    description: str
    savings: Savings
    difficulty: str  # easy, medium, hard
    instructions: List[str] = field(default_factory=list)
    link: Optional[str] = None
    warning: Optional[str] = None


def is_long_haul(origin: str, destination: str) -> bool:
    return "vancouver" in origin.lower() and "madrid" in destination.lower()


def hub_cities(origin: str, destination: str) -> List[str]:
    if is_long_haul(origin, destination):
        return ["London", "Amsterdam", "Frankfurt", "Paris"]
    return ["London", "Dubai", "Singapore"]


def can_use_hidden_city(destination: str) -> bool:
    # Madrid is a poor hub for hidden-city fares.
    return "madrid" not in destination.lower()


def best_booking_time(destination: str) -> str:
    dest = destination.lower()
    for key, advice in BOOKING_WINDOWS.items():
        if key in dest:
            return advice
    return DEFAULT_BOOKING_WINDOW


def _route_specific(origin: str, destination: str) -> List[TravelHack]:
    dest = destination.lower()
    hacks = []
    if "madrid" in dest or "spain" in dest:
        hacks.append(TravelHack(
            id="spain_1",
            type="hidden_route",
            title="Fly to Barcelona, Train to Madrid",
            description="Barcelona flights are often cheaper; the high-speed train takes 2.5 hours",
            savings=Savings(120, 18),
            difficulty="easy",
            instructions=[
                "Book flight to Barcelona instead of Madrid",
                "Take the AVE high-speed train (EUR 25-60)",
                "Total journey only 2.5 hours longer",
                "Book train tickets at renfe.com",
            ],
        ))
    return hacks


def generate_travel_hacks(origin: str, destination: str, month: Optional[str] = None,
                          budget: Optional[float] = None) -> List[TravelHack]:
    """Return up to MAX_HACKS money-saving tips for a route, most broadly useful first."""
    hacks = [TravelHack(
        id="lcc_1",
        type="low_cost_carrier",
        title="Check Direct Airline Websites",
        description="Some low-cost carriers don't appear on booking sites and can be 30-50% cheaper",
        savings=Savings(200, 35),
        difficulty="easy",
        link=LOW_COST_CARRIERS[0],
        instructions=[
            "Visit airline websites directly",
            "Check Ryanair, EasyJet, Spirit, Frontier for your route",
            "Look for flash sales and last-minute deals",
            "Book Tuesday-Thursday for best prices",
        ],
    )]

    if is_long_haul(origin, destination):
        hacks.append(TravelHack(
            id="split_1",
            type="split_ticket",
            title="Split Ticket via Hub Cities",
            description="Separate tickets through major hubs can save 20-40% on long routes",
            savings=Savings(300, 25),
            difficulty="medium",
            instructions=[
                f"Try routing through {', '.join(hub_cities(origin, destination))}",
                "Book as two separate one-way tickets",
                "Allow 3+ hours layover for separate bookings",
                "Check baggage policies for each segment",
            ],
            warning="If the first flight is delayed, you're responsible for the missed connection",
        ))

    if budget and budget > 1000:
        hacks.append(TravelHack(
            id="error_1",
            type="error_fare",
            title="Monitor Error Fares & Mistake Deals",
            description="Airlines occasionally publish wrong prices; save 60-90% when caught quickly",
            savings=Savings(800, 70),
            difficulty="hard",
            instructions=[
                "Follow Secret Flying, Scott's Cheap Flights, The Flight Deal",
                "Set up Google Flights alerts for your route",
                "Book immediately when you spot obvious errors",
                "Have backup plans; airlines may cancel error fares",
            ],
            warning="Airlines may cancel bookings made on error fares",
        ))

    if can_use_hidden_city(destination):
        hacks.append(TravelHack(
            id="hidden_1",
            type="hidden_route",
            title="Hidden City Ticketing",
            description="Book a ticket to a further destination but get off at your actual stop",
            savings=Savings(150, 20),
            difficulty="hard",
            link="https://skiplagged.com",
            instructions=[
                "Use Skiplagged.com to find hidden city options",
                "Only works for one-way tickets",
                "Don't check bags (they go to the final destination)",
                "Don't do this frequently with the same airline",
            ],
            warning="Violates airline terms; use sparingly and at your own risk",
        ))

    timing = [
        "Domestic flights: 6-8 weeks before departure",
        "International flights: 8-12 weeks before",
        "Search on Tuesday/Wednesday for best deals",
        "Clear cookies/use incognito to avoid price tracking",
        f"For {destination}: Best time is {best_booking_time(destination)}",
    ]
    if month:
        timing.append(f"Travelling in {month}: compare fares a week either side")
    hacks.append(TravelHack(
        id="timing_1",
        type="timing_hack",
        title="Optimal Booking Windows",
        description="Book at the right time to save 15-25% on average",
        savings=Savings(180, 15),
        difficulty="easy",
        instructions=timing,
    ))

    hacks.extend(_route_specific(origin, destination))
    return hacks[:MAX_HACKS]
