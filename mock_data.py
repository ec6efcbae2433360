"""
Static fallback data served when OpenAI, Amadeus or the utility APIs are
unavailable. Every payload here has the same shape as the live path so the
client never has to branch on the source.
"""
import copy
import random
from datetime import datetime, timedelta

from services.affiliate import build_flight_url, build_hotel_url

AIRLINES = {
    "AA": "American Airlines",
    "BA": "British Airways",
    "LH": "Lufthansa",
    "AF": "Air France",
    "IB": "Iberia",
    "TP": "TAP Air Portugal",
    "KL": "KLM",
    "AC": "Air Canada",
    "VY": "Vueling",
    "FR": "Ryanair",
    "U2": "easyJet",
}

MOCK_AIRPORTS = [
    {"iataCode": "YVR", "name": "Vancouver International", "cityName": "Vancouver", "countryCode": "CA"},
    {"iataCode": "YYZ", "name": "Toronto Pearson", "cityName": "Toronto", "countryCode": "CA"},
    {"iataCode": "JFK", "name": "John F. Kennedy International", "cityName": "New York", "countryCode": "US"},
    {"iataCode": "LAX", "name": "Los Angeles International", "cityName": "Los Angeles", "countryCode": "US"},
    {"iataCode": "LHR", "name": "Heathrow", "cityName": "London", "countryCode": "GB"},
    {"iataCode": "CDG", "name": "Charles de Gaulle", "cityName": "Paris", "countryCode": "FR"},
    {"iataCode": "AMS", "name": "Schiphol", "cityName": "Amsterdam", "countryCode": "NL"},
    {"iataCode": "FRA", "name": "Frankfurt am Main", "cityName": "Frankfurt", "countryCode": "DE"},
    {"iataCode": "MAD", "name": "Adolfo Suarez Madrid-Barajas", "cityName": "Madrid", "countryCode": "ES"},
    {"iataCode": "BCN", "name": "Josep Tarradellas Barcelona-El Prat", "cityName": "Barcelona", "countryCode": "ES"},
    {"iataCode": "SVQ", "name": "Seville", "cityName": "Seville", "countryCode": "ES"},
    {"iataCode": "LIS", "name": "Humberto Delgado", "cityName": "Lisbon", "countryCode": "PT"},
    {"iataCode": "OPO", "name": "Francisco Sa Carneiro", "cityName": "Porto", "countryCode": "PT"},
    {"iataCode": "FCO", "name": "Leonardo da Vinci-Fiumicino", "cityName": "Rome", "countryCode": "IT"},
    {"iataCode": "NRT", "name": "Narita International", "cityName": "Tokyo", "countryCode": "JP"},
]

MOCK_INSPIRATION = [
    {"destination": "LIS", "city": "Lisbon", "departureDate": "2026-05-12", "returnDate": "2026-05-19", "price": 612},
    {"destination": "BCN", "city": "Barcelona", "departureDate": "2026-05-20", "returnDate": "2026-05-27", "price": 689},
    {"destination": "OPO", "city": "Porto", "departureDate": "2026-06-02", "returnDate": "2026-06-09", "price": 574},
    {"destination": "MAD", "city": "Madrid", "departureDate": "2026-06-10", "returnDate": "2026-06-17", "price": 655},
    {"destination": "SVQ", "city": "Seville", "departureDate": "2026-09-15", "returnDate": "2026-09-22", "price": 701},
    {"destination": "FCO", "city": "Rome", "departureDate": "2026-10-01", "returnDate": "2026-10-08", "price": 748},
]

FALLBACK_CITIES = [
    {"name": airport["cityName"], "country": airport["countryCode"]}
    for airport in MOCK_AIRPORTS
]

MOCK_RATES = {
    "USD": 1.0, "EUR": 0.85, "GBP": 0.73, "JPY": 110.0, "CAD": 1.25,
    "AUD": 1.35, "CHF": 0.92, "CNY": 6.45, "INR": 74.5, "BRL": 5.2,
    "MXN": 20.1, "KRW": 1150.0, "SGD": 1.35, "HKD": 7.8, "SEK": 8.5,
    "NOK": 8.8, "DKK": 6.3, "PLN": 3.8, "CZK": 21.5, "HUF": 300.0,
}

HOTEL_TEMPLATES = [
    ("Old Town Boutique", 4.5, 130, ["wifi", "breakfast"]),
    ("Central Plaza Hotel", 4.0, 110, ["wifi", "gym"]),
    ("Riverside Suites", 4.5, 175, ["wifi", "pool", "spa"]),
    ("Backpackers Hostel", 3.0, 35, ["wifi", "kitchen"]),
    ("Budget Inn", 3.5, 70, ["wifi"]),
]


# ── Flights & hotels ───────────────────────────────────────────────────────

def _route_rng(*parts):
    """Seeded per route so repeated fallbacks for the same search agree."""
    return random.Random("|".join(str(p) for p in parts))


def _mock_leg(rng, flight_type, idx, origin, destination, date, base_price, currency):
    code = rng.choice(list(AIRLINES.keys()))
    flight_number = f"{code}{rng.randint(100, 999)}"
    departure = datetime.strptime(date, "%Y-%m-%d").replace(
        hour=rng.randint(6, 21), minute=rng.choice([0, 15, 30, 45])
    )
    duration = rng.randint(90, 14 * 60)
    price = round(base_price * rng.uniform(0.7, 1.4))
    return {
        "id": f"mock_{flight_type}_{idx}",
        "flight_type": flight_type,
        "airline": code,
        "airline_name": AIRLINES[code],
        "flight_number": flight_number,
        "from_airport": origin,
        "to_airport": destination,
        "departure_datetime": departure.isoformat(),
        "arrival_datetime": (departure + timedelta(minutes=duration)).isoformat(),
        "duration_minutes": duration,
        "stops": rng.choice([0, 0, 1]),
        "price": price,
        "currency": currency,
        "booking_url": build_flight_url(code, flight_number, origin, destination, price),
    }


def generate_mock_flights(origin, destination, departure_date, return_date=None,
                          adults=1, currency="USD"):
    """Generate 3-5 outbound (and return) flight options for a route."""
    rng = _route_rng(origin, destination, departure_date, return_date)
    base_price = rng.randint(200, 800) * adults
    flights = [
        _mock_leg(rng, "outbound", i, origin, destination, departure_date, base_price, currency)
        for i in range(rng.randint(3, 5))
    ]
    if return_date:
        flights += [
            _mock_leg(rng, "return", i, destination, origin, return_date, base_price, currency)
            for i in range(rng.randint(3, 5))
        ]
    return sorted(flights, key=lambda f: (f["flight_type"] != "outbound", f["price"]))


def generate_mock_hotels(city_code, check_in, check_out, adults=1):
    """Generate hotel offers from the template list."""
    rng = _route_rng(city_code, check_in, check_out)
    nights = max((datetime.strptime(check_out, "%Y-%m-%d")
                  - datetime.strptime(check_in, "%Y-%m-%d")).days, 1)
    hotels = []
    for i, (name, rating, base_price, amenities) in enumerate(HOTEL_TEMPLATES):
        per_night = round(base_price * rng.uniform(0.8, 1.3) * (1 + 0.25 * (adults - 1)))
        hotel_id = f"MOCK{city_code}{i:02d}"
        hotels.append({
            "id": f"mock_hotel_{i}",
            "hotel_id": hotel_id,
            "name": f"{name} {city_code}",
            "city_code": city_code,
            "check_in_date": check_in,
            "check_out_date": check_out,
            "price_per_night": per_night,
            "total_price": per_night * nights,
            "currency": "USD",
            "rating": rating,
            "amenities": amenities,
            "booking_url": build_hotel_url(hotel_id, city_code, per_night * nights),
        })
    return hotels


def generate_mock_price(origin, destination):
    """Rough route price used by price watches when Amadeus has no offer."""
    base_price = 600
    variation = random.random() * 400
    dest = destination.lower()
    if "asia" in dest:
        multiplier = 1.5
    elif "europe" in dest:
        multiplier = 1.2
    elif "madrid" in dest or "spain" in dest or dest == "mad":
        multiplier = 1.1
    else:
        multiplier = 1.0
    return round((base_price + variation) * multiplier)


POPULAR_DESTINATIONS = [
    {"destination": "LAX", "city": "Los Angeles", "country": "USA"},
    {"destination": "SFO", "city": "San Francisco", "country": "USA"},
    {"destination": "LHR", "city": "London", "country": "UK"},
    {"destination": "CDG", "city": "Paris", "country": "France"},
    {"destination": "FCO", "city": "Rome", "country": "Italy"},
    {"destination": "BCN", "city": "Barcelona", "country": "Spain"},
    {"destination": "LIS", "city": "Lisbon", "country": "Portugal"},
    {"destination": "NRT", "city": "Tokyo", "country": "Japan"},
    {"destination": "ICN", "city": "Seoul", "country": "South Korea"},
    {"destination": "SYD", "city": "Sydney", "country": "Australia"},
]

# destination, price, airline, duration (minutes), stops, deal type, savings %
_FALLBACK_DEALS = [
    ("LAX", 450, "AC", 330, 0, "Hot Deal", 25),
    ("LHR", 650, "BA", 585, 0, "Good Deal", 20),
    ("BCN", 720, "IB", 680, 1, "Good Deal", 15),
]


def _deal(destination, price, currency, departure, return_date, airline, minutes, stops,
          deal_type, savings):
    place = next(d for d in POPULAR_DESTINATIONS if d["destination"] == destination)
    return {
        **place,
        "price": price,
        "currency": currency,
        "departureDate": departure,
        "returnDate": return_date,
        "airline": airline,
        "durationMinutes": minutes,
        "stops": stops,
        "dealType": deal_type,
        "savings": savings,
    }


def estimated_deal(origin, destination, departure, return_date, currency="USD"):
    """Stand-in for one destination whose live fare lookup failed."""
    rng = _route_rng(origin, destination, departure)
    return _deal(destination, rng.randint(300, 900), currency, departure, return_date,
                 "AC", 510, rng.randint(0, 1), "Estimated", rng.randint(10, 40))


def mock_flight_deals(departure, return_date, currency="USD", max_price=None):
    return [
        _deal(code, price, currency, departure, return_date, airline, minutes, stops, kind, savings)
        for code, price, airline, minutes, stops, kind, savings in _FALLBACK_DEALS
        if max_price is None or price <= max_price
    ]


def mock_offer_pricing(offer):
    """Echo a searched offer back as confirmed, with grandTotal taken from total."""
    price = offer.get("price") if isinstance(offer.get("price"), dict) else {}
    return {"flightOffers": [{
        **offer,
        "price": {
            **price,
            "grandTotal": price.get("grandTotal", price.get("total")),
            "fees": price.get("fees") or [],
        },
    }]}


# ── AI fallbacks ───────────────────────────────────────────────────────────

MOCK_SUGGESTIONS = [
    {
        "id": "1",
        "destination": "Lisbon, Portugal",
        "country": "Portugal",
        "city": "Lisbon",
        "fitScore": 92,
        "description": "Historic charm meets modern culture in Portugal's vibrant capital",
        "weather": {"temp": 22, "condition": "Sunny", "icon": "☀️"},
        "crowdLevel": "Medium",
        "seasonality": "Perfect weather, moderate crowds",
        "estimatedTotal": 1350,
        "flightBand": {"min": 650, "max": 780},
        "hotelBand": {"min": 90, "max": 130, "style": "Boutique", "area": "Alfama/Baixa"},
        "highlights": ["Historic tram rides", "Pasteis de Belem", "Fado music", "Time Out Market"],
        "whyItFits": "Perfect for food lovers with amazing local cuisine and cultural experiences",
    },
    {
        "id": "2",
        "destination": "Barcelona, Spain",
        "country": "Spain",
        "city": "Barcelona",
        "fitScore": 88,
        "description": "Vibrant city with stunning architecture and Mediterranean charm",
        "weather": {"temp": 24, "condition": "Warm", "icon": "🌤️"},
        "crowdLevel": "High",
        "seasonality": "Peak season, book early",
        "estimatedTotal": 1850,
        "flightBand": {"min": 720, "max": 890},
        "hotelBand": {"min": 120, "max": 180, "style": "Modern", "area": "Gothic Quarter"},
        "highlights": ["Sagrada Familia", "Gaudi architecture", "Beach life", "Tapas culture"],
        "whyItFits": "Ideal for culture and architecture enthusiasts with an amazing food scene",
    },
    {
        "id": "3",
        "destination": "Porto, Portugal",
        "country": "Portugal",
        "city": "Porto",
        "fitScore": 85,
        "description": "Authentic Portuguese charm with world-famous port wine",
        "weather": {"temp": 20, "condition": "Mild", "icon": "🌦️"},
        "crowdLevel": "Low",
        "seasonality": "Shoulder season, great deals",
        "estimatedTotal": 1100,
        "flightBand": {"min": 580, "max": 720},
        "hotelBand": {"min": 70, "max": 110, "style": "Historic", "area": "Ribeira"},
        "highlights": ["Port wine tasting", "Historic center", "River views", "Authentic cuisine"],
        "whyItFits": "Great value destination perfect for wine lovers and authentic experiences",
    },
    {
        "id": "4",
        "destination": "Seville, Spain",
        "country": "Spain",
        "city": "Seville",
        "fitScore": 90,
        "description": "Passionate flamenco culture meets stunning Moorish architecture",
        "weather": {"temp": 26, "condition": "Sunny", "icon": "☀️"},
        "crowdLevel": "Medium",
        "seasonality": "Excellent weather, moderate tourism",
        "estimatedTotal": 1400,
        "flightBand": {"min": 680, "max": 820},
        "hotelBand": {"min": 85, "max": 125, "style": "Traditional", "area": "Santa Cruz Quarter"},
        "highlights": ["Alcazar Palace", "Flamenco shows", "Cathedral & Giralda", "Tapas tours"],
        "whyItFits": "Perfect for culture lovers seeking authentic Spanish traditions",
    },
]

_DAY_THEMES = [
    ("Arrival and First Impressions", "Orientation"),
    ("Historic Heart", "Cultural Exploration"),
    ("Markets and Flavours", "Food & Drink"),
    ("Neighbourhood Wandering", "Local Life"),
    ("Views and Viewpoints", "Scenic"),
    ("Day Trip", "Excursion"),
    ("Slow Morning, Last Stops", "Farewell"),
]

_DAILY_COST = {"thrifty": 60, "comfortable": 110, "splurge": 240}


def _city(destination):
    return destination.split(",")[0].strip()


def _day_activities(city):
    return [
        {"name": f"Breakfast in central {city}", "type": "restaurant", "duration": 60, "cost": 12,
         "location": f"{city} city center", "description": "Start the day with a local breakfast",
         "timeSlot": {"start": "08:30", "end": "09:30"}, "tips": ["Order what the locals order"]},
        {"name": f"Explore {city} old town", "type": "attraction", "duration": 150, "cost": 0,
         "location": f"{city} old town", "description": "Walk the main sights at an easy pace",
         "timeSlot": {"start": "10:00", "end": "12:30"}, "tips": ["Wear comfortable shoes"]},
        {"name": f"Lunch at a {city} market", "type": "restaurant", "duration": 60, "cost": 20,
         "location": f"{city} central market", "description": "Midday meal at a popular market hall",
         "timeSlot": {"start": "12:30", "end": "13:30"}, "tips": []},
        {"name": f"{city} signature museum", "type": "attraction", "duration": 150, "cost": 18,
         "location": f"{city} museum district", "description": "Visit the city's best-known collection",
         "timeSlot": {"start": "14:00", "end": "16:30"}, "tips": ["Book tickets online to skip the queue"]},
        {"name": f"Dinner in {city}", "type": "restaurant", "duration": 90, "cost": 35,
         "location": f"{city} restaurant district", "description": "Evening meal with regional dishes",
         "timeSlot": {"start": "19:00", "end": "20:30"}, "tips": []},
    ]


def mock_itinerary(destination, trip_duration=3, budget_style="comfortable"):
    city = _city(destination)
    daily = _DAILY_COST.get(budget_style, _DAILY_COST["comfortable"])
    days = []
    for day in range(1, trip_duration + 1):
        title, theme = _DAY_THEMES[(day - 1) % len(_DAY_THEMES)]
        days.append({
            "day": day,
            "title": title,
            "theme": theme,
            "estimatedCost": daily,
            "activities": _day_activities(city),
            "tips": ["Carry a refillable water bottle", "Keep some cash for small vendors"],
            "weather": {"temp": 22, "condition": "Sunny", "icon": "☀️"},
        })
    return {"itinerary": days}


def _suggestion_for(destination):
    city = _city(destination).lower()
    for suggestion in MOCK_SUGGESTIONS:
        if suggestion["city"].lower() == city:
            return copy.deepcopy(suggestion)
    base = copy.deepcopy(MOCK_SUGGESTIONS[0])
    parts = [p.strip() for p in destination.split(",")]
    base.update({
        "destination": destination,
        "city": parts[0],
        "country": parts[-1] if len(parts) > 1 else "",
        "description": f"A great pick for your next trip to {parts[0]}",
        "highlights": [f"{parts[0]} old town", "Local food tour", "Sunset viewpoint"],
        "whyItFits": f"{parts[0]} balances culture, food and easy logistics",
    })
    return base


def mock_trip_detail(destination, trip_duration=5, budget_amount=2000, trip_id=None):
    detail = _suggestion_for(destination)
    city = detail["city"]
    detail["id"] = trip_id or detail["id"]
    detail["estimatedTotal"] = round(budget_amount * 0.8)
    detail["dailyItinerary"] = [
        {
            "day": day,
            "title": _DAY_THEMES[(day - 1) % len(_DAY_THEMES)][0],
            "activities": [a["name"] for a in _day_activities(city)],
            "estimatedCost": 120,
            "tips": ["Book popular sights in advance"],
        }
        for day in range(1, trip_duration + 1)
    ]
    detail.update({
        "bestTimeToVisit": "March to June, September to November",
        "localCurrency": "EUR" if detail["country"] in ("Portugal", "Spain") else "USD",
        "language": {"Portugal": "Portuguese", "Spain": "Spanish"}.get(detail["country"], "English"),
        "timezone": "Europe/Lisbon" if detail["country"] == "Portugal" else "Europe/Madrid",
    })
    return {"tripDetail": detail}


_PHRASE_GROUP_TITLES = {
    "basic": "Greetings & Basic",
    "food": "Restaurants & Food",
    "transportation": "Transportation",
    "emergency": "Emergency & Help",
    "shopping": "Shopping & Money",
    "directions": "Directions",
}

_GENERIC_PHRASES = {
    "basic": ["Hello", "Thank you", "Please", "Excuse me", "Do you speak English?"],
    "food": ["The bill, please", "Water", "I'm allergic to..."],
    "transportation": ["Where is the train station?", "How much is the ticket?"],
    "emergency": ["Help", "I need a doctor", "Call the police"],
}


def mock_useful_phrases(destination, language, known_phrases=None):
    """Build the phrases payload from the static table, or a generic list."""
    categories = []
    if known_phrases:
        for key, table in known_phrases.items():
            categories.append({
                "category": _PHRASE_GROUP_TITLES.get(key, key.title()),
                "phrases": [
                    {"english": en, "local": local, "pronunciation": "", "usage": ""}
                    for en, local in table.items()
                ],
            })
    else:
        for key, phrases in _GENERIC_PHRASES.items():
            categories.append({
                "category": _PHRASE_GROUP_TITLES[key],
                "phrases": [
                    {"english": en, "local": en, "pronunciation": "",
                     "usage": f"Learn the {language} equivalent before you travel"}
                    for en in phrases
                ],
            })
    return {"destination": destination, "language": language, "categories": categories}


def mock_walking_tour(destination, duration=3, start_location=None):
    city = _city(destination)
    start = start_location or f"{city} main square"
    names = [start, f"{city} cathedral", f"{city} old market", f"{city} riverside promenade",
             f"{city} viewpoint"]
    stops = [
        {
            "stopNumber": i + 1,
            "name": name,
            "description": f"Take in {name} and its surroundings",
            "estimatedTime": 30,
            "tips": ["Look up at the facades"],
            "photoOpportunities": [f"{name} from across the street"],
            "nearbyAttractions": [],
        }
        for i, name in enumerate(names)
    ]
    return {
        "title": f"Highlights of {city}",
        "description": f"A relaxed self-guided walk through the heart of {city}",
        "totalDuration": duration,
        "totalDistance": round(1.5 * duration, 1),
        "difficulty": "Easy",
        "stops": stops,
        "route": {"startPoint": names[0], "endPoint": names[-1], "waypoints": names[1:-1]},
        "tips": ["Start early to avoid the crowds", "Bring water"],
        "bestTime": "Morning",
        "weatherConsiderations": "Carry a light layer; evenings can be cool",
    }


_MODE_DESTINATIONS = {
    "cheapest": [("Porto", "Portugal", 88, 520, 75, 55), ("Seville", "Spain", 84, 560, 80, 60)],
    "fastest": [("Lisbon", "Portugal", 90, 690, 110, 80), ("Madrid", "Spain", 86, 650, 120, 85)],
    "easiest": [("Barcelona", "Spain", 89, 720, 140, 90), ("Lisbon", "Portugal", 87, 690, 110, 80)],
}

_MODE_TIPS = {
    "cheapest": ["Fly mid-week", "Stay in guesthouses", "Use city transit passes"],
    "fastest": ["Book direct flights", "Stay near the centre", "Pre-book airport transfers"],
    "easiest": ["Pick a package with transfers", "Stick to one base city", "Use guided tours"],
}


def mock_trip_plan(departure_city, days=7, travelers=1, planning_mode="cheapest",
                   destination=None):
    options = _MODE_DESTINATIONS.get(planning_mode, _MODE_DESTINATIONS["cheapest"])
    destinations = [
        {"city": city, "country": country, "fitScore": score, "estFlight": flight,
         "estStay": stay, "estDaily": daily,
         "rationale": f"Good {planning_mode} option from {departure_city}"}
        for city, country, score, flight, stay, daily in options
    ]
    if destination:
        destinations.insert(0, {
            "city": _city(destination), "country": "", "fitScore": 90,
            "estFlight": options[0][3], "estStay": options[0][4], "estDaily": options[0][5],
            "rationale": f"Your chosen destination, planned for {planning_mode} travel",
        })
    top = destinations[0]
    city = top["city"]
    plan_days = [
        {
            "day": day,
            "theme": _DAY_THEMES[(day - 1) % len(_DAY_THEMES)][1],
            "morning": [f"Explore {city} old town"],
            "afternoon": [f"Visit a {city} museum"],
            "evening": [f"Dinner in {city}"],
            "estCost": top["estDaily"],
        }
        for day in range(1, days + 1)
    ]
    flights = top["estFlight"] * travelers
    stay = top["estStay"] * days
    activities = round(top["estDaily"] * days * 0.4 * travelers)
    food = round(top["estDaily"] * days * 0.45 * travelers)
    transport = round(top["estDaily"] * days * 0.15 * travelers)
    return {
        "destinations": destinations,
        "days": plan_days,
        "totals": {
            "estTotal": flights + stay + activities + food + transport,
            "estFlights": flights,
            "estAccommodation": stay,
            "estActivities": activities,
            "estFood": food,
            "estTransport": transport,
        },
        "recommendations": {
            "bestTimeToBook": "6-8 weeks before departure",
            "moneySavingTips": _MODE_TIPS.get(planning_mode, _MODE_TIPS["cheapest"]),
            "packingSuggestions": ["Comfortable walking shoes", "Universal adapter"],
            "localInsights": ["Tipping is modest in southern Europe"],
        },
        "planningMode": planning_mode,
    }


# ── Recommendations ────────────────────────────────────────────────────────

MOCK_TRIP_RECOMMENDATIONS = [
    {
        "id": "1",
        "destination": "Lisbon, Portugal",
        "reason": "Perfect weather, rich culture, and amazing food scene. Great value for money with authentic experiences.",
        "fitScore": 92,
        "estimatedCost": 1350,
        "bestTime": "March-May",
        "highlights": ["Historic tram rides", "Pasteis de Belém", "Fado music", "Time Out Market"],
        "weather": {"temp": 22, "condition": "Sunny", "icon": "☀️"},
        "crowdLevel": "Medium",
        "seasonality": "Perfect weather, moderate crowds",
    },
    {
        "id": "2",
        "destination": "Barcelona, Spain",
        "reason": "Vibrant city with stunning architecture and Mediterranean charm. Perfect for culture and food lovers.",
        "fitScore": 88,
        "estimatedCost": 1850,
        "bestTime": "April-June",
        "highlights": ["Sagrada Familia", "Gaudí architecture", "Beach life", "Tapas culture"],
        "weather": {"temp": 24, "condition": "Warm", "icon": "🌤️"},
        "crowdLevel": "High",
        "seasonality": "Peak season, book early",
    },
    {
        "id": "3",
        "destination": "Porto, Portugal",
        "reason": "Authentic Portuguese charm with world-famous port wine. Great value destination.",
        "fitScore": 85,
        "estimatedCost": 1100,
        "bestTime": "March-May",
        "highlights": ["Port wine tasting", "Historic center", "River views", "Authentic cuisine"],
        "weather": {"temp": 20, "condition": "Mild", "icon": "🌦️"},
        "crowdLevel": "Low",
        "seasonality": "Shoulder season, great deals",
    },
    {
        "id": "4",
        "destination": "Valencia, Spain",
        "reason": "Modern city with futuristic architecture and the birthplace of paella.",
        "fitScore": 82,
        "estimatedCost": 1400,
        "bestTime": "March-May",
        "highlights": ["Paella birthplace", "City of Arts", "Beaches", "Futuristic architecture"],
        "weather": {"temp": 26, "condition": "Sunny", "icon": "☀️"},
        "crowdLevel": "Medium",
        "seasonality": "Great weather, moderate crowds",
    },
    {
        "id": "5",
        "destination": "Seville, Spain",
        "reason": "Andalusian charm with flamenco and historic palaces. Rich cultural heritage and lively nights.",
        "fitScore": 80,
        "estimatedCost": 1500,
        "bestTime": "March-May",
        "highlights": ["Alcázar Palace", "Flamenco shows", "Orange trees", "Tapas bars"],
        "weather": {"temp": 28, "condition": "Hot", "icon": "🌡️"},
        "crowdLevel": "Medium",
        "seasonality": "Warm weather, cultural events",
    },
    {
        "id": "6",
        "destination": "Madrid, Spain",
        "reason": "Cosmopolitan capital with world-class museums and a buzzing atmosphere.",
        "fitScore": 78,
        "estimatedCost": 1700,
        "bestTime": "March-May",
        "highlights": ["Prado Museum", "Royal Palace", "Retiro Park", "Madrid nightlife"],
        "weather": {"temp": 25, "condition": "Warm", "icon": "🌤️"},
        "crowdLevel": "High",
        "seasonality": "Peak season, cultural events",
    },
]

MOCK_DEAL_RECOMMENDATIONS = [
    {
        "destination": "Lisbon, Portugal",
        "matchPercentage": 92,
        "reasoning": "Perfect for food lovers with amazing local cuisine and cultural experiences.",
        "estimatedCost": 1350,
        "costBreakdown": {"flights": 650, "accommodation": 400, "activities": 200, "food": 80,
                          "transport": 20},
        "bestTimeToVisit": "March-May, September-November",
        "keyAttractions": ["Historic tram rides", "Fado music", "Pasteis de Belém", "Time Out Market"],
        "travelTips": ["Try local pastries at Pastéis de Belém", "Take tram 28 for city views",
                       "Visit during shoulder season for better prices"],
        "dealType": "Hot Deal",
        "savings": 25,
    },
    {
        "destination": "Barcelona, Spain",
        "matchPercentage": 88,
        "reasoning": "Vibrant city with stunning architecture and Mediterranean charm.",
        "estimatedCost": 1850,
        "costBreakdown": {"flights": 720, "accommodation": 600, "activities": 350, "food": 150,
                          "transport": 30},
        "bestTimeToVisit": "April-June, September-October",
        "keyAttractions": ["Sagrada Familia", "Park Güell", "La Boqueria Market", "Gothic Quarter"],
        "travelTips": ["Book Sagrada Familia tickets in advance", "Try authentic paella",
                       "Visit local markets for fresh produce"],
        "dealType": "Good Deal",
        "savings": 15,
    },
    {
        "destination": "Porto, Portugal",
        "matchPercentage": 85,
        "reasoning": "Authentic Portuguese charm with world-famous port wine at a great price.",
        "estimatedCost": 1100,
        "costBreakdown": {"flights": 600, "accommodation": 300, "activities": 150, "food": 40,
                          "transport": 10},
        "bestTimeToVisit": "March-May, September-November",
        "keyAttractions": ["Port wine cellars", "Ribeira district", "Livraria Lello",
                           "Dom Luís I Bridge"],
        "travelTips": ["Take a port wine tasting tour", "Walk along the Douro River",
                       "Visit during wine harvest season"],
        "dealType": "Hot Deal",
        "savings": 30,
    },
]


def mock_personalized_recommendations(destination, budget_amount, budget_style="comfortable",
                                      vibes=(), kids=0, flights=(), hotels=()):
    """Budget split 40/40/15/5 plus generic reviews of the first two flights and hotels."""
    family = kids > 0
    return {
        "analysis": {
            "budgetBreakdown": {
                "totalBudget": budget_amount,
                "recommendedFlightBudget": round(budget_amount * 0.4),
                "recommendedHotelBudget": round(budget_amount * 0.4),
                "recommendedActivityBudget": round(budget_amount * 0.15),
                "remainingBuffer": round(budget_amount * 0.05),
            },
            "travelStyleAnalysis": (
                f"Your {budget_style} budget style and {', '.join(vibes) or 'open-ended'} "
                f"preferences make {destination} a strong match."
            ),
            "familyConsiderations": (
                f"With {kids} kids, family-friendly options with good amenities and central "
                "locations come first." if family
                else "Solo or couple travel allows for more flexibility in timing and activities."
            ),
        },
        "flightRecommendations": [
            {
                "flightId": str(flight.get("id", f"flight_{i}")),
                "recommendationScore": round(9.5 - i * 0.3, 1),
                "whyRecommended": f"A good balance of price and convenience for a {budget_style} budget.",
                "pros": ["Good price point", "Convenient timing", "Reliable airline"],
                "cons": ["May include a stop", "Early departure"],
                "bestFor": f"{budget_style} travelers looking for value",
                "valueScore": 8.5,
                "convenienceScore": 9.0,
                "familyFriendlyScore": 8.0 if family else 7.5,
            }
            for i, flight in enumerate(list(flights)[:2])
        ],
        "hotelRecommendations": [
            {
                "hotelId": str(hotel.get("id", f"hotel_{i}")),
                "recommendationScore": round(9.2 - i * 0.2, 1),
                "whyRecommended": f"Matches {budget_style} preferences with solid amenities for the group.",
                "pros": ["Great location", "Good amenities", "Family-friendly"],
                "cons": ["Limited parking", "Street noise"],
                "bestFor": f"{budget_style} travelers seeking comfort and convenience",
                "valueScore": 8.8,
                "locationScore": 9.5,
                "familyFriendlyScore": 9.0 if family else 8.0,
                "amenitiesScore": 8.5,
            }
            for i, hotel in enumerate(list(hotels)[:2])
        ],
        "alternativeOptions": {
            "budgetFriendly": {
                "description": "If you want to save money",
                "flightSuggestion": "Book 2-3 months in advance for better rates",
                "hotelSuggestion": "Look for hotels slightly outside the city centre",
                "savings": 200,
            },
            "luxuryUpgrade": {
                "description": "If you want to splurge",
                "flightSuggestion": "Upgrade to business class",
                "hotelSuggestion": "Pick a luxury hotel with spa services",
                "additionalCost": 300,
            },
        },
        "insiderTips": [
            f"Book your {budget_style} accommodation in {destination} early",
            "Shoulder season brings better prices",
            "Ask locals for restaurant picks to avoid tourist traps",
        ],
        "bookingStrategy": {
            "whenToBook": "Flights 2-3 months ahead, hotels 1-2 months ahead",
            "priceTrends": "Prices typically rise closer to the travel dates",
            "negotiationTips": "Call hotels directly for potential discounts",
            "cancellationPolicy": "Check cancellation policies before booking",
        },
    }


QUICK_QUESTIONS = {
    "weather": "What's the current weather and forecast for {destination}? Include temperature, conditions, and any travel advisories.",
    "currency": "What's the local currency in {destination}? Include exchange tips, where to exchange money, and payment methods commonly accepted.",
    "transportation": "What are the best transportation options in {destination}? Include public transport, rideshares, walking, and any travel passes.",
    "safety": "What safety tips should I know for {destination}? Include areas to avoid, common scams, emergency numbers, and general advice.",
    "food": "What are the must-try local foods in {destination}? Include popular dishes, food markets, and dietary considerations.",
    "attractions": "What are the top attractions and must-see places in {destination}? Include popular spots and hidden gems.",
    "custom": "Tell me about {destination}.",
}

QUICK_ANSWERS = {
    "weather": "Check a local forecast a few days out for {destination} and pack layers.",
    "currency": "Card payments are widely accepted in {destination}; carry a little cash for markets.",
    "transportation": "Public transit is usually the easiest way around {destination}; look for a day pass.",
    "safety": "{destination} is generally safe; watch for pickpockets in crowded areas.",
    "food": "Try the regional specialities at a busy local market in {destination}.",
    "attractions": "Start with the old town of {destination}, then pick one museum and one viewpoint.",
    "custom": "Here is a quick overview of {destination}: explore the centre on foot and eat where locals eat.",
}


def mock_assistant_reply(destination=None):
    place = destination or "your destination"
    return {
        "response": (
            "I can't reach the planning service right now, but here are some ideas: "
            f"walk the historic centre of {place}, try a food market, and book popular "
            "sights ahead of time."
        ),
        "suggestions": [f"Top sights in {place}", f"Local food in {place}", "Getting around"],
    }


def mock_travel_agent_reply(destination=None):
    place = destination or "your trip"
    return (f"Great choice! For {place}, book flights 6-8 weeks out, fly mid-week "
            "and stay near public transit to keep costs down.")


def mock_weather(city, country=None, units="metric"):
    now = datetime.utcnow()
    return {
        "location": {
            "city": city,
            "country": country or "Unknown",
            "coordinates": {"lat": 40.7128, "lon": -74.0060},
        },
        "current": {
            "temperature": 22, "feelsLike": 24, "humidity": 65, "pressure": 1013,
            "description": "Partly cloudy", "icon": "02d", "windSpeed": 5.2,
            "windDirection": 180, "visibility": 10000, "timestamp": now.isoformat(),
        },
        "forecast": [
            {"date": (now + timedelta(days=1)).isoformat(), "temperature": 25, "feelsLike": 27,
             "humidity": 60, "description": "Sunny", "icon": "01d", "windSpeed": 4.1,
             "precipitation": 10},
            {"date": (now + timedelta(days=2)).isoformat(), "temperature": 20, "feelsLike": 22,
             "humidity": 70, "description": "Light rain", "icon": "10d", "windSpeed": 6.8,
             "precipitation": 80},
        ],
        "units": weather_units(units),
    }


def weather_units(units):
    if units == "metric":
        return {"temperature": "°C", "speed": "m/s", "pressure": "hPa"}
    return {"temperature": "°F", "speed": "mph", "pressure": "hPa"}
