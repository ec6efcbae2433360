"""Weather, exchange rates, phrase lookups and city search for the trip tools."""
import os
from datetime import datetime

import requests

from mock_data import FALLBACK_CITIES, MOCK_RATES, weather_units

OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY", "")
CURRENCY_API_KEY = os.getenv("CURRENCY_API_KEY", "")
OPENWEATHER_URL = "https://api.openweathermap.org"
EXCHANGE_RATE_URL = "https://api.exchangerate-api.com/v4/latest"
REQUEST_TIMEOUT = 10
FORECAST_ENTRIES = 5
MAX_CITIES = 10

# What a well-formed but unexpectedly shaped body raises while being read
_UNUSABLE_BODY = (AttributeError, IndexError, KeyError, TypeError, ValueError)


class UtilityServiceError(Exception):
    """A weather/currency/geocoding provider is unconfigured or failed."""


class CityNotFound(Exception):
    pass


class UnsupportedError(ValueError):
    """Unknown currency or language; maps to 400."""


def _get_json(url, params=None, not_found=UtilityServiceError):
    try:
        resp = requests.get(url, params=params, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        raise UtilityServiceError(f"{url} request failed: {exc}") from exc
    if resp.status_code == 404:
        raise not_found(f"{url} returned 404")
    if not resp.ok:
        raise UtilityServiceError(f"{url} returned {resp.status_code}")
    try:
        return resp.json()
    except ValueError as exc:
        raise UtilityServiceError(f"{url} returned invalid JSON") from exc


# ── Weather ────────────────────────────────────────────────────────────────

def get_weather(city: str, country: str = None, units: str = "metric") -> dict:
    """Current conditions plus the next five 3-hour forecast entries from OpenWeatherMap."""
    if not OPENWEATHER_API_KEY:
        raise UtilityServiceError("Weather API key not configured")
    location = f"{city},{country}" if country else city
    data = _get_json(f"{OPENWEATHER_URL}/data/2.5/forecast",
                     {"q": location, "appid": OPENWEATHER_API_KEY, "units": units},
                     not_found=CityNotFound)
    try:
        return _forecast(data, units)
    except _UNUSABLE_BODY as exc:
        raise UtilityServiceError(f"Weather API returned an unusable forecast: {exc!r}") from exc


def _forecast(data: dict, units: str) -> dict:
    entries = data.get("list") or []
    if not entries:
        raise UtilityServiceError("Weather API returned no forecast entries")

    now = entries[0]
    return {
        "location": {
            "city": data["city"]["name"],
            "country": data["city"].get("country", ""),
            "coordinates": {"lat": data["city"]["coord"]["lat"], "lon": data["city"]["coord"]["lon"]},
        },
        "current": {
            "temperature": now["main"]["temp"],
            "feelsLike": now["main"]["feels_like"],
            "humidity": now["main"]["humidity"],
            "pressure": now["main"]["pressure"],
            "description": now["weather"][0]["description"],
            "icon": now["weather"][0]["icon"],
            "windSpeed": now["wind"]["speed"],
            "windDirection": now["wind"].get("deg", 0),
            "visibility": now.get("visibility", 0),
            "timestamp": datetime.utcfromtimestamp(now["dt"]).isoformat(),
        },
        "forecast": [
            {
                "date": datetime.utcfromtimestamp(item["dt"]).isoformat(),
                "temperature": item["main"]["temp"],
                "feelsLike": item["main"]["feels_like"],
                "humidity": item["main"]["humidity"],
                "description": item["weather"][0]["description"],
                "icon": item["weather"][0]["icon"],
                "windSpeed": item["wind"]["speed"],
                "precipitation": round(item.get("pop", 0) * 100),
            }
            for item in entries[1:FORECAST_ENTRIES + 1]
        ],
        "units": weather_units(units),
    }


# ── Currency ───────────────────────────────────────────────────────────────

def _rates_of(data) -> dict:
    rates = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        raise UtilityServiceError("Currency API returned no rates table")
    return rates


def get_rates(base: str = "USD", symbols=None) -> dict:
    if not CURRENCY_API_KEY:
        raise UtilityServiceError("Currency API key not configured")
    data = _get_json(f"{EXCHANGE_RATE_URL}/{base.upper()}", not_found=UnsupportedError)
    rates = _rates_of(data)
    if symbols:
        rates = {code: rate for code, rate in rates.items() if code in symbols}
    return {
        "base": data.get("base", base.upper()),
        "date": data.get("date"),
        "rates": rates,
        "lastUpdated": datetime.utcnow().isoformat(),
    }


def mock_rates(base: str = "USD", symbols=None) -> dict:
    base = base.upper()
    if base not in MOCK_RATES:
        raise UnsupportedError("Currency not supported")
    rates = {code: round(rate / MOCK_RATES[base], 6) for code, rate in MOCK_RATES.items()}
    if symbols:
        rates = {code: rate for code, rate in rates.items() if code in symbols}
    return {
        "base": base,
        "date": datetime.utcnow().date().isoformat(),
        "rates": rates,
        "lastUpdated": datetime.utcnow().isoformat(),
        "isMock": True,
    }


def _conversion(from_currency, to_currency, amount, rate, date):
    return {
        "from": {"currency": from_currency, "amount": amount},
        "to": {"currency": to_currency, "amount": round(amount * rate, 2)},
        "rate": rate,
        "date": date,
        "lastUpdated": datetime.utcnow().isoformat(),
    }


def convert(from_currency: str, to_currency: str, amount: float) -> dict:
    if not CURRENCY_API_KEY:
        raise UtilityServiceError("Currency API key not configured")
    from_currency, to_currency = from_currency.upper(), to_currency.upper()
    data = _get_json(f"{EXCHANGE_RATE_URL}/{from_currency}", not_found=UnsupportedError)
    rate = _rates_of(data).get(to_currency)
    if not rate:
        raise UnsupportedError("Currency not supported")
    try:
        rate = float(rate)
    except (TypeError, ValueError) as exc:
        raise UtilityServiceError(f"Currency API returned a non-numeric rate for {to_currency}") from exc
    return _conversion(from_currency, to_currency, amount, rate, data.get("date"))


def mock_convert(from_currency: str, to_currency: str, amount: float) -> dict:
    from_currency, to_currency = from_currency.upper(), to_currency.upper()
    if from_currency not in MOCK_RATES or to_currency not in MOCK_RATES:
        raise UnsupportedError("Currency not supported")
    rate = MOCK_RATES[to_currency] / MOCK_RATES[from_currency]
    result = _conversion(from_currency, to_currency, amount, rate,
                         datetime.utcnow().date().isoformat())
    result["isMock"] = True
    return result


# ── Phrases ────────────────────────────────────────────────────────────────

TRAVEL_PHRASES = {
    "Spanish": {
        "basic": {
            "Hello": "Hola",
            "Goodbye": "Adiós",
            "Please": "Por favor",
            "Thank you": "Gracias",
            "You're welcome": "De nada",
            "Excuse me": "Disculpe",
            "Sorry": "Lo siento",
            "Yes": "Sí",
            "No": "No",
            "I don't understand": "No entiendo",
            "Do you speak English?": "¿Habla inglés?",
            "My name is...": "Me llamo...",
            "Nice to meet you": "Mucho gusto",
        },
        "food": {
            "I'm hungry": "Tengo hambre",
            "I'm thirsty": "Tengo sed",
            "The bill, please": "La cuenta, por favor",
            "Delicious": "Delicioso",
            "I'm allergic to...": "Soy alérgico a...",
            "Vegetarian": "Vegetariano",
            "Water": "Agua",
            "Coffee": "Café",
            "Beer": "Cerveza",
            "Wine": "Vino",
            "Restaurant": "Restaurante",
            "Menu": "Menú",
        },
        "transportation": {
            "Where is the bus stop?": "¿Dónde está la parada de autobús?",
            "How much is the ticket?": "¿Cuánto cuesta el billete?",
            "I need a taxi": "Necesito un taxi",
            "To the airport": "Al aeropuerto",
            "To the hotel": "Al hotel",
            "Train station": "Estación de tren",
            "Subway": "Metro",
            "Bus": "Autobús",
            "Car": "Coche",
        },
        "emergency": {
            "Help": "Ayuda",
            "Emergency": "Emergencia",
            "Police": "Policía",
            "Hospital": "Hospital",
            "Doctor": "Médico",
            "I'm sick": "Estoy enfermo",
            "It hurts here": "Me duele aquí",
            "Call an ambulance": "Llame una ambulancia",
        },
    },
    "French": {
        "basic": {
            "Hello": "Bonjour",
            "Goodbye": "Au revoir",
            "Please": "S'il vous plaît",
            "Thank you": "Merci",
            "You're welcome": "De rien",
            "Excuse me": "Excusez-moi",
            "Sorry": "Désolé",
            "Yes": "Oui",
            "No": "Non",
            "I don't understand": "Je ne comprends pas",
            "Do you speak English?": "Parlez-vous anglais?",
            "My name is...": "Je m'appelle...",
            "Nice to meet you": "Enchanté",
        },
        "food": {
            "I'm hungry": "J'ai faim",
            "I'm thirsty": "J'ai soif",
            "The bill, please": "L'addition, s'il vous plaît",
            "Delicious": "Délicieux",
            "I'm allergic to...": "Je suis allergique à...",
            "Vegetarian": "Végétarien",
            "Water": "Eau",
            "Coffee": "Café",
            "Beer": "Bière",
            "Wine": "Vin",
            "Restaurant": "Restaurant",
            "Menu": "Menu",
        },
    },
    "German": {
        "basic": {
            "Hello": "Hallo",
            "Goodbye": "Auf Wiedersehen",
            "Please": "Bitte",
            "Thank you": "Danke",
            "You're welcome": "Bitte schön",
            "Excuse me": "Entschuldigung",
            "Sorry": "Entschuldigung",
            "Yes": "Ja",
            "No": "Nein",
            "I don't understand": "Ich verstehe nicht",
            "Do you speak English?": "Sprechen Sie Englisch?",
            "My name is...": "Ich heiße...",
            "Nice to meet you": "Freut mich",
        },
    },
    "Italian": {
        "basic": {
            "Hello": "Ciao",
            "Goodbye": "Arrivederci",
            "Please": "Per favore",
            "Thank you": "Grazie",
            "You're welcome": "Prego",
            "Excuse me": "Scusi",
            "Sorry": "Mi dispiace",
            "Yes": "Sì",
            "No": "No",
            "I don't understand": "Non capisco",
            "Do you speak English?": "Parla inglese?",
            "My name is...": "Mi chiamo...",
            "Nice to meet you": "Piacere",
        },
    },
    "Portuguese": {
        "basic": {
            "Hello": "Olá",
            "Goodbye": "Adeus",
            "Please": "Por favor",
            "Thank you": "Obrigado",
            "You're welcome": "De nada",
            "Excuse me": "Desculpe",
            "Sorry": "Desculpe",
            "Yes": "Sim",
            "No": "Não",
            "I don't understand": "Não entendo",
            "Do you speak English?": "Fala inglês?",
            "My name is...": "Me chamo...",
            "Nice to meet you": "Prazer",
        },
    },
    "Japanese": {
        "basic": {
            "Hello": "こんにちは (Konnichiwa)",
            "Goodbye": "さようなら (Sayonara)",
            "Please": "お願いします (Onegaishimasu)",
            "Thank you": "ありがとう (Arigatou)",
            "You're welcome": "どういたしまして (Dou itashimashite)",
            "Excuse me": "すみません (Sumimasen)",
            "Sorry": "ごめんなさい (Gomen nasai)",
            "Yes": "はい (Hai)",
            "No": "いいえ (Iie)",
            "I don't understand": "わかりません (Wakarimasen)",
            "Do you speak English?": "英語を話しますか？(Eigo wo hanashimasu ka?)",
            "My name is...": "私の名前は...です (Watashi no namae wa... desu)",
            "Nice to meet you": "はじめまして (Hajimemashite)",
        },
    },
    "Chinese": {
        "basic": {
            "Hello": "你好 (Nǐ hǎo)",
            "Goodbye": "再见 (Zài jiàn)",
            "Please": "请 (Qǐng)",
            "Thank you": "谢谢 (Xiè xiè)",
            "You're welcome": "不客气 (Bù kè qì)",
            "Excuse me": "对不起 (Duì bù qǐ)",
            "Sorry": "抱歉 (Bào qiàn)",
            "Yes": "是 (Shì)",
            "No": "不 (Bù)",
            "I don't understand": "我不明白 (Wǒ bù míng bái)",
            "Do you speak English?": "你会说英语吗？(Nǐ huì shuō yīng yǔ ma?)",
            "My name is...": "我的名字是... (Wǒ de míng zì shì...)",
            "Nice to meet you": "很高兴认识你 (Hěn gāo xìng rèn shí nǐ)",
        },
    },
}


def phrase_table(language: str):
    """Case-insensitive lookup; None for languages we have no table for."""
    for name, table in TRAVEL_PHRASES.items():
        if name.lower() == (language or "").strip().lower():
            return table
    return None


def lookup_phrases(language: str, category: str = None) -> dict:
    table = phrase_table(language)
    if table is None:
        raise UnsupportedError(f"Language '{language}' not supported")
    # Unknown category for this language falls back to every category.
    phrases = table[category] if category and category in table else table
    return {
        "language": language,
        "category": category or "all",
        "phrases": phrases,
        "totalPhrases": len(phrases),
        "lastUpdated": datetime.utcnow().isoformat(),
    }


def available_languages() -> dict:
    languages = [
        {
            "language": name,
            "categories": list(table),
            "totalPhrases": sum(len(group) for group in table.values()),
        }
        for name, table in TRAVEL_PHRASES.items()
    ]
    return {
        "availableLanguages": languages,
        "totalLanguages": len(languages),
        "lastUpdated": datetime.utcnow().isoformat(),
    }


# ── City search ────────────────────────────────────────────────────────────

def search_cities(query: str) -> list:
    """Geocode a free-text city query with OpenWeatherMap."""
    query = (query or "").strip()
    if len(query) < 2:
        raise ValueError("Query must be at least 2 characters long")
    if not OPENWEATHER_API_KEY:
        raise UtilityServiceError("Weather API key not configured")
    data = _get_json(f"{OPENWEATHER_URL}/geo/1.0/direct",
                     {"q": query, "limit": MAX_CITIES, "appid": OPENWEATHER_API_KEY})
    if not isinstance(data, list):
        raise UtilityServiceError("Geocoding API returned an unexpected body")
    try:
        return [
            {
                "name": item.get("name", ""),
                "country": item.get("country", ""),
                "state": item.get("state"),
                "lat": item.get("lat"),
                "lon": item.get("lon"),
            }
            for item in data
        ]
    except AttributeError as exc:
        raise UtilityServiceError(f"Geocoding API returned an unusable entry: {exc!r}") from exc


def fallback_cities(query: str) -> list:
    needle = (query or "").strip().lower()
    return [c for c in FALLBACK_CITIES if needle in c["name"].lower()][:MAX_CITIES]
