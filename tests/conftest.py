import hashlib
import hmac
import os
import sys
import tempfile
import time

import pytest

# Project root: needed for main, database, mock_data, services, etc.
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

# main calls init_db() at import; point it at a temp file and blank every provider key.
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.mkdtemp(), "import.db")
for _key in ("OPENAI_API_KEY", "AMADEUS_CLIENT_ID", "AMADEUS_CLIENT_SECRET",
             "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "STRIPE_PRICE_ID",
             "OPENWEATHER_API_KEY", "CURRENCY_API_KEY", "RESEND_API_KEY", "CRON_SECRET"):
    os.environ[_key] = ""

import stripe
from fastapi.testclient import TestClient

import auth
import main
from database import SessionLocal, configure_database, init_db
from services import payments, price_watch, travel_utils
from services.amadeus_client import amadeus

TEST_JWT_SECRET = "test-jwt-secret"
TEST_WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture(autouse=True)
def offline_providers(monkeypatch):
    """Every provider starts unconfigured; tests opt in explicitly."""
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(amadeus, "client_id", "")
    monkeypatch.setattr(amadeus, "client_secret", "")
    amadeus.invalidate()
    monkeypatch.setattr(stripe, "api_key", "")
    monkeypatch.setattr(payments, "STRIPE_WEBHOOK_SECRET", "")
    monkeypatch.setattr(payments, "STRIPE_PRICE_ID", "")
    monkeypatch.setattr(travel_utils, "OPENWEATHER_API_KEY", "")
    monkeypatch.setattr(travel_utils, "CURRENCY_API_KEY", "")
    monkeypatch.setattr(price_watch, "RESEND_API_KEY", "")
    monkeypatch.setattr(main, "CRON_SECRET", "")
    monkeypatch.setattr(auth, "SUPABASE_JWT_SECRET", TEST_JWT_SECRET)


@pytest.fixture
def db_session(tmp_path):
    configure_database(f"sqlite:///{tmp_path / 'test.db'}")
    init_db()
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db_session):
    return TestClient(main.app)


@pytest.fixture
def make_headers():
    def _make(user_id="user-1", email="traveler@example.com"):
        return {"Authorization": f"Bearer {auth.create_access_token(user_id, email)}"}
    return _make


@pytest.fixture
def auth_headers(make_headers):
    return make_headers()


@pytest.fixture
def stripe_configured(monkeypatch):
    monkeypatch.setattr(stripe, "api_key", "sk_test_123")
    monkeypatch.setattr(payments, "STRIPE_WEBHOOK_SECRET", TEST_WEBHOOK_SECRET)


def stripe_signature(payload: str, secret: str = TEST_WEBHOOK_SECRET, timestamp=None) -> str:
    """Build a Stripe-Signature header the way Stripe signs webhook payloads."""
    ts = int(timestamp or time.time())
    digest = hmac.new(secret.encode(), f"{ts}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"
