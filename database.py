"""
Persistence layer - SQLAlchemy models mirroring the Supabase tables.

Defaults to a local SQLite file; point DATABASE_URL at the Supabase Postgres
instance in production.
"""
import os
import uuid
from datetime import datetime

from sqlalchemy import (
    create_engine, Column, String, Integer, Float, DateTime, Text, Boolean,
    ForeignKey, JSON,
)
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from pydantic.alias_generators import to_camel

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./where_next.db")

Base = declarative_base()
SessionLocal = sessionmaker(autoflush=False)
engine = None


def generate_id():
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)  # Supabase auth user id
    email = Column(String, index=True, default="")
    full_name = Column(String, default="")
    avatar_url = Column(String, nullable=True)
    plan = Column(String, default="free")  # free, pro
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trips = relationship("Trip", back_populates="user", cascade="all, delete-orphan")


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("profiles.id"), unique=True)
    travel_style = Column(JSON, default=list)
    preferred_airlines = Column(JSON, default=list)
    preferred_hotels = Column(JSON, default=list)
    budget_range = Column(String, default="medium")
    notification_preferences = Column(JSON, default=dict)
    privacy_settings = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("profiles.id"), index=True)
    destination = Column(String)
    start_date = Column(String)  # YYYY-MM-DD
    end_date = Column(String)
    budget = Column(Float)
    currency = Column(String, default="USD")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("Profile", back_populates="trips")
    expenses = relationship("Expense", back_populates="trip", cascade="all, delete-orphan")
    wallet_items = relationship("WalletItem", back_populates="trip", cascade="all, delete-orphan")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id"), index=True)
    user_id = Column(String, ForeignKey("profiles.id"))
    amount = Column(Float)
    category = Column(String)
    description = Column(String)
    currency = Column(String, default="USD")
    date = Column(String)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    trip = relationship("Trip", back_populates="expenses")


class WalletItem(Base):
    __tablename__ = "wallet_items"

    id = Column(String, primary_key=True, default=generate_id)
    trip_id = Column(String, ForeignKey("trips.id"), index=True)
    user_id = Column(String, ForeignKey("profiles.id"))
    title = Column(String)
    category = Column(String)  # boarding_pass, train_ticket, hotel_qr, attraction, insurance, other
    start_ts = Column(String, nullable=True)
    end_ts = Column(String, nullable=True)
    file_url = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    qr_text = Column(Text, nullable=True)
    barcode_text = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    is_sensitive = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    trip = relationship("Trip", back_populates="wallet_items")


class SavedTrip(Base):
    """A destination suggestion the user bookmarked."""
    __tablename__ = "trip_suggestions"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("profiles.id"), index=True)
    destination = Column(String)
    estimated_cost = Column(Float)
    reason = Column(Text, nullable=True)
    fit_score = Column(Float, nullable=True)
    best_time = Column(String, nullable=True)
    source = Column(String)
    trip_duration = Column(Integer, nullable=True)
    travelers = Column(Integer, nullable=True)
    saved_at = Column(DateTime, default=datetime.utcnow)


class Itinerary(Base):
    __tablename__ = "itineraries"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("profiles.id"), index=True)
    departure_city = Column(String)
    destination = Column(String, nullable=True)
    start_date = Column(String, nullable=True)
    end_date = Column(String, nullable=True)
    travelers = Column(Integer, default=1)
    planning_mode = Column(String, default="cheapest")  # cheapest, fastest, easiest
    plan = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("profiles.id"), nullable=True, index=True)
    type = Column(String, default="flight")  # flight, hotel
    title = Column(String, default="Booking")
    description = Column(Text, default="")
    amount_cents = Column(Integer, default=0)
    currency = Column(String, default="usd")
    status = Column(String, default="pending")  # pending, confirmed, payment_failed, refunded
    checkout_session_id = Column(String, nullable=True)
    payment_intent_id = Column(String, nullable=True, index=True)
    booking_metadata = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PaymentTransaction(Base):
    __tablename__ = "payment_transactions"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("profiles.id"), nullable=True)
    booking_id = Column(String, ForeignKey("bookings.id"), nullable=True)
    payment_intent_id = Column(String, unique=True, index=True)
    amount_cents = Column(Integer)
    currency = Column(String, default="usd")
    status = Column(String, default="requires_payment")  # requires_payment, succeeded, failed, refunded
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PriceWatch(Base):
    __tablename__ = "price_watches"

    id = Column(String, primary_key=True, default=generate_id)
    email = Column(String, index=True)
    origin = Column(String)
    destination = Column(String)
    departure_date = Column(String)
    return_date = Column(String, nullable=True)
    target_price = Column(Float)
    current_price = Column(Float)
    alert_triggered = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_checked = Column(DateTime, default=datetime.utcnow)


class AIConversation(Base):
    __tablename__ = "ai_conversations"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("profiles.id"), index=True)
    message = Column(Text)
    response = Column(Text)
    context = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)


def row_to_dict(row) -> dict:
    """Column values keyed by camelCase attribute name, datetimes as ISO strings."""
    data = {}
    for attr in row.__mapper__.column_attrs:
        value = getattr(row, attr.key)
        if isinstance(value, datetime):
            value = value.isoformat()
        data[to_camel(attr.key)] = value
    return data


def configure_database(url: str = DATABASE_URL):
    """(Re)bind the session factory to a database URL and return the engine."""
    global engine
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, connect_args=connect_args)
    SessionLocal.configure(bind=engine)
    return engine


def init_db():
    """Create all tables on the configured engine."""
    if engine is None:
        configure_database()
    Base.metadata.create_all(bind=engine)
    return engine


def get_db():
    """FastAPI dependency yielding a session that is closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


configure_database()
