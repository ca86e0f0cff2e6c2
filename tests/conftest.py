# tests/conftest.py

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.api.routes import routes
from src.infrastructure.db.models import Base, Event, User
from src.infrastructure.geocoding.geocoding_enricher import GeocodingEnricher
from src.main import app
from tests.fakes import FakeEmailSender, FakePdfRenderer, FakeQrGenerator


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def qr_generator():
    return FakeQrGenerator()


@pytest.fixture
def pdf_renderer():
    return FakePdfRenderer()


@pytest.fixture
def offline_geocoder():
    return GeocodingEnricher(api_key="")


@pytest.fixture
def manager(db):
    user = User(
        first_name="Maya",
        last_name="Organizer",
        email="maya@example.com",
        user_type="Manager",
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def attendee(db):
    user = User(
        first_name="Alex",
        last_name="Attendee",
        email="alex@example.com",
        user_type="attendee",
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def make_event(db, manager):
    def _make_event(capacity: int = 10, available: int | None = None, days_ahead: int = 7, **overrides):
        fields = {
            "organizer_id": manager.id,
            "event_name": "Riverside Jazz Night",
            "event_date_time": datetime.now(timezone.utc) + timedelta(days=days_ahead),
            "address": "1 Harbor Way",
            "city": "Portland",
            "state": "OR",
            "zip_code": "97201",
            "event_capacity": capacity,
            "available_tickets": capacity if available is None else available,
            "event_attendees": 0,
            "ticket_price": 25.0,
        }
        fields.update(overrides)
        event = Event(**fields)
        db.add(event)
        db.commit()
        return event

    return _make_event


@pytest.fixture
def client(session_factory, email_sender, qr_generator, pdf_renderer, offline_geocoder):

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[routes.get_db] = override_get_db
    app.dependency_overrides[routes.get_email_sender] = lambda: email_sender
    app.dependency_overrides[routes.get_qr_generator] = lambda: qr_generator
    app.dependency_overrides[routes.get_pdf_renderer] = lambda: pdf_renderer
    app.dependency_overrides[routes.get_geocoder] = lambda: offline_geocoder

    yield TestClient(app)

    app.dependency_overrides.clear()
