"""Shared test fixtures and helpers."""

import pytest
from fastapi.testclient import TestClient

from database import Database
from main import create_app
from notifications import NotificationDispatcher


class RecordingSubscriber:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def recorder():
    return RecordingSubscriber()


@pytest.fixture
def dispatcher(recorder):
    return NotificationDispatcher([recorder])


@pytest.fixture
def client(database, dispatcher):
    app = create_app(database=database, dispatcher=dispatcher)
    with TestClient(app) as test_client:
        yield test_client


def make_booking_payload(**overrides) -> dict:
    """Helper to build a valid booking request body."""
    payload = {
        "name": "A",
        "email": "a@x.com",
        "phone": "+1 555 0100",
        "type": "consult",
        "date": "2024-06-01",
        "time": "10:00",
        "topic": "intro",
        "description": "First call",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def booking_payload():
    return make_booking_payload
