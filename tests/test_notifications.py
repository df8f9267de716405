"""Tests for the post-commit notification dispatcher and the Google Calendar subscriber."""

import json
from datetime import date

import pytest

import config
import google_calendar_api
from google_calendar_api import CalendarNotifier
from notifications import AppointmentBooked, NotificationDispatcher, build_default_dispatcher, log_booking


def make_event(**overrides) -> AppointmentBooked:
    fields = dict(
        appointment_id="apt-1",
        date=date(2024, 6, 1),
        time="10:00",
        type="consult",
        topic="intro",
        description=None,
        customer_name="A",
        customer_email="a@x.com",
        customer_phone=None,
    )
    fields.update(overrides)
    return AppointmentBooked(**fields)


class FakeInsert:
    def __init__(self, calls, kwargs):
        self.calls = calls
        self.kwargs = kwargs

    def execute(self):
        self.calls.append(self.kwargs)
        return {"id": "evt-1", "htmlLink": "https://calendar.example/evt-1"}


class FakeEvents:
    def __init__(self, calls):
        self.calls = calls

    def insert(self, **kwargs):
        return FakeInsert(self.calls, kwargs)


class FakeCalendarService:
    def __init__(self):
        self.calls = []

    def events(self):
        return FakeEvents(self.calls)


class TestDispatcher:
    def test_publishes_to_every_subscriber(self):
        seen = []
        dispatcher = NotificationDispatcher([seen.append])
        dispatcher.subscribe(lambda event: seen.append(event.appointment_id))

        event = make_event()
        dispatcher.publish(event)

        assert seen == [event, "apt-1"]

    def test_failure_is_contained(self, caplog):
        seen = []

        def broken(event):
            raise RuntimeError("smtp down")

        dispatcher = NotificationDispatcher([broken, seen.append])
        dispatcher.publish(make_event())

        assert len(seen) == 1
        assert "failed for appointment apt-1" in caplog.text

    def test_log_booking(self, caplog):
        with caplog.at_level("INFO"):
            log_booking(make_event())
        assert "apt-1" in caplog.text

    def test_default_dispatcher_without_calendar(self, monkeypatch):
        monkeypatch.setattr(config, "GOOGLE_CALENDAR_ID", None)
        dispatcher = build_default_dispatcher()
        assert dispatcher.subscribers == [log_booking]

    def test_default_dispatcher_with_calendar(self, monkeypatch):
        monkeypatch.setattr(config, "GOOGLE_CALENDAR_ID", "team@example.com")
        dispatcher = build_default_dispatcher()
        assert isinstance(dispatcher.subscribers[-1], CalendarNotifier)
        assert dispatcher.subscribers[-1].calendar_id == "team@example.com"


class TestCalendarNotifier:
    @pytest.fixture
    def service(self, monkeypatch):
        service = FakeCalendarService()
        monkeypatch.setattr(google_calendar_api, "get_credentials", lambda: object())
        monkeypatch.setattr(google_calendar_api, "build_calendar_service", lambda creds: service)
        return service

    def test_creates_event_for_slot(self, service):
        notifier = CalendarNotifier("team@example.com", time_zone="Europe/Zurich", duration_hours=1)

        created = notifier(make_event(description="Talk about the site"))

        assert created["id"] == "evt-1"
        call = service.calls[0]
        assert call["calendarId"] == "team@example.com"
        body = call["body"]
        assert body["start"] == {"dateTime": "2024-06-01T10:00:00", "timeZone": "Europe/Zurich"}
        assert body["end"] == {"dateTime": "2024-06-01T11:00:00", "timeZone": "Europe/Zurich"}
        assert body["attendees"] == [{"email": "a@x.com"}]
        assert body["description"] == "Talk about the site"
        assert body["summary"] == "consult: intro (A)"

    def test_skips_non_clock_labels(self, service):
        assert CalendarNotifier("team@example.com")(make_event(time="morning")) is None
        assert service.calls == []

    def test_skips_without_credentials(self, monkeypatch):
        monkeypatch.setattr(google_calendar_api, "get_credentials", lambda: None)

        def unexpected(creds):
            raise AssertionError("service should not be built")

        monkeypatch.setattr(google_calendar_api, "build_calendar_service", unexpected)
        assert CalendarNotifier("team@example.com")(make_event()) is None

    def test_slot_start(self):
        start = google_calendar_api.slot_start(date(2024, 6, 1), "14:30")
        assert start.isoformat() == "2024-06-01T14:30:00"
        assert google_calendar_api.slot_start(date(2024, 6, 1), "2pm") is None


class FakeCredentials:
    def __init__(self, data):
        self.data = data

    def to_json(self):
        return json.dumps(self.data)


class TestCredentialsStore:
    def test_save_keeps_existing_refresh_token(self, tmp_path, monkeypatch):
        token_file = tmp_path / "token.json"
        token_file.write_text(json.dumps({"token": "old", "refresh_token": "r-1"}))
        monkeypatch.setattr(config, "GOOGLE_TOKEN_FILE", str(token_file))

        google_calendar_api.save_credentials(FakeCredentials({"token": "new", "scopes": ["a"]}))

        saved = json.loads(token_file.read_text())
        assert saved == {"token": "new", "refresh_token": "r-1", "scopes": ["a"]}

    def test_save_replaces_unreadable_file(self, tmp_path, monkeypatch):
        token_file = tmp_path / "token.json"
        token_file.write_text("{not json")
        monkeypatch.setattr(config, "GOOGLE_TOKEN_FILE", str(token_file))

        google_calendar_api.save_credentials(FakeCredentials({"token": "new"}))

        assert json.loads(token_file.read_text()) == {"token": "new"}

    def test_no_token_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "GOOGLE_TOKEN_FILE", str(tmp_path / "missing.json"))
        assert google_calendar_api.get_credentials() is None


class TestOAuthEndpoints:
    def test_not_configured(self, client, monkeypatch):
        monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", None)
        monkeypatch.setattr(config, "GOOGLE_CLIENT_SECRET", None)

        response = client.get("/auth/google", follow_redirects=False)

        assert response.status_code == 503
        assert "GOOGLE_CLIENT_ID" in response.json()["error"]

    def test_redirects_to_google(self, client, monkeypatch):
        monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", "client-id")
        monkeypatch.setattr(config, "GOOGLE_CLIENT_SECRET", "client-secret")

        response = client.get("/auth/google", follow_redirects=False)

        assert response.status_code == 307
        location = response.headers["location"]
        assert location.startswith("https://accounts.google.com/o/oauth2/auth")
        assert "client_id=client-id" in location
