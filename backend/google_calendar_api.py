# booking-backend/google_calendar_api.py

import json
import logging
import os
from datetime import datetime, timedelta

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

import config
from errors import CalendarNotConfigured

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.events"]


def get_flow():
    """Initializes and returns the Google OAuth flow."""
    if not config.GOOGLE_CLIENT_ID or not config.GOOGLE_CLIENT_SECRET:
        raise CalendarNotConfigured(
            "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set to authorize Google Calendar."
        )
    client_config = {
        "web": {
            "client_id": config.GOOGLE_CLIENT_ID,
            "project_id": config.GOOGLE_PROJECT_ID,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
            "client_secret": config.GOOGLE_CLIENT_SECRET,
            "redirect_uris": [config.REDIRECT_URI],
        }
    }
    return Flow.from_client_config(client_config, scopes=SCOPES, redirect_uri=config.REDIRECT_URI)


def save_credentials(creds: Credentials):
    """
    Saves the credentials to the token file, preserving existing fields
    and only updating the fields present in the new credentials object.
    """
    token_file = config.GOOGLE_TOKEN_FILE
    new_creds_data = json.loads(creds.to_json())

    existing_data = {}
    if os.path.exists(token_file):
        try:
            with open(token_file, "r") as f:
                existing_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read %s (%s), writing a new one", token_file, e)

    # Refresh responses omit the refresh token, so keep the stored one
    merged_data = {**existing_data, **new_creds_data}
    if "scopes" in new_creds_data:
        merged_data["scopes"] = new_creds_data["scopes"]

    with open(token_file, "w") as token:
        json.dump(merged_data, token, indent=4)
    logger.info("Google credentials saved to %s", token_file)


def get_credentials():
    """
    Loads credentials from the token file, refreshing them when expired.
    Returns None when there is nothing usable.
    """
    token_file = config.GOOGLE_TOKEN_FILE
    if not os.path.exists(token_file):
        logger.debug("No Google token file at %s", token_file)
        return None

    try:
        creds = Credentials.from_authorized_user_file(token_file, SCOPES)
    except (OSError, ValueError) as e:
        logger.error("Failed to load credentials from %s: %s. Re-authorize the app.", token_file, e)
        return None

    if creds.expired and creds.refresh_token:
        logger.debug("Google credentials expired, refreshing")
        try:
            creds.refresh(Request())
        except Exception as e:
            logger.error("Failed to refresh Google credentials: %s: %s", type(e).__name__, e)
            return None
        save_credentials(creds)

    if not creds.valid:
        logger.warning("Google credentials in %s are not valid", token_file)
        return None
    return creds


def build_calendar_service(creds):
    """Builds and returns a Google Calendar API service object."""
    return build("calendar", "v3", credentials=creds, cache_discovery=False)


def create_calendar_event(service, start_time: datetime, end_time: datetime,
                          summary: str, description: str, attendee_email: str,
                          calendar_id: str = "primary", time_zone: str = "UTC"):
    """
    Creates a new event on the specified Google Calendar.
    Returns the created event resource.
    """
    event = {
        "summary": summary,
        "description": description,
        "start": {"dateTime": start_time.isoformat(), "timeZone": time_zone},
        "end": {"dateTime": end_time.isoformat(), "timeZone": time_zone},
        "attendees": [{"email": attendee_email}],
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 24 * 60},
                {"method": "popup", "minutes": 10},
            ],
        },
        "conferenceData": {
            "createRequest": {
                "requestId": f"booking-{start_time.strftime('%Y%m%d%H%M%S')}-{os.urandom(8).hex()}",
                "conferenceSolutionKey": {"type": "hangoutsMeet"},
            }
        },
    }

    try:
        event = service.events().insert(
            calendarId=calendar_id, body=event, conferenceDataVersion=1
        ).execute()
    except HttpError as error:
        logger.error("Google Calendar API error while creating event: %s", error)
        raise
    logger.info("Calendar event created: %s", event.get("htmlLink"))
    return event


def slot_start(slot_date, slot_time: str):
    """Combine a date and an "HH:MM" slot label; None if the label is not a clock time."""
    try:
        clock = datetime.strptime(slot_time.strip(), "%H:%M").time()
    except ValueError:
        return None
    return datetime.combine(slot_date, clock)


class CalendarNotifier:
    """Notification subscriber that mirrors new bookings onto a Google Calendar."""

    def __init__(self, calendar_id: str, time_zone: str = None, duration_hours: int = None):
        self.calendar_id = calendar_id
        self.time_zone = time_zone or config.CALENDAR_TIMEZONE
        self.duration = timedelta(hours=duration_hours or config.SLOT_DURATION_HOURS)

    def __repr__(self) -> str:
        return f"CalendarNotifier({self.calendar_id!r})"

    def __call__(self, event):
        start = slot_start(event.date, event.time)
        if start is None:
            logger.warning(
                "Slot label %r of appointment %s is not HH:MM, no calendar event created",
                event.time, event.appointment_id,
            )
            return None

        creds = get_credentials()
        if creds is None:
            logger.warning(
                "Google Calendar not authorized, skipping event for appointment %s",
                event.appointment_id,
            )
            return None

        service = build_calendar_service(creds)
        return create_calendar_event(
            service,
            start,
            start + self.duration,
            f"{event.type}: {event.topic} ({event.customer_name})",
            event.description or event.topic,
            event.customer_email,
            calendar_id=self.calendar_id,
            time_zone=self.time_zone,
        )
