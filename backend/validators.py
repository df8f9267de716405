# booking-backend/validators.py

import re
from datetime import date, datetime

from errors import InvalidEmail, InvalidInput, MissingField

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def require_fields(**fields):
    """Raise MissingField naming every value that is None or blank."""
    missing = [
        name
        for name, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise MissingField(missing)


def validate_email(email: str) -> str:
    if not EMAIL_PATTERN.match(email):
        raise InvalidEmail()
    return email


def parse_date(value) -> date:
    """
    Normalize a calendar date. Accepts a date, a datetime or an ISO 8601 string;
    any time-of-day component is dropped.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidInput(f"Invalid date: {value!r}")

    raw = value.strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidInput(f"Invalid date: {value!r}") from None
