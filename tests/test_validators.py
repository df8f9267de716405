from datetime import date, datetime

import pytest

from errors import InvalidEmail, InvalidInput, MissingField
from validators import parse_date, require_fields, validate_email


def test_require_fields_lists_all_missing():
    with pytest.raises(MissingField) as excinfo:
        require_fields(name="A", email=None, topic=" ")
    assert excinfo.value.fields == ["email", "topic"]
    assert excinfo.value.message == "Missing required fields: email, topic"


def test_require_fields_passes():
    require_fields(name="A", email="a@x.com")


@pytest.mark.parametrize("email", ["a@x.com", "first.last+tag@sub.example.org", "A@X.CO"])
def test_valid_emails(email):
    assert validate_email(email) == email


@pytest.mark.parametrize("email", ["a@x", "a@@x.com", "a x@y.com", "a@x .com", "ax.com"])
def test_invalid_emails(email):
    with pytest.raises(InvalidEmail):
        validate_email(email)


@pytest.mark.parametrize(
    "value",
    [
        "2024-06-01",
        " 2024-06-01 ",
        "2024-06-01T23:59:59",
        "2024-06-01T10:00:00Z",
        "2024-06-01T10:00:00+02:00",
        date(2024, 6, 1),
        datetime(2024, 6, 1, 18, 45),
    ],
)
def test_parse_date(value):
    assert parse_date(value) == date(2024, 6, 1)


@pytest.mark.parametrize("value", ["", "tomorrow", "2024-13-01", "01/06/2024", 20240601])
def test_parse_date_rejects(value):
    with pytest.raises(InvalidInput):
        parse_date(value)
