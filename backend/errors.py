# booking-backend/errors.py

from fastapi import status


class ServiceError(Exception):
    """Base for errors reported to the caller with a safe message."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class MissingField(ServiceError):
    message = "Missing required fields"

    def __init__(self, fields=()):
        self.fields = list(fields)
        message = self.message
        if self.fields:
            message = f"{message}: {', '.join(self.fields)}"
        super().__init__(message)


class InvalidInput(ServiceError):
    message = "Invalid input"


class InvalidEmail(ServiceError):
    message = "Invalid email format"


class InvalidStatus(ServiceError):
    message = "Invalid status"


class SlotTaken(ServiceError):
    message = "This time slot is already booked"


class AlreadySubscribed(ServiceError):
    message = "Already subscribed to newsletter"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class InternalError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"


class CalendarNotConfigured(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Google Calendar integration is not configured."
