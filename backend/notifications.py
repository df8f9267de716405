# booking-backend/notifications.py

"""
Best-effort notifications sent after a booking has been committed.

Subscribers are plain callables taking an AppointmentBooked event. The API
schedules NotificationDispatcher.publish as a background task, so a slow or
failing subscriber (calendar, email, ...) never touches the booking itself.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional

import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppointmentBooked:
    appointment_id: str
    date: date
    time: str
    type: str
    topic: str
    description: Optional[str]
    customer_name: str
    customer_email: str
    customer_phone: Optional[str]

    @classmethod
    def from_appointment(cls, appointment) -> "AppointmentBooked":
        customer = appointment.customer
        return cls(
            appointment_id=appointment.id,
            date=appointment.date,
            time=appointment.time,
            type=appointment.type,
            topic=appointment.topic,
            description=appointment.description,
            customer_name=customer.name,
            customer_email=customer.email,
            customer_phone=customer.phone,
        )


Subscriber = Callable[[AppointmentBooked], None]


class NotificationDispatcher:
    def __init__(self, subscribers: Optional[List[Subscriber]] = None):
        self.subscribers: List[Subscriber] = list(subscribers or [])

    def subscribe(self, subscriber: Subscriber) -> None:
        self.subscribers.append(subscriber)

    def publish(self, event: AppointmentBooked) -> None:
        for subscriber in list(self.subscribers):
            try:
                subscriber(event)
            except Exception:
                # The booking is already committed; a subscriber can only be logged
                logger.exception(
                    "Notification subscriber %r failed for appointment %s",
                    subscriber, event.appointment_id,
                )


def log_booking(event: AppointmentBooked) -> None:
    logger.info(
        "Appointment %s (%s) booked by %s for %s at %s",
        event.appointment_id, event.type, event.customer_email, event.date, event.time,
    )


def build_default_dispatcher() -> NotificationDispatcher:
    dispatcher = NotificationDispatcher([log_booking])
    if config.GOOGLE_CALENDAR_ID:
        from google_calendar_api import CalendarNotifier

        dispatcher.subscribe(CalendarNotifier(config.GOOGLE_CALENDAR_ID))
        logger.info("Google Calendar notifications enabled for %s", config.GOOGLE_CALENDAR_ID)
    return dispatcher
