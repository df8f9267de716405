# booking-backend/models.py

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

# Import Base from your database.py
from database import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Statuses that hold a (date, time) slot
OCCUPYING_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)

_OCCUPYING_CLAUSE = text(
    "status IN (%s)" % ", ".join(f"'{status}'" for status in OCCUPYING_STATUSES)
)


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String, primary_key=True, index=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    appointments = relationship("Appointment", back_populates="customer")

    def __repr__(self) -> str:
        return f"<Customer {self.email}>"


class Appointment(Base):
    __tablename__ = "appointments"
    # At most one PENDING/CONFIRMED appointment per (date, time)
    __table_args__ = (
        Index(
            "uq_appointments_occupied_slot",
            "date",
            "time",
            unique=True,
            sqlite_where=_OCCUPYING_CLAUSE,
            postgresql_where=_OCCUPYING_CLAUSE,
        ),
    )

    id = Column(String, primary_key=True, index=True, default=_new_id)
    customer_id = Column(String, ForeignKey("customers.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(String, nullable=False)  # slot label, e.g. "14:00"
    topic = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    customer = relationship("Customer", back_populates="appointments")

    def __repr__(self) -> str:
        return f"<Appointment {self.id} - {self.date} {self.time} ({self.status})>"


class ContactMessage(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True, index=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="unread")
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)


class NewsletterSubscriber(Base):
    __tablename__ = "newsletter"

    id = Column(String, primary_key=True, index=True, default=_new_id)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
