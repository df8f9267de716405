# booking-backend/booking.py

"""
Appointment booking: slot availability, the booking transaction and
administrative status changes.

A slot is a (date, time) pair. The partial unique index on Appointment keeps
at most one PENDING/CONFIRMED appointment per slot, so two requests racing for
the same slot cannot both commit; the loser's IntegrityError is reported as
SlotTaken exactly like the sequential case.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

import config
import models
from errors import InternalError, InvalidStatus, NotFound, SlotTaken
from validators import parse_date, require_fields, validate_email

logger = logging.getLogger(__name__)

VALID_STATUSES = [status.value for status in models.AppointmentStatus]


def _slot_occupied(db: Session, slot_date: date, slot_time: str) -> bool:
    return (
        db.query(models.Appointment.id)
        .filter(
            models.Appointment.date == slot_date,
            models.Appointment.time == slot_time,
            models.Appointment.status.in_(models.OCCUPYING_STATUSES),
        )
        .first()
        is not None
    )


def find_customer(db: Session, email: str) -> Optional[models.Customer]:
    return db.query(models.Customer).filter(models.Customer.email == email).first()


def resolve_customer(db: Session, name: str, email: str, phone: Optional[str] = None) -> models.Customer:
    """
    Return the customer registered under this email, or a new (pending) one.

    Existing customers are reused as-is; a repeat booking never rewrites their
    name or phone. The new customer is only added to the session, the caller
    commits it together with whatever references it.
    """
    customer = find_customer(db, email)
    if customer is None:
        customer = models.Customer(name=name, email=email, phone=phone or None)
        db.add(customer)
    return customer


def get_booked_times(db: Session, day) -> List[str]:
    """Slot labels on the given day held by a PENDING or CONFIRMED appointment."""
    slot_date = parse_date(day)
    try:
        rows = (
            db.query(models.Appointment.time)
            .filter(
                models.Appointment.date == slot_date,
                models.Appointment.status.in_(models.OCCUPYING_STATUSES),
            )
            .distinct()
            .order_by(models.Appointment.time)
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Failed to fetch booked times for %s", slot_date)
        raise InternalError("Failed to fetch appointments") from exc
    return [row.time for row in rows]


def list_appointments(db: Session) -> List[models.Appointment]:
    """Every appointment of any status, with its customer, by date then slot label."""
    try:
        return (
            db.query(models.Appointment)
            .options(joinedload(models.Appointment.customer))
            .order_by(models.Appointment.date.asc(), models.Appointment.time.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception("Failed to list appointments")
        raise InternalError("Failed to fetch appointments") from exc


def create_appointment(
    db: Session,
    name: Optional[str],
    email: Optional[str],
    type: Optional[str],
    date: Optional[str],
    time: Optional[str],
    topic: Optional[str],
    phone: Optional[str] = None,
    description: Optional[str] = None,
) -> models.Appointment:
    """
    Book a slot for a customer.

    All validation happens before anything is written. The customer (when new)
    and the appointment are committed in a single transaction.
    """
    require_fields(name=name, email=email, type=type, date=date, time=time, topic=topic)
    validate_email(email)
    slot_date = parse_date(date)

    try:
        for attempt in range(config.CUSTOMER_CONFLICT_RETRIES + 1):
            if _slot_occupied(db, slot_date, time):
                logger.info("Slot %s %s already booked", slot_date, time)
                raise SlotTaken()

            customer = resolve_customer(db, name=name, email=email, phone=phone)
            appointment = models.Appointment(
                customer=customer,
                type=type,
                date=slot_date,
                time=time,
                topic=topic,
                description=description,
                status=models.AppointmentStatus.PENDING.value,
            )
            db.add(appointment)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                if _slot_occupied(db, slot_date, time):
                    logger.info("Slot %s %s taken by a concurrent booking", slot_date, time)
                    raise SlotTaken() from exc
                if attempt < config.CUSTOMER_CONFLICT_RETRIES and find_customer(db, email):
                    logger.info("Customer %s created concurrently, retrying booking", email)
                    continue
                raise

            db.refresh(appointment)
            logger.info(
                "Appointment %s booked for %s on %s at %s",
                appointment.id, email, slot_date, time,
            )
            return appointment
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Appointment booking failed for %s on %s at %s", email, slot_date, time)
        raise InternalError("Failed to book appointment") from exc


def get_appointment(db: Session, appointment_id: str) -> models.Appointment:
    appointment = (
        db.query(models.Appointment)
        .options(joinedload(models.Appointment.customer))
        .filter(models.Appointment.id == appointment_id)
        .first()
    )
    if appointment is None:
        raise NotFound("Appointment not found")
    return appointment


def update_appointment_status(db: Session, appointment_id: Optional[str], status: Optional[str]) -> models.Appointment:
    """
    Overwrite an appointment's status.

    Any status may follow any other; only membership is checked. Moving an
    appointment back into PENDING/CONFIRMED still has to respect the slot index.
    """
    require_fields(appointmentId=appointment_id, status=status)
    if status not in VALID_STATUSES:
        raise InvalidStatus()

    try:
        appointment = get_appointment(db, appointment_id)
        previous = appointment.status
        appointment.status = status
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.info(
                "Appointment %s cannot become %s, slot %s %s is taken",
                appointment_id, status, appointment.date, appointment.time,
            )
            raise SlotTaken() from exc
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update appointment %s", appointment_id)
        raise InternalError("Failed to update appointment") from exc

    logger.info("Appointment %s status %s -> %s", appointment_id, previous, status)
    return appointment
