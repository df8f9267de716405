# booking-backend/contact.py

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
from errors import InternalError
from validators import require_fields, validate_email

logger = logging.getLogger(__name__)


def submit_message(
    db: Session,
    name: Optional[str],
    email: Optional[str],
    subject: Optional[str],
    message: Optional[str],
    phone: Optional[str] = None,
) -> models.ContactMessage:
    require_fields(name=name, email=email, subject=subject, message=message)
    validate_email(email)

    contact_message = models.ContactMessage(
        name=name,
        email=email,
        phone=phone or None,
        subject=subject,
        message=message,
        status="unread",
        is_read=False,
    )
    try:
        db.add(contact_message)
        db.commit()
        db.refresh(contact_message)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to store contact message from %s", email)
        raise InternalError("Failed to send message") from exc

    logger.info("Contact message %s received from %s", contact_message.id, email)
    return contact_message


def list_messages(db: Session, unread_only: bool = False) -> List[models.ContactMessage]:
    """Contact messages, newest first."""
    query = db.query(models.ContactMessage)
    if unread_only:
        query = query.filter(models.ContactMessage.is_read.is_(False))
    try:
        return query.order_by(models.ContactMessage.created_at.desc()).all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to list contact messages")
        raise InternalError("Failed to fetch messages") from exc
