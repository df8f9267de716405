# booking-backend/newsletter.py

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import models
from errors import AlreadySubscribed, InternalError, NotFound
from validators import require_fields, validate_email

logger = logging.getLogger(__name__)


def _find_subscriber(db: Session, email: str) -> Optional[models.NewsletterSubscriber]:
    return (
        db.query(models.NewsletterSubscriber)
        .filter(models.NewsletterSubscriber.email == email)
        .first()
    )


def subscribe(db: Session, email: Optional[str], name: Optional[str] = None) -> Tuple[models.NewsletterSubscriber, bool]:
    """
    Subscribe an email address.

    Returns the subscriber and whether it was newly created (False means an
    inactive subscription was reactivated).
    """
    require_fields(email=email)
    validate_email(email)

    try:
        subscriber = _find_subscriber(db, email)
        if subscriber is not None:
            if subscriber.is_active:
                raise AlreadySubscribed()
            subscriber.is_active = True
            db.commit()
            db.refresh(subscriber)
            logger.info("Newsletter subscription reactivated for %s", email)
            return subscriber, False

        subscriber = models.NewsletterSubscriber(email=email, name=name, is_active=True)
        db.add(subscriber)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise AlreadySubscribed() from exc
        db.refresh(subscriber)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Newsletter subscription failed for %s", email)
        raise InternalError("Failed to subscribe") from exc

    logger.info("New newsletter subscriber %s", email)
    return subscriber, True


def unsubscribe(db: Session, email: Optional[str]) -> models.NewsletterSubscriber:
    require_fields(email=email)

    try:
        subscriber = _find_subscriber(db, email)
        if subscriber is None:
            raise NotFound("Email not found")
        subscriber.is_active = False
        db.commit()
        db.refresh(subscriber)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Newsletter unsubscribe failed for %s", email)
        raise InternalError("Failed to unsubscribe") from exc

    logger.info("Newsletter unsubscribe for %s", email)
    return subscriber
