# booking-backend/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.responses import RedirectResponse

import booking
import config
import contact
import google_calendar_api
import newsletter
import schemas
from database import Database, get_db
from errors import ServiceError
from notifications import AppointmentBooked, NotificationDispatcher, build_default_dispatcher
from validators import require_fields

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

router = APIRouter(
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": schemas.ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": schemas.ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": schemas.ErrorResponse},
    }
)


def _appointment_response(appointment) -> schemas.AppointmentResponse:
    return schemas.AppointmentResponse.model_validate(appointment)


def _legacy_appointment_response(appointment) -> schemas.LegacyAppointmentResponse:
    row = _appointment_response(appointment)
    return schemas.LegacyAppointmentResponse(
        **row.model_dump(), user_id=appointment.customer_id, user=row.customer
    )


@router.get("/")
async def read_root():
    return {"message": "Welcome to the Appointment Booking API!"}


# --- Appointments ---

@router.get("/api/appointments", response_model=schemas.AppointmentsQueryResponse)
def get_appointments(date: Optional[str] = None, db: Session = Depends(get_db)):
    """
    Booked time slots for ?date=, or every appointment when no date is given.

    Kept for existing clients; new code should call /booked-times or /all.
    """
    if date:
        booked_times = booking.get_booked_times(db, date)
        return schemas.AppointmentsQueryResponse(data=schemas.BookedTimes(booked_times=booked_times))

    appointments = booking.list_appointments(db)
    return schemas.AppointmentsQueryResponse(
        data=[_legacy_appointment_response(appointment) for appointment in appointments]
    )


@router.get("/api/appointments/booked-times", response_model=schemas.BookedTimesResponse)
def get_booked_times(date: Optional[str] = None, db: Session = Depends(get_db)):
    """Slot labels already taken on a day."""
    require_fields(date=date)
    booked_times = booking.get_booked_times(db, date)
    return schemas.BookedTimesResponse(data=schemas.BookedTimes(booked_times=booked_times))


@router.get("/api/appointments/all", response_model=schemas.AppointmentListResponse)
def list_appointments(db: Session = Depends(get_db)):
    """All appointments with customer contact details (admin)."""
    appointments = booking.list_appointments(db)
    return schemas.AppointmentListResponse(
        data=[_appointment_response(appointment) for appointment in appointments]
    )


@router.post(
    "/api/appointments",
    response_model=schemas.BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_appointment(
    payload: schemas.AppointmentCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Book an appointment slot."""
    appointment = booking.create_appointment(
        db,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        type=payload.type,
        date=payload.date,
        time=payload.time,
        topic=payload.topic,
        description=payload.description,
    )

    event = AppointmentBooked.from_appointment(appointment)
    background_tasks.add_task(request.app.state.dispatcher.publish, event)

    return schemas.BookingCreatedResponse(
        message="Appointment booked successfully",
        data=schemas.BookingConfirmation(
            appointment_id=appointment.id,
            date=appointment.date,
            time=appointment.time,
            type=appointment.type,
        ),
    )


@router.patch("/api/appointments", response_model=schemas.AppointmentUpdatedResponse)
def update_appointment(payload: schemas.AppointmentStatusUpdate, db: Session = Depends(get_db)):
    """Update appointment status (admin)."""
    appointment = booking.update_appointment_status(db, payload.appointment_id, payload.status)
    return schemas.AppointmentUpdatedResponse(
        message="Appointment updated", data=_appointment_response(appointment)
    )


# --- Contact ---

@router.post(
    "/api/contact",
    response_model=schemas.MessageCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_contact_message(payload: schemas.ContactMessageCreate, db: Session = Depends(get_db)):
    message = contact.submit_message(
        db,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        subject=payload.subject,
        message=payload.message,
    )
    return schemas.MessageCreatedResponse(
        message="Message sent successfully", data=schemas.CreatedId(id=message.id)
    )


@router.get("/api/contact", response_model=schemas.MessageListResponse)
def get_contact_messages(unread: bool = False, db: Session = Depends(get_db)):
    messages = contact.list_messages(db, unread_only=unread)
    return schemas.MessageListResponse(
        data=[schemas.ContactMessageResponse.model_validate(message) for message in messages]
    )


# --- Newsletter ---

@router.post(
    "/api/newsletter",
    response_model=schemas.ApiResponse,
    status_code=status.HTTP_201_CREATED,
)
def subscribe_newsletter(
    payload: schemas.NewsletterSubscribe, response: Response, db: Session = Depends(get_db)
):
    _, created = newsletter.subscribe(db, email=payload.email, name=payload.name)
    if not created:
        response.status_code = status.HTTP_200_OK
        return schemas.ApiResponse(message="Subscription reactivated successfully")
    return schemas.ApiResponse(message="Subscribed successfully! Check your email for confirmation.")


@router.delete("/api/newsletter", response_model=schemas.ApiResponse)
def unsubscribe_newsletter(email: Optional[str] = None, db: Session = Depends(get_db)):
    newsletter.unsubscribe(db, email=email)
    return schemas.ApiResponse(message="Unsubscribed successfully")


# --- Google OAuth Endpoints ---

@router.get("/auth/google")
async def authorize_google():
    """Initiates the Google OAuth 2.0 authorization flow."""
    flow = google_calendar_api.get_flow()
    authorization_url, _ = flow.authorization_url(
        access_type="offline", include_granted_scopes="true", prompt="consent"
    )
    return RedirectResponse(authorization_url)


@router.get("/auth/google/callback")
def google_callback(request: Request):
    """Handles the callback from Google after user authorization."""
    flow = google_calendar_api.get_flow()
    flow.fetch_token(authorization_response=str(request.url))
    google_calendar_api.save_credentials(flow.credentials)
    return {"message": "Google Calendar authorization successful!", "token_saved": True}


# --- Error handlers ---

async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid request body"}
    )


def create_app(database: Optional[Database] = None,
               dispatcher: Optional[NotificationDispatcher] = None) -> FastAPI:
    """
    Build the API. The database and notification dispatcher can be injected;
    otherwise they are created from config when the app starts. An injected
    database is left open on shutdown for its owner to dispose.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_database = app.state.database is None
        if owns_database:
            app.state.database = Database(config.DATABASE_URL)
        app.state.database.create_tables()
        logger.info("Application starting up...")
        yield
        logger.info("Application shutting down...")
        if owns_database:
            app.state.database.dispose()
            app.state.database = None

    app = FastAPI(
        title="Appointment Booking API",
        description="API for booking appointment slots, contact messages and newsletter signups.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.dispatcher = dispatcher if dispatcher is not None else build_default_dispatcher()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(router)
    return app


app = create_app()
