# booking-backend/schemas.py

import datetime as dt
from typing import List, Optional, Union

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes field names as camelCase, accepts both spellings on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# --- Requests ---
# Every field is optional so that missing values are reported as
# "Missing required fields" by the service layer, not as a 422.

class AppointmentCreate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    type: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    topic: Optional[str] = None
    description: Optional[str] = None


class AppointmentStatusUpdate(CamelModel):
    appointment_id: Optional[str] = None
    status: Optional[str] = None


class ContactMessageCreate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class NewsletterSubscribe(CamelModel):
    email: Optional[str] = None
    name: Optional[str] = None


# --- Responses ---

class CustomerInfo(CamelModel):
    name: str
    email: str
    phone: Optional[str] = None


class AppointmentResponse(CamelModel):
    id: str
    type: str
    date: dt.date
    time: str
    topic: str
    description: Optional[str] = None
    status: str
    created_at: dt.datetime
    updated_at: dt.datetime
    customer: CustomerInfo


class BookedTimes(CamelModel):
    booked_times: List[str]


class BookingConfirmation(CamelModel):
    appointment_id: str
    date: dt.date
    time: str
    type: str


class ContactMessageResponse(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    status: str
    is_read: bool
    created_at: dt.datetime


class CreatedId(CamelModel):
    id: str


class ApiResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None


class BookedTimesResponse(ApiResponse):
    data: BookedTimes


class AppointmentListResponse(ApiResponse):
    data: List[AppointmentResponse]


class LegacyAppointmentResponse(AppointmentResponse):
    """List-all row as older clients read it: contact details also under user/userId."""

    user_id: str
    user: CustomerInfo


class AppointmentsQueryResponse(ApiResponse):
    data: Union[BookedTimes, List[LegacyAppointmentResponse]]


class BookingCreatedResponse(ApiResponse):
    data: BookingConfirmation


class AppointmentUpdatedResponse(ApiResponse):
    data: AppointmentResponse


class MessageCreatedResponse(ApiResponse):
    data: CreatedId


class MessageListResponse(ApiResponse):
    data: List[ContactMessageResponse]


class ErrorResponse(BaseModel):
    error: str
