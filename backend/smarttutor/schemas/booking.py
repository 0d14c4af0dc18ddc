# backend/smarttutor/schemas/booking.py
"""
Booking schemas for SmartTutor.

Request fields are deliberately permissive (all optional strings) so that
the booking workflow, not the HTTP layer, reports every missing or malformed
field in one ValidationException.
"""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import Field, field_serializer

from ..core.constants import MAX_NOTES_LENGTH, MAX_REVIEW_LENGTH
from .base import Money, StandardizedModel, StrictRequestModel


class BookingCreate(StrictRequestModel):
    """Student request to reserve a tutor slot for a catalog service."""

    service_id: Optional[str] = Field(None, description="Catalog service to book")
    tutor_id: Optional[str] = Field(None, description="Tutor delivering the session")
    booking_date: Optional[str] = Field(None, description="Calendar date, YYYY-MM-DD")
    start_time: Optional[str] = Field(None, description="24-hour start time, HH:MM")
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)
    meeting_link: Optional[str] = Field(None, max_length=500)
    # Accepted for compatibility with older clients; bookings always start pending
    status: Optional[str] = Field(None, description="Ignored")


class BookingStatusUpdate(StrictRequestModel):
    status: str = Field(..., description="Target status")


class FeedbackCreate(StrictRequestModel):
    rating: int = Field(..., description="Whole-star rating from 1 to 5")
    review: Optional[str] = Field(None, max_length=MAX_REVIEW_LENGTH)


class UserSummary(StandardizedModel):
    id: str
    name: str
    email: str


class ServiceSummary(StandardizedModel):
    id: str
    title: str
    price: Money
    duration_minutes: int


class FeedbackResponse(StandardizedModel):
    rating: int
    review: Optional[str] = None
    submitted_at: Optional[datetime] = None


class BookingResponse(StandardizedModel):
    """Booking with its service, student and tutor summaries."""

    id: str
    service_id: str
    student_id: str
    tutor_id: str

    booking_date: date
    start_time: time
    end_time: time
    duration_minutes: int

    status: str
    payment_status: str
    amount: Money

    notes: Optional[str] = None
    meeting_link: Optional[str] = None
    feedback: Optional[FeedbackResponse] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    service: ServiceSummary
    student: UserSummary
    tutor: UserSummary

    @field_serializer("start_time", "end_time")
    def _serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")

    @classmethod
    def from_booking(cls, booking) -> "BookingResponse":
        response = cls.model_validate(booking)
        if booking.feedback_rating is not None:
            response.feedback = FeedbackResponse(
                rating=booking.feedback_rating,
                review=booking.feedback_review,
                submitted_at=booking.feedback_submitted_at,
            )
        return response


class BookingListResponse(StandardizedModel):
    bookings: List[BookingResponse]
    total: int


class MonthlyEarnings(StandardizedModel):
    month: str  # YYYY-MM
    amount: Money


class EarningsResponse(StandardizedModel):
    tutor_id: str
    total: Money
    monthly: List[MonthlyEarnings]
