# backend/smarttutor/models/booking.py
"""
Booking model for SmartTutor.

A booking reserves one tutor slot (date + start time) for a student on a
catalog service. Price and duration are snapshotted from the service at
creation and never recomputed. Cancellation is a status, rows are never
deleted.

Invariant: at most one non-cancelled booking per (tutor, date, start time),
enforced by the partial unique index ``uq_bookings_active_slot``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

ACTIVE_SLOT_INDEX = "uq_bookings_active_slot"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    UPCOMING = "upcoming"  # Alias entry state, behaves like PENDING
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class Booking(Base):
    """
    Reservation of a tutor slot by a student.

    Status and payment status move together through the lifecycle service;
    feedback columns stay empty until the booking is completed.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    service_id = Column(String(26), ForeignKey("services.id"), nullable=False)
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    tutor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)

    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    amount = Column(Numeric(10, 2), nullable=False)

    notes = Column(Text, nullable=True)
    meeting_link = Column(String(500), nullable=True)

    # Feedback (single submission, completed bookings only)
    feedback_rating = Column(Integer, nullable=True)
    feedback_review = Column(Text, nullable=True)
    feedback_submitted_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)

    service = relationship("Service", lazy="joined")
    student = relationship("User", foreign_keys=[student_id], lazy="joined")
    tutor = relationship("User", foreign_keys=[tutor_id], lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'upcoming', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'completed', 'refunded')",
            name="ck_bookings_payment_status",
        ),
        CheckConstraint("amount >= 0", name="ck_bookings_amount_non_negative"),
        CheckConstraint("duration_minutes > 0", name="ck_bookings_duration_positive"),
        CheckConstraint(
            "feedback_rating IS NULL OR (feedback_rating >= 1 AND feedback_rating <= 5)",
            name="ck_bookings_feedback_rating_range",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: student={self.student_id}, "
            f"tutor={self.tutor_id}, date={self.booking_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def has_feedback(self) -> bool:
        return self.feedback_rating is not None

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.student_id, self.tutor_id)

    @staticmethod
    def transition_values(
        new_status: str, cancelled_by_user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Columns written together with ``status`` when a booking moves to ``new_status``.

        Completing a booking settles its payment in the same write.
        """
        now = datetime.now(timezone.utc)
        if new_status == BookingStatus.CONFIRMED.value:
            return {"confirmed_at": now}
        if new_status == BookingStatus.CANCELLED.value:
            return {"cancelled_at": now, "cancelled_by_id": cancelled_by_user_id}
        if new_status == BookingStatus.COMPLETED.value:
            return {"completed_at": now, "payment_status": PaymentStatus.COMPLETED.value}
        return {}


Index(
    ACTIVE_SLOT_INDEX,
    Booking.tutor_id,
    Booking.booking_date,
    Booking.start_time,
    unique=True,
    postgresql_where=text("status <> 'cancelled'"),
    sqlite_where=text("status <> 'cancelled'"),
)

Index(
    "ix_bookings_tutor_completed",
    Booking.tutor_id,
    Booking.status,
    Booking.payment_status,
    postgresql_where=text("status = 'completed'"),
)
