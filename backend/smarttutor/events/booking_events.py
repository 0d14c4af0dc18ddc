"""Booking domain events."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional

if TYPE_CHECKING:
    from ..models.booking import Booking


@dataclass
class BookingEvent:
    """Fields every booking notification needs to render."""

    event_type: ClassVar[str] = "booking"

    booking_id: str
    student_email: str
    student_name: str
    tutor_name: str
    service_title: str
    booking_date: str  # YYYY-MM-DD
    start_time: str  # HH:MM

    @classmethod
    def from_booking(cls, booking: "Booking", **extra: Any) -> "BookingEvent":
        """Snapshot a loaded booking (student, tutor and service populated)."""
        return cls(
            booking_id=booking.id,
            student_email=booking.student.email,
            student_name=booking.student.name,
            tutor_name=booking.tutor.name,
            service_title=booking.service.title,
            booking_date=booking.booking_date.isoformat(),
            start_time=booking.start_time.strftime("%H:%M"),
            **extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"event_type": self.event_type, **asdict(self)}


@dataclass
class BookingCreated(BookingEvent):
    """Fired after a booking is committed."""

    event_type: ClassVar[str] = "booking_created"

    created_at: Optional[datetime] = None


@dataclass
class BookingConfirmed(BookingEvent):
    """Fired after a booking moves to confirmed."""

    event_type: ClassVar[str] = "booking_confirmed"

    confirmed_at: Optional[datetime] = None
