# backend/smarttutor/services/booking_lifecycle_service.py
"""
Booking Lifecycle Service for SmartTutor

Owns every change to an existing booking:

    pending / upcoming -> confirmed | cancelled
    confirmed          -> completed | cancelled
    completed, cancelled are terminal

Completing a booking settles its payment in the same write. Feedback can be
left once, by the student, on a completed booking; it is folded into the
tutor's running rating aggregate with an atomic increment.
"""

import logging
from typing import Dict, FrozenSet, Optional

from sqlalchemy.orm import Session

from ..core.constants import MAX_RATING, MAX_REVIEW_LENGTH, MIN_RATING
from ..core.exceptions import (
    ForbiddenException,
    InvalidStateException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from ..events.booking_events import BookingConfirmed
from ..models.booking import Booking, BookingStatus
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Actor
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..repositories.user_repository import UserRepository
from .base import BaseService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

_ENTRY_TARGETS = frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED})

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: _ENTRY_TARGETS,
    BookingStatus.UPCOMING: _ENTRY_TARGETS,
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def can_transition(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def parse_status(value: str) -> BookingStatus:
    try:
        return BookingStatus((value or "").strip().lower())
    except ValueError as exc:
        raise ValidationException(
            f"Unknown booking status '{value}'",
            details={"status": value, "allowed": [s.value for s in BookingStatus]},
        ) from exc


class BookingLifecycleService(BaseService):
    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        repository: Optional[BookingRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.notification_service = notification_service

    def _load_booking(self, booking_id: str) -> Booking:
        with self.persistence_guard("load_booking"):
            booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    @BaseService.measure_operation("update_status")
    def update_status(self, actor: Actor, booking_id: str, new_status: str) -> Booking:
        """
        Move a booking to ``new_status``.

        Raises:
            NotFoundException: Booking does not exist
            ForbiddenException: Actor is neither participant nor admin
            ValidationException: Unknown status value
            InvalidTransitionException: Transition not allowed from current status
        """
        booking = self._load_booking(booking_id)
        if not actor.is_admin and not booking.is_participant(actor.user_id):
            raise ForbiddenException(
                "Not authorized to change this booking", details={"booking_id": booking_id}
            )

        requested = parse_status(new_status)
        current = BookingStatus(booking.status)
        if not can_transition(current, requested):
            raise InvalidTransitionException(current.value, requested.value)

        with self.transaction():
            with self.persistence_guard("update_status"):
                booking = self.repository.update_status(
                    booking.id,
                    requested.value,
                    expected_status=current.value,
                    **Booking.transition_values(requested.value, actor.user_id),
                )

        prometheus_metrics.inc_booking_transition(current.value, requested.value)
        self.log_operation(
            "booking_status_changed",
            booking_id=booking.id,
            from_status=current.value,
            to_status=requested.value,
            actor_id=actor.user_id,
        )

        if requested == BookingStatus.CONFIRMED:
            self._notify_confirmed(booking)
        return booking

    def _notify_confirmed(self, booking: Booking) -> None:
        if self.notification_service is None:
            return
        try:
            self.notification_service.notify_booking_confirmed(
                BookingConfirmed.from_booking(booking, confirmed_at=booking.confirmed_at)
            )
        except Exception as e:
            self.logger.error(f"Error sending confirmation notification for {booking.id}: {str(e)}")

    @BaseService.measure_operation("submit_feedback")
    def submit_feedback(
        self, actor: Actor, booking_id: str, rating: int, review: Optional[str] = None
    ) -> Booking:
        """
        Attach the student's feedback and fold the rating into the tutor aggregate.

        Raises:
            NotFoundException: Booking does not exist
            ForbiddenException: Actor is not the booking's student
            InvalidStateException: Booking not completed, or feedback already given
            ValidationException: Rating outside 1..5 or review too long
        """
        booking = self._load_booking(booking_id)
        if booking.student_id != actor.user_id:
            raise ForbiddenException("Only the student can provide feedback")

        if booking.status != BookingStatus.COMPLETED.value:
            raise InvalidStateException(
                "Can only provide feedback for completed sessions",
                details={"booking_id": booking.id, "status": booking.status},
            )
        if booking.has_feedback:
            raise InvalidStateException(
                "Feedback has already been submitted for this booking",
                details={"booking_id": booking.id},
            )

        self._validate_feedback(rating, review)

        with self.transaction():
            with self.persistence_guard("submit_feedback"):
                if not self.repository.record_feedback(booking.id, rating, review):
                    raise InvalidStateException(
                        "Feedback has already been submitted for this booking",
                        details={"booking_id": booking.id},
                    )
                tutor = self.user_repository.add_rating(booking.tutor_id, rating)
        self.repository.refresh(booking)

        self.log_operation(
            "feedback_submitted",
            booking_id=booking.id,
            tutor_id=booking.tutor_id,
            rating=rating,
            average_rating=str(tutor.average_rating),
        )
        return booking

    @staticmethod
    def _validate_feedback(rating: int, review: Optional[str]) -> None:
        if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationException(
                f"Rating must be a whole number from {MIN_RATING} to {MAX_RATING}",
                details={"rating": rating},
            )
        if review is not None and len(review) > MAX_REVIEW_LENGTH:
            raise ValidationException(
                f"Review must be at most {MAX_REVIEW_LENGTH} characters",
                details={"review_length": len(review)},
            )

    @BaseService.measure_operation("get_tutor_rating")
    def get_tutor_rating(self, tutor_id: str) -> User:
        with self.persistence_guard("get_tutor_rating"):
            tutor = self.user_repository.get_tutor(tutor_id)
        if tutor is None:
            raise NotFoundException("Tutor not found", details={"tutor_id": tutor_id})
        return tutor

    @BaseService.measure_operation("rebuild_tutor_rating")
    def rebuild_tutor_rating(self, actor: Actor, tutor_id: str) -> User:
        """
        Recompute the tutor's aggregate from every feedback-bearing booking.

        Repair path for an aggregate that drifted; regular submissions use the
        atomic increment in submit_feedback.
        """
        if not actor.is_admin:
            raise ForbiddenException("Only administrators can rebuild ratings")

        self.get_tutor_rating(tutor_id)
        with self.transaction():
            with self.persistence_guard("rebuild_tutor_rating"):
                ratings = self.repository.find_feedback_ratings(tutor_id)
                tutor = self.user_repository.set_rating_aggregate(
                    tutor_id, sum(ratings), len(ratings)
                )

        self.log_operation(
            "tutor_rating_rebuilt", tutor_id=tutor_id, rating_count=len(ratings)
        )
        return tutor
