# backend/smarttutor/repositories/booking_repository.py
"""
Booking Repository for SmartTutor

The reservation store: slot lookups for conflict detection, status writes
for the lifecycle, and the listing/aggregation queries behind the booking
endpoints.
"""

from datetime import date, datetime, time, timezone
import logging
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import desc, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import (
    InvalidTransitionException,
    NotFoundException,
    RepositoryException,
)
from ..models.booking import Booking, BookingStatus, PaymentStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def create(self, **kwargs: Any) -> Booking:
        """Create a booking, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    # Slot queries

    def find_by_slot(
        self,
        tutor_id: str,
        booking_date: date,
        start_time: time,
        exclude_statuses: Iterable[str] = (BookingStatus.CANCELLED.value,),
    ) -> Optional[Booking]:
        """
        Return the booking holding (tutor, date, start_time), ignoring the given statuses.

        With the default exclusion this is the single active booking for the slot, if any.
        """
        query = self._build_query().filter(
            Booking.tutor_id == tutor_id,
            Booking.booking_date == booking_date,
            Booking.start_time == start_time,
        )
        excluded = list(exclude_statuses)
        if excluded:
            query = query.filter(Booking.status.notin_(excluded))
        return self._execute_first(query)

    # Lifecycle writes

    def update_status(
        self,
        booking_id: str,
        new_status: str,
        expected_status: Optional[str] = None,
        **fields: Any,
    ) -> Booking:
        """
        Set ``status`` (plus any accompanying columns) on one booking.

        With ``expected_status`` the write is a single conditional UPDATE that
        only matches while the row still has that status, so two concurrent
        transitions from the same status cannot both land.

        Raises:
            NotFoundException: If the booking does not exist
            InvalidTransitionException: If the row has left ``expected_status``
        """
        statement = update(Booking).where(Booking.id == booking_id)
        if expected_status is not None:
            statement = statement.where(Booking.status == expected_status)
        try:
            result = self.db.execute(
                statement.values(status=new_status, **fields).execution_options(
                    synchronize_session=False
                )
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating status of booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking status: {str(e)}") from e

        booking = self._reload(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        if result.rowcount != 1:
            raise InvalidTransitionException(booking.status, new_status)
        return booking

    def _reload(self, booking_id: str) -> Optional[Booking]:
        """Fetch the row, overwriting any stale copy in the identity map."""
        return self._execute_first(
            self._build_query().populate_existing().filter(Booking.id == booking_id)
        )

    # Listings

    def find_by_tutor(
        self, tutor_id: str, statuses: Optional[Sequence[str]] = None
    ) -> List[Booking]:
        query = self._build_query().filter(Booking.tutor_id == tutor_id)
        if statuses:
            query = query.filter(Booking.status.in_(list(statuses)))
        return self._execute_query(
            query.order_by(desc(Booking.booking_date), desc(Booking.start_time))
        )

    def list_for_user(self, user_id: str, skip: int = 0, limit: int = 100) -> List[Booking]:
        """Bookings where the user is the student or the tutor, newest date first."""
        query = (
            self._build_query()
            .filter((Booking.student_id == user_id) | (Booking.tutor_id == user_id))
            .order_by(desc(Booking.booking_date), desc(Booking.start_time))
            .offset(skip)
            .limit(limit)
        )
        return self._execute_query(query)

    def list_all(self, skip: int = 0, limit: int = 100) -> List[Booking]:
        query = (
            self._build_query()
            .order_by(desc(Booking.created_at), desc(Booking.id))
            .offset(skip)
            .limit(limit)
        )
        return self._execute_query(query)

    def completed_paid_for_tutor(self, tutor_id: str) -> List[Booking]:
        """Bookings that count towards tutor earnings."""
        query = self._build_query().filter(
            Booking.tutor_id == tutor_id,
            Booking.status == BookingStatus.COMPLETED.value,
            Booking.payment_status == PaymentStatus.COMPLETED.value,
        )
        return self._execute_query(query.order_by(desc(Booking.booking_date)))

    def record_feedback(self, booking_id: str, rating: int, review: Optional[str]) -> bool:
        """
        Attach feedback if the booking is completed and has none yet.

        Single conditional UPDATE, so two concurrent submissions cannot both
        succeed. Returns False when no row qualified.
        """
        try:
            result = self.db.execute(
                update(Booking)
                .where(
                    Booking.id == booking_id,
                    Booking.status == BookingStatus.COMPLETED.value,
                    Booking.feedback_rating.is_(None),
                )
                .values(
                    feedback_rating=rating,
                    feedback_review=review,
                    feedback_submitted_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording feedback for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to record feedback: {str(e)}") from e

    def find_feedback_ratings(self, tutor_id: str) -> List[int]:
        """Every feedback rating left on the tutor's completed bookings."""
        try:
            rows = (
                self.db.query(Booking.feedback_rating)
                .filter(
                    Booking.tutor_id == tutor_id,
                    Booking.status == BookingStatus.COMPLETED.value,
                    Booking.feedback_rating.isnot(None),
                )
                .all()
            )
            return [rating for (rating,) in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading feedback ratings for tutor {tutor_id}: {str(e)}")
            raise RepositoryException(f"Failed to load feedback ratings: {str(e)}") from e
