# backend/smarttutor/services/availability_checker.py
"""
Availability Checker Service for SmartTutor

Decides whether a slot key is free: a slot is taken when any booking for
the same tutor, date and start time is in a status other than cancelled.

The check alone cannot stop two concurrent requests from both seeing a free
slot. BookingService closes that window by running the check and the insert
under the per-slot lock, with the partial unique index as the final word.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import BookingConflictException
from ..domain.slot_key import SlotKey, format_time
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class AvailabilityChecker(BaseService):
    """Service answering "is this tutor slot free?" against the reservation store."""

    def __init__(self, db: Session, repository: Optional[BookingRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("find_conflict")
    def find_conflict(self, slot: SlotKey) -> Optional[Booking]:
        """Return the active booking occupying the slot, if any."""
        with self.persistence_guard("find_conflict"):
            return self.repository.find_by_slot(slot.tutor_id, slot.booking_date, slot.start_time)

    def is_available(self, slot: SlotKey) -> bool:
        return self.find_conflict(slot) is None

    def ensure_available(self, slot: SlotKey) -> None:
        """
        Raise if the slot is taken.

        Raises:
            BookingConflictException: With the conflicting booking's id in details
        """
        conflict = self.find_conflict(slot)
        if conflict is None:
            return

        prometheus_metrics.inc_booking_conflict("availability_check")
        self.logger.warning(
            f"Slot {slot} already held by booking {conflict.id} ({conflict.status})"
        )
        raise BookingConflictException(
            details={
                "tutor_id": slot.tutor_id,
                "booking_date": slot.booking_date.isoformat(),
                "start_time": format_time(slot.start_time),
                "conflicting_booking_id": conflict.id,
            }
        )
