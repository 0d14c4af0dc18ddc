# backend/smarttutor/services/booking_service.py
"""
Booking Service for SmartTutor

Creates bookings and answers booking queries.

Creation runs validate -> resolve service and tutor -> slot key and end
time -> availability check -> insert. The check and insert run under the
per-slot Redis lock and inside one transaction; if anything slips past the
lock, the partial unique index rejects the second insert and the caller
still gets a BookingConflictException.
"""

from collections import defaultdict
from datetime import time
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.booking_lock import slot_lock
from ..core.enums import RoleName
from ..core.exceptions import (
    BookingConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..domain.slot_key import SlotKey, compute_end_time, format_time
from ..events.booking_events import BookingCreated
from ..models.booking import ACTIVE_SLOT_INDEX, Booking, BookingStatus, PaymentStatus
from ..models.service import Service
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Actor
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..schemas.booking import BookingCreate
from .availability_checker import AvailabilityChecker
from .base import BaseService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

REQUIRED_BOOKING_FIELDS = ("service_id", "tutor_id", "booking_date", "start_time")

# SQLite reports unique index violations by column list rather than index name
_SQLITE_SLOT_VIOLATION = "bookings.tutor_id, bookings.booking_date, bookings.start_time"


def is_slot_violation(exc: IntegrityError) -> bool:
    """True when the integrity error came from the active-slot unique index."""
    orig = getattr(exc, "orig", None)
    diag = getattr(orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None) == ACTIVE_SLOT_INDEX:
        return True
    text = str(orig or exc)
    return ACTIVE_SLOT_INDEX in text or _SQLITE_SLOT_VIOLATION in text


class BookingService(BaseService):
    """
    Booking workflow and booking queries.

    Post-commit side effects (notifications) are best effort and never
    affect the outcome returned to the caller.
    """

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        repository: Optional[BookingRepository] = None,
        availability_checker: Optional[AvailabilityChecker] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.service_repository = RepositoryFactory.create_service_catalog_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.availability_checker = availability_checker or AvailabilityChecker(db, self.repository)
        self.notification_service = notification_service

    @BaseService.measure_operation("create_booking")
    def create_booking(self, actor: Actor, booking_data: BookingCreate) -> Booking:
        """
        Reserve a tutor slot for the acting student.

        Raises:
            ForbiddenException: Actor is not a student
            ValidationException: Missing fields
            InvalidSlotException: Malformed date or start time
            InvalidDurationException: Session would run past midnight
            NotFoundException: Service or tutor not found
            BookingConflictException: Slot already held by an active booking
            PersistenceException: Store unavailable or timed out
        """
        if actor.role != RoleName.STUDENT:
            raise ForbiddenException(
                "Only students can book sessions", details={"role": actor.role.value}
            )

        self._validate_required_fields(booking_data)

        if booking_data.status and booking_data.status != BookingStatus.PENDING.value:
            self.logger.warning(
                f"Ignoring caller-supplied initial status '{booking_data.status}'; bookings start pending",
                extra={"actor_id": actor.user_id},
            )

        service, tutor = self._resolve_references(booking_data)

        slot = SlotKey.build(tutor.id, booking_data.booking_date, booking_data.start_time)
        end_time = compute_end_time(slot.booking_date, slot.start_time, service.duration_minutes)

        with slot_lock(str(slot)) as acquired:
            if not acquired:
                prometheus_metrics.inc_booking_conflict("lock_busy")
                raise BookingConflictException(details=self._conflict_details(slot))

            self.availability_checker.ensure_available(slot)

            with self.transaction():
                booking = self._insert_booking(actor, booking_data, service, slot, end_time)
            booking_id = booking.id

        self.log_operation(
            "booking_created",
            booking_id=booking_id,
            slot_key=str(slot),
            student_id=actor.user_id,
        )

        created = self.get_booking(booking_id)
        self._handle_post_booking_tasks(created)
        return created

    def _validate_required_fields(self, booking_data: BookingCreate) -> None:
        missing = [
            field
            for field in REQUIRED_BOOKING_FIELDS
            if not (getattr(booking_data, field, None) or "").strip()
        ]
        if missing:
            raise ValidationException(
                f"Missing required fields: {', '.join(missing)}",
                details={"missing_fields": missing},
            )

    def _resolve_references(self, booking_data: BookingCreate) -> tuple[Service, User]:
        with self.persistence_guard("resolve_references"):
            service = self.service_repository.get_active(booking_data.service_id)
            if service is None:
                raise NotFoundException(
                    "Service not found", details={"service_id": booking_data.service_id}
                )

            tutor = self.user_repository.get_tutor(booking_data.tutor_id)
            if tutor is None:
                raise NotFoundException(
                    "Tutor not found", details={"tutor_id": booking_data.tutor_id}
                )
        return service, tutor

    def _insert_booking(
        self,
        actor: Actor,
        booking_data: BookingCreate,
        service: Service,
        slot: SlotKey,
        end_time: time,
    ) -> Booking:
        try:
            with self.persistence_guard("create_booking"):
                return self.repository.create(
                    service_id=service.id,
                    student_id=actor.user_id,
                    tutor_id=slot.tutor_id,
                    booking_date=slot.booking_date,
                    start_time=slot.start_time,
                    end_time=end_time,
                    duration_minutes=service.duration_minutes,
                    status=BookingStatus.PENDING.value,
                    payment_status=PaymentStatus.PENDING.value,
                    amount=service.price,
                    notes=booking_data.notes,
                    meeting_link=booking_data.meeting_link,
                )
        except IntegrityError as exc:
            if not is_slot_violation(exc):
                self.logger.error(f"Booking insert violated a data constraint: {exc}")
                raise ValidationException(
                    "Booking violates a data constraint",
                    code="CONSTRAINT_VIOLATION",
                ) from exc
            prometheus_metrics.inc_booking_conflict("unique_index")
            self.logger.warning(f"Unique index rejected concurrent booking for slot {slot}")
            raise BookingConflictException(details=self._conflict_details(slot)) from exc

    @staticmethod
    def _conflict_details(slot: SlotKey) -> Dict[str, Any]:
        return {
            "tutor_id": slot.tutor_id,
            "booking_date": slot.booking_date.isoformat(),
            "start_time": format_time(slot.start_time),
        }

    def _handle_post_booking_tasks(self, booking: Booking) -> None:
        if self.notification_service is None:
            return
        try:
            self.notification_service.notify_booking_created(
                BookingCreated.from_booking(booking, created_at=booking.created_at)
            )
        except Exception as e:
            self.logger.error(f"Error queueing booking notification for {booking.id}: {str(e)}")

    # Queries

    def get_booking(self, booking_id: str) -> Booking:
        with self.persistence_guard("get_booking"):
            booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        return booking

    @BaseService.measure_operation("get_booking_for_user")
    def get_booking_for_user(self, actor: Actor, booking_id: str) -> Booking:
        booking = self.get_booking(booking_id)
        if not actor.is_admin and not booking.is_participant(actor.user_id):
            raise ForbiddenException("You do not have access to this booking")
        return booking

    @BaseService.measure_operation("list_bookings")
    def list_bookings(self, actor: Actor, skip: int = 0, limit: int = 100) -> List[Booking]:
        if not actor.is_admin:
            raise ForbiddenException("Only administrators can list all bookings")
        with self.persistence_guard("list_bookings"):
            return self.repository.list_all(skip=skip, limit=limit)

    @BaseService.measure_operation("list_my_bookings")
    def list_my_bookings(self, actor: Actor, skip: int = 0, limit: int = 100) -> List[Booking]:
        with self.persistence_guard("list_my_bookings"):
            return self.repository.list_for_user(actor.user_id, skip=skip, limit=limit)

    @BaseService.measure_operation("get_tutor_earnings")
    def get_tutor_earnings(self, actor: Actor, tutor_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Sum of amounts over the tutor's completed and paid bookings.

        Tutors see their own earnings; admins may pass any tutor_id.

        Returns:
            {"tutor_id", "total", "monthly": [{"month": "YYYY-MM", "amount"}]} newest month first
        """
        if actor.is_tutor:
            if tutor_id and tutor_id != actor.user_id:
                raise ForbiddenException("Tutors can only view their own earnings")
            tutor_id = actor.user_id
        elif actor.is_admin:
            if not tutor_id:
                raise ValidationException(
                    "tutor_id is required", details={"missing_fields": ["tutor_id"]}
                )
        else:
            raise ForbiddenException("Only tutors can view earnings")

        with self.persistence_guard("get_tutor_earnings"):
            bookings = self.repository.completed_paid_for_tutor(tutor_id)

        monthly: Dict[str, Decimal] = defaultdict(Decimal)
        for booking in bookings:
            monthly[booking.booking_date.strftime("%Y-%m")] += Decimal(booking.amount)

        return {
            "tutor_id": tutor_id,
            "total": sum(monthly.values(), Decimal("0")),
            "monthly": [
                {"month": month, "amount": amount}
                for month, amount in sorted(monthly.items(), reverse=True)
            ],
        }
