"""Booking repository queries and conditional writes against SQLite."""

from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from smarttutor.core.exceptions import (
    BookingConflictException,
    InvalidTransitionException,
    NotFoundException,
)
from smarttutor.domain.slot_key import SlotKey
from smarttutor.models.booking import BookingStatus, PaymentStatus
from smarttutor.repositories import RepositoryFactory
from smarttutor.services.availability_checker import AvailabilityChecker

DAY = date(2030, 5, 6)


@pytest.fixture
def repository(db):
    return RepositoryFactory.create_booking_repository(db)


@pytest.fixture
def insert_booking(db, repository, student, tutor, service):
    def _insert(start=time(10, 0), status=BookingStatus.PENDING.value, **overrides):
        fields = dict(
            service_id=service.id,
            student_id=student.id,
            tutor_id=tutor.id,
            booking_date=DAY,
            start_time=start,
            end_time=time(start.hour + 1, start.minute),
            duration_minutes=60,
            status=status,
            payment_status=PaymentStatus.PENDING.value,
            amount=Decimal("50.00"),
        )
        fields.update(overrides)
        booking = repository.create(**fields)
        db.commit()
        return booking

    return _insert


class TestFindBySlot:
    def test_finds_active_booking(self, repository, insert_booking, tutor):
        booking = insert_booking()
        assert repository.find_by_slot(tutor.id, DAY, time(10, 0)).id == booking.id

    def test_cancelled_booking_frees_slot(self, repository, insert_booking, tutor):
        insert_booking(status=BookingStatus.CANCELLED.value)
        assert repository.find_by_slot(tutor.id, DAY, time(10, 0)) is None
        assert repository.find_by_slot(tutor.id, DAY, time(10, 0), exclude_statuses=()) is not None

    @pytest.mark.parametrize(
        "status",
        [BookingStatus.PENDING, BookingStatus.UPCOMING, BookingStatus.CONFIRMED, BookingStatus.COMPLETED],
    )
    def test_every_non_cancelled_status_occupies_slot(self, db, insert_booking, tutor, status):
        insert_booking(status=status.value)
        checker = AvailabilityChecker(db)
        slot = SlotKey.build(tutor.id, DAY, "10:00")

        assert checker.is_available(slot) is False
        with pytest.raises(BookingConflictException):
            checker.ensure_available(slot)


class TestActiveSlotIndex:
    def test_second_active_booking_violates_index(self, db, insert_booking):
        insert_booking()
        with pytest.raises(IntegrityError):
            insert_booking()

    def test_cancelled_rows_do_not_count(self, insert_booking):
        insert_booking(status=BookingStatus.CANCELLED.value)
        insert_booking(status=BookingStatus.CANCELLED.value)
        insert_booking()


class TestWrites:
    def test_update_status_missing_booking(self, repository):
        with pytest.raises(NotFoundException):
            repository.update_status("01HF4G12ABCDEF3456789XYZAB", BookingStatus.CONFIRMED.value)

    def test_update_status_requires_expected_status(self, db, repository, insert_booking):
        booking = insert_booking(status=BookingStatus.CANCELLED.value)

        with pytest.raises(InvalidTransitionException) as exc_info:
            repository.update_status(
                booking.id,
                BookingStatus.CONFIRMED.value,
                expected_status=BookingStatus.PENDING.value,
            )
        db.rollback()

        assert exc_info.value.details["current_status"] == BookingStatus.CANCELLED.value
        repository.refresh(booking)
        assert booking.status == BookingStatus.CANCELLED.value

    def test_update_status_returns_fresh_row(self, db, repository, insert_booking):
        booking = insert_booking()
        updated = repository.update_status(
            booking.id,
            BookingStatus.CONFIRMED.value,
            expected_status=BookingStatus.PENDING.value,
            confirmed_at=datetime(2030, 5, 1, 9, 0, tzinfo=timezone.utc),
        )
        assert updated is booking
        assert booking.status == BookingStatus.CONFIRMED.value
        assert booking.confirmed_at is not None

    def test_record_feedback_only_once_and_only_when_completed(self, db, repository, insert_booking):
        pending = insert_booking(start=time(9, 0))
        completed = insert_booking(start=time(11, 0), status=BookingStatus.COMPLETED.value)

        assert repository.record_feedback(pending.id, 5, None) is False
        assert repository.record_feedback(completed.id, 4, "Clear explanations") is True
        assert repository.record_feedback(completed.id, 1, "Overwrite attempt") is False
        db.commit()

        repository.refresh(completed)
        assert completed.feedback_rating == 4
        assert completed.feedback_review == "Clear explanations"


class TestListings:
    def test_completed_paid_for_tutor(self, repository, insert_booking, tutor):
        insert_booking(start=time(9, 0), status=BookingStatus.COMPLETED.value,
                       payment_status=PaymentStatus.COMPLETED.value)
        insert_booking(start=time(11, 0), status=BookingStatus.COMPLETED.value)
        insert_booking(start=time(13, 0), status=BookingStatus.CONFIRMED.value)

        earning = repository.completed_paid_for_tutor(tutor.id)
        assert [b.start_time for b in earning] == [time(9, 0)]

    def test_find_by_tutor_filters_statuses(self, repository, insert_booking, tutor):
        insert_booking(start=time(9, 0), status=BookingStatus.COMPLETED.value)
        insert_booking(start=time(11, 0))

        assert len(repository.find_by_tutor(tutor.id)) == 2
        completed = repository.find_by_tutor(tutor.id, statuses=[BookingStatus.COMPLETED.value])
        assert [b.start_time for b in completed] == [time(9, 0)]

    def test_find_feedback_ratings_skips_unrated_bookings(self, db, repository, insert_booking, tutor):
        insert_booking(start=time(9, 0), status=BookingStatus.COMPLETED.value, feedback_rating=5)
        insert_booking(start=time(11, 0), status=BookingStatus.COMPLETED.value, feedback_rating=3)
        insert_booking(start=time(13, 0), status=BookingStatus.COMPLETED.value)
        insert_booking(start=time(15, 0))

        assert sorted(repository.find_feedback_ratings(tutor.id)) == [3, 5]
