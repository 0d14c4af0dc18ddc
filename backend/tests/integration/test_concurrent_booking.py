"""
Concurrent booking of one slot against a real file-backed database.

Each thread gets its own engine connection and session, the way separate
API workers would. The Redis lock is disabled here, so the partial unique
index alone must let exactly one request win.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, time
from decimal import Decimal
import threading

import pytest

from smarttutor.core.enums import RoleName
from smarttutor.core.exceptions import BookingConflictException
from smarttutor.models.booking import Booking, BookingStatus
from smarttutor.models.service import Service, ServiceCategory
from smarttutor.models.user import User
from smarttutor.services.booking_service import BookingService
from tests.helpers import actor_for, booking_request

pytestmark = pytest.mark.integration

DAY = date(2025, 3, 1)
WORKERS = 6


@pytest.fixture
def seeded(file_sessionmaker):
    session = file_sessionmaker()
    try:
        tutor = User(name="Prof. Michael Chen", email="michael.chen@example.com", role=RoleName.TUTOR.value)
        students = [
            User(name=f"Student {i}", email=f"student{i}@example.com", role=RoleName.STUDENT.value)
            for i in range(WORKERS)
        ]
        service = Service(
            title="Group Study Session",
            description="Learn collaboratively with other students",
            category=ServiceCategory.STUDY_GROUPS.value,
            price=Decimal("30.00"),
            duration_minutes=90,
        )
        session.add_all([tutor, service, *students])
        session.commit()
        return tutor, service, students
    finally:
        session.close()


def test_exactly_one_of_many_concurrent_requests_wins(file_sessionmaker, seeded):
    tutor, service, students = seeded
    barrier = threading.Barrier(WORKERS)

    def attempt(student):
        session = file_sessionmaker()
        try:
            booking_service = BookingService(session)
            request = booking_request(service, tutor, DAY, "14:00")
            barrier.wait()
            try:
                return booking_service.create_booking(actor_for(student), request).id
            except BookingConflictException:
                return None
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(attempt, students))

    winners = [r for r in results if r is not None]
    assert len(winners) == 1
    assert results.count(None) == WORKERS - 1

    session = file_sessionmaker()
    try:
        active = (
            session.query(Booking)
            .filter(
                Booking.tutor_id == tutor.id,
                Booking.booking_date == DAY,
                Booking.start_time == time(14, 0),
                Booking.status != BookingStatus.CANCELLED.value,
            )
            .all()
        )
        assert [b.id for b in active] == winners
        assert active[0].end_time == time(15, 30)
    finally:
        session.close()
