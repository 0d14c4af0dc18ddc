"""Domain exceptions and their HTTP presentation."""

from sqlalchemy.exc import OperationalError

from smarttutor.core.exceptions import (
    BookingConflictException,
    ForbiddenException,
    InvalidDurationException,
    InvalidSlotException,
    InvalidStateException,
    InvalidTransitionException,
    NotFoundException,
    PersistenceException,
    ValidationException,
    is_db_timeout,
)


def test_status_codes_and_codes():
    cases = [
        (ValidationException("bad"), 400, "VALIDATION_ERROR"),
        (InvalidSlotException("bad slot"), 400, "INVALID_SLOT"),
        (InvalidDurationException("too long"), 400, "INVALID_DURATION"),
        (NotFoundException("missing"), 404, "NOT_FOUND"),
        (BookingConflictException(), 409, "SLOT_ALREADY_BOOKED"),
        (InvalidTransitionException("completed", "pending"), 409, "INVALID_TRANSITION"),
        (InvalidStateException("nope"), 409, "INVALID_STATE"),
        (ForbiddenException("no"), 403, "FORBIDDEN"),
        (PersistenceException("down"), 503, "PERSISTENCE_ERROR"),
    ]
    for exc, status_code, code in cases:
        http_exc = exc.to_http_exception()
        assert http_exc.status_code == status_code
        assert http_exc.detail["code"] == code
        assert http_exc.detail["message"] == exc.message


def test_slot_errors_are_validation_errors():
    assert isinstance(InvalidSlotException("x"), ValidationException)
    assert isinstance(InvalidDurationException("x"), ValidationException)


def test_booking_conflict_default_message():
    exc = BookingConflictException(details={"tutor_id": "T1"})
    assert exc.message == "slot already booked"
    assert exc.details == {"tutor_id": "T1"}


def test_invalid_transition_reports_both_statuses():
    exc = InvalidTransitionException("cancelled", "confirmed")
    assert exc.details == {"current_status": "cancelled", "requested_status": "confirmed"}


def test_persistence_error_is_retryable():
    http_exc = PersistenceException("down").to_http_exception()
    assert http_exc.headers == {"Retry-After": "2"}


def test_is_db_timeout_detection():
    assert is_db_timeout(OperationalError("INSERT", {}, Exception("database is locked")))
    assert is_db_timeout(Exception("QueuePool limit of size 5 overflow 5 reached"))
    assert is_db_timeout(Exception("canceling statement due to statement timeout"))
    assert not is_db_timeout(Exception("no such table: bookings"))
