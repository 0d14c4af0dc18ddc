"""Slot identity and session end-time arithmetic shared by the booking services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
import re
from typing import Union

from smarttutor.core.constants import DATE_FORMAT, TIME_FORMAT
from smarttutor.core.exceptions import InvalidDurationException, InvalidSlotException

_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[date, str]
TimeLike = Union[time, str]


def parse_start_time(value: TimeLike) -> time:
    """Parse a 24-hour ``HH:MM`` start time."""
    if isinstance(value, time):
        if value.second or value.microsecond:
            raise InvalidSlotException(
                "Start time must be on a whole minute",
                details={"field": "start_time", "value": value.isoformat()},
            )
        return value.replace(tzinfo=None)

    if not isinstance(value, str):
        raise InvalidSlotException(
            "Start time must be an HH:MM string",
            details={"field": "start_time", "value": repr(value)},
        )

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidSlotException(
            f"Invalid start time '{value}': expected 24-hour HH:MM",
            details={"field": "start_time", "value": value},
        )
    return time(int(match.group(1)), int(match.group(2)))


def parse_booking_date(value: DateLike) -> date:
    """Parse a calendar date given as a ``date`` or ``YYYY-MM-DD`` string."""
    # datetime is a date subclass; a time component is not a calendar date
    if isinstance(value, datetime):
        raise InvalidSlotException(
            "Booking date must not carry a time component",
            details={"field": "booking_date", "value": value.isoformat()},
        )
    if isinstance(value, date):
        return value

    if not isinstance(value, str) or not _DATE_PATTERN.match(value.strip()):
        raise InvalidSlotException(
            f"Invalid booking date '{value}': expected YYYY-MM-DD",
            details={"field": "booking_date", "value": str(value)},
        )
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidSlotException(
            f"Invalid booking date '{value}': {exc}",
            details={"field": "booking_date", "value": value},
        ) from exc


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


@dataclass(frozen=True, order=True)
class SlotKey:
    """
    Canonical identity of a (tutor, date, start time) triple.

    Two requests target the same slot exactly when their keys compare equal.
    ``str(key)`` is the stable textual form used for lock names and logs.
    """

    tutor_id: str
    booking_date: date
    start_time: time

    @classmethod
    def build(cls, tutor_id: str, booking_date: DateLike, start_time: TimeLike) -> "SlotKey":
        if not tutor_id or not str(tutor_id).strip():
            raise InvalidSlotException(
                "Tutor is required to identify a slot", details={"field": "tutor_id"}
            )
        return cls(
            tutor_id=str(tutor_id).strip(),
            booking_date=parse_booking_date(booking_date),
            start_time=parse_start_time(start_time),
        )

    def __str__(self) -> str:
        return f"{self.tutor_id}:{self.booking_date.isoformat()}:{format_time(self.start_time)}"


def compute_end_time(booking_date: date, start_time: time, duration_minutes: int) -> time:
    """
    Return ``start_time + duration_minutes``.

    Sessions must finish on the day they start. Ending exactly at midnight is
    allowed and yields ``00:00``.
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise InvalidDurationException(
            "Duration must be a positive number of minutes",
            details={"duration_minutes": duration_minutes},
        )

    start_dt = datetime.combine(booking_date, start_time)
    end_dt = start_dt + timedelta(minutes=duration_minutes)
    end_time = end_dt.time()

    if end_dt.date() == booking_date:
        return end_time

    midnight = time(0, 0)
    if end_dt.date() == booking_date + timedelta(days=1) and end_time == midnight:
        return end_time

    raise InvalidDurationException(
        "Bookings must start and end on the same calendar day",
        details={
            "start_time": format_time(start_time),
            "duration_minutes": duration_minutes,
        },
    )
