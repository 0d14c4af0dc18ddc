"""Slot key parsing and end-time arithmetic."""

from datetime import date, datetime, time

import pytest

from smarttutor.core.exceptions import InvalidDurationException, InvalidSlotException
from smarttutor.domain.slot_key import (
    SlotKey,
    compute_end_time,
    parse_booking_date,
    parse_start_time,
)

DAY = date(2030, 3, 14)


class TestParseStartTime:
    @pytest.mark.parametrize(
        "raw, expected",
        [("10:00", time(10, 0)), ("9:05", time(9, 5)), ("00:00", time(0, 0)), ("23:59", time(23, 59))],
    )
    def test_accepts_24_hour_times(self, raw, expected):
        assert parse_start_time(raw) == expected

    @pytest.mark.parametrize("raw", ["24:00", "10:60", "10am", "10:00:00", "", "1000"])
    def test_rejects_malformed_times(self, raw):
        with pytest.raises(InvalidSlotException) as exc_info:
            parse_start_time(raw)
        assert exc_info.value.details["field"] == "start_time"
        assert exc_info.value.code == "INVALID_SLOT"

    def test_rejects_time_with_seconds(self):
        with pytest.raises(InvalidSlotException):
            parse_start_time(time(10, 0, 30))


class TestParseBookingDate:
    def test_accepts_iso_string_and_date(self):
        assert parse_booking_date("2030-03-14") == DAY
        assert parse_booking_date(DAY) == DAY

    @pytest.mark.parametrize("raw", ["2030-02-30", "14/03/2030", "2030-3-14", "tomorrow"])
    def test_rejects_invalid_dates(self, raw):
        with pytest.raises(InvalidSlotException):
            parse_booking_date(raw)

    def test_rejects_datetime(self):
        with pytest.raises(InvalidSlotException):
            parse_booking_date(datetime(2030, 3, 14, 10, 0))


class TestSlotKey:
    def test_equal_inputs_give_equal_keys(self):
        a = SlotKey.build("TUTOR1", "2030-03-14", "09:05")
        b = SlotKey.build("TUTOR1", DAY, time(9, 5))
        assert a == b
        assert hash(a) == hash(b)
        assert str(a) == "TUTOR1:2030-03-14:09:05"

    def test_different_start_times_are_different_slots(self):
        assert SlotKey.build("TUTOR1", DAY, "10:00") != SlotKey.build("TUTOR1", DAY, "10:30")

    def test_missing_tutor_rejected(self):
        with pytest.raises(InvalidSlotException):
            SlotKey.build("  ", DAY, "10:00")


class TestComputeEndTime:
    def test_adds_duration(self):
        assert compute_end_time(DAY, time(10, 0), 90) == time(11, 30)

    def test_ending_exactly_at_midnight_is_allowed(self):
        assert compute_end_time(DAY, time(23, 0), 60) == time(0, 0)

    def test_crossing_midnight_is_rejected(self):
        with pytest.raises(InvalidDurationException) as exc_info:
            compute_end_time(DAY, time(23, 30), 60)
        assert exc_info.value.code == "INVALID_DURATION"

    @pytest.mark.parametrize("duration", [0, -30, True, 1.5, "60"])
    def test_rejects_non_positive_or_non_integer_durations(self, duration):
        with pytest.raises(InvalidDurationException):
            compute_end_time(DAY, time(10, 0), duration)
