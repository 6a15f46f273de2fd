"""Tests for the timetable scheduling helpers."""

from __future__ import annotations

import datetime

import pytest

from educonnect.timetable import calculate_end_time, day_name, validate_slot


class TestCalculateEndTime(object):
    def test_default_lesson_length(self) -> None:
        assert calculate_end_time(datetime.time(7, 30)) == datetime.time(8, 15)

    def test_custom_length(self) -> None:
        assert calculate_end_time(datetime.time(13, 0), minutes=90) == datetime.time(14, 30)

    def test_wraps_past_midnight(self) -> None:
        assert calculate_end_time(datetime.time(23, 30)) == datetime.time(0, 15)


class TestDayName(object):
    def test_sunday_is_zero(self) -> None:
        assert day_name(0) == "Sunday"
        assert day_name(1) == "Monday"
        assert day_name(6) == "Saturday"

    @pytest.mark.parametrize("day", [-1, 7])
    def test_out_of_range(self, day: int) -> None:
        with pytest.raises(ValueError):
            day_name(day)


class TestValidateSlot(object):
    def test_valid_slot(self) -> None:
        validate_slot(day_of_week=1, start_time=datetime.time(8, 0), end_time=datetime.time(8, 45), week_number=1)

    def test_end_must_follow_start(self) -> None:
        with pytest.raises(ValueError, match="End time must be after start time"):
            validate_slot(day_of_week=1, start_time=datetime.time(8, 0), end_time=datetime.time(8, 0), week_number=1)

    def test_week_number_range(self) -> None:
        with pytest.raises(ValueError, match="week_number"):
            validate_slot(
                day_of_week=1, start_time=datetime.time(8, 0), end_time=datetime.time(8, 45), week_number=53
            )

    def test_day_of_week_range(self) -> None:
        with pytest.raises(ValueError, match="day_of_week"):
            validate_slot(day_of_week=7, start_time=datetime.time(8, 0), end_time=datetime.time(8, 45), week_number=1)
