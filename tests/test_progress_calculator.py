"""
Unit tests for the progress math (no database).
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from app.services.progress_calculator import (
    checklist_progress, days_remaining, program_day, round_half_up, time_progress
)


def test_stage_two_midpoint_is_fifty_percent():
    # Stage 2 of a program that started 2024-01-01
    assert time_progress(date(2024, 2, 1), date(2024, 3, 2), date(2024, 2, 16)) == 50


def test_time_progress_clamps_before_start_and_after_end():
    start, end = date(2024, 2, 1), date(2024, 3, 2)
    assert time_progress(start, end, date(2024, 1, 15)) == 0
    assert time_progress(start, end, date(2024, 3, 20)) == 100
    assert time_progress(start, end, start) == 0
    assert time_progress(start, end, end) == 100


def test_time_progress_accepts_datetimes():
    start, end = date(2024, 2, 1), date(2024, 3, 2)
    # 15.5 days of 30 -> 51.67 -> 52
    assert time_progress(start, end, datetime(2024, 2, 16, 12, 0)) == 52


def test_time_progress_zero_length_window():
    day = date(2024, 5, 1)
    assert time_progress(day, day, day) == 100


def test_days_remaining_rounds_up_partial_days():
    end = date(2024, 3, 2)
    assert days_remaining(end, date(2024, 3, 1)) == 1
    assert days_remaining(end, datetime(2024, 3, 1, 18, 0)) == 1
    assert days_remaining(end, date(2024, 3, 2)) == 0


def test_days_remaining_goes_negative_when_overdue():
    assert days_remaining(date(2024, 3, 2), date(2024, 3, 5)) == -3


@pytest.mark.parametrize("completed,total,expected", [
    (4, 6, 67),
    (0, 4, 0),
    (4, 4, 100),
    (1, 3, 33),
    (1, 8, 13),
    (0, 0, 0),
])
def test_checklist_progress(completed, total, expected):
    assert checklist_progress(completed, total) == expected


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(12.5) == 13
    assert round_half_up(2.5) == 3
    assert round(2.5) == 2
    assert round_half_up(66.666) == 67


def test_program_day_counts_from_program_start():
    start = date(2024, 1, 1)
    assert program_day(start, date(2024, 1, 1)) == 1
    assert program_day(start, datetime(2024, 1, 1, 23, 59)) == 1
    assert program_day(start, date(2024, 2, 16)) == 47


def test_aware_now_is_converted_to_utc():
    bogota = timezone(timedelta(hours=-5))
    # 20:00 on Mar 1 in UTC-5 is already Mar 2 in UTC
    assert days_remaining(date(2024, 3, 2), datetime(2024, 3, 1, 20, 0, tzinfo=bogota)) == 0
    assert program_day(date(2024, 1, 1), datetime(2024, 1, 1, 22, 0, tzinfo=bogota)) == 2
    assert time_progress(
        date(2024, 2, 1), date(2024, 3, 2), datetime(2024, 2, 16, 0, 0, tzinfo=timezone.utc)
    ) == 50
