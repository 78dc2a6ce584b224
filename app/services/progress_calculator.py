"""
Pure progress math for program stages and checklists. No I/O.

Dates are treated as midnight so a stage window given as plain dates and a
"now" given as a datetime compare on the same axis.
Aware datetimes are converted to naive UTC first.
"""
import math
from datetime import date, datetime, time, timezone
from typing import Union

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 86400


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).replace(tzinfo=None) if value.tzinfo else value
    return datetime.combine(value, time.min)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def time_progress(start: DateLike, end: DateLike, now: DateLike) -> int:
    """Percentage of the [start, end] window elapsed at `now`, clamped to 0..100."""
    start_dt, end_dt, now_dt = _as_datetime(start), _as_datetime(end), _as_datetime(now)

    if now_dt < start_dt:
        return 0
    if now_dt > end_dt:
        return 100

    total = (end_dt - start_dt).total_seconds()
    if total <= 0:
        return 100

    elapsed = (now_dt - start_dt).total_seconds()
    return round_half_up(elapsed / total * 100)


def days_remaining(end: DateLike, now: DateLike) -> int:
    """Whole days until `end`, rounded up. Negative once the stage is overdue."""
    diff = (_as_datetime(end) - _as_datetime(now)).total_seconds()
    return math.ceil(diff / SECONDS_PER_DAY)


def checklist_progress(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(completed / total * 100)


def program_day(program_start: DateLike, now: DateLike) -> int:
    """1-based day counter since the program start (day 1 is the start date)."""
    elapsed = (_as_datetime(now) - _as_datetime(program_start)).total_seconds()
    return math.floor(elapsed / SECONDS_PER_DAY) + 1
