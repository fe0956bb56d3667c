from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.enums import HalfDayType
from ..core.exceptions import ValidationError


def derive_total_days(
    start_date: date,
    end_date: date,
    *,
    is_half_day: bool = False,
    half_day_type: Optional[HalfDayType] = None,
) -> float:
    """Days charged for a leave: 0.5 for a half day, else the inclusive span."""
    if end_date < start_date:
        raise ValidationError("End date cannot be before start date")
    if is_half_day:
        if half_day_type is None:
            raise ValidationError("halfDayType is required for half-day leave")
        return 0.5
    return float((end_date - start_date).days + 1)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and a_end >= b_start


def days_within(start_date: date, end_date: date, window_start: date, window_end: date, *, is_half_day: bool = False) -> float:
    """Portion of a leave that falls inside [window_start, window_end]."""
    first = max(start_date, window_start)
    last = min(end_date, window_end)
    if last < first:
        return 0.0
    if is_half_day:
        return 0.5
    return float((last - first).days + 1)
