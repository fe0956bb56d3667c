from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterator

from ..common.datetime_utils import iter_days, sunday_based_weekday
from ..core.enums import RecurrenceType
from .model import RecurringPattern


def occurrences(start: date, pattern: RecurringPattern) -> Iterator[date]:
    """Dates after ``start`` (exclusive) up to the pattern end date that the pattern selects."""
    if pattern.end_date is None or pattern.end_date <= start:
        return

    if pattern.type == RecurrenceType.MONTHLY:
        day = pattern.day_of_month or start.day
        year, month = start.year, start.month
        while True:
            if day <= calendar.monthrange(year, month)[1]:
                candidate = date(year, month, day)
                if candidate > pattern.end_date:
                    return
                if candidate > start:
                    yield candidate
            elif date(year, month, 1) > pattern.end_date:
                return
            month += 1
            if month > 12:
                year, month = year + 1, 1

    for day in iter_days(start + timedelta(days=1), pattern.end_date):
        if pattern.type == RecurrenceType.DAILY:
            yield day
        elif sunday_based_weekday(day) in pattern.days_of_week:
            yield day
