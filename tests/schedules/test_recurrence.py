from datetime import date

from workpulse.core.enums import RecurrenceType, ShiftType
from workpulse.schedules.model import RecurringPattern, ShiftWindow
from workpulse.schedules.recurrence import occurrences


def test_daily_excludes_the_start_date():
    pattern = RecurringPattern(type=RecurrenceType.DAILY, end_date=date(2026, 3, 5))

    assert list(occurrences(date(2026, 3, 2), pattern)) == [date(2026, 3, 3), date(2026, 3, 4), date(2026, 3, 5)]


def test_weekly_uses_sunday_based_days():
    # 1 = Monday, 3 = Wednesday
    pattern = RecurringPattern(type=RecurrenceType.WEEKLY, end_date=date(2026, 3, 11), days_of_week=(1, 3))

    assert list(occurrences(date(2026, 3, 2), pattern)) == [date(2026, 3, 4), date(2026, 3, 9), date(2026, 3, 11)]


def test_monthly_skips_months_without_the_day():
    pattern = RecurringPattern(type=RecurrenceType.MONTHLY, end_date=date(2026, 5, 31), day_of_month=31)

    assert list(occurrences(date(2026, 1, 31), pattern)) == [date(2026, 3, 31), date(2026, 5, 31)]


def test_no_end_date_yields_nothing():
    assert list(occurrences(date(2026, 3, 2), RecurringPattern(type=RecurrenceType.DAILY))) == []


def test_night_shift_duration_wraps_midnight():
    shift = ShiftWindow(type=ShiftType.NIGHT, start_time="22:00", end_time="06:00", break_duration=30)

    assert shift.duration_hours == 7.5
