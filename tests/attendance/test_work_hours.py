from datetime import date, datetime, timedelta

import pytest

from workpulse.attendance.hours import derive_work_hours
from workpulse.attendance.model import AttendanceRecord, Break, Punch

DAY = date(2026, 4, 6)


def _record(check_in, check_out, breaks=()):
    return AttendanceRecord(
        id=1,
        user_id=1,
        work_date=DAY,
        check_in=Punch(time=check_in),
        check_out=Punch(time=check_out) if check_out else None,
        breaks=tuple(breaks),
    )


def test_work_minutes_exclude_completed_breaks():
    start = datetime(2026, 4, 6, 8, 0)
    record = _record(
        start,
        start + timedelta(hours=9),
        [Break(start_time=start + timedelta(hours=4), end_time=start + timedelta(hours=5), duration=60)],
    )

    derived = derive_work_hours(record)

    assert derived.work_hours == 480
    assert derived.overtime == 0


def test_overtime_is_time_beyond_eight_hours():
    start = datetime(2026, 4, 6, 7, 0)
    derived = derive_work_hours(_record(start, start + timedelta(hours=10)))

    assert derived.work_hours == 600
    assert derived.overtime == 120


def test_open_breaks_are_not_subtracted():
    start = datetime(2026, 4, 6, 8, 0)
    derived = derive_work_hours(
        _record(start, start + timedelta(hours=2), [Break(start_time=start + timedelta(hours=1))])
    )

    assert derived.work_hours == 120


def test_work_time_never_goes_negative():
    start = datetime(2026, 4, 6, 8, 0)
    derived = derive_work_hours(
        _record(start, start + timedelta(minutes=30), [Break(start_time=start, end_time=start + timedelta(hours=1))])
    )

    assert derived.work_hours == 0
    assert derived.overtime == 0


def test_record_without_checkout_is_left_alone():
    record = _record(datetime(2026, 4, 6, 8, 0), None)
    assert derive_work_hours(record) is record


@pytest.mark.parametrize("hours,breaks", [(9, 1), (12, 0.5), (4, 0)])
def test_work_plus_breaks_equals_elapsed(hours, breaks):
    start = datetime(2026, 4, 6, 6, 0)
    end = start + timedelta(hours=hours)
    record = _record(start, end, [Break(start_time=start, end_time=start + timedelta(hours=breaks))])

    derived = derive_work_hours(record)

    assert derived.work_hours == pytest.approx((hours - breaks) * 60)
    assert derived.overtime == pytest.approx(max(0, derived.work_hours - 480))
