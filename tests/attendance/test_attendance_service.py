from __future__ import annotations

from datetime import date, datetime

import pytest

from tests.conftest import make_user
from workpulse.core.enums import AttendanceStatus, BreakType, ShiftType
from workpulse.core.exceptions import ConflictError, NotFoundError, ValidationError
from workpulse.schedules.model import Schedule, ShiftWindow

DAY = date(2026, 2, 2)


def _schedule(user, start="08:00"):
    return Schedule(
        id=None,
        employee_id=int(user.id),
        work_date=DAY,
        shift=ShiftWindow(type=ShiftType.MORNING, start_time=start, end_time="16:00"),
        department=user.department,
        created_by=1,
    )


def test_scheduled_shift_makes_checkin_late(container, repos):
    user = make_user(repos["users_repo"])
    repos["schedules_repo"].create(_schedule(user, start="08:00"))

    record = container.attendance_service.clock_in(user, now=datetime(2026, 2, 2, 8, 6))

    assert record.status == AttendanceStatus.LATE
    assert record.schedule_id is not None


def test_checkin_within_grace_is_present(container, repos):
    user = make_user(repos["users_repo"])
    repos["schedules_repo"].create(_schedule(user, start="08:00"))

    record = container.attendance_service.clock_in(user, now=datetime(2026, 2, 2, 8, 5))

    assert record.status == AttendanceStatus.PRESENT


def test_second_clock_in_same_day_conflicts(container, repos):
    user = make_user(repos["users_repo"])
    container.attendance_service.clock_in(user, now=datetime(2026, 2, 2, 8, 0))

    with pytest.raises(ConflictError):
        container.attendance_service.clock_in(user, now=datetime(2026, 2, 2, 13, 0))


def test_duplicate_attendance_insert_is_rejected_by_repository(container, repos):
    user = make_user(repos["users_repo"])
    record = container.attendance_service.clock_in(user, now=datetime(2026, 2, 2, 8, 0))

    with pytest.raises(ConflictError):
        repos["attendance_repo"].create(record)


def test_clock_out_requires_clock_in(container, repos):
    user = make_user(repos["users_repo"])

    with pytest.raises(ValidationError, match="clock in first"):
        container.attendance_service.clock_out(user, now=datetime(2026, 2, 2, 17, 0))


def test_full_day_with_break(container, repos):
    svc = container.attendance_service
    user = make_user(repos["users_repo"])
    svc.clock_in(user, now=datetime(2026, 2, 2, 8, 0))
    svc.start_break(user, break_type=BreakType.LUNCH, now=datetime(2026, 2, 2, 12, 0))

    with pytest.raises(ValidationError, match="already on a break"):
        svc.start_break(user, now=datetime(2026, 2, 2, 12, 10))

    ended = svc.end_break(user, now=datetime(2026, 2, 2, 12, 45))
    assert ended.breaks[0].duration == 45

    record = svc.clock_out(user, now=datetime(2026, 2, 2, 17, 45))
    assert record.work_hours == 540
    assert record.overtime == 60

    with pytest.raises(ConflictError):
        svc.clock_out(user, now=datetime(2026, 2, 2, 18, 0))


def test_clock_out_closes_an_open_break(container, repos):
    svc = container.attendance_service
    user = make_user(repos["users_repo"])
    svc.clock_in(user, now=datetime(2026, 2, 2, 8, 0))
    svc.start_break(user, now=datetime(2026, 2, 2, 15, 30))

    record = svc.clock_out(user, now=datetime(2026, 2, 2, 16, 0))

    assert record.open_break is None
    assert record.breaks[0].duration == 30
    assert record.work_hours == 450


def test_end_break_without_record(container, repos):
    user = make_user(repos["users_repo"])

    with pytest.raises(NotFoundError):
        container.attendance_service.end_break(user, now=datetime(2026, 2, 2, 12, 0))


def test_today_reports_current_break(container, repos):
    svc = container.attendance_service
    user = make_user(repos["users_repo"])
    svc.clock_in(user, now=datetime(2026, 2, 2, 8, 0))
    svc.start_break(user, now=datetime(2026, 2, 2, 10, 0))

    today = svc.today(user, now=datetime(2026, 2, 2, 10, 5))

    assert today["isOnBreak"] is True
    assert today["currentBreak"].start_time == datetime(2026, 2, 2, 10, 0)
