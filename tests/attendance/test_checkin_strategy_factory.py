from datetime import date, datetime

from workpulse.attendance.factory import AttendanceStrategyFactory
from workpulse.attendance.strategies.late_strategy import LateStrategy
from workpulse.attendance.strategies.present_strategy import PresentStrategy
from workpulse.core.enums import ShiftType
from workpulse.schedules.model import Schedule, ShiftWindow


def _morning(day: date) -> Schedule:
    return Schedule(
        id=1,
        employee_id=1,
        work_date=day,
        shift=ShiftWindow(type=ShiftType.MORNING, start_time="08:00", end_time="16:00"),
        department="Cardiology",
        created_by=1,
    )


def test_factory_checkin_on_time_within_grace():
    now = datetime(2025, 1, 1, 8, 4, 59)
    strategy = AttendanceStrategyFactory().for_checkin(now=now, schedule=_morning(now.date()), grace_minutes=5)

    assert isinstance(strategy, PresentStrategy)


def test_factory_checkin_late_after_grace():
    now = datetime(2025, 1, 1, 8, 6, 0)
    strategy = AttendanceStrategyFactory().for_checkin(now=now, schedule=_morning(now.date()), grace_minutes=5)

    assert isinstance(strategy, LateStrategy)


def test_factory_without_schedule_is_present():
    now = datetime(2025, 1, 1, 11, 0)
    assert isinstance(AttendanceStrategyFactory().for_checkin(now=now, schedule=None, grace_minutes=5), PresentStrategy)
