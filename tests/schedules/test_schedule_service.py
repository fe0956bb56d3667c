from __future__ import annotations

from datetime import date

import pytest

from tests.conftest import make_user
from workpulse.core.enums import Role, ScheduleStatus, SwapStatus
from workpulse.core.exceptions import AuthorizationError, ConflictError, ValidationError

SHIFT = {"type": "morning", "startTime": "08:00", "endTime": "16:00", "breakDuration": 30}


def _create(container, employee, manager, day="2026-03-02", **extra):
    data = {"employee": employee.id, "date": day, "shift": SHIFT, **extra}
    return container.schedule_service.create(data, created_by=int(manager.id))


def test_create_defaults_department_from_employee(container, repos):
    nurse = make_user(repos["users_repo"], department="ICU")
    manager = make_user(repos["users_repo"], role=Role.MANAGER)

    created = _create(container, nurse, manager)

    assert created.schedule.department == "ICU"
    assert created.schedule.status == ScheduleStatus.SCHEDULED
    assert created.schedule.shift_duration == 7.5
    assert created.recurring_created == 0


def test_second_active_schedule_same_day_conflicts(container, repos):
    nurse = make_user(repos["users_repo"])
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    _create(container, nurse, manager)

    with pytest.raises(ConflictError, match="already has a schedule"):
        _create(container, nurse, manager)


def test_cancelled_schedule_frees_the_day(container, repos):
    nurse = make_user(repos["users_repo"])
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    first = _create(container, nurse, manager).schedule
    container.schedule_service.update(int(first.id), {"status": "cancelled"}, modified_by=int(manager.id))

    assert _create(container, nurse, manager).schedule.id != first.id


def test_recurring_creation_skips_taken_days(container, repos):
    nurse = make_user(repos["users_repo"])
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    _create(container, nurse, manager, day="2026-03-04")

    created = _create(
        container, nurse, manager,
        isRecurring=True,
        recurringPattern={"type": "daily", "endDate": "2026-03-06"},
    )

    assert created.recurring_created == 3
    days = [s.work_date for s in repos["schedules_repo"].list_between(employee_id=int(nurse.id))]
    assert days == [date(2026, 3, 2), date(2026, 3, 3), date(2026, 3, 4), date(2026, 3, 5), date(2026, 3, 6)]


def test_recurring_needs_an_end_date(container, repos):
    nurse = make_user(repos["users_repo"])
    manager = make_user(repos["users_repo"], role=Role.MANAGER)

    with pytest.raises(ValidationError):
        _create(container, nurse, manager, isRecurring=True, recurringPattern={"type": "daily"})


def test_update_records_modification_history(container, repos):
    nurse = make_user(repos["users_repo"])
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    schedule = _create(container, nurse, manager).schedule

    updated = container.schedule_service.update(
        int(schedule.id), {"notes": "Cover ward B", "modificationReason": "Staffing"}, modified_by=int(manager.id)
    )

    assert updated.notes == "Cover ward B"
    assert updated.modified_by == manager.id
    assert updated.modification_history[-1].reason == "Staffing"
    assert updated.modification_history[-1].changes == {"notes": {"from": None, "to": "Cover ward B"}}


def test_moving_onto_a_taken_day_conflicts(container, repos):
    nurse = make_user(repos["users_repo"])
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    _create(container, nurse, manager, day="2026-03-02")
    other = _create(container, nurse, manager, day="2026-03-03").schedule

    with pytest.raises(ConflictError):
        container.schedule_service.update(int(other.id), {"date": "2026-03-02"}, modified_by=int(manager.id))


def test_swap_request_and_approval_reassigns_shift(container, repos):
    alice = make_user(repos["users_repo"])
    bob = make_user(repos["users_repo"])
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    hr = make_user(repos["users_repo"], role=Role.HR)
    schedule = _create(container, alice, manager).schedule

    with pytest.raises(AuthorizationError):
        container.schedule_service.request_swap(int(schedule.id), user=bob, requested_with=alice.id)

    requested = container.schedule_service.request_swap(int(schedule.id), user=alice, requested_with=bob.id, reason="Exam")
    assert requested.swap_request.status == SwapStatus.PENDING

    swapped = container.schedule_service.decide_swap(int(schedule.id), approver_id=int(hr.id), approve=True)

    assert swapped.employee_id == bob.id
    assert swapped.swap_request.status == SwapStatus.APPROVED
    with pytest.raises(ConflictError):
        container.schedule_service.decide_swap(int(schedule.id), approver_id=int(hr.id), approve=True)


def test_swap_with_yourself_is_rejected(container, repos):
    alice = make_user(repos["users_repo"])
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    schedule = _create(container, alice, manager).schedule

    with pytest.raises(ValidationError):
        container.schedule_service.request_swap(int(schedule.id), user=alice, requested_with=alice.id)


def test_stats_by_shift_and_department(container, repos):
    nurse = make_user(repos["users_repo"], department="ICU")
    manager = make_user(repos["users_repo"], role=Role.MANAGER)
    _create(container, nurse, manager, day="2026-03-02")
    _create(container, nurse, manager, day="2026-03-03", shift={**SHIFT, "type": "night", "startTime": "22:00", "endTime": "06:00"})

    stats = container.schedule_service.stats(filters={})

    assert stats["overall"]["totalSchedules"] == 2
    assert stats["overall"]["morningShifts"] == 1
    assert stats["overall"]["nightShifts"] == 1
    assert stats["departmentWise"] == [{"_id": "ICU", "totalSchedules": 2, "avgShiftDuration": 7.5}]
