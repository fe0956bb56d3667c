from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.serialization import to_json
from ..common.validators import (
    optional_date,
    parse_amount,
    parse_bool,
    parse_date,
    parse_enum,
    parse_int,
    parse_time_hhmm,
    require_non_empty,
)
from ..core.enums import RecurrenceType, ScheduleStatus, ShiftType, SwapStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import Location, Modification, RecurringPattern, Schedule, ShiftWindow, SwapRequest
from .recurrence import occurrences
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Employee already has a schedule for this date"


def _shift(data: Any) -> ShiftWindow:
    if not isinstance(data, Mapping):
        raise ValidationError("shift is required")
    return ShiftWindow(
        type=parse_enum(data.get("type"), ShiftType, "shift type"),
        start_time=parse_time_hhmm(data.get("startTime"), "shift startTime"),
        end_time=parse_time_hhmm(data.get("endTime"), "shift endTime"),
        break_duration=parse_int(data.get("breakDuration", 30), "breakDuration", minimum=0),
    )


def _location(data: Any) -> Location:
    data = data or {}
    return Location(
        building=data.get("building"),
        floor=data.get("floor"),
        unit=data.get("unit"),
        room=data.get("room"),
    )


def _pattern(data: Any) -> Optional[RecurringPattern]:
    if not data:
        return None
    days = data.get("daysOfWeek") or ()
    return RecurringPattern(
        type=parse_enum(data.get("type"), RecurrenceType, "recurrence type"),
        end_date=optional_date(data.get("endDate"), "recurringPattern.endDate"),
        days_of_week=tuple(parse_int(d, "daysOfWeek", minimum=0, maximum=6) for d in days),
        day_of_month=parse_int(data["dayOfMonth"], "dayOfMonth", minimum=1, maximum=31) if data.get("dayOfMonth") else None,
    )


@dataclass(frozen=True)
class CreatedSchedule:
    schedule: Schedule
    recurring_created: int = 0


class ScheduleService:
    """Shift assignments: at most one active schedule per employee per day."""

    def __init__(self, schedules: ScheduleRepository, users: UserRepository):
        self._schedules = schedules
        self._users = users

    def get(self, schedule_id: int) -> Schedule:
        schedule = self._schedules.get_by_id(schedule_id)
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def create(self, data: Mapping[str, Any], *, created_by: int) -> CreatedSchedule:
        employee_id = parse_int(data.get("employee", data.get("employeeId")), "employee")
        employee = self._users.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        work_date = parse_date(data.get("date"), "date")
        if self._schedules.find_active(employee_id=employee_id, work_date=work_date):
            raise ConflictError(CONFLICT_MESSAGE)

        is_recurring = parse_bool(data.get("isRecurring"))
        pattern = _pattern(data.get("recurringPattern"))
        if is_recurring and (pattern is None or pattern.end_date is None):
            raise ValidationError("Recurring schedules need a recurringPattern with an endDate")

        schedule = Schedule(
            id=None,
            employee_id=employee_id,
            work_date=work_date,
            shift=_shift(data.get("shift")),
            department=str(data.get("department") or employee.department),
            created_by=created_by,
            location=_location(data.get("location")),
            is_recurring=is_recurring,
            recurring_pattern=pattern,
            notes=data.get("notes"),
            overtime_hours=parse_amount(data.get("overtimeHours"), "overtimeHours"),
        )
        schedule = replace(schedule, id=self._schedules.create(schedule))

        created = 0
        if is_recurring and pattern:
            for day in occurrences(work_date, pattern):
                if self._schedules.find_active(employee_id=employee_id, work_date=day):
                    continue
                try:
                    self._schedules.create(replace(schedule, id=None, work_date=day))
                except ConflictError:
                    # Lost a race with a concurrent insert for that day
                    continue
                created += 1
        logger.info("schedule %s created for employee %s (+%s recurring)", schedule.id, employee_id, created)
        return CreatedSchedule(schedule=schedule, recurring_created=created)

    def list_all(self, page: PageRequest, *, filters: Mapping[str, Any]) -> Page[Schedule]:
        employee = filters.get("employee") or filters.get("employeeId")
        return self._schedules.list_schedules(
            page=page,
            employee_id=parse_int(employee, "employee") if employee else None,
            department=filters.get("department") or None,
            status=filters.get("status") or None,
            shift_type=filters.get("shiftType") or None,
            start_date=optional_date(filters.get("startDate"), "startDate"),
            end_date=optional_date(filters.get("endDate"), "endDate"),
        )

    def my_schedules(self, user: User, page: PageRequest, *, filters: Mapping[str, Any]) -> Page[Schedule]:
        return self._schedules.list_schedules(
            page=page,
            employee_id=int(user.id),
            status=filters.get("status") or None,
            start_date=optional_date(filters.get("startDate"), "startDate"),
            end_date=optional_date(filters.get("endDate"), "endDate"),
        )

    def update(self, schedule_id: int, data: Mapping[str, Any], *, modified_by: int, now: Optional[datetime] = None) -> Schedule:
        schedule = self.get(schedule_id)
        changes: dict[str, Any] = {}

        if data.get("employee") is not None or data.get("employeeId") is not None:
            employee_id = parse_int(data.get("employee", data.get("employeeId")), "employee")
            if not self._users.get_by_id(employee_id):
                raise NotFoundError("Employee not found")
            changes["employee_id"] = employee_id
        if data.get("date"):
            changes["work_date"] = parse_date(data["date"], "date")
        if data.get("shift"):
            changes["shift"] = _shift(data["shift"])
        if data.get("department"):
            changes["department"] = require_non_empty(data["department"], "department")
        if data.get("location") is not None:
            changes["location"] = _location(data["location"])
        if data.get("status"):
            changes["status"] = parse_enum(data["status"], ScheduleStatus, "status")
        if "notes" in data:
            changes["notes"] = data.get("notes")
        if "isCancelled" in data:
            changes["is_cancelled"] = parse_bool(data["isCancelled"])
        if "cancellationReason" in data:
            changes["cancellation_reason"] = data.get("cancellationReason")
        if data.get("overtimeHours") is not None:
            changes["overtime_hours"] = parse_amount(data["overtimeHours"], "overtimeHours")

        diff = {
            key: {"from": to_json(getattr(schedule, key)), "to": to_json(value)}
            for key, value in changes.items()
            if getattr(schedule, key) != value
        }
        updated = replace(schedule, **changes, modified_by=modified_by)

        if updated.is_active and ("employee_id" in changes or "work_date" in changes or not schedule.is_active):
            conflict = self._schedules.find_active(
                employee_id=updated.employee_id, work_date=updated.work_date, exclude_id=schedule.id
            )
            if conflict:
                raise ConflictError("Conflicting schedule exists for this employee and date")

        modification = Modification(
            modified_at=now or now_local(),
            modified_by=modified_by,
            changes=diff,
            reason=str(data.get("modificationReason") or "Manual update"),
        )
        updated = replace(updated, modification_history=schedule.modification_history + (modification,))
        self._schedules.update(updated, modification=modification)
        return updated

    def delete(self, schedule_id: int) -> None:
        self.get(schedule_id)
        self._schedules.delete(schedule_id)

    def stats(self, *, filters: Mapping[str, Any]) -> dict:
        schedules = self._schedules.list_between(
            start_date=optional_date(filters.get("startDate"), "startDate"),
            end_date=optional_date(filters.get("endDate"), "endDate"),
            department=filters.get("department") or None,
        )

        def count(predicate) -> int:
            return sum(1 for s in schedules if predicate(s))

        by_department: dict[str, list[Schedule]] = defaultdict(list)
        for s in schedules:
            by_department[s.department].append(s)

        return {
            "overall": {
                "totalSchedules": len(schedules),
                "scheduledCount": count(lambda s: s.status == ScheduleStatus.SCHEDULED),
                "completedCount": count(lambda s: s.status == ScheduleStatus.COMPLETED),
                "cancelledCount": count(lambda s: s.status == ScheduleStatus.CANCELLED or s.is_cancelled),
                "morningShifts": count(lambda s: s.shift.type == ShiftType.MORNING),
                "afternoonShifts": count(lambda s: s.shift.type == ShiftType.AFTERNOON),
                "nightShifts": count(lambda s: s.shift.type == ShiftType.NIGHT),
            },
            "departmentWise": [
                {
                    "_id": department,
                    "totalSchedules": len(items),
                    "avgShiftDuration": round(sum(s.shift_duration for s in items) / len(items), 2),
                }
                for department, items in sorted(by_department.items())
            ],
        }

    def request_swap(self, schedule_id: int, *, user: User, requested_with: Any, reason: Optional[str] = None) -> Schedule:
        schedule = self.get(schedule_id)
        if schedule.employee_id != user.id:
            raise AuthorizationError("You can only request swaps for your own schedules")

        other_id = parse_int(requested_with, "requestedWith")
        if other_id == user.id:
            raise ValidationError("Cannot swap a shift with yourself")
        if not self._users.get_by_id(other_id):
            raise NotFoundError("Requested employee not found")

        updated = replace(
            schedule,
            swap_request=SwapRequest(requested_by=int(user.id), requested_with=other_id, reason=reason),
        )
        self._schedules.update(updated)
        return updated

    def decide_swap(self, schedule_id: int, *, approver_id: int, approve: bool, now: Optional[datetime] = None) -> Schedule:
        schedule = self.get(schedule_id)
        swap = schedule.swap_request
        if swap is None or swap.status != SwapStatus.PENDING:
            raise ConflictError("No pending swap request for this schedule")

        if not approve:
            updated = replace(schedule, swap_request=replace(swap, status=SwapStatus.REJECTED, approved_by=approver_id))
            self._schedules.update(updated)
            return updated

        if self._schedules.find_active(employee_id=swap.requested_with, work_date=schedule.work_date, exclude_id=schedule.id):
            raise ConflictError(CONFLICT_MESSAGE)

        modification = Modification(
            modified_at=now or now_local(),
            modified_by=approver_id,
            changes={"employee_id": {"from": schedule.employee_id, "to": swap.requested_with}},
            reason="Shift swap approved",
        )
        updated = replace(
            schedule,
            employee_id=swap.requested_with,
            modified_by=approver_id,
            swap_request=replace(swap, status=SwapStatus.APPROVED, approved_by=approver_id),
            modification_history=schedule.modification_history + (modification,),
        )
        self._schedules.update(updated, modification=modification)
        logger.info("swap on schedule %s approved: %s -> %s", schedule.id, swap.requested_by, swap.requested_with)
        return updated
