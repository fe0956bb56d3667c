from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import minutes_between, month_bounds, now_local
from ..common.money import round_half_up
from ..common.pagination import Page, PageRequest
from ..common.serialization import to_json
from ..common.validators import optional_date, optional_enum, parse_enum
from ..core.constants import DEFAULT_LATE_GRACE_MINUTES
from ..core.enums import AttendanceStatus, BreakType, CheckMethod
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..schedules.repository import ScheduleRepository
from ..users.model import User
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .hours import derive_work_hours
from .model import AttendanceRecord, Break, GeoPoint, Punch
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_location(data: Any) -> Optional[GeoPoint]:
    if not isinstance(data, Mapping) or data.get("lat") is None or data.get("lng") is None:
        return None
    try:
        return GeoPoint(lat=float(data["lat"]), lng=float(data["lng"]))
    except (TypeError, ValueError):
        raise ValidationError("location must carry numeric lat/lng") from None


def _summary(records: Sequence[AttendanceRecord]) -> dict:
    return {
        "totalDays": len(records),
        "totalHours": round(sum(r.work_hours for r in records), 2),
        "totalOvertime": round(sum(r.overtime for r in records), 2),
        "presentDays": sum(1 for r in records if r.status == AttendanceStatus.PRESENT),
        "lateDays": sum(1 for r in records if r.status == AttendanceStatus.LATE),
    }


def _overall(records: Sequence[AttendanceRecord]) -> dict:
    statuses = Counter(r.status for r in records)
    total_work = sum(r.work_hours for r in records)
    return {
        "totalRecords": len(records),
        "presentCount": statuses[AttendanceStatus.PRESENT],
        "absentCount": statuses[AttendanceStatus.ABSENT],
        "lateCount": statuses[AttendanceStatus.LATE],
        "totalWorkHours": round(total_work, 2),
        "totalOvertimeHours": round(sum(r.overtime for r in records), 2),
        "avgWorkHours": round(total_work / len(records), 2) if records else 0,
    }


def employee_summary(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "employeeId": user.employee_id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "department": user.department,
    }


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        schedules: Optional[ScheduleRepository] = None,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    ):
        self._attendance = attendance
        self._users = users
        self._schedules = schedules
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._grace_minutes = int(grace_minutes)

    def clock_in(
        self,
        user: User,
        *,
        now: Optional[datetime] = None,
        location: Optional[GeoPoint] = None,
        method: CheckMethod = CheckMethod.WEB,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        if self._attendance.get_for_user_and_date(int(user.id), today):
            raise ConflictError("You have already clocked in today")

        schedule = None
        if self._schedules:
            schedule = self._schedules.find_active(employee_id=int(user.id), work_date=today)
        strategy = self._factory.for_checkin(now=now, schedule=schedule, grace_minutes=self._grace_minutes)
        decision = strategy.decide_checkin(now=now, schedule=schedule, grace_minutes=self._grace_minutes)

        record = AttendanceRecord(
            id=None,
            user_id=int(user.id),
            work_date=today,
            check_in=Punch(time=now, location=location, method=method),
            status=decision.status,
            schedule_id=schedule.id if schedule else None,
            notes=notes or decision.note,
        )
        # The unique (user, day) index backs up the read above
        record = replace(record, id=self._attendance.create(record))
        logger.info("user %s clocked in at %s (%s)", user.employee_id, now.isoformat(), decision.status.value)
        return record

    def clock_out(
        self,
        user: User,
        *,
        now: Optional[datetime] = None,
        location: Optional[GeoPoint] = None,
        method: CheckMethod = CheckMethod.WEB,
    ) -> AttendanceRecord:
        now = now or now_local()
        record = self._attendance.get_for_user_and_date(int(user.id), now.date())
        if not record or record.check_in is None:
            raise ValidationError("You must clock in first")
        if record.check_out is not None:
            raise ConflictError("You have already clocked out today")

        breaks = record.breaks
        if record.open_break is not None:
            breaks = tuple(self._close(b, now) if b.is_open else b for b in breaks)

        record = derive_work_hours(
            replace(record, check_out=Punch(time=now, location=location, method=method), breaks=breaks)
        )
        self._attendance.update(record)
        logger.info("user %s clocked out, worked %.0f min", user.employee_id, record.work_hours)
        return record

    def start_break(self, user: User, *, break_type: BreakType = BreakType.OTHER, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or now_local()
        record = self._attendance.get_for_user_and_date(int(user.id), now.date())
        if not record or record.check_in is None:
            raise ValidationError("You must clock in first")
        if record.check_out is not None:
            raise ValidationError("You have already clocked out today")
        if record.open_break is not None:
            raise ValidationError("You are already on a break")

        record = replace(record, breaks=record.breaks + (Break(start_time=now, type=break_type),))
        self._attendance.update(record)
        return record

    def end_break(self, user: User, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or now_local()
        record = self._attendance.get_for_user_and_date(int(user.id), now.date())
        if not record:
            raise NotFoundError("No attendance record found for today")
        if record.open_break is None:
            raise ValidationError("No ongoing break found")

        breaks = tuple(self._close(b, now) if b.is_open else b for b in record.breaks)
        record = derive_work_hours(replace(record, breaks=breaks))
        self._attendance.update(record)
        return record

    @staticmethod
    def _close(item: Break, now: datetime) -> Break:
        return replace(item, end_time=now, duration=round_half_up(minutes_between(item.start_time, now)))

    def today(self, user: User, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        record = self._attendance.get_for_user_and_date(int(user.id), now.date())
        current = record.open_break if record else None
        return {
            "record": record,
            "isOnBreak": current is not None,
            "currentBreak": current,
        }

    def my_records(self, user: User, page: PageRequest, *, filters: Mapping[str, Any]) -> tuple[Page[AttendanceRecord], dict]:
        start = optional_date(filters.get("startDate"), "startDate")
        end = optional_date(filters.get("endDate"), "endDate")
        status = optional_enum(filters.get("status"), AttendanceStatus, "status")
        status_value = status.value if status else None

        result = self._attendance.list_records(
            page=page, user_ids=[int(user.id)], start_date=start, end_date=end, status=status_value
        )
        everything = self._attendance.list_between(
            start_date=start, end_date=end, user_ids=[int(user.id)], status=status_value
        )
        return result, _summary(everything)

    def my_stats(self, user: User, *, filters: Mapping[str, Any], today: Optional[date] = None) -> dict:
        start = optional_date(filters.get("startDate"), "startDate")
        end = optional_date(filters.get("endDate"), "endDate")
        if start is None and end is None:
            today = today or now_local().date()
            start, end = month_bounds(today.year, today.month)

        records = self._attendance.list_between(start_date=start, end_date=end, user_ids=[int(user.id)])
        overall = _overall(records)
        overall["totalBreakTime"] = sum(b.duration or 0 for r in records for b in r.breaks)

        return {
            "overall": overall,
            "daily": [
                {
                    "_id": r.work_date.isoformat(),
                    "status": r.status.value,
                    "workHours": r.work_hours,
                    "overtime": r.overtime,
                    "checkInTime": r.check_in.time.isoformat() if r.check_in else None,
                    "checkOutTime": r.check_out.time.isoformat() if r.check_out else None,
                }
                for r in sorted(records, key=lambda r: r.work_date)
            ],
            "punctuality": [
                {"_id": status.value, "count": count}
                for status, count in sorted(Counter(r.status for r in records).items(), key=lambda kv: kv[0].value)
            ],
            "period": {
                "startDate": start.isoformat() if start else None,
                "endDate": end.isoformat() if end else None,
            },
        }

    def _user_filter(self, filters: Mapping[str, Any]) -> Optional[Sequence[int]]:
        department = filters.get("department") or None
        search = filters.get("search") or filters.get("employeeId") or None
        if not department and not search:
            return None
        return self._users.find_ids(department=department, search=search)

    def list_all(self, page: PageRequest, *, filters: Mapping[str, Any]) -> Page[dict]:
        status = optional_enum(filters.get("status"), AttendanceStatus, "status")
        result = self._attendance.list_records(
            page=page,
            user_ids=self._user_filter(filters),
            start_date=optional_date(filters.get("startDate"), "startDate"),
            end_date=optional_date(filters.get("endDate"), "endDate"),
            status=status.value if status else None,
        )
        people: dict[int, Optional[User]] = {}
        rows = []
        for record in result.items:
            if record.user_id not in people:
                people[record.user_id] = self._users.get_by_id(record.user_id)
            row = to_json(record)
            row["employee"] = employee_summary(people[record.user_id])
            rows.append(row)
        return Page(items=rows, total=result.total, request=result.request)

    def stats(self, *, filters: Mapping[str, Any]) -> dict:
        department = filters.get("department") or None
        records = self._attendance.list_between(
            start_date=optional_date(filters.get("startDate"), "startDate"),
            end_date=optional_date(filters.get("endDate"), "endDate"),
            user_ids=self._users.find_ids(department=department) if department else None,
        )

        departments: dict[int, str] = {}
        grouped: dict[str, list[AttendanceRecord]] = defaultdict(list)
        for record in records:
            if record.user_id not in departments:
                user = self._users.get_by_id(record.user_id)
                departments[record.user_id] = user.department if user else "Unknown"
            grouped[departments[record.user_id]].append(record)

        return {
            "overall": _overall(records),
            "departmentWise": [
                {
                    "_id": name,
                    "totalRecords": len(items),
                    "presentCount": sum(1 for r in items if r.status == AttendanceStatus.PRESENT),
                    "avgWorkHours": round(sum(r.work_hours for r in items) / len(items), 2),
                }
                for name, items in sorted(grouped.items())
            ],
        }


def parse_method(value: Any) -> CheckMethod:
    if value in (None, ""):
        return CheckMethod.WEB
    return parse_enum(value, CheckMethod, "method")
