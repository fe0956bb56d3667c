from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..common.pagination import Page, PageRequest
from ..core.enums import RecurrenceType, ScheduleStatus, ShiftType, SwapStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, json_column
from .model import Location, Modification, RecurringPattern, Schedule, ShiftWindow, SwapRequest
from .repository import ScheduleRepository

_COLUMNS = (
    "employee_id", "work_date", "shift_type", "start_time", "end_time", "break_duration", "department",
    "location_building", "location_floor", "location_unit", "location_room",
    "is_recurring", "recurring_pattern", "status", "created_by", "modified_by", "notes",
    "is_cancelled", "cancellation_reason",
    "swap_requested_by", "swap_requested_with", "swap_status", "swap_reason", "swap_approved_by",
    "overtime_hours",
)

_SELECT = f"SELECT id, {', '.join(_COLUMNS)} FROM schedules"
_DUPLICATE = "Employee already has a schedule for this date"


def _pattern_to_json(pattern: Optional[RecurringPattern]) -> Optional[str]:
    if pattern is None:
        return None
    return json.dumps(
        {
            "type": pattern.type.value,
            "endDate": pattern.end_date.isoformat() if pattern.end_date else None,
            "daysOfWeek": list(pattern.days_of_week),
            "dayOfMonth": pattern.day_of_month,
        }
    )


def _pattern_from_json(value: Any) -> Optional[RecurringPattern]:
    data = json_column(value)
    if not data:
        return None
    return RecurringPattern(
        type=RecurrenceType(data["type"]),
        end_date=parse_iso_date(data["endDate"]) if data.get("endDate") else None,
        days_of_week=tuple(int(d) for d in data.get("daysOfWeek") or ()),
        day_of_month=data.get("dayOfMonth"),
    )


def _to_schedule(r: Dict[str, Any], history: Sequence[Modification] = ()) -> Schedule:
    swap = None
    if r.get("swap_requested_by"):
        swap = SwapRequest(
            requested_by=int(r["swap_requested_by"]),
            requested_with=int(r["swap_requested_with"]),
            status=SwapStatus(r["swap_status"]),
            reason=r.get("swap_reason"),
            approved_by=r.get("swap_approved_by"),
        )
    return Schedule(
        id=int(r["id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        shift=ShiftWindow(
            type=ShiftType(r["shift_type"]),
            start_time=r["start_time"],
            end_time=r["end_time"],
            break_duration=int(r["break_duration"]),
        ),
        department=r["department"],
        created_by=int(r["created_by"]),
        location=Location(
            building=r.get("location_building"),
            floor=r.get("location_floor"),
            unit=r.get("location_unit"),
            room=r.get("location_room"),
        ),
        is_recurring=bool(r["is_recurring"]),
        recurring_pattern=_pattern_from_json(r.get("recurring_pattern")),
        status=ScheduleStatus(r["status"]),
        modified_by=r.get("modified_by"),
        modification_history=tuple(history),
        notes=r.get("notes"),
        is_cancelled=bool(r["is_cancelled"]),
        cancellation_reason=r.get("cancellation_reason"),
        swap_request=swap,
        overtime_hours=as_float(r.get("overtime_hours")),
    )


def _to_params(s: Schedule) -> tuple:
    swap = s.swap_request
    return (
        s.employee_id, s.work_date, s.shift.type.value, s.shift.start_time, s.shift.end_time,
        s.shift.break_duration, s.department,
        s.location.building, s.location.floor, s.location.unit, s.location.room,
        int(s.is_recurring), _pattern_to_json(s.recurring_pattern), s.status.value, s.created_by,
        s.modified_by, s.notes, int(s.is_cancelled), s.cancellation_reason,
        swap.requested_by if swap else None,
        swap.requested_with if swap else None,
        swap.status.value if swap else None,
        swap.reason if swap else None,
        swap.approved_by if swap else None,
        s.overtime_hours,
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _history(self, cur, schedule_id: int) -> list[Modification]:
        cur.execute(
            """
            SELECT modified_at, modified_by, changes, reason
            FROM schedule_modifications
            WHERE schedule_id=%s
            ORDER BY id
            """,
            (schedule_id,),
        )
        return [
            Modification(
                modified_at=r["modified_at"],
                modified_by=int(r["modified_by"]),
                changes=json_column(r["changes"]) or {},
                reason=r.get("reason") or "Manual update",
            )
            for r in fetchall(cur)
        ]

    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (int(schedule_id),))
            r = fetchone(cur)
            if not r:
                return None
            return _to_schedule(r, self._history(cur, int(r["id"])))

    def find_active(self, *, employee_id: int, work_date: date, exclude_id: Optional[int] = None) -> Optional[Schedule]:
        sql = f"{_SELECT} WHERE employee_id=%s AND work_date=%s AND active_key=1"
        params: list[object] = [int(employee_id), work_date]
        if exclude_id is not None:
            sql += " AND id<>%s"
            params.append(int(exclude_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            r = fetchone(cur)
            return _to_schedule(r) if r else None

    def create(self, schedule: Schedule) -> int:
        placeholders = ", ".join(["%s"] * len(_COLUMNS))
        with db_cursor(self._conn_factory, duplicate_message=_DUPLICATE) as (_, cur):
            cur.execute(f"INSERT INTO schedules({', '.join(_COLUMNS)}) VALUES({placeholders})", _to_params(schedule))
            return int(cur.lastrowid)

    def update(self, schedule: Schedule, *, modification: Optional[Modification] = None) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _COLUMNS)
        with db_cursor(self._conn_factory, duplicate_message=_DUPLICATE) as (_, cur):
            cur.execute(f"UPDATE schedules SET {assignments} WHERE id=%s", _to_params(schedule) + (int(schedule.id),))
            changed = cur.rowcount > 0
            if modification is not None:
                cur.execute(
                    """
                    INSERT INTO schedule_modifications(schedule_id, modified_at, modified_by, changes, reason)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (
                        int(schedule.id),
                        modification.modified_at,
                        modification.modified_by,
                        json.dumps(modification.changes, default=str),
                        modification.reason,
                    ),
                )
            return changed

    def delete(self, schedule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM schedules WHERE id=%s", (int(schedule_id),))
            return cur.rowcount > 0

    @staticmethod
    def _filters(
        *,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
        status: Optional[str] = None,
        shift_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> tuple[str, list]:
        clauses = ["1=1"]
        params: list[object] = []
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if department:
            clauses.append("department=%s")
            params.append(department)
        if status:
            clauses.append("status=%s")
            params.append(status)
        if shift_type:
            clauses.append("shift_type=%s")
            params.append(shift_type)
        if start_date:
            clauses.append("work_date>=%s")
            params.append(start_date)
        if end_date:
            clauses.append("work_date<=%s")
            params.append(end_date)
        return " AND ".join(clauses), params

    def list_schedules(
        self,
        *,
        page: PageRequest,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
        status: Optional[str] = None,
        shift_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page[Schedule]:
        where, params = self._filters(
            employee_id=employee_id,
            department=department,
            status=status,
            shift_type=shift_type,
            start_date=start_date,
            end_date=end_date,
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM schedules WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY work_date, start_time LIMIT %s OFFSET %s",
                tuple(params) + (page.limit, page.offset),
            )
            items = [_to_schedule(r) for r in fetchall(cur)]
        return Page(items=items, total=total, request=page)

    def list_between(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        employee_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> Sequence[Schedule]:
        where, params = self._filters(
            employee_id=employee_id, department=department, start_date=start_date, end_date=end_date
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} ORDER BY work_date", tuple(params))
            return [_to_schedule(r) for r in fetchall(cur)]
