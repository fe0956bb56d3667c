from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import HalfDayType, LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, in_clause
from .model import LeaveContact, LeaveRequest
from .repository import LeaveRepository

_COLUMNS = (
    "employee_id", "leave_type", "start_date", "end_date", "total_days", "reason", "status", "applied_date",
    "approved_by", "approved_date", "rejected_by", "rejected_date", "remarks", "department",
    "is_half_day", "half_day_type", "emergency_name", "emergency_phone", "cancelled_date",
)

_SELECT = f"SELECT id, {', '.join(_COLUMNS)} FROM leave_requests"


def _to_leave(r: Dict[str, Any]) -> LeaveRequest:
    return LeaveRequest(
        id=int(r["id"]),
        employee_id=int(r["employee_id"]),
        type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        total_days=as_float(r["total_days"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        applied_date=r["applied_date"],
        approved_by=r.get("approved_by"),
        approved_date=r.get("approved_date"),
        rejected_by=r.get("rejected_by"),
        rejected_date=r.get("rejected_date"),
        remarks=r.get("remarks"),
        department=r["department"],
        is_half_day=bool(r["is_half_day"]),
        half_day_type=HalfDayType(r["half_day_type"]) if r.get("half_day_type") else None,
        emergency_contact=LeaveContact(name=r.get("emergency_name"), phone=r.get("emergency_phone")),
        cancelled_date=r.get("cancelled_date"),
    )


def _to_params(leave: LeaveRequest) -> tuple:
    return (
        leave.employee_id, leave.type.value, leave.start_date, leave.end_date, leave.total_days, leave.reason,
        leave.status.value, leave.applied_date, leave.approved_by, leave.approved_date, leave.rejected_by,
        leave.rejected_date, leave.remarks, leave.department, int(leave.is_half_day),
        leave.half_day_type.value if leave.half_day_type else None,
        leave.emergency_contact.name, leave.emergency_contact.phone, leave.cancelled_date,
    )


def _filters(
    *,
    employee_ids: Optional[Sequence[int]],
    status: Optional[str],
    leave_type: Optional[str],
    start_from: Optional[date],
    start_to: Optional[date],
) -> tuple[str, list]:
    clauses = ["1=1"]
    params: list[object] = []
    if employee_ids is not None:
        if not employee_ids:
            return "1=0", []
        clauses.append(f"employee_id IN ({in_clause(employee_ids)})")
        params.extend(int(e) for e in employee_ids)
    if status:
        clauses.append("status=%s")
        params.append(status)
    if leave_type:
        clauses.append("leave_type=%s")
        params.append(leave_type)
    if start_from:
        clauses.append("start_date>=%s")
        params.append(start_from)
    if start_to:
        clauses.append("start_date<=%s")
        params.append(start_to)
    return " AND ".join(clauses), params


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def create(self, leave: LeaveRequest) -> int:
        placeholders = ", ".join(["%s"] * len(_COLUMNS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"INSERT INTO leave_requests({', '.join(_COLUMNS)}) VALUES({placeholders})", _to_params(leave))
            return int(cur.lastrowid)

    def update(self, leave: LeaveRequest) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE leave_requests SET {assignments} WHERE id=%s", _to_params(leave) + (int(leave.id),))
            return cur.rowcount > 0

    def list_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Sequence[str],
        exclude_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        sql = (
            f"{_SELECT} WHERE employee_id=%s AND start_date<=%s AND end_date>=%s "
            f"AND status IN ({in_clause(statuses)})"
        )
        params: list[object] = [int(employee_id), end_date, start_date, *statuses]
        if exclude_id is not None:
            sql += " AND id<>%s"
            params.append(int(exclude_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY start_date", tuple(params))
            return [_to_leave(r) for r in fetchall(cur)]

    def list_leaves(
        self,
        *,
        page: PageRequest,
        employee_ids: Optional[Sequence[int]] = None,
        status: Optional[str] = None,
        leave_type: Optional[str] = None,
        start_from: Optional[date] = None,
        start_to: Optional[date] = None,
    ) -> Page[LeaveRequest]:
        where, params = _filters(
            employee_ids=employee_ids, status=status, leave_type=leave_type, start_from=start_from, start_to=start_to
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM leave_requests WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY applied_date DESC, id DESC LIMIT %s OFFSET %s",
                tuple(params) + (page.limit, page.offset),
            )
            items = [_to_leave(r) for r in fetchall(cur)]
        return Page(items=items, total=total, request=page)

    def list_matching(
        self,
        *,
        employee_ids: Optional[Sequence[int]] = None,
        status: Optional[str] = None,
        leave_type: Optional[str] = None,
        start_from: Optional[date] = None,
        start_to: Optional[date] = None,
    ) -> Sequence[LeaveRequest]:
        where, params = _filters(
            employee_ids=employee_ids, status=status, leave_type=leave_type, start_from=start_from, start_to=start_to
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} ORDER BY applied_date DESC", tuple(params))
            return [_to_leave(r) for r in fetchall(cur)]
