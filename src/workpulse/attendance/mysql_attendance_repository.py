from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import AttendanceStatus, BreakType, CheckMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceRecord, Break, GeoPoint, Punch
from .repository import AttendanceRepository

_COLUMNS = (
    "user_id", "work_date",
    "check_in_time", "check_in_lat", "check_in_lng", "check_in_method",
    "check_out_time", "check_out_lat", "check_out_lng", "check_out_method",
    "status", "schedule_id", "work_hours", "overtime", "notes", "is_manual_entry", "manual_entry_reason",
)

_SELECT = f"SELECT id, {', '.join(_COLUMNS)} FROM attendance_records"
_DUPLICATE = "You have already clocked in today"


def _punch(r: Dict[str, Any], prefix: str) -> Optional[Punch]:
    if not r.get(f"{prefix}_time"):
        return None
    location = None
    if r.get(f"{prefix}_lat") is not None and r.get(f"{prefix}_lng") is not None:
        location = GeoPoint(lat=as_float(r[f"{prefix}_lat"]), lng=as_float(r[f"{prefix}_lng"]))
    return Punch(
        time=r[f"{prefix}_time"],
        location=location,
        method=CheckMethod(r.get(f"{prefix}_method") or CheckMethod.WEB.value),
    )


def _punch_params(punch: Optional[Punch]) -> tuple:
    if punch is None:
        return (None, None, None, None)
    return (
        punch.time,
        punch.location.lat if punch.location else None,
        punch.location.lng if punch.location else None,
        punch.method.value,
    )


def _to_record(r: Dict[str, Any], breaks: Sequence[Break] = ()) -> AttendanceRecord:
    return AttendanceRecord(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        check_in=_punch(r, "check_in"),
        check_out=_punch(r, "check_out"),
        breaks=tuple(breaks),
        status=AttendanceStatus(r["status"]),
        schedule_id=r.get("schedule_id"),
        work_hours=as_float(r.get("work_hours")),
        overtime=as_float(r.get("overtime")),
        notes=r.get("notes"),
        is_manual_entry=bool(r.get("is_manual_entry")),
        manual_entry_reason=r.get("manual_entry_reason"),
    )


def _to_params(record: AttendanceRecord) -> tuple:
    return (
        (record.user_id, record.work_date)
        + _punch_params(record.check_in)
        + _punch_params(record.check_out)
        + (
            record.status.value,
            record.schedule_id,
            round(record.work_hours, 2),
            round(record.overtime, 2),
            record.notes,
            int(record.is_manual_entry),
            record.manual_entry_reason,
        )
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _load_breaks(cur, attendance_ids: Sequence[int]) -> dict[int, list[Break]]:
        by_record: dict[int, list[Break]] = defaultdict(list)
        if not attendance_ids:
            return by_record
        cur.execute(
            f"""
            SELECT attendance_id, start_time, end_time, duration, break_type
            FROM attendance_breaks
            WHERE attendance_id IN ({in_clause(attendance_ids)})
            ORDER BY attendance_id, position
            """,
            tuple(attendance_ids),
        )
        for r in fetchall(cur):
            by_record[int(r["attendance_id"])].append(
                Break(
                    start_time=r["start_time"],
                    end_time=r.get("end_time"),
                    duration=r.get("duration"),
                    type=BreakType(r["break_type"]),
                )
            )
        return by_record

    def _with_breaks(self, cur, rows) -> list[AttendanceRecord]:
        breaks = self._load_breaks(cur, [int(r["id"]) for r in rows])
        return [_to_record(r, breaks.get(int(r["id"]), ())) for r in rows]

    @staticmethod
    def _write_breaks(cur, attendance_id: int, breaks: Sequence[Break]) -> None:
        cur.execute("DELETE FROM attendance_breaks WHERE attendance_id=%s", (attendance_id,))
        for position, item in enumerate(breaks):
            cur.execute(
                """
                INSERT INTO attendance_breaks(attendance_id, position, start_time, end_time, duration, break_type)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (attendance_id, position, item.start_time, item.end_time, item.duration, item.type.value),
            )

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return self._with_breaks(cur, [r])[0] if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE user_id=%s AND work_date=%s", (int(user_id), work_date))
            r = fetchone(cur)
            return self._with_breaks(cur, [r])[0] if r else None

    def create(self, record: AttendanceRecord) -> int:
        placeholders = ", ".join(["%s"] * len(_COLUMNS))
        with db_cursor(self._conn_factory, duplicate_message=_DUPLICATE) as (_, cur):
            cur.execute(
                f"INSERT INTO attendance_records({', '.join(_COLUMNS)}) VALUES({placeholders})",
                _to_params(record),
            )
            attendance_id = int(cur.lastrowid)
            self._write_breaks(cur, attendance_id, record.breaks)
            return attendance_id

    def update(self, record: AttendanceRecord) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _COLUMNS)
        with db_cursor(self._conn_factory, duplicate_message=_DUPLICATE) as (_, cur):
            cur.execute(
                f"UPDATE attendance_records SET {assignments} WHERE id=%s",
                _to_params(record) + (int(record.id),),
            )
            changed = cur.rowcount > 0
            self._write_breaks(cur, int(record.id), record.breaks)
            return changed

    @staticmethod
    def _filters(
        *,
        user_ids: Optional[Sequence[int]],
        start_date: Optional[date],
        end_date: Optional[date],
        status: Optional[str],
    ) -> tuple[str, list]:
        clauses = ["1=1"]
        params: list[object] = []
        if user_ids is not None:
            if not user_ids:
                return "1=0", []
            clauses.append(f"user_id IN ({in_clause(user_ids)})")
            params.extend(int(u) for u in user_ids)
        if start_date:
            clauses.append("work_date>=%s")
            params.append(start_date)
        if end_date:
            clauses.append("work_date<=%s")
            params.append(end_date)
        if status:
            clauses.append("status=%s")
            params.append(status)
        return " AND ".join(clauses), params

    def list_records(
        self,
        *,
        page: PageRequest,
        user_ids: Optional[Sequence[int]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> Page[AttendanceRecord]:
        where, params = self._filters(user_ids=user_ids, start_date=start_date, end_date=end_date, status=status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM attendance_records WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY work_date DESC, id DESC LIMIT %s OFFSET %s",
                tuple(params) + (page.limit, page.offset),
            )
            items = self._with_breaks(cur, fetchall(cur))
        return Page(items=items, total=total, request=page)

    def list_between(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        user_ids: Optional[Sequence[int]] = None,
        status: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        where, params = self._filters(user_ids=user_ids, start_date=start_date, end_date=end_date, status=status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} ORDER BY work_date", tuple(params))
            return self._with_breaks(cur, fetchall(cur))
