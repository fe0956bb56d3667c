from __future__ import annotations

from typing import Optional

from ..core.enums import LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import LeaveBalance, LeaveBalanceEntry
from .repository import LeaveBalanceRepository

_DUPLICATE = "Leave balance already exists for this employee and year"


class MySQLLeaveBalanceRepository(LeaveBalanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: int, year: int) -> Optional[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id, employee_id, year, updated_at FROM leave_balances WHERE employee_id=%s AND year=%s",
                (int(employee_id), int(year)),
            )
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                """
                SELECT leave_type, allocated, used, pending, carried_forward, max_carry_forward, expiry_date, available
                FROM leave_balance_entries
                WHERE balance_id=%s
                ORDER BY id
                """,
                (int(r["id"]),),
            )
            entries = tuple(
                LeaveBalanceEntry(
                    type=LeaveType(e["leave_type"]),
                    allocated=as_float(e["allocated"]),
                    used=as_float(e["used"]),
                    pending=as_float(e["pending"]),
                    carried_forward=as_float(e["carried_forward"]),
                    max_carry_forward=as_float(e["max_carry_forward"]),
                    expiry_date=e.get("expiry_date"),
                    available=as_float(e["available"]),
                )
                for e in fetchall(cur)
            )
            return LeaveBalance(
                id=int(r["id"]),
                employee_id=int(r["employee_id"]),
                year=int(r["year"]),
                entries=entries,
                last_updated=r.get("updated_at"),
            )

    @staticmethod
    def _write_entries(cur, balance_id: int, balance: LeaveBalance) -> None:
        for e in balance.entries:
            cur.execute(
                """
                INSERT INTO leave_balance_entries(
                    balance_id, leave_type, allocated, used, pending, carried_forward, max_carry_forward,
                    expiry_date, available)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    allocated=VALUES(allocated), used=VALUES(used), pending=VALUES(pending),
                    carried_forward=VALUES(carried_forward), max_carry_forward=VALUES(max_carry_forward),
                    expiry_date=VALUES(expiry_date), available=VALUES(available)
                """,
                (
                    balance_id, e.type.value, e.allocated, e.used, e.pending, e.carried_forward,
                    e.max_carry_forward, e.expiry_date, e.available,
                ),
            )

    def create(self, balance: LeaveBalance) -> int:
        with db_cursor(self._conn_factory, duplicate_message=_DUPLICATE) as (_, cur):
            cur.execute(
                "INSERT INTO leave_balances(employee_id, year) VALUES(%s,%s)",
                (balance.employee_id, balance.year),
            )
            balance_id = int(cur.lastrowid)
            self._write_entries(cur, balance_id, balance)
            return balance_id

    def save(self, balance: LeaveBalance) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE leave_balances SET updated_at=NOW() WHERE id=%s", (int(balance.id),))
            self._write_entries(cur, int(balance.id), balance)
