from __future__ import annotations

import json
from dataclasses import fields
from typing import Any, Dict, Optional, Sequence, Type, TypeVar

from ..common.datetime_utils import parse_iso_date
from ..common.pagination import Page, PageRequest
from ..common.serialization import camelize, to_json
from ..core.constants import MONTHS
from ..core.enums import SalaryStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, json_column
from .model import (
    AdditionalPerks,
    Allowances,
    Deductions,
    EmployeeInfo,
    EmployerContributions,
    EpfInfo,
    SalaryAttendance,
    SalaryRecord,
)
from .repository import SalaryRepository

T = TypeVar("T")

DUPLICATE_MESSAGE = "Salary record already exists for this employee and month"

_COLUMNS = (
    "employee_id", "month", "year", "department", "employee_info", "attendance", "basic_salary", "allowances",
    "additional_perks", "deductions", "employer_contributions", "epf_info", "gross_salary",
    "salary_before_deduction", "net_payable_salary", "amount_in_words", "prepared_by", "approved_by",
    "approved_date", "paid_date", "status",
)

_SELECT = f"SELECT id, {', '.join(_COLUMNS)}, created_at FROM salaries"
_ORDER = "ORDER BY year DESC, FIELD(month, {}) DESC, created_at DESC".format(
    ", ".join(f"'{m}'" for m in MONTHS)
)


def _section(cls: Type[T], raw: Any) -> T:
    """Rebuild a sub-section dataclass from its camelCase JSON column."""
    data = json_column(raw) or {}
    return cls(**{f.name: data[camelize(f.name)] for f in fields(cls) if camelize(f.name) in data})


def _to_record(r: Dict[str, Any]) -> SalaryRecord:
    epf_info = _section(EpfInfo, r["epf_info"])
    if isinstance(epf_info.joining_date, str):
        epf_info = EpfInfo(
            epf_no=epf_info.epf_no,
            joining_date=parse_iso_date(epf_info.joining_date),
            basic_salary_for_epf=epf_info.basic_salary_for_epf,
        )
    return SalaryRecord(
        id=int(r["id"]),
        employee_id=int(r["employee_id"]),
        month=r["month"],
        year=int(r["year"]),
        department=r.get("department"),
        employee_info=_section(EmployeeInfo, r["employee_info"]),
        attendance=_section(SalaryAttendance, r["attendance"]),
        basic_salary=as_float(r["basic_salary"]),
        allowances=_section(Allowances, r["allowances"]),
        additional_perks=_section(AdditionalPerks, r["additional_perks"]),
        deductions=_section(Deductions, r["deductions"]),
        employer_contributions=_section(EmployerContributions, r["employer_contributions"]),
        epf_info=epf_info,
        gross_salary=as_float(r["gross_salary"]),
        salary_before_deduction=as_float(r["salary_before_deduction"]),
        net_payable_salary=as_float(r["net_payable_salary"]),
        amount_in_words=r["amount_in_words"],
        prepared_by=r.get("prepared_by"),
        approved_by=r.get("approved_by"),
        approved_date=r.get("approved_date"),
        paid_date=r.get("paid_date"),
        status=SalaryStatus(r["status"]),
        created_at=r.get("created_at"),
    )


def _to_params(s: SalaryRecord) -> tuple:
    def dump(section: Any) -> str:
        return json.dumps(to_json(section))

    return (
        s.employee_id, s.month, s.year, s.department, dump(s.employee_info), dump(s.attendance), s.basic_salary,
        dump(s.allowances), dump(s.additional_perks), dump(s.deductions), dump(s.employer_contributions),
        dump(s.epf_info), s.gross_salary, s.salary_before_deduction, s.net_payable_salary, s.amount_in_words,
        s.prepared_by, s.approved_by, s.approved_date, s.paid_date, s.status.value,
    )


def _filters(**values: Any) -> tuple[str, list]:
    clauses = ["1=1"]
    params: list[object] = []
    for column, value in values.items():
        if value is not None:
            clauses.append(f"{column}=%s")
            params.append(value)
    return " AND ".join(clauses), params


class MySQLSalaryRepository(SalaryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, salary_id: int) -> Optional[SalaryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (int(salary_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_period(self, employee_id: int, month: str, year: int) -> Optional[SalaryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE employee_id=%s AND month=%s AND year=%s", (int(employee_id), month, int(year)))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create(self, record: SalaryRecord) -> int:
        placeholders = ", ".join(["%s"] * len(_COLUMNS))
        with db_cursor(self._conn_factory, duplicate_message=DUPLICATE_MESSAGE) as (_, cur):
            cur.execute(f"INSERT INTO salaries({', '.join(_COLUMNS)}) VALUES({placeholders})", _to_params(record))
            return int(cur.lastrowid)

    def update(self, record: SalaryRecord) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _COLUMNS)
        with db_cursor(self._conn_factory, duplicate_message=DUPLICATE_MESSAGE) as (_, cur):
            cur.execute(f"UPDATE salaries SET {assignments} WHERE id=%s", _to_params(record) + (int(record.id),))
            return cur.rowcount > 0

    def delete(self, salary_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM salaries WHERE id=%s", (int(salary_id),))
            return cur.rowcount > 0

    def list_salaries(
        self,
        *,
        page: PageRequest,
        month: Optional[str] = None,
        year: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Page[SalaryRecord]:
        where, params = _filters(month=month, year=year, employee_id=employee_id, status=status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM salaries WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(f"{_SELECT} WHERE {where} {_ORDER} LIMIT %s OFFSET %s", tuple(params) + (page.limit, page.offset))
            items = [_to_record(r) for r in fetchall(cur)]
        return Page(items=items, total=total, request=page)

    def list_matching(self, *, month: Optional[str] = None, year: Optional[int] = None) -> Sequence[SalaryRecord]:
        where, params = _filters(month=month, year=year)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} {_ORDER}", tuple(params))
            return [_to_record(r) for r in fetchall(cur)]
