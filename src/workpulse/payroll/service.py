from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import count_weekdays, month_bounds, now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_enum, parse_amount, parse_int, require_non_empty
from ..core.constants import (
    DEFAULT_ACCOUNT_NO,
    DEFAULT_BANK_NAME,
    DEFAULT_BASIC_SALARY,
    DEFAULT_BRANCH_NAME,
    MAX_SALARY_YEAR,
    MIN_SALARY_YEAR,
    MONTHS,
)
from ..core.enums import EmploymentStatus, LeaveStatus, Role, SalaryStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..leaves.days import days_within
from ..leaves.repository import LeaveRepository
from ..schedules.repository import ScheduleRepository
from ..users.model import User
from ..users.repository import UserRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import AdditionalPerks, Deductions, EmployeeInfo, EpfInfo, SalaryAttendance, SalaryRecord
from .repository import SalaryRepository

logger = logging.getLogger(__name__)

_BLOCKED = (EmploymentStatus.INACTIVE, EmploymentStatus.TERMINATED)


def parse_month(value: Any) -> str:
    text = require_non_empty(value, "month").capitalize()
    if text not in MONTHS:
        raise ValidationError(f"Invalid month: {value!r}")
    return text


def parse_year(value: Any) -> int:
    return parse_int(value, "year", minimum=MIN_SALARY_YEAR, maximum=MAX_SALARY_YEAR)


def _operator_inputs(record: SalaryRecord, data: Mapping[str, Any]) -> SalaryRecord:
    """Apply the amounts HR types in: APIT, advance, bonus, reimbursements."""
    perks = data.get("additionalPerks") or {}
    deductions = data.get("deductions") or {}

    def pick(key: str, section: Mapping[str, Any], current: float) -> float:
        value = data.get(key, section.get(key))
        return current if value is None else parse_amount(value, key)

    return replace(
        record,
        additional_perks=replace(
            record.additional_perks,
            bonus=pick("bonus", perks, record.additional_perks.bonus),
            reimbursements=pick("reimbursements", perks, record.additional_perks.reimbursements),
        ),
        deductions=replace(
            record.deductions,
            apit=pick("apit", deductions, record.deductions.apit),
            salary_advance=pick("salaryAdvance", deductions, record.deductions.salary_advance),
        ),
    )


class SalaryService:
    def __init__(
        self,
        salaries: SalaryRepository,
        users: UserRepository,
        leaves: LeaveRepository,
        schedules: ScheduleRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._salaries = salaries
        self._users = users
        self._leaves = leaves
        self._schedules = schedules
        self._calculator = calculator or StandardPayrollCalculator()

    def _employee(self, employee_id: Any, action: str) -> User:
        employee = self._users.get_by_id(parse_int(employee_id, "employee"))
        if not employee:
            raise NotFoundError("Employee not found")
        if employee.employment_status in _BLOCKED:
            raise ValidationError(f"Cannot {action} salary for {employee.employment_status.value} employee")
        return employee

    def _attendance(self, employee: User, month: str, year: int) -> SalaryAttendance:
        start, end = month_bounds(year, MONTHS.index(month) + 1)

        leaves = self._leaves.list_overlapping(
            employee_id=int(employee.id), start_date=start, end_date=end, statuses=(LeaveStatus.APPROVED.value,)
        )
        taken = sum(days_within(l.start_date, l.end_date, start, end, is_half_day=l.is_half_day) for l in leaves)
        allowance = employee.monthly_leave_allowance
        paid, no_pay = self._calculator.split_leave(taken, allowance)

        schedules = self._schedules.list_between(start_date=start, end_date=end, employee_id=int(employee.id))
        return SalaryAttendance(
            working_days=count_weekdays(start, end),
            overtime_hours=sum(s.overtime_hours for s in schedules),
            leave_allowed=allowance,
            leave_taken=taken,
            paid_leave_days=paid,
            no_pay_leave=no_pay,
            excess_leave_days=max(0.0, taken - allowance),
        )

    def _draft(self, employee: User, month: str, year: int) -> SalaryRecord:
        basic = employee.basic_salary or DEFAULT_BASIC_SALARY
        bank = employee.bank_details
        return SalaryRecord(
            id=None,
            employee_id=int(employee.id),
            month=month,
            year=year,
            department=employee.department,
            employee_info=EmployeeInfo(
                employee_id=employee.employee_id,
                name=employee.full_name,
                designation=employee.designation or employee.role.value,
                epf_no=employee.epf_no or f"{employee.employee_id}/01",
                bank_name=bank.bank_name or DEFAULT_BANK_NAME,
                account_no=bank.account_no or DEFAULT_ACCOUNT_NO,
                branch_name=bank.branch_name or DEFAULT_BRANCH_NAME,
            ),
            attendance=self._attendance(employee, month, year),
            basic_salary=float(basic),
            additional_perks=AdditionalPerks(),
            deductions=Deductions(),
            epf_info=EpfInfo(epf_no=employee.epf_no, joining_date=employee.epf_joining_date),
        )

    def calculate(self, data: Mapping[str, Any]) -> SalaryRecord:
        """Compute a month's breakdown without storing it."""
        employee = self._employee(data.get("employeeId", data.get("employee")), "calculate")
        month, year = parse_month(data.get("month")), parse_year(data.get("year"))
        if self._salaries.get_for_period(int(employee.id), month, year):
            raise ConflictError(f"Salary for {employee.full_name} for {month} {year} already exists")
        record = _operator_inputs(self._draft(employee, month, year), data)
        return self._calculator.derive(record)

    def create(self, data: Mapping[str, Any], *, prepared_by: int) -> SalaryRecord:
        employee = self._employee(data.get("employee", data.get("employeeId")), "create")
        month, year = parse_month(data.get("month")), parse_year(data.get("year"))

        record = _operator_inputs(self._draft(employee, month, year), data)
        if data.get("basicSalary") is not None:
            record = replace(record, basic_salary=parse_amount(data["basicSalary"], "basicSalary"))
        if data.get("attendance"):
            record = replace(record, attendance=self._attendance_overrides(record.attendance, data["attendance"]))
        record = self._calculator.derive(replace(record, prepared_by=prepared_by))

        # The unique (employee, month, year) index rejects duplicates
        record = replace(record, id=self._salaries.create(record))
        logger.info(
            "salary %s created for %s %s %s: net %.2f",
            record.id, employee.employee_id, month, year, record.net_payable_salary,
        )
        return record

    def _attendance_overrides(self, attendance: SalaryAttendance, data: Any) -> SalaryAttendance:
        if not isinstance(data, Mapping):
            raise ValidationError("attendance must be an object")
        changes: dict[str, Any] = {}
        if data.get("workingDays") is not None:
            changes["working_days"] = parse_int(data["workingDays"], "workingDays", minimum=1, maximum=31)
        if data.get("overtimeHours") is not None:
            changes["overtime_hours"] = parse_amount(data["overtimeHours"], "overtimeHours")
        if data.get("noPayLeave") is not None:
            changes["no_pay_leave"] = parse_amount(data["noPayLeave"], "noPayLeave")
        return replace(attendance, **changes)

    def get(self, salary_id: int) -> SalaryRecord:
        record = self._salaries.get_by_id(salary_id)
        if not record:
            raise NotFoundError("Salary record not found")
        return record

    def get_for(self, salary_id: int, *, user: User) -> SalaryRecord:
        record = self.get(salary_id)
        if record.employee_id != user.id and user.role not in (Role.ADMIN, Role.HR):
            raise AuthorizationError("Access denied")
        return record

    def list_all(self, page: PageRequest, *, filters: Mapping[str, Any]) -> Page[SalaryRecord]:
        status = optional_enum(filters.get("status"), SalaryStatus, "status")
        return self._salaries.list_salaries(
            page=page,
            month=parse_month(filters["month"]) if filters.get("month") else None,
            year=parse_int(filters["year"], "year") if filters.get("year") else None,
            employee_id=parse_int(filters["employee"], "employee") if filters.get("employee") else None,
            status=status.value if status else None,
        )

    def my_salaries(self, user: User, page: PageRequest, *, filters: Mapping[str, Any]) -> Page[SalaryRecord]:
        return self._salaries.list_salaries(
            page=page,
            employee_id=int(user.id),
            year=parse_int(filters["year"], "year") if filters.get("year") else None,
        )

    def _unpaid(self, salary_id: int, action: str) -> SalaryRecord:
        record = self.get(salary_id)
        if record.status == SalaryStatus.PAID:
            raise ValidationError(f"Cannot {action} salary record that has been paid")
        return record

    def update(self, salary_id: int, data: Mapping[str, Any]) -> SalaryRecord:
        record = _operator_inputs(self._unpaid(salary_id, "update"), data)
        if data.get("basicSalary") is not None:
            record = replace(record, basic_salary=parse_amount(data["basicSalary"], "basicSalary"))
        if data.get("attendance"):
            record = replace(record, attendance=self._attendance_overrides(record.attendance, data["attendance"]))
        record = self._calculator.derive(record)
        self._salaries.update(record)
        return record

    def delete(self, salary_id: int) -> None:
        self._unpaid(salary_id, "delete")
        self._salaries.delete(salary_id)
        logger.info("salary %s deleted", salary_id)

    def approve(self, salary_id: int, *, approver_id: int, now: Optional[datetime] = None) -> SalaryRecord:
        record = self.get(salary_id)
        if record.status != SalaryStatus.DRAFT:
            raise ConflictError("Only draft salary records can be approved")
        record = replace(record, status=SalaryStatus.APPROVED, approved_by=approver_id, approved_date=now or now_local())
        self._salaries.update(record)
        logger.info("salary %s approved by %s", salary_id, approver_id)
        return record

    def mark_paid(self, salary_id: int, *, now: Optional[datetime] = None) -> SalaryRecord:
        record = self.get(salary_id)
        if record.status != SalaryStatus.APPROVED:
            raise ConflictError("Only approved salary records can be marked as paid")
        record = replace(record, status=SalaryStatus.PAID, paid_date=now or now_local())
        self._salaries.update(record)
        logger.info("salary %s marked paid", salary_id)
        return record

    def stats(self, *, filters: Mapping[str, Any]) -> dict:
        records = self._salaries.list_matching(
            month=parse_month(filters["month"]) if filters.get("month") else None,
            year=parse_int(filters["year"], "year") if filters.get("year") else None,
        )
        statuses = Counter(r.status for r in records)

        by_department: dict[str, list[SalaryRecord]] = defaultdict(list)
        by_status: dict[str, list[SalaryRecord]] = defaultdict(list)
        for r in records:
            by_department[r.department or "Unknown"].append(r)
            by_status[r.status.value].append(r)

        return {
            "totalSalaries": len(records),
            "draftSalaries": statuses[SalaryStatus.DRAFT],
            "approvedSalaries": statuses[SalaryStatus.APPROVED],
            "paidSalaries": statuses[SalaryStatus.PAID],
            "totalPayroll": sum(r.net_payable_salary for r in records),
            "totalBasicSalary": sum(r.basic_salary for r in records),
            "departmentStats": [
                {
                    "_id": name,
                    "totalEmployees": len(items),
                    "totalSalary": sum(r.net_payable_salary for r in items),
                    "avgSalary": round(sum(r.net_payable_salary for r in items) / len(items), 2),
                }
                for name, items in sorted(by_department.items())
            ],
            "statusStats": [
                {"_id": name, "count": len(items), "totalAmount": sum(r.net_payable_salary for r in items)}
                for name, items in sorted(by_status.items())
            ],
        }
