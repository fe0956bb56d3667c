"""In-memory repositories for exercising services without MySQL."""
from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

from workpulse.common.pagination import Page, PageRequest
from workpulse.core.constants import MONTHS
from workpulse.core.exceptions import ConflictError
from workpulse.leaves.model import LeaveBalance, LeavePolicy, LeaveRequest
from workpulse.payroll.model import SalaryRecord
from workpulse.schedules.model import Modification, Schedule
from workpulse.attendance.model import AttendanceRecord
from workpulse.users.model import User


def paginate(items: Sequence, request: PageRequest) -> Page:
    return Page(items=list(items[request.offset:request.offset + request.limit]), total=len(items), request=request)


def _within(value: date, start: Optional[date], end: Optional[date]) -> bool:
    return (start is None or value >= start) and (end is None or value <= end)


class _Store:
    def __init__(self):
        self.items: dict[int, object] = {}
        self._next_id = 0

    def next_id(self) -> int:
        self._next_id += 1
        return self._next_id


class InMemoryUsers(_Store):
    def add(self, user: User) -> User:
        user = replace(user, id=self.create(user))
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.items.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.items.values() if u.email == email.lower()), None)

    def get_by_employee_id(self, employee_id: str) -> Optional[User]:
        return next((u for u in self.items.values() if u.employee_id == employee_id), None)

    def get_by_reset_token(self, token: str) -> Optional[User]:
        return next((u for u in self.items.values() if u.reset_password_token == token), None)

    def _matches(self, user: User, search: Optional[str]) -> bool:
        if not search:
            return True
        needle = search.lower()
        return any(needle in value.lower() for value in (user.first_name, user.last_name, user.employee_id))

    def list_users(
        self,
        *,
        page: PageRequest,
        department=None,
        role=None,
        employment_status=None,
        is_active=None,
        search=None,
    ) -> Page[User]:
        users = [
            u for u in self.items.values()
            if (not department or u.department == department)
            and (not role or u.role.value == role)
            and (not employment_status or u.employment_status.value == employment_status)
            and (is_active is None or u.is_active == is_active)
            and self._matches(u, search)
        ]
        return paginate(users, page)

    def list_all(self) -> Sequence[User]:
        return list(self.items.values())

    def find_ids(self, *, department=None, search=None) -> Sequence[int]:
        return [
            u.id for u in self.items.values()
            if (not department or u.department == department) and self._matches(u, search)
        ]

    def max_employee_id_with_prefix(self, prefix: str) -> Optional[str]:
        ids = [u.employee_id for u in self.items.values() if u.employee_id.startswith(prefix)]
        return max(ids) if ids else None

    def create(self, user: User) -> int:
        for other in self.items.values():
            if other.email == user.email or other.employee_id == user.employee_id:
                raise ConflictError("Email or employee ID already exists")
        user_id = self.next_id()
        self.items[user_id] = replace(user, id=user_id)
        return user_id

    def update(self, user: User) -> bool:
        if user.id not in self.items:
            return False
        self.items[user.id] = user
        return True

    def delete(self, user_id: int) -> bool:
        return self.items.pop(int(user_id), None) is not None


class InMemoryAttendance(_Store):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.items.get(int(attendance_id))

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return next((r for r in self.items.values() if r.user_id == user_id and r.work_date == work_date), None)

    def create(self, record: AttendanceRecord) -> int:
        if self.get_for_user_and_date(record.user_id, record.work_date):
            raise ConflictError("You have already clocked in today")
        record_id = self.next_id()
        self.items[record_id] = replace(record, id=record_id)
        return record_id

    def update(self, record: AttendanceRecord) -> bool:
        self.items[record.id] = record
        return True

    def list_between(self, *, start_date=None, end_date=None, user_ids=None, status=None) -> Sequence[AttendanceRecord]:
        records = [
            r for r in self.items.values()
            if _within(r.work_date, start_date, end_date)
            and (user_ids is None or r.user_id in user_ids)
            and (not status or r.status.value == status)
        ]
        return sorted(records, key=lambda r: r.work_date, reverse=True)

    def list_records(self, *, page, user_ids=None, start_date=None, end_date=None, status=None) -> Page[AttendanceRecord]:
        return paginate(
            self.list_between(start_date=start_date, end_date=end_date, user_ids=user_ids, status=status), page
        )


class InMemorySchedules(_Store):
    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        return self.items.get(int(schedule_id))

    def find_active(self, *, employee_id: int, work_date: date, exclude_id: Optional[int] = None) -> Optional[Schedule]:
        return next(
            (
                s for s in self.items.values()
                if s.employee_id == employee_id and s.work_date == work_date and s.is_active and s.id != exclude_id
            ),
            None,
        )

    def create(self, schedule: Schedule) -> int:
        if schedule.is_active and self.find_active(employee_id=schedule.employee_id, work_date=schedule.work_date):
            raise ConflictError("Employee already has a schedule for this date")
        schedule_id = self.next_id()
        self.items[schedule_id] = replace(schedule, id=schedule_id)
        return schedule_id

    def update(self, schedule: Schedule, *, modification: Optional[Modification] = None) -> bool:
        self.items[schedule.id] = schedule
        return True

    def delete(self, schedule_id: int) -> bool:
        return self.items.pop(int(schedule_id), None) is not None

    def list_between(self, *, start_date=None, end_date=None, employee_id=None, department=None) -> Sequence[Schedule]:
        return sorted(
            (
                s for s in self.items.values()
                if _within(s.work_date, start_date, end_date)
                and (employee_id is None or s.employee_id == employee_id)
                and (not department or s.department == department)
            ),
            key=lambda s: s.work_date,
        )

    def list_schedules(
        self, *, page, employee_id=None, department=None, status=None, shift_type=None, start_date=None, end_date=None
    ) -> Page[Schedule]:
        items = [
            s for s in self.list_between(
                start_date=start_date, end_date=end_date, employee_id=employee_id, department=department
            )
            if (not status or s.status.value == status) and (not shift_type or s.shift.type.value == shift_type)
        ]
        return paginate(items, page)


class InMemoryLeaves(_Store):
    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        return self.items.get(int(leave_id))

    def create(self, leave: LeaveRequest) -> int:
        leave_id = self.next_id()
        self.items[leave_id] = replace(leave, id=leave_id)
        return leave_id

    def update(self, leave: LeaveRequest) -> bool:
        self.items[leave.id] = leave
        return True

    def list_overlapping(self, *, employee_id, start_date, end_date, statuses, exclude_id=None) -> Sequence[LeaveRequest]:
        return [
            l for l in self.items.values()
            if l.employee_id == employee_id
            and l.start_date <= end_date
            and l.end_date >= start_date
            and l.status.value in statuses
            and l.id != exclude_id
        ]

    def list_matching(self, *, employee_ids=None, status=None, leave_type=None, start_from=None, start_to=None):
        leaves = [
            l for l in self.items.values()
            if (employee_ids is None or l.employee_id in employee_ids)
            and (not status or l.status.value == status)
            and (not leave_type or l.type.value == leave_type)
            and _within(l.start_date, start_from, start_to)
        ]
        return sorted(leaves, key=lambda l: l.applied_date, reverse=True)

    def list_leaves(self, *, page, **filters) -> Page[LeaveRequest]:
        return paginate(self.list_matching(**filters), page)


class InMemoryLeaveBalances(_Store):
    def get(self, employee_id: int, year: int) -> Optional[LeaveBalance]:
        return next((b for b in self.items.values() if b.employee_id == employee_id and b.year == year), None)

    def create(self, balance: LeaveBalance) -> int:
        if self.get(balance.employee_id, balance.year):
            raise ConflictError("Leave balance already exists for this employee and year")
        balance_id = self.next_id()
        self.items[balance_id] = replace(balance, id=balance_id)
        return balance_id

    def save(self, balance: LeaveBalance) -> None:
        self.items[balance.id] = balance


class InMemoryLeavePolicies(_Store):
    def get_by_id(self, policy_id: int) -> Optional[LeavePolicy]:
        return self.items.get(int(policy_id))

    def get_by_type(self, leave_type: str) -> Optional[LeavePolicy]:
        return next((p for p in self.items.values() if p.type.value == leave_type), None)

    def list_policies(self, *, is_active=None) -> Sequence[LeavePolicy]:
        return [p for p in self.items.values() if is_active is None or p.is_active == is_active]

    def create(self, policy: LeavePolicy) -> int:
        if self.get_by_type(policy.type.value):
            raise ConflictError("Leave policy with this type already exists")
        policy_id = self.next_id()
        self.items[policy_id] = replace(policy, id=policy_id)
        return policy_id

    def update(self, policy: LeavePolicy) -> bool:
        self.items[policy.id] = policy
        return True

    def delete(self, policy_id: int) -> bool:
        return self.items.pop(int(policy_id), None) is not None


class InMemorySalaries(_Store):
    def get_by_id(self, salary_id: int) -> Optional[SalaryRecord]:
        return self.items.get(int(salary_id))

    def get_for_period(self, employee_id: int, month: str, year: int) -> Optional[SalaryRecord]:
        return next(
            (s for s in self.items.values() if (s.employee_id, s.month, s.year) == (employee_id, month, year)),
            None,
        )

    def create(self, record: SalaryRecord) -> int:
        if self.get_for_period(record.employee_id, record.month, record.year):
            raise ConflictError("Salary record already exists for this employee and month")
        salary_id = self.next_id()
        self.items[salary_id] = replace(record, id=salary_id)
        return salary_id

    def update(self, record: SalaryRecord) -> bool:
        self.items[record.id] = record
        return True

    def delete(self, salary_id: int) -> bool:
        return self.items.pop(int(salary_id), None) is not None

    def list_matching(self, *, month=None, year=None) -> Sequence[SalaryRecord]:
        records = [
            s for s in self.items.values()
            if (month is None or s.month == month) and (year is None or s.year == year)
        ]
        return sorted(records, key=lambda s: (s.year, MONTHS.index(s.month)), reverse=True)

    def list_salaries(self, *, page, month=None, year=None, employee_id=None, status=None) -> Page[SalaryRecord]:
        records = [
            s for s in self.list_matching(month=month, year=year)
            if (employee_id is None or s.employee_id == employee_id) and (status is None or s.status.value == status)
        ]
        return paginate(records, page)
