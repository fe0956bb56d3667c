from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .auth.tokens import TokenService
from .core.constants import DEFAULT_LATE_GRACE_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .leaves.balance_service import LeaveBalanceService
from .leaves.mysql_balance_repository import MySQLLeaveBalanceRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.mysql_policy_repository import MySQLLeavePolicyRepository
from .leaves.policy_service import LeavePolicyService
from .leaves.repository import LeaveBalanceRepository, LeavePolicyRepository, LeaveRepository
from .leaves.service import LeaveService
from .payroll.mysql_salary_repository import MySQLSalaryRepository
from .payroll.repository import SalaryRepository
from .payroll.service import SalaryService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AdminService, AuthService, EmployeeService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    schedules_repo: ScheduleRepository
    leaves_repo: LeaveRepository
    leave_balances_repo: LeaveBalanceRepository
    leave_policies_repo: LeavePolicyRepository
    salaries_repo: SalaryRepository

    auth_service: AuthService
    employee_service: EmployeeService
    admin_service: AdminService
    attendance_service: AttendanceService
    schedule_service: ScheduleService
    leave_service: LeaveService
    leave_balance_service: LeaveBalanceService
    leave_policy_service: LeavePolicyService
    salary_service: SalaryService


def assemble(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    schedules_repo: ScheduleRepository,
    leaves_repo: LeaveRepository,
    leave_balances_repo: LeaveBalanceRepository,
    leave_policies_repo: LeavePolicyRepository,
    salaries_repo: SalaryRepository,
    tokens: TokenService,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
) -> Container:
    """Wire services over whatever repositories are given (MySQL or in-memory)."""
    leave_balance_service = LeaveBalanceService(leave_balances_repo, leave_policies_repo, users_repo)

    return Container(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        schedules_repo=schedules_repo,
        leaves_repo=leaves_repo,
        leave_balances_repo=leave_balances_repo,
        leave_policies_repo=leave_policies_repo,
        salaries_repo=salaries_repo,
        auth_service=AuthService(users_repo, tokens),
        employee_service=EmployeeService(users_repo),
        admin_service=AdminService(users_repo),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            schedules_repo,
            strategy_factory=AttendanceStrategyFactory(),
            grace_minutes=grace_minutes,
        ),
        schedule_service=ScheduleService(schedules_repo, users_repo),
        leave_service=LeaveService(leaves_repo, users_repo, leave_balance_service, leave_policies_repo),
        leave_balance_service=leave_balance_service,
        leave_policy_service=LeavePolicyService(leave_policies_repo),
        salary_service=SalaryService(salaries_repo, users_repo, leaves_repo, schedules_repo),
    )


def build_container(*, db_config: dict, settings: Optional[Any] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    tokens = TokenService(
        str(getattr(settings, "JWT_SECRET", "")),
        expire_days=int(getattr(settings, "JWT_EXPIRE_DAYS", 30)),
    )

    return assemble(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        leave_balances_repo=MySQLLeaveBalanceRepository(conn),
        leave_policies_repo=MySQLLeavePolicyRepository(conn),
        salaries_repo=MySQLSalaryRepository(conn),
        tokens=tokens,
        grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
    )
