from __future__ import annotations

import hashlib
import logging
import secrets
from collections import Counter
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import (
    optional_date,
    optional_enum,
    parse_amount,
    parse_bool,
    parse_enum,
    parse_int,
    require_email,
    require_min_length,
    require_non_empty,
)
from ..core.constants import MIN_PASSWORD_LENGTH, RESET_TOKEN_MINUTES
from ..core.enums import EmploymentStatus, Gender, Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..auth.tokens import TokenService
from .model import Address, BankDetails, EmergencyContact, LeaveAllowance, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


def _hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _temporary_password() -> str:
    return secrets.token_urlsafe(9)


def _address(data: Any) -> Address:
    data = data or {}
    return Address(
        street=data.get("street"),
        city=data.get("city"),
        state=data.get("state"),
        zip_code=data.get("zipCode"),
        country=data.get("country"),
    )


def _emergency_contact(data: Any) -> EmergencyContact:
    data = data or {}
    return EmergencyContact(
        name=data.get("name"),
        relationship=data.get("relationship"),
        phone_number=data.get("phoneNumber"),
    )


def _profile_changes(data: Mapping[str, Any]) -> dict:
    """Fields a user may change on their own record."""
    changes: dict[str, Any] = {}
    if data.get("firstName"):
        changes["first_name"] = require_non_empty(data["firstName"], "First name")
    if data.get("lastName"):
        changes["last_name"] = require_non_empty(data["lastName"], "Last name")
    if data.get("phoneNumber"):
        changes["phone_number"] = str(data["phoneNumber"]).strip()
    if data.get("dateOfBirth"):
        changes["date_of_birth"] = optional_date(data["dateOfBirth"], "dateOfBirth")
    if data.get("address"):
        changes["address"] = _address(data["address"])
    if data.get("emergencyContact"):
        changes["emergency_contact"] = _emergency_contact(data["emergencyContact"])
    if data.get("profilePicture"):
        changes["profile_picture"] = str(data["profilePicture"])
    return changes


def _employment_changes(data: Mapping[str, Any]) -> dict:
    """Fields HR may change on any employee record (never the password)."""
    changes = _profile_changes(data)
    if data.get("email"):
        changes["email"] = require_email(data["email"])
    if data.get("department"):
        changes["department"] = require_non_empty(data["department"], "Department")
    if data.get("designation"):
        changes["designation"] = require_non_empty(data["designation"], "Designation")
    if data.get("gender"):
        changes["gender"] = parse_enum(data["gender"], Gender, "gender")
    if data.get("role"):
        changes["role"] = parse_enum(data["role"], Role, "role")
    if data.get("employmentStatus"):
        changes["employment_status"] = parse_enum(data["employmentStatus"], EmploymentStatus, "employmentStatus")
    if "isActive" in data:
        changes["is_active"] = parse_bool(data["isActive"])
    if data.get("joiningDate"):
        changes["joining_date"] = optional_date(data["joiningDate"], "joiningDate")
    return changes


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


class AuthService:
    """Use cases around credentials: register, login, password changes."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    @property
    def tokens(self) -> TokenService:
        return self._tokens

    def current_user(self, token: str) -> User:
        user_id = self._tokens.verify(token)
        user = self._users.get_by_id(user_id)
        if not user:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("Account has been deactivated")
        return user

    def register(self, data: Mapping[str, Any]) -> LoginResult:
        email = require_email(data.get("email"))
        employee_id = require_non_empty(data.get("employeeId"), "Employee ID")
        password = require_min_length(data.get("password"), "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email) or self._users.get_by_employee_id(employee_id):
            raise ConflictError("User with this email or employee ID already exists")

        user = User(
            id=None,
            employee_id=employee_id,
            email=email,
            password_hash=generate_password_hash(password),
            role=optional_enum(data.get("role"), Role, "role") or Role.EMPLOYEE,
            first_name=require_non_empty(data.get("firstName"), "First name"),
            last_name=require_non_empty(data.get("lastName"), "Last name"),
            department=require_non_empty(data.get("department"), "Department"),
            designation=require_non_empty(data.get("designation"), "Designation"),
            joining_date=optional_date(data.get("joiningDate"), "joiningDate") or now_local().date(),
            phone_number=data.get("phoneNumber"),
            password_set=True,
        )
        user_id = self._users.create(user)
        logger.info("registered user %s (%s)", employee_id, email)
        return LoginResult(token=self._tokens.issue(user_id), user=replace(user, id=user_id))

    def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        if not email or not password:
            raise ValidationError("Please provide email and password")

        user = self._users.get_by_email(str(email).strip().lower())
        if not user:
            logger.warning("login failed: unknown email %s", email)
            raise AuthenticationError("Invalid credentials")

        # Deactivated accounts are refused before the password is looked at
        if not user.is_active:
            logger.warning("login refused for deactivated user %s", user.employee_id)
            raise AuthenticationError("Your account has been deactivated. Please contact admin.")

        if not check_password_hash(user.password_hash, password):
            logger.warning("login failed: bad password for %s", user.employee_id)
            raise AuthenticationError("Invalid credentials")

        user = replace(user, last_login=now_local())
        self._users.update(user)
        return LoginResult(token=self._tokens.issue(int(user.id)), user=user)

    def update_profile(self, user_id: int, data: Mapping[str, Any]) -> User:
        user = self._get(user_id)
        updated = replace(user, **_profile_changes(data))
        self._users.update(updated)
        return updated

    def update_password(self, user_id: int, current_password: Optional[str], new_password: Optional[str]) -> LoginResult:
        user = self._get(user_id)
        if not current_password or not check_password_hash(user.password_hash, current_password):
            raise AuthenticationError("Current password is incorrect")
        new_password = require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)

        updated = replace(user, password_hash=generate_password_hash(new_password), password_set=True)
        self._users.update(updated)
        return LoginResult(token=self._tokens.issue(int(user.id)), user=updated)

    def forgot_password(self, email: Optional[str], *, now: Optional[datetime] = None) -> str:
        """Issue a reset token valid for a short window; returns the raw token."""
        now = now or now_local()
        user = self._users.get_by_email(str(email or "").strip().lower())
        if not user:
            raise NotFoundError("No user found with that email")

        token = secrets.token_hex(20)
        self._users.update(
            replace(
                user,
                reset_password_token=_hash_reset_token(token),
                reset_password_expire=now + timedelta(minutes=RESET_TOKEN_MINUTES),
            )
        )
        return token

    def reset_password(self, token: str, new_password: Optional[str], *, now: Optional[datetime] = None) -> LoginResult:
        now = now or now_local()
        user = self._users.get_by_reset_token(_hash_reset_token(token))
        if not user or not user.reset_password_expire or user.reset_password_expire <= now:
            raise ValidationError("Invalid or expired reset token")
        new_password = require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)

        updated = replace(
            user,
            password_hash=generate_password_hash(new_password),
            password_set=True,
            reset_password_token=None,
            reset_password_expire=None,
        )
        self._users.update(updated)
        return LoginResult(token=self._tokens.issue(int(user.id)), user=updated)

    def _get(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user


@dataclass(frozen=True)
class CreatedEmployee:
    employee: User
    temp_password: Optional[str] = None


class EmployeeService:
    """HR-facing employee records."""

    def __init__(self, users: UserRepository):
        self._users = users

    def generate_employee_id(self, *, today: Optional[date] = None) -> str:
        prefix = f"EMP{(today or now_local().date()).year}"
        latest = self._users.max_employee_id_with_prefix(prefix)
        next_number = 1
        if latest and latest[len(prefix):].isdigit():
            next_number = int(latest[len(prefix):]) + 1
        return f"{prefix}{next_number:04d}"

    def list_employees(self, page: PageRequest, *, filters: Mapping[str, Any]) -> Page[User]:
        return self._users.list_users(
            page=page,
            department=filters.get("department") or None,
            role=filters.get("role") or None,
            employment_status=filters.get("status") or None,
            search=filters.get("search") or None,
        )

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Employee not found")
        return user

    def create(self, data: Mapping[str, Any], *, today: Optional[date] = None) -> CreatedEmployee:
        today = today or now_local().date()
        email = require_email(data.get("email"))
        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")

        password = data.get("password")
        temp_password = None
        password_set = data.get("passwordSet") is not False
        if password:
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        else:
            # HR registration without a password: admin must set one later
            password = temp_password = _temporary_password()
            password_set = False

        employee = User(
            id=None,
            employee_id=self.generate_employee_id(today=today),
            email=email,
            password_hash=generate_password_hash(password),
            role=optional_enum(data.get("role"), Role, "role") or Role.EMPLOYEE,
            first_name=require_non_empty(data.get("firstName"), "First name"),
            last_name=require_non_empty(data.get("lastName"), "Last name"),
            department=require_non_empty(data.get("department"), "Department"),
            designation=require_non_empty(data.get("designation"), "Designation"),
            joining_date=today,
            phone_number=data.get("phoneNumber"),
            date_of_birth=optional_date(data.get("dateOfBirth"), "dateOfBirth"),
            gender=optional_enum(data.get("gender"), Gender, "gender"),
            address=_address(data.get("address")),
            emergency_contact=_emergency_contact(data.get("emergencyContact")),
            password_set=password_set,
        )
        user_id = self._users.create(employee)
        logger.info("employee %s created (password_set=%s)", employee.employee_id, password_set)
        return CreatedEmployee(employee=replace(employee, id=user_id), temp_password=temp_password)

    def update(self, user_id: int, data: Mapping[str, Any]) -> User:
        employee = self.get(user_id)
        changes = _employment_changes(data)
        if "email" in changes and changes["email"] != employee.email:
            other = self._users.get_by_email(changes["email"])
            if other and other.id != employee.id:
                raise ConflictError("User with this email already exists")
        updated = replace(employee, **changes)
        self._users.update(updated)
        return updated

    def delete(self, user_id: int) -> None:
        employee = self.get(user_id)
        if employee.role == Role.ADMIN:
            raise ValidationError("Cannot delete admin users")
        self._users.delete(user_id)
        logger.info("employee %s deleted", employee.employee_id)

    def set_password(self, user_id: int, new_password: Optional[str]) -> User:
        if not new_password:
            raise ValidationError("New password is required")
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        employee = self.get(user_id)
        updated = replace(employee, password_hash=generate_password_hash(new_password), password_set=True)
        self._users.update(updated)
        return updated

    def update_salary_details(self, user_id: int, data: Mapping[str, Any]) -> User:
        employee = self.get(user_id)
        changes: dict[str, Any] = {}
        if data.get("basicSalary") is not None:
            changes["basic_salary"] = parse_amount(data["basicSalary"], "basicSalary")
        if data.get("salaryGrade") is not None:
            changes["salary_grade"] = str(data["salaryGrade"])
        if data.get("epfNo") is not None:
            changes["epf_no"] = str(data["epfNo"])
        if data.get("epfJoiningDate") is not None:
            changes["epf_joining_date"] = optional_date(data["epfJoiningDate"], "epfJoiningDate")
        if data.get("bankDetails") is not None:
            bank = data["bankDetails"] or {}
            changes["bank_details"] = BankDetails(
                bank_name=bank.get("bankName"),
                account_no=bank.get("accountNo"),
                branch_name=bank.get("branchName"),
                branch_code=bank.get("branchCode"),
            )
        if data.get("monthlyLeaveAllowance") is not None:
            changes["monthly_leave_allowance"] = parse_int(data["monthlyLeaveAllowance"], "monthlyLeaveAllowance", minimum=0)
        if data.get("leaveAllowance") is not None:
            current = employee.leave_allowance
            allowance = data["leaveAllowance"] or {}
            changes["leave_allowance"] = LeaveAllowance(
                **{
                    name: parse_int(allowance.get(name, getattr(current, name)), f"leaveAllowance.{name}", minimum=0)
                    for name in ("annual", "casual", "sick", "maternity", "paternity")
                }
            )
        updated = replace(employee, **changes)
        self._users.update(updated)
        return updated

    def stats(self) -> dict:
        users = self._users.list_all()
        return {
            "totalEmployees": len(users),
            "activeEmployees": sum(1 for u in users if u.employment_status == EmploymentStatus.ACTIVE),
            "inactiveEmployees": sum(1 for u in users if u.employment_status == EmploymentStatus.INACTIVE),
            "departmentStats": _distribution(u.department for u in users),
            "roleStats": _distribution(u.role.value for u in users),
        }


def _distribution(values) -> list[dict]:
    return [{"_id": key, "count": count} for key, count in sorted(Counter(values).items())]


class AdminService:
    """Account administration reserved for admins."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_users(self, page: PageRequest, *, filters: Mapping[str, Any]) -> Page[User]:
        return self._users.list_users(
            page=page,
            role=filters.get("role") or None,
            employment_status=filters.get("status") or None,
            search=filters.get("search") or None,
        )

    def activate(self, user_id: int) -> User:
        user = self._get(user_id)
        updated = replace(user, is_active=True, employment_status=EmploymentStatus.ACTIVE)
        self._users.update(updated)
        logger.info("user %s activated", user.employee_id)
        return updated

    def deactivate(self, user_id: int) -> User:
        user = self._get(user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Cannot deactivate admin users")
        updated = replace(user, is_active=False, employment_status=EmploymentStatus.INACTIVE)
        self._users.update(updated)
        logger.info("user %s deactivated", user.employee_id)
        return updated

    def change_role(self, user_id: int, role: Any) -> User:
        try:
            new_role = Role(role)
        except ValueError:
            raise ValidationError("Invalid role") from None
        user = self._get(user_id)
        updated = replace(user, role=new_role)
        self._users.update(updated)
        return updated

    def reset_password(self, user_id: int, new_password: Optional[str]) -> None:
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        user = self._get(user_id)
        self._users.update(replace(user, password_hash=generate_password_hash(new_password)))

    def temporary_password(self, user_id: int) -> str:
        user = self._get(user_id)
        password = _temporary_password()
        self._users.update(replace(user, password_hash=generate_password_hash(password)))
        return password

    def system_stats(self) -> dict:
        users = self._users.list_all()
        return {
            "totalUsers": len(users),
            "activeUsers": sum(1 for u in users if u.is_active),
            "inactiveUsers": sum(1 for u in users if not u.is_active),
            "roleDistribution": _distribution(u.role.value for u in users),
            "departmentDistribution": _distribution(u.department for u in users),
            "employmentStatusDistribution": _distribution(u.employment_status.value for u in users),
        }

    def _get(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
