from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import EmploymentStatus, Gender, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import Address, BankDetails, EmergencyContact, LeaveAllowance, User
from .repository import UserRepository

_COLUMNS = (
    "employee_id", "email", "password_hash", "role", "first_name", "last_name", "phone_number",
    "department", "designation", "date_of_birth", "gender",
    "address_street", "address_city", "address_state", "address_zip_code", "address_country",
    "emergency_name", "emergency_relationship", "emergency_phone",
    "joining_date", "employment_status", "profile_picture", "is_active", "password_set", "last_login",
    "reset_password_token", "reset_password_expire", "basic_salary", "salary_grade",
    "epf_no", "epf_joining_date", "bank_name", "bank_account_no", "bank_branch_name", "bank_branch_code",
    "annual_leave", "casual_leave", "sick_leave", "maternity_leave", "paternity_leave",
    "monthly_leave_allowance",
)

_SELECT = f"SELECT id, {', '.join(_COLUMNS)} FROM users"


def _to_user(r: Dict[str, Any]) -> User:
    return User(
        id=int(r["id"]),
        employee_id=r["employee_id"],
        email=r["email"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        first_name=r["first_name"],
        last_name=r["last_name"],
        phone_number=r.get("phone_number"),
        department=r["department"],
        designation=r["designation"],
        date_of_birth=r.get("date_of_birth"),
        gender=Gender(r["gender"]) if r.get("gender") else None,
        address=Address(
            street=r.get("address_street"),
            city=r.get("address_city"),
            state=r.get("address_state"),
            zip_code=r.get("address_zip_code"),
            country=r.get("address_country"),
        ),
        emergency_contact=EmergencyContact(
            name=r.get("emergency_name"),
            relationship=r.get("emergency_relationship"),
            phone_number=r.get("emergency_phone"),
        ),
        joining_date=r["joining_date"],
        employment_status=EmploymentStatus(r["employment_status"]),
        profile_picture=r.get("profile_picture"),
        is_active=bool(r["is_active"]),
        password_set=bool(r["password_set"]),
        last_login=r.get("last_login"),
        reset_password_token=r.get("reset_password_token"),
        reset_password_expire=r.get("reset_password_expire"),
        basic_salary=as_float(r.get("basic_salary")),
        salary_grade=r.get("salary_grade") or "Grade-1",
        epf_no=r.get("epf_no"),
        epf_joining_date=r.get("epf_joining_date"),
        bank_details=BankDetails(
            bank_name=r.get("bank_name"),
            account_no=r.get("bank_account_no"),
            branch_name=r.get("bank_branch_name"),
            branch_code=r.get("bank_branch_code"),
        ),
        leave_allowance=LeaveAllowance(
            annual=int(r["annual_leave"]),
            casual=int(r["casual_leave"]),
            sick=int(r["sick_leave"]),
            maternity=int(r["maternity_leave"]),
            paternity=int(r["paternity_leave"]),
        ),
        monthly_leave_allowance=int(r["monthly_leave_allowance"]),
    )


def _to_params(user: User) -> tuple:
    return (
        user.employee_id, user.email, user.password_hash, user.role.value, user.first_name, user.last_name,
        user.phone_number, user.department, user.designation, user.date_of_birth,
        user.gender.value if user.gender else None,
        user.address.street, user.address.city, user.address.state, user.address.zip_code, user.address.country,
        user.emergency_contact.name, user.emergency_contact.relationship, user.emergency_contact.phone_number,
        user.joining_date, user.employment_status.value, user.profile_picture, int(user.is_active),
        int(user.password_set), user.last_login, user.reset_password_token, user.reset_password_expire,
        user.basic_salary, user.salary_grade, user.epf_no, user.epf_joining_date,
        user.bank_details.bank_name, user.bank_details.account_no, user.bank_details.branch_name,
        user.bank_details.branch_code,
        user.leave_allowance.annual, user.leave_allowance.casual, user.leave_allowance.sick,
        user.leave_allowance.maternity, user.leave_allowance.paternity,
        user.monthly_leave_allowance,
    )


def _search_clause(search: str, params: list) -> str:
    like = f"%{search}%"
    params.extend([like, like, like, like])
    return "(first_name LIKE %s OR last_name LIKE %s OR employee_id LIKE %s OR email LIKE %s)"


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} LIMIT 1", (value,))
            r = fetchone(cur)
            return _to_user(r) if r else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("id=%s", int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email=%s", email.lower())

    def get_by_employee_id(self, employee_id: str) -> Optional[User]:
        return self._get_one("employee_id=%s", employee_id)

    def get_by_reset_token(self, token: str) -> Optional[User]:
        return self._get_one("reset_password_token=%s", token)

    def list_users(
        self,
        *,
        page: PageRequest,
        department: Optional[str] = None,
        role: Optional[str] = None,
        employment_status: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Page[User]:
        clauses = ["1=1"]
        params: list[object] = []
        if department:
            clauses.append("department=%s")
            params.append(department)
        if role:
            clauses.append("role=%s")
            params.append(role)
        if employment_status:
            clauses.append("employment_status=%s")
            params.append(employment_status)
        if is_active is not None:
            clauses.append("is_active=%s")
            params.append(int(is_active))
        if search:
            clauses.append(_search_clause(search, params))
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM users WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY created_at DESC, id DESC LIMIT %s OFFSET %s",
                tuple(params) + (page.limit, page.offset),
            )
            items = [_to_user(r) for r in fetchall(cur)]
        return Page(items=items, total=total, request=page)

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} ORDER BY id")
            return [_to_user(r) for r in fetchall(cur)]

    def find_ids(self, *, department: Optional[str] = None, search: Optional[str] = None) -> Sequence[int]:
        clauses = ["1=1"]
        params: list[object] = []
        if department:
            clauses.append("department=%s")
            params.append(department)
        if search:
            clauses.append(_search_clause(search, params))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT id FROM users WHERE {' AND '.join(clauses)}", tuple(params))
            return [int(r["id"]) for r in fetchall(cur)]

    def max_employee_id_with_prefix(self, prefix: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT MAX(employee_id) AS latest FROM users WHERE employee_id LIKE %s", (f"{prefix}%",))
            r = fetchone(cur)
            return r["latest"] if r else None

    def create(self, user: User) -> int:
        placeholders = ", ".join(["%s"] * len(_COLUMNS))
        with db_cursor(self._conn_factory, duplicate_message="Email or employee ID already exists") as (_, cur):
            cur.execute(
                f"INSERT INTO users({', '.join(_COLUMNS)}) VALUES({placeholders})",
                _to_params(user),
            )
            return int(cur.lastrowid)

    def update(self, user: User) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _COLUMNS)
        with db_cursor(self._conn_factory, duplicate_message="Email or employee ID already exists") as (_, cur):
            cur.execute(f"UPDATE users SET {assignments} WHERE id=%s", _to_params(user) + (int(user.id),))
            return cur.rowcount > 0

    def delete(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE id=%s", (int(user_id),))
            return cur.rowcount > 0
