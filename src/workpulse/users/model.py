from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_MONTHLY_LEAVE_ALLOWANCE
from ..core.enums import EmploymentStatus, Gender, Role


@dataclass(frozen=True)
class Address:
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class EmergencyContact:
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone_number: Optional[str] = None


@dataclass(frozen=True)
class BankDetails:
    bank_name: Optional[str] = None
    account_no: Optional[str] = None
    branch_name: Optional[str] = None
    branch_code: Optional[str] = None


@dataclass(frozen=True)
class LeaveAllowance:
    """Yearly leave days granted per type on the employee record."""

    annual: int = 21
    casual: int = 7
    sick: int = 7
    maternity: int = 84
    paternity: int = 3


@dataclass(frozen=True)
class User:
    id: Optional[int]
    employee_id: str
    email: str
    password_hash: str
    role: Role
    first_name: str
    last_name: str
    department: str
    designation: str
    joining_date: date
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Address = field(default_factory=Address)
    emergency_contact: EmergencyContact = field(default_factory=EmergencyContact)
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE
    profile_picture: Optional[str] = None
    is_active: bool = True
    password_set: bool = False
    last_login: Optional[datetime] = None
    reset_password_token: Optional[str] = None
    reset_password_expire: Optional[datetime] = None
    basic_salary: float = 0.0
    salary_grade: str = "Grade-1"
    epf_no: Optional[str] = None
    epf_joining_date: Optional[date] = None
    bank_details: BankDetails = field(default_factory=BankDetails)
    leave_allowance: LeaveAllowance = field(default_factory=LeaveAllowance)
    monthly_leave_allowance: int = DEFAULT_MONTHLY_LEAVE_ALLOWANCE

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
