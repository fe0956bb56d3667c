from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import SalaryStatus


@dataclass(frozen=True)
class EmployeeInfo:
    """Snapshot of the employee taken when the salary is prepared."""

    employee_id: str
    name: str
    designation: str
    epf_no: str
    bank_name: str
    account_no: str
    branch_name: str


@dataclass(frozen=True)
class SalaryAttendance:
    working_days: int
    overtime_hours: float = 0.0
    leave_allowed: int = 3
    leave_taken: float = 0.0
    paid_leave_days: float = 0.0
    no_pay_leave: float = 0.0
    excess_leave_days: float = 0.0


@dataclass(frozen=True)
class Allowances:
    cost_of_living: int = 0
    food: int = 0
    conveyance: int = 0
    medical: int = 0
    total: int = 0


@dataclass(frozen=True)
class AdditionalPerks:
    overtime: int = 0
    reimbursements: float = 0.0
    bonus: float = 0.0


@dataclass(frozen=True)
class Deductions:
    salary_advance: float = 0.0
    apit: float = 0.0
    no_pay_days_deduction: int = 0
    epf_employee: int = 0
    total: float = 0.0


@dataclass(frozen=True)
class EmployerContributions:
    # Paid by the employer, never deducted from the employee
    epf_employee: int = 0
    epf_employer: int = 0
    etf: int = 0


@dataclass(frozen=True)
class EpfInfo:
    epf_no: Optional[str] = None
    joining_date: Optional[date] = None
    basic_salary_for_epf: float = 0.0


@dataclass(frozen=True)
class SalaryRecord:
    id: Optional[int]
    employee_id: int
    month: str
    year: int
    employee_info: EmployeeInfo
    attendance: SalaryAttendance
    basic_salary: float
    department: Optional[str] = None
    allowances: Allowances = field(default_factory=Allowances)
    additional_perks: AdditionalPerks = field(default_factory=AdditionalPerks)
    deductions: Deductions = field(default_factory=Deductions)
    employer_contributions: EmployerContributions = field(default_factory=EmployerContributions)
    epf_info: EpfInfo = field(default_factory=EpfInfo)
    gross_salary: float = 0.0
    salary_before_deduction: float = 0.0
    net_payable_salary: float = 0.0
    amount_in_words: str = ""
    prepared_by: Optional[int] = None
    status: SalaryStatus = SalaryStatus.DRAFT
    approved_by: Optional[int] = None
    approved_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
