from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import HalfDayType, LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveContact:
    name: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class LeaveRequest:
    id: Optional[int]
    employee_id: int
    type: LeaveType
    start_date: date
    end_date: date
    total_days: float
    reason: str
    department: str
    applied_date: datetime
    status: LeaveStatus = LeaveStatus.PENDING
    is_half_day: bool = False
    half_day_type: Optional[HalfDayType] = None
    emergency_contact: LeaveContact = field(default_factory=LeaveContact)
    approved_by: Optional[int] = None
    approved_date: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_date: Optional[datetime] = None
    remarks: Optional[str] = None
    cancelled_date: Optional[datetime] = None


@dataclass(frozen=True)
class LeaveBalanceEntry:
    type: LeaveType
    allocated: float = 0.0
    used: float = 0.0
    pending: float = 0.0
    carried_forward: float = 0.0
    max_carry_forward: float = 0.0
    expiry_date: Optional[date] = None
    available: float = 0.0


@dataclass(frozen=True)
class LeaveBalance:
    id: Optional[int]
    employee_id: int
    year: int
    entries: tuple[LeaveBalanceEntry, ...] = ()
    last_updated: Optional[datetime] = None

    def entry(self, leave_type: LeaveType) -> Optional[LeaveBalanceEntry]:
        for item in self.entries:
            if item.type == leave_type:
                return item
        return None


@dataclass(frozen=True)
class LeavePolicy:
    id: Optional[int]
    type: LeaveType
    name: str
    description: str
    annual_allocation: int
    max_consecutive_days: int
    created_by: int
    icon: str = "calendar"
    color: str = "blue"
    requires_medical_certificate: bool = False
    medical_certificate_after_days: int = 0
    carry_forward: bool = False
    max_carry_forward: int = 0
    encashable: bool = False
    rules: tuple[str, ...] = ()
    is_active: bool = True
    updated_by: Optional[int] = None
