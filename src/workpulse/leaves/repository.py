from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from .model import LeaveBalance, LeavePolicy, LeaveRequest


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def create(self, leave: LeaveRequest) -> int:
        raise NotImplementedError

    def update(self, leave: LeaveRequest) -> bool:
        raise NotImplementedError

    def list_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Sequence[str],
        exclude_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_leaves(
        self,
        *,
        page: PageRequest,
        employee_ids: Optional[Sequence[int]] = None,
        status: Optional[str] = None,
        leave_type: Optional[str] = None,
        start_from: Optional[date] = None,
        start_to: Optional[date] = None,
    ) -> Page[LeaveRequest]:
        raise NotImplementedError

    def list_matching(
        self,
        *,
        employee_ids: Optional[Sequence[int]] = None,
        status: Optional[str] = None,
        leave_type: Optional[str] = None,
        start_from: Optional[date] = None,
        start_to: Optional[date] = None,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError


class LeaveBalanceRepository(Protocol):
    def get(self, employee_id: int, year: int) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def create(self, balance: LeaveBalance) -> int:
        """Insert; a second balance for the same (employee, year) raises ConflictError."""
        raise NotImplementedError

    def save(self, balance: LeaveBalance) -> None:
        raise NotImplementedError


class LeavePolicyRepository(Protocol):
    def get_by_id(self, policy_id: int) -> Optional[LeavePolicy]:
        raise NotImplementedError

    def get_by_type(self, leave_type: str) -> Optional[LeavePolicy]:
        raise NotImplementedError

    def list_policies(self, *, is_active: Optional[bool] = None) -> Sequence[LeavePolicy]:
        raise NotImplementedError

    def create(self, policy: LeavePolicy) -> int:
        raise NotImplementedError

    def update(self, policy: LeavePolicy) -> bool:
        raise NotImplementedError

    def delete(self, policy_id: int) -> bool:
        raise NotImplementedError
