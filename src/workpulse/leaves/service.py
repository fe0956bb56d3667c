from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..attendance.service import employee_summary
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.serialization import to_json
from ..common.validators import optional_date, optional_enum, parse_bool, parse_date, parse_enum, parse_int, require_non_empty
from ..core.enums import HalfDayType, LeaveStatus, LeaveType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .balance_service import LeaveBalanceService
from .days import derive_total_days
from .model import LeaveContact, LeaveRequest
from .repository import LeavePolicyRepository, LeaveRepository

logger = logging.getLogger(__name__)

BLOCKING_STATUSES = (LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value)
OVERLAP_MESSAGE = "You already have a leave request for overlapping dates"
PROCESSED_MESSAGE = "Leave request has already been processed"

_STATS_TYPES = (
    LeaveType.SICK, LeaveType.CASUAL, LeaveType.ANNUAL,
    LeaveType.EMERGENCY, LeaveType.MATERNITY, LeaveType.PATERNITY,
)


def _contact(data: Any) -> LeaveContact:
    data = data or {}
    if not isinstance(data, Mapping):
        raise ValidationError("emergencyContact must be an object")
    return LeaveContact(name=data.get("name"), phone=data.get("phone"))


def _my_summary(leaves: Sequence[LeaveRequest]) -> dict:
    statuses = Counter(l.status for l in leaves)
    return {
        "totalRequests": len(leaves),
        "approvedLeaves": statuses[LeaveStatus.APPROVED],
        "pendingLeaves": statuses[LeaveStatus.PENDING],
        "rejectedLeaves": statuses[LeaveStatus.REJECTED],
        "totalDaysUsed": sum(l.total_days for l in leaves if l.status == LeaveStatus.APPROVED),
    }


def _percent(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0


class LeaveService:
    """Leave requests and their effect on the yearly balance."""

    def __init__(
        self,
        leaves: LeaveRepository,
        users: UserRepository,
        balances: LeaveBalanceService,
        policies: LeavePolicyRepository,
    ):
        self._leaves = leaves
        self._users = users
        self._balances = balances
        self._policies = policies

    def _check_policy(self, leave_type: LeaveType, total_days: float) -> None:
        policy = self._policies.get_by_type(leave_type.value)
        if policy and policy.is_active and total_days > policy.max_consecutive_days:
            raise ValidationError(
                f"{policy.name} cannot exceed {policy.max_consecutive_days} consecutive days"
            )

    def _check_overlap(self, employee_id: int, start: date, end: date, *, exclude_id: Optional[int] = None) -> None:
        # Read-then-write: two concurrent requests can both pass this check
        clashes = self._leaves.list_overlapping(
            employee_id=employee_id, start_date=start, end_date=end, statuses=BLOCKING_STATUSES, exclude_id=exclude_id
        )
        if clashes:
            raise ConflictError(OVERLAP_MESSAGE)

    def apply(self, user: User, data: Mapping[str, Any], *, now: Optional[datetime] = None) -> LeaveRequest:
        now = now or now_local()
        leave_type = parse_enum(data.get("type"), LeaveType, "leave type")
        start = parse_date(data.get("startDate"), "startDate")
        end = parse_date(data.get("endDate"), "endDate")
        reason = require_non_empty(data.get("reason"), "reason")

        if start < now.date():
            raise ValidationError("Leave start date cannot be in the past")

        is_half_day = parse_bool(data.get("isHalfDay"))
        half_day_type = optional_enum(data.get("halfDayType"), HalfDayType, "halfDayType") if is_half_day else None
        total_days = derive_total_days(start, end, is_half_day=is_half_day, half_day_type=half_day_type)

        self._check_overlap(int(user.id), start, end)
        self._check_policy(leave_type, total_days)

        leave = LeaveRequest(
            id=None,
            employee_id=int(user.id),
            type=leave_type,
            start_date=start,
            end_date=end,
            total_days=total_days,
            reason=reason,
            department=user.department or user.role.value or "General",
            applied_date=now,
            is_half_day=is_half_day,
            half_day_type=half_day_type,
            emergency_contact=_contact(data.get("emergencyContact")),
        )
        leave = replace(leave, id=self._leaves.create(leave))
        self._balances.track(leave.employee_id, leave.type, start.year, pending=total_days)
        logger.info("leave %s applied by %s: %s %s day(s)", leave.id, user.employee_id, leave_type.value, total_days)
        return leave

    def _get(self, leave_id: int) -> LeaveRequest:
        leave = self._leaves.get_by_id(leave_id)
        if not leave:
            raise NotFoundError("Leave request not found")
        return leave

    def get(self, leave_id: int, *, user: User) -> dict:
        leave = self._get(leave_id)
        if leave.employee_id != user.id and user.role not in (Role.ADMIN, Role.HR):
            raise AuthorizationError("Not authorized to view this leave request")
        row = to_json(leave)
        row["employee"] = employee_summary(self._users.get_by_id(leave.employee_id))
        return row

    def my_leaves(self, user: User, page: PageRequest, *, filters: Mapping[str, Any]) -> tuple[Page[LeaveRequest], dict]:
        status = optional_enum(filters.get("status"), LeaveStatus, "status")
        leave_type = optional_enum(filters.get("type"), LeaveType, "leave type")
        start_from = start_to = None
        if filters.get("year"):
            year = parse_int(filters["year"], "year")
            start_from, start_to = date(year, 1, 1), date(year, 12, 31)

        result = self._leaves.list_leaves(
            page=page,
            employee_ids=[int(user.id)],
            status=status.value if status else None,
            leave_type=leave_type.value if leave_type else None,
            start_from=start_from,
            start_to=start_to,
        )
        return result, _my_summary(self._leaves.list_matching(employee_ids=[int(user.id)]))

    def _employee_filter(self, filters: Mapping[str, Any]) -> Optional[Sequence[int]]:
        department = filters.get("department") or None
        search = filters.get("search") or filters.get("employeeId") or None
        if not department and not search:
            return None
        return self._users.find_ids(department=department, search=search)

    def list_all(self, page: PageRequest, *, filters: Mapping[str, Any]) -> Page[dict]:
        status = optional_enum(filters.get("status"), LeaveStatus, "status")
        leave_type = optional_enum(filters.get("type"), LeaveType, "leave type")
        result = self._leaves.list_leaves(
            page=page,
            employee_ids=self._employee_filter(filters),
            status=status.value if status else None,
            leave_type=leave_type.value if leave_type else None,
            start_from=optional_date(filters.get("startDate"), "startDate"),
            start_to=optional_date(filters.get("endDate"), "endDate"),
        )
        people: dict[int, Optional[User]] = {}
        rows = []
        for leave in result.items:
            if leave.employee_id not in people:
                people[leave.employee_id] = self._users.get_by_id(leave.employee_id)
            row = to_json(leave)
            row["employee"] = employee_summary(people[leave.employee_id])
            rows.append(row)
        return Page(items=rows, total=result.total, request=result.request)

    def _own_pending(self, leave_id: int, user: User, action: str, past: str) -> LeaveRequest:
        leave = self._get(leave_id)
        if leave.employee_id != user.id:
            raise AuthorizationError(f"You can only {action} your own leave requests")
        if leave.status != LeaveStatus.PENDING:
            raise ConflictError(f"Only pending leave requests can be {past}")
        return leave

    def update(self, leave_id: int, *, user: User, data: Mapping[str, Any]) -> LeaveRequest:
        leave = self._own_pending(leave_id, user, "update", "updated")

        changes: dict[str, Any] = {}
        if data.get("type"):
            changes["type"] = parse_enum(data["type"], LeaveType, "leave type")
        if data.get("startDate"):
            changes["start_date"] = parse_date(data["startDate"], "startDate")
        if data.get("endDate"):
            changes["end_date"] = parse_date(data["endDate"], "endDate")
        if data.get("reason"):
            changes["reason"] = require_non_empty(data["reason"], "reason")
        if data.get("emergencyContact") is not None:
            changes["emergency_contact"] = _contact(data["emergencyContact"])
        if data.get("isHalfDay") is not None:
            changes["is_half_day"] = parse_bool(data["isHalfDay"])
        if data.get("halfDayType") is not None:
            changes["half_day_type"] = optional_enum(data["halfDayType"], HalfDayType, "halfDayType")

        updated = replace(leave, **changes)
        if not updated.is_half_day:
            updated = replace(updated, half_day_type=None)
        updated = replace(
            updated,
            total_days=derive_total_days(
                updated.start_date, updated.end_date,
                is_half_day=updated.is_half_day, half_day_type=updated.half_day_type,
            ),
        )
        if (updated.start_date, updated.end_date) != (leave.start_date, leave.end_date):
            self._check_overlap(leave.employee_id, updated.start_date, updated.end_date, exclude_id=leave.id)
        self._check_policy(updated.type, updated.total_days)

        self._leaves.update(updated)
        self._balances.track(leave.employee_id, leave.type, leave.start_date.year, pending=-leave.total_days)
        self._balances.track(updated.employee_id, updated.type, updated.start_date.year, pending=updated.total_days)
        return updated

    def cancel(self, leave_id: int, *, user: User, now: Optional[datetime] = None) -> LeaveRequest:
        leave = self._own_pending(leave_id, user, "cancel", "cancelled")
        cancelled = replace(leave, status=LeaveStatus.CANCELLED, cancelled_date=now or now_local())
        self._leaves.update(cancelled)
        self._balances.track(leave.employee_id, leave.type, leave.start_date.year, pending=-leave.total_days)
        logger.info("leave %s cancelled by %s", leave.id, user.employee_id)
        return cancelled

    def decide(
        self,
        leave_id: int,
        *,
        approver: User,
        approve: bool,
        remarks: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        leave = self._get(leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise ConflictError(PROCESSED_MESSAGE)

        now = now or now_local()
        if approve:
            decided = replace(
                leave, status=LeaveStatus.APPROVED, approved_by=approver.id, approved_date=now,
                remarks=remarks or leave.remarks,
            )
            used = leave.total_days
        else:
            decided = replace(
                leave, status=LeaveStatus.REJECTED, rejected_by=approver.id, rejected_date=now,
                remarks=remarks or leave.remarks,
            )
            used = 0.0
        self._leaves.update(decided)
        self._balances.track(leave.employee_id, leave.type, leave.start_date.year, pending=-leave.total_days, used=used)
        logger.info("leave %s %s by %s", leave.id, decided.status.value, approver.employee_id)
        return decided

    def stats(self, *, filters: Mapping[str, Any]) -> dict:
        department = filters.get("department") or None
        leaves = self._leaves.list_matching(
            employee_ids=self._users.find_ids(department=department) if department else None,
            start_from=optional_date(filters.get("startDate"), "startDate"),
            start_to=optional_date(filters.get("endDate"), "endDate"),
        )

        statuses = Counter(l.status for l in leaves)
        types = Counter(l.type for l in leaves)
        requested = sum(l.total_days for l in leaves)
        overall = {
            "totalRequests": len(leaves),
            "pendingRequests": statuses[LeaveStatus.PENDING],
            "approvedRequests": statuses[LeaveStatus.APPROVED],
            "rejectedRequests": statuses[LeaveStatus.REJECTED],
            "totalDaysRequested": requested,
            "totalDaysApproved": sum(l.total_days for l in leaves if l.status == LeaveStatus.APPROVED),
            "averageLeaveLength": round(requested / len(leaves), 1) if leaves else 0,
        }
        for leave_type in _STATS_TYPES:
            overall[f"{leave_type.value}Leaves"] = types[leave_type]

        by_department: dict[str, list[LeaveRequest]] = defaultdict(list)
        by_month: dict[tuple[int, int], list[LeaveRequest]] = defaultdict(list)
        for leave in leaves:
            by_department[leave.department].append(leave)
            by_month[(leave.applied_date.year, leave.applied_date.month)].append(leave)

        trend = [
            {
                "_id": {"year": year, "month": month},
                "totalRequests": len(items),
                "approvedRequests": sum(1 for l in items if l.status == LeaveStatus.APPROVED),
            }
            for (year, month), items in sorted(by_month.items(), reverse=True)[:12]
        ]
        monthly_increase = 0.0
        if len(trend) >= 2 and trend[1]["totalRequests"]:
            current, previous = trend[0]["totalRequests"], trend[1]["totalRequests"]
            monthly_increase = _percent(current - previous, previous)

        return {
            "overall": overall,
            "trends": {
                "monthlyIncrease": monthly_increase,
                "approvalRate": _percent(overall["approvedRequests"], len(leaves)),
            },
            "departmentWise": [
                {
                    "_id": name,
                    "totalRequests": len(items),
                    "approvedRequests": sum(1 for l in items if l.status == LeaveStatus.APPROVED),
                    "totalDaysApproved": sum(l.total_days for l in items if l.status == LeaveStatus.APPROVED),
                }
                for name, items in sorted(by_department.items())
            ],
            "monthlyTrend": trend,
        }
