from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.serialization import to_json
from ..common.validators import optional_date, parse_amount, parse_enum, parse_int
from ..core.enums import LeaveType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .balance import adjust, default_entries, merge_entries, recompute_available, tenure_years
from .model import LeaveBalance
from .repository import LeaveBalanceRepository, LeavePolicyRepository

logger = logging.getLogger(__name__)

_NUMERIC_FIELDS = ("allocated", "used", "pending", "carriedForward", "maxCarryForward")


def _entry_updates(items: Any) -> list[dict]:
    if not isinstance(items, list) or not items:
        raise ValidationError("leaveTypes must be a non-empty list")
    updates = []
    for item in items:
        if not isinstance(item, Mapping):
            raise ValidationError("Each leave type entry must be an object")
        update: dict[str, Any] = {"type": parse_enum(item.get("type"), LeaveType, "leave type").value}
        for key in _NUMERIC_FIELDS:
            if item.get(key) is not None:
                update[key] = parse_amount(item[key], key)
        if item.get("expiryDate"):
            update["expiryDate"] = optional_date(item["expiryDate"], "expiryDate")
        updates.append(update)
    return updates


class LeaveBalanceService:
    """Per-year leave balances; defaults are created lazily on first access."""

    def __init__(self, balances: LeaveBalanceRepository, policies: LeavePolicyRepository, users: UserRepository):
        self._balances = balances
        self._policies = policies
        self._users = users

    def ensure(self, user: User, year: int, *, today: Optional[date] = None) -> LeaveBalance:
        existing = self._balances.get(int(user.id), year)
        if existing:
            return existing

        today = today or now_local().date()
        balance = recompute_available(
            LeaveBalance(
                id=None,
                employee_id=int(user.id),
                year=year,
                entries=default_entries(
                    joining_date=user.joining_date,
                    today=today,
                    policies=self._policies.list_policies(is_active=True),
                ),
            )
        )
        try:
            balance = replace(balance, id=self._balances.create(balance))
        except ConflictError:
            # Created concurrently by another request
            return self._balances.get(int(user.id), year) or balance
        logger.info("created default %s leave balance for %s", year, user.employee_id)
        return balance

    def track(
        self,
        employee_id: int,
        leave_type: LeaveType,
        year: int,
        *,
        pending: float = 0.0,
        used: float = 0.0,
    ) -> None:
        """Move days between the pending and used counters of one entry."""
        user = self._users.get_by_id(employee_id)
        if user is None:
            return
        balance = adjust(self.ensure(user, year), leave_type, pending=pending, used=used)
        if balance is None:
            logger.debug("no %s entry in %s balance of %s", leave_type.value, year, user.employee_id)
            return
        self._balances.save(balance)

    def my_balance(self, user: User, *, today: Optional[date] = None) -> dict:
        today = today or now_local().date()
        balance = self.ensure(user, today.year, today=today)
        return {
            "year": balance.year,
            "tenure": round(tenure_years(user.joining_date, today), 1),
            "balance": {
                e.type.value: {
                    "allocated": e.allocated,
                    "used": e.used,
                    "pending": e.pending,
                    "carriedForward": e.carried_forward,
                    "available": e.available,
                }
                for e in balance.entries
            },
            "lastUpdated": balance.last_updated,
        }

    def all_balances(self, page: PageRequest, *, filters: Mapping[str, Any], today: Optional[date] = None) -> Page[dict]:
        today = today or now_local().date()
        users = self._users.list_users(
            page=page,
            department=filters.get("department") or None,
            search=filters.get("search") or None,
        )
        rows = []
        for user in users.items:
            balance = self.ensure(user, today.year, today=today)
            rows.append(
                {
                    "employee": {
                        "id": user.id,
                        "employeeId": user.employee_id,
                        "firstName": user.first_name,
                        "lastName": user.last_name,
                        "department": user.department,
                        "joiningDate": user.joining_date,
                    },
                    "balance": to_json(balance.entries),
                    "year": balance.year,
                    "lastUpdated": balance.last_updated,
                }
            )
        return Page(items=rows, total=users.total, request=users.request)

    def update_balance(self, employee_id: int, data: Mapping[str, Any], *, today: Optional[date] = None) -> LeaveBalance:
        user = self._users.get_by_id(employee_id)
        if not user:
            raise NotFoundError("Employee not found")
        today = today or now_local().date()
        year = parse_int(data.get("year") or today.year, "year")
        updates = _entry_updates(data.get("leaveTypes"))

        existing = self._balances.get(int(user.id), year)
        if existing is None:
            balance = merge_entries(LeaveBalance(id=None, employee_id=int(user.id), year=year), updates)
            balance = replace(balance, id=self._balances.create(balance))
        else:
            balance = merge_entries(existing, updates)
            self._balances.save(balance)
        logger.info("leave balance %s of %s updated (%s types)", year, user.employee_id, len(updates))
        return balance
