from __future__ import annotations

import math
from dataclasses import replace
from datetime import date
from typing import Iterable, Mapping, Optional

from ..core.constants import DEFAULT_LEAVE_ENTITLEMENTS
from ..core.enums import LeaveType
from .model import LeaveBalance, LeaveBalanceEntry, LeavePolicy


def recompute_available(balance: LeaveBalance) -> LeaveBalance:
    """available = allocated + carried_forward - used - pending, for every entry."""
    return replace(
        balance,
        entries=tuple(
            replace(e, available=e.allocated + e.carried_forward - e.used - e.pending) for e in balance.entries
        ),
    )


def tenure_years(joining_date: date, today: date) -> float:
    return max(0.0, (today - joining_date).days / 365)


def default_entries(
    *,
    joining_date: date,
    today: date,
    policies: Iterable[LeavePolicy] = (),
) -> tuple[LeaveBalanceEntry, ...]:
    """Opening allocation per type; annual leave is prorated during the first year."""
    active: Mapping[str, LeavePolicy] = {p.type.value: p for p in policies if p.is_active}
    tenure = tenure_years(joining_date, today)

    entries = []
    for type_name, default in DEFAULT_LEAVE_ENTITLEMENTS.items():
        policy = active.get(type_name)
        allocation = policy.annual_allocation if policy else default
        if type_name == LeaveType.ANNUAL.value and tenure < 1:
            allocation = math.floor(tenure * allocation)
        entries.append(
            LeaveBalanceEntry(
                type=LeaveType(type_name),
                allocated=float(allocation),
                max_carry_forward=float(policy.max_carry_forward) if policy and policy.carry_forward else 0.0,
            )
        )
    return tuple(entries)


def adjust(
    balance: LeaveBalance,
    leave_type: LeaveType,
    *,
    pending: float = 0.0,
    used: float = 0.0,
) -> Optional[LeaveBalance]:
    """Shift counters of one entry; None when the type is not tracked."""
    if balance.entry(leave_type) is None:
        return None
    entries = tuple(
        replace(e, pending=max(0.0, e.pending + pending), used=max(0.0, e.used + used)) if e.type == leave_type else e
        for e in balance.entries
    )
    return recompute_available(replace(balance, entries=entries))


def merge_entries(balance: LeaveBalance, updates: Iterable[Mapping]) -> LeaveBalance:
    """Merge incoming per-type fields into existing entries, appending new types."""
    by_type = {e.type: e for e in balance.entries}
    order = [e.type for e in balance.entries]
    for item in updates:
        leave_type = LeaveType(item["type"])
        current = by_type.get(leave_type, LeaveBalanceEntry(type=leave_type))
        changes = {
            field: float(item[key])
            for key, field in (
                ("allocated", "allocated"),
                ("used", "used"),
                ("pending", "pending"),
                ("carriedForward", "carried_forward"),
                ("maxCarryForward", "max_carry_forward"),
            )
            if item.get(key) is not None
        }
        if item.get("expiryDate") is not None:
            changes["expiry_date"] = item["expiryDate"]
        by_type[leave_type] = replace(current, **changes)
        if leave_type not in order:
            order.append(leave_type)
    return recompute_available(replace(balance, entries=tuple(by_type[t] for t in order)))
