from __future__ import annotations

import json
from typing import Any, Dict, Optional, Sequence

from ..core.enums import LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, json_column
from .model import LeavePolicy
from .repository import LeavePolicyRepository

_COLUMNS = (
    "type", "name", "icon", "color", "description", "annual_allocation", "max_consecutive_days",
    "requires_medical_certificate", "medical_certificate_after_days", "carry_forward", "max_carry_forward",
    "encashable", "rules", "is_active", "created_by", "updated_by",
)

_SELECT = f"SELECT id, {', '.join(_COLUMNS)} FROM leave_policies"
_DUPLICATE = "Leave policy with this type already exists"


def _to_policy(r: Dict[str, Any]) -> LeavePolicy:
    return LeavePolicy(
        id=int(r["id"]),
        type=LeaveType(r["type"]),
        name=r["name"],
        icon=r["icon"],
        color=r["color"],
        description=r["description"],
        annual_allocation=int(r["annual_allocation"]),
        max_consecutive_days=int(r["max_consecutive_days"]),
        requires_medical_certificate=bool(r["requires_medical_certificate"]),
        medical_certificate_after_days=int(r["medical_certificate_after_days"]),
        carry_forward=bool(r["carry_forward"]),
        max_carry_forward=int(r["max_carry_forward"]),
        encashable=bool(r["encashable"]),
        rules=tuple(json_column(r.get("rules")) or ()),
        is_active=bool(r["is_active"]),
        created_by=int(r["created_by"]),
        updated_by=r.get("updated_by"),
    )


def _to_params(p: LeavePolicy) -> tuple:
    return (
        p.type.value, p.name, p.icon, p.color, p.description, p.annual_allocation, p.max_consecutive_days,
        int(p.requires_medical_certificate), p.medical_certificate_after_days, int(p.carry_forward),
        p.max_carry_forward, int(p.encashable), json.dumps(list(p.rules)), int(p.is_active),
        p.created_by, p.updated_by,
    )


class MySQLLeavePolicyRepository(LeavePolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, policy_id: int) -> Optional[LeavePolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id=%s", (int(policy_id),))
            r = fetchone(cur)
            return _to_policy(r) if r else None

    def get_by_type(self, leave_type: str) -> Optional[LeavePolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE type=%s", (leave_type,))
            r = fetchone(cur)
            return _to_policy(r) if r else None

    def list_policies(self, *, is_active: Optional[bool] = None) -> Sequence[LeavePolicy]:
        sql = _SELECT
        params: tuple = ()
        if is_active is not None:
            sql += " WHERE is_active=%s"
            params = (int(is_active),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY created_at DESC, id DESC", params)
            return [_to_policy(r) for r in fetchall(cur)]

    def create(self, policy: LeavePolicy) -> int:
        placeholders = ", ".join(["%s"] * len(_COLUMNS))
        with db_cursor(self._conn_factory, duplicate_message=_DUPLICATE) as (_, cur):
            cur.execute(f"INSERT INTO leave_policies({', '.join(_COLUMNS)}) VALUES({placeholders})", _to_params(policy))
            return int(cur.lastrowid)

    def update(self, policy: LeavePolicy) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _COLUMNS)
        with db_cursor(self._conn_factory, duplicate_message=_DUPLICATE) as (_, cur):
            cur.execute(f"UPDATE leave_policies SET {assignments} WHERE id=%s", _to_params(policy) + (int(policy.id),))
            return cur.rowcount > 0

    def delete(self, policy_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_policies WHERE id=%s", (int(policy_id),))
            return cur.rowcount > 0
