from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence

from ..common.validators import parse_bool, parse_enum, parse_int, require_non_empty
from ..core.enums import LeaveType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import LeavePolicy
from .repository import LeavePolicyRepository

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Leave policy with this type already exists"


def _rules(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValidationError("rules must be a list")
    return tuple(str(rule) for rule in value)


def _fields(data: Mapping[str, Any], *, partial: bool) -> dict:
    """Map request keys onto policy fields; only present keys when partial."""
    out: dict[str, Any] = {}

    def present(key: str) -> bool:
        return not partial or data.get(key) is not None

    if present("type"):
        out["type"] = parse_enum(data.get("type"), LeaveType, "leave type")
    if present("name"):
        out["name"] = require_non_empty(data.get("name"), "name")
    if present("description"):
        out["description"] = require_non_empty(data.get("description"), "description")
    if present("annualAllocation"):
        out["annual_allocation"] = parse_int(data.get("annualAllocation"), "annualAllocation", minimum=0)
    if present("maxConsecutiveDays"):
        out["max_consecutive_days"] = parse_int(data.get("maxConsecutiveDays"), "maxConsecutiveDays", minimum=1)

    if data.get("icon"):
        out["icon"] = str(data["icon"])
    if data.get("color"):
        out["color"] = str(data["color"])
    if data.get("medicalCertificateAfterDays") is not None:
        out["medical_certificate_after_days"] = parse_int(
            data["medicalCertificateAfterDays"], "medicalCertificateAfterDays", minimum=0
        )
    if data.get("maxCarryForward") is not None:
        out["max_carry_forward"] = parse_int(data["maxCarryForward"], "maxCarryForward", minimum=0)
    for key, name in (
        ("requiresMedicalCertificate", "requires_medical_certificate"),
        ("carryForward", "carry_forward"),
        ("encashable", "encashable"),
        ("isActive", "is_active"),
    ):
        if data.get(key) is not None:
            out[name] = parse_bool(data[key])
    if data.get("rules") is not None:
        out["rules"] = _rules(data["rules"])
    return out


class LeavePolicyService:
    def __init__(self, policies: LeavePolicyRepository):
        self._policies = policies

    def list_policies(self, *, is_active: Optional[str] = None) -> Sequence[LeavePolicy]:
        flag = None if is_active in (None, "") else str(is_active).lower() == "true"
        return self._policies.list_policies(is_active=flag)

    def get(self, policy_id: int) -> LeavePolicy:
        policy = self._policies.get_by_id(policy_id)
        if not policy:
            raise NotFoundError("Leave policy not found")
        return policy

    def create(self, data: Mapping[str, Any], *, created_by: int) -> LeavePolicy:
        values = _fields(data, partial=False)
        if self._policies.get_by_type(values["type"].value):
            raise ConflictError(DUPLICATE_MESSAGE)
        policy = LeavePolicy(id=None, created_by=created_by, **values)
        policy = replace(policy, id=self._policies.create(policy))
        logger.info("leave policy %s created for type %s", policy.id, policy.type.value)
        return policy

    def update(self, policy_id: int, data: Mapping[str, Any], *, updated_by: int) -> LeavePolicy:
        policy = self.get(policy_id)
        values = _fields(data, partial=True)
        new_type = values.get("type")
        if new_type and new_type != policy.type:
            other = self._policies.get_by_type(new_type.value)
            if other and other.id != policy.id:
                raise ConflictError(DUPLICATE_MESSAGE)
        updated = replace(policy, **values, updated_by=updated_by)
        self._policies.update(updated)
        return updated

    def delete(self, policy_id: int) -> None:
        self.get(policy_id)
        self._policies.delete(policy_id)
        logger.info("leave policy %s deleted", policy_id)
