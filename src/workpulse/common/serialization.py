from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

# Never leave the process
PRIVATE_FIELDS = frozenset({"password_hash", "reset_password_token", "reset_password_expire"})


def camelize(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_json(value: Any) -> Any:
    """Convert domain objects into JSON-ready structures with camelCase keys."""
    if is_dataclass(value) and not isinstance(value, type):
        return {
            camelize(f.name): to_json(getattr(value, f.name))
            for f in fields(value)
            if f.name not in PRIVATE_FIELDS
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    return value
