"""Request authentication and route-level access rules.

Every protected view lists its guards in order; the first one that
refuses decides the response. Record-level ownership checks live in the
services because they need the record.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from ..users.model import User

if TYPE_CHECKING:
    from ..container import Container

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""


ALLOW = Decision(True)

Guard = Callable[[User, Mapping[str, Any]], Decision]


def require_roles(*roles: Role) -> Guard:
    allowed_roles = frozenset(roles)

    def guard(user: User, view_args: Mapping[str, Any]) -> Decision:
        if user.role in allowed_roles:
            return ALLOW
        return Decision(False, f"User role {user.role.value} is not authorized to access this route")

    return guard


is_admin = require_roles(Role.ADMIN)
is_hr_or_admin = require_roles(Role.ADMIN, Role.HR, Role.MANAGER)


def can_access_employee(container: "Container", *, param: str = "user_id") -> Guard:
    """Admin/HR see everyone, a manager sees their department, anyone sees themself."""

    def guard(user: User, view_args: Mapping[str, Any]) -> Decision:
        target_id = view_args.get(param)
        if target_id is not None and int(target_id) == user.id:
            return ALLOW
        if user.role in (Role.ADMIN, Role.HR):
            return ALLOW
        if user.role == Role.MANAGER and target_id is not None:
            target = container.users_repo.get_by_id(int(target_id))
            if target is None or target.department == user.department:
                return ALLOW
        return Decision(False, "Access denied")

    return guard


def bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return request.cookies.get(TOKEN_COOKIE) or None


def guarded(container: "Container", *guards: Guard):
    """Authenticate the caller, then run each guard in order."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if not token:
                raise AuthenticationError("Not authorized to access this route")
            user = container.auth_service.current_user(token)
            g.current_user = user

            for guard in guards:
                decision = guard(user, kwargs)
                if not decision.allowed:
                    logger.info("denied %s %s for %s: %s", request.method, request.path, user.employee_id, decision.reason)
                    raise AuthorizationError(decision.reason)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_user() -> User:
    return g.current_user
