from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from tests.conftest import PASSWORD, make_user
from workpulse.core.exceptions import AuthenticationError, ConflictError, ValidationError


def test_login_returns_token_for_the_user(container, repos):
    user = make_user(repos["users_repo"])

    result = container.auth_service.login(user.email, PASSWORD)

    assert container.auth_service.tokens.verify(result.token) == user.id
    assert repos["users_repo"].get_by_id(user.id).last_login is not None


def test_login_requires_both_fields(container):
    with pytest.raises(ValidationError):
        container.auth_service.login("someone@hospital.test", "")


def test_login_rejects_wrong_password(container, repos):
    user = make_user(repos["users_repo"])

    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        container.auth_service.login(user.email, "not-the-password")


@pytest.mark.parametrize("password", [PASSWORD, "wrong-password"])
def test_deactivated_account_cannot_log_in_whatever_the_password(container, repos, password):
    user = make_user(repos["users_repo"], is_active=False)

    with pytest.raises(AuthenticationError, match="deactivated"):
        container.auth_service.login(user.email, password)


def test_token_of_deactivated_user_is_refused(container, repos):
    users = repos["users_repo"]
    user = make_user(users)
    token = container.auth_service.tokens.issue(int(user.id))
    users.update(replace(user, is_active=False))

    with pytest.raises(AuthenticationError):
        container.auth_service.current_user(token)


def test_register_rejects_duplicate_email(container, repos):
    existing = make_user(repos["users_repo"])
    data = {
        "email": existing.email,
        "employeeId": "EMP20249999",
        "password": "another1",
        "firstName": "Dup",
        "lastName": "User",
        "department": "ICU",
        "designation": "Doctor",
    }

    with pytest.raises(ConflictError):
        container.auth_service.register(data)


def test_reset_password_with_valid_token(container, repos):
    user = make_user(repos["users_repo"])
    now = datetime(2026, 3, 2, 9, 0)
    token = container.auth_service.forgot_password(user.email, now=now)

    result = container.auth_service.reset_password(token, "brand-new", now=now + timedelta(minutes=5))

    assert result.user.reset_password_token is None
    assert container.auth_service.login(user.email, "brand-new").user.id == user.id


def test_reset_token_expires_after_ten_minutes(container, repos):
    user = make_user(repos["users_repo"])
    now = datetime(2026, 3, 2, 9, 0)
    token = container.auth_service.forgot_password(user.email, now=now)

    with pytest.raises(ValidationError, match="expired"):
        container.auth_service.reset_password(token, "brand-new", now=now + timedelta(minutes=11))
