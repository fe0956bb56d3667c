from __future__ import annotations

from datetime import date

import pytest
from werkzeug.security import generate_password_hash

from tests.fakes import (
    InMemoryAttendance,
    InMemoryLeaveBalances,
    InMemoryLeavePolicies,
    InMemoryLeaves,
    InMemorySalaries,
    InMemorySchedules,
    InMemoryUsers,
)
from workpulse.auth.tokens import TokenService
from workpulse.container import assemble
from workpulse.core.enums import Role
from workpulse.users.model import User

PASSWORD = "secret123"


def make_user(users: InMemoryUsers, *, role: Role = Role.EMPLOYEE, department: str = "Cardiology", **overrides) -> User:
    n = len(users.items) + 1
    values = dict(
        id=None,
        employee_id=f"EMP2024{n:04d}",
        email=f"user{n}@hospital.test",
        password_hash=generate_password_hash(PASSWORD),
        role=role,
        first_name=f"First{n}",
        last_name=f"Last{n}",
        department=department,
        designation="Nurse",
        joining_date=date(2020, 1, 1),
        password_set=True,
    )
    values.update(overrides)
    return users.add(User(**values))


@pytest.fixture
def repos():
    return {
        "users_repo": InMemoryUsers(),
        "attendance_repo": InMemoryAttendance(),
        "schedules_repo": InMemorySchedules(),
        "leaves_repo": InMemoryLeaves(),
        "leave_balances_repo": InMemoryLeaveBalances(),
        "leave_policies_repo": InMemoryLeavePolicies(),
        "salaries_repo": InMemorySalaries(),
    }


@pytest.fixture
def container(repos):
    return assemble(**repos, tokens=TokenService("test-jwt-secret", expire_days=1))


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from workpulse.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(container):
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {container.auth_service.tokens.issue(int(user.id))}"}

    return _headers
