from __future__ import annotations

from datetime import date

import pytest

from tests.conftest import make_user
from workpulse.core.enums import Role
from workpulse.core.exceptions import ValidationError


def test_generated_employee_id_follows_the_highest_of_the_year(container, repos):
    make_user(repos["users_repo"], employee_id="EMP20260007")

    assert container.employee_service.generate_employee_id(today=date(2026, 5, 1)) == "EMP20260008"
    assert container.employee_service.generate_employee_id(today=date(2027, 1, 1)) == "EMP20270001"


def test_employee_created_without_password_gets_temporary_one(container):
    created = container.employee_service.create(
        {
            "email": "new.nurse@hospital.test",
            "firstName": "New",
            "lastName": "Nurse",
            "department": "Pediatrics",
            "designation": "Nurse",
        },
        today=date(2026, 2, 1),
    )

    assert created.temp_password
    assert created.employee.password_set is False
    assert created.employee.employee_id == "EMP20260001"


def test_admins_cannot_be_deleted_or_deactivated(container, repos):
    admin = make_user(repos["users_repo"], role=Role.ADMIN)

    with pytest.raises(ValidationError):
        container.employee_service.delete(int(admin.id))
    with pytest.raises(ValidationError):
        container.admin_service.deactivate(int(admin.id))


def test_set_password_enforces_minimum_length(container, repos):
    user = make_user(repos["users_repo"], password_set=False)

    with pytest.raises(ValidationError):
        container.employee_service.set_password(int(user.id), "123")
    assert container.employee_service.set_password(int(user.id), "123456").password_set is True
