from __future__ import annotations

from datetime import date, timedelta

from tests.conftest import PASSWORD, make_user
from workpulse.core.enums import Role


def _future(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "data": {"status": "ok"}, "message": "WorkPulse API is running"}


def test_protected_route_without_token_is_401(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_garbage_token_is_401(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_login_returns_token_usable_as_bearer(client, repos):
    user = make_user(repos["users_repo"])

    login = client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD})
    body = login.get_json()

    assert login.status_code == 200
    assert "passwordHash" not in body["data"]["user"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['data']['token']}"})
    assert me.get_json()["data"]["employeeId"] == user.employee_id


def test_role_guard_is_403_for_employee(client, repos, auth_headers):
    employee = make_user(repos["users_repo"])

    response = client.get("/api/employees", headers=auth_headers(employee))

    assert response.status_code == 403
    assert response.get_json()["message"] == "User role employee is not authorized to access this route"


def test_employee_can_read_self_but_not_others(client, repos, auth_headers):
    alice = make_user(repos["users_repo"])
    bob = make_user(repos["users_repo"])

    assert client.get(f"/api/employees/{alice.id}", headers=auth_headers(alice)).status_code == 200
    assert client.get(f"/api/employees/{bob.id}", headers=auth_headers(alice)).status_code == 403


def test_list_envelope_carries_pagination(client, repos, auth_headers):
    hr = make_user(repos["users_repo"], role=Role.HR)
    for _ in range(3):
        make_user(repos["users_repo"])

    response = client.get("/api/employees?page=2&limit=2", headers=auth_headers(hr))
    body = response.get_json()

    assert response.status_code == 200
    assert body["success"] is True
    assert body["pagination"] == {"current": 2, "pages": 2, "total": 4}
    assert len(body["data"]) == 2


def test_leave_of_another_employee_is_403(client, repos, auth_headers):
    owner = make_user(repos["users_repo"])
    other = make_user(repos["users_repo"])
    applied = client.post(
        "/api/leaves",
        json={"type": "casual", "startDate": _future(10), "endDate": _future(11), "reason": "Personal errand"},
        headers=auth_headers(owner),
    )
    assert applied.status_code == 201
    leave_id = applied.get_json()["data"]["id"]

    assert client.get(f"/api/leaves/{leave_id}", headers=auth_headers(other)).status_code == 403
    assert client.get(f"/api/leaves/{leave_id}", headers=auth_headers(owner)).status_code == 200


def test_overlapping_leave_is_409(client, repos, auth_headers):
    owner = make_user(repos["users_repo"])
    data = {"type": "annual", "startDate": _future(10), "endDate": _future(12), "reason": "Trip"}

    assert client.post("/api/leaves", json=data, headers=auth_headers(owner)).status_code == 201
    response = client.post("/api/leaves", json=data, headers=auth_headers(owner))

    assert response.status_code == 409
    assert response.get_json() == {"success": False, "message": "You already have a leave request for overlapping dates"}


def test_validation_error_is_400(client, repos, auth_headers):
    owner = make_user(repos["users_repo"])

    response = client.post("/api/leaves", json={"type": "annual"}, headers=auth_headers(owner))

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_missing_record_is_404_envelope(client, repos, auth_headers):
    hr = make_user(repos["users_repo"], role=Role.HR)

    response = client.get("/api/salaries/999", headers=auth_headers(hr))

    assert response.status_code == 404
    assert response.get_json() == {"success": False, "message": "Salary record not found"}


def test_unknown_route_is_404_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_manager_cannot_run_payroll(client, repos, auth_headers):
    manager = make_user(repos["users_repo"], role=Role.MANAGER)

    assert client.get("/api/salaries", headers=auth_headers(manager)).status_code == 403


def test_salary_payload_is_camel_cased(client, repos, auth_headers):
    hr = make_user(repos["users_repo"], role=Role.HR)
    nurse = make_user(repos["users_repo"], basic_salary=100000)

    response = client.post(
        "/api/salaries", json={"employee": nurse.id, "month": "March", "year": 2026}, headers=auth_headers(hr)
    )
    data = response.get_json()["data"]

    assert response.status_code == 201
    assert data["netPayableSalary"] == 134500
    assert data["employerContributions"] == {"epfEmployee": 8000, "epfEmployer": 12000, "etf": 3000}
    assert data["status"] == "draft"

    mine = client.get("/api/salaries/my-salaries", headers=auth_headers(nurse)).get_json()
    assert [row["id"] for row in mine["data"]] == [data["id"]]


def _swap_pending(client, repos, auth_headers):
    alice = make_user(repos["users_repo"])
    bob = make_user(repos["users_repo"])
    hr = make_user(repos["users_repo"], role=Role.HR)
    created = client.post(
        "/api/schedules",
        json={
            "employee": alice.id,
            "date": _future(5),
            "shift": {"type": "morning", "startTime": "08:00", "endTime": "16:00"},
        },
        headers=auth_headers(hr),
    )
    schedule_id = created.get_json()["data"]["id"]
    requested = client.post(
        f"/api/schedules/{schedule_id}/swap-request",
        json={"requestedWith": bob.id, "reason": "Exam"},
        headers=auth_headers(alice),
    )
    assert requested.status_code == 200
    return schedule_id, hr


def test_manager_cannot_decide_shift_swaps(client, repos, auth_headers):
    schedule_id, _ = _swap_pending(client, repos, auth_headers)
    manager = make_user(repos["users_repo"], role=Role.MANAGER)

    for action in ("approve", "reject"):
        response = client.put(f"/api/schedules/{schedule_id}/swap-request/{action}", headers=auth_headers(manager))
        assert response.status_code == 403


def test_hr_approves_shift_swap(client, repos, auth_headers):
    schedule_id, hr = _swap_pending(client, repos, auth_headers)

    response = client.put(f"/api/schedules/{schedule_id}/swap-request/approve", headers=auth_headers(hr))

    assert response.status_code == 200
    assert response.get_json()["data"]["swapRequest"]["status"] == "approved"


def test_reset_token_is_returned_in_testing_mode(client, repos):
    user = make_user(repos["users_repo"])

    response = client.post("/api/auth/forgotpassword", json={"email": user.email})

    assert response.status_code == 200
    assert response.get_json()["data"]["resetToken"]


def test_reset_token_is_withheld_outside_debug_and_testing(app, client, repos):
    app.config.update(DEBUG=False, TESTING=False)
    user = make_user(repos["users_repo"])

    response = client.post("/api/auth/forgotpassword", json={"email": user.email})

    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Password reset token generated"}
    assert repos["users_repo"].get_by_id(int(user.id)).reset_password_token is not None
