from __future__ import annotations

from flask import Flask, request

from ..api.responses import ok, paginated
from ..auth.guards import can_access_employee, guarded, is_admin, is_hr_or_admin
from ..common.pagination import PageRequest
from ..container import Container


def register(app: Flask, container: Container) -> None:
    employees = container.employee_service

    @app.route("/api/employees/stats", methods=["GET"], endpoint="employees_stats")
    @guarded(container, is_hr_or_admin)
    def employees_stats():
        return ok(employees.stats())

    @app.route("/api/employees/generate-id", methods=["GET"], endpoint="employees_generate_id")
    @guarded(container, is_hr_or_admin)
    def employees_generate_id():
        return ok({"employeeId": employees.generate_employee_id()})

    @app.route("/api/employees", methods=["GET"], endpoint="employees_list")
    @guarded(container, is_hr_or_admin)
    def employees_list():
        page = employees.list_employees(PageRequest.from_args(request.args), filters=request.args)
        return paginated(page)

    @app.route("/api/employees/<int:user_id>", methods=["GET"], endpoint="employees_get")
    @guarded(container, can_access_employee(container))
    def employees_get(user_id: int):
        return ok(employees.get(user_id))

    @app.route("/api/employees", methods=["POST"], endpoint="employees_create")
    @guarded(container, is_hr_or_admin)
    def employees_create():
        created = employees.create(request.get_json(silent=True) or {})
        data = {"employee": created.employee}
        if created.temp_password:
            data["tempPassword"] = created.temp_password
        return ok(data, message="Employee created successfully", status=201)

    @app.route("/api/employees/<int:user_id>", methods=["PUT"], endpoint="employees_update")
    @guarded(container, is_hr_or_admin)
    def employees_update(user_id: int):
        return ok(employees.update(user_id, request.get_json(silent=True) or {}), message="Employee updated successfully")

    @app.route("/api/employees/<int:user_id>", methods=["DELETE"], endpoint="employees_delete")
    @guarded(container, is_hr_or_admin)
    def employees_delete(user_id: int):
        employees.delete(user_id)
        return ok(message="Employee deleted successfully")

    @app.route("/api/employees/<int:user_id>/password", methods=["PUT"], endpoint="employees_set_password")
    @guarded(container, is_admin)
    def employees_set_password(user_id: int):
        data = request.get_json(silent=True) or {}
        employees.set_password(user_id, data.get("newPassword") or data.get("password"))
        return ok(message="Password updated successfully")

    @app.route("/api/employees/<int:user_id>/salary", methods=["PUT"], endpoint="employees_update_salary")
    @guarded(container, is_hr_or_admin)
    def employees_update_salary(user_id: int):
        employee = employees.update_salary_details(user_id, request.get_json(silent=True) or {})
        return ok(employee, message="Employee salary details updated successfully")
