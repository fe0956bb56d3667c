from __future__ import annotations

from flask import Flask, request

from ..api.responses import ok, paginated
from ..auth.guards import current_user, guarded, require_roles
from ..common.pagination import PageRequest
from ..container import Container
from ..core.enums import Role

is_payroll_staff = require_roles(Role.ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    salaries = container.salary_service

    @app.route("/api/salaries/my-salaries", methods=["GET"], endpoint="salaries_mine")
    @guarded(container)
    def salaries_mine():
        return paginated(salaries.my_salaries(current_user(), PageRequest.from_args(request.args), filters=request.args))

    @app.route("/api/salaries/stats", methods=["GET"], endpoint="salaries_stats")
    @guarded(container, is_payroll_staff)
    def salaries_stats():
        return ok(salaries.stats(filters=request.args))

    @app.route("/api/salaries/calculate", methods=["POST"], endpoint="salaries_calculate")
    @guarded(container, is_payroll_staff)
    def salaries_calculate():
        return ok(salaries.calculate(request.get_json(silent=True) or {}), message="Salary calculation completed")

    @app.route("/api/salaries", methods=["POST"], endpoint="salaries_create")
    @guarded(container, is_payroll_staff)
    def salaries_create():
        record = salaries.create(request.get_json(silent=True) or {}, prepared_by=int(current_user().id))
        return ok(record, message="Salary record created successfully", status=201)

    @app.route("/api/salaries", methods=["GET"], endpoint="salaries_list")
    @guarded(container, is_payroll_staff)
    def salaries_list():
        return paginated(salaries.list_all(PageRequest.from_args(request.args), filters=request.args))

    @app.route("/api/salaries/<int:salary_id>/approve", methods=["PUT"], endpoint="salaries_approve")
    @guarded(container, is_payroll_staff)
    def salaries_approve(salary_id: int):
        record = salaries.approve(salary_id, approver_id=int(current_user().id))
        return ok(record, message="Salary record approved successfully")

    @app.route("/api/salaries/<int:salary_id>/pay", methods=["PUT"], endpoint="salaries_pay")
    @guarded(container, is_payroll_staff)
    def salaries_pay(salary_id: int):
        return ok(salaries.mark_paid(salary_id), message="Salary record marked as paid")

    @app.route("/api/salaries/<int:salary_id>", methods=["PUT"], endpoint="salaries_update")
    @guarded(container, is_payroll_staff)
    def salaries_update(salary_id: int):
        record = salaries.update(salary_id, request.get_json(silent=True) or {})
        return ok(record, message="Salary record updated successfully")

    @app.route("/api/salaries/<int:salary_id>", methods=["DELETE"], endpoint="salaries_delete")
    @guarded(container, is_payroll_staff)
    def salaries_delete(salary_id: int):
        salaries.delete(salary_id)
        return ok(message="Salary record deleted successfully")

    @app.route("/api/salaries/<int:salary_id>", methods=["GET"], endpoint="salaries_get")
    @guarded(container)
    def salaries_get(salary_id: int):
        return ok(salaries.get_for(salary_id, user=current_user()))
