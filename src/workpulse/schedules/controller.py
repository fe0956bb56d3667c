from __future__ import annotations

from flask import Flask, request

from ..api.responses import ok, paginated
from ..auth.guards import current_user, guarded, is_hr_or_admin, require_roles
from ..common.pagination import PageRequest
from ..container import Container
from ..core.enums import Role

is_swap_approver = require_roles(Role.ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    schedules = container.schedule_service

    @app.route("/api/schedules/my-schedules", methods=["GET"], endpoint="schedules_mine")
    @guarded(container)
    def schedules_mine():
        return paginated(schedules.my_schedules(current_user(), PageRequest.from_args(request.args), filters=request.args))

    @app.route("/api/schedules/<int:schedule_id>/swap-request", methods=["POST"], endpoint="schedules_swap_request")
    @guarded(container)
    def schedules_swap_request(schedule_id: int):
        data = request.get_json(silent=True) or {}
        schedule = schedules.request_swap(
            schedule_id, user=current_user(), requested_with=data.get("requestedWith"), reason=data.get("reason")
        )
        return ok(schedule, message="Shift swap request submitted successfully")

    @app.route("/api/schedules/<int:schedule_id>/swap-request/approve", methods=["PUT"], endpoint="schedules_swap_approve")
    @guarded(container, is_swap_approver)
    def schedules_swap_approve(schedule_id: int):
        schedule = schedules.decide_swap(schedule_id, approver_id=int(current_user().id), approve=True)
        return ok(schedule, message="Shift swap approved")

    @app.route("/api/schedules/<int:schedule_id>/swap-request/reject", methods=["PUT"], endpoint="schedules_swap_reject")
    @guarded(container, is_swap_approver)
    def schedules_swap_reject(schedule_id: int):
        schedule = schedules.decide_swap(schedule_id, approver_id=int(current_user().id), approve=False)
        return ok(schedule, message="Shift swap rejected")

    @app.route("/api/schedules", methods=["POST"], endpoint="schedules_create")
    @guarded(container, is_hr_or_admin)
    def schedules_create():
        created = schedules.create(request.get_json(silent=True) or {}, created_by=int(current_user().id))
        return ok(
            created.schedule,
            message="Schedule created successfully",
            status=201,
            recurringCreated=created.recurring_created,
        )

    @app.route("/api/schedules", methods=["GET"], endpoint="schedules_list")
    @guarded(container, is_hr_or_admin)
    def schedules_list():
        return paginated(schedules.list_all(PageRequest.from_args(request.args), filters=request.args))

    @app.route("/api/schedules/stats", methods=["GET"], endpoint="schedules_stats")
    @guarded(container, is_hr_or_admin)
    def schedules_stats():
        return ok(schedules.stats(filters=request.args))

    @app.route("/api/schedules/<int:schedule_id>", methods=["PUT"], endpoint="schedules_update")
    @guarded(container, is_hr_or_admin)
    def schedules_update(schedule_id: int):
        schedule = schedules.update(schedule_id, request.get_json(silent=True) or {}, modified_by=int(current_user().id))
        return ok(schedule, message="Schedule updated successfully")

    @app.route("/api/schedules/<int:schedule_id>", methods=["DELETE"], endpoint="schedules_delete")
    @guarded(container, is_hr_or_admin)
    def schedules_delete(schedule_id: int):
        schedules.delete(schedule_id)
        return ok(message="Schedule deleted successfully")
