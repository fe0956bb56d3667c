from __future__ import annotations

from flask import Flask, request

from ..api.responses import ok, paginated
from ..auth.guards import current_user, guarded, is_admin, is_hr_or_admin
from ..common.pagination import PageRequest
from ..container import Container


def register(app: Flask, container: Container) -> None:
    leaves = container.leave_service
    balances = container.leave_balance_service
    policies = container.leave_policy_service

    # Policies and balances

    @app.route("/api/leaves/policies", methods=["GET"], endpoint="leaves_policies")
    @guarded(container)
    def leaves_policies():
        return ok(policies.list_policies(is_active=request.args.get("isActive")))

    @app.route("/api/leaves/admin/policies", methods=["GET"], endpoint="leaves_admin_policies")
    @guarded(container, is_hr_or_admin)
    def leaves_admin_policies():
        return ok(policies.list_policies(is_active=request.args.get("isActive")))

    @app.route("/api/leaves/admin/policies", methods=["POST"], endpoint="leaves_policy_create")
    @guarded(container, is_admin)
    def leaves_policy_create():
        policy = policies.create(request.get_json(silent=True) or {}, created_by=int(current_user().id))
        return ok(policy, message="Leave policy created successfully", status=201)

    @app.route("/api/leaves/admin/policies/<int:policy_id>", methods=["PUT"], endpoint="leaves_policy_update")
    @guarded(container, is_admin)
    def leaves_policy_update(policy_id: int):
        policy = policies.update(policy_id, request.get_json(silent=True) or {}, updated_by=int(current_user().id))
        return ok(policy, message="Leave policy updated successfully")

    @app.route("/api/leaves/admin/policies/<int:policy_id>", methods=["DELETE"], endpoint="leaves_policy_delete")
    @guarded(container, is_admin)
    def leaves_policy_delete(policy_id: int):
        policies.delete(policy_id)
        return ok(message="Leave policy deleted successfully")

    @app.route("/api/leaves/balance", methods=["GET"], endpoint="leaves_balance")
    @guarded(container)
    def leaves_balance():
        return ok(balances.my_balance(current_user()))

    @app.route("/api/leaves/admin/balances", methods=["GET"], endpoint="leaves_admin_balances")
    @guarded(container, is_hr_or_admin)
    def leaves_admin_balances():
        return paginated(balances.all_balances(PageRequest.from_args(request.args), filters=request.args))

    @app.route("/api/leaves/admin/balances/<int:employee_id>", methods=["PUT"], endpoint="leaves_balance_update")
    @guarded(container, is_hr_or_admin)
    def leaves_balance_update(employee_id: int):
        balance = balances.update_balance(employee_id, request.get_json(silent=True) or {})
        return ok(balance, message="Leave balance updated successfully")

    # Requests

    @app.route("/api/leaves", methods=["POST"], endpoint="leaves_apply")
    @guarded(container)
    def leaves_apply():
        leave = leaves.apply(current_user(), request.get_json(silent=True) or {})
        return ok(leave, message="Leave application submitted successfully", status=201)

    @app.route("/api/leaves/my-leaves", methods=["GET"], endpoint="leaves_mine")
    @guarded(container)
    def leaves_mine():
        page, summary = leaves.my_leaves(current_user(), PageRequest.from_args(request.args), filters=request.args)
        return paginated(page, summary=summary)

    @app.route("/api/leaves", methods=["GET"], endpoint="leaves_list")
    @guarded(container, is_hr_or_admin)
    def leaves_list():
        return paginated(leaves.list_all(PageRequest.from_args(request.args), filters=request.args))

    @app.route("/api/leaves/stats", methods=["GET"], endpoint="leaves_stats")
    @guarded(container, is_hr_or_admin)
    def leaves_stats():
        return ok(leaves.stats(filters=request.args))

    @app.route("/api/leaves/<int:leave_id>", methods=["GET"], endpoint="leaves_get")
    @guarded(container)
    def leaves_get(leave_id: int):
        return ok(leaves.get(leave_id, user=current_user()))

    @app.route("/api/leaves/<int:leave_id>", methods=["PUT"], endpoint="leaves_update")
    @guarded(container)
    def leaves_update(leave_id: int):
        leave = leaves.update(leave_id, user=current_user(), data=request.get_json(silent=True) or {})
        return ok(leave, message="Leave request updated successfully")

    @app.route("/api/leaves/<int:leave_id>", methods=["DELETE"], endpoint="leaves_cancel")
    @guarded(container)
    def leaves_cancel(leave_id: int):
        leaves.cancel(leave_id, user=current_user())
        return ok(message="Leave request cancelled successfully")

    @app.route("/api/leaves/<int:leave_id>/approve", methods=["PUT"], endpoint="leaves_approve")
    @guarded(container, is_hr_or_admin)
    def leaves_approve(leave_id: int):
        data = request.get_json(silent=True) or {}
        leave = leaves.decide(leave_id, approver=current_user(), approve=True, remarks=data.get("remarks"))
        return ok(leave, message="Leave request approved successfully")

    @app.route("/api/leaves/<int:leave_id>/reject", methods=["PUT"], endpoint="leaves_reject")
    @guarded(container, is_hr_or_admin)
    def leaves_reject(leave_id: int):
        data = request.get_json(silent=True) or {}
        leave = leaves.decide(leave_id, approver=current_user(), approve=False, remarks=data.get("remarks"))
        return ok(leave, message="Leave request rejected successfully")
