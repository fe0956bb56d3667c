from __future__ import annotations

from flask import Flask, request

from ..api.responses import ok, paginated
from ..auth.guards import guarded, is_admin
from ..common.pagination import PageRequest
from ..container import Container


def register(app: Flask, container: Container) -> None:
    admin = container.admin_service

    @app.route("/api/admin/users", methods=["GET"], endpoint="admin_users")
    @guarded(container, is_admin)
    def admin_users():
        return paginated(admin.list_users(PageRequest.from_args(request.args), filters=request.args))

    @app.route("/api/admin/users/<int:user_id>/activate", methods=["PUT"], endpoint="admin_activate")
    @guarded(container, is_admin)
    def admin_activate(user_id: int):
        return ok(admin.activate(user_id), message="User activated successfully")

    @app.route("/api/admin/users/<int:user_id>/deactivate", methods=["PUT"], endpoint="admin_deactivate")
    @guarded(container, is_admin)
    def admin_deactivate(user_id: int):
        return ok(admin.deactivate(user_id), message="User deactivated successfully")

    @app.route("/api/admin/users/<int:user_id>/role", methods=["PUT"], endpoint="admin_change_role")
    @guarded(container, is_admin)
    def admin_change_role(user_id: int):
        data = request.get_json(silent=True) or {}
        return ok(admin.change_role(user_id, data.get("role")), message="User role updated successfully")

    @app.route("/api/admin/users/<int:user_id>/reset-password", methods=["PUT"], endpoint="admin_reset_password")
    @guarded(container, is_admin)
    def admin_reset_password(user_id: int):
        data = request.get_json(silent=True) or {}
        admin.reset_password(user_id, data.get("newPassword") or data.get("password"))
        return ok(message="Password reset successfully")

    @app.route("/api/admin/users/<int:user_id>/temp-password", methods=["POST"], endpoint="admin_temp_password")
    @guarded(container, is_admin)
    def admin_temp_password(user_id: int):
        return ok({"tempPassword": admin.temporary_password(user_id)}, message="Temporary password generated successfully")

    @app.route("/api/admin/stats", methods=["GET"], endpoint="admin_stats")
    @guarded(container, is_admin)
    def admin_stats():
        return ok(admin.system_stats())
