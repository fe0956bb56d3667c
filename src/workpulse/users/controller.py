from __future__ import annotations

from flask import Flask, request

from ..api.responses import ok
from ..auth.guards import TOKEN_COOKIE, current_user, guarded
from ..container import Container
from .service import LoginResult


def register(app: Flask, container: Container) -> None:
    auth = container.auth_service
    cookie_max_age = auth.tokens.expire_days * 24 * 3600

    def _token_response(result: LoginResult, *, message: str, status: int = 200):
        response, code = ok({"token": result.token, "user": result.user}, message=message, status=status)
        response.set_cookie(
            TOKEN_COOKIE,
            result.token,
            max_age=cookie_max_age,
            httponly=True,
            secure=not app.debug,
            samesite="Lax",
        )
        return response, code

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        result = auth.register(request.get_json(silent=True) or {})
        return _token_response(result, message="User registered successfully", status=201)

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        data = request.get_json(silent=True) or {}
        result = auth.login(data.get("email"), data.get("password"))
        return _token_response(result, message="Login successful")

    @app.route("/api/auth/forgotpassword", methods=["POST"], endpoint="auth_forgot_password")
    def auth_forgot_password():
        data = request.get_json(silent=True) or {}
        token = auth.forgot_password(data.get("email"))
        # No mail delivery; the raw token is only handed back outside production
        if app.debug or app.testing:
            return ok({"resetToken": token}, message="Password reset token generated")
        return ok(message="Password reset token generated")

    @app.route("/api/auth/resetpassword/<resettoken>", methods=["PUT"], endpoint="auth_reset_password")
    def auth_reset_password(resettoken: str):
        data = request.get_json(silent=True) or {}
        result = auth.reset_password(resettoken, data.get("password"))
        return _token_response(result, message="Password reset successful")

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @app.route("/api/auth/profile", methods=["GET"], endpoint="auth_profile")
    @guarded(container)
    def auth_me():
        return ok(current_user())

    @app.route("/api/auth/profile", methods=["PUT"], endpoint="auth_update_profile")
    @guarded(container)
    def auth_update_profile():
        user = auth.update_profile(int(current_user().id), request.get_json(silent=True) or {})
        return ok(user, message="Profile updated successfully")

    @app.route("/api/auth/updatepassword", methods=["PUT"], endpoint="auth_update_password")
    @guarded(container)
    def auth_update_password():
        data = request.get_json(silent=True) or {}
        result = auth.update_password(int(current_user().id), data.get("currentPassword"), data.get("newPassword"))
        return _token_response(result, message="Password updated successfully")

    @app.route("/api/auth/logout", methods=["GET", "POST"], endpoint="auth_logout")
    @guarded(container)
    def auth_logout():
        response, code = ok(message="Logged out successfully")
        response.set_cookie(TOKEN_COOKIE, "none", max_age=10, httponly=True)
        return response, code
