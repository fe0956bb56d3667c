from __future__ import annotations

from flask import Flask, request

from ..api.responses import ok, paginated
from ..auth.guards import current_user, guarded, is_hr_or_admin
from ..common.pagination import PageRequest
from ..common.validators import optional_enum
from ..container import Container
from ..core.enums import BreakType
from .service import parse_location, parse_method


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @guarded(container)
    def attendance_clock_in():
        data = request.get_json(silent=True) or {}
        record = attendance.clock_in(
            current_user(),
            location=parse_location(data.get("location")),
            method=parse_method(data.get("method")),
            notes=data.get("notes"),
        )
        return ok(record, message="Clocked in successfully", status=201)

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @guarded(container)
    def attendance_clock_out():
        data = request.get_json(silent=True) or {}
        record = attendance.clock_out(
            current_user(),
            location=parse_location(data.get("location")),
            method=parse_method(data.get("method")),
        )
        return ok(record, message="Clocked out successfully")

    @app.route("/api/attendance/break-start", methods=["POST"], endpoint="attendance_break_start")
    @guarded(container)
    def attendance_break_start():
        data = request.get_json(silent=True) or {}
        break_type = optional_enum(data.get("type"), BreakType, "break type") or BreakType.OTHER
        return ok(attendance.start_break(current_user(), break_type=break_type), message="Break started")

    @app.route("/api/attendance/break-end", methods=["POST"], endpoint="attendance_break_end")
    @guarded(container)
    def attendance_break_end():
        return ok(attendance.end_break(current_user()), message="Break ended")

    @app.route("/api/attendance/my-records", methods=["GET"], endpoint="attendance_my_records")
    @guarded(container)
    def attendance_my_records():
        page, summary = attendance.my_records(current_user(), PageRequest.from_args(request.args), filters=request.args)
        return paginated(page, summary=summary)

    @app.route("/api/attendance/my-stats", methods=["GET"], endpoint="attendance_my_stats")
    @guarded(container)
    def attendance_my_stats():
        return ok(attendance.my_stats(current_user(), filters=request.args))

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @guarded(container)
    def attendance_today():
        return ok(attendance.today(current_user()))

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @guarded(container, is_hr_or_admin)
    def attendance_list():
        return paginated(attendance.list_all(PageRequest.from_args(request.args), filters=request.args))

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @guarded(container, is_hr_or_admin)
    def attendance_stats():
        return ok(attendance.stats(filters=request.args))
