from __future__ import annotations

from typing import Any, Optional

from flask import jsonify

from ..common.pagination import Page
from ..common.serialization import to_json


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200, **extra: Any):
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = to_json(data)
    if message:
        body["message"] = message
    for key, value in extra.items():
        body[key] = to_json(value)
    return jsonify(body), status


def paginated(page: Page, *, message: Optional[str] = None, **extra: Any):
    return ok(list(page.items), message=message, pagination=page.meta(), **extra)


def failure(message: str, status: int, *, error: Optional[str] = None):
    body: dict[str, Any] = {"success": False, "message": message}
    if error:
        body["error"] = error
    return jsonify(body), status
