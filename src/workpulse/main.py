from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .api.errors import register_error_handlers
from .api.responses import ok
from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_admin_user, list_tables
from .leaves.controller import register as register_leaves
from .payroll.controller import register as register_payroll
from .schedules.controller import register as register_schedules
from .users.admin_controller import register as register_admin
from .users.controller import register as register_auth
from .users.employee_controller import register as register_employees

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the API; pass a container to run over in-memory repositories."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            ensure_admin_user(
                db_config,
                email=getattr(settings, "ADMIN_EMAIL", ""),
                password=getattr(settings, "ADMIN_PASSWORD", ""),
            )
        container = build_container(db_config=db_config, settings=settings)

    register_error_handlers(app)
    register_auth(app, container)
    register_employees(app, container)
    register_admin(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    register_schedules(app, container)
    register_payroll(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return ok({"status": "ok"}, message="WorkPulse API is running")

    return app
