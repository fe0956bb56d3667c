from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from workpulse.config import get_settings_module
from workpulse.database.bootstrap import ensure_admin_user

logger = logging.getLogger("workpulse.scripts.seed_db")


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ensure_admin_user(db_config, email=settings.ADMIN_EMAIL, password=settings.ADMIN_PASSWORD)
    logger.info("seeded bootstrap admin into %s/%s", db_config.get("host"), db_config.get("database"))


if __name__ == "__main__":
    main()
