from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from attendance_guard.config import get_settings_module
from attendance_guard.database.bootstrap import apply_schema
from attendance_guard.main import SCHEMA_PATH, configure_logging

logger = logging.getLogger("init_db")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    executed = apply_schema(db_config, schema_path=SCHEMA_PATH)
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (statements=%d)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        executed,
    )


if __name__ == "__main__":
    main()
