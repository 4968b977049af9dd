from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema
from .faces.detector import FaceDetector

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "database" / "schema.sql"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def load_detector(path: str) -> FaceDetector:
    """Build the detector from ``"package.module:factory"``."""

    if not path:
        raise RuntimeError("FACE_DETECTOR_FACTORY is not set and no detector was supplied")
    module_name, _, attr = path.partition(":")
    if not attr:
        raise RuntimeError(f"FACE_DETECTOR_FACTORY must look like 'module:callable', got {path!r}")
    factory = getattr(importlib.import_module(module_name), attr)
    return factory()


def create_app(*, detector: Optional[FaceDetector] = None, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    db_config = getattr(settings, "DB_CONFIG")
    max_photo_bytes = int(getattr(settings, "MAX_PHOTO_BYTES"))
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    # Leave room for multipart overhead; the exact photo limit is enforced by the detection gateway.
    app.config["MAX_CONTENT_LENGTH"] = max_photo_bytes * 2

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)

        container = build_container(
            db_config=db_config,
            detector=detector or load_detector(getattr(settings, "FACE_DETECTOR_FACTORY", "")),
            org_timezone_name=getattr(settings, "ORG_TIMEZONE", None),
            detection_timeout=float(getattr(settings, "DETECTION_TIMEOUT_SECONDS")),
            detection_workers=int(getattr(settings, "DETECTION_WORKERS")),
            max_photo_bytes=max_photo_bytes,
        )
        atexit.register(container.close)

    app.extensions["attendance_guard"] = container
    register_attendance(app, container)

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000)
