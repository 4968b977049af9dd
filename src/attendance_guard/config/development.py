import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_guard"),
}

# All schedule arithmetic happens in this zone (WITA by default).
ORG_TIMEZONE = os.getenv("ORG_TIMEZONE", "Asia/Makassar")

DETECTION_TIMEOUT_SECONDS = float(os.getenv("DETECTION_TIMEOUT_SECONDS", "10"))
DETECTION_WORKERS = int(os.getenv("DETECTION_WORKERS", "4"))
MAX_PHOTO_BYTES = int(os.getenv("MAX_PHOTO_BYTES", str(10 * 1024 * 1024)))

# Dotted path "package.module:callable" returning a FaceDetector.
FACE_DETECTOR_FACTORY = os.getenv("FACE_DETECTOR_FACTORY", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
