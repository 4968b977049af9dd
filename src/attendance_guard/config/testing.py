import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_guard_test"),
}

ORG_TIMEZONE = "Asia/Makassar"

DETECTION_TIMEOUT_SECONDS = 2.0
DETECTION_WORKERS = 2
MAX_PHOTO_BYTES = 1024 * 1024

FACE_DETECTOR_FACTORY = os.getenv("FACE_DETECTOR_FACTORY", "")

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
