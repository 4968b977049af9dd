"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000.0

DEFAULT_ORG_TIMEZONE = "Asia/Makassar"
DEFAULT_DETECTION_TIMEOUT_SECONDS = 10.0
DEFAULT_DETECTION_WORKERS = 4
DEFAULT_MAX_PHOTO_BYTES = 10 * 1024 * 1024

DEFAULT_LATE_TOLERANCE_MINUTES = 15
DEFAULT_OVERTIME_CAP_MINUTES = 480

DEFAULT_PIN_MAX_ATTEMPTS = 3
DEFAULT_PIN_LOCKOUT_MINUTES = 30
PIN_LENGTH = 6

DEFAULT_FACE_THRESHOLD = 0.70
DEFAULT_FACE_HIGH_BAND = 0.80
DEFAULT_FACE_MEDIUM_BAND = 0.60
DEFAULT_BOX_WEIGHT = 0.3
DEFAULT_KEYPOINT_WEIGHT = 0.7
DEFAULT_EMBEDDING_SCALE = 1.5

# Geometry matcher normalisation (pixels, detector input is resized to 640 wide).
GEOMETRY_FRAME_SIZE = 640.0
KEYPOINT_MAX_DISTANCE = 80.0
