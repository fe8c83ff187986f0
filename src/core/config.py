"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(os.environ.get("EXPORT_DB_PATH", PROJECT_ROOT / "data" / "db" / "calendar-exports.db"))
OUTPUT_DIR = Path(os.environ.get("EXPORT_OUTPUT_DIR", PROJECT_ROOT / "output"))

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# =============================================================================
# BACKEND CONFIGURATION
# =============================================================================

BACKEND_API_URL = os.environ.get("BACKEND_API_URL", "http://localhost:3000")
BACKEND_API_TOKEN = os.environ.get("BACKEND_API_TOKEN", "")
BACKEND_TIMEOUT_SECONDS = float(os.environ.get("BACKEND_TIMEOUT_SECONDS", "30"))

MONTH_EVENTS_PATH = "/api/events/month"
EVENT_DETAIL_PATH = "/api/events/{event_id}"
EVENT_BATCH_PATH = "/api/events/batch"

DETAIL_BATCH_SIZE = 20  # Max concurrent per-event detail lookups

# =============================================================================
# CALENDAR CONFIGURATION
# =============================================================================

# IANA zone used for local calendar dates. Empty means the host's local zone.
CALENDAR_TIMEZONE = os.environ.get("CALENDAR_TIMEZONE", "")

ORGANIZATION_NAME = os.environ.get("ORGANIZATION_NAME", "Bicol Transfusion Service Centre")

# Keys under which upstream payloads nest their event arrays
ARRAY_CONTAINER_KEYS = ("events", "data", "eventsByDate", "weekDays")
MAX_ARRAY_SEARCH_DEPTH = 6

CATEGORY_BLOOD_DRIVE = "blood-drive"
CATEGORY_TRAINING = "training"
CATEGORY_ADVOCACY = "advocacy"
CATEGORY_OTHER = "other"

CATEGORY_LABELS = {
    CATEGORY_BLOOD_DRIVE: "Blood Drive",
    CATEGORY_TRAINING: "Training",
    CATEGORY_ADVOCACY: "Advocacy",
    CATEGORY_OTHER: "Other",
}

# Notable (emphasized) event heuristic
NOTABLE_UNIT_THRESHOLD = 200
NOTABLE_TITLE_KEYWORDS = ("relaunch", "meeting")
NOTABLE_CATEGORY_MARKER = "special"

WEEKDAY_HEADERS = ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]
TOTAL_HEADER = "TOTAL"

# =============================================================================
# EXPORT CONFIGURATION
# =============================================================================

# Visual grid: A4 landscape in mm, raster captured at 96 DPI with 2x scale
VISUAL_PAGE_WIDTH_MM = 297
VISUAL_PAGE_HEIGHT_MM = 210
VISUAL_MARGIN_MM = 5
VISUAL_TARGET_WIDTH_PX = 1122
VISUAL_RENDER_SCALE = 2

# Organized list: A4 portrait in mm
LIST_PAGE_WIDTH_MM = 210
LIST_PAGE_HEIGHT_MM = 297
LIST_MARGIN_MM = 20

# =============================================================================
# API CONFIGURATION
# =============================================================================

EXPORT_API_KEY = os.environ.get("EXPORT_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"
