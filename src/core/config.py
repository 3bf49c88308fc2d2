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
DB_PATH = PROJECT_ROOT / "data" / "db" / "availability.db"
OUTPUT_DIR = PROJECT_ROOT / "output"

# =============================================================================
# CLOCK CONFIGURATION
# =============================================================================

# Reference clock used for local midnight and work-window bounds
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")

# =============================================================================
# WORK WINDOW DEFAULTS
# =============================================================================

WORK_START_HOUR = int(os.environ.get("WORK_START_HOUR", "9"))
WORK_END_HOUR = int(os.environ.get("WORK_END_HOUR", "17"))

# =============================================================================
# EVENT CONFIGURATION
# =============================================================================

DEFAULT_EVENT_MINUTES = int(os.environ.get("DEFAULT_EVENT_MINUTES", "30"))

# Occurrences evaluated per recurring definition before expansion stops
MAX_RECURRENCE_OCCURRENCES = int(os.environ.get("MAX_RECURRENCE_OCCURRENCES", "5000"))

URGENT_MARKER = "!"
FREE_OVERRIDE_PATTERN = r"\bfree\b"  # matched case-insensitively

# "group": a source's free override also frees the group view
# "source": a free override only frees its own source
FREE_OVERRIDE_SCOPE = os.environ.get("FREE_OVERRIDE_SCOPE", "group").lower()

# Source display names (case-insensitive) kept out of the group union,
# e.g. a standing broadcast schedule
OVERLAY_SOURCE_NAMES = {
    name.strip().lower()
    for name in os.environ.get("OVERLAY_SOURCE_NAMES", "").split(",")
    if name.strip()
}

# =============================================================================
# REPORT CONFIGURATION
# =============================================================================

GROUP_HEADERS = [
    "Date", "Work Start", "Work End", "Total Minutes",
    "Busy Minutes", "Free Minutes", "% Free", "Urgent"
]
PERSON_HEADERS = [
    "Date", "Calendar", "Busy Minutes", "Free Minutes", "% Free",
    "Busy Blocks", "Free Blocks"
]
BLOCK_HEADERS = ["Date", "Calendar", "Start", "End", "Title", "Urgent", "Free Override"]

# =============================================================================
# API CONFIGURATION
# =============================================================================

AVAILABILITY_API_KEY = os.environ.get("AVAILABILITY_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
MAX_UPLOAD_SIZE_MB = int(os.environ.get("MAX_UPLOAD_SIZE_MB", "10"))
MAX_UPLOAD_SIZE_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024
MAX_RANGE_DAYS = int(os.environ.get("MAX_RANGE_DAYS", "366"))
API_VERSION = "1.0.0"
