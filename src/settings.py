"""Static configuration for eskertu.

All user-editable settings (database, schedule, notifications, logging) live
in a single JSON file for quick edits without touching Python. Secrets stay
in the environment.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite database; relative paths resolve from the project root.
_database = _CONFIG.get("database", {})
DB_PATH = _database.get("path", "eskertu.db")
if not os.path.isabs(DB_PATH):
    DB_PATH = os.path.join(PROJECT_ROOT, DB_PATH)

# Daily trigger. Validation happens when the scheduler is built so a bad
# value stops startup with a clear error.
# - SCHEDULE_TIME: "HH:MM" wall-clock time
# - SCHEDULE_TIMEZONE: IANA zone name, or null for the system local zone
# - MISFIRE_GRACE_SECONDS: how late a delayed run may still start
_schedule = _CONFIG.get("schedule", {})
SCHEDULE_TIME = _schedule.get("time", "09:00")
SCHEDULE_TIMEZONE = _schedule.get("timezone")
MISFIRE_GRACE_SECONDS = int(_schedule.get("misfire_grace_seconds", 3600))

# Notification method switches adapters without changing core logic.
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "bot_api")
DELIVERY_TIMEOUT_SECONDS = float(_notifications.get("delivery_timeout_seconds", 10))
MAX_PARALLEL_DELIVERIES = int(_notifications.get("max_parallel_deliveries", 8))
ANNOUNCE_NEW_TENANTS = bool(_notifications.get("announce_new_tenants", True))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
