"""
Application constants.
Recurrence kinds, calendar conventions and environment defaults.
"""
import os

# Recurrence kinds
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKDAYS = "weekdays"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_CUSTOM = "custom"
RECURRENCE_UNRECOGNIZED = "unrecognized"

RECURRENCE_TYPES = (
    RECURRENCE_DAILY,
    RECURRENCE_WEEKDAYS,
    RECURRENCE_WEEKLY,
    RECURRENCE_CUSTOM,
)

# Weekday indexing: Sunday=0 ... Saturday=6
WEEKDAY_NAMES = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"
)
WEEKDAY_SHORT_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
WORKING_WEEKDAYS = frozenset({1, 2, 3, 4, 5})

# Legacy "weekly" strings carried no day; the old UI displayed them as Monday
LEGACY_WEEKLY_DEFAULT_DAY = 1

DAY_KEY_FORMAT = "%Y-%m-%d"

# Progress & streaks
STREAK_LOOKBACK_DAYS = 365
PROGRESS_PAST_DAYS = 30
PROGRESS_FUTURE_DAYS = 7
WEEK_WINDOW_DAYS = 7
HEATMAP_MAX_INTENSITY = 4

TIMEFRAME_WEEK = "week"
TIMEFRAME_MONTH = "month"
TIMEFRAME_ALL = "all"

# Daily view item kinds
ITEM_KIND_TODO = "todo"
ITEM_KIND_ACTION = "action"

# Storage
DEFAULT_DB_DIRECTORY = "/var/lib/simpleplan"
DEFAULT_DB_FILE = "simpleplan.db"

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/simpleplan"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

# CORS
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "SIMPLEPLAN_CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]
