# config/settings.py
#
#   loading environment variables such as the database path and timezone from .env

import os

import pytz
from dotenv import load_dotenv

load_dotenv()  # loads .env into environment


def _hours(name, default):
    raw = os.getenv(name, default)
    try:
        hours = float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number of hours, got {raw!r}!") from None
    if hours <= 0:
        raise RuntimeError(f"{name} must be positive!")
    return hours


# storage
DB_PATH = os.getenv("BIZWORX_DB_PATH", "bizworx.db")

# business timezone, slot hours (8 AM, 6 PM) are read on this clock
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "America/Regina")

# scheduler
RESCHEDULE_INTERVAL_HOURS = _hours("RESCHEDULE_INTERVAL_HOURS", "24")
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "True").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# checks
if APP_TIMEZONE not in pytz.all_timezones_set:
    raise RuntimeError(f"APP_TIMEZONE {APP_TIMEZONE!r} is not a known timezone!")
