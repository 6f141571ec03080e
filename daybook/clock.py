"""Application timezone helpers for deciding what "today" is."""
import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

# App timezone setting - defaults to Central Time
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "America/Chicago")


def get_app_tz() -> ZoneInfo:
    """Get the application timezone."""
    return ZoneInfo(APP_TIMEZONE)


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime. Use this instead of datetime.now()."""
    return datetime.now(timezone.utc)


def local_today() -> date:
    """Today's date in the app timezone."""
    return utc_now().astimezone(get_app_tz()).date()


def parse_plan_date(value: str) -> date:
    """Parse a YYYY-MM-DD path segment. Raises ValueError."""
    return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
