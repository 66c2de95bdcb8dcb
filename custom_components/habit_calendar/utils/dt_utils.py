# File: utils/dt_utils.py
"""Date and time utilities for Habit Calendar.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Functions:
    - dt_now_local: Current datetime in local timezone (the default clock)
    - as_local: Convert a datetime to local timezone
    - start_of_local_day: Midnight of a datetime in local timezone
    - dt_to_date: Normalize date/datetime/ISO string inputs to a date
    - dt_parse_date: Parse date strings
    - dt_add_days: Shift a calendar date by whole days
    - dt_combine_local: Build a local datetime from a date and a time of day
    - dt_days_between: Signed number of calendar days between two dates
    - parse_time_of_day: Parse "HH:MM" strings
    - format_ordinal: English ordinal for a positive integer
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time
import logging
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import relativedelta

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during integration setup to configure the user's timezone.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware).

    This is the default clock handed to the coordinator.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Naive datetimes are assumed to be UTC.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Get the start of day (00:00:00) for a datetime in local timezone.

    Args:
        dt_obj: Datetime object (can be in any timezone)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime at 00:00:00 in local timezone (timezone-aware)
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    local_dt = as_local(dt_obj, tz_info)
    return local_dt.replace(hour=0, minute=0, second=0, microsecond=0)


# ==============================================================================
# Date Parsing / Normalization
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts an ISO date ("2026-10-19") or an ISO datetime, whose local calendar
    date is returned.

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(date_str)
    except ValueError:
        _LOGGER.debug("Unparseable date string: %s", date_str)
        return None

    if parsed.tzinfo is None:
        return parsed.date()
    return as_local(parsed).date()


def dt_to_date(value: str | date | datetime, tz: ZoneInfo | None = None) -> date:
    """Normalize a date-like input to its local calendar date.

    Truncates the time of day: a datetime maps to the date it falls on in the
    local timezone, a naive datetime is taken as already local.

    Raises:
        ValueError: If a string input cannot be parsed.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return as_local(value, tz).date()
    if isinstance(value, date):
        return value

    parsed = dt_parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed


def dt_add_days(day: date, days: int) -> date:
    """Return the calendar date shifted by a number of days."""
    return day + relativedelta(days=days)


def dt_days_between(start: date, end: date) -> int:
    """Return the signed number of calendar days from start to end."""
    return (end - start).days


def dt_combine_local(
    day: date, hour: int, minute: int, tz: ZoneInfo | None = None
) -> datetime:
    """Build the local, timezone-aware instant of a time of day on a date."""
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.combine(day, time(hour, minute), tzinfo=tz_info)


# ==============================================================================
# Time of Day
# ==============================================================================


def parse_time_of_day(time_str: str | None) -> tuple[int, int] | None:
    """Parse an "HH:MM" (or "HH:MM:SS") string into an (hour, minute) tuple.

    Range checking is left to the caller so that out-of-range values can be
    reported with a specific error.

    Returns:
        (hour, minute) or None if the string is not in the expected format.
    """
    if not time_str or not isinstance(time_str, str):
        return None

    parts = time_str.strip().split(":")
    if len(parts) not in (2, 3):
        return None

    try:
        hour = int(parts[0])
        minute = int(parts[1])
    except ValueError:
        _LOGGER.debug("Invalid time format: %s (expected HH:MM)", time_str)
        return None

    return hour, minute


def format_ordinal(number: int) -> str:
    """Return the English ordinal of a number: 1st, 2nd, 3rd, 4th, 11th, 21st."""
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"
