"""
Date and Time utilities

This module handles all date/time conversions and parsing.
radiko publishes wall-clock times in Japan Standard Time without an offset, so
station times are always read as UTC+9 and stored as UTC.
"""
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo
import logging

logger = logging.getLogger(__name__)

STATION_TZ = timezone(timedelta(hours=9))
STATION_OFFSET_SUFFIX = " +0900"
STATION_TIME_FORMAT = "%Y%m%d%H%M%S"


class DateFormatError(ValueError):
    """Raised when date format is invalid"""
    pass


def _normalize_iso8601_string(date_str: str) -> str:
    """Normalize ISO8601 string by replacing 'Z' with '+00:00'

    Args:
        date_str: ISO8601 datetime string

    Returns:
        Normalized string with explicit timezone offset
    """
    return date_str.replace('Z', '+00:00') if date_str.endswith('Z') else date_str


def parse_iso8601_to_utc(date_str: str) -> datetime:
    """
    Parse ISO8601 date string and convert to UTC datetime

    Args:
        date_str: ISO8601 datetime string (e.g., '2025-10-09T00:00:00Z' or '2025-10-09T09:00:00+09:00')

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        DateFormatError: If the date string format is invalid
    """
    try:
        normalized = _normalize_iso8601_string(date_str)
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, AttributeError, TypeError) as e:
        raise DateFormatError(f"Invalid ISO8601 datetime format: '{date_str}'") from e


def parse_station_time(time_str: str) -> datetime:
    """
    Parse a radiko schedule timestamp and convert to UTC

    Args:
        time_str: Station-local wall clock like '20240101090000'

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        DateFormatError: If the timestamp does not match YYYYMMDDHHMMSS
    """
    try:
        dt = datetime.strptime(time_str + STATION_OFFSET_SUFFIX, f"{STATION_TIME_FORMAT} %z")
    except (ValueError, TypeError) as e:
        raise DateFormatError(f"Invalid station timestamp: '{time_str}'") from e
    return dt.astimezone(timezone.utc)


def format_station_time(value: datetime) -> str:
    """Render an instant as station-local YYYYMMDDHHMMSS."""
    return value.astimezone(STATION_TZ).strftime(STATION_TIME_FORMAT)


def station_today(now: datetime | None = None) -> date:
    """Current calendar date at the stations (UTC+9)."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(STATION_TZ).date()


def schedule_dates(days: int, now: datetime | None = None) -> list[date]:
    """
    Schedule dates to fetch: station-local yesterday plus the following days

    Args:
        days: Total number of dates to return
        now: Reference instant (defaults to the current time)
    """
    first = station_today(now) - timedelta(days=1)
    return [first + timedelta(days=offset) for offset in range(days)]


def convert_to_timezone(utc_time_str: str, target_tz: str) -> str:
    """
    Convert UTC timestamp to target timezone

    Args:
        utc_time_str: ISO8601 UTC timestamp
        target_tz: Target timezone (IANA format or 'UTC')

    Returns:
        ISO8601 timestamp in target timezone
    """
    dt = datetime.fromisoformat(utc_time_str)

    if target_tz == "UTC":
        return dt.isoformat()

    # Convert to target timezone
    target_zone = ZoneInfo(target_tz)
    dt_target = dt.astimezone(target_zone)

    return dt_target.isoformat()
