"""Datetime utilities."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

NOTIFICATION_TIME_FORMAT = "%Y%m%d%H%M%S"
WINDOW_TOLERANCE = timedelta(seconds=10)


def parse_notification_time(file_name: str) -> datetime:
    """Parse the UTC timestamp that prefixes a notification file name.

    The first 14 characters of the file name are ``YYYYMMDDHHMMSS`` in UTC.

    Raises:
        ValueError: If the prefix is missing or is not a valid timestamp.
    """
    prefix = file_name[:14]
    if len(prefix) < 14:
        raise ValueError(f"File name too short for a timestamp: {file_name!r}")
    return datetime.strptime(prefix, NOTIFICATION_TIME_FORMAT).replace(tzinfo=timezone.utc)


def notification_window(file_name: str, time_zone: str) -> tuple[datetime, datetime]:
    """Convert a notification file name into an attachment lookup window.

    Args:
        file_name: Notification file name, starting with a UTC timestamp.
        time_zone: IANA zone the attachment table stores its times in.

    Returns:
        Tuple of (start, end) naive datetimes in ``time_zone`` where end is
        start plus the lookup tolerance.
    """
    local = parse_notification_time(file_name).astimezone(ZoneInfo(time_zone))
    start = local.replace(tzinfo=None)
    return start, start + WINDOW_TOLERANCE
