from datetime import datetime, date
from typing import Optional, Union

import pytz

from habitcheck.config import config

DATE_KEY_FORMAT = "%Y-%m-%d"


def get_timezone(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name) if tz_name else config.get_timezone()


def now_local(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(get_timezone(tz_name))


def ensure_aware(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """Attach the configured zone to a naive datetime; aware values pass through."""
    if dt.tzinfo is not None and dt.tzinfo.utcoffset(dt) is not None:
        return dt
    return get_timezone(tz_name).localize(dt)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO 8601 timestamp (a trailing Z is accepted) into an aware datetime.

    Raises ValueError for anything that is not a point in time.
    """
    if isinstance(value, datetime):
        return ensure_aware(value)
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be an ISO 8601 string, got {type(value).__name__}")
    return ensure_aware(datetime.fromisoformat(value.strip().replace('Z', '+00:00')))


def date_key(dt: Union[datetime, date]) -> str:
    return dt.strftime(DATE_KEY_FORMAT)


def format_activity_time(dt: datetime) -> str:
    """Render like 'Jan 10, 3:05 PM'."""
    hour = dt.hour % 12 or 12
    return f"{dt.strftime('%b')} {dt.day}, {hour}:{dt.strftime('%M %p')}"
