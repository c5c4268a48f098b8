"""
Unix epoch helpers.

Every persisted timestamp in this service is an integer count of seconds since
the epoch (UTC). Milliseconds never reach the database.
"""
import math
import time
from datetime import datetime, timezone, timedelta, date

SECONDS_PER_DAY = 86400


def now_epoch() -> int:
    return int(time.time())


def to_epoch(value: datetime) -> int:
    """Convert an aware or naive (assumed UTC) datetime to epoch seconds"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def inclusive_day_count(start: int, end: int) -> int:
    """Days covered by [start, end], counting a partial day as a whole one"""
    return math.ceil((end - start) / SECONDS_PER_DAY) + 1


def local_day(seconds: int, tz_offset_minutes: int = 0) -> date:
    """
    Calendar day of an epoch timestamp as seen by a client.

    tz_offset_minutes follows the browser convention (UTC+3 is -180), so the
    offset is subtracted to reach local time.
    """
    return (from_epoch(seconds) - timedelta(minutes=tz_offset_minutes)).date()


def months_ago_epoch(months: int, reference: int = None) -> int:
    """Epoch of the first day of the month `months` before the reference instant"""
    ref = from_epoch(reference if reference is not None else now_epoch())
    month_index = ref.year * 12 + (ref.month - 1) - months
    year, month = divmod(month_index, 12)
    return to_epoch(ref.replace(year=year, month=month + 1, day=1))
