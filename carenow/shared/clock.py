"""Wall-clock helpers for the marketplace timezone"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from ..config import APP_TIMEZONE


def local_now() -> datetime:
    """Current time in APP_TIMEZONE as a naive datetime, comparable with booking slots"""
    return datetime.now(ZoneInfo(APP_TIMEZONE)).replace(tzinfo=None)


def to_local(moment: datetime) -> datetime:
    """Convert a stored naive UTC timestamp to naive local time"""
    return moment.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(APP_TIMEZONE)).replace(tzinfo=None)
