# dispatch/utils/timezones.py
from datetime import datetime
from zoneinfo import ZoneInfo
from typing import Optional

from dispatch.core.config import settings

LOCAL_TZ = ZoneInfo(settings.local_timezone)
UTC = ZoneInfo("UTC")


def local_now() -> datetime:
    return datetime.now(LOCAL_TZ)


def to_local(moment: Optional[datetime] = None) -> datetime:
    """
    Normalize a timestamp to the dispatch timezone.
    Naive datetimes are taken as already local; aware ones are converted.
    """
    if moment is None:
        return local_now()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=LOCAL_TZ)
    return moment.astimezone(LOCAL_TZ)


def utcnow_naive() -> datetime:
    # DateTime columns store naive UTC
    return datetime.now(UTC).replace(tzinfo=None)
