"""
Storage vs display timezone handling.

Timestamps are stored in UTC. SQLite drops tzinfo on the way back, so naive
values read from the store are treated as UTC. Reports render in a fixed
display timezone (UTC+8 by default).
"""

from datetime import datetime, timedelta, timezone

from shorturl_app.config import settings


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def display_timezone() -> timezone:
    return timezone(timedelta(hours=settings.display_utc_offset_hours))


def to_display(value: datetime) -> datetime:
    return as_utc(value).astimezone(display_timezone())


def hour_bucket(value: datetime) -> str:
    """Hour slot label in the display timezone: 16:40 falls into "... 16:00" """
    return to_display(value).strftime("%Y-%m-%d %H:00")
