"""Clock helpers. Timestamps are stored as naive UTC."""
from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    return datetime.utcnow()


def _resolve_tz(tz_name: str) -> tzinfo:
    if tz_name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(tz_name)


def calendar_date(now: datetime, tz_name: str = "UTC") -> date:
    """
    Calendar date of a naive-UTC timestamp as seen in ``tz_name``.

    Args:
        now: Naive UTC datetime (aware datetimes are converted as-is)
        tz_name: IANA timezone name, e.g. "UTC" or "America/New_York"
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(_resolve_tz(tz_name)).date()
