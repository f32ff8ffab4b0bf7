"""UTC-everywhere time handling, plus the backend's YYYY-MM-DD date format."""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """Current calendar date in UTC."""
    return now_utc().date()


def to_wire_date(value: date | datetime) -> str:
    """
    Serialize a date for the backend as YYYY-MM-DD.

    Aware datetimes are converted to UTC first. Naive datetimes are
    rejected: their calendar date is ambiguous.

    Raises:
        ValueError: If value is a naive datetime
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError(
                "Cannot serialize naive datetime. Datetime must be timezone-aware."
            )
        value = value.astimezone(timezone.utc).date()
    return value.isoformat()
