from datetime import datetime, timedelta

PERIOD_DAYS = {
    "day": 1,
    "week": 7,
    "month": 30,
    "quarter": 90,
    "year": 365,
}


def period_window(period: str, until: datetime) -> tuple[datetime, datetime]:
    """Return the ``(start, end)`` datetimes a report period covers, ending at ``until``."""
    try:
        days = PERIOD_DAYS[period]
    except KeyError:
        raise ValueError(f"Unknown report period: {period!r}") from None
    return until - timedelta(days=days), until


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
