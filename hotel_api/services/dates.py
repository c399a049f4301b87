from datetime import date, datetime, time, timezone

from ..errors import InvalidArgument


def as_utc_naive(value: datetime | date) -> datetime:
    """Stored timestamps are naive UTC. Aware values are converted, dates become midnight."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: str) -> datetime:
    """Parse an ISO date or datetime string from a query string."""
    try:
        return as_utc_naive(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    except (AttributeError, ValueError):
        raise InvalidArgument(f"Invalid date: {value!r}") from None
