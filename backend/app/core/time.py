"""Time helpers shared by models and services."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Timezone-aware UTC now, used for column defaults and onupdate hooks."""
    return datetime.now(UTC)


def as_naive_utc(value: datetime) -> datetime:
    """
    Convert ``value`` to a naive UTC datetime so it can be compared with
    session dates and times, which are stored without a timezone.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
