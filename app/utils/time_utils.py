"""Time helpers. All persisted timestamps are naive UTC."""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current UTC time without tzinfo, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def minutes_from_now(minutes: int, now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(minutes=minutes)


def is_past(moment: datetime | None, now: datetime | None = None) -> bool:
    """True when ``moment`` is set and lies strictly before ``now``."""
    if moment is None:
        return False
    return (now or utcnow()) > moment
