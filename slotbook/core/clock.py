"""Injectable wall clock."""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time on the canonical (UTC) clock."""
    return datetime.now(UTC)


def fixed_clock(instant: datetime) -> Clock:
    """Clock that always returns ``instant`` (naive values are taken as UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)

    def _now() -> datetime:
        return instant

    return _now


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime onto the canonical clock."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
