"""
Slot generation.

Turns recurring weekly availability rules into concrete candidate windows.
Everything here is pure: no storage access, and "now" is always passed in.

Algorithm per calendar day in the requested range:
    1. Skip days before today.
    2. Take the active rules for that day of week.
    3. Tile each rule's [start, end) into back-to-back windows of the slot
       duration, dropping any trailing partial window.
    4. On today, and on tomorrow when now + lead time crosses midnight, the
       first window starts at the first duration boundary (measured from the
       rule start) that is at or after now + lead time.
    5. Sort everything by start.
"""

from collections.abc import Iterable, Iterator, Sequence
from datetime import UTC, date, datetime, timedelta

from slotbook.core.exceptions import ValidationException
from slotbook.schemas.providers import AvailabilityRule, DayOfWeek
from slotbook.schemas.slots import CandidateSlot

DEFAULT_LEAD_TIME = timedelta(minutes=30)

Window = tuple[datetime, datetime]


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Half-open interval overlap; windows that only touch do not overlap."""
    return start < other_end and other_start < end


def iter_days(range_start: date, range_end: date) -> Iterator[date]:
    """Calendar days from ``range_start`` to ``range_end`` inclusive."""
    day = range_start
    while day <= range_end:
        yield day
        day += timedelta(days=1)


def earliest_aligned_start(
    rule_start: datetime,
    not_before: datetime,
    slot_duration: timedelta,
) -> datetime:
    """First ``rule_start + k * slot_duration`` (k >= 0) that is >= ``not_before``."""
    if not_before <= rule_start:
        return rule_start
    # Ceiling division on timedeltas
    steps = -((rule_start - not_before) // slot_duration)
    return rule_start + steps * slot_duration


def tile_rule(
    rule: AvailabilityRule,
    day: date,
    slot_duration: timedelta,
    not_before: datetime | None = None,
) -> list[Window]:
    """
    Split one rule's window on ``day`` into consecutive slots.

    Args:
        rule: Availability rule
        day: Calendar day the rule is applied to
        slot_duration: Length of every produced slot
        not_before: Earliest allowed slot start (same-day lead time)

    Returns:
        Windows of exactly ``slot_duration``, inside [rule.start, rule.end)
    """
    rule_start = datetime.combine(day, rule.start_time, tzinfo=UTC)
    rule_end = datetime.combine(day, rule.end_time, tzinfo=UTC)

    slot_start = rule_start
    if not_before is not None:
        slot_start = earliest_aligned_start(rule_start, not_before, slot_duration)
    slot_start = slot_start.replace(second=0, microsecond=0)

    windows: list[Window] = []
    while slot_start + slot_duration <= rule_end:
        windows.append((slot_start, slot_start + slot_duration))
        slot_start += slot_duration
    return windows


def generate_candidate_windows(
    rules: Iterable[AvailabilityRule],
    range_start: date,
    range_end: date,
    slot_duration_minutes: int,
    now: datetime,
    lead_time: timedelta = DEFAULT_LEAD_TIME,
) -> list[Window]:
    """
    Build every candidate window for a provider over a date range.

    Overlapping rules yield duplicate windows; callers de-duplicate by start.

    Raises:
        ValidationException: If the slot duration is not positive
    """
    if slot_duration_minutes <= 0:
        raise ValidationException.for_field(
            "duration_minutes", "Slot duration must be a positive number of minutes"
        )

    slot_duration = timedelta(minutes=slot_duration_minutes)
    now = now.astimezone(UTC)
    today = now.date()
    earliest_start = now + lead_time

    by_day: dict[DayOfWeek, list[AvailabilityRule]] = {}
    for rule in rules:
        if rule.is_active:
            by_day.setdefault(rule.day_of_week, []).append(rule)

    windows: list[Window] = []
    for day in iter_days(max(range_start, today), range_end):
        # The lead time can reach past midnight into the next day
        not_before = earliest_start if day <= earliest_start.date() else None
        for rule in by_day.get(DayOfWeek.of(day), []):
            windows.extend(tile_rule(rule, day, slot_duration, not_before))

    windows.sort()
    return windows


def annotate_windows(
    windows: Iterable[Window],
    busy: Sequence[Window],
) -> list[CandidateSlot]:
    """Mark each window available unless it overlaps a busy window."""
    slots = []
    for start, end in windows:
        taken = any(overlaps(start, end, busy_start, busy_end) for busy_start, busy_end in busy)
        slots.append(
            CandidateSlot(
                start=start,
                end=end,
                duration_minutes=int((end - start).total_seconds() // 60),
                available=not taken,
            )
        )
    return slots


def fits_availability(
    rules: Iterable[AvailabilityRule],
    start: datetime,
    end: datetime,
) -> bool:
    """Whether [start, end) lies inside a single active rule on its day."""
    start = start.astimezone(UTC)
    end = end.astimezone(UTC)
    day = start.date()
    if end.date() != day:
        return False

    day_of_week = DayOfWeek.of(day)
    for rule in rules:
        if not rule.is_active or rule.day_of_week != day_of_week:
            continue
        rule_start = datetime.combine(day, rule.start_time, tzinfo=UTC)
        rule_end = datetime.combine(day, rule.end_time, tzinfo=UTC)
        if rule_start <= start and end <= rule_end:
            return True
    return False
