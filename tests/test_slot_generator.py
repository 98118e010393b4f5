"""Tests for candidate slot generation and conflict annotation."""

from datetime import UTC, date, datetime, time, timedelta

import pytest

from slotbook.core.exceptions import ValidationException
from slotbook.schemas.providers import AvailabilityRule, DayOfWeek
from slotbook.services.slot_generator import (
    annotate_windows,
    earliest_aligned_start,
    fits_availability,
    generate_candidate_windows,
    overlaps,
)
from conftest import MONDAY, NOW, WEDNESDAY, at

SUNDAY_BEFORE = MONDAY - timedelta(days=1)


def rule(day: DayOfWeek, start: time, end: time, is_active: bool = True) -> AvailabilityRule:
    return AvailabilityRule(day_of_week=day, start_time=start, end_time=end, is_active=is_active)


def test_day_of_week_is_sunday_first():
    assert DayOfWeek.of(date(2026, 10, 18)) == DayOfWeek.SUNDAY
    assert DayOfWeek.of(MONDAY) == DayOfWeek.MONDAY
    assert DayOfWeek.of(date(2026, 10, 24)) == DayOfWeek.SATURDAY


def test_rule_requires_start_before_end():
    with pytest.raises(ValueError):
        rule(DayOfWeek.MONDAY, time(11), time(9))
    with pytest.raises(ValueError):
        rule(DayOfWeek.MONDAY, time(9), time(9))


def test_no_rules_yield_no_windows():
    assert generate_candidate_windows([], MONDAY, MONDAY + timedelta(days=6), 60, NOW) == []


def test_two_hour_rule_gives_two_hour_slots():
    rules = [rule(DayOfWeek.MONDAY, time(9), time(11))]

    windows = generate_candidate_windows(rules, MONDAY, MONDAY, 60, now=at(SUNDAY_BEFORE, 12))

    assert windows == [
        (at(MONDAY, 9), at(MONDAY, 10)),
        (at(MONDAY, 10), at(MONDAY, 11)),
    ]


def test_trailing_partial_window_is_dropped():
    rules = [rule(DayOfWeek.MONDAY, time(9), time(11))]

    windows = generate_candidate_windows(rules, MONDAY, MONDAY, 45, now=at(SUNDAY_BEFORE, 12))

    assert windows == [
        (at(MONDAY, 9), at(MONDAY, 9, 45)),
        (at(MONDAY, 9, 45), at(MONDAY, 10, 30)),
    ]


def test_every_window_has_exact_length_and_fits_its_rule():
    rules = [
        rule(DayOfWeek.MONDAY, time(9), time(17)),
        rule(DayOfWeek.WEDNESDAY, time(9), time(12)),
        rule(DayOfWeek.WEDNESDAY, time(14, 15), time(16, 50)),
    ]

    windows = generate_candidate_windows(rules, MONDAY, MONDAY + timedelta(days=13), 25, NOW)

    assert windows
    for start, end in windows:
        assert end - start == timedelta(minutes=25)
        assert fits_availability(rules, start, end)


def test_windows_are_sorted_and_generation_is_idempotent():
    rules = [
        rule(DayOfWeek.WEDNESDAY, time(13), time(15)),
        rule(DayOfWeek.MONDAY, time(14), time(16)),
        rule(DayOfWeek.WEDNESDAY, time(9), time(11)),
    ]

    first = generate_candidate_windows(rules, MONDAY, MONDAY + timedelta(days=6), 30, NOW)
    second = generate_candidate_windows(rules, MONDAY, MONDAY + timedelta(days=6), 30, NOW)

    assert first == second
    assert first == sorted(first)
    assert first[0] == (at(MONDAY, 14), at(MONDAY, 14, 30))
    assert first[-1] == (at(WEDNESDAY, 14, 30), at(WEDNESDAY, 15))


def test_inactive_rules_are_ignored():
    rules = [rule(DayOfWeek.MONDAY, time(9), time(11), is_active=False)]

    assert generate_candidate_windows(rules, MONDAY, MONDAY, 60, NOW) == []


def test_days_before_today_are_skipped():
    rules = [rule(DayOfWeek.MONDAY, time(9), time(10))]

    windows = generate_candidate_windows(rules, MONDAY - timedelta(days=7), MONDAY, 60, NOW)

    assert windows == [(at(MONDAY, 9), at(MONDAY, 10))]


def test_same_day_slots_start_after_lead_time_on_rule_grid():
    rules = [rule(DayOfWeek.MONDAY, time(9), time(12))]
    now = at(MONDAY, 9, 10)

    windows = generate_candidate_windows(rules, MONDAY, MONDAY, 60, now)

    # 09:40 is the floor; the next hour boundary measured from 09:00 is 10:00
    assert windows == [
        (at(MONDAY, 10), at(MONDAY, 11)),
        (at(MONDAY, 11), at(MONDAY, 12)),
    ]
    assert all(start >= now + timedelta(minutes=30) for start, _ in windows)


def test_slot_starting_exactly_at_lead_time_floor_is_kept():
    rules = [rule(DayOfWeek.MONDAY, time(9), time(10))]

    windows = generate_candidate_windows(rules, MONDAY, MONDAY, 20, at(MONDAY, 9, 10))

    assert windows == [(at(MONDAY, 9, 40), at(MONDAY, 10))]


def test_same_day_floor_with_seconds_rounds_to_next_boundary():
    rules = [rule(DayOfWeek.MONDAY, time(9), time(11))]
    now = datetime(2026, 10, 19, 9, 10, 37, tzinfo=UTC)

    windows = generate_candidate_windows(rules, MONDAY, MONDAY, 20, now)

    assert windows[0] == (at(MONDAY, 10), at(MONDAY, 10, 20))
    assert all(start.second == 0 and start.microsecond == 0 for start, _ in windows)


def test_rounding_past_rule_end_yields_nothing_for_that_rule():
    rules = [
        rule(DayOfWeek.MONDAY, time(9), time(10)),
        rule(DayOfWeek.MONDAY, time(14), time(15)),
    ]

    windows = generate_candidate_windows(rules, MONDAY, MONDAY, 60, at(MONDAY, 9, 45))

    assert windows == [(at(MONDAY, 14), at(MONDAY, 15))]


def test_lead_time_crossing_midnight_trims_next_day():
    """Test a late-evening query hides next-day slots that booking would refuse."""
    rules = [rule(DayOfWeek.MONDAY, time(0), time(2))]

    windows = generate_candidate_windows(rules, MONDAY, MONDAY, 60, at(SUNDAY_BEFORE, 23, 50))

    assert windows == [(at(MONDAY, 1), at(MONDAY, 2))]


def test_lead_time_does_not_reach_later_days():
    rules = [rule(DayOfWeek.WEDNESDAY, time(0), time(1))]

    windows = generate_candidate_windows(rules, WEDNESDAY, WEDNESDAY, 60, at(MONDAY, 23, 50))

    assert windows == [(at(WEDNESDAY, 0), at(WEDNESDAY, 1))]


def test_overlapping_rules_produce_duplicate_windows():
    rules = [
        rule(DayOfWeek.MONDAY, time(9), time(11)),
        rule(DayOfWeek.MONDAY, time(10), time(12)),
    ]

    windows = generate_candidate_windows(rules, MONDAY, MONDAY, 60, now=at(SUNDAY_BEFORE, 12))

    assert windows.count((at(MONDAY, 10), at(MONDAY, 11))) == 2


@pytest.mark.parametrize("duration", [0, -15])
def test_non_positive_duration_is_rejected(duration):
    rules = [rule(DayOfWeek.MONDAY, time(9), time(11))]

    with pytest.raises(ValidationException) as exc_info:
        generate_candidate_windows(rules, MONDAY, MONDAY, duration, NOW)

    assert exc_info.value.details[0]["loc"] == ["duration_minutes"]


def test_earliest_aligned_start():
    rule_start = at(MONDAY, 9)
    hour = timedelta(hours=1)

    assert earliest_aligned_start(rule_start, at(MONDAY, 8), hour) == rule_start
    assert earliest_aligned_start(rule_start, at(MONDAY, 9), hour) == rule_start
    assert earliest_aligned_start(rule_start, at(MONDAY, 9, 1), hour) == at(MONDAY, 10)
    assert earliest_aligned_start(rule_start, at(MONDAY, 11), hour) == at(MONDAY, 11)


def test_touching_windows_do_not_overlap():
    assert not overlaps(at(MONDAY, 9), at(MONDAY, 10), at(MONDAY, 10), at(MONDAY, 11))
    assert not overlaps(at(MONDAY, 10), at(MONDAY, 11), at(MONDAY, 9), at(MONDAY, 10))
    assert overlaps(at(MONDAY, 9), at(MONDAY, 10), at(MONDAY, 9, 59), at(MONDAY, 11))
    assert overlaps(at(MONDAY, 9), at(MONDAY, 12), at(MONDAY, 10), at(MONDAY, 11))


def test_annotation_marks_only_overlapping_windows_taken():
    windows = [
        (at(MONDAY, 9), at(MONDAY, 10)),
        (at(MONDAY, 10), at(MONDAY, 11)),
        (at(MONDAY, 11), at(MONDAY, 12)),
    ]
    busy = [(at(MONDAY, 10), at(MONDAY, 10, 30))]

    slots = annotate_windows(windows, busy)

    assert [slot.available for slot in slots] == [True, False, True]
    assert all(slot.duration_minutes == 60 for slot in slots)


def test_fits_availability():
    rules = [
        rule(DayOfWeek.MONDAY, time(9), time(12)),
        rule(DayOfWeek.WEDNESDAY, time(9), time(12), is_active=False),
    ]

    assert fits_availability(rules, at(MONDAY, 9), at(MONDAY, 12))
    assert fits_availability(rules, at(MONDAY, 10, 15), at(MONDAY, 10, 45))
    assert not fits_availability(rules, at(MONDAY, 11, 30), at(MONDAY, 12, 30))
    assert not fits_availability(rules, at(MONDAY, 8, 30), at(MONDAY, 9, 30))
    assert not fits_availability(rules, at(WEDNESDAY, 9), at(WEDNESDAY, 10))
    assert not fits_availability(rules, at(SUNDAY_BEFORE, 9), at(SUNDAY_BEFORE, 10))
