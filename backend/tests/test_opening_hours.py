"""
Tests for the opening_hours parser and evaluator.

Run with: pytest tests/test_opening_hours.py -v
"""
from datetime import datetime, timedelta

import pytest

from services.opening_hours import (
    ALL_DAYS,
    evaluate_open_now,
    is_open,
    parse_opening_hours,
)

# 2025-01-06 is a Monday
MONDAY = datetime(2025, 1, 6)


def _at(weekday: int, hour: int, minute: int = 0) -> datetime:
    return MONDAY + timedelta(days=weekday, hours=hour, minutes=minute)


def _every_hour_of_week():
    return [_at(day, hour, 30) for day in range(7) for hour in range(24)]


class TestSpecialForms:
    def test_24_7_is_always_open(self):
        schedule = parse_opening_hours("24/7")
        assert schedule is not None
        assert all(is_open(schedule, t) for t in _every_hour_of_week())
        assert is_open(schedule, _at(3, 23, 59))

    def test_24_hours_is_case_insensitive(self):
        schedule = parse_opening_hours("Open 24 Hours")
        assert schedule.rules[0].days == ALL_DAYS
        assert schedule.rules[0].intervals == ((0, 1440),)

    def test_off_is_always_closed(self):
        schedule = parse_opening_hours("off")
        assert schedule is not None
        assert schedule.always_closed
        assert not any(is_open(schedule, t) for t in _every_hour_of_week())

    def test_closed_is_recognised(self):
        schedule = parse_opening_hours("Closed")
        assert schedule.always_closed

    def test_missing_expression_is_unknown(self):
        assert parse_opening_hours(None) is None
        assert parse_opening_hours("   ") is None
        assert evaluate_open_now(None, MONDAY) is None


class TestWeeklyRules:
    def test_weekday_range(self):
        schedule = parse_opening_hours("Mo-Fr 09:00-18:00")
        assert is_open(schedule, _at(2, 10)) is True
        assert is_open(schedule, _at(2, 20)) is False
        assert is_open(schedule, _at(5, 10)) is False

    def test_interval_bounds_are_inclusive(self):
        schedule = parse_opening_hours("Mo-Fr 09:00-18:00")
        assert is_open(schedule, _at(0, 9, 0))
        assert is_open(schedule, _at(0, 18, 0))
        assert not is_open(schedule, _at(0, 18, 1))

    def test_wrapping_day_range_includes_sunday(self):
        schedule = parse_opening_hours("Sa-Mo 08:00-12:00")
        assert schedule.rules[0].days == frozenset({5, 6, 0})
        assert is_open(schedule, _at(6, 9))
        assert not is_open(schedule, _at(1, 9))

    def test_multiple_rules(self):
        schedule = parse_opening_hours("Mo-Sa 08:00-22:00; Su 10:00-20:00")
        assert is_open(schedule, _at(6, 11))
        assert not is_open(schedule, _at(6, 9))
        assert is_open(schedule, _at(5, 21))

    def test_comma_separated_days(self):
        schedule = parse_opening_hours("Mo,We,Fr 07:00-11:00")
        assert schedule.rules[0].days == frozenset({0, 2, 4})
        assert not is_open(schedule, _at(1, 8))

    def test_full_day_names(self):
        schedule = parse_opening_hours("Monday-Wednesday 09:00-17:00; Sunday 12:00-14:00")
        assert schedule.rules[0].days == frozenset({0, 1, 2})
        assert schedule.rules[1].days == frozenset({6})

    def test_bare_time_applies_every_day(self):
        schedule = parse_opening_hours("07:00-15:00")
        assert all(is_open(schedule, _at(day, 8)) for day in range(7))
        assert not is_open(schedule, _at(4, 16))


class TestOvernight:
    @pytest.mark.parametrize(
        "hour,minute,expected",
        [(23, 30, True), (3, 0, False), (1, 0, True), (21, 59, False)],
    )
    def test_overnight_interval(self, hour, minute, expected):
        schedule = parse_opening_hours("22:00-02:00")
        assert is_open(schedule, _at(3, hour, minute)) is expected


class TestBestEffort:
    def test_unknown_fragments_are_skipped(self):
        schedule = parse_opening_hours("PH 10:00-12:00; Mo-Fr 09:00-17:00; garbage")
        assert len(schedule.rules) == 1
        assert is_open(schedule, _at(0, 10))

    def test_rule_without_time_contributes_no_interval(self):
        schedule = parse_opening_hours("Mo-Fr sunrise-sunset")
        assert schedule.rules[0].intervals == ()
        assert evaluate_open_now("Mo-Fr sunrise-sunset", _at(0, 12)) is False

    def test_wholly_unparseable_is_unknown(self):
        assert parse_opening_hours("by appointment") is None
        assert evaluate_open_now("by appointment", _at(0, 12)) is None

    def test_lowercase_day_abbreviation_is_not_a_day(self):
        assert parse_opening_hours("mo-fr 09:00-17:00") is None

    def test_defined_hours_outside_window_is_closed(self):
        assert evaluate_open_now("Sa 10:00-12:00", _at(0, 11)) is False
        assert evaluate_open_now("Sa 10:00-12:00", _at(5, 11)) is True
