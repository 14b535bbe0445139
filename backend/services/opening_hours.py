"""
Parse OSM-style ``opening_hours`` strings and check whether a place is open.

Supports the subset cafés actually use in practice, e.g. ``"Mo-Fr 09:00-18:00"``,
``"24/7"``, ``"Mo-Sa 08:00-22:00; Su 10:00-20:00"`` or a bare ``"07:00-15:00"``.
Parsing is best-effort: fragments that are not understood are skipped rather
than failing the whole expression.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, Optional, Tuple

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

# Index matches datetime.weekday(): Monday is 0.
_DAY_TOKENS = {
    "Mo": 0,
    "Tu": 1,
    "We": 2,
    "Th": 3,
    "Fr": 4,
    "Sa": 5,
    "Su": 6,
    "Monday": 0,
    "Tuesday": 1,
    "Wednesday": 2,
    "Thursday": 3,
    "Friday": 4,
    "Saturday": 5,
    "Sunday": 6,
}
ALL_DAYS: FrozenSet[int] = frozenset(range(7))

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})$")
_DAY_RULE_RE = re.compile(r"^([A-Za-z]+(?:\s*[-,]\s*[A-Za-z]+)*)\s+(.+)$")


@dataclass(frozen=True)
class ScheduleRule:
    days: FrozenSet[int]
    intervals: Tuple[Tuple[int, int], ...] = ()


@dataclass(frozen=True)
class ScheduleExpression:
    rules: Tuple[ScheduleRule, ...] = ()

    @property
    def always_closed(self) -> bool:
        return not self.rules


ALWAYS_OPEN = ScheduleExpression(rules=(ScheduleRule(days=ALL_DAYS, intervals=((0, MINUTES_PER_DAY),)),))
ALWAYS_CLOSED = ScheduleExpression(rules=())


def _parse_time_range(text: str) -> Optional[Tuple[int, int]]:
    match = _TIME_RE.match(text.strip())
    if not match:
        return None
    start_h, start_m, end_h, end_m = (int(g) for g in match.groups())
    return start_h * 60 + start_m, end_h * 60 + end_m


def _parse_day_spec(spec: str) -> Optional[FrozenSet[int]]:
    """
    Expand a day spec like ``"Mo-Fr"``, ``"Sa,Su"`` or ``"Monday"`` into weekday
    indices. Returns None if no token in it names a day.
    """
    days: set[int] = set()
    recognised = False
    for item in spec.split(","):
        item = item.strip()
        if "-" in item:
            start_tok, _, end_tok = (t.strip() for t in item.partition("-"))
            start = _DAY_TOKENS.get(start_tok)
            end = _DAY_TOKENS.get(end_tok)
            if start is None or end is None:
                continue
            recognised = True
            if start <= end:
                days.update(range(start, end + 1))
            else:
                # wraps past Sunday, e.g. Sa-Mo
                days.update(range(start, 7))
                days.update(range(0, end + 1))
        else:
            idx = _DAY_TOKENS.get(item)
            if idx is None:
                continue
            recognised = True
            days.add(idx)
    return frozenset(days) if recognised else None


def _parse_rule(fragment: str) -> Optional[ScheduleRule]:
    interval = _parse_time_range(fragment)
    if interval is not None:
        return ScheduleRule(days=ALL_DAYS, intervals=(interval,))

    match = _DAY_RULE_RE.match(fragment)
    if not match:
        return None
    day_spec, time_spec = match.groups()
    days = _parse_day_spec(day_spec)
    if days is None:
        return None
    interval = _parse_time_range(time_spec)
    return ScheduleRule(days=days, intervals=(interval,) if interval else ())


def parse_opening_hours(expr: Optional[str]) -> Optional[ScheduleExpression]:
    """
    Parse an opening_hours string into a ScheduleExpression.

    Returns None when the expression is missing or nothing in it could be
    understood; callers treat both as "unknown".
    """
    if not expr or not expr.strip():
        return None

    lowered = expr.lower()
    if "24/7" in lowered or "24 hours" in lowered:
        return ALWAYS_OPEN
    if "closed" in lowered or expr.strip() == "off":
        return ALWAYS_CLOSED

    rules = []
    skipped = 0
    for fragment in expr.split(";"):
        fragment = fragment.strip()
        if not fragment:
            continue
        rule = _parse_rule(fragment)
        if rule is None:
            skipped += 1
            continue
        rules.append(rule)

    if skipped:
        logger.debug("opening_hours %r: skipped %d unrecognised fragment(s)", expr, skipped)
    if not rules:
        return None
    return ScheduleExpression(rules=tuple(rules))


def _in_interval(current: int, start: int, end: int) -> bool:
    if start <= end:
        return start <= current <= end
    # overnight, e.g. 22:00-02:00
    return current >= start or current <= end


def is_open(schedule: ScheduleExpression, instant: datetime) -> bool:
    """Return True if any rule covering the instant's weekday has an interval containing it."""
    weekday = instant.weekday()
    current = instant.hour * 60 + instant.minute
    for rule in schedule.rules:
        if weekday not in rule.days:
            continue
        for start, end in rule.intervals:
            if _in_interval(current, start, end):
                return True
    return False


def evaluate_open_now(expr: Optional[str], instant: datetime) -> Optional[bool]:
    """Tri-state open check: None when the schedule is missing or unparseable."""
    schedule = parse_opening_hours(expr)
    if schedule is None:
        return None
    return is_open(schedule, instant)
