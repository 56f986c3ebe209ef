"""Occurrence expansion for recurring tasks.

This module is the single source of truth for recurring task dates:
- Expanding a rule into its list of occurrence dates (calendar marks)
- Checking whether a rule has an instance on a given day (day view)
- Finding the next occurrence after a day

Supported kinds:
- Daily: every N days
- Weekly: every N weeks on the anchor's weekday
- Monthly: every N months on the anchor's day of month, clamped to the
  last day of shorter months

Every function here is pure. Malformed rules never raise; they degrade to
an empty or single-element result.
"""
from __future__ import annotations

import logging
import math
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, List, Optional, Union

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

# Hard bound on the number of occurrences produced for one rule
MAX_OCCURRENCES = 730

# Implicit series length when a rule has no end date
DEFAULT_SPAN_MONTHS = 12


class RecurrenceKind(str, Enum):
    """How often a recurring task repeats."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: Any) -> "RecurrenceKind":
        """Map a stored value to a kind; anything unknown becomes NONE."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.NONE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.NONE


def normalize_interval(value: Any) -> int:
    """Coerce a stored interval to a positive integer (default 1)."""
    if value is None or isinstance(value, bool):
        return 1
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(number) or number < 1:
        return 1
    return int(number)


def add_months(value: DateLike, months: int) -> DateLike:
    """Shift a date by whole months, clamping to the target month's last day.

    Time of day and tzinfo of datetimes are preserved.

    Raises:
        ValueError: if the result falls outside the supported year range
    """
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def as_date(value: DateLike) -> date:
    """Return the calendar day of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _latest(start: DateLike) -> DateLike:
    """Return the last representable value in the anchor's flavor."""
    if isinstance(start, datetime):
        return datetime.max.replace(tzinfo=start.tzinfo)
    return date.max


def _align_end(start: DateLike, end: Optional[DateLike]) -> DateLike:
    """Return the inclusive end bound in the same flavor as the anchor.

    A naive end paired with an aware anchor is read as wall time in the
    anchor's zone. An aware end paired with a naive anchor is converted to
    local time before its tzinfo is dropped, matching how naive datetimes
    are interpreted by ``datetime.astimezone``.
    """
    if end is None:
        try:
            return add_months(start, DEFAULT_SPAN_MONTHS)
        except ValueError:
            return _latest(start)

    if isinstance(start, datetime):
        if not isinstance(end, datetime):
            # A bare end date covers that whole day
            return datetime.combine(end, time.max, tzinfo=start.tzinfo)
        if start.tzinfo is not None and end.tzinfo is None:
            return end.replace(tzinfo=start.tzinfo)
        if start.tzinfo is None and end.tzinfo is not None:
            try:
                return end.astimezone().replace(tzinfo=None)
            except (OverflowError, ValueError):
                return end.replace(tzinfo=None)
        return end

    return as_date(end)


@dataclass(frozen=True, slots=True)
class RecurrenceRule:
    """Recurrence settings of one task.

    Values are normalized on construction: unknown kinds become NONE and
    invalid intervals become 1.
    """

    kind: RecurrenceKind
    start: Optional[DateLike]
    interval: int = 1
    end: Optional[DateLike] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", RecurrenceKind.parse(self.kind))
        object.__setattr__(self, "interval", normalize_interval(self.interval))

    @property
    def is_recurring(self) -> bool:
        return self.kind is not RecurrenceKind.NONE and self.start is not None

    @property
    def effective_end(self) -> Optional[DateLike]:
        """Inclusive end bound, synthesized as start + 1 year when absent."""
        if self.start is None:
            return None
        return _align_end(self.start, self.end)

    def nth(self, index: int) -> Optional[DateLike]:
        """Return the occurrence ``index`` steps after the anchor.

        Steps are always taken from the anchor so that a clamped month
        (Jan 31 -> Feb 29) does not drag later months to the 29th.
        Returns None when the step lands outside the representable range.
        """
        steps = self.interval * index
        try:
            if self.kind is RecurrenceKind.DAILY:
                return self.start + timedelta(days=steps)
            if self.kind is RecurrenceKind.WEEKLY:
                return self.start + timedelta(weeks=steps)
            return add_months(self.start, steps)
        except (OverflowError, ValueError):
            return None


@dataclass(slots=True)
class OccurrenceExpansion:
    """Occurrences of a rule plus whether the hard cap cut the series short."""

    dates: List[DateLike] = field(default_factory=list)
    truncated: bool = False


def expand_occurrences(rule: RecurrenceRule) -> OccurrenceExpansion:
    """Expand a rule into its occurrence dates.

    Args:
        rule: The recurrence rule to expand

    Returns:
        OccurrenceExpansion whose dates start with the anchor, increase
        strictly and never pass the rule's end. ``truncated`` is True when
        MAX_OCCURRENCES stopped the series before the end was reached.
    """
    if not rule.is_recurring:
        return OccurrenceExpansion()

    end = rule.effective_end
    dates: List[DateLike] = [rule.start]

    for index in range(1, MAX_OCCURRENCES):
        candidate = rule.nth(index)
        if candidate is None or candidate > end:
            return OccurrenceExpansion(dates=dates)
        dates.append(candidate)

    following = rule.nth(MAX_OCCURRENCES)
    truncated = following is not None and following <= end
    if truncated:
        logger.debug(
            f"Occurrence cap of {MAX_OCCURRENCES} reached for {rule.kind.value} rule "
            f"starting {rule.start} (end {end})"
        )
    return OccurrenceExpansion(dates=dates, truncated=truncated)


def generate_occurrences(rule: RecurrenceRule) -> List[DateLike]:
    """Return the occurrence dates of a rule (see expand_occurrences)."""
    return expand_occurrences(rule).dates


def _occurrence_index(rule: RecurrenceRule, day: date, *, strict: bool) -> Optional[int]:
    """Return how many intervals separate ``day`` from the anchor.

    None means ``day`` cannot be an occurrence. In lenient mode weekly and
    monthly rules ignore the interval, so the raw week/month distance is
    returned instead.
    """
    anchor = as_date(rule.start)
    delta_days = (day - anchor).days
    if delta_days < 0:
        return None

    if rule.kind is RecurrenceKind.DAILY:
        if delta_days % rule.interval:
            return None
        return delta_days // rule.interval

    if rule.kind is RecurrenceKind.WEEKLY:
        if delta_days % 7:
            return None
        weeks = delta_days // 7
        if not strict:
            return weeks
        if weeks % rule.interval:
            return None
        return weeks // rule.interval

    months = (day.year - anchor.year) * 12 + (day.month - anchor.month)
    expected_day = min(anchor.day, monthrange(day.year, day.month)[1])
    if day.day != expected_day:
        return None
    if not strict:
        return months
    if months % rule.interval:
        return None
    return months // rule.interval


def occurs_on(rule: RecurrenceRule, candidate: DateLike, *, strict: bool = True) -> bool:
    """Check whether a rule has an instance on the candidate's calendar day.

    Args:
        rule: The recurrence rule
        candidate: Day to test; datetimes are compared by their date
        strict: When True (default) the answer matches generate_occurrences
            exactly. When False, weekly and monthly rules match every
            week/month on the anchor's weekday/day of month within
            [start, end], ignoring the interval.

    Returns:
        True if the task occurs on that day
    """
    if not rule.is_recurring:
        return False

    day = as_date(candidate)
    index = _occurrence_index(rule, day, strict=strict)
    if index is None:
        return False
    if index == 0:
        return True

    end = rule.effective_end
    if not strict and rule.kind is not RecurrenceKind.DAILY:
        return day <= as_date(end)

    if index >= MAX_OCCURRENCES:
        return False
    occurrence = rule.nth(index)
    return occurrence is not None and occurrence <= end


def occurrences_between(rule: RecurrenceRule, first: date, last: date) -> List[DateLike]:
    """Return occurrences whose calendar date lies within [first, last]."""
    return [
        occurrence
        for occurrence in generate_occurrences(rule)
        if first <= as_date(occurrence) <= last
    ]


def next_occurrence(rule: RecurrenceRule, after: DateLike) -> Optional[DateLike]:
    """Return the first occurrence on a calendar day strictly after ``after``."""
    after_day = as_date(after)
    for occurrence in generate_occurrences(rule):
        if as_date(occurrence) > after_day:
            return occurrence
    return None
