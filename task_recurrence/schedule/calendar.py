"""Calendar marks and day views built on the recurrence engine.

Both the month calendar and the day detail list answer "which tasks happen
on this day"; they share the engine so they cannot disagree.
"""
from __future__ import annotations

import logging
from calendar import monthrange
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Union

from ..recurrence import (
    RecurrenceRule,
    as_date,
    generate_occurrences,
    occurrences_between,
    occurs_on,
)
from ..tasks import RecurringTask

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def _active_rule(task: RecurringTask) -> Optional[RecurrenceRule]:
    """Return the task's rule, or None when it should be placed as a one-off.

    Tasks flagged recurring with an unknown type still show on their due date.
    """
    rule = task.recurrence_rule()
    if rule is None or not rule.is_recurring:
        return None
    return rule


def mark_calendar(
    tasks: Iterable[RecurringTask], year: int, month: int
) -> Dict[date, List[RecurringTask]]:
    """Map each day of a month to the tasks that have an instance on it.

    Args:
        tasks: Tasks to place on the calendar
        year: Calendar year
        month: Calendar month (1-12)

    Returns:
        Dict keyed by day, only containing days with at least one task.
        Tasks keep their input order within a day.
    """
    first = date(year, month, 1)
    last = date(year, month, monthrange(year, month)[1])
    marks: Dict[date, List[RecurringTask]] = defaultdict(list)

    for task in tasks:
        rule = _active_rule(task)
        if rule is not None:
            for occurrence in occurrences_between(rule, first, last):
                marks[as_date(occurrence)].append(task)
            continue

        if task.due_date is None:
            continue
        due = as_date(task.due_date)
        if first <= due <= last:
            marks[due].append(task)

    logger.debug(f"Marked {len(marks)} day(s) for {year}-{month:02d}")
    return dict(sorted(marks.items()))


def tasks_for_day(
    tasks: Iterable[RecurringTask], day: DateLike, *, strict: bool = True
) -> List[RecurringTask]:
    """Return the tasks that have an instance on ``day``.

    Args:
        tasks: Candidate tasks
        day: The day being viewed
        strict: Passed to occurs_on for recurring tasks; False keeps the
            lenient weekday/day-of-month matching that ignores intervals
    """
    target = as_date(day)
    result: List[RecurringTask] = []
    for task in tasks:
        rule = _active_rule(task)
        if rule is not None:
            if occurs_on(rule, target, strict=strict):
                result.append(task)
        elif task.due_date is not None and as_date(task.due_date) == target:
            result.append(task)
    return result


def upcoming_occurrences(
    task: RecurringTask, *, after: DateLike, limit: int = 5
) -> List[DateLike]:
    """Return up to ``limit`` occurrences on days strictly after ``after``."""
    after_day = as_date(after)
    rule = _active_rule(task)
    if rule is None:
        if task.due_date is not None and as_date(task.due_date) > after_day:
            return [task.due_date]
        return []

    upcoming = [
        occurrence
        for occurrence in generate_occurrences(rule)
        if as_date(occurrence) > after_day
    ]
    return upcoming[:max(0, limit)]
