"""Human-readable descriptions of recurrence rules."""
from __future__ import annotations

from .engine import RecurrenceKind, RecurrenceRule, as_date

WEEKDAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def describe_rule(rule: RecurrenceRule) -> str:
    """Get a display string for a rule.

    Returns:
        Display string like "Every 2 weeks on Monday" or
        "Monthly on the 31st until 2024-12-31"; empty for non-recurring rules
    """
    if not rule.is_recurring:
        return ""

    anchor = as_date(rule.start)
    interval = rule.interval

    if rule.kind is RecurrenceKind.DAILY:
        text = "Daily" if interval == 1 else f"Every {interval} days"
    elif rule.kind is RecurrenceKind.WEEKLY:
        weekday = WEEKDAY_NAMES[anchor.weekday()]
        text = f"Weekly on {weekday}" if interval == 1 else f"Every {interval} weeks on {weekday}"
    else:
        day = _ordinal(anchor.day)
        text = f"Monthly on the {day}" if interval == 1 else f"Every {interval} months on the {day}"

    if rule.end is not None:
        text += f" until {as_date(rule.end).isoformat()}"
    return text
