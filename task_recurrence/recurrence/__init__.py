"""Recurrence engine - occurrence dates and day membership for recurring tasks."""
from __future__ import annotations

from .engine import (
    MAX_OCCURRENCES,
    OccurrenceExpansion,
    RecurrenceKind,
    RecurrenceRule,
    add_months,
    as_date,
    expand_occurrences,
    generate_occurrences,
    next_occurrence,
    normalize_interval,
    occurrences_between,
    occurs_on,
)
from .display import describe_rule

__all__ = [
    "MAX_OCCURRENCES",
    "OccurrenceExpansion",
    "RecurrenceKind",
    "RecurrenceRule",
    "add_months",
    "as_date",
    "describe_rule",
    "expand_occurrences",
    "generate_occurrences",
    "next_occurrence",
    "normalize_interval",
    "occurrences_between",
    "occurs_on",
]
