#!/usr/bin/env python3
"""Task Recurrence CLI."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Iterable

from task_recurrence.config import ConfigError, Settings, load_settings
from task_recurrence.dataset import fetch_tasks as fetch_task_dataset
from task_recurrence.recurrence import (
    RecurrenceRule,
    describe_rule,
    expand_occurrences,
    next_occurrence,
    occurs_on,
)
from task_recurrence.schedule import (
    SORT_KEYS,
    STATUS_FILTERS,
    TaskFilters,
    filter_tasks,
    mark_calendar,
    tasks_for_day,
    upcoming_occurrences,
)
from task_recurrence.tasks import RecurringTask, format_task_rows
from task_recurrence.timestamps import TimestampError, normalize_timestamp


def _date_arg(value: str) -> date | datetime:
    try:
        parsed = normalize_timestamp(value)
    except TimestampError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    if parsed is None:
        raise argparse.ArgumentTypeError("A date is required.")
    return parsed


def _month_arg(value: str) -> tuple[int, int]:
    try:
        parsed = datetime.strptime(value.strip(), "%Y-%m")
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM, got {value!r}") from exc
    return parsed.year, parsed.month


def _add_rule_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--type",
        dest="kind",
        choices=("daily", "weekly", "monthly"),
        required=True,
        help="Recurrence type.",
    )
    parser.add_argument(
        "--start",
        type=_date_arg,
        required=True,
        help="Anchor date (YYYY-MM-DD or ISO datetime).",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=1,
        help="Units between occurrences (values below 1 are treated as 1).",
    )
    parser.add_argument(
        "--end",
        type=_date_arg,
        help="Last possible occurrence date (defaults to start + 1 year).",
    )


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        choices=("auto", "file", "stub"),
        default="auto",
        help="Data source preference: tasks file, sample tasks, or auto fallback.",
    )
    parser.add_argument(
        "--tasks-file",
        type=Path,
        help="JSON or JSON Lines export of task documents (overrides TASKREC_TASKS_FILE).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="task-recurrence",
        description="Expand recurring tasks into calendar dates and day views.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    occurrences_parser = subparsers.add_parser(
        "occurrences",
        help="List every occurrence of a recurrence rule.",
    )
    _add_rule_arguments(occurrences_parser)

    occurs_parser = subparsers.add_parser(
        "occurs-on",
        help="Check whether a rule has an occurrence on a date.",
    )
    _add_rule_arguments(occurs_parser)
    occurs_parser.add_argument("--date", type=_date_arg, required=True, help="Date to check.")
    occurs_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Ignore the interval for weekly/monthly rules (weekday/day-of-month match only).",
    )

    next_parser = subparsers.add_parser(
        "next",
        help="Show the next occurrence of a rule after a date.",
    )
    _add_rule_arguments(next_parser)
    next_parser.add_argument(
        "--after",
        type=_date_arg,
        default=date.today(),
        help="Find the first occurrence after this date (defaults to today).",
    )

    calendar_parser = subparsers.add_parser(
        "calendar",
        help="Show which days of a month have task instances.",
    )
    calendar_parser.add_argument("--month", type=_month_arg, required=True, help="Month as YYYY-MM.")
    _add_source_arguments(calendar_parser)

    day_parser = subparsers.add_parser(
        "day",
        help="List the tasks that occur on a given day.",
    )
    day_parser.add_argument(
        "--date",
        type=_date_arg,
        default=date.today(),
        help="Day to show (defaults to today).",
    )
    day_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Ignore intervals for weekly/monthly tasks (or set TASKREC_LENIENT_MATCHING=1).",
    )
    _add_source_arguments(day_parser)

    list_parser = subparsers.add_parser(
        "list",
        help="List tasks with search, status filter and sorting.",
    )
    list_parser.add_argument("--search", help="Case-insensitive text in title or description.")
    list_parser.add_argument("--status", choices=STATUS_FILTERS, default="all")
    list_parser.add_argument("--sort", choices=SORT_KEYS, default="deadline")
    list_parser.add_argument(
        "--limit",
        type=int,
        help="Maximum number of tasks to load.",
    )
    list_parser.add_argument(
        "--upcoming",
        type=int,
        default=0,
        help="Also show the next N occurrences of each task after today.",
    )
    _add_source_arguments(list_parser)

    subparsers.add_parser(
        "check-config",
        help="Validate the environment configuration.",
    )

    return parser


def _rule_from_args(args: argparse.Namespace) -> RecurrenceRule:
    return RecurrenceRule(
        kind=args.kind,
        start=args.start,
        interval=args.interval,
        end=args.end,
    )


def _format_day(value: date | datetime) -> str:
    if isinstance(value, datetime):
        return value.isoformat(timespec="minutes")
    return value.isoformat()


def _cmd_occurrences(rule: RecurrenceRule) -> int:
    expansion = expand_occurrences(rule)
    print(f"{describe_rule(rule)}: {len(expansion.dates)} occurrence(s)")
    for occurrence in expansion.dates:
        print(f" - {_format_day(occurrence)}")
    if expansion.truncated:
        print(
            f"Stopped after {len(expansion.dates)} occurrences; later dates before "
            f"{_format_day(rule.effective_end)} were not listed.",
            file=sys.stderr,
        )
    return 0


def _cmd_occurs_on(rule: RecurrenceRule, candidate: date | datetime, lenient: bool) -> int:
    matched = occurs_on(rule, candidate, strict=not lenient)
    print(f"{describe_rule(rule)} on {_format_day(candidate)}: {'yes' if matched else 'no'}")
    return 0


def _cmd_next(rule: RecurrenceRule, after: date | datetime) -> int:
    upcoming = next_occurrence(rule, after)
    if upcoming is None:
        print(f"No occurrences after {_format_day(after)}.")
        return 0
    print(_format_day(upcoming))
    return 0


def _load_dataset(
    *, source: str, tasks_file: Path | None, settings: Settings, limit: int | None = None
) -> list[RecurringTask] | None:
    path = tasks_file or settings.tasks_file
    try:
        tasks, warning = fetch_task_dataset(
            source=source, path=path, tz=settings.tzinfo, limit=limit
        )
    except RuntimeError as exc:
        print(exc, file=sys.stderr)
        return None

    if warning:
        print(warning)
    return tasks


def _print_task_lines(tasks: Iterable[RecurringTask]) -> None:
    for task in tasks:
        repeats = task.recurrence_display()
        suffix = f" ({repeats})" if repeats else ""
        print(f"  - [{task.priority}] {task.title}{suffix}")


def _cmd_calendar(year: int, month: int, source: str, tasks_file: Path | None) -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Calendar failed: {exc}", file=sys.stderr)
        return 1

    tasks = _load_dataset(source=source, tasks_file=tasks_file, settings=settings)
    if tasks is None:
        return 1

    marks = mark_calendar(tasks, year, month)
    if not marks:
        print(f"No tasks in {year}-{month:02d}.")
        return 0

    print(f"Tasks in {year}-{month:02d}:")
    for day, day_tasks in marks.items():
        print(f"{day.isoformat()} ({day:%a}): {len(day_tasks)} task(s)")
        _print_task_lines(day_tasks)
    return 0


def _cmd_day(day: date | datetime, lenient: bool, source: str, tasks_file: Path | None) -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Day view failed: {exc}", file=sys.stderr)
        return 1

    tasks = _load_dataset(source=source, tasks_file=tasks_file, settings=settings)
    if tasks is None:
        return 1

    strict = not (lenient or settings.lenient_matching)
    matches = tasks_for_day(tasks, day, strict=strict)
    if not matches:
        print(f"No tasks on {_format_day(day)}.")
        return 0

    print(f"Tasks on {_format_day(day)}:")
    _print_task_lines(matches)
    return 0


def _cmd_list(
    search: str | None,
    status: str,
    sort_key: str,
    limit: int | None,
    upcoming: int,
    source: str,
    tasks_file: Path | None,
) -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"List failed: {exc}", file=sys.stderr)
        return 1

    tasks = _load_dataset(source=source, tasks_file=tasks_file, settings=settings, limit=limit)
    if tasks is None:
        return 1

    filtered = filter_tasks(
        tasks, TaskFilters(search_query=search, status=status, sort_key=sort_key)
    )
    if not filtered:
        print("No tasks match.")
        return 0
    print(format_task_rows(filtered))

    if upcoming > 0:
        today = date.today()
        print(f"\nNext {upcoming} occurrence(s) after {today.isoformat()}:")
        for task in filtered:
            dates = upcoming_occurrences(task, after=today, limit=upcoming)
            rendered = ", ".join(_format_day(value) for value in dates) or "none"
            print(f"  {task.id}: {rendered}")
    return 0


def _cmd_check_config() -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Config check failed: {exc}", file=sys.stderr)
        return 1

    print(
        "Configuration OK",
        f"timezone={settings.timezone}",
        f"tasks_file={settings.tasks_file or '-'}",
        f"environment={settings.environment}",
        f"lenient_matching={'yes' if settings.lenient_matching else 'no'}",
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "occurrences":
        return _cmd_occurrences(_rule_from_args(args))
    if args.command == "occurs-on":
        return _cmd_occurs_on(_rule_from_args(args), args.date, args.lenient)
    if args.command == "next":
        return _cmd_next(_rule_from_args(args), args.after)
    if args.command == "calendar":
        year, month = args.month
        return _cmd_calendar(year, month, source=args.source, tasks_file=args.tasks_file)
    if args.command == "day":
        return _cmd_day(args.date, args.lenient, source=args.source, tasks_file=args.tasks_file)
    if args.command == "list":
        return _cmd_list(
            search=args.search,
            status=args.status,
            sort_key=args.sort,
            limit=args.limit,
            upcoming=args.upcoming,
            source=args.source,
            tasks_file=args.tasks_file,
        )
    if args.command == "check-config":
        return _cmd_check_config()

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
