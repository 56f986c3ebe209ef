"""Shared dataset helpers."""
from __future__ import annotations

import json
import logging
from datetime import tzinfo
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .tasks import RecurringTask, fetch_stubbed_tasks
from .timestamps import TimestampError

logger = logging.getLogger(__name__)


def _read_documents(path: Path) -> List[Dict[str, Any]]:
    """Read task documents from a JSON array or a JSON Lines file."""
    text = path.read_text(encoding="utf-8")
    stripped = text.lstrip()
    if stripped.startswith("["):
        data = json.loads(stripped)
        return [doc for doc in data if isinstance(doc, dict)]

    documents: List[Dict[str, Any]] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            doc = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning(f"Skipping line {line_number} of {path}: {exc}")
            continue
        if isinstance(doc, dict):
            documents.append(doc)
    return documents


def load_tasks_file(path: Path, *, tz: Optional[tzinfo] = None) -> List[RecurringTask]:
    """Load task records from a local export.

    Records that cannot be converted are skipped with a warning.

    Raises:
        OSError: if the file cannot be read
        UnicodeDecodeError: if the file is not valid UTF-8
        json.JSONDecodeError: if a JSON array file is malformed
    """
    tasks: List[RecurringTask] = []
    for doc in _read_documents(path):
        try:
            tasks.append(RecurringTask.from_dict(doc, tz=tz))
        except (KeyError, TimestampError) as exc:
            logger.warning(f"Skipping task {doc.get('id', '?')} in {path}: {exc}")
    logger.debug(f"Loaded {len(tasks)} task(s) from {path}")
    return tasks


def fetch_tasks(
    *,
    source: str,
    path: Optional[Path] = None,
    tz: Optional[tzinfo] = None,
    limit: Optional[int] = None,
) -> Tuple[List[RecurringTask], str | None]:
    """Fetch tasks from a local export or the built-in sample data.

    Args:
        source: "file" (export required), "stub", or "auto" (export with
            fallback to sample data)
        path: Export file to read
        tz: Zone for stored timestamps
        limit: Maximum number of tasks to return

    Returns:
        (tasks, warning) where warning explains any fallback

    Raises:
        RuntimeError: if source is "file" and the export cannot be loaded
    """
    if source == "stub":
        return fetch_stubbed_tasks(limit=limit), None

    if path is None:
        if source == "file":
            raise RuntimeError("No tasks file given. Pass --tasks-file or set TASKREC_TASKS_FILE.")
        return fetch_stubbed_tasks(limit=limit), "No tasks file configured; showing sample tasks."

    try:
        tasks = load_tasks_file(path, tz=tz)
    except (OSError, ValueError) as exc:
        if source == "file":
            raise RuntimeError(f"Could not load tasks from {path}: {exc}") from exc
        logger.debug(f"Falling back to sample tasks: {exc}")
        return (
            fetch_stubbed_tasks(limit=limit),
            f"Could not load tasks from {path}, showing sample tasks: {exc}",
        )

    if limit is not None:
        tasks = tasks[:limit]
    return tasks, None
