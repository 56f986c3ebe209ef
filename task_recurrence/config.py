"""Configuration helpers for the task recurrence CLI."""
from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

DEFAULT_TIMEZONE = "America/New_York"


class ConfigError(RuntimeError):
    """Raised when configuration is invalid."""


@dataclass(slots=True)
class Settings:
    """Runtime configuration for the CLI."""

    timezone: str = DEFAULT_TIMEZONE
    tasks_file: Optional[Path] = None
    environment: str = "local"
    lenient_matching: bool = False

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_settings(*, dotenv: bool = True) -> Settings:
    """Load settings from environment variables (and a local .env file).

    Args:
        dotenv: Whether to read a .env file before looking at the environment.

    Returns:
        Settings with the resolved values.

    Raises:
        ConfigError: if TASKREC_TIMEZONE names an unknown zone.
    """

    if dotenv:
        load_dotenv()

    timezone_name = os.getenv("TASKREC_TIMEZONE", DEFAULT_TIMEZONE).strip() or DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(
            f"Unknown timezone {timezone_name!r}. Set TASKREC_TIMEZONE to an IANA "
            "zone name such as 'America/New_York'."
        ) from exc

    tasks_file = os.getenv("TASKREC_TASKS_FILE", "").strip()
    environment = os.getenv("TASKREC_ENV", "local")
    lenient = os.getenv("TASKREC_LENIENT_MATCHING", "0").strip() == "1"

    return Settings(
        timezone=timezone_name,
        tasks_file=Path(tasks_file) if tasks_file else None,
        environment=environment,
        lenient_matching=lenient,
    )
