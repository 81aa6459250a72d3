#
# config/models.py
#
"""
Attrs-based data models for the watchrun configuration.
"""

import logging
import re
from pathlib import Path
from typing import Any

from attrs import define, field

DEFAULT_TEST_COMMAND = ("python", "-m", "pytest")
DEFAULT_TEST_REGEX = r"(^|/)(test_[^/]*|[^/]*_test)\.py$"
DEFAULT_IGNORE_DIRS = (".git", "__pycache__", ".venv", "venv", ".tox", ".mypy_cache", ".pytest_cache", "node_modules")
DEFAULT_WATCH_EXTENSIONS = (".py",)


# --- Validators ---
def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging._nameToLevel.keys()
    if value.upper() not in valid:
        raise ValueError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


def _validate_positive_int(inst: Any, attr: Any, value: int) -> None:
    """Validator ensures integer is positive."""
    if not isinstance(value, int) or value <= 0:
        raise ValueError(f"Field '{attr.name}' must be positive integer, got {value}")


def _validate_regex(inst: Any, attr: Any, value: str) -> None:
    try:
        re.compile(value)
    except re.error as e:
        raise ValueError(f"Field '{attr.name}' is not a valid regular expression: {e}") from e


def _validate_non_negative(inst: Any, attr: Any, value: float) -> None:
    if value < 0:
        raise ValueError(f"Field '{attr.name}' must not be negative, got {value}")


def _validate_command(inst: Any, attr: Any, value: tuple[str, ...]) -> None:
    if not value:
        raise ValueError(f"Field '{attr.name}' must name at least the executable")


def _to_extensions(value: Any) -> tuple[str, ...]:
    """Accepts `py` or `.py`; an empty sequence means every file counts."""
    if isinstance(value, str):
        value = (value,)
    return tuple(ext if ext.startswith(".") else f".{ext}" for ext in value)


@define(frozen=True, slots=True)
class GlobalConfig:
    """Global default settings for watchrun."""

    log_level: str = field(default="WARNING", validator=_validate_log_level)

    @property
    def numeric_log_level(self) -> int:
        return logging.getLevelName(self.log_level.upper())


@define(frozen=True, slots=True)
class WatchrunConfig:
    """
    Root configuration object.

    Frozen: a run receives `attrs.evolve(config, **overrides)` and can never
    change the configuration the controller holds.
    """

    root_dir: Path = field(factory=Path.cwd, converter=Path)
    test_command: tuple[str, ...] = field(default=DEFAULT_TEST_COMMAND, converter=tuple, validator=_validate_command)
    test_regex: str = field(default=DEFAULT_TEST_REGEX, validator=_validate_regex)
    ignore_dirs: tuple[str, ...] = field(default=DEFAULT_IGNORE_DIRS, converter=tuple)
    watch_extensions: tuple[str, ...] = field(default=DEFAULT_WATCH_EXTENSIONS, converter=_to_extensions)
    update_snapshot: bool = field(default=False)
    snapshot_update_args: tuple[str, ...] = field(default=("--snapshot-update",), converter=tuple)
    max_typeahead_rows: int = field(default=10, validator=_validate_positive_int)
    debounce_seconds: float = field(default=0.25, validator=_validate_non_negative)
    global_config: GlobalConfig = field(factory=GlobalConfig)


# 🔼⚙️
