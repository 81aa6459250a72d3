# src/watchrun/state.py
#
"""
State models for the interactive watch session.
"""

from enum import Enum, auto
from typing import Any

import structlog
from attrs import define, field, fields, mutable

log: structlog.stdlib.BoundLogger = structlog.get_logger("state")


class WatchMode(Enum):
    """Which test files a triggered run selects."""

    WATCH = "watch"  # Only tests related to changed files.
    WATCH_ALL = "watchAll"  # Every test file.


class RunPhase(Enum):
    """Whether a test run is in flight."""

    IDLE = auto()
    RUNNING = auto()


@define(frozen=True, slots=True)
class WatchState:
    """
    Snapshot of the watch controller's state.

    Frozen so that the transition function can stay pure; every change goes
    through `attrs.evolve`. Pattern entry is an independent axis from the run
    phase: a pattern can be typed while a run is still in flight.
    """

    mode: WatchMode = field(default=WatchMode.WATCH)
    pattern: str | None = field(default=None)  # Last committed pattern.
    buffer: str = field(default="")  # Pattern being typed.
    is_entering_pattern: bool = field(default=False)
    phase: RunPhase = field(default=RunPhase.IDLE)
    display_help: bool = field(default=True)
    hide_usage: bool = field(default=False)  # Suppress usage redisplay after the first one.
    has_snapshot_failure: bool = field(default=False)

    @property
    def is_running(self) -> bool:
        return self.phase is RunPhase.RUNNING


@mutable(slots=True)
class RunArguments:
    """
    Command-line style arguments handed to the run coordinator on every run.

    Mutable because the watch controller rewrites the mode and pattern fields
    between runs.
    """

    watch: bool = field(default=True)
    watch_all: bool = field(default=False)
    pattern: str | None = field(default=None)  # Test path regex.
    test_name_pattern: str | None = field(default=None)  # Test title regex.
    no_scm: bool = field(default=False)

    @property
    def mode(self) -> WatchMode:
        return WatchMode.WATCH_ALL if self.watch_all else WatchMode.WATCH


def set_watch_mode(argv: RunArguments, mode: WatchMode, **options: Any) -> None:
    """Switches `argv` to the given mode and applies any extra argument overrides."""
    argv.watch = mode is WatchMode.WATCH
    argv.watch_all = mode is WatchMode.WATCH_ALL

    known = {a.name for a in fields(RunArguments)}
    for name, value in options.items():
        if name not in known:
            raise TypeError(f"Unknown run argument '{name}'")
        setattr(argv, name, value)

    log.debug("Watch mode set", mode=mode.value, **options)


# 🔼⚙️
