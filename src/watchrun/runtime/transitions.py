# src/watchrun/runtime/transitions.py

"""
Pure state machine of the watch session.

`transition(state, event)` returns the next WatchState and the effects the
controller has to carry out. Nothing here touches the terminal, the event loop
or the cancellation token, so every key sequence can be checked directly.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from attrs import define, evolve, field

from watchrun import keys
from watchrun.keys import ARROW_KEYS, Key, KeyPress
from watchrun.state import RunPhase, WatchMode, WatchState


# --- Events ---
@define(frozen=True, slots=True)
class KeyPressed:
    key: KeyPress


@define(frozen=True, slots=True)
class FilesChanged:
    paths: tuple[Path, ...] = field(factory=tuple, converter=tuple)


@define(frozen=True, slots=True)
class RunStarted:
    pass


@define(frozen=True, slots=True)
class RunSettled:
    # None when the run failed and produced no results.
    has_snapshot_failure: bool | None = None


WatchEvent = KeyPressed | FilesChanged | RunStarted | RunSettled


# --- Effects ---
@define(frozen=True, slots=True)
class Quit:
    pass


@define(frozen=True, slots=True)
class Interrupt:
    """Set the active run's cancellation token."""


@define(frozen=True, slots=True)
class StartRun:
    overrides: Mapping[str, Any] = field(factory=dict, hash=False)


@define(frozen=True, slots=True)
class RenderPrompt:
    buffer: str
    clear: bool = False  # Start a fresh prompt screen first.


@define(frozen=True, slots=True)
class ShowUsage:
    clear: bool = False


@define(frozen=True, slots=True)
class RebuildIndex:
    paths: tuple[Path, ...] = field(factory=tuple, converter=tuple)


Effect = Quit | Interrupt | StartRun | RenderPrompt | ShowUsage | RebuildIndex
Transition = tuple[WatchState, tuple[Effect, ...]]

# Keys that, while a run is active, only interrupt it.
ABORT_CHARS = frozenset({keys.QUIT, keys.WATCH_ALL, keys.WATCH_CHANGED_ONLY, keys.ENTER_PATTERN})


def _is_abort_key(key: KeyPress) -> bool:
    return key.key is Key.ENTER or (key.key is Key.CHAR and key.char in ABORT_CHARS)


def _start(state: WatchState, overrides: Mapping[str, Any] | None = None) -> tuple[Effect, ...]:
    # Requests made while a run is active are dropped, never queued.
    if state.is_running:
        return ()
    return (StartRun(dict(overrides or {})),)


def _on_pattern_key(state: WatchState, key: KeyPress) -> Transition:
    if key.key is Key.ENTER:
        new_state = evolve(
            state,
            pattern=state.buffer or None,
            buffer="",
            is_entering_pattern=False,
            mode=WatchMode.WATCH,
        )
        return new_state, _start(new_state)

    if key.key is Key.ESCAPE:
        # The committed pattern is untouched; only the edit is thrown away.
        return evolve(state, buffer="", is_entering_pattern=False), (ShowUsage(clear=True),)

    if key.key in ARROW_KEYS:
        return state, ()

    if key.key is Key.BACKSPACE:
        buffer = state.buffer[:-1]
        return evolve(state, buffer=buffer), (RenderPrompt(buffer),)

    if key.is_printable:
        buffer = state.buffer + key.char
        return evolve(state, buffer=buffer), (RenderPrompt(buffer),)

    return state, ()


def _on_key(state: WatchState, key: KeyPress) -> Transition:
    if key.key in (Key.CONTROL_C, Key.CONTROL_D):
        return state, (Quit(),)

    if state.is_entering_pattern:
        return _on_pattern_key(state, key)

    if state.is_running and _is_abort_key(key):
        return state, (Interrupt(),)

    if key.key is Key.ENTER:
        return state, _start(state)

    if key.key is not Key.CHAR:
        return state, ()

    if key.char == keys.QUIT:
        return state, (Quit(),)
    if key.char == keys.UPDATE_SNAPSHOTS:
        return state, _start(state, {"update_snapshot": True})
    if key.char == keys.WATCH_ALL:
        new_state = evolve(state, mode=WatchMode.WATCH_ALL)
        return new_state, _start(new_state)
    if key.char == keys.WATCH_CHANGED_ONLY:
        new_state = evolve(state, mode=WatchMode.WATCH)
        return new_state, _start(new_state)
    if key.char == keys.ENTER_PATTERN:
        return evolve(state, is_entering_pattern=True, buffer=""), (RenderPrompt("", clear=True),)
    if key.char == keys.HELP:
        # Usage already on screen unless it was hidden or suppressed.
        if state.hide_usage or not state.display_help:
            return state, (ShowUsage(),)
        return state, ()
    return state, ()


def transition(state: WatchState, event: WatchEvent) -> Transition:
    """Next state and effects for one event."""
    if isinstance(event, KeyPressed):
        return _on_key(state, event.key)

    if isinstance(event, FilesChanged):
        # A file change always cancels pattern entry.
        new_state = evolve(state, buffer="", is_entering_pattern=False)
        return new_state, (RebuildIndex(event.paths), *_start(new_state))

    if isinstance(event, RunStarted):
        return evolve(state, phase=RunPhase.RUNNING), ()

    if isinstance(event, RunSettled):
        snapshot_failure = state.has_snapshot_failure
        if event.has_snapshot_failure is not None:
            snapshot_failure = event.has_snapshot_failure
        new_state = evolve(state, phase=RunPhase.IDLE, has_snapshot_failure=snapshot_failure)
        if not state.display_help:
            return new_state, ()
        return evolve(new_state, display_help=not state.hide_usage), (ShowUsage(),)

    raise TypeError(f"Unknown watch event: {event!r}")


# 🔼⚙️
