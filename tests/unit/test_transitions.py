# tests/unit/test_transitions.py

"""Tests for the pure watch-session state machine."""

from pathlib import Path

import pytest
from attrs import evolve

from watchrun.keys import Key, KeyPress
from watchrun.runtime.transitions import (
    FilesChanged,
    Interrupt,
    KeyPressed,
    Quit,
    RebuildIndex,
    RenderPrompt,
    RunSettled,
    RunStarted,
    ShowUsage,
    StartRun,
    transition,
)
from watchrun.state import RunPhase, WatchMode, WatchState

IDLE = WatchState()
RUNNING = WatchState(phase=RunPhase.RUNNING)


def press(char: str) -> KeyPressed:
    return KeyPressed(KeyPress.text(char))


def key(k: Key) -> KeyPressed:
    return KeyPressed(KeyPress(k))


def feed(state: WatchState, *events) -> tuple[WatchState, list]:
    effects: list = []
    for event in events:
        state, new_effects = transition(state, event)
        effects.extend(new_effects)
    return state, effects


class TestIdleKeys:
    def test_a_switches_to_watch_all_and_starts(self):
        state, effects = transition(IDLE, press("a"))
        assert state.mode is WatchMode.WATCH_ALL
        assert effects == (StartRun({}),)

    def test_o_switches_to_watch_and_starts(self):
        state, effects = transition(evolve(IDLE, mode=WatchMode.WATCH_ALL), press("o"))
        assert state.mode is WatchMode.WATCH
        assert effects == (StartRun({}),)

    def test_u_starts_with_snapshot_update_override(self):
        state, effects = transition(IDLE, press("u"))
        assert state == IDLE
        assert effects == (StartRun({"update_snapshot": True}),)

    def test_enter_starts_a_run(self):
        assert transition(IDLE, key(Key.ENTER)) == (IDLE, (StartRun({}),))

    def test_q_quits(self):
        assert transition(IDLE, press("q")) == (IDLE, (Quit(),))

    @pytest.mark.parametrize("k", [Key.CONTROL_C, Key.CONTROL_D])
    def test_control_keys_quit(self, k: Key):
        assert transition(IDLE, key(k)) == (IDLE, (Quit(),))

    def test_p_enters_pattern_mode(self):
        state, effects = transition(IDLE, press("p"))
        assert state.is_entering_pattern
        assert state.buffer == ""
        assert effects == (RenderPrompt("", clear=True),)

    def test_question_mark_shows_usage_only_when_hidden(self):
        assert transition(IDLE, press("?")) == (IDLE, ())
        hidden = evolve(IDLE, display_help=False)
        assert transition(hidden, press("?")) == (hidden, (ShowUsage(),))

    def test_question_mark_with_hide_usage_before_first_settle(self):
        suppressed = evolve(IDLE, hide_usage=True)
        assert suppressed.display_help is True
        assert transition(suppressed, press("?")) == (suppressed, (ShowUsage(),))

    @pytest.mark.parametrize("event", [press("x"), key(Key.ESCAPE), key(Key.ARROW_UP), key(Key.BACKSPACE)])
    def test_unbound_keys_do_nothing(self, event):
        assert transition(IDLE, event) == (IDLE, ())


class TestRunningKeys:
    @pytest.mark.parametrize("event", [press("q"), press("a"), press("o"), press("p"), key(Key.ENTER)])
    def test_abort_keys_only_interrupt(self, event):
        state, effects = transition(RUNNING, event)
        assert state == RUNNING
        assert effects == (Interrupt(),)

    @pytest.mark.parametrize("k", [Key.CONTROL_C, Key.CONTROL_D])
    def test_control_keys_still_quit(self, k: Key):
        assert transition(RUNNING, key(k)) == (RUNNING, (Quit(),))

    def test_run_request_while_running_is_dropped(self):
        assert transition(RUNNING, press("u")) == (RUNNING, ())

    def test_question_mark_while_running(self):
        hidden = evolve(RUNNING, display_help=False)
        assert transition(hidden, press("?")) == (hidden, (ShowUsage(),))


class TestPatternMode:
    def test_typing_updates_buffer_and_renders(self):
        state, effects = feed(IDLE, press("p"), press("a"), press("d"), press("d"))
        assert state.buffer == "add"
        assert effects[-1] == RenderPrompt("add")

    def test_pasted_text_is_appended_whole(self):
        state, _ = feed(IDLE, press("p"), press("numbers"))
        assert state.buffer == "numbers"

    def test_backspace_removes_last_char(self):
        state, effects = feed(IDLE, press("p"), press("a"), press("b"), key(Key.BACKSPACE))
        assert state.buffer == "a"
        assert effects[-1] == RenderPrompt("a")

    def test_backspace_on_empty_buffer(self):
        state, effects = feed(IDLE, press("p"), key(Key.BACKSPACE))
        assert state.buffer == ""
        assert effects[-1] == RenderPrompt("")

    def test_arrows_are_ignored(self):
        start, _ = feed(IDLE, press("p"), press("a"))
        for k in (Key.ARROW_UP, Key.ARROW_DOWN, Key.ARROW_LEFT, Key.ARROW_RIGHT):
            assert transition(start, key(k)) == (start, ())

    def test_non_printable_chars_are_ignored(self):
        start, _ = feed(IDLE, press("p"))
        assert transition(start, press("\x01")) == (start, ())

    def test_command_letters_are_typed_not_executed(self):
        state, effects = feed(IDLE, press("p"), press("q"), press("a"))
        assert state.buffer == "qa"
        assert Quit() not in effects
        assert state.mode is WatchMode.WATCH

    def test_enter_commits_pattern_and_starts_in_watch_mode(self):
        start = evolve(IDLE, mode=WatchMode.WATCH_ALL)
        state, effects = feed(start, press("p"), press("add"), key(Key.ENTER))
        assert state.pattern == "add"
        assert state.buffer == ""
        assert not state.is_entering_pattern
        assert state.mode is WatchMode.WATCH
        assert effects[-1] == StartRun({})

    def test_enter_with_empty_buffer_clears_pattern(self):
        start = evolve(IDLE, pattern="old")
        state, _ = feed(start, press("p"), key(Key.ENTER))
        assert state.pattern is None

    def test_escape_restores_committed_pattern(self):
        start = evolve(IDLE, pattern="old")
        state, effects = feed(start, press("p"), press("x"), key(Key.ESCAPE))
        assert state.pattern == "old"
        assert state.buffer == ""
        assert not state.is_entering_pattern
        assert effects[-1] == ShowUsage(clear=True)
        assert not any(isinstance(effect, StartRun) for effect in effects)

    def test_keys_while_running_go_to_the_buffer(self):
        entering = evolve(RUNNING, is_entering_pattern=True)
        state, effects = transition(entering, press("a"))
        assert state.buffer == "a"
        assert effects == (RenderPrompt("a"),)

    def test_commit_while_running_does_not_start(self):
        entering = evolve(RUNNING, is_entering_pattern=True, buffer="add")
        state, effects = transition(entering, key(Key.ENTER))
        assert state.pattern == "add"
        assert effects == ()

    def test_control_c_quits_from_pattern_mode(self):
        entering = evolve(IDLE, is_entering_pattern=True, buffer="x")
        assert transition(entering, key(Key.CONTROL_C))[1] == (Quit(),)


class TestFileChanges:
    def test_change_rebuilds_and_starts(self):
        paths = (Path("/p/a.py"),)
        state, effects = transition(IDLE, FilesChanged(paths))
        assert state == IDLE
        assert effects == (RebuildIndex(paths), StartRun({}))

    def test_change_cancels_pattern_entry(self):
        entering = evolve(IDLE, is_entering_pattern=True, buffer="ad", pattern="old")
        state, _ = transition(entering, FilesChanged((Path("/p/a.py"),)))
        assert not state.is_entering_pattern
        assert state.buffer == ""
        assert state.pattern == "old"

    def test_change_while_running_only_rebuilds(self):
        paths = (Path("/p/a.py"),)
        assert transition(RUNNING, FilesChanged(paths)) == (RUNNING, (RebuildIndex(paths),))


class TestRunLifecycle:
    def test_run_started_sets_running(self):
        state, effects = transition(IDLE, RunStarted())
        assert state.is_running
        assert effects == ()

    def test_settle_shows_usage_and_returns_to_idle(self):
        state, effects = transition(RUNNING, RunSettled(False))
        assert state.phase is RunPhase.IDLE
        assert state.display_help is True
        assert effects == (ShowUsage(),)

    def test_hide_usage_shows_it_once(self):
        start = evolve(RUNNING, hide_usage=True)
        state, effects = transition(start, RunSettled(False))
        assert effects == (ShowUsage(),)
        assert state.display_help is False

        state, effects = transition(evolve(state, phase=RunPhase.RUNNING), RunSettled(False))
        assert effects == ()

    def test_settle_records_snapshot_failure(self):
        state, _ = transition(RUNNING, RunSettled(True))
        assert state.has_snapshot_failure is True
        state, _ = transition(evolve(state, phase=RunPhase.RUNNING), RunSettled(False))
        assert state.has_snapshot_failure is False

    def test_failed_run_keeps_previous_snapshot_flag(self):
        start = evolve(RUNNING, has_snapshot_failure=True)
        state, _ = transition(start, RunSettled(None))
        assert state.has_snapshot_failure is True

    def test_settle_keeps_pattern_entry_open(self):
        start = evolve(RUNNING, is_entering_pattern=True, buffer="ad")
        state, _ = transition(start, RunSettled(False))
        assert state.is_entering_pattern
        assert state.buffer == "ad"

    def test_unknown_event_raises(self):
        with pytest.raises(TypeError):
            transition(IDLE, object())
