# tests/unit/test_pattern_prompt.py

"""Tests for the PatternPrompt typeahead rendering."""

import io
import re
from pathlib import Path

import pytest
from rich.console import Console

from watchrun.prompt import ConsoleLineRenderer, PatternPrompt
from watchrun.prompt.pattern_prompt import HINT, USAGE_ROWS
from watchrun.results import TestCaseResult, TestFileResult


def _file_result(path: str, *titles: str) -> TestFileResult:
    return TestFileResult(
        test_file_path=Path(path),
        test_results=[TestCaseResult(title=title, status="passed") for title in titles],
    )


@pytest.fixture
def prompt(renderer) -> PatternPrompt:
    prompt = PatternPrompt(renderer)
    prompt.update_cached_test_results([_file_result("tests/test_calc.py", "adds numbers", "subtracts numbers")])
    return prompt


class TestCache:
    def test_cache_is_replaced_wholesale(self, prompt: PatternPrompt):
        prompt.update_cached_test_results([_file_result("tests/test_other.py", "other thing")])
        assert prompt.get_matched_tests("numbers") == []
        assert prompt.get_matched_tests("other") == ["other thing"]

    def test_none_clears_cache(self, prompt: PatternPrompt):
        prompt.update_cached_test_results(None)
        assert prompt.cached_records == ()

    def test_matches_follow_cache_order(self, prompt: PatternPrompt):
        assert prompt.get_matched_tests("numbers") == ["adds numbers", "subtracts numbers"]


class TestRender:
    def test_run_prints_usage_on_a_clear_screen(self, prompt: PatternPrompt, renderer):
        prompt.run()
        assert renderer.calls[:2] == [("show_cursor", False), ("clear_screen",)]
        assert renderer.calls[-1] == ("show_cursor", True)
        assert "Pattern Mode Usage" in renderer.output
        assert "Press Esc to exit pattern mode." in renderer.output
        assert "Press Enter to apply pattern to all tests." in renderer.output

    def test_header_goes_above_usage(self, prompt: PatternPrompt, renderer):
        prompt.run(header="Interrupted run")
        assert renderer.output.startswith("Interrupted run\n")

    def test_single_match(self, prompt: PatternPrompt, renderer):
        matches = prompt.on_change("add")

        assert matches == ["adds numbers"]
        assert renderer.calls[0] == ("erase_line",)
        assert " pattern › add" in renderer.output
        assert "Pattern matches 1 test from cached test suites." in renderer.output
        assert " › adds numbers" in renderer.output
        assert "subtracts" not in renderer.output

    def test_plural_matches(self, prompt: PatternPrompt, renderer):
        prompt.on_change("numbers")
        assert "Pattern matches 2 tests from cached test suites." in renderer.output

    def test_no_matches(self, prompt: PatternPrompt, renderer):
        assert prompt.on_change("zzz") == []
        assert "Pattern matches no tests from cached test suites." in renderer.output

    def test_invalid_pattern_renders_no_matches(self, prompt: PatternPrompt, renderer):
        assert prompt.on_change("(") == []
        assert "Pattern matches no tests" in renderer.output

    def test_empty_pattern_shows_hint(self, prompt: PatternPrompt, renderer):
        prompt.on_change("")
        assert HINT in renderer.output
        assert "Pattern matches" not in renderer.output

    def test_cursor_returns_to_end_of_input(self, prompt: PatternPrompt, renderer):
        prompt.on_change("add")
        assert renderer.calls[-1] == ("move_cursor_to", len(" pattern › add"), USAGE_ROWS - 1)

    def test_cursor_row_accounts_for_header(self, prompt: PatternPrompt, renderer):
        prompt.run(header="line one\nline two")
        renderer.reset()
        prompt.on_change("a")
        assert renderer.calls[-1] == ("move_cursor_to", len(" pattern › a"), USAGE_ROWS + 1)

    def test_overflow_footer(self, renderer):
        prompt = PatternPrompt(renderer, max_rows=3)
        prompt.update_cached_test_results([_file_result("t.py", *(f"case {i}" for i in range(5)))])

        prompt.on_change("case")

        assert "Pattern matches 5 tests" in renderer.output
        assert " › and 2 more tests" in renderer.output
        assert "case 3" not in renderer.output

    def test_lines_are_truncated_to_width(self, renderer):
        renderer.width = 20
        prompt = PatternPrompt(renderer)
        long_title = "a very long test title that does not fit"
        prompt.update_cached_test_results([_file_result("t.py", long_title)])

        prompt.on_change("long")

        for line in renderer.output.split("\n"):
            assert len(line) <= 20
        assert "…" in renderer.output


class TestSelection:
    def test_no_selection_by_default(self, prompt: PatternPrompt):
        prompt.on_change("numbers")
        assert prompt.selected_pattern is None

    def test_selected_row_is_stored_as_anchored_pattern(self, prompt: PatternPrompt):
        prompt.on_change("numbers")
        prompt.move_selection(1)
        prompt.move_selection(1)
        prompt.on_change("numbers")

        assert prompt.selected_pattern == "^subtracts\\ numbers$"
        assert re.match(prompt.selected_pattern, "subtracts numbers")

    def test_selection_is_clamped(self, prompt: PatternPrompt):
        prompt.on_change("add")
        prompt.move_selection(5)
        assert prompt.offset == 0
        prompt.move_selection(-5)
        assert prompt.offset == -1


def test_console_renderer_writes_plain_text_off_terminal():
    output = io.StringIO()
    console = Console(file=output, width=60, color_system=None, force_terminal=False)
    prompt = PatternPrompt(ConsoleLineRenderer(console))
    prompt.update_cached_test_results([_file_result("t.py", "adds numbers")])

    prompt.on_change("add")

    text = output.getvalue()
    assert "pattern › add" in text
    assert "adds numbers" in text
    assert "\x1b[J" not in text
