# src/watchrun/prompt/pattern_prompt.py

"""
Incremental test-title search shown while the user types a pattern.
"""

from collections.abc import Iterable

import structlog
from rich.cells import cell_len
from rich.text import Text

from watchrun.prompt.matching import (
    DIM,
    CachedTestRecord,
    anchored_pattern,
    compile_pattern,
    highlight,
    match_titles,
    pluralize_test,
    scroll,
)
from watchrun.prompt.rendering import LineRenderer
from watchrun.results import TestFileResult
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("prompt.pattern")

DEFAULT_MAX_ROWS = 10
HINT = "Start typing to filter by a test name regex pattern."
POINTER = "›"


def usage() -> Text:
    return Text.assemble(
        "\n",
        ("Pattern Mode Usage", "bold"),
        "\n ",
        (f"{POINTER} Press", DIM),
        " Esc ",
        ("to exit pattern mode.", DIM),
        "\n ",
        (f"{POINTER} Press", DIM),
        " Enter ",
        ("to apply pattern to all tests.", DIM),
        "\n\n",
    )


USAGE_ROWS = len(usage().plain.split("\n"))


class PatternPrompt:
    """
    Renders the typeahead list of cached test titles matching the typed pattern.

    The cache is replaced wholesale after every completed run. Rendering goes
    through a LineRenderer; the input line sits right below the usage block,
    and the cursor is returned to its end after every render.
    """

    def __init__(self, renderer: LineRenderer, max_rows: int = DEFAULT_MAX_ROWS):
        self._renderer = renderer
        self._max_rows = max_rows
        self._records: list[CachedTestRecord] = []
        self._current_usage_rows = USAGE_ROWS
        self.offset = -1
        self.selected_pattern: str | None = None
        self.matches: list[str] = []

    @property
    def cached_records(self) -> tuple[CachedTestRecord, ...]:
        return tuple(self._records)

    def update_cached_test_results(self, test_results: Iterable[TestFileResult] | None) -> None:
        self._records = [
            CachedTestRecord(result.test_file_path, [case.title for case in result.test_results])
            for result in (test_results or [])
        ]
        log.debug("Cached test titles replaced", files=len(self._records))

    def get_matched_tests(self, pattern: str) -> list[str]:
        return match_titles(self._records, pattern)

    def run(self, header: str | None = None) -> None:
        """Clears the screen and prints the pattern mode usage block."""
        self.offset = -1
        self.selected_pattern = None
        self._renderer.show_cursor(False)
        self._renderer.clear_screen()
        if header:
            self._renderer.write(header + "\n")
            self._current_usage_rows = USAGE_ROWS + len(header.split("\n"))
        else:
            self._current_usage_rows = USAGE_ROWS
        self._renderer.write(usage())
        self._renderer.show_cursor(True)

    def move_selection(self, delta: int) -> None:
        """Moves the selected row, clamped to the current matches.

        Watch mode binds no keys to this; arrows are ignored while typing a
        pattern. It is for callers that drive the prompt themselves, and the
        next render shows the selected row and sets `selected_pattern`.
        """
        if not self.matches:
            self.offset = -1
            return
        self.offset = max(-1, min(self.offset + delta, len(self.matches) - 1))

    def on_change(self, pattern: str) -> list[str]:
        """Redraws the input line and the matches below it."""
        self._renderer.erase_line()
        return self._print_typeahead(pattern)

    def _write_line(self, line: Text) -> None:
        line.truncate(self._renderer.width, overflow="ellipsis")
        self._renderer.write(Text("\n").append_text(line))

    def _print_typeahead(self, pattern: str) -> list[str]:
        self.matches = matches = self.get_matched_tests(pattern)
        total = len(matches)
        input_text = Text.assemble((f" pattern {POINTER}", DIM), f" {pattern}")

        self._renderer.erase_down()
        self._renderer.write(input_text)
        self.selected_pattern = None

        if pattern:
            self._renderer.write("\n")
            if total:
                summary = f" Pattern matches {total} {pluralize_test(total)}"
            else:
                summary = " Pattern matches no tests"
            self._write_line(Text(summary + " from cached test suites."))

            regex = compile_pattern(pattern)
            window = scroll(total, self.offset, self._max_rows)
            for i, title in enumerate(matches[window.start : window.end]):
                if i == window.index:
                    self.selected_pattern = anchored_pattern(title)
                    item = Text(title, style="reverse")
                else:
                    item = highlight(title, regex)
                self._write_line(Text.assemble(" ", (POINTER, DIM), " ", item))

            if total > self._max_rows:
                more = total - self._max_rows
                self._write_line(Text(f" {POINTER} and {more} more {pluralize_test(more)}", style=DIM))
        else:
            self._renderer.write("\n")
            self._write_line(Text(f" {HINT}", style="italic yellow"))

        self._renderer.move_cursor_to(cell_len(input_text.plain), self._current_usage_rows - 1)
        log.debug("Pattern typeahead rendered", pattern=pattern, matches=total)
        return matches


# 🔼⚙️
