# src/watchrun/reporters/console.py
"""
Default reporter: per-file PASS/FAIL lines and an end-of-run summary.
"""

import time

import structlog
from rich.console import Console
from rich.text import Text

from watchrun.exceptions import RunCoordinatorError
from watchrun.results import AggregatedResult, RunContext, RunStartOptions, TestFile, TestFileResult
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("reporters.console")


def _relative(test: TestFile) -> str:
    try:
        return test.path.relative_to(test.context.root_dir).as_posix()
    except ValueError:
        return str(test.path)


def _count_line(label: str, failed: int, passed: int, total: int) -> Text:
    line = Text(f"{label:<12}", style="bold")
    if failed:
        line.append(f"{failed} failed", style="bold red")
        line.append(", ")
    if passed:
        line.append(f"{passed} passed", style="bold green")
        line.append(", ")
    line.append(f"{total} total")
    return line


class ConsoleReporter:
    """Writes run progress to a rich Console."""

    def __init__(self, console: Console):
        self.console = console
        self._last_error: Exception | None = None

    def on_run_start(self, results: AggregatedResult, options: RunStartOptions) -> None:
        self._last_error = None
        if options.show_status and results.num_total_test_suites:
            self.console.print(
                Text(f"Running {results.num_total_test_suites} test files...", style="dim"),
                highlight=False,
            )

    def on_test_file_result(self, test: TestFile, test_result: TestFileResult, results: AggregatedResult) -> None:
        badge = Text(" FAIL ", style="bold white on red") if test_result.failed else Text(" PASS ", style="bold black on green")
        line = Text.assemble(badge, " ", (_relative(test), "bold"), (f" ({test_result.duration:.2f}s)", "dim"))
        self.console.print(line, highlight=False)

        for case in test_result.test_results:
            if case.failed:
                self.console.print(Text(f"  ● {case.title}", style="red"), highlight=False)
        if test_result.failure_message:
            self.console.print(Text(test_result.failure_message, style="red"), highlight=False)
            self._last_error = RunCoordinatorError(f"Test file could not run: {_relative(test)}")

    def on_run_complete(self, contexts: set[RunContext], results: AggregatedResult) -> None:
        self.console.print()
        self.console.print(
            _count_line(
                "Test Suites:",
                results.num_failed_test_suites,
                results.num_passed_test_suites,
                results.num_total_test_suites,
            ),
            highlight=False,
        )
        self.console.print(
            _count_line("Tests:", results.num_failed_tests, results.num_passed_tests, results.num_total_tests),
            highlight=False,
        )
        if results.snapshot.failure:
            self.console.print(
                Text(f"Snapshots:  {results.snapshot.unmatched} failed", style="bold red"),
                highlight=False,
            )
        elapsed = time.monotonic() - results.start_time
        self.console.print(Text(f"Time:        {elapsed:.2f}s", style="bold"), highlight=False)
        if results.was_interrupted:
            self.console.print(Text("Test run was interrupted.", style="bold yellow"), highlight=False)
        log.debug("Run summary printed", failed_suites=results.num_failed_test_suites)

    def get_last_error(self) -> Exception | None:
        return self._last_error


# 🔼⚙️
