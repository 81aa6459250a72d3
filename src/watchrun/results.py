# src/watchrun/results.py

"""
Records describing a test run: the indexed project, the units of work, and
per-test, per-file and aggregated results.
"""

import time
from pathlib import Path
from typing import Any

from attrs import define, field, mutable


@define(frozen=True, slots=True)
class RunContext:
    """Immutable snapshot of the indexed project, rebuilt on every file change."""

    root_dir: Path = field()
    test_files: tuple[Path, ...] = field(factory=tuple, converter=tuple)
    changed_files: frozenset[Path] = field(factory=frozenset, converter=frozenset)


@define(frozen=True, slots=True)
class TestFile:
    """One test file scheduled in a run."""

    __test__ = False

    path: Path = field()
    context: RunContext = field(repr=False)


@define(frozen=True, slots=True)
class RunStartOptions:
    estimated_time: float = field(default=0.0)
    show_status: bool = field(default=True)


@define(slots=True)
class TestCaseResult:
    """Outcome of one test inside a test file."""

    __test__ = False

    title: str = field()
    status: str = field()  # "passed", "failed", "skipped" or "error"
    node_id: str | None = field(default=None)

    @property
    def failed(self) -> bool:
        return self.status in ("failed", "error")


@mutable(slots=True)
class SnapshotSummary:
    failure: bool = field(default=False)
    unmatched: int = field(default=0)
    updated: int = field(default=0)


@mutable(slots=True)
class TestFileResult:
    """
    Result for a whole test file.

    `source_maps`, `coverage` and `console` are heavy payloads that the
    reporter dispatcher clears once every reporter has seen the result.
    """

    __test__ = False

    test_file_path: Path = field()
    test_results: list[TestCaseResult] = field(factory=list)
    failure_message: str | None = field(default=None)  # Set when the file could not run.
    snapshot: SnapshotSummary = field(factory=SnapshotSummary)
    duration: float = field(default=0.0)
    source_maps: dict[str, Any] | None = field(default=None, repr=False)
    coverage: dict[str, Any] | None = field(default=None, repr=False)
    console: list[str] | None = field(default=None, repr=False)

    @property
    def num_failing_tests(self) -> int:
        return sum(1 for result in self.test_results if result.failed)

    @property
    def num_passing_tests(self) -> int:
        return sum(1 for result in self.test_results if result.status == "passed")

    @property
    def num_skipped_tests(self) -> int:
        return sum(1 for result in self.test_results if result.status == "skipped")

    @property
    def failed(self) -> bool:
        return self.failure_message is not None or self.num_failing_tests > 0


@mutable(slots=True)
class AggregatedResult:
    """Running totals for a whole run, updated as each test file completes."""

    test_results: list[TestFileResult] = field(factory=list)
    num_total_test_suites: int = field(default=0)
    snapshot: SnapshotSummary = field(factory=SnapshotSummary)
    was_interrupted: bool = field(default=False)
    start_time: float = field(factory=time.monotonic)

    def add_test_file_result(self, result: TestFileResult) -> None:
        self.test_results.append(result)
        self.snapshot.unmatched += result.snapshot.unmatched
        self.snapshot.updated += result.snapshot.updated
        if result.snapshot.failure:
            self.snapshot.failure = True

    @property
    def num_failed_test_suites(self) -> int:
        return sum(1 for result in self.test_results if result.failed)

    @property
    def num_passed_test_suites(self) -> int:
        return len(self.test_results) - self.num_failed_test_suites

    @property
    def num_failed_tests(self) -> int:
        return sum(result.num_failing_tests for result in self.test_results)

    @property
    def num_passed_tests(self) -> int:
        return sum(result.num_passing_tests for result in self.test_results)

    @property
    def num_total_tests(self) -> int:
        return sum(len(result.test_results) for result in self.test_results)

    @property
    def success(self) -> bool:
        return self.num_failed_test_suites == 0 and not self.was_interrupted


# 🔼⚙️
