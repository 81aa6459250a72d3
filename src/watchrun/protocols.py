#
# src/watchrun/protocols.py
#
"""
Runtime protocols for the collaborators of the watch controller.

Reporters are deliberately loose: every hook is optional and the dispatcher
decides what to call by attribute presence, so `Reporter` documents the full
shape rather than something a plugin must subclass.
"""

from collections.abc import Awaitable, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from attrs import define, field
from rich.console import Console

from watchrun.config import WatchrunConfig
from watchrun.results import (
    AggregatedResult,
    RunContext,
    RunStartOptions,
    TestCaseResult,
    TestFile,
    TestFileResult,
)
from watchrun.runtime.cancellation import CancellationToken
from watchrun.state import RunArguments


@define(frozen=True, slots=True)
class SearchResult:
    """Test files selected by a search."""

    paths: tuple[Path, ...] = field(factory=tuple, converter=tuple)


class Reporter(Protocol):
    """
    Full capability set of a reporter. Any subset may be implemented; each hook
    may be a plain function or return an awaitable.
    """

    def on_run_start(self, results: AggregatedResult, options: RunStartOptions) -> Awaitable[None] | None: ...

    def on_test_file_start(self, test: TestFile) -> Awaitable[None] | None: ...

    def on_test_start(self, test: TestFile) -> Awaitable[None] | None:
        """Legacy alias of on_test_file_start."""
        ...

    def on_test_file_result(
        self, test: TestFile, test_result: TestFileResult, results: AggregatedResult
    ) -> Awaitable[None] | None: ...

    def on_test_result(
        self, test: TestFile, test_result: TestFileResult, results: AggregatedResult
    ) -> Awaitable[None] | None:
        """Legacy alias of on_test_file_result."""
        ...

    def on_test_case_result(
        self, test: TestFile, test_case: str, test_case_result: TestCaseResult
    ) -> Awaitable[None] | None: ...

    def on_run_complete(self, contexts: set[RunContext], results: AggregatedResult) -> Awaitable[None] | None: ...

    def get_last_error(self) -> Exception | None: ...


@runtime_checkable
class SearchSource(Protocol):
    """Resolves patterns and changed files to test file paths."""

    def find_matching_tests(self, pattern: str) -> SearchResult: ...

    def find_related_tests(self, changed_paths: Sequence[Path]) -> SearchResult: ...


@runtime_checkable
class RunCoordinator(Protocol):
    """Executes one test run and drives the reporter hooks while doing so."""

    async def run(
        self,
        context: RunContext,
        config: WatchrunConfig,
        argv: RunArguments,
        output: Console,
        token: CancellationToken,
    ) -> AggregatedResult:
        """
        Runs the tests selected by `argv` against `context`.

        Implementations must poll `token.interrupted` between units of work and
        stop scheduling new work once it is set. `config` is frozen.
        """
        ...


# 🔼⚙️
