# src/watchrun/reporters/dispatcher.py
"""
Sequential fan-out of run lifecycle events to registered reporters.
"""

import inspect
from collections.abc import Callable
from typing import Any

import structlog

from watchrun.results import (
    AggregatedResult,
    RunContext,
    RunStartOptions,
    TestCaseResult,
    TestFile,
    TestFileResult,
)
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("reporters.dispatcher")

ReporterMatcher = type | Callable[[Any], bool]


def _hook(reporter: Any, name: str, legacy_name: str | None = None) -> Callable[..., Any] | None:
    """Returns the reporter's hook `name`, falling back to `legacy_name`."""
    hook = getattr(reporter, name, None)
    if callable(hook):
        return hook
    if legacy_name is not None:
        legacy = getattr(reporter, legacy_name, None)
        if callable(legacy):
            return legacy
    return None


async def _settle(value: Any) -> None:
    if inspect.isawaitable(value):
        await value


class ReporterDispatcher:
    """
    Forwards events to every registered reporter, in registration order.

    Each hook is awaited before the next reporter is called, so no two
    reporters ever run concurrently for the same event. Hook failures are not
    caught here; they propagate to whoever drives the run.
    """

    def __init__(self) -> None:
        self._reporters: list[Any] = []

    @property
    def reporters(self) -> tuple[Any, ...]:
        return tuple(self._reporters)

    def register(self, reporter: Any) -> None:
        self._reporters.append(reporter)
        log.debug("Reporter registered", reporter=type(reporter).__name__, count=len(self._reporters))

    def unregister(self, match: ReporterMatcher) -> None:
        """Removes every reporter matching `match` (a class or a predicate)."""
        if isinstance(match, type):
            reporter_class = match
            predicate: Callable[[Any], bool] = lambda reporter: isinstance(reporter, reporter_class)  # noqa: E731
        else:
            predicate = match
        before = len(self._reporters)
        self._reporters = [reporter for reporter in self._reporters if not predicate(reporter)]
        log.debug("Reporters unregistered", removed=before - len(self._reporters))

    async def _dispatch(self, name: str, *args: Any, legacy_name: str | None = None) -> None:
        for reporter in self._reporters:
            hook = _hook(reporter, name, legacy_name)
            if hook is not None:
                await _settle(hook(*args))

    async def on_run_start(self, results: AggregatedResult, options: RunStartOptions) -> None:
        await self._dispatch("on_run_start", results, options)

    async def on_test_file_start(self, test: TestFile) -> None:
        await self._dispatch("on_test_file_start", test, legacy_name="on_test_start")

    async def on_test_file_result(
        self, test: TestFile, test_result: TestFileResult, results: AggregatedResult
    ) -> None:
        await self._dispatch("on_test_file_result", test, test_result, results, legacy_name="on_test_result")

        # Heavy payloads are dropped once every reporter has seen them.
        test_result.source_maps = None
        test_result.coverage = None
        test_result.console = None

    async def on_test_case_result(
        self, test: TestFile, test_case: str, test_case_result: TestCaseResult
    ) -> None:
        await self._dispatch("on_test_case_result", test, test_case, test_case_result)

    async def on_run_complete(self, contexts: set[RunContext], results: AggregatedResult) -> None:
        await self._dispatch("on_run_complete", contexts, results)

    def get_errors(self) -> list[Exception]:
        """Last error of every reporter that reports one, in registration order."""
        errors = []
        for reporter in self._reporters:
            get_last_error = _hook(reporter, "get_last_error")
            if get_last_error is None:
                continue
            error = get_last_error()
            if error is not None:
                errors.append(error)
        return errors

    def has_errors(self) -> bool:
        return len(self.get_errors()) != 0


# 🔼⚙️
