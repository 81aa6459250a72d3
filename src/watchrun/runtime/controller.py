# src/watchrun/runtime/controller.py
"""
Watch controller: consumes keyboard and file-change events, executes the
effects chosen by the state machine, and owns the one in-flight run.
"""

import asyncio
import os
import sys
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

import attrs
import structlog
from rich.console import Console
from rich.text import Text

from watchrun.config import WatchrunConfig
from watchrun.prompt import ConsoleLineRenderer, LineRenderer, PatternPrompt
from watchrun.protocols import RunCoordinator
from watchrun.results import RunContext
from watchrun.runtime.cancellation import CancellationToken
from watchrun.runtime.transitions import (
    Effect,
    Interrupt,
    Quit,
    RebuildIndex,
    RenderPrompt,
    RunSettled,
    RunStarted,
    ShowUsage,
    StartRun,
    WatchEvent,
    transition,
)
from watchrun.runtime.usage import pre_run_message, usage
from watchrun.state import RunArguments, WatchState, set_watch_mode
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.controller")

HIDE_USAGE_ENV = "WATCHRUN_HIDE_USAGE"

ContextBuilder = Callable[[Sequence[Path]], RunContext]


class WatchController:
    """Drives Idle/Running/EnteringPattern transitions for one watch session."""

    def __init__(
        self,
        *,
        config: WatchrunConfig,
        argv: RunArguments,
        context: RunContext,
        coordinator: RunCoordinator,
        context_builder: ContextBuilder,
        console: Console,
        prompt: PatternPrompt | None = None,
        renderer: LineRenderer | None = None,
        event_queue: asyncio.Queue[WatchEvent] | None = None,
        shutdown_event: asyncio.Event | None = None,
        hide_usage: bool | None = None,
        exit_func: Callable[[int], Any] = sys.exit,
    ):
        self.config = config
        self.argv = argv
        self.context = context
        self.coordinator = coordinator
        self.console = console
        self.renderer = renderer or ConsoleLineRenderer(console)
        self.prompt = prompt or PatternPrompt(self.renderer, max_rows=config.max_typeahead_rows)
        self.event_queue: asyncio.Queue[WatchEvent] = event_queue or asyncio.Queue()
        self.shutdown_event = shutdown_event or asyncio.Event()
        self._context_builder = context_builder
        self._exit = exit_func

        if hide_usage is None:
            hide_usage = bool(os.environ.get(HIDE_USAGE_ENV))
        self.state = WatchState(mode=argv.mode, pattern=argv.test_name_pattern, hide_usage=hide_usage)
        self.token = CancellationToken()
        self._run_task: asyncio.Task[None] | None = None
        # Changed paths not yet folded into `context`, in arrival order.
        self._stale_paths: dict[Path, None] = {}
        log.debug("WatchController initialized.", mode=self.state.mode.value, hide_usage=hide_usage)

    @property
    def run_task(self) -> asyncio.Task[None] | None:
        return self._run_task

    def post(self, event: WatchEvent) -> None:
        """Queues an event for the main loop; safe to use as a plain callback."""
        self.event_queue.put_nowait(event)

    async def run(self) -> None:
        """Starts the first run, then consumes events until shutdown."""
        log.info("Watch controller is running.")
        self.start_run()

        while not self.shutdown_event.is_set():
            get_task = asyncio.create_task(self.event_queue.get())
            shutdown_task = asyncio.create_task(self.shutdown_event.wait())
            try:
                done, _ = await asyncio.wait({get_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)
            except asyncio.CancelledError:
                get_task.cancel()
                shutdown_task.cancel()
                log.info("Watch controller loop cancelled.")
                raise

            if get_task not in done:
                get_task.cancel()
                break
            shutdown_task.cancel()
            self.handle_event(get_task.result())

        await self.stop()
        log.info("Watch controller has stopped.")

    def handle_event(self, event: WatchEvent) -> None:
        """Applies one event to the state machine and carries out its effects."""
        self.state, effects = transition(self.state, event)
        for effect in effects:
            self._apply(effect)

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, Quit):
            log.info("Quit requested, exiting.", emoji_key="key")
            self._exit(0)
        elif isinstance(effect, Interrupt):
            log.info("Interrupting active test run.", emoji_key="interrupt", token_id=self.token.token_id)
            self.token.interrupt()
        elif isinstance(effect, StartRun):
            self.start_run(effect.overrides)
        elif isinstance(effect, RenderPrompt):
            if effect.clear:
                self.prompt.run()
            self.prompt.on_change(effect.buffer)
        elif isinstance(effect, ShowUsage):
            self._show_usage(clear=effect.clear)
        elif isinstance(effect, RebuildIndex):
            log.info("Files changed, test index is stale.", emoji_key="change", changed=len(effect.paths))
            self._stale_paths.update(dict.fromkeys(effect.paths))

    def _show_usage(self, clear: bool) -> None:
        if clear:
            self.renderer.show_cursor(False)
            self.renderer.clear_screen()
        self.renderer.write(usage(self.argv, self.state.has_snapshot_failure))
        if clear:
            self.renderer.show_cursor(True)

    def start_run(self, overrides: Mapping[str, Any] | None = None) -> asyncio.Task[None] | None:
        """
        Starts a run unless one is already active, in which case the request
        is dropped. The run gets a fresh token and a frozen copy of the
        configuration with `overrides` merged on top.
        """
        if self.state.is_running:
            log.debug("Run already in progress, start request dropped.")
            return None

        token = self.token = CancellationToken()
        set_watch_mode(self.argv, self.state.mode, test_name_pattern=self.state.pattern)
        config = attrs.evolve(self.config, **dict(overrides or {}))
        self.state, _ = transition(self.state, RunStarted())

        self.renderer.clear_screen()
        self.renderer.write(pre_run_message().append("\n"))
        log.info(
            "Starting test run",
            emoji_key="run",
            token_id=token.token_id,
            mode=self.state.mode.value,
            overrides=dict(overrides or {}),
        )
        self._run_task = asyncio.create_task(self._execute_run(token, config))
        return self._run_task

    async def _execute_run(self, token: CancellationToken, config: WatchrunConfig) -> None:
        snapshot_failure: bool | None = None
        try:
            if self._stale_paths:
                await self._rebuild_context()
            results = await self.coordinator.run(self.context, config, self.argv, self.console, token)
            snapshot_failure = results.snapshot.failure
            self.prompt.update_cached_test_results(results.test_results)
            log.info(
                "Test run finished",
                emoji_key="run",
                token_id=token.token_id,
                success=results.success,
                interrupted=results.was_interrupted,
            )
        except asyncio.CancelledError:
            log.warning("Test run task was cancelled.", token_id=token.token_id)
            raise
        except Exception as e:
            log.exception("Test run failed.", token_id=token.token_id)
            self.console.print(Text(f"Test run failed: {e}", style="bold red"), highlight=False)
        finally:
            # Settle on every outcome, including cancellation.
            self._run_task = None
            self.token = CancellationToken()
            self.handle_event(RunSettled(snapshot_failure))

    async def _rebuild_context(self) -> None:
        # Walks the tree and queries git; runs in a worker thread.
        paths = tuple(self._stale_paths)
        log.info("Rebuilding test index.", emoji_key="change", changed=len(paths))
        self.context = await asyncio.to_thread(self._context_builder, paths)
        for path in paths:
            self._stale_paths.pop(path, None)

    async def wait_for_run(self) -> None:
        """Waits for the in-flight run, if any, to settle."""
        task = self._run_task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def stop(self) -> None:
        """Interrupts and cancels the in-flight run."""
        task = self._run_task
        if task is None:
            return
        log.debug("Stopping in-flight test run.")
        self.token.interrupt()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        log.debug("In-flight test run stopped.")


# 🔼⚙️
