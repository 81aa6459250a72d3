# src/watchrun/runtime/orchestrator.py

"""
High-level coordinator for the watch process.
Builds every runtime component, runs the controller, and tears it all down.
"""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

import structlog
from rich.console import Console
from rich.text import Text

from watchrun.config import WatchrunConfig
from watchrun.exceptions import MonitoringSetupError
from watchrun.keys import KeyPress
from watchrun.monitor import MonitoringService
from watchrun.prompt import ConsoleLineRenderer, PatternPrompt
from watchrun.reporters import ConsoleReporter, ReporterDispatcher
from watchrun.results import RunContext
from watchrun.runner import SubprocessRunCoordinator
from watchrun.scm import find_changed_files
from watchrun.search import build_context
from watchrun.state import RunArguments, WatchMode, set_watch_mode
from watchrun.telemetry import StructLogger
from watchrun.terminal import KeyboardReader

from .controller import WatchController
from .transitions import FilesChanged, KeyPressed

log: StructLogger = structlog.get_logger("runtime.orchestrator")


def _active_log_files() -> tuple[Path, ...]:
    """Files the root logger writes to; changes to them must not trigger runs."""
    return tuple(
        Path(handler.baseFilename)
        for handler in logging.getLogger().handlers
        if isinstance(handler, logging.FileHandler)
    )


class WatchOrchestrator:
    """Instantiates and coordinates all runtime components for the watch command."""

    def __init__(
        self,
        config: WatchrunConfig,
        argv: RunArguments,
        shutdown_event: asyncio.Event,
        console: Console | None = None,
        hide_usage: bool | None = None,
    ):
        self.config = config
        self.argv = argv
        self.shutdown_event = shutdown_event
        self.console = console or Console()
        self.hide_usage = hide_usage
        self.dispatcher = ReporterDispatcher()
        self.controller: WatchController | None = None
        self.monitor_service: MonitoringService | None = None
        self.keyboard: KeyboardReader | None = None
        self.exit_code = 0

    def _console_message(self, message: str, style: str = "dim") -> None:
        self.console.print(Text(message, style=style), highlight=False)

    def _build_context(self, changed_paths: Sequence[Path] = ()) -> RunContext:
        return build_context(self.config, changed_paths, use_scm=not self.argv.no_scm)

    def _request_exit(self, code: int) -> None:
        log.debug("Exit requested", code=code)
        self.exit_code = code
        self.shutdown_event.set()

    async def _detect_scm(self) -> None:
        changed = await asyncio.to_thread(find_changed_files, self.config.root_dir)
        if changed is not None:
            return
        self.argv.no_scm = True
        if self.argv.watch and not self.argv.watch_all:
            log.warning("No git repository found, watching all tests instead of changed ones.")
            self._console_message("No git repository found; running all tests on every change.", style="yellow")
            set_watch_mode(self.argv, WatchMode.WATCH_ALL)

    def _setup_monitoring(self, controller: WatchController) -> MonitoringService:
        def on_change(paths: Sequence[Path]) -> None:
            controller.post(FilesChanged(paths))

        return MonitoringService(
            self.config.root_dir,
            on_change=on_change,
            ignore_dirs=self.config.ignore_dirs,
            debounce_seconds=self.config.debounce_seconds,
            extensions=self.config.watch_extensions,
            exclude_paths=_active_log_files(),
        )

    def _setup_keyboard(self, controller: WatchController) -> KeyboardReader:
        def on_key(key: KeyPress) -> None:
            controller.post(KeyPressed(key))

        return KeyboardReader(on_key)

    async def run(self) -> int:
        """Main execution method: setup, run, and cleanup. Returns the exit code."""
        log.info("Orchestrator run sequence starting.", emoji_key="general", root_dir=str(self.config.root_dir))
        controller_task = None

        try:
            await self._detect_scm()
            context = await asyncio.to_thread(self._build_context)

            self.dispatcher.register(ConsoleReporter(self.console))
            renderer = ConsoleLineRenderer(self.console)
            self.controller = WatchController(
                config=self.config,
                argv=self.argv,
                context=context,
                coordinator=SubprocessRunCoordinator(self.dispatcher),
                context_builder=self._build_context,
                console=self.console,
                prompt=PatternPrompt(renderer, max_rows=self.config.max_typeahead_rows),
                renderer=renderer,
                shutdown_event=self.shutdown_event,
                hide_usage=self.hide_usage,
                exit_func=self._request_exit,
            )

            self.monitor_service = self._setup_monitoring(self.controller)
            try:
                self.monitor_service.start()
            except MonitoringSetupError as e:
                log.critical("Failed to start filesystem monitoring service", error=str(e), exc_info=True)
                self._console_message(f"FATAL: Filesystem monitor failed: {e}", style="bold red")
                self.exit_code = 1
                return self.exit_code

            self.keyboard = self._setup_keyboard(self.controller)
            self.keyboard.start()

            log.info("Starting watch controller task.")
            controller_task = asyncio.create_task(self.controller.run())
            await controller_task

        except asyncio.CancelledError:
            log.warning("Orchestrator task was cancelled.")
        finally:
            log.info("Orchestrator entering cleanup phase.")
            if controller_task and not controller_task.done():
                controller_task.cancel()
                await asyncio.gather(controller_task, return_exceptions=True)

            if self.keyboard is not None:
                self.keyboard.stop()

            if self.monitor_service and self.monitor_service.is_running:
                await self.monitor_service.stop()

            log.info("Orchestrator cleanup complete.")

        return self.exit_code


# 🔼⚙️
