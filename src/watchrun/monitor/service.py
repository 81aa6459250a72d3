# src/watchrun/monitor/service.py

"""
Filesystem monitoring with watchdog. Events arrive on the observer thread,
are handed to the asyncio loop with `call_soon_threadsafe`, and are debounced
into a single callback carrying every changed path.
"""

import asyncio
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from watchrun.exceptions import MonitoringSetupError
from watchrun.telemetry import StructLogger

from .events import RELEVANT_EVENT_TYPES, FileChangeEvent

log: StructLogger = structlog.get_logger("monitor.service")

ChangeCallback = Callable[[Sequence[Path]], None]


class ChangeEventHandler(FileSystemEventHandler):
    """
    Filters raw watchdog events and forwards the relevant ones to the loop.

    A path counts when it lies below `root_dir`, outside every ignored
    directory, and has one of `extensions` (any suffix when empty).
    `exclude_paths` are never reported; watchrun's own log file is one.
    """

    def __init__(
        self,
        root_dir: Path,
        ignore_dirs: Iterable[str],
        loop: asyncio.AbstractEventLoop,
        sink: Callable[[FileChangeEvent], None],
        extensions: Iterable[str] = (),
        exclude_paths: Iterable[Path] = (),
    ):
        super().__init__()
        self.root_dir = root_dir
        self.ignore_dirs = frozenset(ignore_dirs)
        self.extensions = frozenset(extensions)
        self.exclude_paths = frozenset(Path(path).resolve() for path in exclude_paths)
        self.loop = loop
        self.sink = sink

    def is_ignored(self, path: Path) -> bool:
        try:
            parts = path.relative_to(self.root_dir).parts
        except ValueError:
            return True
        if path in self.exclude_paths:
            return True
        if self.extensions and path.suffix not in self.extensions:
            return True
        return any(part in self.ignore_dirs for part in parts)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in RELEVANT_EVENT_TYPES:
            return

        dest = getattr(event, "dest_path", "") or None
        change = FileChangeEvent(
            event_type=event.event_type,
            src_path=Path(str(event.src_path)).resolve(),
            is_directory=event.is_directory,
            dest_path=Path(str(dest)).resolve() if dest else None,
        )
        if all(self.is_ignored(path) for path in change.paths):
            return
        log.debug("File change observed", event_type=change.event_type, path=str(change.src_path))
        self.loop.call_soon_threadsafe(self.sink, change)


class MonitoringService:
    """Watches `root_dir` recursively and reports debounced batches of changed paths."""

    def __init__(
        self,
        root_dir: Path,
        on_change: ChangeCallback,
        ignore_dirs: Iterable[str] = (),
        debounce_seconds: float = 0.25,
        extensions: Iterable[str] = (),
        exclude_paths: Iterable[Path] = (),
    ):
        self.root_dir = root_dir.resolve()
        self.on_change = on_change
        self.ignore_dirs = tuple(ignore_dirs)
        self.extensions = tuple(extensions)
        self.exclude_paths = tuple(exclude_paths)
        self.debounce_seconds = debounce_seconds
        self._observer: Observer | None = None
        self._pending: set[Path] = set()
        self._flush_handle: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        """Schedules the observer. Must be called from the running event loop."""
        if self.is_running:
            log.warning("Monitoring service already running.")
            return
        self._loop = asyncio.get_running_loop()
        handler = ChangeEventHandler(
            self.root_dir,
            self.ignore_dirs,
            self._loop,
            self._record,
            extensions=self.extensions,
            exclude_paths=self.exclude_paths,
        )
        observer = Observer()
        try:
            observer.schedule(handler, str(self.root_dir), recursive=True)
            observer.start()
        except Exception as e:
            log.error("Failed to schedule filesystem observer", path=str(self.root_dir), error=str(e), exc_info=True)
            raise MonitoringSetupError(f"Could not watch '{self.root_dir}'", details=e) from e
        self._observer = observer
        log.info("Filesystem monitoring started", emoji_key="change", path=str(self.root_dir))

    def _record(self, change: FileChangeEvent) -> None:
        if self._loop is None:
            raise MonitoringSetupError("Change recorded before the monitoring service was started")
        self._pending.update(change.paths)
        if self._flush_handle is not None:
            self._flush_handle.cancel()
        self._flush_handle = self._loop.call_later(self.debounce_seconds, self.flush)

    def flush(self) -> None:
        """Delivers the pending batch now, if there is one."""
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        if not self._pending:
            return
        paths = tuple(sorted(self._pending))
        self._pending.clear()
        log.debug("Delivering debounced file changes", count=len(paths))
        self.on_change(paths)

    async def stop(self) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        self._pending.clear()
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        await asyncio.to_thread(observer.join)
        log.info("Filesystem monitoring stopped.")


# 🔼⚙️
