# tests/unit/test_monitor.py

"""Tests for the watchdog event handler and the debounced MonitoringService."""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from watchdog.events import DirModifiedEvent, FileClosedEvent, FileModifiedEvent, FileMovedEvent

from watchrun.exceptions import MonitoringSetupError
from watchrun.monitor import ChangeEventHandler, FileChangeEvent, MonitoringService


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path.resolve()


@pytest.fixture
def loop_mock() -> MagicMock:
    return MagicMock(spec=asyncio.AbstractEventLoop)


@pytest.fixture
def handler(root: Path, loop_mock: MagicMock) -> ChangeEventHandler:
    return ChangeEventHandler(root, ignore_dirs=(".git", "__pycache__"), loop=loop_mock, sink=MagicMock())


class TestChangeEventHandler:
    def test_forwards_file_modifications(self, handler, loop_mock, root):
        handler.on_any_event(FileModifiedEvent(str(root / "pkg" / "calc.py")))

        loop_mock.call_soon_threadsafe.assert_called_once_with(
            handler.sink, FileChangeEvent("modified", root / "pkg" / "calc.py")
        )

    def test_moves_carry_both_paths(self, handler, loop_mock, root):
        handler.on_any_event(FileMovedEvent(str(root / "old.py"), str(root / "new.py")))

        change = loop_mock.call_soon_threadsafe.call_args.args[1]
        assert change.paths == (root / "old.py", root / "new.py")

    def test_directory_events_are_skipped(self, handler, loop_mock, root):
        handler.on_any_event(DirModifiedEvent(str(root / "pkg")))
        loop_mock.call_soon_threadsafe.assert_not_called()

    def test_irrelevant_event_types_are_skipped(self, handler, loop_mock, root):
        handler.on_any_event(FileClosedEvent(str(root / "pkg" / "calc.py")))
        loop_mock.call_soon_threadsafe.assert_not_called()

    @pytest.mark.parametrize("relative", [".git/index", "pkg/__pycache__/calc.cpython-312.pyc"])
    def test_ignored_directories(self, handler, loop_mock, root, relative):
        handler.on_any_event(FileModifiedEvent(str(root / relative)))
        loop_mock.call_soon_threadsafe.assert_not_called()

    def test_paths_outside_root_are_ignored(self, handler, tmp_path):
        assert handler.is_ignored(tmp_path.parent / "elsewhere.py")


class TestChangeFilters:
    @pytest.fixture
    def filtered(self, root, loop_mock) -> ChangeEventHandler:
        return ChangeEventHandler(
            root,
            ignore_dirs=(".git",),
            loop=loop_mock,
            sink=MagicMock(),
            extensions=(".py",),
            exclude_paths=(root / "excluded.py",),
        )

    @pytest.mark.parametrize("name", ["watchrun.log", ".calc.py.swp", ".coverage", "notes.txt"])
    def test_other_extensions_are_skipped(self, filtered, loop_mock, root, name):
        filtered.on_any_event(FileModifiedEvent(str(root / name)))
        loop_mock.call_soon_threadsafe.assert_not_called()

    def test_matching_extension_is_forwarded(self, filtered, loop_mock, root):
        filtered.on_any_event(FileModifiedEvent(str(root / "pkg" / "calc.py")))
        loop_mock.call_soon_threadsafe.assert_called_once()

    def test_excluded_path_is_skipped(self, filtered, loop_mock, root):
        filtered.on_any_event(FileModifiedEvent(str(root / "excluded.py")))
        loop_mock.call_soon_threadsafe.assert_not_called()

    def test_log_file_excluded_without_extension_filter(self, root, loop_mock):
        handler = ChangeEventHandler(
            root, ignore_dirs=(), loop=loop_mock, sink=MagicMock(), exclude_paths=(root / "watchrun.log",)
        )
        handler.on_any_event(FileModifiedEvent(str(root / "watchrun.log")))
        loop_mock.call_soon_threadsafe.assert_not_called()

        handler.on_any_event(FileModifiedEvent(str(root / "data.json")))
        loop_mock.call_soon_threadsafe.assert_called_once()

    def test_atomic_save_onto_source_file_is_forwarded(self, filtered, loop_mock, root):
        filtered.on_any_event(FileMovedEvent(str(root / "calc.py.tmp"), str(root / "calc.py")))
        loop_mock.call_soon_threadsafe.assert_called_once()


@pytest.mark.asyncio
class TestDebounce:
    async def test_burst_is_delivered_once(self, root):
        batches = []
        service = MonitoringService(root, on_change=batches.append, debounce_seconds=0.02)
        service._loop = asyncio.get_running_loop()

        service._record(FileChangeEvent("modified", root / "b.py"))
        service._record(FileChangeEvent("modified", root / "a.py"))
        service._record(FileChangeEvent("modified", root / "b.py"))
        await asyncio.sleep(0.1)

        assert batches == [(root / "a.py", root / "b.py")]

    async def test_flush_delivers_immediately(self, root):
        batches = []
        service = MonitoringService(root, on_change=batches.append, debounce_seconds=10)
        service._loop = asyncio.get_running_loop()

        service._record(FileChangeEvent("created", root / "a.py"))
        service.flush()
        service.flush()

        assert batches == [(root / "a.py",)]

    async def test_record_before_start_raises(self, root):
        service = MonitoringService(root, on_change=MagicMock())

        with pytest.raises(MonitoringSetupError, match="before the monitoring service was started"):
            service._record(FileChangeEvent("modified", root / "a.py"))

    async def test_stop_drops_pending_changes(self, root):
        batches = []
        service = MonitoringService(root, on_change=batches.append, debounce_seconds=0.02)
        service._loop = asyncio.get_running_loop()

        service._record(FileChangeEvent("created", root / "a.py"))
        await service.stop()
        await asyncio.sleep(0.05)

        assert batches == []


@pytest.mark.asyncio
class TestServiceLifecycle:
    async def test_observer_failure_raises_setup_error(self, root):
        service = MonitoringService(root, on_change=MagicMock())
        with patch("watchrun.monitor.service.Observer") as observer_cls:
            observer_cls.return_value.schedule.side_effect = OSError("inotify limit reached")
            with pytest.raises(MonitoringSetupError, match="Could not watch"):
                service.start()

        assert not service.is_running

    async def test_stop_without_start(self, root):
        service = MonitoringService(root, on_change=MagicMock())
        await service.stop()
        assert not service.is_running

    @pytest.mark.slow
    async def test_real_observer_reports_writes(self, root):
        changed = asyncio.Event()
        batches = []

        def on_change(paths):
            batches.append(paths)
            changed.set()

        service = MonitoringService(root, on_change=on_change, debounce_seconds=0.05)
        service.start()
        try:
            assert service.is_running
            await asyncio.sleep(0.2)
            (root / "calc.py").write_text("x = 1\n")
            await asyncio.wait_for(changed.wait(), timeout=5)
        finally:
            await service.stop()

        assert any(root / "calc.py" in batch for batch in batches)
        assert not service.is_running
