# src/watchrun/monitor/events.py

"""
Event record handed from the watchdog thread to the asyncio loop.
"""

from pathlib import Path

from attrs import define, field

# Event types that mean a file's contents may have changed.
RELEVANT_EVENT_TYPES = frozenset({"created", "modified", "deleted", "moved"})


@define(frozen=True, slots=True)
class FileChangeEvent:
    """A single filesystem change below the watched root."""

    event_type: str = field()
    src_path: Path = field(converter=Path)
    is_directory: bool = field(default=False)
    dest_path: Path | None = field(default=None)

    @property
    def paths(self) -> tuple[Path, ...]:
        if self.dest_path is None:
            return (self.src_path,)
        return (self.src_path, self.dest_path)


# 🔼⚙️
