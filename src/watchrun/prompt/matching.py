# src/watchrun/prompt/matching.py

"""
Regex matching, highlighting and scrolling helpers for the pattern prompt.
"""

import re
from collections.abc import Iterable
from pathlib import Path

from attrs import define, field
from rich.text import Text

DIM = "dim"


@define(frozen=True, slots=True)
class CachedTestRecord:
    """Test titles of one file, in the order the last run reported them."""

    file_path: Path = field()
    titles: tuple[str, ...] = field(factory=tuple, converter=tuple)


@define(frozen=True, slots=True)
class ScrollWindow:
    start: int
    end: int
    index: int  # Selected row relative to `start`; -1 for no selection.


def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compiles a case-insensitive pattern; None when the pattern is malformed."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return None


def match_titles(records: Iterable[CachedTestRecord], pattern: str) -> list[str]:
    """Every title matching `pattern`, records and titles in stored order.

    Duplicates are kept. A malformed pattern matches nothing.
    """
    regex = compile_pattern(pattern)
    if regex is None:
        return []
    return [title for record in records for title in record.titles if regex.search(title)]


def highlight(text: str, pattern: str | re.Pattern[str]) -> Text:
    """Dims the parts of `text` outside the first match of `pattern`.

    Without a match (or with a malformed pattern) the whole text is dimmed.
    """
    regex = compile_pattern(pattern) if isinstance(pattern, str) else pattern
    match = regex.search(text) if regex is not None else None
    if match is None:
        return Text(text, style=DIM)

    start, end = match.span()
    highlighted = Text()
    highlighted.append(text[:start], style=DIM)
    highlighted.append(text[start:end])
    highlighted.append(text[end:], style=DIM)
    return highlighted


def scroll(size: int, offset: int, max_rows: int) -> ScrollWindow:
    """Window of at most `max_rows` rows over `size` items keeping `offset` in view.

    The selection stays in the top half of the window until the list has to
    scroll; `offset=-1` selects nothing.
    """
    start = 0
    index = min(offset, size)
    half_screen = max_rows // 2

    if index > half_screen:
        if size >= max_rows:
            start = min(index - half_screen - 1, size - max_rows)
        index = min(index - start, size)

    return ScrollWindow(start=start, end=min(size, start + max_rows), index=index)


def anchored_pattern(title: str) -> str:
    """Pattern matching exactly `title` and nothing else."""
    return f"^{re.escape(title)}$"


def pluralize_test(total: int) -> str:
    return "test" if total == 1 else "tests"


# 🔼⚙️
