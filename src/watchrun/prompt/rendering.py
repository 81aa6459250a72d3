# src/watchrun/prompt/rendering.py

"""
Line rendering capability used by the prompt and the controller.

Everything that moves the cursor or erases the screen goes through a
LineRenderer, so matching and state logic can run against a plain buffer.
"""

from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.control import Control, ControlType
from rich.text import Text

ERASE_DOWN = "\x1b[J"  # No rich Control equivalent.


@runtime_checkable
class LineRenderer(Protocol):
    @property
    def width(self) -> int: ...

    def write(self, text: str | Text) -> None:
        """Writes text without a trailing newline."""
        ...

    def clear_screen(self) -> None: ...

    def erase_line(self) -> None:
        """Erases the current line and returns the cursor to column 0."""
        ...

    def erase_down(self) -> None: ...

    def move_cursor_to(self, column: int, row: int) -> None: ...

    def show_cursor(self, show: bool = True) -> None: ...


class ConsoleLineRenderer:
    """LineRenderer over a rich Console. Control codes are dropped when the
    console is not attached to a terminal."""

    def __init__(self, console: Console):
        self.console = console

    @property
    def width(self) -> int:
        return self.console.width

    def write(self, text: str | Text) -> None:
        self.console.print(text, end="", soft_wrap=True, highlight=False, markup=False)

    def clear_screen(self) -> None:
        self.console.control(Control.clear(), Control.home())

    def erase_line(self) -> None:
        self.console.control(Control((ControlType.ERASE_IN_LINE, 2), ControlType.CARRIAGE_RETURN))

    def erase_down(self) -> None:
        if self.console.is_terminal:
            self.console.file.write(ERASE_DOWN)

    def move_cursor_to(self, column: int, row: int) -> None:
        self.console.control(Control.move_to(column, row))

    def show_cursor(self, show: bool = True) -> None:
        self.console.control(Control.show_cursor(show))


# 🔼⚙️
