# src/watchrun/terminal.py

"""
Terminal mode control and keyboard input for watch mode.

Stdin is switched to cbreak mode with signal generation turned off, so Ctrl-C
and Ctrl-D arrive as bytes and go through the same key handling as every other
key. Output processing is left on so newlines still render normally.
"""

import asyncio
import contextlib
import os
import sys
import termios
import tty
from collections.abc import Callable, Iterator

import structlog

from watchrun.keys import KeyPress, decode_keys
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("terminal")

_READ_SIZE = 1024


class TerminalController:
    """Saves and restores the tty state of `stdin_fd`."""

    def __init__(self, stdin_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def enable_key_mode(self) -> None:
        tty.setcbreak(self.stdin_fd, termios.TCSANOW)
        attrs = termios.tcgetattr(self.stdin_fd)
        attrs[3] &= ~termios.ISIG  # lflags
        termios.tcsetattr(self.stdin_fd, termios.TCSANOW, attrs)

    def restore(self) -> None:
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    @contextlib.contextmanager
    def raw_mode(self) -> Iterator[None]:
        try:
            self.enable_key_mode()
            yield
        finally:
            self.restore()


class KeyboardReader:
    """
    Reads stdin from the event loop with `add_reader` and hands each decoded
    key to `on_key`.
    """

    def __init__(self, on_key: Callable[[KeyPress], None], stdin_fd: int | None = None):
        self.on_key = on_key
        self.stdin_fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
        self._terminal: TerminalController | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_interactive(self) -> bool:
        return os.isatty(self.stdin_fd)

    def start(self) -> bool:
        """Starts reading keys; returns False when stdin is not a terminal."""
        if not self.is_interactive:
            log.info("Stdin is not a terminal, keyboard controls disabled.")
            return False
        self._terminal = TerminalController(self.stdin_fd)
        self._terminal.enable_key_mode()
        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(self.stdin_fd, self._on_readable)
        log.debug("Keyboard reader started", fd=self.stdin_fd)
        return True

    def _on_readable(self) -> None:
        try:
            data = os.read(self.stdin_fd, _READ_SIZE)
        except OSError as e:
            log.warning("Failed to read from stdin", error=str(e))
            return
        if not data:
            return
        for key in decode_keys(data):
            log.debug("Key received", emoji_key="key", key=key.key.name, char=key.char)
            self.on_key(key)

    def stop(self) -> None:
        if self._loop is not None:
            self._loop.remove_reader(self.stdin_fd)
            self._loop = None
        if self._terminal is not None:
            self._terminal.restore()
            self._terminal = None
            log.debug("Keyboard reader stopped, terminal restored.")


# 🔼⚙️
