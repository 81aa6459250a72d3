# src/watchrun/keys.py

"""
Decoding of raw keyboard bytes into logical key tokens.
"""

from enum import Enum, auto

from attrs import define, field


class Key(Enum):
    """Logical keyboard tokens understood by the watch controller."""

    CONTROL_C = auto()
    CONTROL_D = auto()
    ENTER = auto()
    ESCAPE = auto()
    BACKSPACE = auto()
    ARROW_UP = auto()
    ARROW_DOWN = auto()
    ARROW_LEFT = auto()
    ARROW_RIGHT = auto()
    CHAR = auto()  # Printable text, carried in KeyPress.char


ARROW_KEYS = frozenset({Key.ARROW_UP, Key.ARROW_DOWN, Key.ARROW_LEFT, Key.ARROW_RIGHT})

# Command letters used outside pattern mode.
QUIT = "q"
UPDATE_SNAPSHOTS = "u"
WATCH_ALL = "a"
WATCH_CHANGED_ONLY = "o"
ENTER_PATTERN = "p"
HELP = "?"

_RAW_KEYS: dict[str, Key] = {
    "\x03": Key.CONTROL_C,
    "\x04": Key.CONTROL_D,
    "\r": Key.ENTER,
    "\n": Key.ENTER,
    "\r\n": Key.ENTER,
    "\x1b": Key.ESCAPE,
    "\x7f": Key.BACKSPACE,
    "\x08": Key.BACKSPACE,
    "\x1b[A": Key.ARROW_UP,
    "\x1b[B": Key.ARROW_DOWN,
    "\x1b[C": Key.ARROW_RIGHT,
    "\x1b[D": Key.ARROW_LEFT,
    # Application cursor mode
    "\x1bOA": Key.ARROW_UP,
    "\x1bOB": Key.ARROW_DOWN,
    "\x1bOC": Key.ARROW_RIGHT,
    "\x1bOD": Key.ARROW_LEFT,
}

_LONGEST_SEQUENCE = max(len(sequence) for sequence in _RAW_KEYS)


@define(frozen=True, slots=True)
class KeyPress:
    """One decoded keypress. `char` is set only for Key.CHAR."""

    key: Key = field()
    char: str | None = field(default=None)

    def is_char(self, char: str) -> bool:
        return self.key is Key.CHAR and self.char == char

    @property
    def is_printable(self) -> bool:
        return self.key is Key.CHAR and bool(self.char) and self.char.isprintable()

    @classmethod
    def text(cls, char: str) -> "KeyPress":
        return cls(Key.CHAR, char)


def decode_keys(data: bytes) -> list[KeyPress]:
    """Splits one read from a raw-mode terminal into KeyPress tokens.

    A single read can hold several keys when typing is fast or text is
    pasted. Known control sequences are matched longest first; any other
    code point becomes its own Key.CHAR.
    """
    text = data.decode("utf-8", errors="replace")
    keys: list[KeyPress] = []
    pos = 0
    while pos < len(text):
        for size in range(min(_LONGEST_SEQUENCE, len(text) - pos), 0, -1):
            key = _RAW_KEYS.get(text[pos : pos + size])
            if key is not None:
                keys.append(KeyPress(key))
                pos += size
                break
        else:
            keys.append(KeyPress.text(text[pos]))
            pos += 1
    return keys


# 🔼⚙️
