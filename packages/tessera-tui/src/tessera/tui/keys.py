"""Keyboard input parsing and per-frame key handler dispatch.

``parse_keys`` turns a chunk of raw terminal input into key identifiers
like ``"ctrl+c"``, ``"up"`` or ``"shift+tab"``.  Handlers are registered by
views during a render pass through :class:`KeyEventDispatcher`, which is
cleared at the start of every pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

KeyId = str

# ---------------------------------------------------------------------------
# Legacy escape sequences
# ---------------------------------------------------------------------------

_SEQUENCES: dict[str, KeyId] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[Z": "shift+tab",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[15~": "f5",
    "\x1b[17~": "f6",
    "\x1b[18~": "f7",
    "\x1b[19~": "f8",
    "\x1b[20~": "f9",
    "\x1b[21~": "f10",
    "\x1b[23~": "f11",
    "\x1b[24~": "f12",
}

_CONTROL: dict[str, KeyId] = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x1b": "escape",
    " ": "space",
}


@dataclass(frozen=True)
class KeyEvent:
    """A single decoded key press."""

    key: KeyId
    raw: str

    @property
    def char(self) -> str | None:
        """The printable character, if this is a plain character key."""
        if len(self.raw) == 1 and self.raw.isprintable():
            return self.raw
        return None


def _parse_one(data: str, pos: int) -> tuple[KeyEvent, int]:
    ch = data[pos]
    if ch == "\x1b" and pos + 1 < len(data):
        # Longest known escape sequence first
        for length in range(min(6, len(data) - pos), 1, -1):
            seq = data[pos : pos + length]
            key = _SEQUENCES.get(seq)
            if key is not None:
                return KeyEvent(key, seq), pos + length
        nxt = data[pos + 1]
        if nxt not in "[O":
            # ESC followed by a character is alt+<char>
            inner = _CONTROL.get(nxt, nxt.lower() if nxt.isalpha() else nxt)
            return KeyEvent(f"alt+{inner}", data[pos : pos + 2]), pos + 2
        # Unknown CSI/SS3: consume through the final byte
        end = pos + 2
        while end < len(data) and not ("@" <= data[end] <= "~"):
            end += 1
        seq = data[pos : end + 1]
        return KeyEvent("unknown", seq), end + 1

    if ch in _CONTROL:
        return KeyEvent(_CONTROL[ch], ch), pos + 1
    code = ord(ch)
    if 1 <= code <= 26:
        return KeyEvent(f"ctrl+{chr(code + 96)}", ch), pos + 1
    if ch.isalpha() and ch.isupper():
        return KeyEvent(f"shift+{ch.lower()}", ch), pos + 1
    return KeyEvent(ch, ch), pos + 1


def parse_keys(data: str) -> list[KeyEvent]:
    """Split raw input into key events."""
    events: list[KeyEvent] = []
    pos = 0
    while pos < len(data):
        event, pos = _parse_one(data, pos)
        events.append(event)
    return events


def matches_key(event: KeyEvent, key_id: KeyId) -> bool:
    """Return ``True`` if *event* corresponds to *key_id*.

    ``"A"`` matches ``shift+a`` and plain character ids match their
    character, so ``matches_key(e, "q")`` works for a raw ``q``.
    """
    if event.key == key_id:
        return True
    if len(key_id) == 1 and key_id.isalpha() and key_id.isupper():
        return event.key == f"shift+{key_id.lower()}"
    return key_id == "space" and event.raw == " "


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

KeyHandler = Callable[[KeyEvent], bool]


class KeyEventDispatcher:
    """Handlers registered during the current render pass.

    Later registrations (deeper / later in the tree) are tried first; the
    first handler returning ``True`` consumes the event.
    """

    def __init__(self) -> None:
        self._handlers: list[KeyHandler] = []

    def add_handler(self, handler: KeyHandler) -> None:
        self._handlers.append(handler)

    def clear_handlers(self) -> None:
        self._handlers.clear()

    def __len__(self) -> int:
        return len(self._handlers)

    def dispatch(self, event: KeyEvent) -> bool:
        for handler in reversed(list(self._handlers)):
            if handler(event):
                return True
        return False
