"""Status bar: the fixed bottom region with its own diff cache."""

from __future__ import annotations

from dataclasses import dataclass

from tessera.tui.ansi import TextStyle, encode
from tessera.tui.buffer import FrameBuffer
from tessera.tui.environment import Palette


@dataclass(frozen=True)
class StatusBarItem:
    """A shortcut hint such as ``q`` / ``quit``."""

    shortcut: str
    label: str


class StatusBarState:
    """Items declared by views during the current render pass."""

    def __init__(self) -> None:
        self._items: list[StatusBarItem] = []

    def begin_render_pass(self) -> None:
        self._items = []

    def add_items(self, items: list[StatusBarItem]) -> None:
        for item in items:
            if item not in self._items:
                self._items.append(item)

    @property
    def items(self) -> list[StatusBarItem]:
        return list(self._items)

    @property
    def has_items(self) -> bool:
        return bool(self._items)

    @property
    def height(self) -> int:
        return 1 if self._items else 0

    def render(self, width: int, palette: Palette) -> FrameBuffer:
        """One line of ``shortcut label`` pairs, truncated to *width*."""
        if not self._items:
            return FrameBuffer()
        key_style = TextStyle(foreground=palette.accent, bold=True)
        label_style = TextStyle(foreground=palette.status_bar_foreground)
        parts: list[str] = []
        used = 0
        for item in self._items:
            needed = len(item.shortcut) + 1 + len(item.label) + (2 if parts else 1)
            if used + needed > width:
                break
            lead = "  " if parts else " "
            parts.append(lead + encode(item.shortcut, key_style) + " " + encode(item.label, label_style))
            used += needed
        return FrameBuffer(["".join(parts)])
