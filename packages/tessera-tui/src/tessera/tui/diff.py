"""Line-level frame diffing against the previous frame.

The writer keeps two independent caches of terminal-ready lines, one for the
main content region and one for the status bar, so a change in one region
never forces rewrites in the other.
"""

from __future__ import annotations

import logging

from tessera.tui.ansi import (
    CLEAR_LINE,
    RESET,
    Color,
    apply_persistent_background,
    background_code,
    take_columns,
    visible_length,
)
from tessera.tui.buffer import FrameBuffer
from tessera.tui.terminal import Terminal

logger = logging.getLogger(__name__)


def build_output_lines(
    buffer: FrameBuffer,
    terminal_width: int,
    terminal_height: int,
    background: Color | None = None,
    reset: str = RESET,
) -> list[str]:
    """Turn *buffer* into exactly *terminal_height* full-width lines.

    With a *background*, every reset inside a line is followed by the
    background prologue again so the fill survives embedded styling.
    *reset* is the sequence that ends styled spans and closes filled rows.
    Lines wider than the terminal are truncated.
    """
    bg = background_code(background) if background is not None else ""
    blank = bg + " " * terminal_width + reset if bg else " " * terminal_width
    source = buffer.lines
    lines: list[str] = []
    for row in range(max(0, terminal_height)):
        if row >= len(source):
            lines.append(blank)
            continue
        line = source[row]
        width = visible_length(line)
        if width > terminal_width:
            line = take_columns(line, terminal_width) + reset
            width = terminal_width
        padding = " " * (terminal_width - width)
        if bg:
            lines.append(apply_persistent_background(line, background, reset) + padding + reset)
        else:
            lines.append(line + padding)
    return lines


class FrameDiffWriter:
    """Writes only the rows that differ from the previous frame."""

    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal
        self._content: list[str] = []
        self._status: list[str] = []
        self.rows_written = 0

    build_output_lines = staticmethod(build_output_lines)

    def write_content_diff(self, new_lines: list[str], start_row: int = 1) -> int:
        """Diff the main region; return the number of rows written."""
        self._content, self.rows_written = self._write_diff(new_lines, self._content, start_row)
        return self.rows_written

    def write_status_diff(self, new_lines: list[str], start_row: int) -> int:
        """Diff the status-bar region; return the number of rows written."""
        self._status, self.rows_written = self._write_diff(new_lines, self._status, start_row)
        return self.rows_written

    def invalidate(self) -> None:
        """Forget both caches so the next frame rewrites every row."""
        self._content = []
        self._status = []

    def _write_diff(self, new_lines: list[str], previous: list[str], start_row: int) -> tuple[list[str], int]:
        rows = changed_rows(previous, new_lines)
        for row in rows:
            self.terminal.move_cursor(start_row + row, 1)
            # Rows past the new end belong to a region that shrank
            self.terminal.write(new_lines[row] if row < len(new_lines) else CLEAR_LINE)
        return list(new_lines), len(rows)


def changed_rows(previous: list[str], new_lines: list[str]) -> list[int]:
    """Indices of rows that a diff against *previous* would rewrite or clear."""
    rows = [row for row, line in enumerate(new_lines) if row >= len(previous) or previous[row] != line]
    rows.extend(range(len(new_lines), len(previous)))
    return rows
