"""Frame buffer: an ordered list of styled lines with compositing operations."""

from __future__ import annotations

from typing import Iterable, Literal

from tessera.tui.ansi import (
    RESET,
    drop_columns,
    leading_sequences,
    pad_to_width,
    take_columns,
    visible_length,
)

VerticalAlignment = Literal["top", "center", "bottom"]
HorizontalAlignment = Literal["leading", "center", "trailing"]


class FrameBuffer:
    """In-memory styled-text canvas.

    Lines may interleave visible characters and control sequences.  ``width``
    is the widest *visible* line; it is cached and only recomputed when the
    lines are replaced, never on read.
    """

    __slots__ = ("_lines", "_width")

    def __init__(self, lines: Iterable[str] | None = None, width: int | None = None) -> None:
        self._lines: list[str] = list(lines) if lines is not None else []
        self._width: int = width if width is not None else _compute_width(self._lines)

    # -- constructors -------------------------------------------------------

    @classmethod
    def text(cls, text: str) -> FrameBuffer:
        """One buffer line per line of *text*."""
        return cls(text.split("\n"))

    @classmethod
    def blank(cls, width: int, height: int) -> FrameBuffer:
        """A *width* x *height* block of spaces."""
        return cls([" " * width] * height, width=width)

    @classmethod
    def vstack(cls, buffers: Iterable[FrameBuffer], spacing: int = 0) -> FrameBuffer:
        result = cls()
        for buffer in buffers:
            result.append_vertically(buffer, spacing)
        return result

    # -- accessors ----------------------------------------------------------

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @lines.setter
    def lines(self, value: Iterable[str]) -> None:
        self._lines = list(value)
        self._width = _compute_width(self._lines)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return len(self._lines)

    @property
    def is_empty(self) -> bool:
        return all(not line for line in self._lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FrameBuffer):
            return NotImplemented
        return self._lines == other._lines

    def __repr__(self) -> str:
        return f"FrameBuffer(width={self._width}, height={self.height}, lines={self._lines!r})"

    def copy(self) -> FrameBuffer:
        return FrameBuffer(self._lines, width=self._width)

    # -- compositing --------------------------------------------------------

    def append_vertically(self, other: FrameBuffer, spacing: int = 0) -> None:
        """Append *other*'s lines below, separated by *spacing* blank lines.

        Spacing is only inserted between two non-empty buffers, so it never
        accumulates around children that rendered nothing.
        """
        if self._lines and not other.is_empty and spacing > 0:
            self._lines.extend([""] * spacing)
        self._lines.extend(other._lines)
        self._width = max(self._width, other._width)

    def append_horizontally(
        self,
        other: FrameBuffer,
        alignment: VerticalAlignment = "top",
        spacing: int = 0,
    ) -> None:
        """Join *other* to the right of this buffer, row by row.

        The shorter operand is padded with blank rows according to
        *alignment*; every row of both operands is padded to its buffer's
        visible width so ragged lines still form straight columns.
        """
        total = max(self.height, other.height)
        left = _align_rows(self._lines, total, alignment)
        right = _align_rows(other._lines, total, alignment)
        gap = " " * spacing
        left_width = self._width
        right_width = other._width

        self._lines = [
            pad_to_width(l, left_width) + gap + pad_to_width(r, right_width)
            for l, r in zip(left, right)
        ]
        self._width = left_width + spacing + right_width

    def overlay(self, other: FrameBuffer, at_row: int = 0, at_column: int = 0) -> None:
        """Replace lines of this buffer with *other*'s lines at an offset.

        Replacement is line-level: the target row keeps only its first
        *at_column* visible columns, then the overlay line follows.  Empty
        overlay lines leave the base row untouched.  Rows or columns outside
        the base are clipped silently.
        """
        if at_column < 0:
            at_column = 0
        changed = False
        for index, line in enumerate(other._lines):
            row = at_row + index
            if row < 0 or row >= len(self._lines) or not line:
                continue
            if self._width and at_column >= self._width:
                continue
            if self._width:
                line = take_columns(line, self._width - at_column)
            base = self._lines[row]
            prefix = pad_to_width(take_columns(base, at_column), at_column)
            self._lines[row] = prefix + RESET + line if at_column else line
            changed = True
        if changed:
            self._width = _compute_width(self._lines)

    def composited(self, other: FrameBuffer, at_row: int = 0, at_column: int = 0) -> FrameBuffer:
        """Return a copy with *other* inserted at a column-precise offset.

        Unlike :meth:`overlay`, base content to the right of the inserted
        region survives, and the result grows to contain the overlay.
        """
        if other.is_empty:
            return self.copy()
        at_row = max(0, at_row)
        at_column = max(0, at_column)

        result_width = max(self._width, at_column + other._width)
        result_height = max(self.height, at_row + other.height)
        lines: list[str] = []
        for row in range(result_height):
            original = self._lines[row] if row < len(self._lines) else None
            base = pad_to_width(original, result_width) if original is not None else " " * result_width
            overlay_row = row - at_row
            if 0 <= overlay_row < other.height and other._lines[overlay_row]:
                base = _insert(base, other._lines[overlay_row], at_column, original)
            lines.append(base)
        return FrameBuffer(lines)


def align_lines(
    buffer: FrameBuffer, width: int, alignment: HorizontalAlignment = "leading"
) -> FrameBuffer:
    """Pad every line of *buffer* to *width* columns with the given alignment."""
    if buffer.width >= width and all(visible_length(l) == width for l in buffer.lines):
        return buffer
    aligned: list[str] = []
    for line in buffer.lines:
        padding = max(0, width - visible_length(line))
        if alignment == "center":
            left = padding // 2
            aligned.append(" " * left + line + " " * (padding - left))
        elif alignment == "trailing":
            aligned.append(" " * padding + line)
        else:
            aligned.append(line + " " * padding)
    return FrameBuffer(aligned)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _compute_width(lines: list[str]) -> int:
    return max((visible_length(line) for line in lines), default=0)


def _align_rows(lines: list[str], total: int, alignment: VerticalAlignment) -> list[str]:
    missing = total - len(lines)
    if missing <= 0:
        return lines
    if alignment == "bottom":
        top = missing
    elif alignment == "center":
        top = missing // 2
    else:
        top = 0
    return [""] * top + lines + [""] * (missing - top)


def _insert(base: str, overlay: str, column: int, original: str | None) -> str:
    end = column + visible_length(overlay)
    prefix = take_columns(base, column)
    suffix = drop_columns(base, end)
    restore = leading_sequences(original if original is not None else base)
    return prefix + RESET + overlay + RESET + restore + suffix


class Alignment:
    """Two-axis alignment used when placing one buffer inside another."""

    __slots__ = ("horizontal", "vertical")

    _NAMED = {
        "top_leading": ("leading", "top"),
        "top": ("center", "top"),
        "top_trailing": ("trailing", "top"),
        "leading": ("leading", "center"),
        "center": ("center", "center"),
        "trailing": ("trailing", "center"),
        "bottom_leading": ("leading", "bottom"),
        "bottom": ("center", "bottom"),
        "bottom_trailing": ("trailing", "bottom"),
    }

    def __init__(self, horizontal: HorizontalAlignment = "center", vertical: VerticalAlignment = "center") -> None:
        self.horizontal = horizontal
        self.vertical = vertical

    @classmethod
    def named(cls, name: str | Alignment) -> Alignment:
        if isinstance(name, Alignment):
            return name
        try:
            horizontal, vertical = cls._NAMED[name]
        except KeyError:
            raise ValueError(f"unknown alignment: {name!r}") from None
        return cls(horizontal, vertical)  # type: ignore[arg-type]

    def offset(self, outer_width: int, outer_height: int, inner_width: int, inner_height: int) -> tuple[int, int]:
        """Return ``(row, column)`` placing an inner box inside an outer one."""
        free_x = max(0, outer_width - inner_width)
        free_y = max(0, outer_height - inner_height)
        column = {"leading": 0, "center": free_x // 2, "trailing": free_x}[self.horizontal]
        row = {"top": 0, "center": free_y // 2, "bottom": free_y}[self.vertical]
        return row, column

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Alignment):
            return NotImplemented
        return (self.horizontal, self.vertical) == (other.horizontal, other.vertical)

    def __hash__(self) -> int:
        return hash((self.horizontal, self.vertical))

    def __repr__(self) -> str:
        return f"Alignment({self.horizontal!r}, {self.vertical!r})"
