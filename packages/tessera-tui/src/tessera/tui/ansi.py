"""Styled-text encoding: colors, SGR styles, and width accounting.

Provides ``Color`` and ``TextStyle`` descriptors, the pure ``encode``
function that wraps text in an SGR prologue and a trailing reset, and the
inverse utilities (``strip``, ``visible_length``) plus ANSI-aware column
slicing used by the frame buffer for layout.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Literal

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Control sequences
# ---------------------------------------------------------------------------

ESC = "\x1b"
CSI = ESC + "["
RESET = CSI + "0m"
TAB_WIDTH = 8

HIDE_CURSOR = CSI + "?25l"
SHOW_CURSOR = CSI + "?25h"
ENTER_ALT_SCREEN = CSI + "?1049h"
EXIT_ALT_SCREEN = CSI + "?1049l"
CLEAR_SCREEN = CSI + "2J"
CLEAR_LINE = CSI + "2K"


def move_cursor(row: int, column: int) -> str:
    """Return the CUP sequence for a 1-based ``(row, column)``."""
    return f"{CSI}{row};{column}H"


# CSI sequences, OSC (BEL or ST terminated), APC (BEL or ST terminated)
_STRIP_RE = re.compile(
    r"\x1b\[[0-9;?]*[A-Za-z]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
)

_LEADING_RE = re.compile(r"^(?:\x1b\[[0-9;]*m)+")

# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

ColorKind = Literal["standard", "bright", "palette256", "rgb"]

_NAMED = {
    "black": 0,
    "red": 1,
    "green": 2,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "white": 7,
}


@dataclass(frozen=True)
class Color:
    """A terminal color in one of four encodings.

    ``value`` holds the ANSI index (0-7) for ``standard``/``bright``, the
    palette index (0-255) for ``palette256``, or an ``(r, g, b)`` tuple
    for ``rgb``.
    """

    kind: ColorKind
    value: int | tuple[int, int, int]

    @classmethod
    def standard(cls, name_or_index: str | int) -> Color:
        return cls("standard", _ansi_index(name_or_index))

    @classmethod
    def bright(cls, name_or_index: str | int) -> Color:
        return cls("bright", _ansi_index(name_or_index))

    @classmethod
    def palette(cls, index: int) -> Color:
        if not 0 <= index <= 255:
            raise ValueError(f"palette index out of range: {index}")
        return cls("palette256", index)

    @classmethod
    def rgb(cls, red: int, green: int, blue: int) -> Color:
        for component in (red, green, blue):
            if not 0 <= component <= 255:
                raise ValueError(f"rgb component out of range: {component}")
        return cls("rgb", (red, green, blue))

    @classmethod
    def hex(cls, text: str) -> Color:
        """Parse ``#rrggbb`` (the ``#`` is optional)."""
        digits = text.lstrip("#")
        if len(digits) != 6:
            raise ValueError(f"invalid hex color: {text!r}")
        try:
            value = int(digits, 16)
        except ValueError:
            raise ValueError(f"invalid hex color: {text!r}") from None
        return cls.rgb((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)

    def foreground_params(self) -> list[str]:
        return self._params(30, 90, "38")

    def background_params(self) -> list[str]:
        return self._params(40, 100, "48")

    def _params(self, base: int, bright_base: int, extended: str) -> list[str]:
        if self.kind == "standard":
            return [str(base + self.value)]  # type: ignore[operator]
        if self.kind == "bright":
            return [str(bright_base + self.value)]  # type: ignore[operator]
        if self.kind == "palette256":
            return [extended, "5", str(self.value)]
        red, green, blue = self.value  # type: ignore[misc]
        return [extended, "2", str(red), str(green), str(blue)]


def _ansi_index(name_or_index: str | int) -> int:
    if isinstance(name_or_index, str):
        try:
            return _NAMED[name_or_index.lower()]
        except KeyError:
            raise ValueError(f"unknown color name: {name_or_index!r}") from None
    if not 0 <= name_or_index <= 7:
        raise ValueError(f"ANSI color index out of range: {name_or_index}")
    return name_or_index


# ---------------------------------------------------------------------------
# Text style
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextStyle:
    """Foreground/background colors plus SGR attribute flags."""

    foreground: Color | None = None
    background: Color | None = None
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: bool = False
    blink: bool = False
    inverse: bool = False
    strikethrough: bool = False

    def sgr_params(self) -> list[str]:
        params: list[str] = []
        if self.bold:
            params.append("1")
        if self.dim:
            params.append("2")
        if self.italic:
            params.append("3")
        if self.underline:
            params.append("4")
        if self.blink:
            params.append("5")
        if self.inverse:
            params.append("7")
        if self.strikethrough:
            params.append("9")
        if self.foreground is not None:
            params.extend(self.foreground.foreground_params())
        if self.background is not None:
            params.extend(self.background.background_params())
        return params

    def merged(self, other: TextStyle) -> TextStyle:
        """Return a style with *other*'s set fields layered over this one."""
        return TextStyle(
            foreground=other.foreground or self.foreground,
            background=other.background or self.background,
            bold=self.bold or other.bold,
            dim=self.dim or other.dim,
            italic=self.italic or other.italic,
            underline=self.underline or other.underline,
            blink=self.blink or other.blink,
            inverse=self.inverse or other.inverse,
            strikethrough=self.strikethrough or other.strikethrough,
        )


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode(text: str, style: TextStyle | None = None) -> str:
    """Wrap *text* in the SGR prologue for *style* and a trailing reset.

    An empty style returns *text* unchanged, so every non-trivial span is
    self-terminating and spans can be concatenated without bleed.
    """
    if style is None:
        return text
    params = style.sgr_params()
    if not params:
        return text
    return f"{CSI}{';'.join(params)}m{text}{RESET}"


def background_code(color: Color) -> str:
    """Return the bare SGR sequence that selects *color* as background."""
    return f"{CSI}{';'.join(color.background_params())}m"


def apply_persistent_background(text: str, color: Color, reset: str = RESET) -> str:
    """Prefix *text* with a background and re-apply it after every *reset*."""
    bg = background_code(color)
    return bg + text.replace(reset, reset + bg)


# ---------------------------------------------------------------------------
# Width accounting
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def strip(text: str) -> str:
    """Remove all control sequences from *text*."""
    return _STRIP_RE.sub("", text)


def _grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    # VS16, ZWJ sequences, skin tones and flags render as emoji
    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000 or 0x2600 <= ord(first) <= 0x27BF:
        return 2

    category = unicodedata.category(first)
    if category.startswith("M") or category == "Cf":
        return 0
    return max(_wcwidth.wcwidth(first), 0)


def visible_length(text: str) -> int:
    """Number of terminal columns *text* occupies, ignoring control sequences.

    Tabs advance to the next stop of ``TAB_WIDTH`` columns.  Pure-ASCII
    text takes a fast path; other strings are measured per
    grapheme cluster and cached.
    """
    if not text:
        return 0
    stripped = strip(text)
    if not stripped:
        return 0
    if "\t" in stripped:
        stripped = stripped.expandtabs(TAB_WIDTH)
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[stripped] = total
    return total


# ---------------------------------------------------------------------------
# ANSI-aware slicing
# ---------------------------------------------------------------------------


def _sequence_at(text: str, pos: int) -> int:
    """Length of the control sequence starting at *pos*, or 0."""
    if text[pos] != ESC:
        return 0
    match = _STRIP_RE.match(text, pos)
    return match.end() - pos if match else 0


def take_columns(text: str, columns: int) -> str:
    """Return the prefix of *text* spanning at most *columns* visible columns.

    Control sequences inside the prefix are preserved; wide graphemes that
    would straddle the boundary are dropped.
    """
    if columns <= 0:
        return ""
    parts: list[str] = []
    used = 0
    i = 0
    while i < len(text):
        seq = _sequence_at(text, i)
        if seq:
            parts.append(text[i : i + seq])
            i += seq
            continue
        g = _next_grapheme(text, i)
        w = _grapheme_width(g)
        if used + w > columns:
            break
        parts.append(g)
        used += w
        i += len(g)
    return "".join(parts)


def drop_columns(text: str, columns: int) -> str:
    """Return *text* with its first *columns* visible columns removed.

    Control sequences that precede the cut are kept so the suffix renders
    with the same SGR state it had in the original line.
    """
    if columns <= 0:
        return text
    codes: list[str] = []
    used = 0
    i = 0
    while i < len(text) and used < columns:
        seq = _sequence_at(text, i)
        if seq:
            codes.append(text[i : i + seq])
            i += seq
            continue
        g = _next_grapheme(text, i)
        used += _grapheme_width(g)
        i += len(g)
    # A wide grapheme split by the cut leaves a blank column
    filler = " " * (used - columns) if used > columns else ""
    return "".join(codes) + filler + text[i:]


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with spaces up to *width* visible columns."""
    missing = width - visible_length(text)
    if missing <= 0:
        return text
    return text + " " * missing


def leading_sequences(text: str) -> str:
    """Return the SGR sequences that precede the first visible character."""
    match = _LEADING_RE.match(text)
    return match.group(0) if match else ""


def _next_grapheme(text: str, pos: int) -> str:
    # Stop the cluster at the next escape so sequences are never swallowed
    end = text.find(ESC, pos + 1)
    segment = text[pos:] if end == -1 else text[pos:end]
    for g in grapheme.graphemes(segment):
        return g
    return text[pos]
