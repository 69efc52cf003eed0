"""View modifiers.

Each modifier is a primitive descriptor wrapping ``content``.  The wrapped
view is evaluated one level below the modifier's own identity, so stacking
the same modifier twice still yields distinct identities and lifecycle
tokens.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Union

from tessera.tui.ansi import (
    ESC,
    RESET,
    Color,
    TextStyle,
    apply_persistent_background,
    encode,
    pad_to_width,
    strip,
    take_columns,
    visible_length,
)
from tessera.tui.buffer import Alignment, FrameBuffer
from tessera.tui.keys import KeyEvent, matches_key
from tessera.tui.lifecycle import TaskFactory
from tessera.tui.preferences import PreferenceKey
from tessera.tui.status_bar import StatusBarItem
from tessera.tui.view import PrimitiveView, RenderContext, View, render_view, type_name

DIM = ESC + "[2m"


@dataclass(frozen=True)
class Modifier(PrimitiveView):
    content: View

    def render_content(self, context: RenderContext) -> FrameBuffer:
        return render_view(self.content, context.child(type_name(self.content)))


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EdgeInsets:
    top: int = 0
    leading: int = 0
    bottom: int = 0
    trailing: int = 0

    def __post_init__(self) -> None:
        if min(self.top, self.leading, self.bottom, self.trailing) < 0:
            raise ValueError("insets must be non-negative")

    @classmethod
    def all(cls, value: int) -> EdgeInsets:
        return cls(value, value, value, value)

    @classmethod
    def symmetric(cls, horizontal: int = 0, vertical: int = 0) -> EdgeInsets:
        return cls(vertical, horizontal, vertical, horizontal)


@dataclass(frozen=True)
class Padding(Modifier):
    insets: EdgeInsets = EdgeInsets()

    def render(self, context: RenderContext) -> FrameBuffer:
        insets = self.insets
        inner = context.with_size(
            context.available_width - insets.leading - insets.trailing,
            context.available_height - insets.top - insets.bottom,
        )
        buffer = self.render_content(inner)
        if buffer.height == 0:
            return buffer
        width = buffer.width + insets.leading + insets.trailing
        lead = " " * insets.leading
        trail = " " * insets.trailing
        lines = [" " * width] * insets.top
        lines += [lead + pad_to_width(line, buffer.width) + trail for line in buffer.lines]
        lines += [" " * width] * insets.bottom
        return FrameBuffer(lines, width=width)


Dimension = Union[int, Literal["infinity"], None]


@dataclass(frozen=True)
class Frame(Modifier):
    """Size constraints.  ``"infinity"`` as a max expands to the available size."""

    min_width: int | None = None
    max_width: Dimension = None
    min_height: int | None = None
    max_height: Dimension = None
    alignment: Alignment = Alignment("leading", "top")

    def render(self, context: RenderContext) -> FrameBuffer:
        target_width = _bounded(self.max_width, context.available_width)
        target_height = _bounded(self.max_height, context.available_height)
        buffer = self.render_content(
            context.with_size(
                target_width if target_width is not None else context.available_width,
                target_height,
            )
        )

        width = buffer.width
        height = buffer.height
        if self.min_width is not None:
            width = max(width, self.min_width)
        if self.min_height is not None:
            height = max(height, self.min_height)
        if target_width is not None:
            width = min(width, target_width) if self.max_width != "infinity" else target_width
        if target_height is not None:
            height = min(height, target_height) if self.max_height != "infinity" else target_height

        if width == buffer.width and height == buffer.height:
            return buffer
        return _place(buffer, width, height, self.alignment)


def _bounded(limit: Dimension, available: int) -> int | None:
    if limit is None:
        return None
    if limit == "infinity":
        return available
    return min(int(limit), available)


def _place(buffer: FrameBuffer, width: int, height: int, alignment: Alignment) -> FrameBuffer:
    """Fit *buffer* into a *width* x *height* box, clipping what overflows."""
    row_offset, column_offset = alignment.offset(width, height, buffer.width, buffer.height)
    source = buffer.lines
    lines: list[str] = []
    for row in range(height):
        index = row - row_offset
        line = source[index] if 0 <= index < len(source) else ""
        if visible_length(line) > width:
            line = take_columns(line, width) + RESET
        line = " " * column_offset + line
        lines.append(pad_to_width(line, width))
    return FrameBuffer(lines, width=width)


@dataclass(frozen=True)
class BorderStyle:
    top_left: str
    top_right: str
    bottom_left: str
    bottom_right: str
    horizontal: str
    vertical: str


BORDER_STYLES: dict[str, BorderStyle] = {
    "line": BorderStyle("┌", "┐", "└", "┘", "─", "│"),
    "double": BorderStyle("╔", "╗", "╚", "╝", "═", "║"),
    "rounded": BorderStyle("╭", "╮", "╰", "╯", "─", "│"),
    "heavy": BorderStyle("┏", "┓", "┗", "┛", "━", "┃"),
    "ascii": BorderStyle("+", "+", "+", "+", "-", "|"),
}


@dataclass(frozen=True)
class Border(Modifier):
    style: str = "rounded"
    color: Color | None = None
    title: str = ""

    def __post_init__(self) -> None:
        if self.style not in BORDER_STYLES:
            raise ValueError(f"unknown border style: {self.style!r}")

    def render(self, context: RenderContext) -> FrameBuffer:
        buffer = self.render_content(context.with_size(context.available_width - 2, context.available_height - 2))
        if buffer.is_empty:
            return buffer
        chars = BORDER_STYLES[self.style]
        edge = TextStyle(foreground=self.color or context.environment.palette.border)
        inner = max(buffer.width, 1)

        if self.title and visible_length(self.title) + 3 <= inner:
            label = encode(f" {self.title} ", TextStyle(foreground=context.environment.palette.accent, bold=True))
            rest = inner - 1 - visible_length(self.title) - 2
            top = (
                encode(chars.top_left + chars.horizontal, edge)
                + label
                + encode(chars.horizontal * rest + chars.top_right, edge)
            )
        else:
            top = encode(chars.top_left + chars.horizontal * inner + chars.top_right, edge)
        side = encode(chars.vertical, edge)
        lines = [top]
        lines += [side + pad_to_width(line, inner) + RESET + side for line in buffer.lines]
        lines.append(encode(chars.bottom_left + chars.horizontal * inner + chars.bottom_right, edge))
        return FrameBuffer(lines, width=inner + 2)


@dataclass(frozen=True)
class Background(Modifier):
    color: Color = Color.standard("black")

    def render(self, context: RenderContext) -> FrameBuffer:
        buffer = self.render_content(context)
        if buffer.height == 0:
            return buffer
        width = buffer.width
        lines = [
            apply_persistent_background(pad_to_width(line, width), self.color) + RESET
            for line in buffer.lines
        ]
        return FrameBuffer(lines, width=width)


@dataclass(frozen=True)
class Overlay(Modifier):
    overlay_content: View = None  # type: ignore[assignment]
    alignment: Alignment = Alignment()

    def render(self, context: RenderContext) -> FrameBuffer:
        base = self.render_content(context)
        top = render_view(self.overlay_content, context.child(type_name(self.overlay_content), "overlay"))
        if base.is_empty:
            return top
        if top.is_empty:
            return base
        row, column = self.alignment.offset(base.width, base.height, top.width, top.height)
        return base.composited(top, row, column)


# ---------------------------------------------------------------------------
# Style and environment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StyleModifier(Modifier):
    """Layers a text style over the inherited one for the whole subtree."""

    style: TextStyle = TextStyle()

    def render(self, context: RenderContext) -> FrameBuffer:
        environment = context.environment
        return self.render_content(context.with_environment(environment.with_(style=environment.style.merged(self.style))))


@dataclass(frozen=True)
class Dimmed(Modifier):
    active: bool = True

    def render(self, context: RenderContext) -> FrameBuffer:
        if not self.active:
            return self.render_content(context)
        buffer = self.render_content(context.with_environment(context.environment.with_(is_dimmed=True)))
        return FrameBuffer([_dim(line) for line in buffer.lines], width=buffer.width)


def _dim(line: str) -> str:
    if not strip(line).strip():
        return line
    # Re-assert dim after embedded resets so styled spans stay dimmed
    return DIM + line.replace(RESET, RESET + DIM) + RESET


@dataclass(frozen=True)
class EnvironmentModifier(Modifier):
    key: str = ""
    value: Any = None

    def render(self, context: RenderContext) -> FrameBuffer:
        return self.render_content(context.with_environment(context.environment.with_value(self.key, self.value)))


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OnAppear(Modifier):
    action: Callable[[], None] = lambda: None

    def render(self, context: RenderContext) -> FrameBuffer:
        context.tui.lifecycle.record_appear(context.identity.token("appear"), self.action)
        return self.render_content(context)


@dataclass(frozen=True)
class OnDisappear(Modifier):
    action: Callable[[], None] = lambda: None

    def render(self, context: RenderContext) -> FrameBuffer:
        token = context.identity.token("disappear")
        lifecycle = context.tui.lifecycle
        lifecycle.register_disappear(token, self.action)
        lifecycle.record_appear(token)
        return self.render_content(context)


@dataclass(frozen=True)
class TaskModifier(Modifier):
    """Starts a background task on first appearance, cancels it on disappearance."""

    factory: TaskFactory = None  # type: ignore[assignment]

    def render(self, context: RenderContext) -> FrameBuffer:
        token = context.identity.token("task")
        lifecycle = context.tui.lifecycle
        if lifecycle.record_appear(token):
            lifecycle.start_task(token, self.factory, context.environment.animation_interval)
        lifecycle.register_disappear(token, lambda: lifecycle.cancel_task(token))
        return self.render_content(context)


# ---------------------------------------------------------------------------
# Preferences, input, status bar, focus
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PreferenceModifier(Modifier):
    key: PreferenceKey = None  # type: ignore[assignment]
    value: Any = None

    def render(self, context: RenderContext) -> FrameBuffer:
        preferences = context.tui.preferences
        preferences.push()
        try:
            buffer = self.render_content(context)
        finally:
            preferences.pop()
        preferences.set_value(self.key, self.value)
        return buffer


@dataclass(frozen=True)
class OnPreferenceChange(Modifier):
    key: PreferenceKey = None  # type: ignore[assignment]
    action: Callable[[Any], None] = lambda value: None

    def render(self, context: RenderContext) -> FrameBuffer:
        context.tui.preferences.on_change(self.key, self.action)
        return self.render_content(context)


@dataclass(frozen=True)
class OnKeyPress(Modifier):
    """Registers a key handler for this pass.

    With *keys* the handler only sees matching events.  A handler result of
    ``False`` lets the event continue to older handlers; anything else
    consumes it.
    """

    handler: Callable[[KeyEvent], bool | None] = lambda event: False
    keys: tuple[str, ...] = ()

    def render(self, context: RenderContext) -> FrameBuffer:
        context.tui.key_dispatcher.add_handler(self._handle)
        return self.render_content(context)

    def _handle(self, event: KeyEvent) -> bool:
        if self.keys and not any(matches_key(event, key) for key in self.keys):
            return False
        return self.handler(event) is not False


@dataclass(frozen=True)
class StatusBarItems(Modifier):
    items: tuple[StatusBarItem, ...] = ()

    def render(self, context: RenderContext) -> FrameBuffer:
        context.tui.status_bar.add_items(list(self.items))
        return self.render_content(context)


@dataclass(frozen=True)
class Focusable(Modifier):
    """Registers this position with the focus manager.

    The subtree can read ``environment.get("focused")``.
    """

    def render(self, context: RenderContext) -> FrameBuffer:
        focus = context.tui.focus
        focus.register(context.identity)
        focused = focus.is_focused(context.identity)
        return self.render_content(context.with_environment(context.environment.with_value("focused", focused)))
