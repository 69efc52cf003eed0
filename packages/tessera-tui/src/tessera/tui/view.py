"""View descriptors and the view-tree evaluator.

A descriptor is an immutable value that is rebuilt every frame.  It is one
of exactly two kinds:

* a :class:`PrimitiveView`, which renders itself into a
  :class:`~tessera.tui.buffer.FrameBuffer` given a :class:`RenderContext`;
* a composite :class:`View`, whose ``body()`` expands into a child
  descriptor.

:func:`render_view` walks the tree.  For composites it installs a hydration
context for the node's identity while ``body()`` runs, so that
:func:`~tessera.tui.state.state` declarations reconnect to their cells, and
then recurses into the child with an extended identity.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable, Literal, Union

from tessera.tui.buffer import Alignment, FrameBuffer
from tessera.tui.environment import EnvironmentValues
from tessera.tui.identity import ViewIdentity
from tessera.tui.runtime import TUIContext
from tessera.tui.state import hydrating

if TYPE_CHECKING:
    from tessera.tui.ansi import Color, TextStyle
    from tessera.tui.keys import KeyEvent
    from tessera.tui.lifecycle import TaskFactory
    from tessera.tui.preferences import PreferenceKey
    from tessera.tui.status_bar import StatusBarItem


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RenderContext:
    """Available size, identity path, environment and runtime services."""

    available_width: int
    available_height: int
    identity: ViewIdentity = ViewIdentity()
    environment: EnvironmentValues = EnvironmentValues()
    runtime: TUIContext | None = None

    def __post_init__(self) -> None:
        if self.runtime is None:
            object.__setattr__(self, "runtime", TUIContext())

    @property
    def tui(self) -> TUIContext:
        assert self.runtime is not None
        return self.runtime

    def child(self, type_name: str, index: int | str | None = None) -> RenderContext:
        return replace(self, identity=self.identity.child(type_name, index))

    def branch(self, label: str) -> RenderContext:
        return replace(self, identity=self.identity.branch(label))

    def with_size(self, width: int | None = None, height: int | None = None) -> RenderContext:
        return replace(
            self,
            available_width=self.available_width if width is None else max(0, width),
            available_height=self.available_height if height is None else max(0, height),
        )

    def with_environment(self, environment: EnvironmentValues) -> RenderContext:
        return replace(self, environment=environment)


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

ViewLike = Union["View", str, None]


class View:
    """Composite view: override :meth:`body` to return a child descriptor.

    A subclass that overrides neither ``body`` nor (via
    :class:`PrimitiveView`) ``render`` is a dead end and renders empty.
    """

    def body(self) -> ViewLike:
        return None

    # -- layout modifiers ---------------------------------------------------

    def padding(
        self,
        all: int | None = None,
        *,
        horizontal: int | None = None,
        vertical: int | None = None,
        top: int = 0,
        leading: int = 0,
        bottom: int = 0,
        trailing: int = 0,
    ) -> View:
        from tessera.tui.modifiers import EdgeInsets, Padding

        if all is not None:
            insets = EdgeInsets.all(all)
        elif horizontal is not None or vertical is not None:
            insets = EdgeInsets.symmetric(horizontal or 0, vertical or 0)
        else:
            insets = EdgeInsets(top, leading, bottom, trailing)
        return Padding(self, insets)

    def frame(
        self,
        width: int | None = None,
        height: int | None = None,
        *,
        min_width: int | None = None,
        max_width: int | Literal["infinity"] | None = None,
        min_height: int | None = None,
        max_height: int | Literal["infinity"] | None = None,
        alignment: str | Alignment | None = None,
    ) -> View:
        """Constrain the content size.

        A fixed *width*/*height* pins min and max to that value and aligns
        top-leading by default; flexible bounds align centered.
        """
        from tessera.tui.modifiers import Frame

        if width is not None:
            min_width = max_width = width
        if height is not None:
            min_height = max_height = height
        if alignment is None:
            alignment = "top_leading" if width is not None or height is not None else "center"

        return Frame(
            self,
            min_width=min_width,
            max_width=max_width,
            min_height=min_height,
            max_height=max_height,
            alignment=Alignment.named(alignment),
        )

    def border(self, style: str = "rounded", color: Color | None = None, title: str = "") -> View:
        from tessera.tui.modifiers import Border

        return Border(self, style=style, color=color, title=title)

    def background(self, color: Color) -> View:
        from tessera.tui.modifiers import Background

        return Background(self, color)

    def overlay(self, content: ViewLike, alignment: str | Alignment = "center") -> View:
        from tessera.tui.modifiers import Overlay

        return Overlay(self, as_view(content), Alignment.named(alignment))

    # -- style modifiers ----------------------------------------------------

    def styled(self, style: TextStyle) -> View:
        from tessera.tui.modifiers import StyleModifier

        return StyleModifier(self, style)

    def foreground(self, color: Color) -> View:
        from tessera.tui.ansi import TextStyle

        return self.styled(TextStyle(foreground=color))

    def bold(self) -> View:
        from tessera.tui.ansi import TextStyle

        return self.styled(TextStyle(bold=True))

    def dimmed(self, active: bool = True) -> View:
        from tessera.tui.modifiers import Dimmed

        return Dimmed(self, active)

    def environment(self, key: str, value: Any) -> View:
        from tessera.tui.modifiers import EnvironmentModifier

        return EnvironmentModifier(self, key, value)

    # -- lifecycle modifiers ------------------------------------------------

    def on_appear(self, action: Callable[[], None]) -> View:
        from tessera.tui.modifiers import OnAppear

        return OnAppear(self, action)

    def on_disappear(self, action: Callable[[], None]) -> View:
        from tessera.tui.modifiers import OnDisappear

        return OnDisappear(self, action)

    def task(self, factory: TaskFactory) -> View:
        from tessera.tui.modifiers import TaskModifier

        return TaskModifier(self, factory)

    # -- preference / input modifiers ---------------------------------------

    def preference(self, key: PreferenceKey, value: Any) -> View:
        from tessera.tui.modifiers import PreferenceModifier

        return PreferenceModifier(self, key, value)

    def on_preference_change(self, key: PreferenceKey, action: Callable[[Any], None]) -> View:
        from tessera.tui.modifiers import OnPreferenceChange

        return OnPreferenceChange(self, key, action)

    def on_key_press(self, handler: Callable[[KeyEvent], bool], keys: tuple[str, ...] = ()) -> View:
        from tessera.tui.modifiers import OnKeyPress

        return OnKeyPress(self, handler, tuple(keys))

    def status_bar_items(self, *items: StatusBarItem) -> View:
        from tessera.tui.modifiers import StatusBarItems

        return StatusBarItems(self, tuple(items))

    def focusable(self) -> View:
        from tessera.tui.modifiers import Focusable

        return Focusable(self)


class PrimitiveView(View):
    """A view that renders directly into a frame buffer."""

    def render(self, context: RenderContext) -> FrameBuffer:
        raise NotImplementedError


def as_view(value: ViewLike) -> View:
    """Coerce plain strings to ``Text`` and ``None`` to ``EmptyView``."""
    if isinstance(value, View):
        return value
    from tessera.tui.views import EmptyView, Text

    if value is None:
        return EmptyView()
    return Text(str(value))


def type_name(view: object) -> str:
    return type(view).__name__


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


def render_view(view: ViewLike, context: RenderContext) -> FrameBuffer:
    """Evaluate *view* into a frame buffer.

    Marks ``context.identity`` live in the state store.  Expansion is
    assumed to be finite and acyclic.
    """
    if view is None:
        return FrameBuffer()
    view = as_view(view)
    storage = context.tui.state

    if isinstance(view, PrimitiveView):
        storage.mark_active(context.identity)
        return view.render(context)

    with hydrating(context.identity, storage):
        child = view.body()
    storage.mark_active(context.identity)

    if child is None:
        return FrameBuffer()
    child = as_view(child)
    return render_view(child, context.child(type_name(child)))
