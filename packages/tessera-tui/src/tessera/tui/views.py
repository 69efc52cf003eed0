"""Built-in descriptors: text, spacers, groups, conditionals and stacks.

Containers give every child a position-derived identity (``Type.index``) so
siblings never collide, and ``Conditional`` tags its branches ``#true`` /
``#false`` so the two branches never share state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Iterator, Sequence

from tessera.tui.ansi import TAB_WIDTH, TextStyle, encode
from tessera.tui.buffer import (
    Alignment,
    FrameBuffer,
    HorizontalAlignment,
    VerticalAlignment,
    align_lines,
)
from tessera.tui.view import PrimitiveView, RenderContext, View, ViewLike, as_view, render_view, type_name


@dataclass(frozen=True)
class Text(PrimitiveView):
    """Styled text; embedded newlines produce multiple lines, tabs become spaces."""

    content: str
    style: TextStyle | None = None

    def render(self, context: RenderContext) -> FrameBuffer:
        style = context.environment.style
        if self.style is not None:
            style = style.merged(self.style)
        return FrameBuffer([encode(line.expandtabs(TAB_WIDTH), style) for line in self.content.split("\n")])


@dataclass(frozen=True)
class EmptyView(PrimitiveView):
    def render(self, context: RenderContext) -> FrameBuffer:
        return FrameBuffer()


@dataclass(frozen=True)
class Spacer(PrimitiveView):
    """Flexible space.  Inside a stack it shares the leftover length."""

    min_length: int | None = None

    def render(self, context: RenderContext) -> FrameBuffer:
        # Outside a stack a spacer is just blank rows
        return FrameBuffer([""] * (self.min_length or 1))


@dataclass(frozen=True)
class Divider(PrimitiveView):
    """A horizontal rule spanning the available width."""

    character: str = "─"

    def render(self, context: RenderContext) -> FrameBuffer:
        style = context.environment.style.merged(TextStyle(foreground=context.environment.palette.border))
        return FrameBuffer([encode(self.character * context.available_width, style)])


# ---------------------------------------------------------------------------
# Child resolution
# ---------------------------------------------------------------------------


class _Flattening:
    """Marker for descriptors whose elements are spliced into a parent stack."""

    def elements(self) -> list[tuple[Hashable, View]]:
        raise NotImplementedError


def resolve_children(
    children: Sequence[ViewLike], context: RenderContext
) -> Iterator[tuple[View, RenderContext]]:
    """Yield ``(child, child_context)`` pairs with position-derived identities.

    ``Group`` and ``ForEach`` children are flattened into the sequence; their
    elements are keyed below the group's own identity.
    """
    for index, raw in enumerate(children):
        child = as_view(raw)
        child_context = context.child(type_name(child), index)
        if isinstance(child, _Flattening):
            context.tui.state.mark_active(child_context.identity)
            for key, element in child.elements():
                yield element, child_context.child(type_name(element), key)
        else:
            yield child, child_context


@dataclass(frozen=True)
class Group(PrimitiveView, _Flattening):
    """Groups children without adding layout; stacks vertically on its own."""

    children: tuple[ViewLike, ...] = ()

    def __init__(self, *children: ViewLike) -> None:
        object.__setattr__(self, "children", tuple(children))

    def elements(self) -> list[tuple[Hashable, View]]:
        return [(index, as_view(child)) for index, child in enumerate(self.children)]

    def render(self, context: RenderContext) -> FrameBuffer:
        return FrameBuffer.vstack(
            render_view(element, context.child(type_name(element), key))
            for key, element in self.elements()
        )


@dataclass(frozen=True)
class ForEach(PrimitiveView, _Flattening):
    """One child per item.

    Children are keyed by position unless *id* is given, in which case the
    key function's result is used so state follows items when they reorder.
    """

    items: Sequence[Any]
    build: Callable[[Any], ViewLike]
    id: Callable[[Any], Hashable] | None = None

    def elements(self) -> list[tuple[Hashable, View]]:
        result: list[tuple[Hashable, View]] = []
        for index, item in enumerate(self.items):
            key = self.id(item) if self.id is not None else index
            result.append((key, as_view(self.build(item))))
        return result

    def render(self, context: RenderContext) -> FrameBuffer:
        return FrameBuffer.vstack(
            render_view(element, context.child(type_name(element), key))
            for key, element in self.elements()
        )


@dataclass(frozen=True)
class Conditional(PrimitiveView):
    """Shows *then* when *condition* holds, else *otherwise*.

    Switching branches drops state stored under the branch not taken.
    """

    condition: bool
    then: ViewLike
    otherwise: ViewLike = None

    def render(self, context: RenderContext) -> FrameBuffer:
        label, other = ("true", "false") if self.condition else ("false", "true")
        context.tui.state.invalidate_descendants(context.identity.branch(other))
        content = as_view(self.then if self.condition else self.otherwise)
        branch_context = context.branch(label)
        context.tui.state.mark_active(branch_context.identity)
        return render_view(content, branch_context.child(type_name(content)))


# ---------------------------------------------------------------------------
# Stacks
# ---------------------------------------------------------------------------


def _share(total: int, count: int) -> int:
    return max(0, total) // count if count else 0


@dataclass(frozen=True)
class VStack(PrimitiveView):
    """Arranges children top to bottom."""

    children: tuple[ViewLike, ...] = ()
    alignment: HorizontalAlignment = "leading"
    spacing: int = 0

    def __init__(self, *children: ViewLike, alignment: HorizontalAlignment = "leading", spacing: int = 0) -> None:
        object.__setattr__(self, "children", tuple(children))
        object.__setattr__(self, "alignment", alignment)
        object.__setattr__(self, "spacing", spacing)

    def render(self, context: RenderContext) -> FrameBuffer:
        rendered: list[tuple[Spacer | None, FrameBuffer | None]] = []
        for child, child_context in resolve_children(self.children, context):
            if isinstance(child, Spacer):
                context.tui.state.mark_active(child_context.identity)
                rendered.append((child, None))
            else:
                rendered.append((None, render_view(child, child_context)))

        buffers = [buffer for _, buffer in rendered if buffer is not None]
        spacer_count = sum(1 for spacer, _ in rendered if spacer is not None)
        fixed = sum(buffer.height for buffer in buffers)
        gaps = max(0, len(rendered) - 1) * self.spacing
        spacer_height = _share(context.available_height - fixed - gaps, spacer_count)
        width = max((buffer.width for buffer in buffers), default=0)

        result = FrameBuffer()
        for index, (spacer, buffer) in enumerate(rendered):
            spacing = self.spacing if index else 0
            if spacer is not None:
                height = max(spacer.min_length or 0, spacer_height)
                result.append_vertically(FrameBuffer([""] * height), spacing)
            elif buffer is not None:
                result.append_vertically(align_lines(buffer, width, self.alignment), spacing)
        return result


@dataclass(frozen=True)
class HStack(PrimitiveView):
    """Arranges children left to right."""

    children: tuple[ViewLike, ...] = ()
    alignment: VerticalAlignment = "center"
    spacing: int = 1

    def __init__(self, *children: ViewLike, alignment: VerticalAlignment = "center", spacing: int = 1) -> None:
        object.__setattr__(self, "children", tuple(children))
        object.__setattr__(self, "alignment", alignment)
        object.__setattr__(self, "spacing", spacing)

    def render(self, context: RenderContext) -> FrameBuffer:
        rendered: list[tuple[Spacer | None, FrameBuffer | None]] = []
        for child, child_context in resolve_children(self.children, context):
            if isinstance(child, Spacer):
                context.tui.state.mark_active(child_context.identity)
                rendered.append((child, None))
            else:
                buffer = render_view(child, child_context)
                if buffer.height:
                    rendered.append((None, buffer))

        buffers = [buffer for _, buffer in rendered if buffer is not None]
        spacer_count = sum(1 for spacer, _ in rendered if spacer is not None)
        fixed = sum(buffer.width for buffer in buffers)
        gaps = max(0, len(rendered) - 1) * self.spacing
        spacer_width = _share(context.available_width - fixed - gaps, spacer_count)
        height = max((buffer.height for buffer in buffers), default=1)

        result = FrameBuffer()
        for index, (spacer, buffer) in enumerate(rendered):
            spacing = self.spacing if index else 0
            if spacer is not None:
                width = max(spacer.min_length or 0, spacer_width)
                result.append_horizontally(FrameBuffer.blank(width, height), self.alignment, spacing)
            elif buffer is not None:
                result.append_horizontally(buffer, self.alignment, spacing)
        return result


@dataclass(frozen=True)
class ZStack(PrimitiveView):
    """Layers children back to front, aligned inside the largest child."""

    children: tuple[ViewLike, ...] = ()
    alignment: Alignment = field(default_factory=Alignment)

    def __init__(self, *children: ViewLike, alignment: str | Alignment = "center") -> None:
        object.__setattr__(self, "children", tuple(children))
        object.__setattr__(self, "alignment", Alignment.named(alignment))

    def render(self, context: RenderContext) -> FrameBuffer:
        buffers = [render_view(child, ctx) for child, ctx in resolve_children(self.children, context)]
        buffers = [buffer for buffer in buffers if not buffer.is_empty]
        if not buffers:
            return FrameBuffer()
        width = max(buffer.width for buffer in buffers)
        height = max(buffer.height for buffer in buffers)

        result = FrameBuffer.blank(width, height)
        for buffer in buffers:
            row, column = self.alignment.offset(width, height, buffer.width, buffer.height)
            result = result.composited(buffer, row, column)
        return result
