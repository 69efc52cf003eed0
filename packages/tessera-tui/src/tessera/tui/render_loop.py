"""One render pass: evaluate the root view and diff-write the result."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tessera.tui.diff import FrameDiffWriter, build_output_lines
from tessera.tui.environment import EnvironmentValues
from tessera.tui.identity import ViewIdentity
from tessera.tui.runtime import TUIContext
from tessera.tui.terminal import Terminal
from tessera.tui.view import RenderContext, View, render_view, type_name

logger = logging.getLogger(__name__)


@dataclass
class FrameStats:
    """Rows written per region during one pass."""

    content_rows: int = 0
    status_rows: int = 0
    removed_cells: int = 0


class RenderLoop:
    """Runs render passes for *root* against *terminal*.

    The status bar occupies the bottom rows and has its own diff cache.
    Layout uses the status bar height from the previous pass; when a pass
    changes it, the writer is invalidated and another pass is requested.
    """

    def __init__(
        self,
        root: View,
        terminal: Terminal,
        runtime: TUIContext | None = None,
        environment: EnvironmentValues | None = None,
        writer: FrameDiffWriter | None = None,
    ) -> None:
        self.root = root
        self.terminal = terminal
        self.runtime = runtime if runtime is not None else TUIContext()
        self.environment = environment if environment is not None else EnvironmentValues()
        self.writer = writer if writer is not None else FrameDiffWriter(terminal)
        self.status_height = 0
        self.passes = 0

    def invalidate(self) -> None:
        self.writer.invalidate()

    def render(self) -> FrameStats:
        runtime = self.runtime
        terminal = self.terminal
        width = terminal.columns
        height = terminal.rows
        content_height = max(0, height - self.status_height)
        palette = self.environment.palette
        stats = FrameStats()

        runtime.begin_render_pass()
        context = RenderContext(
            available_width=width,
            available_height=content_height,
            identity=ViewIdentity.root(type_name(self.root)),
            environment=self.environment,
            runtime=runtime,
        )
        buffer = render_view(self.root, context)
        lines = build_output_lines(buffer, width, content_height, palette.background)
        stats.content_rows = self.writer.write_content_diff(lines, 1)
        stats.removed_cells = runtime.end_render_pass()

        status = runtime.status_bar
        if status.height != self.status_height:
            logger.debug("status bar height %d -> %d", self.status_height, status.height)
            self.status_height = status.height
            self.writer.invalidate()
            runtime.scheduler.request_render()
        elif status.has_items:
            status_lines = build_output_lines(
                status.render(width, palette),
                width,
                self.status_height,
                palette.status_bar_background,
            )
            stats.status_rows = self.writer.write_status_diff(status_lines, height - self.status_height + 1)

        terminal.flush()
        self.passes += 1
        logger.debug(
            "pass %d: %d content rows, %d status rows written",
            self.passes,
            stats.content_rows,
            stats.status_rows,
        )
        return stats
