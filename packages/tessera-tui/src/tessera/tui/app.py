"""Application base class and the async runner driving the render loop."""

from __future__ import annotations

import asyncio
import logging

from tessera.tui.config import RuntimeConfig, configure_logging
from tessera.tui.environment import EnvironmentValues
from tessera.tui.keys import KeyEvent, parse_keys
from tessera.tui.render_loop import RenderLoop
from tessera.tui.runtime import TUIContext
from tessera.tui.signals import SignalFlags, install_shutdown_handlers
from tessera.tui.state import RenderScheduler
from tessera.tui.terminal import ProcessTerminal, Terminal
from tessera.tui.view import View

logger = logging.getLogger(__name__)


class AppRunner:
    """Owns one application run: terminal setup, the tick loop and teardown.

    A single :class:`RenderScheduler` is created here and shared by the state
    store, the lifecycle tracker and every render context.
    """

    def __init__(
        self,
        root: View,
        terminal: Terminal | None = None,
        config: RuntimeConfig | None = None,
        environment: EnvironmentValues | None = None,
    ) -> None:
        self.config = config or RuntimeConfig()
        self.terminal: Terminal = terminal if terminal is not None else ProcessTerminal(self.config)
        self.scheduler = RenderScheduler()
        self.runtime = TUIContext(self.scheduler)
        self.flags = SignalFlags()
        environment = (environment or EnvironmentValues()).with_(animation_interval=self.config.animation_interval)
        self.loop = RenderLoop(root, self.terminal, self.runtime, environment)
        self._pending_input: list[str] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def quit(self) -> None:
        self.flags.request_shutdown()

    # -- input ------------------------------------------------------------

    def _on_input(self, data: str) -> None:
        self._pending_input.append(data)

    def dispatch_key(self, event: KeyEvent) -> bool:
        """Offer *event* to view handlers, then apply the built-in bindings."""
        if self.runtime.key_dispatcher.dispatch(event):
            self.scheduler.request_render()
            return True
        if event.key == "ctrl+c":
            self.quit()
            return True
        if event.key == "tab":
            self.runtime.focus.focus_next()
            self.scheduler.request_render()
            return True
        if event.key == "shift+tab":
            self.runtime.focus.focus_previous()
            self.scheduler.request_render()
            return True
        return False

    # -- loop -------------------------------------------------------------

    def tick(self) -> bool:
        """Handle pending signals and input, then render if needed.

        Returns ``True`` when a render pass ran.
        """
        if self.flags.consume_resize():
            logger.debug("resize to %dx%d", self.terminal.columns, self.terminal.rows)
            self.loop.invalidate()
            self.terminal.clear_screen()
            self.scheduler.request_render()

        pending, self._pending_input = self._pending_input, []
        for chunk in pending:
            for event in parse_keys(chunk):
                self.dispatch_key(event)
                if self.flags.shutdown_requested:
                    return False

        if self.scheduler.consume():
            self.loop.render()
            return True
        return False

    async def run(self) -> None:
        terminal = self.terminal
        restore_signals = install_shutdown_handlers(self.flags)
        self._running = True
        try:
            terminal.start(self._on_input, self.flags.request_resize)
            terminal.enter_alternate_screen()
            terminal.hide_cursor()
            terminal.clear_screen()
            self.loop.render()
            while not self.flags.shutdown_requested:
                await asyncio.sleep(self.config.tick_interval)
                self.tick()
        finally:
            self._running = False
            self.runtime.reset()
            terminal.show_cursor()
            terminal.exit_alternate_screen()
            terminal.flush()
            terminal.stop()
            restore_signals()
            logger.debug("runner stopped after %d passes", self.loop.passes)


class App(View):
    """Base class for applications: subclass and implement :meth:`body`."""

    environment_values: EnvironmentValues | None = None

    def runner(self, terminal: Terminal | None = None, config: RuntimeConfig | None = None) -> AppRunner:
        return AppRunner(self, terminal=terminal, config=config, environment=self.environment_values)

    @classmethod
    def main(cls) -> None:
        """Run the application until it quits."""
        config = RuntimeConfig.from_env()
        configure_logging(config)
        app = cls()
        asyncio.run(app.runner(config=config).run())
