"""Tests for the render loop and application runner.

Uses the VirtualTerminal to drive input and resize events and to verify
which rows each render pass rewrites.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from tessera.tui.app import App, AppRunner
from tessera.tui.buffer import FrameBuffer
from tessera.tui.config import RuntimeConfig
from tessera.tui.keys import KeyEvent
from tessera.tui.lifecycle import periodic
from tessera.tui.render_loop import RenderLoop
from tessera.tui.state import state
from tessera.tui.status_bar import StatusBarItem
from tessera.tui.view import PrimitiveView, RenderContext, View
from tessera.tui.views import Text, VStack

from .virtual_terminal import VirtualTerminal


# ---------------------------------------------------------------------------
# Test applications
# ---------------------------------------------------------------------------


class CounterApp(App):
    """Counts ``+`` presses."""

    def body(self) -> View:
        count = state(0)

        def on_key(event: KeyEvent) -> bool:
            if event.key == "+":
                count.update(lambda n: n + 1)
                return True
            return False

        return Text(f"count={count.value}").on_key_press(on_key)


@dataclass(frozen=True)
class FocusLabel(PrimitiveView):
    name: str

    def render(self, context: RenderContext) -> FrameBuffer:
        marker = ">" if context.environment.get("focused") else " "
        return FrameBuffer([f"{marker}{self.name}"])


class FormApp(App):
    def body(self) -> View:
        return VStack(FocusLabel("name").focusable(), FocusLabel("email").focusable())


class SpinnerApp(App):
    def body(self) -> View:
        frame = state(0)

        def advance() -> None:
            frame.value += 1

        return Text(f"frame {frame.value}").task(periodic(0.005, advance))


def make_runner(app: App, rows: int = 5, columns: int = 20) -> tuple[AppRunner, VirtualTerminal]:
    terminal = VirtualTerminal(rows=rows, columns=columns)
    runner = app.runner(terminal=terminal, config=RuntimeConfig(tick_interval=0.001))
    return runner, terminal


def start(runner: AppRunner, terminal: VirtualTerminal) -> None:
    terminal.start(runner._on_input, runner.flags.request_resize)
    runner.loop.render()
    terminal.clear_buffer()


# ---------------------------------------------------------------------------
# Render loop
# ---------------------------------------------------------------------------


class TestRenderLoop:
    """Content and status regions."""

    def test_first_pass_fills_screen(self) -> None:
        terminal = VirtualTerminal(rows=5, columns=20)
        loop = RenderLoop(VStack(Text("hi")), terminal)
        stats = loop.render()
        assert stats.content_rows == 5
        assert terminal.visible_row(1) == "hi"
        assert terminal.flush_count == 1

    def test_unchanged_pass_writes_nothing(self) -> None:
        terminal = VirtualTerminal(rows=5, columns=20)
        loop = RenderLoop(VStack(Text("hi")), terminal)
        loop.render()
        terminal.clear_buffer()
        assert loop.render().content_rows == 0
        assert terminal.moves == []

    def test_status_bar_takes_bottom_row(self) -> None:
        terminal = VirtualTerminal(rows=5, columns=20)
        root = Text("body").status_bar_items(StatusBarItem("q", "quit"))
        loop = RenderLoop(root, terminal)

        loop.render()
        assert loop.status_height == 1
        assert loop.runtime.scheduler.consume()

        stats = loop.render()
        assert stats.content_rows == 4
        assert stats.status_rows == 1
        assert "q quit" in terminal.visible_row(5)
        assert terminal.visible_row(1) == "body"

        terminal.clear_buffer()
        stats = loop.render()
        assert (stats.content_rows, stats.status_rows) == (0, 0)

    def test_removed_cells_reported(self) -> None:
        terminal = VirtualTerminal(rows=3, columns=10)
        loop = RenderLoop(CounterApp(), terminal)
        loop.render()
        loop.root = Text("other")
        assert loop.render().removed_cells == 1


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class TestAppRunnerTick:
    """Input, built-in bindings and resize handling."""

    def test_idle_tick_does_not_render(self) -> None:
        runner, terminal = make_runner(CounterApp())
        start(runner, terminal)
        assert not runner.tick()
        assert terminal.output == ""

    def test_key_updates_state_and_rerenders_one_row(self) -> None:
        runner, terminal = make_runner(CounterApp())
        start(runner, terminal)
        terminal.simulate_input("++")
        assert runner.tick()
        assert terminal.visible_row(1) == "count=2"
        assert terminal.rows_written() == [1]

    def test_unhandled_key(self) -> None:
        runner, terminal = make_runner(CounterApp())
        start(runner, terminal)
        assert not runner.dispatch_key(KeyEvent("x", "x"))
        assert not runner.tick()

    def test_ctrl_c_requests_shutdown(self) -> None:
        runner, terminal = make_runner(CounterApp())
        start(runner, terminal)
        terminal.simulate_input("\x03")
        assert not runner.tick()
        assert runner.flags.shutdown_requested

    def test_tab_moves_focus(self) -> None:
        runner, terminal = make_runner(FormApp())
        start(runner, terminal)
        terminal.simulate_input("\t")
        assert runner.tick()
        assert terminal.visible_row(1) == " name"
        assert terminal.visible_row(2) == ">email"
        terminal.simulate_input("\x1b[Z")
        assert runner.tick()
        assert terminal.visible_row(1) == ">name"

    def test_resize_clears_and_rewrites(self) -> None:
        runner, terminal = make_runner(CounterApp(), rows=5)
        start(runner, terminal)
        terminal.simulate_resize(rows=3)
        assert runner.tick()
        assert "\x1b[2J" in terminal.output
        assert terminal.rows_written() == [1, 2, 3]

    def test_grow_back_rewrites_identical_content(self) -> None:
        runner, terminal = make_runner(CounterApp(), rows=5)
        start(runner, terminal)
        terminal.simulate_resize(rows=3)
        assert runner.tick()
        terminal.clear_buffer()
        terminal.simulate_resize(rows=5)
        assert runner.tick()
        assert terminal.rows_written() == [1, 2, 3, 4, 5]
        assert terminal.visible_row(1) == "count=0"


class TestAppRunnerRun:
    """Full async run against the virtual terminal."""

    @pytest.mark.asyncio
    async def test_run_until_ctrl_c(self) -> None:
        runner, terminal = make_runner(CounterApp())
        task = asyncio.create_task(runner.run())
        await asyncio.sleep(0.02)
        assert runner.running
        assert terminal.started
        assert terminal.alternate_screen
        assert not terminal.cursor_visible
        assert terminal.visible_row(1) == "count=0"

        terminal.simulate_input("+")
        await asyncio.sleep(0.02)
        assert terminal.visible_row(1) == "count=1"

        terminal.simulate_input("\x03")
        await asyncio.wait_for(task, timeout=1.0)
        assert not runner.running
        assert not terminal.started
        assert not terminal.alternate_screen
        assert terminal.cursor_visible

    @pytest.mark.asyncio
    async def test_animation_drives_renders_and_stops_on_exit(self) -> None:
        runner, terminal = make_runner(SpinnerApp())
        task = asyncio.create_task(runner.run())
        await asyncio.sleep(0.05)
        assert runner.loop.passes > 1
        assert terminal.visible_row(1) != "frame 0"
        assert runner.runtime.lifecycle.task_count == 1

        runner.quit()
        await asyncio.wait_for(task, timeout=1.0)
        assert runner.runtime.lifecycle.task_count == 0

    @pytest.mark.asyncio
    async def test_teardown_runs_on_error(self) -> None:
        class Broken(App):
            def body(self) -> View:
                raise RuntimeError("bad body")

        runner, terminal = make_runner(Broken())
        with pytest.raises(RuntimeError):
            await runner.run()
        assert not terminal.started
        assert terminal.cursor_visible
        assert not terminal.alternate_screen
