"""Tests for per-run services: focus, preferences, status bar and environment."""

from __future__ import annotations

from tessera.tui.ansi import strip
from tessera.tui.environment import DEFAULT_PALETTE, OCEAN_PALETTE, EnvironmentValues
from tessera.tui.focus import FocusManager
from tessera.tui.identity import ViewIdentity
from tessera.tui.preferences import PreferenceKey, PreferenceStorage
from tessera.tui.runtime import TUIContext
from tessera.tui.state import RenderScheduler, StateKey
from tessera.tui.status_bar import StatusBarItem, StatusBarState

A = ViewIdentity.root("App").child("Field", 0)
B = ViewIdentity.root("App").child("Field", 1)
C = ViewIdentity.root("App").child("Field", 2)


# ---------------------------------------------------------------------------
# Focus
# ---------------------------------------------------------------------------


class TestFocusManager:
    """Focus order rebuilt each pass."""

    def _pass(self, focus: FocusManager, *identities: ViewIdentity) -> None:
        focus.begin_render_pass()
        for identity in identities:
            focus.register(identity)
        focus.end_render_pass()

    def test_first_registered_gets_focus(self) -> None:
        focus = FocusManager()
        self._pass(focus, A, B)
        assert focus.focused == A
        assert focus.registered == [A, B]

    def test_next_and_previous_wrap(self) -> None:
        focus = FocusManager()
        self._pass(focus, A, B, C)
        focus.focus_next()
        assert focus.focused == B
        focus.focus_previous()
        focus.focus_previous()
        assert focus.focused == C

    def test_focus_survives_while_registered(self) -> None:
        focus = FocusManager()
        self._pass(focus, A, B)
        focus.focus(B)
        self._pass(focus, A, B)
        assert focus.focused == B

    def test_focus_falls_back_when_removed(self) -> None:
        focus = FocusManager()
        self._pass(focus, A, B)
        focus.focus(B)
        self._pass(focus, A)
        assert focus.focused == A

    def test_no_focusables(self) -> None:
        focus = FocusManager()
        self._pass(focus)
        focus.focus_next()
        assert focus.focused is None


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


class TestPreferenceStorage:
    """Scopes merge upward when popped."""

    def test_default_value(self) -> None:
        storage = PreferenceStorage()
        assert storage.value(PreferenceKey("title", "none")) == "none"

    def test_pop_merges_into_parent(self) -> None:
        storage = PreferenceStorage()
        key = PreferenceKey("title", "")
        storage.push()
        storage.set_value(key, "inner")
        storage.pop()
        assert storage.value(key) == "inner"

    def test_last_value_wins_without_reduce(self) -> None:
        storage = PreferenceStorage()
        key = PreferenceKey("title", "")
        storage.set_value(key, "a")
        storage.set_value(key, "b")
        assert storage.value(key) == "b"

    def test_pop_on_root_is_safe(self) -> None:
        storage = PreferenceStorage()
        assert storage.pop() is storage.current

    def test_callbacks_only_on_change(self) -> None:
        storage = PreferenceStorage()
        key = PreferenceKey("n", 0)
        seen: list[int] = []
        for value in (1, 1, 2):
            storage.begin_render_pass()
            storage.on_change(key, seen.append)
            storage.set_value(key, value)
            storage.end_render_pass()
        assert seen == [1, 2]


# ---------------------------------------------------------------------------
# Status bar
# ---------------------------------------------------------------------------


class TestStatusBarState:
    """Items collected per pass and rendered on one line."""

    def test_height_follows_items(self) -> None:
        status = StatusBarState()
        assert status.height == 0
        status.add_items([StatusBarItem("q", "quit")])
        assert status.height == 1
        status.begin_render_pass()
        assert status.height == 0

    def test_duplicates_ignored(self) -> None:
        status = StatusBarState()
        status.add_items([StatusBarItem("q", "quit"), StatusBarItem("q", "quit")])
        assert len(status.items) == 1

    def test_render(self) -> None:
        status = StatusBarState()
        status.add_items([StatusBarItem("q", "quit"), StatusBarItem("?", "help")])
        assert strip(status.render(40, DEFAULT_PALETTE).lines[0]) == " q quit  ? help"

    def test_render_drops_items_that_do_not_fit(self) -> None:
        status = StatusBarState()
        status.add_items([StatusBarItem("q", "quit"), StatusBarItem("?", "help")])
        assert strip(status.render(10, DEFAULT_PALETTE).lines[0]) == " q quit"


# ---------------------------------------------------------------------------
# Environment and TUIContext
# ---------------------------------------------------------------------------


class TestEnvironmentValues:
    """Immutable ambient values."""

    def test_with_value_replaces_key(self) -> None:
        env = EnvironmentValues().with_value("k", 1).with_value("k", 2)
        assert env.get("k") == 2
        assert len(env.custom) == 1

    def test_missing_key_default(self) -> None:
        assert EnvironmentValues().get("nope", "x") == "x"

    def test_with_palette(self) -> None:
        env = EnvironmentValues().with_(palette=OCEAN_PALETTE)
        assert env.palette.id == "ocean"
        assert EnvironmentValues().palette is DEFAULT_PALETTE


class TestTUIContext:
    """Pass bracketing across services."""

    def test_shared_scheduler(self) -> None:
        scheduler = RenderScheduler()
        runtime = TUIContext(scheduler)
        assert runtime.state.scheduler is scheduler
        assert runtime.lifecycle.scheduler is scheduler

    def test_end_render_pass_reports_removed_cells(self) -> None:
        runtime = TUIContext()
        runtime.state.cell_for(StateKey(A, 0), 1)
        runtime.state.cell_for(StateKey(B, 0), 1)
        runtime.begin_render_pass()
        runtime.state.mark_active(A)
        assert runtime.end_render_pass() == 1

    def test_reset_clears_state_and_focus(self) -> None:
        runtime = TUIContext()
        runtime.state.cell_for(StateKey(A, 0), 1)
        runtime.focus.register(A)
        runtime.focus.focus(A)
        runtime.reset()
        assert len(runtime.state) == 0
        assert runtime.focus.focused is None
