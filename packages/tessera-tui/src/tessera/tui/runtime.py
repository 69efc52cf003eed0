"""Runtime services shared by every render pass of one application run."""

from __future__ import annotations

from tessera.tui.focus import FocusManager
from tessera.tui.keys import KeyEventDispatcher
from tessera.tui.lifecycle import LifecycleManager
from tessera.tui.preferences import PreferenceStorage
from tessera.tui.state import RenderScheduler, StateStorage
from tessera.tui.status_bar import StatusBarState


class TUIContext:
    """Owns the state store, lifecycle tracker and per-frame registries.

    Constructed once per run around a single :class:`RenderScheduler` and
    threaded through every :class:`~tessera.tui.view.RenderContext`.
    """

    def __init__(self, scheduler: RenderScheduler | None = None) -> None:
        self.scheduler = scheduler if scheduler is not None else RenderScheduler()
        self.state = StateStorage(self.scheduler)
        self.lifecycle = LifecycleManager(self.scheduler)
        self.key_dispatcher = KeyEventDispatcher()
        self.preferences = PreferenceStorage()
        self.focus = FocusManager()
        self.status_bar = StatusBarState()

    def begin_render_pass(self) -> None:
        """Clear ephemeral registries and open the liveness sets."""
        self.key_dispatcher.clear_handlers()
        self.preferences.begin_render_pass()
        self.focus.begin_render_pass()
        self.status_bar.begin_render_pass()
        self.lifecycle.begin_render_pass()
        self.state.begin_render_pass()

    def end_render_pass(self) -> int:
        """Fire disappearance callbacks and garbage-collect state.

        Returns the number of state cells removed.
        """
        self.focus.end_render_pass()
        self.preferences.end_render_pass()
        self.lifecycle.end_render_pass()
        return self.state.end_render_pass()

    def reset(self) -> None:
        self.lifecycle.reset()
        self.key_dispatcher.clear_handlers()
        self.preferences.reset()
        self.focus.clear()
        self.state.reset()
