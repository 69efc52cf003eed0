"""Focus tracking rebuilt from the focusable views visited each pass."""

from __future__ import annotations

from tessera.tui.identity import ViewIdentity


class FocusManager:
    """Ordered registry of focusable identities for the current pass.

    The focused identity is kept across passes as long as it is registered
    again; otherwise focus falls back to the first registered identity.
    """

    def __init__(self) -> None:
        self._order: list[ViewIdentity] = []
        self._focused: ViewIdentity | None = None

    @property
    def focused(self) -> ViewIdentity | None:
        return self._focused

    @property
    def registered(self) -> list[ViewIdentity]:
        return list(self._order)

    def begin_render_pass(self) -> None:
        self._order = []

    def register(self, identity: ViewIdentity) -> None:
        if identity not in self._order:
            self._order.append(identity)

    def end_render_pass(self) -> None:
        if self._focused not in self._order:
            self._focused = self._order[0] if self._order else None

    def is_focused(self, identity: ViewIdentity) -> bool:
        if self._focused is None:
            # Before the first pass settles, the first registration wins
            return bool(self._order) and self._order[0] == identity
        return self._focused == identity

    def focus(self, identity: ViewIdentity) -> None:
        self._focused = identity

    def focus_next(self) -> None:
        self._move(1)

    def focus_previous(self) -> None:
        self._move(-1)

    def _move(self, step: int) -> None:
        if not self._order:
            return
        if self._focused not in self._order:
            self._focused = self._order[0]
            return
        index = self._order.index(self._focused)
        self._focused = self._order[(index + step) % len(self._order)]

    def clear(self) -> None:
        self._order = []
        self._focused = None
