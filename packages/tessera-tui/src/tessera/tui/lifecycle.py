"""Appear/disappear tracking and token-keyed background tasks.

Tokens are stable strings derived from a view's structural identity.  A
render pass visits tokens through :meth:`LifecycleManager.record_appear`;
:meth:`LifecycleManager.end_render_pass` fires disappear callbacks for the
tokens that were visible last pass but not this one.  Tasks started under a
token are plain :class:`asyncio.Task` objects and are cancelled when their
token disappears.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from tessera.tui.state import RenderScheduler

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag polled by background jobs."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass
class TaskContext:
    """What a background task receives: its cancellation flag and the scheduler."""

    cancellation: CancellationToken
    scheduler: RenderScheduler | None = None
    animation_interval: float = 0.08

    @property
    def is_cancelled(self) -> bool:
        return self.cancellation.is_cancelled

    def request_render(self) -> None:
        if self.scheduler is not None:
            self.scheduler.request_render()


TaskFactory = Callable[[TaskContext], Awaitable[None]]


def periodic(interval: float | None = None, on_tick: Callable[[], None] | None = None) -> TaskFactory:
    """Build an animation task: sleep, tick, request a rerender, repeat.

    Without *interval* the task uses the animation interval of the view
    that started it.
    """

    async def _run(ctx: TaskContext) -> None:
        delay = ctx.animation_interval if interval is None else interval
        while not ctx.is_cancelled:
            await asyncio.sleep(delay)
            if ctx.is_cancelled:
                return
            if on_tick is not None:
                on_tick()
            ctx.request_render()

    return _run


def after(delay: float, action: Callable[[], None]) -> TaskFactory:
    """Build a once-off job that runs *action* after *delay* unless cancelled."""

    async def _run(ctx: TaskContext) -> None:
        await asyncio.sleep(delay)
        if ctx.is_cancelled:
            return
        action()
        ctx.request_render()

    return _run


class LifecycleManager:
    """Tracks which lifecycle tokens are visible and owns their tasks."""

    def __init__(self, scheduler: RenderScheduler | None = None) -> None:
        self.scheduler = scheduler
        self._appeared: set[str] = set()
        self._visible: set[str] = set()
        self._current: set[str] = set()
        self._disappear_callbacks: dict[str, Callable[[], None]] = {}
        self._tasks: dict[str, tuple[asyncio.Task, CancellationToken]] = {}

    # -- render pass --------------------------------------------------------

    def begin_render_pass(self) -> None:
        self._current = set()

    def end_render_pass(self) -> list[str]:
        """Fire disappear callbacks for tokens not visited; return them."""
        disappeared = sorted(self._visible - self._current)
        for token in disappeared:
            self._appeared.discard(token)
        self._visible = self._current
        callbacks = dict(self._disappear_callbacks)

        for token in disappeared:
            logger.debug("token disappeared: %s", token)
            callback = callbacks.get(token)
            if callback is not None:
                callback()
            self._disappear_callbacks.pop(token, None)
        return disappeared

    # -- appearance ---------------------------------------------------------

    def record_appear(self, token: str, action: Callable[[], None] | None = None) -> bool:
        """Mark *token* visible; run *action* only on its first appearance."""
        self._current.add(token)
        if token in self._appeared:
            return False
        self._appeared.add(token)
        if action is not None:
            action()
        return True

    def has_appeared(self, token: str) -> bool:
        return token in self._appeared

    def is_visible(self, token: str) -> bool:
        return token in self._visible or token in self._current

    def register_disappear(self, token: str, action: Callable[[], None]) -> None:
        self._disappear_callbacks[token] = action

    def unregister_disappear(self, token: str) -> None:
        self._disappear_callbacks.pop(token, None)

    # -- tasks --------------------------------------------------------------

    def start_task(self, token: str, factory: TaskFactory, animation_interval: float = 0.08) -> bool:
        """Start *factory* under *token*, replacing any task already there.

        Returns ``False`` when no event loop is running (the task is not
        started).
        """
        self.cancel_task(token)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running loop; task %s not started", token)
            return False

        cancellation = CancellationToken()
        task = loop.create_task(factory(TaskContext(cancellation, self.scheduler, animation_interval)))
        task.add_done_callback(lambda t, token=token: self._on_task_done(token, t))
        self._tasks[token] = (task, cancellation)
        logger.debug("task started: %s", token)
        return True

    def cancel_task(self, token: str) -> None:
        entry = self._tasks.pop(token, None)
        if entry is None:
            return
        task, cancellation = entry
        cancellation.cancel()
        task.cancel()
        logger.debug("task cancelled: %s", token)

    def has_task(self, token: str) -> bool:
        return token in self._tasks

    @property
    def task_count(self) -> int:
        return len(self._tasks)

    def _on_task_done(self, token: str, task: asyncio.Task) -> None:
        entry = self._tasks.get(token)
        if entry is not None and entry[0] is task:
            del self._tasks[token]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("task %s failed", token, exc_info=exc)

    def reset(self) -> None:
        for token in list(self._tasks):
            self.cancel_task(token)
        self._appeared.clear()
        self._visible.clear()
        self._current.clear()
        self._disappear_callbacks.clear()
