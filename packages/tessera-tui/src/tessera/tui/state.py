"""Persistent view state keyed by structural identity.

Descriptors are rebuilt every frame, so any value that must survive lives in
a :class:`StateStorage` owned by the runtime.  A composite view declares its
state with :func:`state` while its ``body`` is being evaluated; the evaluator
installs a :class:`HydrationContext` for the node being expanded so the
declaration reconnects to the cell stored under ``(identity, index)``.

Cells are removed by :meth:`StateStorage.end_render_pass` when their owner was
not visited during the pass.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterator, TypeVar

from tessera.tui.identity import ViewIdentity

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Scheduler handle
# ---------------------------------------------------------------------------


class RenderScheduler:
    """Explicit "a new frame is needed" signal.

    One instance is created per application run and handed to the state
    storage and render context; state mutations call :meth:`request_render`.
    """

    def __init__(self) -> None:
        self._needs_render = False
        self._observers: list[Callable[[], None]] = []

    @property
    def needs_render(self) -> bool:
        return self._needs_render

    def request_render(self) -> None:
        self._needs_render = True
        for observer in list(self._observers):
            observer()

    def observe(self, callback: Callable[[], None]) -> None:
        self._observers.append(callback)

    def consume(self) -> bool:
        """Return whether a render was requested and clear the flag."""
        pending = self._needs_render
        self._needs_render = False
        return pending


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------


class StateBox(Generic[T]):
    """Shared mutable box holding one persistent value."""

    __slots__ = ("_value", "_scheduler")

    def __init__(self, value: T, scheduler: RenderScheduler | None = None) -> None:
        self._value = value
        self._scheduler = scheduler

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._value = new_value
        if self._scheduler is not None:
            self._scheduler.request_render()

    def update(self, fn: Callable[[T], T]) -> None:
        self.value = fn(self._value)

    def binding(self) -> Binding[T]:
        return Binding(lambda: self._value, lambda v: setattr(self, "value", v))

    def __repr__(self) -> str:
        return f"StateBox({self._value!r})"


class Binding(Generic[T]):
    """Read/write access to a value owned elsewhere."""

    __slots__ = ("_get", "_set")

    def __init__(self, get: Callable[[], T], set: Callable[[T], None]) -> None:
        self._get = get
        self._set = set

    @property
    def value(self) -> T:
        return self._get()

    @value.setter
    def value(self, new_value: T) -> None:
        self._set(new_value)

    @classmethod
    def constant(cls, value: T) -> Binding[T]:
        return cls(lambda: value, lambda _v: None)


@dataclass(frozen=True)
class StateKey:
    identity: ViewIdentity
    index: int


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StateStorage:
    """Map from :class:`StateKey` to cells, with per-pass liveness tracking."""

    def __init__(self, scheduler: RenderScheduler | None = None) -> None:
        self.scheduler = scheduler
        self._values: dict[StateKey, StateBox] = {}
        self._active: set[ViewIdentity] = set()

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def cell_for(self, key: StateKey, default: T) -> StateBox[T]:
        """Return the cell stored under *key*, creating it with *default*."""
        existing = self._values.get(key)
        if existing is not None:
            return existing
        fresh: StateBox[T] = StateBox(default, self.scheduler)
        self._values[key] = fresh
        return fresh

    def begin_render_pass(self) -> None:
        self._active.clear()

    def mark_active(self, identity: ViewIdentity) -> None:
        self._active.add(identity)

    def end_render_pass(self) -> int:
        """Drop every cell whose identity was not visited; return the count."""
        stale = [key for key in self._values if key.identity not in self._active]
        for key in stale:
            del self._values[key]
        return len(stale)

    def invalidate_descendants(self, ancestor: ViewIdentity) -> None:
        stale = [key for key in self._values if ancestor.is_ancestor_of(key.identity)]
        for key in stale:
            del self._values[key]

    def reset(self) -> None:
        self._values.clear()
        self._active.clear()


# ---------------------------------------------------------------------------
# Hydration
# ---------------------------------------------------------------------------


@dataclass
class HydrationContext:
    """The node whose ``body`` is currently being evaluated."""

    identity: ViewIdentity
    storage: StateStorage
    counter: int = field(default=0)


_active_context: contextvars.ContextVar[HydrationContext | None] = contextvars.ContextVar(
    "tessera_hydration", default=None
)


@contextmanager
def hydrating(identity: ViewIdentity, storage: StateStorage) -> Iterator[HydrationContext]:
    """Install a hydration context for the duration of a ``body`` call.

    The previous context is restored afterwards so nested expansion works.
    """
    ctx = HydrationContext(identity, storage)
    reset_token = _active_context.set(ctx)
    try:
        yield ctx
    finally:
        _active_context.reset(reset_token)


def current_hydration() -> HydrationContext | None:
    return _active_context.get()


def state(default: T) -> StateBox[T]:
    """Declare a persistent state cell from inside a view's ``body``.

    Declarations are keyed by their order within the body, so they must be
    made unconditionally.  Outside of evaluation a detached cell is returned.
    """
    ctx = _active_context.get()
    if ctx is None:
        return StateBox(default)
    key = StateKey(ctx.identity, ctx.counter)
    ctx.counter += 1
    return ctx.storage.cell_for(key, default)
