"""Child-to-ancestor preference values collected during a render pass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PreferenceKey(Generic[T]):
    """Identifies a preference and how sibling values combine.

    The default ``reduce`` keeps the most recently set value.
    """

    name: str
    default: T
    reduce: Callable[[T, T], T] | None = None

    def combine(self, current: T, new: T) -> T:
        if self.reduce is None:
            return new
        return self.reduce(current, new)


class PreferenceValues:
    """A scope of collected preference values."""

    def __init__(self) -> None:
        self._values: dict[PreferenceKey, Any] = {}

    def __getitem__(self, key: PreferenceKey[T]) -> T:
        return self._values.get(key, key.default)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def set(self, key: PreferenceKey[T], value: T) -> None:
        if key in self._values:
            self._values[key] = key.combine(self._values[key], value)
        else:
            self._values[key] = value

    def merge(self, other: PreferenceValues) -> None:
        for key, value in other._values.items():
            self.set(key, value)


class PreferenceStorage:
    """Stack of preference scopes plus change callbacks.

    ``push``/``pop`` bracket a subtree; values set inside also propagate to
    the enclosing scope when popped.  ``on_change`` callbacks run at the end
    of the pass, and only when the value differs from the previous pass.
    """

    def __init__(self) -> None:
        self._stack: list[PreferenceValues] = [PreferenceValues()]
        self._callbacks: dict[PreferenceKey, list[Callable[[Any], None]]] = {}
        self._previous: dict[PreferenceKey, Any] = {}

    @property
    def current(self) -> PreferenceValues:
        return self._stack[-1]

    def begin_render_pass(self) -> None:
        self._stack = [PreferenceValues()]
        self._callbacks = {}

    def set_value(self, key: PreferenceKey[T], value: T) -> None:
        self.current.set(key, value)

    def value(self, key: PreferenceKey[T]) -> T:
        return self._stack[0][key]

    def push(self) -> None:
        self._stack.append(PreferenceValues())

    def pop(self) -> PreferenceValues:
        if len(self._stack) == 1:
            return self._stack[0]
        scope = self._stack.pop()
        self.current.merge(scope)
        return scope

    def on_change(self, key: PreferenceKey[T], callback: Callable[[T], None]) -> None:
        self._callbacks.setdefault(key, []).append(callback)

    def end_render_pass(self) -> None:
        root = self._stack[0]
        for key, callbacks in self._callbacks.items():
            value = root[key]
            if key in self._previous and self._previous[key] == value:
                continue
            self._previous[key] = value
            for callback in callbacks:
                callback(value)

    def reset(self) -> None:
        self._stack = [PreferenceValues()]
        self._callbacks = {}
        self._previous = {}
