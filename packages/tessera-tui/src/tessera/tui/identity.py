"""Structural identity: a stable key derived from a node's tree position."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ViewIdentity:
    """Path of type names, child indices and branch tags from the root.

    Two descriptors at the same tree position on different frames get equal
    identities even though they are different instances.  Children of a
    container are ``Type.index``; conditional branches add ``#label``.
    """

    path: str = ""

    @classmethod
    def root(cls, type_name: str) -> ViewIdentity:
        return cls(type_name)

    def child(self, type_name: str, index: int | str | None = None) -> ViewIdentity:
        segment = type_name if index is None else f"{type_name}.{index}"
        return ViewIdentity(f"{self.path}/{segment}")

    def branch(self, label: str) -> ViewIdentity:
        return ViewIdentity(f"{self.path}#{label}")

    def is_ancestor_of(self, other: ViewIdentity) -> bool:
        return other.path.startswith(self.path + "/") or other.path.startswith(self.path + "#")

    def token(self, suffix: str) -> str:
        """A lifecycle token bound to this position."""
        return f"{self.path}@{suffix}"

    def __str__(self) -> str:
        return self.path
