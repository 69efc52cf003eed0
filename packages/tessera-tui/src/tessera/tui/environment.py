"""Ambient values passed down the view tree (palette, inherited style)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from tessera.tui.ansi import Color, TextStyle


@dataclass(frozen=True)
class Palette:
    """Colors used by the runtime and built-in views."""

    id: str
    foreground: Color
    background: Color
    accent: Color
    border: Color
    status_bar_foreground: Color
    status_bar_background: Color


DEFAULT_PALETTE = Palette(
    id="default",
    foreground=Color.standard("white"),
    background=Color.standard("black"),
    accent=Color.bright("cyan"),
    border=Color.bright("black"),
    status_bar_foreground=Color.standard("white"),
    status_bar_background=Color.palette(236),
)

OCEAN_PALETTE = Palette(
    id="ocean",
    foreground=Color.rgb(220, 230, 240),
    background=Color.rgb(16, 24, 40),
    accent=Color.rgb(80, 200, 220),
    border=Color.rgb(60, 80, 110),
    status_bar_foreground=Color.rgb(200, 210, 225),
    status_bar_background=Color.rgb(28, 40, 62),
)


@dataclass(frozen=True)
class EnvironmentValues:
    """Read-only ambient context; modifiers derive copies with :meth:`with_`."""

    palette: Palette = DEFAULT_PALETTE
    style: TextStyle = TextStyle()
    is_dimmed: bool = False
    animation_interval: float = 0.08
    custom: tuple[tuple[str, Any], ...] = field(default=())

    def with_(self, **changes: Any) -> EnvironmentValues:
        return replace(self, **changes)

    def with_value(self, key: str, value: Any) -> EnvironmentValues:
        others = tuple((k, v) for k, v in self.custom if k != key)
        return replace(self, custom=others + ((key, value),))

    def get(self, key: str, default: Any = None) -> Any:
        for k, v in self.custom:
            if k == key:
                return v
        return default
