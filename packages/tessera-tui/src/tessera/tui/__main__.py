"""Small demo: a counter, a spinner driven by a background task, and a toggle.

Run with ``python -m tessera.tui``.  Keys: ``+``/``-`` change the counter,
``t`` toggles the details panel, ``ctrl+c`` quits.
"""

from __future__ import annotations

from dataclasses import dataclass

from tessera.tui import (
    App,
    Color,
    Conditional,
    HStack,
    KeyEvent,
    Spacer,
    StatusBarItem,
    Text,
    TextStyle,
    View,
    VStack,
    periodic,
    state,
)

SPINNER = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


@dataclass(frozen=True)
class Spinner(View):
    label: str

    def body(self) -> View:
        frame = state(0)

        def advance() -> None:
            frame.value = (frame.value + 1) % len(SPINNER)

        return Text(f"{SPINNER[frame.value]} {self.label}").task(periodic(on_tick=advance))


class Demo(App):
    def body(self) -> View:
        count = state(0)
        expanded = state(False)

        def on_key(event: KeyEvent) -> bool:
            if event.key == "+":
                count.update(lambda n: n + 1)
            elif event.key == "-":
                count.update(lambda n: n - 1)
            elif event.key == "t":
                expanded.value = not expanded.value
            else:
                return False
            return True

        details = VStack(
            Text("Cells survive re-evaluation;"),
            Text("this panel's state is dropped when hidden."),
            Spinner("working"),
        ).padding(horizontal=1).border(title="details")

        return (
            VStack(
                Text("tessera demo", TextStyle(foreground=Color.bright("cyan"), bold=True)),
                HStack(Text("count:"), Text(str(count.value), TextStyle(bold=True)), Spacer()),
                Conditional(expanded.value, details, Text("press t for details").dimmed()),
                spacing=1,
            )
            .padding(1)
            .on_key_press(on_key)
            .status_bar_items(
                StatusBarItem("+/-", "count"),
                StatusBarItem("t", "details"),
                StatusBarItem("^c", "quit"),
            )
        )


def main() -> None:
    Demo.main()


if __name__ == "__main__":
    main()
