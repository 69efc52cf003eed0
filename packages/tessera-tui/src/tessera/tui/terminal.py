"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` that
manages raw mode, the alternate screen, cursor visibility, SIGWINCH-based
resize notification and batched, retrying writes to stdout.
"""

from __future__ import annotations

import asyncio
import logging
import os
import select
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

from tessera.tui.ansi import (
    CLEAR_SCREEN,
    ENTER_ALT_SCREEN,
    EXIT_ALT_SCREEN,
    HIDE_CURSOR,
    SHOW_CURSOR,
    move_cursor,
)
from tessera.tui.config import RuntimeConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    def flush(self) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def move_cursor(self, row: int, column: int) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def enter_alternate_screen(self) -> None: ...

    def exit_alternate_screen(self) -> None: ...

    def clear_screen(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by the process's stdin/stdout file descriptors.

    Writes are collected until :meth:`flush`, which pushes them to the
    device in one loop of ``os.write`` calls.
    """

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        stdin_fd: int | None = None,
        stdout_fd: int | None = None,
    ) -> None:
        self._config = config or RuntimeConfig()
        self._stdin_fd = stdin_fd if stdin_fd is not None else sys.stdin.fileno()
        self._stdout_fd = stdout_fd if stdout_fd is not None else sys.stdout.fileno()
        self._pending: list[str] = []
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._original_termios: list | None = None
        self._was_blocking: bool = True
        self._reader_active: bool = False
        self._prev_sigwinch_handler: object = None
        self._write_log_path: str = self._config.write_log_path

    # -- size -------------------------------------------------------------

    @property
    def columns(self) -> int:
        return self._size()[0]

    @property
    def rows(self) -> int:
        return self._size()[1]

    def _size(self) -> tuple[int, int]:
        try:
            size = os.get_terminal_size(self._stdout_fd)
            if size.columns > 0 and size.lines > 0:
                return size.columns, size.lines
        except (ValueError, OSError):
            pass
        return (
            _env_int("COLUMNS", self._config.default_columns),
            _env_int("LINES", self._config.default_rows),
        )

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enable raw non-blocking input and begin watching for resizes."""
        self._input_handler = on_input
        self._resize_handler = on_resize

        fd = self._stdin_fd
        try:
            self._original_termios = termios.tcgetattr(fd)
            tty.setraw(fd)
        except termios.error:
            logger.warning("stdin is not a tty; raw mode unavailable")
            self._original_termios = None
        self._was_blocking = os.get_blocking(fd)
        os.set_blocking(fd, False)

        if hasattr(signal, "SIGWINCH"):
            self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
            signal.signal(signal.SIGWINCH, self._on_sigwinch)

        self._start_stdin_reader()

    def stop(self) -> None:
        """Restore terminal state and clean up all handlers."""
        self._remove_stdin_reader()

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)  # type: ignore[arg-type]
            self._prev_sigwinch_handler = None

        fd = self._stdin_fd
        os.set_blocking(fd, self._was_blocking)
        if self._original_termios is not None:
            termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)
            self._original_termios = None

        self._input_handler = None
        self._resize_handler = None

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        self._pending.append(data)

    def flush(self) -> None:
        """Write everything queued since the last flush."""
        if not self._pending:
            return
        data = "".join(self._pending)
        self._pending.clear()
        self._write_all(data.encode("utf-8"))

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                pass

    def _write_all(self, payload: bytes) -> None:
        """Loop on partial writes; abandon the frame on a hard failure."""
        view = memoryview(payload)
        while view:
            try:
                written = os.write(self._stdout_fd, view)
            except BlockingIOError:
                # stdout may share the non-blocking file description with stdin
                _, ready, _ = select.select([], [self._stdout_fd], [], 1.0)
                if not ready:
                    logger.warning("terminal not writable, dropping %d bytes", len(view))
                    return
                continue
            except OSError as exc:
                logger.warning("terminal write failed, dropping %d bytes: %s", len(view), exc)
                return
            if written == 0:
                logger.warning("terminal accepted no bytes, dropping %d bytes", len(view))
                return
            view = view[written:]

    # -- cursor / screen ----------------------------------------------------

    def move_cursor(self, row: int, column: int) -> None:
        self.write(move_cursor(row, column))

    def hide_cursor(self) -> None:
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(SHOW_CURSOR)

    def enter_alternate_screen(self) -> None:
        self.write(ENTER_ALT_SCREEN)

    def exit_alternate_screen(self) -> None:
        self.write(EXIT_ALT_SCREEN)

    def clear_screen(self) -> None:
        self.write(CLEAR_SCREEN)

    # -- private: stdin reading --------------------------------------------

    def _start_stdin_reader(self) -> None:
        if self._reader_active:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running loop; stdin reader not installed")
            return
        loop.add_reader(self._stdin_fd, self._on_stdin_readable)
        self._reader_active = True

    def _remove_stdin_reader(self) -> None:
        if not self._reader_active:
            return
        try:
            asyncio.get_running_loop().remove_reader(self._stdin_fd)
        except (RuntimeError, ValueError):
            pass
        self._reader_active = False

    def _on_stdin_readable(self) -> None:
        try:
            raw = os.read(self._stdin_fd, 4096)
        except (BlockingIOError, InterruptedError):
            return
        except OSError as exc:
            logger.warning("stdin read failed: %s", exc)
            return
        if raw and self._input_handler is not None:
            self._input_handler(raw.decode("utf-8", errors="replace"))

    # -- private: SIGWINCH -------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        if self._resize_handler is not None:
            self._resize_handler()


def _env_int(name: str, default: int) -> int:
    try:
        value = int(os.environ.get(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default
