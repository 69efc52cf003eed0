"""Tests for ProcessTerminal using pipes in place of a real tty."""

from __future__ import annotations

import asyncio
import logging
import os
import signal

import pytest

from tessera.tui import terminal as terminal_module
from tessera.tui.config import RuntimeConfig
from tessera.tui.terminal import ProcessTerminal


@pytest.fixture
def pipes():
    """``(stdin_read, stdin_write, stdout_read, stdout_write)`` descriptors."""
    in_r, in_w = os.pipe()
    out_r, out_w = os.pipe()
    yield in_r, in_w, out_r, out_w
    for fd in (in_r, in_w, out_r, out_w):
        try:
            os.close(fd)
        except OSError:
            pass


def read_all(fd: int) -> bytes:
    os.set_blocking(fd, False)
    chunks = []
    while True:
        try:
            chunk = os.read(fd, 65536)
        except BlockingIOError:
            break
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# Size
# ---------------------------------------------------------------------------


class TestSize:
    """Fallbacks when stdout is not a terminal."""

    def test_environment_fallback(self, pipes, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLUMNS", "100")
        monkeypatch.delenv("LINES", raising=False)
        term = ProcessTerminal(RuntimeConfig(default_rows=30), stdin_fd=pipes[0], stdout_fd=pipes[3])
        assert term.columns == 100
        assert term.rows == 30

    def test_config_defaults(self, pipes, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLUMNS", "not-a-number")
        monkeypatch.setenv("LINES", "0")
        term = ProcessTerminal(RuntimeConfig(default_columns=90, default_rows=20), pipes[0], pipes[3])
        assert (term.columns, term.rows) == (90, 20)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class TestOutput:
    """Batched writes and partial-write handling."""

    def test_writes_held_until_flush(self, pipes) -> None:
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        term.move_cursor(2, 1)
        term.write("hello")
        assert read_all(pipes[2]) == b""
        term.flush()
        assert read_all(pipes[2]) == b"\x1b[2;1Hhello"

    def test_flush_with_nothing_pending(self, pipes) -> None:
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        term.flush()
        assert read_all(pipes[2]) == b""

    def test_partial_writes_are_retried(self, pipes, monkeypatch: pytest.MonkeyPatch) -> None:
        written: list[bytes] = []

        def short_write(fd: int, data) -> int:
            chunk = bytes(data[:3])
            written.append(chunk)
            return len(chunk)

        monkeypatch.setattr(terminal_module.os, "write", short_write)
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        term.write("0123456789")
        term.flush()
        assert b"".join(written) == b"0123456789"
        assert len(written) == 4

    def test_blocking_write_waits_for_writable(self, pipes, monkeypatch: pytest.MonkeyPatch) -> None:
        attempts: list[int] = []
        real_write = os.write

        def flaky_write(fd: int, data) -> int:
            attempts.append(1)
            if len(attempts) == 1:
                raise BlockingIOError
            return real_write(fd, data)

        monkeypatch.setattr(terminal_module.os, "write", flaky_write)
        monkeypatch.setattr(terminal_module.select, "select", lambda r, w, x, t: ([], w, []))
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        term.write("ok")
        term.flush()
        monkeypatch.undo()
        assert read_all(pipes[2]) == b"ok"

    def test_unwritable_terminal_drops_frame(self, pipes, monkeypatch: pytest.MonkeyPatch, caplog) -> None:
        def blocked(fd: int, data) -> int:
            raise BlockingIOError

        monkeypatch.setattr(terminal_module.os, "write", blocked)
        monkeypatch.setattr(terminal_module.select, "select", lambda r, w, x, t: ([], [], []))
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        term.write("lost")
        with caplog.at_level(logging.WARNING, logger="tessera.tui.terminal"):
            term.flush()
        assert "dropping 4 bytes" in caplog.text

    def test_write_error_is_logged(self, pipes, monkeypatch: pytest.MonkeyPatch, caplog) -> None:
        def broken(fd: int, data) -> int:
            raise OSError("EIO")

        monkeypatch.setattr(terminal_module.os, "write", broken)
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        term.write("x")
        with caplog.at_level(logging.WARNING, logger="tessera.tui.terminal"):
            term.flush()
        assert "terminal write failed" in caplog.text

    def test_zero_byte_write_is_logged(self, pipes, monkeypatch: pytest.MonkeyPatch, caplog) -> None:
        monkeypatch.setattr(terminal_module.os, "write", lambda fd, data: 0)
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        term.write("x")
        with caplog.at_level(logging.WARNING, logger="tessera.tui.terminal"):
            term.flush()
        assert "accepted no bytes" in caplog.text

    def test_write_log(self, pipes, tmp_path) -> None:
        path = tmp_path / "writes.log"
        term = ProcessTerminal(RuntimeConfig(write_log_path=str(path)), pipes[0], pipes[3])
        term.write("frame one")
        term.flush()
        term.write(" frame two")
        term.flush()
        assert path.read_text() == "frame one frame two"

    def test_screen_sequences(self, pipes) -> None:
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        term.enter_alternate_screen()
        term.hide_cursor()
        term.clear_screen()
        term.show_cursor()
        term.exit_alternate_screen()
        term.flush()
        assert read_all(pipes[2]) == b"\x1b[?1049h\x1b[?25l\x1b[2J\x1b[?25h\x1b[?1049l"


# ---------------------------------------------------------------------------
# Start / stop
# ---------------------------------------------------------------------------


class TestStartStop:
    """Input delivery, resize notification and restoration."""

    @pytest.mark.asyncio
    async def test_input_delivered_through_reader(self, pipes) -> None:
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        received: list[str] = []
        term.start(received.append, lambda: None)
        try:
            os.write(pipes[1], b"q\x1b[A")
            await asyncio.sleep(0.05)
        finally:
            term.stop()
        assert "".join(received) == "q\x1b[A"

    def test_sigwinch_triggers_resize(self, pipes) -> None:
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        resized: list[int] = []
        previous = signal.getsignal(signal.SIGWINCH)
        term.start(lambda data: None, lambda: resized.append(1))
        try:
            signal.raise_signal(signal.SIGWINCH)
        finally:
            term.stop()
        assert resized == [1]
        assert signal.getsignal(signal.SIGWINCH) == previous

    def test_stop_restores_blocking_mode(self, pipes) -> None:
        os.set_blocking(pipes[0], True)
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        term.start(lambda data: None, lambda: None)
        assert not os.get_blocking(pipes[0])
        term.stop()
        assert os.get_blocking(pipes[0])

    def test_non_tty_stdin_warns(self, pipes, caplog) -> None:
        term = ProcessTerminal(stdin_fd=pipes[0], stdout_fd=pipes[3])
        with caplog.at_level(logging.WARNING, logger="tessera.tui.terminal"):
            term.start(lambda data: None, lambda: None)
        term.stop()
        assert "not a tty" in caplog.text
