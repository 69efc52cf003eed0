"""Signal-driven flags read once per loop tick.

Handlers never touch rendering state; they only flip a flag that the
render loop inspects on its next tick.
"""

from __future__ import annotations

import logging
import signal
from typing import Callable

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = ("SIGTERM", "SIGHUP")


class SignalFlags:
    """Pending resize / shutdown notifications."""

    def __init__(self) -> None:
        self.resize_pending = False
        self.shutdown_requested = False

    def request_resize(self) -> None:
        self.resize_pending = True

    def request_shutdown(self) -> None:
        self.shutdown_requested = True

    def consume_resize(self) -> bool:
        pending = self.resize_pending
        self.resize_pending = False
        return pending


def install_shutdown_handlers(flags: SignalFlags) -> Callable[[], None]:
    """Route SIGTERM/SIGHUP to ``flags``; return a function restoring the old handlers."""
    previous: dict[signal.Signals, object] = {}

    def _handler(signum: int, frame: object) -> None:
        flags.request_shutdown()

    for name in SHUTDOWN_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        try:
            previous[signum] = signal.getsignal(signum)
            signal.signal(signum, _handler)
        except ValueError:
            # Not the main thread
            logger.debug("cannot install handler for %s", name)
            previous.pop(signum, None)

    def restore() -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)  # type: ignore[arg-type]
        previous.clear()

    return restore
