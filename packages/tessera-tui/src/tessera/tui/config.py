"""Runtime configuration and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class RuntimeConfig:
    """Render loop timing, fallback terminal size and diagnostics."""

    tick_interval: float = 0.04
    animation_interval: float = 0.08
    default_columns: int = 80
    default_rows: int = 24
    log_file: str = ""
    log_level: str = "WARNING"
    write_log_path: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RuntimeConfig:
        """Build a config from ``TESSERA_*`` environment variables.

        Invalid values are ignored with a warning and the default is kept.
        """
        env = os.environ if environ is None else environ
        config = cls()

        tick = _milliseconds(env, "TESSERA_TICK_MS")
        if tick is not None:
            config.tick_interval = tick
        animation = _milliseconds(env, "TESSERA_ANIMATION_MS")
        if animation is not None:
            config.animation_interval = animation

        config.log_file = env.get("TESSERA_LOG_FILE", "")
        level = env.get("TESSERA_LOG_LEVEL", "").upper()
        if level:
            if isinstance(logging.getLevelName(level), int):
                config.log_level = level
            else:
                logger.warning("ignoring unknown TESSERA_LOG_LEVEL=%r", level)
        config.write_log_path = env.get("TESSERA_WRITE_LOG", "")
        return config


def _milliseconds(env: Mapping[str, str], name: str) -> float | None:
    raw = env.get(name)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning("ignoring non-numeric %s=%r", name, raw)
        return None
    if value <= 0:
        logger.warning("ignoring non-positive %s=%r", name, raw)
        return None
    return value / 1000.0


def configure_logging(config: RuntimeConfig) -> None:
    """Send log records to ``config.log_file``.

    Stdout belongs to the UI, so nothing is configured without a log file.
    """
    if not config.log_file:
        return
    logging.basicConfig(
        filename=config.log_file,
        level=getattr(logging, config.log_level.upper(), logging.WARNING),
        format=LOG_FORMAT,
    )
