"""Tests for tessera.tui.config -- environment overrides and logging setup."""

from __future__ import annotations

import logging

import pytest

from tessera.tui import config as config_module
from tessera.tui.config import LOG_FORMAT, RuntimeConfig, configure_logging


class TestRuntimeConfigFromEnv:
    """TESSERA_* variables."""

    def test_defaults(self) -> None:
        config = RuntimeConfig.from_env({})
        assert config == RuntimeConfig()
        assert config.tick_interval == pytest.approx(0.04)

    def test_millisecond_values(self) -> None:
        config = RuntimeConfig.from_env({"TESSERA_TICK_MS": "10", "TESSERA_ANIMATION_MS": "250"})
        assert config.tick_interval == pytest.approx(0.01)
        assert config.animation_interval == pytest.approx(0.25)

    def test_log_settings(self) -> None:
        config = RuntimeConfig.from_env(
            {
                "TESSERA_LOG_FILE": "/tmp/tui.log",
                "TESSERA_LOG_LEVEL": "debug",
                "TESSERA_WRITE_LOG": "/tmp/writes.log",
            }
        )
        assert config.log_file == "/tmp/tui.log"
        assert config.log_level == "DEBUG"
        assert config.write_log_path == "/tmp/writes.log"

    @pytest.mark.parametrize("raw", ["fast", "0", "-5"])
    def test_invalid_interval_keeps_default(self, raw: str, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="tessera.tui.config"):
            config = RuntimeConfig.from_env({"TESSERA_TICK_MS": raw})
        assert config.tick_interval == pytest.approx(0.04)
        assert "TESSERA_TICK_MS" in caplog.text

    def test_unknown_level_keeps_default(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="tessera.tui.config"):
            config = RuntimeConfig.from_env({"TESSERA_LOG_LEVEL": "chatty"})
        assert config.log_level == "WARNING"
        assert "TESSERA_LOG_LEVEL" in caplog.text

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TESSERA_TICK_MS", "20")
        assert RuntimeConfig.from_env().tick_interval == pytest.approx(0.02)


class TestConfigureLogging:
    """Logging goes to a file or nowhere."""

    def test_no_file_configures_nothing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict] = []
        monkeypatch.setattr(config_module.logging, "basicConfig", lambda **kw: calls.append(kw))
        configure_logging(RuntimeConfig())
        assert calls == []

    def test_file_configuration(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        calls: list[dict] = []
        monkeypatch.setattr(config_module.logging, "basicConfig", lambda **kw: calls.append(kw))
        path = str(tmp_path / "tui.log")
        configure_logging(RuntimeConfig(log_file=path, log_level="DEBUG"))
        assert calls == [{"filename": path, "level": logging.DEBUG, "format": LOG_FORMAT}]
