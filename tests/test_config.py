"""Tests for aumai_sharedoc.config and aumai_sharedoc.logging_config."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import pytest

from aumai_sharedoc.config import DEFAULT_KEYS_DIR, SharedocConfig
from aumai_sharedoc.logging_config import LOGGER_NAME, setup_logging
from aumai_sharedoc.validation import ES5

# ===========================================================================
# SharedocConfig
# ===========================================================================


class TestSharedocConfig:
    def test_defaults(self) -> None:
        config = SharedocConfig()
        assert config.keys_dir == DEFAULT_KEYS_DIR
        assert config.log_level == "INFO"
        assert config.default_format == ES5

    def test_from_env_without_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in (
            "SHAREDOC_KEYS_DIR",
            "SHAREDOC_LOG_LEVEL",
            "SHAREDOC_DEFAULT_FORMAT",
            "SHAREDOC_LOG_FILE",
        ):
            monkeypatch.delenv(var, raising=False)
        assert SharedocConfig.from_env() == SharedocConfig()

    def test_from_env_reads_variables(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SHAREDOC_KEYS_DIR", str(tmp_path))
        monkeypatch.setenv("SHAREDOC_LOG_LEVEL", "debug")
        monkeypatch.setenv("SHAREDOC_DEFAULT_FORMAT", "es.6")
        monkeypatch.setenv("SHAREDOC_LOG_FILE", str(tmp_path / "sharedoc.log"))
        config = SharedocConfig.from_env()
        assert config.keys_dir == str(tmp_path)
        assert config.log_level == "DEBUG"
        assert config.default_format == "es.6"
        assert config.log_file == str(tmp_path / "sharedoc.log")

    def test_config_is_frozen(self) -> None:
        config = SharedocConfig()
        with pytest.raises(AttributeError):
            config.log_level = "DEBUG"  # type: ignore[misc]

    def test_resolve_keys_dir_expands_home(self) -> None:
        resolved = SharedocConfig().resolve_keys_dir()
        assert "~" not in str(resolved)
        assert resolved.parts[-2:] == ("aumai-sharedoc", "keys")

    def test_resolve_keys_dir_with_name(self, tmp_path: Path) -> None:
        config = SharedocConfig(keys_dir=str(tmp_path))
        assert config.resolve_keys_dir("bob") == tmp_path / "bob"


# ===========================================================================
# setup_logging
# ===========================================================================


class TestSetupLogging:
    def test_returns_package_logger(self) -> None:
        logger = setup_logging("WARNING")
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.WARNING

    def test_console_handler_only_by_default(self) -> None:
        logger = setup_logging()
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_level_is_case_insensitive(self) -> None:
        assert setup_logging("debug").level == logging.DEBUG

    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "sharedoc.log"
        logger = setup_logging("INFO", log_file=str(log_file))
        rotating = [
            h
            for h in logger.handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(rotating) == 1
        logging.getLogger(f"{LOGGER_NAME}.core").info("written to file")
        rotating[0].flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
        rotating[0].close()

    def test_unknown_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging("LOUD")
