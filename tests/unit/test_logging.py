"""Unit tests for the logging configuration module."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest
import structlog

from hubwatch.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    """Reset root logger and structlog state around each test."""
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level
    logging.root.handlers.clear()
    yield
    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)
    structlog.reset_defaults()


def _settings(level: str = "WARNING", development: bool = False) -> MagicMock:
    settings = MagicMock()
    settings.log_level = level
    settings.is_development = development
    return settings


class TestSetupLogging:
    def test_uses_configured_level(self) -> None:
        with patch("hubwatch.logging.get_settings", return_value=_settings("ERROR")):
            with patch("hubwatch.logging.logging.basicConfig") as mock_basic:
                setup_logging()

        assert mock_basic.call_args.kwargs["level"] == logging.ERROR

    def test_verbose_forces_debug(self) -> None:
        with patch("hubwatch.logging.get_settings", return_value=_settings("ERROR")):
            with patch("hubwatch.logging.logging.basicConfig") as mock_basic:
                setup_logging(verbose=True)

        assert mock_basic.call_args.kwargs["level"] == logging.DEBUG

    def test_invalid_level_defaults_to_info(self) -> None:
        with patch("hubwatch.logging.get_settings", return_value=_settings("NONEXISTENT")):
            with patch("hubwatch.logging.logging.basicConfig") as mock_basic:
                setup_logging()

        assert mock_basic.call_args.kwargs["level"] == logging.INFO

    def test_quietens_httpx(self) -> None:
        with patch("hubwatch.logging.get_settings", return_value=_settings("DEBUG")):
            setup_logging()

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_development_uses_console_renderer(self) -> None:
        with patch("hubwatch.logging.get_settings", return_value=_settings(development=True)):
            setup_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_production_uses_json_renderer(self) -> None:
        with patch("hubwatch.logging.get_settings", return_value=_settings()):
            setup_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)


class TestGetLogger:
    def test_returns_usable_logger(self) -> None:
        log = get_logger("hubwatch.test")
        assert log is not None
        assert hasattr(log, "info")
