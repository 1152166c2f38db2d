"""Tests for the logging setup module."""

import logging

import pytest

from src.utils.logger import get_logger, log_duration, setup_logging


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_creates_handler(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("DEBUG")
        assert len(root.handlers) >= 1
        assert root.level == logging.DEBUG

        # Cleanup
        root.handlers.clear()

    def test_setup_idempotent(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("INFO")
        count = len(root.handlers)
        setup_logging("INFO")
        assert len(root.handlers) == count

        root.handlers.clear()

    def test_setup_invalid_level_defaults_to_info(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("NONEXISTENT")
        assert root.level == logging.INFO

        root.handlers.clear()


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("test.module")
        assert logger.name == "test.module"
        assert isinstance(logger, logging.Logger)

    def test_same_name_returns_same_logger(self) -> None:
        logger1 = get_logger("test.same")
        logger2 = get_logger("test.same")
        assert logger1 is logger2


class TestLogDuration:
    """Tests for the log_duration timer."""

    def test_logs_elapsed_time(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("test.timer")
        with caplog.at_level(logging.INFO, logger="test.timer"):
            with log_duration(logger, "Filtering") as timing:
                pass
        assert timing["elapsed_s"] >= 0.0
        assert "Filtering took" in caplog.text

    def test_no_report_on_error(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("test.timer.error")
        with caplog.at_level(logging.INFO, logger="test.timer.error"):
            with pytest.raises(RuntimeError):
                with log_duration(logger, "Failing step"):
                    raise RuntimeError("boom")
        assert "Failing step" not in caplog.text
