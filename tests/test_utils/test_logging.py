"""Tests for logging helpers."""

import logging

from rich.logging import RichHandler

from partyline.utils.logging import (
    LogCapture,
    disable_logging,
    get_logger,
    session_logger,
    setup_logging,
)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_only(self):
        logger = setup_logging(level=logging.WARNING)
        assert logger.name == "partyline"
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.handlers[0].level == logging.WARNING
        disable_logging()

    def test_verbose_enables_debug(self):
        logger = setup_logging(verbose=True)
        assert logger.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.DEBUG
        setup_logging()
        assert logging.getLogger("httpx").level == logging.WARNING
        disable_logging()

    def test_log_file(self, temp_dir):
        log_file = temp_dir / "logs" / "party.log"
        logger = setup_logging(log_file=log_file)

        get_logger("test").debug("written to file")
        for handler in logger.handlers:
            handler.flush()

        assert "written to file" in log_file.read_text(encoding="utf-8")
        for handler in logger.handlers:
            handler.close()
        disable_logging()


class TestSessionLogger:
    """Tests for the session-prefixed adapter."""

    def test_prefix_is_short_session_id(self):
        with LogCapture() as capture:
            session_logger(get_logger("engine"), "0123456789abcdef").info("Round 1")
        assert capture.messages == ["[party 01234567] Round 1"]

    def test_capture_filters_by_logger(self):
        with LogCapture("partyline.session") as capture:
            get_logger("session.store").info("kept")
            get_logger("orchestrator").info("dropped")
        assert capture.has_message("kept")
        assert not capture.has_message("dropped")
