"""Logging configuration for Partyline."""

import logging
from pathlib import Path
from typing import Any, MutableMapping, Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "partyline"

LOG_FORMAT = "%(message)s"
LOG_DATE_FORMAT = "[%X]"
FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_DIR = Path.home() / ".partyline" / "logs"

# SDK loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "openai")


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False,
) -> logging.Logger:
    """Set up logging with a Rich handler for console output.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path to a log file, always written at DEBUG
        verbose: Enable debug output, source paths and locals in tracebacks

    Returns:
        The configured ``partyline`` logger
    """
    if verbose:
        level = logging.DEBUG

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=verbose,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
    )
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the ``partyline`` namespace."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)


class SessionLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every record with the party session id."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        session_id = (self.extra or {}).get("session_id", "-")
        return f"[party {str(session_id)[:8]}] {msg}", kwargs


def session_logger(logger: logging.Logger, session_id: str) -> SessionLoggerAdapter:
    """Wrap a module logger so its messages carry a session id."""
    return SessionLoggerAdapter(logger, {"session_id": session_id})


def disable_logging() -> None:
    """Disable all logging (useful for testing)."""
    logging.getLogger(ROOT_LOGGER).handlers.clear()
    logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


class LogCapture:
    """Context manager to capture log messages (useful for testing)."""

    def __init__(self, logger_name: str = ROOT_LOGGER, level: int = logging.DEBUG):
        self.logger_name = logger_name
        self.level = level
        self.records: list[logging.LogRecord] = []
        self._handler: Optional[logging.Handler] = None
        self._previous_level: Optional[int] = None

    def __enter__(self) -> "LogCapture":
        logger = logging.getLogger(self.logger_name)
        self._handler = CaptureHandler(self.records)
        self._handler.setLevel(self.level)
        self._previous_level = logger.level
        logger.setLevel(self.level)
        logger.addHandler(self._handler)
        return self

    def __exit__(self, *args) -> None:
        logger = logging.getLogger(self.logger_name)
        if self._handler:
            logger.removeHandler(self._handler)
        if self._previous_level is not None:
            logger.setLevel(self._previous_level)

    @property
    def messages(self) -> list[str]:
        """Get captured log messages."""
        return [record.getMessage() for record in self.records]

    def has_message(self, substring: str) -> bool:
        """Check if any captured message contains the substring."""
        return any(substring in msg for msg in self.messages)


class CaptureHandler(logging.Handler):
    """Handler that captures log records to a list."""

    def __init__(self, records: list[logging.LogRecord]):
        super().__init__()
        self.records = records

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)
