"""Utility functions for Partyline."""

from .logging import (
    LogCapture,
    SessionLoggerAdapter,
    disable_logging,
    get_logger,
    session_logger,
    setup_logging,
)

__all__ = [
    "LogCapture",
    "SessionLoggerAdapter",
    "disable_logging",
    "get_logger",
    "session_logger",
    "setup_logging",
]
