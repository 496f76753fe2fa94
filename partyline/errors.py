"""Centralized exception hierarchy for Partyline.

Configuration and provider errors are raised. Session errors are usually
*returned* inside an orchestrator ``Result`` so the calling layer can map
them to a response without unwinding the stack; ``to_dict`` gives the
shape used for that mapping.
"""

from __future__ import annotations

from typing import Any, Optional


class PartylineError(Exception):
    """Base exception for all Partyline errors.

    Attributes:
        message: Human-readable error message.
        code: Optional error code for programmatic handling.
        details: Optional dictionary with additional error context.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(PartylineError):
    """Raised when there's a configuration problem."""
    pass


class MissingAPIKeyError(ConfigurationError):
    """Raised when a required API key is not configured."""

    def __init__(self, provider: str):
        super().__init__(
            message=f"API key for {provider} is not configured",
            code="MISSING_API_KEY",
            details={"provider": provider},
        )


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid configuration for '{field}': {reason}",
            code="INVALID_CONFIG",
            details={"field": field, "value": str(value)[:100], "reason": reason},
        )


# =============================================================================
# Model (Completion Provider) Errors
# =============================================================================

class ModelError(PartylineError):
    """Base exception for completion provider errors.

    ``retryable`` tells the provider retry loop whether another attempt
    could succeed.
    """

    retryable = False

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if model:
            details["model"] = model
        super().__init__(message, code, details)


class APIError(ModelError):
    """Raised when an API call fails."""

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        details = {}
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, model, "API_ERROR", details)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        # Unknown status means a transport failure
        return self.status_code is None or self.status_code >= 500 or self.status_code in (408, 409)


class RateLimitError(ModelError):
    """Raised when the provider rate limit is exceeded."""

    retryable = True

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        details = {}
        if retry_after:
            details["retry_after_seconds"] = retry_after
        super().__init__(message, model, "RATE_LIMIT", details)
        self.retry_after = retry_after


class AuthenticationError(ModelError):
    """Raised when provider authentication fails."""

    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message, model, "AUTH_ERROR")


# =============================================================================
# Catalog Errors
# =============================================================================

class CatalogError(PartylineError):
    """Base exception for persona catalog errors."""
    pass


class PersonaLoadError(CatalogError):
    """Raised when a persona file exists but cannot be parsed."""

    def __init__(self, agent_id: str, reason: str):
        super().__init__(
            message=f"Could not load persona '{agent_id}': {reason}",
            code="PERSONA_LOAD_ERROR",
            details={"agent_id": agent_id, "reason": reason},
        )


# =============================================================================
# Session Errors
# =============================================================================

class SessionError(PartylineError):
    """Base exception for party session errors."""
    pass


class SessionNotFoundError(SessionError):
    """The referenced session does not exist."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session '{session_id}' not found",
            code="SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class SessionForbiddenError(SessionError):
    """The session exists but belongs to another user."""

    def __init__(self, session_id: str, user_id: str):
        super().__init__(
            message=f"Session '{session_id}' does not belong to this user",
            code="SESSION_FORBIDDEN",
            details={"session_id": session_id, "user_id": user_id},
        )


class SessionStateError(SessionError):
    """The session is not in a state that allows the operation."""

    def __init__(self, session_id: str, state: str, operation: str):
        super().__init__(
            message=f"Cannot {operation} session '{session_id}' while it is {state}",
            code="SESSION_STATE",
            details={"session_id": session_id, "state": state, "operation": operation},
        )


class InvalidPartyConfigError(SessionError):
    """A start/continue/update request is malformed."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            message=f"Invalid party request for '{field}': {reason}",
            code="INVALID_PARTY_CONFIG",
            details={"field": field, "reason": reason},
        )
