"""Tests for the exception hierarchy."""

import pytest

from partyline.errors import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    InvalidConfigError,
    InvalidPartyConfigError,
    MissingAPIKeyError,
    ModelError,
    PartylineError,
    PersonaLoadError,
    RateLimitError,
    SessionError,
    SessionForbiddenError,
    SessionNotFoundError,
    SessionStateError,
)


class TestPartylineError:
    """Tests for the base error."""

    def test_str_with_code(self) -> None:
        error = PartylineError("broken", code="X")
        assert str(error) == "[X] broken"

    def test_str_without_code(self) -> None:
        assert str(PartylineError("broken")) == "broken"

    def test_to_dict(self) -> None:
        error = PartylineError("broken", code="X", details={"a": 1})
        assert error.to_dict() == {
            "error_type": "PartylineError",
            "message": "broken",
            "code": "X",
            "details": {"a": 1},
        }


class TestHierarchy:
    """Errors can be caught by their family."""

    @pytest.mark.parametrize(
        "error, family",
        [
            (MissingAPIKeyError("claude"), ConfigurationError),
            (InvalidConfigError("provider.name", "x", "bad"), ConfigurationError),
            (APIError("boom"), ModelError),
            (RateLimitError("slow down"), ModelError),
            (AuthenticationError("nope"), ModelError),
            (SessionNotFoundError("s1"), SessionError),
            (SessionForbiddenError("s1", "u2"), SessionError),
            (SessionStateError("s1", "paused", "continue"), SessionError),
            (InvalidPartyConfigError("topic", "required"), SessionError),
            (PersonaLoadError("bob", "bad yaml"), PartylineError),
        ],
    )
    def test_families(self, error: PartylineError, family: type) -> None:
        assert isinstance(error, family)
        assert isinstance(error, PartylineError)


class TestSessionErrors:
    """Tests for session error payloads."""

    def test_not_found(self) -> None:
        error = SessionNotFoundError("abc")
        assert error.code == "SESSION_NOT_FOUND"
        assert error.details == {"session_id": "abc"}
        assert "abc" in error.message

    def test_forbidden(self) -> None:
        error = SessionForbiddenError("abc", "mallory")
        assert error.code == "SESSION_FORBIDDEN"
        assert error.details["user_id"] == "mallory"

    def test_state(self) -> None:
        error = SessionStateError("abc", "paused", "continue")
        assert error.message == "Cannot continue session 'abc' while it is paused"

    def test_invalid_party_config(self) -> None:
        error = InvalidPartyConfigError("agent_ids", "too few")
        assert error.details == {"field": "agent_ids", "reason": "too few"}


class TestModelErrors:
    """Tests for provider error details."""

    def test_api_error_status_code(self) -> None:
        error = APIError("boom", model="gpt-4o", status_code=502)
        assert error.status_code == 502
        assert error.details == {"model": "gpt-4o", "status_code": 502}

    def test_rate_limit_retry_after(self) -> None:
        error = RateLimitError("slow", retry_after=2.5)
        assert error.retry_after == 2.5
        assert error.code == "RATE_LIMIT"

    def test_invalid_config_truncates_value(self) -> None:
        error = InvalidConfigError("field", "x" * 500, "too long")
        assert len(error.details["value"]) == 100
