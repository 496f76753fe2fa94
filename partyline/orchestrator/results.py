"""Typed results returned by orchestrator operations.

Not-found, forbidden and invalid requests are returned as a ``Result``
carrying the error instead of being raised.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from partyline.errors import PartylineError, SessionForbiddenError, SessionNotFoundError
from partyline.session.models import (
    Participant,
    PartyConfig,
    PartyMessage,
    PartySession,
)

T = TypeVar("T")


class ResultStatus(str, Enum):
    """Outcome category of an orchestrator operation."""

    OK = "ok"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID = "invalid"


def status_for(error: PartylineError) -> ResultStatus:
    if isinstance(error, SessionNotFoundError):
        return ResultStatus.NOT_FOUND
    if isinstance(error, SessionForbiddenError):
        return ResultStatus.FORBIDDEN
    return ResultStatus.INVALID


@dataclass
class Result(Generic[T]):
    """Value or error of an orchestrator operation."""

    status: ResultStatus
    value: Optional[T] = None
    error: Optional[PartylineError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(status=ResultStatus.OK, value=value)

    @classmethod
    def failure(cls, error: PartylineError) -> "Result[T]":
        return cls(status=status_for(error), error=error)

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.OK

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value}
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


@dataclass
class StartResult:
    """Outcome of starting a party."""

    session_id: str
    topic: str
    participants: list[Participant]
    responses: list[PartyMessage]
    total_turns: int
    config: PartyConfig
    skipped: list[str] = field(default_factory=list)


@dataclass
class ContinueResult:
    """Outcome of one more round (continue or direct)."""

    session_id: str
    responses: list[PartyMessage]
    history: list[PartyMessage]
    skipped: list[str] = field(default_factory=list)

    @classmethod
    def from_session(
        cls,
        session: PartySession,
        responses: list[PartyMessage],
        skipped: Optional[list[str]] = None,
    ) -> "ContinueResult":
        return cls(
            session_id=session.id,
            responses=list(responses),
            history=list(session.history),
            skipped=list(skipped or []),
        )
