"""Orchestrator event types.

Events are yielded by the orchestrator while a round runs so a front end
can render each contribution as soon as it is stored.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from partyline.errors import PartylineError
from partyline.session.models import PartyMessage, PartySession


class EventType(Enum):
    """Types of events emitted by the orchestrator."""

    # Request outcome
    REJECTED = auto()  # Request failed validation or access checks; nothing ran
    SESSION_READY = auto()  # Session created or loaded

    # Round progress
    ROUND_START = auto()  # A new turn number begins
    USER_MESSAGE = auto()  # The user's message was appended
    MODERATOR_INTRO = auto()  # Moderator opened the discussion
    MODERATOR_DIRECTION = auto()  # Moderator handed the floor to someone
    SPEAKER_START = auto()  # A participant is about to be invoked
    RESPONSE_COMPLETE = auto()  # A participant's message was appended
    MODERATOR_SUMMARY = auto()  # Moderator summarized the round

    # Completion/error
    ERROR = auto()  # A speaker failed; its error text was stored as the message
    ROUND_COMPLETE = auto()  # Everyone scheduled for the round is done


@dataclass
class OrchestratorEvent:
    """Event emitted by the orchestrator.

    The type field determines which other fields are populated:
    - REJECTED: failure
    - SESSION_READY: session, skipped
    - ROUND_START: session_id, turn_number, speakers
    - USER_MESSAGE / MODERATOR_* / RESPONSE_COMPLETE: agent_id, message
    - SPEAKER_START: agent_id, turn_number
    - ERROR: agent_id, error
    - ROUND_COMPLETE: session, responses
    """

    type: EventType
    session_id: Optional[str] = None
    agent_id: Optional[str] = None
    turn_number: Optional[int] = None
    message: Optional[PartyMessage] = None
    session: Optional[PartySession] = None
    error: Optional[str] = None
    failure: Optional[PartylineError] = None
    speakers: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    responses: list[PartyMessage] = field(default_factory=list)

    @classmethod
    def rejected(cls, failure: PartylineError) -> "OrchestratorEvent":
        return cls(type=EventType.REJECTED, failure=failure, error=failure.message)

    @classmethod
    def session_ready(
        cls, session: PartySession, skipped: Optional[list[str]] = None
    ) -> "OrchestratorEvent":
        return cls(
            type=EventType.SESSION_READY,
            session_id=session.id,
            session=session,
            skipped=list(skipped or []),
        )

    @classmethod
    def round_start(
        cls, session_id: str, turn_number: int, speakers: list[str]
    ) -> "OrchestratorEvent":
        return cls(
            type=EventType.ROUND_START,
            session_id=session_id,
            turn_number=turn_number,
            speakers=list(speakers),
        )

    @classmethod
    def speaker_start(
        cls, session_id: str, agent_id: str, turn_number: int
    ) -> "OrchestratorEvent":
        return cls(
            type=EventType.SPEAKER_START,
            session_id=session_id,
            agent_id=agent_id,
            turn_number=turn_number,
        )

    @classmethod
    def message_event(
        cls, event_type: EventType, session_id: str, message: PartyMessage
    ) -> "OrchestratorEvent":
        """USER_MESSAGE, MODERATOR_* or RESPONSE_COMPLETE for a stored message."""
        return cls(
            type=event_type,
            session_id=session_id,
            agent_id=message.agent_id,
            turn_number=message.turn_number,
            message=message,
        )

    @classmethod
    def error_event(
        cls, session_id: str, agent_id: str, error: str
    ) -> "OrchestratorEvent":
        return cls(
            type=EventType.ERROR,
            session_id=session_id,
            agent_id=agent_id,
            error=error,
        )

    @classmethod
    def round_complete(
        cls, session: PartySession, responses: list[PartyMessage]
    ) -> "OrchestratorEvent":
        return cls(
            type=EventType.ROUND_COMPLETE,
            session_id=session.id,
            turn_number=session.current_turn,
            session=session,
            responses=list(responses),
        )
