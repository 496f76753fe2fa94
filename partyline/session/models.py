"""Data models for party sessions."""

import logging
import time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from partyline.agents.registry import AgentCategory
from partyline.config.settings import PartyConfigDefaults
from partyline.models.types import MessageRole

logger = logging.getLogger(__name__)

DEFAULT_MODERATOR_ID = "aurora-forester"
DEFAULT_MAX_TURNS = 5


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


class TurnOrdering(str, Enum):
    """How speakers are chosen for a round."""

    ROUND_ROBIN = "round-robin"
    DYNAMIC = "dynamic"
    MODERATOR_DIRECTED = "moderator-directed"


class SessionState(str, Enum):
    """Lifecycle state of a party session."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class MessageMetadata(BaseModel):
    """Extra facts attached to a party message."""

    model_config = ConfigDict(frozen=True)

    mentions: list[str] = Field(default_factory=list)
    is_moderator_intro: bool = False
    is_moderator_summary: bool = False
    relevance_score: Optional[float] = None


class Participant(BaseModel):
    """A persona taking part in a session."""

    agent_id: str
    name: str
    category: AgentCategory
    icon: str = ""
    is_moderator: bool = False
    turn_count: int = 0

    @property
    def label(self) -> str:
        return f"{self.icon} {self.name}".strip()


class PartyMessage(BaseModel):
    """A message in a party conversation.

    Messages are frozen; the store fills in ``id`` and ``timestamp`` when
    it appends one.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    role: MessageRole
    content: str
    agent_id: Optional[str] = None
    timestamp: int = 0
    turn_number: int = 0
    metadata: Optional[MessageMetadata] = None

    @classmethod
    def user(cls, content: str, turn_number: int = 0) -> "PartyMessage":
        """Create a user message."""
        return cls(role=MessageRole.USER, content=content, turn_number=turn_number)

    @classmethod
    def agent(
        cls,
        agent_id: str,
        content: str,
        turn_number: int,
        metadata: Optional[MessageMetadata] = None,
    ) -> "PartyMessage":
        """Create an assistant message attributed to a participant."""
        return cls(
            role=MessageRole.ASSISTANT,
            content=content,
            agent_id=agent_id,
            turn_number=turn_number,
            metadata=metadata,
        )

    @property
    def is_moderator_intro(self) -> bool:
        return bool(self.metadata and self.metadata.is_moderator_intro)

    @property
    def is_moderator_summary(self) -> bool:
        return bool(self.metadata and self.metadata.is_moderator_summary)

    @property
    def mentions(self) -> list[str]:
        return list(self.metadata.mentions) if self.metadata else []


class PartyConfig(BaseModel):
    """Per-session party configuration.

    An unrecognized ``turn_ordering`` falls back to round-robin instead of
    failing validation.
    """

    category_filter: list[AgentCategory] = Field(default_factory=list)
    turn_ordering: TurnOrdering = TurnOrdering.ROUND_ROBIN
    moderator_id: Optional[str] = DEFAULT_MODERATOR_ID
    max_turns: int = Field(default=DEFAULT_MAX_TURNS, ge=1)

    @field_validator("turn_ordering", mode="before")
    @classmethod
    def validate_turn_ordering(cls, v: Any) -> Any:
        if isinstance(v, TurnOrdering):
            return v
        try:
            return TurnOrdering(str(v).lower())
        except ValueError:
            logger.warning(f"Unknown turn ordering {v!r}, using round-robin")
            return TurnOrdering.ROUND_ROBIN

    @field_validator("moderator_id")
    @classmethod
    def validate_moderator_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip().lower()

    @classmethod
    def from_defaults(cls, defaults: Optional[PartyConfigDefaults] = None) -> "PartyConfig":
        """Build the starting config from the ``party`` settings section."""
        if defaults is None:
            return cls()
        return cls(
            turn_ordering=defaults.turn_ordering,
            moderator_id=defaults.moderator_id,
            max_turns=defaults.max_turns,
        )

    def merged(self, overrides: Optional[dict[str, Any]] = None) -> "PartyConfig":
        """Return a new config with ``overrides`` applied and validated."""
        data = self.model_dump()
        data.update(overrides or {})
        return PartyConfig.model_validate(data)


class PartySession(BaseModel):
    """Complete state of one party discussion."""

    id: str
    owner_id: str
    config: PartyConfig
    topic: str
    participants: list[Participant] = Field(default_factory=list)
    history: list[PartyMessage] = Field(default_factory=list)
    current_turn: int = 0
    current_speaker_index: int = 0
    state: SessionState = SessionState.ACTIVE
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    context: Optional[dict[str, Any]] = None

    @property
    def participant_ids(self) -> list[str]:
        return [p.agent_id for p in self.participants]

    @property
    def speakers(self) -> list[Participant]:
        """Participants in the regular speaking rotation."""
        return [p for p in self.participants if not p.is_moderator]

    @property
    def moderator(self) -> Optional[Participant]:
        for participant in self.participants:
            if participant.is_moderator:
                return participant
        return None

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    def get_participant(self, agent_id: str) -> Optional[Participant]:
        key = agent_id.lower()
        for participant in self.participants:
            if participant.agent_id == key:
                return participant
        return None

    def summary(self) -> "SessionSummary":
        return SessionSummary(
            id=self.id,
            topic=self.topic,
            state=self.state,
            participants=[p.agent_id for p in self.participants],
            moderator_id=self.moderator.agent_id if self.moderator else None,
            message_count=len(self.history),
            current_turn=self.current_turn,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class SessionSummary(BaseModel):
    """Lightweight view of a session for listings."""

    id: str
    topic: str
    state: SessionState
    participants: list[str]
    moderator_id: Optional[str] = None
    message_count: int = 0
    current_turn: int = 0
    created_at: int
    updated_at: int


class CreatedSession(BaseModel):
    """A newly created session plus the requested ids that did not join."""

    session: PartySession
    skipped: list[str] = Field(default_factory=list)
