"""Session storage for party discussions.

``SessionStore`` is the narrow mutation API the orchestrator goes through;
``InMemorySessionStore`` keeps sessions in a dict for the lifetime of the
process. Reads hand out copies, so the stored session only changes through
the methods below.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional, Union

from pydantic import ValidationError

from partyline.agents.registry import PersonaCatalog, get_default_catalog
from partyline.errors import InvalidPartyConfigError

from .models import (
    CreatedSession,
    Participant,
    PartyConfig,
    PartyMessage,
    PartySession,
    SessionState,
    now_ms,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_MS = 24 * 60 * 60 * 1000

ConfigInput = Union[PartyConfig, dict[str, Any], None]


def resolve_config(base: PartyConfig, overrides: ConfigInput) -> PartyConfig:
    """Apply overrides to a base config.

    Raises:
        InvalidPartyConfigError: If the merged config does not validate
    """
    if overrides is None:
        return base.model_copy(deep=True)
    if isinstance(overrides, PartyConfig):
        return overrides.model_copy(deep=True)
    try:
        return base.merged(overrides)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or "config"
        raise InvalidPartyConfigError(field, error.get("msg", str(e))) from e


def build_participants(
    catalog: PersonaCatalog,
    agent_ids: list[str],
    config: PartyConfig,
) -> tuple[list[Participant], list[str]]:
    """Resolve requested ids into participants.

    Unknown ids, repeats and agents outside ``config.category_filter`` are
    left out and returned as the second element.
    """
    participants: list[Participant] = []
    skipped: list[str] = []
    seen: set[str] = set()
    allowed = set(config.category_filter)

    for raw_id in agent_ids:
        agent_id = raw_id.strip().lower()
        agent = catalog.resolve(agent_id) if agent_id else None
        if agent is None or agent.id in seen:
            skipped.append(raw_id)
            continue
        if allowed and agent.category not in allowed:
            skipped.append(raw_id)
            continue
        seen.add(agent.id)
        participants.append(
            Participant(
                agent_id=agent.id,
                name=agent.name,
                category=agent.category,
                icon=agent.icon,
                is_moderator=agent.id == config.moderator_id,
            )
        )

    return participants, skipped


class SessionStore(ABC):
    """Abstract session storage.

    Every method that takes a session id returns ``None`` (or ``False``)
    for an unknown session instead of raising.
    """

    @abstractmethod
    async def create_session(
        self,
        owner_id: str,
        agent_ids: list[str],
        topic: str,
        config: ConfigInput = None,
        context: Optional[dict[str, Any]] = None,
    ) -> CreatedSession:
        """Create an active session from the resolvable agent ids."""
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[PartySession]:
        ...

    @abstractmethod
    async def list_sessions(self, owner_id: str) -> list[PartySession]:
        ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        ...

    @abstractmethod
    async def add_message(self, session_id: str, message: PartyMessage) -> Optional[PartyMessage]:
        """Append a message, returning the stored copy with id and timestamp."""
        ...

    @abstractmethod
    async def update_config(
        self, session_id: str, overrides: dict[str, Any]
    ) -> Optional[PartySession]:
        ...

    @abstractmethod
    async def set_state(self, session_id: str, state: SessionState) -> Optional[PartySession]:
        ...

    @abstractmethod
    async def advance_turn(
        self, session_id: str, turn: int, speaker_index: int
    ) -> Optional[PartySession]:
        ...

    @abstractmethod
    async def sweep_idle(self, max_age_ms: int = DEFAULT_MAX_AGE_MS) -> int:
        """Remove sessions idle for longer than ``max_age_ms``."""
        ...

    @abstractmethod
    def lock(self, session_id: str) -> Any:
        """Async context manager serializing rounds of one session."""
        ...


class InMemorySessionStore(SessionStore):
    """Dict-backed session store with one asyncio lock per session."""

    def __init__(
        self,
        catalog: Optional[PersonaCatalog] = None,
        default_config: Optional[PartyConfig] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.catalog = catalog or get_default_catalog()
        self.default_config = default_config or PartyConfig()
        self._clock = clock
        self._sessions: dict[str, PartySession] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _copy(self, session: PartySession) -> PartySession:
        return session.model_copy(deep=True)

    async def create_session(
        self,
        owner_id: str,
        agent_ids: list[str],
        topic: str,
        config: ConfigInput = None,
        context: Optional[dict[str, Any]] = None,
    ) -> CreatedSession:
        session_config = resolve_config(self.default_config, config)
        participants, skipped = build_participants(self.catalog, agent_ids, session_config)
        if skipped:
            logger.info(f"Skipped agents not joining the party: {', '.join(skipped)}")

        now = self._clock()
        session = PartySession(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            config=session_config,
            topic=topic,
            participants=participants,
            created_at=now,
            updated_at=now,
            context=context,
        )
        self._sessions[session.id] = session
        logger.debug(f"Created session {session.id} with {len(participants)} participants")
        return CreatedSession(session=self._copy(session), skipped=skipped)

    async def get_session(self, session_id: str) -> Optional[PartySession]:
        session = self._sessions.get(session_id)
        return self._copy(session) if session is not None else None

    async def list_sessions(self, owner_id: str) -> list[PartySession]:
        return [
            self._copy(s) for s in self._sessions.values() if s.owner_id == owner_id
        ]

    async def delete_session(self, session_id: str) -> bool:
        self._locks.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None

    async def session_count(self) -> int:
        return len(self._sessions)

    async def clear(self) -> None:
        """Drop every session."""
        self._sessions.clear()
        self._locks.clear()

    async def add_message(self, session_id: str, message: PartyMessage) -> Optional[PartyMessage]:
        session = self._sessions.get(session_id)
        if session is None:
            return None

        participant = None
        if message.agent_id:
            participant = session.get_participant(message.agent_id)
            if participant is None:
                logger.warning(
                    f"Rejected message from {message.agent_id}: not in session {session_id}"
                )
                return None

        if session.history and message.turn_number < session.history[-1].turn_number:
            logger.warning(
                f"Rejected message for turn {message.turn_number} in session "
                f"{session_id}: history is already at turn {session.history[-1].turn_number}"
            )
            return None

        now = self._clock()
        stored = message.model_copy(update={
            "id": str(uuid.uuid4()),
            "timestamp": now,
            "agent_id": participant.agent_id if participant else None,
        })
        session.history.append(stored)
        if participant is not None:
            participant.turn_count += 1
        session.updated_at = now
        return stored

    async def update_config(
        self, session_id: str, overrides: dict[str, Any]
    ) -> Optional[PartySession]:
        """Merge config overrides.

        Raises:
            InvalidPartyConfigError: If the merged config does not validate
        """
        session = self._sessions.get(session_id)
        if session is None:
            return None

        session.config = resolve_config(session.config, overrides)
        if "moderator_id" in overrides:
            for participant in session.participants:
                participant.is_moderator = participant.agent_id == session.config.moderator_id
        session.updated_at = self._clock()
        return self._copy(session)

    async def set_state(self, session_id: str, state: SessionState) -> Optional[PartySession]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        session.state = state
        session.updated_at = self._clock()
        return self._copy(session)

    async def advance_turn(
        self, session_id: str, turn: int, speaker_index: int
    ) -> Optional[PartySession]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        session.current_turn = turn
        session.current_speaker_index = speaker_index
        session.updated_at = self._clock()
        return self._copy(session)

    def _is_busy(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    async def sweep_idle(self, max_age_ms: int = DEFAULT_MAX_AGE_MS) -> int:
        now = self._clock()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if now - session.updated_at > max_age_ms
            and not self._is_busy(session_id)
        ]
        for session_id in expired:
            await self.delete_session(session_id)
        if expired:
            logger.info(f"Swept {len(expired)} idle session(s)")
        return len(expired)

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            yield
        if session_id not in self._sessions and not lock.locked():
            self._locks.pop(session_id, None)
