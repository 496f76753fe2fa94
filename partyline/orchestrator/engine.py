"""Main orchestration engine for party discussions.

The PartyOrchestrator runs discussion rounds by:
1. Checking the request (ownership, session state, participants)
2. Letting the moderator open the discussion when it never has
3. Asking the turn strategy who speaks, honouring @mention handoffs
4. Invoking speakers one after another so each sees the others' replies
5. Letting the moderator summarize once everyone has spoken
6. Yielding events for UI rendering

Every mutation goes through the session store, under the session's lock.
"""

import logging
from typing import Any, AsyncIterator, Optional, Union

from partyline.agents.personas import PersonaLoader
from partyline.agents.registry import PersonaCatalog, get_default_catalog
from partyline.agents.service import AgentInvocation, AgentReply, AgentService
from partyline.config import Settings, get_settings
from partyline.errors import (
    InvalidPartyConfigError,
    PartylineError,
    SessionForbiddenError,
    SessionNotFoundError,
    SessionStateError,
)
from partyline.models.base import CompletionProvider
from partyline.models.types import Message, MessageRole
from partyline.session.models import (
    MessageMetadata,
    PartyConfig,
    PartyMessage,
    PartySession,
    SessionState,
    SessionSummary,
    TurnOrdering,
)
from partyline.session.store import (
    ConfigInput,
    InMemorySessionStore,
    SessionStore,
    build_participants,
    resolve_config,
)
from partyline.utils.logging import session_logger

from . import moderator
from .events import EventType, OrchestratorEvent
from .mentions import create_mention_metadata, get_handoff_target
from .prompts import build_party_context, format_topic_prompt, format_turn_prompt
from .results import ContinueResult, Result, StartResult
from .turns import RandomSource, get_strategy, score_participants

logger = logging.getLogger(__name__)

MIN_PARTICIPANTS = 2

HistoryItem = Union[PartyMessage, dict[str, Any]]


class PartyOrchestrator:
    """Runs multi-persona party discussions on top of a session store.

    Operations return ``Result`` objects; not-found, forbidden and invalid
    requests never raise. The ``run_*`` generators expose the same work as
    a stream of ``OrchestratorEvent`` objects.
    """

    def __init__(
        self,
        store: SessionStore,
        agent_service: AgentService,
        catalog: Optional[PersonaCatalog] = None,
        settings: Optional[Settings] = None,
        rng: Optional[RandomSource] = None,
    ):
        """Initialize the orchestrator.

        Args:
            store: Session storage
            agent_service: Invokes one persona per call
            catalog: Persona catalog used to resolve agent ids
            settings: Application settings (party defaults, dynamic jitter)
            rng: Random source for dynamic ordering jitter
        """
        self.store = store
        self.agent_service = agent_service
        self.catalog = catalog or get_default_catalog()
        self.settings = settings or get_settings()
        self.rng = rng
        self.jitter = self.settings.party.dynamic_jitter
        self.default_config = PartyConfig.from_defaults(self.settings.party)

    # ------------------------------------------------------------------
    # Access checks
    # ------------------------------------------------------------------

    async def _load_owned(
        self, owner_id: str, session_id: str
    ) -> tuple[Optional[PartySession], Optional[PartylineError]]:
        session = await self.store.get_session(session_id)
        if session is None:
            return None, SessionNotFoundError(session_id)
        if session.owner_id != owner_id:
            logger.warning(f"User {owner_id} denied access to session {session_id}")
            return None, SessionForbiddenError(session_id, owner_id)
        return session, None

    def _prepare_party(
        self, agent_ids: Optional[list[str]], topic: Optional[str], config: ConfigInput
    ) -> tuple[PartyConfig, list[str]]:
        """Validate a new party before anything is stored.

        Raises:
            InvalidPartyConfigError: If the request cannot form a party
        """
        if not topic or not topic.strip():
            raise InvalidPartyConfigError("topic", "a topic is required")
        distinct = {a.strip().lower() for a in agent_ids or [] if a and a.strip()}
        if len(distinct) < MIN_PARTICIPANTS:
            raise InvalidPartyConfigError(
                "agent_ids", f"party mode requires at least {MIN_PARTICIPANTS} agents"
            )

        session_config = resolve_config(self.default_config, config)
        participants, skipped = build_participants(self.catalog, list(agent_ids or []), session_config)
        speakers = [p for p in participants if not p.is_moderator]
        if len(participants) < MIN_PARTICIPANTS or not speakers:
            raise InvalidPartyConfigError(
                "agent_ids",
                f"need at least {MIN_PARTICIPANTS} known agents including one non-moderator",
            )
        return session_config, skipped

    # ------------------------------------------------------------------
    # Invocation helpers
    # ------------------------------------------------------------------

    def _conversation(self, session: PartySession, agent_id: str) -> list[Message]:
        """Session history as seen by ``agent_id``."""
        names = [p.name for p in session.participants]
        messages = [Message.user(format_topic_prompt(session.topic, names))]
        for item in session.history:
            if item.role == MessageRole.SYSTEM:
                messages.append(Message.system(item.content))
            elif item.role == MessageRole.USER or not item.agent_id:
                messages.append(Message.user(item.content))
            elif item.agent_id == agent_id:
                messages.append(Message.assistant(item.content))
            else:
                participant = session.get_participant(item.agent_id)
                speaker = participant.name if participant else item.agent_id
                messages.append(Message.assistant(item.content, speaker=speaker))
        return messages

    async def _invoke(
        self,
        session: PartySession,
        agent_id: str,
        prompt: str,
        context: Optional[dict[str, Any]] = None,
    ) -> AgentReply:
        merged_context = {**(session.context or {}), **(context or {})}
        invocation = AgentInvocation(
            agent_id=agent_id,
            message=prompt,
            user_id=session.owner_id,
            history=self._conversation(session, agent_id),
            context=build_party_context(session.topic, session.participant_ids, merged_context),
        )
        try:
            return await self.agent_service.invoke(invocation)
        except Exception as e:
            session_logger(logger, session.id).exception(f"Unexpected error from {agent_id}")
            return AgentReply.error(agent_id, f"Error invoking agent: {e}")

    def _metadata(self, content: str, **flags: Any) -> Optional[MessageMetadata]:
        mentions = create_mention_metadata(content, self.catalog.is_known)
        if not flags:
            return mentions
        return MessageMetadata(mentions=mentions.mentions if mentions else [], **flags)

    async def _append_reply(
        self,
        session_id: str,
        reply: AgentReply,
        turn_number: int,
        **flags: Any,
    ) -> Optional[PartyMessage]:
        message = PartyMessage.agent(
            reply.agent_id,
            reply.message,
            turn_number,
            metadata=self._metadata(reply.message, **flags),
        )
        return await self.store.add_message(session_id, message)

    async def _moderator_speaks(
        self,
        session: PartySession,
        prompt: str,
        event_type: EventType,
        turn_number: int,
        context: Optional[dict[str, Any]] = None,
        **flags: Any,
    ) -> AsyncIterator[OrchestratorEvent]:
        moderator_id = session.moderator.agent_id  # type: ignore[union-attr]
        yield OrchestratorEvent.speaker_start(session.id, moderator_id, turn_number)
        reply = await self._invoke(session, moderator_id, prompt, context)
        stored = await self._append_reply(session.id, reply, turn_number, **flags)
        if reply.is_error:
            yield OrchestratorEvent.error_event(session.id, moderator_id, reply.message)
        if stored is not None:
            yield OrchestratorEvent.message_event(event_type, session.id, stored)

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    def _initial_order(
        self,
        session: PartySession,
        last_text: Optional[str],
        handoff: Optional[str],
    ) -> tuple[list[str], dict[str, float]]:
        """Speaking order for a round, plus relevance scores when the order is scored."""
        scores: dict[str, float] = {}
        if session.config.turn_ordering == TurnOrdering.DYNAMIC:
            scored = score_participants(session, last_text, self.rng, self.jitter)
            order = [agent_id for agent_id, _ in scored]
            scores = dict(scored)
        else:
            strategy = get_strategy(session.config.turn_ordering)
            order = strategy.speakers_for_round(session, last_text, self.rng, self.jitter)
        if handoff and handoff in order:
            order.remove(handoff)
            order.insert(0, handoff)
        return order, scores

    def _directed_pick(
        self,
        session: PartySession,
        remaining: list[str],
    ) -> str:
        """Next speaker in a moderator-directed round."""
        strategy = get_strategy(TurnOrdering.MODERATOR_DIRECTED)
        direction = None
        moderator_id = session.config.moderator_id
        for message in reversed(session.history):
            if message.role == MessageRole.ASSISTANT and message.agent_id == moderator_id:
                direction = message.content
                break
        pick = strategy.next_speaker(session, direction, self.rng, self.jitter)
        if pick not in remaining:
            pick = remaining[0]
        return pick

    async def _run_round(
        self,
        session_id: str,
        user_message: Optional[str] = None,
        continuing: bool = False,
        context: Optional[dict[str, Any]] = None,
    ) -> AsyncIterator[OrchestratorEvent]:
        """Run one round; the caller must hold the session lock."""
        log = session_logger(logger, session_id)
        session = await self.store.get_session(session_id)
        if session is None:
            yield OrchestratorEvent.rejected(SessionNotFoundError(session_id))
            return

        turn = session.current_turn + 1
        session = await self.store.advance_turn(session_id, turn, 0)
        responses: list[PartyMessage] = []

        if user_message:
            stored = await self.store.add_message(session_id, PartyMessage.user(user_message, turn))
            if stored is not None:
                yield OrchestratorEvent.message_event(EventType.USER_MESSAGE, session_id, stored)
            session = await self.store.get_session(session_id)

        if moderator.should_intro(session):
            log.debug(f"Moderator {session.config.moderator_id} opens the discussion")
            async for event in self._moderator_speaks(
                session,
                moderator.intro_prompt(session),
                EventType.MODERATOR_INTRO,
                turn,
                context,
                is_moderator_intro=True,
            ):
                if event.message is not None:
                    responses.append(event.message)
                yield event
            session = await self.store.get_session(session_id)

        last_text = user_message
        if not last_text and session.history:
            last_text = session.history[-1].content
        last_text = last_text or session.topic

        handoff = None
        if continuing and user_message:
            speaker_ids = [p.agent_id for p in session.speakers]
            handoff = get_handoff_target(user_message, speaker_ids, None, self.catalog.is_known)
            if handoff:
                log.debug(f"Handoff to {handoff}")

        directed = session.config.turn_ordering == TurnOrdering.MODERATOR_DIRECTED
        order, scores = self._initial_order(session, last_text, handoff)
        yield OrchestratorEvent.round_start(session_id, turn, order)
        log.info(f"Round {turn} with {len(order)} speaker(s)")

        prompt = format_turn_prompt(session.topic, first_round=turn == 1, continuing=continuing)
        remaining = list(order)
        index = 0
        while remaining:
            if directed and not (index == 0 and handoff):
                agent_id = self._directed_pick(session, remaining)
            else:
                agent_id = remaining[0]
            remaining.remove(agent_id)

            yield OrchestratorEvent.speaker_start(session_id, agent_id, turn)
            reply = await self._invoke(session, agent_id, prompt, context)
            flags = {"relevance_score": scores[agent_id]} if agent_id in scores else {}
            stored = await self._append_reply(session_id, reply, turn, **flags)
            if reply.is_error:
                log.warning(f"{agent_id} failed: {reply.message}")
                yield OrchestratorEvent.error_event(session_id, agent_id, reply.message)
            if stored is not None:
                responses.append(stored)
                yield OrchestratorEvent.message_event(
                    EventType.RESPONSE_COMPLETE, session_id, stored
                )

            index += 1
            session = await self.store.advance_turn(session_id, turn, index)

        if moderator.should_summarize(session):
            async for event in self._moderator_speaks(
                session,
                moderator.summary_prompt(session),
                EventType.MODERATOR_SUMMARY,
                turn,
                context,
                is_moderator_summary=True,
            ):
                if event.message is not None:
                    responses.append(event.message)
                yield event
            session = await self.store.get_session(session_id)

        yield OrchestratorEvent.round_complete(session, responses)

    @staticmethod
    def _normalize_history(
        history: list[HistoryItem],
    ) -> list[tuple[MessageRole, str, Optional[str]]]:
        """Convert caller-supplied history to ``(role, content, agent_id)``.

        Raises:
            InvalidPartyConfigError: If an item is malformed or has an unknown role
        """
        entries = []
        for index, item in enumerate(history):
            if isinstance(item, PartyMessage):
                entries.append((item.role, item.content, item.agent_id))
                continue
            if not isinstance(item, dict):
                raise InvalidPartyConfigError("history", f"item {index} is not a message")
            try:
                role = MessageRole(item.get("role", "user"))
            except ValueError:
                raise InvalidPartyConfigError(
                    "history", f"item {index} has unknown role {item.get('role')!r}"
                ) from None
            agent_id = item.get("agent_id") or item.get("agentId")
            entries.append((role, str(item.get("content", "")), agent_id))
        return entries

    async def _seed_history(
        self, session: PartySession, entries: list[tuple[MessageRole, str, Optional[str]]]
    ) -> None:
        """Append normalized prior messages as turn 0."""
        for role, content, agent_id in entries:
            if agent_id and session.get_participant(agent_id) is None:
                content = f"[{agent_id}]: {content}"
                agent_id = None
            await self.store.add_message(
                session.id,
                PartyMessage(role=role, content=content, agent_id=agent_id, turn_number=0),
            )

    # ------------------------------------------------------------------
    # Streaming operations
    # ------------------------------------------------------------------

    async def run_start(
        self,
        owner_id: str,
        agent_ids: list[str],
        topic: str,
        config: ConfigInput = None,
        context: Optional[dict[str, Any]] = None,
    ) -> AsyncIterator[OrchestratorEvent]:
        """Create a session and run its first round.

        Yields:
            OrchestratorEvent objects; REJECTED alone if the request is invalid
        """
        try:
            session_config, _ = self._prepare_party(agent_ids, topic, config)
        except InvalidPartyConfigError as e:
            yield OrchestratorEvent.rejected(e)
            return

        created = await self.store.create_session(owner_id, agent_ids, topic, session_config, context)
        session = created.session
        session_logger(logger, session.id).info(
            f"Party started by {owner_id}: {', '.join(session.participant_ids)}"
        )
        yield OrchestratorEvent.session_ready(session, created.skipped)

        async with self.store.lock(session.id):
            async for event in self._run_round(session.id):
                yield event

    async def run_continue(
        self,
        owner_id: str,
        session_id: Optional[str] = None,
        user_message: Optional[str] = None,
        agent_ids: Optional[list[str]] = None,
        topic: Optional[str] = None,
        history: Optional[list[HistoryItem]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> AsyncIterator[OrchestratorEvent]:
        """Run another round of an existing session.

        Without ``session_id`` a session is created from ``agent_ids`` and
        ``topic`` and seeded with ``history`` first.
        """
        round_context = context
        if session_id is None:
            try:
                session_config, _ = self._prepare_party(agent_ids, topic, None)
                seed = self._normalize_history(history or [])
            except InvalidPartyConfigError as e:
                yield OrchestratorEvent.rejected(e)
                return
            created = await self.store.create_session(
                owner_id, list(agent_ids or []), topic or "", session_config, context
            )
            session_id = created.session.id
            round_context = None
            await self._seed_history(created.session, seed)
            yield OrchestratorEvent.session_ready(
                await self.store.get_session(session_id), created.skipped
            )

        async with self.store.lock(session_id):
            session, error = await self._load_owned(owner_id, session_id)
            if error is None and session.state != SessionState.ACTIVE:
                error = SessionStateError(session_id, session.state.value, "continue")
            if error is not None:
                yield OrchestratorEvent.rejected(error)
                return

            async for event in self._run_round(
                session_id, user_message, continuing=True, context=round_context
            ):
                yield event

    async def run_direct(
        self,
        owner_id: str,
        session_id: str,
        target_agent_id: str,
        context: Optional[str] = None,
    ) -> AsyncIterator[OrchestratorEvent]:
        """Have the moderator hand the floor to one participant, who then speaks.

        The exchange is a round of its own; the moderator summarizes only if
        the target is the sole regular speaker.
        """
        async with self.store.lock(session_id):
            session, error = await self._load_owned(owner_id, session_id)
            if error is None:
                target = target_agent_id.lower()
                if session.state != SessionState.ACTIVE:
                    error = SessionStateError(session_id, session.state.value, "direct")
                elif not moderator.has_moderator(session):
                    error = InvalidPartyConfigError("moderator_id", "session has no moderator")
                elif target not in [p.agent_id for p in session.speakers]:
                    error = InvalidPartyConfigError(
                        "target_agent_id", f"'{target_agent_id}' is not a speaking participant"
                    )
            if error is not None:
                yield OrchestratorEvent.rejected(error)
                return

            turn = session.current_turn + 1
            session = await self.store.advance_turn(session_id, turn, 0)
            responses: list[PartyMessage] = []
            yield OrchestratorEvent.round_start(session_id, turn, [target])

            async for event in self._moderator_speaks(
                session,
                moderator.direction_prompt(session, target, context, self.catalog),
                EventType.MODERATOR_DIRECTION,
                turn,
            ):
                if event.message is not None:
                    responses.append(event.message)
                yield event
            session = await self.store.get_session(session_id)

            yield OrchestratorEvent.speaker_start(session_id, target, turn)
            reply = await self._invoke(
                session, target, format_turn_prompt(session.topic, False, continuing=True)
            )
            stored = await self._append_reply(session_id, reply, turn)
            if reply.is_error:
                yield OrchestratorEvent.error_event(session_id, target, reply.message)
            if stored is not None:
                responses.append(stored)
                yield OrchestratorEvent.message_event(
                    EventType.RESPONSE_COMPLETE, session_id, stored
                )
            session = await self.store.advance_turn(session_id, turn, 1)

            if moderator.should_summarize(session):
                async for event in self._moderator_speaks(
                    session,
                    moderator.summary_prompt(session),
                    EventType.MODERATOR_SUMMARY,
                    turn,
                    is_moderator_summary=True,
                ):
                    if event.message is not None:
                        responses.append(event.message)
                    yield event
                session = await self.store.get_session(session_id)

            yield OrchestratorEvent.round_complete(session, responses)

    # ------------------------------------------------------------------
    # Aggregate operations
    # ------------------------------------------------------------------

    async def _drain(
        self, events: AsyncIterator[OrchestratorEvent]
    ) -> tuple[Optional[PartylineError], Optional[OrchestratorEvent], Optional[OrchestratorEvent]]:
        """Consume a run; return (failure, SESSION_READY, ROUND_COMPLETE).

        The run is always consumed to the end so the session lock is released.
        """
        failure = ready = complete = None
        async for event in events:
            if event.type == EventType.REJECTED:
                failure = event.failure
            elif event.type == EventType.SESSION_READY:
                ready = event
            elif event.type == EventType.ROUND_COMPLETE:
                complete = event
        return failure, ready, complete

    async def start_session(
        self,
        owner_id: str,
        agent_ids: list[str],
        topic: str,
        config: ConfigInput = None,
        context: Optional[dict[str, Any]] = None,
    ) -> Result[StartResult]:
        """Create a party and run its first round."""
        failure, ready, complete = await self._drain(
            self.run_start(owner_id, agent_ids, topic, config, context)
        )
        if failure is not None:
            return Result.failure(failure)

        session = complete.session
        return Result.success(StartResult(
            session_id=session.id,
            topic=session.topic,
            participants=list(session.participants),
            responses=complete.responses,
            total_turns=session.current_turn,
            config=session.config,
            skipped=ready.skipped,
        ))

    async def continue_session(
        self,
        owner_id: str,
        session_id: Optional[str] = None,
        user_message: Optional[str] = None,
        agent_ids: Optional[list[str]] = None,
        topic: Optional[str] = None,
        history: Optional[list[HistoryItem]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> Result[ContinueResult]:
        """Run another round, optionally opened by a user message."""
        failure, ready, complete = await self._drain(self.run_continue(
            owner_id, session_id, user_message, agent_ids, topic, history, context
        ))
        if failure is not None:
            return Result.failure(failure)
        skipped = ready.skipped if ready else []
        return Result.success(
            ContinueResult.from_session(complete.session, complete.responses, skipped)
        )

    async def direct_to(
        self,
        owner_id: str,
        session_id: str,
        target_agent_id: str,
        context: Optional[str] = None,
    ) -> Result[ContinueResult]:
        """Moderator directs the conversation to ``target_agent_id``."""
        failure, _, complete = await self._drain(
            self.run_direct(owner_id, session_id, target_agent_id, context)
        )
        if failure is not None:
            return Result.failure(failure)
        return Result.success(ContinueResult.from_session(complete.session, complete.responses))

    async def get_session(self, owner_id: str, session_id: str) -> Result[PartySession]:
        session, error = await self._load_owned(owner_id, session_id)
        if error is not None:
            return Result.failure(error)
        return Result.success(session)

    async def list_sessions(self, owner_id: str) -> list[SessionSummary]:
        sessions = await self.store.list_sessions(owner_id)
        return [s.summary() for s in sorted(sessions, key=lambda s: s.updated_at, reverse=True)]

    async def update_session_config(
        self, owner_id: str, session_id: str, overrides: dict[str, Any]
    ) -> Result[PartySession]:
        """Reconfigure a session between rounds."""
        unknown = set(overrides) - set(PartyConfig.model_fields)
        if unknown:
            return Result.failure(
                InvalidPartyConfigError(sorted(unknown)[0], "unknown configuration field")
            )

        async with self.store.lock(session_id):
            session, error = await self._load_owned(owner_id, session_id)
            if error is not None:
                return Result.failure(error)
            try:
                updated = await self.store.update_config(session_id, overrides)
            except InvalidPartyConfigError as e:
                return Result.failure(e)
            if updated is None:
                return Result.failure(SessionNotFoundError(session_id))
            session_logger(logger, session_id).info(f"Config updated: {sorted(overrides)}")
            return Result.success(updated)

    async def delete_session(self, owner_id: str, session_id: str) -> Result[bool]:
        async with self.store.lock(session_id):
            session, error = await self._load_owned(owner_id, session_id)
            if error is not None:
                return Result.failure(error)
            deleted = await self.store.delete_session(session_id)
            if not deleted:
                return Result.failure(SessionNotFoundError(session_id))
            session_logger(logger, session_id).info("Session deleted")
            return Result.success(True)

    async def _transition(
        self,
        owner_id: str,
        session_id: str,
        allowed_from: tuple[SessionState, ...],
        target: SessionState,
        operation: str,
    ) -> Result[PartySession]:
        async with self.store.lock(session_id):
            session, error = await self._load_owned(owner_id, session_id)
            if error is not None:
                return Result.failure(error)
            if session.state not in allowed_from:
                return Result.failure(
                    SessionStateError(session_id, session.state.value, operation)
                )
            updated = await self.store.set_state(session_id, target)
            if updated is None:
                return Result.failure(SessionNotFoundError(session_id))
            session_logger(logger, session_id).info(f"Session {target.value}")
            return Result.success(updated)

    async def pause_session(self, owner_id: str, session_id: str) -> Result[PartySession]:
        return await self._transition(
            owner_id, session_id, (SessionState.ACTIVE,), SessionState.PAUSED, "pause"
        )

    async def resume_session(self, owner_id: str, session_id: str) -> Result[PartySession]:
        return await self._transition(
            owner_id, session_id, (SessionState.PAUSED,), SessionState.ACTIVE, "resume"
        )

    async def end_session(self, owner_id: str, session_id: str) -> Result[PartySession]:
        return await self._transition(
            owner_id,
            session_id,
            (SessionState.ACTIVE, SessionState.PAUSED),
            SessionState.COMPLETED,
            "end",
        )


def create_orchestrator(
    settings: Optional[Settings] = None,
    provider: Optional[CompletionProvider] = None,
    catalog: Optional[PersonaCatalog] = None,
    store: Optional[SessionStore] = None,
) -> PartyOrchestrator:
    """Factory function to create a fully wired orchestrator.

    Args:
        settings: Application settings (loaded if omitted)
        provider: Completion provider (built from settings if omitted)
        catalog: Persona catalog (built-in agents if omitted)
        store: Session store (in-memory if omitted)

    Returns:
        Configured PartyOrchestrator instance
    """
    from partyline.models import create_provider

    settings = settings or get_settings()
    catalog = catalog or get_default_catalog()
    if provider is None:
        provider = create_provider(settings)
    loader = PersonaLoader(settings.personas.resolved_directory, catalog)
    if store is None:
        store = InMemorySessionStore(
            catalog=catalog,
            default_config=PartyConfig.from_defaults(settings.party),
        )

    return PartyOrchestrator(
        store=store,
        agent_service=AgentService(provider, loader),
        catalog=catalog,
        settings=settings,
    )
