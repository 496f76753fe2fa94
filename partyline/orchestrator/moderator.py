"""Moderator facilitation.

Pure functions over a session that decide when the moderator speaks
(opening intro, end-of-round summary) and which prompt to hand it. The
generation itself happens in the orchestrator.
"""

from typing import Optional

from partyline.agents.registry import PersonaCatalog, get_default_catalog
from partyline.models.types import MessageRole
from partyline.session.models import Participant, PartyMessage, PartySession

from .prompts import (
    format_direction_prompt,
    format_fallback_direction_prompt,
    format_intro_prompt,
    format_summary_prompt,
)


def get_moderator(session: PartySession) -> Optional[Participant]:
    """The participant flagged as moderator, if any."""
    return session.moderator


def has_moderator(session: PartySession) -> bool:
    """True when the config names a moderator and that agent is present."""
    return session.config.moderator_id is not None and session.moderator is not None


def current_turn_messages(session: PartySession) -> list[PartyMessage]:
    """Messages belonging to the session's current turn."""
    return [m for m in session.history if m.turn_number == session.current_turn]


def should_intro(session: PartySession) -> bool:
    """True until the moderator has spoken for the first time."""
    if not has_moderator(session):
        return False
    moderator_id = session.config.moderator_id
    return not any(
        m.role == MessageRole.ASSISTANT and m.agent_id == moderator_id
        for m in session.history
    )


def should_summarize(session: PartySession) -> bool:
    """True once every speaker has talked this turn and no summary exists yet."""
    if not has_moderator(session):
        return False

    messages = current_turn_messages(session)
    spoken = {
        m.agent_id for m in messages if m.role == MessageRole.ASSISTANT and m.agent_id
    }
    if any(p.agent_id not in spoken for p in session.speakers):
        return False

    return not any(m.is_moderator_summary for m in messages)


def intro_prompt(session: PartySession) -> str:
    labels = [f"{p.name} ({p.icon})" for p in session.speakers]
    return format_intro_prompt(session.topic, labels)


def summary_prompt(session: PartySession) -> str:
    contributions = []
    for message in current_turn_messages(session):
        if message.role != MessageRole.ASSISTANT or not message.agent_id:
            continue
        if message.is_moderator_summary:
            continue
        participant = session.get_participant(message.agent_id)
        name = participant.name if participant else message.agent_id
        contributions.append((name, message.content))
    return format_summary_prompt(contributions)


def direction_prompt(
    session: PartySession,
    target_agent_id: str,
    context: Optional[str] = None,
    catalog: Optional[PersonaCatalog] = None,
) -> str:
    """Prompt asking the moderator to hand the floor to one participant.

    Falls back to a generic "continue the discussion" prompt when the
    target is not a participant or not in the catalog.
    """
    catalog = catalog or get_default_catalog()
    participant = session.get_participant(target_agent_id)
    agent = catalog.resolve(target_agent_id)
    if participant is None or agent is None:
        return format_fallback_direction_prompt(session.topic)

    return format_direction_prompt(
        topic=session.topic,
        agent_id=participant.agent_id,
        name=participant.name,
        capabilities=list(agent.capabilities),
        context=context,
    )
