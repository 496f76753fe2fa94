"""Prompt templates for party discussions.

These templates are used for:
- The opening framing every speaker sees
- Per-turn instructions to regular speakers
- Moderator intro, round summary and direction
"""

from typing import Any, Optional

TOPIC_PROMPT = """Topic for discussion: {topic}

You are participating in a group discussion with other AI agents: {participants}. Share your perspective on this topic, building on what others have said."""

FIRST_ROUND_PROMPT = "Please share your initial thoughts on: {topic}"

FOLLOW_UP_PROMPT = "Please respond to the conversation, building on what has been said."

CONTINUE_PROMPT = "Please respond to the conversation."

MODERATOR_INTRO_PROMPT = """You are moderating a group discussion on the topic: "{topic}"

The participants in this discussion are: {participants}

As the moderator, please:
1. Introduce the topic in an engaging way
2. Briefly mention each participant and what unique perspective they might bring
3. Set the ground rules for a productive discussion
4. Ask an opening question to get the conversation started

Keep your introduction concise but welcoming. You will summarize at the end of each discussion round."""

MODERATOR_SUMMARY_PROMPT = """The participants have shared their thoughts. Here's what was said:

{contributions}

As the moderator, please:
1. Summarize the key points made by each participant
2. Highlight any areas of agreement or disagreement
3. Identify interesting connections between different perspectives
4. Suggest a direction for the next round of discussion OR ask a follow-up question

Keep your summary concise but comprehensive."""

MODERATOR_DIRECTION_PROMPT = """As the moderator, please direct the next part of the conversation to @{agent_id} ({name}).
{context_line}
{name}'s expertise includes: {capabilities}

Ask them a specific question or invite them to share their perspective on an aspect of "{topic}" that relates to their expertise."""

FALLBACK_DIRECTION_PROMPT = 'Please continue the discussion on "{topic}".'

MAX_DIRECTION_CAPABILITIES = 3


def format_topic_prompt(topic: str, participant_names: list[str]) -> str:
    return TOPIC_PROMPT.format(topic=topic, participants=", ".join(participant_names))


def format_turn_prompt(topic: str, first_round: bool, continuing: bool = False) -> str:
    """Instruction handed to a regular speaker for its turn."""
    if continuing:
        return CONTINUE_PROMPT
    if first_round:
        return FIRST_ROUND_PROMPT.format(topic=topic)
    return FOLLOW_UP_PROMPT


def format_intro_prompt(topic: str, participant_labels: list[str]) -> str:
    return MODERATOR_INTRO_PROMPT.format(
        topic=topic, participants=", ".join(participant_labels)
    )


def format_summary_prompt(contributions: list[tuple[str, str]]) -> str:
    """Summary prompt from ``(speaker name, content)`` pairs."""
    text = "\n\n".join(f"{name}: {content}" for name, content in contributions)
    return MODERATOR_SUMMARY_PROMPT.format(contributions=text)


def format_direction_prompt(
    topic: str,
    agent_id: str,
    name: str,
    capabilities: list[str],
    context: Optional[str] = None,
) -> str:
    context_line = f"\nContext for this direction: {context}\n" if context else ""
    return MODERATOR_DIRECTION_PROMPT.format(
        agent_id=agent_id,
        name=name,
        context_line=context_line,
        capabilities=", ".join(capabilities[:MAX_DIRECTION_CAPABILITIES]),
        topic=topic,
    )


def format_fallback_direction_prompt(topic: str) -> str:
    return FALLBACK_DIRECTION_PROMPT.format(topic=topic)


def build_party_context(
    topic: str,
    participant_ids: list[str],
    context: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Context dict passed to every speaker's system prompt."""
    return {
        **(context or {}),
        "party_mode": True,
        "participants": participant_ids,
        "topic": topic,
    }
