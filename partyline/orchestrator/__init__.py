"""Orchestration engine for Partyline party discussions.

This package provides the logic that runs a multi-persona discussion:

Main components:
- PartyOrchestrator: Runs rounds and exposes the session operations
- Turn strategies: round-robin, dynamic and moderator-directed ordering
- Moderator facilitation: when the moderator speaks and what it is asked
- Mention parsing: @agent detection and handoff resolution
- OrchestratorEvent: Events emitted while a round runs
"""

from .engine import PartyOrchestrator, create_orchestrator
from .events import EventType, OrchestratorEvent
from .mentions import (
    MENTION_PATTERN,
    ParsedMentions,
    contains_any_mention,
    create_mention_metadata,
    get_agent_suggestions,
    get_handoff_target,
    highlight_mentions,
    parse_mentions,
)
from .moderator import (
    current_turn_messages,
    direction_prompt,
    get_moderator,
    has_moderator,
    intro_prompt,
    should_intro,
    should_summarize,
    summary_prompt,
)
from .results import ContinueResult, Result, ResultStatus, StartResult
from .turns import (
    DYNAMIC,
    MODERATOR_DIRECTED,
    ROUND_ROBIN,
    DynamicStrategy,
    ModeratorDirectedStrategy,
    RoundRobinStrategy,
    get_strategy,
    relevance_score,
    score_participants,
)

__all__ = [
    # Main orchestrator
    "PartyOrchestrator",
    "create_orchestrator",
    # Events
    "EventType",
    "OrchestratorEvent",
    # Results
    "ContinueResult",
    "Result",
    "ResultStatus",
    "StartResult",
    # Mentions
    "MENTION_PATTERN",
    "ParsedMentions",
    "contains_any_mention",
    "create_mention_metadata",
    "get_agent_suggestions",
    "get_handoff_target",
    "highlight_mentions",
    "parse_mentions",
    # Moderator
    "current_turn_messages",
    "direction_prompt",
    "get_moderator",
    "has_moderator",
    "intro_prompt",
    "should_intro",
    "should_summarize",
    "summary_prompt",
    # Turn ordering
    "DYNAMIC",
    "MODERATOR_DIRECTED",
    "ROUND_ROBIN",
    "DynamicStrategy",
    "ModeratorDirectedStrategy",
    "RoundRobinStrategy",
    "get_strategy",
    "relevance_score",
    "score_participants",
]
