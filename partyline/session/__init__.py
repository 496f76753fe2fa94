"""Party session models and storage."""

from .models import (
    CreatedSession,
    MessageMetadata,
    Participant,
    PartyConfig,
    PartyMessage,
    PartySession,
    SessionState,
    SessionSummary,
    TurnOrdering,
    now_ms,
)
from .store import (
    InMemorySessionStore,
    SessionStore,
    build_participants,
    resolve_config,
)
from .sweeper import SessionSweeper

__all__ = [
    # Models
    "CreatedSession",
    "MessageMetadata",
    "Participant",
    "PartyConfig",
    "PartyMessage",
    "PartySession",
    "SessionState",
    "SessionSummary",
    "TurnOrdering",
    "now_ms",
    # Storage
    "InMemorySessionStore",
    "SessionStore",
    "SessionSweeper",
    "build_participants",
    "resolve_config",
]
