"""Turn ordering for party rounds.

Three strategies decide who speaks, always over the non-moderator
participants (the moderator's slots are decided by the facilitator):

- round-robin: stored participant order
- dynamic: explicit @mentions win, otherwise a relevance score that
  favours whoever has spoken least and anyone named in the last message
- moderator-directed: whoever the moderator's last message mentions,
  otherwise round-robin

Strategies are stateless; ``get_strategy`` maps a ``TurnOrdering`` value to
one of the module-level strategy objects.
"""

import random
from typing import Any, Callable, Optional, Union

from partyline.session.models import Participant, PartySession, TurnOrdering

from .mentions import parse_mentions

DEFAULT_JITTER = 5.0
FAIRNESS_WEIGHT = 10
NAME_MATCH_BONUS = 50

# Anything with a ``random()`` method, or a zero-argument callable, that
# returns a float in [0, 1).
RandomSource = Union[random.Random, Callable[[], float], Any]

_rng = random.Random()


def _draw(rng: Optional[RandomSource]) -> float:
    if rng is None:
        return _rng.random()
    if hasattr(rng, "random"):
        return rng.random()
    return rng()


def _participant_mention(session: PartySession, text: Optional[str]) -> Optional[str]:
    """First @mentioned non-moderator participant in ``text``."""
    if not text:
        return None
    candidates = {p.agent_id for p in session.speakers}
    for mention in parse_mentions(text, candidates.__contains__).valid_mentions:
        return mention
    return None


def relevance_score(
    participant: Participant,
    session: PartySession,
    text: str = "",
    rng: Optional[RandomSource] = None,
    jitter: float = DEFAULT_JITTER,
) -> float:
    """Score how strongly ``participant`` should speak next."""
    max_turns = max([p.turn_count for p in session.participants] + [1])
    score = float((max_turns - participant.turn_count) * FAIRNESS_WEIGHT)
    if text and participant.name.lower() in text.lower():
        score += NAME_MATCH_BONUS
    if jitter:
        score += _draw(rng) * jitter
    return score


def score_participants(
    session: PartySession,
    text: Optional[str] = None,
    rng: Optional[RandomSource] = None,
    jitter: float = DEFAULT_JITTER,
) -> list[tuple[str, float]]:
    """All non-moderator participants with their scores, best first.

    Ties keep stored participant order.
    """
    scored = [
        (p.agent_id, relevance_score(p, session, text or "", rng, jitter))
        for p in session.speakers
    ]
    return sorted(scored, key=lambda item: item[1], reverse=True)


class RoundRobinStrategy:
    """Participants speak in their stored order."""

    ordering = TurnOrdering.ROUND_ROBIN

    def next_speaker(
        self,
        session: PartySession,
        last_message: Optional[str] = None,
        rng: Optional[RandomSource] = None,
        jitter: float = DEFAULT_JITTER,
    ) -> Optional[str]:
        speakers = session.speakers
        if not speakers:
            return None
        return speakers[session.current_speaker_index % len(speakers)].agent_id

    def speakers_for_round(
        self,
        session: PartySession,
        last_message: Optional[str] = None,
        rng: Optional[RandomSource] = None,
        jitter: float = DEFAULT_JITTER,
    ) -> list[str]:
        return [p.agent_id for p in session.speakers]


class DynamicStrategy:
    """Relevance-weighted ordering with mention override."""

    ordering = TurnOrdering.DYNAMIC

    def next_speaker(
        self,
        session: PartySession,
        last_message: Optional[str] = None,
        rng: Optional[RandomSource] = None,
        jitter: float = DEFAULT_JITTER,
    ) -> Optional[str]:
        speakers = session.speakers
        if not speakers:
            return None
        if not last_message:
            return min(speakers, key=lambda p: p.turn_count).agent_id

        mentioned = _participant_mention(session, last_message)
        if mentioned:
            return mentioned
        return score_participants(session, last_message, rng, jitter)[0][0]

    def speakers_for_round(
        self,
        session: PartySession,
        last_message: Optional[str] = None,
        rng: Optional[RandomSource] = None,
        jitter: float = DEFAULT_JITTER,
    ) -> list[str]:
        return [agent_id for agent_id, _ in score_participants(session, last_message, rng, jitter)]


class ModeratorDirectedStrategy:
    """The moderator's @mention picks the next speaker.

    ``speakers_for_round`` only lists the candidates; the caller picks one
    speaker at a time as the moderator's direction becomes known.
    """

    ordering = TurnOrdering.MODERATOR_DIRECTED

    def next_speaker(
        self,
        session: PartySession,
        last_message: Optional[str] = None,
        rng: Optional[RandomSource] = None,
        jitter: float = DEFAULT_JITTER,
    ) -> Optional[str]:
        mentioned = _participant_mention(session, last_message)
        if mentioned:
            return mentioned
        return ROUND_ROBIN.next_speaker(session)

    def speakers_for_round(
        self,
        session: PartySession,
        last_message: Optional[str] = None,
        rng: Optional[RandomSource] = None,
        jitter: float = DEFAULT_JITTER,
    ) -> list[str]:
        return [p.agent_id for p in session.speakers]


ROUND_ROBIN = RoundRobinStrategy()
DYNAMIC = DynamicStrategy()
MODERATOR_DIRECTED = ModeratorDirectedStrategy()

TurnStrategy = Union[RoundRobinStrategy, DynamicStrategy, ModeratorDirectedStrategy]

STRATEGIES: dict[TurnOrdering, TurnStrategy] = {
    TurnOrdering.ROUND_ROBIN: ROUND_ROBIN,
    TurnOrdering.DYNAMIC: DYNAMIC,
    TurnOrdering.MODERATOR_DIRECTED: MODERATOR_DIRECTED,
}


def get_strategy(ordering: Union[TurnOrdering, str, None]) -> TurnStrategy:
    """Strategy object for an ordering; unknown values mean round-robin."""
    if not isinstance(ordering, TurnOrdering):
        try:
            ordering = TurnOrdering(str(ordering).lower())
        except ValueError:
            return ROUND_ROBIN
    return STRATEGIES.get(ordering, ROUND_ROBIN)
