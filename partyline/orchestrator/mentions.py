"""@mention parsing for party discussions.

A mention is ``@`` followed by a letter and then letters, digits or
hyphens (``@bob``, ``@aurora-forester``). Matching is case-insensitive and
ids come back lower-cased. There is no escape syntax: every ``@word`` is a
mention attempt and is classified as valid (a known agent) or invalid.
"""

import re
from typing import Callable, NamedTuple, Optional

from partyline.agents.registry import PersonaCatalog, get_default_catalog
from partyline.session.models import MessageMetadata

MENTION_PATTERN = re.compile(r"@([a-zA-Z][a-zA-Z0-9-]*)")

IsKnown = Callable[[str], bool]


class ParsedMentions(NamedTuple):
    """Result of parsing mentions from a message."""

    valid_mentions: list[str]  # Known agent ids, first-seen order
    invalid_mentions: list[str]  # Everything else that looked like a mention

    @property
    def has_mentions(self) -> bool:
        return bool(self.valid_mentions)

    @property
    def primary_mention(self) -> Optional[str]:
        return self.valid_mentions[0] if self.valid_mentions else None


def _default_is_known() -> IsKnown:
    return get_default_catalog().is_known


def parse_mentions(text: str, is_known: Optional[IsKnown] = None) -> ParsedMentions:
    """Parse @mentions from a message.

    Args:
        text: Message text
        is_known: Predicate deciding whether an id is a real agent;
            defaults to the built-in catalog

    Returns:
        ParsedMentions with de-duplicated, lower-cased ids

    Examples:
        >>> parse_mentions("@Bob @BOB @bob").valid_mentions
        ['bob']

        >>> parse_mentions("ask @nobody").invalid_mentions
        ['nobody']
    """
    is_known = is_known or _default_is_known()
    valid: list[str] = []
    invalid: list[str] = []

    for match in MENTION_PATTERN.finditer(text or ""):
        mention = match.group(1).lower()
        bucket = valid if is_known(mention) else invalid
        if mention not in bucket:
            bucket.append(mention)

    return ParsedMentions(valid_mentions=valid, invalid_mentions=invalid)


def get_handoff_target(
    text: Optional[str],
    current_participant_ids: list[str],
    fallback: Optional[str],
    is_known: Optional[IsKnown] = None,
) -> Optional[str]:
    """Pick who should speak next from the mentions in ``text``.

    Returns the first valid mention that is also a current participant,
    otherwise ``fallback`` unchanged. Never raises.
    """
    if not text:
        return fallback
    participants = {pid.lower() for pid in current_participant_ids}
    for mention in parse_mentions(text, is_known).valid_mentions:
        if mention in participants:
            return mention
    return fallback


def create_mention_metadata(
    text: str, is_known: Optional[IsKnown] = None
) -> Optional[MessageMetadata]:
    """Metadata recording the valid mentions in ``text``, or None."""
    parsed = parse_mentions(text, is_known)
    if not parsed.has_mentions:
        return None
    return MessageMetadata(mentions=parsed.valid_mentions)


def highlight_mentions(text: str) -> str:
    """Wrap every mention in markdown bold for display."""
    return MENTION_PATTERN.sub(r"**@\1**", text)


def get_agent_suggestions(
    partial: str,
    limit: int = 5,
    catalog: Optional[PersonaCatalog] = None,
) -> list[str]:
    """Autocomplete agent ids starting with ``partial`` (without the @)."""
    catalog = catalog or get_default_catalog()
    prefix = partial.lstrip("@").lower()
    return [agent_id for agent_id in catalog.all_ids() if agent_id.startswith(prefix)][:limit]


def contains_any_mention(text: str) -> bool:
    """Check whether ``text`` has anything that looks like a mention."""
    return bool(MENTION_PATTERN.search(text or ""))
