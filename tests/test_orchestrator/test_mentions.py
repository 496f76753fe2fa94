"""Tests for @mention parsing."""

from partyline.agents.registry import PersonaCatalog
from partyline.orchestrator.mentions import (
    contains_any_mention,
    create_mention_metadata,
    get_agent_suggestions,
    get_handoff_target,
    highlight_mentions,
    parse_mentions,
)


class TestParseMentions:
    """Tests for parse_mentions."""

    def test_case_insensitive_dedup(self) -> None:
        """Built-in catalog: @Bob, @BOB and @bob are one mention."""
        parsed = parse_mentions("@Bob @BOB @bob")
        assert parsed.valid_mentions == ["bob"]
        assert parsed.invalid_mentions == []

    def test_valid_and_invalid(self, catalog: PersonaCatalog) -> None:
        parsed = parse_mentions("@carol and @zed, then @alice @Zed", catalog.is_known)
        assert parsed.valid_mentions == ["carol", "alice"]
        assert parsed.invalid_mentions == ["zed"]
        assert parsed.has_mentions
        assert parsed.primary_mention == "carol"

    def test_hyphenated_ids(self, catalog: PersonaCatalog) -> None:
        parsed = parse_mentions("over to @dave-o.", catalog.is_known)
        assert parsed.valid_mentions == ["dave-o"]

    def test_must_start_with_letter(self, catalog: PersonaCatalog) -> None:
        parsed = parse_mentions("@1bob @-alice", catalog.is_known)
        assert parsed.valid_mentions == []
        assert parsed.invalid_mentions == []

    def test_email_address_counts_as_attempt(self, catalog: PersonaCatalog) -> None:
        parsed = parse_mentions("mail me at someone@example.com", catalog.is_known)
        assert parsed.invalid_mentions == ["example"]

    def test_no_mentions(self, catalog: PersonaCatalog) -> None:
        parsed = parse_mentions("nothing here", catalog.is_known)
        assert not parsed.has_mentions
        assert parsed.primary_mention is None

    def test_empty_text(self) -> None:
        assert parse_mentions("").valid_mentions == []


class TestHandoffTarget:
    """Tests for get_handoff_target."""

    def test_first_participant_mention(self, catalog: PersonaCatalog) -> None:
        target = get_handoff_target(
            "@carol @bob what do you think?", ["alice", "bob"], "alice", catalog.is_known
        )
        assert target == "bob"

    def test_falls_back(self, catalog: PersonaCatalog) -> None:
        assert get_handoff_target("@carol?", ["alice", "bob"], "alice", catalog.is_known) == "alice"
        assert get_handoff_target("no mentions", ["alice"], None, catalog.is_known) is None
        assert get_handoff_target(None, ["alice"], "alice", catalog.is_known) == "alice"

    def test_unknown_ids_ignored(self, catalog: PersonaCatalog) -> None:
        assert get_handoff_target("@zed", ["zed"], "fallback", catalog.is_known) == "fallback"


class TestMentionHelpers:
    """Tests for metadata, highlighting and suggestions."""

    def test_metadata(self, catalog: PersonaCatalog) -> None:
        metadata = create_mention_metadata("ping @bob and @Carol", catalog.is_known)
        assert metadata.mentions == ["bob", "carol"]
        assert create_mention_metadata("no one", catalog.is_known) is None

    def test_highlight(self) -> None:
        assert highlight_mentions("hi @bob!") == "hi **@bob**!"

    def test_suggestions(self, catalog: PersonaCatalog) -> None:
        assert get_agent_suggestions("", catalog=catalog) == ["alice", "bob", "carol", "dave-o"]
        assert get_agent_suggestions("@B", catalog=catalog) == ["bob"]
        assert get_agent_suggestions("", limit=2, catalog=catalog) == ["alice", "bob"]

    def test_contains_any_mention(self) -> None:
        assert contains_any_mention("hey @anyone")
        assert not contains_any_mention("hey there")
