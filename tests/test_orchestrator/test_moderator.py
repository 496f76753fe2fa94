"""Tests for moderator facilitation."""

from partyline.agents.registry import PersonaCatalog
from partyline.orchestrator.moderator import (
    current_turn_messages,
    direction_prompt,
    get_moderator,
    has_moderator,
    intro_prompt,
    should_intro,
    should_summarize,
    summary_prompt,
)
from partyline.session.models import MessageMetadata, PartyMessage

SUMMARY = MessageMetadata(is_moderator_summary=True)
INTRO = MessageMetadata(is_moderator_intro=True)


class TestHasModerator:
    """Tests for has_moderator."""

    def test_configured_and_present(self, make_session) -> None:
        session = make_session(["alice", "bob"], moderator_id="alice")
        assert has_moderator(session)
        assert get_moderator(session).agent_id == "alice"

    def test_not_configured(self, make_session) -> None:
        assert not has_moderator(make_session(["alice", "bob"]))

    def test_configured_but_absent(self, make_session) -> None:
        session = make_session(["alice", "bob"], moderator_id="carol")
        assert not has_moderator(session)
        assert not should_intro(session)
        assert not should_summarize(session)


class TestShouldIntro:
    """Tests for should_intro."""

    def test_before_moderator_spoke(self, make_session) -> None:
        session = make_session(
            ["alice", "bob"], moderator_id="alice",
            history=[PartyMessage.user("hi", 1), PartyMessage.agent("bob", "hey", 1)],
        )
        assert should_intro(session)

    def test_after_any_moderator_message(self, make_session) -> None:
        session = make_session(
            ["alice", "bob"], moderator_id="alice",
            history=[PartyMessage.agent("alice", "welcome", 1, INTRO)],
            current_turn=3,
        )
        assert not should_intro(session)


class TestShouldSummarize:
    """Tests for should_summarize."""

    def history_round_one(self) -> list[PartyMessage]:
        return [
            PartyMessage.agent("alice", "welcome", 1, INTRO),
            PartyMessage.agent("bob", "idea", 1),
            PartyMessage.agent("carol", "another idea", 1),
        ]

    def test_all_spoke(self, make_session) -> None:
        session = make_session(
            ["alice", "bob", "carol"], moderator_id="alice",
            history=self.history_round_one(), current_turn=1,
        )
        assert should_summarize(session)

    def test_fires_once_per_round(self, make_session) -> None:
        history = self.history_round_one() + [PartyMessage.agent("alice", "summary", 1, SUMMARY)]
        session = make_session(
            ["alice", "bob", "carol"], moderator_id="alice", history=history, current_turn=1,
        )
        assert not should_summarize(session)

    def test_someone_missing(self, make_session) -> None:
        session = make_session(
            ["alice", "bob", "carol"], moderator_id="alice",
            history=self.history_round_one()[:2], current_turn=1,
        )
        assert not should_summarize(session)

    def test_only_current_turn_counts(self, make_session) -> None:
        history = self.history_round_one() + [PartyMessage.agent("bob", "round two", 2)]
        session = make_session(
            ["alice", "bob", "carol"], moderator_id="alice", history=history, current_turn=2,
        )
        assert not should_summarize(session)
        assert [m.content for m in current_turn_messages(session)] == ["round two"]


class TestPrompts:
    """Tests for moderator prompt generation."""

    def test_intro_lists_speakers(self, make_session) -> None:
        session = make_session(["alice", "bob", "carol"], moderator_id="alice", topic="cats")
        prompt = intro_prompt(session)
        assert 'discussion on the topic: "cats"' in prompt
        assert "Bob (🐻), Carol (🐦)" in prompt
        assert "Alice" not in prompt

    def test_summary_attributes_by_name(self, make_session) -> None:
        history = [
            PartyMessage.agent("alice", "welcome", 1, INTRO),
            PartyMessage.user("user says", 1),
            PartyMessage.agent("bob", "idea", 1),
            PartyMessage.agent("alice", "old summary", 1, SUMMARY),
        ]
        session = make_session(["alice", "bob"], moderator_id="alice", history=history, current_turn=1)
        prompt = summary_prompt(session)

        assert "Alice: welcome\n\nBob: idea" in prompt
        assert "old summary" not in prompt
        assert "user says" not in prompt

    def test_direction_prompt(self, make_session, catalog: PersonaCatalog) -> None:
        session = make_session(["alice", "bob", "carol"], moderator_id="carol", topic="cats")
        prompt = direction_prompt(session, "alice", "focus on planning", catalog)

        assert "direct the next part of the conversation to @alice (Alice)" in prompt
        assert "Context for this direction: focus on planning" in prompt
        assert "facilitation, planning, writing" in prompt
        assert "research" not in prompt
        assert '"cats"' in prompt

    def test_direction_fallback(self, make_session, catalog: PersonaCatalog) -> None:
        session = make_session(["alice", "bob"], moderator_id="alice", topic="cats")
        assert direction_prompt(session, "carol", catalog=catalog) == (
            'Please continue the discussion on "cats".'
        )
