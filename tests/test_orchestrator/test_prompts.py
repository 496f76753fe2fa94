"""Tests for prompt templates."""

from partyline.orchestrator.prompts import (
    CONTINUE_PROMPT,
    FOLLOW_UP_PROMPT,
    build_party_context,
    format_direction_prompt,
    format_summary_prompt,
    format_topic_prompt,
    format_turn_prompt,
)


class TestTurnPrompts:
    """Tests for per-turn instructions."""

    def test_first_round(self) -> None:
        assert format_turn_prompt("cats", first_round=True) == (
            "Please share your initial thoughts on: cats"
        )

    def test_later_round(self) -> None:
        assert format_turn_prompt("cats", first_round=False) == FOLLOW_UP_PROMPT

    def test_continuing(self) -> None:
        assert format_turn_prompt("cats", first_round=True, continuing=True) == CONTINUE_PROMPT

    def test_topic_prompt(self) -> None:
        prompt = format_topic_prompt("cats", ["Alice", "Bob"])
        assert prompt.startswith("Topic for discussion: cats")
        assert "other AI agents: Alice, Bob." in prompt


class TestModeratorTemplates:
    """Tests for the moderator templates."""

    def test_summary_joins_contributions(self) -> None:
        prompt = format_summary_prompt([("Bob", "one"), ("Carol", "two")])
        assert "Bob: one\n\nCarol: two" in prompt

    def test_direction_without_context(self) -> None:
        prompt = format_direction_prompt("cats", "bob", "Bob", ["a", "b", "c", "d"])
        assert "Context for this direction" not in prompt
        assert "Bob's expertise includes: a, b, c\n" in prompt


class TestPartyContext:
    """Tests for build_party_context."""

    def test_party_keys_win(self) -> None:
        context = build_party_context(
            "cats", ["alice", "bob"], {"topic": "dogs", "project": "zoo"}
        )
        assert context == {
            "topic": "cats",
            "project": "zoo",
            "party_mode": True,
            "participants": ["alice", "bob"],
        }

    def test_no_context(self) -> None:
        assert build_party_context("cats", [])["party_mode"] is True
