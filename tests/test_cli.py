"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from partyline import __version__, cli
from partyline.config import Settings


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def no_user_config(monkeypatch):
    """Keep CLI runs away from the real ~/.partyline directory."""
    monkeypatch.setattr(cli, "create_default_config", lambda: None)


class TestCli:
    """Tests for the typer app."""

    def test_version(self, runner):
        result = runner.invoke(cli.app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_agents_lists_catalog(self, runner):
        result = runner.invoke(cli.app, ["agents", "--category", "core"])
        assert result.exit_code == 0
        assert "Agents" in result.output

    def test_agents_unknown_category(self, runner):
        result = runner.invoke(cli.app, ["agents", "--category", "wizards"])
        assert result.exit_code == 1
        assert "Unknown category: wizards" in result.output

    def test_config(self, runner, monkeypatch):
        monkeypatch.setattr(
            cli, "get_settings",
            lambda: Settings(anthropic_api_key="sk-test", party={"moderator_id": None}),
        )
        result = runner.invoke(cli.app, ["config"])
        assert result.exit_code == 0
        assert "Anthropic: ✓ Set" in result.output
        assert "Moderator: none" in result.output

    def test_party_requires_api_key(self, runner, monkeypatch, clean_env, no_user_config):
        monkeypatch.setattr(cli, "get_settings", lambda: Settings(anthropic_api_key=None))
        result = runner.invoke(cli.app, ["party", "alice", "bob", "--topic", "cats"])
        assert result.exit_code == 1
        assert "No API key configured" in result.output

    def test_party_passes_overrides(self, runner, monkeypatch, no_user_config):
        captured = {}

        async def fake_run_party(console, settings, owner, agent_ids, topic, overrides):
            captured.update(owner=owner, agent_ids=agent_ids, topic=topic, overrides=overrides)

        monkeypatch.setattr(cli, "get_settings", lambda: Settings(anthropic_api_key="sk-test"))
        monkeypatch.setattr("partyline.ui.session.run_party", fake_run_party)
        result = runner.invoke(
            cli.app,
            ["party", "alice", "bob", "-t", "cats", "-o", "dynamic", "--no-moderator", "-u", "me"],
        )

        assert result.exit_code == 0
        assert captured == {
            "owner": "me",
            "agent_ids": ["alice", "bob"],
            "topic": "cats",
            "overrides": {"turn_ordering": "dynamic", "moderator_id": None},
        }
