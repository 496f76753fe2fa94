"""Tests for configuration loading."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from partyline.config import (
    Settings,
    _deep_merge,
    _expand_env_vars,
    _transform_config_to_settings,
    create_default_config,
    get_settings,
    load_settings,
    reset_settings,
    user_config_path,
)
from partyline.config.settings import PartyConfigDefaults, StorageConfig
from partyline.errors import MissingAPIKeyError


class TestExpandEnvVars:
    """Tests for environment variable expansion."""

    def test_expand_simple_var(self) -> None:
        """Test expanding a simple environment variable."""
        os.environ["PARTYLINE_TEST_VAR"] = "test_value"
        try:
            assert _expand_env_vars("${PARTYLINE_TEST_VAR}") == "test_value"
        finally:
            del os.environ["PARTYLINE_TEST_VAR"]

    def test_expand_missing_var(self) -> None:
        """Test expanding a missing environment variable returns None."""
        assert _expand_env_vars("${PARTYLINE_NONEXISTENT_VAR}") is None

    def test_expand_nested(self) -> None:
        """Test expanding variables inside dicts and lists."""
        os.environ["PARTYLINE_NESTED"] = "deep"
        try:
            result = _expand_env_vars({"a": {"b": ["${PARTYLINE_NESTED}", "static"]}})
            assert result == {"a": {"b": ["deep", "static"]}}
        finally:
            del os.environ["PARTYLINE_NESTED"]

    def test_non_strings_untouched(self) -> None:
        assert _expand_env_vars(5) == 5
        assert _expand_env_vars(None) is None


class TestDeepMerge:
    """Tests for deep dictionary merging."""

    def test_nested_merge(self) -> None:
        base = {"party": {"max_turns": 5, "turn_ordering": "round-robin"}}
        override = {"party": {"turn_ordering": "dynamic"}}
        result = _deep_merge(base, override)
        assert result == {"party": {"max_turns": 5, "turn_ordering": "dynamic"}}

    def test_override_non_dict(self) -> None:
        result = _deep_merge({"key": {"nested": "value"}}, {"key": "simple"})
        assert result == {"key": "simple"}

    def test_base_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestTransformConfig:
    """Tests for mapping the YAML layout onto Settings fields."""

    def test_api_keys_are_flattened(self) -> None:
        result = _transform_config_to_settings(
            {"api_keys": {"anthropic": "a-key", "openai": None}}
        )
        assert result == {"anthropic_api_key": "a-key"}

    def test_sections_are_copied(self) -> None:
        result = _transform_config_to_settings({
            "party": {"max_turns": 3},
            "storage": {"session_max_age_hours": 1},
            "unrelated": {"x": 1},
        })
        assert result == {
            "party": {"max_turns": 3},
            "storage": {"session_max_age_hours": 1},
        }


class TestSettings:
    """Tests for the Settings model."""

    def test_defaults(self, clean_env: None) -> None:
        settings = Settings()
        assert settings.provider.name == "claude"
        assert settings.party.moderator_id == "aurora-forester"
        assert settings.party.turn_ordering == "round-robin"
        assert settings.party.max_turns == 5
        assert settings.anthropic_api_key is None

    def test_empty_api_key_is_none(self, clean_env: None) -> None:
        settings = Settings(anthropic_api_key="   ")
        assert settings.anthropic_api_key is None
        assert not settings.has_api_key("claude")

    def test_api_key_for(self, clean_env: None) -> None:
        settings = Settings(anthropic_api_key="a", openai_api_key="o")
        assert settings.api_key_for("claude") == "a"
        assert settings.api_key_for("gpt") == "o"
        assert settings.api_key_for("unknown") is None

    def test_require_api_key(self, clean_env: None) -> None:
        settings = Settings(anthropic_api_key="a")
        assert settings.require_api_key("claude") == "a"
        with pytest.raises(MissingAPIKeyError, match="gpt"):
            settings.require_api_key("gpt")

    def test_api_key_from_provider_env_var(self, mock_api_keys: None) -> None:
        settings = Settings()
        assert settings.anthropic_api_key == "test-anthropic-key"
        assert settings.has_api_key("gpt")

    def test_blank_moderator_means_none(self) -> None:
        assert PartyConfigDefaults(moderator_id="  ").moderator_id is None
        assert PartyConfigDefaults(moderator_id="Bob").moderator_id == "bob"

    def test_invalid_turn_ordering_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PartyConfigDefaults(turn_ordering="chaos")

    def test_storage_unit_conversion(self) -> None:
        storage = StorageConfig(session_max_age_hours=2, sweep_interval_minutes=1.5)
        assert storage.session_max_age_ms == 2 * 60 * 60 * 1000
        assert storage.sweep_interval_seconds == 90

    def test_storage_rejects_zero(self) -> None:
        with pytest.raises(ValidationError):
            StorageConfig(session_max_age_hours=0)


class TestLoadSettings:
    """Tests for load_settings and the singleton."""

    def test_load_from_user_file(self, clean_env: None, temp_dir: Path) -> None:
        config_path = temp_dir / "config.yaml"
        config_path.write_text(
            """
api_keys:
  anthropic: file-key
party:
  moderator_id: winston
  turn_ordering: dynamic
storage:
  session_max_age_hours: 1
"""
        )
        settings = load_settings(config_path=config_path, force_reload=True)

        assert settings.anthropic_api_key == "file-key"
        assert settings.party.moderator_id == "winston"
        assert settings.party.turn_ordering == "dynamic"
        # Untouched defaults survive the merge
        assert settings.party.max_turns == 5
        assert settings.provider.model_id == "claude-sonnet-4-20250514"
        assert settings.storage.session_max_age_ms == 60 * 60 * 1000

    def test_env_key_used_by_defaults(self, mock_api_keys: None, temp_dir: Path) -> None:
        settings = load_settings(config_path=temp_dir / "missing.yaml", force_reload=True)
        assert settings.anthropic_api_key == "test-anthropic-key"

    def test_singleton(self, clean_env: None, temp_dir: Path) -> None:
        first = load_settings(config_path=temp_dir / "missing.yaml", force_reload=True)
        assert get_settings() is first
        assert load_settings() is first
        reset_settings()
        assert get_settings() is not first

    def test_config_path_from_env(
        self, clean_env: None, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_path = temp_dir / "party.yaml"
        config_path.write_text("party:\n  max_turns: 9\n")
        monkeypatch.setenv("PARTYLINE_CONFIG", str(config_path))

        assert user_config_path() == config_path
        assert load_settings(force_reload=True).party.max_turns == 9


class TestCreateDefaultConfig:
    """Tests for writing the first-run config file."""

    def test_writes_packaged_defaults(self, temp_dir: Path) -> None:
        path = temp_dir / "nested" / "config.yaml"
        assert create_default_config(path)
        assert "turn_ordering: round-robin" in path.read_text(encoding="utf-8")

    def test_existing_file_untouched(self, temp_dir: Path) -> None:
        path = temp_dir / "config.yaml"
        path.write_text("party: {}\n")
        assert not create_default_config(path)
        assert path.read_text() == "party: {}\n"
