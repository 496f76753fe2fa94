"""Configuration settings models using Pydantic."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from partyline.errors import MissingAPIKeyError


class ProviderConfig(BaseModel):
    """Configuration for the completion provider."""

    name: Literal["claude", "gpt"] = "claude"
    model_id: Optional[str] = None
    max_tokens: int = Field(default=4096, ge=1, le=200000)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_retries: int = Field(default=3, ge=0, le=10)

    @field_validator("model_id")
    @classmethod
    def validate_model_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        if not v.strip():
            raise ValueError("model_id cannot be empty")
        return v.strip()


class PartyConfigDefaults(BaseModel):
    """Defaults applied to every new party session."""

    moderator_id: Optional[str] = "aurora-forester"
    turn_ordering: Literal["round-robin", "dynamic", "moderator-directed"] = "round-robin"
    max_turns: int = Field(default=5, ge=1, le=100)
    dynamic_jitter: float = Field(default=5.0, ge=0.0, le=50.0)

    @field_validator("moderator_id")
    @classmethod
    def validate_moderator_id(cls, v: Optional[str]) -> Optional[str]:
        """Empty moderator ids mean "no moderator"."""
        if v is not None and not v.strip():
            return None
        return v.strip().lower() if v else v


class StorageConfig(BaseModel):
    """Configuration for in-memory session retention."""

    session_max_age_hours: float = Field(default=24.0, gt=0)
    sweep_interval_minutes: float = Field(default=10.0, gt=0)

    @property
    def session_max_age_ms(self) -> int:
        """Idle threshold in milliseconds."""
        return int(self.session_max_age_hours * 60 * 60 * 1000)

    @property
    def sweep_interval_seconds(self) -> float:
        """Sweep period in seconds."""
        return self.sweep_interval_minutes * 60


class PersonasConfig(BaseModel):
    """Where persona markdown files are looked up."""

    directory: Optional[str] = None

    @property
    def resolved_directory(self) -> Optional[Path]:
        """Get the personas directory with ~ expanded."""
        if not self.directory:
            return None
        return Path(self.directory).expanduser()


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="PARTYLINE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # AliasChoices allows reading from either the field name or PROVIDER_API_KEY
    anthropic_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("anthropic_api_key", "ANTHROPIC_API_KEY"),
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "OPENAI_API_KEY"),
    )

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    party: PartyConfigDefaults = Field(default_factory=PartyConfigDefaults)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    personas: PersonasConfig = Field(default_factory=PersonasConfig)

    @field_validator("anthropic_api_key", "openai_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        """Validate API keys are not empty strings."""
        if v is not None and not v.strip():
            return None
        return v

    def api_key_for(self, provider: str) -> Optional[str]:
        """Get the API key for a provider name."""
        key_map = {
            "claude": self.anthropic_api_key,
            "gpt": self.openai_api_key,
        }
        return key_map.get(provider)

    def has_api_key(self, provider: str) -> bool:
        """Check if an API key exists for the given provider."""
        return self.api_key_for(provider) is not None

    def require_api_key(self, provider: str) -> str:
        """Get the API key for a provider.

        Raises:
            MissingAPIKeyError: If no key is configured
        """
        key = self.api_key_for(provider)
        if key is None:
            raise MissingAPIKeyError(provider)
        return key
