"""Configuration management for Partyline.

Settings are layered: the packaged ``defaults.yaml``, then the user's
``~/.partyline/config.yaml`` (or the file named by ``PARTYLINE_CONFIG``),
then environment variables read by :class:`Settings` itself. ``${VAR}``
references inside the YAML are expanded before validation.
"""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .settings import Settings

_settings: Optional[Settings] = None

CONFIG_DIR = Path.home() / ".partyline"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"
CONFIG_PATH_ENV = "PARTYLINE_CONFIG"

ENV_REF = re.compile(r"\$\{([^}]+)\}")

# YAML api_keys entry -> Settings field
API_KEY_FIELDS = {
    "anthropic": "anthropic_api_key",
    "openai": "openai_api_key",
}
SETTINGS_SECTIONS = ("provider", "party", "storage", "personas")


def _expand_env_vars(value: Any) -> Any:
    """Recursively replace ``${VAR}`` with its environment value.

    A string that expands to nothing becomes ``None`` so unset keys fall
    through to Settings defaults.
    """
    if isinstance(value, str):
        expanded = ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), value)
        return expanded or None
    if isinstance(value, dict):
        return {key: _expand_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge ``override`` into a copy of ``base``; nested dicts merge too."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _load_yaml_file(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _transform_config_to_settings(config: dict) -> dict:
    """Map the YAML layout onto Settings fields, dropping unknown sections."""
    api_keys = config.get("api_keys") or {}
    fields = {
        field: api_keys[name] for name, field in API_KEY_FIELDS.items() if api_keys.get(name)
    }
    fields.update({section: config[section] for section in SETTINGS_SECTIONS if config.get(section)})
    return fields


def user_config_path() -> Path:
    """The user config file, honouring ``PARTYLINE_CONFIG``."""
    override = os.environ.get(CONFIG_PATH_ENV)
    return Path(override).expanduser() if override else CONFIG_FILE


def create_default_config(path: Optional[Path] = None) -> bool:
    """Write the packaged defaults to ``path`` unless it already exists.

    Returns:
        True if a new file was written
    """
    path = path or user_config_path()
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULTS_FILE.read_text(encoding="utf-8"), encoding="utf-8")
    return True


def load_settings(config_path: Optional[Path] = None, force_reload: bool = False) -> Settings:
    """
    Load settings with priority: env vars > user config > defaults.

    Args:
        config_path: Optional path to a custom config file
        force_reload: Force reload even if settings are cached

    Returns:
        Settings instance
    """
    global _settings

    if _settings is not None and not force_reload:
        return _settings

    layered = _deep_merge(
        _load_yaml_file(DEFAULTS_FILE),
        _load_yaml_file(config_path or user_config_path()),
    )
    _settings = Settings(**_transform_config_to_settings(_expand_env_vars(layered)))
    return _settings


def get_settings() -> Settings:
    """Get the current settings instance, loading if necessary."""
    if _settings is None:
        return load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None


__all__ = [
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "create_default_config",
    "user_config_path",
    "CONFIG_DIR",
    "CONFIG_FILE",
    "CONFIG_PATH_ENV",
]
