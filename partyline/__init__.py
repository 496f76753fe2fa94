"""Partyline - multi-persona party discussions with a moderator."""

__version__ = "0.1.0"
