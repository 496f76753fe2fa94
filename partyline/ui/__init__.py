"""Terminal front end for Partyline."""

from .input import PARTY_COMMANDS, MentionCompleter, PartyInput
from .render import PartyRenderer, render_agent_catalog
from .session import PartyShell, parse_config_args, run_party

__all__ = [
    # Input
    "PARTY_COMMANDS",
    "MentionCompleter",
    "PartyInput",
    # Rendering
    "PartyRenderer",
    "render_agent_catalog",
    # Interactive loop
    "PartyShell",
    "parse_config_args",
    "run_party",
]
