"""Persona catalog, persona loading and the agent service."""

from .filters import (
    CATEGORY_DISPLAY_NAMES,
    CATEGORY_ICONS,
    agents_by_categories,
    agents_grouped_by_category,
    category_display_name,
    category_icon,
    is_agent_in_categories,
)
from .personas import Persona, PersonaLoader, parse_persona_markdown, synthesize_persona
from .registry import (
    BUILTIN_AGENTS,
    AgentCategory,
    AgentDefinition,
    PersonaCatalog,
    get_default_catalog,
)
from .service import AgentInvocation, AgentReply, AgentService

__all__ = [
    # Registry
    "AgentCategory",
    "AgentDefinition",
    "BUILTIN_AGENTS",
    "PersonaCatalog",
    "get_default_catalog",
    # Filters
    "CATEGORY_DISPLAY_NAMES",
    "CATEGORY_ICONS",
    "agents_by_categories",
    "agents_grouped_by_category",
    "category_display_name",
    "category_icon",
    "is_agent_in_categories",
    # Personas
    "Persona",
    "PersonaLoader",
    "parse_persona_markdown",
    "synthesize_persona",
    # Service
    "AgentInvocation",
    "AgentReply",
    "AgentService",
]
