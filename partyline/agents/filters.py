"""Category filtering and grouping for party agent selection."""

from typing import Any, Iterable, Optional

from .registry import AgentCategory, AgentDefinition, PersonaCatalog, get_default_catalog

CATEGORY_DISPLAY_NAMES: dict[AgentCategory, str] = {
    AgentCategory.CORE: "Core Team",
    AgentCategory.PERSONAL: "Personal Team",
    AgentCategory.CREATIVE: "Creative Intelligence",
    AgentCategory.GAMEDEV: "Game Development",
    AgentCategory.BMAD: "BMAD",
    AgentCategory.SPECIALIZED: "Specialized",
}

CATEGORY_ICONS: dict[AgentCategory, str] = {
    AgentCategory.CORE: "🏢",
    AgentCategory.PERSONAL: "👤",
    AgentCategory.CREATIVE: "✨",
    AgentCategory.GAMEDEV: "🎮",
    AgentCategory.BMAD: "🔮",
    AgentCategory.SPECIALIZED: "🎯",
}

DEFAULT_CATEGORY_ICON = "📦"


def agents_by_categories(
    categories: Optional[Iterable[AgentCategory]],
    catalog: Optional[PersonaCatalog] = None,
) -> list[AgentDefinition]:
    """Get agents belonging to any of the given categories.

    An empty or missing category list means no filter.
    """
    catalog = catalog or get_default_catalog()
    wanted = set(categories or ())
    if not wanted:
        return catalog.all_agents()
    return [a for a in catalog.all_agents() if a.category in wanted]


def agents_grouped_by_category(
    catalog: Optional[PersonaCatalog] = None,
) -> dict[str, Any]:
    """Group the catalog by category for selection screens.

    Returns:
        ``{"categories": [{"category", "display_name", "icon", "agents": [...]}],
        "total_agents": int}``; empty categories are omitted.
    """
    catalog = catalog or get_default_catalog()
    groups = []
    total = 0

    for category in AgentCategory:
        agents = catalog.by_category(category)
        if not agents:
            continue
        groups.append({
            "category": category,
            "display_name": category_display_name(category),
            "icon": category_icon(category),
            "agents": [
                {
                    "id": agent.id,
                    "name": agent.name,
                    "icon": agent.icon,
                    "description": agent.description,
                    "capabilities": list(agent.capabilities),
                }
                for agent in agents
            ],
        })
        total += len(agents)

    return {"categories": groups, "total_agents": total}


def category_display_name(category: AgentCategory) -> str:
    """Human-readable category name."""
    return CATEGORY_DISPLAY_NAMES.get(category, category.value)


def category_icon(category: AgentCategory) -> str:
    """Icon representing a category."""
    return CATEGORY_ICONS.get(category, DEFAULT_CATEGORY_ICON)


def is_agent_in_categories(
    agent: AgentDefinition,
    categories: Optional[Iterable[AgentCategory]],
) -> bool:
    """True if the agent is in one of the categories, or there is no filter."""
    wanted = set(categories or ())
    return not wanted or agent.category in wanted
