"""Persona catalog: the agents that can join a party.

Each agent has a stable id (what users type after ``@``), a display name,
an icon, a category and a short list of capability tags. The built-in
registry ships the default cast; ``PersonaCatalog`` wraps any registry so
tests and embedders can supply their own.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


class AgentCategory(str, Enum):
    """Team an agent belongs to."""

    CORE = "core"
    PERSONAL = "personal"
    CREATIVE = "creative"
    GAMEDEV = "gamedev"
    BMAD = "bmad"
    SPECIALIZED = "specialized"


@dataclass(frozen=True)
class AgentDefinition:
    """Display metadata and capabilities for one persona."""

    id: str
    name: str
    category: AgentCategory
    description: str
    icon: str
    capabilities: tuple[str, ...] = field(default_factory=tuple)

    @property
    def persona_file(self) -> str:
        """Relative path of the persona markdown file."""
        return f"{self.category.value}/{self.id}.md"


def _agent(
    agent_id: str,
    name: str,
    category: AgentCategory,
    icon: str,
    description: str,
    *capabilities: str,
) -> AgentDefinition:
    return AgentDefinition(
        id=agent_id,
        name=name,
        category=category,
        description=description,
        icon=icon,
        capabilities=capabilities,
    )


_CORE = AgentCategory.CORE
_PERSONAL = AgentCategory.PERSONAL
_CREATIVE = AgentCategory.CREATIVE
_GAMEDEV = AgentCategory.GAMEDEV
_BMAD = AgentCategory.BMAD
_SPECIALIZED = AgentCategory.SPECIALIZED

BUILTIN_AGENTS: tuple[AgentDefinition, ...] = (
    # Core team
    _agent("aurora-forester", "Aurora Forester", _CORE, "🌲",
           "Primary Assistant and Team Leader. Orchestrates the agent team and makes autonomous decisions.",
           "team-orchestration", "strategic-planning", "escalation-management", "context-maintenance"),
    _agent("winston", "Winston", _CORE, "🏛️",
           "Chief Strategy Officer. Seasoned executive for strategic planning and vision-setting.",
           "strategic-planning", "vision-development", "risk-assessment", "competitive-analysis"),
    _agent("john", "John", _CORE, "📋",
           "Project Manager. Expert in agile methodologies, sprint planning, and team coordination.",
           "project-management", "sprint-planning", "agile-methodologies", "team-coordination"),
    _agent("amelia", "Amelia", _CORE, "🎨",
           "Product Designer. Creates intuitive user experiences and beautiful interfaces.",
           "ux-design", "ui-design", "prototyping", "user-research"),
    _agent("bob", "Bob", _CORE, "💻",
           "Senior Software Engineer. Full-stack developer with deep technical expertise.",
           "software-development", "code-review", "architecture", "debugging"),
    _agent("marcus", "Marcus", _CORE, "🔧",
           "DevOps Engineer. Infrastructure specialist for CI/CD and cloud deployments.",
           "devops", "ci-cd", "infrastructure", "monitoring"),
    _agent("elena", "Elena", _CORE, "🔍",
           "QA Engineer. Quality assurance expert ensuring robust, reliable software.",
           "testing", "qa", "test-automation", "bug-tracking"),
    _agent("sophie", "Sophie", _CORE, "📝",
           "Technical Writer. Creates clear, comprehensive documentation.",
           "technical-writing", "documentation", "api-docs", "user-guides"),
    _agent("tea", "Tea", _CORE, "🧪",
           "Test Architect. Designs comprehensive testing strategies and frameworks.",
           "test-architecture", "test-strategy", "framework-design", "quality-metrics"),
    _agent("mary", "Mary", _CORE, "📊",
           "Business Analyst. Bridges business needs and technical solutions.",
           "business-analysis", "requirements-gathering", "process-modeling", "stakeholder-management"),
    # Personal team
    _agent("dominic-vega", "Dominic Vega", _PERSONAL, "💼",
           "Sales & Business Development Lead. Consultative selling and pipeline management.",
           "sales", "lead-generation", "proposal-creation", "pipeline-management", "negotiation"),
    _agent("celeste-marlowe", "Celeste Marlowe", _PERSONAL, "📣",
           "Marketing & Brand Strategist. Digital presence and content strategy.",
           "marketing", "brand-strategy", "content-creation", "social-media", "seo"),
    _agent("vincent-thorne", "Vincent Thorne", _PERSONAL, "💰",
           "Finance & Operations Manager. Financial clarity and cash flow management.",
           "finance", "bookkeeping", "cash-flow", "budgeting", "tax-planning"),
    _agent("theo-ashford", 'Theodore "Theo" Ashford', _PERSONAL, "📅",
           "Executive Assistant. Founder operations and productivity optimization.",
           "scheduling", "task-management", "email-triage", "meeting-prep", "life-admin"),
    _agent("margot-sinclair", "Margot Sinclair", _PERSONAL, "🤝",
           "Client Success Manager. Relationship building and client outcomes.",
           "client-success", "onboarding", "retention", "relationship-management", "feedback"),
    _agent("evelyn-cross", "Evelyn Cross", _PERSONAL, "⚖️",
           "Legal & Compliance Advisor. Risk navigation and contract review.",
           "legal", "contracts", "compliance", "risk-management", "intellectual-property"),
    # Creative intelligence
    _agent("spark", "Spark", _CREATIVE, "⚡",
           "Brainstorming Coach. Creative facilitation using SCAMPER, Mind Mapping, and ideation techniques.",
           "brainstorming", "scamper", "mind-mapping", "ideation", "facilitation"),
    _agent("nova", "Nova", _CREATIVE, "🌟",
           "Creative Problem Solver. Systematic innovation using Root Cause Analysis and First Principles.",
           "problem-solving", "root-cause-analysis", "first-principles", "systems-thinking", "triz"),
    _agent("iris", "Iris", _CREATIVE, "👁️",
           "Design Thinking Coach. Human-centered design through Empathize, Define, Ideate, Prototype, Test.",
           "design-thinking", "user-research", "empathy-mapping", "prototyping", "user-testing"),
    _agent("atlas", "Atlas", _CREATIVE, "🗺️",
           "Innovation Strategist. Strategic planning using Business Model Canvas and Three Horizons.",
           "innovation-strategy", "business-model", "competitive-analysis", "portfolio-management", "roadmapping"),
    _agent("fable", "Fable", _CREATIVE, "📖",
           "Storyteller. Narrative architecture using Hero's Journey and Story Spine frameworks.",
           "storytelling", "narrative-design", "presentation", "content-creation", "communication"),
    # Game development
    _agent("victor", "Victor", _GAMEDEV, "🏗️",
           "Game Architect. Technical design for Unity, Unreal, Godot with systems architecture.",
           "game-architecture", "unity", "unreal", "godot", "systems-design", "performance"),
    _agent("luna", "Luna", _GAMEDEV, "🎮",
           "Game Designer. Player experience using MDA framework, balancing, and progression design.",
           "game-design", "mda-framework", "player-psychology", "balancing", "progression", "mechanics"),
    _agent("rex", "Rex", _GAMEDEV, "🦖",
           "Game Developer. Implementation specialist for Unity C#, Unreal C++, and Godot GDScript.",
           "game-development", "unity", "unreal", "godot", "gdscript", "gameplay-programming", "tdd", "performance"),
    _agent("diego", "Diego", _GAMEDEV, "🎯",
           "Game Scrum Master. Agile facilitation adapted for game development with playtesting integration.",
           "scrum", "agile", "sprint-planning", "velocity-tracking", "game-dev-process", "facilitation"),
    # BMAD
    _agent("bmad-master", "BMAD Master", _BMAD, "🧙",
           "Methodology Orchestrator. Master of BMAD workflows, party-mode facilitation, and menu-driven interaction.",
           "workflow-orchestration", "party-mode", "manifest-management", "agent-coordination", "task-execution"),
    _agent("bmad-builder", "Mason", _BMAD, "🔨",
           "Module Builder. Creates BMAD-compliant agents, workflows, and modules with quality auditing.",
           "agent-creation", "workflow-creation", "module-building", "bmad-compliance", "quality-audit"),
    # Specialized
    _agent("dr-cadence", "Dr. Cadence", _SPECIALIZED, "🎙️",
           "Communication Specialist. Optimizes agent communication patterns, cadence, and style.",
           "communication-analysis", "cadence-tuning", "style-optimization", "agent-coaching"),
    _agent("jack-valltrades", "Jack Valltrades", _SPECIALIZED, "🎭",
           "Community Interface. The founder's personable essence, connecting through story and meaning.",
           "community-engagement", "storytelling", "founder-representation", "narrative-connection"),
)


class PersonaCatalog:
    """Lookup table from agent id to ``AgentDefinition``.

    Ids are matched case-insensitively; the catalog stores them lower-cased.
    """

    def __init__(self, agents: Optional[Iterable[AgentDefinition]] = None):
        source = BUILTIN_AGENTS if agents is None else agents
        self._agents: dict[str, AgentDefinition] = {}
        for agent in source:
            self._agents[agent.id.lower()] = agent

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return isinstance(agent_id, str) and self.is_known(agent_id)

    def resolve(self, agent_id: str) -> Optional[AgentDefinition]:
        """Get an agent definition by id, or None if unknown."""
        return self._agents.get(agent_id.lower())

    def is_known(self, agent_id: str) -> bool:
        """Check whether an id is registered."""
        return agent_id.lower() in self._agents

    def all_ids(self) -> list[str]:
        """All registered ids in registration order."""
        return list(self._agents)

    def all_agents(self) -> list[AgentDefinition]:
        """All registered definitions in registration order."""
        return list(self._agents.values())

    def by_category(self, category: AgentCategory) -> list[AgentDefinition]:
        """Definitions belonging to one category."""
        return [a for a in self._agents.values() if a.category == category]


_default_catalog: Optional[PersonaCatalog] = None


def get_default_catalog() -> PersonaCatalog:
    """The process-wide catalog built from ``BUILTIN_AGENTS``."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = PersonaCatalog()
    return _default_catalog
