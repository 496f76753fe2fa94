"""Persona loading from markdown files.

A persona file lives at ``<personas_dir>/<category>/<agent-id>.md`` (a flat
``<personas_dir>/<agent-id>.md`` is also accepted) and looks like::

    ---
    name: Bob
    role: Senior Software Engineer
    icon: 💻
    tags: engineering, backend
    ---
    # Bob

    ## Description
    Full-stack developer ...

    ## Capabilities
    - software-development
    - code-review

The whole file becomes the system prompt. When no file exists the persona
is synthesized from the catalog definition so every registered agent can
speak.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from partyline.errors import PersonaLoadError

from .registry import AgentCategory, AgentDefinition, PersonaCatalog, get_default_catalog

logger = logging.getLogger(__name__)

FRONT_MATTER_DELIMITER = "---"

SYNTHESIZED_PROMPT_TEMPLATE = """You are {name} {icon}, {description}

Your areas of expertise: {capabilities}.

Stay in character as {name}. Speak in the first person, be concrete, and keep
contributions focused on what your expertise adds to the discussion."""


@dataclass
class Persona:
    """A resolved persona with its system prompt."""

    id: str
    name: str
    system_prompt: str
    role: str = ""
    description: str = ""
    icon: str = ""
    category: Optional[AgentCategory] = None
    capabilities: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


def _split_front_matter(content: str) -> tuple[Optional[str], str]:
    lines = content.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return None, content
    for index in range(1, len(lines)):
        if lines[index].strip() == FRONT_MATTER_DELIMITER:
            return "\n".join(lines[1:index]), "\n".join(lines[index + 1:])
    return None, content


def parse_persona_markdown(
    agent_id: str,
    content: str,
    category: Optional[AgentCategory] = None,
) -> Persona:
    """Parse persona markdown into a Persona.

    Raises:
        PersonaLoadError: If the YAML front matter is malformed
    """
    front_matter, body = _split_front_matter(content)

    meta: dict = {}
    if front_matter is not None:
        try:
            meta = yaml.safe_load(front_matter) or {}
        except yaml.YAMLError as e:
            raise PersonaLoadError(agent_id, f"invalid front matter: {e}") from e
        if not isinstance(meta, dict):
            raise PersonaLoadError(agent_id, "front matter must be a mapping")

    name = str(meta.get("name") or agent_id)
    description_lines: list[str] = []
    capabilities: list[str] = []
    section = ""

    for line in body.splitlines():
        stripped = line.strip()
        if line.startswith("# "):
            name = str(meta.get("name") or line[2:].strip())
        elif line.startswith("## "):
            section = line[3:].strip().lower()
        elif section == "description" and stripped:
            description_lines.append(stripped)
        elif section == "capabilities" and stripped.startswith("- "):
            capabilities.append(stripped[2:].strip())

    tags = meta.get("tags") or []
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",") if t.strip()]

    description = " ".join(description_lines) or f"{name} - AI Assistant"

    return Persona(
        id=agent_id,
        name=name,
        system_prompt=content,
        role=str(meta.get("role") or ""),
        description=description,
        icon=str(meta.get("icon") or ""),
        category=category,
        capabilities=capabilities,
        tags=[str(t) for t in tags],
    )


def synthesize_persona(agent: AgentDefinition) -> Persona:
    """Build a persona from catalog metadata alone."""
    prompt = SYNTHESIZED_PROMPT_TEMPLATE.format(
        name=agent.name,
        icon=agent.icon,
        description=agent.description[0].lower() + agent.description[1:],
        capabilities=", ".join(agent.capabilities) or "general discussion",
    )
    return Persona(
        id=agent.id,
        name=agent.name,
        system_prompt=prompt,
        description=agent.description,
        icon=agent.icon,
        category=agent.category,
        capabilities=list(agent.capabilities),
    )


class PersonaLoader:
    """Loads and caches personas for catalog agents."""

    def __init__(
        self,
        directory: Optional[Path] = None,
        catalog: Optional[PersonaCatalog] = None,
    ):
        self.directory = directory
        self.catalog = catalog or get_default_catalog()
        self._cache: dict[str, Persona] = {}

    def _candidate_paths(self, agent: AgentDefinition) -> list[Path]:
        if self.directory is None:
            return []
        return [
            self.directory / agent.category.value / f"{agent.id}.md",
            self.directory / f"{agent.id}.md",
        ]

    def load(self, agent_id: str) -> Optional[Persona]:
        """Load the persona for an agent id.

        Returns:
            The persona, or None if the id is not in the catalog
        """
        key = agent_id.lower()
        if key in self._cache:
            return self._cache[key]

        agent = self.catalog.resolve(key)
        if agent is None:
            logger.warning(f"Persona not found: {agent_id}")
            return None

        persona: Optional[Persona] = None
        for path in self._candidate_paths(agent):
            if not path.is_file():
                continue
            try:
                persona = parse_persona_markdown(
                    agent.id, path.read_text(encoding="utf-8"), agent.category
                )
                break
            except (OSError, PersonaLoadError) as e:
                logger.warning(f"Skipping persona file {path}: {e}")

        if persona is None:
            persona = synthesize_persona(agent)
        elif not persona.icon:
            persona.icon = agent.icon

        self._cache[key] = persona
        return persona

    def clear_cache(self) -> None:
        """Forget loaded personas (e.g. after editing files)."""
        self._cache.clear()
