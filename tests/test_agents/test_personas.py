"""Tests for persona loading."""

from pathlib import Path

import pytest

from partyline.agents.personas import (
    PersonaLoader,
    parse_persona_markdown,
    synthesize_persona,
)
from partyline.agents.registry import AgentCategory, PersonaCatalog
from partyline.errors import PersonaLoadError

BOB_MARKDOWN = """---
name: Bob the Builder
role: Senior Software Engineer
tags: engineering, backend
---
# Bob

## Description
Full-stack developer
with deep expertise.

## Capabilities
- software-development
- code-review
"""


class TestParsePersonaMarkdown:
    """Tests for markdown parsing."""

    def test_front_matter_and_sections(self) -> None:
        persona = parse_persona_markdown("bob", BOB_MARKDOWN, AgentCategory.CORE)

        assert persona.name == "Bob the Builder"
        assert persona.role == "Senior Software Engineer"
        assert persona.tags == ["engineering", "backend"]
        assert persona.description == "Full-stack developer with deep expertise."
        assert persona.capabilities == ["software-development", "code-review"]
        assert persona.system_prompt == BOB_MARKDOWN
        assert persona.category == AgentCategory.CORE

    def test_heading_name_without_front_matter(self) -> None:
        persona = parse_persona_markdown("bob", "# Robert\n\nHello.")
        assert persona.name == "Robert"
        assert persona.description == "Robert - AI Assistant"

    def test_tag_list(self) -> None:
        persona = parse_persona_markdown("bob", "---\ntags: [a, b]\n---\n# Bob\n")
        assert persona.tags == ["a", "b"]

    def test_invalid_front_matter(self) -> None:
        with pytest.raises(PersonaLoadError):
            parse_persona_markdown("bob", "---\nname: [unclosed\n---\n# Bob\n")

    def test_front_matter_must_be_mapping(self) -> None:
        with pytest.raises(PersonaLoadError, match="mapping"):
            parse_persona_markdown("bob", "---\n- a\n- b\n---\n# Bob\n")


class TestSynthesizePersona:
    """Tests for personas built from catalog metadata."""

    def test_prompt_from_definition(self, catalog: PersonaCatalog) -> None:
        persona = synthesize_persona(catalog.resolve("bob"))
        assert persona.system_prompt.startswith("You are Bob 🐻, speaker bob for tests.")
        assert "engineering, debugging" in persona.system_prompt
        assert persona.capabilities == ["engineering", "debugging"]


class TestPersonaLoader:
    """Tests for PersonaLoader."""

    def test_unknown_agent(self, catalog: PersonaCatalog) -> None:
        assert PersonaLoader(None, catalog).load("zed") is None

    def test_synthesized_without_directory(self, catalog: PersonaCatalog) -> None:
        persona = PersonaLoader(None, catalog).load("Bob")
        assert persona.id == "bob"
        assert persona.name == "Bob"

    def test_loads_category_file(self, catalog: PersonaCatalog, temp_dir: Path) -> None:
        (temp_dir / "core").mkdir()
        (temp_dir / "core" / "bob.md").write_text(BOB_MARKDOWN, encoding="utf-8")

        persona = PersonaLoader(temp_dir, catalog).load("bob")
        assert persona.name == "Bob the Builder"
        # No icon in the file, so the catalog's is used
        assert persona.icon == "🐻"

    def test_loads_flat_file(self, catalog: PersonaCatalog, temp_dir: Path) -> None:
        (temp_dir / "carol.md").write_text("# Carol C\n", encoding="utf-8")
        assert PersonaLoader(temp_dir, catalog).load("carol").name == "Carol C"

    def test_broken_file_falls_back(self, catalog: PersonaCatalog, temp_dir: Path) -> None:
        (temp_dir / "bob.md").write_text("---\nname: [oops\n---\n", encoding="utf-8")
        persona = PersonaLoader(temp_dir, catalog).load("bob")
        assert persona.system_prompt.startswith("You are Bob")

    def test_cache(self, catalog: PersonaCatalog, temp_dir: Path) -> None:
        loader = PersonaLoader(temp_dir, catalog)
        first = loader.load("bob")
        (temp_dir / "bob.md").write_text("# Changed\n", encoding="utf-8")
        assert loader.load("bob") is first

        loader.clear_cache()
        assert loader.load("bob").name == "Changed"
