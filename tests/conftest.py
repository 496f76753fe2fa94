"""Pytest configuration and fixtures for Partyline tests."""

import asyncio
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

from partyline.agents.personas import PersonaLoader
from partyline.agents.registry import AgentCategory, AgentDefinition, PersonaCatalog
from partyline.agents.service import AgentService
from partyline.config import Settings, reset_settings
from partyline.errors import APIError
from partyline.models.base import CompletionProvider
from partyline.models.types import Message, ModelResponse, Usage
from partyline.orchestrator.engine import PartyOrchestrator
from partyline.session.models import (
    Participant,
    PartyConfig,
    PartyMessage,
    PartySession,
)
from partyline.session.store import InMemorySessionStore

SPEAKER_PATTERN = re.compile(r"speaker ([a-z-]+) for tests")

TEST_AGENTS = (
    AgentDefinition(
        id="alice",
        name="Alice",
        category=AgentCategory.CORE,
        description="Speaker alice for tests.",
        icon="🦊",
        capabilities=("facilitation", "planning", "writing", "research"),
    ),
    AgentDefinition(
        id="bob",
        name="Bob",
        category=AgentCategory.CORE,
        description="Speaker bob for tests.",
        icon="🐻",
        capabilities=("engineering", "debugging"),
    ),
    AgentDefinition(
        id="carol",
        name="Carol",
        category=AgentCategory.CREATIVE,
        description="Speaker carol for tests.",
        icon="🐦",
        capabilities=("design",),
    ),
    AgentDefinition(
        id="dave-o",
        name="Dave O",
        category=AgentCategory.GAMEDEV,
        description="Speaker dave-o for tests.",
        icon="🎲",
        capabilities=("game-design",),
    ),
)


@dataclass
class ProviderCall:
    """One recorded call to the fake provider."""

    speaker: Optional[str]
    system: Optional[str]
    messages: list[Message] = field(default_factory=list)

    @property
    def prompt(self) -> str:
        return self.messages[-1].content if self.messages else ""


Responder = Callable[[Optional[str], list[Message]], str]


class FakeProvider(CompletionProvider):
    """Completion provider that answers from a script instead of an API."""

    name = "claude"
    display_name = "Fake"

    def __init__(
        self,
        responder: Optional[Responder] = None,
        fail_for: tuple[str, ...] = (),
        api_key: Optional[str] = "test-key",
        delay: float = 0.0,
    ):
        super().__init__(api_key=api_key)
        self.responder = responder
        self.delay = delay
        self.fail_for = set(fail_for)
        self.calls: list[ProviderCall] = []

    def _default_model_id(self) -> str:
        return "fake-model"

    @property
    def is_available(self) -> bool:
        return self.api_key is not None

    @property
    def speakers(self) -> list[Optional[str]]:
        return [call.speaker for call in self.calls]

    async def generate(
        self,
        messages: list[Message],
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> ModelResponse:
        match = SPEAKER_PATTERN.search(system or "")
        speaker = match.group(1) if match else None
        self.calls.append(ProviderCall(speaker, system, list(messages)))
        if self.delay:
            await asyncio.sleep(self.delay)

        if speaker in self.fail_for:
            raise APIError("upstream exploded", model=self.model_id, status_code=500)

        if self.responder is not None:
            content = self.responder(speaker, messages)
        else:
            content = f"{speaker} contribution #{len(self.calls)}"
        return ModelResponse(
            content=content,
            model=self.model_id,
            usage=Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        )


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def catalog() -> PersonaCatalog:
    """Small catalog: alice, bob, carol and dave-o."""
    return PersonaCatalog(TEST_AGENTS)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no default moderator and a test API key."""
    reset_settings()
    return Settings(
        anthropic_api_key="test-anthropic-key",
        party={"moderator_id": None, "dynamic_jitter": 0.0},
    )


@pytest.fixture
def make_provider() -> type[FakeProvider]:
    """The scripted provider class, for tests that need custom replies."""
    return FakeProvider


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def store(catalog: PersonaCatalog) -> InMemorySessionStore:
    return InMemorySessionStore(catalog=catalog, default_config=PartyConfig(moderator_id=None))


@pytest.fixture
def make_orchestrator(
    catalog: PersonaCatalog, store: InMemorySessionStore, test_settings: Settings
) -> Callable[..., PartyOrchestrator]:
    """Factory building an orchestrator around a given provider."""

    def _make(provider: Optional[CompletionProvider] = None) -> PartyOrchestrator:
        service = AgentService(provider or FakeProvider(), PersonaLoader(None, catalog))
        return PartyOrchestrator(
            store=store,
            agent_service=service,
            catalog=catalog,
            settings=test_settings,
            rng=lambda: 0.0,
        )

    return _make


@pytest.fixture
def orchestrator(
    make_orchestrator: Callable[..., PartyOrchestrator], provider: FakeProvider
) -> PartyOrchestrator:
    return make_orchestrator(provider)


@pytest.fixture
def make_session(catalog: PersonaCatalog) -> Callable[..., PartySession]:
    """Factory for in-memory sessions that bypass the store.

    ``turn_counts`` maps agent id to a starting turn count.
    """

    def _make(
        agent_ids: list[str],
        moderator_id: Optional[str] = None,
        turn_counts: Optional[dict[str, int]] = None,
        history: Optional[list[PartyMessage]] = None,
        current_turn: int = 0,
        current_speaker_index: int = 0,
        topic: str = "topic X",
        **config: object,
    ) -> PartySession:
        turn_counts = turn_counts or {}
        participants = []
        for agent_id in agent_ids:
            agent = catalog.resolve(agent_id)
            participants.append(Participant(
                agent_id=agent.id,
                name=agent.name,
                category=agent.category,
                icon=agent.icon,
                is_moderator=agent.id == moderator_id,
                turn_count=turn_counts.get(agent.id, 0),
            ))
        return PartySession(
            id="session-1",
            owner_id="u1",
            config=PartyConfig(moderator_id=moderator_id, **config),
            topic=topic,
            participants=participants,
            history=history or [],
            current_turn=current_turn,
            current_speaker_index=current_speaker_index,
        )

    return _make


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Clean environment variables for testing."""
    original = {}
    env_vars = [
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "PARTYLINE_ANTHROPIC_API_KEY",
        "PARTYLINE_OPENAI_API_KEY",
        "PARTYLINE_CONFIG",
    ]
    for var in env_vars:
        original[var] = os.environ.pop(var, None)

    reset_settings()

    yield

    for var, value in original.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]

    reset_settings()


@pytest.fixture
def mock_api_keys(clean_env: None) -> Generator[None, None, None]:
    """Set mock API keys for testing."""
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    yield
