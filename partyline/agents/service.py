"""Agent service: one persona, one reply.

This is the boundary between the party engine and the completion provider.
Provider failures never escape it; they come back as reply text so a
discussion round can carry on.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from partyline.errors import ModelError
from partyline.models.base import CompletionProvider
from partyline.models.types import Message, Usage

from .personas import Persona, PersonaLoader

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = {
    "claude": "ANTHROPIC_API_KEY",
    "gpt": "OPENAI_API_KEY",
}


@dataclass
class AgentInvocation:
    """A request for one persona to speak."""

    agent_id: str
    message: str
    user_id: Optional[str] = None
    history: list[Message] = field(default_factory=list)
    context: Optional[dict[str, Any]] = None


@dataclass
class AgentReply:
    """What a persona said, or the text describing why it could not."""

    agent_id: str
    message: str
    is_error: bool = False
    usage: Optional[Usage] = None

    @classmethod
    def error(cls, agent_id: str, message: str) -> "AgentReply":
        return cls(agent_id=agent_id, message=message, is_error=True)


class AgentService:
    """Invokes personas through a completion provider."""

    def __init__(
        self,
        provider: Optional[CompletionProvider],
        loader: Optional[PersonaLoader] = None,
    ):
        self.provider = provider
        self.loader = loader or PersonaLoader()

    @property
    def is_configured(self) -> bool:
        return self.provider is not None and self.provider.is_available

    def _not_configured_message(self) -> str:
        name = self.provider.name if self.provider is not None else "claude"
        env_var = API_KEY_ENV_VARS.get(name, "ANTHROPIC_API_KEY")
        return f"Agent service not configured. Please set {env_var}."

    def get_persona(self, agent_id: str) -> Optional[Persona]:
        return self.loader.load(agent_id)

    @staticmethod
    def build_system_prompt(persona: Persona, context: Optional[dict[str, Any]] = None) -> str:
        """Persona prompt plus an optional JSON ``## Context`` section."""
        prompt = persona.system_prompt
        if context:
            prompt += "\n\n## Context\n"
            prompt += json.dumps(context, indent=2, default=str)
        return prompt

    @staticmethod
    def build_messages(invocation: AgentInvocation) -> list[Message]:
        return [*invocation.history, Message.user(invocation.message)]

    async def invoke(self, invocation: AgentInvocation) -> AgentReply:
        """Ask one persona for a reply.

        Never raises for provider failures; the returned reply is flagged
        with ``is_error`` and carries the error text as its message.
        """
        if not self.is_configured:
            return AgentReply.error(invocation.agent_id, self._not_configured_message())

        persona = self.get_persona(invocation.agent_id)
        if persona is None:
            return AgentReply.error(
                invocation.agent_id, f"Unknown agent: {invocation.agent_id}"
            )

        system_prompt = self.build_system_prompt(persona, invocation.context)
        messages = self.build_messages(invocation)

        try:
            response = await self.provider.generate(messages, system=system_prompt)
        except ModelError as e:
            logger.error(f"Agent invocation error for {invocation.agent_id}: {e}")
            return AgentReply.error(invocation.agent_id, f"Error invoking agent: {e.message}")

        return AgentReply(
            agent_id=invocation.agent_id,
            message=response.content,
            usage=response.usage,
        )
