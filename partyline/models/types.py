"""Provider-neutral message and response types.

A party conversation has many speakers but chat APIs only know two roles.
``Message.speaker`` keeps track of which persona said what so adapters can
replay other personas' turns as attributed user text.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class FinishReason(str, Enum):
    """Why the provider stopped generating."""

    STOP = "stop"
    LENGTH = "length"
    ERROR = "error"
    CONTENT_FILTER = "content_filter"


@dataclass
class Message:
    """One entry of the transcript handed to a completion provider.

    An assistant message with no ``speaker`` is the answering persona's own
    earlier output; with a ``speaker`` it belongs to someone else.
    """

    role: MessageRole
    content: str
    speaker: Optional[str] = None

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str, speaker: Optional[str] = None) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content, speaker=speaker)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @property
    def is_own_turn(self) -> bool:
        """True for the answering persona's own earlier output."""
        return self.role == MessageRole.ASSISTANT and not self.speaker

    @property
    def attributed_content(self) -> str:
        """Content prefixed with ``[speaker]:`` when someone else said it."""
        if self.speaker:
            return f"[{self.speaker}]: {self.content}"
        return self.content


# Cost per million tokens (input, output), approximate
MODEL_COSTS = {
    "claude-opus-4-20250514": (15.0, 75.0),
    "claude-sonnet-4-20250514": (3.0, 15.0),
    "claude-3-5-haiku-20241022": (0.8, 4.0),
    "gpt-4o": (2.5, 10.0),
    "gpt-4o-mini": (0.15, 0.6),
}


@dataclass
class Usage:
    """Token usage of one completion."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost_estimate: Optional[float] = None

    @classmethod
    def for_model(
        cls,
        model_id: str,
        prompt_tokens: int,
        completion_tokens: int,
        total_tokens: Optional[int] = None,
    ) -> "Usage":
        """Build usage from provider counts and price it for ``model_id``."""
        usage = cls(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens if total_tokens is not None else prompt_tokens + completion_tokens,
        )
        usage.cost_estimate = estimate_cost(model_id, usage)
        return usage


@dataclass
class ModelResponse:
    content: str
    model: str
    finish_reason: FinishReason = FinishReason.STOP
    usage: Optional[Usage] = None
    raw_response: Optional[Any] = None

    @property
    def truncated(self) -> bool:
        return self.finish_reason == FinishReason.LENGTH


def estimate_cost(model_id: str, usage: Usage) -> float:
    """Approximate dollar cost; 0.0 for models without a price."""
    if model_id not in MODEL_COSTS:
        return 0.0
    input_cost, output_cost = MODEL_COSTS[model_id]
    cost = (usage.prompt_tokens * input_cost + usage.completion_tokens * output_cost) / 1_000_000
    return round(cost, 6)
