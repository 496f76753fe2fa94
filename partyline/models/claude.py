"""Claude (Anthropic) completion provider."""

from types import ModuleType
from typing import Any, Optional

from .base import SDKProvider
from .types import FinishReason, Message, MessageRole, ModelResponse, Usage

STOP_REASONS = {
    "max_tokens": FinishReason.LENGTH,
    "refusal": FinishReason.CONTENT_FILTER,
}

# Anthropic requires the first turn to come from the user
OPENING_TURN = "(The discussion so far follows.)"


class ClaudeProvider(SDKProvider):
    """Completion provider backed by Anthropic's Messages API."""

    name = "claude"
    display_name = "Claude"
    api_key_env = "ANTHROPIC_API_KEY"
    default_model = "claude-sonnet-4-20250514"

    def _sdk(self) -> ModuleType:
        import anthropic

        return anthropic

    def _create_client(self, sdk: ModuleType) -> Any:
        return sdk.AsyncAnthropic(api_key=self.api_key)

    def _convert_messages(
        self, messages: list[Message], system: Optional[str] = None
    ) -> tuple[Optional[str], list[dict[str, Any]]]:
        """Split out the system prompt and build alternating turns.

        Other personas' messages are replayed as attributed user turns so
        the answering persona never thinks it said them.
        """
        system_parts = [system] if system else []
        turns: list[dict[str, Any]] = []
        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_parts.append(msg.content)
            elif msg.is_own_turn:
                turns.append({"role": "assistant", "content": msg.content})
            else:
                turns.append({"role": "user", "content": msg.attributed_content})

        turns = self.merge_consecutive(turns)
        if turns and turns[0]["role"] != "user":
            turns.insert(0, {"role": "user", "content": OPENING_TURN})
        return "\n\n".join(system_parts) or None, turns

    async def _request(
        self,
        client: Any,
        messages: list[Message],
        system: Optional[str],
        max_tokens: int,
        temperature: float,
    ) -> Any:
        system_content, turns = self._convert_messages(messages, system)
        kwargs: dict[str, Any] = {
            "model": self.model_id,
            "max_tokens": max_tokens,
            "messages": turns,
            "temperature": temperature,
        }
        if system_content:
            kwargs["system"] = system_content
        return await client.messages.create(**kwargs)

    def _parse_response(self, response: Any) -> ModelResponse:
        text = "\n".join(block.text for block in response.content if block.type == "text")
        return ModelResponse(
            content=text,
            model=self.model_id,
            finish_reason=STOP_REASONS.get(response.stop_reason, FinishReason.STOP),
            usage=Usage.for_model(
                self.model_id, response.usage.input_tokens, response.usage.output_tokens
            ),
            raw_response=response,
        )
