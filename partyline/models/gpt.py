"""GPT (OpenAI) completion provider."""

from types import ModuleType
from typing import Any, Optional

from .base import SDKProvider
from .types import FinishReason, Message, MessageRole, ModelResponse, Usage

FINISH_REASONS = {
    "length": FinishReason.LENGTH,
    "content_filter": FinishReason.CONTENT_FILTER,
}


class GPTProvider(SDKProvider):
    """Completion provider backed by OpenAI chat completions."""

    name = "gpt"
    display_name = "GPT"
    api_key_env = "OPENAI_API_KEY"
    default_model = "gpt-4o"

    def _sdk(self) -> ModuleType:
        import openai

        return openai

    def _create_client(self, sdk: ModuleType) -> Any:
        return sdk.AsyncOpenAI(api_key=self.api_key)

    def _convert_messages(
        self, messages: list[Message], system: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """System entries first, then the merged conversation."""
        head = [{"role": "system", "content": system}] if system else []
        conversation: list[dict[str, Any]] = []
        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                head.append({"role": "system", "content": msg.content})
            elif msg.is_own_turn:
                conversation.append({"role": "assistant", "content": msg.content})
            else:
                conversation.append({"role": "user", "content": msg.attributed_content})
        return head + self.merge_consecutive(conversation)

    async def _request(
        self,
        client: Any,
        messages: list[Message],
        system: Optional[str],
        max_tokens: int,
        temperature: float,
    ) -> Any:
        return await client.chat.completions.create(
            model=self.model_id,
            messages=self._convert_messages(messages, system),
            max_completion_tokens=max_tokens,
            temperature=temperature,
        )

    def _parse_response(self, response: Any) -> ModelResponse:
        choice = response.choices[0]
        usage = None
        if response.usage:
            usage = Usage.for_model(
                self.model_id,
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
                response.usage.total_tokens,
            )
        return ModelResponse(
            content=choice.message.content or "",
            model=self.model_id,
            finish_reason=FINISH_REASONS.get(choice.finish_reason, FinishReason.STOP),
            usage=usage,
            raw_response=response,
        )
