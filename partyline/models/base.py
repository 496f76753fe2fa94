"""Completion provider interfaces.

``CompletionProvider`` is the seam the agent service talks to. Real SDK
adapters extend ``SDKProvider``, which owns the shared request cycle:
availability check, retries and translation of SDK exceptions into
``partyline.errors.ModelError`` subclasses.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from functools import wraps
from types import ModuleType
from typing import Any, Callable, Optional, TypeVar

from partyline.errors import APIError, AuthenticationError, ModelError, RateLimitError

from .types import Message, ModelResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_retry(
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry a provider coroutine on retryable ``ModelError``s.

    Attempts are bounded by the instance's ``max_retries``. A rate limit
    that names a ``retry_after`` is honoured instead of the backoff delay.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
            attempts = getattr(self, "max_retries", 3) + 1
            delay = base_delay

            for attempt in range(1, attempts + 1):
                try:
                    return await func(self, *args, **kwargs)
                except ModelError as e:
                    if not e.retryable or attempt == attempts:
                        raise
                    retry_after = getattr(e, "retry_after", None)
                    wait_time = retry_after if retry_after else min(delay, max_delay)
                    delay *= exponential_base
                    logger.warning(
                        f"Attempt {attempt}/{attempts} failed: {e}. Retrying in {wait_time:.1f}s..."
                    )
                    await asyncio.sleep(wait_time)
            raise AssertionError("unreachable")

        return wrapper  # type: ignore

    return decorator


class CompletionProvider(ABC):
    """Turns a system prompt plus a conversation into one reply."""

    name: str
    display_name: str

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        max_retries: int = 3,
    ):
        self.api_key = api_key
        self.model_id = model_id or self._default_model_id()
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max_retries

    @abstractmethod
    def _default_model_id(self) -> str:
        ...

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider can be called (API key configured, etc.)."""
        ...

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> ModelResponse:
        """Generate a reply.

        Args:
            messages: Conversation history, oldest first
            system: System prompt
            max_tokens: Override default max tokens
            temperature: Override default temperature

        Raises:
            ModelError: If the provider call fails
        """
        ...

    @staticmethod
    def merge_consecutive(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Merge same-role neighbours; chat APIs expect alternating turns."""
        merged: list[dict[str, Any]] = []
        for msg in messages:
            if merged and merged[-1]["role"] == msg["role"]:
                merged[-1] = {
                    "role": msg["role"],
                    "content": f"{merged[-1]['content']}\n\n{msg['content']}",
                }
            else:
                merged.append(dict(msg))
        return merged


def _retry_after(error: Exception) -> Optional[float]:
    """Seconds from a ``retry-after`` response header, if the SDK kept one."""
    headers = getattr(getattr(error, "response", None), "headers", None) or {}
    try:
        value = headers.get("retry-after")
        return float(value) if value else None
    except (TypeError, ValueError):
        return None


class SDKProvider(CompletionProvider):
    """A provider backed by a vendor SDK with an async client.

    Subclasses name the SDK module, the env var holding the key and the
    default model, then implement ``_request`` and ``_parse_response``.
    """

    api_key_env: str
    default_model: str

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        max_retries: int = 3,
    ):
        super().__init__(
            api_key or os.environ.get(self.api_key_env),
            model_id,
            max_tokens,
            temperature,
            max_retries,
        )
        self._client: Any = None

    def _default_model_id(self) -> str:
        return self.default_model

    @property
    def is_available(self) -> bool:
        return self.api_key is not None

    @abstractmethod
    def _sdk(self) -> ModuleType:
        """Import and return the vendor SDK module."""
        ...

    @abstractmethod
    def _create_client(self, sdk: ModuleType) -> Any:
        ...

    @abstractmethod
    async def _request(
        self,
        client: Any,
        messages: list[Message],
        system: Optional[str],
        max_tokens: int,
        temperature: float,
    ) -> Any:
        """Send one request and return the raw SDK response."""
        ...

    @abstractmethod
    def _parse_response(self, response: Any) -> ModelResponse:
        ...

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = self._create_client(self._sdk())
        return self._client

    def _translate_error(self, error: Exception) -> ModelError:
        """Map an SDK exception onto the partyline error hierarchy."""
        sdk = self._sdk()
        if isinstance(error, sdk.RateLimitError):
            return RateLimitError(str(error), model=self.model_id, retry_after=_retry_after(error))
        if isinstance(error, sdk.AuthenticationError):
            return AuthenticationError(str(error), model=self.model_id)
        return APIError(str(error), self.model_id, getattr(error, "status_code", None))

    @with_retry()
    async def generate(
        self,
        messages: list[Message],
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> ModelResponse:
        if not self.is_available:
            raise AuthenticationError(
                f"{self.display_name} API key not configured ({self.api_key_env})",
                model=self.model_id,
            )

        client = self._get_client()
        logger.debug(f"{self.display_name} request with {len(messages)} messages")
        try:
            response = await self._request(
                client,
                messages,
                system,
                max_tokens or self.max_tokens,
                temperature if temperature is not None else self.temperature,
            )
        except ModelError:
            raise
        except Exception as e:
            raise self._translate_error(e) from e
        return self._parse_response(response)
