"""Claude provider implementation."""

import os
from typing import Any, AsyncIterator, TYPE_CHECKING

from anthropic import Anthropic, AsyncAnthropic, APIError

from markup_agent.core.errors import TransportError

from .base import BaseProvider, ProviderResponse, split_system, usage_to_dict

if TYPE_CHECKING:
    from markup_agent.config import Config


class ClaudeProvider(BaseProvider):
    """Anthropic Claude API provider."""

    @property
    def name(self) -> str:
        return "claude"

    def __init__(self, config: "Config") -> None:
        super().__init__(config)
        api_key = config.get("api_key") or os.environ.get("ANTHROPIC_API_KEY")

        if not api_key:
            raise TransportError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Set it with: export ANTHROPIC_API_KEY='your-api-key'"
            )

        self.client = Anthropic(api_key=api_key)
        self.async_client = AsyncAnthropic(api_key=api_key)
        self.model = config.get("model", "claude-sonnet-4-20250514")

    def _request_kwargs(self, messages: list[dict[str, str]]) -> dict[str, Any]:
        system, rest = split_system(messages)
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.config.get("max_tokens", 16384),
            "messages": rest,
        }
        if system:
            kwargs["system"] = system
        temperature = self.config.get("temperature")
        if temperature is not None:
            kwargs["temperature"] = temperature
        return kwargs

    def chat(self, messages: list[dict[str, str]]) -> ProviderResponse:
        """Call Claude API."""
        try:
            response = self.client.messages.create(**self._request_kwargs(messages))
        except APIError as e:
            raise TransportError(f"Claude API error: {e}") from e

        text_content = [
            block.text for block in response.content if hasattr(block, "text")
        ]
        return ProviderResponse(
            role="assistant",
            content="".join(text_content),
            usage=usage_to_dict(response.usage),
        )

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """Stream text deltas from Claude API."""
        try:
            async with self.async_client.messages.stream(
                **self._request_kwargs(messages)
            ) as stream:
                async for text in stream.text_stream:
                    yield text
        except APIError as e:
            raise TransportError(f"Claude API error: {e}") from e
