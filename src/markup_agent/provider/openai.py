"""OpenAI-compatible chat completions provider."""

from typing import Any, TYPE_CHECKING

import requests

from markup_agent.core.errors import TransportError

from .base import BaseProvider, ProviderResponse, usage_to_dict

if TYPE_CHECKING:
    from markup_agent.config import Config


class OpenAIProvider(BaseProvider):
    """POST {base_url}/chat/completions 형식의 엔드포인트 호출."""

    @property
    def name(self) -> str:
        return "openai"

    def __init__(self, config: "Config") -> None:
        super().__init__(config)
        self.base_url = (config.get("base_url") or "").rstrip("/")
        self.api_key = config.get("api_key") or ""
        self.model = config.get("model", "")
        self.timeout = config.get("request_timeout", 120)

        if not self.base_url:
            raise TransportError("base_url is not configured for the openai provider")

    def chat(self, messages: list[dict[str, str]]) -> ProviderResponse:
        """Send the whole history and return the first choice."""
        body: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.config.get("temperature", 0.7),
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Request failed: {e}") from e

        if not response.ok:
            raise TransportError(f"API Error {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Failed to parse response: {e}") from e

        try:
            choices = data.get("choices") or []
            message = (choices[0].get("message") or {}) if choices else {}
            role = message.get("role") or "assistant"
            content = message.get("content") or ""
            usage = usage_to_dict(data.get("usage"))
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise TransportError(f"Failed to parse response: unexpected payload: {e}") from e

        if not isinstance(content, str):
            raise TransportError("Failed to parse response: message content is not text")
        return ProviderResponse(role=role, content=content, usage=usage)
