"""Provider module - LLM 프로바이더 추상화."""

from .base import BaseProvider, ProviderResponse
from .claude import ClaudeProvider
from .mock import MOCK_RESPONSE, MockProvider
from .openai import OpenAIProvider
from .registry import get_provider, list_providers

__all__ = [
    "BaseProvider",
    "ProviderResponse",
    "ClaudeProvider",
    "OpenAIProvider",
    "MockProvider",
    "MOCK_RESPONSE",
    "get_provider",
    "list_providers",
]
