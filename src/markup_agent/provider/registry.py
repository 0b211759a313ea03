"""프로바이더 레지스트리."""

from typing import Type, TYPE_CHECKING

from .base import BaseProvider
from .claude import ClaudeProvider
from .mock import MockProvider
from .openai import OpenAIProvider

if TYPE_CHECKING:
    from markup_agent.config import Config


# 등록된 프로바이더들
PROVIDERS: dict[str, Type[BaseProvider]] = {
    "claude": ClaudeProvider,
    "openai": OpenAIProvider,
    "mock": MockProvider,
}


def get_provider(name: str, config: "Config") -> BaseProvider:
    """
    이름으로 프로바이더 인스턴스 생성.

    base_url에 "mock"이 들어 있으면 이름과 무관하게 MockProvider를 사용합니다.

    Args:
        name: 프로바이더 이름 (예: "claude")
        config: 설정 객체

    Returns:
        BaseProvider: 프로바이더 인스턴스

    Raises:
        ValueError: 알 수 없는 프로바이더 이름
    """
    if name not in PROVIDERS:
        available = list(PROVIDERS.keys())
        raise ValueError(f"Unknown provider: {name}. Available: {available}")

    if "mock" in (config.get("base_url") or ""):
        return MockProvider(config)

    return PROVIDERS[name](config)


def list_providers() -> list[str]:
    """등록된 프로바이더 이름 목록 반환."""
    return list(PROVIDERS.keys())
