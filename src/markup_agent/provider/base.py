"""LLM 프로바이더 기본 인터페이스."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, TYPE_CHECKING

if TYPE_CHECKING:
    from markup_agent.config import Config


@dataclass
class ProviderResponse:
    """프로바이더 응답 표준 형식."""

    role: str
    content: str
    usage: dict[str, int] = field(default_factory=dict)


class BaseProvider(ABC):
    """LLM 프로바이더 추상 클래스.

    모든 전송 실패는 TransportError로 변환해서 올려야 합니다.
    """

    def __init__(self, config: "Config") -> None:
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """프로바이더 이름."""
        pass

    @abstractmethod
    def chat(self, messages: list[dict[str, str]]) -> ProviderResponse:
        """
        LLM 호출 (한 번에 전체 응답).

        Args:
            messages: {"role", "content"} 형식의 전체 대화 기록

        Returns:
            ProviderResponse: 표준화된 응답

        Raises:
            TransportError: 호출 실패
        """
        pass

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """
        응답 텍스트를 조각 단위로 전달.

        기본 구현은 chat()을 워커 스레드에서 실행하고 전체 내용을 한 번에 yield합니다.
        스트리밍을 지원하는 프로바이더는 오버라이드하세요.
        """
        response = await asyncio.to_thread(self.chat, messages)
        if response.content:
            yield response.content


def split_system(messages: list[dict[str, str]]) -> tuple[str, list[dict[str, str]]]:
    """시스템 메시지를 분리 (Anthropic 형식용).

    앞쪽의 시스템 메시지만 system 프롬프트로 합칩니다. 대화 중간의 시스템
    메시지(도구 출력, 오류 안내)는 순서를 유지하도록 user 메시지로 보냅니다.
    빈 내용의 메시지는 API가 거부하므로 제외합니다.
    """
    system_parts: list[str] = []
    rest: list[dict[str, str]] = []
    for msg in messages:
        if msg["role"] == "system" and not rest:
            system_parts.append(msg["content"])
        elif msg["content"]:
            role = "user" if msg["role"] == "system" else msg["role"]
            rest.append({"role": role, "content": msg["content"]})
    return "\n\n".join(system_parts), rest


def usage_to_dict(usage: Any) -> dict[str, int]:
    """SDK usage 객체나 dict를 {이름: 정수} 형태로 변환."""
    if usage is None:
        return {}
    if isinstance(usage, dict):
        return {k: v for k, v in usage.items() if isinstance(v, int)}
    return {
        key: getattr(usage, key)
        for key in ("input_tokens", "output_tokens")
        if isinstance(getattr(usage, key, None), int)
    }
