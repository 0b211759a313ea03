"""Mock provider - 네트워크 없이 고정 응답."""

from .base import BaseProvider, ProviderResponse

MOCK_RESPONSE = "Mock: System is online. Connection successful."


class MockProvider(BaseProvider):
    """Always answers with MOCK_RESPONSE. Useful offline."""

    @property
    def name(self) -> str:
        return "mock"

    def chat(self, messages: list[dict[str, str]]) -> ProviderResponse:
        return ProviderResponse(role="assistant", content=MOCK_RESPONSE)
