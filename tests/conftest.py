"""Shared fixtures: scripted model provider and fake tools."""

import asyncio
from typing import Any, AsyncIterator, Callable

import pytest

from markup_agent.agent import SessionStore, ToolDispatcher, TurnOrchestrator
from markup_agent.config import Config
from markup_agent.core import EventBus
from markup_agent.provider import BaseProvider, ProviderResponse
from markup_agent.tools import BaseTool, ToolResult, build_environment


class ScriptedProvider(BaseProvider):
    """Replays canned responses.

    Each response is a string, a list of chunks, or an exception. A chunk
    list may end with an exception to fail mid-stream.
    """

    name = "scripted"

    def __init__(self, responses: list[Any], default: str = "Done.") -> None:
        super().__init__(Config())
        self.responses = list(responses)
        self.default = default
        self.requests: list[list[dict[str, str]]] = []

    def _next(self) -> list[Any]:
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, (str, Exception)):
            return [response]
        return list(response)

    def chat(self, messages: list[dict[str, str]]) -> ProviderResponse:
        self.requests.append(messages)
        parts = self._next()
        for part in parts:
            if isinstance(part, Exception):
                raise part
        return ProviderResponse(role="assistant", content="".join(parts))

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        self.requests.append(messages)
        for part in self._next():
            await asyncio.sleep(0)
            if isinstance(part, Exception):
                raise part
            yield part


class EchoTool(BaseTool):
    """Returns its text argument."""

    name = "echo"
    description = "Echo the text back."

    @property
    def parameters(self) -> dict[str, Any]:
        return {"text": {"type": "string", "description": "Text to echo", "required": True}}

    def execute(self, text: str = "", **kwargs: Any) -> ToolResult:
        return ToolResult.ok(text)


class StepTool(BaseTool):
    """Records each call and runs an optional hook."""

    name = "step"
    description = "Record a step."

    def __init__(self, environment: Any, on_call: Callable[[str], None] | None = None) -> None:
        super().__init__(environment)
        self.calls: list[str] = []
        self.on_call = on_call

    @property
    def parameters(self) -> dict[str, Any]:
        return {"n": {"type": "string", "required": True}}

    def execute(self, n: str = "", **kwargs: Any) -> ToolResult:
        self.calls.append(n)
        if self.on_call:
            self.on_call(n)
        return ToolResult.ok(f"step {n}")


class BoomTool(BaseTool):
    """Always raises."""

    name = "boom"
    description = "Raise an error."

    @property
    def parameters(self) -> dict[str, Any]:
        return {}

    def execute(self, **kwargs: Any) -> ToolResult:
        raise RuntimeError("kaboom")


def render_tool_block(*calls: tuple[str, dict[str, str]]) -> str:
    """Render tool calls as a tool_code block."""
    parts = ["<tool_code>"]
    for name, args in calls:
        parts.append(f'<tool name="{name}">')
        parts.extend(f"<{key}>{value}</{key}>" for key, value in args.items())
        parts.append("</tool>")
    parts.append("</tool_code>")
    return "\n".join(parts)


@pytest.fixture
def environment(tmp_path):
    return build_environment(tmp_path, command_timeout=30)


@pytest.fixture
def step_tool(environment):
    return StepTool(environment)


@pytest.fixture
def dispatcher(environment, step_tool):
    return ToolDispatcher([EchoTool(environment), step_tool, BoomTool(environment)])


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def make_orchestrator(store, dispatcher, bus):
    """Factory: orchestrator over a scripted provider."""

    def factory(responses: list[Any], **config: Any) -> tuple[TurnOrchestrator, ScriptedProvider]:
        provider = ScriptedProvider(responses)
        orchestrator = TurnOrchestrator(
            store=store,
            dispatcher=dispatcher,
            provider=provider,
            event_bus=bus,
            config=Config({"debug": False, "max_turns": 20, **config}),
        )
        return orchestrator, provider

    return factory


@pytest.fixture
def tool_block():
    return render_tool_block
