"""Agent loop - Turn orchestration over a markup-speaking model."""

import asyncio
import time
import uuid

from rich.console import Console
from rich.text import Text

from markup_agent.config import Config
from markup_agent.core import (
    Event,
    EventBus,
    TokenEvent,
    ToolStartEvent,
    ToolArgEvent,
    ToolEndEvent,
    ErrorEvent,
    StatusEvent,
    ToolOutputEvent,
    SessionError,
    TransportError,
)
from markup_agent.parser import TagParser
from markup_agent.provider import BaseProvider
from markup_agent.tools import ToolResult

from .dispatcher import ToolDispatcher
from .message import Message, PendingMessage
from .session import SessionStore
from .states import SessionStatus, TerminationReason, TurnContext, TurnPhase

# Debug console (shared instance)
_debug_console = Console()

SYSTEM_PROMPT_TEMPLATE = """You are an autonomous coding agent working inside a workspace.
You have access to the following tools. YOU MUST USE THEM to explore and edit the codebase.

## AVAILABLE TOOLS

{tools}

## PROTOCOL
To use a tool, output a strictly formatted XML block.
You can chain multiple tools in one block.

Example:
<tool_code>
    <tool name="run_command">
        <program>ls</program>
        <args>-la</args>
    </tool>
    <tool name="write_file">
        <file_path>src/main.py</file_path>
        <content>print("Hello")</content>
    </tool>
</tool_code>

After receiving the tool output, you will formulate your next step.
When the task is done, answer without a tool_code block."""


class TurnOrchestrator:
    """Runs agent turns: model request, markup parsing, tool dispatch, repeat.

    One orchestrator can serve many sessions; each session runs at most one
    turn at a time.
    """

    def __init__(
        self,
        store: SessionStore,
        dispatcher: ToolDispatcher,
        provider: BaseProvider,
        event_bus: EventBus | None = None,
        config: Config | None = None,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.provider = provider
        self.event_bus = event_bus or EventBus()
        self.config = config or Config()

        # Settings (loaded from Config)
        self.max_turns: int = self.config.get("max_turns", 20)
        self.max_output_length: int = self.config.get("max_output_length", 10_000)
        self.tool_output_role: str = self.config.get("tool_output_role", "user")
        self.debug: bool = self.config.get("debug", False)

        self.system_prompt = self._get_system_prompt()

        self._active: set[str] = set()
        self._cancel_requested: set[str] = set()

    # Debug formatting
    _SEP = "=" * 60

    def _debug_log(self, message: str) -> None:
        """Print debug message in dim style if debug mode is enabled."""
        if self.debug:
            _debug_console.print(Text(message, style="dim"))

    def _publish(self, session_id: str, event: Event) -> None:
        self.event_bus.publish(session_id, event)

    def _set_status(self, session_id: str, status: SessionStatus) -> None:
        """Change session status and publish it."""
        self.store.set_status(session_id, status)
        self._debug_log(f"[STATUS] {session_id[:8]} → {status.value}")
        self._publish(session_id, StatusEvent(status.value))

    def _get_system_prompt(self) -> str:
        """Fixed system message: tool descriptions plus the markup protocol."""
        return SYSTEM_PROMPT_TEMPLATE.format(tools=self.dispatcher.describe_tools())

    # --- Public API ---

    def is_active(self, session_id: str) -> bool:
        """True while a turn is running for the session."""
        return session_id in self._active

    def cancel(self, session_id: str) -> None:
        """Request cooperative cancellation.

        Checked before each model request and each tool dispatch. A tool that
        is already running finishes normally.
        """
        if session_id in self._active:
            self._debug_log(f"[CANCEL] {session_id[:8]} requested")
            self._cancel_requested.add(session_id)

    async def start_turn(self, session_id: str, user_text: str) -> TurnContext:
        """Run one turn for the session until the model stops calling tools.

        Args:
            session_id: Session to drive
            user_text: The user's input message

        Returns:
            TurnContext with termination reason and statistics.

        Raises:
            SessionError: Unknown session, or a turn is already in progress.
                Nothing is mutated in that case.
        """
        # Everything up to the first await runs atomically on the event loop
        if not self.store.exists(session_id):
            raise SessionError(f"Unknown session: {session_id}")

        owner = uuid.uuid4().hex
        if session_id in self._active or not self.store.claim(session_id, owner):
            raise SessionError(f"A turn is already in progress for session {session_id}")

        self._active.add(session_id)
        self._cancel_requested.discard(session_id)

        context = TurnContext(session_id=session_id, max_turns=self.max_turns)
        context.start_time = time.time()

        try:
            await self._run(context, user_text)
            return context

        except asyncio.CancelledError:
            # Task cancellation (e.g. Ctrl-C) ends the turn like cancel()
            context.finish(TerminationReason.CANCELLED)
            if self.store.get_status(session_id) is SessionStatus.RUNNING:
                self._set_status(session_id, SessionStatus.CANCELLED)
            raise

        except Exception as e:
            context.finish(TerminationReason.ERROR, e)
            if self.store.get_status(session_id) is SessionStatus.RUNNING:
                self._set_status(session_id, SessionStatus.ERROR)
            raise

        finally:
            context.end_time = time.time()
            self._cancel_requested.discard(session_id)
            self._active.discard(session_id)
            self.store.release(session_id, owner)
            self._debug_log(f"[TURN] {session_id[:8]} {context.to_dict()}")

    # --- Turn steps ---

    async def _run(self, context: TurnContext, user_text: str) -> None:
        session_id = context.session_id

        # Receive input
        context.record_phase(TurnPhase.RECEIVING_INPUT)
        if self.store.get_status(session_id) in (SessionStatus.ERROR, SessionStatus.CANCELLED):
            self._set_status(session_id, SessionStatus.IDLE)

        if self.store.message_count(session_id) == 0:
            self.store.append_message(session_id, Message.system(self.system_prompt))
        self.store.append_message(session_id, Message.user(user_text))
        self.store.increment_turn_count(session_id)

        self._set_status(session_id, SessionStatus.RUNNING)

        while True:
            if session_id in self._cancel_requested:
                self._finish_cancelled(context)
                return

            if context.current_turn >= context.max_turns:
                self._finish_turn_limit(context)
                return

            context.current_turn += 1
            context.record_phase(TurnPhase.CALLING_MODEL)
            try:
                message = await self._request_model(context)
            except TransportError as e:
                self._finish_transport_error(context, e)
                return

            self.store.append_message(session_id, message)

            if not message.tool_calls:
                context.finish(TerminationReason.END_TURN)
                self._set_status(session_id, SessionStatus.WAITING)
                return

            # Execute tools
            context.record_phase(TurnPhase.EXECUTING_TOOLS)
            for call in message.tool_calls:
                if session_id in self._cancel_requested:
                    self._finish_cancelled(context)
                    return

                self._debug_log(f"[TOOL] {call.name} {dict(call.arguments)}")
                result = await self.dispatcher.execute_async(call.name, call.arguments)
                context.total_tool_calls += 1

                content = self._format_tool_result(call.name, result)
                self.store.append_message(
                    session_id, Message.tool_output(content, role=self.tool_output_role)
                )
                self._publish(
                    session_id, ToolOutputEvent(call.name, content, success=result.success)
                )

    async def _request_model(self, context: TurnContext) -> Message:
        """Stream one model response through the parser into a Message."""
        session_id = context.session_id
        history = [msg.to_provider_format() for msg in self.store.read_all(session_id)]

        self._debug_log(f"\n. [MODEL REQUEST] {len(history)} messages")
        for i, msg in enumerate(history, 1):
            content = msg["content"]
            preview = content[:150] + "..." if len(content) > 150 else content
            self._debug_log(f"  #{i} {msg['role'].upper()}: {preview}")

        parser = TagParser()
        pending = PendingMessage()
        context.total_model_calls += 1

        async for chunk in self.provider.stream(history):
            for event in parser.feed(chunk):
                self._apply_stream_event(session_id, pending, event)
        for event in parser.finish():
            self._apply_stream_event(session_id, pending, event)

        context.parse_errors += len(parser.errors)
        message = pending.finalize()

        self._debug_log(f"\n. [MODEL RESPONSE] {len(message.tool_calls)} tool call(s)")
        return message

    def _apply_stream_event(
        self, session_id: str, pending: PendingMessage, event: Event
    ) -> None:
        """Fold a parser event into the pending message and publish it."""
        if isinstance(event, TokenEvent):
            pending.append_text(event.text)
        elif isinstance(event, ToolStartEvent):
            pending.begin_tool(event.name)
        elif isinstance(event, ToolArgEvent):
            pending.add_argument(event.name, event.value)
        elif isinstance(event, ToolEndEvent):
            pending.end_tool()
        self._publish(session_id, event)

    # --- Termination ---

    def _finish_cancelled(self, context: TurnContext) -> None:
        context.finish(TerminationReason.CANCELLED)
        self._set_status(context.session_id, SessionStatus.CANCELLED)

    def _finish_turn_limit(self, context: TurnContext) -> None:
        session_id = context.session_id
        error = SessionError(
            f"Turn limit reached: {context.max_turns} model requests without a final answer"
        )
        self.store.append_message(
            session_id,
            Message.system(f"{error}. Send a new message to continue."),
        )
        self._publish(session_id, ErrorEvent(str(error)))
        context.finish(TerminationReason.MAX_TURNS, error)
        self._set_status(session_id, SessionStatus.ERROR)

    def _finish_transport_error(self, context: TurnContext, error: TransportError) -> None:
        """Abort the turn; the partial assistant message is discarded."""
        session_id = context.session_id
        self._debug_log(f"\n{self._SEP}\n[API ERROR] {error}\n{self._SEP}")
        self.store.append_message(session_id, Message.system(f"Model request failed: {error}"))
        self._publish(session_id, ErrorEvent(f"Model request failed: {error}"))
        context.finish(TerminationReason.TRANSPORT_ERROR, error)
        self._set_status(session_id, SessionStatus.ERROR)

    def _format_tool_result(self, tool_name: str, result: ToolResult) -> str:
        """Format a tool result for the model."""
        if result.success:
            header = f"Tool Output [{tool_name}]:"
        else:
            header = f"Tool Error [{tool_name}]:"

        body = result.text
        if len(body) > self.max_output_length:
            truncated_chars = len(body) - self.max_output_length
            body = (
                body[: self.max_output_length]
                + f"\n\n... (output truncated, {truncated_chars:,} characters omitted)"
            )
        return f"{header}\n{body}"
