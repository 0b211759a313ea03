"""CLI entry point."""

import asyncio
import sys
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text
from prompt_toolkit import prompt
from prompt_toolkit.history import FileHistory

from markup_agent.agent import (
    InMemoryHistoryRepository,
    SessionStatus,
    SessionStore,
    SqliteHistoryRepository,
    ToolDispatcher,
    TurnContext,
    TurnOrchestrator,
)
from markup_agent.config import Config
from markup_agent.core import (
    AgentError,
    ErrorEvent,
    Event,
    EventBus,
    EventLogger,
    TokenEvent,
    ToolOutputEvent,
    ToolStartEvent,
)
from markup_agent.provider import get_provider
from markup_agent.tools import build_environment


console = Console()


class StreamRenderer:
    """Prints a session's event stream as it arrives."""

    def __init__(self, console: Console, preview_length: int = 500) -> None:
        self.console = console
        self.preview_length = preview_length

    def __call__(self, session_id: str, event: Event) -> None:
        if isinstance(event, TokenEvent):
            self.console.print(Text(event.text), end="", soft_wrap=True)
        elif isinstance(event, ToolStartEvent):
            self.console.print(f"\n[cyan]▶ {escape(event.name)}[/cyan]")
        elif isinstance(event, ToolOutputEvent):
            preview = event.content
            if len(preview) > self.preview_length:
                preview = preview[: self.preview_length] + "..."
            self.console.print(Panel(
                Text(preview),
                title=escape(event.tool_name),
                border_style="green" if event.success else "red",
            ))
        elif isinstance(event, ErrorEvent):
            self.console.print(f"\n[red bold]⚠️  {escape(event.message)}[/red bold]")


class Runtime:
    """Wires the default collaborators from a Config."""

    def __init__(self, config: Config) -> None:
        self.config = config
        db_path = config.get("history_db")
        repository = SqliteHistoryRepository(db_path) if db_path else InMemoryHistoryRepository()

        self.store = SessionStore(repository)
        self.event_bus = EventBus()
        environment = build_environment(
            config.get("workspace_root", "."),
            command_timeout=config.get("command_timeout", 120),
        )
        self.dispatcher = ToolDispatcher.for_environment(environment)
        self.provider = get_provider(config.get("provider", "claude"), config)
        self.orchestrator = TurnOrchestrator(
            store=self.store,
            dispatcher=self.dispatcher,
            provider=self.provider,
            event_bus=self.event_bus,
            config=config,
        )

    def open_session(self, session_id: str | None) -> str:
        """Resume a stored session or create a new one."""
        if session_id:
            return self.store.load(session_id)
        return self.store.create()

    def run_turn(self, session_id: str, message: str) -> TurnContext:
        return asyncio.run(self.orchestrator.start_turn(session_id, message))

    def close(self) -> None:
        self.store.close()


def build_config(**overrides: Any) -> Config:
    """Config with CLI options layered on top (unset options are skipped)."""
    return Config({key: value for key, value in overrides.items() if value is not None})


def show_turn_summary(runtime: Runtime, session_id: str, context: TurnContext) -> None:
    """Show how the turn ended."""
    status = runtime.store.get_status(session_id)
    color = {
        SessionStatus.WAITING: "green",
        SessionStatus.CANCELLED: "yellow",
        SessionStatus.ERROR: "red",
    }.get(status, "white")
    reason = context.termination_reason.name if context.termination_reason else "-"
    duration = context.duration_ms() or 0

    console.print(
        f"\n[dim]Session {session_id[:8]}: [{color}]{status.value}[/{color}] "
        f"({reason}, {context.total_model_calls} model calls, "
        f"{context.total_tool_calls} tool calls, {duration / 1000:.1f}s)[/dim]"
    )


def create_runtime(config: Config, verbose: bool) -> Runtime:
    try:
        runtime = Runtime(config)
    except AgentError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    runtime.event_bus.subscribe_all(StreamRenderer(console))
    if verbose:
        EventLogger(console=Console(stderr=True), verbose=True).attach(runtime.event_bus)
    return runtime


def runtime_options(func: Any) -> Any:
    """Options shared by chat and run."""
    options = [
        click.option("--provider", default=None, help="Model provider (claude, openai, mock)"),
        click.option("--model", default=None, help="Model name"),
        click.option("--base-url", default=None, help="Base URL for the openai provider"),
        click.option(
            "--workspace",
            "workspace_root",
            default=None,
            type=click.Path(exists=True, file_okay=False),
            help="Workspace root for file and command tools",
        ),
        click.option("--db", "history_db", default=None, help="SQLite file for message history"),
        click.option("--session", "session_id", default=None, help="Resume a stored session"),
        click.option("--max-turns", default=None, type=int, help="Model requests per turn"),
        click.option(
            "--debug",
            is_flag=True,
            default=None,
            help="Enable debug output (shows model requests, tool executions, etc.)",
        ),
        click.option("--verbose", is_flag=True, default=False, help="Log every session event"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(package_name="markup-agent")
def cli() -> None:
    """Markup Agent - A coding agent that calls tools through inline markup."""
    pass


@cli.command()
@runtime_options
def chat(session_id: str | None, verbose: bool, **options: Any) -> None:
    """Start an interactive agent session."""
    config = build_config(**options)
    runtime = create_runtime(config, verbose)

    try:
        current = runtime.open_session(session_id)
    except AgentError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    welcome_msg = (
        "[bold blue]Markup Agent[/bold blue] - Agent Mode (with Tools)\n"
        "Type [bold]exit[/bold] or [bold]quit[/bold] to end the session.\n"
        "Type [bold]reset[/bold] to start a new session.\n"
        "Type [bold]status[/bold] to show the session state.\n\n"
        f"[dim]Session {current}[/dim]"
    )
    if config.get("debug"):
        welcome_msg += "\n[cyan]🔍 Debug mode enabled[/cyan]"
    console.print(Panel(welcome_msg, title="Welcome"))

    history = FileHistory(".markup_agent_history")

    while True:
        try:
            user_input = prompt(
                "\n> ",
                history=history,
                multiline=False,
            ).strip()

            if not user_input:
                continue

            if user_input.lower() in ("exit", "quit"):
                console.print("[dim]Goodbye![/dim]")
                break

            if user_input.lower() == "reset":
                current = runtime.store.create()
                console.print(f"[dim]New session {current}.[/dim]")
                continue

            if user_input.lower() == "status":
                console.print(
                    f"[dim]Session {current}: "
                    f"{runtime.store.get_status(current).value}, "
                    f"{runtime.store.message_count(current)} messages, "
                    f"{runtime.store.get_turn_count(current)} turns[/dim]"
                )
                continue

            try:
                context = runtime.run_turn(current, user_input)
                show_turn_summary(runtime, current, context)
            except KeyboardInterrupt:
                console.print("\n[yellow]Turn cancelled.[/yellow]")
            except AgentError as e:
                console.print(f"\n[red bold]⚠️  {escape(str(e))}[/red bold]")

        except KeyboardInterrupt:
            console.print("\n[dim]Use 'exit' to quit[/dim]")
        except EOFError:
            break

    runtime.close()


@cli.command()
@click.argument("message")
@runtime_options
def run(message: str, session_id: str | None, verbose: bool, **options: Any) -> None:
    """Run agent with a single task (with tools)."""
    config = build_config(**options)
    runtime = create_runtime(config, verbose)

    try:
        current = runtime.open_session(session_id)
        context = runtime.run_turn(current, message)
    except AgentError as e:
        console.print(f"\n[red bold]⚠️  {escape(str(e))}[/red bold]")
        runtime.close()
        sys.exit(1)

    show_turn_summary(runtime, current, context)
    failed = runtime.store.get_status(current) is SessionStatus.ERROR
    runtime.close()
    if failed:
        sys.exit(1)


@cli.command()
@click.argument("session_id", required=False)
@click.option("--db", "history_db", required=True, help="SQLite file holding the history")
def history(session_id: str | None, history_db: str) -> None:
    """Show a stored session log (or list stored sessions)."""
    store = SessionStore(SqliteHistoryRepository(history_db))

    try:
        if session_id is None:
            for sid in store.repository.session_ids():
                console.print(sid)
            return

        try:
            store.load(session_id)
        except AgentError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            sys.exit(1)

        role_styles = {"system": "dim", "user": "bold blue", "assistant": "green"}
        for i, msg in enumerate(store.read_all(session_id)):
            label = f"#{i} {msg.role}"
            if msg.is_tool_output:
                label += " (tool output)"
            console.print(Text(label, style=role_styles.get(msg.role, "")))
            console.print(Text(msg.to_provider_format()["content"]))
            console.print()
    finally:
        store.close()


if __name__ == "__main__":
    cli()
