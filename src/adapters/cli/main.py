"""
adapters.cli.main - CLI adapter for the agent hub.

Uses the same ServiceFactory and DispatchService as any other host, so
agent lookup, tool binding and memory behave identically.

Commands
--------
  agents       List configured agents (the default one is marked)
  tools        Show the configured MCP servers
  tools-check  Validate the MCP server descriptor strictly
  ask          One-shot message to an agent
  chat         Interactive chat session
  threads      List the conversation threads of a resource

Usage
-----
  agenthub ask "what's the weather in Oslo?" --agent "Gemini Flash Experimental"
  agenthub chat --resource alice
  agenthub threads --resource alice
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from adapters.cli.session import Session, resolve_session, save_session
from agent.definitions import load_agent_specs
from application.context import SessionContext
from domain.exceptions import StorageError, ToolConfigError
from factory import ServiceFactory
from infrastructure.config import Settings
from infrastructure.mcp.config_loader import (
    load_tool_config,
    load_tool_config_strict,
    mcp_server_info,
)

__version__ = "0.1.0"

console = Console()
app = typer.Typer(
    help="Agent hub CLI",
    add_completion=False,
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def _make_factory(config: Settings, *, wait_for_tools: bool) -> ServiceFactory:
    """Create and initialize a ServiceFactory.

    wait_for_tools=True blocks until MCP servers are connected, so the
    first message already sees every tool.
    """
    factory = ServiceFactory(config)
    with console.status("[bold cyan]Starting agents…", spinner="dots"):
        await factory.initialize(bind_tools=wait_for_tools)
        if wait_for_tools:
            tools = await factory.wait_for_tools()
    if wait_for_tools:
        console.print(f"  [green]Ready.[/green] [dim]{len(tools)} tool(s) bound[/dim]")
    return factory


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"agenthub v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Inspection (no LLM needed)
# ---------------------------------------------------------------------------

@app.command()
def agents() -> None:
    """List the configured agents."""
    config = Settings.from_env()
    path = config.resolve_path(config.agents_config_path) if config.agents_config_path else None
    try:
        specs = load_agent_specs(path)
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]Cannot read agent specs:[/bold red] {exc}")
        raise typer.Exit(code=1)

    t = Table(box=box.SIMPLE, padding=(0, 2))
    t.add_column("Name", style="bold")
    t.add_column("Provider")
    t.add_column("Model")
    for i, spec in enumerate(specs):
        label = f"{spec.name} [green](default)[/green]" if i == 0 else spec.name
        provider = spec.provider or config.llm_provider
        t.add_row(label, provider, spec.model or config.model_for(provider))
    console.print(Panel(t, title="Agents", border_style="blue"))


@app.command()
def tools() -> None:
    """Show the MCP servers from the tool descriptor."""
    config = Settings.from_env()
    descriptor = load_tool_config(config.mcp_config_path, base_dir=config.project_root)
    info = mcp_server_info(descriptor)

    if not info["server_count"]:
        console.print(
            "[bold yellow]No MCP servers configured.[/bold yellow] "
            f"Agents will run without tools ({config.mcp_config_path})."
        )
        return

    t = Table(box=box.SIMPLE, padding=(0, 2))
    t.add_column("Server", style="bold")
    t.add_column("Transport")
    t.add_column("Target")
    for name, server in descriptor.servers.items():
        target = server.url or " ".join([server.command or "", *server.args]).strip()
        t.add_row(name, server.resolved_transport, target)
    console.print(Panel(
        t, title=f"MCP servers ({info['server_count']})", border_style="blue",
    ))


@app.command("tools-check")
def tools_check() -> None:
    """Validate the MCP server descriptor; exit 1 on any error."""
    config = Settings.from_env()
    try:
        descriptor = load_tool_config_strict(
            config.mcp_config_path, base_dir=config.project_root,
        )
    except ToolConfigError as exc:
        console.print(f"[bold red]Invalid tool config:[/bold red] {exc}")
        raise typer.Exit(code=1)
    console.print(
        f"[bold green]OK[/bold green] {len(descriptor.servers)} server(s): "
        f"{', '.join(descriptor.server_names) or '[dim]none[/dim]'}"
    )


@app.command()
def threads(
    resource: Optional[str] = typer.Option(
        None, "--resource", "-r", help="Resource id (defaults to the stored session).",
    ),
) -> None:
    """List the conversation threads of a resource."""
    config = Settings.from_env()
    _configure_logging(config.log_level)
    session = resolve_session(resource_id=resource)

    async def _run() -> None:
        factory = ServiceFactory(config)
        await factory.initialize(bind_tools=False)
        memory = factory.create_memory_service()
        try:
            items = await memory.list_threads(session.resource_id)
        except StorageError as exc:
            console.print(f"[bold red]Cannot read threads:[/bold red] {exc}")
            raise typer.Exit(code=1)
        finally:
            await factory.aclose()

        if not items:
            console.print(f"[dim]No threads for resource '{session.resource_id}'.[/dim]")
            return

        t = Table(box=box.SIMPLE, padding=(0, 2))
        t.add_column("Thread", style="bold")
        t.add_column("Title")
        t.add_column("Updated")
        for thread in items:
            t.add_row(
                thread.thread_id,
                thread.title or "[dim]untitled[/dim]",
                thread.updated_at,
            )
        console.print(Panel(
            t, title=f"Threads of '{session.resource_id}'", border_style="blue",
        ))

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Commands: Conversation (full initialization)
# ---------------------------------------------------------------------------

@app.command()
def ask(
    message: str = typer.Argument(..., help="Message for the agent."),
    agent: Optional[str] = typer.Option(None, "--agent", "-a", help="Agent name."),
    resource: Optional[str] = typer.Option(None, "--resource", "-r", help="Resource id."),
    thread: Optional[str] = typer.Option(None, "--thread", "-t", help="Thread id."),
) -> None:
    """Send one message to an agent and print the reply."""
    config = Settings.from_env()
    _configure_logging(config.log_level)
    session = resolve_session(resource_id=resource, thread_id=thread)

    async def _run() -> None:
        factory = await _make_factory(config, wait_for_tools=True)
        try:
            dispatch = factory.create_dispatch_service()
            ctx = SessionContext(resource_id=session.resource_id, thread_id=session.thread_id)
            with console.status("[bold cyan]Thinking…", spinner="dots"):
                reply = await dispatch.process(message, agent, ctx)
        finally:
            await factory.aclose()

        save_session(session)
        console.print(Panel(Markdown(reply), title=agent or "Agent", border_style="green"))

    asyncio.run(_run())


@app.command()
def chat(
    agent: Optional[str] = typer.Option(None, "--agent", "-a", help="Agent name."),
    resource: Optional[str] = typer.Option(None, "--resource", "-r", help="Resource id."),
    new: bool = typer.Option(False, "--new", "-n", help="Start a new thread."),
) -> None:
    """Start an interactive chat session."""
    config = Settings.from_env()
    _configure_logging(config.log_level)
    session = resolve_session(resource_id=resource, new_thread=new)

    async def _run() -> None:
        factory = await _make_factory(config, wait_for_tools=True)
        dispatch = factory.create_dispatch_service()
        ctx = SessionContext(resource_id=session.resource_id, thread_id=session.thread_id)
        save_session(Session(resource_id=ctx.resource_id, thread_id=ctx.thread_id))

        label = agent or dispatch.available_agents()[0]
        console.print(Panel(
            f"[bold]Agent hub chat[/bold] with [bold]{label}[/bold]\n"
            f"Resource [bold]{ctx.resource_id}[/bold], thread [dim]{ctx.thread_id}[/dim]\n"
            "Type your message, or [bold]exit[/bold] / [bold]quit[/bold] to stop.",
            border_style="cyan",
        ))

        try:
            while True:
                try:
                    user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
                except (KeyboardInterrupt, EOFError):
                    console.print("\n[dim]Goodbye![/dim]")
                    break

                if user_input.strip().lower() in ("exit", "quit", "q", "bye"):
                    console.print("[dim]Goodbye![/dim]")
                    break

                if not user_input.strip():
                    continue

                ctx.new_request()
                with console.status("[bold cyan]Thinking…", spinner="dots"):
                    reply = await dispatch.process(user_input, agent, ctx)

                console.print()
                console.print(Panel(Markdown(reply), title=label, border_style="green"))
        finally:
            await factory.aclose()

    asyncio.run(_run())


# ---------------------------------------------------------------------------
# Global version option
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Agent hub CLI"""


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
