"""
Command-line interface for promptmcp.

Usage:
    promptmcp list                          # List prompts
    promptmcp get <name>                    # Get a prompt
    promptmcp create --file prompt.json     # Create a prompt version
    promptmcp update-labels <name> <v> ...  # Relabel a version
    promptmcp serve                         # Run the MCP server over HTTP
    promptmcp stdio                         # Run the MCP server over stdio
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from dotenv import load_dotenv
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from promptmcp.config import (
    ClientSettings,
    ConnectionSettings,
    ServerSettings,
    parse_personas,
    resolve_connection,
)
from promptmcp.core.errors import PromptClientError
from promptmcp.core.manager import PromptManager
from promptmcp.core.models import ChatPrompt, ListPromptsQuery, to_wire

app = typer.Typer(
    name="promptmcp",
    help="Langfuse prompt management over the Model Context Protocol",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    langfuse_host: Optional[str] = typer.Option(None, "--langfuse-host", help="Langfuse base URL"),
    public_key: Optional[str] = typer.Option(None, "--public-key", help="Langfuse public key"),
    secret_key: Optional[str] = typer.Option(None, "--secret-key", help="Langfuse secret key"),
):
    """Options given here take precedence over LANGFUSE_* environment variables."""
    load_dotenv()
    ctx.obj = resolve_connection(
        {"host": langfuse_host, "publicKey": public_key, "secretKey": secret_key}
    )


def get_manager(connection: ConnectionSettings) -> PromptManager:
    """Build a manager from resolved settings."""
    return PromptManager.from_settings(connection, ClientSettings.from_env())


def _fail(error: Exception) -> None:
    rprint(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(1)


def _run(coro) -> Any:
    try:
        return asyncio.run(coro)
    except PromptClientError as e:
        _fail(e)


def _print_json(data: dict[str, Any]) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


@app.command("list")
def list_prompts(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Filter by name"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Filter by label"),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Filter by tag"),
    page: Optional[int] = typer.Option(None, "--page", help="Page number"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Items per page"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List prompts."""
    manager = get_manager(ctx.obj)

    try:
        query = ListPromptsQuery(name=name, label=label, tag=tag, page=page, limit=limit)
    except ValueError as e:
        _fail(e)

    result = _run(manager.list_prompts(query))

    if json_output:
        _print_json(to_wire(result))
        return

    if not result.data:
        rprint("[dim]No prompts found[/dim]")
        return

    table = Table(title="Prompts")
    table.add_column("Name", style="cyan")
    table.add_column("Versions", justify="right")
    table.add_column("Labels", style="yellow")
    table.add_column("Tags")
    table.add_column("Updated", style="dim")

    for meta in result.data:
        table.add_row(
            meta.name,
            ", ".join(str(v) for v in meta.versions),
            ", ".join(meta.labels) or "-",
            ", ".join(meta.tags) or "-",
            meta.last_updated_at,
        )

    console.print(table)
    meta = result.meta
    rprint(f"[dim]Page {meta.page}/{meta.total_pages} ({meta.total_items} prompts)[/dim]")


@app.command()
def get(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Prompt name"),
    version: Optional[int] = typer.Option(None, "--version", "-v", help="Version number"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Label to resolve"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Get a prompt."""
    manager = get_manager(ctx.obj)

    prompt = _run(manager.get_prompt(name, version=version, label=label))

    if json_output:
        _print_json(to_wire(prompt))
        return

    if isinstance(prompt, ChatPrompt):
        body = "\n\n".join(f"[{m.role}]\n{m.content}" for m in prompt.prompt)
    else:
        body = prompt.prompt

    syntax = Syntax(body, "text", theme="monokai", word_wrap=True)
    rprint(Panel(syntax, title=f"{prompt.name} v{prompt.version} ({prompt.type})"))
    rprint(f"[dim]Labels: {escape(', '.join(prompt.labels) or 'none')}[/dim]")
    rprint(f"[dim]Tags: {escape(', '.join(prompt.tags) or 'none')}[/dim]")

    if prompt.config:
        rprint(f"[dim]Config: {escape(json.dumps(prompt.config))}[/dim]")
    if prompt.commit_message:
        rprint(f"[dim]Commit: {escape(prompt.commit_message)}[/dim]")


@app.command()
def create(
    ctx: typer.Context,
    file: str = typer.Option(..., "--file", "-f", help="JSON file with the prompt ('-' for stdin)"),
):
    """Create a prompt, or a new version of an existing one."""
    manager = get_manager(ctx.obj)

    try:
        raw = sys.stdin.read() if file == "-" else Path(file).read_text()
        data = json.loads(raw)
    except (OSError, json.JSONDecodeError) as e:
        _fail(e)

    prompt = _run(manager.create_prompt(data))

    rprint(Panel(
        f"[green]✓ Created prompt:[/green] {escape(prompt.name)}\n"
        f"  Type: {prompt.type}\n"
        f"  Version: {prompt.version}\n"
        f"  Labels: {escape(', '.join(prompt.labels) or 'none')}",
        title="Success",
    ))


@app.command("update-labels")
def update_labels(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Prompt name"),
    version: int = typer.Argument(..., help="Version number"),
    labels: Optional[list[str]] = typer.Argument(None, help="New labels for the version"),
):
    """Replace the labels of a prompt version."""
    manager = get_manager(ctx.obj)

    prompt = _run(manager.update_prompt(name, version, labels or []))

    rprint(
        f"[green]✓ {escape(name)} v{prompt.version} labels: "
        f"{escape(', '.join(prompt.labels) or 'none')}[/green]"
    )


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def _server_settings(personas: Optional[list[str]]) -> ServerSettings:
    settings = ServerSettings.from_env()
    if personas:
        names = parse_personas(",".join(personas))
        settings = ServerSettings(personas=names, server_name=settings.server_name)
    return settings


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    persona: Optional[list[str]] = typer.Option(
        None, "--persona", help="Prompt name to expose as an MCP prompt (repeatable)"
    ),
    log_level: str = typer.Option("info", "--log-level", envvar="PROMPTMCP_LOG_LEVEL", help="Log level"),
):
    """Run the MCP server over streamable HTTP at /mcp."""
    from promptmcp.api.server import run_server
    from promptmcp.server.handler import PromptMcpEndpoint

    _configure_logging(log_level)
    endpoint = PromptMcpEndpoint(server_settings=_server_settings(persona))

    rprint(f"[green]✓[/green] Serving MCP on http://{host}:{port}/mcp")
    run_server(host=host, port=port, endpoint=endpoint, log_level=log_level)


@app.command()
def stdio(
    ctx: typer.Context,
    persona: Optional[list[str]] = typer.Option(
        None, "--persona", help="Prompt name to expose as an MCP prompt (repeatable)"
    ),
    log_level: str = typer.Option("warning", "--log-level", envvar="PROMPTMCP_LOG_LEVEL", help="Log level"),
):
    """Run the MCP server over stdio with the configured credentials."""
    from mcp.server.stdio import stdio_server

    from promptmcp.server.handler import build_server

    _configure_logging(log_level)
    server = build_server(get_manager(ctx.obj), _server_settings(persona))

    async def run() -> None:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())

    asyncio.run(run())


if __name__ == "__main__":
    app()
