"""
canvas-mcp command line.

    canvas-mcp config       save the Canvas domain and API token
    canvas-mcp [start]      run the MCP server over stdio (default)
    canvas-mcp serve-http   run the HTTP/JSON facade
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Optional

import click

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.config import (
    DOMAIN_KEY,
    TOKEN_KEY,
    ConfigStore,
    MissingConfigurationError,
    create_client_from_env,
)

__version__ = "0.1.0"


def _client_or_exit(store: Optional[ConfigStore] = None) -> CanvasClient:
    try:
        return create_client_from_env(store)
    except MissingConfigurationError:
        click.secho("Error: Missing configuration.", fg="red", err=True)
        click.echo(
            "Please run "
            + click.style("canvas-mcp config", fg="cyan")
            + " or set CANVAS_API_TOKEN and CANVAS_API_DOMAIN.",
            err=True,
        )
        sys.exit(1)


def _not_blank(value: str) -> str:
    if not value.strip():
        raise click.BadParameter("a value is required")
    return value.strip()


@click.group(invoke_without_command=True)
@click.version_option(__version__, prog_name="canvas-mcp")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """MCP server for Canvas LMS."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(start)


@cli.command()
def config() -> None:
    """Configure Canvas credentials interactively."""
    store = ConfigStore()
    click.secho("\nCanvas MCP Server Configuration\n", fg="blue", bold=True)
    domain = click.prompt(
        "Canvas Domain (e.g., school.instructure.com)",
        default=store.get(DOMAIN_KEY),
        value_proc=_not_blank,
    )
    token = click.prompt("Canvas API Token", hide_input=True, value_proc=_not_blank)

    store.set(DOMAIN_KEY, domain)
    store.set(TOKEN_KEY, token)
    click.secho("\nConfiguration saved successfully!", fg="green")
    click.secho(f"Saved to: {store.path}", dim=True)


@cli.command()
def start() -> None:
    """Start the MCP server (stdio mode)."""
    from canvas_mcp.transports.stdio.main import main as stdio_main

    client = _client_or_exit()
    asyncio.run(stdio_main(client))


@cli.command("serve-http")
@click.option(
    "--host",
    default=lambda: os.getenv("HTTP_HOST") or "0.0.0.0",
    show_default="HTTP_HOST or 0.0.0.0",
    help="Host to bind",
)
@click.option(
    "--port",
    type=int,
    default=lambda: int(os.getenv("HTTP_PORT") or 3000),
    show_default="HTTP_PORT or 3000",
    help="Port to bind",
)
def serve_http(host: str, port: int) -> None:
    """Start the HTTP API for GPT Builder Actions."""
    from canvas_mcp.transports.http.config import HttpConfig
    from canvas_mcp.transports.http.main import main as http_main

    client = _client_or_exit()
    cfg = HttpConfig.from_env().with_overrides(host=host, port=port)
    asyncio.run(http_main(client, cfg))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
