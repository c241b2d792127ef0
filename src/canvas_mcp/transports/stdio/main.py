from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.config import create_client_from_env
from canvas_mcp.core.logging import setup_logging
from canvas_mcp.core.prompts import PROMPTS, get_prompt
from canvas_mcp.core.registry import ToolRegistry
from canvas_mcp.core.resources import RESOURCE_TEMPLATES, read_resource
from canvas_mcp.core.tools import build_registry

SERVER_NAME = "canvas-lms-server"

log = logging.getLogger("canvas_mcp.transports.stdio")


def build_server(registry: ToolRegistry, client: CanvasClient) -> Server:
    """Wire the registry, resources and prompts onto a low-level MCP server."""
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def _list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=d.name,
                description=d.description,
                inputSchema=d.input_schema,
            )
            for d in registry.definitions()
        ]

    # Arguments are validated by the registry so every tool reports one error shape.
    @server.call_tool(validate_input=False)
    async def _call_tool(name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        result = await registry.dispatch(client, name, arguments)
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=result.text)],
            isError=result.is_error,
        )

    @server.list_resources()
    async def _list_resources() -> List[types.Resource]:
        return []

    @server.list_resource_templates()
    async def _list_resource_templates() -> List[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=t.uri_template,
                name=t.name,
                mimeType=t.mime_type,
                description=t.description,
            )
            for t in RESOURCE_TEMPLATES
        ]

    @server.read_resource()
    async def _read_resource(uri) -> Iterable[ReadResourceContents]:
        content = await read_resource(client, str(uri))
        return [ReadResourceContents(content=content.text, mime_type=content.mime_type)]

    @server.list_prompts()
    async def _list_prompts() -> List[types.Prompt]:
        return [
            types.Prompt(
                name=p.name,
                description=p.description,
                arguments=[
                    types.PromptArgument(
                        name=a.name, description=a.description, required=a.required
                    )
                    for a in p.arguments
                ],
            )
            for p in PROMPTS
        ]

    @server.get_prompt()
    async def _get_prompt(
        name: str, arguments: Optional[Dict[str, str]]
    ) -> types.GetPromptResult:
        rendered = get_prompt(name, arguments)
        return types.GetPromptResult(
            description=rendered.description,
            messages=[
                types.PromptMessage(
                    role=m.role,
                    content=types.TextContent(type="text", text=m.text),
                )
                for m in rendered.messages
            ],
        )

    return server


async def serve(client: CanvasClient) -> None:
    registry = build_registry()
    server = build_server(registry, client)
    log.info("Canvas MCP server running on stdio (%d tools)", len(registry))
    async with client:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream, write_stream, server.create_initialization_options()
            )


async def main(client: Optional[CanvasClient] = None) -> None:
    setup_logging()
    await serve(client or create_client_from_env())


if __name__ == "__main__":
    asyncio.run(main())
