from __future__ import annotations

import asyncio
from typing import Optional

import uvicorn

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.config import create_client_from_env
from canvas_mcp.core.logging import setup_logging

from .app import build_http_app
from .config import HttpConfig


async def serve(client: CanvasClient, cfg: HttpConfig) -> None:
    app = build_http_app(client, cfg)
    # log_config=None keeps uvicorn on the logfmt root handler
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=cfg.host,
            port=cfg.port,
            log_level=cfg.log_level.lower(),
            log_config=None,
        )
    )
    async with client:
        await server.serve()


async def main(
    client: Optional[CanvasClient] = None, cfg: Optional[HttpConfig] = None
) -> None:
    cfg = cfg or HttpConfig.from_env()
    setup_logging(cfg.log_level)
    await serve(client or create_client_from_env(), cfg)


if __name__ == "__main__":
    asyncio.run(main())
