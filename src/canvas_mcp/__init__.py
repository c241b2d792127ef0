"""canvas_mcp package exports."""

from .core import (
    CanvasClient,
    CanvasClientError,
    CanvasHTTPError,
    CanvasParseError,
    ToolRegistry,
    create_client_from_env,
)
from .core.tools import build_registry

__all__ = [
    "CanvasClient",
    "CanvasClientError",
    "CanvasHTTPError",
    "CanvasParseError",
    "ToolRegistry",
    "build_registry",
    "create_client_from_env",
]
