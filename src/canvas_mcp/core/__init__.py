"""Core domain surface for canvas-mcp (transport-agnostic)."""

from .client import (
    CanvasClient,
    CanvasClientError,
    CanvasHTTPError,
    CanvasParseError,
)
from .config import (
    ConfigStore,
    MissingConfigurationError,
    create_client_from_env,
    load_settings,
)
from .errors import (
    NotFoundResolutionError,
    PromptNotFoundError,
    ResolutionError,
    ResourceError,
    ToolInputError,
    ToolNotFoundError,
    UnknownResourceError,
    UnsupportedResourceError,
)
from .links import parse_link_header
from .registry import ToolDefinition, ToolRegistry, ToolResult
from .resolvers import resolve_course_id, resolve_student_id

__all__ = [
    # Client
    "CanvasClient",
    "parse_link_header",
    # Exceptions
    "CanvasClientError",
    "CanvasHTTPError",
    "CanvasParseError",
    "MissingConfigurationError",
    "NotFoundResolutionError",
    "PromptNotFoundError",
    "ResolutionError",
    "ResourceError",
    "ToolInputError",
    "ToolNotFoundError",
    "UnknownResourceError",
    "UnsupportedResourceError",
    # Config helpers
    "ConfigStore",
    "create_client_from_env",
    "load_settings",
    # Registry
    "ToolDefinition",
    "ToolRegistry",
    "ToolResult",
    # Resolvers
    "resolve_course_id",
    "resolve_student_id",
]
