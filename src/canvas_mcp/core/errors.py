from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import ValidationError

from .client import CanvasClientError, CanvasHTTPError, CanvasParseError
from .config import MissingConfigurationError

# --- Input validation ---


class ToolInputError(ValueError):
    """Arguments failed the declared input contract; raised before any network call."""

    def __init__(self, message: str, *, tool: Optional[str] = None, fields: Tuple[str, ...] = ()):
        super().__init__(message)
        self.tool = tool
        self.fields = fields

    @classmethod
    def from_validation_error(
        cls, exc: ValidationError, *, tool: Optional[str] = None
    ) -> "ToolInputError":
        fields: List[str] = []
        parts: List[str] = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
            # Model-level validators have no location; keep their message only.
            msg = err.get("msg", "invalid value")
            if msg.startswith("Value error, "):
                msg = msg[len("Value error, ") :]
            if loc not in fields:
                fields.append(loc)
            parts.append(msg if loc == "arguments" else f"{loc}: {msg}")
        target = f" for {tool}" if tool else ""
        return cls(
            f"Invalid arguments{target}: " + "; ".join(parts),
            tool=tool,
            fields=tuple(fields),
        )


# --- Resolution errors ---


class ResolutionError(ValueError):
    def __init__(self, message: str, *, query: str):
        super().__init__(message)
        self.query = query


class NotFoundResolutionError(ResolutionError):
    pass


# --- Dispatch errors ---


class ToolNotFoundError(LookupError):
    def __init__(self, name: str):
        super().__init__(f"Tool {name} not found")
        self.name = name


class PromptNotFoundError(LookupError):
    def __init__(self, name: str):
        super().__init__(f"Prompt {name} not found")
        self.name = name


class ResourceError(ValueError):
    """Malformed or unreadable resource URI."""


class UnknownResourceError(ResourceError):
    def __init__(self, uri: str):
        super().__init__("Unknown resource type")
        self.uri = uri


class UnsupportedResourceError(ResourceError):
    def __init__(self, view: str):
        super().__init__(f"Resource type {view} not supported yet")
        self.view = view


__all__ = [
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
]
