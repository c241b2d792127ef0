from __future__ import annotations

import inspect
import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, Type

from pydantic import BaseModel, ValidationError

from .client import CanvasClient
from .errors import ToolInputError, ToolNotFoundError
from .observability import log_event

log = logging.getLogger("canvas_mcp.core.registry")

Handler = Callable[[CanvasClient, Any], Awaitable[Any]]


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Handler

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self.input_model.model_json_schema()

    def validate(self, arguments: Optional[Dict[str, Any]]) -> BaseModel:
        """Check raw arguments against the input contract before the handler runs."""
        try:
            return self.input_model.model_validate(arguments or {})
        except ValidationError as exc:
            raise ToolInputError.from_validation_error(exc, tool=self.name) from exc


def tool(
    name: str, input_model: Type[BaseModel], description: Optional[str] = None
) -> Callable[[Handler], ToolDefinition]:
    """Declare a tool; the description defaults to the handler's docstring."""

    def decorator(func: Handler) -> ToolDefinition:
        return ToolDefinition(
            name=name,
            description=description or inspect.getdoc(func) or "",
            input_model=input_model,
            handler=func,
        )

    return decorator


@dataclass(frozen=True)
class ToolResult:
    content: Any
    is_error: bool = False

    @property
    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return json.dumps(self.content, indent=2, default=str)

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        return cls(content=f"Error: {message}", is_error=True)


class ToolRegistry(Mapping):
    """
    Read-only, name-keyed view over every tool group.
    Built once at startup; duplicate names are rejected.
    """

    def __init__(self, groups: Iterable[Iterable[ToolDefinition]]):
        tools: Dict[str, ToolDefinition] = {}
        for group in groups:
            for definition in group:
                if definition.name in tools:
                    raise ValueError(
                        f"Duplicate tool name detected: {definition.name}"
                    )
                tools[definition.name] = definition
                log.info(
                    "Registered tool: %s (%s)",
                    definition.name,
                    definition.handler.__module__,
                )
        self._tools = MappingProxyType(tools)

    def __getitem__(self, name: str) -> ToolDefinition:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def lookup(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def definitions(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    async def dispatch(
        self,
        client: CanvasClient,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
    ) -> ToolResult:
        """
        Validate ``arguments`` and run the named tool.

        An unknown name raises ToolNotFoundError. Every other failure
        (validation, resolution, backend) comes back as an error result.
        """
        definition = self.lookup(name)
        start = time.perf_counter()
        try:
            data = definition.validate(arguments)
            content = await definition.handler(client, data)
        except Exception as exc:
            log_event(
                "tool_call",
                tool=name,
                status="error",
                error_type=type(exc).__name__,
                duration_ms=int((time.perf_counter() - start) * 1000),
            )
            return ToolResult.failure(str(exc))

        log_event(
            "tool_call",
            tool=name,
            status="ok",
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return ToolResult(content=content)


__all__ = ["ToolDefinition", "ToolRegistry", "ToolResult", "tool"]
