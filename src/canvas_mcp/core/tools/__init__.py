"""Tool groups exposed by the server, one module per Canvas area."""

from __future__ import annotations

from canvas_mcp.core.registry import ToolRegistry

from . import assignments, communication, courses, grading, quizzes, students

TOOL_GROUPS = (
    courses.TOOLS,
    assignments.TOOLS,
    grading.TOOLS,
    communication.TOOLS,
    quizzes.TOOLS,
    students.TOOLS,
)


def build_registry() -> ToolRegistry:
    """Flatten every tool group into one registry (raises on duplicate names)."""
    return ToolRegistry(TOOL_GROUPS)


__all__ = ["TOOL_GROUPS", "build_registry"]
