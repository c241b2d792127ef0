from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import PromptNotFoundError


@dataclass(frozen=True)
class PromptArgument:
    name: str
    description: str
    required: bool = True


@dataclass(frozen=True)
class PromptDefinition:
    name: str
    description: str
    arguments: Tuple[PromptArgument, ...]
    template: str
    result_description: str


@dataclass(frozen=True)
class PromptMessage:
    role: str
    text: str


@dataclass(frozen=True)
class RenderedPrompt:
    description: str
    messages: List[PromptMessage]


PROMPTS: Tuple[PromptDefinition, ...] = (
    PromptDefinition(
        name="audit_course",
        description="Audit a course to find students who are missing assignments.",
        arguments=(PromptArgument("course_id", "The ID of the course to audit"),),
        template=(
            "Please audit course {course_id} to find any students who have not "
            "submitted assignments that are due soon or past due. "
            "Use the canvas_audit_course tool."
        ),
        result_description="Audit course for missing submissions",
    ),
    PromptDefinition(
        name="summarize_course",
        description="Summarize the content and structure of a course.",
        arguments=(PromptArgument("course_id", "The ID of the course"),),
        template=(
            "Please provide a summary of the course {course_id}. List the modules, "
            "pages, and files available to understand the course structure."
        ),
        result_description="Summarize course content",
    ),
)

_BY_NAME: Dict[str, PromptDefinition] = {p.name: p for p in PROMPTS}


def get_prompt(name: str, arguments: Optional[Dict[str, str]] = None) -> RenderedPrompt:
    """Render a prompt; raises PromptNotFoundError or ValueError for a missing argument."""
    definition = _BY_NAME.get(name)
    if definition is None:
        raise PromptNotFoundError(name)

    args = arguments or {}
    for arg in definition.arguments:
        if arg.required and not args.get(arg.name):
            raise ValueError(f"{arg.name} is required")

    text = definition.template.format(**{a.name: args.get(a.name) for a in definition.arguments})
    return RenderedPrompt(
        description=definition.result_description,
        messages=[PromptMessage(role="user", text=text)],
    )


__all__ = [
    "PROMPTS",
    "PromptArgument",
    "PromptDefinition",
    "PromptMessage",
    "RenderedPrompt",
    "get_prompt",
]
