from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

from .client import CanvasClient
from .errors import ResourceError, UnknownResourceError, UnsupportedResourceError
from .models import Assignment, Module, Page

SCHEME = "canvas"


@dataclass(frozen=True)
class ResourceTemplate:
    uri_template: str
    name: str
    mime_type: str
    description: str


RESOURCE_TEMPLATES: Tuple[ResourceTemplate, ...] = (
    ResourceTemplate(
        uri_template="canvas://courses/{course_id}/readme",
        name="Course Readme/Summary",
        mime_type="text/markdown",
        description="A summary of the course structure",
    ),
    ResourceTemplate(
        uri_template="canvas://courses/{course_id}/pages/{page_id}",
        name="Course Page",
        mime_type="text/html",
        description="The HTML body of a course page",
    ),
)


@dataclass(frozen=True)
class ResourceContent:
    uri: str
    mime_type: str
    text: str


@dataclass(frozen=True)
class ResourceURI:
    """``canvas://courses/{course_id}/{view}[/{leaf}]``; the host is the first segment."""

    uri: str
    course_id: int
    view: str
    leaf: Optional[str] = None

    @classmethod
    def parse(cls, uri: str) -> "ResourceURI":
        parts = urlsplit(str(uri))
        if parts.scheme != SCHEME:
            raise ResourceError(f"Invalid protocol: expected {SCHEME}://, got {uri}")

        segments: List[str] = [parts.netloc] if parts.netloc else []
        segments.extend(s for s in parts.path.split("/") if s)

        if not segments or segments[0] != "courses":
            raise UnknownResourceError(uri)
        if len(segments) < 2 or not segments[1].isdigit():
            raise ResourceError(f"Resource URI needs a numeric course id: {uri}")
        if len(segments) < 3:
            raise ResourceError(f"Resource URI needs a view after the course id: {uri}")

        leaf = segments[3] if len(segments) > 3 else None
        return cls(uri=str(uri), course_id=int(segments[1]), view=segments[2], leaf=leaf)


def render_course_readme(
    course_id: int, modules: List[Module], assignments: List[Assignment]
) -> str:
    module_lines = "\n".join(f"- {m.name} ({m.item_total} items)" for m in modules)
    assignment_lines = "\n".join(f"- {a.name} (Due: {a.due_at})" for a in assignments)
    return (
        f"# Course {course_id} Summary\n\n"
        f"## Modules\n{module_lines}\n\n"
        f"## Assignments\n{assignment_lines}"
    )


async def read_resource(client: CanvasClient, uri: str) -> ResourceContent:
    """Resolve a resource URI against Canvas; nothing is cached between reads."""
    target = ResourceURI.parse(uri)

    if target.view == "readme":
        modules = [
            Module.model_validate(m)
            for m in await client.get_modules(target.course_id, tool="resource_readme")
        ]
        assignments = [
            Assignment.model_validate(a)
            for a in await client.get_assignments(
                target.course_id, tool="resource_readme"
            )
        ]
        return ResourceContent(
            uri=target.uri,
            mime_type="text/markdown",
            text=render_course_readme(target.course_id, modules, assignments),
        )

    if target.view == "pages":
        if not target.leaf:
            raise ResourceError(f"Page resource needs a page id: {uri}")
        raw = await client.get_page(target.course_id, target.leaf, tool="resource_page")
        page = Page.model_validate(raw)
        return ResourceContent(uri=target.uri, mime_type="text/html", text=page.body or "")

    raise UnsupportedResourceError(target.view)


__all__ = [
    "RESOURCE_TEMPLATES",
    "ResourceContent",
    "ResourceTemplate",
    "ResourceURI",
    "read_resource",
    "render_course_readme",
]
