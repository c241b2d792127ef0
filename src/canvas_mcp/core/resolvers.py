from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel

from .client import CanvasClient
from .errors import NotFoundResolutionError, ToolInputError
from .models import Course, User

log = logging.getLogger("canvas_mcp.core.resolvers")

T = TypeVar("T", bound=BaseModel)

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

COURSE_MATCH_FIELDS = ("name", "original_name", "course_code")
STUDENT_MATCH_FIELDS = ("name", "sortable_name", "email", "login_id")


def _norm(s: Optional[str]) -> str:
    return (s or "").casefold()


def coerce_numeric_id(value: Union[int, str], *, field: str = "id") -> Optional[int]:
    """
    Return ``value`` as an int when it is numeric, else None.

    Ints pass through. A string that parses entirely as a number (surrounding
    whitespace ignored, e.g. ``"42"``, ``"-1"``, ``"1.0"``, ``"1e3"``) is
    converted; a non-integral number is rejected, as are blank strings.
    """
    if isinstance(value, bool):
        raise ToolInputError(f"{field} must be an ID or a name", fields=(field,))
    if isinstance(value, int):
        return value
    text = (value or "").strip()
    if not text:
        raise ToolInputError(f"{field} must not be empty", fields=(field,))
    if _INTEGER_RE.match(text):
        return int(text)
    if _NUMBER_RE.match(text):
        number = float(text)
        if not math.isfinite(number) or not number.is_integer():
            raise ToolInputError(
                f"{field} must be a whole number, got {text!r}", fields=(field,)
            )
        return int(number)
    return None


def first_match(
    items: Iterable[T], query: str, fields: Sequence[str]
) -> Optional[T]:
    """First item (list order) where any of ``fields`` contains ``query``, case-insensitively."""
    q = _norm(query)
    for item in items:
        for name in fields:
            if q in _norm(getattr(item, name, None)):
                return item
    return None


def _validate_all(model: type[T], raw: Iterable[Any]) -> list[T]:
    return [model.model_validate(r) for r in raw if isinstance(r, dict) and "id" in r]


async def _resolve(
    identifier: Union[int, str],
    *,
    field: str,
    fetch: Callable,
    model: type[T],
    match_fields: Sequence[str],
    not_found: Callable[[str], str],
) -> int:
    numeric = coerce_numeric_id(identifier, field=field)
    if numeric is not None:
        return numeric

    query = str(identifier)
    candidates = _validate_all(model, await fetch())
    match = first_match(candidates, query, match_fields)
    if match is None:
        raise NotFoundResolutionError(not_found(query), query=query)

    log.debug("Resolved %s %r -> %s", field, query, match.id)
    return match.id


async def resolve_course_id(
    client: CanvasClient, identifier: Union[int, str], *, tool: Optional[str] = None
) -> int:
    """
    Resolve a course ID or (partial) course name/code to a numeric course ID.

    Numeric input is returned without a network call. Otherwise the active
    courses are searched and the first course whose name, original name or
    course code contains the input wins.
    """
    return await _resolve(
        identifier,
        field="course_id",
        fetch=lambda: client.get_courses(tool=tool),
        model=Course,
        match_fields=COURSE_MATCH_FIELDS,
        not_found=lambda q: (
            f'Course not found matching: "{q}". '
            "Please provide a valid Course ID or a more specific name."
        ),
    )


async def resolve_student_id(
    client: CanvasClient,
    course_id: int,
    identifier: Union[int, str],
    *,
    tool: Optional[str] = None,
) -> int:
    """Resolve a student ID or (partial) name/email/login within one course."""
    return await _resolve(
        identifier,
        field="student_id",
        fetch=lambda: client.get_enrollments(course_id, tool=tool),
        model=User,
        match_fields=STUDENT_MATCH_FIELDS,
        not_found=lambda q: (
            f'Student not found matching: "{q}" in course {course_id}. '
            "Please provide a valid Student ID or a more specific name."
        ),
    )


__all__ = [
    "COURSE_MATCH_FIELDS",
    "STUDENT_MATCH_FIELDS",
    "coerce_numeric_id",
    "first_match",
    "resolve_course_id",
    "resolve_student_id",
]
