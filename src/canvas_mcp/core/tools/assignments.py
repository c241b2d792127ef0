from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.models import (
    AssignmentDatesInput,
    AssignmentInput,
    BulkDueDateInput,
    BulkDueDateToolInput,
    CourseInput,
    DeleteCommentInput,
    SubmissionInput,
)
from canvas_mcp.core.observability import log_event
from canvas_mcp.core.registry import tool
from canvas_mcp.core.resolvers import resolve_course_id
from canvas_mcp.utils.time_parser import is_upcoming

COMPACT_FIELDS = (
    "id",
    "name",
    "due_at",
    "unlock_at",
    "lock_at",
    "points_possible",
    "published",
)
DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 200


def compact_assignment(assignment: Dict[str, Any]) -> Dict[str, Any]:
    return {key: assignment.get(key) for key in COMPACT_FIELDS}


def clamp_limit(limit: Optional[int], default: int = DEFAULT_LIST_LIMIT) -> int:
    if limit is None:
        return default
    return min(max(limit, 1), MAX_LIST_LIMIT)


async def list_assignments_compact(
    client: CanvasClient,
    course_id: int,
    *,
    search: str = "",
    limit: int = DEFAULT_LIST_LIMIT,
    upcoming_only: bool = False,
    full: bool = False,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Assignments filtered by a name substring and optionally by upcoming due date.

    Returns at most ``limit`` entries, projected to COMPACT_FIELDS unless
    ``full`` is set.
    """
    needle = (search or "").strip().casefold()
    assignments = await client.get_assignments(course_id, tool="list_assignments")

    selected: List[Dict[str, Any]] = []
    for assignment in assignments:
        if needle and needle not in (assignment.get("name") or "").casefold():
            continue
        if upcoming_only and not is_upcoming(assignment.get("due_at"), now):
            continue
        selected.append(assignment)

    selected = selected[: clamp_limit(limit)]
    if full:
        return selected
    return [compact_assignment(a) for a in selected]


def _matches_all(name: Optional[str], terms: List[str]) -> bool:
    lowered = (name or "").lower()
    return all(term in lowered for term in terms)


async def bulk_update_due_dates(
    client: CanvasClient,
    course_id: int,
    data: BulkDueDateInput,
    *,
    tool_name: str = "bulk_update_due_dates",
) -> Dict[str, Any]:
    """
    Set one due date on every assignment whose name contains all query terms.

    Matches are taken in list order up to ``data.limit`` and updated one at a
    time; a failed update is recorded on its item and the loop continues.
    With ``dry_run`` no update is sent and every match is ``matched_only``.
    """
    assignments = await client.get_assignments(course_id, tool=tool_name)
    matched = [a for a in assignments if _matches_all(a.get("name"), data.query_terms)]
    matched = matched[: data.limit]

    results: List[Dict[str, Any]] = []
    for assignment in matched:
        assignment_id = assignment.get("id")
        item: Dict[str, Any] = {
            "assignment_id": assignment_id,
            "name": assignment.get("name"),
            "previous_due_at": assignment.get("due_at"),
            "due_at": data.due_at,
        }
        if data.dry_run:
            item["status"] = "matched_only"
        elif assignment_id is None:
            item["status"] = "error"
            item["error"] = "Assignment has no id"
        else:
            # Failures are recorded per item.
            try:
                updated = await client.update_assignment_dates(
                    course_id,
                    assignment_id,
                    {"due_at": data.due_at},
                    tool=tool_name,
                )
            except Exception as exc:
                item["status"] = "error"
                item["error"] = str(exc)
            else:
                item["status"] = "updated"
                item["due_at"] = updated.get("due_at", data.due_at)
        results.append(item)

    updated_count = sum(1 for r in results if r["status"] == "updated")
    error_count = sum(1 for r in results if r["status"] == "error")
    log_event(
        "bulk_due_date",
        tool=tool_name,
        course_id=course_id,
        count=len(results),
        status="dry_run" if data.dry_run else "applied",
    )
    return {
        "course_id": course_id,
        "query_terms": data.query_terms,
        "due_at": data.due_at,
        "dry_run": data.dry_run,
        "matched_count": len(results),
        "updated_count": updated_count,
        "error_count": error_count,
        "results": results,
    }


# --- Tools ---


@tool("canvas_get_assignments", CourseInput)
async def get_assignments(client: CanvasClient, data: CourseInput) -> List[Dict[str, Any]]:
    """Get all assignments for a course"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_get_assignments"
    )
    return await client.get_assignments(course_id, tool="canvas_get_assignments")


@tool("canvas_get_assignment", AssignmentInput)
async def get_assignment(client: CanvasClient, data: AssignmentInput) -> Dict[str, Any]:
    """Get details for one assignment, including rubric settings and overrides"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_get_assignment"
    )
    return await client.get_assignment(
        course_id, data.assignment_id, tool="canvas_get_assignment"
    )


@tool("canvas_get_submissions", AssignmentInput)
async def get_submissions(
    client: CanvasClient, data: AssignmentInput
) -> List[Dict[str, Any]]:
    """Get all submissions for an assignment"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_get_submissions"
    )
    return await client.get_submissions(
        course_id, data.assignment_id, tool="canvas_get_submissions"
    )


@tool("canvas_get_submission", SubmissionInput)
async def get_submission(client: CanvasClient, data: SubmissionInput) -> Dict[str, Any]:
    """Get one student's submission with history, comments and rubric assessment"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_get_submission"
    )
    return await client.get_single_submission(
        course_id, data.assignment_id, data.student_id, tool="canvas_get_submission"
    )


@tool("canvas_get_submission_comments", SubmissionInput)
async def get_submission_comments(
    client: CanvasClient, data: SubmissionInput
) -> List[Dict[str, Any]]:
    """Get the comments on one student's submission"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_get_submission_comments"
    )
    return await client.get_submission_comments(
        course_id,
        data.assignment_id,
        data.student_id,
        tool="canvas_get_submission_comments",
    )


@tool("canvas_delete_submission_comment", DeleteCommentInput)
async def delete_submission_comment(
    client: CanvasClient, data: DeleteCommentInput
) -> Dict[str, Any]:
    """Delete a comment from a student's submission"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_delete_submission_comment"
    )
    return await client.delete_submission_comment(
        course_id,
        data.assignment_id,
        data.student_id,
        data.comment_id,
        tool="canvas_delete_submission_comment",
    )


@tool("canvas_update_assignment_dates", AssignmentDatesInput)
async def update_assignment_dates(
    client: CanvasClient, data: AssignmentDatesInput
) -> Dict[str, Any]:
    """
    Update an assignment's due_at, unlock_at and/or lock_at.
    Omitted fields are left unchanged; null clears a date.
    """
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_update_assignment_dates"
    )
    return await client.update_assignment_dates(
        course_id,
        data.assignment_id,
        data.dates(),
        tool="canvas_update_assignment_dates",
    )


@tool("canvas_bulk_update_due_dates", BulkDueDateToolInput)
async def bulk_update_assignment_due_dates(
    client: CanvasClient, data: BulkDueDateToolInput
) -> Dict[str, Any]:
    """
    Set the same due date on every assignment whose name contains all query_terms.
    Use dry_run to preview the matches without changing anything.
    """
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_bulk_update_due_dates"
    )
    return await bulk_update_due_dates(
        client, course_id, data, tool_name="canvas_bulk_update_due_dates"
    )


TOOLS = (
    get_assignments,
    get_assignment,
    get_submissions,
    get_submission,
    get_submission_comments,
    delete_submission_comment,
    update_assignment_dates,
    bulk_update_assignment_due_dates,
)

__all__ = [
    "COMPACT_FIELDS",
    "TOOLS",
    "bulk_update_due_dates",
    "clamp_limit",
    "compact_assignment",
    "list_assignments_compact",
]
