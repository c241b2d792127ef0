from __future__ import annotations

from typing import Any, Dict, List, Union

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.models import (
    Assignment,
    CourseInput,
    GradeMultipleInput,
    GradeSubmissionInput,
    Submission,
    rubric_payload,
)
from canvas_mcp.core.registry import tool
from canvas_mcp.core.resolvers import resolve_course_id
from canvas_mcp.utils.time_parser import is_future

NO_MATCHING_STUDENTS = "No students found matching the criteria."
NO_FUTURE_ASSIGNMENTS = "No future assignments found."


def _matches_status(submission: Submission, status: str) -> bool:
    if status == "unsubmitted":
        return submission.is_unsubmitted
    if status == "missing":
        return bool(submission.missing)
    if status == "late":
        return bool(submission.late)
    return False


@tool("canvas_grade_submission", GradeSubmissionInput)
async def grade_submission(
    client: CanvasClient, data: GradeSubmissionInput
) -> Dict[str, Any]:
    """Grade a submission for a specific student, optionally with a comment and rubric"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_grade_submission"
    )
    return await client.grade_submission(
        course_id,
        data.assignment_id,
        data.student_id,
        data.grade,
        data.comment,
        rubric_payload(data.rubric_assessment),
        tool="canvas_grade_submission",
    )


@tool("canvas_grade_multiple_submissions", GradeMultipleInput)
async def grade_multiple_submissions(
    client: CanvasClient, data: GradeMultipleInput
) -> Union[str, List[Dict[str, Any]]]:
    """
    Grade multiple submissions at once, either by providing student_ids or
    filtering by status (unsubmitted, missing, late)
    """
    name = "canvas_grade_multiple_submissions"
    course_id = await resolve_course_id(client, data.course_id, tool=name)

    if data.student_ids is not None:
        targets = list(data.student_ids)
    else:
        raw = await client.get_submissions(course_id, data.assignment_id, tool=name)
        submissions = [Submission.model_validate(s) for s in raw]
        targets = [
            s.user_id
            for s in submissions
            if s.user_id is not None and _matches_status(s, data.filter_status)
        ]

    if not targets:
        return NO_MATCHING_STUDENTS

    rubric = rubric_payload(data.rubric_assessment)
    results: List[Dict[str, Any]] = []
    for user_id in targets:
        # Failures are recorded per item.
        try:
            await client.grade_submission(
                course_id,
                data.assignment_id,
                user_id,
                data.grade,
                data.comment,
                rubric,
                tool=name,
            )
        except Exception as exc:
            results.append({"student_id": user_id, "status": "error", "error": str(exc)})
        else:
            results.append({"student_id": user_id, "status": "graded", "grade": data.grade})
    return results


@tool("canvas_audit_course", CourseInput)
async def audit_course(client: CanvasClient, data: CourseInput) -> str:
    """Audit a course for future assignments and missing submissions"""
    name = "canvas_audit_course"
    course_id = await resolve_course_id(client, data.course_id, tool=name)
    assignments = [
        Assignment.model_validate(a)
        for a in await client.get_assignments(course_id, tool=name)
    ]
    future = [a for a in assignments if a.id is not None and is_future(a.due_at)]
    if not future:
        return NO_FUTURE_ASSIGNMENTS

    lines = [f"Audit for Course {course_id}:"]
    for assignment in future:
        raw = await client.get_submissions(course_id, assignment.id, tool=name)
        missing = [
            s for s in (Submission.model_validate(r) for r in raw) if s.is_unsubmitted
        ]
        if not missing:
            continue
        lines.append("")
        lines.append(f"Assignment: {assignment.name} (Due: {assignment.due_at})")
        lines.append(f"  {len(missing)} missing submissions:")
        for sub in missing:
            lines.append(f"    - {sub.display_name} (ID: {sub.user_id})")
    return "\n".join(lines) + "\n"


TOOLS = (grade_submission, grade_multiple_submissions, audit_course)

__all__ = ["NO_FUTURE_ASSIGNMENTS", "NO_MATCHING_STUDENTS", "TOOLS"]
