from __future__ import annotations

from typing import Any, Dict, List

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.models import (
    CourseInput,
    DueDatesInput,
    EnrollmentGrades,
    StudentInput,
    User,
)
from canvas_mcp.core.registry import tool
from canvas_mcp.core.resolvers import resolve_course_id, resolve_student_id
from canvas_mcp.core.tools.assignments import compact_assignment
from canvas_mcp.utils.time_parser import is_upcoming


def student_grade_info(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Project a user to id/name/email plus the grades of their first enrollment."""
    student = User.model_validate(raw)
    first = student.enrollments[0] if student.enrollments else None
    grades = (first.grades if first else None) or EnrollmentGrades()
    return {
        "student_id": student.id,
        "student_name": student.name,
        "email": student.email,
        "current_grade": grades.current_grade,
        "final_grade": grades.final_grade,
        "current_score": grades.current_score,
        "final_score": grades.final_score,
    }


def _student_assignment_row(item: Dict[str, Any]) -> Dict[str, Any]:
    assignment = item.get("assignment") or {}
    return {
        "assignment_id": item.get("assignment_id"),
        "assignment_name": assignment.get("name"),
        "due_at": assignment.get("due_at"),
        "unlock_at": assignment.get("unlock_at"),
        "lock_at": assignment.get("lock_at"),
        "submitted_at": item.get("submitted_at"),
        "late": bool(item.get("late")),
        "missing": bool(item.get("missing")),
        "workflow_state": item.get("workflow_state"),
        "grade": item.get("grade"),
        "score": item.get("score"),
    }


@tool("canvas_list_students_with_grades", CourseInput)
async def list_students_with_grades(
    client: CanvasClient, data: CourseInput
) -> List[Dict[str, Any]]:
    """List students in a course with their current/final grade and score"""
    name = "canvas_list_students_with_grades"
    course_id = await resolve_course_id(client, data.course_id, tool=name)
    students = await client.get_enrollments(course_id, tool=name)
    return [student_grade_info(s) for s in students]


@tool("canvas_get_student_grades", StudentInput)
async def get_student_grades(client: CanvasClient, data: StudentInput) -> Dict[str, Any]:
    """Get grade summary for one student in a course"""
    name = "canvas_get_student_grades"
    course_id = await resolve_course_id(client, data.course_id, tool=name)
    student_id = await resolve_student_id(client, course_id, data.student_id, tool=name)
    student = await client.get_student_in_course(course_id, student_id, tool=name)
    return student_grade_info(student)


@tool("canvas_get_student_assignments", StudentInput)
async def get_student_assignments(
    client: CanvasClient, data: StudentInput
) -> List[Dict[str, Any]]:
    """Get all assignments for one student with due dates and submission status"""
    name = "canvas_get_student_assignments"
    course_id = await resolve_course_id(client, data.course_id, tool=name)
    student_id = await resolve_student_id(client, course_id, data.student_id, tool=name)
    submissions = await client.get_student_course_submissions(
        course_id, student_id, tool=name
    )
    return [_student_assignment_row(s) for s in submissions]


@tool("canvas_list_assignment_due_dates", DueDatesInput)
async def list_assignment_due_dates(
    client: CanvasClient, data: DueDatesInput
) -> List[Dict[str, Any]]:
    """List assignment due dates in a course (optionally only upcoming)"""
    name = "canvas_list_assignment_due_dates"
    course_id = await resolve_course_id(client, data.course_id, tool=name)
    assignments = await client.get_assignments(course_id, tool=name)

    rows: List[Dict[str, Any]] = []
    for assignment in assignments:
        if data.only_upcoming and not is_upcoming(assignment.get("due_at")):
            continue
        row = compact_assignment(assignment)
        rows.append(
            {
                "assignment_id": row.pop("id"),
                "assignment_name": row.pop("name"),
                **row,
            }
        )
    return rows


TOOLS = (
    list_students_with_grades,
    get_student_grades,
    get_student_assignments,
    list_assignment_due_dates,
)

__all__ = ["TOOLS", "student_grade_info"]
