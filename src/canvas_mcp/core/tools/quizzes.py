from __future__ import annotations

from typing import Any, Dict, List

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.models import CourseInput, QuizDatesInput, QuizInput
from canvas_mcp.core.registry import tool
from canvas_mcp.core.resolvers import resolve_course_id


@tool("canvas_list_quizzes", CourseInput)
async def list_quizzes(client: CanvasClient, data: CourseInput) -> List[Dict[str, Any]]:
    """List quizzes in a course"""
    course_id = await resolve_course_id(client, data.course_id, tool="canvas_list_quizzes")
    return await client.get_quizzes(course_id, tool="canvas_list_quizzes")


@tool("canvas_get_quiz", QuizInput)
async def get_quiz(client: CanvasClient, data: QuizInput) -> Dict[str, Any]:
    """Get details for one quiz"""
    course_id = await resolve_course_id(client, data.course_id, tool="canvas_get_quiz")
    return await client.get_quiz(course_id, data.quiz_id, tool="canvas_get_quiz")


@tool("canvas_update_quiz_dates", QuizDatesInput)
async def update_quiz_dates(client: CanvasClient, data: QuizDatesInput) -> Dict[str, Any]:
    """
    Update a quiz's due_at, unlock_at and/or lock_at.
    Omitted fields are left unchanged; null clears a date.
    """
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_update_quiz_dates"
    )
    return await client.update_quiz_dates(
        course_id, data.quiz_id, data.dates(), tool="canvas_update_quiz_dates"
    )


TOOLS = (list_quizzes, get_quiz, update_quiz_dates)

__all__ = ["TOOLS"]
