from __future__ import annotations

from typing import Any, Dict, List

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.models import CourseInput, EmptyInput, Page, PageInput
from canvas_mcp.core.registry import tool
from canvas_mcp.core.resolvers import resolve_course_id


@tool("canvas_list_courses", EmptyInput)
async def list_courses(client: CanvasClient, data: EmptyInput) -> List[Dict[str, Any]]:
    """List all active courses for the current user"""
    return await client.get_courses(tool="canvas_list_courses")


@tool("canvas_list_modules", CourseInput)
async def list_modules(client: CanvasClient, data: CourseInput) -> List[Dict[str, Any]]:
    """List modules (with their items) for a course"""
    course_id = await resolve_course_id(client, data.course_id, tool="canvas_list_modules")
    return await client.get_modules(course_id, tool="canvas_list_modules")


@tool("canvas_list_pages", CourseInput)
async def list_pages(client: CanvasClient, data: CourseInput) -> List[Dict[str, Any]]:
    """List wiki pages in a course"""
    course_id = await resolve_course_id(client, data.course_id, tool="canvas_list_pages")
    return await client.get_pages(course_id, tool="canvas_list_pages")


@tool("canvas_get_page_content", PageInput)
async def get_page_content(client: CanvasClient, data: PageInput) -> str:
    """Get the HTML body of a course page by URL slug or page ID"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_get_page_content"
    )
    raw = await client.get_page(course_id, data.page_url, tool="canvas_get_page_content")
    page = Page.model_validate(raw)
    return page.body or f"{page.title}\n(No content)"


@tool("canvas_list_files", CourseInput)
async def list_files(client: CanvasClient, data: CourseInput) -> List[Dict[str, Any]]:
    """List files uploaded to a course"""
    course_id = await resolve_course_id(client, data.course_id, tool="canvas_list_files")
    return await client.get_files(course_id, tool="canvas_list_files")


@tool("canvas_list_students", CourseInput)
async def list_students(client: CanvasClient, data: CourseInput) -> List[Dict[str, Any]]:
    """List students enrolled in a course"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_list_students"
    )
    return await client.get_enrollments(course_id, tool="canvas_list_students")


TOOLS = (
    list_courses,
    list_modules,
    list_pages,
    get_page_content,
    list_files,
    list_students,
)

__all__ = ["TOOLS"]
