from __future__ import annotations

from typing import Any, Dict, List

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.models import (
    AnnouncementsInput,
    CourseInput,
    DiscussionTopicInput,
    PostAnnouncementInput,
    PostReplyInput,
)
from canvas_mcp.core.registry import tool
from canvas_mcp.core.resolvers import resolve_course_id


@tool("canvas_list_announcements", AnnouncementsInput)
async def list_announcements(
    client: CanvasClient, data: AnnouncementsInput
) -> List[Dict[str, Any]]:
    """List announcements for one or more courses"""
    name = "canvas_list_announcements"
    course_ids = [await resolve_course_id(client, c, tool=name) for c in data.course_ids]
    return await client.get_announcements(course_ids, tool=name)


@tool("canvas_list_discussions", CourseInput)
async def list_discussions(
    client: CanvasClient, data: CourseInput
) -> List[Dict[str, Any]]:
    """List discussion topics in a course"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_list_discussions"
    )
    return await client.get_discussion_topics(course_id, tool="canvas_list_discussions")


@tool("canvas_get_discussion_entries", DiscussionTopicInput)
async def get_discussion_entries(
    client: CanvasClient, data: DiscussionTopicInput
) -> List[Dict[str, Any]]:
    """Get the entries (replies) of a discussion topic"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_get_discussion_entries"
    )
    return await client.get_discussion_entries(
        course_id, data.topic_id, tool="canvas_get_discussion_entries"
    )


@tool("canvas_post_announcement", PostAnnouncementInput)
async def post_announcement(
    client: CanvasClient, data: PostAnnouncementInput
) -> Dict[str, Any]:
    """Post a new announcement to a course"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_post_announcement"
    )
    return await client.post_announcement(
        course_id, data.title, data.message, tool="canvas_post_announcement"
    )


@tool("canvas_post_discussion_reply", PostReplyInput)
async def post_discussion_reply(
    client: CanvasClient, data: PostReplyInput
) -> Dict[str, Any]:
    """Reply to a discussion topic"""
    course_id = await resolve_course_id(
        client, data.course_id, tool="canvas_post_discussion_reply"
    )
    return await client.post_discussion_reply(
        course_id, data.topic_id, data.message, tool="canvas_post_discussion_reply"
    )


TOOLS = (
    list_announcements,
    list_discussions,
    get_discussion_entries,
    post_announcement,
    post_discussion_reply,
)

__all__ = ["TOOLS"]
