import json

import pytest
import respx
from httpx import Response

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.core.tools import build_registry

BASE = "https://canvas.test/api/v1"


def _client():
    return CanvasClient(domain="canvas.test", token="t")


async def _call(name, arguments=None):
    async with _client() as client:
        return await build_registry().dispatch(client, name, arguments)


@pytest.mark.asyncio
async def test_list_courses_takes_no_arguments():
    async with respx.mock:
        respx.get(f"{BASE}/courses").mock(
            return_value=Response(200, json=[{"id": 1, "name": "Bio", "term": {"name": "Fall"}}])
        )
        result = await _call("canvas_list_courses")

    assert json.loads(result.text) == [{"id": 1, "name": "Bio", "term": {"name": "Fall"}}]


@pytest.mark.asyncio
async def test_list_modules_includes_items():
    async with respx.mock:
        route = respx.get(f"{BASE}/courses/1/modules").mock(
            return_value=Response(200, json=[{"id": 1, "name": "Week 1", "items": []}])
        )
        await _call("canvas_list_modules", {"course_id": 1})

    assert route.calls[0].request.url.params.get_list("include[]") == ["items"]


@pytest.mark.asyncio
async def test_page_content_returns_body_or_placeholder():
    async with respx.mock:
        respx.get(f"{BASE}/courses/1/pages/syllabus").mock(
            return_value=Response(200, json={"title": "Syllabus", "body": "<h1>Hi</h1>"})
        )
        respx.get(f"{BASE}/courses/1/pages/empty").mock(
            return_value=Response(200, json={"title": "Empty", "body": None})
        )
        full = await _call("canvas_get_page_content", {"course_id": 1, "page_url": "syllabus"})
        empty = await _call("canvas_get_page_content", {"course_id": 1, "page_url": "empty"})

    assert full.text == "<h1>Hi</h1>"
    assert empty.text == "Empty\n(No content)"


@pytest.mark.asyncio
async def test_list_files_and_pages_follow_pagination():
    async with respx.mock:
        respx.get(f"{BASE}/courses/1/files").mock(
            side_effect=[
                Response(
                    200,
                    json=[{"id": 1}],
                    headers={"link": f'<{BASE}/courses/1/files?page=2>; rel="next"'},
                ),
                Response(200, json=[{"id": 2}]),
            ]
        )
        respx.get(f"{BASE}/courses/1/pages").mock(return_value=Response(200, json=[]))
        files = await _call("canvas_list_files", {"course_id": 1})
        pages = await _call("canvas_list_pages", {"course_id": 1})

    assert json.loads(files.text) == [{"id": 1}, {"id": 2}]
    assert json.loads(pages.text) == []


@pytest.mark.asyncio
async def test_list_announcements_resolves_each_course():
    async with respx.mock:
        respx.get(f"{BASE}/courses").mock(
            return_value=Response(200, json=[{"id": 42, "name": "History"}])
        )
        route = respx.get(f"{BASE}/announcements").mock(
            return_value=Response(200, json=[{"id": 1, "title": "Welcome"}])
        )
        result = await _call("canvas_list_announcements", {"course_ids": [7, "history"]})

    assert json.loads(result.text) == [{"id": 1, "title": "Welcome"}]
    params = route.calls[0].request.url.params
    assert params.get_list("context_codes[]") == ["course_7", "course_42"]


@pytest.mark.asyncio
async def test_list_announcements_needs_a_course():
    result = await _call("canvas_list_announcements", {"course_ids": []})
    assert result.is_error
    assert "course_ids" in result.text


@pytest.mark.asyncio
async def test_post_announcement_body():
    async with respx.mock:
        route = respx.post(f"{BASE}/courses/1/discussion_topics").mock(
            return_value=Response(200, json={"id": 3, "is_announcement": True})
        )
        result = await _call(
            "canvas_post_announcement",
            {"course_id": 1, "title": "Exam moved", "message": "<p>Now Friday</p>"},
        )

    assert not result.is_error
    assert json.loads(route.calls[0].request.content) == {
        "title": "Exam moved",
        "message": "<p>Now Friday</p>",
        "is_announcement": True,
    }


@pytest.mark.asyncio
async def test_discussions_entries_and_reply():
    async with respx.mock:
        respx.get(f"{BASE}/courses/1/discussion_topics").mock(
            return_value=Response(200, json=[{"id": 5}])
        )
        respx.get(f"{BASE}/courses/1/discussion_topics/5/entries").mock(
            return_value=Response(200, json=[{"id": 50, "message": "first"}])
        )
        reply = respx.post(f"{BASE}/courses/1/discussion_topics/5/entries").mock(
            return_value=Response(200, json={"id": 51})
        )
        topics = await _call("canvas_list_discussions", {"course_id": 1})
        entries = await _call("canvas_get_discussion_entries", {"course_id": 1, "topic_id": 5})
        posted = await _call(
            "canvas_post_discussion_reply", {"course_id": 1, "topic_id": 5, "message": "Thanks"}
        )

    assert json.loads(topics.text) == [{"id": 5}]
    assert json.loads(entries.text)[0]["message"] == "first"
    assert json.loads(posted.text) == {"id": 51}
    assert json.loads(reply.calls[0].request.content) == {"message": "Thanks"}


@pytest.mark.asyncio
async def test_quiz_tools():
    async with respx.mock:
        respx.get(f"{BASE}/courses/1/quizzes").mock(
            return_value=Response(200, json=[{"id": 8, "title": "Quiz 1"}])
        )
        respx.get(f"{BASE}/courses/1/quizzes/8").mock(
            return_value=Response(200, json={"id": 8, "title": "Quiz 1"})
        )
        update = respx.put(f"{BASE}/courses/1/quizzes/8").mock(
            return_value=Response(200, json={"id": 8, "due_at": None})
        )
        listed = await _call("canvas_list_quizzes", {"course_id": 1})
        single = await _call("canvas_get_quiz", {"course_id": 1, "quiz_id": 8})
        updated = await _call(
            "canvas_update_quiz_dates", {"course_id": 1, "quiz_id": 8, "due_at": None}
        )

    assert json.loads(listed.text)[0]["id"] == 8
    assert json.loads(single.text)["title"] == "Quiz 1"
    assert not updated.is_error
    assert json.loads(update.calls[0].request.content) == {"quiz": {"due_at": None}}
