import json

import httpx
import pytest
import respx
from httpx import Response

from canvas_mcp.core.client import (
    CanvasClient,
    CanvasClientError,
    CanvasHTTPError,
    CanvasParseError,
)

BASE = "https://canvas.test/api/v1"


def _client():
    return CanvasClient(domain="canvas.test", token="secret-token")


def _paged(pages):
    """side_effect serving `pages[n]` for ?page=n (first request has no page param)."""

    def responder(request):
        page = int(request.url.params.get("page", 1))
        body = pages[page - 1]
        headers = {}
        if page < len(pages):
            headers["link"] = (
                f'<{BASE}/courses?page={page + 1}>; rel="next", '
                f'<{BASE}/courses?page=1>; rel="first"'
            )
        return Response(200, json=body, headers=headers)

    return responder


@pytest.mark.asyncio
async def test_get_request_success():
    async with respx.mock:
        route = respx.get(f"{BASE}/courses/7").mock(
            return_value=Response(200, json={"id": 7, "name": "Biology"})
        )

        async with _client() as client:
            data = await client.get("courses/7")

        assert data == {"id": 7, "name": "Biology"}
        assert route.called


@pytest.mark.asyncio
async def test_auth_header_is_bearer_token():
    async with respx.mock:
        route = respx.get(f"{BASE}/courses/7").mock(
            return_value=Response(200, json={"id": 7})
        )

        async with _client() as client:
            await client.get("courses/7")

        sent = route.calls[0].request.headers
        assert sent.get("Authorization") == "Bearer secret-token"


def test_domain_is_normalized():
    client = CanvasClient(domain=" https://canvas.test/ ", token="t")
    assert client.base_url == f"{BASE}/"
    assert client.domain == "canvas.test"


@pytest.mark.parametrize("domain,token", [("", "t"), ("canvas.test", "  ")])
def test_missing_credentials_rejected(domain, token):
    with pytest.raises(ValueError):
        CanvasClient(domain=domain, token=token)


@pytest.mark.asyncio
async def test_404_raises_typed_error_with_canvas_message():
    async with respx.mock:
        respx.get(f"{BASE}/courses/999").mock(
            return_value=Response(
                404, json={"errors": [{"message": "The specified resource does not exist."}]}
            )
        )

        async with _client() as client:
            with pytest.raises(CanvasHTTPError) as exc:
                await client.get("courses/999")

    assert exc.value.status_code == 404
    assert exc.value.message == "The specified resource does not exist."
    assert "does not exist" in str(exc.value)


@pytest.mark.asyncio
async def test_401_non_json_body_keeps_text_snippet():
    async with respx.mock:
        respx.get(f"{BASE}/courses").mock(return_value=Response(401, text="nope"))

        async with _client() as client:
            with pytest.raises(CanvasHTTPError) as exc:
                await client.get("courses")

    assert exc.value.status_code == 401
    assert exc.value.response_text == "nope"
    assert exc.value.response_json is None


@pytest.mark.asyncio
async def test_network_error_wrapped():
    async with respx.mock:
        respx.get(f"{BASE}/courses").mock(side_effect=httpx.ConnectError("down"))

        async with _client() as client:
            with pytest.raises(CanvasClientError) as exc:
                await client.get("courses")

    assert not isinstance(exc.value, CanvasHTTPError)
    assert "down" in str(exc.value)


@pytest.mark.asyncio
async def test_non_json_success_body_raises_parse_error():
    async with respx.mock:
        respx.get(f"{BASE}/courses/1").mock(
            return_value=Response(200, text="<html>maintenance</html>")
        )

        async with _client() as client:
            with pytest.raises(CanvasParseError):
                await client.get("courses/1")


@pytest.mark.asyncio
async def test_empty_body_returns_empty_dict():
    async with respx.mock:
        respx.delete(f"{BASE}/courses/1/assignments/2/submissions/3/comments/4").mock(
            return_value=Response(204)
        )

        async with _client() as client:
            result = await client.delete_submission_comment(1, 2, 3, 4)

    assert result == {"deleted": True, "comment_id": 4}


@pytest.mark.asyncio
async def test_get_all_pages_follows_next_links_in_order():
    pages = [[{"id": 1}, {"id": 2}], [{"id": 3}], [{"id": 4}, {"id": 5}]]
    async with respx.mock:
        route = respx.get(f"{BASE}/courses").mock(side_effect=_paged(pages))

        async with _client() as client:
            items = await client.get_courses()

    assert [c["id"] for c in items] == [1, 2, 3, 4, 5]
    assert route.call_count == 3

    first = route.calls[0].request.url.params
    assert first.get_list("include[]") == ["term"]
    assert first.get("enrollment_state") == "active"
    assert first.get("per_page") == "100"

    # follow-up requests use the next link verbatim, no params re-applied
    second = route.calls[1].request.url.params
    assert dict(second) == {"page": "2"}


@pytest.mark.asyncio
async def test_get_all_pages_single_page_without_link_header():
    async with respx.mock:
        route = respx.get(f"{BASE}/courses/1/pages").mock(
            return_value=Response(200, json=[{"url": "home"}])
        )

        async with _client() as client:
            items = await client.get_pages(1)

    assert items == [{"url": "home"}]
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_get_all_pages_aborts_when_a_page_fails():
    def responder(request):
        if request.url.params.get("page") == "2":
            return Response(500, json={"message": "boom"})
        return Response(
            200,
            json=[{"id": 1}],
            headers={"link": f'<{BASE}/courses?page=2>; rel="next"'},
        )

    async with respx.mock:
        respx.get(f"{BASE}/courses").mock(side_effect=responder)

        async with _client() as client:
            with pytest.raises(CanvasHTTPError) as exc:
                await client.get_courses()

    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_get_all_pages_rejects_object_payload():
    async with respx.mock:
        respx.get(f"{BASE}/courses").mock(
            return_value=Response(200, json={"not": "a list"})
        )

        async with _client() as client:
            with pytest.raises(CanvasParseError):
                await client.get_courses()


@pytest.mark.asyncio
async def test_update_assignment_dates_sends_only_present_fields():
    async with respx.mock:
        route = respx.put(f"{BASE}/courses/1/assignments/2").mock(
            return_value=Response(200, json={"id": 2, "lock_at": None})
        )

        async with _client() as client:
            await client.update_assignment_dates(1, 2, {"lock_at": None})

    assert json.loads(route.calls[0].request.content) == {"assignment": {"lock_at": None}}


@pytest.mark.asyncio
async def test_update_dates_without_fields_fails_before_request():
    async with respx.mock(assert_all_called=False) as mock:
        route = mock.put(f"{BASE}/courses/1/quizzes/2")

        async with _client() as client:
            with pytest.raises(ValueError, match="At least one date field"):
                await client.update_quiz_dates(1, 2, {})

    assert not route.called


@pytest.mark.asyncio
async def test_grade_submission_body():
    async with respx.mock:
        route = respx.put(f"{BASE}/courses/1/assignments/2/submissions/3").mock(
            return_value=Response(200, json={"id": 99, "grade": "9"})
        )

        async with _client() as client:
            await client.grade_submission(
                1, 2, 3, 9, "Nice", {"crit_1": {"points": 4}}
            )

    sent = json.loads(route.calls[0].request.content)
    assert sent == {
        "submission": {"posted_grade": 9},
        "comment": {"text_comment": "Nice"},
        "rubric_assessment": {"crit_1": {"points": 4}},
    }


@pytest.mark.asyncio
async def test_announcements_use_context_codes():
    async with respx.mock:
        route = respx.get(f"{BASE}/announcements").mock(
            return_value=Response(200, json=[])
        )

        async with _client() as client:
            await client.get_announcements([10, 20])

    params = route.calls[0].request.url.params
    assert params.get_list("context_codes[]") == ["course_10", "course_20"]


@pytest.mark.asyncio
async def test_external_http_client_not_closed():
    http = httpx.AsyncClient(base_url=f"{BASE}/")
    client = CanvasClient(domain="canvas.test", token="t", http=http)
    await client.aclose()
    assert not http.is_closed
    await http.aclose()


@pytest.mark.asyncio
async def test_external_http_client_gets_auth_headers():
    http = httpx.AsyncClient(base_url=f"{BASE}/")
    async with respx.mock:
        route = respx.get(f"{BASE}/courses/1").mock(
            return_value=Response(200, json={"id": 1})
        )
        async with CanvasClient(domain="canvas.test", token="secret", http=http) as client:
            await client.get("courses/1")

    request = route.calls[0].request
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.headers["Accept"] == "application/json"
    await http.aclose()
