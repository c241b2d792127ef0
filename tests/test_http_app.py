import json

import httpx
import pytest
import respx
from httpx import Response
from starlette.testclient import TestClient

from canvas_mcp.core.client import CanvasClient
from canvas_mcp.transports.http.app import PRIVACY_POLICY, build_http_app
from canvas_mcp.transports.http.config import HttpConfig

BASE = "https://canvas.test/api/v1"

ASSIGNMENTS = [
    {"id": 1, "name": "Lab 1", "due_at": "2020-01-01T00:00:00Z", "description": "x"},
    {"id": 2, "name": "Essay", "due_at": "2099-01-01T00:00:00Z", "description": "y"},
    {"id": 3, "name": "Lab 2", "due_at": "2099-02-01T00:00:00Z", "description": "z"},
]


@pytest.fixture
def http():
    client = CanvasClient(domain="canvas.test", token="t")
    app = build_http_app(client, HttpConfig(public_url="https://api.example.com"))
    return TestClient(app, raise_server_exceptions=False)


def test_health(http):
    resp = http.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert resp.headers["Cache-Control"] == "no-store"
    assert resp.headers["X-Request-Id"]


def test_request_id_is_echoed(http):
    resp = http.get("/health", headers={"X-Correlation-Id": "corr-1"})
    assert resp.headers["X-Request-Id"] == "corr-1"


def test_privacy_and_openapi(http):
    assert http.get("/privacy").json() == PRIVACY_POLICY

    doc = http.get("/openapi.json").json()
    assert doc["openapi"] == "3.1.0"
    assert doc["servers"] == [{"url": "https://api.example.com"}]
    assert "patch" in doc["paths"]["/courses/{courseId}/assignments/bulk-due-date"]


def test_list_courses(http):
    with respx.mock:
        respx.get(f"{BASE}/courses").mock(return_value=Response(200, json=[{"id": 1}]))
        resp = http.get("/courses")

    assert resp.status_code == 200
    assert resp.json() == [{"id": 1}]


def test_list_assignments_compact_by_default(http):
    with respx.mock:
        respx.get(f"{BASE}/courses/1/assignments").mock(
            return_value=Response(200, json=ASSIGNMENTS)
        )
        compact = http.get("/courses/1/assignments", params={"search": "lab"}).json()
        upcoming = http.get(
            "/courses/1/assignments", params={"upcomingOnly": "true", "limit": "1"}
        ).json()
        full = http.get("/courses/1/assignments", params={"full": "true", "limit": "x"}).json()

    assert [a["id"] for a in compact] == [1, 3]
    assert "description" not in compact[0]
    assert [a["id"] for a in upcoming] == [2]
    assert full[0]["description"] == "x"


def test_course_name_in_path_is_resolved(http):
    with respx.mock:
        respx.get(f"{BASE}/courses").mock(
            return_value=Response(200, json=[{"id": 7, "name": "Biology"}])
        )
        respx.get(f"{BASE}/courses/7/quizzes").mock(return_value=Response(200, json=[]))
        resp = http.get("/courses/biology/quizzes")

    assert resp.status_code == 200
    assert resp.json() == []


def test_unknown_course_name_is_404(http):
    with respx.mock:
        respx.get(f"{BASE}/courses").mock(return_value=Response(200, json=[]))
        resp = http.get("/courses/physics/assignments")

    assert resp.status_code == 404
    assert resp.json()["error"].startswith('Course not found matching: "physics"')


def test_get_assignment_and_quiz(http):
    with respx.mock:
        respx.get(f"{BASE}/courses/1/assignments/2").mock(
            return_value=Response(200, json={"id": 2})
        )
        respx.get(f"{BASE}/courses/1/quizzes/3").mock(
            return_value=Response(200, json={"id": 3})
        )
        assert http.get("/courses/1/assignments/2").json() == {"id": 2}
        assert http.get("/courses/1/quizzes/3").json() == {"id": 3}


def test_update_dates_requires_a_field(http):
    with respx.mock(assert_all_called=False) as mock:
        route = mock.route(host="canvas.test")
        resp = http.patch("/courses/1/assignments/2/dates", json={})

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "At least one date field is required: due_at, unlock_at, or lock_at."
    }
    assert not route.called


def test_update_dates_rejects_bad_json(http):
    bad_json = http.patch(
        "/courses/1/quizzes/2/dates",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert bad_json.status_code == 400
    assert "not valid JSON" in bad_json.json()["error"]


def test_update_dates_ignores_unknown_keys(http):
    with respx.mock:
        route = respx.put(f"{BASE}/courses/1/quizzes/2").mock(
            return_value=Response(200, json={"id": 2, "due_at": None})
        )
        resp = http.patch(
            "/courses/1/quizzes/2/dates", json={"due_at": None, "title": "x"}
        )

    assert resp.status_code == 200
    assert json.loads(route.calls[0].request.content) == {"quiz": {"due_at": None}}


def test_update_assignment_dates_forwards_null(http):
    with respx.mock:
        route = respx.put(f"{BASE}/courses/1/assignments/2").mock(
            return_value=Response(200, json={"id": 2, "lock_at": None})
        )
        resp = http.patch(
            "/courses/1/assignments/2/dates",
            json={"due_at": "2026-03-01T23:59:00Z", "lock_at": None},
        )

    assert resp.status_code == 200
    assert json.loads(route.calls[0].request.content) == {
        "assignment": {"due_at": "2026-03-01T23:59:00Z", "lock_at": None}
    }


def test_update_quiz_dates(http):
    with respx.mock:
        route = respx.put(f"{BASE}/courses/1/quizzes/2").mock(
            return_value=Response(200, json={"id": 2})
        )
        resp = http.patch("/courses/1/quizzes/2/dates", json={"unlock_at": "2026-03-01"})

    assert resp.status_code == 200
    assert json.loads(route.calls[0].request.content) == {"quiz": {"unlock_at": "2026-03-01"}}


def test_bulk_due_date_dry_run(http):
    with respx.mock:
        respx.get(f"{BASE}/courses/1/assignments").mock(
            return_value=Response(200, json=ASSIGNMENTS)
        )
        resp = http.patch(
            "/courses/1/assignments/bulk-due-date",
            json={"query_terms": ["LAB"], "due_at": "2026-03-01T23:59:00Z", "dry_run": True},
        )

    assert resp.status_code == 200
    body = resp.json()
    assert body["matched_count"] == 2
    assert body["updated_count"] == 0
    assert [r["status"] for r in body["results"]] == ["matched_only", "matched_only"]


def test_bulk_due_date_validation(http):
    resp = http.patch(
        "/courses/1/assignments/bulk-due-date",
        json={"query_terms": ["  "], "due_at": "2026-03-01T23:59:00Z"},
    )
    assert resp.status_code == 400
    assert "query_terms must contain at least one non-empty term" in resp.json()["error"]


def test_canvas_4xx_passes_through(http):
    with respx.mock:
        respx.get(f"{BASE}/courses/1/quizzes").mock(
            return_value=Response(401, json={"errors": [{"message": "Invalid access token."}]})
        )
        resp = http.get("/courses/1/quizzes")

    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid access token."}


def test_canvas_5xx_and_network_errors_are_502(http):
    with respx.mock:
        respx.get(f"{BASE}/courses/1/quizzes").mock(
            return_value=Response(503, text="maintenance")
        )
        respx.get(f"{BASE}/courses/2/quizzes").mock(side_effect=httpx.ConnectError("down"))
        upstream = http.get("/courses/1/quizzes")
        network = http.get("/courses/2/quizzes")

    assert upstream.status_code == 502
    assert network.status_code == 502
    assert "down" in network.json()["error"]
