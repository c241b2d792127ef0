from __future__ import annotations

import json
import logging
from typing import Any, Dict

from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from canvas_mcp.core.client import (
    CanvasClient,
    CanvasClientError,
    CanvasHTTPError,
    require_date_fields,
)
from canvas_mcp.core.errors import NotFoundResolutionError, ToolInputError
from canvas_mcp.core.models import BulkDueDateInput, DateFields
from canvas_mcp.core.observability import log_event
from canvas_mcp.core.resolvers import resolve_course_id
from canvas_mcp.core.tools.assignments import (
    DEFAULT_LIST_LIMIT,
    bulk_update_due_dates,
    list_assignments_compact,
)
from canvas_mcp.transports.http.config import HttpConfig
from canvas_mcp.transports.http.openapi import build_openapi_document
from canvas_mcp.transports.http.request_id_middleware import RequestIdMiddleware

log = logging.getLogger("canvas_mcp.transports.http")

PRIVACY_POLICY = {
    "service": "Canvas MCP HTTP API",
    "effective_date": "2026-02-12",
    "summary": [
        "This service processes Canvas API data strictly to fulfill user requests.",
        "Canvas API tokens are provided via environment variables and are not exposed in API responses.",
        "Do not send sensitive data beyond what is required for course operations.",
    ],
    "contact": "Set a maintainer contact before production use.",
}


# --- request helpers --- #


def _flag(request: Request, name: str) -> bool:
    return request.query_params.get(name) == "true"


def _limit(request: Request) -> int:
    raw = request.query_params.get("limit")
    try:
        return int(raw) if raw is not None else DEFAULT_LIST_LIMIT
    except ValueError:
        return DEFAULT_LIST_LIMIT


async def _json_body(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ToolInputError(f"Request body is not valid JSON: {exc.msg}") from exc
    if not isinstance(body, dict):
        raise ToolInputError("Request body must be a JSON object")
    return body


async def _course_id(client: CanvasClient, request: Request) -> int:
    return await resolve_course_id(client, request.path_params["course_id"], tool="http")


def _validate_dates(body: Dict[str, Any]) -> Dict[str, Any]:
    # Keys other than the date fields are ignored.
    picked = require_date_fields(body)
    try:
        return DateFields.model_validate(picked).dates()
    except ValidationError as exc:
        raise ToolInputError.from_validation_error(exc) from exc


# --- error mapping --- #


def _error(request: Request, status_code: int, exc: Exception, message: str) -> JSONResponse:
    log_event(
        "http_error",
        logger=log,
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        status=status_code,
        error_type=type(exc).__name__,
    )
    return JSONResponse({"error": message}, status_code=status_code)


async def _on_validation_error(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, ValidationError):
        exc = ToolInputError.from_validation_error(exc)
    return _error(request, 400, exc, str(exc))


async def _on_not_found(request: Request, exc: Exception) -> JSONResponse:
    return _error(request, 404, exc, str(exc))


async def _on_canvas_http_error(request: Request, exc: CanvasHTTPError) -> JSONResponse:
    # Canvas 4xx answers pass through; anything else is an upstream failure.
    status_code = exc.status_code if 400 <= exc.status_code < 500 else 502
    return _error(request, status_code, exc, exc.message)


async def _on_canvas_error(request: Request, exc: Exception) -> JSONResponse:
    return _error(request, 502, exc, str(exc))


def build_http_app(client: CanvasClient, cfg: HttpConfig | None = None) -> Starlette:
    """REST facade over the shared Canvas client (for GPT Actions and similar callers)."""
    cfg = cfg or HttpConfig()
    openapi_document = build_openapi_document(cfg.public_url)

    async def health(_request: Request) -> JSONResponse:
        return JSONResponse({"ok": True}, headers={"Cache-Control": "no-store"})

    async def privacy(_request: Request) -> JSONResponse:
        return JSONResponse(PRIVACY_POLICY)

    async def openapi(_request: Request) -> JSONResponse:
        return JSONResponse(openapi_document)

    async def list_courses(_request: Request) -> JSONResponse:
        return JSONResponse(await client.get_courses(tool="http"))

    async def list_assignments(request: Request) -> JSONResponse:
        course_id = await _course_id(client, request)
        rows = await list_assignments_compact(
            client,
            course_id,
            search=request.query_params.get("search", ""),
            limit=_limit(request),
            upcoming_only=_flag(request, "upcomingOnly"),
            full=_flag(request, "full"),
        )
        return JSONResponse(rows)

    async def get_assignment(request: Request) -> JSONResponse:
        course_id = await _course_id(client, request)
        return JSONResponse(
            await client.get_assignment(
                course_id, request.path_params["assignment_id"], tool="http"
            )
        )

    async def update_assignment_dates(request: Request) -> JSONResponse:
        dates = _validate_dates(await _json_body(request))
        course_id = await _course_id(client, request)
        return JSONResponse(
            await client.update_assignment_dates(
                course_id, request.path_params["assignment_id"], dates, tool="http"
            )
        )

    async def bulk_due_date(request: Request) -> JSONResponse:
        data = BulkDueDateInput.model_validate(await _json_body(request))
        course_id = await _course_id(client, request)
        return JSONResponse(
            await bulk_update_due_dates(client, course_id, data, tool_name="http")
        )

    async def list_quizzes(request: Request) -> JSONResponse:
        course_id = await _course_id(client, request)
        return JSONResponse(await client.get_quizzes(course_id, tool="http"))

    async def get_quiz(request: Request) -> JSONResponse:
        course_id = await _course_id(client, request)
        return JSONResponse(
            await client.get_quiz(course_id, request.path_params["quiz_id"], tool="http")
        )

    async def update_quiz_dates(request: Request) -> JSONResponse:
        dates = _validate_dates(await _json_body(request))
        course_id = await _course_id(client, request)
        return JSONResponse(
            await client.update_quiz_dates(
                course_id, request.path_params["quiz_id"], dates, tool="http"
            )
        )

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/privacy", privacy, methods=["GET"]),
        Route("/openapi.json", openapi, methods=["GET"]),
        Route("/courses", list_courses, methods=["GET"]),
        Route("/courses/{course_id}/assignments", list_assignments, methods=["GET"]),
        Route(
            "/courses/{course_id}/assignments/bulk-due-date",
            bulk_due_date,
            methods=["PATCH"],
        ),
        Route(
            "/courses/{course_id}/assignments/{assignment_id:int}",
            get_assignment,
            methods=["GET"],
        ),
        Route(
            "/courses/{course_id}/assignments/{assignment_id:int}/dates",
            update_assignment_dates,
            methods=["PATCH"],
        ),
        Route("/courses/{course_id}/quizzes", list_quizzes, methods=["GET"]),
        Route("/courses/{course_id}/quizzes/{quiz_id:int}", get_quiz, methods=["GET"]),
        Route(
            "/courses/{course_id}/quizzes/{quiz_id:int}/dates",
            update_quiz_dates,
            methods=["PATCH"],
        ),
    ]

    app = Starlette(
        routes=routes,
        middleware=[Middleware(RequestIdMiddleware)],
        exception_handlers={
            ValueError: _on_validation_error,
            NotFoundResolutionError: _on_not_found,
            CanvasHTTPError: _on_canvas_http_error,
            CanvasClientError: _on_canvas_error,
        },
    )
    app.state.client = client
    app.state.config = cfg

    log.info("Built HTTP app (host=%s, port=%s, routes=%d)", cfg.host, cfg.port, len(routes))
    return app


__all__ = ["build_http_app", "PRIVACY_POLICY"]
