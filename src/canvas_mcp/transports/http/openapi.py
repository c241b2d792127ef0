from __future__ import annotations

from typing import Any, Dict, List

_DATE_VALUE = {"type": ["string", "null"], "description": "ISO-8601 date or null"}

_DATES_BODY = {
    "required": True,
    "content": {
        "application/json": {
            "schema": {
                "type": "object",
                "properties": {
                    "due_at": {
                        "type": ["string", "null"],
                        "description": "ISO-8601 date. Example: 2026-02-20T23:59:00Z",
                    },
                    "unlock_at": _DATE_VALUE,
                    "lock_at": _DATE_VALUE,
                },
            }
        }
    },
}


def _path_param(name: str, schema_type: Any = "integer") -> Dict[str, Any]:
    return {"name": name, "in": "path", "required": True, "schema": {"type": schema_type}}


def _query_param(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    return {"name": name, "in": "query", "required": False, "schema": schema}


def _ok(description: str, *extra: str) -> Dict[str, Any]:
    responses: Dict[str, Any] = {"200": {"description": description}}
    for code in extra:
        responses[code] = {"description": _ERROR_DESCRIPTIONS[code]}
    return responses


_ERROR_DESCRIPTIONS = {
    "400": "Invalid payload",
    "404": "Course not found",
}

_COURSE = _path_param("courseId", ["integer", "string"])


def build_openapi_document(server_url: str = "") -> Dict[str, Any]:
    """OpenAPI 3.1 description of the HTTP facade, served at /openapi.json."""
    servers: List[Dict[str, str]] = [{"url": server_url}] if server_url else []
    return {
        "openapi": "3.1.0",
        "info": {
            "title": "Canvas MCP HTTP API",
            "version": "1.0.0",
            "description": "HTTP facade for Canvas operations, suitable for GPT Builder Actions.",
        },
        "servers": servers,
        "paths": {
            "/health": {
                "get": {
                    "operationId": "health",
                    "summary": "Health check",
                    "responses": _ok("Server is healthy"),
                }
            },
            "/privacy": {
                "get": {
                    "operationId": "getPrivacyPolicy",
                    "summary": "Privacy policy",
                    "responses": _ok("Privacy policy text"),
                }
            },
            "/courses": {
                "get": {
                    "operationId": "listCourses",
                    "summary": "List active Canvas courses",
                    "responses": _ok("Courses list"),
                }
            },
            "/courses/{courseId}/assignments": {
                "get": {
                    "operationId": "listAssignments",
                    "summary": "List course assignments (compact by default to avoid large responses)",
                    "parameters": [
                        _COURSE,
                        _query_param("search", {"type": "string"}),
                        _query_param(
                            "limit",
                            {"type": "integer", "default": 50, "minimum": 1, "maximum": 200},
                        ),
                        _query_param("upcomingOnly", {"type": "boolean", "default": False}),
                        _query_param("full", {"type": "boolean", "default": False}),
                    ],
                    "responses": _ok("Assignments list", "404"),
                }
            },
            "/courses/{courseId}/assignments/bulk-due-date": {
                "patch": {
                    "operationId": "bulkUpdateAssignmentDueDate",
                    "summary": "Set one due date on every assignment whose name contains all query terms",
                    "parameters": [_COURSE],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["query_terms", "due_at"],
                                    "properties": {
                                        "query_terms": {
                                            "type": "array",
                                            "items": {"type": "string"},
                                            "minItems": 1,
                                        },
                                        "due_at": {"type": "string"},
                                        "limit": {
                                            "type": "integer",
                                            "default": 20,
                                            "minimum": 1,
                                            "maximum": 100,
                                        },
                                        "dry_run": {"type": "boolean", "default": False},
                                    },
                                }
                            }
                        },
                    },
                    "responses": _ok("Per-assignment outcomes with counts", "400", "404"),
                }
            },
            "/courses/{courseId}/assignments/{assignmentId}": {
                "get": {
                    "operationId": "getAssignment",
                    "summary": "Get assignment details",
                    "parameters": [_COURSE, _path_param("assignmentId")],
                    "responses": _ok("Assignment details", "404"),
                }
            },
            "/courses/{courseId}/assignments/{assignmentId}/dates": {
                "patch": {
                    "operationId": "updateAssignmentDates",
                    "summary": "Update assignment due/unlock/lock dates",
                    "parameters": [_COURSE, _path_param("assignmentId")],
                    "requestBody": _DATES_BODY,
                    "responses": _ok("Updated assignment", "400"),
                }
            },
            "/courses/{courseId}/quizzes": {
                "get": {
                    "operationId": "listQuizzes",
                    "summary": "List course quizzes",
                    "parameters": [_COURSE],
                    "responses": _ok("Quizzes list", "404"),
                }
            },
            "/courses/{courseId}/quizzes/{quizId}": {
                "get": {
                    "operationId": "getQuiz",
                    "summary": "Get quiz details",
                    "parameters": [_COURSE, _path_param("quizId")],
                    "responses": _ok("Quiz details", "404"),
                }
            },
            "/courses/{courseId}/quizzes/{quizId}/dates": {
                "patch": {
                    "operationId": "updateQuizDates",
                    "summary": "Update quiz due/unlock/lock dates",
                    "parameters": [_COURSE, _path_param("quizId")],
                    "requestBody": _DATES_BODY,
                    "responses": _ok("Updated quiz", "400"),
                }
            },
        },
    }


__all__ = ["build_openapi_document"]
