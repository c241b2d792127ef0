from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import httpx

from .links import next_link
from .observability import log_event

JSONPayload = Union[Dict[str, Any], List[Any]]

DATE_FIELDS = ("due_at", "unlock_at", "lock_at")
DATE_FIELDS_REQUIRED = (
    "At least one date field is required: due_at, unlock_at, or lock_at."
)


class CanvasClientError(Exception):
    """Base error for client failures."""


class CanvasHTTPError(CanvasClientError):
    def __init__(
        self,
        *,
        status_code: int,
        method: str,
        url: str,
        message: str,
        response_json: Optional[JSONPayload] = None,
        response_text: Optional[str] = None,
    ):
        super().__init__(f"{status_code} {method} {url}: {message}")
        self.status_code = status_code
        self.method = method
        self.url = url
        self.message = message
        self.response_json = response_json
        self.response_text = response_text


class CanvasParseError(CanvasClientError):
    pass


def normalize_domain(domain: str) -> str:
    """Strip scheme prefixes, whitespace and trailing slashes from a Canvas host."""
    value = (domain or "").strip()
    for prefix in ("https://", "http://"):
        if value.lower().startswith(prefix):
            value = value[len(prefix) :]
    return value.rstrip("/")


def require_date_fields(dates: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return only the date keys that are present in ``dates``.

    ``None`` is kept (it clears the date remotely); a missing key leaves the
    remote value untouched. Raises ValueError if no date key is present.
    """
    picked = {k: dates[k] for k in DATE_FIELDS if k in dates}
    if not picked:
        raise ValueError(DATE_FIELDS_REQUIRED)
    return picked


class CanvasClient:
    """
    Shared HTTP client for the Canvas REST API (``/api/v1``).
    - Handles bearer auth, base URL, timeouts
    - Follows ``link: rel="next"`` pagination for collection endpoints
    - Returns raw JSON payloads; tools own domain decisions
    - No retries: failures propagate to the caller as typed errors
    """

    def __init__(
        self,
        *,
        domain: str,
        token: str,
        timeout_seconds: float = 30.0,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        domain = normalize_domain(domain)
        token = (token or "").strip()

        if not domain:
            raise ValueError("domain must be provided.")
        if not token:
            raise ValueError("token must be provided.")

        self.domain = domain
        self.base_url = f"https://{domain}/api/v1/"
        self.timeout_seconds = timeout_seconds
        self.log = logger or logging.getLogger("canvas_mcp.client")

        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout_seconds
        )
        # Injected clients get the same auth and JSON headers.
        self.http.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    @classmethod
    def from_env(cls, **kwargs) -> "CanvasClient":
        from .config import load_settings

        settings = load_settings()
        return cls(domain=settings.domain, token=settings.token, **kwargs)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "CanvasClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --- transport ------------------------------------------------------- #

    def _endpoint(self, url: str) -> str:
        target = httpx.URL(url)
        if target.is_absolute_url:
            return target.path
        return self.http.base_url.path + target.path.lstrip("/")

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        tool: Optional[str] = None,
    ) -> httpx.Response:
        method = method.upper()
        endpoint = self._endpoint(url)
        start = time.perf_counter()

        try:
            resp = await self.http.request(method, url, params=params, json=json)
        except httpx.HTTPError as exc:
            log_event(
                "op_call",
                tool=tool,
                method=method,
                endpoint=endpoint,
                status="exception",
                duration_ms=int((time.perf_counter() - start) * 1000),
                error_type=type(exc).__name__,
            )
            raise CanvasClientError(
                f"Network/timeout error calling {method} {url}: {exc}"
            ) from exc

        log_event(
            "op_call",
            tool=tool,
            method=method,
            endpoint=endpoint,
            status=resp.status_code,
            duration_ms=int((time.perf_counter() - start) * 1000),
        )

        if resp.status_code < 200 or resp.status_code >= 300:
            raise self._to_http_error(resp, method=method)
        return resp

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        tool: Optional[str] = None,
    ) -> JSONPayload:
        """
        Core request method.
        - Raises CanvasHTTPError on non-2xx HTTP responses
        - Raises CanvasClientError on network/timeout errors
        - Raises CanvasParseError if the response isn't valid JSON
        - Returns parsed JSON (object or array); {} for empty bodies
        """
        resp = await self._send(method, url, params=params, json=json, tool=tool)
        return self._safe_json(resp)

    async def request_page(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        tool: Optional[str] = None,
    ) -> Tuple[JSONPayload, httpx.Headers]:
        resp = await self._send("GET", url, params=params, tool=tool)
        return self._safe_json(resp), resp.headers

    async def get_all_pages(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        tool: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every page of a collection endpoint.

        The first request carries ``params``; later requests use the ``next``
        URL from the link header verbatim. Any failure aborts the walk and
        nothing collected so far is returned.
        """
        items: List[Dict[str, Any]] = []
        url: Optional[str] = path
        page_params = params

        while url:
            payload, headers = await self.request_page(
                url, params=page_params, tool=tool
            )
            if isinstance(payload, list):
                items.extend(payload)
            elif payload:
                raise CanvasParseError(
                    f"Expected JSON array from GET {url}, "
                    f"got {type(payload).__name__}"
                )
            page_params = None
            url = next_link(headers.get("link"))

        return items

    def _safe_json(self, resp: httpx.Response) -> JSONPayload:
        # Handle empty responses (204 No Content, etc.)
        if not resp.content:
            return {}

        try:
            data = resp.json()
        except ValueError as exc:
            snippet = (resp.text or "")[:500]
            raise CanvasParseError(
                f"Expected JSON from {resp.request.method} "
                f"{resp.request.url}, got non-JSON body snippet: "
                f"{snippet!r}"
            ) from exc

        if not isinstance(data, (dict, list)):
            raise CanvasParseError(
                f"Expected JSON object or array from "
                f"{resp.request.method} {resp.request.url}, "
                f"got {type(data).__name__}"
            )
        return data

    @staticmethod
    def _error_message(parsed: JSONPayload) -> Optional[str]:
        if not isinstance(parsed, dict):
            return None
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages = [
                e.get("message") for e in errors if isinstance(e, dict) and e.get("message")
            ]
            if messages:
                return "; ".join(messages)
        elif isinstance(errors, dict) and errors:
            return "; ".join(f"{k}: {v}" for k, v in errors.items())
        return parsed.get("message") or parsed.get("error")

    def _to_http_error(self, resp: httpx.Response, *, method: str) -> CanvasHTTPError:
        url = str(resp.request.url)
        # Try JSON first; fall back to text snippet.
        response_json: Optional[JSONPayload] = None
        response_text: Optional[str] = None
        message = resp.reason_phrase or "request failed"

        try:
            parsed = resp.json()
            if isinstance(parsed, (dict, list)):
                response_json = parsed
                message = self._error_message(parsed) or message
        except ValueError:
            response_text = (resp.text or "")[:500]

        return CanvasHTTPError(
            status_code=resp.status_code,
            method=method,
            url=url,
            message=message,
            response_json=response_json,
            response_text=response_text,
        )

    # --- verbs ----------------------------------------------------------- #

    async def get(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        tool: Optional[str] = None,
    ) -> JSONPayload:
        return await self.request("GET", url, params=params, tool=tool)

    async def post(
        self, url: str, *, json: Dict[str, Any], tool: Optional[str] = None
    ) -> JSONPayload:
        return await self.request("POST", url, json=json, tool=tool)

    async def put(
        self, url: str, *, json: Dict[str, Any], tool: Optional[str] = None
    ) -> JSONPayload:
        return await self.request("PUT", url, json=json, tool=tool)

    async def delete(self, url: str, *, tool: Optional[str] = None) -> JSONPayload:
        return await self.request("DELETE", url, tool=tool)

    # --- courses & content ----------------------------------------------- #

    async def get_courses(self, *, tool: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            "courses",
            {"include[]": ["term"], "enrollment_state": "active", "per_page": 100},
            tool=tool,
        )

    async def get_modules(
        self, course_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            f"courses/{course_id}/modules", {"include[]": ["items"]}, tool=tool
        )

    async def get_pages(
        self, course_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(f"courses/{course_id}/pages", tool=tool)

    async def get_page(
        self, course_id: int, page_url_or_id: Union[int, str], *, tool: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.get(f"courses/{course_id}/pages/{page_url_or_id}", tool=tool)

    async def get_files(
        self, course_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(f"courses/{course_id}/files", tool=tool)

    # --- assignments ----------------------------------------------------- #

    async def get_assignments(
        self, course_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            f"courses/{course_id}/assignments", {"per_page": 100}, tool=tool
        )

    async def get_assignment(
        self, course_id: int, assignment_id: int, *, tool: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.get(
            f"courses/{course_id}/assignments/{assignment_id}",
            params={"include[]": ["submission", "rubric_settings", "overrides"]},
            tool=tool,
        )

    async def update_assignment_dates(
        self,
        course_id: int,
        assignment_id: int,
        dates: Mapping[str, Any],
        *,
        tool: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"assignment": require_date_fields(dates)}
        return await self.put(
            f"courses/{course_id}/assignments/{assignment_id}", json=body, tool=tool
        )

    # --- quizzes --------------------------------------------------------- #

    async def get_quizzes(
        self, course_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            f"courses/{course_id}/quizzes", {"per_page": 100}, tool=tool
        )

    async def get_quiz(
        self, course_id: int, quiz_id: int, *, tool: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.get(f"courses/{course_id}/quizzes/{quiz_id}", tool=tool)

    async def update_quiz_dates(
        self,
        course_id: int,
        quiz_id: int,
        dates: Mapping[str, Any],
        *,
        tool: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"quiz": require_date_fields(dates)}
        return await self.put(
            f"courses/{course_id}/quizzes/{quiz_id}", json=body, tool=tool
        )

    # --- submissions ----------------------------------------------------- #

    def _submission_path(self, course_id: int, assignment_id: int, user_id: int) -> str:
        return f"courses/{course_id}/assignments/{assignment_id}/submissions/{user_id}"

    async def get_submissions(
        self, course_id: int, assignment_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            f"courses/{course_id}/assignments/{assignment_id}/submissions",
            {"include[]": ["user"], "per_page": 100},
            tool=tool,
        )

    async def get_single_submission(
        self,
        course_id: int,
        assignment_id: int,
        user_id: int,
        *,
        tool: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.get(
            self._submission_path(course_id, assignment_id, user_id),
            params={
                "include[]": [
                    "submission_history",
                    "submission_comments",
                    "rubric_assessment",
                    "visibility",
                    "user",
                ]
            },
            tool=tool,
        )

    async def get_submission_comments(
        self,
        course_id: int,
        assignment_id: int,
        user_id: int,
        *,
        tool: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        submission = await self.get_single_submission(
            course_id, assignment_id, user_id, tool=tool
        )
        return list(submission.get("submission_comments") or [])

    async def grade_submission(
        self,
        course_id: int,
        assignment_id: int,
        user_id: int,
        grade: Union[float, int, str],
        comment: Optional[str] = None,
        rubric_assessment: Optional[Dict[str, Dict[str, Any]]] = None,
        *,
        tool: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"submission": {"posted_grade": grade}}
        if comment:
            body["comment"] = {"text_comment": comment}
        if rubric_assessment:
            body["rubric_assessment"] = rubric_assessment
        return await self.put(
            self._submission_path(course_id, assignment_id, user_id),
            json=body,
            tool=tool,
        )

    async def delete_submission_comment(
        self,
        course_id: int,
        assignment_id: int,
        user_id: int,
        comment_id: int,
        *,
        tool: Optional[str] = None,
    ) -> Dict[str, Any]:
        path = self._submission_path(course_id, assignment_id, user_id)
        await self.delete(f"{path}/comments/{comment_id}", tool=tool)
        return {"deleted": True, "comment_id": comment_id}

    # --- students -------------------------------------------------------- #

    async def get_enrollments(
        self, course_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            f"courses/{course_id}/users",
            {
                "enrollment_type[]": ["student"],
                "include[]": ["email", "enrollments"],
                "per_page": 100,
            },
            tool=tool,
        )

    async def get_student_in_course(
        self, course_id: int, student_id: int, *, tool: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.get(
            f"courses/{course_id}/users/{student_id}",
            params={"include[]": ["email", "enrollments"]},
            tool=tool,
        )

    async def get_student_course_submissions(
        self, course_id: int, student_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            f"courses/{course_id}/students/submissions",
            {
                "student_ids[]": [student_id],
                "include[]": ["assignment"],
                "per_page": 100,
            },
            tool=tool,
        )

    # --- communication --------------------------------------------------- #

    async def get_announcements(
        self, course_ids: List[int], *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            "announcements",
            {"context_codes[]": [f"course_{cid}" for cid in course_ids]},
            tool=tool,
        )

    async def get_discussion_topics(
        self, course_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            f"courses/{course_id}/discussion_topics", tool=tool
        )

    async def get_discussion_entries(
        self, course_id: int, topic_id: int, *, tool: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self.get_all_pages(
            f"courses/{course_id}/discussion_topics/{topic_id}/entries", tool=tool
        )

    async def post_discussion_reply(
        self, course_id: int, topic_id: int, message: str, *, tool: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.post(
            f"courses/{course_id}/discussion_topics/{topic_id}/entries",
            json={"message": message},
            tool=tool,
        )

    async def post_announcement(
        self, course_id: int, title: str, message: str, *, tool: Optional[str] = None
    ) -> Dict[str, Any]:
        # Announcements are discussion topics flagged with is_announcement
        return await self.post(
            f"courses/{course_id}/discussion_topics",
            json={"title": title, "message": message, "is_announcement": True},
            tool=tool,
        )


__all__ = [
    "CanvasClient",
    "CanvasClientError",
    "CanvasHTTPError",
    "CanvasParseError",
    "DATE_FIELDS",
    "DATE_FIELDS_REQUIRED",
    "normalize_domain",
    "require_date_fields",
]
