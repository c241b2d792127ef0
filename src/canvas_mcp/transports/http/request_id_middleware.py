from __future__ import annotations

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from canvas_mcp.core.observability import log_event

REQUEST_ID_HEADER = "X-Request-Id"
CORRELATION_ID_HEADER = "X-Correlation-Id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with a request_id and log one ``http_request`` event.
    - Accepts X-Request-Id or X-Correlation-Id; generates UUID4 hex when absent/blank.
    - Stores it on request.state.request_id and echoes X-Request-Id on responses.
    - Logs even when the downstream app raises.
    """

    async def dispatch(self, request: Request, call_next):
        rid = (
            request.headers.get(REQUEST_ID_HEADER)
            or request.headers.get(CORRELATION_ID_HEADER)
            or ""
        ).strip()
        if not rid:
            rid = uuid.uuid4().hex

        request.state.request_id = rid

        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            if response is not None:
                response.headers.setdefault(REQUEST_ID_HEADER, rid)
                response.headers.setdefault("X-Request-Duration-Ms", str(duration_ms))

            log_event(
                "http_request",
                request_id=rid,
                method=request.method.upper(),
                path=request.url.path,
                status=response.status_code if response is not None else "exception",
                duration_ms=duration_ms,
            )


__all__ = ["RequestIdMiddleware", "REQUEST_ID_HEADER", "CORRELATION_ID_HEADER"]
