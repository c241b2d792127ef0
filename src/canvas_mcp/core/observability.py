from __future__ import annotations

import logging
from typing import Any, Dict

RESERVED_LOG_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
}


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {
        k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS and v is not None
    }


def log_event(event: str, logger: logging.Logger | None = None, **fields: Any) -> None:
    """
    Structured logging helper used by the client, the dispatcher and the HTTP facade.
    - Emits at INFO with an ``extra`` dict so the logfmt formatter can print keys.
    - Drops reserved LogRecord attributes and None values.
    """
    log = logger or logging.getLogger("canvas_mcp.observability")
    extra = {"event": event, **_clean_fields(fields)}
    log.info(event, extra=extra)


__all__ = ["log_event", "RESERVED_LOG_KEYS"]
