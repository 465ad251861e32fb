"""Key-value logging with request and flow-action correlation.

Every record carries the id of the HTTP request that caused it and, inside a
slow-response task, the flow and action being processed. Slow tasks copy the
request's context when they are created, so a modal opened or a ticket
created seconds after the ack still logs the original request id.
"""

from __future__ import annotations

import logging
import logging.config
import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
flow_action_ctx_var: ContextVar[str | None] = ContextVar("flow_action", default=None)


class LogContextFilter(logging.Filter):
    """Copy the correlation context vars onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx_var.get() or "-"
        record.flow_action = flow_action_ctx_var.get() or "-"
        return True


@contextmanager
def flow_action_context(flow: str, action: str) -> Iterator[None]:
    """Tag records logged inside the block with ``flow:action``."""
    token = flow_action_ctx_var.set(f"{flow}:{action}")
    try:
        yield
    finally:
        flow_action_ctx_var.reset(token)


def _build_config(log_level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"log_context": {"()": LogContextFilter}},
        "formatters": {
            "kv": {
                "format": (
                    "ts=%(asctime)s level=%(levelname)s logger=%(name)s "
                    "request_id=%(request_id)s action=%(flow_action)s message=%(message)s"
                )
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "kv",
                "filters": ["log_context"],
                "level": log_level,
            }
        },
        "root": {"handlers": ["default"], "level": log_level},
        # The SDK logs every Web API call at DEBUG
        "loggers": {"slack_sdk": {"level": "WARNING"}},
    }


def setup_logging() -> None:
    """Configure root logging; ``LOG_LEVEL`` picks the level (default INFO)."""
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.config.dictConfig(_build_config(log_level))


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign each inbound webhook a request id and echo it back.

    Slack and Jira send no id of their own, so one is generated unless the
    caller supplies ``X-Request-ID``.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = request_id_ctx_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


__all__ = [
    "LogContextFilter",
    "RequestIdMiddleware",
    "flow_action_context",
    "flow_action_ctx_var",
    "request_id_ctx_var",
    "setup_logging",
]
