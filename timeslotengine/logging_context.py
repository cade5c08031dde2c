"""Request ID logging context for tracing one booking request across modules.

Usage:
    from timeslotengine.logging_context import bind_request_id

    with bind_request_id():
        logger.info("Creating booking")  # record.request_id == "req-1a2b3c4d"
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def get_request_id() -> str:
    """Retrieve the current request ID."""
    return _request_id.get()


@contextmanager
def bind_request_id(request_id: Optional[str] = None) -> Iterator[str]:
    """Set a request ID for the current task, restoring the previous one on exit."""
    value = request_id or f"req-{uuid.uuid4().hex[:8]}"
    token = _request_id.set(value)
    try:
        yield value
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True
