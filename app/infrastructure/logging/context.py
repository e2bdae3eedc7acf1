"""Correlation and job context for log events.

Values bound here live in structlog's context variables and are merged into
every event emitted in the same thread or task until the block exits.
"""

import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog

CORRELATION_ID_KEY = "correlation_id"


@contextmanager
def bind_request_context(
    correlation_id: Optional[str] = None, **context: Any
) -> Iterator[str]:
    """Bind a correlation id plus extra fields for the duration of the block.

    ``None`` values are skipped, so optional headers can be passed straight
    through. On exit the previous values are restored, which keeps a job
    context nested inside a request context intact.

    Yields:
        The correlation id in effect, generated when none was given.
    """
    bound = {key: value for key, value in context.items() if value is not None}
    bound[CORRELATION_ID_KEY] = correlation_id or uuid.uuid4().hex
    tokens = structlog.contextvars.bind_contextvars(**bound)
    try:
        yield bound[CORRELATION_ID_KEY]
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


def get_correlation_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get(CORRELATION_ID_KEY)


def set_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(**{CORRELATION_ID_KEY: correlation_id})


def clear_request_context() -> None:
    """Drop everything bound in the current context."""
    structlog.contextvars.clear_contextvars()
