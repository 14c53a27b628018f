"""Request/task correlation context.

A correlation ID is attached to every HTTP request, Celery task and
dispatcher cycle so that their log lines can be grouped.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from uuid import uuid4

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return _request_id_var.get()


def set_request_id(request_id: str | None) -> Token[str | None]:
    """Set the correlation ID and return the reset token."""

    return _request_id_var.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    _request_id_var.reset(token)


def new_request_id(prefix: str | None = None) -> str:
    """Generate a new correlation ID, e.g. ``dispatch-<uuid>``."""

    value = str(uuid4())
    return f"{prefix}-{value}" if prefix else value


@contextmanager
def request_id_context(request_id: str | None) -> Iterator[None]:
    token = set_request_id(request_id)
    try:
        yield
    finally:
        reset_request_id(token)


@contextmanager
def ensure_request_id(prefix: str) -> Iterator[str]:
    """Reuse the current correlation ID or open a fresh one for the block."""

    current = get_request_id()
    if current:
        yield current
        return
    request_id = new_request_id(prefix)
    with request_id_context(request_id):
        yield request_id
