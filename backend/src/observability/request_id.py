"""Request ID management for request correlation.

The id travels with side-effect task payloads, so worker logs for a
submission share the id of the HTTP request that triggered it.
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# Context variable for request_id (async-safe)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Current request ID, or "no-request-id" outside a request."""
    return request_id_var.get() or "no-request-id"


def current_request_id() -> Optional[str]:
    """Current request ID, or None outside a request."""
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


@contextmanager
def bound_request_id(request_id: Optional[str]) -> Iterator[str]:
    """Bind a request id for the duration of a worker task."""
    token = request_id_var.set(request_id or generate_request_id())
    try:
        yield request_id_var.get()
    finally:
        request_id_var.reset(token)
