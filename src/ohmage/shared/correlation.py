"""
Per-request correlation ids.

The id arrives in the ``X-Correlation-ID`` header (or is generated), is
available to log formatting through a context variable for the duration of
the request, and is echoed on the response.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Any, Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Client-supplied ids end up in every log line of the request.
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Correlation id of the request being served, if any."""
    return correlation_id_var.get()


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def accept_correlation_id(value: str | None) -> str | None:
    """Return a client-supplied id if it is safe to log, otherwise None."""
    if value and _ACCEPTED_ID.match(value):
        return value
    return None


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a correlation id to each request and echoes it on the response."""

    def __init__(
        self,
        app: Any,
        header_name: str = CORRELATION_ID_HEADER,
        generator: Callable[[], str] = generate_correlation_id,
    ) -> None:
        super().__init__(app)
        self._header_name = header_name
        self._generator = generator

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = (
            accept_correlation_id(request.headers.get(self._header_name)) or self._generator()
        )
        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        response.headers[self._header_name] = correlation_id
        return response
