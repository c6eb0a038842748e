"""
ReadNote Server — Request ID Middleware
=========================================

What:  Tags each request with a short correlation ID and echoes it back.
Why:   Error bodies carry the same ID, so a failure reported by the reader
       can be matched to the server log lines of that request.
How:   Reuses the reader's X-Request-ID header when it is a plain token,
       otherwise generates one. The ID is stored in a ContextVar (for
       loggers and exception handlers inside the stack) and in
       request.state (for the fallback handler, which runs outside it).

Accepted client IDs:
    1-64 characters from [A-Za-z0-9._-]. Anything else (empty, too long,
    spaces or control characters that would end up verbatim in log lines)
    is replaced by a generated ID.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    """8 hex chars: enough to correlate one reader's requests in a log."""
    return uuid.uuid4().hex[:8]


def choose_request_id(header_value: str) -> str:
    """The client's ID if it is a safe token, a fresh one otherwise."""
    if header_value and _CLIENT_ID_PATTERN.match(header_value):
        return header_value
    return new_request_id()


def current_request_id(request: Request) -> str:
    """ID of `request`, readable from anywhere the request object is."""
    return getattr(request.state, "request_id", "") or request_id_var.get("")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = choose_request_id(request.headers.get(REQUEST_ID_HEADER, ""))
        request.state.request_id = rid
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
