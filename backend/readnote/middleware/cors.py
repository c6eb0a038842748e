"""
ReadNote Server — Open Cross-Origin Middleware
================================================

What:  Answers every OPTIONS request and marks every response as readable
       from any origin.
Why:   The reader may be opened from a file://, a dev server, or another
       host than the API. ReadNote is a single-tenant, self-hosted service,
       so the API is open to every origin.
How:   OPTIONS short-circuits with 204 before routing, so it works for any
       path and without a store. Other responses get the allow-origin
       header on the way out.

Starlette's CORSMiddleware is not used: it only treats OPTIONS carrying
Origin and Access-Control-Request-Method as preflight, and answers those
with 200 and a body.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

ALLOW_ORIGIN_HEADERS = {"Access-Control-Allow-Origin": "*"}

PREFLIGHT_HEADERS = {
    **ALLOW_ORIGIN_HEADERS,
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class OpenCORSMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PREFLIGHT_HEADERS)

        response = await call_next(request)
        response.headers.update(ALLOW_ORIGIN_HEADERS)
        return response
