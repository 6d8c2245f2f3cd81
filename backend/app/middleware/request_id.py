"""
PlaceShare Backend — Request ID Middleware
============================================

What:  Assigns an ID to each incoming request and returns it in a header.
How:   Reuses the client's X-Request-ID when sent, otherwise generates a
       short UUID; stores it in a ContextVar, request.state and the response.
Who:   Applied to every request via Starlette middleware.
When:  Outermost middleware, so every log line and error body can carry it.

Error responses include the same ID as `request_id`, so a client report
can be matched to the server log entries of that request.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Use the client's X-Request-ID header if present
        2. Otherwise generate the first 8 characters of a UUID4
        3. Store in request_id_var and request.state.request_id
        4. Echo back in the X-Request-ID response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
