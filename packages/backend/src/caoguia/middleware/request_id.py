"""Correlation id for auth audit logging.

Login decisions and identity rejections are logged through structlog; this
middleware binds a ``request_id`` (and the path) to structlog's contextvars
so those lines can be tied back to a single HTTP exchange. A caller-supplied
X-Request-ID is reused only when it looks like an id: anything longer than
128 characters or containing non-printable text is replaced, since the
value ends up verbatim in the logs.
"""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

MAX_REQUEST_ID_LENGTH = 128


def _usable(candidate: str | None) -> bool:
    return bool(candidate) and len(candidate) <= MAX_REQUEST_ID_LENGTH and candidate.isprintable()


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get("X-Request-ID")
        request_id = incoming if _usable(incoming) else uuid.uuid4().hex
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
        )

        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
