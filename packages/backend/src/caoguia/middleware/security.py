"""Response hardening for the identity API.

Every response is marked nosniff and frame-denied. Responses that can carry
a bearer token or personal data (login, account and guide-dog routes) are
also marked ``no-store`` so shared caches and browsers never keep them.
HSTS is only sent over HTTPS, where it is meaningful.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

NO_STORE_PREFIXES = (
    "/api/v1/auth/",
    "/api/v1/users",
    "/api/v1/institutions",
    "/api/v1/guide-dogs",
    "/api/v1/validations",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, no_store_prefixes: tuple[str, ...] = NO_STORE_PREFIXES):
        super().__init__(app)
        self.no_store_prefixes = no_store_prefixes

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        headers = response.headers
        headers["X-Content-Type-Options"] = "nosniff"
        headers["X-Frame-Options"] = "DENY"
        headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith(self.no_store_prefixes):
            headers["Cache-Control"] = "no-store"
        if request.url.scheme == "https":
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
