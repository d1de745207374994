"""Auth error taxonomy.

Two response classes: NotAuthenticated (401, "log in again") and
NotAuthorized (403, "you cannot do this without administrator action").
Each concrete error carries a stable machine-readable code.
"""


class AuthError(Exception):
    """Base class for every authentication/authorization failure."""

    status_code = 401
    code = "auth_error"
    default_detail = "Authentication failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class NotAuthenticated(AuthError):
    status_code = 401

    @property
    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class NotAuthorized(AuthError):
    status_code = 403


class InvalidCredentials(NotAuthenticated):
    """Bad email/password. Never says which half was wrong."""

    code = "invalid_credentials"
    default_detail = "Invalid credentials"


class Unauthenticated(NotAuthenticated):
    """No usable bearer token was presented."""

    code = "unauthenticated"
    default_detail = "Authentication required"


class TokenExpired(Unauthenticated):
    code = "token_expired"
    default_detail = "Token has expired. Please log in again."


class TokenInvalid(Unauthenticated):
    code = "token_invalid"
    default_detail = "Invalid token"


class PrincipalNotFound(NotAuthenticated):
    """Token is valid but its principal is gone or deactivated."""

    code = "principal_not_found"
    default_detail = "Account not found or inactive"


class Forbidden(NotAuthorized):
    code = "forbidden"
    default_detail = "Permission denied"


class RegistrationPending(NotAuthorized):
    code = "registration_pending"
    default_detail = "Registration is pending approval"


class RegistrationRejected(NotAuthorized):
    code = "registration_rejected"
    default_detail = "Registration was rejected"
