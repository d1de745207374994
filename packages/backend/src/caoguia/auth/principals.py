"""Principal kinds, derived roles, and the request-scoped identity."""

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    """Access category derived at login time. Never read from client input."""

    PCD = "PCD"
    ADMIN = "ADMIN"
    INSTITUICAO = "INSTITUICAO"


class PrincipalKind(str, enum.Enum):
    """Which backing table a login targets. Admins log in as users."""

    USER = "user"
    INSTITUTION = "institution"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


USER_ROLES = frozenset({Role.PCD, Role.ADMIN})


def role_for_user(is_admin: bool) -> Role:
    return Role.ADMIN if is_admin else Role.PCD


@dataclass(frozen=True)
class ResolvedIdentity:
    """The authenticated principal behind the current request.

    Only IdentityResolver builds these, from a freshly fetched row, after the
    token signature has been verified. Handlers read it from request state.
    """

    id: int
    name: str
    is_admin: bool
    role: Role

    @property
    def is_institution(self) -> bool:
        return self.role == Role.INSTITUICAO
