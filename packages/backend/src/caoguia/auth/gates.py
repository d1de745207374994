"""Authorization gates.

Plain predicates over a ResolvedIdentity. They run after identity resolution
and never look at tokens. Each returns the identity on success so it can be
used inline, and raises Forbidden otherwise.
"""

from collections.abc import Iterable

from caoguia.auth.errors import Forbidden
from caoguia.auth.principals import ResolvedIdentity, Role


def admin_only(identity: ResolvedIdentity) -> ResolvedIdentity:
    if identity.role != Role.ADMIN:
        raise Forbidden()
    return identity


def self_or_admin(identity: ResolvedIdentity, target_id: int) -> ResolvedIdentity:
    """Admit the principal whose id is target_id, or any admin."""
    if identity.id != target_id and identity.role != Role.ADMIN:
        raise Forbidden()
    return identity


def role_in(identity: ResolvedIdentity, roles: Iterable[Role]) -> ResolvedIdentity:
    if identity.role not in set(roles):
        raise Forbidden()
    return identity
