"""FastAPI auth dependencies.

Used as Depends() in route handlers. The chain is always:

    get_db → CredentialStore → IdentityResolver → get_current_identity → gate

so a gate can only ever see an identity the resolver produced. Handlers
receive the ResolvedIdentity (also stored on request.state.identity) and
never parse the bearer token themselves.
"""

from typing import Callable, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.auth.gates import admin_only, role_in, self_or_admin
from caoguia.auth.jwt import TokenCodec
from caoguia.auth.principals import USER_ROLES, ResolvedIdentity, Role
from caoguia.auth.resolver import IdentityResolver
from caoguia.auth.service import Authenticator
from caoguia.auth.store import CredentialStore
from caoguia.config import AuthConfig, settings
from caoguia.db.engine import get_db


def get_token_codec() -> TokenCodec:
    return TokenCodec(AuthConfig.from_settings(settings))


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_authenticator(
    store: CredentialStore = Depends(get_credential_store),
    codec: TokenCodec = Depends(get_token_codec),
) -> Authenticator:
    return Authenticator(store, codec)


def get_identity_resolver(
    store: CredentialStore = Depends(get_credential_store),
    codec: TokenCodec = Depends(get_token_codec),
) -> IdentityResolver:
    return IdentityResolver(store, codec)


async def get_current_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> ResolvedIdentity:
    """Resolve the bearer token to a re-validated identity (401 on failure)."""
    identity = await resolver.resolve(authorization)
    request.state.identity = identity
    return identity


# ─── Gates ───────────────────────────────────────────────


async def require_admin(
    identity: ResolvedIdentity = Depends(get_current_identity),
) -> ResolvedIdentity:
    return admin_only(identity)


async def require_self_or_admin(
    user_id: int,
    identity: ResolvedIdentity = Depends(get_current_identity),
) -> ResolvedIdentity:
    """Gate for routes on a user record addressed by the {user_id} path param.

    Institutions are excluded first: their ids come from a different sequence
    and may collide with user ids.
    """
    role_in(identity, USER_ROLES)
    return self_or_admin(identity, user_id)


def require_roles(*roles: Role) -> Callable:
    """Dependency factory admitting only the given roles."""
    allowed = frozenset(roles)

    async def dependency(
        identity: ResolvedIdentity = Depends(get_current_identity),
    ) -> ResolvedIdentity:
        return role_in(identity, allowed)

    return dependency
