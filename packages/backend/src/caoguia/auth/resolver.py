"""Identity resolution for protected requests.

Every protected request goes through resolve(): the bearer token is decoded,
then the claimed principal is fetched again from the store. Token claims are
never trusted for account status, which is what makes deactivation take
effect on the very next request without a revocation list.
"""

from typing import Any, Optional

import structlog

from caoguia.auth.errors import PrincipalNotFound, TokenInvalid, Unauthenticated
from caoguia.auth.jwt import TokenCodec
from caoguia.auth.principals import ResolvedIdentity, Role, role_for_user
from caoguia.auth.store import CredentialLookup

logger = structlog.get_logger()


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an "Authorization: Bearer <token>" header."""
    if not authorization:
        raise Unauthenticated("Token not provided")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise Unauthenticated("Malformed authorization header")
    return parts[1].strip()


class IdentityResolver:
    """Bearer token → ResolvedIdentity, re-validated against the store."""

    def __init__(self, store: CredentialLookup, codec: TokenCodec):
        self.store = store
        self.codec = codec

    async def resolve(self, authorization: Optional[str]) -> ResolvedIdentity:
        token = extract_bearer_token(authorization)
        claims = self.codec.decode(token)
        try:
            return await self.resolve_claims(claims)
        except PrincipalNotFound:
            logger.warning(
                "auth.identity_rejected",
                principal_id=claims.get("id"),
                role=claims.get("role"),
            )
            raise

    async def resolve_claims(self, claims: dict[str, Any]) -> ResolvedIdentity:
        principal_id = claims.get("id")
        # bool is an int subclass; a boolean id is corruption, not a principal
        if not isinstance(principal_id, int) or isinstance(principal_id, bool):
            raise TokenInvalid()

        try:
            role = Role(claims.get("role"))
        except ValueError:
            raise TokenInvalid()

        if role == Role.ADMIN or role == Role.PCD:
            user = await self.store.find_active_user_by_id(principal_id)
            if not user:
                raise PrincipalNotFound()
            return ResolvedIdentity(
                id=user.id,
                name=user.name,
                is_admin=bool(user.is_admin),
                role=role_for_user(user.is_admin),
            )

        if role == Role.INSTITUICAO:
            # Approval is not re-checked: only deactivation revokes a live token
            institution = await self.store.find_active_institution_by_id(principal_id)
            if not institution:
                raise PrincipalNotFound()
            return ResolvedIdentity(
                id=institution.id,
                name=institution.legal_name,
                is_admin=False,
                role=Role.INSTITUICAO,
            )

        raise TokenInvalid()
