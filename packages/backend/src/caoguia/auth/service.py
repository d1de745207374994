"""Authenticator: turns email/password into a signed bearer token.

User and institution logins follow different admission rules:

- Users: only active rows are considered. A missing row and a wrong password
  produce the same InvalidCredentials error, so the response never reveals
  whether an email is registered.
- Institutions: any row is considered, and the approval status is checked
  *before* the password. Pending and rejected institutions get a specific
  error so they know where their application stands.
"""

from dataclasses import dataclass
from functools import lru_cache

import structlog

from caoguia.auth.errors import (
    AuthError,
    InvalidCredentials,
    RegistrationPending,
    RegistrationRejected,
)
from caoguia.auth.jwt import TokenCodec
from caoguia.auth.password import hash_password, verify_password
from caoguia.auth.principals import ApprovalStatus, PrincipalKind, Role, role_for_user
from caoguia.auth.store import CredentialLookup

logger = structlog.get_logger()


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    """A hash at the configured cost, checked when no account matches."""
    return hash_password("no-such-account")


def _email_domain(email: str) -> str:
    return email.rpartition("@")[2] or "-"


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    role: Role
    expires_in: int
    token_type: str = "bearer"


class Authenticator:
    """Login orchestration: store lookup, admission rules, password, token."""

    def __init__(self, store: CredentialLookup, codec: TokenCodec):
        self.store = store
        self.codec = codec

    async def login(self, kind: PrincipalKind | str, email: str, secret: str) -> IssuedToken:
        kind = PrincipalKind(kind)
        try:
            if kind == PrincipalKind.INSTITUTION:
                issued = await self._login_institution(email, secret)
            else:
                issued = await self._login_user(email, secret)
        except AuthError as e:
            logger.warning(
                "auth.login_rejected",
                kind=kind.value,
                email_domain=_email_domain(email),
                reason=e.code,
            )
            raise
        logger.info("auth.login_succeeded", kind=kind.value, role=issued.role.value)
        return issued

    async def login_user(self, email: str, secret: str) -> IssuedToken:
        return await self.login(PrincipalKind.USER, email, secret)

    async def login_institution(self, email: str, secret: str) -> IssuedToken:
        return await self.login(PrincipalKind.INSTITUTION, email, secret)

    # ─── Per-kind admission ────────────────────────────────

    async def _login_user(self, email: str, secret: str) -> IssuedToken:
        user = await self.store.find_active_user_by_email(email)
        # Pay the bcrypt cost either way so timing does not reveal the email
        password_hash = user.password_hash if user else _dummy_hash()
        if not verify_password(secret, password_hash) or not user:
            raise InvalidCredentials()

        role = role_for_user(user.is_admin)
        return self._issue(
            principal_id=user.id,
            name=user.name,
            is_admin=bool(user.is_admin),
            role=role,
        )

    async def _login_institution(self, email: str, secret: str) -> IssuedToken:
        institution = await self.store.find_institution_by_email(email)
        if not institution:
            verify_password(secret, _dummy_hash())
            raise InvalidCredentials()

        status = institution.approval_status
        if status != ApprovalStatus.APPROVED.value:
            if status == ApprovalStatus.REJECTED.value:
                raise RegistrationRejected()
            raise RegistrationPending()

        if not verify_password(secret, institution.password_hash):
            raise InvalidCredentials()

        return self._issue(
            principal_id=institution.id,
            name=institution.legal_name,
            is_admin=False,
            role=Role.INSTITUICAO,
        )

    def _issue(self, principal_id: int, name: str, is_admin: bool, role: Role) -> IssuedToken:
        token = self.codec.encode(
            {
                "id": principal_id,
                "name": name,
                "is_admin": is_admin,
                "role": role.value,
            }
        )
        return IssuedToken(
            access_token=token,
            role=role,
            expires_in=self.codec.lifetime_seconds,
        )
