"""Credential store: the four read-only lookups the auth core needs.

Activity filters are part of each query's WHERE clause, never applied after
fetching. The store borrows the request's session; it never opens or
commits one itself.
"""

from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.db.models import Institution, User


class CredentialLookup(Protocol):
    """What Authenticator and IdentityResolver consume. Fakes implement this too."""

    async def find_active_user_by_email(self, email: str) -> Optional[User]: ...

    async def find_institution_by_email(self, email: str) -> Optional[Institution]: ...

    async def find_active_user_by_id(self, user_id: int) -> Optional[User]: ...

    async def find_active_institution_by_id(
        self, institution_id: int
    ) -> Optional[Institution]: ...


class CredentialStore:
    """SQLAlchemy-backed CredentialLookup."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_active_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == email, User.is_active.is_(True))
        )
        return result.scalars().first()

    async def find_institution_by_email(self, email: str) -> Optional[Institution]:
        # No activity filter: approval is checked by the caller
        result = await self.db.execute(
            select(Institution).where(Institution.email == email)
        )
        return result.scalars().first()

    async def find_active_user_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.is_active.is_(True))
        )
        return result.scalars().first()

    async def find_active_institution_by_id(
        self, institution_id: int
    ) -> Optional[Institution]:
        result = await self.db.execute(
            select(Institution).where(
                Institution.id == institution_id,
                Institution.is_active.is_(True),
            )
        )
        return result.scalars().first()
