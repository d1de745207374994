"""Account service: registration, profile edits, soft deletes.

Service layer separates business logic from HTTP routing: routes call
services, services call the database. Authorization is NOT decided here;
routes apply the auth gates before calling in.

Uniqueness is checked before writing so the common case gets a precise
error, and the unique constraints are the backstop: a concurrent insert
that slips past the check surfaces as IntegrityError at commit, which is
rolled back and reported as the same DuplicateRecordError.
"""

from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.auth.password import hash_password
from caoguia.auth.principals import ApprovalStatus
from caoguia.db.models import Institution, User
from caoguia.schemas.auth import (
    InstitutionRegister,
    InstitutionUpdate,
    UserRegister,
    UserUpdate,
)

logger = structlog.get_logger()

FIELD_LABELS = {
    "email": "Email",
    "cpf": "CPF",
    "rg": "RG",
    "cnpj": "CNPJ",
}


class DuplicateRecordError(ValueError):
    """A unique field (email, CPF, RG, CNPJ) is already registered."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} already registered")

    @property
    def message(self) -> str:
        return f"{FIELD_LABELS.get(self.field, self.field)} already registered"


class UnknownInstitution(ValueError):
    """A user registration names an institution that does not exist."""

    def __init__(self, institution_id: int):
        self.institution_id = institution_id
        super().__init__(f"institution {institution_id} not found")


class AccountService:
    """Business logic for user and institution accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Registration ───────────────────────────────────

    async def register_user(self, body: UserRegister) -> User:
        """Create a PCD user. Starts active and pending approval."""
        unique = {"email": body.email, "cpf": body.cpf, "rg": body.rg}
        await self._ensure_unique(User, **unique)
        if body.institution_id is not None:
            institution = await self.get_active_institution(body.institution_id)
            if not institution:
                raise UnknownInstitution(body.institution_id)

        data = body.model_dump(exclude={"password"})
        user = User(
            **data,
            password_hash=hash_password(body.password),
            is_admin=False,
            is_active=True,
            approval_status=ApprovalStatus.PENDING.value,
        )
        self.db.add(user)
        await self._commit_unique(User, **unique)
        await self.db.refresh(user)
        logger.info("account.user_registered", user_id=user.id)
        return user

    async def register_institution(self, body: InstitutionRegister) -> Institution:
        """Create an institution. It cannot log in until an admin approves it."""
        unique = {"cnpj": body.cnpj, "email": body.email}
        await self._ensure_unique(Institution, **unique)

        data = body.model_dump(exclude={"password"})
        institution = Institution(
            **data,
            password_hash=hash_password(body.password),
            is_active=True,
            approval_status=ApprovalStatus.PENDING.value,
        )
        self.db.add(institution)
        await self._commit_unique(Institution, **unique)
        await self.db.refresh(institution)
        logger.info("account.institution_registered", institution_id=institution.id)
        return institution

    async def create_admin(self, name: str, email: str, password: str) -> User:
        """Bootstrap an administrator (used by the CLI)."""
        email = email.strip().lower()
        await self._ensure_unique(User, email=email)
        admin = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            is_admin=True,
            is_active=True,
            approval_status=ApprovalStatus.APPROVED.value,
        )
        self.db.add(admin)
        await self._commit_unique(User, email=email)
        await self.db.refresh(admin)
        return admin

    # ─── Users ──────────────────────────────────────────

    async def get_active_user(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.is_active.is_(True))
        )
        return result.scalars().first()

    async def update_user(self, user_id: int, body: UserUpdate) -> Optional[User]:
        user = await self.get_active_user(user_id)
        if not user:
            return None

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        unique = self._changed(user, changes, "email")
        await self._ensure_unique(User, **unique)
        for field, value in changes.items():
            setattr(user, field, value)

        await self._commit_unique(User, **unique)
        await self.db.refresh(user)
        return user

    async def deactivate_user(self, user_id: int) -> bool:
        """Soft delete. Outstanding tokens stop working on their next use."""
        user = await self.get_active_user(user_id)
        if not user:
            return False
        user.is_active = False
        await self.db.commit()
        logger.info("account.user_deactivated", user_id=user_id)
        return True

    # ─── Institutions ───────────────────────────────────

    async def get_active_institution(self, institution_id: int) -> Optional[Institution]:
        result = await self.db.execute(
            select(Institution).where(
                Institution.id == institution_id,
                Institution.is_active.is_(True),
            )
        )
        return result.scalars().first()

    async def find_institution_by_cnpj(self, cnpj: str) -> Optional[Institution]:
        result = await self.db.execute(
            select(Institution).where(
                Institution.cnpj == cnpj,
                Institution.is_active.is_(True),
            )
        )
        return result.scalars().first()

    async def update_institution(
        self, institution_id: int, body: InstitutionUpdate
    ) -> Optional[Institution]:
        """Profile edit. Approval status is untouched, even when the CNPJ changes."""
        institution = await self.get_active_institution(institution_id)
        if not institution:
            return None

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        unique = self._changed(institution, changes, "cnpj", "email")
        await self._ensure_unique(Institution, **unique)
        for field, value in changes.items():
            setattr(institution, field, value)

        await self._commit_unique(Institution, **unique)
        await self.db.refresh(institution)
        logger.info("account.institution_updated", institution_id=institution_id)
        return institution

    async def deactivate_institution(self, institution_id: int) -> bool:
        institution = await self.get_active_institution(institution_id)
        if not institution:
            return False
        institution.is_active = False
        await self.db.commit()
        logger.info("account.institution_deactivated", institution_id=institution_id)
        return True

    # ─── Helpers ────────────────────────────────────────

    @staticmethod
    def _changed(row: Any, changes: dict[str, Any], *fields: str) -> dict[str, Any]:
        """Unique fields whose value actually changes."""
        return {
            f: changes[f] for f in fields if f in changes and changes[f] != getattr(row, f)
        }

    async def _ensure_unique(self, model: Any, **fields: Any) -> None:
        for field, value in fields.items():
            if value is None:
                continue
            result = await self.db.execute(
                select(model.id).where(getattr(model, field) == value)
            )
            if result.first() is not None:
                raise DuplicateRecordError(field)

    async def _commit_unique(self, model: Any, **fields: Any) -> None:
        """Commit, translating a lost uniqueness race into DuplicateRecordError."""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("account.integrity_conflict", model=model.__tablename__)
            # The competing row is committed now, so the check can name the field
            await self._ensure_unique(model, **fields)
            raise
