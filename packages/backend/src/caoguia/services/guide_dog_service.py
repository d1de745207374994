"""Guide dog service: registration, owner-scoped reads, edits and soft deletes.

A dog belongs to its PCD owner (user_id) and/or its training institution
(institution_id). Per-dog operations only ever match on the caller's own
column, so a dog owned by someone else is indistinguishable from a missing
one.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.auth.principals import ResolvedIdentity, Role
from caoguia.db.models import GuideDog, Institution
from caoguia.schemas.guide_dog import GuideDogCreate, GuideDogUpdate

logger = structlog.get_logger()


class DuplicateRegistrationNumber(ValueError):
    pass


class GuideDogService:
    """Business logic for guide dogs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(self, owner: ResolvedIdentity, body: GuideDogCreate) -> GuideDog:
        """Register a dog for a PCD user or an institution.

        A PCD owner may name the training institution by CNPJ; an unknown
        CNPJ is logged and the dog is registered without it.
        """
        await self._ensure_registration_free(body.registration_number)

        user_id: Optional[int] = None
        institution_id: Optional[int] = None
        if owner.is_institution:
            institution_id = owner.id
        else:
            user_id = owner.id
            if body.institution_cnpj:
                institution_id = await self._institution_id_for(body.institution_cnpj)

        dog = GuideDog(
            **body.model_dump(exclude={"institution_cnpj"}),
            user_id=user_id,
            institution_id=institution_id,
            is_active=True,
        )
        self.db.add(dog)
        await self._commit(body.registration_number)
        await self.db.refresh(dog)
        logger.info(
            "guide_dog.registered",
            dog_id=dog.id,
            owner_id=owner.id,
            owner_role=owner.role.value,
        )
        return dog

    async def list_for(self, identity: ResolvedIdentity) -> list[GuideDog]:
        q = select(GuideDog).where(GuideDog.is_active.is_(True))
        if identity.role != Role.ADMIN:
            q = q.where(self._owned_by(identity))
        result = await self.db.execute(q.order_by(GuideDog.id))
        return list(result.scalars().all())

    async def get_owned(self, identity: ResolvedIdentity, dog_id: int) -> Optional[GuideDog]:
        """An active dog owned by the caller, or None."""
        result = await self.db.execute(
            select(GuideDog).where(
                GuideDog.id == dog_id,
                GuideDog.is_active.is_(True),
                self._owned_by(identity),
            )
        )
        return result.scalars().first()

    async def update(
        self, identity: ResolvedIdentity, dog_id: int, body: GuideDogUpdate
    ) -> Optional[GuideDog]:
        dog = await self.get_owned(identity, dog_id)
        if not dog:
            return None

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        number = changes.get("registration_number")
        if number is not None and number != dog.registration_number:
            await self._ensure_registration_free(number)
        for field, value in changes.items():
            setattr(dog, field, value)

        await self._commit(number)
        await self.db.refresh(dog)
        logger.info("guide_dog.updated", dog_id=dog_id, owner_id=identity.id)
        return dog

    async def deactivate(self, identity: ResolvedIdentity, dog_id: int) -> bool:
        """Soft delete. The registration number stays reserved."""
        dog = await self.get_owned(identity, dog_id)
        if not dog:
            return False
        dog.is_active = False
        await self.db.commit()
        logger.info("guide_dog.deactivated", dog_id=dog_id, owner_id=identity.id)
        return True

    # ─── Helpers ────────────────────────────────────────

    @staticmethod
    def _owned_by(identity: ResolvedIdentity):
        # Ids of users and institutions come from separate sequences
        if identity.is_institution:
            return GuideDog.institution_id == identity.id
        return GuideDog.user_id == identity.id

    async def _ensure_registration_free(self, number: str) -> None:
        existing = await self.db.execute(
            select(GuideDog.id).where(GuideDog.registration_number == number)
        )
        if existing.first() is not None:
            raise DuplicateRegistrationNumber(number)

    async def _commit(self, number: Optional[str]) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            if number is not None:
                await self._ensure_registration_free(number)
            raise

    async def _institution_id_for(self, cnpj: str) -> Optional[int]:
        result = await self.db.execute(
            select(Institution.id).where(Institution.cnpj == cnpj)
        )
        institution_id = result.scalars().first()
        if institution_id is None:
            logger.warning("guide_dog.institution_not_found", cnpj=cnpj)
        return institution_id
