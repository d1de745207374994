"""Validation service: the admin approval workflow.

Approval status moves freely between pending, approved and rejected; there
is no terminal state. Login reads the result (institutions only).
"""

from typing import Optional, Union

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.auth.principals import ApprovalStatus
from caoguia.db.models import Institution, User

logger = structlog.get_logger()

Account = Union[User, Institution]

# URL segment → model
ACCOUNT_KINDS = {
    "users": User,
    "institutions": Institution,
}


class ValidationService:
    """Business logic for approving and rejecting registrations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_by_status(self, kind: str, status: ApprovalStatus) -> list[Account]:
        model = ACCOUNT_KINDS[kind]
        result = await self.db.execute(
            select(model)
            .where(model.approval_status == status.value)
            .order_by(model.id)
        )
        return list(result.scalars().all())

    async def set_status(
        self,
        kind: str,
        account_id: int,
        status: ApprovalStatus,
        rejection_reason: Optional[str] = None,
        reviewer_id: Optional[int] = None,
    ) -> Optional[Account]:
        model = ACCOUNT_KINDS[kind]
        account = await self.db.get(model, account_id)
        if not account:
            return None

        previous = account.approval_status
        account.approval_status = status.value
        account.rejection_reason = (
            rejection_reason if status == ApprovalStatus.REJECTED else None
        )
        await self.db.commit()
        await self.db.refresh(account)

        logger.info(
            "validation.status_changed",
            kind=kind,
            account_id=account_id,
            previous=previous,
            status=status.value,
            reviewer_id=reviewer_id,
        )
        return account
