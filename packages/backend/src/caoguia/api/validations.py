"""Approval workflow routes (admin only).

The whole router is mounted behind require_admin in api/__init__.py.

- GET  /validations/{kind}/{status}       → list users/institutions by status
- POST /validations/users/{id}            → set a user's approval status
- POST /validations/institutions/{id}     → set an institution's approval status
"""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.auth.dependencies import get_current_identity
from caoguia.auth.principals import ApprovalStatus, ResolvedIdentity
from caoguia.db.engine import get_db
from caoguia.schemas.auth import InstitutionRead, UserRead
from caoguia.schemas.validation import ApprovalRead, ApprovalUpdate
from caoguia.services.validation_service import ValidationService

router = APIRouter(prefix="/validations")

AccountKind = Literal["users", "institutions"]

_READ_SCHEMAS = {"users": UserRead, "institutions": InstitutionRead}


def _svc(db: AsyncSession = Depends(get_db)) -> ValidationService:
    return ValidationService(db)


@router.get("/{kind}/{status}")
async def list_by_status(
    kind: AccountKind,
    status: ApprovalStatus,
    svc: ValidationService = Depends(_svc),
):
    schema = _READ_SCHEMAS[kind]
    accounts = await svc.list_by_status(kind, status)
    return [schema.model_validate(a) for a in accounts]


@router.post("/{kind}/{account_id}", response_model=ApprovalRead)
async def set_status(
    kind: AccountKind,
    account_id: int,
    body: ApprovalUpdate,
    identity: ResolvedIdentity = Depends(get_current_identity),
    svc: ValidationService = Depends(_svc),
):
    account = await svc.set_status(
        kind,
        account_id,
        body.status,
        rejection_reason=body.rejection_reason,
        reviewer_id=identity.id,
    )
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account
