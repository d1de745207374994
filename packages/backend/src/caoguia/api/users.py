"""User account routes.

Every route on a specific user record goes through require_self_or_admin:
the owner or an admin may read, edit, or deactivate it.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.auth.dependencies import require_roles, require_self_or_admin
from caoguia.auth.principals import ResolvedIdentity, Role
from caoguia.db.engine import get_db
from caoguia.schemas.auth import UserRead, UserUpdate
from caoguia.services.account_service import AccountService, DuplicateRecordError

router = APIRouter(prefix="/users")


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


@router.get("/me", response_model=UserRead)
async def get_my_profile(
    identity: ResolvedIdentity = Depends(require_roles(Role.PCD, Role.ADMIN)),
    svc: AccountService = Depends(_svc),
):
    user = await svc.get_active_user(identity.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int,
    _: ResolvedIdentity = Depends(require_self_or_admin),
    svc: AccountService = Depends(_svc),
):
    user = await svc.get_active_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    body: UserUpdate,
    _: ResolvedIdentity = Depends(require_self_or_admin),
    svc: AccountService = Depends(_svc),
):
    try:
        user = await svc.update_user(user_id, body)
    except DuplicateRecordError as e:
        raise HTTPException(status_code=409, detail=e.message)
    if not user:
        raise HTTPException(status_code=404, detail="User not found or inactive")
    return user


@router.delete("/{user_id}")
async def deactivate_user(
    user_id: int,
    _: ResolvedIdentity = Depends(require_self_or_admin),
    svc: AccountService = Depends(_svc),
):
    """Soft delete. Any token the user still holds fails on its next use."""
    if not await svc.deactivate_user(user_id):
        raise HTTPException(status_code=404, detail="User not found or inactive")
    return {"deactivated": True}
