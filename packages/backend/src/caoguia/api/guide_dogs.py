"""Guide dog routes.

Only PCD users and institutions may register a dog; admins can list all.
Per-dog routes are scoped to the owner: any other caller gets a 404.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.auth.dependencies import get_current_identity, require_roles
from caoguia.auth.principals import ResolvedIdentity, Role
from caoguia.db.engine import get_db
from caoguia.schemas.guide_dog import GuideDogCreate, GuideDogRead, GuideDogUpdate
from caoguia.services.guide_dog_service import (
    DuplicateRegistrationNumber,
    GuideDogService,
)

router = APIRouter(prefix="/guide-dogs")

_owner_roles = require_roles(Role.PCD, Role.INSTITUICAO)

NOT_FOUND = "Guide dog not found or inactive"
DUPLICATE = "Registration number already in use"


def _svc(db: AsyncSession = Depends(get_db)) -> GuideDogService:
    return GuideDogService(db)


@router.post("", response_model=GuideDogRead, status_code=201)
async def register_guide_dog(
    body: GuideDogCreate,
    owner: ResolvedIdentity = Depends(_owner_roles),
    svc: GuideDogService = Depends(_svc),
):
    try:
        return await svc.register(owner, body)
    except DuplicateRegistrationNumber:
        raise HTTPException(status_code=409, detail=DUPLICATE)


@router.get("", response_model=list[GuideDogRead])
async def list_guide_dogs(
    identity: ResolvedIdentity = Depends(get_current_identity),
    svc: GuideDogService = Depends(_svc),
):
    return await svc.list_for(identity)


@router.get("/{dog_id}", response_model=GuideDogRead)
async def get_guide_dog(
    dog_id: int,
    identity: ResolvedIdentity = Depends(get_current_identity),
    svc: GuideDogService = Depends(_svc),
):
    dog = await svc.get_owned(identity, dog_id)
    if not dog:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return dog


@router.put("/{dog_id}", response_model=GuideDogRead)
async def update_guide_dog(
    dog_id: int,
    body: GuideDogUpdate,
    identity: ResolvedIdentity = Depends(get_current_identity),
    svc: GuideDogService = Depends(_svc),
):
    try:
        dog = await svc.update(identity, dog_id, body)
    except DuplicateRegistrationNumber:
        raise HTTPException(status_code=409, detail=DUPLICATE)
    if not dog:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return dog


@router.delete("/{dog_id}")
async def deactivate_guide_dog(
    dog_id: int,
    identity: ResolvedIdentity = Depends(get_current_identity),
    svc: GuideDogService = Depends(_svc),
):
    if not await svc.deactivate(identity, dog_id):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return {"deactivated": True}
