"""Institution account routes.

- GET    /institutions/search?query=  → look up an institution by CNPJ
- GET    /institutions/me             → the calling institution's profile
- PUT    /institutions/me             → edit that profile
- DELETE /institutions/{id}           → soft delete (admin only)
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.auth.dependencies import require_admin, require_roles
from caoguia.auth.principals import ResolvedIdentity, Role
from caoguia.db.engine import get_db
from caoguia.schemas.auth import InstitutionRead, InstitutionSummary, InstitutionUpdate
from caoguia.schemas.documents import digits_only, is_valid_cnpj
from caoguia.services.account_service import AccountService, DuplicateRecordError

router = APIRouter(prefix="/institutions")

_institution_only = require_roles(Role.INSTITUICAO)


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


@router.get("/search", response_model=InstitutionSummary)
async def search_by_cnpj(
    query: str = Query(..., min_length=1, description="CNPJ, formatted or digits only"),
    svc: AccountService = Depends(_svc),
):
    if not is_valid_cnpj(query):
        raise HTTPException(status_code=422, detail="Invalid CNPJ")
    institution = await svc.find_institution_by_cnpj(digits_only(query))
    if not institution:
        raise HTTPException(status_code=404, detail="No institution with this CNPJ")
    return institution


@router.get("/me", response_model=InstitutionRead)
async def get_my_institution(
    identity: ResolvedIdentity = Depends(_institution_only),
    svc: AccountService = Depends(_svc),
):
    institution = await svc.get_active_institution(identity.id)
    if not institution:
        raise HTTPException(status_code=404, detail="Institution not found")
    return institution


@router.put("/me", response_model=InstitutionRead)
async def update_my_institution(
    body: InstitutionUpdate,
    identity: ResolvedIdentity = Depends(_institution_only),
    svc: AccountService = Depends(_svc),
):
    try:
        institution = await svc.update_institution(identity.id, body)
    except DuplicateRecordError as e:
        raise HTTPException(status_code=409, detail=e.message)
    if not institution:
        raise HTTPException(status_code=404, detail="Institution not found or inactive")
    return institution


@router.delete("/{institution_id}")
async def deactivate_institution(
    institution_id: int,
    _: ResolvedIdentity = Depends(require_admin),
    svc: AccountService = Depends(_svc),
):
    if not await svc.deactivate_institution(institution_id):
        raise HTTPException(status_code=404, detail="Institution not found or inactive")
    return {"deactivated": True}
