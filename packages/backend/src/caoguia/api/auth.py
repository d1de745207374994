"""Auth API: registration and login for users and institutions.

- POST /auth/register              → create a PCD user account
- POST /auth/register-institution  → create an institution (pending approval)
- POST /auth/login                 → user/admin email+password → JWT
- POST /auth/login-institution     → institution email+password → JWT
- GET  /auth/me                    → the re-validated identity behind a token
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from caoguia.auth.dependencies import get_authenticator, get_current_identity
from caoguia.auth.principals import ResolvedIdentity
from caoguia.auth.service import Authenticator, IssuedToken
from caoguia.db.engine import get_db
from caoguia.schemas.auth import (
    IdentityRead,
    InstitutionRegister,
    LoginRequest,
    RegistrationResponse,
    TokenResponse,
    UserRegister,
)
from caoguia.services.account_service import (
    AccountService,
    DuplicateRecordError,
    UnknownInstitution,
)

router = APIRouter(prefix="/auth")


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


def _token_response(issued: IssuedToken) -> TokenResponse:
    return TokenResponse(
        access_token=issued.access_token,
        token_type=issued.token_type,
        role=issued.role,
        expires_in=issued.expires_in,
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=RegistrationResponse, status_code=201)
async def register(body: UserRegister, svc: AccountService = Depends(_svc)):
    """Create a PCD user account."""
    try:
        user = await svc.register_user(body)
    except DuplicateRecordError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except UnknownInstitution:
        raise HTTPException(status_code=422, detail="Institution not found")
    return RegistrationResponse(
        id=user.id,
        message="User registered. Registration pending approval.",
        approval_status=user.approval_status,
    )


@router.post(
    "/register-institution", response_model=RegistrationResponse, status_code=201
)
async def register_institution(
    body: InstitutionRegister, svc: AccountService = Depends(_svc)
):
    """Create an institution account. Login is refused until it is approved."""
    try:
        institution = await svc.register_institution(body)
    except DuplicateRecordError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return RegistrationResponse(
        id=institution.id,
        message="Institution registered. Registration pending approval.",
        approval_status=institution.approval_status,
    )


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest, authenticator: Authenticator = Depends(get_authenticator)
):
    """Login as a PCD user or admin."""
    issued = await authenticator.login_user(body.email, body.password)
    return _token_response(issued)


@router.post("/login-institution", response_model=TokenResponse)
async def login_institution(
    body: LoginRequest, authenticator: Authenticator = Depends(get_authenticator)
):
    """Login as an institution. Pending/rejected registrations get a 403."""
    issued = await authenticator.login_institution(body.email, body.password)
    return _token_response(issued)


# ─── Current identity ───────────────────────────────────


@router.get("/me", response_model=IdentityRead)
async def get_me(identity: ResolvedIdentity = Depends(get_current_identity)):
    return identity
