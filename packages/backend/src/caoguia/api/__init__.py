"""API route aggregation.

All routers registered here get mounted in main.py.

Auth is applied at the include_router level using FastAPI's dependencies
parameter: every route in a protected router resolves the caller's identity
before its handler runs. Routes that need a stricter gate add it on top.
Health and auth routers are open.
"""

from fastapi import APIRouter, Depends

from caoguia.api.auth import router as auth_router
from caoguia.api.guide_dogs import router as guide_dogs_router
from caoguia.api.health import router as health_router
from caoguia.api.institutions import router as institutions_router
from caoguia.api.users import router as users_router
from caoguia.api.validations import router as validations_router
from caoguia.auth.dependencies import get_current_identity, require_admin

# All protected routers require a resolved identity
_auth = [Depends(get_current_identity)]

api_router = APIRouter(prefix="/api/v1")

# Open routes: no auth required (/auth/me resolves identity itself)
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
api_router.include_router(institutions_router, tags=["institutions"], dependencies=_auth)
api_router.include_router(guide_dogs_router, tags=["guide-dogs"], dependencies=_auth)
api_router.include_router(
    validations_router, tags=["validations"], dependencies=[Depends(require_admin)]
)
