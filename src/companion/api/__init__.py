"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter, as an ordered chain: get_current_user (token
present and valid) → require_active (account not suspended). The first
failing check answers the request; later ones never run. Status and
auth routers are open.

The users router only carries the token check. Its routes add
require_admin or require_admin_or_same_user themselves.
"""

from fastapi import APIRouter, Depends

from companion.api.auth import router as auth_router
from companion.api.calendar import router as calendar_router
from companion.api.health import router as health_router
from companion.api.health_calendar import router as health_calendar_router
from companion.api.mood import router as mood_router
from companion.api.status import router as status_router
from companion.api.tasks import router as tasks_router
from companion.api.users import router as users_router
from companion.auth.dependencies import get_current_user
from companion.auth.policy import require_active

_auth = [Depends(get_current_user)]
_owner = [Depends(get_current_user), Depends(require_active)]

api_router = APIRouter(prefix="/api")

# Open routes, no auth required
api_router.include_router(status_router, tags=["status"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_owner)
api_router.include_router(calendar_router, tags=["calendar"], dependencies=_owner)
api_router.include_router(
    health_router, prefix="/health", tags=["health"], dependencies=_owner
)
api_router.include_router(
    health_router, prefix="/health-metrics", tags=["health"], dependencies=_owner
)
api_router.include_router(
    health_calendar_router, tags=["health-calendar"], dependencies=_owner
)
api_router.include_router(mood_router, tags=["mood"], dependencies=_owner)
