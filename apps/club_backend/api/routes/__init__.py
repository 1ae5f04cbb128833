"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter, constants) lives here; every sub-router
imports what it needs from this package.
"""

import os

from fastapi import APIRouter, HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "10/minute")

limiter = Limiter(key_func=get_remote_address)
if IS_TEST_ENV:

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = no_op_limit

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------
INVALID_CREDENTIALS_RESPONSE = HTTPException(
    status_code=401, detail="Email or password is incorrect"
)

# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from club_backend.api.routes.auth import router as auth_router  # noqa: E402
from club_backend.api.routes.players import router as players_router  # noqa: E402
from club_backend.api.routes.trainings import router as trainings_router  # noqa: E402
from club_backend.api.routes.matches import router as matches_router  # noqa: E402
from club_backend.api.routes.notifications import router as notifications_router  # noqa: E402
from club_backend.api.routes.coaches import router as coaches_router  # noqa: E402
from club_backend.api.routes.dashboard import router as dashboard_router  # noqa: E402
from club_backend.api.routes.health import router as health_router  # noqa: E402

router = APIRouter()
router.include_router(health_router)
router.include_router(auth_router)
router.include_router(players_router)
router.include_router(trainings_router)
router.include_router(matches_router)
router.include_router(notifications_router)
router.include_router(coaches_router)
router.include_router(dashboard_router)
