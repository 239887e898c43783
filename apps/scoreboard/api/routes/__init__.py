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
limiter = Limiter(key_func=get_remote_address)
if IS_TEST_ENV:

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------
PUBLIC_RATE_LIMIT = "60/minute"
AUTH_RATE_LIMIT = "10/minute"
INVALID_CREDENTIALS_RESPONSE = HTTPException(status_code=401, detail="Invalid credentials")


def internal_error(detail: str = "Internal server error") -> HTTPException:
    """500 response for unexpected failures; the cause is logged, never returned."""
    return HTTPException(status_code=500, detail=detail)


# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from scoreboard.api.routes.auth import router as auth_router  # noqa: E402
from scoreboard.api.routes.players import router as players_router  # noqa: E402
from scoreboard.api.routes.teams import router as teams_router  # noqa: E402
from scoreboard.api.routes.scoreboards import router as scoreboards_router  # noqa: E402
from scoreboard.api.routes.matches import router as matches_router  # noqa: E402

router = APIRouter()
router.include_router(auth_router)
router.include_router(players_router)
router.include_router(teams_router)
router.include_router(scoreboards_router)
router.include_router(matches_router)
