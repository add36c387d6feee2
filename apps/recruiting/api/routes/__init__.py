"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter) lives here; every sub-router imports what it
needs from this package.
"""

import os

from fastapi import APIRouter
from slowapi import Limiter
from slowapi.util import get_remote_address

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
if IS_TEST_ENV:
    limiter = Limiter(key_func=get_remote_address)

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()
else:
    limiter = Limiter(key_func=get_remote_address)

# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from recruiting.api.routes.dashboards import router as dashboards_router  # noqa: E402
from recruiting.api.routes.players import router as players_router  # noqa: E402
from recruiting.api.routes.teams import router as teams_router  # noqa: E402
from recruiting.api.routes.follows import router as follows_router  # noqa: E402
from recruiting.api.routes.saved_filters import router as saved_filters_router  # noqa: E402
from recruiting.api.routes.registrations import router as registrations_router  # noqa: E402
from recruiting.api.routes.webhooks import router as webhooks_router  # noqa: E402
from recruiting.api.routes.admin import router as admin_router  # noqa: E402
from recruiting.api.routes.profiles import router as profiles_router  # noqa: E402

router = APIRouter()
router.include_router(dashboards_router)
router.include_router(players_router)
router.include_router(teams_router)
router.include_router(follows_router)
router.include_router(saved_filters_router)
router.include_router(registrations_router)
router.include_router(webhooks_router)
router.include_router(admin_router)
router.include_router(profiles_router)
