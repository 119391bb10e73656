from .auth import router as auth_router
from .access import router as access_router
from .users import router as users_router
from .franchises import router as franchises_router
from .trackers import router as trackers_router
from .stats import router as stats_router

__all__ = [
    "auth_router",
    "access_router",
    "users_router",
    "franchises_router",
    "trackers_router",
    "stats_router"
]
