"""FastAPI routers package."""

from .auth import router as auth_router
from .bookings import router as bookings_router
from .categories import router as categories_router
from .cities import router as cities_router
from .export import router as export_router
from .metrics import router as metrics_router
from .reviews import router as reviews_router
from .tours import router as tours_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "bookings_router",
    "categories_router",
    "cities_router",
    "export_router",
    "metrics_router",
    "reviews_router",
    "tours_router",
    "users_router",
]
