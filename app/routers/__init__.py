# Routers package
from . import doctors_router
from . import listing_router

__all__ = [
    "doctors_router",
    "listing_router",
]
