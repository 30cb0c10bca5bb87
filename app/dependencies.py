from functools import lru_cache

from .config import settings
from .database import engine
from .application.services.listing_service import ListingQueryExecutor
from .application.services.listing_sessions import ListingSessionRegistry
from .infrastructure.persistence.sqlalchemy.repositories.doctor_repository_sql import SqlDoctorStore


@lru_cache()
def get_doctor_store() -> SqlDoctorStore:
    return SqlDoctorStore(engine, supports_fee_ranges=settings.FEE_RANGE_PUSHDOWN)


def get_listing_executor() -> ListingQueryExecutor:
    return ListingQueryExecutor(get_doctor_store())


@lru_cache()
def get_session_registry() -> ListingSessionRegistry:
    return ListingSessionRegistry(get_listing_executor, max_sessions=settings.LISTING_MAX_SESSIONS)
