from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from ...schemas.listing.listing import FeeBand


@dataclass(frozen=True)
class DoctorRecord:
    id: int
    name: str
    specialty: str
    experience_years: int
    rating: float
    location: str
    availability_text: str = ""
    fee_amount: Optional[float] = None
    gender: Optional[str] = None
    languages: Tuple[str, ...] = ()
    clinic_name: Optional[str] = None
    available_days: Tuple[str, ...] = ()
    image_ref: Optional[str] = None


@dataclass(frozen=True)
class StoreQuery:
    """Predicates are optional; None or an empty tuple means unconstrained."""
    specialty: Optional[str] = None
    location: Optional[str] = None
    min_experience: Optional[int] = None
    min_rating: Optional[float] = None
    gender: Optional[str] = None
    clinic_names: Tuple[str, ...] = ()
    languages_any: Tuple[str, ...] = ()
    days_any: Tuple[str, ...] = ()
    search_term: Optional[str] = None
    search_fields: Tuple[str, ...] = ("name", "specialty", "location")
    fee_bands: Tuple[FeeBand, ...] = ()
    sort_field: str = "rating"
    descending: bool = True
    offset: int = 0
    limit: int = 5


@dataclass
class StorePage:
    records: List[DoctorRecord] = field(default_factory=list)
    total: int = 0


class DoctorStore(Protocol):
    # False means fee bands in a query are ignored and must be applied by the caller
    supports_fee_ranges: bool

    async def query(self, query: StoreQuery) -> StorePage:
        ...

    async def distinct_values(self, field: str) -> List[str]:
        ...
