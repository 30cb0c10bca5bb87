# app/schemas/listing.py
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from dataclasses import dataclass

from ..doctors.doctor import ResultPageResponse

PAGE_SIZE = 5


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class ConsultMode(str, Enum):
    HOSPITAL = "hospital"
    ONLINE = "online"
    HOME = "home"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class SortSpec(str, Enum):
    RELEVANCE = "relevance"
    NAME = "name"
    EXPERIENCE = "experience"
    FEE = "fee"


class SetField(str, Enum):
    CONSULT_MODES = "consult_modes"
    FEE_RANGES = "fee_ranges"
    LANGUAGES = "languages"
    FACILITIES = "facilities"
    AVAILABILITY_DAYS = "availability_days"


class ScalarField(str, Enum):
    SPECIALTY = "specialty"
    LOCATION = "location"
    MIN_EXPERIENCE_YEARS = "min_experience_years"
    MIN_RATING = "min_rating"
    GENDER = "gender"


@dataclass(frozen=True)
class FeeBand:
    """Closed fee interval; ``high`` of None means open-ended."""
    low: int
    high: Optional[int] = None

    def contains(self, fee: Optional[float]) -> bool:
        if fee is None:
            return False
        if fee < self.low:
            return False
        return self.high is None or fee <= self.high


FEE_BUCKETS: Dict[str, FeeBand] = {
    "100-300": FeeBand(100, 300),
    "300-500": FeeBand(300, 500),
    "500-800": FeeBand(500, 800),
    "800-1000": FeeBand(800, 1000),
    "1000+": FeeBand(1000),
}


def fee_in_buckets(fee: Optional[float], tokens) -> bool:
    """Union semantics: a fee matches if any selected bucket contains it."""
    return any(FEE_BUCKETS[token].contains(fee) for token in tokens)


class FilterSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    specialty: Optional[str] = None
    location: Optional[str] = None
    min_experience_years: int = Field(default=0, ge=0)
    min_rating: float = Field(default=0, ge=0, le=5)
    gender: Optional[Gender] = None
    consult_modes: FrozenSet[ConsultMode] = frozenset()
    fee_ranges: FrozenSet[str] = frozenset()
    languages: FrozenSet[str] = frozenset()
    facilities: FrozenSet[str] = frozenset()
    availability_days: FrozenSet[Weekday] = frozenset()
    search_term: Optional[str] = None

    @field_validator("specialty", "location", "search_term", "gender", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("languages", "facilities", mode="before")
    @classmethod
    def _strip_members(cls, value, info: ValidationInfo):
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        members = set()
        for item in value:
            item = str(item).strip()
            if not item:
                continue
            # languages are stored as a delimited list column
            if info.field_name == "languages" and "," in item:
                raise ValueError(f"Languages may not contain commas: {item!r}")
            members.add(item)
        return frozenset(members)

    @field_validator("fee_ranges")
    @classmethod
    def _known_fee_ranges(cls, value):
        unknown = sorted(set(value) - set(FEE_BUCKETS))
        if unknown:
            raise ValueError(
                f"Unknown fee range(s): {', '.join(unknown)}. Allowed: {', '.join(FEE_BUCKETS)}"
            )
        return value

    def evolve(self, **changes: Any) -> "FilterSelection":
        # model_copy skips validation, so rebuild from a dump instead
        data = self.model_dump()
        data.update(changes)
        return FilterSelection(**data)

    def cleared(self) -> "FilterSelection":
        return FilterSelection(search_term=self.search_term)


class PageWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int = Field(default=1, ge=1)

    @property
    def size(self) -> int:
        return PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.number - 1) * PAGE_SIZE

    @property
    def last_index(self) -> int:
        return self.number * PAGE_SIZE - 1


class ListingSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    selection: FilterSelection = Field(default_factory=FilterSelection)
    sort: SortSpec = SortSpec.RELEVANCE
    window: PageWindow = Field(default_factory=PageWindow)

    def with_selection(self, selection: FilterSelection) -> "ListingSnapshot":
        return ListingSnapshot(selection=selection, sort=self.sort, window=PageWindow())

    def with_sort(self, sort: SortSpec) -> "ListingSnapshot":
        return ListingSnapshot(selection=self.selection, sort=sort, window=PageWindow())

    def with_page(self, number: int) -> "ListingSnapshot":
        return ListingSnapshot(selection=self.selection, sort=self.sort, window=PageWindow(number=number))


# Request / response bodies for the listing session routes

class ToggleRequest(BaseModel):
    field: SetField
    value: str


class ScalarRequest(BaseModel):
    field: ScalarField
    value: Optional[Union[float, str]] = None


class SearchRequest(BaseModel):
    term: Optional[str] = None


class SortRequest(BaseModel):
    sort: SortSpec


class PageRequest(BaseModel):
    page: int


class ListingViewResponse(BaseModel):
    session_id: str
    selection: FilterSelection
    sort: SortSpec
    page_number: int
    result: Optional[ResultPageResponse] = None
    loading: bool = False
    error: Optional[str] = None


class FacetValuesResponse(BaseModel):
    field: str
    values: List[str]
