import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..ports.doctor_store import DoctorRecord, DoctorStore, StoreQuery
from ...exceptions import QueryFailed
from ...schemas.listing.listing import (
    FEE_BUCKETS,
    PAGE_SIZE,
    ListingSnapshot,
    SortSpec,
    fee_in_buckets,
)

logger = logging.getLogger(__name__)

# SortSpec -> (store field, descending)
SORT_COLUMNS = {
    SortSpec.RELEVANCE: ("rating", True),
    SortSpec.NAME: ("name", False),
    SortSpec.EXPERIENCE: ("experience", True),
    SortSpec.FEE: ("fee", False),
}

FACET_FIELDS = ("specialty", "location")


@dataclass(frozen=True)
class ResultPage:
    items: Tuple[DoctorRecord, ...] = ()
    total_matches: int = 0
    page_number: int = 1
    page_size: int = PAGE_SIZE
    total_pages: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "total_pages", math.ceil(self.total_matches / self.page_size))

    @classmethod
    def empty(cls, page_number: int = 1) -> "ResultPage":
        return cls(page_number=page_number)


def build_store_query(snapshot: ListingSnapshot, push_fee_ranges: bool = True) -> StoreQuery:
    """Translate a listing snapshot into a store query.

    Only non-default selection fields produce predicates. Consult modes are
    selection state only and never reach the store.
    """
    sel = snapshot.selection
    sort_field, descending = SORT_COLUMNS[snapshot.sort]
    fee_bands = ()
    if push_fee_ranges and sel.fee_ranges:
        fee_bands = tuple(FEE_BUCKETS[token] for token in sorted(sel.fee_ranges))
    return StoreQuery(
        specialty=sel.specialty,
        location=sel.location,
        min_experience=sel.min_experience_years or None,
        min_rating=sel.min_rating or None,
        gender=sel.gender.value if sel.gender else None,
        clinic_names=tuple(sorted(sel.facilities)),
        languages_any=tuple(sorted(sel.languages)),
        days_any=tuple(sorted(day.value for day in sel.availability_days)),
        search_term=sel.search_term,
        fee_bands=fee_bands,
        sort_field=sort_field,
        descending=descending,
        offset=snapshot.window.offset,
        limit=snapshot.window.size,
    )


class ListingQueryExecutor:
    def __init__(self, store: DoctorStore):
        self.store = store
        self._issued = 0

    @property
    def latest_sequence(self) -> int:
        return self._issued

    async def execute(self, snapshot: ListingSnapshot) -> ResultPage:
        push_fee_ranges = bool(getattr(self.store, "supports_fee_ranges", False))
        try:
            query = build_store_query(snapshot, push_fee_ranges=push_fee_ranges)
            store_page = await self.store.query(query)
        except Exception as e:
            logger.error(f"Error querying doctors: {e}")
            raise QueryFailed(e) from e

        items = list(store_page.records)
        fee_ranges = snapshot.selection.fee_ranges
        if fee_ranges and not push_fee_ranges:
            items = [r for r in items if fee_in_buckets(r.fee_amount, fee_ranges)]
            logger.warning(
                "Fee ranges filtered after pagination; total_matches is the unfiltered store count"
            )

        return ResultPage(
            items=tuple(items),
            total_matches=store_page.total,
            page_number=snapshot.window.number,
            page_size=snapshot.window.size,
        )

    async def run_latest(self, snapshot: ListingSnapshot) -> Optional[ResultPage]:
        """Execute, discarding the outcome if a newer request was issued meanwhile.

        Returns None for a superseded request, whether it succeeded or failed.
        """
        self._issued += 1
        sequence = self._issued
        try:
            page = await self.execute(snapshot)
        except QueryFailed:
            if sequence != self._issued:
                logger.debug(f"Dropping failure of superseded listing request {sequence}")
                return None
            raise
        if sequence != self._issued:
            logger.debug(f"Discarding stale listing response {sequence} (latest {self._issued})")
            return None
        return page

    async def facet_values(self, field: str) -> List[str]:
        if field not in FACET_FIELDS:
            raise ValueError(f"Unsupported facet field: {field}")
        try:
            return await self.store.distinct_values(field)
        except Exception as e:
            logger.error(f"Error fetching {field} values: {e}")
            raise QueryFailed(e) from e
