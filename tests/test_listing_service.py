import asyncio
import pytest

from app.application.ports.doctor_store import DoctorRecord, StorePage, StoreQuery
from app.application.services.listing_service import (
    ListingQueryExecutor,
    ResultPage,
    build_store_query,
)
from app.exceptions import QueryFailed
from app.schemas.listing.listing import (
    FEE_BUCKETS,
    FilterSelection,
    ListingSnapshot,
    PageWindow,
    SortSpec,
    fee_in_buckets,
)


def rec(id, fee=None, name=None, languages=()):
    return DoctorRecord(
        id=id,
        name=name or f"Dr. {id}",
        specialty="General Physician",
        experience_years=5,
        rating=4.0,
        location="Hyderabad",
        fee_amount=fee,
        languages=tuple(languages),
    )


class FakeStore:
    def __init__(self, records=None, total=None, supports_fee_ranges=True):
        self.records = records or []
        self.total = len(self.records) if total is None else total
        self.supports_fee_ranges = supports_fee_ranges
        self.queries = []

    async def query(self, query: StoreQuery) -> StorePage:
        self.queries.append(query)
        return StorePage(records=list(self.records), total=self.total)

    async def distinct_values(self, field):
        return sorted({getattr(r, field) for r in self.records})


class BrokenStore:
    supports_fee_ranges = True

    async def query(self, query):
        raise ConnectionError("store unreachable")

    async def distinct_values(self, field):
        raise ConnectionError("store unreachable")


class DelayedStore:
    """Answers each call after its own delay, echoing the search term."""
    supports_fee_ranges = True

    def __init__(self, delays, fail_first=False):
        self.delays = list(delays)
        self.fail_first = fail_first
        self.calls = 0

    async def query(self, query):
        call = self.calls
        self.calls += 1
        await asyncio.sleep(self.delays[call])
        if self.fail_first and call == 0:
            raise TimeoutError("slow request timed out")
        return StorePage(records=[rec(call + 1, name=query.search_term)], total=1)


def test_default_snapshot_requests_unfiltered_first_page_by_rating():
    query = build_store_query(ListingSnapshot())
    assert query == StoreQuery(
        sort_field="rating", descending=True, offset=0, limit=5
    )
    assert query.specialty is None
    assert query.min_experience is None
    assert query.min_rating is None
    assert query.languages_any == ()
    assert query.fee_bands == ()


def test_query_carries_only_selected_predicates():
    selection = FilterSelection(
        specialty="Internal Medicine",
        min_rating=4.5,
        languages={"Telugu", "Hindi"},
        facilities={"Apollo Hospital"},
        availability_days={"Monday"},
        consult_modes={"online"},
        search_term="  rao ",
    )
    snapshot = ListingSnapshot(selection=selection, sort=SortSpec.EXPERIENCE, window=PageWindow(number=3))
    query = build_store_query(snapshot)

    assert query.specialty == "Internal Medicine"
    assert query.location is None
    assert query.min_rating == 4.5
    assert query.min_experience is None
    assert query.languages_any == ("Hindi", "Telugu")
    assert query.clinic_names == ("Apollo Hospital",)
    assert query.days_any == ("Monday",)
    assert query.search_term == "rao"
    assert (query.sort_field, query.descending) == ("experience", True)
    assert (query.offset, query.limit) == (10, 5)


@pytest.mark.parametrize("sort,expected", [
    (SortSpec.RELEVANCE, ("rating", True)),
    (SortSpec.NAME, ("name", False)),
    (SortSpec.EXPERIENCE, ("experience", True)),
    (SortSpec.FEE, ("fee", False)),
])
def test_sort_mapping(sort, expected):
    query = build_store_query(ListingSnapshot(sort=sort))
    assert (query.sort_field, query.descending) == expected


def test_fee_ranges_pushed_as_bands_only_when_supported():
    snapshot = ListingSnapshot(selection=FilterSelection(fee_ranges={"800-1000", "100-300"}))
    assert build_store_query(snapshot).fee_bands == (FEE_BUCKETS["100-300"], FEE_BUCKETS["800-1000"])
    assert build_store_query(snapshot, push_fee_ranges=False).fee_bands == ()


def test_fee_bucket_union_semantics():
    selected = {"100-300", "800-1000"}
    assert fee_in_buckets(250, selected)
    assert fee_in_buckets(900, selected)
    assert not fee_in_buckets(600, selected)
    assert not fee_in_buckets(None, selected)
    assert fee_in_buckets(1500, {"1000+"})


def test_unknown_fee_range_rejected():
    with pytest.raises(ValueError):
        FilterSelection(fee_ranges={"50-100"})


def test_result_page_total_pages():
    assert ResultPage(total_matches=12).total_pages == 3
    assert ResultPage(total_matches=10).total_pages == 2
    assert ResultPage(total_matches=0).total_pages == 0


@pytest.mark.asyncio
async def test_post_filters_fees_when_store_cannot():
    store = FakeStore(
        records=[rec(1, fee=250), rec(2, fee=600), rec(3, fee=900), rec(4, fee=None)],
        total=4,
        supports_fee_ranges=False,
    )
    executor = ListingQueryExecutor(store)
    snapshot = ListingSnapshot(selection=FilterSelection(fee_ranges={"100-300", "800-1000"}))

    page = await executor.execute(snapshot)

    assert [r.id for r in page.items] == [1, 3]
    # counts stay the store's pre-filter numbers on this path
    assert page.total_matches == 4
    assert store.queries[0].fee_bands == ()


@pytest.mark.asyncio
async def test_pushed_down_fee_ranges_are_not_filtered_again():
    store = FakeStore(records=[rec(1, fee=250)], total=1)
    page = await ListingQueryExecutor(store).execute(
        ListingSnapshot(selection=FilterSelection(fee_ranges={"100-300"}))
    )
    assert [r.id for r in page.items] == [1]
    assert store.queries[0].fee_bands == (FEE_BUCKETS["100-300"],)


@pytest.mark.asyncio
async def test_empty_result_is_a_valid_page():
    page = await ListingQueryExecutor(FakeStore()).execute(ListingSnapshot())
    assert page.items == ()
    assert page.total_matches == 0
    assert page.total_pages == 0
    assert page.page_number == 1


@pytest.mark.asyncio
async def test_store_failure_becomes_query_failed():
    executor = ListingQueryExecutor(BrokenStore())
    with pytest.raises(QueryFailed) as info:
        await executor.execute(ListingSnapshot())
    assert isinstance(info.value.cause, ConnectionError)


@pytest.mark.asyncio
async def test_superseded_response_is_discarded():
    executor = ListingQueryExecutor(DelayedStore(delays=[0.05, 0.0]))
    slow = ListingSnapshot(selection=FilterSelection(search_term="first"))
    fast = ListingSnapshot(selection=FilterSelection(search_term="second"))

    first, second = await asyncio.gather(executor.run_latest(slow), executor.run_latest(fast))

    assert first is None
    assert second.items[0].name == "second"
    assert executor.latest_sequence == 2


@pytest.mark.asyncio
async def test_superseded_failure_is_discarded():
    executor = ListingQueryExecutor(DelayedStore(delays=[0.05, 0.0], fail_first=True))
    first, second = await asyncio.gather(
        executor.run_latest(ListingSnapshot()),
        executor.run_latest(ListingSnapshot(selection=FilterSelection(search_term="x"))),
    )
    assert first is None
    assert second.items[0].name == "x"


@pytest.mark.asyncio
async def test_latest_failure_propagates():
    with pytest.raises(QueryFailed):
        await ListingQueryExecutor(BrokenStore()).run_latest(ListingSnapshot())


@pytest.mark.asyncio
async def test_facet_values():
    store = FakeStore(records=[rec(1), rec(2)])
    executor = ListingQueryExecutor(store)
    assert await executor.facet_values("location") == ["Hyderabad"]
    with pytest.raises(ValueError):
        await executor.facet_values("name")
    with pytest.raises(QueryFailed):
        await ListingQueryExecutor(BrokenStore()).facet_values("specialty")
