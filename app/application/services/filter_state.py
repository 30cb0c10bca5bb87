import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Union

from .listing_service import ListingQueryExecutor, ResultPage
from ...exceptions import InvalidPageRequest, QueryFailed
from ...schemas.listing.listing import (
    FilterSelection,
    ListingSnapshot,
    ScalarField,
    SetField,
    SortSpec,
)

logger = logging.getLogger(__name__)

# single-select fields where picking the current value again clears it
TOGGLE_OFF_SCALARS = {ScalarField.SPECIALTY, ScalarField.MIN_EXPERIENCE_YEARS, ScalarField.GENDER}


@dataclass(frozen=True)
class ListingView:
    snapshot: ListingSnapshot
    page: Optional[ResultPage] = None
    loading: bool = False
    error: Optional[str] = None


Subscriber = Callable[[ListingView], None]


class FilterStateManager:
    """Owns one browsing session's filter, sort and page selection.

    Every mutation replaces the snapshot and awaits exactly one re-fetch
    through the executor. Subscribers see the loading view of every mutation
    and each settled view that is not superseded.
    """

    def __init__(self, executor: ListingQueryExecutor, snapshot: Optional[ListingSnapshot] = None):
        self._executor = executor
        self._view = ListingView(snapshot=snapshot or ListingSnapshot())
        self._total_pages: Optional[int] = None
        self._subscribers: List[Subscriber] = []

    @property
    def snapshot(self) -> ListingSnapshot:
        return self._view.snapshot

    @property
    def view(self) -> ListingView:
        return self._view

    @property
    def total_pages(self) -> Optional[int]:
        return self._total_pages

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def toggle_set_member(self, field: Union[SetField, str], value: Any) -> ListingView:
        field = SetField(field)
        selection = self.snapshot.selection
        current = getattr(selection, field.value)
        # validate through the model so enum members and raw strings compare equal
        members = getattr(selection.evolve(**{field.value: {value}}), field.value)
        if not members:
            raise ValueError(f"Empty value for {field.value}")
        (member,) = members
        updated = current - {member} if member in current else current | {member}
        return await self._commit(self.snapshot.with_selection(selection.evolve(**{field.value: updated})))

    async def set_scalar(self, field: Union[ScalarField, str], value: Any) -> ListingView:
        field = ScalarField(field)
        selection = self.snapshot.selection
        if field is ScalarField.MIN_EXPERIENCE_YEARS:
            # left to the model so fractional years are rejected, not truncated
            value = value or 0
        elif field is ScalarField.MIN_RATING:
            value = float(value or 0)
        candidate = selection.evolve(**{field.value: value})
        new_value = getattr(candidate, field.value)
        if field in TOGGLE_OFF_SCALARS and new_value and new_value == getattr(selection, field.value):
            candidate = selection.evolve(**{field.value: FilterSelection.model_fields[field.value].default})
        return await self._commit(self.snapshot.with_selection(candidate))

    async def set_search_term(self, term: Optional[str]) -> ListingView:
        selection = self.snapshot.selection.evolve(search_term=term)
        return await self._commit(self.snapshot.with_selection(selection))

    async def set_sort(self, sort: Union[SortSpec, str]) -> ListingView:
        return await self._commit(self.snapshot.with_sort(SortSpec(sort)))

    async def set_page(self, number: int) -> ListingView:
        try:
            self._check_page(number)
        except InvalidPageRequest as e:
            logger.debug(f"Ignoring page request: {e}")
            return self._view
        return await self._commit(self.snapshot.with_page(number))

    async def clear_all(self) -> ListingView:
        """Reset every filter; the search term and sort order are kept."""
        return await self._commit(self.snapshot.with_selection(self.snapshot.selection.cleared()))

    async def refresh(self) -> ListingView:
        return await self._commit(self.snapshot)

    def _check_page(self, number: int) -> None:
        if number < 1:
            raise InvalidPageRequest(number, self._total_pages)
        if self._total_pages is not None and number > self._total_pages:
            raise InvalidPageRequest(number, self._total_pages)

    async def _commit(self, snapshot: ListingSnapshot) -> ListingView:
        self._publish(ListingView(snapshot=snapshot, page=self._view.page, loading=True))
        try:
            page = await self._executor.run_latest(snapshot)
        except QueryFailed as e:
            # the bound belonged to the previous selection
            self._total_pages = None
            view = ListingView(
                snapshot=snapshot,
                page=ResultPage.empty(snapshot.window.number),
                error=str(e),
            )
        else:
            if page is None:
                return self._view
            self._total_pages = page.total_pages
            view = ListingView(snapshot=snapshot, page=page)
        self._publish(view)
        return view

    def _publish(self, view: ListingView) -> None:
        self._view = view
        for callback in list(self._subscribers):
            callback(view)
