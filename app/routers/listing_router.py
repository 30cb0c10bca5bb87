from fastapi import APIRouter, Depends, HTTPException
import logging

from ..application.services.filter_state import FilterStateManager, ListingView
from ..application.services.listing_sessions import ListingSessionRegistry
from ..dependencies import get_session_registry
from ..exceptions import create_success_response
from ..schemas.listing.listing import (
    ListingViewResponse,
    PageRequest,
    ScalarRequest,
    SearchRequest,
    SortRequest,
    ToggleRequest,
)
from .doctors_router import to_result_page_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/listing/sessions", tags=["Listing"])


def to_view_response(session_id: str, view: ListingView) -> ListingViewResponse:
    return ListingViewResponse(
        session_id=session_id,
        selection=view.snapshot.selection,
        sort=view.snapshot.sort,
        page_number=view.snapshot.window.number,
        result=to_result_page_response(view.page) if view.page is not None else None,
        loading=view.loading,
        error=view.error,
    )


def get_manager(
    session_id: str,
    registry: ListingSessionRegistry = Depends(get_session_registry),
) -> FilterStateManager:
    try:
        return registry.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Listing session not found")


@router.post("", response_model=ListingViewResponse, status_code=201)
async def create_session(registry: ListingSessionRegistry = Depends(get_session_registry)):
    """Open a browsing session and fetch its first page"""
    session_id, manager = registry.create()
    view = await manager.refresh()
    logger.info(f"Created listing session {session_id}")
    return to_view_response(session_id, view)


@router.get("/{session_id}", response_model=ListingViewResponse)
def get_session_view(session_id: str, manager: FilterStateManager = Depends(get_manager)):
    return to_view_response(session_id, manager.view)


@router.delete("/{session_id}")
def delete_session(session_id: str, registry: ListingSessionRegistry = Depends(get_session_registry)):
    try:
        registry.drop(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Listing session not found")
    return create_success_response({"session_id": session_id})


@router.post("/{session_id}/toggle", response_model=ListingViewResponse)
async def toggle_filter(session_id: str, body: ToggleRequest, manager: FilterStateManager = Depends(get_manager)):
    try:
        view = await manager.toggle_set_member(body.field, body.value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return to_view_response(session_id, view)


@router.post("/{session_id}/scalar", response_model=ListingViewResponse)
async def set_scalar_filter(session_id: str, body: ScalarRequest, manager: FilterStateManager = Depends(get_manager)):
    try:
        view = await manager.set_scalar(body.field, body.value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return to_view_response(session_id, view)


@router.post("/{session_id}/search", response_model=ListingViewResponse)
async def set_search(session_id: str, body: SearchRequest, manager: FilterStateManager = Depends(get_manager)):
    view = await manager.set_search_term(body.term)
    return to_view_response(session_id, view)


@router.post("/{session_id}/sort", response_model=ListingViewResponse)
async def set_sort(session_id: str, body: SortRequest, manager: FilterStateManager = Depends(get_manager)):
    view = await manager.set_sort(body.sort)
    return to_view_response(session_id, view)


@router.post("/{session_id}/page", response_model=ListingViewResponse)
async def set_page(session_id: str, body: PageRequest, manager: FilterStateManager = Depends(get_manager)):
    view = await manager.set_page(body.page)
    return to_view_response(session_id, view)


@router.post("/{session_id}/clear", response_model=ListingViewResponse)
async def clear_filters(session_id: str, manager: FilterStateManager = Depends(get_manager)):
    view = await manager.clear_all()
    return to_view_response(session_id, view)


@router.post("/{session_id}/refresh", response_model=ListingViewResponse)
async def refresh(session_id: str, manager: FilterStateManager = Depends(get_manager)):
    """Retry the current query, e.g. after a store outage"""
    view = await manager.refresh()
    return to_view_response(session_id, view)
