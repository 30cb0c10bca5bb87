from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
import logging

from ..application.ports.doctor_store import DoctorRecord
from ..application.services.listing_service import (
    FACET_FIELDS,
    ListingQueryExecutor,
    ResultPage,
)
from ..dependencies import get_listing_executor
from ..schemas.common.common import ErrorResponse
from ..schemas.doctors.doctor import DoctorResponse, ResultPageResponse
from ..schemas.listing.listing import (
    ConsultMode,
    FacetValuesResponse,
    FilterSelection,
    Gender,
    ListingSnapshot,
    PageWindow,
    SortSpec,
    Weekday,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def to_doctor_response(d: DoctorRecord) -> DoctorResponse:
    return DoctorResponse(
        id=d.id,
        name=d.name,
        specialty=d.specialty,
        experience_years=d.experience_years,
        rating=d.rating,
        location=d.location,
        availability_text=d.availability_text,
        fee_amount=d.fee_amount,
        gender=d.gender,
        languages=list(d.languages),
        clinic_name=d.clinic_name,
        available_days=list(d.available_days),
        image_ref=d.image_ref,
    )


def to_result_page_response(page: ResultPage) -> ResultPageResponse:
    return ResultPageResponse(
        items=[to_doctor_response(d) for d in page.items],
        total_matches=page.total_matches,
        page_number=page.page_number,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.get(
    "/",
    response_model=ResultPageResponse,
    responses={503: {"model": ErrorResponse}},
)
async def list_doctors(
    specialty: Optional[str] = Query(None, description="Exact specialty"),
    location: Optional[str] = Query(None, description="Exact location"),
    min_experience_years: int = Query(0, ge=0),
    min_rating: float = Query(0, ge=0, le=5),
    gender: Optional[Gender] = Query(None),
    consult_modes: List[ConsultMode] = Query([]),
    fee_ranges: List[str] = Query([], description="Fee buckets, e.g. 100-300 or 1000+"),
    languages: List[str] = Query([]),
    facilities: List[str] = Query([]),
    availability_days: List[Weekday] = Query([]),
    search: Optional[str] = Query(None, description="Matches name, specialty or location"),
    sort: SortSpec = Query(SortSpec.RELEVANCE),
    page: int = Query(1, ge=1),
    executor: ListingQueryExecutor = Depends(get_listing_executor),
):
    """Get one page of doctors matching the given filters"""
    try:
        selection = FilterSelection(
            specialty=specialty,
            location=location,
            min_experience_years=min_experience_years,
            min_rating=min_rating,
            gender=gender,
            consult_modes=consult_modes,
            fee_ranges=fee_ranges,
            languages=languages,
            facilities=facilities,
            availability_days=availability_days,
            search_term=search,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    snapshot = ListingSnapshot(selection=selection, sort=sort, window=PageWindow(number=page))
    result = await executor.execute(snapshot)
    logger.info(f"Listed {len(result.items)} of {result.total_matches} doctors (page {page})")
    return to_result_page_response(result)


@router.get(
    "/facets/{field}",
    response_model=FacetValuesResponse,
    responses={503: {"model": ErrorResponse}},
)
async def get_facet_values(
    field: str,
    executor: ListingQueryExecutor = Depends(get_listing_executor),
):
    """Distinct values for building the specialty and location filter options"""
    if field not in FACET_FIELDS:
        raise HTTPException(status_code=404, detail=f"Unknown facet: {field}")
    values = await executor.facet_values(field)
    return FacetValuesResponse(field=field, values=values)
