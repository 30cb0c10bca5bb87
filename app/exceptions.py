import logging
from typing import Optional
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class QueryFailed(Exception):
    """The record store could not answer a listing query."""

    def __init__(self, cause: BaseException, message: Optional[str] = None):
        self.cause = cause
        super().__init__(message or f"Listing query failed: {cause}")


class InvalidPageRequest(Exception):
    """Requested page lies outside the known result bounds."""

    def __init__(self, page: int, total_pages: Optional[int]):
        self.page = page
        self.total_pages = total_pages
        super().__init__(f"Page {page} is out of range (total pages: {total_pages})")


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

def create_success_response(data: dict) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )

async def query_failed_handler(request: Request, exc: QueryFailed) -> JSONResponse:
    """Store outages surface as a retryable 503"""
    logger.error(f"Listing query failed for {request.url.path}: {exc.cause}")
    return JSONResponse(
        status_code=503,
        content=create_error_response("Doctor listing is temporarily unavailable", 503)
    )
