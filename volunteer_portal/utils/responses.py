"""
Standardized response utilities
"""

from typing import Any, List, Optional
from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from volunteer_portal.schemas.common import StandardResponse, ErrorResponse, Pagination
from volunteer_portal.services.errors import ServiceError

def _json(model, status_code: int) -> JSONResponse:
    # Nested ORM-backed schemas carry dates and datetimes
    return JSONResponse(content=jsonable_encoder(model), status_code=status_code)

def success_response(
    message: str,
    data: Any = None,
    status_code: int = 200
) -> JSONResponse:
    """Create standardized success response"""
    return _json(StandardResponse(success=True, message=message, data=data), status_code)

def paginated_response(
    message: str,
    key: str,
    items: List[Any],
    page: int,
    per_page: int,
    total: int
) -> JSONResponse:
    """Success envelope holding one page of items plus page metadata"""
    return success_response(
        message=message,
        data={key: items, "pagination": Pagination.build(page, per_page, total)}
    )

def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Any = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(
        message=message,
        error_code=error_code,
        details=details
    )
    return _json(response, status_code)

def service_error_response(error: ServiceError) -> JSONResponse:
    """Error envelope for a domain error; error_code is the error class name"""
    return error_response(
        message=error.message,
        error_code=type(error).__name__,
        details=error.details,
        status_code=error.status_code
    )

def not_found_error(resource: str = "Resource"):
    """Create not found error"""
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{resource} not found"
    )

def rate_limit_error():
    """Create rate limit error"""
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Please try again later."
    )
