"""
Response envelope schemas shared by every route
"""

from typing import Any, Optional
from pydantic import BaseModel

class StandardResponse(BaseModel):
    """Standard API response"""
    success: bool
    message: str
    data: Optional[Any] = None

class ErrorResponse(BaseModel):
    """Error response schema"""
    success: bool = False
    message: str
    error_code: Optional[str] = None
    details: Optional[Any] = None

class Pagination(BaseModel):
    """Page metadata for list endpoints"""
    page: int
    per_page: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "Pagination":
        return cls(page=page, per_page=per_page, total=total, pages=(total + per_page - 1) // per_page)
