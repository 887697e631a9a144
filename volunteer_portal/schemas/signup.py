"""
Signup-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

class SignupCreate(BaseModel):
    """Volunteer signup form"""
    event_id: int
    role: Optional[str] = None
    volunteer_status: Optional[str] = None
    phone: Optional[str] = None
    is_local: Optional[bool] = None
    flight_voucher_requested: Optional[bool] = None
    availability_notes: Optional[str] = None
    travel_notes: Optional[str] = None

class SignupUpdate(BaseModel):
    """Editable volunteer details on an existing signup"""
    role: Optional[str] = None
    volunteer_status: Optional[str] = None
    phone: Optional[str] = None
    is_local: Optional[bool] = None
    flight_voucher_requested: Optional[bool] = None
    availability_notes: Optional[str] = None
    travel_notes: Optional[str] = None

class LeaveRequest(BaseModel):
    event_id: int

class SignupResponse(BaseModel):
    """Signup response schema"""
    id: int
    event_id: int
    user_id: int
    waitlist_position: Optional[int] = None
    role: Optional[str] = None
    volunteer_status: Optional[str] = None
    phone: Optional[str] = None
    is_local: Optional[bool] = None
    flight_voucher_requested: Optional[bool] = None
    availability_notes: Optional[str] = None
    travel_notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
