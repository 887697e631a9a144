"""
Shipment-related Pydantic schemas
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

class ShipmentCreate(BaseModel):
    """Schema for creating a shipment"""
    tracking_number: str
    carrier: str = "USPS"
    event_id: Optional[int] = None
    to_signup_id: Optional[int] = None
    notes: Optional[str] = None

class ShipmentUpdate(BaseModel):
    """Schema for updating a shipment"""
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    event_id: Optional[int] = None
    to_signup_id: Optional[int] = None
    notes: Optional[str] = None

class ShipmentResponse(BaseModel):
    id: int
    tracking_number: str
    carrier: str
    status: Optional[str] = None
    status_raw: Optional[Any] = None
    expected_delivery_date: Optional[str] = None
    delivered_at: Optional[str] = None
    last_checked_at: Optional[datetime] = None
    notes: Optional[str] = None
    event_id: Optional[int] = None
    to_signup_id: Optional[int] = None
    from_profile_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
