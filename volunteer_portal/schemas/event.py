"""
Event-related Pydantic schemas
"""

from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel

class ScheduleRowIn(BaseModel):
    """One row of an event's volunteer schedule"""
    day: Optional[str] = None
    time: Optional[str] = None
    activity: Optional[str] = None
    room: Optional[str] = None
    notes: Optional[str] = None

class ScheduleRowResponse(ScheduleRowIn):
    position: int

    class Config:
        from_attributes = True

class EventCreate(BaseModel):
    """Schema for creating or replacing an event"""
    title: str
    start_date: date
    end_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    timezone: str
    location: Optional[str] = None
    description: Optional[str] = None
    external_link: Optional[str] = None
    image_url: Optional[str] = None
    volunteer_details: Optional[str] = None
    capacity: int
    schedule: Optional[List[ScheduleRowIn]] = None

class EventResponse(BaseModel):
    """Basic event response"""
    id: int
    title: str
    start_date: date
    end_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    timezone: str
    location: Optional[str] = None
    description: Optional[str] = None
    external_link: Optional[str] = None
    image_url: Optional[str] = None
    volunteer_details: Optional[str] = None
    capacity: int
    created_at: datetime
    schedule_rows: List[ScheduleRowResponse] = []

    class Config:
        from_attributes = True

class EventSummary(EventResponse):
    """Event with derived signup counts"""
    signup_count: int
    waitlist_count: int
    spots_left: int

class RosterEntry(BaseModel):
    """A volunteer as shown on the public event page"""
    display_name: str
    waitlist_position: Optional[int] = None
    is_you: bool = False

class MySignup(BaseModel):
    signup_id: int
    waitlist_position: Optional[int] = None

class EventDetail(EventSummary):
    """Public event page: counts, rosters and the caller's own signup"""
    confirmed: List[RosterEntry] = []
    waitlisted: List[RosterEntry] = []
    my_signup: Optional[MySignup] = None
