"""
Public API routes - no authentication required
"""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from volunteer_portal.core.db import get_db
from volunteer_portal.models import Profile
from volunteer_portal.schemas.event import EventDetail, EventResponse, EventSummary
from volunteer_portal.services.event_service import EventService
from volunteer_portal.services.geo_service import event_forecast
from volunteer_portal.services.repositories import EventRepo
from volunteer_portal.services.signup_service import SignupService
from volunteer_portal.utils.responses import success_response, not_found_error
from volunteer_portal.utils.security import get_optional_user

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/events")
async def list_events(db: Session = Depends(get_db)):
    """List events with confirmed and waitlist counts"""
    events = [
        EventSummary(**EventResponse.model_validate(item["event"]).model_dump(),
                     signup_count=item["signup_count"],
                     waitlist_count=item["waitlist_count"],
                     spots_left=item["spots_left"])
        for item in EventService.list_with_counts(db)
    ]
    return success_response(
        message="Events retrieved successfully",
        data={"events": events}
    )

@router.get("/events/{event_id}")
async def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[Profile] = Depends(get_optional_user)
):
    """Event details with counts, schedule, volunteer roster and the caller's own signup"""
    event = EventRepo.get_by_id(db, event_id)
    if not event:
        raise not_found_error("Event")

    detail = EventDetail(
        **EventResponse.model_validate(event).model_dump(),
        **EventService.summarize(db, event),
        **SignupService.public_roster(db, event.id, viewer)
    )
    return success_response(message="Event retrieved", data=detail)

@router.get("/events/{event_id}/forecast")
async def get_event_forecast(event_id: int, db: Session = Depends(get_db)):
    """Weather for the first days of the event at its location"""
    event = EventRepo.get_by_id(db, event_id)
    if not event:
        raise not_found_error("Event")

    forecast = await event_forecast(event.location, event.start_date, event.end_date)
    return success_response(message="Forecast retrieved", data=forecast)
