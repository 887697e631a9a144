"""
Event administration and listing service
"""

import logging
import re
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from volunteer_portal.models import Event, EventScheduleRow
from volunteer_portal.schemas.event import EventCreate, ScheduleRowIn
from volunteer_portal.services.errors import NotFoundError, ValidationFailed
from volunteer_portal.services.repositories import EventRepo, SignupRepo

logger = logging.getLogger(__name__)

TIMEZONES = ["America/New_York", "America/Chicago", "America/Denver", "America/Los_Angeles"]

TIMEZONE_LABELS = {
    "America/New_York": "Eastern",
    "America/Chicago": "Central",
    "America/Denver": "Mountain",
    "America/Los_Angeles": "Pacific",
}

_TIME_RE = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")

INVALID_FIELDS = "Missing or invalid fields."


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def format_time_local(value: Optional[str]) -> Optional[str]:
    """Format "HH:MM[:SS]" as event-local "8:00 AM" without any timezone conversion."""
    if not value:
        return None
    parts = value.strip().split(":")
    try:
        hour = int(parts[0])
    except ValueError:
        return None
    minute = parts[1][:2] if len(parts) > 1 else "00"
    ampm = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute} {ampm}"


class EventService:
    """Service for event CRUD and derived signup counts"""

    @staticmethod
    def parse_event_form(data: EventCreate) -> Dict:
        """Validate an event form and return the column values to persist"""
        title = _clean(data.title)
        start_time = _clean(data.start_time)
        end_time = _clean(data.end_time)

        if (
            not title
            or data.timezone not in TIMEZONES
            or data.capacity < 1
            or data.end_date < data.start_date
            or (start_time and not _TIME_RE.match(start_time))
            or (end_time and not _TIME_RE.match(end_time))
        ):
            raise ValidationFailed(INVALID_FIELDS)

        return {
            "title": title,
            "start_date": data.start_date,
            "end_date": data.end_date,
            "start_time": start_time,
            "end_time": end_time,
            "timezone": data.timezone,
            "location": _clean(data.location),
            "description": _clean(data.description),
            "external_link": _clean(data.external_link),
            "image_url": _clean(data.image_url),
            "volunteer_details": _clean(data.volunteer_details),
            "capacity": data.capacity,
        }

    @staticmethod
    def _schedule_rows(rows: List[ScheduleRowIn]) -> List[EventScheduleRow]:
        result = []
        for position, row in enumerate(rows):
            values = {
                "day": _clean(row.day),
                "time": _clean(row.time),
                "activity": _clean(row.activity),
                "room": _clean(row.room),
                "notes": _clean(row.notes),
            }
            # Skip rows the admin left entirely blank
            if not any(values.values()):
                continue
            result.append(EventScheduleRow(position=position, **values))
        return result

    @staticmethod
    def create_event(db: Session, data: EventCreate) -> Event:
        values = EventService.parse_event_form(data)
        event = Event(**values)
        if data.schedule:
            event.schedule_rows = EventService._schedule_rows(data.schedule)
        db.add(event)
        db.commit()
        db.refresh(event)
        logger.info("Event %s created: %s (capacity %s)", event.id, event.title, event.capacity)
        return event

    @staticmethod
    def update_event(db: Session, event_id: int, data: EventCreate) -> Event:
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            raise NotFoundError("Event not found.")

        values = EventService.parse_event_form(data)
        for key, value in values.items():
            setattr(event, key, value)
        # A missing schedule leaves the existing rows alone; an empty list clears them
        if data.schedule is not None:
            event.schedule_rows = EventService._schedule_rows(data.schedule)

        db.commit()
        db.refresh(event)
        logger.info("Event %s updated", event.id)
        return event

    @staticmethod
    def replace_schedule(db: Session, event_id: int, rows: List[ScheduleRowIn]) -> Event:
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            raise NotFoundError("Event not found.")
        event.schedule_rows = EventService._schedule_rows(rows)
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def delete_event(db: Session, event_id: int) -> None:
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            raise NotFoundError("Event not found.")
        db.delete(event)
        db.commit()
        logger.info("Event %s deleted", event_id)

    @staticmethod
    def summarize(db: Session, event: Event) -> Dict:
        """Event fields plus confirmed/waitlisted counts, derived at read time"""
        signup_count = SignupRepo.count_confirmed(db, event.id)
        waitlist_count = SignupRepo.count_waitlisted(db, event.id)
        return {
            "signup_count": signup_count,
            "waitlist_count": waitlist_count,
            "spots_left": max(event.capacity - signup_count, 0),
        }

    @staticmethod
    def list_with_counts(db: Session) -> List[Dict]:
        return [
            {"event": event, **EventService.summarize(db, event)}
            for event in EventRepo.list_all(db)
        ]
