"""
Signup and waitlist service
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from volunteer_portal.models import Profile, Signup
from volunteer_portal.schemas.signup import SignupCreate, SignupUpdate
from volunteer_portal.services.errors import ConflictError, NotFoundError
from volunteer_portal.services.event_service import TIMEZONE_LABELS, format_time_local
from volunteer_portal.services.repositories import EventRepo, SignupRepo

logger = logging.getLogger(__name__)

ALREADY_SIGNED_UP = "You are already signed up for this event."

VOLUNTEER_FIELDS = (
    "role",
    "volunteer_status",
    "phone",
    "is_local",
    "flight_voucher_requested",
    "availability_notes",
    "travel_notes",
)


def volunteer_name(profile: Optional[Profile]) -> str:
    if profile is None:
        return "Volunteer"
    return profile.display_name or profile.discord_username or "Volunteer"


def _details(data) -> Dict:
    values = {}
    for field in VOLUNTEER_FIELDS:
        value = getattr(data, field)
        if isinstance(value, str):
            value = value.strip() or None
        values[field] = value
    return values


class SignupService:
    """Service for joining, leaving and listing event signups"""

    @staticmethod
    def sign_up(db: Session, user: Profile, data: SignupCreate) -> Signup:
        """Confirm the user if the event has room, otherwise append them to the waitlist.

        The confirmed count and the last waitlist position are read without a
        lock, so two requests racing at the capacity boundary can both be
        confirmed.
        """
        event = EventRepo.get_by_id(db, data.event_id)
        if not event:
            raise NotFoundError("Event not found.")

        if SignupRepo.get_for_user(db, event.id, user.id):
            raise ConflictError(ALREADY_SIGNED_UP)

        confirmed_count = SignupRepo.count_confirmed(db, event.id)
        waitlist_position = None
        if confirmed_count >= event.capacity:
            last_position = SignupRepo.last_waitlist_position(db, event.id)
            waitlist_position = (last_position or 0) + 1

        signup = Signup(
            event_id=event.id,
            user_id=user.id,
            waitlist_position=waitlist_position,
            **_details(data),
        )
        db.add(signup)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(ALREADY_SIGNED_UP)
        db.refresh(signup)

        if waitlist_position is None:
            logger.info("User %s confirmed for event %s (%s/%s)",
                        user.id, event.id, confirmed_count + 1, event.capacity)
        else:
            logger.info("User %s waitlisted for event %s at position %s",
                        user.id, event.id, waitlist_position)
        return signup

    @staticmethod
    def leave(db: Session, user: Profile, event_id: int) -> None:
        """Delete the caller's signup. Remaining waitlist positions are left as they are."""
        signup = SignupRepo.get_for_user(db, event_id, user.id)
        if not signup:
            raise NotFoundError("You are not signed up for this event.")
        db.delete(signup)
        db.commit()
        logger.info("User %s left event %s", user.id, event_id)

    @staticmethod
    def update_details(db: Session, user: Profile, event_id: int, data: SignupUpdate) -> Signup:
        signup = SignupRepo.get_for_user(db, event_id, user.id)
        if not signup:
            raise NotFoundError("You are not signed up for this event.")
        for field, value in _details(data).items():
            if field in data.model_fields_set:
                setattr(signup, field, value)
        db.commit()
        db.refresh(signup)
        return signup

    @staticmethod
    def roster(db: Session, event_id: int) -> Dict[str, List[Signup]]:
        """Split an event's signups into confirmed and waitlisted lists"""
        event = EventRepo.get_by_id(db, event_id)
        if not event:
            raise NotFoundError("Event not found.")

        signups = SignupRepo.list_for_event(db, event.id)
        confirmed = [s for s in signups if not s.is_waitlisted]
        waitlisted = sorted(
            (s for s in signups if s.is_waitlisted),
            key=lambda s: s.waitlist_position,
        )
        return {"event": event, "confirmed": confirmed, "waitlisted": waitlisted}

    @staticmethod
    def public_roster(db: Session, event_id: int, viewer: Optional[Profile] = None) -> Dict:
        """Names on the public event page plus the viewer's own signup, if any"""
        roster = SignupService.roster(db, event_id)
        viewer_id = viewer.id if viewer else None

        def entry(signup: Signup) -> Dict:
            return {
                "display_name": volunteer_name(signup.user),
                "waitlist_position": signup.waitlist_position,
                "is_you": signup.user_id == viewer_id,
            }

        mine = next(
            (s for s in roster["confirmed"] + roster["waitlisted"] if s.user_id == viewer_id),
            None,
        )
        return {
            "confirmed": [entry(s) for s in roster["confirmed"]],
            "waitlisted": [entry(s) for s in roster["waitlisted"]],
            "my_signup": {"signup_id": mine.id, "waitlist_position": mine.waitlist_position} if mine else None,
        }

    @staticmethod
    def my_schedule(db: Session, user: Profile) -> List[Dict]:
        """The user's signups with event details and the volunteer schedule"""
        items = []
        for signup in SignupRepo.list_for_user(db, user.id):
            event = signup.event
            times = [t for t in (format_time_local(event.start_time), format_time_local(event.end_time)) if t]
            items.append({
                "signup_id": signup.id,
                "event_id": event.id,
                "title": event.title,
                "start_date": event.start_date.isoformat(),
                "end_date": event.end_date.isoformat(),
                "time": " - ".join(times) or None,
                "timezone": TIMEZONE_LABELS.get(event.timezone, event.timezone),
                "location": event.location,
                "image_url": event.image_url,
                "on_waitlist": signup.is_waitlisted,
                "waitlist_position": signup.waitlist_position,
                "volunteer_details": event.volunteer_details,
                "schedule": [
                    {
                        "day": row.day,
                        "time": row.time,
                        "activity": row.activity,
                        "room": row.room,
                        "notes": row.notes,
                    }
                    for row in event.schedule_rows
                ],
            })
        return items
