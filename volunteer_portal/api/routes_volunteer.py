"""
Signed-in volunteer routes: profile, signups and FAQ chat
"""

import logging

from fastapi import APIRouter, Depends, Request
from openai import OpenAIError
from sqlalchemy.orm import Session

from volunteer_portal.core.db import get_db
from volunteer_portal.models import Profile
from volunteer_portal.schemas.chat import ChatRequest
from volunteer_portal.schemas.profile import OnboardingRequest, ProfileResponse
from volunteer_portal.schemas.signup import LeaveRequest, SignupCreate, SignupResponse, SignupUpdate
from volunteer_portal.services.errors import ServiceError
from volunteer_portal.services.faq_service import FaqService
from volunteer_portal.services.profile_service import ProfileService
from volunteer_portal.services.signup_service import SignupService
from volunteer_portal.utils.responses import error_response, rate_limit_error, service_error_response, success_response
from volunteer_portal.utils.security import get_client_ip, get_current_user, rate_limit_check

logger = logging.getLogger(__name__)

router = APIRouter()

def get_faq_service() -> FaqService:
    return FaqService()

@router.get("/me")
async def get_me(user: Profile = Depends(get_current_user)):
    return success_response(message="Profile retrieved", data=ProfileResponse.model_validate(user))

@router.post("/onboarding")
async def complete_onboarding(
    onboarding: OnboardingRequest,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Save the display name and return the page to continue to"""
    next_path = ProfileService.complete_onboarding(db, user, onboarding.display_name, onboarding.next)
    return success_response(
        message="Onboarding complete",
        data={"profile": ProfileResponse.model_validate(user), "redirect": next_path}
    )

@router.post("/signups")
async def sign_up(
    signup_data: SignupCreate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Sign up for an event; lands on the waitlist when the event is full"""
    try:
        signup = SignupService.sign_up(db, user, signup_data)
    except ServiceError as e:
        return service_error_response(e)

    waitlisted = signup.is_waitlisted
    return success_response(
        message="You're on the waitlist!" if waitlisted else "You're signed up!",
        data={
            "ok": True,
            "waitlist": waitlisted,
            "waitlist_position": signup.waitlist_position,
            "signup": SignupResponse.model_validate(signup),
        },
        status_code=201
    )

@router.post("/signups/leave")
async def leave_event(
    leave_data: LeaveRequest,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Cancel the caller's signup for an event"""
    try:
        SignupService.leave(db, user, leave_data.event_id)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(message="You have left the event.", data={"ok": True})

@router.patch("/signups/{event_id}")
async def update_signup(
    event_id: int,
    signup_update: SignupUpdate,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """Edit volunteer details on the caller's signup"""
    try:
        signup = SignupService.update_details(db, user, event_id, signup_update)
    except ServiceError as e:
        return service_error_response(e)
    return success_response(message="Signup updated", data=SignupResponse.model_validate(signup))

@router.get("/my-schedule")
async def my_schedule(
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user)
):
    """The caller's events with schedule, room and venue details"""
    return success_response(
        message="Schedule retrieved",
        data={"signups": SignupService.my_schedule(db, user)}
    )

@router.post("/chat")
async def faq_chat(
    request: Request,
    chat_data: ChatRequest,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
    faq: FaqService = Depends(get_faq_service)
):
    """Answer a question from the FAQ document"""
    if not rate_limit_check(get_client_ip(request)):
        return rate_limit_error()

    try:
        reply = await faq.answer(db, user, chat_data.message)
    except ServiceError as e:
        return service_error_response(e)
    except OpenAIError as e:
        logger.error("Chat API error: %s", e)
        return error_response(message="Something went wrong. Please try again.", status_code=500)

    return success_response(message="Reply generated", data={"reply": reply})
