"""
Profile schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

class ProfileResponse(BaseModel):
    id: int
    display_name: Optional[str] = None
    discord_username: Optional[str] = None
    avatar_url: Optional[str] = None
    is_admin: bool
    onboarding_completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class OnboardingRequest(BaseModel):
    display_name: Optional[str] = None
    next: Optional[str] = None
