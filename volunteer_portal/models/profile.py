"""
Profile (user) model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from volunteer_portal.core.db import Base

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String(255), nullable=True)
    discord_username = Column(String(255), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    # Bearer token issued by the sign-in flow; identifies the caller on every request
    api_token = Column(String(255), unique=True, nullable=False, index=True)
    onboarding_completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    signups = relationship("Signup", back_populates="user", cascade="all, delete-orphan")
