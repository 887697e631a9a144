"""
Event signup model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from volunteer_portal.core.db import Base

class Signup(Base):
    __tablename__ = "event_signups"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    waitlist_position = Column(Integer, nullable=True)  # null = confirmed
    role = Column(String(64), nullable=True)
    volunteer_status = Column(String(128), nullable=True)
    phone = Column(String(32), nullable=True)
    is_local = Column(Boolean, nullable=True)
    flight_voucher_requested = Column(Boolean, nullable=True)
    availability_notes = Column(Text, nullable=True)
    travel_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="signups")
    user = relationship("Profile", back_populates="signups")
    shipments = relationship("Shipment", back_populates="recipient_signup")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_signups_event_user"),
    )

    @property
    def is_waitlisted(self) -> bool:
        return self.waitlist_position is not None
