"""
Shipment model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from volunteer_portal.core.db import Base

CARRIERS = ("USPS", "UPS", "FEDEX", "DHL")

SHIPMENT_STATUSES = (
    "Pre-Shipment",
    "In Transit",
    "Out for Delivery",
    "Delivered",
    "Exception",
    "Unknown",
)

class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True, index=True)
    tracking_number = Column(String(64), unique=True, nullable=False, index=True)
    carrier = Column(String(16), nullable=False, default="USPS")
    status = Column(String(32), nullable=True)  # null until first refresh
    status_raw = Column(JSON, nullable=True)
    expected_delivery_date = Column(String(10), nullable=True)  # YYYY-MM-DD
    delivered_at = Column(String(64), nullable=True)
    last_checked_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)
    to_signup_id = Column(Integer, ForeignKey("event_signups.id", ondelete="SET NULL"), nullable=True)
    from_profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="shipments")
    recipient_signup = relationship("Signup", back_populates="shipments")
