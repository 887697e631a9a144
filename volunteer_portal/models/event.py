"""
Event model and volunteer schedule sub-rows
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from volunteer_portal.core.db import Base

class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_time = Column(String(8), nullable=True)  # event-local "HH:MM"
    end_time = Column(String(8), nullable=True)
    timezone = Column(String(64), nullable=False)
    location = Column(String(512), nullable=True)
    description = Column(Text, nullable=True)
    external_link = Column(String(1024), nullable=True)
    image_url = Column(String(1024), nullable=True)
    volunteer_details = Column(Text, nullable=True)
    capacity = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    signups = relationship("Signup", back_populates="event", cascade="all, delete-orphan")
    schedule_rows = relationship(
        "EventScheduleRow",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventScheduleRow.position",
    )
    shipments = relationship("Shipment", back_populates="event")

class EventScheduleRow(Base):
    __tablename__ = "event_schedule_rows"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    day = Column(String(32), nullable=True)
    time = Column(String(64), nullable=True)
    activity = Column(String(255), nullable=True)
    room = Column(String(128), nullable=True)
    notes = Column(Text, nullable=True)

    event = relationship("Event", back_populates="schedule_rows")
