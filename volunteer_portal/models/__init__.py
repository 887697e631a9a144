"""
Database models package
"""

from .profile import Profile
from .event import Event, EventScheduleRow
from .signup import Signup
from .shipment import Shipment
from .faq import FaqChunk, ChatLog

__all__ = ["Profile", "Event", "EventScheduleRow", "Signup", "Shipment", "FaqChunk", "ChatLog"]
