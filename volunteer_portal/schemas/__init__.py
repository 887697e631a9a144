"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .signup import *
from .shipment import *
from .chat import *
from .profile import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "Pagination",
    "ScheduleRowIn",
    "ScheduleRowResponse",
    "EventCreate",
    "EventResponse",
    "EventSummary",
    "RosterEntry",
    "MySignup",
    "EventDetail",
    "SignupCreate",
    "SignupUpdate",
    "LeaveRequest",
    "SignupResponse",
    "ShipmentCreate",
    "ShipmentUpdate",
    "ShipmentResponse",
    "ChatRequest",
    "ChatLogEntry",
    "ProfileResponse",
    "OnboardingRequest",
]
