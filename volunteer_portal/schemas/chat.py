"""
FAQ chat schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

class ChatRequest(BaseModel):
    message: Optional[str] = None

class ChatLogEntry(BaseModel):
    id: int
    created_at: datetime
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    role: str
    content: str

    class Config:
        from_attributes = True
