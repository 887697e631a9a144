"""
FAQ chunk and chat log models
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, LargeBinary, ForeignKey

from volunteer_portal.core.db import Base

class FaqChunk(Base):
    __tablename__ = "faq_chunks"

    id = Column(Integer, primary_key=True, index=True)
    chunk_index = Column(Integer, nullable=False, default=0)
    content = Column(Text, nullable=False)
    embedding = Column(LargeBinary, nullable=False)  # unit-normalized float32 vector
    created_at = Column(DateTime, default=datetime.utcnow)

class ChatLog(Base):
    __tablename__ = "chat_log"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    session_id = Column(String(64), nullable=True)
    role = Column(String(16), nullable=False)  # user | assistant
    content = Column(Text, nullable=False)
