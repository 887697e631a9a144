"""
Repository layer wrapping the SQLAlchemy queries used by the services.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from volunteer_portal.models import ChatLog, Event, FaqChunk, Profile, Shipment, Signup


# -------- Profile repository --------

class ProfileRepo:
    @staticmethod
    def get_by_token(db: Session, token: str) -> Optional[Profile]:
        return db.query(Profile).filter(Profile.api_token == token).first()


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get_by_id(db: Session, event_id: int) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def list_all(db: Session) -> List[Event]:
        return db.query(Event).order_by(Event.start_date, Event.id).all()


# -------- Signup repository --------

class SignupRepo:
    @staticmethod
    def get_for_user(db: Session, event_id: int, user_id: int) -> Optional[Signup]:
        return db.query(Signup).filter(
            Signup.event_id == event_id,
            Signup.user_id == user_id
        ).first()

    @staticmethod
    def count_confirmed(db: Session, event_id: int) -> int:
        return db.query(func.count(Signup.id)).filter(
            Signup.event_id == event_id,
            Signup.waitlist_position.is_(None)
        ).scalar() or 0

    @staticmethod
    def count_waitlisted(db: Session, event_id: int) -> int:
        return db.query(func.count(Signup.id)).filter(
            Signup.event_id == event_id,
            Signup.waitlist_position.isnot(None)
        ).scalar() or 0

    @staticmethod
    def last_waitlist_position(db: Session, event_id: int) -> Optional[int]:
        row = db.query(Signup.waitlist_position).filter(
            Signup.event_id == event_id,
            Signup.waitlist_position.isnot(None)
        ).order_by(Signup.waitlist_position.desc()).limit(1).first()
        return row[0] if row else None

    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[Signup]:
        return db.query(Signup).filter(Signup.event_id == event_id).order_by(Signup.created_at, Signup.id).all()

    @staticmethod
    def list_for_user(db: Session, user_id: int) -> List[Signup]:
        return db.query(Signup).join(Event).filter(
            Signup.user_id == user_id
        ).order_by(Event.start_date, Event.id).all()


# -------- Shipment repository --------

class ShipmentRepo:
    @staticmethod
    def get_by_id(db: Session, shipment_id: int) -> Optional[Shipment]:
        return db.query(Shipment).filter(Shipment.id == shipment_id).first()

    @staticmethod
    def get_by_tracking_number(db: Session, tracking_number: str) -> Optional[Shipment]:
        return db.query(Shipment).filter(Shipment.tracking_number == tracking_number).first()

    @staticmethod
    def list_all(db: Session, event_id: Optional[int] = None) -> List[Shipment]:
        query = db.query(Shipment)
        if event_id is not None:
            query = query.filter(Shipment.event_id == event_id)
        return query.order_by(Shipment.created_at.desc(), Shipment.id.desc()).all()


# -------- FAQ / chat log repository --------

class FaqRepo:
    @staticmethod
    def all_chunks(db: Session) -> List[FaqChunk]:
        return db.query(FaqChunk).order_by(FaqChunk.chunk_index).all()

    @staticmethod
    def keyword_chunks(db: Session, keywords: List[str], limit: int = 5) -> List[FaqChunk]:
        if not keywords:
            return []
        clauses = [func.lower(FaqChunk.content).like(f"%{k.lower()}%") for k in keywords]
        return db.query(FaqChunk).filter(or_(*clauses)).order_by(FaqChunk.chunk_index).limit(limit).all()

    @staticmethod
    def replace_chunks(db: Session, chunks: List[FaqChunk]) -> int:
        db.query(FaqChunk).delete()
        db.add_all(chunks)
        db.commit()
        return len(chunks)


class ChatLogRepo:
    @staticmethod
    def add_exchange(db: Session, user_id: Optional[int], question: str, reply: str,
                     session_id: Optional[str] = None) -> None:
        db.add_all([
            ChatLog(user_id=user_id, session_id=session_id, role="user", content=question),
            ChatLog(user_id=user_id, session_id=session_id, role="assistant", content=reply),
        ])
        db.commit()

    @staticmethod
    def newest_first(db: Session, limit: int = 10000, offset: int = 0) -> List[ChatLog]:
        return db.query(ChatLog).order_by(
            ChatLog.created_at.desc(), ChatLog.id.desc()
        ).offset(offset).limit(limit).all()

    @staticmethod
    def count(db: Session) -> int:
        return db.query(func.count(ChatLog.id)).scalar() or 0
