"""
Profile onboarding
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from volunteer_portal.models import Profile


def _safe_next(target: Optional[str]) -> str:
    """Only allow same-site relative redirect targets."""
    target = (target or "").strip()
    if not target.startswith("/") or target.startswith("//"):
        return "/"
    return target


class ProfileService:
    @staticmethod
    def complete_onboarding(db: Session, user: Profile, display_name: Optional[str],
                            next_path: Optional[str] = None) -> str:
        """Save the display name, mark onboarding done and return where to send the user."""
        now = datetime.utcnow()
        user.display_name = (display_name or "").strip() or None
        user.onboarding_completed_at = now
        user.updated_at = now
        db.commit()
        return _safe_next(next_path)
