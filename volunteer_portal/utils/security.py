"""
Security utilities and authentication
"""

from fastapi import HTTPException, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import secrets
import time
from collections import defaultdict

from volunteer_portal.core.config import settings
from volunteer_portal.core.db import get_db
from volunteer_portal.models import Profile
from volunteer_portal.services.repositories import ProfileRepo

# Simple in-memory rate limiter
rate_limiter = defaultdict(list)

security = HTTPBearer(auto_error=False)

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Profile:
    """Resolve the signed-in profile from its bearer token"""
    profile = ProfileRepo.get_by_token(db, credentials.credentials) if credentials else None
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be signed in."
        )
    return profile

def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[Profile]:
    """The signed-in profile, or None for anonymous callers"""
    if not credentials:
        return None
    return ProfileRepo.get_by_token(db, credentials.credentials)

def require_admin(user: Profile = Depends(get_current_user)) -> Profile:
    """Allow only admin profiles through"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admins only."
        )
    return user

def verify_webhook_token(request: Request) -> None:
    """Check the static bearer token the tracking provider sends with webhooks"""
    secret = (settings.SHIP24_WEBHOOK_SECRET or "").strip()
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Webhook not configured"
        )

    auth = request.headers.get("Authorization") or ""
    token = auth[7:].strip() if auth.startswith("Bearer ") else ""
    if not token or not secrets.compare_digest(token, secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Clean old requests
    rate_limiter[client_ip] = [
        req_time for req_time in rate_limiter[client_ip]
        if req_time > minute_ago
    ]

    # Check limit
    if len(rate_limiter[client_ip]) >= limit:
        return False

    # Add current request
    rate_limiter[client_ip].append(current_time)
    return True

def get_client_ip(request) -> str:
    """Extract client IP from request"""
    # Check for forwarded IP first (for reverse proxy setups)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    # Check for real IP header
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    # Fall back to direct client IP
    return request.client.host if request.client else "unknown"
