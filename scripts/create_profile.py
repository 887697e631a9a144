#!/usr/bin/env python3
"""Create a profile and print its bearer token.

Usage: python scripts/create_profile.py "Jane Pilot" [--admin]
"""

from __future__ import annotations

import argparse
import secrets

from volunteer_portal.core.db import Base, SessionLocal, engine
from volunteer_portal.models import Profile


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("display_name")
    parser.add_argument("--admin", action="store_true", help="grant admin rights")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        token = secrets.token_urlsafe(32)
        while db.query(Profile).filter(Profile.api_token == token).first():
            token = secrets.token_urlsafe(32)

        profile = Profile(display_name=args.display_name, is_admin=args.admin, api_token=token)
        db.add(profile)
        db.commit()
        db.refresh(profile)
    finally:
        db.close()

    print("profile_id:", profile.id)
    print("admin:", args.admin)
    print("token:", token)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
