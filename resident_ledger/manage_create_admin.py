"""Create or promote an administrator account for the resident ledger.

Run: `python -m resident_ledger.manage_create_admin --email admin@example.com --password changeme`
"""

import argparse
from contextlib import contextmanager

from fastapi import HTTPException

from .config import Base, SessionLocal, engine
from .constants import ROLE_ADMIN
from .models import models as _all_models  # noqa: F401
from .services.accounts import create_account, ensure_profile, find_user_by_email


@contextmanager
def session_scope():
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_or_promote_admin(db, email: str, password: str) -> str:
    existing_user = find_user_by_email(db, email)
    if existing_user:
        profile = ensure_profile(db, existing_user)
        if profile.role == ROLE_ADMIN:
            return f"User {existing_user.id} is already an admin."
        profile.role = ROLE_ADMIN
        db.add(profile)
        db.flush()
        return f"Promoted user {existing_user.id} to admin"

    user = create_account(db, email, password, role=ROLE_ADMIN)
    return f"Created admin user with id {user.id}"


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create or promote an admin user")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    try:
        with session_scope() as db:
            print(create_or_promote_admin(db, args.email, args.password))
    except HTTPException as exc:
        parser.exit(status=1, message=f"{exc.detail}\n")


if __name__ == "__main__":
    main()
