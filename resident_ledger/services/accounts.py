import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth.jwt import get_password_hash
from ..auth.session import AuthSession
from ..constants import DEFAULT_ROLE, USER_ROLES
from ..models.models import RevokedToken, User, UserProfile
from .audit import audit_log
from .gateway import write_scope
from .permissions import ensure_allowed, is_admin

logger = logging.getLogger(__name__)


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def create_account(db: Session, email: str, password: str, role: str = DEFAULT_ROLE) -> User:
    """Create a user together with its profile; new accounts are viewers unless told otherwise."""
    if role not in USER_ROLES:
        raise ValueError(f"Unknown role: {role}")
    normalized = email.lower()
    if find_user_by_email(db, normalized):
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(email=normalized, hashed_password=get_password_hash(password))
    user.profile = UserProfile(email=normalized, role=role)
    with write_scope(db, "create account"):
        db.add(user)
    db.refresh(user)
    logger.info("Created %s account %s", role, user.id)
    return user


def ensure_profile(db: Session, user: User) -> UserProfile:
    if user.profile is None:
        user.profile = UserProfile(email=user.email, role=DEFAULT_ROLE)
        with write_scope(db, "create profile"):
            db.add(user)
        db.refresh(user)
    return user.profile


def set_role(db: Session, session: Optional[AuthSession], user_id: int, role: str) -> UserProfile:
    ensure_allowed(is_admin, session)
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    profile = ensure_profile(db, user)
    before = {"role": profile.role}
    with write_scope(db, "update role"):
        profile.role = role
        db.add(profile)
    db.refresh(profile)
    audit_log(
        db_session=db,
        actor_user_id=session.user_id if session else None,
        action="user.role.update",
        target_entity_type="User",
        target_entity_id=str(user_id),
        before=before,
        after={"role": role},
    )
    return profile


def revoke_token(db: Session, session: AuthSession) -> None:
    if not session.token_id:
        return
    if db.get(RevokedToken, session.token_id) is not None:
        return
    with write_scope(db, "sign out"):
        db.add(RevokedToken(jti=session.token_id, user_id=session.user_id))
    logger.info("Revoked token for user %s", session.user_id)
