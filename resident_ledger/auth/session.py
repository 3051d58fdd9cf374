"""The authenticated session carried through a request.

Routers and services receive an :class:`AuthSession` and ask the permission
gate what it may do; nothing else inspects ``role`` directly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import DEFAULT_ROLE, USER_ROLES
from ..models.models import UserProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    user_id: int
    email: str
    role: str = DEFAULT_ROLE
    token_id: Optional[str] = None


def resolve_role(db: Session, user_id: int) -> str:
    """Look up the profile role, falling back to the least privileged role."""
    try:
        profile = db.get(UserProfile, user_id)
    except SQLAlchemyError:
        logger.exception("Failed to fetch role for user %s; defaulting to %s", user_id, DEFAULT_ROLE)
        return DEFAULT_ROLE
    if profile is None or profile.role not in USER_ROLES:
        return DEFAULT_ROLE
    return profile.role
