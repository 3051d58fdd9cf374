"""Role based capability checks.

The role is binary: admins may mutate everything, viewers may only read.
"""
from typing import Callable, Dict, Optional

from fastapi import HTTPException

from ..auth.session import AuthSession
from ..constants import PERMISSION_DENIED_MESSAGE, ROLE_ADMIN, ROLE_VIEWER

Capability = Callable[[Optional[AuthSession]], bool]


def _role(session: Optional[AuthSession]) -> Optional[str]:
    return session.role if session else None


def is_admin(session: Optional[AuthSession]) -> bool:
    return _role(session) == ROLE_ADMIN


def is_viewer(session: Optional[AuthSession]) -> bool:
    return _role(session) == ROLE_VIEWER


def can_view_data(session: Optional[AuthSession]) -> bool:
    return _role(session) in (ROLE_ADMIN, ROLE_VIEWER)


def can_create_resident(session: Optional[AuthSession]) -> bool:
    return is_admin(session)


def can_edit_resident(session: Optional[AuthSession]) -> bool:
    return is_admin(session)


def can_delete_resident(session: Optional[AuthSession]) -> bool:
    return is_admin(session)


def can_create_property(session: Optional[AuthSession]) -> bool:
    return is_admin(session)


def can_edit_property(session: Optional[AuthSession]) -> bool:
    return is_admin(session)


def can_delete_property(session: Optional[AuthSession]) -> bool:
    return is_admin(session)


CAPABILITIES: Dict[str, Capability] = {
    "create_resident": can_create_resident,
    "edit_resident": can_edit_resident,
    "delete_resident": can_delete_resident,
    "create_property": can_create_property,
    "edit_property": can_edit_property,
    "delete_property": can_delete_property,
    "view_data": can_view_data,
}


def capability_map(session: Optional[AuthSession]) -> Dict[str, bool]:
    return {name: check(session) for name, check in CAPABILITIES.items()}


def ensure_allowed(check: Capability, session: Optional[AuthSession]) -> None:
    if not check(session):
        raise HTTPException(status_code=403, detail=PERMISSION_DENIED_MESSAGE)
