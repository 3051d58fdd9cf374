from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ..api.dependencies import get_current_session, get_db
from ..auth.jwt import create_access_token, verify_password
from ..auth.session import AuthSession, resolve_role
from ..config import settings
from ..models.models import User
from ..schemas.schemas import PermissionsRead, ProfileRead, RoleUpdate, SignupRequest, Token
from ..services import accounts
from ..services.audit import audit_log
from ..services.permissions import capability_map, is_admin, is_viewer

router = APIRouter()


def _build_token_response(db: Session, user: User) -> Token:
    return Token(
        access_token=create_access_token(user.id, user.email),
        token_type="bearer",
        role=resolve_role(db, user.id),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.post("/signup", response_model=Token, status_code=201)
def signup(payload: SignupRequest, db: Session = Depends(get_db)) -> Token:
    user = accounts.create_account(db, payload.email, payload.password)
    audit_log(
        db_session=db,
        actor_user_id=user.id,
        action="user.signup",
        target_entity_type="User",
        target_entity_id=str(user.id),
        after={"email": user.email},
    )
    return _build_token_response(db, user)


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)) -> Token:
    user = accounts.find_user_by_email(db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _build_token_response(db, user)


@router.post("/logout", status_code=204)
def logout(db: Session = Depends(get_db), session: AuthSession = Depends(get_current_session)) -> Response:
    accounts.revoke_token(db, session)
    return Response(status_code=204)


@router.get("/me", response_model=ProfileRead)
def read_current_profile(db: Session = Depends(get_db), session: AuthSession = Depends(get_current_session)):
    user = db.get(User, session.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    profile = accounts.ensure_profile(db, user)
    return ProfileRead(id=user.id, email=user.email, role=session.role, created_at=profile.created_at)


@router.get("/me/permissions", response_model=PermissionsRead)
def read_current_permissions(session: AuthSession = Depends(get_current_session)) -> PermissionsRead:
    return PermissionsRead(
        role=session.role,
        is_admin=is_admin(session),
        is_viewer=is_viewer(session),
        capabilities=capability_map(session),
    )


@router.put("/users/{user_id}/role", response_model=ProfileRead)
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(get_current_session),
):
    profile = accounts.set_role(db, session, user_id, payload.role)
    return ProfileRead(id=profile.id, email=profile.email, role=profile.role, created_at=profile.created_at)
