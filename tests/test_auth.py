from fastapi import HTTPException
from fastapi.testclient import TestClient
import pytest

from resident_ledger.api.dependencies import get_db
from resident_ledger.auth.jwt import create_access_token, decode_token, get_current_session
from resident_ledger.auth.session import resolve_role
from resident_ledger.main import app
from resident_ledger.manage_create_admin import create_or_promote_admin
from resident_ledger.models.models import RevokedToken, User, UserProfile


def _override_get_db(session):
    def _generator():
        try:
            yield session
        finally:
            pass

    return _generator


@pytest.fixture
def client(db_session):
    app.dependency_overrides[get_db] = _override_get_db(db_session)
    client = TestClient(app)
    try:
        yield client
    finally:
        client.close()
        app.dependency_overrides.clear()


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_signup_creates_viewer_profile(client, db_session):
    response = client.post("/auth/signup", json={"email": "New@Example.com", "password": "secret1"})
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["role"] == "viewer"
    assert body["token_type"] == "bearer"

    user = db_session.query(User).filter(User.email == "new@example.com").one()
    assert user.profile.role == "viewer"
    assert decode_token(body["access_token"])["sub"] == str(user.id)


def test_signup_rejects_duplicate_email(client, create_user):
    create_user(email="taken@example.com")
    response = client.post("/auth/signup", json={"email": "taken@example.com", "password": "secret1"})
    assert response.status_code == 400


def test_login_and_permissions_for_admin(client, create_user):
    create_user(email="admin@example.com", role="admin")

    response = client.post("/auth/login", data={"username": "admin@example.com", "password": "changeme"})
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["role"] == "admin"

    permissions = client.get("/auth/me/permissions", headers=_auth(token)).json()
    assert permissions["is_admin"] is True
    assert permissions["capabilities"]["delete_property"] is True

    me = client.get("/auth/me", headers=_auth(token)).json()
    assert me["email"] == "admin@example.com"
    assert me["role"] == "admin"


def test_login_rejects_bad_password(client, create_user):
    create_user(email="someone@example.com")
    response = client.post("/auth/login", data={"username": "someone@example.com", "password": "wrong"})
    assert response.status_code == 401


def test_logout_revokes_token(client, db_session, create_user):
    user = create_user(email="leaving@example.com", role="viewer")
    token = create_access_token(user.id, user.email)

    assert client.get("/auth/me", headers=_auth(token)).status_code == 200
    assert client.post("/auth/logout", headers=_auth(token)).status_code == 204
    assert db_session.query(RevokedToken).count() == 1
    assert client.get("/auth/me", headers=_auth(token)).status_code == 401


def test_requests_without_token_are_unauthorized(client):
    assert client.get("/residents/").status_code == 401


def test_missing_profile_defaults_to_viewer(db_session, create_user):
    user = create_user(email="legacy@example.com", role=None)
    token = create_access_token(user.id, user.email)

    session = get_current_session(token, db_session)

    assert session.role == "viewer"
    assert resolve_role(db_session, user.id) == "viewer"


def test_unknown_role_defaults_to_viewer(db_session, create_user):
    user = create_user(email="odd@example.com", role="viewer")
    profile = db_session.get(UserProfile, user.id)
    profile.role = "owner"
    db_session.commit()

    assert resolve_role(db_session, user.id) == "viewer"


def test_invalid_token_is_rejected(db_session):
    with pytest.raises(HTTPException) as exc:
        get_current_session("not-a-token", db_session)
    assert exc.value.status_code == 401


def test_admin_can_change_roles_but_viewer_cannot(client, create_user):
    admin = create_user(email="admin@example.com", role="admin")
    viewer = create_user(email="viewer@example.com", role="viewer")
    admin_token = create_access_token(admin.id, admin.email)
    viewer_token = create_access_token(viewer.id, viewer.email)

    response = client.put(f"/auth/users/{admin.id}/role", json={"role": "viewer"}, headers=_auth(viewer_token))
    assert response.status_code == 403

    response = client.put(f"/auth/users/{viewer.id}/role", json={"role": "admin"}, headers=_auth(admin_token))
    assert response.status_code == 200
    assert response.json()["role"] == "admin"


def test_create_admin_command_creates_then_promotes(db_session, create_user):
    message = create_or_promote_admin(db_session, "root@example.com", "changeme")
    assert message.startswith("Created admin user")
    assert db_session.query(User).filter(User.email == "root@example.com").one().profile.role == "admin"

    viewer = create_user(email="later@example.com", role="viewer")
    assert create_or_promote_admin(db_session, "later@example.com", "ignored").startswith("Promoted")
    db_session.commit()
    assert db_session.get(UserProfile, viewer.id).role == "admin"
