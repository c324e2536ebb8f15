from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.config import settings
from app.utils.auth import (
    TOKEN_COOKIE,
    authenticate_admin,
    create_access_token,
    hash_password,
    verify_password,
    verify_token,
)


@pytest.fixture
def admin_password(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", hash_password("s3cret", rounds=4))
    return "s3cret"


def test_password_hashing():
    hashed = hash_password("s3cret", rounds=4)
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


def test_authenticate_admin(admin_password):
    assert authenticate_admin(admin_password)["role"] == "admin"
    with pytest.raises(HTTPException) as excinfo:
        authenticate_admin("wrong")
    assert excinfo.value.status_code == 401


def test_authenticate_without_configured_hash(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", "")
    with pytest.raises(HTTPException) as excinfo:
        authenticate_admin("anything")
    assert excinfo.value.status_code == 500


def test_expired_token_rejected():
    token = create_access_token({"sub": "cms_admin"}, expires_delta=timedelta(minutes=-1))
    with pytest.raises(HTTPException) as excinfo:
        verify_token(token)
    assert excinfo.value.status_code == 401


def test_login_sets_cookie(anonymous, admin_password):
    response = anonymous.post("/console/auth/login", json={"password": admin_password})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 3600
    assert TOKEN_COOKIE in response.cookies
    assert verify_token(body["access_token"])["sub"] == "cms_admin"


def test_cookie_authenticates_console(anonymous, admin_password, cms_api):
    anonymous.post("/console/auth/login", json={"password": admin_password})

    assert anonymous.get("/console/auth/session").json()["authenticated"] is True
    assert anonymous.get("/console/videos").status_code == 200

    anonymous.post("/console/auth/logout")
    anonymous.cookies.clear()
    assert anonymous.get("/console/videos").status_code == 401


def test_wrong_password(anonymous, admin_password):
    response = anonymous.post("/console/auth/login", json={"password": "nope"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


def test_login_is_rate_limited(anonymous, admin_password):
    statuses = [
        anonymous.post("/console/auth/login", json={"password": "nope"}).status_code
        for _ in range(6)
    ]
    assert statuses == [401] * 5 + [429]
