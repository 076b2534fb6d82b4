# tests/test_auth.py

"""
Tests for bearer token handling in the identity adapter.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.features.permissions.exceptions import AuthenticationRequired
from app.features.users.auth import verify_jwt_token


def _token(**claims) -> str:
    return jwt.encode(claims, "signature-is-checked-by-appwrite-not-here", algorithm="HS256")


def test_valid_token_returns_payload():
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    payload = verify_jwt_token(_token(userId="aw-123", exp=exp))
    assert payload["userId"] == "aw-123"


def test_expired_token():
    exp = datetime.now(timezone.utc) - timedelta(minutes=5)
    with pytest.raises(AuthenticationRequired) as exc_info:
        verify_jwt_token(_token(userId="aw-123", exp=exp))
    assert exc_info.value.reason == AuthenticationRequired.TOKEN_EXPIRED


def test_garbage_token():
    with pytest.raises(AuthenticationRequired) as exc_info:
        verify_jwt_token("definitely-not-a-jwt")
    assert exc_info.value.reason == AuthenticationRequired.INVALID_TOKEN


@pytest.mark.asyncio
async def test_first_login_provisions_user(client, monkeypatch):
    from app.main import app
    from app.features.users.dependencies import get_optional_user

    app.dependency_overrides.pop(get_optional_user)

    async def fake_appwrite_user(appwrite_user_id):
        return {"email": "new@example.com", "name": "New Person"}

    monkeypatch.setattr("app.features.users.dependencies.get_appwrite_user", fake_appwrite_user)
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    headers = {"Authorization": f"Bearer {_token(userId='aw-new', exp=exp)}"}

    response = await client.get("/users/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["email"] == "new@example.com"
    assert response.json()["is_super_admin"] is False
    assert response.json()["last_login_at"] is not None


@pytest.mark.asyncio
async def test_identities_without_email_are_provisioned(client, monkeypatch):
    from app.main import app
    from app.features.users.dependencies import get_optional_user

    app.dependency_overrides.pop(get_optional_user)

    async def fake_appwrite_user(appwrite_user_id):
        return {"email": "", "name": appwrite_user_id}

    monkeypatch.setattr("app.features.users.dependencies.get_appwrite_user", fake_appwrite_user)
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)

    for subject in ("aw-phone-1", "aw-phone-2"):
        headers = {"Authorization": f"Bearer {_token(userId=subject, exp=exp)}"}
        response = await client.get("/users/me", headers=headers)

        assert response.status_code == 200
        assert response.json()["email"] is None
        assert response.json()["name"] == subject


@pytest.mark.asyncio
async def test_disabled_account_is_rejected(client, make):
    from app.main import app
    from app.features.users.dependencies import get_optional_user

    app.dependency_overrides.pop(get_optional_user)
    user = await make.user("gone", active=False)
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    headers = {"Authorization": f"Bearer {_token(userId=user.appwrite_id, exp=exp)}"}

    response = await client.get("/users/me", headers=headers)

    assert response.status_code == 401
    assert response.json()["reason"] == "account_disabled"


@pytest.mark.asyncio
async def test_token_without_subject_is_rejected(client):
    from app.main import app
    from app.features.users.dependencies import get_optional_user

    app.dependency_overrides.pop(get_optional_user)

    response = await client.get("/users/me", headers={"Authorization": f"Bearer {_token(sub='x')}"})

    assert response.status_code == 401
    assert response.json()["reason"] == "invalid_token"
