"""
FastAPI dependencies that identify the caller.

These only answer "who is calling". Capability checks live in
``app.features.permissions.dependencies``.
"""
from typing import Annotated, Optional
from datetime import datetime, timezone
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.auth import verify_jwt_token, get_appwrite_user
from app.features.permissions.exceptions import AuthenticationRequired
from app.utils import get_logger


log = get_logger(__name__)
security = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Optional[User]:
    """
    Return the authenticated user, or None when no bearer token was sent.

    A token that is present but unusable raises AuthenticationRequired. Users
    seen for the first time are provisioned from Appwrite.
    """
    if credentials is None:
        return None

    payload = verify_jwt_token(credentials.credentials)
    appwrite_user_id = payload.get("userId")
    if not appwrite_user_id:
        raise AuthenticationRequired(AuthenticationRequired.INVALID_TOKEN)

    result = await db.execute(select(User).where(User.appwrite_id == appwrite_user_id))
    user = result.scalar_one_or_none()

    if user is None:
        appwrite_user = await get_appwrite_user(appwrite_user_id)
        user = User(
            appwrite_id=appwrite_user_id,
            email=appwrite_user.get("email") or None,
            name=appwrite_user.get("name", "Unknown"),
        )
        db.add(user)
        log.info("Provisioned local user for %s", appwrite_user_id)

    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)

    if not user.is_active:
        raise AuthenticationRequired(AuthenticationRequired.ACCOUNT_DISABLED)

    return user


async def get_current_user(
    user: Annotated[Optional[User], Depends(get_optional_user)]
) -> User:
    """
    Require an authenticated caller.

    Usage:
        @router.get("/me")
        async def get_me(user: User = Depends(get_current_user)):
            return user
    """
    if user is None:
        raise AuthenticationRequired(AuthenticationRequired.MISSING_CREDENTIALS)
    return user
