"""
User self-service routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.schemas import UserResponse, UserUpdate
from app.features.users.dependencies import get_current_user
from app.features.permissions.resolver import resolve_permissions, accessible_property_ids
from app.features.permissions.schemas import EffectivePermissionsResponse


router = APIRouter(tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    user: Annotated[User, Depends(get_current_user)]
):
    """Get current authenticated user's profile."""
    return user


@router.patch("/me", response_model=UserResponse)
async def update_current_user_profile(
    update_data: UserUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update current user's profile."""
    for key, value in update_data.model_dump(exclude_unset=True).items():
        setattr(user, key, value)

    await db.commit()
    await db.refresh(user)
    return user


@router.get("/me/permissions", response_model=EffectivePermissionsResponse)
async def get_my_permissions(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """
    Resolved permissions of the caller, for clients that adapt their UI.

    ``accessible_property_ids`` is ``"all"`` when property.view is global.
    Owned properties are not listed there; see ``GET /properties``.
    """
    perms = await resolve_permissions(db, user.id)
    return EffectivePermissionsResponse(
        user_id=user.id,
        is_super_admin=user.is_super_admin,
        accessible_property_ids=accessible_property_ids(perms),
        **perms.as_dict(),
    )
