"""
Read contracts the permission engine consumes from the data layer.

Each function performs one query against the request's session. None of them
write, and none of them catch database errors.
"""
from typing import Iterable, Optional
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.users.models import User
from app.features.properties.models import Property
from app.features.permissions.models import Permission, RoleAssignment, role_permissions


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)


async def get_active_assignments(db: AsyncSession, user_id: int) -> list[tuple[int, Optional[int]]]:
    """Return ``(role_id, property_id)`` for every active assignment of the user."""
    stmt = select(RoleAssignment.role_id, RoleAssignment.property_id).where(
        and_(
            RoleAssignment.user_id == user_id,
            RoleAssignment.is_active.is_(True),
        )
    )
    result = await db.execute(stmt)
    return [(row.role_id, row.property_id) for row in result]


async def get_role_permission_pairs(db: AsyncSession, role_ids: Iterable[int]) -> list[tuple[int, str]]:
    """Return ``(role_id, permission_key)`` for all of the given roles in one query."""
    role_ids = list(role_ids)
    if not role_ids:
        return []
    stmt = (
        select(role_permissions.c.role_id, Permission.key)
        .join(Permission, Permission.id == role_permissions.c.permission_id)
        .where(role_permissions.c.role_id.in_(role_ids))
    )
    result = await db.execute(stmt)
    return [(row.role_id, row.key) for row in result]


async def get_catalog_keys(db: AsyncSession) -> list[str]:
    result = await db.execute(select(Permission.key))
    return list(result.scalars().all())


async def is_property_owner(db: AsyncSession, user_id: int, property_id: int) -> bool:
    stmt = select(Property.id).where(
        and_(Property.id == property_id, Property.owner_user_id == user_id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


async def get_owned_property_ids(
    db: AsyncSession,
    user_id: int,
    candidate_ids: Iterable[int],
) -> set[int]:
    """Return the subset of ``candidate_ids`` owned by the user."""
    candidate_ids = list(candidate_ids)
    if not candidate_ids:
        return set()
    stmt = select(Property.id).where(
        and_(Property.owner_user_id == user_id, Property.id.in_(candidate_ids))
    )
    result = await db.execute(stmt)
    return set(result.scalars().all())
