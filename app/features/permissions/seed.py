"""
Write the permission catalog and the system roles to the database.

Idempotent: existing catalog entries are kept, and system roles are brought
back in line with ``catalog.SYSTEM_ROLES``.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.permissions.catalog import PERMISSIONS, SYSTEM_ROLES
from app.features.permissions.models import Permission, Role
from app.utils import get_logger


log = get_logger(__name__)


async def seed_permissions(db: AsyncSession) -> dict[str, Permission]:
    """
    Create missing catalog permissions.

    Returns:
        Dictionary mapping permission keys to Permission objects
    """
    result = await db.execute(select(Permission))
    permissions_map = {p.key: p for p in result.scalars().all()}

    created = 0
    for key, display_name, module, scope in PERMISSIONS:
        if key in permissions_map:
            continue
        permission = Permission(key=key, display_name=display_name, module=module, scope=scope)
        db.add(permission)
        permissions_map[key] = permission
        created += 1

    await db.commit()
    log.info("Permission catalog: %d created, %d total", created, len(permissions_map))
    return permissions_map


async def seed_roles(db: AsyncSession, permissions_map: dict[str, Permission]) -> dict[str, Role]:
    """Create or update the system roles."""
    result = await db.execute(select(Role).where(Role.name.in_(SYSTEM_ROLES.keys())))
    roles = {r.name: r for r in result.scalars().all()}

    for name, (display_name, description, keys) in SYSTEM_ROLES.items():
        role = roles.get(name)
        if role is None:
            role = Role(name=name, is_system=True)
            db.add(role)
            roles[name] = role
            log.info("Created system role %s", name)

        role.display_name = display_name
        role.description = description
        role.is_system = True
        role.permissions = [permissions_map[key] for key in keys]

    await db.commit()
    return roles


async def seed_all(db: AsyncSession) -> dict[str, Role]:
    permissions_map = await seed_permissions(db)
    return await seed_roles(db, permissions_map)
