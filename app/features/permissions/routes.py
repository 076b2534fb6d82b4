"""
Role and assignment administration routes (super-admin only).

Assignments are never deleted through this API: revoking a grant sets
``is_active`` to false, and granting it again reactivates the same row.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.schemas import UserResponse
from app.features.properties.models import Property
from app.features.permissions.models import Permission, Role, RoleAssignment
from app.features.permissions.schemas import (
    PermissionResponse,
    RoleCreate,
    RolePermissionsUpdate,
    RoleWithPermissions,
    AssignRoleToUser,
    AssignmentStatusUpdate,
    RoleAssignmentResponse,
    UserWithRoles,
    UserStatusUpdate,
)
from app.features.permissions.dependencies import require_super_admin
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Helpers
# ============================================================================

async def _get_role(db: AsyncSession, role_id: int) -> Role:
    stmt = select(Role).where(Role.id == role_id).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    role = result.scalar_one_or_none()
    if role is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
    return role


async def _get_assignment(db: AsyncSession, assignment_id: int) -> RoleAssignment:
    stmt = (
        select(RoleAssignment)
        .where(RoleAssignment.id == assignment_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    assignment = result.scalar_one_or_none()
    if assignment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role assignment not found")
    return assignment


async def _get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def _permissions_for_keys(db: AsyncSession, keys: List[str]) -> List[Permission]:
    """Load catalog entries for ``keys``; unknown keys are a client error."""
    wanted = set(keys)
    if not wanted:
        return []
    result = await db.execute(select(Permission).where(Permission.key.in_(wanted)))
    found = list(result.scalars().all())
    missing = wanted - {p.key for p in found}
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown permission keys: {sorted(missing)}",
        )
    return found


# ============================================================================
# Permission catalog
# ============================================================================

@router.get("/permissions", response_model=List[PermissionResponse])
async def list_permissions(
    module: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """List the permission catalog, grouped by module."""
    stmt = select(Permission).order_by(Permission.module, Permission.key)
    if module:
        stmt = stmt.where(Permission.module == module)
    result = await db.execute(stmt)
    return result.scalars().all()


# ============================================================================
# Roles
# ============================================================================

@router.get("/roles", response_model=List[RoleWithPermissions])
async def list_roles(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """List all roles with their permissions."""
    result = await db.execute(select(Role).order_by(Role.name))
    return result.scalars().all()


@router.get("/roles/{role_id}", response_model=RoleWithPermissions)
async def get_role(
    role_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    return await _get_role(db, role_id)


@router.post("/roles", response_model=RoleWithPermissions, status_code=status.HTTP_201_CREATED)
async def create_role(
    role: RoleCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """Create a custom role."""
    permissions = await _permissions_for_keys(db, role.permission_keys)
    db_role = Role(
        name=role.name,
        display_name=role.display_name,
        description=role.description,
        is_system=False,
        permissions=permissions,
    )
    db.add(db_role)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Role with this name already exists",
        )

    log.info("Role %s created by user %s with %d permissions", db_role.name, admin.id, len(permissions))
    return await _get_role(db, db_role.id)


@router.put("/roles/{role_id}/permissions", response_model=RoleWithPermissions)
async def set_role_permissions(
    role_id: int,
    update: RolePermissionsUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """Replace the permissions of a custom role. System roles are immutable."""
    role = await _get_role(db, role_id)
    if role.is_system:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="System roles cannot be modified",
        )

    role.permissions = await _permissions_for_keys(db, update.permission_keys)
    await db.commit()

    log.info("Role %s permissions replaced by user %s", role.name, admin.id)
    return await _get_role(db, role_id)


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """Delete a custom role that has never been assigned."""
    role = await _get_role(db, role_id)
    if role.is_system:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="System roles cannot be deleted",
        )

    result = await db.execute(
        select(func.count()).select_from(RoleAssignment).where(RoleAssignment.role_id == role_id)
    )
    if result.scalar_one() > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Role has assignments; deactivate them instead",
        )

    await db.delete(role)
    await db.commit()
    log.info("Role %s deleted by user %s", role.name, admin.id)


# ============================================================================
# Users and assignments
# ============================================================================

@router.get("/users", response_model=List[UserWithRoles])
async def list_users_with_roles(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """List users with every role assignment, active or not."""
    stmt = (
        select(User)
        .options(selectinload(User.role_assignments))
        .order_by(User.id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


@router.post("/users/{user_id}/roles", response_model=RoleAssignmentResponse)
async def assign_role(
    user_id: int,
    assignment: AssignRoleToUser,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """
    Grant a role to a user, globally or for one property.

    Granting an existing user/role/property combination reactivates it.
    """
    await _get_user(db, user_id)
    await _get_role(db, assignment.role_id)
    if assignment.property_id is not None and await db.get(Property, assignment.property_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")

    property_clause = (
        RoleAssignment.property_id.is_(None)
        if assignment.property_id is None
        else RoleAssignment.property_id == assignment.property_id
    )
    result = await db.execute(
        select(RoleAssignment).where(
            and_(
                RoleAssignment.user_id == user_id,
                RoleAssignment.role_id == assignment.role_id,
                property_clause,
            )
        )
    )
    db_assignment = result.scalars().first()

    if db_assignment is not None:
        db_assignment.is_active = True
        db_assignment.assigned_by_user_id = admin.id
    else:
        db_assignment = RoleAssignment(
            user_id=user_id,
            role_id=assignment.role_id,
            property_id=assignment.property_id,
            assigned_by_user_id=admin.id,
            is_active=True,
        )
        db.add(db_assignment)

    await db.commit()
    log.info(
        "Role %s granted to user %s (property=%s) by user %s",
        assignment.role_id, user_id, assignment.property_id, admin.id,
    )
    return await _get_assignment(db, db_assignment.id)


@router.patch("/role-assignments/{assignment_id}", response_model=RoleAssignmentResponse)
async def set_assignment_status(
    assignment_id: int,
    update: AssignmentStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """Activate or deactivate a role assignment."""
    db_assignment = await _get_assignment(db, assignment_id)
    db_assignment.is_active = update.is_active
    await db.commit()

    log.info(
        "Role assignment %s set active=%s by user %s",
        assignment_id, update.is_active, admin.id,
    )
    return await _get_assignment(db, assignment_id)


@router.patch("/users/{user_id}/status", response_model=UserResponse)
async def set_user_status(
    user_id: int,
    update: UserStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """Activate or deactivate a user account."""
    user = await _get_user(db, user_id)
    if user.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot change your own account status",
        )

    user.is_active = update.is_active
    await db.commit()
    await db.refresh(user)
    return user


@router.patch("/users/{user_id}/super-admin", response_model=UserResponse)
async def toggle_super_admin(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_super_admin()),
):
    """Toggle the super-admin flag of another user."""
    user = await _get_user(db, user_id)
    if user.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot modify your own super-admin status",
        )

    user.is_super_admin = not user.is_super_admin
    await db.commit()
    await db.refresh(user)
    log.info("User %s super-admin=%s set by user %s", user_id, user.is_super_admin, admin.id)
    return user
