"""
Property routes guarded by ownership and role assignments.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.dependencies import get_current_user
from app.features.users.models import User
from app.features.properties.models import Property
from app.features.properties.schemas import PropertyCreate, PropertyUpdate, PropertyResponse
from app.features.permissions.catalog import PROPERTY_CREATE, PROPERTY_EDIT
from app.features.permissions.dependencies import (
    AccessContext,
    filter_accessible_properties,
    require_permission,
    require_property_access,
)
from app.utils import get_logger

log = get_logger(__name__)
router = APIRouter()


async def _get_property(db: AsyncSession, property_id: int) -> Property:
    prop = await db.scalar(select(Property).where(Property.id == property_id))
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


@router.post("", response_model=PropertyResponse, status_code=201)
async def create_property(
    property_data: PropertyCreate,
    db: AsyncSession = Depends(get_db),
    access: AccessContext = Depends(require_permission(PROPERTY_CREATE)),
):
    """
    Create a property owned by the caller.

    Requires a global ``property.create`` grant.
    """
    prop = Property(**property_data.model_dump(), owner_user_id=access.user.id)
    db.add(prop)
    await db.commit()
    await db.refresh(prop)
    log.info("Property %s created by user %s", prop.id, access.user.id)
    return prop


@router.get("", response_model=list[PropertyResponse])
async def list_properties(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    List every property the caller can access: owned, granted through a role
    assignment, or all of them for super-admins and global viewers.
    """
    result = await db.execute(select(Property.id).order_by(Property.id))
    accessible = await filter_accessible_properties(db, current_user.id, list(result.scalars().all()))
    if not accessible:
        return []

    result = await db.execute(
        select(Property).where(Property.id.in_(accessible)).order_by(Property.id)
    )
    return result.scalars().all()


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: int,
    db: AsyncSession = Depends(get_db),
    access: AccessContext = Depends(require_property_access()),
):
    """Retrieve a property the caller can access."""
    return await _get_property(db, property_id)


@router.patch("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: int,
    update_data: PropertyUpdate,
    db: AsyncSession = Depends(get_db),
    access: AccessContext = Depends(require_property_access(PROPERTY_EDIT)),
):
    """
    Update a property. Owners may always edit; anyone else needs
    ``property.edit`` for this property.
    """
    prop = await _get_property(db, property_id)

    for key, value in update_data.model_dump(exclude_unset=True).items():
        setattr(prop, key, value)

    await db.commit()
    await db.refresh(prop)
    log.info("Property %s updated by user %s", prop.id, access.user.id)
    return prop
