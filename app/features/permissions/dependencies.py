"""
Access guard: FastAPI dependencies and property-access helpers.

Precedence for property access is explicit and ordered:
super-admin, then ownership, then role assignments.

Guards resolve permissions once per request and hand the result to the route
as an ``AccessContext`` parameter, so handlers never resolve a second time.
``deny`` is the single place where refusals are logged and raised.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Sequence
from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.dependencies import get_optional_user
from app.features.users.models import User
from app.features.permissions import repository
from app.features.permissions.catalog import PROPERTY_VIEW
from app.features.permissions.exceptions import (
    AuthenticationRequired,
    PermissionDenied,
    ResolutionFailure,
)
from app.features.permissions.resolver import (
    EffectivePermissions,
    resolve_permissions,
    has_permission,
    has_any_permission,
)
from app.utils import get_logger


log = get_logger(__name__)

PropertyIdExtractor = Callable[[Request], Optional[int]]


@dataclass
class AccessContext:
    """What a guard learned about the caller, passed on to the route."""
    user: User
    permissions: EffectivePermissions
    property_id: Optional[int] = None


# ============================================================================
# Property id extractors
# ============================================================================

def _to_int(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def property_id_from_path(name: str = "property_id") -> PropertyIdExtractor:
    """Read the target property id from a path parameter."""
    def extract(request: Request) -> Optional[int]:
        return _to_int(request.path_params.get(name))
    return extract


def property_id_from_query(name: str = "property_id") -> PropertyIdExtractor:
    """Read the target property id from a query string parameter."""
    def extract(request: Request) -> Optional[int]:
        return _to_int(request.query_params.get(name))
    return extract


# ============================================================================
# Property access helpers
# ============================================================================

async def _owns_property(db: AsyncSession, user_id: int, property_id: int) -> bool:
    try:
        return await repository.is_property_owner(db, user_id, property_id)
    except SQLAlchemyError as e:
        log.error("Ownership lookup failed for user %s: %s", user_id, e)
        raise ResolutionFailure(user_id) from e


async def can_access_property(db: AsyncSession, user_id: int, property_id: int) -> bool:
    """
    True if the user is a super-admin, owns the property, or holds
    ``property.view`` globally or for that property.
    """
    try:
        user = await repository.get_user(db, user_id)
    except SQLAlchemyError as e:
        log.error("Property access check failed for user %s: %s", user_id, e)
        raise ResolutionFailure(user_id) from e

    if user is None:
        return False
    if user.is_super_admin:
        return True
    if await _owns_property(db, user_id, property_id):
        return True

    perms = await resolve_permissions(db, user_id)
    return has_permission(perms, PROPERTY_VIEW, property_id)


async def filter_accessible_properties(
    db: AsyncSession,
    user_id: int,
    candidate_ids: Sequence[int],
) -> list[int]:
    """
    Reduce ``candidate_ids`` to the properties the user may access.

    The result is a subset of the input in input order. Super-admins and
    holders of a global ``property.view`` get the input back unchanged.
    """
    candidate_ids = list(candidate_ids)
    try:
        user = await repository.get_user(db, user_id)
    except SQLAlchemyError as e:
        log.error("Property filter failed for user %s: %s", user_id, e)
        raise ResolutionFailure(user_id) from e

    if user is None:
        return []
    if user.is_super_admin:
        return candidate_ids

    perms = await resolve_permissions(db, user_id)
    if PROPERTY_VIEW in perms.global_permissions:
        return candidate_ids

    try:
        owned = await repository.get_owned_property_ids(db, user_id, candidate_ids)
    except SQLAlchemyError as e:
        log.error("Ownership lookup failed for user %s: %s", user_id, e)
        raise ResolutionFailure(user_id) from e

    granted = {pid for pid, keys in perms.by_property.items() if PROPERTY_VIEW in keys}
    allowed = owned | granted
    return [pid for pid in candidate_ids if pid in allowed]


# ============================================================================
# FastAPI Dependencies
# ============================================================================

def deny(user: User, required: str, property_id: Optional[int]) -> PermissionDenied:
    """Log a refusal and build the exception for the caller to raise."""
    log.warning(
        "Access denied: user=%s required=%s property=%s",
        user.id, required, property_id,
    )
    return PermissionDenied(user.id, required, property_id)


def require_permission(key: str, property_id_extractor: Optional[PropertyIdExtractor] = None):
    """
    Dependency factory requiring one permission.

    Usage:
        @router.get("/{property_id}/expenses")
        async def list_expenses(
            access: AccessContext = Depends(
                require_permission("expense.view", property_id_from_path())
            ),
        ):
            ...

    Raises:
        AuthenticationRequired: no authenticated caller (401)
        PermissionDenied: caller lacks ``key`` for the extracted property (403)
    """
    async def permission_dependency(
        request: Request,
        db: AsyncSession = Depends(get_db),
        user: Optional[User] = Depends(get_optional_user),
    ) -> AccessContext:
        if user is None:
            raise AuthenticationRequired()

        perms = await resolve_permissions(db, user.id)
        property_id = property_id_extractor(request) if property_id_extractor else None

        if not has_permission(perms, key, property_id):
            raise deny(user, key, property_id)

        return AccessContext(user=user, permissions=perms, property_id=property_id)

    return permission_dependency


def require_any_permission(keys: Sequence[str], property_id_extractor: Optional[PropertyIdExtractor] = None):
    """Dependency factory requiring at least one of ``keys``."""
    keys = list(keys)

    async def permission_dependency(
        request: Request,
        db: AsyncSession = Depends(get_db),
        user: Optional[User] = Depends(get_optional_user),
    ) -> AccessContext:
        if user is None:
            raise AuthenticationRequired()

        perms = await resolve_permissions(db, user.id)
        property_id = property_id_extractor(request) if property_id_extractor else None

        if not has_any_permission(perms, keys, property_id):
            raise deny(user, " | ".join(keys), property_id)

        return AccessContext(user=user, permissions=perms, property_id=property_id)

    return permission_dependency


def require_super_admin():
    """Dependency factory requiring the super-admin flag. Roles are not consulted."""
    async def super_admin_dependency(
        user: Optional[User] = Depends(get_optional_user),
    ) -> User:
        if user is None:
            raise AuthenticationRequired()
        if not user.is_super_admin:
            raise deny(user, "super_admin", None)
        return user

    return super_admin_dependency


def require_property_access(
    key: str = PROPERTY_VIEW,
    property_id_extractor: PropertyIdExtractor = property_id_from_path(),
):
    """
    Dependency factory for routes addressing one property.

    Checked in order: super-admin, then ownership of the property, then
    ``key`` granted globally or for that property. Permissions are resolved
    once and handed to the route in the returned ``AccessContext``.

    Usage:
        @router.patch("/{property_id}")
        async def update_property(
            access: AccessContext = Depends(require_property_access(PROPERTY_EDIT)),
        ):
            ...
    """
    async def property_access_dependency(
        request: Request,
        db: AsyncSession = Depends(get_db),
        user: Optional[User] = Depends(get_optional_user),
    ) -> AccessContext:
        if user is None:
            raise AuthenticationRequired()

        property_id = property_id_extractor(request)
        if property_id is None:
            raise deny(user, key, property_id)

        perms = await resolve_permissions(db, user.id)
        allowed = (
            user.is_super_admin
            or await _owns_property(db, user.id, property_id)
            or has_permission(perms, key, property_id)
        )
        if not allowed:
            raise deny(user, key, property_id)

        return AccessContext(user=user, permissions=perms, property_id=property_id)

    return property_access_dependency
