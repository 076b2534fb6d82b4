"""
Permission resolution.

Turns a user's active role assignments into an effective capability set,
split into a global portion and a per-property portion. Resolution is a pure
read: it is computed fresh on every call and nothing is cached.
"""
from dataclasses import dataclass, field
from typing import Iterable, Literal, Optional, Union
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.permissions import repository
from app.features.permissions.catalog import PROPERTY_VIEW
from app.features.permissions.exceptions import ResolutionFailure
from app.utils import get_logger


log = get_logger(__name__)

ALL_PROPERTIES: Literal["all"] = "all"


@dataclass
class EffectivePermissions:
    """
    Resolved capabilities of one user.

    ``global_permissions`` apply everywhere, including checks without a
    property. ``by_property`` maps a property id to keys granted only there.
    """
    global_permissions: set[str] = field(default_factory=set)
    by_property: dict[int, set[str]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.global_permissions and not self.by_property

    def as_dict(self) -> dict:
        return {
            "global_permissions": sorted(self.global_permissions),
            "by_property": {pid: sorted(keys) for pid, keys in sorted(self.by_property.items())},
        }


async def resolve_permissions(db: AsyncSession, user_id: int) -> EffectivePermissions:
    """
    Resolve the effective permissions of ``user_id``.

    An unknown user resolves to an empty result. Super-admins resolve to the
    whole catalog as global permissions without reading assignments.

    Raises:
        ResolutionFailure: if any underlying read fails
    """
    result = EffectivePermissions()

    try:
        user = await repository.get_user(db, user_id)
        if user is None:
            log.debug("Resolve for unknown user %s: no permissions", user_id)
            return result

        if user.is_super_admin:
            result.global_permissions = set(await repository.get_catalog_keys(db))
            return result

        assignments = await repository.get_active_assignments(db, user_id)
        if not assignments:
            return result

        role_ids = {role_id for role_id, _ in assignments}
        pairs = await repository.get_role_permission_pairs(db, role_ids)
    except SQLAlchemyError as e:
        log.error("Permission resolution failed for user %s: %s", user_id, e)
        raise ResolutionFailure(user_id) from e

    keys_by_role: dict[int, set[str]] = {}
    for role_id, key in pairs:
        keys_by_role.setdefault(role_id, set()).add(key)

    for role_id, property_id in assignments:
        keys = keys_by_role.get(role_id, set())
        if property_id is None:
            result.global_permissions |= keys
        else:
            result.by_property.setdefault(property_id, set()).update(keys)

    log.debug(
        "Resolved user %s: %d global, %d scoped properties",
        user_id, len(result.global_permissions), len(result.by_property),
    )
    return result


def has_permission(perms: EffectivePermissions, key: str, property_id: Optional[int] = None) -> bool:
    """
    Global grants satisfy any check. Scoped grants only satisfy checks that
    name their property; they never leak into checks without a property.
    """
    if key in perms.global_permissions:
        return True
    if property_id is not None and property_id in perms.by_property:
        return key in perms.by_property[property_id]
    return False


def has_any_permission(
    perms: EffectivePermissions,
    keys: Iterable[str],
    property_id: Optional[int] = None,
) -> bool:
    return any(has_permission(perms, key, property_id) for key in keys)


def has_all_permissions(
    perms: EffectivePermissions,
    keys: Iterable[str],
    property_id: Optional[int] = None,
) -> bool:
    return all(has_permission(perms, key, property_id) for key in keys)


def accessible_property_ids(perms: EffectivePermissions) -> Union[Literal["all"], list[int]]:
    """
    Properties the user can view through role assignments.

    Returns ``"all"`` when ``property.view`` is granted globally; the caller
    must treat that as every property. Ownership is not considered here.
    """
    if PROPERTY_VIEW in perms.global_permissions:
        return ALL_PROPERTIES
    return sorted(pid for pid, keys in perms.by_property.items() if PROPERTY_VIEW in keys)
