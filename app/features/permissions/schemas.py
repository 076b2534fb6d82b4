"""
Pydantic schemas for the permission catalog, roles, assignments and
resolved permissions.
"""
from datetime import datetime
from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator

from app.features.permissions.models import PermissionScope


# ============================================================================
# Permission Schemas
# ============================================================================

class PermissionResponse(BaseModel):
    """Catalog entry."""
    id: int
    key: str
    display_name: str
    description: Optional[str] = None
    module: str
    scope: PermissionScope

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Role Schemas
# ============================================================================

class RoleBase(BaseModel):
    """Base role schema."""
    name: str = Field(..., min_length=1, max_length=50, description="Unique role name")
    display_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000, description="Role description")


class RoleCreate(RoleBase):
    """Schema for creating a custom role."""
    permission_keys: List[str] = Field(default_factory=list, description="Catalog keys granted by the role")

    @field_validator('name')
    @classmethod
    def name_upper_underscore(cls, v: str) -> str:
        """Role names are stored upper-case with underscores."""
        if not v.replace('_', '').isalnum():
            raise ValueError('Role name must contain only alphanumeric characters and underscores')
        return v.upper()


class RolePermissionsUpdate(BaseModel):
    """Replace the permission keys of a custom role."""
    permission_keys: List[str]


class RoleResponse(RoleBase):
    """Schema for role response."""
    id: int
    is_system: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleWithPermissions(RoleResponse):
    """Schema for role with permissions."""
    permissions: List[PermissionResponse] = []

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Assignment Schemas
# ============================================================================

class AssignRoleToUser(BaseModel):
    """Grant a role to a user. A missing property_id makes the grant global."""
    role_id: int = Field(..., description="Role ID")
    property_id: Optional[int] = Field(None, description="Property ID (null for a global grant)")


class AssignmentStatusUpdate(BaseModel):
    is_active: bool


class RoleAssignmentResponse(BaseModel):
    id: int
    user_id: int
    role_id: int
    property_id: Optional[int]
    assigned_by_user_id: Optional[int]
    is_active: bool
    role: RoleResponse
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserWithRoles(BaseModel):
    id: int
    name: str
    email: str
    is_active: bool
    is_super_admin: bool
    role_assignments: List[RoleAssignmentResponse] = []

    model_config = ConfigDict(from_attributes=True)


class UserStatusUpdate(BaseModel):
    is_active: bool


# ============================================================================
# Resolved permissions
# ============================================================================

class EffectivePermissionsResponse(BaseModel):
    """The caller's resolved permissions."""
    user_id: int
    is_super_admin: bool
    global_permissions: List[str] = []
    by_property: Dict[int, List[str]] = {}
    accessible_property_ids: Union[Literal["all"], List[int]]
