"""
Pydantic schemas for user-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, Field


class UserUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)


class UserResponse(BaseModel):
    """Schema for user responses."""
    id: int
    email: str | None = None
    name: str
    phone: str | None = None
    is_active: bool
    is_super_admin: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
