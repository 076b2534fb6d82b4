"""
Pydantic schemas for Property API requests/responses.
"""
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict


class PropertyBase(BaseModel):
    """Base schema for property."""
    name: str = Field(..., min_length=1, max_length=255)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=100)
    notes: str | None = None


class PropertyCreate(PropertyBase):
    """Schema for creating a property. The caller becomes the owner."""
    pass


class PropertyUpdate(BaseModel):
    """Schema for updating a property."""
    name: str | None = Field(None, min_length=1, max_length=255)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=100)
    notes: str | None = None


class PropertyResponse(PropertyBase):
    """Schema for property response."""
    id: int
    owner_user_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
