"""Area and role-assignment schemas."""

from pydantic import BaseModel, field_validator
from typing import Optional

from ..core.roles import UserRole


class AreaCreate(BaseModel):
    """Schema for creating an area."""
    name: str
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Area name cannot be empty")
        return v


class AreaUpdate(AreaCreate):
    """Schema for renaming an area or changing its description."""
    pass


class AreaSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    member_count: int = 0


class RoleAssignment(BaseModel):
    """Assign a user (by email) to an area with a role.

    ``area_id=None`` removes the user from their current area.
    """
    user_email: str
    area_id: Optional[str] = None
    role: UserRole = UserRole.NORMAL
    is_leader: bool = False
