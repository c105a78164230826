"""Category schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional

DEFAULT_CATEGORY_NAME = "New category"


class CategoryCreate(BaseModel):
    """Schema for creating a category."""
    name: str = DEFAULT_CATEGORY_NAME
    parent_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Category name cannot be empty")
        return v


class CategoryUpdate(BaseModel):
    """Schema for renaming a category."""
    name: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Category name cannot be empty")
        return v


class CategoryListResponse(BaseModel):
    """A category visible to a user: their own, or one shared with them."""
    id: str
    name: str
    parent_id: Optional[str] = None
    owner_id: str
    permission: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CategoryDeletionReceipt(BaseModel):
    category_id: str
    deleted_at: datetime
    deleted_by: str
    deletion_reason: Optional[str] = None
