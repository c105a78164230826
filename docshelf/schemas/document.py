"""Document schemas.

Patch semantics: a field left out of a DocumentPatch is untouched, a field
present is applied. ``category_id`` may be explicitly ``None`` to unfile the
document; ``title`` and ``content`` may not be ``None``. Presence is read
from pydantic's ``model_fields_set``.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

DEFAULT_DOCUMENT_TITLE = "Untitled document"


def _clean_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Title cannot be empty")
    return v


class DocumentCreate(BaseModel):
    """Schema for creating a document."""
    title: str = Field(default=DEFAULT_DOCUMENT_TITLE, max_length=255)
    content: str = ""
    category_id: Optional[str] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)


class DocumentPatch(BaseModel):
    """Schema for updating a document. Only fields that were sent are applied."""
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None
    category_id: Optional[str] = None
    change_note: Optional[str] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v)

    @field_validator('title', 'content', mode='before')
    @classmethod
    def reject_explicit_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    def has(self, field: str) -> bool:
        """True when *field* was supplied by the caller (even as null)."""
        return field in self.model_fields_set


class DocumentListResponse(BaseModel):
    """A document visible to a user, with the permission they hold on it."""
    id: str
    title: str
    owner_id: str
    category_id: Optional[str] = None
    updated_at: Optional[datetime] = None
    permission: str

    model_config = {"from_attributes": True}


class DeletionReceipt(BaseModel):
    """Returned by soft-delete operations."""
    document_id: str
    deleted_at: datetime
    deleted_by: str
    deletion_reason: Optional[str] = None
