"""Version schemas."""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class VersionSummary(BaseModel):
    """Version listing entry (no content)."""
    id: str
    document_id: str
    version: int
    title: str
    change_note: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VersionResponse(VersionSummary):
    """Full snapshot including content."""
    content: str
