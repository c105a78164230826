"""Sharing schemas: per-target outcomes and aggregate results."""

from pydantic import BaseModel
from typing import List, Literal, Optional

SHARED = "shared"
SKIPPED = "skipped"


class ShareItemResult(BaseModel):
    """Outcome for one requested target (an email or an area)."""
    target: str
    status: Literal["shared", "skipped"]
    user_id: Optional[str] = None
    reason: Optional[str] = None


class ShareResult(BaseModel):
    """Result of a sharing operation.

    Counts are cardinalities of the share pairs written, not of rows newly
    inserted, so repeating an operation returns the same numbers.
    """
    shared_document_count: int = 0
    shared_category_count: int = 0
    document_count: int = 0
    target_user_count: int = 0
    target_area_count: int = 0
    items: List[ShareItemResult] = []

    @property
    def skipped(self) -> List[ShareItemResult]:
        return [item for item in self.items if item.status == SKIPPED]


class DocumentShareResponse(BaseModel):
    """A direct share on a document."""
    document_id: str
    shared_with_id: str
    permission: str

    model_config = {"from_attributes": True}
