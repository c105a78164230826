"""Pydantic schemas for service inputs and results."""

from .document import DocumentCreate, DocumentPatch, DocumentListResponse, DeletionReceipt
from .category import CategoryCreate, CategoryUpdate, CategoryListResponse, CategoryDeletionReceipt
from .share import ShareItemResult, ShareResult, DocumentShareResponse
from .version import VersionSummary, VersionResponse
from .area import AreaCreate, AreaUpdate, AreaSummary, RoleAssignment

__all__ = [
    "DocumentCreate", "DocumentPatch", "DocumentListResponse", "DeletionReceipt",
    "CategoryCreate", "CategoryUpdate", "CategoryListResponse", "CategoryDeletionReceipt",
    "ShareItemResult", "ShareResult", "DocumentShareResponse",
    "VersionSummary", "VersionResponse",
    "AreaCreate", "AreaUpdate", "AreaSummary", "RoleAssignment",
]
