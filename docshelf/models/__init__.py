"""Database models."""

from .user import User, Area, UserPermission
from .document import Document
from .category import Category
from .share import DocumentShare, AreaDocumentShare, CategoryShare
from .version import DocumentVersion

__all__ = [
    "User", "Area", "UserPermission",
    "Document", "Category",
    "DocumentShare", "AreaDocumentShare", "CategoryShare",
    "DocumentVersion",
]
