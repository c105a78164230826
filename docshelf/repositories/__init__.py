"""Data access repositories."""

from .base import BaseRepository
from .user_repository import UserRepository, AreaRepository
from .document_repository import DocumentRepository
from .category_repository import CategoryRepository
from .share_repository import ShareRepository
from .version_repository import VersionRepository
from .unit_of_work import UnitOfWork

__all__ = [
    "BaseRepository",
    "UserRepository",
    "AreaRepository",
    "DocumentRepository",
    "CategoryRepository",
    "ShareRepository",
    "VersionRepository",
    "UnitOfWork",
]
