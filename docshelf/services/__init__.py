"""Business logic services."""

from .permission_service import PermissionLevel, PermissionResolver
from .sharing_service import SharingService
from .version_service import VersionLedger
from .category_service import CategoryService
from .area_service import AreaService
from .access_facade import AccessFacade

__all__ = [
    "PermissionLevel",
    "PermissionResolver",
    "SharingService",
    "VersionLedger",
    "CategoryService",
    "AreaService",
    "AccessFacade",
]
