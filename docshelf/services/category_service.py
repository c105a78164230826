"""Category service: the per-user folder tree.

Categories are personal: only the owner creates children, renames or deletes
them. Folder shares written by the sharing service make a category visible in
the recipient's listing but grant nothing on its documents.
"""

import logging
from typing import List, Optional

from ..core.roles import is_admin_role
from ..exceptions import (
    CategoryNameConflictError,
    CategoryNotEmptyError,
    ForbiddenError,
)
from ..models import Category
from ..repositories import UnitOfWork
from ..schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryListResponse,
    CategoryDeletionReceipt,
)
from .permission_service import PermissionLevel, can_create_content

logger = logging.getLogger(__name__)


class CategoryService:
    """Create, rename, delete, restore and list categories."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def create_category(self, user_id: str, data: CategoryCreate) -> Category:
        user = self.uow.users.get_by_id(user_id)
        if not can_create_content(user):
            raise ForbiddenError("You do not have permission to create categories")

        if data.parent_id:
            self.get_owned_category(user_id, data.parent_id)
        self._check_name_free(user_id, data.parent_id, data.name)

        with self.uow.atomic():
            category = self.uow.categories.create(user_id, data.name, data.parent_id)

        logger.info(
            "Created category",
            extra={"category_id": category.id, "owner_id": user_id, "parent_id": data.parent_id},
        )
        return category

    def update_category(self, user_id: str, category_id: str, data: CategoryUpdate) -> Category:
        """Rename a category. Names stay unique among siblings."""
        category = self.get_owned_category(user_id, category_id)
        if data.name == category.name:
            return category
        self._check_name_free(user_id, category.parent_id, data.name, exclude_id=category.id)

        with self.uow.atomic():
            category.name = data.name

        logger.info("Renamed category", extra={"category_id": category_id})
        return category

    def delete_category(self, user_id: str, category_id: str, reason: Optional[str] = None) -> CategoryDeletionReceipt:
        """Soft-delete an empty category.

        Raises:
            CategoryNotEmptyError: active documents or subcategories remain
        """
        category = self.get_owned_category(user_id, category_id)
        documents = self.uow.documents.count_active_in_category(category_id)
        children = self.uow.categories.count_active_children(category_id)
        if documents or children:
            raise CategoryNotEmptyError(category_id, documents, children)

        with self.uow.atomic():
            self.uow.categories.soft_delete(category, deleted_by=user_id, reason=reason)

        logger.info("Deleted category", extra={"category_id": category_id, "user_id": user_id})
        return CategoryDeletionReceipt(
            category_id=category.id,
            deleted_at=category.deleted_at,
            deleted_by=user_id,
            deletion_reason=reason,
        )

    def restore_category(self, category_id: str, restorer_id: str) -> Category:
        """Bring a category back from the trash. Admins and superusers only.

        Raises:
            CategoryNameConflictError: an active sibling took the name meanwhile
        """
        restorer = self.uow.users.get_by_id(restorer_id)
        if not is_admin_role(restorer.role):
            raise ForbiddenError("Only admins can restore deleted categories")

        category = self.uow.categories.get_deleted_or_raise(category_id)
        self._check_name_free(category.owner_id, category.parent_id, category.name, exclude_id=category.id)

        with self.uow.atomic():
            self.uow.categories.restore(category)

        logger.info("Restored category", extra={"category_id": category_id, "user_id": restorer_id})
        return category

    def list_categories(self, user_id: str) -> List[CategoryListResponse]:
        """The user's own categories followed by categories shared with them."""
        result = [
            self._to_response(category, PermissionLevel.OWNER.value)
            for category in self.uow.categories.get_by_owner(user_id)
        ]

        shares = {
            share.category_id: share.permission
            for share in self.uow.shares.get_category_shares_for_user(user_id)
        }
        for category in self.uow.categories.get_by_ids(shares.keys()):
            if category.owner_id == user_id:
                continue
            result.append(self._to_response(category, shares[category.id]))
        return result

    def get_owned_category(self, user_id: str, category_id: str) -> Category:
        """Active category owned by *user_id*.

        Raises:
            CategoryNotFoundError: missing or deleted
            ForbiddenError: owned by someone else
        """
        category = self.uow.categories.get_by_id(category_id)
        if category.owner_id != user_id:
            raise ForbiddenError("You do not own this category")
        return category

    def _check_name_free(
        self, owner_id: str, parent_id: Optional[str], name: str, exclude_id: Optional[str] = None
    ) -> None:
        if self.uow.categories.find_sibling_by_name(owner_id, parent_id, name, exclude_id):
            raise CategoryNameConflictError(name, parent_id)

    @staticmethod
    def _to_response(category: Category, permission: str) -> CategoryListResponse:
        return CategoryListResponse(
            id=category.id,
            name=category.name,
            parent_id=category.parent_id,
            owner_id=category.owner_id,
            permission=permission,
            created_at=category.created_at,
        )
