"""Access-control facade: the single entry point for callers.

Wraps one Session in a UnitOfWork and composes the resolver, the sharing
service, the version ledger and the category/area services. Document reads
and writes are gated here through the resolver; administrative overrides
(delete by an admin, restore) are layered on top by role.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.roles import SharePermission, is_admin_role
from ..exceptions import DocumentDeletedError, ForbiddenError
from ..models import Area, Category, Document, DocumentShare, DocumentVersion, User, UserPermission
from ..repositories import UnitOfWork
from ..schemas import (
    AreaCreate,
    AreaSummary,
    AreaUpdate,
    CategoryCreate,
    CategoryDeletionReceipt,
    CategoryListResponse,
    CategoryUpdate,
    DeletionReceipt,
    DocumentCreate,
    DocumentListResponse,
    DocumentPatch,
    RoleAssignment,
    ShareResult,
)
from .area_service import AreaService
from .category_service import CategoryService
from .permission_service import PermissionLevel, PermissionResolver, can_create_content
from .sharing_service import SharingService
from .version_service import VersionLedger

logger = logging.getLogger(__name__)


class AccessFacade:
    """Document, category, sharing, version and area operations.

    Every method takes the acting user's id first and raises DocShelfError
    subclasses for anything the caller did wrong.
    """

    def __init__(self, db: Session, max_depth: Optional[int] = None):
        self.uow = UnitOfWork(db)
        self.resolver = PermissionResolver(self.uow)
        self.sharing = SharingService(self.uow, max_depth=max_depth or settings.category_max_depth)
        self.ledger = VersionLedger(self.uow)
        self.categories = CategoryService(self.uow)
        self.areas = AreaService(self.uow)

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def resolve_permission(self, user_id: str, document_id: str) -> PermissionLevel:
        return self.resolver.resolve(user_id, document_id)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(self, user_id: str, data: DocumentCreate) -> Document:
        """Create a document, optionally filed in one of the creator's categories.

        No version is written here; the first edit that changes title or
        content becomes version 1.
        """
        user = self.uow.users.get_by_id(user_id)
        if not can_create_content(user):
            raise ForbiddenError("You do not have permission to create documents")
        if data.category_id:
            self.categories.get_owned_category(user_id, data.category_id)

        with self.uow.atomic():
            document = self.uow.documents.create(
                owner_id=user_id,
                title=data.title,
                content=data.content,
                category_id=data.category_id,
            )

        logger.info("Created document", extra={"document_id": document.id, "owner_id": user_id})
        return document

    def get_document(self, user_id: str, document_id: str) -> Document:
        document = self.uow.documents.get_by_id(document_id)
        if not self.resolver.resolve_for(user_id, document).can_read():
            raise ForbiddenError("You do not have access to this document")
        return document

    def list_documents(self, user_id: str) -> List[DocumentListResponse]:
        """Documents the user owns, has been shared, or sees through their area.

        Each document appears once, with the level the resolver's precedence
        gives it: owner, then direct share, then area share.
        """
        user = self.uow.users.get_by_id(user_id)
        levels = {}
        for document in self.uow.documents.get_by_owner(user_id):
            levels[document.id] = PermissionLevel.OWNER.value
        for share in self.uow.shares.get_shares_for_user(user_id):
            levels.setdefault(share.document_id, share.permission)
        if user.area_id:
            for document_id in self.uow.shares.get_document_ids_shared_with_area(user.area_id):
                if document_id not in levels:
                    share = self.uow.shares.find_area_share_for_member(document_id, user.area_id)
                    levels[document_id] = share.permission

        return [
            DocumentListResponse(
                id=document.id,
                title=document.title,
                owner_id=document.owner_id,
                category_id=document.category_id,
                updated_at=document.updated_at,
                permission=levels[document.id],
            )
            for document in self.uow.documents.get_by_ids(levels.keys())
        ]

    def update_document(self, user_id: str, document_id: str, patch: DocumentPatch) -> Document:
        """Apply a patch. Title/content changes go through the version ledger.

        Raises:
            ForbiddenError: no edit permission, or a non-owner moving the document
            DocumentDeletedError: the document is in the trash
        """
        document = self.uow.documents.get_including_deleted_or_raise(document_id)
        level = self.resolver.resolve_for(user_id, document)
        if not level.can_edit():
            raise ForbiddenError("You do not have permission to edit this document")
        if document.is_deleted:
            raise DocumentDeletedError(document_id)

        move = patch.has("category_id") and patch.category_id != document.category_id
        if move:
            if not level.is_owner():
                raise ForbiddenError("Only the owner can move a document to another category")
            if patch.category_id is not None:
                self.categories.get_owned_category(user_id, patch.category_id)

        with self.uow.atomic():
            self.ledger.record_edit(
                document_id,
                user_id,
                title=patch.title if patch.has("title") else None,
                content=patch.content if patch.has("content") else None,
                change_note=patch.change_note,
            )
            if move:
                document.category_id = patch.category_id
                self.uow.db.flush()

        return document

    def delete_document(self, user_id: str, document_id: str, reason: Optional[str] = None) -> DeletionReceipt:
        """Move a document to the trash. Owner, admin or superuser."""
        document = self.uow.documents.get_by_id(document_id)
        user = self.uow.users.get_by_id(user_id)
        if document.owner_id != user_id and not is_admin_role(user.role):
            raise ForbiddenError("Only the owner or an admin can delete this document")

        with self.uow.atomic():
            self.uow.documents.soft_delete(document, deleted_by=user_id, reason=reason)

        logger.info("Deleted document", extra={"document_id": document_id, "user_id": user_id})
        return DeletionReceipt(
            document_id=document.id,
            deleted_at=document.deleted_at,
            deleted_by=user_id,
            deletion_reason=reason,
        )

    def restore_document(self, document_id: str, restorer_id: str) -> Document:
        """Bring a document back from the trash. Admin or superuser.

        A document whose category was deleted in the meantime comes back unfiled.
        """
        restorer = self.uow.users.get_by_id(restorer_id)
        if not is_admin_role(restorer.role):
            raise ForbiddenError("Only admins can restore deleted documents")

        with self.uow.atomic():
            document = self.uow.documents.restore(document_id)
            if document.category_id and not self.uow.categories.get_by_id_optional(document.category_id):
                document.category_id = None
                self.uow.db.flush()

        logger.info("Restored document", extra={"document_id": document_id, "user_id": restorer_id})
        return document

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------

    def share_document(
        self, user_id: str, document_id: str, email: str, permission: str = SharePermission.VIEW.value
    ) -> DocumentShare:
        return self.sharing.share_document(user_id, document_id, email, permission)

    def share_document_with_users(
        self, user_id: str, document_id: str, emails: List[str], permission: str = SharePermission.VIEW.value
    ) -> ShareResult:
        return self.sharing.share_document_with_users(user_id, document_id, emails, permission)

    def share_document_with_areas(
        self,
        user_id: str,
        document_id: str,
        area_ids: Optional[List[str]] = None,
        permission: str = SharePermission.VIEW.value,
    ) -> ShareResult:
        return self.sharing.share_document_with_areas(user_id, document_id, area_ids, permission)

    def update_document_share(self, user_id: str, document_id: str, target_user_id: str, permission: str) -> DocumentShare:
        return self.sharing.update_document_share(user_id, document_id, target_user_id, permission)

    def revoke_document_share(self, user_id: str, document_id: str, target_user_id: str) -> None:
        self.sharing.revoke_document_share(user_id, document_id, target_user_id)

    def list_document_shares(self, user_id: str, document_id: str) -> List[DocumentShare]:
        return self.sharing.list_document_shares(user_id, document_id)

    def share_category_with_areas(
        self,
        user_id: str,
        category_id: str,
        area_ids: Optional[List[str]] = None,
        permission: str = SharePermission.VIEW.value,
    ) -> ShareResult:
        """Share a folder subtree with areas; no ids means every area."""
        return self.sharing.share_category(user_id, category_id, area_ids=area_ids, permission=permission)

    def share_category_with_users(
        self, user_id: str, category_id: str, emails: List[str], permission: str = SharePermission.VIEW.value
    ) -> ShareResult:
        """Share a folder subtree with users by email. The list may not be empty."""
        return self.sharing.share_category(user_id, category_id, user_emails=list(emails or []), permission=permission)

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def list_versions(self, user_id: str, document_id: str) -> List[DocumentVersion]:
        self._require_level(user_id, document_id, edit=False)
        return self.ledger.list_versions(document_id)

    def get_version(self, user_id: str, document_id: str, version: int) -> DocumentVersion:
        self._require_level(user_id, document_id, edit=False)
        return self.ledger.get_version(document_id, version)

    def restore_to_version(self, user_id: str, document_id: str, version: int) -> Document:
        self._require_level(user_id, document_id, edit=True)
        return self.ledger.restore_to_version(document_id, version, user_id)

    def update_version_note(self, user_id: str, document_id: str, version: int, note: Optional[str]) -> DocumentVersion:
        self._require_level(user_id, document_id, edit=True)
        return self.ledger.update_change_note(document_id, version, note)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def create_category(self, user_id: str, data: CategoryCreate) -> Category:
        return self.categories.create_category(user_id, data)

    def update_category(self, user_id: str, category_id: str, data: CategoryUpdate) -> Category:
        return self.categories.update_category(user_id, category_id, data)

    def delete_category(self, user_id: str, category_id: str, reason: Optional[str] = None) -> CategoryDeletionReceipt:
        return self.categories.delete_category(user_id, category_id, reason)

    def restore_category(self, category_id: str, restorer_id: str) -> Category:
        return self.categories.restore_category(category_id, restorer_id)

    def list_categories(self, user_id: str) -> List[CategoryListResponse]:
        return self.categories.list_categories(user_id)

    # ------------------------------------------------------------------
    # Areas and roles
    # ------------------------------------------------------------------

    def create_area(self, user_id: str, data: AreaCreate) -> Area:
        return self.areas.create_area(user_id, data)

    def update_area(self, user_id: str, area_id: str, data: AreaUpdate) -> Area:
        return self.areas.update_area(user_id, area_id, data)

    def delete_area(self, user_id: str, area_id: str) -> int:
        return self.areas.delete_area(user_id, area_id)

    def list_areas(self) -> List[AreaSummary]:
        return self.areas.list_areas()

    def assign_user_role(self, user_id: str, assignment: RoleAssignment) -> User:
        return self.areas.assign_user_role(user_id, assignment)

    def add_user_to_area(self, user_id: str, email: str) -> User:
        return self.areas.add_user_to_area(user_id, email)

    def grant_user_permission(self, user_id: str, target_user_id: str, permission: str) -> UserPermission:
        return self.areas.grant_user_permission(user_id, target_user_id, permission)

    def revoke_user_permission(self, user_id: str, target_user_id: str, permission: str) -> bool:
        return self.areas.revoke_user_permission(user_id, target_user_id, permission)

    def list_area_users(self, user_id: str, area_id: Optional[str] = None) -> List[User]:
        return self.areas.list_area_users(user_id, area_id)

    def _require_level(self, user_id: str, document_id: str, edit: bool) -> PermissionLevel:
        level = self.resolver.resolve(user_id, document_id)
        allowed = level.can_edit() if edit else level.can_read()
        if not allowed:
            raise ForbiddenError("You do not have permission for this document's versions")
        return level
