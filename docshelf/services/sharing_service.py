"""Sharing service: folder share propagation and single-document shares.

Sharing a category fans out over the whole subtree the actor owns:

    1. collect the subtree (iterative, visited-set, depth-capped)
    2. collect the actor's active documents filed in it
    3. refuse an empty folder
    4. resolve targets (areas and their members, or emails)
    5-7. upsert area shares, user shares and folder shares
    8. report pair counts

All preconditions are checked before the first write, and every write is an
upsert on the table's natural key, so the whole operation can be repeated
safely and returns the same counts each time.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..core.config import settings
from ..core.roles import SharePermission, parse_share_permission
from ..exceptions import (
    EmptyFolderError,
    ForbiddenError,
    InvalidInputError,
    ShareNotFoundError,
)
from ..models import Document, DocumentShare, User
from ..repositories import UnitOfWork
from ..schemas.share import ShareItemResult, ShareResult, SHARED, SKIPPED
from .permission_service import PermissionResolver

logger = logging.getLogger(__name__)

ALL_AREAS_TARGET = "*"


@dataclass
class _Targets:
    """Resolved recipients of a share request."""
    area_ids: List[Optional[str]] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    items: List[ShareItemResult] = field(default_factory=list)


class SharingService:
    """Materializes document, area and folder shares.

    Public methods:
        collect_subtree            -- owned category ids below (and including) a root
        share_category             -- folder share propagation
        share_document             -- one user by email
        share_document_with_users  -- many users by email, best effort
        share_document_with_areas  -- areas (or all areas) and their members
        update_document_share      -- change a direct share's permission
        revoke_document_share      -- remove a direct share
        list_document_shares       -- direct shares of a document
    """

    def __init__(self, uow: UnitOfWork, max_depth: Optional[int] = None):
        self.uow = uow
        self.resolver = PermissionResolver(uow)
        self.max_depth = max_depth or settings.category_max_depth

    # ------------------------------------------------------------------
    # Folder propagation
    # ------------------------------------------------------------------

    def collect_subtree(self, root_id: str, owner_id: str) -> List[str]:
        """Ids of *root_id* and every active descendant owned by *owner_id*.

        Breadth-first worklist. A child owned by someone else is not expanded,
        so its own descendants are never reached. Ids already seen are
        skipped, which makes a cycle in ``parent_id`` harmless. Expansion stops
        after ``max_depth`` levels below the root.
        """
        collected = [root_id]
        visited = {root_id}
        frontier = [root_id]
        depth = 0

        while frontier:
            children = [
                c for c in self.uow.categories.get_owned_children(frontier, owner_id)
                if c.id not in visited
            ]
            if not children:
                break
            if depth >= self.max_depth:
                logger.warning(
                    "Category subtree deeper than max depth, deeper levels skipped",
                    extra={"category_id": root_id, "max_depth": self.max_depth},
                )
                break

            frontier = []
            for child in children:
                if child.id in visited:
                    continue
                visited.add(child.id)
                collected.append(child.id)
                frontier.append(child.id)
            depth += 1

        return collected

    def share_category(
        self,
        actor_id: str,
        category_id: str,
        area_ids: Optional[List[str]] = None,
        user_emails: Optional[List[str]] = None,
        permission: str = SharePermission.VIEW.value,
    ) -> ShareResult:
        """Share a folder, its owned subfolders and their documents.

        Targets are either *user_emails* (when given) or areas: explicit
        *area_ids*, or every area when *area_ids* is None or empty.

        Raises:
            InvalidInputError: bad permission, empty email list, both target kinds, no areas
            CategoryNotFoundError: the category does not exist or is deleted
            ForbiddenError: the actor does not own the category
            EmptyFolderError: the subtree has no active documents
            AreaNotFoundError: an explicit area id does not exist
        """
        level = parse_share_permission(permission).value
        if user_emails is not None and area_ids:
            raise InvalidInputError("Share with areas or with users, not both", field="area_ids")

        category = self.uow.categories.get_by_id(category_id)
        if category.owner_id != actor_id:
            raise ForbiddenError("You do not have permission to share this category")

        category_ids = self.collect_subtree(category_id, actor_id)
        documents = self.uow.documents.get_owned_in_categories(actor_id, category_ids)
        if not documents:
            raise EmptyFolderError(category_id)

        if user_emails is not None:
            targets = self._resolve_email_targets(actor_id, user_emails)
        else:
            targets = self._resolve_area_targets(actor_id, area_ids)

        with self.uow.atomic():
            for document in documents:
                for area_id in targets.area_ids:
                    self.uow.shares.upsert_area_share(document.id, area_id, level)
                for user in targets.users:
                    self.uow.shares.upsert_document_share(document.id, user.id, level)
            for cat_id in category_ids:
                for user in targets.users:
                    self.uow.shares.upsert_category_share(cat_id, user.id, level)

        result = ShareResult(
            shared_document_count=len(documents) * len(targets.users),
            shared_category_count=len(category_ids),
            document_count=len(documents),
            target_user_count=len(targets.users),
            target_area_count=len(targets.area_ids),
            items=targets.items,
        )
        logger.info(
            "Shared category",
            extra={
                "category_id": category_id,
                "actor_id": actor_id,
                "permission": level,
                "categories": result.shared_category_count,
                "documents": result.document_count,
                "users": result.target_user_count,
                "areas": result.target_area_count,
            },
        )
        return result

    # ------------------------------------------------------------------
    # Single-document sharing
    # ------------------------------------------------------------------

    def share_document(self, actor_id: str, document_id: str, email: str, permission: str) -> DocumentShare:
        """Share one document with one user. Unknown email is an error here."""
        level = parse_share_permission(permission).value
        document = self._require_owned_document(actor_id, document_id)
        user = self.uow.users.get_by_email_or_raise(email)
        if user.id == actor_id:
            raise InvalidInputError("You cannot share a document with yourself", field="email")

        with self.uow.atomic():
            share = self.uow.shares.upsert_document_share(document.id, user.id, level)

        logger.info(
            "Shared document with user",
            extra={"document_id": document_id, "user_id": user.id, "permission": level},
        )
        return share

    def share_document_with_users(
        self, actor_id: str, document_id: str, emails: List[str], permission: str
    ) -> ShareResult:
        """Share one document with many users; unknown emails are skipped and reported."""
        level = parse_share_permission(permission).value
        document = self._require_owned_document(actor_id, document_id)
        targets = self._resolve_email_targets(actor_id, emails)

        with self.uow.atomic():
            for user in targets.users:
                self.uow.shares.upsert_document_share(document.id, user.id, level)

        return ShareResult(
            shared_document_count=len(targets.users),
            document_count=1,
            target_user_count=len(targets.users),
            items=targets.items,
        )

    def share_document_with_areas(
        self,
        actor_id: str,
        document_id: str,
        area_ids: Optional[List[str]],
        permission: str,
    ) -> ShareResult:
        """Share one document with areas and their current members.

        ``area_ids`` None or empty stores a single all-areas row, which also
        covers areas created later; members of every existing area get a
        direct share as well.
        """
        level = parse_share_permission(permission).value
        document = self._require_owned_document(actor_id, document_id)

        if area_ids:
            targets = self._resolve_area_targets(actor_id, area_ids)
        else:
            member_areas = self.uow.areas.get_all_ids()
            targets = _Targets(
                area_ids=[None],
                users=self.uow.users.get_area_members(member_areas, exclude_user_id=actor_id),
                items=[ShareItemResult(target=ALL_AREAS_TARGET, status=SHARED)],
            )

        with self.uow.atomic():
            for area_id in targets.area_ids:
                self.uow.shares.upsert_area_share(document.id, area_id, level)
            for user in targets.users:
                self.uow.shares.upsert_document_share(document.id, user.id, level)

        logger.info(
            "Shared document with areas",
            extra={"document_id": document_id, "areas": len(targets.area_ids), "users": len(targets.users)},
        )
        return ShareResult(
            shared_document_count=len(targets.users),
            document_count=1,
            target_user_count=len(targets.users),
            target_area_count=len(targets.area_ids),
            items=targets.items,
        )

    def update_document_share(self, actor_id: str, document_id: str, user_id: str, permission: str) -> DocumentShare:
        level = parse_share_permission(permission).value
        self._require_owned_document(actor_id, document_id)
        share = self.uow.shares.get_document_share(document_id, user_id)
        if not share:
            raise ShareNotFoundError(document_id, user_id)
        with self.uow.atomic():
            share.permission = level
        return share

    def revoke_document_share(self, actor_id: str, document_id: str, user_id: str) -> None:
        self._require_owned_document(actor_id, document_id)
        share = self.uow.shares.get_document_share(document_id, user_id)
        if not share:
            raise ShareNotFoundError(document_id, user_id)
        with self.uow.atomic():
            self.uow.shares.delete_document_share(share)
        logger.info("Revoked document share", extra={"document_id": document_id, "user_id": user_id})

    def list_document_shares(self, actor_id: str, document_id: str) -> List[DocumentShare]:
        """Direct shares of a document. Requires owner or edit permission."""
        self.uow.documents.get_by_id(document_id)
        if not self.resolver.resolve(actor_id, document_id).can_edit():
            raise ForbiddenError("You do not have permission to see who this document is shared with")
        return self.uow.shares.get_document_shares(document_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_owned_document(self, actor_id: str, document_id: str) -> Document:
        document = self.uow.documents.get_by_id(document_id)
        if document.owner_id != actor_id:
            raise ForbiddenError("Only the owner can share this document")
        return document

    def _resolve_email_targets(self, actor_id: str, emails: Optional[Iterable[str]]) -> _Targets:
        """Resolve emails to users, best effort.

        Unknown emails and the actor's own email are reported as skipped
        instead of failing the batch. Duplicates collapse to one target.
        """
        cleaned = [e.strip().lower() for e in (emails or []) if e and e.strip()]
        if not cleaned:
            raise InvalidInputError("At least one email is required", field="user_emails")

        targets = _Targets()
        seen_users: set[str] = set()
        for email in dict.fromkeys(cleaned):
            user = self.uow.users.get_by_email(email)
            if user is None:
                logger.info("Skipping unknown email in share request", extra={"email": email})
                targets.items.append(ShareItemResult(target=email, status=SKIPPED, reason="unknown email"))
                continue
            if user.id == actor_id:
                targets.items.append(
                    ShareItemResult(target=email, status=SKIPPED, user_id=user.id, reason="owner")
                )
                continue
            if user.id in seen_users:
                continue
            seen_users.add(user.id)
            targets.users.append(user)
            targets.items.append(ShareItemResult(target=email, status=SHARED, user_id=user.id))
        return targets

    def _resolve_area_targets(self, actor_id: str, area_ids: Optional[Iterable[str]]) -> _Targets:
        """Explicit areas (validated), or every area when none are given."""
        requested = list(dict.fromkeys(a for a in (area_ids or []) if a))
        if requested:
            for area_id in requested:
                self.uow.areas.get_by_id(area_id)
        else:
            requested = self.uow.areas.get_all_ids()
            if not requested:
                raise InvalidInputError("There are no areas to share with", field="area_ids")

        users = self.uow.users.get_area_members(requested, exclude_user_id=actor_id)
        return _Targets(
            area_ids=list(requested),
            users=users,
            items=[ShareItemResult(target=area_id, status=SHARED) for area_id in requested],
        )
