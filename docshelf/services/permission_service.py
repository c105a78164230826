"""Permission resolution: ordered rules, first match wins.

This is the ONE place where document access rules are defined. Everything
else in the system asks the resolver.

Design:
    - Levels: none < view < edit < owner
    - Rules are evaluated in the order of ``DOCUMENT_RULES``; the first rule
      returning a level decides, later rules are never consulted
    - Direct user shares outrank area shares, which outrank no access
    - Organisational role (admin/superuser) grants nothing here; administrative
      overrides live in the services that need them (delete, restore)
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from ..core.roles import CREATE_DOCUMENTS, is_admin_role
from ..models import Document, User
from ..repositories import UnitOfWork


class PermissionLevel(str, Enum):
    """Effective permission of a user on a document or category."""
    NONE = "none"
    VIEW = "view"
    EDIT = "edit"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def can_read(self) -> bool:
        return self is not PermissionLevel.NONE

    def can_edit(self) -> bool:
        return self in (PermissionLevel.EDIT, PermissionLevel.OWNER)

    def is_owner(self) -> bool:
        return self is PermissionLevel.OWNER


_RANK = {
    PermissionLevel.NONE: 0,
    PermissionLevel.VIEW: 1,
    PermissionLevel.EDIT: 2,
    PermissionLevel.OWNER: 3,
}


# A rule inspects (uow, user, document) and returns a level, or None to defer.
Rule = Callable[[UnitOfWork, Optional[User], Document], Optional[PermissionLevel]]


def owner_rule(uow: UnitOfWork, user: Optional[User], document: Document) -> Optional[PermissionLevel]:
    if user is not None and document.owner_id == user.id:
        return PermissionLevel.OWNER
    return None


def direct_share_rule(uow: UnitOfWork, user: Optional[User], document: Document) -> Optional[PermissionLevel]:
    if user is None:
        return None
    share = uow.shares.get_document_share(document.id, user.id)
    if share:
        return PermissionLevel(share.permission)
    return None


def area_share_rule(uow: UnitOfWork, user: Optional[User], document: Document) -> Optional[PermissionLevel]:
    """Members of an area see documents shared with their area or with all areas."""
    if user is None or not user.area_id:
        return None
    share = uow.shares.find_area_share_for_member(document.id, user.area_id)
    if share:
        return PermissionLevel(share.permission)
    return None


DOCUMENT_RULES: tuple[Rule, ...] = (
    owner_rule,
    direct_share_rule,
    area_share_rule,
)


class PermissionResolver:
    """Computes effective permissions. Read-only; never writes."""

    def __init__(self, uow: UnitOfWork, rules: tuple[Rule, ...] = DOCUMENT_RULES):
        self.uow = uow
        self.rules = rules

    def resolve(self, user_id: str, document_id: str) -> PermissionLevel:
        """Effective permission of *user_id* on *document_id*.

        Soft-deleted documents still resolve; callers decide whether the
        operation is allowed on a deleted document.

        Raises:
            DocumentNotFoundError: if the document does not exist at all.
        """
        document = self.uow.documents.get_including_deleted_or_raise(document_id)
        return self.resolve_for(user_id, document)

    def resolve_for(self, user_id: str, document: Document) -> PermissionLevel:
        """Same as resolve() for an already loaded document."""
        user = self.uow.users.get_by_id_optional(user_id)
        for rule in self.rules:
            level = rule(self.uow, user, document)
            if level is not None:
                return level
        return PermissionLevel.NONE

    def resolve_category(self, user_id: str, category_id: str) -> PermissionLevel:
        """Owner, else the folder share permission, else none.

        Folder shares are informational: they never grant document access.
        """
        category = self.uow.categories.get_by_id(category_id)
        if category.owner_id == user_id:
            return PermissionLevel.OWNER
        share = self.uow.shares.get_category_share(category_id, user_id)
        if share:
            return PermissionLevel(share.permission)
        return PermissionLevel.NONE


def can_create_content(user: User) -> bool:
    """Admins and superusers create freely; normal users need the grant."""
    return is_admin_role(user.role) or CREATE_DOCUMENTS in user.granted_permissions
