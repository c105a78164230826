"""Area and role administration.

Superusers manage every area and every role. Admins manage the members of
their own area only, and can hand out nothing above the normal role.
"""

import logging
from typing import List, Optional

from ..core.roles import CREATE_DOCUMENTS, UserRole, is_admin_role
from ..exceptions import AreaNameConflictError, ForbiddenError, InvalidInputError
from ..models import Area, User, UserPermission
from ..repositories import UnitOfWork
from ..schemas.area import AreaCreate, AreaUpdate, AreaSummary, RoleAssignment

logger = logging.getLogger(__name__)

GRANTABLE_PERMISSIONS = frozenset({CREATE_DOCUMENTS})


class AreaService:
    """Areas, memberships, roles and fine-grained grants."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    # ------------------------------------------------------------------
    # Areas
    # ------------------------------------------------------------------

    def create_area(self, actor_id: str, data: AreaCreate) -> Area:
        self._require_superuser(actor_id)
        if self.uow.areas.get_by_name(data.name):
            raise AreaNameConflictError(data.name)

        with self.uow.atomic():
            area = self.uow.areas.create(data.name, data.description)

        logger.info("Created area", extra={"area_id": area.id, "actor_id": actor_id})
        return area

    def update_area(self, actor_id: str, area_id: str, data: AreaUpdate) -> Area:
        """Superusers update any area; admins only the one they belong to."""
        actor = self.uow.users.get_by_id(actor_id)
        area = self.uow.areas.get_by_id(area_id)
        if actor.role != UserRole.SUPERUSER.value:
            if actor.role != UserRole.ADMIN.value or actor.area_id != area_id:
                raise ForbiddenError("You can only edit your own area")

        existing = self.uow.areas.get_by_name(data.name)
        if existing and existing.id != area_id:
            raise AreaNameConflictError(data.name)

        with self.uow.atomic():
            area.name = data.name
            area.description = data.description
        return area

    def delete_area(self, actor_id: str, area_id: str) -> int:
        """Delete an area. Members are kept and left without an area.

        Returns the number of members that were detached.
        """
        self._require_superuser(actor_id)
        area = self.uow.areas.get_by_id(area_id)

        with self.uow.atomic():
            self.uow.shares.delete_area_shares_for_area(area_id)
            orphaned = self.uow.users.clear_area(area_id)
            self.uow.areas.delete(area)

        logger.info("Deleted area", extra={"area_id": area_id, "orphaned_members": orphaned})
        return orphaned

    def list_areas(self) -> List[AreaSummary]:
        return [
            AreaSummary(
                id=area.id,
                name=area.name,
                description=area.description,
                member_count=self.uow.areas.count_members(area.id),
            )
            for area in self.uow.areas.get_all()
        ]

    def list_area_users(self, actor_id: str, area_id: Optional[str] = None) -> List[User]:
        """Members of an area. Admins see their own area; superusers any area."""
        actor = self._require_admin(actor_id)
        if actor.role == UserRole.SUPERUSER.value and area_id:
            self.uow.areas.get_by_id(area_id)
            return self.uow.users.get_area_members([area_id])

        if not actor.area_id:
            raise InvalidInputError("You are not assigned to an area", field="area_id")
        if area_id and area_id != actor.area_id:
            raise ForbiddenError("You can only list users of your own area")
        return self.uow.users.get_area_members([actor.area_id])

    # ------------------------------------------------------------------
    # Roles and membership
    # ------------------------------------------------------------------

    def assign_user_role(self, actor_id: str, assignment: RoleAssignment) -> User:
        """Set a user's area, role and leadership.

        Admins may only move users into or out of their own area, and only
        with the normal role.
        """
        actor = self._require_admin(actor_id)
        target = self.uow.users.get_by_email_or_raise(assignment.user_email)
        if assignment.area_id:
            self.uow.areas.get_by_id(assignment.area_id)

        if actor.role == UserRole.ADMIN.value:
            if assignment.role != UserRole.NORMAL:
                raise ForbiddenError("Admins can only assign the normal role")
            if is_admin_role(target.role) and target.id != actor.id:
                raise ForbiddenError("Admins cannot change the role of another admin")
            if assignment.area_id is None:
                if target.area_id != actor.area_id:
                    raise ForbiddenError("You can only remove users from your own area")
            elif assignment.area_id != actor.area_id:
                raise ForbiddenError("You can only assign users to your own area")

        with self.uow.atomic():
            target.area_id = assignment.area_id
            target.role = assignment.role.value
            target.is_leader = assignment.is_leader if assignment.area_id else False

        logger.info(
            "Assigned user role",
            extra={
                "actor_id": actor_id,
                "user_id": target.id,
                "area_id": assignment.area_id,
                "role": assignment.role.value,
            },
        )
        return target

    def add_user_to_area(self, actor_id: str, email: str) -> User:
        """Add a normal user to the actor's own area."""
        actor = self._require_admin(actor_id)
        if not actor.area_id:
            raise InvalidInputError("You are not assigned to an area", field="area_id")
        target = self.uow.users.get_by_email_or_raise(email)
        if is_admin_role(target.role) and actor.role != UserRole.SUPERUSER.value:
            raise ForbiddenError("Admins cannot move another admin")

        with self.uow.atomic():
            target.area_id = actor.area_id
            target.role = UserRole.NORMAL.value

        logger.info("Added user to area", extra={"area_id": actor.area_id, "user_id": target.id})
        return target

    # ------------------------------------------------------------------
    # Fine-grained grants
    # ------------------------------------------------------------------

    def grant_user_permission(self, actor_id: str, user_id: str, permission: str) -> UserPermission:
        self._require_admin(actor_id)
        self._check_grantable(permission)
        self.uow.users.get_by_id(user_id)
        with self.uow.atomic():
            grant = self.uow.users.grant_permission(user_id, permission, granted_by=actor_id)
        logger.info("Granted permission", extra={"user_id": user_id, "permission": permission})
        return grant

    def revoke_user_permission(self, actor_id: str, user_id: str, permission: str) -> bool:
        """Remove a grant. Returns False when the user did not hold it."""
        self._require_admin(actor_id)
        self._check_grantable(permission)
        self.uow.users.get_by_id(user_id)
        with self.uow.atomic():
            revoked = self.uow.users.revoke_permission(user_id, permission)
        if revoked:
            logger.info("Revoked permission", extra={"user_id": user_id, "permission": permission})
        return revoked

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_admin(self, actor_id: str) -> User:
        actor = self.uow.users.get_by_id(actor_id)
        if not is_admin_role(actor.role):
            raise ForbiddenError("Admin role required")
        return actor

    def _require_superuser(self, actor_id: str) -> User:
        actor = self.uow.users.get_by_id(actor_id)
        if actor.role != UserRole.SUPERUSER.value:
            raise ForbiddenError("Superuser role required")
        return actor

    @staticmethod
    def _check_grantable(permission: str) -> None:
        if permission not in GRANTABLE_PERMISSIONS:
            raise InvalidInputError(f"Unknown permission '{permission}'", field="permission")
