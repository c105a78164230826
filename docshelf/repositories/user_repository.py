"""User and area repositories."""

from typing import Iterable, List, Optional

from ..models import User, Area, UserPermission
from ..exceptions import UserNotFoundError, AreaNotFoundError
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Data access for users and their fine-grained grants."""

    model_class = User
    not_found_error = UserNotFoundError

    def create(
        self,
        email: str,
        display_name: str = "",
        role: str = "normal",
        area_id: Optional[str] = None,
        is_leader: bool = False,
    ) -> User:
        return self.add(User(
            email=email.strip().lower(),
            display_name=display_name,
            role=role,
            area_id=area_id,
            is_leader=is_leader,
        ))

    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup by email."""
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_by_email_or_raise(self, email: str) -> User:
        user = self.get_by_email(email)
        if not user:
            raise UserNotFoundError(email)
        return user

    def get_area_members(self, area_ids: Iterable[str], exclude_user_id: Optional[str] = None) -> List[User]:
        """Members of any of *area_ids*, optionally excluding one user."""
        area_ids = list(area_ids)
        if not area_ids:
            return []
        query = self.db.query(User).filter(User.area_id.in_(area_ids))
        if exclude_user_id:
            query = query.filter(User.id != exclude_user_id)
        return query.order_by(User.email).all()

    def clear_area(self, area_id: str) -> int:
        """Detach every member from *area_id*. Members are kept, leadership is dropped."""
        members = self.db.query(User).filter(User.area_id == area_id).all()
        for member in members:
            member.area_id = None
            member.is_leader = False
        self.db.flush()
        return len(members)

    # ------------------------------------------------------------------
    # Fine-grained permissions
    # ------------------------------------------------------------------

    def get_permission(self, user_id: str, permission: str) -> Optional[UserPermission]:
        return self.db.query(UserPermission).filter(
            UserPermission.user_id == user_id,
            UserPermission.permission == permission,
        ).first()

    def grant_permission(self, user_id: str, permission: str, granted_by: Optional[str]) -> UserPermission:
        """Idempotent: an existing grant is returned unchanged."""
        existing = self.get_permission(user_id, permission)
        if existing:
            return existing
        grant = UserPermission(user_id=user_id, permission=permission, granted_by=granted_by)
        self.db.add(grant)
        self.db.flush()
        # Keep the identity-mapped user's collection in sync for has_permission checks.
        self.db.expire(self.get_by_id(user_id), ["permissions"])
        return grant

    def revoke_permission(self, user_id: str, permission: str) -> bool:
        existing = self.get_permission(user_id, permission)
        if not existing:
            return False
        self.db.delete(existing)
        self.db.flush()
        self.db.expire(self.get_by_id(user_id), ["permissions"])
        return True


class AreaRepository(BaseRepository[Area]):
    """Data access for areas."""

    model_class = Area
    not_found_error = AreaNotFoundError

    def create(self, name: str, description: Optional[str] = None) -> Area:
        return self.add(Area(name=name, description=description))

    def get_by_name(self, name: str) -> Optional[Area]:
        return self.db.query(Area).filter(Area.name == name).first()

    def get_all(self) -> List[Area]:
        return self.db.query(Area).order_by(Area.name).all()

    def get_all_ids(self) -> List[str]:
        return [row[0] for row in self.db.query(Area.id).order_by(Area.name).all()]

    def count_members(self, area_id: str) -> int:
        return self.db.query(User).filter(User.area_id == area_id).count()

    def delete(self, area: Area) -> None:
        self.db.delete(area)
        self.db.flush()
