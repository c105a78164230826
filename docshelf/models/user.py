"""User, Area, and UserPermission models.

Users belong to at most one Area. Areas are sharing targets: a document shared
with an area is visible to every member. UserPermission rows hold fine-grained
grants such as ``create_documents`` for users whose role alone does not allow
the action.
"""

import uuid

from sqlalchemy import Column, String, DateTime, Boolean, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Area(Base):
    """Organisational unit grouping users.

    Deleting an area never deletes its members: the foreign key on
    ``users.area_id`` is SET NULL and the service also clears ``is_leader``.
    """

    __tablename__ = "areas"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship("User", back_populates="area")


class User(Base):
    """User account with an organisational role.

    Roles:
        normal    - own documents plus whatever is shared with them
        admin     - manages users of their own area, restores deleted items
        superuser - manages all areas and role assignments
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False)
    display_name = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False, default="normal")
    area_id = Column(String(36), ForeignKey("areas.id", ondelete="SET NULL"), nullable=True, index=True)
    is_leader = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    area = relationship("Area", back_populates="members")
    permissions = relationship(
        "UserPermission",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="[UserPermission.user_id]",
    )

    @property
    def granted_permissions(self) -> set[str]:
        return {p.permission for p in self.permissions}


class UserPermission(Base):
    """Fine-grained permission granted to a user by an admin."""

    __tablename__ = "user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "permission", name="uq_user_permissions_user_permission"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    permission = Column(String(50), nullable=False)
    granted_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="permissions", foreign_keys=[user_id])
