"""Category model: per-user folder tree."""

from sqlalchemy import Column, Index, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .user import new_id


class Category(Base):
    """A folder owned by one user, optionally nested under a parent.

    The storage layer does not prevent cycles in ``parent_id``; every tree walk
    must track visited ids.
    """

    __tablename__ = "categories"
    __table_args__ = (
        Index("ix_categories_owner_id", "owner_id"),
        Index("ix_categories_parent_id", "parent_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    parent_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Soft delete
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)
    deletion_reason = Column(Text, nullable=True)
    deleted_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    owner = relationship("User", foreign_keys=[owner_id])
    documents = relationship("Document", back_populates="category")
