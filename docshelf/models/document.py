"""Document model."""

from sqlalchemy import Column, Index, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .user import new_id


class Document(Base):
    """Main documents table.

    Documents are soft-deleted only: ``is_deleted`` hides them from normal
    queries while their shares and version history stay intact.
    """

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_owner_id", "owner_id"),
        Index("ix_documents_category_id", "category_id"),
        Index("ix_documents_updated_at", "updated_at"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)

    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Soft delete
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)
    deletion_reason = Column(Text, nullable=True)
    deleted_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    # Relationships
    owner = relationship("User", foreign_keys=[owner_id])
    category = relationship("Category", back_populates="documents")
    versions = relationship(
        "DocumentVersion",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentVersion.version",
    )
