"""Share models: per-user document shares, area shares and folder shares.

Each table is keyed by its natural pair and written with upsert semantics,
so repeating a share only updates the stored permission.
"""

from sqlalchemy import Column, Index, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .user import new_id


class DocumentShare(Base):
    """Direct grant of ``view`` or ``edit`` on a document to one user."""

    __tablename__ = "document_shares"
    __table_args__ = (
        UniqueConstraint("document_id", "shared_with_id", name="uq_document_shares_pair"),
        Index("ix_document_shares_shared_with_id", "shared_with_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    shared_with_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    permission = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    document = relationship("Document")
    shared_with = relationship("User")


class AreaDocumentShare(Base):
    """Grant of a document to every member of an area.

    ``area_id`` NULL means the document is shared with all areas, including
    areas created after the share. Databases treat NULLs as distinct in unique
    constraints, so uniqueness of the NULL row is enforced by the repository.
    """

    __tablename__ = "area_document_shares"
    __table_args__ = (
        UniqueConstraint("document_id", "area_id", name="uq_area_document_shares_pair"),
        Index("ix_area_document_shares_area_id", "area_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    area_id = Column(String(36), ForeignKey("areas.id", ondelete="CASCADE"), nullable=True)
    permission = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    document = relationship("Document")
    area = relationship("Area")


class CategoryShare(Base):
    """Records that a folder was shared with a user.

    Purely structural: document access always comes from DocumentShare rows
    written alongside it.
    """

    __tablename__ = "category_shares"
    __table_args__ = (
        UniqueConstraint("category_id", "shared_with_id", name="uq_category_shares_pair"),
        Index("ix_category_shares_shared_with_id", "shared_with_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    shared_with_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    permission = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category")
    shared_with = relationship("User")
