"""Document version model."""

from sqlalchemy import Column, Index, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .user import new_id


class DocumentVersion(Base):
    """Immutable snapshot of a document's title and content.

    Numbers start at 1 and grow by one per document with no gaps. Only
    ``change_note`` may change after insertion.
    """

    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint("document_id", "version", name="uq_document_versions_number"),
        Index("ix_document_versions_created_at", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    version = Column(Integer, nullable=False)

    # Snapshot
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)

    change_note = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    document = relationship("Document", back_populates="versions")
