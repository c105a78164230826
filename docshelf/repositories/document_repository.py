"""Document repository for database operations.

Owns all document query logic including soft-delete filtering.
Default reads go through _base_query(), which hides soft-deleted documents;
the *_including_deleted variants exist for permission checks and restores.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Query

from ..models import Document
from ..exceptions import DocumentNotFoundError
from .base import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Repository for document CRUD operations."""

    model_class = Document
    not_found_error = DocumentNotFoundError

    def _base_query(self) -> Query:
        """Exclude soft-deleted documents from all default queries."""
        return self.db.query(Document).filter(Document.is_deleted.is_(False))

    def create(self, owner_id: str, title: str, content: str, category_id: Optional[str] = None) -> Document:
        """Create a new document."""
        return self.add(Document(
            owner_id=owner_id,
            title=title,
            content=content,
            category_id=category_id,
        ))

    # get_by_id and get_by_id_optional are inherited from BaseRepository
    # and use _base_query(), so they automatically exclude soft-deleted docs.

    def get_by_id_including_deleted(self, document_id: str) -> Optional[Document]:
        """Get document by ID regardless of soft-delete status."""
        return self.db.query(Document).filter(Document.id == document_id).first()

    def get_including_deleted_or_raise(self, document_id: str) -> Document:
        document = self.get_by_id_including_deleted(document_id)
        if not document:
            raise DocumentNotFoundError(document_id)
        return document

    def get_for_update(self, document_id: str) -> Document:
        """Load the document with a row lock held until the transaction ends.

        Serializes concurrent version numbering for the same document. On
        SQLite the lock clause is omitted; its database-level write lock
        provides the same guarantee.
        """
        document = (
            self.db.query(Document)
            .filter(Document.id == document_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not document:
            raise DocumentNotFoundError(document_id)
        return document

    def get_by_owner(self, owner_id: str) -> List[Document]:
        """Active documents owned by *owner_id*, most recently updated first."""
        return self._base_query().filter(
            Document.owner_id == owner_id
        ).order_by(Document.updated_at.desc(), Document.title).all()

    def get_by_ids(self, document_ids: Iterable[str]) -> List[Document]:
        """Active documents among *document_ids*."""
        document_ids = list(document_ids)
        if not document_ids:
            return []
        return self._base_query().filter(
            Document.id.in_(document_ids)
        ).order_by(Document.updated_at.desc(), Document.title).all()

    def get_owned_in_categories(self, owner_id: str, category_ids: Iterable[str]) -> List[Document]:
        """Active documents owned by *owner_id* filed directly under any of *category_ids*."""
        category_ids = list(category_ids)
        if not category_ids:
            return []
        return self._base_query().filter(
            Document.owner_id == owner_id,
            Document.category_id.in_(category_ids),
        ).order_by(Document.id).all()

    def count_active_in_category(self, category_id: str) -> int:
        return self._base_query().filter(Document.category_id == category_id).count()

    def soft_delete(self, document: Document, deleted_by: str, reason: Optional[str]) -> Document:
        """Move a document to the trash."""
        document.is_deleted = True
        document.deleted_at = datetime.now(timezone.utc)
        document.deletion_reason = reason
        document.deleted_by = deleted_by
        self.db.flush()
        return document

    def restore(self, document_id: str) -> Document:
        """Bring a soft-deleted document back. Raises DocumentNotFoundError if not in trash."""
        document = self.db.query(Document).filter(
            Document.id == document_id,
            Document.is_deleted.is_(True),
        ).first()
        if not document:
            raise DocumentNotFoundError(document_id)
        document.is_deleted = False
        document.deleted_at = None
        document.deletion_reason = None
        document.deleted_by = None
        self.db.flush()
        return document
