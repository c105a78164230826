"""Version repository for database operations."""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import DocumentVersion
from ..exceptions import VersionNotFoundError


class VersionRepository:
    """Repository for document version rows.

    Versions are addressed by (document_id, version number) rather than by
    their surrogate id.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        document_id: str,
        version: int,
        title: str,
        content: str,
        change_note: Optional[str],
        created_by: Optional[str],
    ) -> DocumentVersion:
        """Insert a new snapshot."""
        db_version = DocumentVersion(
            document_id=document_id,
            version=version,
            title=title,
            content=content,
            change_note=change_note,
            created_by=created_by,
        )
        self.db.add(db_version)
        self.db.flush()
        return db_version

    def get_max_version(self, document_id: str) -> int:
        """Highest version number for a document, 0 when none exist."""
        result = self.db.query(func.max(DocumentVersion.version)).filter(
            DocumentVersion.document_id == document_id
        ).scalar()
        return result or 0

    def get(self, document_id: str, version: int) -> Optional[DocumentVersion]:
        return self.db.query(DocumentVersion).filter(
            DocumentVersion.document_id == document_id,
            DocumentVersion.version == version,
        ).first()

    def get_or_raise(self, document_id: str, version: int) -> DocumentVersion:
        found = self.get(document_id, version)
        if not found:
            raise VersionNotFoundError(document_id, version)
        return found

    def get_by_document(self, document_id: str, skip: int = 0, limit: Optional[int] = None) -> List[DocumentVersion]:
        """All versions for a document, newest number first."""
        query = self.db.query(DocumentVersion).filter(
            DocumentVersion.document_id == document_id
        ).order_by(DocumentVersion.version.desc()).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, document_id: str) -> int:
        return self.db.query(DocumentVersion).filter(
            DocumentVersion.document_id == document_id
        ).count()
