"""Share repository: upserts and lookups for all three share tables.

Every write is an upsert keyed by the table's natural pair, which is what
makes folder sharing safe to repeat.
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models import DocumentShare, AreaDocumentShare, CategoryShare


class ShareRepository:
    """Data access layer for document, area and category shares."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # DocumentShare
    # ------------------------------------------------------------------

    def get_document_share(self, document_id: str, user_id: str) -> Optional[DocumentShare]:
        return self.db.query(DocumentShare).filter(
            DocumentShare.document_id == document_id,
            DocumentShare.shared_with_id == user_id,
        ).first()

    def upsert_document_share(self, document_id: str, user_id: str, permission: str) -> DocumentShare:
        """Create the share or update its permission."""
        share = self.get_document_share(document_id, user_id)
        if share:
            share.permission = permission
        else:
            share = DocumentShare(document_id=document_id, shared_with_id=user_id, permission=permission)
            self.db.add(share)
        self.db.flush()
        return share

    def delete_document_share(self, share: DocumentShare) -> None:
        self.db.delete(share)
        self.db.flush()

    def get_document_shares(self, document_id: str) -> List[DocumentShare]:
        return self.db.query(DocumentShare).filter(
            DocumentShare.document_id == document_id
        ).order_by(DocumentShare.created_at).all()

    def get_shares_for_user(self, user_id: str) -> List[DocumentShare]:
        return self.db.query(DocumentShare).filter(
            DocumentShare.shared_with_id == user_id
        ).all()

    # ------------------------------------------------------------------
    # AreaDocumentShare
    # ------------------------------------------------------------------

    def get_area_share(self, document_id: str, area_id: Optional[str]) -> Optional[AreaDocumentShare]:
        """Exact lookup; ``area_id=None`` returns the all-areas row."""
        query = self.db.query(AreaDocumentShare).filter(AreaDocumentShare.document_id == document_id)
        if area_id is None:
            query = query.filter(AreaDocumentShare.area_id.is_(None))
        else:
            query = query.filter(AreaDocumentShare.area_id == area_id)
        return query.first()

    def find_area_share_for_member(self, document_id: str, area_id: str) -> Optional[AreaDocumentShare]:
        """Row granting *document_id* to members of *area_id*.

        Matches the area's own row or the all-areas row; the area's own row
        wins when both exist.
        """
        rows = self.db.query(AreaDocumentShare).filter(
            AreaDocumentShare.document_id == document_id,
            or_(AreaDocumentShare.area_id == area_id, AreaDocumentShare.area_id.is_(None)),
        ).all()
        for row in rows:
            if row.area_id == area_id:
                return row
        return rows[0] if rows else None

    def upsert_area_share(self, document_id: str, area_id: Optional[str], permission: str) -> AreaDocumentShare:
        share = self.get_area_share(document_id, area_id)
        if share:
            share.permission = permission
        else:
            share = AreaDocumentShare(document_id=document_id, area_id=area_id, permission=permission)
            self.db.add(share)
        self.db.flush()
        return share

    def get_area_shares(self, document_id: str) -> List[AreaDocumentShare]:
        return self.db.query(AreaDocumentShare).filter(
            AreaDocumentShare.document_id == document_id
        ).all()

    def get_document_ids_shared_with_area(self, area_id: str) -> List[str]:
        rows = self.db.query(AreaDocumentShare.document_id).filter(
            or_(AreaDocumentShare.area_id == area_id, AreaDocumentShare.area_id.is_(None))
        ).distinct().all()
        return [row[0] for row in rows]

    def delete_area_shares_for_area(self, area_id: str) -> int:
        count = self.db.query(AreaDocumentShare).filter(
            AreaDocumentShare.area_id == area_id
        ).delete(synchronize_session="fetch")
        self.db.flush()
        return count

    # ------------------------------------------------------------------
    # CategoryShare
    # ------------------------------------------------------------------

    def get_category_share(self, category_id: str, user_id: str) -> Optional[CategoryShare]:
        return self.db.query(CategoryShare).filter(
            CategoryShare.category_id == category_id,
            CategoryShare.shared_with_id == user_id,
        ).first()

    def upsert_category_share(self, category_id: str, user_id: str, permission: str) -> CategoryShare:
        share = self.get_category_share(category_id, user_id)
        if share:
            share.permission = permission
        else:
            share = CategoryShare(category_id=category_id, shared_with_id=user_id, permission=permission)
            self.db.add(share)
        self.db.flush()
        return share

    def get_category_shares_for_user(self, user_id: str) -> List[CategoryShare]:
        return self.db.query(CategoryShare).filter(
            CategoryShare.shared_with_id == user_id
        ).all()
