"""Version ledger: numbered, immutable document snapshots.

Every substantive edit appends a snapshot. Restoring copies an old snapshot
onto the live document and appends a new one, so history only grows and
version numbers stay gap-free.
"""

import logging
from typing import List, Optional

from ..exceptions import DocumentDeletedError, InvalidInputError
from ..models import Document, DocumentVersion
from ..repositories import UnitOfWork

logger = logging.getLogger(__name__)

INITIAL_VERSION_NOTE = "initial version"


def default_change_note(version: int) -> str:
    return f"version {version}"


def restored_change_note(version: int) -> str:
    return f"restored from version {version}"


class VersionLedger:
    """Records and restores document versions.

    Permission checks belong to the caller; the ledger only guarantees that a
    document change and its snapshot are written together.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def record_edit(
        self,
        document_id: str,
        editor_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
        change_note: Optional[str] = None,
    ) -> Optional[DocumentVersion]:
        """Apply a title/content change and snapshot it.

        Fields passed as None are not part of the edit. Returns None, and
        writes nothing, when the supplied fields equal the current values.

        The document row is locked before the next number is computed, so two
        concurrent edits cannot claim the same number.
        """
        with self.uow.atomic():
            document = self.uow.documents.get_for_update(document_id)
            if document.is_deleted:
                raise DocumentDeletedError(document_id)
            return self._apply(document, editor_id, title, content, change_note)

    def restore_to_version(self, document_id: str, version: int, restorer_id: str) -> Document:
        """Copy snapshot *version* onto the document and append a new version.

        Raises:
            VersionNotFoundError: no such snapshot for this document
            DocumentDeletedError: the document is in the trash
        """
        with self.uow.atomic():
            document = self.uow.documents.get_for_update(document_id)
            if document.is_deleted:
                raise DocumentDeletedError(document_id)
            snapshot = self.uow.versions.get_or_raise(document_id, version)
            self._apply(
                document,
                restorer_id,
                snapshot.title,
                snapshot.content,
                restored_change_note(version),
                force=True,
            )

        logger.info(
            "Restored document to version",
            extra={"document_id": document_id, "version": version, "user_id": restorer_id},
        )
        return document

    def list_versions(self, document_id: str, skip: int = 0, limit: Optional[int] = None) -> List[DocumentVersion]:
        """Versions of a document, highest number first."""
        return self.uow.versions.get_by_document(document_id, skip, limit)

    def get_version(self, document_id: str, version: int) -> DocumentVersion:
        return self.uow.versions.get_or_raise(document_id, version)

    def update_change_note(self, document_id: str, version: int, note: Optional[str]) -> DocumentVersion:
        """Edit the note of an existing snapshot. The snapshot body never changes."""
        if note is not None and len(note) > 2000:
            raise InvalidInputError("Change note is too long", field="change_note")
        snapshot = self.uow.versions.get_or_raise(document_id, version)
        with self.uow.atomic():
            snapshot.change_note = (note or "").strip() or None
        return snapshot

    def _apply(
        self,
        document: Document,
        editor_id: str,
        title: Optional[str],
        content: Optional[str],
        change_note: Optional[str],
        force: bool = False,
    ) -> Optional[DocumentVersion]:
        new_title = document.title if title is None else title
        new_content = document.content if content is None else content

        if not force and new_title == document.title and new_content == document.content:
            logger.debug("Edit matches current state, no version recorded", extra={"document_id": document.id})
            return None

        number = self.uow.versions.get_max_version(document.id) + 1
        if number == 1:
            note = INITIAL_VERSION_NOTE
        else:
            note = change_note or default_change_note(number)

        document.title = new_title
        document.content = new_content
        snapshot = self.uow.versions.create(
            document_id=document.id,
            version=number,
            title=new_title,
            content=new_content,
            change_note=note,
            created_by=editor_id,
        )

        logger.info(
            "Recorded document version",
            extra={"document_id": document.id, "version": number, "user_id": editor_id},
        )
        return snapshot
