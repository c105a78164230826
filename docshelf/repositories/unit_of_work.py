"""Unit of work: the repository port handed to every service.

Bundles one repository per entity around a single injected Session and
exposes ``atomic()``, the only place transactions are committed or rolled
back. The session's lifecycle (creation, close) stays with the caller.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..exceptions import InternalError
from .category_repository import CategoryRepository
from .document_repository import DocumentRepository
from .share_repository import ShareRepository
from .user_repository import AreaRepository, UserRepository
from .version_repository import VersionRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Repositories sharing one transaction.

    ``atomic()`` blocks may nest; only the outermost block commits. Any
    exception escaping a block rolls back the whole unit, and SQLAlchemy
    errors are logged and re-raised as InternalError without their detail.
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.areas = AreaRepository(db)
        self.documents = DocumentRepository(db)
        self.categories = CategoryRepository(db)
        self.shares = ShareRepository(db)
        self.versions = VersionRepository(db)
        self._depth = 0

    @contextmanager
    def atomic(self) -> Iterator["UnitOfWork"]:
        """Run the enclosed block as one transaction."""
        self._depth += 1
        try:
            yield self
            if self._depth == 1:
                self.db.commit()
        except sqlalchemy.exc.SQLAlchemyError as e:
            if self._depth == 1:
                self.db.rollback()
                logger.exception("Repository operation failed, transaction rolled back")
                raise InternalError("Database operation failed") from e
            raise
        except Exception:
            if self._depth == 1:
                self.db.rollback()
            raise
        finally:
            self._depth -= 1
