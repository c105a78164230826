"""Category repository for database operations."""

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Query

from ..models import Category
from ..exceptions import CategoryNotFoundError
from .base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Data access for the category tree. Default reads hide soft-deleted rows."""

    model_class = Category
    not_found_error = CategoryNotFoundError

    def _base_query(self) -> Query:
        return self.db.query(Category).filter(Category.is_deleted.is_(False))

    def create(self, owner_id: str, name: str, parent_id: Optional[str] = None) -> Category:
        return self.add(Category(owner_id=owner_id, name=name, parent_id=parent_id))

    def find_sibling_by_name(
        self,
        owner_id: str,
        parent_id: Optional[str],
        name: str,
        exclude_id: Optional[str] = None,
    ) -> Optional[Category]:
        """Active category with *name* under the same owner and parent, if any."""
        query = self._base_query().filter(
            Category.owner_id == owner_id,
            Category.name == name,
        )
        if parent_id is None:
            query = query.filter(Category.parent_id.is_(None))
        else:
            query = query.filter(Category.parent_id == parent_id)
        if exclude_id:
            query = query.filter(Category.id != exclude_id)
        return query.first()

    def get_owned_children(self, parent_ids: Iterable[str], owner_id: str) -> List[Category]:
        """Active direct children of any of *parent_ids* that *owner_id* owns."""
        parent_ids = list(parent_ids)
        if not parent_ids:
            return []
        return self._base_query().filter(
            Category.parent_id.in_(parent_ids),
            Category.owner_id == owner_id,
        ).order_by(Category.name).all()

    def count_active_children(self, category_id: str) -> int:
        return self._base_query().filter(Category.parent_id == category_id).count()

    def get_by_owner(self, owner_id: str) -> List[Category]:
        return self._base_query().filter(
            Category.owner_id == owner_id
        ).order_by(Category.name).all()

    def get_by_ids(self, category_ids: Iterable[str]) -> List[Category]:
        category_ids = list(category_ids)
        if not category_ids:
            return []
        return self._base_query().filter(
            Category.id.in_(category_ids)
        ).order_by(Category.name).all()

    def soft_delete(self, category: Category, deleted_by: str, reason: Optional[str]) -> Category:
        category.is_deleted = True
        category.deleted_at = datetime.now(timezone.utc)
        category.deletion_reason = reason
        category.deleted_by = deleted_by
        self.db.flush()
        return category

    def get_deleted_or_raise(self, category_id: str) -> Category:
        """Soft-deleted category by id. Raises CategoryNotFoundError if not in trash."""
        category = self.db.query(Category).filter(
            Category.id == category_id,
            Category.is_deleted.is_(True),
        ).first()
        if not category:
            raise CategoryNotFoundError(category_id)
        return category

    def restore(self, category: Category) -> Category:
        category.is_deleted = False
        category.deleted_at = None
        category.deletion_reason = None
        category.deleted_by = None
        self.db.flush()
        return category
