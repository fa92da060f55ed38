from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.deletion import DeleteResult
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_non_empty
from ..core.enums import DeleteOutcome
from ..core.exceptions import ConflictError, NotFoundError
from ..database.transaction import TransactionManager
from .model import BudgetCategory
from .repository import CategoryRepository

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, categories: CategoryRepository, tx: TransactionManager):
        self._categories = categories
        self._tx = tx

    def create(self, *, name: str, description: Optional[str] = None) -> BudgetCategory:
        name = require_non_empty(name, "name")
        if self._categories.get_by_name(name=name):
            raise ConflictError(f"Category '{name}' already exists")
        category_id = self._categories.create(name=name, description=optional_text(description))
        logger.info("Budget category created: id=%s name=%s", category_id, name)
        return self.get(category_id)

    def get(self, category_id: int) -> BudgetCategory:
        category = self._categories.get(category_id=int(category_id))
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def list(self, *, is_active: Optional[bool] = None, page: Optional[PageRequest] = None) -> Page[BudgetCategory]:
        page = page or PageRequest()
        items, total = self._categories.list(is_active=is_active, page=page)
        return Page.of(items, total, page)

    def list_active(self) -> Sequence[BudgetCategory]:
        return self._categories.list_active()

    def update(
        self,
        category_id: int,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> BudgetCategory:
        current = self.get(category_id)
        new_name = require_non_empty(name, "name") if name is not None else current.name
        if new_name != current.name:
            other = self._categories.get_by_name(name=new_name)
            if other and other.category_id != current.category_id:
                raise ConflictError(f"Category '{new_name}' already exists")

        self._categories.update(
            category_id=current.category_id,
            name=new_name,
            description=optional_text(description) if description is not None else current.description,
            is_active=bool(is_active) if is_active is not None else current.is_active,
        )
        logger.info("Budget category updated: id=%s", current.category_id)
        return self.get(current.category_id)

    def delete(self, category_id: int) -> DeleteResult[BudgetCategory]:
        """Deactivate a category still referenced by a budget or receipt line, delete it otherwise."""
        with self._tx.transaction():
            current = self.get(category_id)
            references = self._categories.count_line_item_references(
                category_id=current.category_id
            ) + self._categories.count_allocation_references(category_id=current.category_id)
            if references > 0:
                self._categories.update(
                    category_id=current.category_id,
                    name=current.name,
                    description=current.description,
                    is_active=False,
                )
                result = DeleteResult(outcome=DeleteOutcome.DEACTIVATED, record=self.get(current.category_id))
            else:
                self._categories.delete(category_id=current.category_id)
                result = DeleteResult(outcome=DeleteOutcome.DELETED, record=current)

        logger.info("Budget category %s: id=%s", result.outcome.value.lower(), current.category_id)
        return result
