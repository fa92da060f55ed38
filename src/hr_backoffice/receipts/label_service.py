from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.deletion import DeleteResult
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_non_empty
from ..core.enums import DeleteOutcome
from ..core.exceptions import ConflictError, NotFoundError
from ..database.transaction import TransactionManager
from .model import Label
from .repository import LabelRepository

logger = logging.getLogger(__name__)


class LabelService:
    def __init__(self, labels: LabelRepository, tx: TransactionManager):
        self._labels = labels
        self._tx = tx

    def create(self, *, name: str, description: Optional[str] = None, color: Optional[str] = None) -> Label:
        name = require_non_empty(name, "name")
        if self._labels.get_by_name(name=name):
            raise ConflictError(f"Label '{name}' already exists")
        label_id = self._labels.create(name=name, description=optional_text(description), color=optional_text(color))
        logger.info("Label created: id=%s name=%s", label_id, name)
        return self.get(label_id)

    def get(self, label_id: int) -> Label:
        label = self._labels.get(label_id=int(label_id))
        if not label:
            raise NotFoundError(f"Label {label_id} not found")
        return label

    def list(self, *, is_active: Optional[bool] = None, page: Optional[PageRequest] = None) -> Page[Label]:
        page = page or PageRequest()
        items, total = self._labels.list(is_active=is_active, page=page)
        return Page.of(items, total, page)

    def list_active(self) -> Sequence[Label]:
        return self._labels.list_active()

    def update(
        self,
        label_id: int,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Label:
        current = self.get(label_id)
        new_name = require_non_empty(name, "name") if name is not None else current.name
        if new_name != current.name:
            other = self._labels.get_by_name(name=new_name)
            if other and other.label_id != current.label_id:
                raise ConflictError(f"Label '{new_name}' already exists")

        self._labels.update(
            label_id=current.label_id,
            name=new_name,
            description=optional_text(description) if description is not None else current.description,
            color=optional_text(color) if color is not None else current.color,
            is_active=bool(is_active) if is_active is not None else current.is_active,
        )
        return self.get(current.label_id)

    def delete(self, label_id: int) -> DeleteResult[Label]:
        with self._tx.transaction():
            current = self.get(label_id)
            if self._labels.count_line_item_references(label_id=current.label_id) > 0:
                self._labels.update(
                    label_id=current.label_id,
                    name=current.name,
                    description=current.description,
                    color=current.color,
                    is_active=False,
                )
                result = DeleteResult(outcome=DeleteOutcome.DEACTIVATED, record=self.get(current.label_id))
            else:
                self._labels.delete(label_id=current.label_id)
                result = DeleteResult(outcome=DeleteOutcome.DELETED, record=current)

        logger.info("Label %s: id=%s", result.outcome.value.lower(), current.label_id)
        return result
