from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..budget.repository import BudgetRepository
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_int
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..database.transaction import TransactionManager
from .model import Receipt, ReceiptInput, ReceiptUpdate, RollupFilter, RollupRow
from .pricing import ReceiptCalculator
from .repository import LabelRepository, ReceiptRepository

logger = logging.getLogger(__name__)


class ReceiptService:
    """Receipts against a monthly budget. Line items are fixed once created."""

    def __init__(
        self,
        receipts: ReceiptRepository,
        budgets: BudgetRepository,
        labels: LabelRepository,
        tx: TransactionManager,
        *,
        calculator: Optional[ReceiptCalculator] = None,
    ):
        self._receipts = receipts
        self._budgets = budgets
        self._labels = labels
        self._tx = tx
        self._calculator = calculator or ReceiptCalculator()

    def _ensure_number_free(self, receipt_number: Optional[str], *, receipt_id: Optional[int] = None) -> None:
        if not receipt_number:
            return
        existing = self._receipts.get_by_number(receipt_number=receipt_number)
        if existing and existing.receipt_id != receipt_id:
            raise ConflictError(f"Receipt number '{receipt_number}' is already used")

    def create(self, data: ReceiptInput) -> Receipt:
        logger.info("Creating receipt: budget=%s lines=%d", data.budget_id, len(data.lines or ()))

        budget = self._budgets.get(budget_id=require_int(data.budget_id, "budget_id"))
        if not budget:
            raise NotFoundError(f"Budget {data.budget_id} not found")
        if not data.lines:
            raise ValidationError("A receipt needs at least one line item")

        receipt_number = optional_text(data.receipt_number)
        self._ensure_number_free(receipt_number)
        self._calculator.check_tax_exclusive(data.tax_percent, data.tax_amount)

        label_ids = {int(line.label_id) for line in data.lines}
        active_labels = {label.label_id for label in self._labels.find_many_active_by_ids(label_ids=label_ids)}
        missing = sorted(label_ids - active_labels)
        if missing:
            raise NotFoundError(
                "Labels not found or inactive: " + ", ".join(str(i) for i in missing),
                details={"label_ids": missing},
            )

        allowed = budget.category_ids
        for line in data.lines:
            if int(line.category_id) not in allowed:
                raise ValidationError(
                    f"Category of item '{line.item_name}' is not allocated in budget "
                    f"{budget.month:02d}/{budget.year}"
                )

        priced, totals = self._calculator.compute_totals(
            data.lines, tax_percent=data.tax_percent, tax_amount=data.tax_amount
        )

        with self._tx.transaction():
            receipt_id = self._receipts.create(
                budget_id=budget.budget_id,
                receipt_date=data.receipt_date,
                receipt_number=receipt_number,
                attachment_path=optional_text(data.attachment_path),
                original_filename=optional_text(data.original_filename),
                totals=totals,
                note=optional_text(data.note),
            )
            self._receipts.add_lines(receipt_id=receipt_id, lines=priced)
            receipt = self._receipts.get(receipt_id=receipt_id)

        logger.info("Receipt created: id=%s total_after_tax=%s", receipt_id, totals.total_after_tax)
        return receipt

    def update(self, receipt_id: int, data: ReceiptUpdate) -> Receipt:
        logger.info("Updating receipt: id=%s", receipt_id)
        current = self.get(receipt_id)
        self._calculator.check_tax_exclusive(data.tax_percent, data.tax_amount)

        receipt_number = current.receipt_number
        if data.receipt_number is not None:
            receipt_number = optional_text(data.receipt_number)
            self._ensure_number_free(receipt_number, receipt_id=current.receipt_id)

        tax_percent = current.tax_percent
        tax_amount = current.tax_amount
        total_after_tax = current.total_after_tax
        if data.tax_percent is not None or data.tax_amount is not None:
            totals = self._calculator.totals_for(
                current.total_price,
                current.total_discount,
                tax_percent=data.tax_percent,
                tax_amount=data.tax_amount,
            )
            tax_percent, tax_amount, total_after_tax = totals.tax_percent, totals.tax_amount, totals.total_after_tax

        self._receipts.update(
            receipt_id=current.receipt_id,
            receipt_date=data.receipt_date or current.receipt_date,
            receipt_number=receipt_number,
            attachment_path=(
                optional_text(data.attachment_path) if data.attachment_path is not None else current.attachment_path
            ),
            original_filename=(
                optional_text(data.original_filename)
                if data.original_filename is not None
                else current.original_filename
            ),
            note=optional_text(data.note) if data.note is not None else current.note,
            tax_percent=tax_percent,
            tax_amount=tax_amount,
            total_after_tax=total_after_tax,
        )
        logger.info("Receipt updated: id=%s total_after_tax=%s", current.receipt_id, total_after_tax)
        return self.get(current.receipt_id)

    def delete(self, receipt_id: int) -> Receipt:
        logger.info("Deleting receipt: id=%s", receipt_id)
        receipt = self.get(receipt_id)
        with self._tx.transaction():
            self._receipts.delete_lines(receipt_id=receipt.receipt_id)
            self._receipts.delete(receipt_id=receipt.receipt_id)
        logger.info("Receipt deleted: id=%s lines=%d", receipt.receipt_id, len(receipt.lines))
        return receipt

    def get(self, receipt_id: int) -> Receipt:
        receipt = self._receipts.get(receipt_id=int(receipt_id))
        if not receipt:
            raise NotFoundError(f"Receipt {receipt_id} not found")
        return receipt

    def list(self, filters: Optional[RollupFilter] = None, page: Optional[PageRequest] = None) -> Page[Receipt]:
        page = page or PageRequest()
        items, total = self._receipts.list(filters=filters or RollupFilter(), page=page)
        return Page.of(items, total, page)

    def rollup_by_label(self, filters: Optional[RollupFilter] = None) -> Sequence[RollupRow]:
        return self._receipts.rollup_by_label(filters=filters or RollupFilter())

    def rollup_by_category(self, filters: Optional[RollupFilter] = None) -> Sequence[RollupRow]:
        return self._receipts.rollup_by_category(filters=filters or RollupFilter())
