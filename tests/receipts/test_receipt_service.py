from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from datetime import date
from decimal import Decimal

import pytest

from hr_backoffice.budget.model import Budget, BudgetAllocation
from hr_backoffice.core.enums import DiscountType
from hr_backoffice.core.exceptions import ConflictError, NotFoundError, ValidationError
from hr_backoffice.receipts.model import Label, LineItemInput, Receipt, ReceiptInput, ReceiptLineItem, ReceiptUpdate
from hr_backoffice.receipts.service import ReceiptService


class FakeTx:
    def __init__(self):
        self.opened = 0

    @contextmanager
    def transaction(self):
        self.opened += 1
        yield


class InMemoryBudgets:
    def __init__(self, *budgets: Budget):
        self.rows = {b.budget_id: b for b in budgets}

    def get(self, *, budget_id):
        return self.rows.get(budget_id)


class InMemoryLabels:
    def __init__(self, *labels: Label):
        self.rows = {label.label_id: label for label in labels}

    def find_many_active_by_ids(self, *, label_ids):
        return [label for label in self.rows.values() if label.label_id in set(label_ids) and label.is_active]


class InMemoryReceipts:
    def __init__(self):
        self.rows: dict[int, Receipt] = {}
        self._next_id = 1

    def create(self, *, budget_id, receipt_date, receipt_number, attachment_path, original_filename, totals, note):
        receipt_id = self._next_id
        self._next_id += 1
        self.rows[receipt_id] = Receipt(
            receipt_id=receipt_id,
            budget_id=budget_id,
            receipt_date=receipt_date,
            receipt_number=receipt_number,
            attachment_path=attachment_path,
            original_filename=original_filename,
            total_price=totals.total_price,
            total_discount=totals.total_discount,
            tax_percent=totals.tax_percent,
            tax_amount=totals.tax_amount,
            total_after_tax=totals.total_after_tax,
            note=note,
        )
        return receipt_id

    def add_lines(self, *, receipt_id, lines):
        items = tuple(
            ReceiptLineItem(
                line_id=index,
                receipt_id=receipt_id,
                label_id=p.label_id,
                category_id=p.category_id,
                item_name=p.item_name,
                unit_price=p.unit_price,
                qty=p.qty,
                subtotal=p.subtotal,
                discount_type=p.discount_type,
                discount_value=p.discount_value,
                discount_amount=p.discount_amount,
                amount_after_discount=p.amount_after_discount,
            )
            for index, p in enumerate(lines, start=1)
        )
        self.rows[receipt_id] = dataclasses.replace(self.rows[receipt_id], lines=items, line_count=len(items))

    def get(self, *, receipt_id):
        return self.rows.get(receipt_id)

    def get_by_number(self, *, receipt_number):
        return next((r for r in self.rows.values() if r.receipt_number == receipt_number), None)

    def update(self, *, receipt_id, **fields):
        self.rows[receipt_id] = dataclasses.replace(self.rows[receipt_id], **fields)

    def delete_lines(self, *, receipt_id):
        count = len(self.rows[receipt_id].lines)
        self.rows[receipt_id] = dataclasses.replace(self.rows[receipt_id], lines=(), line_count=0)
        return count

    def delete(self, *, receipt_id):
        return self.rows.pop(receipt_id, None) is not None


def _budget():
    return Budget(
        budget_id=1,
        month=3,
        year=2024,
        total_budget=Decimal("1000000"),
        allocations=(
            BudgetAllocation(10, "Office", Decimal("600000")),
            BudgetAllocation(20, "Pantry", Decimal("400000")),
        ),
    )


@pytest.fixture()
def receipts():
    return InMemoryReceipts()


@pytest.fixture()
def tx():
    return FakeTx()


@pytest.fixture()
def service(receipts, tx):
    labels = InMemoryLabels(
        Label(1, "Stationery", None, "#336699", True),
        Label(2, "Snacks", None, None, True),
        Label(3, "Retired", None, None, False),
    )
    return ReceiptService(receipts, InMemoryBudgets(_budget()), labels, tx)


def _line(label_id=1, category_id=10, price="10000", qty=3, **kw):
    return LineItemInput(
        label_id=label_id, category_id=category_id, item_name="Paper A4", unit_price=Decimal(price), qty=qty, **kw
    )


def _input(*lines, **kw):
    return ReceiptInput(budget_id=1, receipt_date=date(2024, 3, 5), lines=lines or (_line(),), **kw)


def test_create_persists_lines_and_totals(service, tx):
    receipt = service.create(
        _input(
            _line(discount_type=DiscountType.PERCENT, discount_value=Decimal("10")),
            _line(label_id=2, category_id=20, price="2500", qty=2),
            tax_percent=Decimal("10"),
            receipt_number=" INV-001 ",
        )
    )

    assert receipt.receipt_number == "INV-001"
    assert receipt.line_count == 2
    assert receipt.total_price == Decimal("35000")
    assert receipt.total_discount == Decimal("3000")
    assert receipt.tax_amount == Decimal("3200")
    assert receipt.total_after_tax == Decimal("35200")
    assert tx.opened == 1


def test_create_requires_existing_budget(service):
    with pytest.raises(NotFoundError):
        service.create(ReceiptInput(budget_id=99, receipt_date=date(2024, 3, 5), lines=(_line(),)))


def test_create_requires_lines(service):
    with pytest.raises(ValidationError):
        service.create(ReceiptInput(budget_id=1, receipt_date=date(2024, 3, 5), lines=()))


def test_create_rejects_both_tax_fields(service, receipts):
    with pytest.raises(ValidationError):
        service.create(_input(tax_percent=Decimal("10"), tax_amount=Decimal("500")))
    assert receipts.rows == {}


def test_create_reports_every_missing_or_inactive_label(service):
    with pytest.raises(NotFoundError) as exc:
        service.create(_input(_line(label_id=3), _line(label_id=7), _line(label_id=1)))

    assert exc.value.details == {"label_ids": [3, 7]}


def test_create_rejects_category_outside_budget(service, receipts):
    with pytest.raises(ValidationError):
        service.create(_input(_line(category_id=30)))
    assert receipts.rows == {}


def test_receipt_number_must_be_unique(service):
    service.create(_input(receipt_number="INV-7"))

    with pytest.raises(ConflictError):
        service.create(_input(receipt_number="INV-7"))


def test_update_recomputes_tax_from_stored_totals(service):
    receipt = service.create(_input(tax_percent=Decimal("10")))

    updated = service.update(receipt.receipt_id, ReceiptUpdate(tax_amount=Decimal("1500"), note="corrected"))

    assert updated.tax_percent is None
    assert updated.tax_amount == Decimal("1500")
    assert updated.total_after_tax == Decimal("31500")
    assert updated.note == "corrected"
    assert updated.line_count == 1


def test_update_without_tax_keeps_existing_tax(service):
    receipt = service.create(_input(tax_percent=Decimal("10")))

    updated = service.update(receipt.receipt_id, ReceiptUpdate(receipt_date=date(2024, 3, 9)))

    assert updated.receipt_date == date(2024, 3, 9)
    assert updated.tax_percent == Decimal("10")
    assert updated.total_after_tax == Decimal("33000")


def test_update_rejects_both_tax_fields(service):
    receipt = service.create(_input())

    with pytest.raises(ValidationError):
        service.update(receipt.receipt_id, ReceiptUpdate(tax_percent=Decimal("5"), tax_amount=Decimal("5")))


def test_update_number_conflict_ignores_itself(service):
    first = service.create(_input(receipt_number="A-1"))
    second = service.create(_input(receipt_number="A-2"))

    assert service.update(first.receipt_id, ReceiptUpdate(receipt_number="A-1")).receipt_number == "A-1"
    with pytest.raises(ConflictError):
        service.update(second.receipt_id, ReceiptUpdate(receipt_number="A-1"))


def test_delete_removes_receipt(service, receipts):
    receipt = service.create(_input())

    deleted = service.delete(receipt.receipt_id)

    assert deleted.receipt_id == receipt.receipt_id
    assert receipts.rows == {}
    with pytest.raises(NotFoundError):
        service.get(receipt.receipt_id)
