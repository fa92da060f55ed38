from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from datetime import date
from decimal import Decimal

import pytest

from hr_backoffice.core.enums import ItemCategory
from hr_backoffice.core.exceptions import BusinessLogicError, ConflictError, NotFoundError, ValidationError
from hr_backoffice.inventory.model import Disbursement, InventoryItem, Purchase
from hr_backoffice.inventory.service import DisbursementService, ItemInput, ItemService, PurchaseService


class FakeTx:
    @contextmanager
    def transaction(self):
        yield


class InMemoryItems:
    def __init__(self):
        self.rows: dict[int, InventoryItem] = {}
        self.movements: dict[int, int] = {}
        self._next_id = 1

    def create(self, *, code, name, category, unit, min_stock, current_stock, note):
        item_id = self._next_id
        self._next_id += 1
        self.rows[item_id] = InventoryItem(item_id, code, name, category, unit, min_stock, current_stock, note)
        return item_id

    def get(self, *, item_id, for_update=False):
        return self.rows.get(item_id)

    def get_by_code(self, *, code):
        return next((i for i in self.rows.values() if i.code == code), None)

    def list_low_stock(self):
        return [i for i in self.rows.values() if i.is_low_stock]

    def update(self, *, item_id, **fields):
        self.rows[item_id] = dataclasses.replace(self.rows[item_id], **fields)

    def adjust_stock(self, *, item_id, delta):
        item = self.rows[item_id]
        self.rows[item_id] = dataclasses.replace(item, current_stock=item.current_stock + delta)

    def count_movements(self, *, item_id):
        return self.movements.get(item_id, 0)

    def delete(self, *, item_id):
        return self.rows.pop(item_id, None) is not None


class InMemoryMovements:
    """Purchases or disbursements, keyed by ``id_field``."""

    def __init__(self, model, id_field: str):
        self._model = model
        self._id_field = id_field
        self.rows: dict = {}
        self.rollups: list = []
        self._next_id = 1

    def create(self, **fields):
        row_id = self._next_id
        self._next_id += 1
        self.rows[row_id] = self._model(**{self._id_field: row_id}, **fields)
        return row_id

    def get(self, **kw):
        return self.rows.get(kw[self._id_field])

    def update(self, **fields):
        row_id = fields.pop(self._id_field)
        self.rows[row_id] = dataclasses.replace(self.rows[row_id], **fields)

    def delete(self, **kw):
        return self.rows.pop(kw[self._id_field], None) is not None

    def rollup(self, *, group_by, query):
        self.rollups.append(group_by)
        return []


@pytest.fixture()
def items():
    return InMemoryItems()


@pytest.fixture()
def item_service(items):
    return ItemService(items, FakeTx())


@pytest.fixture()
def purchases():
    return InMemoryMovements(Purchase, "purchase_id")


@pytest.fixture()
def disbursements():
    return InMemoryMovements(Disbursement, "disbursement_id")


@pytest.fixture()
def purchase_service(purchases, items):
    return PurchaseService(purchases, items, FakeTx())


@pytest.fixture()
def disbursement_service(disbursements, items):
    return DisbursementService(disbursements, items, FakeTx())


def _paper(item_service, stock=0, min_stock=5):
    return item_service.create(
        ItemInput(
            code="atk-001",
            name="Paper A4",
            category=ItemCategory.OFFICE_SUPPLIES,
            unit="ream",
            min_stock=min_stock,
            current_stock=stock,
        )
    )


def test_item_code_is_upper_cased_and_unique(item_service):
    item = _paper(item_service)

    assert item.code == "ATK-001"
    with pytest.raises(ConflictError):
        _paper(item_service)


def test_item_rejects_negative_stock(item_service):
    with pytest.raises(ValidationError):
        _paper(item_service, stock=-1)


def test_low_stock_reports_shortfall(item_service):
    _paper(item_service, stock=2, min_stock=5)
    item_service.create(ItemInput("MED-01", "Paracetamol", ItemCategory.MEDICINE, "strip", min_stock=3, current_stock=10))

    low = item_service.low_stock()

    assert [(row.item.code, row.shortfall) for row in low] == [("ATK-001", 3)]


def test_stock_follows_purchases_and_disbursements(item_service, items, purchase_service, disbursement_service):
    item = _paper(item_service)

    purchase_service.create(item_id=item.item_id, qty=10, purchase_date=date(2024, 3, 1), unit_price=Decimal("45000"))
    purchase_service.create(item_id=item.item_id, qty=5, purchase_date=date(2024, 3, 8), unit_price=Decimal("44000"))
    disbursement_service.create(
        item_id=item.item_id, qty=4, disbursement_date=date(2024, 3, 10), purpose="Printing", recipient="Finance"
    )

    assert items.rows[item.item_id].current_stock == 11


def test_purchase_total_price(item_service, purchase_service):
    item = _paper(item_service)

    purchase = purchase_service.create(
        item_id=item.item_id, qty=3, purchase_date=date(2024, 3, 1), unit_price=Decimal("12500"), supplier=" Shop "
    )

    assert purchase.total_price == Decimal("37500")
    assert purchase.supplier == "Shop"


def test_purchase_update_applies_only_the_difference(item_service, items, purchase_service):
    item = _paper(item_service)
    purchase = purchase_service.create(
        item_id=item.item_id, qty=10, purchase_date=date(2024, 3, 1), unit_price=Decimal("100")
    )

    updated = purchase_service.update(purchase.purchase_id, qty=7)

    assert items.rows[item.item_id].current_stock == 7
    assert updated.total_price == Decimal("700")


def test_purchase_delete_refused_when_stock_already_used(
    item_service, items, purchase_service, disbursement_service
):
    item = _paper(item_service)
    purchase = purchase_service.create(
        item_id=item.item_id, qty=10, purchase_date=date(2024, 3, 1), unit_price=Decimal("100")
    )
    disbursement_service.create(item_id=item.item_id, qty=6, disbursement_date=date(2024, 3, 2), purpose="Use")

    with pytest.raises(BusinessLogicError):
        purchase_service.delete(purchase.purchase_id)
    assert items.rows[item.item_id].current_stock == 4


def test_purchase_delete_reverses_stock(item_service, items, purchase_service, purchases):
    item = _paper(item_service, stock=2)
    purchase = purchase_service.create(item_id=item.item_id, qty=3, purchase_date=date(2024, 3, 1), unit_price=1)

    purchase_service.delete(purchase.purchase_id)

    assert items.rows[item.item_id].current_stock == 2
    assert purchases.rows == {}


def test_disbursement_may_drive_stock_negative(item_service, items, disbursement_service):
    item = _paper(item_service, stock=1)

    disbursement_service.create(item_id=item.item_id, qty=3, disbursement_date=date(2024, 3, 2), purpose="Use")

    assert items.rows[item.item_id].current_stock == -2


def test_disbursement_update_and_delete_restore_stock(item_service, items, disbursement_service):
    item = _paper(item_service, stock=10)
    d = disbursement_service.create(item_id=item.item_id, qty=4, disbursement_date=date(2024, 3, 2), purpose="Use")

    disbursement_service.update(d.disbursement_id, qty=6)
    assert items.rows[item.item_id].current_stock == 4

    disbursement_service.delete(d.disbursement_id)
    assert items.rows[item.item_id].current_stock == 10


def test_disbursement_requires_purpose(item_service, disbursement_service):
    item = _paper(item_service, stock=10)

    with pytest.raises(ValidationError):
        disbursement_service.create(item_id=item.item_id, qty=1, disbursement_date=date(2024, 3, 2), purpose=" ")


@pytest.mark.parametrize("qty", [0, -3])
def test_movements_require_positive_qty(item_service, purchase_service, qty):
    item = _paper(item_service)

    with pytest.raises(ValidationError):
        purchase_service.create(item_id=item.item_id, qty=qty, purchase_date=date(2024, 3, 1), unit_price=1)


def test_movement_for_unknown_item(purchase_service):
    with pytest.raises(NotFoundError):
        purchase_service.create(item_id=404, qty=1, purchase_date=date(2024, 3, 1), unit_price=1)


def test_item_with_history_cannot_be_deleted(item_service, items):
    item = _paper(item_service)
    items.movements[item.item_id] = 1

    with pytest.raises(BusinessLogicError):
        item_service.delete(item.item_id)

    items.movements.clear()
    item_service.delete(item.item_id)
    assert items.rows == {}


def test_rollup_group_keys(purchase_service, purchases, disbursement_service, disbursements):
    purchase_service.rollup(" Supplier ")
    disbursement_service.rollup("recipient")

    assert purchases.rollups == ["supplier"]
    assert disbursements.rollups == ["recipient"]
    with pytest.raises(ValidationError):
        purchase_service.rollup("purpose")


def test_stale_purchase_delete_leaves_stock_alone(item_service, items, purchase_service, purchases):
    item = _paper(item_service, stock=5)
    purchase = purchase_service.create(item_id=item.item_id, qty=3, purchase_date=date(2024, 3, 1), unit_price=1)
    stale = purchases.rows[purchase.purchase_id]

    purchase_service.delete(purchase.purchase_id)
    purchases.get = lambda **kw: stale

    with pytest.raises(NotFoundError):
        purchase_service.delete(purchase.purchase_id)
    assert items.rows[item.item_id].current_stock == 5


def test_stale_disbursement_delete_leaves_stock_alone(item_service, items, disbursement_service, disbursements):
    item = _paper(item_service, stock=10)
    d = disbursement_service.create(item_id=item.item_id, qty=4, disbursement_date=date(2024, 3, 2), purpose="Use")
    stale = disbursements.rows[d.disbursement_id]

    disbursement_service.delete(d.disbursement_id)
    disbursements.get = lambda **kw: stale

    with pytest.raises(NotFoundError):
        disbursement_service.delete(d.disbursement_id)
    assert items.rows[item.item_id].current_stock == 10
