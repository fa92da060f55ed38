from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_decimal, require_int, require_non_empty
from ..core.enums import ItemCategory
from ..core.exceptions import BusinessLogicError, ConflictError, NotFoundError, ValidationError
from ..database.transaction import TransactionManager
from .model import (
    Disbursement,
    InventoryItem,
    ItemQuery,
    LowStockItem,
    MovementQuery,
    Purchase,
    StockRollupRow,
)
from .repository import DisbursementRepository, ItemRepository, PurchaseRepository

logger = logging.getLogger(__name__)

PURCHASE_ROLLUP_KEYS = ("item", "supplier")
DISBURSEMENT_ROLLUP_KEYS = ("item", "purpose", "recipient")


def _require_positive_qty(qty) -> int:
    qty = require_int(qty, "qty")
    if qty <= 0:
        raise ValidationError("Quantity must be greater than 0")
    return qty


def _require_rollup_key(group_by: str, allowed: Sequence[str]) -> str:
    key = str(group_by or "").strip().lower()
    if key not in allowed:
        raise ValidationError(f"group_by must be one of: {', '.join(allowed)}")
    return key


@dataclass(frozen=True)
class ItemInput:
    code: str
    name: str
    category: ItemCategory
    unit: str
    min_stock: int = 0
    current_stock: int = 0
    note: Optional[str] = None


class ItemService:
    def __init__(self, items: ItemRepository, tx: TransactionManager):
        self._items = items
        self._tx = tx

    def create(self, data: ItemInput) -> InventoryItem:
        code = require_non_empty(data.code, "code").upper()
        if self._items.get_by_code(code=code):
            raise ConflictError(f"Item code '{code}' already exists")

        min_stock = require_int(data.min_stock, "min_stock")
        current_stock = require_int(data.current_stock, "current_stock")
        if min_stock < 0 or current_stock < 0:
            raise ValidationError("Stock levels must not be negative")

        item_id = self._items.create(
            code=code,
            name=require_non_empty(data.name, "name"),
            category=data.category,
            unit=require_non_empty(data.unit, "unit"),
            min_stock=min_stock,
            current_stock=current_stock,
            note=optional_text(data.note),
        )
        logger.info("Inventory item created: id=%s code=%s", item_id, code)
        return self.get(item_id)

    def get(self, item_id: int) -> InventoryItem:
        item = self._items.get(item_id=int(item_id))
        if not item:
            raise NotFoundError(f"Item {item_id} not found")
        return item

    def list(self, query: Optional[ItemQuery] = None, page: Optional[PageRequest] = None) -> Page[InventoryItem]:
        page = page or PageRequest()
        items, total = self._items.list(query=query or ItemQuery(), page=page)
        return Page.of(items, total, page)

    def update(
        self,
        item_id: int,
        *,
        name: Optional[str] = None,
        unit: Optional[str] = None,
        min_stock: Optional[int] = None,
        note: Optional[str] = None,
    ) -> InventoryItem:
        current = self.get(item_id)
        new_min = require_int(min_stock, "min_stock") if min_stock is not None else current.min_stock
        if new_min < 0:
            raise ValidationError("min_stock must not be negative")

        self._items.update(
            item_id=current.item_id,
            name=require_non_empty(name, "name") if name is not None else current.name,
            unit=require_non_empty(unit, "unit") if unit is not None else current.unit,
            min_stock=new_min,
            note=optional_text(note) if note is not None else current.note,
        )
        return self.get(current.item_id)

    def delete(self, item_id: int) -> InventoryItem:
        item = self.get(item_id)
        if self._items.count_movements(item_id=item.item_id) > 0:
            raise BusinessLogicError(
                f"Item '{item.code}' has purchase or disbursement history and cannot be deleted"
            )
        self._items.delete(item_id=item.item_id)
        logger.info("Inventory item deleted: id=%s code=%s", item.item_id, item.code)
        return item

    def low_stock(self) -> Sequence[LowStockItem]:
        return [LowStockItem(item=item, shortfall=item.shortfall) for item in self._items.list_low_stock()]


class PurchaseService:
    """Incoming stock. Every write moves ``current_stock`` in the same transaction."""

    def __init__(self, purchases: PurchaseRepository, items: ItemRepository, tx: TransactionManager):
        self._purchases = purchases
        self._items = items
        self._tx = tx

    def _require_item(self, item_id: int, *, for_update: bool = False) -> InventoryItem:
        item = self._items.get(item_id=require_int(item_id, "item_id"), for_update=for_update)
        if not item:
            raise NotFoundError(f"Item {item_id} not found")
        return item

    def create(
        self,
        *,
        item_id: int,
        qty: int,
        purchase_date: date,
        unit_price: Decimal,
        supplier: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Purchase:
        qty = _require_positive_qty(qty)
        unit_price = require_decimal(unit_price, "unit_price")
        if unit_price < 0:
            raise ValidationError("unit_price must not be negative")

        with self._tx.transaction():
            item = self._require_item(item_id, for_update=True)
            purchase_id = self._purchases.create(
                item_id=item.item_id,
                qty=qty,
                purchase_date=purchase_date,
                supplier=optional_text(supplier),
                unit_price=unit_price,
                total_price=unit_price * qty,
                note=optional_text(note),
            )
            self._items.adjust_stock(item_id=item.item_id, delta=qty)
            purchase = self._purchases.get(purchase_id=purchase_id)

        logger.info("Purchase recorded: id=%s item=%s qty=%s", purchase_id, item.item_id, qty)
        return purchase

    def update(
        self,
        purchase_id: int,
        *,
        qty: Optional[int] = None,
        purchase_date: Optional[date] = None,
        unit_price: Optional[Decimal] = None,
        supplier: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Purchase:
        current = self.get(purchase_id)
        new_qty = _require_positive_qty(qty) if qty is not None else current.qty
        new_price = require_decimal(unit_price, "unit_price") if unit_price is not None else current.unit_price
        if new_price < 0:
            raise ValidationError("unit_price must not be negative")

        with self._tx.transaction():
            self._require_item(current.item_id, for_update=True)
            self._purchases.update(
                purchase_id=current.purchase_id,
                qty=new_qty,
                purchase_date=purchase_date or current.purchase_date,
                supplier=optional_text(supplier) if supplier is not None else current.supplier,
                unit_price=new_price,
                total_price=new_price * new_qty,
                note=optional_text(note) if note is not None else current.note,
            )
            delta = new_qty - current.qty
            if delta:
                self._items.adjust_stock(item_id=current.item_id, delta=delta)
            updated = self._purchases.get(purchase_id=current.purchase_id)

        logger.info("Purchase updated: id=%s stock_delta=%s", current.purchase_id, new_qty - current.qty)
        return updated

    def delete(self, purchase_id: int) -> Purchase:
        purchase = self.get(purchase_id)
        with self._tx.transaction():
            item = self._require_item(purchase.item_id, for_update=True)
            if item.current_stock < purchase.qty:
                raise BusinessLogicError(
                    f"Cannot delete purchase: stock of '{item.code}' is {item.current_stock}, "
                    f"below the purchased quantity {purchase.qty}"
                )
            if not self._purchases.delete(purchase_id=purchase.purchase_id):
                raise NotFoundError(f"Purchase {purchase_id} not found")
            self._items.adjust_stock(item_id=item.item_id, delta=-purchase.qty)

        logger.info("Purchase deleted: id=%s item=%s qty=%s", purchase.purchase_id, purchase.item_id, purchase.qty)
        return purchase

    def get(self, purchase_id: int) -> Purchase:
        purchase = self._purchases.get(purchase_id=int(purchase_id))
        if not purchase:
            raise NotFoundError(f"Purchase {purchase_id} not found")
        return purchase

    def list(self, query: Optional[MovementQuery] = None, page: Optional[PageRequest] = None) -> Page[Purchase]:
        page = page or PageRequest()
        items, total = self._purchases.list(query=query or MovementQuery(), page=page)
        return Page.of(items, total, page)

    def rollup(self, group_by: str = "item", query: Optional[MovementQuery] = None) -> Sequence[StockRollupRow]:
        key = _require_rollup_key(group_by, PURCHASE_ROLLUP_KEYS)
        return self._purchases.rollup(group_by=key, query=query or MovementQuery())


class DisbursementService:
    """Outgoing stock. No floor: stock may go negative and is reported as a shortfall."""

    def __init__(self, disbursements: DisbursementRepository, items: ItemRepository, tx: TransactionManager):
        self._disbursements = disbursements
        self._items = items
        self._tx = tx

    def _require_item(self, item_id: int, *, for_update: bool = False) -> InventoryItem:
        item = self._items.get(item_id=require_int(item_id, "item_id"), for_update=for_update)
        if not item:
            raise NotFoundError(f"Item {item_id} not found")
        return item

    def create(
        self,
        *,
        item_id: int,
        qty: int,
        disbursement_date: date,
        purpose: str,
        recipient: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Disbursement:
        qty = _require_positive_qty(qty)
        purpose = require_non_empty(purpose, "purpose")

        with self._tx.transaction():
            item = self._require_item(item_id, for_update=True)
            disbursement_id = self._disbursements.create(
                item_id=item.item_id,
                qty=qty,
                disbursement_date=disbursement_date,
                purpose=purpose,
                recipient=optional_text(recipient),
                note=optional_text(note),
            )
            self._items.adjust_stock(item_id=item.item_id, delta=-qty)
            disbursement = self._disbursements.get(disbursement_id=disbursement_id)

        if item.current_stock - qty < 0:
            logger.warning("Stock of item %s went negative: %s", item.code, item.current_stock - qty)
        logger.info("Disbursement recorded: id=%s item=%s qty=%s", disbursement_id, item.item_id, qty)
        return disbursement

    def update(
        self,
        disbursement_id: int,
        *,
        qty: Optional[int] = None,
        disbursement_date: Optional[date] = None,
        purpose: Optional[str] = None,
        recipient: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Disbursement:
        current = self.get(disbursement_id)
        new_qty = _require_positive_qty(qty) if qty is not None else current.qty

        with self._tx.transaction():
            self._require_item(current.item_id, for_update=True)
            self._disbursements.update(
                disbursement_id=current.disbursement_id,
                qty=new_qty,
                disbursement_date=disbursement_date or current.disbursement_date,
                purpose=require_non_empty(purpose, "purpose") if purpose is not None else current.purpose,
                recipient=optional_text(recipient) if recipient is not None else current.recipient,
                note=optional_text(note) if note is not None else current.note,
            )
            delta = new_qty - current.qty
            if delta:
                self._items.adjust_stock(item_id=current.item_id, delta=-delta)
            updated = self._disbursements.get(disbursement_id=current.disbursement_id)

        logger.info("Disbursement updated: id=%s qty=%s", current.disbursement_id, new_qty)
        return updated

    def delete(self, disbursement_id: int) -> Disbursement:
        disbursement = self.get(disbursement_id)
        with self._tx.transaction():
            self._require_item(disbursement.item_id, for_update=True)
            if not self._disbursements.delete(disbursement_id=disbursement.disbursement_id):
                raise NotFoundError(f"Disbursement {disbursement_id} not found")
            self._items.adjust_stock(item_id=disbursement.item_id, delta=disbursement.qty)

        logger.info(
            "Disbursement deleted: id=%s item=%s restored=%s",
            disbursement.disbursement_id,
            disbursement.item_id,
            disbursement.qty,
        )
        return disbursement

    def get(self, disbursement_id: int) -> Disbursement:
        disbursement = self._disbursements.get(disbursement_id=int(disbursement_id))
        if not disbursement:
            raise NotFoundError(f"Disbursement {disbursement_id} not found")
        return disbursement

    def list(
        self, query: Optional[MovementQuery] = None, page: Optional[PageRequest] = None
    ) -> Page[Disbursement]:
        page = page or PageRequest()
        items, total = self._disbursements.list(query=query or MovementQuery(), page=page)
        return Page.of(items, total, page)

    def rollup(self, group_by: str = "item", query: Optional[MovementQuery] = None) -> Sequence[StockRollupRow]:
        key = _require_rollup_key(group_by, DISBURSEMENT_ROLLUP_KEYS)
        return self._disbursements.rollup(group_by=key, query=query or MovementQuery())
