from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import ItemCategory


@dataclass(frozen=True)
class InventoryItem:
    item_id: int
    code: str
    name: str
    category: ItemCategory
    unit: str
    min_stock: int
    current_stock: int
    note: Optional[str] = None

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.min_stock

    @property
    def shortfall(self) -> int:
        return max(self.min_stock - self.current_stock, 0)


@dataclass(frozen=True)
class LowStockItem:
    item: InventoryItem
    shortfall: int


@dataclass(frozen=True)
class ItemQuery:
    category: Optional[ItemCategory] = None
    search: Optional[str] = None
    low_stock: bool = False


@dataclass(frozen=True)
class Purchase:
    purchase_id: int
    item_id: int
    qty: int
    purchase_date: date
    supplier: Optional[str]
    unit_price: Decimal
    total_price: Decimal
    note: Optional[str] = None
    item_name: Optional[str] = None


@dataclass(frozen=True)
class Disbursement:
    disbursement_id: int
    item_id: int
    qty: int
    disbursement_date: date
    purpose: str
    recipient: Optional[str]
    note: Optional[str] = None
    item_name: Optional[str] = None


@dataclass(frozen=True)
class MovementQuery:
    """Filters shared by purchase and disbursement listings."""

    item_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class StockRollupRow:
    key: str
    total_qty: int
    movement_count: int
    total_price: Optional[Decimal] = None
