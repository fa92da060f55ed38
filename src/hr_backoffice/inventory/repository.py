from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence, Tuple

from ..common.pagination import PageRequest
from ..core.enums import ItemCategory
from .model import Disbursement, InventoryItem, ItemQuery, MovementQuery, Purchase, StockRollupRow


class ItemRepository(Protocol):
    def create(
        self,
        *,
        code: str,
        name: str,
        category: ItemCategory,
        unit: str,
        min_stock: int,
        current_stock: int,
        note: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get(self, *, item_id: int, for_update: bool = False) -> Optional[InventoryItem]:
        raise NotImplementedError

    def get_by_code(self, *, code: str) -> Optional[InventoryItem]:
        raise NotImplementedError

    def list(self, *, query: ItemQuery, page: PageRequest) -> Tuple[Sequence[InventoryItem], int]:
        raise NotImplementedError

    def list_low_stock(self) -> Sequence[InventoryItem]:
        raise NotImplementedError

    def update(self, *, item_id: int, name: str, unit: str, min_stock: int, note: Optional[str]) -> None:
        raise NotImplementedError

    def adjust_stock(self, *, item_id: int, delta: int) -> None:
        """Atomically add ``delta`` (may be negative) to ``current_stock``."""
        raise NotImplementedError

    def count_movements(self, *, item_id: int) -> int:
        raise NotImplementedError

    def delete(self, *, item_id: int) -> bool:
        raise NotImplementedError


class PurchaseRepository(Protocol):
    def create(
        self,
        *,
        item_id: int,
        qty: int,
        purchase_date: date,
        supplier: Optional[str],
        unit_price: Decimal,
        total_price: Decimal,
        note: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get(self, *, purchase_id: int) -> Optional[Purchase]:
        raise NotImplementedError

    def list(self, *, query: MovementQuery, page: PageRequest) -> Tuple[Sequence[Purchase], int]:
        raise NotImplementedError

    def update(
        self,
        *,
        purchase_id: int,
        qty: int,
        purchase_date: date,
        supplier: Optional[str],
        unit_price: Decimal,
        total_price: Decimal,
        note: Optional[str],
    ) -> None:
        raise NotImplementedError

    def delete(self, *, purchase_id: int) -> bool:
        raise NotImplementedError

    def rollup(self, *, group_by: str, query: MovementQuery) -> Sequence[StockRollupRow]:
        raise NotImplementedError


class DisbursementRepository(Protocol):
    def create(
        self,
        *,
        item_id: int,
        qty: int,
        disbursement_date: date,
        purpose: str,
        recipient: Optional[str],
        note: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get(self, *, disbursement_id: int) -> Optional[Disbursement]:
        raise NotImplementedError

    def list(self, *, query: MovementQuery, page: PageRequest) -> Tuple[Sequence[Disbursement], int]:
        raise NotImplementedError

    def update(
        self,
        *,
        disbursement_id: int,
        qty: int,
        disbursement_date: date,
        purpose: str,
        recipient: Optional[str],
        note: Optional[str],
    ) -> None:
        raise NotImplementedError

    def delete(self, *, disbursement_id: int) -> bool:
        raise NotImplementedError

    def rollup(self, *, group_by: str, query: MovementQuery) -> Sequence[StockRollupRow]:
        raise NotImplementedError
