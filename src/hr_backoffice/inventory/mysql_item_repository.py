from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..common.pagination import PageRequest
from ..core.enums import ItemCategory
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, lock_clause
from .model import InventoryItem, ItemQuery
from .repository import ItemRepository

_COLUMNS = "item_id, code, name, category, unit, min_stock, current_stock, note"


def _row_to_item(r: dict) -> InventoryItem:
    return InventoryItem(
        item_id=int(r["item_id"]),
        code=str(r["code"]),
        name=str(r["name"]),
        category=ItemCategory(r["category"]),
        unit=str(r["unit"]),
        min_stock=int(r["min_stock"]),
        current_stock=int(r["current_stock"]),
        note=r.get("note"),
    )


class MySQLItemRepository(ItemRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO inventory_items(code, name, category, unit, min_stock, current_stock, note)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (code, name, category.value, unit, int(min_stock), int(current_stock), note),
            )
            return int(cur.lastrowid)

    def get(self, *, item_id: int, for_update: bool = False) -> Optional[InventoryItem]:
        lock = lock_clause(self._conn_factory) if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM inventory_items WHERE item_id=%s{lock}", (int(item_id),))
            r = fetchone(cur)
            return _row_to_item(r) if r else None

    def get_by_code(self, *, code: str) -> Optional[InventoryItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM inventory_items WHERE code=%s", (code,))
            r = fetchone(cur)
            return _row_to_item(r) if r else None

    def list(self, *, query: ItemQuery, page: PageRequest) -> Tuple[Sequence[InventoryItem], int]:
        clauses: list[str] = []
        params: list[object] = []
        if query.category is not None:
            clauses.append("category=%s")
            params.append(query.category.value)
        if query.search:
            clauses.append("(code LIKE %s OR name LIKE %s)")
            params.extend([f"%{query.search}%", f"%{query.search}%"])
        if query.low_stock:
            clauses.append("current_stock <= min_stock")
        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM inventory_items{where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM inventory_items{where} ORDER BY code ASC LIMIT %s OFFSET %s",
                tuple(params) + (page.limit, page.offset),
            )
            return [_row_to_item(r) for r in fetchall(cur)], total

    def list_low_stock(self) -> Sequence[InventoryItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM inventory_items
                WHERE current_stock <= min_stock
                ORDER BY (min_stock - current_stock) DESC, code ASC
                """
            )
            return [_row_to_item(r) for r in fetchall(cur)]

    def update(self, *, item_id: int, name: str, unit: str, min_stock: int, note: Optional[str]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE inventory_items SET name=%s, unit=%s, min_stock=%s, note=%s WHERE item_id=%s",
                (name, unit, int(min_stock), note, int(item_id)),
            )

    def adjust_stock(self, *, item_id: int, delta: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE inventory_items SET current_stock = current_stock + %s WHERE item_id=%s",
                (int(delta), int(item_id)),
            )

    def count_movements(self, *, item_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM purchases WHERE item_id=%s)
                    + (SELECT COUNT(*) FROM disbursements WHERE item_id=%s) AS total
                """,
                (int(item_id), int(item_id)),
            )
            return int(fetchone(cur)["total"])

    def delete(self, *, item_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM inventory_items WHERE item_id=%s", (int(item_id),))
            return cur.rowcount == 1
