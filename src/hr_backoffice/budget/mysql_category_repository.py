from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from ..common.pagination import PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import BudgetCategory
from .repository import CategoryRepository

_COLUMNS = "category_id, name, description, is_active"


def _row_to_category(r: dict) -> BudgetCategory:
    return BudgetCategory(
        category_id=int(r["category_id"]),
        name=str(r["name"]),
        description=r.get("description"),
        is_active=bool(r["is_active"]),
    )


class MySQLCategoryRepository(CategoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, name: str, description: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO budget_categories(name, description, is_active) VALUES(%s,%s,1)",
                (name, description),
            )
            return int(cur.lastrowid)

    def get(self, *, category_id: int) -> Optional[BudgetCategory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM budget_categories WHERE category_id=%s", (int(category_id),))
            r = fetchone(cur)
            return _row_to_category(r) if r else None

    def get_by_name(self, *, name: str) -> Optional[BudgetCategory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM budget_categories WHERE name=%s", (name,))
            r = fetchone(cur)
            return _row_to_category(r) if r else None

    def list(self, *, is_active: Optional[bool], page: PageRequest) -> Tuple[Sequence[BudgetCategory], int]:
        where = " WHERE is_active=%s" if is_active is not None else ""
        params: tuple = (int(is_active),) if is_active is not None else ()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM budget_categories{where}", params)
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM budget_categories{where} ORDER BY name ASC LIMIT %s OFFSET %s",
                params + (page.limit, page.offset),
            )
            return [_row_to_category(r) for r in fetchall(cur)], total

    def list_active(self) -> Sequence[BudgetCategory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM budget_categories WHERE is_active=1 ORDER BY name ASC")
            return [_row_to_category(r) for r in fetchall(cur)]

    def find_many_active_by_ids(self, *, category_ids: Iterable[int]) -> Sequence[BudgetCategory]:
        ids = sorted({int(i) for i in category_ids})
        if not ids:
            return []
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM budget_categories WHERE is_active=1 AND category_id IN ({placeholders})",
                tuple(ids),
            )
            return [_row_to_category(r) for r in fetchall(cur)]

    def update(self, *, category_id: int, name: str, description: Optional[str], is_active: bool) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE budget_categories SET name=%s, description=%s, is_active=%s WHERE category_id=%s",
                (name, description, int(is_active), int(category_id)),
            )

    def count_line_item_references(self, *, category_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM receipt_line_items WHERE category_id=%s",
                (int(category_id),),
            )
            return int(fetchone(cur)["total"])

    def count_allocation_references(self, *, category_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM budget_allocations WHERE category_id=%s",
                (int(category_id),),
            )
            return int(fetchone(cur)["total"])

    def delete(self, *, category_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM budget_categories WHERE category_id=%s", (int(category_id),))
            return cur.rowcount == 1
