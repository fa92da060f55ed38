from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional, Sequence, Set, Tuple

from ..common.pagination import PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import AllocationInput, Budget, BudgetAllocation
from .repository import BudgetRepository

_SELECT = """
    SELECT b.budget_id, b.month, b.year, b.total_budget,
           (SELECT COUNT(*) FROM receipts r WHERE r.budget_id = b.budget_id) AS receipt_count
    FROM budgets b
"""


class MySQLBudgetRepository(BudgetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _allocations(self, cur, budget_ids: Sequence[int]) -> Dict[int, list[BudgetAllocation]]:
        out: Dict[int, list[BudgetAllocation]] = {bid: [] for bid in budget_ids}
        if not budget_ids:
            return out
        placeholders = ",".join(["%s"] * len(budget_ids))
        cur.execute(
            f"""
            SELECT a.budget_id, a.category_id, c.name AS category_name, a.amount
            FROM budget_allocations a
            JOIN budget_categories c ON c.category_id = a.category_id
            WHERE a.budget_id IN ({placeholders})
            ORDER BY c.name ASC
            """,
            tuple(budget_ids),
        )
        for r in fetchall(cur):
            out[int(r["budget_id"])].append(
                BudgetAllocation(
                    category_id=int(r["category_id"]),
                    category_name=str(r["category_name"]),
                    amount=to_decimal(r["amount"]),
                )
            )
        return out

    def _hydrate(self, cur, rows: list[dict]) -> list[Budget]:
        allocations = self._allocations(cur, [int(r["budget_id"]) for r in rows])
        return [
            Budget(
                budget_id=int(r["budget_id"]),
                month=int(r["month"]),
                year=int(r["year"]),
                total_budget=to_decimal(r["total_budget"]),
                allocations=tuple(allocations[int(r["budget_id"])]),
                receipt_count=int(r["receipt_count"]),
            )
            for r in rows
        ]

    def create(self, *, month: int, year: int, total_budget: Decimal) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO budgets(month, year, total_budget) VALUES(%s,%s,%s)",
                (int(month), int(year), total_budget),
            )
            return int(cur.lastrowid)

    def get(self, *, budget_id: int) -> Optional[Budget]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE b.budget_id=%s", (int(budget_id),))
            r = fetchone(cur)
            return self._hydrate(cur, [r])[0] if r else None

    def get_by_period(self, *, month: int, year: int) -> Optional[Budget]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE b.month=%s AND b.year=%s", (int(month), int(year)))
            r = fetchone(cur)
            return self._hydrate(cur, [r])[0] if r else None

    def list(self, *, year: Optional[int], page: PageRequest) -> Tuple[Sequence[Budget], int]:
        where = " WHERE b.year=%s" if year is not None else ""
        params: tuple = (int(year),) if year is not None else ()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM budgets b{where}", params)
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"{_SELECT}{where} ORDER BY b.year DESC, b.month DESC LIMIT %s OFFSET %s",
                params + (page.limit, page.offset),
            )
            return self._hydrate(cur, fetchall(cur)), total

    def replace_allocations(self, *, budget_id: int, allocations: Sequence[AllocationInput]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM budget_allocations WHERE budget_id=%s", (int(budget_id),))
            cur.executemany(
                "INSERT INTO budget_allocations(budget_id, category_id, amount) VALUES(%s,%s,%s)",
                [(int(budget_id), int(a.category_id), a.amount) for a in allocations],
            )

    def update_total(self, *, budget_id: int, total_budget: Decimal) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE budgets SET total_budget=%s WHERE budget_id=%s", (total_budget, int(budget_id)))

    def delete(self, *, budget_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM budgets WHERE budget_id=%s", (int(budget_id),))
            return cur.rowcount == 1

    def count_receipts(self, *, budget_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM receipts WHERE budget_id=%s", (int(budget_id),))
            return int(fetchone(cur)["total"])

    def categories_used_by_receipts(self, *, budget_id: int) -> Set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT li.category_id
                FROM receipt_line_items li
                JOIN receipts r ON r.receipt_id = li.receipt_id
                WHERE r.budget_id=%s
                """,
                (int(budget_id),),
            )
            return {int(r["category_id"]) for r in fetchall(cur)}

    def total_spent(self, *, budget_id: int) -> Decimal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COALESCE(SUM(total_after_tax), 0) AS total FROM receipts WHERE budget_id=%s",
                (int(budget_id),),
            )
            return to_decimal(fetchone(cur)["total"])

    def spent_by_category(self, *, budget_id: int) -> Dict[int, Decimal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT li.category_id, COALESCE(SUM(li.amount_after_discount), 0) AS spent
                FROM receipt_line_items li
                JOIN receipts r ON r.receipt_id = li.receipt_id
                WHERE r.budget_id=%s
                GROUP BY li.category_id
                """,
                (int(budget_id),),
            )
            return {int(r["category_id"]): to_decimal(r["spent"]) for r in fetchall(cur)}
