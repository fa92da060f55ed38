from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from ..common.pagination import PageRequest
from ..core.enums import DiscountType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    build_where,
    db_cursor,
    fetchall,
    fetchone,
    to_date,
    to_decimal,
    to_optional_decimal,
)
from .model import PricedLine, Receipt, ReceiptLineItem, ReceiptTotals, RollupFilter, RollupRow
from .repository import ReceiptRepository

_COLUMNS = """
    r.receipt_id, r.budget_id, r.receipt_date, r.receipt_number, r.attachment_path, r.original_filename,
    r.total_price, r.total_discount, r.tax_percent, r.tax_amount, r.total_after_tax, r.note,
    (SELECT COUNT(*) FROM receipt_line_items li WHERE li.receipt_id = r.receipt_id) AS line_count
"""


def _row_to_receipt(r: dict, lines: Sequence[ReceiptLineItem] = ()) -> Receipt:
    return Receipt(
        receipt_id=int(r["receipt_id"]),
        budget_id=int(r["budget_id"]),
        receipt_date=to_date(r["receipt_date"]),
        receipt_number=r.get("receipt_number"),
        attachment_path=r.get("attachment_path"),
        original_filename=r.get("original_filename"),
        total_price=to_decimal(r["total_price"]),
        total_discount=to_decimal(r["total_discount"]),
        tax_percent=to_optional_decimal(r.get("tax_percent")),
        tax_amount=to_optional_decimal(r.get("tax_amount")),
        total_after_tax=to_decimal(r["total_after_tax"]),
        note=r.get("note"),
        lines=tuple(lines),
        line_count=int(r.get("line_count") or len(lines)),
    )


def _row_to_line(r: dict) -> ReceiptLineItem:
    return ReceiptLineItem(
        line_id=int(r["line_id"]),
        receipt_id=int(r["receipt_id"]),
        label_id=int(r["label_id"]),
        category_id=int(r["category_id"]),
        item_name=str(r["item_name"]),
        unit_price=to_decimal(r["unit_price"]),
        qty=int(r["qty"]),
        subtotal=to_decimal(r["subtotal"]),
        discount_type=DiscountType(r["discount_type"]) if r.get("discount_type") else None,
        discount_value=to_optional_decimal(r.get("discount_value")),
        discount_amount=to_decimal(r["discount_amount"]),
        amount_after_discount=to_decimal(r["amount_after_discount"]),
        inventory_item_id=int(r["inventory_item_id"]) if r.get("inventory_item_id") is not None else None,
        note=r.get("note"),
        label_name=r.get("label_name"),
        category_name=r.get("category_name"),
    )


def _filter_clauses(filters: RollupFilter) -> Tuple[str, list[object], str]:
    """WHERE clause over receipts ``r`` (joined to budgets ``b`` when filtering by period)."""

    if filters.budget_id is not None:
        return build_where(["r.budget_id=%s"]), [int(filters.budget_id)], ""
    if filters.year is not None:
        clauses = ["b.year=%s"]
        params: list[object] = [int(filters.year)]
        if filters.month is not None:
            clauses.append("b.month=%s")
            params.append(int(filters.month))
        return build_where(clauses), params, " JOIN budgets b ON b.budget_id = r.budget_id"
    return "", [], ""


class MySQLReceiptRepository(ReceiptRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        budget_id: int,
        receipt_date: date,
        receipt_number: Optional[str],
        attachment_path: Optional[str],
        original_filename: Optional[str],
        totals: ReceiptTotals,
        note: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO receipts(
                    budget_id, receipt_date, receipt_number, attachment_path, original_filename,
                    total_price, total_discount, tax_percent, tax_amount, total_after_tax, note
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(budget_id),
                    receipt_date,
                    receipt_number,
                    attachment_path,
                    original_filename,
                    totals.total_price,
                    totals.total_discount,
                    totals.tax_percent,
                    totals.tax_amount,
                    totals.total_after_tax,
                    note,
                ),
            )
            return int(cur.lastrowid)

    def add_lines(self, *, receipt_id: int, lines: Sequence[PricedLine]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO receipt_line_items(
                    receipt_id, label_id, category_id, item_name, inventory_item_id, unit_price, qty,
                    subtotal, discount_type, discount_value, discount_amount, amount_after_discount, note
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                [
                    (
                        int(receipt_id),
                        line.label_id,
                        line.category_id,
                        line.item_name,
                        line.inventory_item_id,
                        line.unit_price,
                        line.qty,
                        line.subtotal,
                        line.discount_type.value if line.discount_type else None,
                        line.discount_value,
                        line.discount_amount,
                        line.amount_after_discount,
                        line.note,
                    )
                    for line in lines
                ],
            )

    def get(self, *, receipt_id: int) -> Optional[Receipt]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM receipts r WHERE r.receipt_id=%s", (int(receipt_id),))
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                """
                SELECT li.*, l.name AS label_name, c.name AS category_name
                FROM receipt_line_items li
                JOIN labels l ON l.label_id = li.label_id
                JOIN budget_categories c ON c.category_id = li.category_id
                WHERE li.receipt_id=%s
                ORDER BY li.line_id ASC
                """,
                (int(receipt_id),),
            )
            return _row_to_receipt(r, [_row_to_line(x) for x in fetchall(cur)])

    def get_by_number(self, *, receipt_number: str) -> Optional[Receipt]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM receipts r WHERE r.receipt_number=%s", (receipt_number,))
            r = fetchone(cur)
            return _row_to_receipt(r) if r else None

    def list(self, *, filters: RollupFilter, page: PageRequest) -> Tuple[Sequence[Receipt], int]:
        where, params, join = _filter_clauses(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM receipts r{join}{where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM receipts r{join}{where}
                ORDER BY r.receipt_date DESC, r.receipt_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (page.limit, page.offset),
            )
            return [_row_to_receipt(r) for r in fetchall(cur)], total

    def update(
        self,
        *,
        receipt_id: int,
        receipt_date: date,
        receipt_number: Optional[str],
        attachment_path: Optional[str],
        original_filename: Optional[str],
        note: Optional[str],
        tax_percent: Optional[Decimal],
        tax_amount: Optional[Decimal],
        total_after_tax: Decimal,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE receipts
                SET receipt_date=%s, receipt_number=%s, attachment_path=%s, original_filename=%s, note=%s,
                    tax_percent=%s, tax_amount=%s, total_after_tax=%s
                WHERE receipt_id=%s
                """,
                (
                    receipt_date,
                    receipt_number,
                    attachment_path,
                    original_filename,
                    note,
                    tax_percent,
                    tax_amount,
                    total_after_tax,
                    int(receipt_id),
                ),
            )

    def delete_lines(self, *, receipt_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM receipt_line_items WHERE receipt_id=%s", (int(receipt_id),))
            return int(cur.rowcount)

    def delete(self, *, receipt_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM receipts WHERE receipt_id=%s", (int(receipt_id),))
            return cur.rowcount == 1

    def _rollup(self, *, key: str, table: str, filters: RollupFilter) -> Sequence[RollupRow]:
        where, params, join = _filter_clauses(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT li.{key} AS key_id, t.name,
                       COALESCE(SUM(li.amount_after_discount), 0) AS total_spent,
                       COALESCE(SUM(li.qty), 0) AS total_qty,
                       COUNT(li.line_id) AS line_count
                FROM receipt_line_items li
                JOIN receipts r ON r.receipt_id = li.receipt_id{join}
                LEFT JOIN {table} t ON t.{key} = li.{key}
                {where}
                GROUP BY li.{key}, t.name
                ORDER BY total_spent DESC
                """,
                tuple(params),
            )
            return [
                RollupRow(
                    key_id=int(r["key_id"]),
                    name=r.get("name"),
                    total_spent=to_decimal(r["total_spent"]),
                    total_qty=int(r["total_qty"]),
                    line_count=int(r["line_count"]),
                )
                for r in fetchall(cur)
            ]

    def rollup_by_label(self, *, filters: RollupFilter) -> Sequence[RollupRow]:
        return self._rollup(key="label_id", table="labels", filters=filters)

    def rollup_by_category(self, *, filters: RollupFilter) -> Sequence[RollupRow]:
        return self._rollup(key="category_id", table="budget_categories", filters=filters)
