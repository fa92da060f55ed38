from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from ..common.pagination import PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, to_date, to_decimal
from .model import Disbursement, MovementQuery, Purchase, StockRollupRow
from .repository import DisbursementRepository, PurchaseRepository

_PURCHASE_COLUMNS = """
    p.purchase_id, p.item_id, p.qty, p.purchase_date, p.supplier, p.unit_price, p.total_price, p.note,
    i.name AS item_name
"""

_DISBURSEMENT_COLUMNS = """
    d.disbursement_id, d.item_id, d.qty, d.disbursement_date, d.purpose, d.recipient, d.note,
    i.name AS item_name
"""

_PURCHASE_GROUPS = {
    "item": ("i.name", "p.item_id, i.name"),
    "supplier": ("COALESCE(p.supplier, '-')", "COALESCE(p.supplier, '-')"),
}

_DISBURSEMENT_GROUPS = {
    "item": ("i.name", "d.item_id, i.name"),
    "purpose": ("d.purpose", "d.purpose"),
    "recipient": ("COALESCE(d.recipient, '-')", "COALESCE(d.recipient, '-')"),
}


def _movement_where(alias: str, date_column: str, query: MovementQuery) -> Tuple[str, list[object]]:
    clauses: list[str] = []
    params: list[object] = []
    if query.item_id is not None:
        clauses.append(f"{alias}.item_id=%s")
        params.append(int(query.item_id))
    if query.start_date is not None:
        clauses.append(f"{alias}.{date_column} >= %s")
        params.append(query.start_date)
    if query.end_date is not None:
        clauses.append(f"{alias}.{date_column} <= %s")
        params.append(query.end_date)
    return build_where(clauses), params


def _row_to_purchase(r: dict) -> Purchase:
    return Purchase(
        purchase_id=int(r["purchase_id"]),
        item_id=int(r["item_id"]),
        qty=int(r["qty"]),
        purchase_date=to_date(r["purchase_date"]),
        supplier=r.get("supplier"),
        unit_price=to_decimal(r["unit_price"]),
        total_price=to_decimal(r["total_price"]),
        note=r.get("note"),
        item_name=r.get("item_name"),
    )


def _row_to_disbursement(r: dict) -> Disbursement:
    return Disbursement(
        disbursement_id=int(r["disbursement_id"]),
        item_id=int(r["item_id"]),
        qty=int(r["qty"]),
        disbursement_date=to_date(r["disbursement_date"]),
        purpose=str(r["purpose"]),
        recipient=r.get("recipient"),
        note=r.get("note"),
        item_name=r.get("item_name"),
    )


class MySQLPurchaseRepository(PurchaseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO purchases(item_id, qty, purchase_date, supplier, unit_price, total_price, note)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(item_id), int(qty), purchase_date, supplier, unit_price, total_price, note),
            )
            return int(cur.lastrowid)

    def get(self, *, purchase_id: int) -> Optional[Purchase]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PURCHASE_COLUMNS}
                FROM purchases p JOIN inventory_items i ON i.item_id = p.item_id
                WHERE p.purchase_id=%s
                """,
                (int(purchase_id),),
            )
            r = fetchone(cur)
            return _row_to_purchase(r) if r else None

    def list(self, *, query: MovementQuery, page: PageRequest) -> Tuple[Sequence[Purchase], int]:
        where, params = _movement_where("p", "purchase_date", query)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM purchases p{where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_PURCHASE_COLUMNS}
                FROM purchases p JOIN inventory_items i ON i.item_id = p.item_id{where}
                ORDER BY p.purchase_date DESC, p.purchase_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (page.limit, page.offset),
            )
            return [_row_to_purchase(r) for r in fetchall(cur)], total

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE purchases
                SET qty=%s, purchase_date=%s, supplier=%s, unit_price=%s, total_price=%s, note=%s
                WHERE purchase_id=%s
                """,
                (int(qty), purchase_date, supplier, unit_price, total_price, note, int(purchase_id)),
            )

    def delete(self, *, purchase_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM purchases WHERE purchase_id=%s", (int(purchase_id),))
            return cur.rowcount == 1

    def rollup(self, *, group_by: str, query: MovementQuery) -> Sequence[StockRollupRow]:
        key, group = _PURCHASE_GROUPS[group_by]
        where, params = _movement_where("p", "purchase_date", query)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {key} AS group_key,
                       COALESCE(SUM(p.qty), 0) AS total_qty,
                       COUNT(*) AS movement_count,
                       COALESCE(SUM(p.total_price), 0) AS total_price
                FROM purchases p JOIN inventory_items i ON i.item_id = p.item_id{where}
                GROUP BY {group}
                ORDER BY total_qty DESC
                """,
                tuple(params),
            )
            return [
                StockRollupRow(
                    key=str(r["group_key"]),
                    total_qty=int(r["total_qty"]),
                    movement_count=int(r["movement_count"]),
                    total_price=to_decimal(r["total_price"]),
                )
                for r in fetchall(cur)
            ]


class MySQLDisbursementRepository(DisbursementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO disbursements(item_id, qty, disbursement_date, purpose, recipient, note)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(item_id), int(qty), disbursement_date, purpose, recipient, note),
            )
            return int(cur.lastrowid)

    def get(self, *, disbursement_id: int) -> Optional[Disbursement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_DISBURSEMENT_COLUMNS}
                FROM disbursements d JOIN inventory_items i ON i.item_id = d.item_id
                WHERE d.disbursement_id=%s
                """,
                (int(disbursement_id),),
            )
            r = fetchone(cur)
            return _row_to_disbursement(r) if r else None

    def list(self, *, query: MovementQuery, page: PageRequest) -> Tuple[Sequence[Disbursement], int]:
        where, params = _movement_where("d", "disbursement_date", query)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM disbursements d{where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_DISBURSEMENT_COLUMNS}
                FROM disbursements d JOIN inventory_items i ON i.item_id = d.item_id{where}
                ORDER BY d.disbursement_date DESC, d.disbursement_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (page.limit, page.offset),
            )
            return [_row_to_disbursement(r) for r in fetchall(cur)], total

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE disbursements
                SET qty=%s, disbursement_date=%s, purpose=%s, recipient=%s, note=%s
                WHERE disbursement_id=%s
                """,
                (int(qty), disbursement_date, purpose, recipient, note, int(disbursement_id)),
            )

    def delete(self, *, disbursement_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM disbursements WHERE disbursement_id=%s", (int(disbursement_id),))
            return cur.rowcount == 1

    def rollup(self, *, group_by: str, query: MovementQuery) -> Sequence[StockRollupRow]:
        key, group = _DISBURSEMENT_GROUPS[group_by]
        where, params = _movement_where("d", "disbursement_date", query)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {key} AS group_key,
                       COALESCE(SUM(d.qty), 0) AS total_qty,
                       COUNT(*) AS movement_count
                FROM disbursements d JOIN inventory_items i ON i.item_id = d.item_id{where}
                GROUP BY {group}
                ORDER BY total_qty DESC
                """,
                tuple(params),
            )
            return [
                StockRollupRow(
                    key=str(r["group_key"]),
                    total_qty=int(r["total_qty"]),
                    movement_count=int(r["movement_count"]),
                )
                for r in fetchall(cur)
            ]
