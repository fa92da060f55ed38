from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from ..common.pagination import PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Label
from .repository import LabelRepository

_COLUMNS = "label_id, name, description, color, is_active"


def _row_to_label(r: dict) -> Label:
    return Label(
        label_id=int(r["label_id"]),
        name=str(r["name"]),
        description=r.get("description"),
        color=r.get("color"),
        is_active=bool(r["is_active"]),
    )


class MySQLLabelRepository(LabelRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, name: str, description: Optional[str], color: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO labels(name, description, color, is_active) VALUES(%s,%s,%s,1)",
                (name, description, color),
            )
            return int(cur.lastrowid)

    def get(self, *, label_id: int) -> Optional[Label]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM labels WHERE label_id=%s", (int(label_id),))
            r = fetchone(cur)
            return _row_to_label(r) if r else None

    def get_by_name(self, *, name: str) -> Optional[Label]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM labels WHERE name=%s", (name,))
            r = fetchone(cur)
            return _row_to_label(r) if r else None

    def list(self, *, is_active: Optional[bool], page: PageRequest) -> Tuple[Sequence[Label], int]:
        where = " WHERE is_active=%s" if is_active is not None else ""
        params: tuple = (int(is_active),) if is_active is not None else ()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM labels{where}", params)
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM labels{where} ORDER BY name ASC LIMIT %s OFFSET %s",
                params + (page.limit, page.offset),
            )
            return [_row_to_label(r) for r in fetchall(cur)], total

    def list_active(self) -> Sequence[Label]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM labels WHERE is_active=1 ORDER BY name ASC")
            return [_row_to_label(r) for r in fetchall(cur)]

    def find_many_active_by_ids(self, *, label_ids: Iterable[int]) -> Sequence[Label]:
        ids = sorted({int(i) for i in label_ids})
        if not ids:
            return []
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM labels WHERE is_active=1 AND label_id IN ({placeholders})",
                tuple(ids),
            )
            return [_row_to_label(r) for r in fetchall(cur)]

    def update(
        self,
        *,
        label_id: int,
        name: str,
        description: Optional[str],
        color: Optional[str],
        is_active: bool,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE labels SET name=%s, description=%s, color=%s, is_active=%s WHERE label_id=%s",
                (name, description, color, int(is_active), int(label_id)),
            )

    def count_line_item_references(self, *, label_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM receipt_line_items WHERE label_id=%s", (int(label_id),))
            return int(fetchone(cur)["total"])

    def delete(self, *, label_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM labels WHERE label_id=%s", (int(label_id),))
            return cur.rowcount == 1
