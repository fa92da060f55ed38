from __future__ import annotations

from datetime import date
from typing import Optional, Sequence, Tuple

from ..common.pagination import PageRequest
from ..core.enums import LeaveKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, to_date
from .model import KindSummaryRow, LeaveEntry, LeaveEntryQuery, ReasonRollupRow
from .repository import LeaveEntryRepository

_COLUMNS = (
    "leave_entry_id, employee_id, leave_year_id, year, kind, reason, "
    "start_date, end_date, days_count, created_at"
)


def _row_to_entry(r: dict) -> LeaveEntry:
    return LeaveEntry(
        leave_entry_id=int(r["leave_entry_id"]),
        employee_id=int(r["employee_id"]),
        leave_year_id=int(r["leave_year_id"]),
        year=int(r["year"]),
        kind=LeaveKind(r["kind"]),
        reason=str(r["reason"]),
        start_date=to_date(r["start_date"]),
        end_date=to_date(r["end_date"]),
        days_count=int(r["days_count"]),
        created_at=r.get("created_at"),
    )


class MySQLLeaveEntryRepository(LeaveEntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: int,
        leave_year_id: int,
        year: int,
        kind: LeaveKind,
        reason: str,
        start_date: date,
        end_date: date,
        days_count: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_entries(
                    employee_id, leave_year_id, year, kind, reason, start_date, end_date, days_count
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    int(leave_year_id),
                    int(year),
                    kind.value,
                    reason,
                    start_date,
                    end_date,
                    int(days_count),
                ),
            )
            return int(cur.lastrowid)

    def get(self, *, leave_entry_id: int) -> Optional[LeaveEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_entries WHERE leave_entry_id=%s", (int(leave_entry_id),))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def update(
        self,
        *,
        leave_entry_id: int,
        leave_year_id: int,
        year: int,
        kind: LeaveKind,
        reason: str,
        start_date: date,
        end_date: date,
        days_count: int,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_entries
                SET leave_year_id=%s, year=%s, kind=%s, reason=%s, start_date=%s, end_date=%s, days_count=%s
                WHERE leave_entry_id=%s
                """,
                (
                    int(leave_year_id),
                    int(year),
                    kind.value,
                    reason,
                    start_date,
                    end_date,
                    int(days_count),
                    int(leave_entry_id),
                ),
            )

    def delete(self, *, leave_entry_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_entries WHERE leave_entry_id=%s", (int(leave_entry_id),))
            return cur.rowcount == 1

    def list(self, *, query: LeaveEntryQuery, page: PageRequest) -> Tuple[Sequence[LeaveEntry], int]:
        clauses: list[str] = []
        params: list[object] = []
        if query.employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(query.employee_id))
        if query.kind is not None:
            clauses.append("kind=%s")
            params.append(query.kind.value)
        if query.year is not None:
            clauses.append("year=%s")
            params.append(int(query.year))
        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM leave_entries{where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_entries{where} ORDER BY start_date DESC LIMIT %s OFFSET %s",
                tuple(params) + (page.limit, page.offset),
            )
            return [_row_to_entry(r) for r in fetchall(cur)], total

    def list_for_leave_year(self, *, leave_year_id: int) -> Sequence[LeaveEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_entries WHERE leave_year_id=%s ORDER BY start_date ASC",
                (int(leave_year_id),),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def sum_days(self, *, employee_id: int, year: int, kind: LeaveKind) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(days_count), 0) AS total
                FROM leave_entries
                WHERE employee_id=%s AND year=%s AND kind=%s
                """,
                (int(employee_id), int(year), kind.value),
            )
            return int(fetchone(cur)["total"])

    def reason_rollup(self, *, year: Optional[int]) -> Sequence[ReasonRollupRow]:
        where = " WHERE year=%s" if year is not None else ""
        params = (int(year),) if year is not None else ()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT kind, reason, COUNT(*) AS entry_count, COALESCE(SUM(days_count), 0) AS total_days
                FROM leave_entries{where}
                GROUP BY kind, reason
                ORDER BY kind ASC, entry_count DESC
                """,
                params,
            )
            return [
                ReasonRollupRow(
                    kind=LeaveKind(r["kind"]),
                    reason=str(r["reason"]),
                    entry_count=int(r["entry_count"]),
                    total_days=int(r["total_days"]),
                )
                for r in fetchall(cur)
            ]

    def summary_by_kind(self, *, employee_id: int, year: Optional[int]) -> Sequence[KindSummaryRow]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if year is not None:
            clauses.append("year=%s")
            params.append(int(year))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT kind, COUNT(*) AS entry_count, COALESCE(SUM(days_count), 0) AS total_days
                FROM leave_entries{build_where(clauses)}
                GROUP BY kind
                ORDER BY kind ASC
                """,
                tuple(params),
            )
            return [
                KindSummaryRow(
                    kind=LeaveKind(r["kind"]),
                    entry_count=int(r["entry_count"]),
                    total_days=int(r["total_days"]),
                )
                for r in fetchall(cur)
            ]
