from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..common.pagination import PageRequest
from ..core.enums import LeaveYearKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, lock_clause
from .model import LeaveYear, LeaveYearRow
from .repository import LeaveYearRepository

_COLUMNS = (
    "ly.leave_year_id, ly.employee_id, ly.year, ly.base_allowance, ly.carry_forward, "
    "ly.total_entitlement, ly.used, ly.remaining, ly.kind"
)


def _row_to_leave_year(r: dict) -> LeaveYear:
    return LeaveYear(
        leave_year_id=int(r["leave_year_id"]),
        employee_id=int(r["employee_id"]),
        year=int(r["year"]),
        base_allowance=int(r["base_allowance"]),
        carry_forward=int(r["carry_forward"]),
        total_entitlement=int(r["total_entitlement"]),
        used=int(r["used"]),
        remaining=int(r["remaining"]),
        kind=LeaveYearKind(r["kind"]),
    )


class MySQLLeaveYearRepository(LeaveYearRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: int,
        year: int,
        base_allowance: int,
        carry_forward: int,
        total_entitlement: int,
        used: int,
        remaining: int,
        kind: LeaveYearKind,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_years(
                    employee_id, year, base_allowance, carry_forward, total_entitlement, used, remaining, kind
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    int(year),
                    int(base_allowance),
                    int(carry_forward),
                    int(total_entitlement),
                    int(used),
                    int(remaining),
                    kind.value,
                ),
            )
            return int(cur.lastrowid)

    def _lock(self, for_update: bool) -> str:
        return lock_clause(self._conn_factory) if for_update else ""

    def get(self, *, leave_year_id: int, for_update: bool = False) -> Optional[LeaveYear]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_years ly WHERE ly.leave_year_id=%s{self._lock(for_update)}",
                (int(leave_year_id),),
            )
            r = fetchone(cur)
            return _row_to_leave_year(r) if r else None

    def get_for_employee(self, *, employee_id: int, year: int, for_update: bool = False) -> Optional[LeaveYear]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_years ly WHERE ly.employee_id=%s AND ly.year=%s{self._lock(for_update)}",
                (int(employee_id), int(year)),
            )
            r = fetchone(cur)
            return _row_to_leave_year(r) if r else None

    def list(
        self,
        *,
        year: Optional[int],
        employee_id: Optional[int],
        page: PageRequest,
    ) -> Tuple[Sequence[LeaveYearRow], int]:
        clauses: list[str] = []
        params: list[object] = []
        if year is not None:
            clauses.append("ly.year=%s")
            params.append(int(year))
        if employee_id is not None:
            clauses.append("ly.employee_id=%s")
            params.append(int(employee_id))
        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM leave_years ly{where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}, e.national_id, e.name AS employee_name, e.department
                FROM leave_years ly
                JOIN employees e ON e.employee_id = ly.employee_id
                {where}
                ORDER BY ly.year DESC, e.name ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (page.limit, page.offset),
            )
            rows = [
                LeaveYearRow(
                    leave_year=_row_to_leave_year(r),
                    national_id=str(r["national_id"]),
                    employee_name=str(r["employee_name"]),
                    department=r.get("department"),
                )
                for r in fetchall(cur)
            ]
            return rows, total

    def apply_usage(self, *, leave_year_id: int, days: int) -> None:
        # MySQL evaluates SET assignments left to right: remaining sees the new used.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_years
                SET used = used + %s,
                    remaining = total_entitlement - used
                WHERE leave_year_id=%s
                """,
                (int(days), int(leave_year_id)),
            )
