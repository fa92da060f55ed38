from __future__ import annotations

from datetime import date, time
from typing import Dict, Iterable, Optional, Sequence, Set, Tuple

from ..common.pagination import PageRequest
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, normalize_mysql_time, to_date
from .model import AttendanceQuery, AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    a.attendance_id, a.employee_id, a.work_date, a.clock_in_time, a.status, a.is_manual, a.note, a.entered_by,
    e.name AS employee_name, e.national_id
"""

_FROM = "attendance_records a JOIN employees e ON e.employee_id = a.employee_id"


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=to_date(r["work_date"]),
        clock_in_time=normalize_mysql_time(r.get("clock_in_time")),
        status=AttendanceStatus(r["status"]),
        is_manual=bool(r["is_manual"]),
        note=r.get("note"),
        entered_by=r.get("entered_by"),
        employee_name=r.get("employee_name"),
        national_id=r.get("national_id"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: int,
        work_date: date,
        clock_in_time: Optional[time],
        status: AttendanceStatus,
        is_manual: bool,
        note: Optional[str] = None,
        entered_by: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(employee_id, work_date, clock_in_time, status, is_manual, note, entered_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(employee_id), work_date, clock_in_time, status.value, 1 if is_manual else 0, note, entered_by),
            )
            return int(cur.lastrowid)

    def get(self, *, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM {_FROM} WHERE a.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_employee_and_date(self, *, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM {_FROM} WHERE a.employee_id=%s AND a.work_date=%s",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def employee_ids_with_record(
        self, *, work_date: date, employee_ids: Optional[Iterable[int]] = None
    ) -> Set[int]:
        sql = "SELECT employee_id FROM attendance_records WHERE work_date=%s"
        params: list[object] = [work_date]
        if employee_ids is not None:
            ids = sorted({int(i) for i in employee_ids})
            if not ids:
                return set()
            sql += f" AND employee_id IN ({','.join(['%s'] * len(ids))})"
            params.extend(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return {int(r["employee_id"]) for r in fetchall(cur)}

    def list(self, *, query: AttendanceQuery, page: PageRequest) -> Tuple[Sequence[AttendanceRecord], int]:
        clauses: list[str] = []
        params: list[object] = []
        if query.start_date is not None:
            clauses.append("a.work_date >= %s")
            params.append(query.start_date)
        if query.end_date is not None:
            clauses.append("a.work_date <= %s")
            params.append(query.end_date)
        if query.employee_id is not None:
            clauses.append("a.employee_id=%s")
            params.append(int(query.employee_id))
        if query.status is not None:
            clauses.append("a.status=%s")
            params.append(query.status.value)
        if query.is_manual is not None:
            clauses.append("a.is_manual=%s")
            params.append(1 if query.is_manual else 0)
        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records a{where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM {_FROM}{where}
                ORDER BY a.work_date DESC, e.name ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (page.limit, page.offset),
            )
            return [_row_to_record(r) for r in fetchall(cur)], total

    def list_between(self, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM {_FROM}
                WHERE a.work_date BETWEEN %s AND %s
                ORDER BY a.work_date ASC, e.name ASC
                """,
                (start_date, end_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        note: Optional[str],
        entered_by: Optional[str],
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET status=%s, note=%s, entered_by=%s WHERE attendance_id=%s",
                (status.value, note, entered_by, int(attendance_id)),
            )

    def delete(self, *, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount == 1

    def count_by_status(
        self, *, start_date: date, end_date: date, employee_id: Optional[int] = None
    ) -> Dict[str, int]:
        clauses = ["work_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT status, COUNT(*) AS total FROM attendance_records{build_where(clauses)} GROUP BY status",
                tuple(params),
            )
            return {str(r["status"]): int(r["total"]) for r in fetchall(cur)}
