from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence, Tuple

from ..common.pagination import PageRequest
from ..core.enums import EmployeeStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_where, db_cursor, fetchall, fetchone, to_date
from .model import Employee, EmployeeQuery
from .repository import EmployeeRepository

_COLUMNS = "employee_id, national_id, name, job_title, department, hire_date, status, badge_number"


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        national_id=str(r["national_id"]),
        name=str(r["name"]),
        job_title=r.get("job_title"),
        department=r.get("department"),
        hire_date=to_date(r["hire_date"]),
        status=EmployeeStatus(r["status"]),
        badge_number=int(r["badge_number"]) if r.get("badge_number") is not None else None,
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        national_id: str,
        name: str,
        job_title: Optional[str],
        department: Optional[str],
        hire_date: date,
        badge_number: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(national_id, name, job_title, department, hire_date, status, badge_number)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (national_id, name, job_title, department, hire_date, EmployeeStatus.ACTIVE.value, badge_number),
            )
            return int(cur.lastrowid)

    def get(self, *, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def get_by_national_id(self, *, national_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE national_id=%s", (national_id,))
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def get_by_badge_number(self, *, badge_number: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE badge_number=%s", (int(badge_number),))
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def list(self, *, query: EmployeeQuery, page: PageRequest) -> Tuple[Sequence[Employee], int]:
        clauses: list[str] = []
        params: list[object] = []
        if query.status is not None:
            clauses.append("status=%s")
            params.append(query.status.value)
        if query.department:
            clauses.append("department=%s")
            params.append(query.department)
        if query.search:
            clauses.append("(name LIKE %s OR national_id LIKE %s)")
            params.extend([f"%{query.search}%", f"%{query.search}%"])
        where = build_where(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM employees{where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees{where} ORDER BY name ASC LIMIT %s OFFSET %s",
                tuple(params) + (page.limit, page.offset),
            )
            return [_row_to_employee(r) for r in fetchall(cur)], total

    def list_active(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE status=%s ORDER BY name ASC",
                (EmployeeStatus.ACTIVE.value,),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]

    def list_active_by_badge_numbers(self, *, badge_numbers: Iterable[int]) -> Sequence[Employee]:
        numbers = sorted({int(n) for n in badge_numbers})
        if not numbers:
            return []
        placeholders = ",".join(["%s"] * len(numbers))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE status=%s AND badge_number IN ({placeholders})",
                (EmployeeStatus.ACTIVE.value, *numbers),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]

    def update(
        self,
        *,
        employee_id: int,
        name: str,
        job_title: Optional[str],
        department: Optional[str],
        hire_date: date,
        badge_number: Optional[int],
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET name=%s, job_title=%s, department=%s, hire_date=%s, badge_number=%s
                WHERE employee_id=%s
                """,
                (name, job_title, department, hire_date, badge_number, int(employee_id)),
            )

    def update_status(self, *, employee_id: int, status: EmployeeStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET status=%s WHERE employee_id=%s",
                (status.value, int(employee_id)),
            )
            return cur.rowcount == 1
