from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence, Tuple

from ..common.pagination import PageRequest
from ..core.enums import EmployeeStatus
from .model import Employee, EmployeeQuery


class EmployeeRepository(Protocol):
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
        raise NotImplementedError

    def get(self, *, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_national_id(self, *, national_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_badge_number(self, *, badge_number: int) -> Optional[Employee]:
        raise NotImplementedError

    def list(self, *, query: EmployeeQuery, page: PageRequest) -> Tuple[Sequence[Employee], int]:
        """Return one page of employees ordered by name plus the total count."""

        raise NotImplementedError

    def list_active(self) -> Sequence[Employee]:
        raise NotImplementedError

    def list_active_by_badge_numbers(self, *, badge_numbers: Iterable[int]) -> Sequence[Employee]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_status(self, *, employee_id: int, status: EmployeeStatus) -> bool:
        raise NotImplementedError
