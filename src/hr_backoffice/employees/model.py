from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import EmployeeStatus


@dataclass(frozen=True)
class Employee:
    employee_id: int
    national_id: str
    name: str
    job_title: Optional[str]
    department: Optional[str]
    hire_date: date
    status: EmployeeStatus
    badge_number: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE


@dataclass(frozen=True)
class EmployeeQuery:
    status: Optional[EmployeeStatus] = None
    department: Optional[str] = None
    search: Optional[str] = None
