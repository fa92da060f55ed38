from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_non_empty, require_positive_int
from ..core.enums import EmployeeStatus
from ..core.exceptions import BusinessLogicError, ConflictError, NotFoundError
from .model import Employee, EmployeeQuery
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeInput:
    national_id: str
    name: str
    hire_date: date
    job_title: Optional[str] = None
    department: Optional[str] = None
    badge_number: Optional[int] = None


class EmployeeService:
    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def create(self, data: EmployeeInput) -> Employee:
        national_id = require_non_empty(data.national_id, "national_id")
        name = require_non_empty(data.name, "name")
        badge_number = self._clean_badge(data.badge_number)

        if self._employees.get_by_national_id(national_id=national_id):
            raise ConflictError(f"Employee with national id {national_id} already exists")
        self._ensure_badge_free(badge_number)

        employee_id = self._employees.create(
            national_id=national_id,
            name=name,
            job_title=optional_text(data.job_title),
            department=optional_text(data.department),
            hire_date=data.hire_date,
            badge_number=badge_number,
        )
        logger.info("Employee created: id=%s national_id=%s", employee_id, national_id)
        return self.get(employee_id)

    def get(self, employee_id: int) -> Employee:
        employee = self._employees.get(employee_id=int(employee_id))
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def get_by_national_id(self, national_id: str) -> Employee:
        employee = self._employees.get_by_national_id(national_id=(national_id or "").strip())
        if not employee:
            raise NotFoundError(f"Employee with national id {national_id} not found")
        return employee

    def list(self, query: Optional[EmployeeQuery] = None, page: Optional[PageRequest] = None) -> Page[Employee]:
        page = page or PageRequest()
        items, total = self._employees.list(query=query or EmployeeQuery(), page=page)
        return Page.of(items, total, page)

    def list_active(self) -> Sequence[Employee]:
        return self._employees.list_active()

    def update(
        self,
        employee_id: int,
        *,
        name: Optional[str] = None,
        job_title: Optional[str] = None,
        department: Optional[str] = None,
        hire_date: Optional[date] = None,
        badge_number: Optional[int] = None,
    ) -> Employee:
        current = self.get(employee_id)

        new_badge = current.badge_number
        if badge_number is not None:
            new_badge = self._clean_badge(badge_number)
            if new_badge != current.badge_number:
                self._ensure_badge_free(new_badge)

        self._employees.update(
            employee_id=current.employee_id,
            name=require_non_empty(name, "name") if name is not None else current.name,
            job_title=optional_text(job_title) if job_title is not None else current.job_title,
            department=optional_text(department) if department is not None else current.department,
            hire_date=hire_date or current.hire_date,
            badge_number=new_badge,
        )
        logger.info("Employee updated: id=%s", current.employee_id)
        return self.get(current.employee_id)

    def deactivate(self, employee_id: int) -> Employee:
        current = self.get(employee_id)
        if not current.is_active:
            raise BusinessLogicError(f"Employee {employee_id} is already inactive")
        self._employees.update_status(employee_id=current.employee_id, status=EmployeeStatus.INACTIVE)
        logger.info("Employee deactivated: id=%s", current.employee_id)
        return self.get(current.employee_id)

    @staticmethod
    def _clean_badge(badge_number: Optional[int]) -> Optional[int]:
        if badge_number is None or badge_number == "":
            return None
        return require_positive_int(badge_number, "badge_number")

    def _ensure_badge_free(self, badge_number: Optional[int]) -> None:
        if badge_number is None:
            return
        if self._employees.get_by_badge_number(badge_number=badge_number):
            raise ConflictError(f"Badge number {badge_number} is already assigned")
