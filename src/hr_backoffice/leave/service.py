from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import count_weekdays, current_year
from ..common.pagination import Page, PageRequest
from ..common.validators import require_date_range, require_int, require_non_empty
from ..core.enums import LeaveBalanceOperation, LeaveKind
from ..core.exceptions import BusinessLogicError, DomainError, NotFoundError, ValidationError
from ..database.transaction import TransactionManager
from ..employees.repository import EmployeeRepository
from .entitlement import EntitlementPolicyFactory
from .model import (
    BulkGenerationResult,
    GenerationFailure,
    KindSummaryRow,
    LeaveEntry,
    LeaveEntryQuery,
    LeaveYear,
    LeaveYearDetail,
    LeaveYearRow,
    ReasonRollupRow,
)
from .repository import LeaveEntryRepository, LeaveYearRepository

logger = logging.getLogger(__name__)


class LeaveYearService:
    """Entitlement records: generation, lookup and the balance primitive."""

    def __init__(
        self,
        leave_years: LeaveYearRepository,
        leave_entries: LeaveEntryRepository,
        employees: EmployeeRepository,
        tx: TransactionManager,
        *,
        policy_factory: Optional[EntitlementPolicyFactory] = None,
    ):
        self._leave_years = leave_years
        self._leave_entries = leave_entries
        self._employees = employees
        self._tx = tx
        self._policy_factory = policy_factory or EntitlementPolicyFactory()

    def generate(self, employee_id: int, year: int) -> LeaveYear:
        """Create the leave year of an employee. Fails loudly when it already exists."""
        year = require_int(year, "year")
        logger.info("Generating leave year: employee=%s year=%s", employee_id, year)

        with self._tx.transaction():
            employee = self._employees.get(employee_id=int(employee_id))
            if not employee:
                raise NotFoundError(f"Employee {employee_id} not found")
            if not employee.is_active:
                raise BusinessLogicError(f"Employee {employee_id} is not active")

            if self._leave_years.get_for_employee(employee_id=employee.employee_id, year=year):
                raise BusinessLogicError(
                    f"Leave year {year} already exists for employee {employee.employee_id}"
                )

            # Only a positive leftover is carried; a negative balance is not propagated.
            previous = self._leave_years.get_for_employee(employee_id=employee.employee_id, year=year - 1)
            carry_forward = previous.remaining if previous and previous.remaining > 0 else 0

            policy = self._policy_factory.for_year(hire_date=employee.hire_date, year=year)
            entitlement = policy.decide(hire_date=employee.hire_date, year=year)

            # Leave recorded before the entitlement existed still counts.
            used = self._leave_entries.sum_days(employee_id=employee.employee_id, year=year, kind=LeaveKind.ANNUAL)
            total = entitlement.base_allowance + carry_forward

            leave_year_id = self._leave_years.create(
                employee_id=employee.employee_id,
                year=year,
                base_allowance=entitlement.base_allowance,
                carry_forward=carry_forward,
                total_entitlement=total,
                used=used,
                remaining=total - used,
                kind=entitlement.kind,
            )
            created = self._leave_years.get(leave_year_id=leave_year_id)

        logger.info(
            "Leave year generated: id=%s employee=%s year=%s kind=%s total=%s used=%s",
            leave_year_id,
            employee_id,
            year,
            entitlement.kind.value,
            total,
            used,
        )
        return created

    def generate_bulk(self, year: Optional[int] = None) -> BulkGenerationResult:
        year = int(year) if year is not None else current_year()
        result = BulkGenerationResult(year=year)
        employees = self._employees.list_active()
        logger.info("Bulk leave year generation started: year=%s employees=%d", year, len(employees))

        for employee in employees:
            try:
                self.generate(employee.employee_id, year)
                result.succeeded.append(employee.employee_id)
            except DomainError as e:
                logger.warning("Leave year generation failed: employee=%s error=%s", employee.employee_id, e)
                result.failed.append(GenerationFailure(employee_id=employee.employee_id, error=str(e)))
            except Exception as e:
                logger.exception("Leave year generation crashed: employee=%s", employee.employee_id)
                result.failed.append(GenerationFailure(employee_id=employee.employee_id, error=str(e)))

        logger.info(
            "Bulk leave year generation completed: year=%s succeeded=%d failed=%d",
            year,
            len(result.succeeded),
            len(result.failed),
        )
        return result

    def get(self, leave_year_id: int) -> LeaveYearDetail:
        leave_year = self._leave_years.get(leave_year_id=int(leave_year_id))
        if not leave_year:
            raise NotFoundError(f"Leave year {leave_year_id} not found")
        entries = self._leave_entries.list_for_leave_year(leave_year_id=leave_year.leave_year_id)
        return LeaveYearDetail(leave_year=leave_year, entries=tuple(entries))

    def get_for_employee(self, employee_id: int, year: int) -> LeaveYear:
        leave_year = self._leave_years.get_for_employee(employee_id=int(employee_id), year=int(year))
        if not leave_year:
            raise NotFoundError(f"No leave year {year} for employee {employee_id}")
        return leave_year

    def list_for_year(
        self,
        year: Optional[int] = None,
        *,
        employee_id: Optional[int] = None,
        page: Optional[PageRequest] = None,
    ) -> Page[LeaveYearRow]:
        page = page or PageRequest()
        rows, total = self._leave_years.list(year=year, employee_id=employee_id, page=page)
        return Page.of(rows, total, page)

    def update_balance(self, leave_year_id: int, days: int, operation: LeaveBalanceOperation) -> LeaveYear:
        """SUBTRACT consumes days (used grows), ADD gives them back.

        No floor or ceiling: remaining may go negative or exceed the entitlement.
        """
        days = require_int(days, "days")
        if days < 0:
            raise ValidationError("days must not be negative")

        with self._tx.transaction():
            leave_year = self._leave_years.get(leave_year_id=int(leave_year_id), for_update=True)
            if not leave_year:
                raise NotFoundError(f"Leave year {leave_year_id} not found")
            delta = days if operation == LeaveBalanceOperation.SUBTRACT else -days
            self._leave_years.apply_usage(leave_year_id=leave_year.leave_year_id, days=delta)
            updated = self._leave_years.get(leave_year_id=leave_year.leave_year_id)

        logger.info(
            "Leave balance updated: leave_year=%s operation=%s days=%s remaining=%s",
            leave_year_id,
            operation.value,
            days,
            updated.remaining,
        )
        return updated


@dataclass(frozen=True)
class LeaveEntryInput:
    employee_id: int
    kind: LeaveKind
    reason: str
    start_date: date
    end_date: date


class LeaveEntryService:
    """Recorded leave. Every write is authoritative; there is no approval step."""

    def __init__(
        self,
        leave_entries: LeaveEntryRepository,
        leave_years: LeaveYearRepository,
        leave_year_service: LeaveYearService,
        employees: EmployeeRepository,
        tx: TransactionManager,
    ):
        self._leave_entries = leave_entries
        self._leave_years = leave_years
        self._leave_year_service = leave_year_service
        self._employees = employees
        self._tx = tx

    @staticmethod
    def _count_days(start_date: date, end_date: date) -> int:
        require_date_range(start_date, end_date)
        days = count_weekdays(start_date, end_date)
        if days <= 0:
            raise ValidationError("Leave must cover at least one working day")
        return days

    def _require_employee(self, employee_id: int) -> None:
        if not self._employees.get(employee_id=int(employee_id)):
            raise NotFoundError(f"Employee {employee_id} not found")

    def _resolve_leave_year(self, employee_id: int, year: int) -> LeaveYear:
        leave_year = self._leave_years.get_for_employee(employee_id=employee_id, year=year, for_update=True)
        if leave_year:
            return leave_year
        logger.info("Leave year missing, generating: employee=%s year=%s", employee_id, year)
        return self._leave_year_service.generate(employee_id, year)

    def create(self, data: LeaveEntryInput) -> LeaveEntry:
        logger.info("Recording leave: employee=%s kind=%s", data.employee_id, data.kind.value)
        days = self._count_days(data.start_date, data.end_date)
        year = data.start_date.year
        reason = require_non_empty(data.reason, "reason")
        self._require_employee(data.employee_id)

        with self._tx.transaction():
            leave_year = self._resolve_leave_year(int(data.employee_id), year)
            entry_id = self._leave_entries.create(
                employee_id=int(data.employee_id),
                leave_year_id=leave_year.leave_year_id,
                year=year,
                kind=data.kind,
                reason=reason,
                start_date=data.start_date,
                end_date=data.end_date,
                days_count=days,
            )
            if data.kind == LeaveKind.ANNUAL:
                self._leave_year_service.update_balance(
                    leave_year.leave_year_id, days, LeaveBalanceOperation.SUBTRACT
                )
            entry = self._leave_entries.get(leave_entry_id=entry_id)

        logger.info("Leave recorded: id=%s employee=%s days=%s", entry_id, data.employee_id, days)
        return entry

    def update(
        self,
        leave_entry_id: int,
        *,
        kind: Optional[LeaveKind] = None,
        reason: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> LeaveEntry:
        current = self.get(leave_entry_id)

        new_kind = kind or current.kind
        new_reason = require_non_empty(reason, "reason") if reason is not None else current.reason
        new_start = start_date or current.start_date
        new_end = end_date or current.end_date
        days = self._count_days(new_start, new_end)
        year = new_start.year
        self._require_employee(current.employee_id)

        with self._tx.transaction():
            if current.kind == LeaveKind.ANNUAL:
                self._leave_year_service.update_balance(
                    current.leave_year_id, current.days_count, LeaveBalanceOperation.ADD
                )
            leave_year = self._resolve_leave_year(current.employee_id, year)
            self._leave_entries.update(
                leave_entry_id=current.leave_entry_id,
                leave_year_id=leave_year.leave_year_id,
                year=year,
                kind=new_kind,
                reason=new_reason,
                start_date=new_start,
                end_date=new_end,
                days_count=days,
            )
            if new_kind == LeaveKind.ANNUAL:
                self._leave_year_service.update_balance(
                    leave_year.leave_year_id, days, LeaveBalanceOperation.SUBTRACT
                )
            updated = self._leave_entries.get(leave_entry_id=current.leave_entry_id)

        logger.info("Leave entry updated: id=%s days=%s", current.leave_entry_id, days)
        return updated

    def delete(self, leave_entry_id: int) -> LeaveEntry:
        logger.info("Deleting leave entry: id=%s", leave_entry_id)
        entry = self.get(leave_entry_id)

        with self._tx.transaction():
            # a concurrent delete already restored the balance
            if not self._leave_entries.delete(leave_entry_id=entry.leave_entry_id):
                raise NotFoundError(f"Leave entry {leave_entry_id} not found")
            if entry.kind == LeaveKind.ANNUAL:
                self._leave_year_service.update_balance(
                    entry.leave_year_id, entry.days_count, LeaveBalanceOperation.ADD
                )

        logger.info("Leave entry deleted: id=%s restored=%s", entry.leave_entry_id, entry.days_count)
        return entry

    def get(self, leave_entry_id: int) -> LeaveEntry:
        entry = self._leave_entries.get(leave_entry_id=int(leave_entry_id))
        if not entry:
            raise NotFoundError(f"Leave entry {leave_entry_id} not found")
        return entry

    def list(self, query: Optional[LeaveEntryQuery] = None, page: Optional[PageRequest] = None) -> Page[LeaveEntry]:
        page = page or PageRequest()
        items, total = self._leave_entries.list(query=query or LeaveEntryQuery(), page=page)
        return Page.of(items, total, page)

    def reason_rollup(self, year: Optional[int] = None) -> Sequence[ReasonRollupRow]:
        return self._leave_entries.reason_rollup(year=year)

    def summary_for_employee(self, employee_id: int, year: Optional[int] = None) -> Sequence[KindSummaryRow]:
        self._require_employee(employee_id)
        return self._leave_entries.summary_by_kind(employee_id=int(employee_id), year=year)
