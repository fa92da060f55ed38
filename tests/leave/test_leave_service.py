from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from datetime import date
from typing import Optional

import pytest

from hr_backoffice.core.enums import EmployeeStatus, LeaveBalanceOperation, LeaveKind, LeaveYearKind
from hr_backoffice.core.exceptions import BusinessLogicError, NotFoundError, ValidationError
from hr_backoffice.employees.model import Employee
from hr_backoffice.leave.model import LeaveEntry, LeaveYear
from hr_backoffice.leave.service import LeaveEntryInput, LeaveEntryService, LeaveYearService


class FakeTx:
    def __init__(self):
        self.opened = 0

    @contextmanager
    def transaction(self):
        self.opened += 1
        yield


class InMemoryEmployees:
    def __init__(self, *employees: Employee):
        self._by_id = {e.employee_id: e for e in employees}

    def get(self, *, employee_id: int) -> Optional[Employee]:
        return self._by_id.get(int(employee_id))

    def list_active(self):
        return [e for e in self._by_id.values() if e.is_active]


class InMemoryLeaveYears:
    def __init__(self):
        self.rows: dict[int, LeaveYear] = {}
        self._next_id = 1

    def create(self, *, employee_id, year, base_allowance, carry_forward, total_entitlement, used, remaining, kind):
        leave_year_id = self._next_id
        self._next_id += 1
        self.rows[leave_year_id] = LeaveYear(
            leave_year_id=leave_year_id,
            employee_id=employee_id,
            year=year,
            base_allowance=base_allowance,
            carry_forward=carry_forward,
            total_entitlement=total_entitlement,
            used=used,
            remaining=remaining,
            kind=kind,
        )
        return leave_year_id

    def get(self, *, leave_year_id, for_update=False):
        return self.rows.get(int(leave_year_id))

    def get_for_employee(self, *, employee_id, year, for_update=False):
        for row in self.rows.values():
            if row.employee_id == employee_id and row.year == year:
                return row
        return None

    def apply_usage(self, *, leave_year_id, days):
        row = self.rows[leave_year_id]
        used = row.used + days
        self.rows[leave_year_id] = dataclasses.replace(row, used=used, remaining=row.total_entitlement - used)


class InMemoryLeaveEntries:
    def __init__(self):
        self.rows: dict[int, LeaveEntry] = {}
        self._next_id = 1

    def create(self, *, employee_id, leave_year_id, year, kind, reason, start_date, end_date, days_count):
        entry_id = self._next_id
        self._next_id += 1
        self.rows[entry_id] = LeaveEntry(
            leave_entry_id=entry_id,
            employee_id=employee_id,
            leave_year_id=leave_year_id,
            year=year,
            kind=kind,
            reason=reason,
            start_date=start_date,
            end_date=end_date,
            days_count=days_count,
        )
        return entry_id

    def get(self, *, leave_entry_id):
        return self.rows.get(int(leave_entry_id))

    def update(self, *, leave_entry_id, **fields):
        self.rows[leave_entry_id] = dataclasses.replace(self.rows[leave_entry_id], **fields)

    def delete(self, *, leave_entry_id):
        return self.rows.pop(leave_entry_id, None) is not None

    def list_for_leave_year(self, *, leave_year_id):
        return [e for e in self.rows.values() if e.leave_year_id == leave_year_id]

    def sum_days(self, *, employee_id, year, kind):
        return sum(
            e.days_count for e in self.rows.values() if e.employee_id == employee_id and e.year == year and e.kind == kind
        )


def _employee(employee_id: int, hire_date: date, status: EmployeeStatus = EmployeeStatus.ACTIVE) -> Employee:
    return Employee(
        employee_id=employee_id,
        national_id=f"NIK{employee_id:03d}",
        name=f"Employee {employee_id}",
        job_title=None,
        department="Finance",
        hire_date=hire_date,
        status=status,
    )


def _services(*employees: Employee):
    employees_repo = InMemoryEmployees(*employees)
    years = InMemoryLeaveYears()
    entries = InMemoryLeaveEntries()
    tx = FakeTx()
    year_service = LeaveYearService(years, entries, employees_repo, tx)
    entry_service = LeaveEntryService(entries, years, year_service, employees_repo, tx)
    return year_service, entry_service, years, entries


def _annual(employee_id: int, start: date, end: date, kind: LeaveKind = LeaveKind.ANNUAL) -> LeaveEntryInput:
    return LeaveEntryInput(employee_id=employee_id, kind=kind, reason="Family trip", start_date=start, end_date=end)


def test_generate_follows_tenure():
    year_service, _, _, _ = _services(_employee(1, date(2022, 4, 10)))

    assert year_service.generate(1, 2022).kind == LeaveYearKind.PROBATION
    full = year_service.generate(1, 2023)
    assert (full.kind, full.base_allowance, full.total_entitlement) == (LeaveYearKind.FULL, 12, 12)
    prorate = year_service.generate(1, 2024)
    assert prorate.kind == LeaveYearKind.PRORATE
    assert prorate.base_allowance == 9


def test_positive_remaining_is_carried_forward():
    year_service, _, years, _ = _services(_employee(1, date(2020, 3, 1)))
    first = year_service.generate(1, 2021)
    years.apply_usage(leave_year_id=first.leave_year_id, days=5)

    second = year_service.generate(1, 2022)

    assert second.carry_forward == 7
    assert second.base_allowance == 10
    assert second.total_entitlement == 17
    assert second.remaining == 17


def test_negative_remaining_is_not_carried():
    year_service, _, years, _ = _services(_employee(1, date(2020, 3, 1)))
    first = year_service.generate(1, 2021)
    years.apply_usage(leave_year_id=first.leave_year_id, days=15)
    assert years.get(leave_year_id=first.leave_year_id).remaining == -3

    second = year_service.generate(1, 2022)

    assert second.carry_forward == 0
    assert second.total_entitlement == second.base_allowance


def test_second_generation_is_rejected_and_first_row_kept():
    year_service, _, years, _ = _services(_employee(1, date(2020, 3, 1)))
    first = year_service.generate(1, 2021)

    with pytest.raises(BusinessLogicError):
        year_service.generate(1, 2021)

    assert years.get(leave_year_id=first.leave_year_id) == first
    assert len(years.rows) == 1


def test_generate_requires_active_employee():
    year_service, _, _, _ = _services(_employee(1, date(2020, 3, 1), EmployeeStatus.INACTIVE))

    with pytest.raises(BusinessLogicError):
        year_service.generate(1, 2022)
    with pytest.raises(NotFoundError):
        year_service.generate(99, 2022)


def test_annual_entry_round_trip_restores_balance():
    year_service, entry_service, years, _ = _services(_employee(1, date(2020, 1, 15)))
    leave_year = year_service.generate(1, 2024)
    before = (leave_year.used, leave_year.remaining)

    # Tuesday to Thursday
    entry = entry_service.create(_annual(1, date(2024, 1, 2), date(2024, 1, 4)))
    after_create = years.get(leave_year_id=leave_year.leave_year_id)
    assert entry.days_count == 3
    assert after_create.used == before[0] + 3
    assert after_create.remaining == before[1] - 3
    assert after_create.remaining == after_create.total_entitlement - after_create.used

    entry_service.delete(entry.leave_entry_id)
    after_delete = years.get(leave_year_id=leave_year.leave_year_id)
    assert (after_delete.used, after_delete.remaining) == before


def test_balance_stays_consistent_over_many_entries():
    year_service, entry_service, years, _ = _services(_employee(1, date(2020, 1, 15)))
    leave_year = year_service.generate(1, 2024)

    first = entry_service.create(_annual(1, date(2024, 2, 5), date(2024, 2, 9)))
    entry_service.create(_annual(1, date(2024, 3, 4), date(2024, 3, 15)))
    entry_service.create(_annual(1, date(2024, 4, 1), date(2024, 4, 1)))
    entry_service.delete(first.leave_entry_id)

    row = years.get(leave_year_id=leave_year.leave_year_id)
    assert row.used == 11
    assert row.remaining == row.total_entitlement - row.used
    assert row.remaining == 1


def test_balance_may_go_negative():
    year_service, entry_service, years, _ = _services(_employee(1, date(2020, 1, 15)))
    leave_year = year_service.generate(1, 2024)

    entry_service.create(_annual(1, date(2024, 5, 1), date(2024, 5, 31)))

    assert years.get(leave_year_id=leave_year.leave_year_id).remaining == 12 - 23


def test_non_annual_entry_leaves_balance_alone():
    year_service, entry_service, years, _ = _services(_employee(1, date(2020, 1, 15)))
    leave_year = year_service.generate(1, 2024)

    entry_service.create(_annual(1, date(2024, 1, 2), date(2024, 1, 4), kind=LeaveKind.SICK))

    assert years.get(leave_year_id=leave_year.leave_year_id).used == 0


def test_entry_generates_missing_leave_year():
    _, entry_service, years, _ = _services(_employee(1, date(2020, 1, 15)))

    entry = entry_service.create(_annual(1, date(2024, 1, 2), date(2024, 1, 3)))

    row = years.get(leave_year_id=entry.leave_year_id)
    assert row.year == 2024
    assert row.used == 2
    assert row.remaining == row.total_entitlement - 2


def test_weekend_only_entry_is_rejected():
    year_service, entry_service, _, entries = _services(_employee(1, date(2020, 1, 15)))
    year_service.generate(1, 2024)

    with pytest.raises(ValidationError):
        entry_service.create(_annual(1, date(2024, 1, 6), date(2024, 1, 7)))
    assert entries.rows == {}


def test_inverted_range_and_blank_reason_are_rejected():
    _, entry_service, _, _ = _services(_employee(1, date(2020, 1, 15)))

    with pytest.raises(ValidationError):
        entry_service.create(_annual(1, date(2024, 1, 5), date(2024, 1, 2)))
    with pytest.raises(ValidationError):
        entry_service.create(
            LeaveEntryInput(
                employee_id=1, kind=LeaveKind.ANNUAL, reason="  ", start_date=date(2024, 1, 2), end_date=date(2024, 1, 2)
            )
        )


def test_update_moves_balance_between_years():
    year_service, entry_service, years, _ = _services(_employee(1, date(2020, 1, 15)))
    year_2024 = year_service.generate(1, 2024)
    entry = entry_service.create(_annual(1, date(2024, 1, 2), date(2024, 1, 4)))

    # Monday and Tuesday of the next year
    updated = entry_service.update(entry.leave_entry_id, start_date=date(2025, 1, 6), end_date=date(2025, 1, 7))

    assert updated.year == 2025
    assert updated.days_count == 2
    assert years.get(leave_year_id=year_2024.leave_year_id).used == 0
    year_2025 = years.get(leave_year_id=updated.leave_year_id)
    assert year_2025.year == 2025
    assert year_2025.used == 2


def test_update_kind_from_annual_to_sick_gives_days_back():
    year_service, entry_service, years, _ = _services(_employee(1, date(2020, 1, 15)))
    leave_year = year_service.generate(1, 2024)
    entry = entry_service.create(_annual(1, date(2024, 1, 2), date(2024, 1, 4)))

    entry_service.update(entry.leave_entry_id, kind=LeaveKind.SICK)

    assert years.get(leave_year_id=leave_year.leave_year_id).used == 0


def test_update_balance_operations():
    year_service, _, _, _ = _services(_employee(1, date(2020, 1, 15)))
    leave_year = year_service.generate(1, 2024)

    after_subtract = year_service.update_balance(leave_year.leave_year_id, 4, LeaveBalanceOperation.SUBTRACT)
    assert (after_subtract.used, after_subtract.remaining) == (4, 8)

    after_add = year_service.update_balance(leave_year.leave_year_id, 6, LeaveBalanceOperation.ADD)
    assert (after_add.used, after_add.remaining) == (-2, 14)

    with pytest.raises(ValidationError):
        year_service.update_balance(leave_year.leave_year_id, -1, LeaveBalanceOperation.ADD)
    with pytest.raises(NotFoundError):
        year_service.update_balance(999, 1, LeaveBalanceOperation.ADD)


def test_bulk_generation_aggregates_failures():
    year_service, _, _, _ = _services(
        _employee(1, date(2020, 1, 15)),
        _employee(2, date(2021, 6, 1)),
        _employee(3, date(2030, 1, 1)),
        _employee(4, date(2019, 1, 1), EmployeeStatus.INACTIVE),
    )
    year_service.generate(2, 2024)

    result = year_service.generate_bulk(2024)

    assert result.year == 2024
    assert result.succeeded == [1]
    assert sorted(f.employee_id for f in result.failed) == [2, 3]
    assert all(f.error for f in result.failed)


def test_generate_counts_annual_leave_recorded_before_the_year_existed():
    year_service, _, _, entries = _services(_employee(1, date(2020, 1, 15)))
    entries.create(
        employee_id=1,
        leave_year_id=None,
        year=2024,
        kind=LeaveKind.ANNUAL,
        reason="Wedding",
        start_date=date(2024, 1, 2),
        end_date=date(2024, 1, 4),
        days_count=3,
    )
    entries.create(
        employee_id=1,
        leave_year_id=None,
        year=2024,
        kind=LeaveKind.SICK,
        reason="Flu",
        start_date=date(2024, 1, 8),
        end_date=date(2024, 1, 9),
        days_count=2,
    )
    entries.create(
        employee_id=1,
        leave_year_id=None,
        year=2023,
        kind=LeaveKind.ANNUAL,
        reason="Holiday",
        start_date=date(2023, 12, 27),
        end_date=date(2023, 12, 27),
        days_count=1,
    )

    leave_year = year_service.generate(1, 2024)

    assert leave_year.used == 3
    assert leave_year.remaining == leave_year.total_entitlement - 3


def test_second_delete_of_same_entry_does_not_restore_twice():
    year_service, entry_service, years, entries = _services(_employee(1, date(2020, 1, 15)))
    leave_year = year_service.generate(1, 2024)
    entry = entry_service.create(_annual(1, date(2024, 1, 2), date(2024, 1, 4)))

    # the second caller read the row before the first caller removed it
    stale = entries.rows[entry.leave_entry_id]
    entry_service.delete(entry.leave_entry_id)
    entries.get = lambda *, leave_entry_id: stale

    with pytest.raises(NotFoundError):
        entry_service.delete(entry.leave_entry_id)

    row = years.get(leave_year_id=leave_year.leave_year_id)
    assert (row.used, row.remaining) == (0, row.total_entitlement)
