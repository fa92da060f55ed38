from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence, Tuple

from ..common.pagination import PageRequest
from ..core.enums import LeaveKind, LeaveYearKind
from .model import (
    KindSummaryRow,
    LeaveEntry,
    LeaveEntryQuery,
    LeaveYear,
    LeaveYearRow,
    ReasonRollupRow,
)


class LeaveYearRepository(Protocol):
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
        raise NotImplementedError

    def get(self, *, leave_year_id: int, for_update: bool = False) -> Optional[LeaveYear]:
        raise NotImplementedError

    def get_for_employee(self, *, employee_id: int, year: int, for_update: bool = False) -> Optional[LeaveYear]:
        raise NotImplementedError

    def list(
        self,
        *,
        year: Optional[int],
        employee_id: Optional[int],
        page: PageRequest,
    ) -> Tuple[Sequence[LeaveYearRow], int]:
        raise NotImplementedError

    def apply_usage(self, *, leave_year_id: int, days: int) -> None:
        """Add ``days`` (signed) to used and recompute remaining in one statement."""

        raise NotImplementedError


class LeaveEntryRepository(Protocol):
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
        raise NotImplementedError

    def get(self, *, leave_entry_id: int) -> Optional[LeaveEntry]:
        raise NotImplementedError

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
        raise NotImplementedError

    def delete(self, *, leave_entry_id: int) -> bool:
        raise NotImplementedError

    def list(self, *, query: LeaveEntryQuery, page: PageRequest) -> Tuple[Sequence[LeaveEntry], int]:
        raise NotImplementedError

    def list_for_leave_year(self, *, leave_year_id: int) -> Sequence[LeaveEntry]:
        raise NotImplementedError

    def sum_days(self, *, employee_id: int, year: int, kind: LeaveKind) -> int:
        raise NotImplementedError

    def reason_rollup(self, *, year: Optional[int]) -> Sequence[ReasonRollupRow]:
        raise NotImplementedError

    def summary_by_kind(self, *, employee_id: int, year: Optional[int]) -> Sequence[KindSummaryRow]:
        raise NotImplementedError
